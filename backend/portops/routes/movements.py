# backend/portops/routes/movements.py
"""
Movement API routes.

POST /api/movements relocates goods in a single transaction: movement
record, placement swap and both zone occupancies.
"""
from flask import Blueprint, current_app, request, jsonify, g
from ..extensions import db
from ..decorators import require_operator, require_permission
from ..models.yard import MOVEMENT_STATUSES
from ..services import movement_service
from ..services.concurrency import commit_transaction
from .common import HANDLED_ERRORS, error_response, int_field, json_body, list_limit, text_field


movements_bp = Blueprint("movements", __name__, url_prefix="/api/movements")


@movements_bp.get("")
@require_operator
def list_movements():
    """
    List movements with goods and zone references, most recent first.

    Query params:
    - status: pending | in_progress | completed | cancelled (optional)
    - limit: int (optional, default 100, max 500)
    """
    status = request.args.get("status")
    if status and status not in MOVEMENT_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(MOVEMENT_STATUSES)}"}), 400

    movements = movement_service.list_movements(status=status, limit=list_limit())
    return jsonify({"movements": [m.to_dict(include_refs=True) for m in movements]}), 200


@movements_bp.get("/reasons")
@require_operator
def list_reasons():
    return jsonify({"reasons": list(movement_service.MOVEMENT_REASONS)}), 200


@movements_bp.get("/destinations/<int:placement_id>")
@require_operator
def list_destinations(placement_id: int):
    """Active zones the placement's goods could move to (current zone excluded)."""
    try:
        zones = movement_service.list_destination_zones(placement_id)
        return jsonify({"zones": [z.to_dict() for z in zones]}), 200
    except HANDLED_ERRORS as e:
        return error_response(e)


@movements_bp.post("")
@require_operator
@require_permission("MOVE_GOODS")
def move_goods():
    """
    Move placed goods to another zone.

    Request body:
    {
        "goods_placement_id": int,
        "to_zone_id": int,
        "to_rack": str,
        "reason": str,
        "notes": str (optional)
    }

    Returns:
        201: Movement completed
        400: Invalid request
        404: Placement or zone not found
        409: Placement not active, same zone, destination full, or concurrent change
    """
    try:
        data = json_body()
        movement = movement_service.move_goods(
            placement_id=int_field(data, "goods_placement_id"),
            to_zone_id=int_field(data, "to_zone_id"),
            to_rack=text_field(data, "to_rack", max_length=64),
            reason=text_field(data, "reason"),
            operator_id=g.current_user.id,
            notes=text_field(data, "notes", required=False, max_length=2000),
        )

        commit_transaction()

        current_app.logger.info(
            "Moved goods %s from zone %s to zone %s",
            movement.goods_landing_id, movement.from_zone_id, movement.to_zone_id,
        )
        return jsonify(movement.to_dict(include_refs=True)), 201

    except HANDLED_ERRORS as e:
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to move goods")
        return jsonify({"error": "Unexpected error"}), 500
