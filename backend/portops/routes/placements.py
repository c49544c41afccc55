# backend/portops/routes/placements.py
"""
Placement API routes.

POST /api/placements is the single call that places goods: the zone
occupancy, goods status and placement row are committed together or not
at all.
"""
from flask import Blueprint, current_app, request, jsonify, g
from ..extensions import db
from ..decorators import require_operator, require_permission
from ..models.yard import PLACEMENT_STATUSES
from ..services import placement_service
from ..services.concurrency import commit_transaction
from .common import HANDLED_ERRORS, error_response, int_field, json_body, list_limit, text_field


placements_bp = Blueprint("placements", __name__, url_prefix="/api/placements")


@placements_bp.get("")
@require_operator
def list_placements():
    """
    List placements with goods and zone references, most recent first.

    Query params:
    - status: active | moved | departed (optional)
    - limit: int (optional, default 100, max 500)
    """
    status = request.args.get("status")
    if status and status not in PLACEMENT_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(PLACEMENT_STATUSES)}"}), 400

    placements = placement_service.list_placements(status=status, limit=list_limit())
    return jsonify({"placements": [p.to_dict(include_refs=True) for p in placements]}), 200


@placements_bp.post("")
@require_operator
@require_permission("PLACE_GOODS")
def place_goods():
    """
    Place landed goods into a zone.

    Request body:
    {
        "goods_landing_id": int,
        "zone_id": int,
        "rack_number": str,
        "notes": str (optional)
    }

    Returns:
        201: Placement created, goods placed, zone occupancy updated
        400: Invalid request
        404: Goods or zone not found
        409: Not placeable, zone full, or concurrent change
    """
    try:
        data = json_body()
        placement = placement_service.place_goods(
            goods_landing_id=int_field(data, "goods_landing_id"),
            zone_id=int_field(data, "zone_id"),
            rack_number=text_field(data, "rack_number", max_length=64),
            operator_id=g.current_user.id,
            notes=text_field(data, "notes", required=False, max_length=2000),
        )

        commit_transaction()

        current_app.logger.info(
            "Placed goods %s in zone %s rack %s",
            placement.goods_landing_id, placement.zone_id, placement.rack_number,
        )
        return jsonify(placement.to_dict(include_refs=True)), 201

    except HANDLED_ERRORS as e:
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to place goods")
        return jsonify({"error": "Unexpected error"}), 500


@placements_bp.get("/<int:placement_id>")
@require_operator
def get_placement(placement_id: int):
    try:
        placement = placement_service.get_placement(placement_id)
        return jsonify(placement.to_dict(include_refs=True)), 200
    except HANDLED_ERRORS as e:
        return error_response(e)
