# backend/portops/routes/goods.py
"""
Goods landing API routes.

Landing registration requires REGISTER_LANDING; reads and zone suggestions
only need an identified operator.
"""
from flask import Blueprint, current_app, request, jsonify, g
from ..extensions import db
from ..decorators import require_operator, require_permission
from ..models import GoodsLanding
from ..models.yard import GOODS_STATUSES, TRANSPORT_MODES, UNIT_TYPES
from ..services import goods_service, placement_service
from ..services.concurrency import commit_transaction
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_landing
from .common import HANDLED_ERRORS, error_response, json_body, list_limit


LANDING_POLICY = ModelValidationPolicy(
    writable_fields={
        "goods_id", "arrival_time", "origin", "transport_mode", "vessel_name",
        "quantity", "unit_type", "goods_type", "notes",
    },
    required_on_create={"goods_id", "transport_mode", "quantity"},
    choices={"transport_mode": TRANSPORT_MODES, "unit_type": UNIT_TYPES},
)

goods_bp = Blueprint("goods", __name__, url_prefix="/api/goods")


@goods_bp.get("")
@require_operator
def list_goods():
    """
    List goods landings, most recent arrival first.

    Query params:
    - status: landed | placed | in_transit | departed (optional)
    - limit: int (optional, default 100, max 500)
    """
    status = request.args.get("status")
    if status and status not in GOODS_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(GOODS_STATUSES)}"}), 400

    goods = goods_service.list_goods(status=status, limit=list_limit())
    return jsonify({"goods": [item.to_dict() for item in goods]}), 200


@goods_bp.get("/unplaced")
@require_operator
def list_unplaced_goods():
    """Landed goods waiting for placement, oldest arrival first."""
    goods = goods_service.list_unplaced_goods()
    return jsonify({"goods": [item.to_dict() for item in goods]}), 200


@goods_bp.post("")
@require_operator
@require_permission("REGISTER_LANDING")
def register_landing():
    """
    Register goods arriving at the port.

    Request body:
    {
        "goods_id": str,
        "transport_mode": "ship" | "truck" | "rail" | "air",
        "quantity": number (> 0),
        "unit_type": str (optional, default container),
        "goods_type": str (optional),
        "origin": str (optional),
        "vessel_name": str (optional),
        "arrival_time": ISO-8601 (optional, default now),
        "notes": str (optional)
    }

    Returns:
        201: Landing registered (status landed)
        400: Invalid request
    """
    try:
        patch = validate_payload(model=GoodsLanding, payload=json_body(), policy=LANDING_POLICY, partial=False)
        enforce_rules_landing(patch)

        goods = goods_service.register_landing(patch, clerk_id=g.current_user.id)

        commit_transaction()

        return jsonify(goods.to_dict()), 201

    except HANDLED_ERRORS as e:
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to register goods landing")
        return jsonify({"error": "Unexpected error"}), 500


@goods_bp.get("/<int:goods_landing_id>")
@require_operator
def get_goods(goods_landing_id: int):
    """Goods landing with its active placement (if any)."""
    try:
        goods = goods_service.get_goods(goods_landing_id)
        placement = placement_service.get_active_placement_for(goods.id)
        data = goods.to_dict()
        data["active_placement"] = placement.to_dict(include_refs=True) if placement else None
        return jsonify(data), 200
    except HANDLED_ERRORS as e:
        return error_response(e)


@goods_bp.get("/<int:goods_landing_id>/suggestions")
@require_operator
def suggest_zones(goods_landing_id: int):
    """
    Ranked zone suggestions for placing the goods.

    Returns up to SUGGESTION_LIMIT active zones that can hold the full
    quantity, best score first.
    """
    try:
        suggestions = placement_service.suggest_zones_for_goods(goods_landing_id)
        return jsonify({
            "goods_landing_id": goods_landing_id,
            "suggestions": [s.to_dict() for s in suggestions],
        }), 200
    except HANDLED_ERRORS as e:
        return error_response(e)
