# backend/portops/routes/zones.py
"""
Zone registry API routes.

Occupancy is read-only here: it changes only through placements and
movements. Write operations require MANAGE_ZONES.
"""
from flask import Blueprint, current_app, request, jsonify, g
from ..extensions import db
from ..decorators import require_operator, require_permission
from ..models import Zone
from ..models.yard import ZONE_STATUSES, ZONE_TYPES
from ..services import zone_service
from ..services.concurrency import commit_transaction, run_with_retry
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_zone
from .common import HANDLED_ERRORS, error_response, json_body


ZONE_POLICY = ModelValidationPolicy(
    writable_fields={"zone_code", "description", "capacity", "zone_type", "status"},
    required_on_create={"zone_code", "capacity"},
    choices={"zone_type": ZONE_TYPES, "status": ZONE_STATUSES},
)

zones_bp = Blueprint("zones", __name__, url_prefix="/api/zones")


@zones_bp.get("")
@require_operator
def list_zones():
    """
    List zones ordered by code.

    Query params:
    - status: active | inactive | maintenance (optional)
    - zone_type: container | bulk | general | refrigerated (optional)
    """
    zones = zone_service.list_zones(
        status=request.args.get("status"),
        zone_type=request.args.get("zone_type"),
    )
    return jsonify({"zones": [z.to_dict() for z in zones]}), 200


@zones_bp.post("")
@require_operator
@require_permission("MANAGE_ZONES")
def create_zone():
    """
    Create a zone.

    Request body:
    {
        "zone_code": str,
        "capacity": number,
        "zone_type": str (optional, default general),
        "status": str (optional, default active),
        "description": str (optional)
    }

    Returns:
        201: Zone created
        400: Invalid request
        409: Duplicate zone code
    """
    try:
        patch = validate_payload(model=Zone, payload=json_body(), policy=ZONE_POLICY, partial=False)
        enforce_rules_zone(patch)

        zone = zone_service.create_zone(patch, actor_id=g.current_user.id)

        commit_transaction()

        return jsonify(zone.to_dict()), 201

    except HANDLED_ERRORS as e:
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create zone")
        return jsonify({"error": "Unexpected error"}), 500


@zones_bp.get("/<int:zone_id>")
@require_operator
def get_zone(zone_id: int):
    try:
        zone = zone_service.get_zone(zone_id)
        return jsonify(zone.to_dict()), 200
    except HANDLED_ERRORS as e:
        return error_response(e)


@zones_bp.patch("/<int:zone_id>")
@require_operator
@require_permission("MANAGE_ZONES")
def update_zone(zone_id: int):
    """
    Update description, capacity, type or status of a zone.

    Returns:
        200: Zone updated
        400: Invalid request (e.g. current_occupancy in body)
        404: Zone not found
        409: Capacity below occupancy, duplicate code, or concurrent change
    """
    try:
        patch = validate_payload(model=Zone, payload=json_body(), policy=ZONE_POLICY, partial=True)
        enforce_rules_zone(patch)

        zone = run_with_retry(
            lambda: zone_service.update_zone(zone_id, patch, actor_id=g.current_user.id)
        )

        commit_transaction()

        return jsonify(zone.to_dict()), 200

    except HANDLED_ERRORS as e:
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update zone")
        return jsonify({"error": "Unexpected error"}), 500


@zones_bp.get("/occupancy-check")
@require_operator
@require_permission("MANAGE_ZONES")
def occupancy_check():
    """Report zones whose stored occupancy differs from their active placements."""
    drift = zone_service.find_occupancy_drift()
    return jsonify({
        "consistent": not drift,
        "drift": [d.to_dict() for d in drift],
    }), 200
