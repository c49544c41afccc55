# Overview: Movement engine; relocates placed goods between zones in one transaction.

"""
Movement Engine

move_goods() is one all-or-nothing unit:
1. Destination occupancy += quantity, source occupancy -= quantity
   (conditional UPDATEs, zones locked in id order)
2. Old placement active -> moved (conditional on still being active)
3. New active placement in the destination (type=relocated), notes carry
   the source zone code and the reason
4. Completed movement record linking both zones and racks
5. Audit rows for every write

Capacity is checked against the destination's own occupancy only; the
source release never makes room for the same move.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy import func, update

from ..extensions import db
from ..models import GoodsPlacement, Movement, Zone
from ..models.yard import (
    MOVEMENT_STATUS_COMPLETED,
    PLACEMENT_STATUS_ACTIVE,
    PLACEMENT_STATUS_MOVED,
    PLACEMENT_TYPE_RELOCATED,
    ZONE_STATUS_ACTIVE,
)
from . import audit_service, placement_service, zone_service
from .concurrency import run_with_retry
from .errors import CapacityExceededError, ConcurrencyConflictError, InvalidStateError


# Reasons offered by the movement form; free text is still accepted
MOVEMENT_REASONS = (
    "Optimization",
    "Consolidation",
    "Priority Access",
    "Zone Maintenance",
    "Loading Preparation",
    "Other",
)

DEFAULT_LIST_LIMIT = 100


def list_movements(status: str | None = None, limit: int = DEFAULT_LIST_LIMIT) -> list[Movement]:
    """Most recent movements first."""
    query = db.session.query(Movement)
    if status:
        query = query.filter(Movement.status == status)
    return (
        query.order_by(Movement.movement_time.desc(), Movement.id.desc())
        .limit(limit)
        .all()
    )


def list_destination_zones(placement_id: int) -> list[Zone]:
    """Active zones a placement could move to (its own zone excluded)."""
    placement = placement_service.get_placement(placement_id)
    return [z for z in zone_service.list_active_zones() if z.id != placement.zone_id]


def _lock_zones(*zone_ids: int) -> dict[int, Zone]:
    # Fixed lock order keeps two opposite moves from deadlocking
    return {zone_id: zone_service.get_zone(zone_id, for_update=True) for zone_id in sorted(zone_ids)}


def move_goods(
    placement_id: int,
    to_zone_id: int,
    to_rack: str,
    reason: str,
    *,
    operator_id: int | None = None,
    notes: str = "",
) -> Movement:
    """
    Relocate the goods of an active placement to another zone.

    Args:
        placement_id: Active placement to close
        to_zone_id: Destination zone (active, different from the source)
        to_rack: Rack / slot in the destination
        reason: Why the goods are moved
        operator_id: Profile performing the move
        notes: Free-text movement notes

    Returns:
        Movement: The completed movement record

    Raises:
        NotFoundError: Placement or destination zone does not exist
        InvalidStateError: Placement not active, zone inactive, or same zone
        CapacityExceededError: Destination cannot hold the full quantity
        OccupancyInvariantError: Source occupancy would drop below zero
        ConcurrencyConflictError: Lost the race twice
    """
    def _op():
        placement = placement_service.get_placement(placement_id)
        if placement.status != PLACEMENT_STATUS_ACTIVE:
            raise InvalidStateError(
                f"Placement {placement.id} is {placement.status}; only active placements can move"
            )

        if placement.zone_id == to_zone_id:
            raise InvalidStateError("Destination zone must differ from the current zone")

        zones = _lock_zones(placement.zone_id, to_zone_id)
        from_zone = zones[placement.zone_id]
        to_zone = zones[to_zone_id]

        if to_zone.status != ZONE_STATUS_ACTIVE:
            raise InvalidStateError(f"Zone {to_zone.zone_code} is {to_zone.status}")

        goods = placement.goods
        quantity = Decimal(goods.quantity)
        if to_zone.available_capacity < quantity:
            current_app.logger.info(
                "Movement rejected: goods %s (%s) does not fit zone %s (available %s)",
                goods.goods_id, quantity, to_zone.zone_code, to_zone.available_capacity,
            )
            raise CapacityExceededError(to_zone.zone_code, quantity, to_zone.available_capacity)

        old_to_zone = to_zone.to_dict()
        old_from_zone = from_zone.to_dict()
        zone_service.apply_occupancy_delta(to_zone, quantity, expected_version=to_zone.version_id)
        zone_service.apply_occupancy_delta(from_zone, -quantity, expected_version=from_zone.version_id)

        old_placement = placement.to_dict()
        closed = db.session.execute(
            update(GoodsPlacement)
            .where(GoodsPlacement.id == placement.id, GoodsPlacement.status == PLACEMENT_STATUS_ACTIVE)
            .values(status=PLACEMENT_STATUS_MOVED, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if closed.rowcount != 1:
            raise ConcurrencyConflictError(
                f"Placement {placement.id} changed while the move was in progress"
            )
        db.session.refresh(placement)

        movement = Movement(
            goods_landing_id=goods.id,
            from_zone_id=from_zone.id,
            to_zone_id=to_zone.id,
            from_rack=placement.rack_number,
            to_rack=to_rack,
            operator_id=operator_id,
            reason=reason,
            status=MOVEMENT_STATUS_COMPLETED,
            notes=notes or "",
        )
        relocated = GoodsPlacement(
            goods_landing_id=goods.id,
            zone_id=to_zone.id,
            rack_number=to_rack,
            operator_id=operator_id,
            placement_type=PLACEMENT_TYPE_RELOCATED,
            status=PLACEMENT_STATUS_ACTIVE,
            notes=f"Moved from {from_zone.zone_code}. Reason: {reason}",
        )
        db.session.add(movement)
        db.session.add(relocated)
        db.session.flush()

        audit_service.record_update(to_zone, old_to_zone, user_id=operator_id)
        audit_service.record_update(from_zone, old_from_zone, user_id=operator_id)
        audit_service.record_update(placement, old_placement, user_id=operator_id)
        audit_service.record_insert(relocated, user_id=operator_id)
        audit_service.record_insert(movement, user_id=operator_id)
        return movement

    return run_with_retry(_op)
