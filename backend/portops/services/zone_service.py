# Overview: Service-layer operations for the zone registry; sole writer of zone occupancy.

"""
Zone Registry

OCCUPANCY WRITES:
apply_occupancy_delta() is the only code path that changes
Zone.current_occupancy. It issues a single conditional UPDATE that re-checks,
against the row as it is at write time:
- the version read by the caller (lost race -> ConcurrencyConflictError)
- the capacity ceiling (-> CapacityExceededError)
- the zero floor (-> OccupancyInvariantError)
Only placement_service and movement_service call it.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, update

from ..extensions import db
from ..models import Zone, GoodsLanding, GoodsPlacement
from ..models.yard import PLACEMENT_STATUS_ACTIVE, ZONE_STATUS_ACTIVE, QUANTITY_QUANTUM
from ..validation import ConflictError
from . import audit_service
from .concurrency import lock_for_update
from .errors import (
    CapacityExceededError,
    ConcurrencyConflictError,
    InvalidStateError,
    NotFoundError,
    OccupancyInvariantError,
)


def get_zone(zone_id: int, *, for_update: bool = False) -> Zone:
    query = db.session.query(Zone).filter_by(id=zone_id)
    if for_update:
        query = lock_for_update(query)
    zone = query.first()
    if not zone:
        raise NotFoundError(f"Zone {zone_id} not found")
    return zone


def list_zones(status: str | None = None, zone_type: str | None = None) -> list[Zone]:
    query = db.session.query(Zone)
    if status:
        query = query.filter(Zone.status == status)
    if zone_type:
        query = query.filter(Zone.zone_type == zone_type)
    return query.order_by(Zone.zone_code).all()


def list_active_zones() -> list[Zone]:
    return list_zones(status=ZONE_STATUS_ACTIVE)


def create_zone(patch: dict, *, actor_id: int | None = None) -> Zone:
    """
    Create a zone from a validated patch (admin action).

    Occupancy always starts at zero.
    """
    if db.session.query(Zone).filter_by(zone_code=patch["zone_code"]).first():
        raise ConflictError(f"Zone code {patch['zone_code']} already exists")

    zone = Zone(current_occupancy=Decimal(0), **patch)
    db.session.add(zone)
    db.session.flush()

    audit_service.record_insert(zone, user_id=actor_id)
    return zone


def update_zone(zone_id: int, patch: dict, *, actor_id: int | None = None) -> Zone:
    """
    Apply an administrative patch (description, capacity, zone_type, status).

    Capacity cannot drop below what is already stored in the zone.
    """
    zone = get_zone(zone_id, for_update=True)
    old_data = zone.to_dict()

    if "zone_code" in patch and patch["zone_code"] != zone.zone_code:
        clash = db.session.query(Zone).filter(
            Zone.zone_code == patch["zone_code"], Zone.id != zone.id
        ).first()
        if clash:
            raise ConflictError(f"Zone code {patch['zone_code']} already exists")

    if "capacity" in patch and patch["capacity"] < zone.current_occupancy:
        raise InvalidStateError(
            f"Capacity {patch['capacity']} is below current occupancy "
            f"{zone.current_occupancy} of zone {zone.zone_code}"
        )

    for key, value in patch.items():
        setattr(zone, key, value)
    db.session.flush()

    audit_service.record_update(zone, old_data, user_id=actor_id)
    return zone


def apply_occupancy_delta(zone: Zone, delta: Decimal, *, expected_version: int) -> Zone:
    """
    Conditionally add `delta` to a zone's occupancy.

    The UPDATE only matches when the row still carries `expected_version` and
    the new occupancy stays within [0, capacity]. When nothing matches, the row
    is re-read to tell a lost race from a capacity or floor violation.
    """
    stmt = (
        update(Zone)
        .where(
            Zone.id == zone.id,
            Zone.version_id == expected_version,
            Zone.current_occupancy + delta <= Zone.capacity,
            Zone.current_occupancy + delta >= 0,
        )
        .values(
            current_occupancy=Zone.current_occupancy + delta,
            version_id=Zone.version_id + 1,
            updated_at=func.now(),
        )
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    db.session.refresh(zone)

    if result.rowcount == 1:
        return zone

    if zone.version_id != expected_version:
        raise ConcurrencyConflictError(
            f"Zone {zone.zone_code} changed while the operation was in progress"
        )
    if delta > 0:
        raise CapacityExceededError(zone.zone_code, delta, zone.available_capacity)
    raise OccupancyInvariantError(
        f"Releasing {-delta} from zone {zone.zone_code} would drop occupancy "
        f"below zero (current {zone.current_occupancy})"
    )


@dataclass(frozen=True)
class OccupancyDrift:
    zone: Zone
    recorded: Decimal
    computed: Decimal

    def to_dict(self) -> dict:
        return {
            "zone_id": self.zone.id,
            "zone_code": self.zone.zone_code,
            "recorded": float(self.recorded),
            "computed": float(self.computed),
            "difference": float(self.recorded - self.computed),
        }


def computed_occupancy_by_zone() -> dict[int, Decimal]:
    """Sum of goods quantity per zone over active placements."""
    rows = (
        db.session.query(GoodsPlacement.zone_id, func.coalesce(func.sum(GoodsLanding.quantity), 0))
        .join(GoodsLanding, GoodsLanding.id == GoodsPlacement.goods_landing_id)
        .filter(GoodsPlacement.status == PLACEMENT_STATUS_ACTIVE)
        .group_by(GoodsPlacement.zone_id)
        .all()
    )
    return {zone_id: Decimal(str(total)).quantize(QUANTITY_QUANTUM) for zone_id, total in rows}


def find_occupancy_drift(zone_ids: Optional[list[int]] = None) -> list[OccupancyDrift]:
    """
    Compare stored occupancy counters with the active placements.

    Read-only: drift is reported, never repaired here, because nothing but the
    placement and movement engines may write occupancy.
    """
    computed = computed_occupancy_by_zone()
    query = db.session.query(Zone).order_by(Zone.zone_code)
    if zone_ids:
        query = query.filter(Zone.id.in_(zone_ids))

    drift = []
    for zone in query.all():
        recorded = Decimal(zone.current_occupancy).quantize(QUANTITY_QUANTUM)
        expected = computed.get(zone.id, Decimal(0))
        if recorded != expected:
            drift.append(OccupancyDrift(zone=zone, recorded=recorded, computed=expected))
    return drift
