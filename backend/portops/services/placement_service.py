# Overview: Placement engine; ranks zones for landed goods and places them in one transaction.

"""
Placement Engine

place_goods() is one all-or-nothing unit:
1. Zone occupancy += goods quantity (conditional UPDATE, re-checked at write time)
2. Goods status landed -> placed (conditional on the status read)
3. New active placement (type=initial)
4. Audit rows for all three

Nothing is committed here; the caller commits or rolls back the whole unit.
A lost race is retried once with a fresh read; a capacity rejection is not.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import GoodsPlacement
from ..models.yard import (
    GOODS_STATUS_LANDED,
    GOODS_STATUS_PLACED,
    PLACEMENT_STATUS_ACTIVE,
    PLACEMENT_TYPE_INITIAL,
    ZONE_STATUS_ACTIVE,
)
from . import audit_service, goods_service, zone_service
from .concurrency import run_with_retry
from .errors import CapacityExceededError, InvalidStateError, NotFoundError
from .placement_rules import DEFAULT_SUGGESTION_LIMIT, ZoneSuggestion, suggest_zones


DEFAULT_LIST_LIMIT = 100


def suggest_zones_for_goods(goods_landing_id: int, limit: int | None = None) -> list[ZoneSuggestion]:
    """Rank the active zones for a goods record (read-only)."""
    goods = goods_service.get_goods(goods_landing_id)
    if limit is None:
        limit = current_app.config.get("SUGGESTION_LIMIT", DEFAULT_SUGGESTION_LIMIT)
    return suggest_zones(goods, zone_service.list_active_zones(), limit=limit)


def get_placement(placement_id: int) -> GoodsPlacement:
    placement = db.session.query(GoodsPlacement).filter_by(id=placement_id).first()
    if not placement:
        raise NotFoundError(f"Placement {placement_id} not found")
    return placement


def get_active_placement_for(goods_landing_id: int) -> GoodsPlacement | None:
    return (
        db.session.query(GoodsPlacement)
        .filter_by(goods_landing_id=goods_landing_id, status=PLACEMENT_STATUS_ACTIVE)
        .first()
    )


def list_placements(status: str | None = None, limit: int = DEFAULT_LIST_LIMIT) -> list[GoodsPlacement]:
    """Most recent placements first."""
    query = db.session.query(GoodsPlacement)
    if status:
        query = query.filter(GoodsPlacement.status == status)
    return (
        query.order_by(GoodsPlacement.placement_time.desc(), GoodsPlacement.id.desc())
        .limit(limit)
        .all()
    )


def place_goods(
    goods_landing_id: int,
    zone_id: int,
    rack_number: str,
    *,
    operator_id: int | None = None,
    notes: str = "",
) -> GoodsPlacement:
    """
    Place landed goods into a zone.

    Args:
        goods_landing_id: Goods to place (must be landed)
        zone_id: Destination zone (must be active)
        rack_number: Rack / slot inside the zone
        operator_id: Profile performing the placement
        notes: Free-text placement notes

    Returns:
        GoodsPlacement: The new active placement

    Raises:
        NotFoundError: Goods or zone does not exist
        InvalidStateError: Goods not landed, already placed, or zone not active
        CapacityExceededError: Zone cannot hold the full quantity
        ConcurrencyConflictError: Lost the race twice
    """
    def _op():
        goods = goods_service.get_goods(goods_landing_id)
        if goods.status != GOODS_STATUS_LANDED:
            raise InvalidStateError(
                f"Goods {goods.goods_id} is {goods.status}; only landed goods can be placed"
            )
        if get_active_placement_for(goods.id) is not None:
            raise InvalidStateError(f"Goods {goods.goods_id} already has an active placement")

        zone = zone_service.get_zone(zone_id, for_update=True)
        if zone.status != ZONE_STATUS_ACTIVE:
            raise InvalidStateError(f"Zone {zone.zone_code} is {zone.status}")

        quantity = Decimal(goods.quantity)
        if zone.available_capacity < quantity:
            current_app.logger.info(
                "Placement rejected: goods %s (%s) does not fit zone %s (available %s)",
                goods.goods_id, quantity, zone.zone_code, zone.available_capacity,
            )
            raise CapacityExceededError(zone.zone_code, quantity, zone.available_capacity)

        old_zone = zone.to_dict()
        zone_service.apply_occupancy_delta(zone, quantity, expected_version=zone.version_id)
        goods_service.update_goods_status(goods, GOODS_STATUS_PLACED, actor_id=operator_id)

        placement = GoodsPlacement(
            goods_landing_id=goods.id,
            zone_id=zone.id,
            rack_number=rack_number,
            operator_id=operator_id,
            placement_type=PLACEMENT_TYPE_INITIAL,
            status=PLACEMENT_STATUS_ACTIVE,
            notes=notes or "",
        )
        db.session.add(placement)
        db.session.flush()

        audit_service.record_update(zone, old_zone, user_id=operator_id)
        audit_service.record_insert(placement, user_id=operator_id)
        return placement

    return run_with_retry(_op)
