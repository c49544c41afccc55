# Overview: Service-layer operations for the goods ledger; landing registration and status transitions.

"""
Goods Ledger

LIFECYCLE:
1. landed: registered at arrival (register_landing)
2. placed: stored in a zone (placement engine)
3. in_transit: between placed states
4. departed: left the port (terminal)

Transitions are forward only; placed <-> in_transit is the one loop.
Status writes are conditional on the status the caller read, so two
concurrent placements of the same goods cannot both succeed.
"""
from __future__ import annotations

from sqlalchemy import func, update

from ..extensions import db
from ..models import GoodsLanding
from ..models.yard import (
    GOODS_STATUS_LANDED,
    GOODS_STATUS_PLACED,
    GOODS_STATUS_IN_TRANSIT,
    GOODS_STATUS_DEPARTED,
)
from portops.time_utils import utcnow
from . import audit_service
from .errors import ConcurrencyConflictError, InvalidStateError, NotFoundError


ALLOWED_TRANSITIONS = {
    GOODS_STATUS_LANDED: {GOODS_STATUS_PLACED},
    GOODS_STATUS_PLACED: {GOODS_STATUS_IN_TRANSIT, GOODS_STATUS_DEPARTED},
    GOODS_STATUS_IN_TRANSIT: {GOODS_STATUS_PLACED, GOODS_STATUS_DEPARTED},
    GOODS_STATUS_DEPARTED: set(),
}

DEFAULT_LIST_LIMIT = 100


def register_landing(patch: dict, *, clerk_id: int | None = None) -> GoodsLanding:
    """
    Record goods arriving at the port (status: landed).

    Args:
        patch: Validated landing fields (goods_id, transport_mode, quantity, ...)
        clerk_id: Profile registering the landing

    Returns:
        GoodsLanding: The new ledger entry
    """
    goods = GoodsLanding(
        status=GOODS_STATUS_LANDED,
        landing_clerk_id=clerk_id,
        **patch,
    )
    if goods.arrival_time is None:
        goods.arrival_time = utcnow()

    db.session.add(goods)
    db.session.flush()

    audit_service.record_insert(goods, user_id=clerk_id)
    return goods


def get_goods(goods_landing_id: int) -> GoodsLanding:
    goods = db.session.query(GoodsLanding).filter_by(id=goods_landing_id).first()
    if not goods:
        raise NotFoundError(f"Goods landing {goods_landing_id} not found")
    return goods


def list_goods(status: str | None = None, limit: int = DEFAULT_LIST_LIMIT) -> list[GoodsLanding]:
    """Most recent arrivals first."""
    query = db.session.query(GoodsLanding)
    if status:
        query = query.filter(GoodsLanding.status == status)
    return (
        query.order_by(GoodsLanding.arrival_time.desc(), GoodsLanding.id.desc())
        .limit(limit)
        .all()
    )


def list_unplaced_goods() -> list[GoodsLanding]:
    """Goods waiting for placement, oldest arrival first."""
    return (
        db.session.query(GoodsLanding)
        .filter(GoodsLanding.status == GOODS_STATUS_LANDED)
        .order_by(GoodsLanding.arrival_time.asc(), GoodsLanding.id.asc())
        .all()
    )


def update_goods_status(goods: GoodsLanding, status: str, *, actor_id: int | None = None) -> GoodsLanding:
    """
    Move goods to `status` if the transition table allows it.

    The UPDATE is conditional on the status read into `goods`; a concurrent
    writer that changed it first turns this into a ConcurrencyConflictError.
    """
    current = goods.status
    if status not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidStateError(
            f"Goods {goods.goods_id} cannot move from {current} to {status}"
        )

    old_data = goods.to_dict()
    result = db.session.execute(
        update(GoodsLanding)
        .where(GoodsLanding.id == goods.id, GoodsLanding.status == current)
        .values(status=status, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConcurrencyConflictError(
            f"Goods {goods.goods_id} changed while the operation was in progress"
        )
    db.session.refresh(goods)

    audit_service.record_update(goods, old_data, user_id=actor_id)
    return goods
