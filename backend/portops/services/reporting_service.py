# Overview: Read-only dashboard aggregates over goods, movements and zones.

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func

from ..extensions import db
from ..models import GoodsLanding, Movement, Zone
from ..models.yard import (
    GOODS_STATUS_DEPARTED,
    GOODS_STATUS_IN_TRANSIT,
    GOODS_STATUS_LANDED,
    GOODS_STATUS_PLACED,
    MOVEMENT_STATUS_COMPLETED,
)
from portops.time_utils import hours_between, start_of_utc_day, utcnow


def goods_status_counts() -> dict[str, int]:
    rows = (
        db.session.query(GoodsLanding.status, func.count(GoodsLanding.id))
        .group_by(GoodsLanding.status)
        .all()
    )
    return {status: count for status, count in rows}


def average_dwell_hours(now: datetime) -> float:
    """
    Mean hours since arrival over goods that have been placed or departed.

    Measured up to `now` for every such record.
    """
    arrivals = [
        arrival for (arrival,) in db.session.query(GoodsLanding.arrival_time)
        .filter(GoodsLanding.status.in_((GOODS_STATUS_PLACED, GOODS_STATUS_DEPARTED)))
        .all()
    ]
    if not arrivals:
        return 0.0
    return sum(hours_between(arrival, now) for arrival in arrivals) / len(arrivals)


def get_dashboard_kpis(now: Optional[datetime] = None) -> dict:
    """
    KPI snapshot for the operations dashboard.

    Reads may be slightly stale relative to in-flight placements; nothing
    here writes.
    """
    now = now or utcnow()
    counts = goods_status_counts()

    completed = db.session.query(func.count(Movement.id)).filter(
        Movement.status == MOVEMENT_STATUS_COMPLETED
    )
    movements_today = completed.filter(Movement.movement_time >= start_of_utc_day(now)).scalar() or 0

    zones = db.session.query(Zone).order_by(Zone.zone_code).all()
    total_capacity = sum((z.capacity for z in zones), 0)
    total_occupancy = sum((z.current_occupancy for z in zones), 0)

    return {
        "total_goods": sum(counts.values()),
        "landed_goods": counts.get(GOODS_STATUS_LANDED, 0),
        "placed_goods": counts.get(GOODS_STATUS_PLACED, 0),
        "in_transit_goods": counts.get(GOODS_STATUS_IN_TRANSIT, 0),
        "total_movements": completed.scalar() or 0,
        "movements_today": movements_today,
        "avg_dwell_time_hours": round(average_dwell_hours(now), 2),
        "total_capacity": float(total_capacity),
        "total_occupancy": float(total_occupancy),
        "overall_utilization_percent": (
            round(float(total_occupancy) / float(total_capacity) * 100, 2) if total_capacity else 0.0
        ),
        "zones": [z.to_dict() for z in zones],
    }
