"""Dashboard KPI tests."""

from datetime import datetime, timedelta

from portops.services import movement_service, reporting_service
from portops.time_utils import utcnow


def test_empty_yard(db_session):
    kpis = reporting_service.get_dashboard_kpis(now=datetime(2026, 5, 1, 12, 0))

    assert kpis["total_goods"] == 0
    assert kpis["avg_dwell_time_hours"] == 0.0
    assert kpis["overall_utilization_percent"] == 0.0
    assert kpis["zones"] == []


def test_dwell_time_over_placed_goods(db_session, make_zone, make_goods, make_placed_goods):
    now = datetime(2026, 5, 1, 12, 0)
    zone = make_zone(100)
    first = make_placed_goods(zone, 5).goods
    second = make_placed_goods(zone, 5).goods
    waiting = make_goods(5)
    first.arrival_time = now - timedelta(hours=10)
    second.arrival_time = now - timedelta(hours=20)
    waiting.arrival_time = now - timedelta(hours=100)
    db_session.commit()

    kpis = reporting_service.get_dashboard_kpis(now=now)

    # Goods still waiting for placement do not count
    assert kpis["avg_dwell_time_hours"] == 15.0


def test_movement_counts(db_session, make_zone, make_placed_goods):
    source = make_zone(100, code="S")
    destination = make_zone(100, code="D")
    placement = make_placed_goods(source, 5)
    movement_service.move_goods(placement.id, destination.id, "D-01", "Optimization")
    db_session.commit()

    kpis = reporting_service.get_dashboard_kpis(now=utcnow())
    assert kpis["total_movements"] == 1
    assert kpis["movements_today"] == 1

    tomorrow = reporting_service.get_dashboard_kpis(now=utcnow() + timedelta(days=1))
    assert tomorrow["movements_today"] == 0
    assert tomorrow["total_movements"] == 1
