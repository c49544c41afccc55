"""
Zone registry tests.

Verifies:
- The conditional occupancy update detects lost races, ceiling and floor violations
- Administrative edits never shrink capacity below occupancy
- Drift between counters and active placements is reported, not repaired
"""

from decimal import Decimal

import pytest

from portops.models import AuditLogEntry, Zone
from portops.models.yard import ZONE_TYPE_BULK
from portops.services import zone_service
from portops.services.errors import (
    CapacityExceededError,
    ConcurrencyConflictError,
    InvalidStateError,
    NotFoundError,
    OccupancyInvariantError,
)
from portops.validation import ConflictError


class TestApplyOccupancyDelta:

    def test_applies_delta_and_bumps_version(self, db_session, make_zone):
        zone = make_zone(100, 10)
        version = zone.version_id

        zone_service.apply_occupancy_delta(zone, Decimal("7.5"), expected_version=version)
        db_session.commit()

        assert zone.current_occupancy == Decimal("17.5")
        assert zone.version_id == version + 1

    def test_stale_version_is_a_conflict(self, db_session, make_zone):
        zone = make_zone(100, 10)
        stale = zone.version_id
        zone_service.apply_occupancy_delta(zone, Decimal(5), expected_version=stale)
        db_session.commit()

        with pytest.raises(ConcurrencyConflictError):
            zone_service.apply_occupancy_delta(zone, Decimal(5), expected_version=stale)
        db_session.rollback()

        assert zone.current_occupancy == Decimal(15)

    def test_ceiling(self, db_session, make_zone):
        zone = make_zone(20, 15)

        with pytest.raises(CapacityExceededError) as exc_info:
            zone_service.apply_occupancy_delta(zone, Decimal(6), expected_version=zone.version_id)
        db_session.rollback()

        assert exc_info.value.available == Decimal(5)
        assert zone.current_occupancy == Decimal(15)

    def test_floor(self, db_session, make_zone):
        zone = make_zone(20, 5)

        with pytest.raises(OccupancyInvariantError):
            zone_service.apply_occupancy_delta(zone, Decimal(-6), expected_version=zone.version_id)
        db_session.rollback()

        assert zone.current_occupancy == Decimal(5)

    def test_release_to_zero(self, db_session, make_zone):
        zone = make_zone(20, 5)
        zone_service.apply_occupancy_delta(zone, Decimal(-5), expected_version=zone.version_id)
        db_session.commit()

        assert zone.current_occupancy == Decimal(0)


class TestZoneAdministration:

    def test_create_starts_empty(self, db_session, admin):
        zone = zone_service.create_zone(
            {"zone_code": "B7", "description": "Ore pad", "capacity": Decimal(300), "zone_type": ZONE_TYPE_BULK},
            actor_id=admin.id,
        )
        db_session.commit()

        assert zone.current_occupancy == Decimal(0)
        assert zone.status == "active"
        audit = db_session.query(AuditLogEntry).filter_by(table_name="zones", record_id=zone.id).one()
        assert audit.operation == "INSERT"
        assert audit.user_id == admin.id

    def test_duplicate_code(self, db_session, make_zone):
        make_zone(100, code="A1")
        with pytest.raises(ConflictError):
            zone_service.create_zone({"zone_code": "A1", "capacity": Decimal(10)})
        db_session.rollback()

    def test_capacity_below_occupancy_rejected(self, db_session, make_zone):
        zone = make_zone(100, 60)

        with pytest.raises(InvalidStateError):
            zone_service.update_zone(zone.id, {"capacity": Decimal(59)})
        db_session.rollback()

        assert zone.capacity == Decimal(100)

    def test_capacity_down_to_occupancy_allowed(self, db_session, make_zone):
        zone = make_zone(100, 60)
        version = zone.version_id

        zone_service.update_zone(zone.id, {"capacity": Decimal(60), "description": "tight"})
        db_session.commit()

        assert zone.capacity == Decimal(60)
        assert zone.description == "tight"
        assert zone.version_id == version + 1

    def test_unknown_zone(self, db_session):
        with pytest.raises(NotFoundError):
            zone_service.get_zone(12345)

    def test_list_filters(self, db_session, make_zone):
        make_zone(100, code="G1")
        make_zone(100, zone_type=ZONE_TYPE_BULK, code="B1")
        make_zone(100, zone_type=ZONE_TYPE_BULK, status="maintenance", code="B2")

        assert [z.zone_code for z in zone_service.list_zones()] == ["B1", "B2", "G1"]
        assert [z.zone_code for z in zone_service.list_zones(zone_type=ZONE_TYPE_BULK)] == ["B1", "B2"]
        assert [z.zone_code for z in zone_service.list_active_zones()] == ["B1", "G1"]


class TestOccupancyDrift:

    def test_consistent_after_engine_writes(self, db_session, make_zone, make_placed_goods):
        zone = make_zone(100)
        make_placed_goods(zone, 10)
        make_placed_goods(zone, Decimal("2.5"))

        assert zone_service.computed_occupancy_by_zone() == {zone.id: Decimal("12.500")}
        assert zone_service.find_occupancy_drift() == []

    def test_drift_reported_not_repaired(self, db_session, make_zone, make_placed_goods):
        zone = make_zone(100)
        make_placed_goods(zone, 10)
        db_session.execute(
            Zone.__table__.update().where(Zone.__table__.c.id == zone.id).values(current_occupancy=12)
        )
        db_session.commit()

        drift = zone_service.find_occupancy_drift()

        assert len(drift) == 1
        assert drift[0].zone.id == zone.id
        assert drift[0].recorded == Decimal(12)
        assert drift[0].computed == Decimal(10)
        assert drift[0].to_dict()["difference"] == 2.0
        db_session.expire_all()
        assert zone.current_occupancy == Decimal(12)

    def test_empty_zone_with_counter_is_drift(self, db_session, make_zone):
        make_zone(100, 30, code="GHOST")

        drift = zone_service.find_occupancy_drift()

        assert [d.zone.zone_code for d in drift] == ["GHOST"]
        assert drift[0].computed == Decimal(0)
