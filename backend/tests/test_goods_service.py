"""
Goods ledger tests.

Verifies:
- Landings start as landed and are audited
- Status transitions follow the lifecycle table
- Status writes are conditional on the status that was read
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from portops.models import AuditLogEntry, GoodsLanding
from portops.services import goods_service
from portops.services.errors import ConcurrencyConflictError, InvalidStateError, NotFoundError


def landing_patch(**overrides):
    patch = {
        "goods_id": "MSCU1234567",
        "transport_mode": "ship",
        "vessel_name": "MV NORDIC",
        "origin": "Hamburg",
        "quantity": Decimal(2),
        "unit_type": "container",
        "goods_type": "Machinery",
    }
    patch.update(overrides)
    return patch


class TestRegisterLanding:

    def test_registered_as_landed(self, db_session, clerk):
        goods = goods_service.register_landing(landing_patch(), clerk_id=clerk.id)
        db_session.commit()

        assert goods.status == "landed"
        assert goods.landing_clerk_id == clerk.id
        assert goods.arrival_time is not None

        audit = db_session.query(AuditLogEntry).filter_by(table_name="goods_landing").one()
        assert audit.operation == "INSERT"
        assert audit.record_id == goods.id

    def test_explicit_arrival_time_kept(self, db_session):
        arrival = datetime(2026, 3, 1, 6, 30)
        goods = goods_service.register_landing(landing_patch(arrival_time=arrival))
        db_session.commit()

        assert goods.arrival_time.replace(tzinfo=None) == arrival

    def test_unplaced_oldest_first(self, db_session):
        now = datetime(2026, 3, 1, 12, 0)
        late = goods_service.register_landing(landing_patch(goods_id="LATE", arrival_time=now))
        early = goods_service.register_landing(
            landing_patch(goods_id="EARLY", arrival_time=now - timedelta(hours=5))
        )
        db_session.commit()

        assert [g.id for g in goods_service.list_unplaced_goods()] == [early.id, late.id]
        assert [g.id for g in goods_service.list_goods()] == [late.id, early.id]

    def test_unknown_goods(self, db_session):
        with pytest.raises(NotFoundError):
            goods_service.get_goods(424242)


class TestStatusTransitions:

    @pytest.mark.parametrize(
        "current,target",
        [
            ("landed", "placed"),
            ("placed", "in_transit"),
            ("placed", "departed"),
            ("in_transit", "placed"),
            ("in_transit", "departed"),
        ],
    )
    def test_allowed(self, db_session, make_goods, current, target):
        goods = make_goods(1, status=current)
        goods_service.update_goods_status(goods, target)
        db_session.commit()

        assert goods.status == target

    @pytest.mark.parametrize(
        "current,target",
        [
            ("landed", "in_transit"),
            ("landed", "departed"),
            ("placed", "landed"),
            ("departed", "placed"),
            ("departed", "landed"),
        ],
    )
    def test_rejected(self, db_session, make_goods, current, target):
        goods = make_goods(1, status=current)

        with pytest.raises(InvalidStateError):
            goods_service.update_goods_status(goods, target)
        db_session.rollback()

        assert goods.status == current

    def test_stale_status_is_a_conflict(self, db_session, make_goods):
        goods = make_goods(1)
        assert goods.status == "landed"
        # Another writer placed the goods after we read them
        db_session.execute(
            GoodsLanding.__table__.update()
            .where(GoodsLanding.__table__.c.id == goods.id)
            .values(status="placed")
        )

        with pytest.raises(ConcurrencyConflictError):
            goods_service.update_goods_status(goods, "placed")
        db_session.rollback()
