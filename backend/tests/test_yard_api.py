"""
Yard API tests.

Verifies the HTTP surface end to end:
- Landing registration validation
- Suggestions, placement and movement through the API
- Error payloads for capacity, state and not-found failures
- Zone administration and the occupancy consistency check
- Dashboard KPIs
"""

from decimal import Decimal

import pytest

from portops.models import GoodsPlacement, Movement
from portops.services import zone_service


class TestLandingApi:

    def test_register(self, client, clerk, clerk_headers):
        resp = client.post(
            "/api/goods",
            json={
                "goods_id": "CONT123456",
                "transport_mode": "ship",
                "vessel_name": "MV OCEAN STAR",
                "quantity": 10,
                "unit_type": "container",
                "goods_type": "Electronics",
            },
            headers=clerk_headers,
        )
        assert resp.status_code == 201
        assert resp.json["status"] == "landed"
        assert resp.json["quantity"] == 10.0
        assert resp.json["landing_clerk_id"] == clerk.id
        assert resp.json["arrival_time"].endswith("Z")

    @pytest.mark.parametrize(
        "payload,fragment",
        [
            ({"transport_mode": "ship", "quantity": 1}, "goods_id"),
            ({"goods_id": "X", "transport_mode": "ship", "quantity": 0}, "quantity"),
            ({"goods_id": "X", "transport_mode": "ship", "quantity": -3}, "quantity"),
            ({"goods_id": "X", "transport_mode": "ship", "quantity": "lots"}, "quantity"),
            ({"goods_id": "X", "transport_mode": "ship", "quantity": 0.0004}, "decimal places"),
            ({"goods_id": "X", "transport_mode": "ship", "quantity": "2.5001"}, "decimal places"),
            ({"goods_id": "X", "transport_mode": "boat", "quantity": 1}, "transport_mode"),
            ({"goods_id": "X", "transport_mode": "ship", "quantity": 1, "status": "placed"}, "status"),
        ],
    )
    def test_validation(self, client, clerk_headers, payload, fragment):
        resp = client.post("/api/goods", json=payload, headers=clerk_headers)
        assert resp.status_code == 400
        assert fragment in resp.json["error"]

    def test_non_object_body(self, client, clerk_headers):
        resp = client.post("/api/goods", json=[1, 2], headers=clerk_headers)
        assert resp.status_code == 400

    def test_sub_milliunit_goods_do_not_drift_occupancy(
        self, client, db_session, clerk_headers, operator_headers, make_zone
    ):
        zone = make_zone(100)

        for goods_id in ("TINY1", "TINY2"):
            resp = client.post(
                "/api/goods",
                json={"goods_id": goods_id, "transport_mode": "ship", "quantity": 0.0004},
                headers=clerk_headers,
            )
            assert resp.status_code == 400

        resp = client.post(
            "/api/goods",
            json={"goods_id": "SMALL", "transport_mode": "ship", "quantity": "0.0010"},
            headers=clerk_headers,
        )
        assert resp.status_code == 201
        assert resp.json["quantity"] == 0.001

        resp = client.post(
            "/api/placements",
            json={"goods_landing_id": resp.json["id"], "zone_id": zone.id, "rack_number": "R-01"},
            headers=operator_headers,
        )
        assert resp.status_code == 201
        db_session.expire_all()
        assert zone_service.find_occupancy_drift() == []

    def test_status_filter_validated(self, client, clerk_headers):
        resp = client.get("/api/goods?status=lost", headers=clerk_headers)
        assert resp.status_code == 400


class TestPlacementApi:

    def test_suggestions(self, client, operator_headers, make_zone, make_goods):
        z1 = make_zone(100, 50, zone_type="container", code="Z1")
        z2 = make_zone(20, 15, zone_type="general", code="Z2")
        make_zone(12, 10, zone_type="bulk", code="Z3")
        goods = make_goods(10, goods_type="Electronics")

        resp = client.get(f"/api/goods/{goods.id}/suggestions", headers=operator_headers)

        assert resp.status_code == 200
        suggestions = resp.json["suggestions"]
        assert [s["id"] for s in suggestions] == [z1.id, z2.id]
        assert [s["score"] for s in suggestions] == [95, 75]

    def test_suggestions_unknown_goods(self, client, operator_headers):
        resp = client.get("/api/goods/9999/suggestions", headers=operator_headers)
        assert resp.status_code == 404

    def test_place(self, client, db_session, operator, operator_headers, make_zone, make_goods):
        zone = make_zone(100, 20, code="A1")
        goods = make_goods(15)

        resp = client.post(
            "/api/placements",
            json={"goods_landing_id": goods.id, "zone_id": zone.id, "rack_number": "R-12"},
            headers=operator_headers,
        )

        assert resp.status_code == 201
        body = resp.json
        assert body["status"] == "active"
        assert body["placement_type"] == "initial"
        assert body["operator_id"] == operator.id
        assert body["zone"]["zone_code"] == "A1"
        assert body["goods_landing"]["goods_id"] == goods.goods_id

        db_session.expire_all()
        assert zone.current_occupancy == Decimal(35)
        assert goods.status == "placed"

        detail = client.get(f"/api/goods/{goods.id}", headers=operator_headers).json
        assert detail["active_placement"]["id"] == body["id"]

    def test_place_over_capacity(self, client, db_session, operator_headers, make_zone, make_goods):
        zone = make_zone(20, 15, code="A2")
        goods = make_goods(10)

        resp = client.post(
            "/api/placements",
            json={"goods_landing_id": goods.id, "zone_id": zone.id, "rack_number": "R-01"},
            headers=operator_headers,
        )

        assert resp.status_code == 409
        assert resp.json["zone_code"] == "A2"
        assert resp.json["requested"] == 10.0
        assert resp.json["available"] == 5.0

        db_session.expire_all()
        assert zone.current_occupancy == Decimal(15)
        assert db_session.query(GoodsPlacement).count() == 0

    def test_place_twice(self, client, operator_headers, make_zone, make_goods):
        zone = make_zone(100)
        goods = make_goods(5)
        payload = {"goods_landing_id": goods.id, "zone_id": zone.id, "rack_number": "R-01"}

        assert client.post("/api/placements", json=payload, headers=operator_headers).status_code == 201
        resp = client.post("/api/placements", json=payload, headers=operator_headers)
        assert resp.status_code == 409

    def test_place_unknown_zone(self, client, operator_headers, make_goods):
        goods = make_goods(5)
        resp = client.post(
            "/api/placements",
            json={"goods_landing_id": goods.id, "zone_id": 4242, "rack_number": "R-01"},
            headers=operator_headers,
        )
        assert resp.status_code == 404

    @pytest.mark.parametrize(
        "payload",
        [
            {"zone_id": 1, "rack_number": "R-01"},
            {"goods_landing_id": "one", "zone_id": 1, "rack_number": "R-01"},
            {"goods_landing_id": 1, "zone_id": 1, "rack_number": "  "},
        ],
    )
    def test_place_validation(self, client, operator_headers, payload):
        resp = client.post("/api/placements", json=payload, headers=operator_headers)
        assert resp.status_code == 400


class TestMovementApi:

    @pytest.fixture
    def placed(self, client, operator_headers, make_zone, make_goods):
        source = make_zone(100, 65, code="SRC")
        destination = make_zone(70, 40, code="DST")
        goods = make_goods(15)
        resp = client.post(
            "/api/placements",
            json={"goods_landing_id": goods.id, "zone_id": source.id, "rack_number": "R-01"},
            headers=operator_headers,
        )
        return source, destination, resp.json["id"]

    def test_move(self, client, db_session, operator_headers, placed):
        source, destination, placement_id = placed

        resp = client.post(
            "/api/movements",
            json={
                "goods_placement_id": placement_id,
                "to_zone_id": destination.id,
                "to_rack": "D-04",
                "reason": "Optimization",
            },
            headers=operator_headers,
        )

        assert resp.status_code == 201
        assert resp.json["status"] == "completed"
        assert resp.json["from_zone"]["zone_code"] == "SRC"
        assert resp.json["to_zone"]["zone_code"] == "DST"

        db_session.expire_all()
        assert source.current_occupancy == Decimal(65)
        assert destination.current_occupancy == Decimal(55)
        assert db_session.query(Movement).count() == 1

    def test_move_to_same_zone(self, client, operator_headers, placed):
        source, _, placement_id = placed
        resp = client.post(
            "/api/movements",
            json={"goods_placement_id": placement_id, "to_zone_id": source.id, "to_rack": "R-02", "reason": "Other"},
            headers=operator_headers,
        )
        assert resp.status_code == 409

    def test_destinations_and_reasons(self, client, operator_headers, placed):
        _, destination, placement_id = placed

        zones = client.get(f"/api/movements/destinations/{placement_id}", headers=operator_headers).json["zones"]
        assert [z["id"] for z in zones] == [destination.id]

        reasons = client.get("/api/movements/reasons", headers=operator_headers).json["reasons"]
        assert "Optimization" in reasons

    def test_history(self, client, operator_headers, placed):
        _, destination, placement_id = placed
        client.post(
            "/api/movements",
            json={"goods_placement_id": placement_id, "to_zone_id": destination.id, "to_rack": "D-01", "reason": "Other"},
            headers=operator_headers,
        )

        movements = client.get("/api/movements", headers=operator_headers).json["movements"]
        assert len(movements) == 1
        assert movements[0]["goods_landing"]["quantity"] == 15.0


class TestZoneApi:

    def test_create_and_duplicate(self, client, admin_headers):
        payload = {"zone_code": "R1", "capacity": 50, "zone_type": "refrigerated"}

        resp = client.post("/api/zones", json=payload, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["current_occupancy"] == 0.0
        assert resp.json["available_capacity"] == 50.0

        assert client.post("/api/zones", json=payload, headers=admin_headers).status_code == 409

    def test_occupancy_not_writable(self, client, admin_headers, make_zone):
        zone = make_zone(100)
        resp = client.patch(f"/api/zones/{zone.id}", json={"current_occupancy": 0}, headers=admin_headers)
        assert resp.status_code == 400

    def test_negative_capacity(self, client, admin_headers):
        resp = client.post("/api/zones", json={"zone_code": "N1", "capacity": -1}, headers=admin_headers)
        assert resp.status_code == 400

    def test_capacity_precision(self, client, admin_headers, make_zone):
        resp = client.post("/api/zones", json={"zone_code": "P1", "capacity": 1.0005}, headers=admin_headers)
        assert resp.status_code == 400
        assert "decimal places" in resp.json["error"]

        zone = make_zone(100)
        resp = client.patch(f"/api/zones/{zone.id}", json={"capacity": "50.1234"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_shrink_below_occupancy(self, client, admin_headers, make_zone):
        zone = make_zone(100, 60)
        resp = client.patch(f"/api/zones/{zone.id}", json={"capacity": 50}, headers=admin_headers)
        assert resp.status_code == 409

    def test_take_out_of_service(self, client, admin_headers, make_zone):
        zone = make_zone(100)
        resp = client.patch(f"/api/zones/{zone.id}", json={"status": "maintenance"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["status"] == "maintenance"

        active = client.get("/api/zones?status=active", headers=admin_headers).json["zones"]
        assert active == []

    def test_occupancy_check(self, client, admin_headers, make_zone, make_placed_goods):
        zone = make_zone(100)
        make_placed_goods(zone, 10)

        resp = client.get("/api/zones/occupancy-check", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json == {"consistent": True, "drift": []}


class TestDashboardApi:

    def test_kpis(self, client, manager_headers, make_zone, make_goods, make_placed_goods):
        zone = make_zone(100, code="K1")
        make_zone(100, code="K2")
        make_placed_goods(zone, 25)
        make_goods(5)

        resp = client.get("/api/dashboard", headers=manager_headers)

        assert resp.status_code == 200
        kpis = resp.json
        assert kpis["total_goods"] == 2
        assert kpis["landed_goods"] == 1
        assert kpis["placed_goods"] == 1
        assert kpis["total_movements"] == 0
        assert kpis["total_capacity"] == 200.0
        assert kpis["total_occupancy"] == 25.0
        assert kpis["overall_utilization_percent"] == 12.5
        assert [z["zone_code"] for z in kpis["zones"]] == ["K1", "K2"]


class TestCors:

    def test_allowed_origin_echoed(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_unknown_origin_ignored(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers
