"""
Dashboard stats, export, health and CLI tests.
"""

import json

from bookvoucher.cli import seed_defaults
from bookvoucher.models import Booklist, OptionItem, Outlet, User

from conftest import redemption_payload


class TestStats:
    def test_counts_and_value(self, client, staff_user, booklist):
        client.post("/api/redemptions", json=redemption_payload(staff_user.id, booklist.id))
        client.post("/api/redemptions", json=redemption_payload(
            staff_user.id, booklist.id, deliveryStatus="wrapping",
        ))
        client.post("/api/redemptions", json=redemption_payload(
            staff_user.id, booklist.id, deliveryStatus="delivered", deliveryDate="2024-01-05",
        ))
        client.post("/api/redemptions", json=redemption_payload(
            staff_user.id, booklist.id, deliveryStatus="collected", collectionDate="2024-01-05",
        ))

        resp = client.get("/api/stats?today=2024-01-05")
        assert resp.status_code == 200
        assert resp.json == {
            "totalRedemptions": 4,
            "pendingDeliveries": 2,
            "deliveredToday": 1,
            "totalValueCents": 4 * 58900,
        }

    def test_empty(self, client, db_session):
        resp = client.get("/api/stats")
        assert resp.json["totalRedemptions"] == 0
        assert resp.json["totalValueCents"] == 0

    def test_bad_date(self, client, db_session):
        assert client.get("/api/stats?today=yesterday").status_code == 400


class TestExport:
    def test_download_is_attachment(self, client, admin_user, booklist):
        resp = client.get("/api/export")
        assert resp.status_code == 200
        assert resp.mimetype == "application/json"
        disposition = resp.headers["Content-Disposition"]
        assert disposition.startswith("attachment; filename=booklist-backup-")
        assert disposition.endswith(".json")

        data = json.loads(resp.data)
        assert {"users", "outlets", "schools", "booklists", "booklistItems", "redemptions",
                "stock", "optionItems", "dayEndReports", "exportedAt"} <= set(data)
        assert data["users"][0]["username"] == "admin"
        assert "passwordHash" not in data["users"][0]
        assert len(data["booklistItems"]) == 2


class TestSystem:
    def test_health_degraded_without_outlets(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "degraded"
        assert resp.json["checks"]["database"]["status"] == "healthy"

    def test_health_ok(self, client, outlet):
        resp = client.get("/api/health")
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["catalogue"]["details"]["activeOutlets"] == 1

    def test_version(self, client, db_session):
        resp = client.get("/api/version")
        assert resp.status_code == 200
        assert resp.json["apiVersion"] == "1.0.0"

    def test_cors_for_allowed_origin(self, client, db_session):
        resp = client.get("/api/version", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

        resp = client.get("/api/version", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestSeed:
    def test_seed_defaults(self, db_session):
        assert seed_defaults() is True

        assert db_session.query(Outlet).count() == 3
        assert db_session.query(OptionItem).filter_by(key="hasStationary").one().default_checked is True

        booklist = db_session.query(Booklist).filter_by(code="VCH-GR1-ALL").one()
        assert len(booklist.items) == 18
        assert booklist.total_amount_cents == 58900

        counter = db_session.query(User).filter_by(username="counter").one()
        assert counter.outlet.name == "Hithadhoo Outlet"

    def test_seed_is_idempotent(self, db_session):
        assert seed_defaults() is True
        assert seed_defaults() is False
        assert db_session.query(User).count() == 4

    def test_seed_command(self, runner, db_session):
        result = runner.invoke(args=["system", "seed"])
        assert result.exit_code == 0
        assert "PASS" in result.output

        listing = runner.invoke(args=["users", "list"])
        assert "staff1011" in listing.output

    def test_stock_show_command(self, runner, outlet):
        result = runner.invoke(args=["stock", "show", "--location", "Hithadhoo Outlet"])
        assert result.exit_code == 0
        assert "9 BUS01" in result.output
