"""Tests for the decode endpoints (manual entry and ?qr= links)."""

from app.core.config import settings

FRESH = "1234567890123129912345678"  # December 2099
EXPIRED = "1234567890123010112345678"  # January 2001


class TestManualEntry:
    def test_decodes_fresh_item(self, client):
        resp = client.post("/api/decode", json={"qr_data": FRESH})

        assert resp.status_code == 200
        data = resp.json()
        assert data["reference_number"] == "1234567-890123"
        assert data["best_before_date"] == "2099-12-01"
        assert data["best_before_label"] == "December 2099"
        assert data["product_code"] == "12345678"
        assert data["raw_input"] == FRESH
        assert data["status"] == "GOOD"

    def test_expired_item_is_bad(self, client):
        resp = client.post("/api/decode", json={"qr_data": EXPIRED})
        assert resp.json()["status"] == "BAD"

    def test_includes_manufacturer(self, client):
        resp = client.post("/api/decode", json={"qr_data": FRESH})
        assert resp.json()["manufacturer"] == {
            "name": settings.MANUFACTURER_NAME,
            "address": settings.MANUFACTURER_ADDRESS,
            "city": settings.MANUFACTURER_CITY,
        }

    def test_entry_is_trimmed(self, client):
        resp = client.post("/api/decode", json={"qr_data": f"  {FRESH}\n"})
        assert resp.status_code == 200
        assert resp.json()["raw_input"] == FRESH

    def test_shorter_than_gate_rejected(self, client):
        # 20 chars would decode fine, but the entry form requires 21-25
        resp = client.post("/api/decode", json={"qr_data": FRESH[:20]})
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Invalid QR code data. Please try again."

    def test_longer_than_gate_rejected(self, client):
        resp = client.post("/api/decode", json={"qr_data": FRESH + "X"})
        assert resp.status_code == 422

    def test_gate_bounds_inclusive(self, client):
        assert client.post("/api/decode", json={"qr_data": FRESH[:21]}).status_code == 200
        assert client.post("/api/decode", json={"qr_data": FRESH[:25]}).status_code == 200

    def test_invalid_month_returns_partial_unknown(self, client):
        resp = client.post("/api/decode", json={"qr_data": "1234567890123" + "1325" + "ABCDEFGH"})
        data = resp.json()
        assert resp.status_code == 200
        assert data["best_before_date"] is None
        assert data["best_before_label"] is None
        assert data["status"] == "UNKNOWN"


class TestQueryDecode:
    def test_decodes_query_param(self, client):
        resp = client.get("/api/decode", params={"qr": FRESH})
        assert resp.status_code == 200
        assert resp.json()["reference_number"] == "1234567-890123"

    def test_query_is_not_length_gated(self, client):
        resp = client.get("/api/decode", params={"qr": "1234567890123"})
        data = resp.json()
        assert resp.status_code == 200
        assert data["product_code"] == "N/A"
        assert data["status"] == "UNKNOWN"

    def test_too_short_for_decoder(self, client):
        resp = client.get("/api/decode", params={"qr": "123"})
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Invalid QR code data. Please try again."

    def test_missing_query_param(self, client):
        assert client.get("/api/decode").status_code == 422


def test_health_reports_scanner_state(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "checks": {"scanner": "idle"}}


def test_security_headers(client):
    resp = client.get("/api/health")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"
