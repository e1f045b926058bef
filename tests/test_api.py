"""
Tests for the FastAPI endpoints.
"""

from fastapi.testclient import TestClient

from api.main import app

client = TestClient(app)


class TestMetaEndpoints:
    def test_options(self):
        resp = client.get("/meta/options")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["vendors"]) == 9
        assert data["tierings"] == ["Tier 1", "Tier 2", "Tier 3"]

    def test_thresholds(self):
        resp = client.get("/meta/thresholds")
        assert resp.status_code == 200
        assert resp.json()["global_risk_level"] == {"green": 30, "yellow": 50}


class TestPhaseEndpoints:
    def test_pre_award_defaults(self):
        resp = client.post("/pre-award", json={})
        assert resp.status_code == 200
        data = resp.json()
        assert data["score_pre_award"] == 87
        assert data["labels"]["risk"] == "Medium"

    def test_pre_award_filtered(self):
        resp = client.post("/pre-award", json={"region": "West Africa"})
        assert resp.status_code == 200
        assert resp.json()["vendors_in_view"] == 1

    def test_post_award(self):
        resp = client.post("/post-award", json={"tiering": "Tier 1"})
        assert resp.status_code == 200
        assert resp.json()["kpis"]["vendor_count"] == 5

    def test_threshold_override(self):
        body = {"thresholds": {"ecosystem_score": {"green": 110, "yellow": 60}}}
        resp = client.post("/pre-award", json=body)
        assert resp.json()["levels"]["ecosystem_score"] == "yellow"

    def test_material(self):
        resp = client.post("/material", json={"regions": ["Europe"]})
        assert resp.status_code == 200
        data = resp.json()
        assert data["vendors_in_view"] == 3
        assert data["kpis"]["total_planned"] == 5300

    def test_material_selected_vendor(self):
        resp = client.post("/material?selected_vendor_id=V001", json={})
        assert resp.json()["delivery_variance"] == -4

    def test_material_bad_sort_key(self):
        resp = client.post("/material?view=table&sort_key=hse_score&direction=asc", json={})
        assert resp.status_code == 400
        assert resp.json()["type"] == "KeyError"

    def test_invalid_body_returns_422(self):
        resp = client.post("/material", json={"regions": "Europe", "thresholds": {"otif_score": {"green": "x"}}})
        assert resp.status_code == 422


class TestTableAndExport:
    def test_table_sorted(self):
        resp = client.post("/table/pre_award?sort_key=global_risk_level&direction=asc", json={})
        assert resp.status_code == 200
        rows = resp.json()["rows"]
        assert rows[0]["id"] == "V009"
        assert rows[0]["global_risk_level"] == {"value": 12, "level": "green"}

    def test_table_unknown_phase(self):
        assert client.post("/table/bidding", json={}).status_code == 404

    def test_table_unknown_key(self):
        assert client.post("/table/post_award?sort_key=otif_score&direction=asc", json={}).status_code == 400

    def test_export_csv(self):
        resp = client.post("/export/material", json={"bu": "BU 3"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        lines = resp.text.strip().splitlines()
        assert lines[0].startswith("id,name,")
        assert len(lines) == 3

    def test_export_failure_returns_error_body(self, monkeypatch):
        def _boom(vendors, phase):
            raise ValueError("frame build failed")

        monkeypatch.setattr("api.main.phase_frame", _boom)
        resp = client.post("/export/material", json={})
        assert resp.status_code == 500
        assert resp.json() == {"error": "frame build failed", "type": "ValueError"}
