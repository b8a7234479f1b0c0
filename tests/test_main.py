"""Tests for the HTTP API with a faked completion client."""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

import main
from llm_client import UpstreamStatusError
from session import ExtractionSession


@pytest.fixture
def llm():
    return MagicMock()


@pytest.fixture
def session():
    return ExtractionSession()


@pytest.fixture
def api(llm, session):
    main.app.dependency_overrides[main.get_client] = lambda: llm
    main.app.dependency_overrides[main.get_session] = lambda: session
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


class TestConfigEndpoints:
    def test_default_config(self, api):
        resp = api.get("/api/v1/config")
        assert resp.status_code == 200
        assert resp.json() == {"id": "default", "name": "Injury Surveillance", "isCustom": False, "fields": []}

    def test_add_and_remove_field(self, api):
        resp = api.post("/api/v1/config/fields", json={
            "key": "Blood Pressure!!", "description": "Initial BP", "type": "string",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["isCustom"] is True
        assert body["fields"][0]["key"] == "blood_pressure"

        field_id = body["fields"][0]["id"]
        resp = api.delete(f"/api/v1/config/fields/{field_id}")
        assert resp.status_code == 200
        assert resp.json()["fields"] == []
        assert resp.json()["isCustom"] is True

    def test_invalid_field_rejected(self, api):
        resp = api.post("/api/v1/config/fields", json={"key": "!!!", "description": "x"})
        assert resp.status_code == 422

    def test_unknown_field_id(self, api):
        assert api.delete("/api/v1/config/fields/nope").status_code == 404

    def test_preset_and_reset(self, api):
        resp = api.post("/api/v1/config/presets/discharge_summary")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Discharge Summary"

        schema = api.get("/api/v1/schema").json()
        assert "hospital_course" in schema["properties"]

        resp = api.post("/api/v1/config/reset")
        assert resp.json()["isCustom"] is False
        assert "briefSummary" in api.get("/api/v1/schema").json()["properties"]

    def test_unknown_preset(self, api):
        assert api.post("/api/v1/config/presets/nope").status_code == 404

    def test_list_presets(self, api):
        keys = [p["key"] for p in api.get("/api/v1/presets").json()]
        assert keys == ["er_injury_surveillance", "medication_reconciliation", "billing_coding", "discharge_summary"]


class TestExtractEndpoint:
    def test_default_scenario(self, api, llm, injury_reply):
        llm.complete.return_value = injury_reply

        resp = api.post("/api/v1/extract", json={"note": "12-year-old fell off bicycle."})

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "SUCCESS"
        assert body["data"]["diagnoses"] == ["Concussion"]
        layout = body["view"]["layout"]
        assert layout["kind"] == "default"
        assert layout["diagnoses"]["items"] == ["Concussion"]
        flagged = [f["label"] for s in layout["sections"] for f in s["fields"] if f["is_missing"]]
        assert flagged == ["Intent"]

    def test_custom_scenario(self, api, llm):
        api.post("/api/v1/config/fields", json={
            "key": "allergies", "description": "List of patient allergies", "type": "array",
        })
        llm.complete.return_value = json.dumps({"allergies": ["Penicillin", "Latex"], "missingInformation": []})

        body = api.post("/api/v1/extract", json={"note": "Allergic to penicillin, latex."}).json()

        view = body["view"]
        assert view["banner"] is None
        assert view["layout"]["kind"] == "generic"
        assert view["layout"]["complex_fields"] == [{
            "key": "allergies",
            "label": "Allergies",
            "items": ["Penicillin", "Latex"],
            "is_missing": False,
            "placeholder": None,
        }]

    def test_upstream_failure(self, api, llm):
        llm.complete.side_effect = UpstreamStatusError(500, "Internal Server Error")

        resp = api.post("/api/v1/extract", json={"note": "note"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ERROR"
        assert body["data"] is None
        assert body["view"]["can_retry"] is True
        assert api.get("/api/v1/export/json").status_code == 404

    def test_in_flight_extraction_conflicts(self, api, session):
        session.begin()
        resp = api.post("/api/v1/extract", json={"note": "note"})
        assert resp.status_code == 409

    def test_blank_note(self, api, llm):
        assert api.post("/api/v1/extract", json={"note": "  "}).status_code == 422
        llm.complete.assert_not_called()

    def test_clear(self, api, llm, injury_reply):
        llm.complete.return_value = injury_reply
        api.post("/api/v1/extract", json={"note": "note"})

        body = api.post("/api/v1/clear").json()
        assert body["status"] == "IDLE"
        assert body["view"]["title"] == "Ready to Abstract"


class TestExportEndpoints:
    def test_no_data(self, api):
        assert api.get("/api/v1/export/csv").status_code == 404

    def test_json_export(self, api, llm, injury_reply, injury_record):
        llm.complete.return_value = injury_reply
        api.post("/api/v1/extract", json={"note": "note"})

        resp = api.get("/api/v1/export/json")
        assert resp.status_code == 200
        assert resp.json() == injury_record
        assert 'filename="abstraction-' in resp.headers["content-disposition"]
        assert resp.text.startswith('{\n  "visitDate"')

    def test_csv_export(self, api, llm, injury_reply):
        llm.complete.return_value = injury_reply
        api.post("/api/v1/extract", json={"note": "note"})

        resp = api.get("/api/v1/export/csv")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="clinical_data_' in resp.headers["content-disposition"]
        assert len(resp.text.split("\n")) == 2


def test_health(api):
    assert api.get("/health").json()["status"] == "healthy"
