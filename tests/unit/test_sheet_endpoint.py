"""Tests for the sheet endpoint (health probe, row append, preflight)."""

import json

import pytest
from fastapi.testclient import TestClient

from credupi.main import app
from credupi.sheet.router import get_sheet_store
from credupi.sheet.store import CsvSheetStore


@pytest.fixture
def store(tmp_path):
    return CsvSheetStore(tmp_path / "sheet.csv")


@pytest.fixture
def client(store):
    app.dependency_overrides[get_sheet_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestSheetEndpoint:

    def test_health(self, client):
        response = client.get("/exec")
        assert response.status_code == 200
        assert response.json()["status"] == "OK"

    def test_append_json(self, client, store):
        body = {
            "intent": "I'm curious what this is about",
            "userType": "Student",
            "phone": "+919876543210",
            "timestamp": "2026-10-19T08:00:00.000Z",
        }
        response = client.post("/exec", json=body)

        assert response.json() == {"success": True, "message": "Entry saved successfully"}
        assert store.rows() == [body]

    def test_malformed_json_uses_query_params(self, client, store):
        response = client.post(
            "/exec",
            params={"intent": "I'm curious what this is about", "phone": "+919876543210"},
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.json()["success"] is True
        row = store.rows()[0]
        assert row["intent"] == "I'm curious what this is about"
        assert row["userType"] == ""
        assert row["timestamp"]

    def test_empty_entry_rejected(self, client, store):
        response = client.post("/exec", content=json.dumps({"intent": "", "userType": "", "phone": ""}))

        assert response.status_code == 200
        assert response.json() == {"success": False, "error": "No data provided"}
        assert store.rows() == []

    def test_store_failure_reported(self, client, tmp_path):
        (tmp_path / "dir.csv").mkdir()
        app.dependency_overrides[get_sheet_store] = lambda: CsvSheetStore(tmp_path / "dir.csv")

        response = client.post("/exec", json={"intent": "x"})

        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Failed to save entry"

    def test_preflight(self, client):
        response = client.options("/exec")
        assert response.status_code == 200
        assert response.content == b""
