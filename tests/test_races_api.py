from __future__ import annotations

import redis
from fastapi.testclient import TestClient

from app.api import deps
from app.core.config import settings
from app.db.store import MemoryRaceStore, RedisRaceStore
from app.main import app


RACES = f"{settings.API_V1_STR}/races"


def test_get_races_never_saved(client: TestClient) -> None:
    res = client.get(RACES)
    assert res.status_code == 404
    assert res.json() == {"error": "No race data found"}


def test_create_then_list(client: TestClient, race_payload: dict) -> None:
    res = client.post(RACES, json=race_payload)

    assert res.status_code == 201
    race = res.json()
    assert race["id"]
    assert race["carClass"] == "GT"
    assert race["time"] == "01:23.456"

    listed = client.get(RACES)
    assert listed.status_code == 200
    assert listed.json() == [race]


def test_create_missing_fields(client: TestClient, race_payload: dict) -> None:
    payload = {**race_payload, "car": "   "}
    del payload["time"]

    res = client.post(RACES, json=payload)

    assert res.status_code == 400
    assert res.json() == {"error": "Missing required fields: car, time"}


def test_create_invalid_time_and_surface(client: TestClient, race_payload: dict) -> None:
    res = client.post(RACES, json={**race_payload, "time": "1:99.000", "surface": "Snow"})

    assert res.status_code == 400
    error = res.json()["error"]
    assert error.startswith("Invalid fields:")
    assert "time" in error
    assert "surface" in error


def test_update_race(client: TestClient, race_payload: dict) -> None:
    race = client.post(RACES, json={**race_payload, "time": "01:30.000"}).json()

    res = client.put(f"{RACES}/{race['id']}", json={"id": "hijack", "time": "01:00.000"})

    assert res.status_code == 200
    updated = res.json()
    assert updated["id"] == race["id"]
    assert updated["time"] == "01:00.000"
    assert updated["date"] >= race["date"]


def test_update_missing_body(client: TestClient, race_payload: dict) -> None:
    race = client.post(RACES, json=race_payload).json()

    res = client.put(f"{RACES}/{race['id']}")

    assert res.status_code == 400
    assert res.json() == {"error": "Missing updated race object!"}


def test_update_unknown_race(client: TestClient) -> None:
    res = client.put(f"{RACES}/unknown-id", json={"time": "01:00.000"})
    assert res.status_code == 404
    assert res.json() == {"error": "Race not found"}


def test_update_rejects_null_required_field(client: TestClient, race_payload: dict) -> None:
    race = client.post(RACES, json=race_payload).json()
    res = client.put(f"{RACES}/{race['id']}", json={"car": None})
    assert res.status_code == 400


def test_update_racenet_only(client: TestClient, race_payload: dict) -> None:
    race = client.post(RACES, json=race_payload).json()

    res = client.put(f"{RACES}/{race['id']}", params={"racenetOnly": "true"}, json={"time": "01:10.000"})

    assert res.status_code == 200
    assert res.json()["time"] == "01:23.456"
    assert res.json()["racenet"] == "01:10.000"


def test_update_enforced_personal_best(client: TestClient, store: MemoryRaceStore, race_payload: dict, monkeypatch) -> None:
    monkeypatch.setattr(settings, "ENFORCE_PERSONAL_BEST", True)
    race = client.post(RACES, json=race_payload).json()

    res = client.put(f"{RACES}/{race['id']}", json={"time": "01:30.000"})

    assert res.status_code == 400
    assert store.load()[0]["time"] == "01:23.456"


def test_delete_race(client: TestClient, race_payload: dict) -> None:
    race = client.post(RACES, json=race_payload).json()

    res = client.delete(f"{RACES}/{race['id']}")
    assert res.status_code == 200
    assert res.json() == race
    assert client.get(RACES).json() == []

    again = client.delete(f"{RACES}/{race['id']}")
    assert again.status_code == 404


def test_delete_unknown_race(client: TestClient) -> None:
    res = client.delete(f"{RACES}/unknown-id")
    assert res.status_code == 404
    assert res.json() == {"error": "Race not found"}


def test_list_filters(client: TestClient, race_payload: dict) -> None:
    client.post(RACES, json=race_payload)
    client.post(RACES, json={**race_payload, "carClass": "Rally2", "car": "Fabia"})

    res = client.get(RACES, params={"carClass": "Rally2"})

    assert res.status_code == 200
    assert [r["car"] for r in res.json()] == ["Fabia"]


def test_record_best_time(client: TestClient, race_payload: dict) -> None:
    created = client.post(f"{RACES}/best", json=race_payload)
    assert created.status_code == 201
    assert created.json()["created"] is True

    slower = client.post(f"{RACES}/best", json={**race_payload, "time": "01:24.000"})
    assert slower.status_code == 200
    assert slower.json()["improved"] is False
    assert slower.json()["race"]["time"] == "01:23.456"

    faster = client.post(f"{RACES}/best", json={**race_payload, "time": "01:22.000"})
    assert faster.json()["improved"] is True
    assert faster.json()["difference"] == "-00:01.456"


def test_export_empty(client: TestClient) -> None:
    res = client.get(f"{RACES}/export")
    assert res.status_code == 404
    assert res.json() == {"error": "No race data found"}


def test_export(client: TestClient, race_payload: dict) -> None:
    client.post(RACES, json=race_payload)

    res = client.get(f"{RACES}/export")

    assert res.status_code == 200
    assert res.headers["content-disposition"] == 'attachment; filename="races.xlsx"'
    assert res.headers["content-type"].startswith("application/vnd.openxmlformats")
    assert len(res.content) > 0


def test_access_key_gate(client: TestClient, race_payload: dict, monkeypatch) -> None:
    monkeypatch.setattr(settings, "ACCESS_KEY", "letmein")

    denied = client.post(RACES, json=race_payload)
    assert denied.status_code == 401
    assert denied.json() == {"error": "Invalid access key"}

    allowed = client.post(RACES, json=race_payload, headers={"X-Access-Key": "letmein"})
    assert allowed.status_code == 201


def test_root(client: TestClient) -> None:
    assert client.get("/").status_code == 200


class _BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("connection refused")

    def set(self, key, value):
        raise redis.ConnectionError("connection refused")


class _ExplodingStore(MemoryRaceStore):
    def fetch(self):
        raise RuntimeError("boom")


def test_storage_failure_is_500(client: TestClient, race_payload: dict) -> None:
    app.dependency_overrides[deps.get_store] = lambda: RedisRaceStore(_BrokenRedis())

    listed = client.get(RACES)
    assert listed.status_code == 500
    assert listed.json() == {"error": "Failed to read race data"}

    created = client.post(RACES, json=race_payload)
    assert created.status_code == 500
    assert created.json() == {"error": "Failed to read race data"}


def test_corrupted_entries_are_storage_errors(client: TestClient, store: MemoryRaceStore) -> None:
    store.save(["junk"])  # type: ignore[list-item]

    res = client.delete(f"{RACES}/x")

    assert res.status_code == 500
    assert res.json() == {"error": "Failed to read race data"}


def test_unexpected_error_is_500(race_payload: dict) -> None:
    app.dependency_overrides[deps.get_store] = lambda: _ExplodingStore()
    try:
        res = TestClient(app, raise_server_exceptions=False).get(RACES)
    finally:
        app.dependency_overrides.clear()

    assert res.status_code == 500
    assert res.json() == {"error": "Internal server error"}
