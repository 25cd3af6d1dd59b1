from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.api import deps
from app.db.store import MemoryRaceStore
from app.main import app
from app.services.races import RaceService



@pytest.fixture
def store() -> MemoryRaceStore:
    return MemoryRaceStore()


@pytest.fixture
def service(store: MemoryRaceStore) -> RaceService:
    return RaceService(store)


@pytest.fixture
def client(store: MemoryRaceStore):
    app.dependency_overrides[deps.get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def race_payload() -> dict:
    return {
        "country": "Italy",
        "stage": "Monza",
        "carClass": "GT",
        "car": "911",
        "surface": "Dry",
        "time": "01:23.456",
    }
