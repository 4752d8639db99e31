from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from skindb.api.main import create_app
from skindb.db.memory import MemoryItemBackend
from skindb.models.item import ItemObservation
from skindb.store import ItemStore

OWNER_ID = 76561198000000000  # account id
MARKET_ID = 3016498011463468741  # market listing id


@pytest.fixture(scope="session", autouse=True)
def _env() -> Iterator[None]:
    # Redis-backed tests skip themselves unless a server answers here
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
    yield


@pytest.fixture()
def backend() -> MemoryItemBackend:
    return MemoryItemBackend()


@pytest.fixture()
def store(backend: MemoryItemBackend) -> ItemStore:
    return ItemStore(backend)


@pytest.fixture()
def client(store: ItemStore) -> Iterator[TestClient]:
    app = create_app(store=store)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def make_observation() -> Callable[..., ItemObservation]:
    """Factory for feed observations; keyword overrides use the Python field names."""

    def _make(**overrides: Any) -> ItemObservation:
        fields: dict[str, Any] = {
            "asset_id": 100,
            "owner_id": OWNER_ID,
            "market_id": 0,
            "linked_id": 555,
            "paint_seed": 661,
            "float_value": 0.25,
            "defindex": 7,
            "paintindex": 282,
            "killeater_value": None,
            "origin": 8,
            "quality": 4,
            "rarity": 5,
            "stickers": (),
        }
        fields.update(overrides)
        return ItemObservation(**fields)

    return _make
