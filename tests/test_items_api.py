from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from skindb.errors import StorageUnavailable
from skindb.store import ItemStore


def _feed_item(**overrides: Any) -> dict[str, Any]:
    """Observation in the inspect feed's own shape (ids as strings)."""
    item: dict[str, Any] = {
        "a": "18446744073709551610",
        "s": "76561198000000000",
        "m": "0",
        "d": "9231433283620356401",
        "paintseed": 661,
        "floatvalue": 0.125,
        "defindex": 7,
        "paintindex": 282,
        "killeatervalue": None,
        "origin": 8,
        "quality": 4,
        "rarity": 5,
        "stickers": [{"slot": 0, "stickerId": 4761, "wear": 0}],
    }
    item.update(overrides)
    return item


def test_healthz(client: TestClient) -> None:
    r = client.get("/healthz")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["store"] is True


def test_upsert_then_read(client: TestClient) -> None:
    r = client.post("/items", json=_feed_item())
    assert r.status_code == 200
    assert r.json() == {"asset_id": "18446744073709551610", "decision": "create", "skipped": False}

    r = client.get("/items/18446744073709551610")
    assert r.status_code == 200
    item = r.json()
    assert item["asset_id"] == "18446744073709551610"
    assert item["owner_id"] == "76561198000000000"
    assert item["market_id"] == "0"
    assert item["linked_id"] == "9231433283620356401"
    assert item["float_value"] == 0.125
    assert item["stickers"] == [{"slot": 0, "sticker_id": 4761, "wear": None, "duplicates": None}]
    assert item["low_rank"] == 1 and item["high_rank"] == 1

    r = client.get("/items/18446744073709551610/rank")
    assert r.json() == {"low_rank": 1, "high_rank": 1}


def test_repeated_observation_is_ignored(client: TestClient) -> None:
    client.post("/items", json=_feed_item())
    r = client.post("/items", json=_feed_item(d="1"))
    assert r.json()["decision"] == "ignore"
    assert client.get("/items/18446744073709551610").json()["linked_id"] == "9231433283620356401"


def test_non_weapon_is_skipped(client: TestClient) -> None:
    r = client.post("/items", json=_feed_item(floatvalue=0))
    assert r.status_code == 200
    assert r.json()["skipped"] is True
    assert client.get("/items/18446744073709551610").status_code == 404


def test_unknown_asset(client: TestClient) -> None:
    assert client.get("/items/42").status_code == 404
    r = client.get("/items/42/rank")
    assert r.status_code == 200
    assert r.json() == {}


def test_invalid_observation_rejected(client: TestClient) -> None:
    r = client.post("/items", json=_feed_item(rarity=300))
    assert r.status_code == 422
    assert client.get("/items/18446744073709551616").status_code == 422


def test_asset_conflict(client: TestClient) -> None:
    client.post("/items", json=_feed_item())
    r = client.post("/items", json=_feed_item(floatvalue=0.5))
    assert r.status_code == 409


def test_storage_failure_is_503(client: TestClient, store: ItemStore, monkeypatch: pytest.MonkeyPatch) -> None:
    async def _down(*_args: Any, **_kwargs: Any) -> Any:
        raise StorageUnavailable("redis down")

    monkeypatch.setattr(store.backend, "get", _down)
    monkeypatch.setattr(store.backend, "upsert", _down)

    assert client.get("/items/1").status_code == 503
    assert client.get("/items/1/rank").status_code == 503
    assert client.post("/items", json=_feed_item()).status_code == 503


def test_items_with_sticker(client: TestClient) -> None:
    client.post("/items", json=_feed_item())
    client.post("/items", json=_feed_item(a="77", floatvalue=0.5, stickers=[]))

    r = client.get("/stickers/4761/items")
    assert r.status_code == 200
    data = r.json()
    assert data["count"] == 1
    assert data["items"][0]["asset_id"] == "18446744073709551610"
    assert client.get("/stickers/1/items").json()["count"] == 0


def test_request_id_header(client: TestClient) -> None:
    r = client.get("/healthz", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"


def test_module_level_app_is_servable() -> None:
    from skindb.api import main

    paths = {route.path for route in main.app.routes}
    assert {"/healthz", "/items", "/items/{asset_id}"} <= paths
