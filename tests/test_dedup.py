from __future__ import annotations

import asyncio
import random
from collections.abc import Callable

import pytest

from skindb.codecs import I64_MAX, unsigned64_to_signed
from skindb.db.memory import MemoryItemBackend
from skindb.models.item import ItemObservation
from skindb.services.dedup import Decision, classification_drift, decide
from skindb.services.records import build_record

MakeObs = Callable[..., ItemObservation]


def test_first_observation_creates(make_observation: MakeObs) -> None:
    assert decide(build_record(make_observation()), None) is Decision.CREATE


@pytest.mark.parametrize(
    "incoming, expected",
    [(50, Decision.IGNORE), (100, Decision.IGNORE), (150, Decision.SUPERSEDE)],
)
def test_greater_asset_id_wins(make_observation: MakeObs, incoming: int, expected: Decision) -> None:
    existing = build_record(make_observation(asset_id=100))
    assert decide(build_record(make_observation(asset_id=incoming)), existing) is expected


def test_comparison_is_unsigned_across_the_signed_wrap(make_observation: MakeObs) -> None:
    low = build_record(make_observation(asset_id=I64_MAX))
    high = build_record(make_observation(asset_id=I64_MAX + 1))
    # stored form of the larger id is negative
    assert high.asset_id < 0 < low.asset_id
    assert decide(high, low) is Decision.SUPERSEDE
    assert decide(low, high) is Decision.IGNORE


def test_superseded_by_keeps_classification(make_observation: MakeObs) -> None:
    existing = build_record(make_observation(asset_id=100, rarity=5, origin=8))
    incoming = build_record(
        make_observation(
            asset_id=150,
            owner_id=0,
            market_id=3016498011463468741,
            linked_id=999,
            rarity=6,
            origin=2,
            stickers=[{"slot": 0, "stickerId": 42}],
        )
    )
    merged = existing.superseded_by(incoming)

    assert merged.asset_id == incoming.asset_id
    assert merged.holder_id == unsigned64_to_signed(3016498011463468741)
    assert merged.linked_id == 999
    assert merged.stickers == incoming.stickers
    assert merged.updated_at == incoming.updated_at
    assert merged.properties == existing.properties
    assert merged.rarity == 5
    assert merged.canonical_key == existing.canonical_key
    # the source values are untouched
    assert existing.asset_id == 100


def test_classification_drift(make_observation: MakeObs) -> None:
    a = build_record(make_observation(rarity=5))
    b = build_record(make_observation(rarity=6, asset_id=200))
    assert classification_drift(a, b) == ["properties", "rarity"]
    assert classification_drift(a, a) == []


@pytest.mark.asyncio
async def test_backend_ignores_older_and_supersedes_newer(make_observation: MakeObs) -> None:
    backend = MemoryItemBackend()
    first = build_record(make_observation(asset_id=100, linked_id=1))
    assert await backend.upsert(first) is Decision.CREATE

    assert await backend.upsert(build_record(make_observation(asset_id=50, linked_id=2))) is Decision.IGNORE
    assert await backend.get(100) == first
    assert await backend.get(50) is None

    newer = build_record(make_observation(asset_id=150, linked_id=3, rarity=6))
    assert await backend.upsert(newer) is Decision.SUPERSEDE
    stored = await backend.get(150)
    assert stored is not None
    assert stored.linked_id == 3
    assert stored.rarity == 5
    assert await backend.get(100) is None
    assert len(backend) == 1


@pytest.mark.asyncio
async def test_concurrent_observations_settle_on_greatest_asset(make_observation: MakeObs) -> None:
    backend = MemoryItemBackend()
    ids = list(range(1, 65))
    random.Random(3).shuffle(ids)

    await asyncio.gather(*[backend.upsert(build_record(make_observation(asset_id=i))) for i in ids])

    assert len(backend) == 1
    stored = await backend.get(64)
    assert stored is not None and stored.asset_id == 64
