from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Callable, Iterable

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import settings
from ..errors import AssetConflict, StorageUnavailable
from ..logging import get_logger
from ..models.item import ItemObservation
from ..store import ItemStore, UpsertResult

_log = get_logger()

# Counter keys: decision values plus "skipped" and "failed"
IngestStats = Counter[str]


def _retryer() -> AsyncRetrying:
    return AsyncRetrying(
        reraise=True,
        stop=stop_after_attempt(settings.RETRY_MAX),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=3),
        retry=retry_if_exception_type(StorageUnavailable),
    )


async def upsert_with_retry(store: ItemStore, observation: ItemObservation) -> UpsertResult:
    """Upsert, retrying transient storage failures with exponential backoff."""
    async for attempt in _retryer():
        with attempt:
            return await store.upsert(observation)
    # AsyncRetrying either returns above or re-raises
    raise StorageUnavailable(f"upsert of asset {observation.asset_id} was never attempted")


async def upsert_best_effort(store: ItemStore, observation: ItemObservation) -> UpsertResult | None:
    """Fire-and-forget ingestion: failures are logged and reported as None."""
    try:
        return await upsert_with_retry(store, observation)
    except (StorageUnavailable, AssetConflict) as exc:
        _log.warning("upsert_failed", asset_id=observation.asset_id, error=str(exc))
        return None


async def ingest(
    store: ItemStore,
    observations: Iterable[ItemObservation],
    *,
    concurrency: int | None = None,
    on_done: Callable[[UpsertResult | None], None] | None = None,
) -> IngestStats:
    """Upsert many observations with bounded concurrency.

    Returns counts per outcome: ``create``, ``supersede``, ``ignore``,
    ``skipped`` and ``failed``.
    """
    sem = asyncio.Semaphore(concurrency or settings.INGEST_CONCURRENCY)
    stats: IngestStats = Counter()

    async def _one(observation: ItemObservation) -> None:
        async with sem:
            result = await upsert_best_effort(store, observation)
        if result is None:
            stats["failed"] += 1
        elif result.skipped:
            stats["skipped"] += 1
        else:
            assert result.decision is not None
            stats[result.decision.value] += 1
        if on_done is not None:
            on_done(result)

    await asyncio.gather(*[_one(o) for o in observations])
    _log.info("ingest_finished", **dict(stats))
    return stats
