from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TypeVar

from .codecs import unsigned64_to_signed
from .config import settings
from .db.base import ItemBackend
from .errors import InvalidInput, ItemNotFound, StorageUnavailable
from .logging import get_logger
from .models.item import ItemObservation, ItemView, Rank
from .services.dedup import Decision
from .services.ranking import RankQueryEngine
from .services.records import build_record, build_view

T = TypeVar("T")

_log = get_logger()


@dataclass(frozen=True)
class UpsertResult:
    asset_id: int
    decision: Decision | None  # None: observation was not storable

    @property
    def skipped(self) -> bool:
        return self.decision is None


class ItemStore:
    """Upsert and query skins against an explicitly owned backend.

    The caller constructs the backend and is responsible for closing it
    (``close`` delegates to the backend). Every backend call is bounded by a
    timeout; timeouts surface as StorageUnavailable.
    """

    def __init__(
        self,
        backend: ItemBackend,
        *,
        timeout: float | None = None,
        rank_cap: int | None = None,
    ) -> None:
        self.backend = backend
        self.timeout = timeout or settings.STORE_TIMEOUT
        self.ranking = RankQueryEngine(backend, cap=rank_cap)

    async def _call(self, aw: Awaitable[T], timeout: float | None) -> T:
        try:
            return await asyncio.wait_for(aw, timeout or self.timeout)
        except asyncio.TimeoutError as exc:
            raise StorageUnavailable(f"store call timed out after {timeout or self.timeout}s") from exc

    async def upsert(self, observation: ItemObservation, *, timeout: float | None = None) -> UpsertResult:
        try:
            record = build_record(observation)
        except InvalidInput:
            _log.debug("item_skipped", asset_id=observation.asset_id, float_value=observation.float_value)
            return UpsertResult(asset_id=observation.asset_id, decision=None)

        decision = await self._call(self.backend.upsert(record), timeout)
        _log.debug("item_upserted", asset_id=observation.asset_id, decision=decision.value)
        return UpsertResult(asset_id=observation.asset_id, decision=decision)

    async def get_item(self, asset_id: int, *, timeout: float | None = None) -> ItemView | None:
        """Item with its rank, or None when nothing is stored for the asset."""
        record = await self._call(self.backend.get(unsigned64_to_signed(asset_id)), timeout)
        if record is None:
            return None
        rank = await self._call(self.ranking.rank(record), timeout)
        return build_view(record, rank)

    async def require_item(self, asset_id: int, *, timeout: float | None = None) -> ItemView:
        item = await self.get_item(asset_id, timeout=timeout)
        if item is None:
            raise ItemNotFound(asset_id)
        return item

    async def get_rank(self, asset_id: int, *, timeout: float | None = None) -> Rank:
        """Rank of a stored item; an unknown asset gives an empty Rank."""
        record = await self._call(self.backend.get(unsigned64_to_signed(asset_id)), timeout)
        if record is None:
            return Rank()
        return await self._call(self.ranking.rank(record), timeout)

    async def find_by_sticker(
        self,
        sticker_id: int,
        *,
        limit: int | None = None,
        timeout: float | None = None,
    ) -> list[ItemView]:
        records = await self._call(
            self.backend.find_by_sticker(sticker_id, limit or settings.STICKER_LOOKUP_LIMIT),
            timeout,
        )
        return [build_view(r) for r in records]

    async def ping(self) -> bool:
        try:
            return await self._call(self.backend.ping(), None)
        except StorageUnavailable:
            return False

    async def close(self) -> None:
        await self.backend.close()
