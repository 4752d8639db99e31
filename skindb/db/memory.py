from __future__ import annotations

import threading
from bisect import bisect_left, insort

from ..codecs import signed64_to_unsigned
from ..errors import AssetConflict
from ..logging import get_logger
from ..models.item import CanonicalKey, RankClass, StoredItem
from ..services.dedup import Decision, classification_drift, decide
from .base import Direction

_log = get_logger()


class MemoryItemBackend:
    """In-process backend with the same semantics as the Redis one.

    Every read-decide-write runs under one lock with no await in between, so
    it is atomic for concurrent tasks and threads alike.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[CanonicalKey, StoredItem] = {}
        self._assets: dict[int, CanonicalKey] = {}
        # per class: (paint_wear, key), kept sorted
        self._classes: dict[RankClass, list[tuple[int, CanonicalKey]]] = {}
        self._stickers: dict[int, set[CanonicalKey]] = {}

    async def upsert(self, record: StoredItem) -> Decision:
        key = record.canonical_key
        with self._lock:
            stored_key = self._assets.get(record.asset_id)
            if stored_key is not None and stored_key != key:
                raise AssetConflict(signed64_to_unsigned(record.asset_id), str(stored_key), str(key))

            existing = self._records.get(key)
            decision = decide(record, existing)
            if decision is Decision.CREATE:
                self._records[key] = record
                self._assets[record.asset_id] = key
                insort(self._classes.setdefault(record.rank_class, []), (record.paint_wear, key))
                self._index_stickers(key, record)
            elif decision is Decision.SUPERSEDE:
                assert existing is not None
                drift = classification_drift(existing, record)
                if drift:
                    _log.debug("classification_drift", key=str(key), fields=drift)
                updated = existing.superseded_by(record)
                self._records[key] = updated
                del self._assets[existing.asset_id]
                self._assets[updated.asset_id] = key
                self._unindex_stickers(key, existing)
                self._index_stickers(key, updated)
            return decision

    async def get(self, asset_id: int) -> StoredItem | None:
        with self._lock:
            key = self._assets.get(asset_id)
            return self._records.get(key) if key is not None else None

    async def count_wears(
        self,
        rank_class: RankClass,
        paint_wear: int,
        direction: Direction,
        limit: int,
    ) -> int:
        with self._lock:
            entries = self._classes.get(rank_class, [])
            if direction == "below":
                count = bisect_left(entries, (paint_wear,))
            else:
                count = len(entries) - bisect_left(entries, (paint_wear + 1,))
        return min(count, limit)

    async def find_by_sticker(self, sticker_id: int, limit: int) -> list[StoredItem]:
        with self._lock:
            keys = sorted(self._stickers.get(sticker_id, ()))[:limit]
            return [self._records[k] for k in keys]

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None

    def __len__(self) -> int:
        return len(self._records)

    def _index_stickers(self, key: CanonicalKey, record: StoredItem) -> None:
        for sticker in record.stickers or ():
            self._stickers.setdefault(sticker.sticker_id, set()).add(key)

    def _unindex_stickers(self, key: CanonicalKey, record: StoredItem) -> None:
        for sticker in record.stickers or ():
            members = self._stickers.get(sticker.sticker_id)
            if members is not None:
                members.discard(key)
                if not members:
                    del self._stickers[sticker.sticker_id]
