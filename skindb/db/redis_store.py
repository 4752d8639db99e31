from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from redis.asyncio import Redis
from redis.asyncio.client import Pipeline
from redis.exceptions import RedisError, WatchError

from ..codecs import signed64_to_unsigned
from ..config import settings
from ..errors import AssetConflict, StorageUnavailable
from ..logging import get_logger
from ..models.item import CanonicalKey, RankClass, Sticker, StoredItem
from ..services.dedup import Decision, classification_drift, decide
from .base import Direction

_log = get_logger()

# Optimistic transactions give up after this many lost WATCH races
MAX_WATCH_RETRIES = 64


def ns(*parts: object) -> str:
    return ":".join(str(p) for p in parts)


def _to_hash(record: StoredItem) -> dict[str, str]:
    stickers = [s.to_compact() for s in record.stickers] if record.stickers is not None else None
    return {
        "a": str(record.asset_id),
        "ms": str(record.holder_id),
        "d": str(record.linked_id),
        "paintseed": str(record.paint_seed),
        "paintwear": str(record.paint_wear),
        "defindex": str(record.defindex),
        "paintindex": str(record.paintindex),
        "stattrak": "1" if record.stattrak else "0",
        "souvenir": "1" if record.souvenir else "0",
        "props": str(record.properties),
        "stickers": json.dumps(stickers, separators=(",", ":")),
        "updated": record.updated_at.isoformat(),
        "rarity": str(record.rarity),
    }


def _from_hash(raw: dict[str, str]) -> StoredItem:
    stickers: list[dict[str, Any]] | None = json.loads(raw["stickers"])
    return StoredItem(
        asset_id=int(raw["a"]),
        holder_id=int(raw["ms"]),
        linked_id=int(raw["d"]),
        paint_seed=int(raw["paintseed"]),
        paint_wear=int(raw["paintwear"]),
        defindex=int(raw["defindex"]),
        paintindex=int(raw["paintindex"]),
        stattrak=raw["stattrak"] == "1",
        souvenir=raw["souvenir"] == "1",
        properties=int(raw["props"]),
        stickers=tuple(Sticker.from_compact(s) for s in stickers) if stickers is not None else None,
        updated_at=datetime.fromisoformat(raw["updated"]),
        rarity=int(raw["rarity"]),
    )


def _parse_key(member: str) -> CanonicalKey:
    defindex, paintindex, paint_wear, paint_seed = (int(p) for p in member.split(":"))
    return CanonicalKey(defindex, paintindex, paint_wear, paint_seed)


class RedisItemBackend:
    """Redis layout (``p`` is the key prefix):

      - HASH   {p}:item:{defindex}:{paintindex}:{paintwear}:{paintseed}  the record
      - STRING {p}:asset:{asset id}                                   canonical key of the asset
      - ZSET   {p}:rank:{defindex}:{paintindex}:{stattrak}:{souvenir}  canonical key -> paintwear
      - SET    {p}:sticker:{sticker id}                               canonical keys carrying it

    Upserts run as WATCH/MULTI/EXEC transactions, so the dedup decision and
    its write either both apply or neither does.
    """

    def __init__(self, redis: Redis[str], prefix: str | None = None) -> None:
        self.redis = redis
        self.prefix = prefix or settings.KEY_PREFIX

    @classmethod
    def from_url(cls, url: str | None = None, prefix: str | None = None) -> RedisItemBackend:
        return cls(Redis.from_url(url or settings.REDIS_URL, decode_responses=True), prefix=prefix)

    def _item_key(self, key: CanonicalKey) -> str:
        return ns(self.prefix, "item", key)

    def _asset_key(self, asset_id: int) -> str:
        return ns(self.prefix, "asset", asset_id)

    def _rank_key(self, rank_class: RankClass) -> str:
        return ns(self.prefix, "rank", rank_class)

    def _sticker_key(self, sticker_id: int) -> str:
        return ns(self.prefix, "sticker", sticker_id)

    async def upsert(self, record: StoredItem) -> Decision:
        key = record.canonical_key
        item_key = self._item_key(key)
        asset_key = self._asset_key(record.asset_id)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                for _ in range(MAX_WATCH_RETRIES):
                    try:
                        await pipe.watch(item_key, asset_key)
                        stored_key = await pipe.get(asset_key)
                        if stored_key is not None and stored_key != str(key):
                            raise AssetConflict(signed64_to_unsigned(record.asset_id), stored_key, str(key))
                        raw = await pipe.hgetall(item_key)
                        existing = _from_hash(raw) if raw else None
                        decision = decide(record, existing)
                        if decision is Decision.IGNORE:
                            return decision
                        pipe.multi()
                        if existing is None:
                            self._queue_create(pipe, record)
                        else:
                            self._queue_supersede(pipe, existing, record)
                        await pipe.execute()
                        return decision
                    except WatchError:
                        _log.debug("upsert_watch_retry", key=str(key))
                        continue
        except RedisError as exc:
            raise StorageUnavailable(f"upsert of {key} failed: {exc}") from exc
        raise StorageUnavailable(f"upsert of {key} lost {MAX_WATCH_RETRIES} concurrent races")

    def _queue_create(self, pipe: Pipeline, record: StoredItem) -> None:
        key = record.canonical_key
        pipe.hset(self._item_key(key), mapping=_to_hash(record))  # type: ignore[arg-type]
        pipe.set(self._asset_key(record.asset_id), str(key))
        pipe.zadd(self._rank_key(record.rank_class), {str(key): record.paint_wear})
        for sticker in record.stickers or ():
            pipe.sadd(self._sticker_key(sticker.sticker_id), str(key))

    def _queue_supersede(self, pipe: Pipeline, existing: StoredItem, incoming: StoredItem) -> None:
        key = existing.canonical_key
        drift = classification_drift(existing, incoming)
        if drift:
            _log.debug("classification_drift", key=str(key), fields=drift)
        updated = existing.superseded_by(incoming)
        pipe.hset(self._item_key(key), mapping=_to_hash(updated))  # type: ignore[arg-type]
        pipe.delete(self._asset_key(existing.asset_id))
        pipe.set(self._asset_key(updated.asset_id), str(key))
        for sticker in existing.stickers or ():
            pipe.srem(self._sticker_key(sticker.sticker_id), str(key))
        for sticker in updated.stickers or ():
            pipe.sadd(self._sticker_key(sticker.sticker_id), str(key))

    async def get(self, asset_id: int) -> StoredItem | None:
        try:
            member = await self.redis.get(self._asset_key(asset_id))
            if member is None:
                return None
            raw = await self.redis.hgetall(ns(self.prefix, "item", member))
        except RedisError as exc:
            raise StorageUnavailable(f"lookup of asset {asset_id} failed: {exc}") from exc
        if not raw:
            return None
        record = _from_hash(raw)
        # superseded between the two reads
        if record.asset_id != asset_id:
            return None
        return record

    async def count_wears(
        self,
        rank_class: RankClass,
        paint_wear: int,
        direction: Direction,
        limit: int,
    ) -> int:
        rank_key = self._rank_key(rank_class)
        try:
            if direction == "below":
                members = await self.redis.zrangebyscore(
                    rank_key, "-inf", f"({paint_wear}", start=0, num=limit
                )
            else:
                members = await self.redis.zrevrangebyscore(
                    rank_key, "+inf", f"({paint_wear}", start=0, num=limit
                )
        except RedisError as exc:
            raise StorageUnavailable(f"rank scan of {rank_class} failed: {exc}") from exc
        return len(members)

    async def find_by_sticker(self, sticker_id: int, limit: int) -> list[StoredItem]:
        try:
            members = await self.redis.smembers(self._sticker_key(sticker_id))
            keys = sorted(_parse_key(m) for m in members)[:limit]
            if not keys:
                return []
            async with self.redis.pipeline(transaction=False) as pipe:
                for key in keys:
                    pipe.hgetall(self._item_key(key))
                rows = await pipe.execute()
        except RedisError as exc:
            raise StorageUnavailable(f"sticker lookup of {sticker_id} failed: {exc}") from exc
        return [_from_hash(raw) for raw in rows if raw]

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self.redis.aclose()
