from __future__ import annotations

from typing import Literal, Protocol

from ..models.item import RankClass, StoredItem
from ..services.dedup import Decision

Direction = Literal["below", "above"]


class ItemBackend(Protocol):
    """Persistent state behind ItemStore.

    Implementations translate their transport errors into StorageUnavailable.
    """

    async def upsert(self, record: StoredItem) -> Decision:
        """Apply the dedup policy and its write as one atomic step."""
        ...

    async def get(self, asset_id: int) -> StoredItem | None:
        """Look up a record by its signed (stored) asset id."""
        ...

    async def count_wears(
        self,
        rank_class: RankClass,
        paint_wear: int,
        direction: Direction,
        limit: int,
    ) -> int:
        """Count class members strictly below/above ``paint_wear``, scanning at most ``limit``."""
        ...

    async def find_by_sticker(self, sticker_id: int, limit: int) -> list[StoredItem]:
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...
