from __future__ import annotations

import asyncio

from ..config import settings
from ..db.base import ItemBackend
from ..models.item import Rank, StoredItem


def bounded_rank(count: int, cap: int) -> int | None:
    """Rank from a capped neighbour count; None once the scan bound is reached."""
    if count >= cap:
        return None
    return count + 1


class RankQueryEngine:
    """Position of an item by wear within its (defindex, paintindex, stattrak, souvenir) class.

    Each direction scans at most ``cap`` rows, so an item with ``cap`` or more
    better (or worse) neighbours gets no rank on that side instead of a
    saturated number.
    """

    def __init__(self, backend: ItemBackend, cap: int | None = None) -> None:
        self.backend = backend
        self.cap = cap or settings.RANK_CAP

    async def rank(self, record: StoredItem) -> Rank:
        below, above = await asyncio.gather(
            self.backend.count_wears(record.rank_class, record.paint_wear, "below", self.cap),
            self.backend.count_wears(record.rank_class, record.paint_wear, "above", self.cap),
        )
        return Rank(
            low_rank=bounded_rank(below, self.cap),
            high_rank=bounded_rank(above, self.cap),
        )
