from __future__ import annotations

from enum import Enum

from ..codecs import signed64_to_unsigned
from ..models.item import StoredItem

_CLASSIFICATION_FIELDS = ("properties", "rarity", "stattrak", "souvenir")


class Decision(str, Enum):
    CREATE = "create"
    SUPERSEDE = "supersede"
    IGNORE = "ignore"


def decide(incoming: StoredItem, existing: StoredItem | None) -> Decision:
    """Resolve an observation against the record holding its canonical key.

    The newest observation (greatest asset id) wins. Asset ids are compared
    as unsigned values; the stored signed form wraps above 2**63.
    """
    if existing is None:
        return Decision.CREATE
    if signed64_to_unsigned(incoming.asset_id) > signed64_to_unsigned(existing.asset_id):
        return Decision.SUPERSEDE
    return Decision.IGNORE


def classification_drift(existing: StoredItem, incoming: StoredItem) -> list[str]:
    """Classification fields that differ between two records of one canonical key."""
    return [f for f in _CLASSIFICATION_FIELDS if getattr(existing, f) != getattr(incoming, f)]
