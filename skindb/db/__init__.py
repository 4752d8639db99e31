from __future__ import annotations

from ..config import settings
from .base import ItemBackend
from .memory import MemoryItemBackend
from .redis_store import RedisItemBackend


def backend_from_settings() -> ItemBackend:
    if settings.STORE_BACKEND == "memory":
        return MemoryItemBackend()
    return RedisItemBackend.from_url(settings.REDIS_URL, prefix=settings.KEY_PREFIX)


__all__ = ["ItemBackend", "MemoryItemBackend", "RedisItemBackend", "backend_from_settings"]
