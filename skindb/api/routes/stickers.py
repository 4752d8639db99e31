from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from ...config import settings
from ...errors import StorageUnavailable
from ...store import ItemStore
from ..deps import get_store

router = APIRouter(prefix="/stickers", tags=["stickers"])


@router.get("/{sticker_id}/items")
async def items_with_sticker(
    sticker_id: int = Path(..., ge=0),
    limit: int = Query(settings.STICKER_LOOKUP_LIMIT, ge=1, le=1000),
    store: ItemStore = Depends(get_store),
) -> dict[str, Any]:
    try:
        items = await store.find_by_sticker(sticker_id, limit=limit)
    except StorageUnavailable:
        raise HTTPException(status_code=503, detail="store unavailable")
    return {"sticker_id": sticker_id, "count": len(items), "items": [i.model_dump(mode="json") for i in items]}
