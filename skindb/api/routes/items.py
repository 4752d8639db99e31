from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path

from ...codecs import U64_MAX
from ...errors import AssetConflict, ItemNotFound, StorageUnavailable
from ...models.item import ItemObservation
from ...store import ItemStore
from ..deps import get_store

router = APIRouter(prefix="/items", tags=["items"])


@router.post("")
async def upsert_item(
    observation: ItemObservation,
    store: ItemStore = Depends(get_store),
) -> dict[str, Any]:
    """Store one feed observation.

    ``decision`` is one of create/supersede/ignore, or null with
    ``skipped = true`` when the observation is not a weapon.
    """
    try:
        result = await store.upsert(observation)
    except AssetConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except StorageUnavailable:
        raise HTTPException(status_code=503, detail="store unavailable")
    return {
        "asset_id": str(result.asset_id),
        "decision": result.decision.value if result.decision is not None else None,
        "skipped": result.skipped,
    }


@router.get("/{asset_id}")
async def get_item(
    asset_id: int = Path(..., ge=0, le=U64_MAX),
    store: ItemStore = Depends(get_store),
) -> dict[str, Any]:
    try:
        item = await store.require_item(asset_id)
    except ItemNotFound:
        raise HTTPException(status_code=404, detail="item not found")
    except StorageUnavailable:
        raise HTTPException(status_code=503, detail="store unavailable")
    return item.model_dump(mode="json")


@router.get("/{asset_id}/rank")
async def get_rank(
    asset_id: int = Path(..., ge=0, le=U64_MAX),
    store: ItemStore = Depends(get_store),
) -> dict[str, int]:
    """Low/high wear rank; sides beyond the scan cap (or unknown assets) are omitted."""
    try:
        rank = await store.get_rank(asset_id)
    except StorageUnavailable:
        raise HTTPException(status_code=503, detail="store unavailable")
    return rank.model_dump(exclude_none=True)
