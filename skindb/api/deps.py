from __future__ import annotations

from typing import cast

from fastapi import Request

from ..store import ItemStore


def get_store(request: Request) -> ItemStore:
    return cast(ItemStore, request.app.state.store)
