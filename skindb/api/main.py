from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..db import backend_from_settings
from ..logging import configure_logging, get_logger, request_id_middleware
from ..store import ItemStore
from .routes import health, items, stickers


def create_app(store: ItemStore | None = None) -> FastAPI:
    """Build the API around ``store``.

    Without a store, one is built from settings at startup and closed at
    shutdown; a store passed in stays owned by the caller.
    """
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = store is None
        app.state.store = store if store is not None else ItemStore(backend_from_settings())
        get_logger().info("store_opened", backend=type(app.state.store.backend).__name__)
        try:
            yield
        finally:
            if owned:
                await app.state.store.close()

    app = FastAPI(title="Skin DB", version=__version__, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_id_middleware)

    app.include_router(health.router)
    app.include_router(items.router)
    app.include_router(stickers.router)

    return app


app = create_app()
