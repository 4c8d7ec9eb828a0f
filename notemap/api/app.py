"""FastAPI application factory.

Lifespan
--------
On startup the app builds the storage engine named by
``settings.storage_backend`` (unless one was injected into
:func:`create_app`) and shares it across requests via
``request.app.state.storage``.  On shutdown it closes the engine it built.

Routers
-------
    /api/notes        Note CRUD, note tags, note connections
    /api/tags         Tag CRUD
    /api/connections  Connection CRUD
    /api/graph        Whole graph payload
    /api/health       Liveness

Errors
------
Every error body is ``{"message": ...}``.  Request validation failures are
reported as 400, unknown ids as 404, and anything unexpected as a generic
500 that never exposes internals.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notemap.api.routers import connections as connections_router
from notemap.api.routers import graph as graph_router
from notemap.api.routers import notes as notes_router
from notemap.api.routers import tags as tags_router
from notemap.config import settings
from notemap.db import NoteGraphStorage, create_storage
from notemap.errors import NoteMapError
from notemap.logging_setup import configure_logging

logger = logging.getLogger(__name__)

_INVALID_MESSAGES = {
    "notes": "Invalid note data",
    "tags": "Invalid tag data",
    "connections": "Invalid connection data",
}


def _invalid_message(path: str) -> str:
    parts = path.strip("/").split("/")
    if len(parts) < 2 or parts[0] != "api":
        return "Invalid request data"
    if parts[1] == "notes" and len(parts) >= 4 and parts[3] == "tags":
        return "Invalid note tag data"
    return _INVALID_MESSAGES.get(parts[1], "Invalid request data")


def register_error_handlers(app: FastAPI) -> None:
    """Translate exceptions into ``{"message": ...}`` JSON responses."""

    @app.exception_handler(NoteMapError)
    async def notemap_error(request: Request, exc: NoteMapError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
            return JSONResponse({"message": "Internal server error"}, status_code=500)
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            {
                "message": _invalid_message(request.url.path),
                "errors": jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
            },
            status_code=400,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse({"message": str(exc.detail)}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"message": "Internal server error"}, status_code=500)


def create_app(storage: Optional[NoteGraphStorage] = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Args:
        storage: Use this engine instead of building one from settings.
            The caller keeps ownership and is responsible for closing it.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        owned = storage is None
        engine = create_storage() if owned else storage
        app.state.storage = engine
        logger.info("notemap API started with %s", type(engine).__name__)
        try:
            yield
        finally:
            if owned:
                engine.close()

    app = FastAPI(
        title="notemap API",
        description=(
            "REST interface for the notemap note graph: notes positioned on a "
            "canvas, directed connections between them, and colored tags."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    if storage is not None:
        app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(notes_router.router, prefix="/api/notes", tags=["notes"])
    app.include_router(tags_router.router, prefix="/api/tags", tags=["tags"])
    app.include_router(
        connections_router.router, prefix="/api/connections", tags=["connections"]
    )
    app.include_router(graph_router.router, prefix="/api", tags=["graph"])

    return app
