"""
FastAPI Web Application - TheHub Reviews & Votes Endpoint
==========================================================

One endpoint, two styles of request:
- GET  /exec?action=...        read-style (checkUsername, getVotes, ...)
- POST /exec  {"action": ...}  write-style (createUsername, vote, ...)

Every response is HTTP 200 with a {success, message, ...} body; callers
inspect `success`, not the status code. CORS is restricted to the one
storefront origin.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from ..application import RequestRouter
from ..domain.stores import Storage
from ..infrastructure.config import Settings, get_settings
from ..infrastructure.persistence import create_storage

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _cors_headers(settings: Settings) -> dict:
    return {
        "Access-Control-Allow-Origin": settings.cors.allowed_origin,
        "Access-Control-Allow-Methods": ", ".join(settings.cors.allowed_methods),
        "Access-Control-Allow-Headers": ", ".join(settings.cors.allowed_headers),
        "Access-Control-Max-Age": str(settings.cors.max_age),
    }


def create_app(settings: Optional[Settings] = None, storage: Optional[Storage] = None) -> FastAPI:
    """
    Build the application.

    Storage defaults to the backend named by HUB_STORAGE and is created
    when the app starts, so importing this module never touches disk.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        for issue in settings.validate():
            logger.warning(issue)
        backend = storage or create_storage(settings.storage)
        app.state.storage = backend
        app.state.router = RequestRouter(backend)
        logger.info(f"Endpoint ready ({backend.name} storage)")
        yield

    app = FastAPI(
        title="TheHub Reviews",
        description="Votes, reviews and usernames for the TheHub JA storefront",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors.allowed_origin],
        allow_methods=list(settings.cors.allowed_methods),
        allow_headers=list(settings.cors.allowed_headers),
        max_age=settings.cors.max_age,
    )

    # Handlers are synchronous, so requests are handled one at a time on the event loop

    @app.get("/")
    @app.get("/exec")
    async def do_get(request: Request):
        result = request.app.state.router.handle_get(dict(request.query_params))
        return JSONResponse(result)

    @app.post("/")
    @app.post("/exec")
    async def do_post(request: Request):
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(FORM_CONTENT_TYPES):
            body = dict(await request.form())
        else:
            body = await request.body()
        result = request.app.state.router.handle_post(body)
        return JSONResponse(result)

    @app.options("/")
    @app.options("/exec")
    async def do_options():
        return Response(content="", headers=_cors_headers(settings))

    @app.get("/health")
    async def health(request: Request):
        return {"status": "ok", "storage": request.app.state.storage.name}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
