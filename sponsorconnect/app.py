"""
FastAPI application entry point for the SponsorConnect backend.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from sponsorconnect.config import Settings, get_settings
from sponsorconnect.db import DbClient, StorageError
from sponsorconnect.dependencies import (
    build_db_client,
    build_profile_store,
    build_storage_client,
)
from sponsorconnect.profile import ProfileStore
from sponsorconnect.routes import router
from sponsorconnect.seed import seed_sample_sponsorships
from sponsorconnect.storage import ImageUploadError, StorageClient

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _validation_message(exc)})

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"message": "Storage failure"})

    @app.exception_handler(ImageUploadError)
    async def upload_error(request: Request, exc: ImageUploadError):
        logger.error("Image upload failed: %s", exc)
        return JSONResponse(status_code=502, content={"message": "Image upload failed"})


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[DbClient] = None,
    profile_store: Optional[ProfileStore] = None,
    storage: Optional[StorageClient] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="SponsorConnect Backend", version="0.1.0")
    app.state.settings = settings
    app.state.db = db if db is not None else build_db_client(settings)
    app.state.profile_store = (
        profile_store if profile_store is not None else build_profile_store(settings)
    )
    app.state.storage = storage if storage is not None else build_storage_client(settings)

    if settings.seed_sample_data:
        seed_sample_sponsorships(app.state.db)

    _install_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
