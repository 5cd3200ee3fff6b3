"""
Dependency wiring for the FastAPI app.

Backends are built once by the app factory and kept on ``app.state``;
handlers receive them through the ``get_*`` dependencies below.
"""

from __future__ import annotations

import logging

from fastapi import Request

from sponsorconnect.config import Settings
from sponsorconnect.db import DbClient, InMemoryDbClient
from sponsorconnect.file_db import FileDbClient
from sponsorconnect.profile import FileProfileStore, InMemoryProfileStore, ProfileStore
from sponsorconnect.sql_db import SqlDbClient
from sponsorconnect.storage import InMemoryStorageClient, S3StorageClient, StorageClient

logger = logging.getLogger(__name__)


def build_db_client(settings: Settings) -> DbClient:
    backend = settings.resolved_storage_backend
    if backend == "sql":
        db: DbClient = SqlDbClient(settings.database_url or "")
    elif backend == "file":
        db = FileDbClient(settings.data_dir)
    else:
        db = InMemoryDbClient()
    logger.info("Using %s storage backend", db.name)
    return db


def build_profile_store(settings: Settings) -> ProfileStore:
    if settings.resolved_storage_backend == "memory":
        return InMemoryProfileStore()
    return FileProfileStore(settings.data_dir)


def build_storage_client(settings: Settings) -> StorageClient:
    if not settings.image_bucket:
        return InMemoryStorageClient()
    return S3StorageClient(
        bucket=settings.image_bucket,
        region=settings.image_region or "",
        endpoint=settings.image_endpoint or "",
        access_key_id=settings.aws_access_key_id or "",
        secret_access_key=settings.aws_secret_access_key or "",
        public_base_url=settings.image_public_base_url or "",
    )


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_db_client(request: Request) -> DbClient:
    return request.app.state.db


def get_profile_store(request: Request) -> ProfileStore:
    return request.app.state.profile_store


def get_storage_client(request: Request) -> StorageClient:
    return request.app.state.storage
