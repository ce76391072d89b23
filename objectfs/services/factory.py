"""Process-wide construction of the configured object store and services."""

from __future__ import annotations

import logging
from functools import lru_cache

from objectfs.core.config import Settings, get_settings

from .files import FileService
from .local import LocalObjectStore
from .namespace import NamespaceTranslator
from .object_store import ObjectStore
from .s3 import S3ObjectStore

logger = logging.getLogger(__name__)


def create_object_store(settings: Settings | None = None) -> ObjectStore:
    """Build the object store selected by ``settings.storage_backend``."""

    config = settings or get_settings()
    if config.storage_backend == "local":
        logger.info("Using local object store at %s", config.local_storage_root)
        return LocalObjectStore(config.local_storage_root)

    logger.info(
        "Using S3 object store bucket '%s' at %s",
        config.s3_bucket,
        config.s3_endpoint_url or "default AWS endpoint",
    )
    return S3ObjectStore.from_settings(config)


@lru_cache
def get_object_store() -> ObjectStore:
    """Return the single object store shared by every request."""
    return create_object_store(get_settings())


@lru_cache
def get_file_service() -> FileService:
    """FastAPI dependency returning the process-wide file service."""
    return FileService(NamespaceTranslator(get_object_store()))


__all__ = ["create_object_store", "get_file_service", "get_object_store"]
