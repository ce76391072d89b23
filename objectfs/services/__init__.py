"""Service layer: object store adapters and the namespace built on them."""

from .errors import (
    BackendRejectedError,
    BackendUnavailableError,
    InvalidArgumentError,
    ResourceNotFoundError,
    StorageError,
    UnsupportedOperationError,
)
from .factory import create_object_store, get_file_service, get_object_store
from .files import FileService
from .local import LocalObjectStore
from .namespace import PAGE_SIZE, NamespaceTranslator
from .object_store import ObjectListing, ObjectStore
from .s3 import S3ObjectStore, ensure_bucket, get_s3_client
from .tempfiles import TransientFile

__all__ = [
    # Services
    "FileService",
    "NamespaceTranslator",
    "PAGE_SIZE",
    "TransientFile",
    "create_object_store",
    "get_file_service",
    "get_object_store",
    # Stores
    "ObjectStore",
    "ObjectListing",
    "LocalObjectStore",
    "S3ObjectStore",
    "ensure_bucket",
    "get_s3_client",
    # Exceptions
    "StorageError",
    "InvalidArgumentError",
    "ResourceNotFoundError",
    "UnsupportedOperationError",
    "BackendRejectedError",
    "BackendUnavailableError",
]
