"""Folder semantics simulated on top of a flat object store.

The backing store only knows keys. Folders are derived from key prefixes:
listing a folder asks the store for one delimiter level below the folder's
key, and a folder exists exactly when something is stored beneath it.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import BinaryIO

from objectfs.schemas.resource import SEPARATOR, ListResult, Resource, ResourceType

from .errors import (
    InvalidArgumentError,
    ResourceNotFoundError,
    StorageError,
    UnsupportedOperationError,
)
from .object_store import ObjectStore
from .tempfiles import TransientFile

logger = logging.getLogger(__name__)

PAGE_SIZE = 20
_TEMP_PREFIX = "objectfs-"
_MAX_SUFFIX_LENGTH = 64


class NamespaceTranslator:
    """Turns prefix listings and key probes into files and folders."""

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    def list_folder(
        self,
        parent: Resource | None = None,
        cursor: str | None = None,
    ) -> ListResult:
        """Return one page of the direct children of ``parent``.

        ``None`` (or a file resource) lists the root. Sub-folders come first,
        then files, each in the order the store returned them. The folder's
        own placeholder object is never reported as its child.
        """

        prefix = parent.id if parent is not None and parent.is_folder else ""
        listing = self.store.list_prefix(
            prefix,
            delimiter=SEPARATOR,
            cursor=cursor or None,
            page_size=PAGE_SIZE,
        )

        folders = [
            Resource(id=common_prefix, type=ResourceType.FOLDER)
            for common_prefix in listing.common_prefixes
        ]
        files = [
            Resource(id=key, type=ResourceType.FILE)
            for key in listing.keys
            if key != prefix
        ]
        logger.debug(
            "Listed prefix '%s': %d folders, %d files, more=%s",
            prefix,
            len(folders),
            len(files),
            listing.next_cursor is not None,
        )
        return ListResult(resources=(*folders, *files), cursor=listing.next_cursor)

    def get_resource(self, resource_id: str | None) -> Resource:
        """Resolve ``resource_id`` to an existing file or folder."""

        if not resource_id:
            raise InvalidArgumentError("Resource ID cannot be empty")

        resource = Resource.from_key(resource_id)
        if resource.is_folder:
            exists = self._folder_exists(resource_id)
        else:
            exists = self.store.head_object(resource_id)

        if not exists:
            raise ResourceNotFoundError(resource_id)
        return resource

    def _folder_exists(self, folder_id: str) -> bool:
        # Folders have no object of their own; one entry beneath the prefix is enough.
        prefix = folder_id if folder_id.endswith(SEPARATOR) else f"{folder_id}{SEPARATOR}"
        listing = self.store.list_prefix(prefix, delimiter=SEPARATOR, cursor=None, page_size=1)
        return not listing.is_empty

    def get_as_file(self, resource: Resource | None) -> TransientFile:
        """Download a file resource into a fresh temporary file.

        The caller owns the returned handle and must close it (or use it as a
        context manager) to remove the file.
        """

        if resource is None:
            raise InvalidArgumentError("Resource cannot be empty")
        if resource.is_folder:
            raise UnsupportedOperationError(
                f"Cannot materialize folder '{resource.id}' as a file content stream"
            )

        suffix = f"-{resource.name[-_MAX_SUFFIX_LENGTH:]}" if resource.name else ""
        try:
            handle = tempfile.NamedTemporaryFile(prefix=_TEMP_PREFIX, suffix=suffix, delete=False)
        except OSError as exc:
            logger.error("Failed creating temporary file for '%s': %s", resource.id, exc)
            raise StorageError("Failed to create temporary file") from exc

        path = Path(handle.name)
        try:
            with handle:
                size = self.store.get_object(resource.id, handle)
        except Exception:
            path.unlink(missing_ok=True)
            raise

        logger.debug("Materialized '%s' into %s (%d bytes)", resource.id, path, size)
        return TransientFile(path=path, name=resource.name, size=size)

    def upload_file(
        self,
        key: str,
        content: BinaryIO,
        content_type: str | None,
        length: int,
    ) -> None:
        """Store ``content`` at ``key``, replacing whatever was there."""

        if not key:
            raise InvalidArgumentError("Upload key cannot be empty")
        if content is None or length <= 0:
            raise InvalidArgumentError("Cannot upload empty content")

        self.store.put_object(key, content, content_type=content_type, length=length)


__all__ = ["PAGE_SIZE", "NamespaceTranslator"]
