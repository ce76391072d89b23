"""Object store backed by a directory on the local filesystem.

Keys map to paths below the storage root; ``a/b/c.txt`` is stored as
``<root>/a/b/c.txt``. Directories only exist to hold files, so a directory
with no file beneath it is invisible to listings, matching the behaviour of
flat object stores.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterator

from .errors import (
    BackendRejectedError,
    BackendUnavailableError,
    ResourceNotFoundError,
)
from .object_store import ObjectListing, ObjectStore

logger = logging.getLogger(__name__)

_SEPARATOR = "/"
_CHUNK_SIZE = 32 * 1024
_UPLOAD_PREFIX = ".upload-"


def _is_unsafe(key: str) -> bool:
    if "\x00" in key or "\\" in key:
        return True
    if key.startswith(_SEPARATOR) or key.startswith("~"):
        return True
    segments = key.split(_SEPARATOR)
    if segments[-1] == "":
        segments.pop()
    return any(segment in {"", ".", ".."} for segment in segments)


class LocalObjectStore(ObjectStore):
    """Filesystem implementation of :class:`ObjectStore`."""

    name = "local"

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def _path_for(self, key: str) -> Path:
        if not key or _is_unsafe(key):
            raise BackendRejectedError(f"Invalid key for local storage: '{key}'")
        path = (self.root / key).resolve()
        try:
            path.relative_to(self.root)
        except ValueError as exc:
            raise BackendRejectedError(f"Key resolves outside storage root: '{key}'") from exc
        return path

    def _has_files(self, directory: Path) -> bool:
        for _, _, files in os.walk(directory):
            if any(not name.startswith(_UPLOAD_PREFIX) for name in files):
                return True
        return False

    def _iter_files(self, directory: Path, key_prefix: str) -> Iterator[str]:
        for dirpath, _, files in os.walk(directory):
            relative = Path(dirpath).relative_to(directory).as_posix()
            base = key_prefix if relative == "." else f"{key_prefix}{relative}{_SEPARATOR}"
            for name in files:
                if name.startswith(_UPLOAD_PREFIX):
                    continue
                yield f"{base}{name}"

    def _entries(self, prefix: str, delimiter: str | None) -> list[tuple[str, bool]]:
        """Return sorted ``(key, is_prefix)`` pairs matching ``prefix``."""

        parent, _, fragment = prefix.rpartition(_SEPARATOR)
        key_prefix = f"{parent}{_SEPARATOR}" if parent else ""
        directory = self._path_for(parent) if parent else self.root
        if not directory.is_dir():
            return []

        entries: list[tuple[str, bool]] = []
        for child in directory.iterdir():
            if not child.name.startswith(fragment) or child.name.startswith(_UPLOAD_PREFIX):
                continue
            key = f"{key_prefix}{child.name}"
            if child.is_file():
                entries.append((key, False))
            elif child.is_dir():
                if delimiter:
                    if self._has_files(child):
                        entries.append((f"{key}{_SEPARATOR}", True))
                else:
                    entries.extend(
                        (nested, False)
                        for nested in self._iter_files(child, f"{key}{_SEPARATOR}")
                    )
        entries.sort(key=lambda entry: entry[0].encode("utf-8"))
        return entries

    def list_prefix(
        self,
        prefix: str,
        *,
        delimiter: str | None,
        cursor: str | None,
        page_size: int,
    ) -> ObjectListing:
        if delimiter not in (None, "", _SEPARATOR):
            raise BackendRejectedError(f"Unsupported delimiter for local storage: '{delimiter}'")
        if prefix and _is_unsafe(prefix):
            raise BackendRejectedError(f"Invalid prefix for local storage: '{prefix}'")

        try:
            entries = self._entries(prefix, delimiter or None)
        except OSError as exc:
            logger.error("Failed listing local prefix '%s': %s", prefix, exc)
            raise BackendUnavailableError(f"Unable to list prefix '{prefix}'") from exc

        if cursor:
            marker = cursor.encode("utf-8")
            entries = [entry for entry in entries if entry[0].encode("utf-8") > marker]

        page = entries[:page_size]
        next_cursor = page[-1][0] if len(entries) > page_size else None
        return ObjectListing(
            common_prefixes=tuple(key for key, is_prefix in page if is_prefix),
            keys=tuple(key for key, is_prefix in page if not is_prefix),
            next_cursor=next_cursor,
        )

    def head_object(self, key: str) -> bool:
        if key.endswith(_SEPARATOR):
            return False
        return self._path_for(key).is_file()

    def get_object(self, key: str, destination: BinaryIO) -> int:
        path = self._path_for(key)
        written = 0
        try:
            with path.open("rb") as source:
                while chunk := source.read(_CHUNK_SIZE):
                    destination.write(chunk)
                    written += len(chunk)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            logger.warning("Object not found: %s", key)
            raise ResourceNotFoundError(key) from exc
        except OSError as exc:
            logger.error("Failed reading local object '%s': %s", key, exc)
            raise BackendUnavailableError(f"Unable to read '{key}'") from exc
        return written

    def put_object(
        self,
        key: str,
        content: BinaryIO,
        *,
        content_type: str | None,
        length: int,
    ) -> None:
        if key.endswith(_SEPARATOR):
            raise BackendRejectedError(f"Local storage cannot hold folder placeholder '{key}'")
        path = self._path_for(key)
        if path.is_dir():
            raise BackendRejectedError(f"Key '{key}' conflicts with an existing folder")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except (FileExistsError, NotADirectoryError) as exc:
            raise BackendRejectedError(f"Key '{key}' nests under an existing file") from exc
        except OSError as exc:
            logger.error("Failed preparing local folder for '%s': %s", key, exc)
            raise BackendUnavailableError(f"Unable to store '{key}'") from exc

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=_UPLOAD_PREFIX)
        try:
            with os.fdopen(fd, "wb") as handle:
                shutil.copyfileobj(content, handle, _CHUNK_SIZE)
            os.replace(tmp_name, path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            logger.error("Failed writing local object '%s': %s", key, exc)
            raise BackendUnavailableError(f"Unable to store '{key}'") from exc
        logger.info("Stored %s bytes at %s", length, path)

    def ensure_ready(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Failed creating storage root '%s': %s", self.root, exc)
            raise BackendUnavailableError(f"Unable to prepare storage root '{self.root}'") from exc


__all__ = ["LocalObjectStore"]
