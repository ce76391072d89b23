"""Object store port: the flat key/blob capability the namespace layer relies on."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO


@dataclass(frozen=True, slots=True)
class ObjectListing:
    """One page of a delimiter listing."""

    common_prefixes: tuple[str, ...] = ()
    keys: tuple[str, ...] = ()
    next_cursor: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.common_prefixes and not self.keys


class ObjectStore(ABC):
    """Abstract base for key/blob stores backing the simulated filesystem.

    Implementations translate their native failures into the exceptions from
    :mod:`objectfs.services.errors`; any retry policy lives here as well.
    """

    name: str = "object-store"

    @abstractmethod
    def list_prefix(
        self,
        prefix: str,
        *,
        delimiter: str | None,
        cursor: str | None,
        page_size: int,
    ) -> ObjectListing:
        """
        List entries stored under ``prefix``.

        Args:
            prefix: Key prefix to filter on ("" for the whole store).
            delimiter: When set, keys containing the delimiter past the prefix
                are folded into ``common_prefixes`` one level deep.
            cursor: Continuation token returned by a previous page.
            page_size: Maximum number of prefixes plus keys to return.

        Returns:
            ObjectListing with the page and the next cursor, if any.
        """

    @abstractmethod
    def head_object(self, key: str) -> bool:
        """Return True if an object is stored at exactly ``key``."""

    @abstractmethod
    def get_object(self, key: str, destination: BinaryIO) -> int:
        """Write the object body into ``destination`` and return the byte count.

        Raises:
            ResourceNotFoundError: If no object is stored at ``key``.
        """

    @abstractmethod
    def put_object(
        self,
        key: str,
        content: BinaryIO,
        *,
        content_type: str | None,
        length: int,
    ) -> None:
        """Create or overwrite the object at ``key``."""

    @abstractmethod
    def ensure_ready(self) -> None:
        """Prepare the backend for use (called once at startup)."""


__all__ = ["ObjectListing", "ObjectStore"]
