"""Scoped handle for files materialized from the object store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Iterator

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 32 * 1024


@dataclass(slots=True)
class TransientFile:
    """A downloaded object living in a temporary file owned by the caller.

    Use it as a context manager; the file is removed when the block exits,
    whether normally or through an exception.
    """

    path: Path
    name: str
    size: int

    def iter_chunks(self, chunk_size: int = _CHUNK_SIZE) -> Iterator[bytes]:
        with self.path.open("rb") as handle:
            while chunk := handle.read(chunk_size):
                yield chunk

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def close(self) -> None:
        """Remove the temporary file; safe to call more than once."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:  # pragma: no cover - platform dependent
            logger.warning("Failed removing temporary file '%s': %s", self.path, exc)

    def __enter__(self) -> "TransientFile":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["TransientFile"]
