"""Value types describing nodes of the simulated folder hierarchy."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

SEPARATOR = "/"


class ResourceType(str, Enum):
    """Kinds of node exposed by the namespace."""

    FILE = "file"
    FOLDER = "folder"


def extract_name(key: str) -> str:
    """Return the last path segment of ``key``.

    One trailing separator is ignored, so ``"a/b/"`` yields ``"b"`` and
    ``"a/b/c.txt"`` yields ``"c.txt"``. Keys without a separator are returned
    unchanged.
    """

    trimmed = key[: -len(SEPARATOR)] if key.endswith(SEPARATOR) else key
    _, _, name = trimmed.rpartition(SEPARATOR)
    return name


def infer_resource_type(key: str) -> ResourceType:
    """Folders are keys ending with the separator; everything else is a file."""

    return ResourceType.FOLDER if key.endswith(SEPARATOR) else ResourceType.FILE


class Resource(BaseModel):
    """A file or a virtual folder, identified by its full key."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Full key in the backing store's flat namespace")
    type: ResourceType

    @computed_field  # type: ignore[prop-decorator]
    @property
    def name(self) -> str:
        """Display name derived from ``id``."""
        return extract_name(self.id)

    @classmethod
    def from_key(cls, key: str) -> "Resource":
        """Build a resource whose type is inferred from the key's shape."""

        return cls(id=key, type=infer_resource_type(key))

    @property
    def is_folder(self) -> bool:
        return self.type is ResourceType.FOLDER


class ListResult(BaseModel):
    """One page of a folder listing."""

    model_config = ConfigDict(frozen=True)

    resources: tuple[Resource, ...] = ()
    cursor: str | None = Field(
        default=None,
        description="Opaque continuation token; absent on the final page",
    )


__all__ = [
    "SEPARATOR",
    "ResourceType",
    "Resource",
    "ListResult",
    "extract_name",
    "infer_resource_type",
]
