"""Public file operations consumed by the HTTP layer."""

from __future__ import annotations

import logging
from typing import BinaryIO

from objectfs.schemas.resource import ListResult, Resource

from .namespace import NamespaceTranslator
from .tempfiles import TransientFile

logger = logging.getLogger(__name__)


class FileService:
    """Facade over :class:`NamespaceTranslator` keyed by raw resource ids."""

    def __init__(self, translator: NamespaceTranslator) -> None:
        self.translator = translator

    def list_folder(self, folder_id: str | None = None, cursor: str | None = None) -> ListResult:
        """List the root (``folder_id`` of ``None``) or an existing folder."""

        parent = None
        if folder_id is not None:
            parent = self.translator.get_resource(folder_id)
        return self.translator.list_folder(parent, cursor)

    def get_resource(self, resource_id: str | None) -> Resource:
        return self.translator.get_resource(resource_id)

    def get_as_file(self, resource: Resource) -> TransientFile:
        return self.translator.get_as_file(resource)

    def download(self, resource_id: str | None) -> TransientFile:
        """Resolve ``resource_id`` and materialize it into a temporary file."""

        resource = self.translator.get_resource(resource_id)
        return self.translator.get_as_file(resource)

    def upload_file(
        self,
        key: str,
        content: BinaryIO,
        content_type: str | None,
        length: int,
    ) -> None:
        self.translator.upload_file(key, content, content_type, length)


__all__ = ["FileService"]
