"""Endpoints for browsing, downloading, and uploading stored files."""

from __future__ import annotations

import logging
import os
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask

from objectfs.schemas.resource import ListResult, Resource
from objectfs.services import FileService, InvalidArgumentError, get_file_service

router = APIRouter(tags=["Files"])
logger = logging.getLogger(__name__)

_CURSOR_DESCRIPTION = "Pagination cursor returned by the previous page"


def _content_disposition(filename: str) -> str:
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "_") or "download"
    header = f'attachment; filename="{fallback}"'
    if fallback != filename:
        header = f"{header}; filename*=UTF-8''{quote(filename, safe='')}"
    return header


def _content_length(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    stream = upload.file
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _download_response(service: FileService, resource_id: str) -> StreamingResponse:
    transient = service.download(resource_id)

    def iterator():
        with transient:
            yield from transient.iter_chunks()

    # The background task also runs when the body is never pulled.
    try:
        headers = {
            "Content-Disposition": _content_disposition(transient.name),
            "Content-Length": str(transient.size),
        }
        return StreamingResponse(
            iterator(),
            media_type="application/octet-stream",
            headers=headers,
            background=BackgroundTask(transient.close),
        )
    except Exception:
        transient.close()
        raise


@router.get("/list", response_model=ListResult)
def list_root(
    cursor: str | None = Query(default=None, description=_CURSOR_DESCRIPTION),
    service: FileService = Depends(get_file_service),
) -> ListResult:
    """List the top level of the store."""

    logger.info("Listing root with cursor: %s", cursor)
    return service.list_folder(None, cursor)


@router.get("/list/folder", response_model=ListResult)
def list_folder_by_query(
    folder_id: str = Query(..., alias="folderId", description="Key of the folder to list"),
    cursor: str | None = Query(default=None, description=_CURSOR_DESCRIPTION),
    service: FileService = Depends(get_file_service),
) -> ListResult:
    """List folder contents, addressing the folder through a query parameter."""

    logger.info("Listing contents of folder: %s with cursor: %s", folder_id, cursor)
    return service.list_folder(folder_id, cursor)


@router.get("/list/{folder_id:path}", response_model=ListResult)
def list_folder(
    folder_id: str,
    cursor: str | None = Query(default=None, description=_CURSOR_DESCRIPTION),
    service: FileService = Depends(get_file_service),
) -> ListResult:
    """List folder contents; the folder key must be percent-encoded.

    An empty key (`/list/`) lists the root.
    """

    logger.info("Listing contents of folder: %s with cursor: %s", folder_id, cursor)
    return service.list_folder(folder_id or None, cursor)


@router.get("/resource", response_model=Resource)
def get_resource_by_query(
    resource_id: str = Query(..., alias="id", description="Key of the file or folder"),
    service: FileService = Depends(get_file_service),
) -> Resource:
    """Return metadata for a file or folder."""

    logger.info("Retrieving metadata for resource: %s", resource_id)
    return service.get_resource(resource_id)


@router.get("/resource/{resource_id:path}", response_model=Resource)
def get_resource(
    resource_id: str,
    service: FileService = Depends(get_file_service),
) -> Resource:
    """Return metadata for a file or folder addressed in the path."""

    logger.info("Retrieving metadata for resource: %s", resource_id)
    return service.get_resource(resource_id)


@router.get("/download")
def download_by_query(
    resource_id: str = Query(..., alias="id", description="Key of the file to download"),
    service: FileService = Depends(get_file_service),
) -> StreamingResponse:
    """Download a file as an attachment."""

    logger.info("Downloading file with key: %s", resource_id)
    return _download_response(service, resource_id)


@router.get("/download/{resource_id:path}")
def download(
    resource_id: str,
    service: FileService = Depends(get_file_service),
) -> StreamingResponse:
    """Download a file addressed in the path as an attachment."""

    logger.info("Downloading file with key: %s", resource_id)
    return _download_response(service, resource_id)


@router.post("/upload", response_class=PlainTextResponse)
def upload_file(
    file: UploadFile | None = File(default=None, description="The file to upload"),
    key: str | None = Form(default=None, description="Key under which the file is stored"),
    service: FileService = Depends(get_file_service),
) -> str:
    """Upload a file, overwriting any object already stored at ``key``."""

    logger.info("Uploading file with key: %s", key)
    if file is None:
        raise InvalidArgumentError("A file part is required")

    service.upload_file(key or "", file.file, file.content_type, _content_length(file))
    return f"File uploaded successfully with key: {key}"
