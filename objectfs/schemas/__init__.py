"""Pydantic schemas used by the FastAPI application."""

from .errors import ErrorResponse
from .resource import (
    SEPARATOR,
    ListResult,
    Resource,
    ResourceType,
    extract_name,
    infer_resource_type,
)

__all__ = [
    "SEPARATOR",
    "ErrorResponse",
    "ListResult",
    "Resource",
    "ResourceType",
    "extract_name",
    "infer_resource_type",
]
