"""Pydantic schema for the structured error body returned by the API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Uniform error payload rendered for every storage failure."""

    code: str = Field(..., description="Stable machine-readable error kind")
    message: str
    timestamp: datetime = Field(..., description="UTC time the error was rendered")


__all__ = ["ErrorResponse"]
