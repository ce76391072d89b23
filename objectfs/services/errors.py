"""Error taxonomy shared by the object store adapters and the namespace layer."""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for every failure surfaced by the storage layer."""

    code = "STORAGE_ERROR"
    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidArgumentError(StorageError):
    """Raised when a required input is missing or malformed."""

    code = "INVALID_ARGUMENT"
    status_code = 400


class ResourceNotFoundError(StorageError):
    """Raised when a key or prefix does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, key: str, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"Resource not found: {key}")


class UnsupportedOperationError(StorageError):
    """Raised when an operation does not apply to the resource's type."""

    code = "UNSUPPORTED_OPERATION"
    status_code = 400


class BackendRejectedError(StorageError):
    """Raised when the backing store answered with a service-level error."""

    code = "BACKEND_REJECTED"

    def __init__(
        self,
        message: str,
        *,
        backend_code: str | None = None,
        backend_status: int | None = None,
    ) -> None:
        self.backend_code = backend_code
        self.backend_status = backend_status
        super().__init__(message)

    @property
    def status_code(self) -> int:  # type: ignore[override]
        if self.backend_status is not None and 400 <= self.backend_status < 600:
            return self.backend_status
        return 500


class BackendUnavailableError(StorageError):
    """Raised when the backing store cannot be reached."""

    code = "BACKEND_UNAVAILABLE"


__all__ = [
    "StorageError",
    "InvalidArgumentError",
    "ResourceNotFoundError",
    "UnsupportedOperationError",
    "BackendRejectedError",
    "BackendUnavailableError",
]
