"""Request and storage-error metrics exposed in Prometheus format."""

from .middleware import MetricsMiddleware, record_storage_error
from .router import router

__all__ = ["MetricsMiddleware", "record_storage_error", "router"]
