"""Request and storage-error counters rendered in the Prometheus text format."""

from __future__ import annotations

import threading
import time
from collections import Counter, defaultdict
from typing import Iterable

_PREFIX = "objectfs"

RequestKey = tuple[str, str, str]

_lock = threading.Lock()
_requests: Counter[RequestKey] = Counter()
_duration_sums: defaultdict[tuple[str, str], float] = defaultdict(float)
_storage_errors: Counter[str] = Counter()


def _route_label(scope) -> str:
    # Object keys live in the URL path; label by route template to keep cardinality bounded.
    route = scope.get("route")
    return getattr(route, "path", None) or scope.get("path", "")


def _observe(method: str, path: str, status: int, duration: float) -> None:
    with _lock:
        _requests[(method, path, str(status))] += 1
        _duration_sums[(method, path)] += duration


def record_storage_error(code: str) -> None:
    """Count a storage failure rendered to a client, by taxonomy code."""

    with _lock:
        _storage_errors[code] += 1


class MetricsMiddleware:
    """ASGI middleware counting requests per route template and status."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):  # type: ignore[override]
        if scope.get("type") != "http" or scope.get("path") == "/metrics":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        status = 500

        async def send_wrapper(message):
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            status = 500
            raise
        finally:
            _observe(
                scope.get("method", "UNKNOWN"),
                _route_label(scope),
                status,
                time.perf_counter() - start_time,
            )


def _labels(**labels: str) -> str:
    return ",".join(f'{name}="{value}"' for name, value in labels.items())


def _family(name: str, help_text: str, samples: Iterable[tuple[str, object]]) -> list[str]:
    lines = [f"# HELP {_PREFIX}_{name} {help_text}", f"# TYPE {_PREFIX}_{name} counter"]
    lines.extend(f"{_PREFIX}_{name}{{{labels}}} {value}" for labels, value in samples)
    return lines


def render_metrics() -> str:
    """Render collected metrics in the Prometheus exposition format."""

    with _lock:
        requests = sorted(_requests.items())
        durations = sorted(_duration_sums.items())
        storage_errors = sorted(_storage_errors.items())

    counts: Counter[tuple[str, str]] = Counter()
    for (method, path, _), value in requests:
        counts[(method, path)] += value

    lines = _family(
        "requests_total",
        "Total HTTP requests",
        (
            (_labels(method=method, path=path, status=status), value)
            for (method, path, status), value in requests
        ),
    )
    lines += _family(
        "request_errors_total",
        "HTTP requests answered with a 5xx status",
        (
            (_labels(method=method, path=path, status=status), value)
            for (method, path, status), value in requests
            if int(status) >= 500
        ),
    )
    lines += _family(
        "storage_errors_total",
        "Storage failures by error code",
        ((_labels(code=code), value) for code, value in storage_errors),
    )
    lines += _family(
        "request_duration_seconds_sum",
        "Total time spent handling requests",
        ((_labels(method=method, path=path), total) for (method, path), total in durations),
    )
    lines += _family(
        "request_duration_seconds_count",
        "Total number of timed requests",
        (
            (_labels(method=method, path=path), counts[(method, path)])
            for (method, path), _ in durations
        ),
    )
    return "\n".join(lines) + "\n"


__all__ = ["MetricsMiddleware", "record_storage_error", "render_metrics"]
