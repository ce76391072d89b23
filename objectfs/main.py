import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from objectfs.core.config import get_settings
from objectfs.monitoring import MetricsMiddleware, record_storage_error
from objectfs.monitoring import router as monitoring_router
from objectfs.routers import files, health
from objectfs.schemas.errors import ErrorResponse
from objectfs.services import StorageError, get_object_store


logger = logging.getLogger(__name__)
settings = get_settings()
logging.basicConfig(level=settings.log_level.upper())


async def wait_for_store() -> None:
    """Prepare the object store, retrying while the backend starts up."""

    store = get_object_store()
    delay = settings.startup_initial_delay_seconds
    for attempt in range(1, settings.startup_max_attempts + 1):
        try:
            await asyncio.to_thread(store.ensure_ready)
            if attempt > 1:
                logger.info("Connected to %s store after %d attempts", store.name, attempt)
            return
        except StorageError as exc:
            if attempt == settings.startup_max_attempts:
                logger.error(
                    "Failed to prepare %s store after %d attempts: %s",
                    store.name,
                    attempt,
                    exc,
                )
                raise
            logger.warning(
                "%s store not ready (attempt %d/%d): %s",
                store.name,
                attempt,
                settings.startup_max_attempts,
                exc,
            )
            await asyncio.sleep(delay)
            delay *= 2


@asynccontextmanager
async def lifespan(app: FastAPI):
    await wait_for_store()
    yield


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

app.add_middleware(MetricsMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.resolved_cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(files.router)
app.include_router(health.router)
app.include_router(monitoring_router)


@app.exception_handler(StorageError)
async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
    """Render every storage failure as ``{code, message, timestamp}``."""

    status_code = exc.status_code
    if status_code >= 500:
        logger.error("%s %s failed with %s: %s", request.method, request.url.path, exc.code, exc)
    else:
        logger.warning("%s %s rejected with %s: %s", request.method, request.url.path, exc.code, exc)
    record_storage_error(exc.code)

    body = ErrorResponse(code=exc.code, message=exc.message, timestamp=datetime.now(timezone.utc))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Explicit health endpoint for readiness probes."""
    return {
        "status": "ok",
        "service": settings.app_name,
        "version": settings.app_version,
    }
