"""Orders API FastAPI application.

Serves the order store over HTTP. The key-value backend is opened once per
process in the lifespan handler and shared by every request through
``app.state.backend``.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 3000
    python src/server.py
"""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.api import order_router
from ordering.config import Settings
from ordering.exceptions import (
    Conflict,
    InvalidStatus,
    InvalidTransition,
    OrderError,
    OrderNotFound,
    StorageError,
)
from ordering.store import open_backend
from ordering.store.port import KeyValueBackend
from ordering.utils.logging import add_context, clear_context, get_logger

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Error kind → HTTP status
# ---------------------------------------------------------------------------
_ERROR_STATUS_CODES = [
    (OrderNotFound, 404),
    (InvalidStatus, 400),
    (InvalidTransition, 400),
    (Conflict, 409),
    (StorageError, 500),
]


def _status_code_for(exc: OrderError) -> int:
    for error_class, status_code in _ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 500


async def order_error_handler(request: Request, exc: OrderError) -> JSONResponse:
    status_code = _status_code_for(exc)
    if status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=str(exc), exc_info=exc)
        message = "Internal storage error"
    else:
        logger.warning("request_rejected", path=request.url.path, status_code=status_code, error=str(exc))
        message = str(exc)
    return JSONResponse(status_code=status_code, content={"error": message})


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the backend on startup and close it on shutdown.

    A backend that does not answer the startup ping aborts startup.
    """
    owns_backend = app.state.backend is None
    app.state.backend = open_backend(app.state.settings, app.state.backend)
    logger.info("backend_ready", backend=app.state.settings.backend)

    yield

    if owns_backend:
        app.state.backend.close()
        app.state.backend = None
        logger.info("backend_closed")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
def create_app(settings: Settings | None = None, backend: KeyValueBackend | None = None) -> FastAPI:
    """Build the application.

    Pass ``backend`` to share an already-open handle (tests do this); the
    app then leaves closing it to the caller.
    """
    app = FastAPI(
        title="Orders API",
        description="Order storage and fulfillment lifecycle over a key-value store",
        lifespan=lifespan,
    )
    app.state.settings = settings or Settings.from_env()
    app.state.backend = backend

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        """Log every request with its status and duration."""
        clear_context()
        add_context(request_id=request.headers.get("x-request-id") or uuid.uuid4().hex)
        started = time.perf_counter()

        response = await call_next(request)

        logger.info(
            "request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response

    app.add_exception_handler(OrderError, order_error_handler)

    app.include_router(order_router)

    # -----------------------------------------------------------------------
    # Health / root
    # -----------------------------------------------------------------------
    @app.get("/")
    async def root():
        return JSONResponse(content={"status": "ok"})

    @app.get("/health")
    def health(request: Request):
        settings = request.app.state.settings
        try:
            request.app.state.backend.ping()
        except StorageError as exc:
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "backend": {"name": settings.backend, "healthy": False, "error": str(exc)}},
            )
        return JSONResponse(content={"status": "ok", "backend": {"name": settings.backend, "healthy": True}})

    return app


app = create_app()
