"""
FastAPI application factory.

Assembles the app, registers routers and error handlers, and wires up
lifecycle events.  The session store is built and checked at startup
and injected into the registry; if the store cannot be reached the
app refuses to start.  Database schema is managed by Alembic — NOT
create_all.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.controllers.admin_controller import router as admin_router
from app.controllers.session_controller import router as session_router
from app.core.config import settings
from app.core.errors import (
    ExpiredError,
    NotFoundError,
    SessionError,
    StorageUnavailableError,
    ValidationError,
)
from app.services.inactivity import InactivityMonitor
from app.services.session_service import SessionRegistry
from app.storage import build_session_store

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# Order matters: the first matching class wins.
_ERROR_STATUS: list[tuple[type[SessionError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ExpiredError, status.HTTP_403_FORBIDDEN),
    (StorageUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def _status_for(exc: SessionError) -> int:
    for error_type, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_registry() -> SessionRegistry:
    return SessionRegistry(
        build_session_store(settings),
        InactivityMonitor(settings.SESSION_INACTIVITY_TIMEOUT_SECONDS),
    )


def create_app(registry: SessionRegistry | None = None) -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.registry = registry

    # ── Register routers ─────────────────────────────────────────────
    app.include_router(session_router)
    app.include_router(admin_router)

    # ── Error handlers ───────────────────────────────────────────────
    @app.exception_handler(SessionError)
    async def session_error_handler(request: Request, exc: SessionError) -> JSONResponse:
        code = _status_for(exc)
        if code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        body: dict = {"detail": exc.message}
        if exc.session_id:
            body["sessionId"] = exc.session_id
        return JSONResponse(status_code=code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Malformed request", "errors": jsonable_encoder(exc.errors())},
        )

    # ── Startup / Shutdown ───────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup() -> None:
        """Build the session store (unless injected) and make sure it answers.

        NOTE: the SQL schema is managed by Alembic migrations.
        Run `alembic upgrade head` before starting the app.
        """
        if app.state.registry is None:
            app.state.registry = build_registry()
        try:
            await app.state.registry.store.ping()
        except StorageUnavailableError:
            logger.critical("Session store unreachable at startup, refusing to start")
            raise
        logger.info(
            "Session store ready (inactivity timeout %ss).",
            app.state.registry.monitor.max_inactivity_seconds,
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        if app.state.registry is not None:
            await app.state.registry.store.close()
            logger.info("Session store closed.")

    # ── Welcome & health ─────────────────────────────────────────────
    @app.get("/", tags=["Health"])
    async def welcome():
        return {"detail": f"Welcome to the {settings.APP_NAME}"}

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
