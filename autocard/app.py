"""
Application factory - builds FastAPI app with all middleware and routes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from autocard import __version__
from autocard.config import Settings, get_settings, init_settings
from autocard.modules.health import router as health_router
from autocard.modules.render import router as render_router
from autocard.shared.errors import AutoCardError
from autocard.shared.ids import generate_request_id
from autocard.shared.logging import (
    clear_request_context,
    get_logger,
    get_request_context,
    set_request_context,
    setup_logging,
)
from autocard.shared.types import RequestContext

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()

    setup_logging(settings.log_level)
    logger.info("Starting AutoCard...")
    logger.info(f"Storage backend: {settings.storage_backend}")

    yield

    logger.info("AutoCard stopped")


def _request_id() -> str | None:
    ctx = get_request_context()
    return ctx.request_id if ctx else None


def build_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Optional settings override (useful for testing)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()
    else:
        init_settings(settings)

    app = FastAPI(
        title="AutoCard",
        description="Render social media cards from structured content",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request context middleware
    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next: Any) -> Response:
        """Attach request context for logging and tracing."""
        ctx = RequestContext(
            request_id=request.headers.get("X-Request-ID") or generate_request_id(),
            actor=request.headers.get("X-Actor", "anonymous"),
        )
        set_request_context(ctx)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = ctx.request_id
            return response
        finally:
            clear_request_context()

    @app.exception_handler(AutoCardError)
    async def autocard_error_handler(request: Request, exc: AutoCardError) -> JSONResponse:
        """Handle AutoCardError with consistent JSON response."""
        if exc.http_status >= 500:
            logger.error(f"{exc.code}: {exc.message} ({exc.detail})")
        else:
            logger.info(f"Rejected request: {exc.message}")

        content = exc.to_dict()
        content["request_id"] = _request_id()
        return JSONResponse(status_code=exc.http_status, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Method-not-allowed, not-found and friends in the same JSON shape."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"ok": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
            for err in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={"ok": False, "error": "Invalid request", "detail": errors},
        )

    # Register routers
    app.include_router(health_router, tags=["health"])
    app.include_router(render_router)

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, str]:
        return {"service": "AutoCard", "version": __version__}

    return app
