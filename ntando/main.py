"""FastAPI application entry point."""

import re
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ntando import __version__
from ntando.api.middleware import RequestLoggingMiddleware
from ntando.api.routes.router import router as api_router
from ntando.config import Settings, get_settings
from ntando.core.context import AppContext
from ntando.core.exceptions import NtandoError
from ntando.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def error_code(exc: Exception) -> str:
    """``DomainTakenError`` -> ``DOMAIN_TAKEN``."""
    name = type(exc).__name__.removesuffix("Error") or "Ntando"
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).upper()


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        # Startup
        configure_logging(settings)
        context = AppContext.from_settings(settings)
        await context.startup()
        app.state.context = context
        logger.info(
            "application.starting",
            version=__version__,
            environment=settings.app_env,
        )

        yield

        # Shutdown
        await context.shutdown()
        logger.info("application.shutdown")

    app = FastAPI(
        title="Ntando Computer API",
        description="Deploy static sites and repositories under free custom domains",
        version=__version__,
        docs_url="/docs" if settings.app_debug else None,
        redoc_url="/redoc" if settings.app_debug else None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else settings.cors_origins,
        allow_credentials=not settings.is_development,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers
    @app.exception_handler(NtandoError)
    async def ntando_error_handler(request: Request, exc: NtandoError) -> JSONResponse:
        """Handle application-specific errors."""
        if exc.status_code >= 500:
            logger.error(
                "request.failed",
                error=exc.message,
                details=exc.details,
                path=request.url.path,
            )
            if not settings.app_debug:
                return _error_response(
                    exc.status_code, "INTERNAL_ERROR", "An unexpected error occurred"
                )
        return _error_response(
            exc.status_code,
            error_code(exc),
            exc.message,
            jsonable_encoder(exc.details),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report schema failures as 400 with the offending fields."""
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            "VALIDATION",
            "Invalid request",
            {"errors": errors},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected errors."""
        logger.error(
            "unhandled_exception",
            error=str(exc),
            path=request.url.path,
            exc_info=True,
        )

        if settings.app_debug:
            return _error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "INTERNAL_ERROR",
                str(exc),
                {"type": type(exc).__name__},
            )

        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_ERROR",
            "An unexpected error occurred",
        )

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {
            "message": "Ntando Computer API",
            "version": __version__,
            "status": "running",
        }

    # Include routers
    app.include_router(api_router)

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "ntando.main:app",
        host=_settings.api_host,
        port=_settings.api_port,
        reload=_settings.is_development,
    )
