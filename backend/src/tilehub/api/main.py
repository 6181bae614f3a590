"""FastAPI application entry point."""

from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tilehub.core.config import settings
from tilehub.core.database import engine
from tilehub.core.exceptions import AccountValidationError, TileHubError, UnauthorisedError
from tilehub.core.schemas import ErrorResponse

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown hooks."""
    yield
    await engine.dispose()


def _errors_by_field(errors: Sequence[Any]) -> dict[str, list[str]]:
    """Key request validation errors by the ``user`` field they concern."""
    by_field: dict[str, list[str]] = {}
    for error in errors:
        # list indexes and JSON decode offsets are not field names
        parts = [
            p for p in error.get("loc", ()) if isinstance(p, str) and p not in ("body", "user")
        ]
        field = parts[0] if parts else "user"
        by_field.setdefault(field, []).append(error.get("msg", "is invalid"))
    return by_field


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Exception handlers --
    @app.exception_handler(TileHubError)
    async def tilehub_error_handler(_request: Request, exc: TileHubError) -> Response:
        if isinstance(exc, UnauthorisedError):
            return Response(status_code=exc.status_code)

        body = ErrorResponse(
            code=exc.code, message=exc.message, detail=exc.detail, errors=exc.errors
        )
        return JSONResponse(
            status_code=exc.status_code, content=body.model_dump(exclude_none=True)
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = _errors_by_field(exc.errors())
        logger.info("request_rejected", fields=sorted(errors))
        body = ErrorResponse(
            code=AccountValidationError.code,
            message=AccountValidationError.message,
            errors=errors,
        )
        return JSONResponse(
            status_code=AccountValidationError.status_code,
            content=body.model_dump(exclude_none=True),
        )

    # -- Routes --
    from tilehub.api.routes.health import router as health_router
    from tilehub.api.routes.users import router as users_router

    app.include_router(health_router)
    app.include_router(users_router)

    return app


app = create_app()
