"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import background, bookmarks, categories, fallback, health, tags, transfer
from core.config import get_settings
from core.redis import RedisClient, set_redis_client
from db.session import init_models
from schemas.common import ErrorResponse
from services.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings = get_settings()

    # Startup: Create tables
    await init_models()

    # Startup: Connect to Redis
    redis_client = RedisClient(
        url=app_settings.redis_url,
        enabled=app_settings.redis_enabled,
        pool_size=app_settings.redis_pool_size,
    )
    await redis_client.connect()
    set_redis_client(redis_client)
    logger.info("Bookmarks API started")

    yield

    # Shutdown: Clean up Redis
    await redis_client.close()
    set_redis_client(None)


app_settings = get_settings()

app = FastAPI(
    title="Bookmarks API",
    description="Bookmark management with categories, tags, import/export and a daily background.",
    version="0.1.0",
    lifespan=lifespan,
)


def error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    """All API errors share the ``{"error": message}`` body."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=headers,
    )


@app.exception_handler(ValidationError)
async def validation_exception_handler(
    _request: Request, exc: ValidationError,
) -> JSONResponse:
    """Missing or malformed caller data."""
    return error_response(400, str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    _request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Unparseable request bodies or parameters are reported like service validation errors."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return error_response(400, f"Invalid request: {details}")


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(
    _request: Request, exc: NotFoundError,
) -> JSONResponse:
    """Operation targeted a missing resource."""
    return error_response(404, str(exc))


@app.exception_handler(ConflictError)
async def conflict_exception_handler(
    _request: Request, exc: ConflictError,
) -> JSONResponse:
    """Unique name already taken."""
    return error_response(409, str(exc))


@app.exception_handler(SQLAlchemyError)
async def store_exception_handler(
    request: Request, exc: SQLAlchemyError,
) -> JSONResponse:
    """Persistence failures are not retried; the raw message is returned."""
    logger.exception("Store error on %s %s", request.method, request.url.path)
    return error_response(500, str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    """Keep framework-raised HTTP errors in the same body shape."""
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Last resort: turn any unhandled exception into a generic service failure."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Run the request, answering 500 if anything escapes the route handlers."""
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return error_response(500, str(exc))


# Must sit inside CORS: its 500s carry the CORS headers
app.add_middleware(UnhandledErrorMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(health.router)
app.include_router(bookmarks.router, prefix="/api")
app.include_router(categories.router, prefix="/api")
app.include_router(tags.router, prefix="/api")
app.include_router(transfer.router, prefix="/api")
app.include_router(background.router, prefix="/api")
# Catch-all for unknown /api paths; must stay after every other API router
app.include_router(fallback.router, prefix="/api")

if app_settings.static_dir:
    app.mount("/", StaticFiles(directory=app_settings.static_dir, html=True), name="static")
