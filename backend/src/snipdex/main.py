"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Logging constants defined here (not in constants/) because logging.basicConfig()
# must run before any module imports that might create loggers.
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    level=logging.INFO,
)

# Unify uvicorn loggers with app format
for uvicorn_logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
    uvicorn_logger = logging.getLogger(uvicorn_logger_name)
    uvicorn_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    uvicorn_logger.addHandler(handler)

from snipdex import __version__  # noqa: E402
from snipdex.api.deps import get_catalog_service, get_settings  # noqa: E402
from snipdex.api.routers import catalog, snippets  # noqa: E402
from snipdex.api.schemas import ErrorDetail, ErrorResponse, HealthData, OkResponse  # noqa: E402
from snipdex.errors import CatalogError, SnippetNotFound, SourceUnavailable  # noqa: E402
from snipdex.watch.feed import create_change_feed  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan handler for startup and shutdown events.

    On startup:
    - Creates the catalog service
    - Starts the change feed and the cache's watch task, if enabled

    On shutdown:
    - Stops the watch task and closes the feed
    """
    settings = get_settings()
    service = get_catalog_service()

    feed = None
    if settings.watch.enabled:
        feed = create_change_feed(settings)
        feed.start()
        service.start_watching(feed)

    logger.info(f"Snipdex {__version__} started")

    yield

    if feed is not None:
        await feed.close()
        await service.stop_watching()
    logger.info("Snipdex stopped")


app = FastAPI(
    title="Snipdex",
    description="Searchable catalog of text-expansion snippets",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Error envelopes
# =============================================================================


def _error_response(status_code: int, detail: ErrorDetail) -> JSONResponse:
    body = ErrorResponse(error=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@app.exception_handler(SnippetNotFound)
async def snippet_not_found_handler(request: Request, exc: SnippetNotFound) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, ErrorDetail.from_error(exc))


@app.exception_handler(SourceUnavailable)
async def source_unavailable_handler(request: Request, exc: SourceUnavailable) -> JSONResponse:
    logger.error(f"Catalog unavailable: {exc}")
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, ErrorDetail.from_error(exc))


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    logger.exception(f"Unhandled catalog error: {exc}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorDetail.from_error(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return _error_response(
        422,
        ErrorDetail(code="invalid_request", message=problems or "Invalid request"),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = "not_found" if exc.status_code == status.HTTP_404_NOT_FOUND else "http_error"
    response = _error_response(exc.status_code, ErrorDetail(code=code, message=str(exc.detail)))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error handling {request.method} {request.url.path}")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorDetail(code="internal_error", message="Internal server error"),
    )


@app.get("/health", response_model=OkResponse[HealthData])
async def health_check() -> OkResponse[HealthData]:
    """Health check endpoint."""
    service = get_catalog_service()
    return OkResponse[HealthData](data=HealthData(cache=service.cache.state.value))


# Include routers
app.include_router(catalog.router)
app.include_router(snippets.router)
