"""
api/main.py -- FastAPI application entry point for the Catalog API.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for the configured browser origins
  2. log_requests   -- one access-log line per request with latency

Lifespan builds the credential store and the product repository, seeds the
demo data, and closes the repository on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v2.auth import router as auth_router
from api.routes.v2.products import router as products_router
from auth.store import UserStore
from catalog.store import ProductRepository, build_product_repository, seed_products
from core.config import Settings, get_settings
from core.errors import CatalogError, UnauthenticatedError

API_VERSION = "2.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("catalogapi.api")

# ---------------------------------------------------------------------------
# Demo data -- loaded when SEED_DEMO_DATA is true (the default)
# ---------------------------------------------------------------------------

DEMO_USERS: list[tuple[str, str, str, str]] = [
    ("Admin User", "admin@example.com", "admin123", "admin"),
    ("Regular User", "user@example.com", "user123", "user"),
]

DEMO_PRODUCTS: list[dict] = [
    {"name": "Product A", "description": "Description of Product A", "price": 100, "stock": 10},
    {"name": "Product B", "description": "Description of Product B", "price": 200, "stock": 5},
]


def init_stores(settings: Settings) -> tuple[UserStore, ProductRepository]:
    """Build both stores for one application lifetime, seeded per settings."""
    user_store = UserStore()
    products = build_product_repository(settings.product_store, settings.sql_url)
    if settings.seed_demo_data:
        user_store.seed(DEMO_USERS)
        seed_products(products, DEMO_PRODUCTS)
    return user_store, products


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Wire stores into app.state on startup; release them on shutdown."""
    settings = get_settings()
    logger.info("Catalog API starting up (product_store=%s)", settings.product_store)
    app.state.user_store, app.state.products = init_stores(settings)
    logger.info(
        "Stores initialized (%d users, %d products)",
        app.state.user_store.count(),
        len(app.state.products.list()),
    )

    yield

    app.state.products.close()
    logger.info("Catalog API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

_settings = get_settings()

app = FastAPI(
    title="Catalog API",
    description="User registration, bearer-token login and role-gated product management.",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/api-docs",
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=True,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix=_settings.api_prefix, tags=["Auth"])
app.include_router(products_router, prefix=_settings.api_prefix, tags=["Products"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Render a domain error with its own status and code.

    Every UnauthenticatedError gets the same body and a WWW-Authenticate
    challenge; the missing/invalid/expired reason stays in the server log.
    """
    response = _error_response(exc.status_code, exc.code, exc.message)
    if isinstance(exc, UnauthenticatedError):
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or path params fail validation."""
    return _error_response(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (unknown route, wrong method) in the envelope."""
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Outside the version prefix so load balancers need not track API versions.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=API_VERSION)
