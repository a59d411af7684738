"""FastAPI application for the library catalog."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.api.http.middleware.limiter import (
    close_rate_limiter,
    configure_rate_limiter,
)
from src.catalog.api.http.routers.books import router as books_router
from src.catalog.api.http.routers.health import router as health_router
from src.catalog.api.utils.app_startup import configure_logging
from src.catalog.core.exceptions import CatalogError
from src.catalog.core.services import DbSessionService, JwtVerificationService
from src.catalog.runtime.context import get_config

configure_logging()

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=()",
}
_HSTS = "max-age=31536000; includeSubDomains; preload"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in _SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if get_config().app.environment == "production":
            response.headers.setdefault("Strict-Transport-Security", _HSTS)
        return response


# --- Lifecycle hooks ---
async def startup() -> None:
    config = get_config()
    logger.info("Starting library catalog in {} environment", config.app.environment)

    if config.app.environment == "production" and not config.app.token_signing_secret:
        raise RuntimeError("TOKEN_SIGNING_SECRET must be set when running in production")

    database_service = DbSessionService()
    if config.database.create_tables_on_startup:
        database_service.create_all()

    app.state.app_dependencies = ApplicationDependencies(
        jwt_verify_service=JwtVerificationService(),
        database_service=database_service,
    )
    configure_rate_limiter()


async def shutdown() -> None:
    logger.info("Shutting down library catalog")
    await close_rate_limiter()
    deps: ApplicationDependencies | None = getattr(app.state, "app_dependencies", None)
    if deps is not None:
        deps.database_service.dispose()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup()
    try:
        yield
    finally:
        await shutdown()


def _create_app() -> FastAPI:
    config = get_config()
    production = config.app.environment == "production"
    cors = config.app.cors
    if production and cors.allow_credentials and "*" in cors.origins:
        raise RuntimeError(
            "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
        )

    application = FastAPI(
        title="Library Catalog",
        description="Book lookup, availability and search with role-based access.",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
    )
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors.origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
    )
    application.include_router(health_router)
    application.include_router(books_router)
    return application


app = _create_app()

# expose lifecycle hooks for tests
__all__ = ["app", "startup", "shutdown"]


# --- Error responses ---
def _error_response(
    request: Request, status_code: int, detail, headers: dict | None = None
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None) or "-"
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "request_id": request_id},
        headers={**(headers or {}), "X-Request-ID": request_id},
    )


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    logger.bind(status_code=exc.status_code, error_type=type(exc).__name__).info(
        "catalog.error: {}", exc.message
    )
    return _error_response(request, exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return _error_response(
        request, exc.status_code, exc.detail, headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        error = dict(error)
        # ctx may hold exception instances
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    logger.bind(status_code=422).info("request.validation_error")
    return _error_response(request, 422, errors)


# --- Request logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    else:
        client_ip = request.client.host if request.client else "unknown"

    start = time.perf_counter()
    with logger.contextualize(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        client_ip=client_ip,
        user_agent=request.headers.get("user-agent", "unknown"),
    ):
        logger.info("request.start")
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.bind(
                status_code=500,
                duration_ms=round((time.perf_counter() - start) * 1000, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        logger.bind(
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        ).info("request.end")
        response.headers.setdefault("X-Request-ID", request_id)
        return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.catalog.api.http.app:app",
        host=get_config().app.host,
        port=get_config().app.port,
    )
