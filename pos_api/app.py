"""
FastAPI application factory.

Responsibility:
    Wire configuration, the session factory and kernel policies into one
    FastAPI app, map kernel exceptions to HTTP status codes, and bind a
    correlation id to every request's log lines.

Architecture position:
    Outermost layer.  May import pos_kernel and pos_config; nothing
    imports pos_api.
"""

import time
import uuid

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker

from pos_api.routes import orders, pos, refunds
from pos_config import PosConfig, get_active_config
from pos_config.bridges import build_stock_policy, build_store_info, build_totals_policy
from pos_kernel.db.engine import get_session_factory, init_engine_from_url
from pos_kernel.db.immutability import register_immutability_listeners
from pos_kernel.domain.clock import Clock, SystemClock
from pos_kernel.exceptions import (
    AuthError,
    ForbiddenError,
    ImmutabilityError,
    NotFoundError,
    PersistenceError,
    PosKernelError,
    ValidationError,
)
from pos_kernel.logging_config import LogContext, configure_logging, get_logger

logger = get_logger("api")

API_PREFIX = "/api"

# Looked up along the exception's MRO, so the most specific class wins.
ERROR_STATUS_CODES: dict[type, int] = {
    NotFoundError: 404,
    ValidationError: 400,
    ForbiddenError: 403,
    AuthError: 401,
    ImmutabilityError: 409,
    PersistenceError: 500,
}


def status_code_for(exc: PosKernelError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


async def pos_error_handler(request: Request, exc: PosKernelError) -> JSONResponse:
    """Map PosKernelError subclasses to appropriate HTTP responses."""
    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.info
    log(
        "request_failed",
        extra={"error_code": exc.code, "status_code": status_code, "path": request.url.path},
    )
    return JSONResponse(status_code=status_code, content={"message": str(exc), "code": exc.code})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg', 'invalid request')}" if location else "Invalid request"
    return JSONResponse(status_code=400, content={"message": message, "code": "INVALID_REQUEST"})


def create_app(
    config: PosConfig | None = None,
    session_factory: sessionmaker[Session] | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """
    Build the POS API.

    Args:
        config: Runtime configuration.  Defaults to get_active_config().
        session_factory: Factory for per-request sessions.  Defaults to one
            built from ``config.database``.
        clock: Time source for order timestamps and "today".
    """
    config = config or get_active_config()
    configure_logging(level=config.logging.level)

    if session_factory is None:
        init_engine_from_url(
            config.database.url,
            echo=config.database.echo,
            pool_size=config.database.pool_size,
            max_overflow=config.database.max_overflow,
            pool_timeout=config.database.pool_timeout,
        )
        session_factory = get_session_factory()

    register_immutability_listeners()

    app = FastAPI(
        title="POS API",
        description="Checkout, refunds and sales reporting",
        version="0.1.0",
    )
    app.state.config = config
    app.state.session_factory = session_factory
    app.state.clock = clock or SystemClock()
    app.state.store = build_store_info(config)
    app.state.stock_policy = build_stock_policy(config)
    app.state.totals_policy = build_totals_policy(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials="*" not in config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        correlation_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        started = time.perf_counter()
        with LogContext.bind(correlation_id=correlation_id):
            response = await call_next(request)
            logger.info(
                "request_completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
        response.headers["X-Request-ID"] = correlation_id
        return response

    app.add_exception_handler(PosKernelError, pos_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    api = APIRouter(prefix=API_PREFIX)

    @api.get("/health")
    def health_check():
        return {"status": "ok"}

    api.include_router(pos.router)
    api.include_router(orders.router)
    api.include_router(refunds.router)
    app.include_router(api)

    logger.info(
        "app_created",
        extra={"config_checksum": config.checksum, "store_timezone": config.store.timezone},
    )
    return app


def main() -> None:
    import uvicorn

    config = get_active_config()
    uvicorn.run(create_app(config), host="0.0.0.0", port=5000)


if __name__ == "__main__":
    main()
