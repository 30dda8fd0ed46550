"""
Auth Gateway - FastAPI Application
Unified authentication surface over the account and token services
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth_gateway.config import Settings, get_settings
from auth_gateway.routes import auth, health, passthrough
from auth_gateway.services.account_client import AccountServiceClient
from auth_gateway.services.auth_orchestrator import AuthOrchestrator
from auth_gateway.services.token_client import TokenServiceClient
from auth_gateway.utils.downstream_client import DownstreamClient
from auth_gateway.utils.errors import (
    ErrorCode, GatewayError, ProblemDetail, STATUS_NAMES, classify, internal_error
)
from auth_gateway.utils.logger import get_logger, setup_logging
from auth_gateway.utils.response_writer import problem, request_context
from auth_gateway.utils.reverse_proxy import ReverseProxy

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _trace_id_from(traceparent: Optional[str]) -> Optional[str]:
    """Trace id from a W3C traceparent header"""
    if not traceparent:
        return None
    parts = traceparent.split("-")
    if len(parts) >= 4 and len(parts[1]) == 32:
        return parts[1]
    return None


def _register_middleware(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Assign a request id and log every request"""
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.trace_id = _trace_id_from(request.headers.get("traceparent"))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        logger.info(
            "Request received",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else "unknown",
        )

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response


def _register_error_handlers(app: FastAPI) -> None:
    """All errors leave through the problem envelope"""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Framework HTTP errors (unknown route, method not allowed)"""
        context = request_context(request)
        problem_detail = ProblemDetail(
            code=f"HTTP_{exc.status_code}",
            http_status=exc.status_code,
            title=STATUS_NAMES.get(exc.status_code, "HTTP error"),
            detail=str(exc.detail),
            extensions={"requestId": context["request_id"], "traceId": context["trace_id"]},
        )
        response = problem(problem_detail)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Path or query parameter validation errors"""
        errors = [
            {"field": ".".join(str(loc) for loc in e["loc"]), "message": e["msg"]}
            for e in exc.errors()
        ]
        error = GatewayError(ErrorCode.MALFORMED_JSON, "Invalid request format.", errors=errors)
        return problem(classify(error, **request_context(request)), error.message)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all; never exposes internal details"""
        logger.error(
            "Unhandled exception",
            error=str(exc),
            method=request.method,
            path=request.url.path,
            exc_info=True,
        )
        context = request_context(request)
        response = problem(internal_error(**context))
        if context["request_id"]:
            response.headers[REQUEST_ID_HEADER] = context["request_id"]
        return response


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the gateway application

    Args:
        settings: Gateway settings; loaded from the environment when omitted
        transport: Optional httpx transport for downstream calls
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format, settings.logging_config_path)

    downstream_client = DownstreamClient(settings, transport=transport)
    orchestrator = AuthOrchestrator(
        AccountServiceClient(settings, downstream_client),
        TokenServiceClient(settings, downstream_client),
    )
    proxy = ReverseProxy(settings, downstream_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan events"""
        logger.info("Starting auth gateway", version=settings.service_version)
        await downstream_client.start()
        yield
        await downstream_client.stop()
        logger.info("Auth gateway shutdown complete")

    app = FastAPI(
        title="Auth Gateway",
        description="Sign-up, sign-in and account operations over the account and token services",
        version=settings.service_version,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.downstream_client = downstream_client
    app.state.orchestrator = orchestrator
    app.state.proxy = proxy

    _register_middleware(app, settings)
    _register_error_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(passthrough.router, prefix="/auth", tags=["Accounts"])

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": settings.service_name,
            "version": settings.service_version,
            "status": "running",
            "docs": "/docs",
        }

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "auth_gateway.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level="info",
    )
