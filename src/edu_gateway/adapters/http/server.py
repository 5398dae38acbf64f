"""FastAPI server for the education gateway.

Wires the credential store, token service and application services into
a FastAPI app and serves it with uvicorn.
"""

from __future__ import annotations

import asyncio
import contextlib
import secrets
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from edu_gateway import __version__
from edu_gateway.adapters.http.routers import auth, health, principals
from edu_gateway.adapters.http.schemas.common import ErrorResponse
from edu_gateway.adapters.persistence.repository import CredentialStore
from edu_gateway.application.authorization import AuthorizationGate
from edu_gateway.application.login_service import LoginService
from edu_gateway.application.principals import PrincipalDirectory
from edu_gateway.domain.errors import EduGatewayError
from edu_gateway.observability.logging import LogContext
from edu_gateway.security.jwt import TokenService
from edu_gateway.security.password import PasswordService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.responses import Response

    from edu_gateway.config.schema import ServiceConfig

logger = structlog.get_logger(__name__)


def create_token_service(config: ServiceConfig) -> TokenService:
    """Create the JWT token service from config."""
    secret = config.auth.jwt_secret
    if not secret:
        logger.warning(
            "No JWT secret configured. Using ephemeral secret; tokens will reset on restart."
        )
        secret = secrets.token_urlsafe(32)

    return TokenService(
        secret=secret,
        algorithm=config.auth.jwt_algorithm,
        access_expiry_minutes=config.auth.access_expiry_minutes,
        refresh_expiry_days=config.auth.refresh_expiry_days,
    )


async def handle_domain_error(_request: Request, exc: Exception) -> JSONResponse:
    """Render a domain error as an ErrorResponse with its status code."""
    if not isinstance(exc, EduGatewayError):
        raise exc

    if exc.status_code >= 500:
        logger.error("Request failed", error=exc.code, message=exc.message)

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    body = ErrorResponse.from_error(exc)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=headers)


async def bind_request_context(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Bind a request id to every log line emitted while handling the request."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    with LogContext(request_id=request_id, method=request.method, path=request.url.path):
        response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def create_app(
    config: ServiceConfig,
    store: CredentialStore | None = None,
    *,
    passwords: PasswordService | None = None,
    token_service: TokenService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Service configuration
        store: Credential store (built from ``config.database`` if omitted)
        passwords: Password service (Argon2id defaults if omitted)
        token_service: Token service (built from ``config.auth`` if omitted)

    Returns:
        Configured application; the store is initialized on startup and
        closed on shutdown
    """
    store = store or CredentialStore.from_config(config.database)
    passwords = passwords or PasswordService()
    token_service = token_service or create_token_service(config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        """Manage application lifecycle."""
        logger.info("FastAPI application starting")
        await store.initialize()
        yield
        await store.close()
        logger.info("FastAPI application shutting down")

    docs_enabled = config.http.docs_enabled
    app = FastAPI(
        title="Education Gateway",
        description="Authentication and principal management for the education backend",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs" if docs_enabled else None,
        redoc_url="/api/redoc" if docs_enabled else None,
        openapi_url="/api/openapi.json" if docs_enabled else None,
    )

    if config.http.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.http.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.middleware("http")(bind_request_context)
    app.add_exception_handler(EduGatewayError, handle_domain_error)

    # Store dependencies for injection
    app.state.config = config
    app.state.store = store
    app.state.token_service = token_service
    app.state.authorization_gate = AuthorizationGate(token_service, config.superadmin.id)
    app.state.login_service = LoginService(store, token_service, passwords, config.superadmin)
    app.state.principal_directory = PrincipalDirectory(store, passwords)

    _setup_routers(app)

    return app


def _setup_routers(app: FastAPI) -> None:
    """Setup API routers."""
    # Mount routers with /api/v1 prefix
    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
    for resource in principals.RESOURCES:
        app.include_router(
            principals.build_router(resource),
            prefix=f"/api/v1/{resource.path}",
            tags=[resource.path],
        )


class EduGatewayServer:
    """Serves the gateway app with uvicorn inside a running event loop."""

    def __init__(self, config: ServiceConfig) -> None:
        self._config = config
        self._app: FastAPI | None = None
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._running = False

    async def start(self) -> None:
        """Start the HTTP server."""
        if self._running:
            return

        http = self._config.http
        logger.info("Starting HTTP gateway", host=http.host, port=http.port)

        self._app = create_app(self._config)

        uvicorn_config = uvicorn.Config(
            app=self._app,
            host=http.host,
            port=http.port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(uvicorn_config)

        # Start serving in background
        self._serve_task = asyncio.create_task(self._server.serve())
        self._running = True

        logger.info(
            "HTTP gateway started",
            host=http.host,
            port=http.port,
            docs_url=f"http://{http.host}:{http.port}/api/docs",
        )

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if not self._running:
            return

        logger.info("Stopping HTTP gateway")

        if self._server:
            self._server.should_exit = True

        if self._serve_task:
            try:
                await asyncio.wait_for(self._serve_task, timeout=5.0)
            except TimeoutError:
                self._serve_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._serve_task

        self._server = None
        self._serve_task = None
        self._running = False

        logger.info("HTTP gateway stopped")

    @property
    def is_running(self) -> bool:
        """Check if server is running."""
        return self._running

    @property
    def app(self) -> FastAPI | None:
        """Get the FastAPI application instance."""
        return self._app
