"""
FastAPI application entry point.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from callbridge.config import Settings, get_settings
from callbridge.crm.hubspot import HubSpotClient
from callbridge.crm.interface import CrmClient
from callbridge.directory import IdentityDirectory
from callbridge.shared.exceptions import ConfigurationError, ForbiddenError, ValidationError
from callbridge.shared.logging import get_logger, setup_logging
from callbridge.softphone.router import router as softphone_router
from callbridge.telephony.config import get_twilio_config
from callbridge.telephony.factory import create_telephony_provider
from callbridge.telephony.interface import CallInitiationError, TelephonyProvider
from callbridge.telephony.webhooks.router import router as telephony_webhooks_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging()
    settings = get_settings()

    logger.info(
        "Application starting",
        extra={"env": settings.app_env, "agents": len(app.state.directory)},
    )

    yield

    logger.info("Shutting down application")
    await app.state.crm_client.close()
    await app.state.telephony_provider.close()
    logger.info("Application shutdown complete")


def create_app(
    settings: Settings | None = None,
    directory: IdentityDirectory | None = None,
    crm_client: CrmClient | None = None,
    telephony_provider: TelephonyProvider | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Raises:
        ConfigurationError: If the agent directory is inconsistent.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Twilio softphone call routing with HubSpot call logging",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Built once, shared read-only by every request.
    app.state.directory = directory or IdentityDirectory.from_mapping(settings.agent_directory)
    app.state.crm_client = crm_client or HubSpotClient()
    app.state.telephony_provider = telephony_provider or create_telephony_provider(get_twilio_config())

    # Map domain exceptions to HTTP responses
    @app.exception_handler(ValidationError)
    async def _validation(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def _configuration(_: Request, exc: ConfigurationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc)},
        )

    @app.exception_handler(CallInitiationError)
    async def _call_initiation(_: Request, exc: CallInitiationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc), "code": exc.error_code},
        )

    # Request validation (FastAPI/Pydantic) -> consistent 422 payload
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append(
                {
                    "field": field,
                    "message": error["msg"],
                    "type": error["type"],
                }
            )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "errors": errors,
                }
            },
        )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(telephony_webhooks_router)
    app.include_router(softphone_router)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "callbridge is running. Use GET /token or POST /click-to-call."

    @app.get("/ping", response_class=PlainTextResponse)
    async def ping() -> str:
        """Liveness probe; also keeps sleeping hosts awake."""
        logger.info("Ping received", extra={"at": datetime.now(timezone.utc).isoformat()})
        return "pong"

    return app


app = create_app()
