from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from salon.app.api import (
    auth_router,
    cron_router,
    finances_router,
    purchases_router,
    records_router,
    schedule_router,
)
from salon.app.core.config import settings
from salon.app.core.http_client import init_http_client
from salon.app.core.logging import get_logger, setup_logging
from salon.app.exceptions import (
    NotSupportedError,
    RateLimitExceededError,
    SalonException,
    SpamRejectedError,
)
from salon.app.middleware.rate_limit import InMemoryRateLimiter, RateLimitSweeper
from salon.app.middleware.request_id import RequestIdMiddleware, get_request_id
from salon.app.services.admission import AdmissionGate
from salon.app.services.email_service import EmailNotifier
from salon.app.services.notifications import NotificationDispatcher
from salon.app.services.sms import SmsSender
from salon.app.storage import GoogleSheetsRepository, InMemoryRepository, Repository
from salon.app.storage.google_auth import ServiceAccountTokenProvider


def build_repository(http_client: httpx.AsyncClient) -> Repository:
    """Storage backend selected by ``STORAGE_BACKEND``."""
    if settings.storage_backend == "memory":
        return InMemoryRepository()

    tokens = ServiceAccountTokenProvider(
        client_email=settings.google_service_account_email,
        private_key=settings.google_private_key,
        http_client=http_client,
    )
    return GoogleSheetsRepository(
        spreadsheet_id=settings.google_sheets_spreadsheet_id,
        token_provider=tokens,
        http_client=http_client,
        records_range=settings.google_sheets_range,
        purchases_sheet=settings.google_purchases_sheet,
    )


def build_notifier(http_client: httpx.AsyncClient) -> tuple[NotificationDispatcher, SmsSender]:
    email = EmailNotifier(
        user=settings.email_user,
        password=settings.email_pass,
        recipient=settings.notification_recipient,
        host=settings.smtp_host,
        port=settings.smtp_port,
    )
    sms = SmsSender(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_phone_number,
        http_client=http_client,
        base_url=settings.twilio_api_base_url,
    )
    notifier = NotificationDispatcher(
        email=email if email.configured else None,
        sms=sms if sms.configured else None,
        sms_language=settings.sms_language,
        brand=settings.sms_brand,
    )
    return notifier, sms


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan context manager.

        Builds the storage backend, the admission gate with its background
        sweeper and the notification dispatcher on startup; stops the sweeper
        and waits for pending notifications on shutdown.
        """
        async with init_http_client() as http_client:
            repository = build_repository(http_client)

            limiter = InMemoryRateLimiter(
                max_requests=settings.booking_rate_limit_max_requests,
                window_seconds=settings.booking_rate_limit_window_seconds,
                idle_seconds=settings.rate_limit_idle_seconds,
            )
            sweeper = RateLimitSweeper(limiter, interval=settings.rate_limit_sweep_interval_seconds)
            await sweeper.start()

            notifier, sms = build_notifier(http_client)

            app.state.repository = repository
            app.state.rate_limiter = limiter
            app.state.admission_gate = AdmissionGate(
                limiter,
                min_time_ms=settings.antispam_min_time_ms,
                min_interactions=settings.antispam_min_interactions,
            )
            app.state.notifier = notifier
            app.state.sms_sender = sms

            logger.info(
                "Application startup complete",
                extra={
                    "storage_backend": settings.storage_backend,
                    "email_enabled": notifier.email is not None,
                    "sms_enabled": notifier.sms is not None,
                    "debug_mode": settings.debug,
                },
            )

            try:
                yield
            finally:
                await sweeper.stop()
                await notifier.drain()
                await repository.close()

        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Salon Booking Service",
        description="Booking records with anti-spam admission, finances and notifications",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
        max_age=600,
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(records_router)
    app.include_router(purchases_router)
    app.include_router(finances_router)
    app.include_router(schedule_router)
    app.include_router(auth_router)
    app.include_router(cron_router)

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        """Liveness plus a view of the in-process limiter."""
        limiter = getattr(request.app.state, "rate_limiter", None)
        return {
            "status": "ok",
            "storage_backend": settings.storage_backend,
            "rate_limit_entries": len(limiter) if limiter is not None else 0,
        }

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
        """Handle RateLimitExceededError and return HTTP 429 with Retry-After."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "retryAfter": exc.retry_after},
            headers={"Retry-After": exc.retry_after_header},
        )

    @app.exception_handler(SpamRejectedError)
    async def spam_rejected_handler(request: Request, exc: SpamRejectedError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": "Invalid request"})

    @app.exception_handler(NotSupportedError)
    async def not_supported_handler(request: Request, exc: NotSupportedError) -> JSONResponse:
        content = {"error": exc.message}
        if exc.hint:
            content["hint"] = exc.hint
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(SalonException)
    async def salon_exception_handler(request: Request, exc: SalonException) -> JSONResponse:
        """Map the remaining application exceptions to their status code."""
        if exc.status_code >= 500:
            logger.error(
                f"{type(exc).__name__}: {exc.message}",
                extra={"request_id": get_request_id(request)},
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        The traceback is only logged. Debug mode adds the exception message
        to the response.
        """
        request_id = get_request_id(request)
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
                "path": request.url.path,
                "method": request.method,
            },
        )

        if settings.debug:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "message": str(exc),
                    "exception_type": type(exc).__name__,
                    "request_id": request_id,
                },
            )

        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "request_id": request_id},
        )

    return app


# Create the application instance
app = create_app()
