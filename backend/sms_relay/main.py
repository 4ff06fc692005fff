"""Punto de entrada principal para la aplicación FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sms_relay.api.routes.health import router as health_router
from sms_relay.channels.sms.router import GENERIC_ERROR
from sms_relay.channels.sms.router import router as sms_router
from sms_relay.channels.sms.schemas import WebhookError
from sms_relay.core.config import ConfigurationError, Settings
from sms_relay.core.config import settings as default_settings
from sms_relay.core.logging import configure_logging, get_logger, mask_secret, resolve_log_level
from sms_relay.core.middleware import RequestLoggingMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    """Crea y configura la instancia de FastAPI."""
    settings = settings or default_settings
    default_log_level = logging.DEBUG if settings.environment != "production" else logging.INFO
    configure_logging(
        level=resolve_log_level(settings.log_level, default=default_log_level),
        log_file=settings.log_file_path,
    )
    log = get_logger("sms_relay")

    app = FastAPI(title="SMS Relay", version="0.1.0")
    app.state.settings = settings

    app.add_middleware(
        RequestLoggingMiddleware, skip_prefixes=settings.request_log_skip_prefixes
    )

    app.include_router(health_router)
    app.include_router(sms_router)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        log.error("config.missing", extra={"path": request.url.path, "error": str(exc)})
        payload = WebhookError(error=GENERIC_ERROR, details=str(exc))
        return JSONResponse(status_code=500, content=payload.model_dump())

    log.info(
        "app.configured",
        extra={
            "environment": settings.environment,
            "base44_app_id": settings.base44_app_id,
            "base44_api_key": mask_secret(settings.base44_api_key),
        },
    )
    return app


app = create_app()
