"""Webhook de recepción de SMS/MMS (Twilio)."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from sms_relay.core.logging import get_logger
from sms_relay.core.result import Err
from sms_relay.services import twilio as twilio_service
from sms_relay.services.entity_store import EntityStoreClient

from . import service
from .deps import get_entity_store
from .schemas import InboundSms, WebhookError

logger = get_logger("sms_relay.channels.sms")

router = APIRouter(tags=["sms"])

GENERIC_ERROR = "Erro interno do servidor"


async def _read_payload(request: Request) -> dict[str, Any]:
    """Acepta JSON o formulario; un cuerpo ilegible cuenta como vacío."""
    content_type = request.headers.get("content-type", "").lower()
    if "application/json" in content_type:
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("sms.payload_unreadable", extra={"content_type": content_type})
            return {}
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def _as_inbound(payload: dict[str, Any]) -> InboundSms:
    fields = {
        key: value if value is None or isinstance(value, str) else str(value)
        for key, value in payload.items()
    }
    return InboundSms.model_validate(fields)


@router.post("/", summary="Webhook de recepción SMS/MMS")
@router.post("/twilio-webhook", include_in_schema=False)
async def receive_sms(
    request: Request,
    store: EntityStoreClient = Depends(get_entity_store),
) -> Response:
    """Relaya el mensaje al almacén de entidades y confirma con TwiML vacío."""
    inbound = _as_inbound(await _read_payload(request))
    outcome = await service.relay_inbound_message(store, inbound)
    if isinstance(outcome, Err):
        logger.error(
            "sms.relay_failed",
            extra={
                "twilio_sid": inbound.message_sid,
                "operation": outcome.error.operation,
                "entity": outcome.error.entity,
                "status": outcome.error.status_code,
            },
        )
        payload = WebhookError(error=GENERIC_ERROR, details=outcome.error.describe())
        return JSONResponse(status_code=500, content=payload.model_dump())

    return Response(
        content=twilio_service.empty_messaging_response(),
        media_type=twilio_service.TWIML_MEDIA_TYPE,
    )
