"""Encadena contacto → conversación → mensaje → actualización de conversación.

Cada paso devuelve `Ok`/`Err`; el primer `Err` corta la cadena. Las escrituras
ya realizadas no se revierten y no hay reintentos: Twilio reenviará el webhook
si respondemos 500.

Ni la búsqueda-o-creación ni el incremento de `unread_count` están protegidos
contra entregas concurrentes del mismo número. Cuando una búsqueda devuelve
más de un registro lo dejamos registrado para detectar duplicados.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import ValidationError

from sms_relay.core.logging import get_logger, log_event
from sms_relay.core.result import Err, Ok, Result, StoreError
from sms_relay.models.records import Contact, Conversation, MessageRecord
from sms_relay.services.entity_store import EntityStoreClient

from .schemas import InboundSms

logger = get_logger(__name__)

CONTACT = "Contact"
CONVERSATION = "Conversation"
MESSAGE = "Message"

NEW_CONVERSATION_TEXT = "Nova conversa iniciada"
MEDIA_PLACEHOLDER_TEXT = "Mídia recebida"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 en UTC con milisegundos y sufijo `Z`."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class RelayOutcome:
    """Registros tocados por un webhook procesado con éxito."""

    contact: Contact
    conversation: Conversation
    message: MessageRecord
    unread_count: int


def _parse(model: type, row: dict, operation: str, entity: str) -> Result:
    try:
        return Ok(model.model_validate(row))
    except ValidationError as exc:
        logger.error(
            "entity_store.invalid_record",
            extra={"entity": entity, "operation": operation, "error": str(exc)},
        )
        return Err(StoreError(operation, entity, f"Registro inválido: {row!r}"))


def _warn_duplicates(entity: str, rows: list[dict], **lookup: str | None) -> None:
    if len(rows) > 1:
        logger.warning(
            f"{entity.lower()}.duplicate_matches",
            extra={"matches": len(rows), **lookup},
        )


async def find_or_create_contact(store: EntityStoreClient, phone: str | None) -> Result[Contact]:
    """Retorna el primer contacto con ese teléfono o crea uno nuevo."""
    # Sin `From` se busca `phone=eq.` y se crea un contacto sin teléfono en cada entrega
    found = await store.search(CONTACT, phone=phone or "")
    if isinstance(found, Err):
        return found
    if found.value:
        _warn_duplicates(CONTACT, found.value, phone=phone)
        return _parse(Contact, found.value[0], "search", CONTACT)

    created = await store.create(CONTACT, {"name": phone, "phone": phone})
    if isinstance(created, Err):
        return created
    log_event(logger, "contact.created", contact_id=created.value.get("id"))
    return _parse(Contact, created.value, "create", CONTACT)


async def find_or_create_conversation(
    store: EntityStoreClient, contact_id: str, *, now: datetime
) -> Result[Conversation]:
    """Retorna la conversación del contacto o abre una nueva."""
    found = await store.search(CONVERSATION, contact_id=contact_id)
    if isinstance(found, Err):
        return found
    if found.value:
        _warn_duplicates(CONVERSATION, found.value, contact_id=contact_id)
        return _parse(Conversation, found.value[0], "search", CONVERSATION)

    created = await store.create(
        CONVERSATION,
        {
            "contact_id": contact_id,
            "last_message": NEW_CONVERSATION_TEXT,
            "last_message_time": format_timestamp(now),
        },
    )
    if isinstance(created, Err):
        return created
    log_event(logger, "conversation.created", conversation_id=created.value.get("id"))
    return _parse(Conversation, created.value, "create", CONVERSATION)


def build_message_record(conversation: Conversation, inbound: InboundSms) -> MessageRecord:
    return MessageRecord(
        conversation_id=conversation.id,
        sender_phone=inbound.from_,
        receiver_phone=inbound.to,
        content=inbound.body or "",
        message_type="image" if inbound.has_media else "text",
        media_url=inbound.media_url or None,
        twilio_sid=inbound.message_sid,
    )


async def insert_message(store: EntityStoreClient, record: MessageRecord) -> Result[dict]:
    # Sin deduplicar por twilio_sid: un reenvío de Twilio genera otro registro
    return await store.create(MESSAGE, record.model_dump())


async def touch_conversation(
    store: EntityStoreClient,
    conversation: Conversation,
    inbound: InboundSms,
    *,
    now: datetime,
) -> Result[int]:
    """Actualiza el resumen de la conversación y retorna el nuevo `unread_count`.

    El contador parte del valor leído en `find_or_create_conversation`, no se
    vuelve a consultar.
    """
    unread_count = (conversation.unread_count or 0) + 1
    patched = await store.update(
        CONVERSATION,
        conversation.id,
        {
            "last_message": inbound.body or MEDIA_PLACEHOLDER_TEXT,
            "last_message_time": format_timestamp(now),
            "unread_count": unread_count,
        },
    )
    if isinstance(patched, Err):
        return patched
    return Ok(unread_count)


async def relay_inbound_message(
    store: EntityStoreClient,
    inbound: InboundSms,
    *,
    clock: Clock = utc_now,
) -> Result[RelayOutcome]:
    """Persiste un SMS/MMS entrante en el almacén de entidades."""
    contact = await find_or_create_contact(store, inbound.from_)
    if isinstance(contact, Err):
        return contact

    conversation = await find_or_create_conversation(store, contact.value.id, now=clock())
    if isinstance(conversation, Err):
        return conversation

    record = build_message_record(conversation.value, inbound)
    inserted = await insert_message(store, record)
    if isinstance(inserted, Err):
        return inserted

    touched = await touch_conversation(store, conversation.value, inbound, now=clock())
    if isinstance(touched, Err):
        return touched

    log_event(
        logger,
        "sms.relayed",
        contact_id=contact.value.id,
        conversation_id=conversation.value.id,
        message_type=record.message_type,
        twilio_sid=inbound.message_sid,
    )
    return Ok(
        RelayOutcome(
            contact=contact.value,
            conversation=conversation.value,
            message=record,
            unread_count=touched.value,
        )
    )
