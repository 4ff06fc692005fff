"""Registros del almacén de entidades que toca el relay."""

from typing import Literal

from pydantic import BaseModel, ConfigDict


class Contact(BaseModel):
    """Contacto identificado por su número de teléfono."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    name: str | None = None
    phone: str | None = None


class Conversation(BaseModel):
    """Conversación 1:1 con un contacto."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    contact_id: str | None = None
    last_message: str | None = None
    last_message_time: str | None = None
    unread_count: int | None = None


class MessageRecord(BaseModel):
    """Payload que se inserta en `Message` por cada SMS/MMS recibido."""

    conversation_id: str
    sender_phone: str | None
    receiver_phone: str | None
    content: str
    message_type: Literal["text", "image"]
    media_url: str | None
    is_outgoing: bool = False
    status: str = "delivered"
    twilio_sid: str | None
