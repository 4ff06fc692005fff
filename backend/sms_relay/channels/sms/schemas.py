"""Esquemas Pydantic para el webhook de SMS/MMS de Twilio."""

from pydantic import BaseModel, ConfigDict, Field


class InboundSms(BaseModel):
    """Campos que Twilio envía al recibir un SMS/MMS.

    Todos son opcionales: el payload no se valida y los valores faltantes
    llegan tal cual al almacén de entidades.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    from_: str | None = Field(default=None, alias="From")
    to: str | None = Field(default=None, alias="To")
    body: str | None = Field(default=None, alias="Body")
    media_url: str | None = Field(default=None, alias="MediaUrl0")
    message_sid: str | None = Field(default=None, alias="MessageSid")

    @property
    def has_media(self) -> bool:
        return bool(self.media_url)


class WebhookError(BaseModel):
    """Cuerpo de las respuestas 500 del webhook."""

    error: str
    details: str
