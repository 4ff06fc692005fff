"""Respuestas TwiML hacia Twilio."""

from twilio.twiml.messaging_response import MessagingResponse

TWIML_MEDIA_TYPE = "application/xml"


def empty_messaging_response() -> str:
    """TwiML vacío: confirma la recepción sin enviar respuesta al remitente."""
    return str(MessagingResponse())
