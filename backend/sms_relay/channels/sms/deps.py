"""Dependencias reutilizables para el webhook de SMS."""

from fastapi import Request

from sms_relay.core.config import Settings
from sms_relay.core.config import settings as default_settings
from sms_relay.services.entity_store import EntityStoreClient


def get_settings(request: Request) -> Settings:
    """Settings asociados a la app (inyectados en `create_app`)."""
    return getattr(request.app.state, "settings", default_settings)


def get_entity_store(request: Request) -> EntityStoreClient:
    """Construye el cliente del almacén con la configuración explícita de la app.

    Lanza `ConfigurationError` si faltan credenciales; el router lo convierte
    en un 500.
    """
    return EntityStoreClient(get_settings(request).entity_store_config())
