"""Sonda de vida; no llama al almacén de entidades."""
from fastapi import APIRouter, Request

from sms_relay.core.config import ConfigurationError

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Estado del servicio")
def healthcheck(request: Request) -> dict[str, str]:
    """Indica si el proceso responde y si las credenciales de Base44 están cargadas."""
    try:
        request.app.state.settings.entity_store_config()
    except ConfigurationError:
        entity_store = "missing_config"
    else:
        entity_store = "configured"
    return {"status": "ok", "entity_store": entity_store}
