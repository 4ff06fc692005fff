"""Cliente REST para las entidades de Base44 (Contact, Conversation, Message)."""

from __future__ import annotations

from typing import Any

import httpx

from sms_relay.core.config import EntityStoreConfig
from sms_relay.core.logging import get_logger
from sms_relay.core.result import Err, Ok, Result, StoreError

logger = get_logger(__name__)


class EntityStoreClient:
    """Pequeña capa de acceso al almacén de entidades vía REST.

    Nunca lanza por errores de red o respuestas no-2xx: cada operación devuelve
    `Ok` con los datos o `Err` con un `StoreError` que describe la llamada.
    """

    def __init__(
        self,
        config: EntityStoreConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    async def search(self, entity: str, **filters: str) -> Result[list[dict[str, Any]]]:
        """Busca registros con igualdad exacta en cada filtro (`campo=eq.valor`)."""
        params = {field: f"eq.{value}" for field, value in filters.items()}
        outcome = await self._request("GET", "search", entity, params=params)
        if isinstance(outcome, Err):
            return outcome
        return self._json_list(outcome.value, "search", entity)

    async def create(self, entity: str, payload: dict[str, Any]) -> Result[dict[str, Any]]:
        """Inserta un registro y retorna la representación creada."""
        outcome = await self._request("POST", "create", entity, json=payload)
        if isinstance(outcome, Err):
            return outcome
        return self._first_record(outcome.value, "create", entity)

    async def update(
        self, entity: str, record_id: str, patch: dict[str, Any]
    ) -> Result[list[dict[str, Any]]]:
        """Aplica `patch` al registro `record_id` pidiendo la representación de vuelta."""
        outcome = await self._request(
            "PATCH",
            "update",
            entity,
            params={"id": f"eq.{record_id}"},
            json=patch,
            prefer="return=representation",
        )
        if isinstance(outcome, Err):
            return outcome
        response = outcome.value
        if not response.content:
            return Ok([])
        return self._json_list(response, "update", entity)

    async def _request(
        self,
        method: str,
        operation: str,
        entity: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Result[httpx.Response]:
        url = f"{self._config.api_url}/{entity}"
        headers = self._headers(prefer, has_body=json is not None)
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=headers,
                )
        except httpx.RequestError as exc:
            logger.exception(
                "entity_store.request_failed",
                extra={"entity": entity, "operation": operation, "error": str(exc)},
            )
            return Err(StoreError(operation, entity, f"Error de red: {exc}"))
        if not response.is_success:
            logger.error(
                "entity_store.response_error",
                extra={
                    "entity": entity,
                    "operation": operation,
                    "status": response.status_code,
                    "body": response.text,
                },
            )
            return Err(
                StoreError(operation, entity, response.text or "sin cuerpo", response.status_code)
            )
        return Ok(response)

    def _headers(self, prefer: str | None, *, has_body: bool) -> dict[str, str]:
        headers = {"api_key": self._config.api_key, "Accept": "application/json"}
        if prefer:
            headers["Prefer"] = prefer
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    @staticmethod
    def _decode(response: httpx.Response, operation: str, entity: str) -> Result[Any]:
        try:
            return Ok(response.json())
        except ValueError:
            logger.error(
                "entity_store.invalid_json",
                extra={"entity": entity, "operation": operation, "body": response.text},
            )
            return Err(StoreError(operation, entity, "Respuesta no es JSON válido"))

    @classmethod
    def _json_list(
        cls, response: httpx.Response, operation: str, entity: str
    ) -> Result[list[dict[str, Any]]]:
        decoded = cls._decode(response, operation, entity)
        if isinstance(decoded, Err):
            return decoded
        payload = decoded.value or []
        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list):
            return Err(StoreError(operation, entity, f"Respuesta inesperada: {payload!r}"))
        return Ok([row for row in payload if isinstance(row, dict)])

    @classmethod
    def _first_record(
        cls, response: httpx.Response, operation: str, entity: str
    ) -> Result[dict[str, Any]]:
        rows = cls._json_list(response, operation, entity)
        if isinstance(rows, Err):
            return rows
        if not rows.value:
            return Err(StoreError(operation, entity, "La respuesta no contiene el registro creado"))
        return Ok(rows.value[0])
