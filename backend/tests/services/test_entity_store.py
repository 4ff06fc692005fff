"""Pruebas del cliente REST del almacén de entidades."""

from __future__ import annotations

import httpx

from sms_relay.core.config import EntityStoreConfig
from sms_relay.core.result import Err, Ok
from sms_relay.services.entity_store import EntityStoreClient

CONFIG = EntityStoreConfig(api_url="https://store.test/entities", api_key="k-123")


def _client(handler) -> EntityStoreClient:
    return EntityStoreClient(CONFIG, transport=httpx.MockTransport(handler))


async def test_search_sends_eq_filters_and_api_key() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": "c-1"}, "basura"])

    result = await _client(handler).search("Contact", phone="+15551234567")

    assert result == Ok([{"id": "c-1"}])
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/entities/Contact"
    assert request.url.params["phone"] == "eq.+15551234567"
    assert request.headers["api_key"] == "k-123"
    assert "content-type" not in request.headers


async def test_create_accepts_object_or_list_responses() -> None:
    responses = iter([{"id": "obj"}, [{"id": "listed"}]])

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["content-type"] == "application/json"
        return httpx.Response(201, json=next(responses))

    client = _client(handler)
    assert await client.create("Contact", {"name": "x"}) == Ok({"id": "obj"})
    assert await client.create("Contact", {"name": "x"}) == Ok({"id": "listed"})


async def test_create_with_empty_response_is_error() -> None:
    result = await _client(lambda request: httpx.Response(201, json=[])).create(
        "Message", {"content": "hola"}
    )

    assert isinstance(result, Err)
    assert result.error.operation == "create"
    assert result.error.entity == "Message"


async def test_non_2xx_becomes_error_with_status() -> None:
    result = await _client(lambda request: httpx.Response(401, text="bad key")).search(
        "Contact", phone="+1"
    )

    assert isinstance(result, Err)
    assert result.error.status_code == 401
    assert result.error.detail == "bad key"
    assert "status=401" in result.error.describe()


async def test_network_error_becomes_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await _client(handler).search("Contact", phone="+1")

    assert isinstance(result, Err)
    assert result.error.status_code is None
    assert "connection refused" in result.error.detail


async def test_invalid_json_becomes_error() -> None:
    result = await _client(lambda request: httpx.Response(200, text="<html>")).search(
        "Contact", phone="+1"
    )

    assert isinstance(result, Err)
    assert result.error.operation == "search"


async def test_update_sends_prefer_header_and_tolerates_empty_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    result = await _client(handler).update("Conversation", "conv-1", {"unread_count": 2})

    assert result == Ok([])
    request = seen[0]
    assert request.method == "PATCH"
    assert request.url.params["id"] == "eq.conv-1"
    assert request.headers["prefer"] == "return=representation"
