"""Fixtures compartidas para las pruebas."""

from __future__ import annotations

import json
from itertools import count
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from sms_relay.channels.sms.deps import get_entity_store
from sms_relay.core.config import EntityStoreConfig, Settings
from sms_relay.main import create_app
from sms_relay.services.entity_store import EntityStoreClient

API_URL = "https://store.test/api/apps/app-test/entities"


class FakeEntityStore:
    """Almacén en memoria que responde como la API REST de entidades."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {
            "Contact": [],
            "Conversation": [],
            "Message": [],
        }
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], int] = {}
        self._ids = count(1)

    def fail(self, method: str, entity: str, status_code: int = 500) -> None:
        self.failures[(method, entity)] = status_code

    def seed(self, entity: str, **record: Any) -> dict[str, Any]:
        self.tables[entity].append(record)
        return record

    def calls(self, method: str | None = None, entity: str | None = None) -> list[httpx.Request]:
        return [
            req
            for req in self.requests
            if (method is None or req.method == method)
            and (entity is None or req.url.path.rsplit("/", 1)[-1] == entity)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        entity = request.url.path.rsplit("/", 1)[-1]
        status = self.failures.get((request.method, entity))
        if status is not None:
            return httpx.Response(status, json={"message": "forced failure"})

        rows = self.tables[entity]
        filters = {
            key: value.removeprefix("eq.") for key, value in request.url.params.items()
        }
        if request.method == "GET":
            matches = [row for row in rows if self._matches(row, filters)]
            return httpx.Response(200, json=matches)
        if request.method == "POST":
            record = {"id": f"{entity.lower()}-{next(self._ids)}", **json.loads(request.content)}
            rows.append(record)
            return httpx.Response(201, json=record)
        if request.method == "PATCH":
            patch = json.loads(request.content)
            updated = []
            for row in rows:
                if self._matches(row, filters):
                    row.update(patch)
                    updated.append(row)
            return httpx.Response(200, json=updated)
        return httpx.Response(405)

    @staticmethod
    def _matches(row: dict[str, Any], filters: dict[str, str]) -> bool:
        return all(str(row.get(key)) == value for key, value in filters.items())


@pytest.fixture(name="fake_store")
def fixture_fake_store() -> FakeEntityStore:
    return FakeEntityStore()


@pytest.fixture(name="store_client")
def fixture_store_client(fake_store: FakeEntityStore) -> EntityStoreClient:
    config = EntityStoreConfig(api_url=API_URL, api_key="test-key", timeout=5.0)
    return EntityStoreClient(config, transport=httpx.MockTransport(fake_store.handler))


@pytest.fixture(name="test_settings")
def fixture_test_settings() -> Settings:
    return Settings(
        environment="test",
        base44_app_id="app-test",
        base44_api_key="test-key",
    )


@pytest.fixture(name="app")
def fixture_app(test_settings: Settings, store_client: EntityStoreClient):
    app = create_app(test_settings)
    app.dependency_overrides[get_entity_store] = lambda: store_client
    return app


@pytest.fixture(name="async_client")
async def fixture_async_client(app) -> AsyncClient:
    """Retorna un cliente asíncrono contra la app utilizando ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
