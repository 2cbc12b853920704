from __future__ import annotations

from fastapi import status
from httpx import AsyncClient
from publish.api.routes.health import check_database
from sqlalchemy.exc import OperationalError


async def test_health_endpoint_returns_service_metadata(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    assert payload["service"] == "Publish API"
    assert payload["status"] == "ok"
    assert payload["datastores"]["database"] == {"status": "ok"}
    assert response.headers["X-Request-ID"]


async def test_health_endpoint_echoes_request_id(async_client: AsyncClient) -> None:
    response = await async_client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


class _BrokenSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


async def test_check_database_reports_unreachable_store() -> None:
    result = await check_database(_BrokenSession())  # type: ignore[arg-type]

    assert result == {"status": "error", "message": "database unreachable"}
