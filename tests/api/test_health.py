"""Tests for the health check endpoint."""

from unittest.mock import AsyncMock

from fastapi import FastAPI
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from cinebook.database import get_db


async def test_health_returns_ok(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}


async def test_health_does_not_require_identity(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-User-Id": "not-a-uuid"})

    assert response.status_code == 200


async def test_health_reports_unreachable_database(test_app: FastAPI, client: AsyncClient) -> None:
    db = AsyncMock()
    db.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))

    async def broken_db():
        yield db

    test_app.dependency_overrides[get_db] = broken_db
    response = await client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "degraded", "database": "unavailable"}
