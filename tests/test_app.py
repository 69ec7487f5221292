"""HTTP-level tests: health, auth middleware and the GraphQL endpoint."""

from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, cast

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

SECRET = "app-test-secret-key-at-least-32-bytes"


@pytest.fixture(autouse=True)
def auth_env(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", SECRET)
    monkeypatch.setenv("JWT_ALGORITHMS", "HS256")
    monkeypatch.setenv("AUTH_REQUIRED", "true")
    monkeypatch.delenv("JWT_AUDIENCE", raising=False)
    monkeypatch.delenv("JWT_ISSUER", raising=False)
    monkeypatch.delenv("REPOSITORY_BACKEND", raising=False)


@pytest_asyncio.fixture
async def client() -> AsyncIterator[AsyncClient]:
    from beacontrack import app as app_module
    from beacontrack.infrastructure.persistence.factory import reset_persistence

    transport = ASGITransport(app=cast(Any, app_module.app))
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app_module._services = None
    reset_persistence()


def bearer(sub: str = "user_1") -> dict:
    token = jwt.encode(
        {"sub": sub, "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        SECRET,
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_health_is_public(client: AsyncClient) -> None:
    resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_graphql_requires_token(client: AsyncClient) -> None:
    resp = await client.post("/graphql", json={"query": '{ device(deviceId: "x") { deviceId } }'})

    assert resp.status_code == 401
    assert resp.json()["error"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_graphql_with_token(client: AsyncClient) -> None:
    resp = await client.post(
        "/graphql",
        json={"query": '{ device(deviceId: "x") { deviceId } }'},
        headers=bearer(),
    )

    assert resp.status_code == 200
    assert resp.json()["data"] == {"device": None}


@pytest.mark.asyncio
async def test_domain_error_code_over_http(client: AsyncClient) -> None:
    resp = await client.post(
        "/graphql",
        json={"query": 'mutation { unbindMapUserDevice(userId: "user_1") }'},
        headers=bearer("user_1"),
    )

    body = resp.json()
    assert body["errors"][0]["extensions"]["code"] == "USER_NOT_FOUND"
