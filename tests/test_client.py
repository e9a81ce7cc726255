# tests/test_client.py
from __future__ import annotations

import uuid

import httpx
import pytest

from hure_core.client import (
    ApiSession,
    AuthExpiry,
    BackendRejection,
    HureClient,
    MemoryTokenStore,
    NetworkFailure,
)
from hure_core.schemas.onboard import ClinicCreate


def mock_client(handler, session: ApiSession | None = None) -> HureClient:
    return HureClient("http://hure.test", session=session, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_bearer_header_injected_when_logged_in():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={"total": 0, "pending": 0, "active": 0, "suspended": 0,
                                          "bundles": 0, "coreOnly": 0, "careOnly": 0})

    session = ApiSession(MemoryTokenStore("tok-123"))
    async with mock_client(handler, session) as api:
        stats = await api.clinic_stats()

    assert stats.total == 0
    assert seen == ["Bearer tok-123"]


@pytest.mark.asyncio
async def test_no_header_without_token():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append("Authorization" in request.headers)
        return httpx.Response(200, json={"plans": [], "bundleDiscountPercent": 20})

    async with mock_client(handler) as api:
        await api.list_plans()

    assert seen == [False]


@pytest.mark.asyncio
async def test_401_clears_token_and_fires_hook():
    fired = []

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"success": False, "error": "Token expired"})

    session = ApiSession(MemoryTokenStore("stale"), on_unauthorized=lambda: fired.append("login"))
    async with mock_client(handler, session) as api:
        with pytest.raises(AuthExpiry) as exc:
            await api.list_clinics()

    assert exc.value.message == "Token expired"
    assert session.token is None
    assert fired == ["login"]


@pytest.mark.asyncio
async def test_async_unauthorized_hook_is_awaited():
    fired = []

    async def redirect():
        fired.append("login")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"success": False, "error": "Invalid token"})

    session = ApiSession(MemoryTokenStore("stale"), on_unauthorized=redirect)
    async with mock_client(handler, session) as api:
        with pytest.raises(AuthExpiry):
            await api.my_permissions()

    assert fired == ["login"]


@pytest.mark.asyncio
async def test_rejection_surfaces_server_message_verbatim():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"success": False, "error": "Email already registered"})

    async with mock_client(handler) as api:
        with pytest.raises(BackendRejection) as exc:
            await api.create_clinic(ClinicCreate(name="A", email="a@b.co"))

    assert exc.value.status_code == 409
    assert exc.value.message == "Email already registered"
    assert exc.value.body["success"] is False


@pytest.mark.asyncio
async def test_rejection_without_json_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    async with mock_client(handler) as api:
        with pytest.raises(BackendRejection) as exc:
            await api.list_plans()

    assert exc.value.status_code == 502
    assert exc.value.message == "Bad Gateway"


@pytest.mark.asyncio
async def test_transport_error_is_network_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_client(handler) as api:
        with pytest.raises(NetworkFailure) as exc:
            await api.skip_payment(uuid.uuid4())

    assert exc.value.message == "Connection error. Please try again."


@pytest.mark.asyncio
async def test_login_stores_token():
    user_id = str(uuid.uuid4())

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"success": True, "token": "fresh", "user": {"id": user_id, "email": "o@x.co", "role": "owner"}},
        )

    session = ApiSession()
    async with mock_client(handler, session) as api:
        result = await api.login("o@x.co", "pw-12345678")

    assert result.user.role == "owner"
    assert session.token == "fresh"
    assert session.is_authenticated


@pytest.mark.asyncio
async def test_client_against_app(app, db):
    transport = httpx.ASGITransport(app=app)
    async with HureClient("http://test", transport=transport) as api:
        quote = await api.bundle_quote("essential")
        assert (quote.base_amount, quote.final_amount) == (18000, 14400)

        price = await api.price_quote(["core", "care"], "professional")
        assert price.is_bundle and price.final_amount == 26400

        with pytest.raises(BackendRejection) as exc:
            await api.get_plan("core", "platinum")
        assert exc.value.status_code == 404
        assert exc.value.message == "Plan not found"
