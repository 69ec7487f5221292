"""Unit tests for AuthMiddleware."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from beacontrack.domain.admin.models import Principal
from beacontrack.domain.admin.ports import ITokenVerifier
from beacontrack.domain.shared.errors import AuthorizationError
from beacontrack.infrastructure.auth.middleware import AuthMiddleware


async def call_next(request):
    return JSONResponse(content={"message": "success"})


class TestAuthMiddleware:
    @pytest.fixture
    def verifier(self):
        verifier = MagicMock(spec=ITokenVerifier)
        verifier.verify = AsyncMock()
        return verifier

    @pytest.fixture
    def middleware(self, verifier):
        return AuthMiddleware(FastAPI(), verifier=verifier, auth_required=True)

    @pytest.fixture
    def mock_request(self):
        request = MagicMock(spec=Request)
        request.headers = {}
        request.url.path = "/graphql"
        request.state = MagicMock()
        return request

    @pytest.mark.asyncio
    async def test_valid_token_sets_principal(self, middleware, mock_request, verifier):
        mock_request.headers = {"Authorization": "Bearer good"}
        principal = Principal(principal_id="user_1")
        verifier.verify.return_value = principal

        response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 200
        assert mock_request.state.principal == principal
        verifier.verify.assert_awaited_once_with("good")

    @pytest.mark.asyncio
    async def test_missing_token_rejected(self, middleware, mock_request):
        response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 401
        assert "Missing authorization token" in response.body.decode()

    @pytest.mark.asyncio
    async def test_missing_token_allowed_when_optional(self, middleware, mock_request):
        middleware.auth_required = False

        response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 200
        assert mock_request.state.principal is None

    @pytest.mark.asyncio
    async def test_rejected_token(self, middleware, mock_request, verifier):
        mock_request.headers = {"Authorization": "Bearer bad"}
        verifier.verify.side_effect = AuthorizationError("Token has expired")

        response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 401
        assert '"error":"UNAUTHORIZED"' in response.body.decode()

    @pytest.mark.asyncio
    async def test_public_path_skips_auth(self, middleware, mock_request, verifier):
        mock_request.url.path = "/health"

        response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 200
        verifier.verify.assert_not_awaited()

    def test_extract_token(self, middleware):
        assert middleware._extract_token("Bearer abc") == "abc"
        assert middleware._extract_token("bearer abc") == "abc"
        assert middleware._extract_token("Basic abc") is None
        assert middleware._extract_token("abc") is None
        assert middleware._extract_token(None) is None
