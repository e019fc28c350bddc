"""
Unit tests for Store Service identity middleware and role dependencies.
"""

from unittest.mock import Mock

import pytest
from fastapi import Request
from starlette.datastructures import State
from starlette.responses import Response

from store_service.app.core.errors import ForbiddenError, UnauthorizedError
from store_service.app.middleware.auth.auth_middleware import (
    AuthenticatedUser,
    StoreServiceAuthMiddleware,
)


@pytest.fixture
def mock_request():
    request = Mock(spec=Request)
    request.state = State()
    request.headers = {}
    request.url.path = "/api/v1/categories"
    return request


@pytest.fixture
def mock_call_next():
    async def call_next(request):
        return Response("OK", status_code=200)

    return call_next


class TestStoreServiceAuthMiddleware:
    @pytest.fixture
    def middleware(self):
        return StoreServiceAuthMiddleware(app=Mock())

    @pytest.mark.asyncio
    async def test_forwarded_identity_is_copied(self, middleware, mock_request, mock_call_next):
        mock_request.headers = {"X-User-ID": "42", "X-User-Role": "Admin"}

        response = await middleware.dispatch(mock_request, mock_call_next)

        assert response.status_code == 200
        assert mock_request.state.user_id == "42"
        assert mock_request.state.user_role == "admin"

    @pytest.mark.asyncio
    async def test_role_defaults_to_customer(self, middleware, mock_request, mock_call_next):
        mock_request.headers = {"X-User-ID": "42"}

        await middleware.dispatch(mock_request, mock_call_next)

        assert mock_request.state.user_role == "customer"

    @pytest.mark.asyncio
    async def test_anonymous_request_passes_through(
        self, middleware, mock_request, mock_call_next
    ):
        response = await middleware.dispatch(mock_request, mock_call_next)

        assert response.status_code == 200
        assert getattr(mock_request.state, "user_id", None) is None


class TestAuthenticatedUser:
    @pytest.mark.asyncio
    async def test_missing_identity(self, mock_request):
        with pytest.raises(UnauthorizedError) as exc_info:
            await AuthenticatedUser()(mock_request)

        assert exc_info.value.error.code == "Auth.Unauthenticated"

    @pytest.mark.asyncio
    async def test_wrong_role(self, mock_request):
        mock_request.state.user_id = "7"
        mock_request.state.user_role = "customer"

        with pytest.raises(ForbiddenError):
            await AuthenticatedUser(required_role="admin")(mock_request)

    @pytest.mark.asyncio
    async def test_admin(self, mock_request):
        mock_request.state.user_id = "42"
        mock_request.state.user_role = "admin"

        user = await AuthenticatedUser(required_role="admin")(mock_request)

        assert user == {"user_id": "42", "role": "admin"}
