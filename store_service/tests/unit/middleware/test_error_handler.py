"""
Unit tests for Store Service Error Handler.
"""

import json
from unittest.mock import Mock

import pytest
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from store_service.app.core.errors import (
    ConflictError,
    Error,
    ErrorType,
    StoreException,
    ValidationError,
)
from store_service.app.middleware.error.error_handler import (
    StoreServiceErrorHandler,
    status_code_for,
)


class TestStoreServiceErrorHandler:
    """Test cases for error handler."""

    @pytest.fixture
    def app(self):
        """Create FastAPI app with the store error handlers."""
        app = FastAPI()
        StoreServiceErrorHandler.setup_error_handlers(app)
        return app

    @pytest.fixture
    def mock_request(self):
        mock_request = Mock(spec=Request)
        mock_request.url.path = "/api/v1/categories"
        mock_request.method = "POST"
        mock_request.state.correlation_id = "test-correlation-id"
        mock_request.state.user_id = "42"
        return mock_request

    def test_setup_error_handlers(self, app):
        assert StoreException in app.exception_handlers
        assert StarletteHTTPException in app.exception_handlers
        assert RequestValidationError in app.exception_handlers
        assert Exception in app.exception_handlers

    @pytest.mark.parametrize(
        "error_type,status_code",
        [
            (ErrorType.VALIDATION, 400),
            (ErrorType.NOT_FOUND, 404),
            (ErrorType.CONFLICT, 409),
            (ErrorType.UNAUTHORIZED, 401),
            (ErrorType.FORBIDDEN, 403),
            (ErrorType.FAILURE, 500),
        ],
    )
    def test_status_mapping(self, error_type, status_code):
        assert status_code_for(Error("X.Y", "message", error_type)) == status_code

    @pytest.mark.asyncio
    async def test_store_exception_envelope(self, app, mock_request):
        handler = app.exception_handlers[StoreException]

        response = await handler(
            mock_request,
            ConflictError("A category with slug 'x' already exists", "Category.DuplicateSlug"),
        )

        assert response.status_code == 409
        body = json.loads(response.body)
        assert body == {
            "error": {
                "type": "conflict",
                "code": "Category.DuplicateSlug",
                "message": "A category with slug 'x' already exists",
                "correlation_id": "test-correlation-id",
            }
        }

    @pytest.mark.asyncio
    async def test_failure_message_is_not_leaked(self, app, mock_request):
        handler = app.exception_handlers[StoreException]

        response = await handler(
            mock_request, StoreException("psycopg: relation does not exist")
        )

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["error"]["message"] == "An internal server error occurred"
        assert "psycopg" not in response.body.decode()

    def test_from_error_picks_subclass(self):
        exc = StoreException.from_error(Error.validation("Category.InvalidSlug", "bad"))

        assert isinstance(exc, ValidationError)
        assert exc.error.code == "Category.InvalidSlug"

    @pytest.mark.asyncio
    async def test_http_exception_handler(self, app, mock_request):
        handler = app.exception_handlers[StarletteHTTPException]

        response = await handler(
            mock_request, StarletteHTTPException(status_code=404, detail="Not Found")
        )

        assert response.status_code == 404
        body = json.loads(response.body)
        assert body["error"]["code"] == "Http.404"
        assert body["error"]["message"] == "Not Found"

    @pytest.mark.asyncio
    async def test_request_validation_error_handler(self, app, mock_request):
        handler = app.exception_handlers[RequestValidationError]
        exc = RequestValidationError(
            [{"loc": ("body", "slug"), "msg": "Field required", "type": "missing"}]
        )

        response = await handler(mock_request, exc)

        assert response.status_code == 422
        body = json.loads(response.body)
        assert body["error"]["code"] == "Request.Invalid"
        assert body["error"]["details"]["validation_errors"] == [
            {"field": "body.slug", "message": "Field required", "type": "missing"}
        ]

    @pytest.mark.asyncio
    async def test_general_exception_handler(self, app, mock_request):
        handler = app.exception_handlers[Exception]

        response = await handler(mock_request, RuntimeError("secret detail"))

        assert response.status_code == 500
        assert "secret detail" not in response.body.decode()
