"""
Identity middleware for Store Service.

The API gateway authenticates callers and forwards their identity in the
``X-User-ID`` and ``X-User-Role`` headers; this service trusts those headers.
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ...core.errors import ForbiddenError, UnauthorizedError
from ...core.settings import get_settings
from ...utils.logging import setup_store_logging

logger = setup_store_logging("store_service.auth", log_level=get_settings().LOG_LEVEL)

USER_ID_HEADER = "X-User-ID"
USER_ROLE_HEADER = "X-User-Role"


class StoreServiceAuthMiddleware(BaseHTTPMiddleware):
    """Copies the forwarded caller identity onto ``request.state``"""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        user_id = request.headers.get(USER_ID_HEADER)
        if user_id and user_id.strip():
            request.state.user_id = user_id.strip()
            request.state.user_role = (
                request.headers.get(USER_ROLE_HEADER) or "customer"
            ).strip().lower()
        return await call_next(request)


class AuthenticatedUser:
    """Dependency to get authenticated user info from request."""

    def __init__(self, required_role: Optional[str] = None):
        self.required_role = required_role

    async def __call__(self, request: Request) -> Dict[str, Any]:
        user_id = getattr(request.state, "user_id", None)
        user_role = getattr(request.state, "user_role", None)

        if not user_id:
            raise UnauthorizedError("Authentication required", "Auth.Unauthenticated")

        if self.required_role and user_role != self.required_role:
            logger.warning(
                "Access denied for role",
                extra={
                    "correlation_id": getattr(request.state, "correlation_id", None),
                    "user_id": user_id,
                    "user_role": user_role,
                    "required_role": self.required_role,
                    "path": request.url.path,
                },
            )
            raise ForbiddenError(
                f"Required role: {self.required_role}", "Auth.Forbidden"
            )

        return {"user_id": user_id, "role": user_role}


def setup_store_auth_middleware(app: FastAPI) -> None:
    """Setup identity middleware for the Store Service."""

    app.add_middleware(StoreServiceAuthMiddleware)

    logger.info(
        "Store Service identity middleware configured",
        extra={"service": "store_service", "event_type": "auth_middleware_setup"},
    )


authenticated_user = AuthenticatedUser()
admin_user = AuthenticatedUser(required_role="admin")
