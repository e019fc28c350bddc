"""
Authentication middleware package for Store Service.
"""

from .auth_middleware import (
    AuthenticatedUser,
    StoreServiceAuthMiddleware,
    admin_user,
    authenticated_user,
    setup_store_auth_middleware,
)

__all__ = [
    "StoreServiceAuthMiddleware",
    "AuthenticatedUser",
    "setup_store_auth_middleware",
    "authenticated_user",
    "admin_user",
]
