"""
Error handling middleware package for Store Service.
"""

from .error_handler import (
    StoreServiceErrorHandler,
    setup_store_error_handling,
    status_code_for,
)

__all__ = ["StoreServiceErrorHandler", "setup_store_error_handling", "status_code_for"]
