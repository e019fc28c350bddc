from typing import Any, Dict

from fastapi import APIRouter, Request
from sqlalchemy import text

from ...core import database as db_module
from ...core.settings import get_settings
from ...utils.logging import setup_store_logging

logger = setup_store_logging("store_service.health", log_level=get_settings().LOG_LEVEL)
router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """Health check endpoint for the store service."""
    settings = get_settings()
    checks: Dict[str, str] = {}

    try:
        async with db_module.database_manager.async_session_maker() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        checks["database"] = "unhealthy"

    dispatcher = getattr(request.app.state, "outbox_dispatcher", None)
    checks["outbox_dispatcher"] = (
        "running" if dispatcher is not None and dispatcher.is_running else "stopped"
    )

    return {
        "status": "healthy" if checks["database"] == "healthy" else "degraded",
        "service": settings.SERVICE_NAME,
        "version": settings.APP_VERSION,
        "checks": checks,
    }
