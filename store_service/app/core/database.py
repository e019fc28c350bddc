from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from ..models.base import StoreServiceBase
from ..utils.logging import setup_store_logging as setup_logging
from .settings import get_settings

# Setup structured logging for database operations
logger = setup_logging("store_service.database", log_level=get_settings().LOG_LEVEL)


def _mask_url(database_url: str) -> str:
    if "@" not in database_url:
        return database_url
    return database_url.split("://")[0] + "://***@" + database_url.split("@", 1)[1]


class StoreServiceDatabaseManager:
    """Database manager for the Store Service."""

    def __init__(self, database_url: str, echo: bool = False) -> None:
        settings = get_settings()
        logger.info(
            "Initializing Store Service database manager",
            extra={
                "operation": "database_manager_init",
                "database_url": _mask_url(database_url),
                "echo": echo,
            },
        )

        engine_kwargs: Dict[str, Any] = {"echo": echo}

        if "sqlite" in database_url:
            # Connections are opened per session so they always belong to the
            # running event loop
            engine_kwargs["poolclass"] = NullPool
            engine_kwargs["connect_args"] = {"timeout": 60, "check_same_thread": False}
            logger.info(
                "Configured SQLite database settings",
                extra={"database_type": "sqlite", "timeout": 60},
            )
        else:
            engine_kwargs.update(
                {
                    "pool_size": settings.DATABASE_POOL_SIZE,
                    "max_overflow": settings.DATABASE_MAX_OVERFLOW,
                    "pool_timeout": 45,
                    "pool_recycle": 3600,
                    "pool_pre_ping": True,
                    "connect_args": {
                        "command_timeout": 30,
                        "prepared_statement_cache_size": 0,
                    },
                }
            )
            logger.info(
                "Configured PostgreSQL database settings",
                extra={
                    "database_type": "postgresql",
                    "pool_size": settings.DATABASE_POOL_SIZE,
                    "max_overflow": settings.DATABASE_MAX_OVERFLOW,
                },
            )

        self.async_engine = create_async_engine(database_url, **engine_kwargs)
        self.async_session_maker = async_sessionmaker(
            bind=self.async_engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_tables(self) -> None:
        """Create all Store Service database tables."""
        async with self.async_engine.begin() as conn:
            await conn.run_sync(StoreServiceBase.metadata.create_all, checkfirst=True)
        logger.info(
            "Database tables created successfully",
            extra={"operation": "create_tables"},
        )

    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get async database session for Store Service."""
        async with self.async_session_maker() as session:
            yield session

    async def close(self) -> None:
        """Close the Store Service database engine and connections."""
        await self.async_engine.dispose()
        logger.info(
            "Store Service database connections closed",
            extra={"operation": "database_close"},
        )


database_manager = StoreServiceDatabaseManager(
    database_url=get_settings().STORE_DATABASE_URL, echo=get_settings().DEBUG
)


# Dependency injection function for FastAPI
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for dependency injection."""
    async for session in database_manager.get_async_session():
        yield session
