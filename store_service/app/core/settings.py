"""
Store Service configuration
"""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the store service directory path
STORE_SERVICE_DIR = Path(__file__).parent.parent.parent
ENV_FILE = STORE_SERVICE_DIR / ".env"


class StoreSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Store Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    SERVICE_NAME: str = "store-service"

    # Database
    STORE_DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 25
    DATABASE_MAX_OVERFLOW: int = 50

    # Cache
    CACHE_BACKEND: str = "redis"
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_KEY_PREFIX: str = "store:"
    CACHE_TTL_DEFAULT: int = 600
    CACHE_MAX_ENTRIES: int = 10000

    # Kafka for integration events
    ENABLE_EVENT_PUBLISHING: bool = True
    KAFKA_BOOTSTRAP_SERVERS: str = "localhost:9092"
    KAFKA_TOPIC_STORE_EVENTS: str = "store.events"
    KAFKA_GRACEFUL_DEGRADATION: bool = False

    # Outbox dispatch
    OUTBOX_DISPATCHER_ENABLED: bool = True
    OUTBOX_POLL_INTERVAL: float = 2.0
    OUTBOX_BATCH_SIZE: int = 50
    OUTBOX_MAX_RETRIES: int = 5
    OUTBOX_RETRY_BASE_DELAY: float = 5.0
    OUTBOX_VISIBILITY_TIMEOUT: float = 60.0
    OUTBOX_HANDLER_TIMEOUT: float = 30.0

    # Catalog
    CATEGORY_MAX_DEPTH: int = 64

    # CORS
    CORS_ORIGINS: List[str] = ["*"]
    CORS_CREDENTIALS: bool = True
    CORS_METHODS: List[str] = ["*"]
    CORS_HEADERS: List[str] = ["*"]


# Create a singleton instance
_settings_instance = None


def get_settings() -> StoreSettings:
    """Get settings singleton instance"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = StoreSettings()
    return _settings_instance
