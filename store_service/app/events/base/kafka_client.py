import asyncio
import json
from typing import Optional, Set

from aiokafka import AIOKafkaProducer  # type: ignore
from aiokafka.admin import AIOKafkaAdminClient, NewTopic  # type: ignore
from aiokafka.errors import KafkaConnectionError, KafkaError  # type: ignore

from ...core.settings import get_settings
from ...utils.logging import setup_store_logging as setup_logging
from . import BaseEvent, EventPublisher

logger = setup_logging("store_service.events.kafka", log_level=get_settings().LOG_LEVEL)


class KafkaEventPublisher(EventPublisher):
    """
    Kafka producer for integration events.

    Messages are keyed by aggregate id, so all events of one aggregate land on
    the same partition in the order the outbox delivers them. If the broker was
    unreachable at startup, ``publish`` tries to connect again before sending.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        client_id: str,
        default_topic: str = "store.events",
        max_retries: int = 3,
        retry_delay: float = 2.0,
        reconnect_timeout: float = 10.0,
        topic_partitions: int = 3,
        enable_graceful_degradation: bool = False,
    ):
        self.bootstrap_servers = bootstrap_servers
        self.client_id = client_id
        self.default_topic = default_topic
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.reconnect_timeout = reconnect_timeout
        self.topic_partitions = topic_partitions
        self.enable_graceful_degradation = enable_graceful_degradation
        self.producer: Optional[AIOKafkaProducer] = None
        self.is_connected = False
        self._connection_lock = asyncio.Lock()
        self._known_topics: Set[str] = set()

    def _build_producer(self) -> AIOKafkaProducer:
        return AIOKafkaProducer(
            bootstrap_servers=self.bootstrap_servers,
            client_id=self.client_id,
            value_serializer=lambda x: json.dumps(x, default=str).encode("utf-8"),
            key_serializer=lambda x: x.encode("utf-8") if x else None,
            acks="all",
            enable_idempotence=True,
            request_timeout_ms=30000,
        )

    @staticmethod
    async def _discard(producer: AIOKafkaProducer) -> None:
        try:
            await producer.stop()
        except KafkaError as e:
            logger.debug(
                "Discarding Kafka producer failed",
                extra={"error": str(e), "operation": "kafka_connect"},
            )

    async def _connect(self, timeout: float) -> bool:
        """One connection attempt with a fresh producer; caller holds the lock"""
        producer = self._build_producer()
        try:
            await asyncio.wait_for(producer.start(), timeout=timeout)
        except (KafkaConnectionError, asyncio.TimeoutError) as e:
            logger.warning(
                "Kafka connection attempt failed",
                extra={
                    "bootstrap_servers": self.bootstrap_servers,
                    "error": str(e) or type(e).__name__,
                    "operation": "kafka_connect",
                },
            )
            await self._discard(producer)
            return False

        self.producer = producer
        self.is_connected = True
        logger.info(
            "Connected to Kafka",
            extra={"bootstrap_servers": self.bootstrap_servers, "operation": "kafka_connect"},
        )
        return True

    async def start(self, timeout: float = 30.0) -> None:
        """Connect with exponential backoff; stays disconnected after the last attempt"""
        async with self._connection_lock:
            if self.is_connected:
                return

            for attempt in range(1, self.max_retries + 1):
                if await self._connect(timeout):
                    return
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay * 2 ** (attempt - 1))

            logger.error(
                "Kafka unreachable at startup; publishing will reconnect on demand",
                extra={
                    "attempts": self.max_retries,
                    "graceful_degradation": self.enable_graceful_degradation,
                    "operation": "kafka_connect",
                },
            )

    async def _ensure_connected(self) -> bool:
        if self.is_connected:
            return True
        async with self._connection_lock:
            if self.is_connected:
                return True
            if self.producer is not None:
                await self._discard(self.producer)
                self.producer = None
            return await self._connect(self.reconnect_timeout)

    async def ensure_topic_exists(self, topic_name: str) -> None:
        """Create ``topic_name`` once per process if the broker lacks it"""
        if topic_name in self._known_topics:
            return

        admin_client = AIOKafkaAdminClient(bootstrap_servers=self.bootstrap_servers)
        await admin_client.start()
        try:
            if topic_name not in await admin_client.list_topics():
                await admin_client.create_topics(
                    [
                        NewTopic(
                            name=topic_name,
                            num_partitions=self.topic_partitions,
                            replication_factor=1,
                        )
                    ]
                )
                logger.info(
                    "Created Kafka topic",
                    extra={
                        "topic_name": topic_name,
                        "partitions": self.topic_partitions,
                        "operation": "create_topic",
                    },
                )
            self._known_topics.add(topic_name)
        except KafkaError as e:
            logger.warning(
                "Could not verify Kafka topic",
                extra={"topic_name": topic_name, "error": str(e), "operation": "ensure_topic"},
            )
        finally:
            await admin_client.close()

    async def stop(self) -> None:
        async with self._connection_lock:
            if self.producer is None:
                return
            try:
                await self.producer.stop()
                logger.info("Kafka producer stopped")
            except KafkaError as e:
                logger.warning(
                    "Error stopping Kafka producer",
                    extra={"error": str(e), "operation": "stop_producer"},
                )
            finally:
                self.producer = None
                self.is_connected = False

    async def publish(self, event: BaseEvent, topic: Optional[str] = None) -> None:
        """
        Publish an event keyed by its aggregate id.

        Without a connection the event is logged instead when graceful
        degradation is on; otherwise the error propagates to the caller.
        """
        if not await self._ensure_connected():
            if self.enable_graceful_degradation:
                logger.warning(
                    f"Kafka not available, logging event instead: {event.event_type}",
                    extra={
                        "event_id": event.event_id,
                        "event_type": event.event_type,
                        "event_data": event.model_dump(mode="json"),
                    },
                )
                return
            raise KafkaConnectionError("Kafka producer not connected")

        topic = topic or self.default_topic
        await self.ensure_topic_exists(topic)

        try:
            await self.producer.send_and_wait(  # type: ignore[union-attr]
                topic=topic,
                value=event.model_dump(mode="json"),
                key=event.aggregate_id,
            )
        except KafkaConnectionError:
            self.is_connected = False
            raise
        except KafkaError as e:
            logger.error(
                "Failed to publish event to Kafka",
                extra={
                    "event_type": event.event_type,
                    "error": str(e),
                    "event_id": event.event_id,
                    "operation": "publish_event_failed",
                },
            )
            raise

        logger.info(
            "Published event to Kafka topic",
            extra={
                "event_type": event.event_type,
                "topic": topic,
                "event_id": event.event_id,
                "aggregate_id": event.aggregate_id,
                "operation": "publish_event",
            },
        )

    async def health_check(self) -> bool:
        if self.producer is None or not self.is_connected:
            return False
        try:
            metadata = await self.producer.client.fetch_metadata()
        except KafkaError as e:
            logger.warning(
                "Kafka health check failed",
                extra={"error": str(e), "operation": "health_check"},
            )
            return False
        return len(metadata.brokers()) > 0
