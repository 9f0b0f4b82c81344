"""
Message sources feeding the ingestion loop.

A source yields raw message payloads one at a time. Receive errors are
raised to the caller rather than retried; a broken transport ends ingestion.
"""

from abc import ABC, abstractmethod
from typing import Optional

from aiokafka import AIOKafkaConsumer
from aiokafka.errors import KafkaError

from orderstream.core.config import Settings, get_settings
from orderstream.core.exceptions import StartupError
from orderstream.core.logging import get_logger

logger = get_logger(__name__)


class MessageSource(ABC):
    """Abstract stream of encoded order events."""

    @abstractmethod
    async def start(self) -> None:
        """
        Connect to the transport.

        Raises:
            StartupError: If the transport cannot be reached
        """
        pass

    @abstractmethod
    async def receive(self) -> bytes:
        """Block until the next message arrives and return its payload."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the transport. Safe to call more than once."""
        pass


class KafkaMessageSource(MessageSource):
    """
    Kafka consumer-group source built on aiokafka.

    Offsets are committed automatically; a new consumer group starts from
    the earliest retained message.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        consumer: Optional[AIOKafkaConsumer] = None,
    ):
        """
        Initialize Kafka message source.

        Args:
            settings: Application settings, defaults to the process settings
            consumer: Preconfigured consumer, mainly for tests
        """
        self.settings = settings or get_settings()
        self._consumer = consumer or AIOKafkaConsumer(
            self.settings.kafka_topic,
            bootstrap_servers=self.settings.kafka_bootstrap_servers,
            group_id=self.settings.kafka_group_id,
            enable_auto_commit=True,
            auto_offset_reset="earliest",
        )
        self._started = False

    async def start(self) -> None:
        try:
            await self._consumer.start()
        except KafkaError as e:
            logger.error(
                "Failed to connect to Kafka",
                brokers=self.settings.kafka_brokers,
                error=str(e),
                error_type=type(e).__name__,
            )
            # a half-started consumer still holds a client
            await self._consumer.stop()
            raise StartupError(
                "Stream broker unreachable",
                brokers=self.settings.kafka_brokers,
                error=str(e),
            ) from e

        self._started = True
        logger.info(
            "Kafka consumer started",
            brokers=self.settings.kafka_brokers,
            topic=self.settings.kafka_topic,
            group_id=self.settings.kafka_group_id,
        )

    async def receive(self) -> bytes:
        message = await self._consumer.getone()
        return message.value or b""

    async def close(self) -> None:
        if not self._started:
            return
        self._started = False
        await self._consumer.stop()
        logger.info("Kafka consumer stopped", topic=self.settings.kafka_topic)
