"""
Stream ingestion: message sources and the consumer loop.
"""

from orderstream.ingestion.consumer import OrderConsumer
from orderstream.ingestion.sources import KafkaMessageSource, MessageSource

__all__ = ["OrderConsumer", "MessageSource", "KafkaMessageSource"]
