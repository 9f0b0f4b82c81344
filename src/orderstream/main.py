"""
Service entry point.

Builds the object graph (database engine, cache, store, order service, HTTP
application, stream source), runs the lifecycle coordinator, and releases
every resource on the way out. Startup failures end the process with exit
code 1.
"""

import asyncio
import sys
from contextlib import AsyncExitStack

from orderstream.api.app import create_app
from orderstream.cache.base import OrderCache
from orderstream.cache.memory import InMemoryOrderCache
from orderstream.cache.redis import RedisOrderCache
from orderstream.core.config import Settings, get_settings
from orderstream.core.exceptions import StartupError
from orderstream.core.logging import configure_logging, get_logger, log_performance
from orderstream.database.connection import (
    check_database_connection,
    close_engine,
    create_engine,
    create_session_factory,
)
from orderstream.ingestion.consumer import OrderConsumer
from orderstream.ingestion.sources import KafkaMessageSource
from orderstream.lifecycle import LifecycleCoordinator, bind_socket, build_api_server
from orderstream.repositories.sql import SqlOrderStore
from orderstream.services.orders import OrderService

logger = get_logger(__name__)


async def build_cache(settings: Settings) -> OrderCache:
    """
    Create the configured order cache.

    Raises:
        StartupError: If the Redis backend is selected and unreachable
    """
    if settings.cache_backend == "redis":
        cache = RedisOrderCache(settings.redis_url, ttl=settings.cache_ttl_seconds)
        await cache.connect()
        return cache
    return InMemoryOrderCache()


async def run_service(settings: Settings) -> int:
    """
    Start all resources, run until shutdown and clean up.

    Args:
        settings: Application settings

    Returns:
        Process exit code reported by the coordinator

    Raises:
        StartupError: If a required resource cannot be initialized
    """
    async with AsyncExitStack() as stack:
        with log_performance(logger, "service_startup"):
            engine = create_engine(settings)
            stack.push_async_callback(close_engine, engine)
            await check_database_connection(engine)

            cache = await build_cache(settings)
            stack.push_async_callback(cache.close)

            store = SqlOrderStore(create_session_factory(engine))
            service = OrderService(store, cache)

            listener = bind_socket(settings.api_host, settings.api_port)
            stack.callback(listener.close)

            source = KafkaMessageSource(settings)
            await source.start()
            stack.push_async_callback(source.close)

        coordinator = LifecycleCoordinator(
            build_api_server(create_app(service, settings), settings),
            OrderConsumer(source, service),
            sockets=[listener],
            shutdown_timeout=settings.shutdown_timeout_seconds,
        )
        return await coordinator.run()


def main() -> None:
    """Console script entry point."""
    settings = get_settings()
    configure_logging(settings)

    logger.info(
        "Service starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        api_port=settings.api_port,
        kafka_topic=settings.kafka_topic,
        cache_backend=settings.cache_backend,
    )

    try:
        exit_code = asyncio.run(run_service(settings))
    except StartupError as e:
        logger.critical("Service failed to start", error=str(e), context=e.context)
        sys.exit(1)

    sys.exit(exit_code)
