"""
Sequential ingestion loop.

Pulls one payload at a time from a message source, decodes it and hands it
to the order service. Bad messages and failed saves of any kind are logged
and dropped; there is no retry and no dead-letter queue. Receive errors end
the loop. It otherwise runs until the shared stop event is set, abandoning
a blocked receive or an in-flight save.
"""

import asyncio
from typing import Any, Awaitable

from orderstream.core.exceptions import OrderDecodeError, OrderStreamError
from orderstream.core.logging import get_logger
from orderstream.domain.order import decode_order
from orderstream.ingestion.sources import MessageSource
from orderstream.services.orders import OrderService

logger = get_logger(__name__)

_STOPPED = object()


class OrderConsumer:
    """
    Ingestion loop feeding stream messages into the order service.

    Attributes:
        saved_count: Messages stored successfully since start
        discarded_count: Messages dropped because of a decode or save failure
    """

    def __init__(self, source: MessageSource, service: OrderService):
        self.source = source
        self.service = service
        self.saved_count = 0
        self.discarded_count = 0

    async def run(self, stop_event: asyncio.Event) -> None:
        """
        Consume messages until ``stop_event`` is set.

        Args:
            stop_event: Shared cancellation signal

        Raises:
            Exception: Whatever the source raises on a failed receive
        """
        logger.info("Order consumer started")

        while not stop_event.is_set():
            payload = await self._until_stopped(self.source.receive(), stop_event)
            if payload is _STOPPED:
                break

            try:
                order = decode_order(payload)
            except OrderDecodeError as e:
                self.discarded_count += 1
                logger.warning(
                    "Discarding undecodable message",
                    payload_size=len(payload),
                    error=str(e),
                    error_count=e.context.get("error_count"),
                )
                continue

            try:
                outcome = await self._until_stopped(
                    self.service.save_order(order), stop_event
                )
            except OrderStreamError as e:
                self.discarded_count += 1
                logger.warning(
                    "Discarding order that could not be saved",
                    order_uid=order.order_uid,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue
            except Exception as e:
                self.discarded_count += 1
                logger.error(
                    "Unexpected error saving order, discarding",
                    order_uid=order.order_uid,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                continue

            if outcome is _STOPPED:
                logger.info("Save abandoned on shutdown", order_uid=order.order_uid)
                break
            self.saved_count += 1

        logger.info(
            "Order consumer stopped",
            saved=self.saved_count,
            discarded=self.discarded_count,
        )

    async def close(self) -> None:
        """Close the underlying message source."""
        await self.source.close()

    async def _until_stopped(self, awaitable: Awaitable[Any], stop_event: asyncio.Event) -> Any:
        """Await ``awaitable`` unless the stop event fires first."""
        task = asyncio.ensure_future(awaitable)
        stopper = asyncio.ensure_future(stop_event.wait())

        try:
            done, _ = await asyncio.wait(
                {task, stopper}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            stopper.cancel()
            raise

        stopper.cancel()
        # a finished operation wins over a simultaneous stop
        if task in done:
            return task.result()

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return _STOPPED
