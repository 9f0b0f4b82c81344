"""
Process lifecycle: running the HTTP API and the ingestion loop together.

Both activities run as tasks on one event loop and share a single stop
event. Termination, by signal or because one activity ended on its own,
drains them in a fixed order: signal ingestion to stop, let the API server
finish in-flight requests within the shutdown timeout, wait for the
ingestion loop, and finally close the stream transport.
"""

import asyncio
import contextlib
import math
import signal
import socket
from typing import Iterator, Optional, Protocol, Sequence

import uvicorn
from fastapi import FastAPI

from orderstream.core.config import Settings
from orderstream.core.exceptions import StartupError
from orderstream.core.logging import get_logger

logger = get_logger(__name__)


class ApiServer(Protocol):
    should_exit: bool

    async def serve(self, sockets: Optional[list[socket.socket]] = None) -> None: ...


class IngestionActivity(Protocol):
    async def run(self, stop_event: asyncio.Event) -> None: ...

    async def close(self) -> None: ...


class ManagedServer(uvicorn.Server):
    """
    Uvicorn server that leaves signal handling to the coordinator.

    Stopping is requested by setting ``should_exit``.
    """

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


def build_api_server(app: FastAPI, settings: Settings) -> ManagedServer:
    """
    Create the uvicorn server for the HTTP application.

    Args:
        app: FastAPI application
        settings: Application settings

    Returns:
        Server whose graceful shutdown is bounded by the shutdown timeout
    """
    config = uvicorn.Config(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
        access_log=False,
        timeout_graceful_shutdown=math.ceil(settings.shutdown_timeout_seconds),
    )
    return ManagedServer(config)


def bind_socket(host: str, port: int) -> socket.socket:
    """
    Bind the API listener before any activity starts.

    Args:
        host: Interface to listen on
        port: TCP port

    Returns:
        Bound, not yet listening socket

    Raises:
        StartupError: If the address cannot be bound
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    try:
        sock.bind((host, port))
    except OSError as e:
        sock.close()
        raise StartupError(
            "Cannot bind API listener",
            host=host,
            port=port,
            error=str(e),
        ) from e

    sock.set_inheritable(True)
    logger.info("API listener bound", host=host, port=port)
    return sock


class LifecycleCoordinator:
    """
    Runs the API server and the ingestion loop and stops them together.

    Attributes:
        stop_event: Shared cancellation signal passed to the ingestion loop
    """

    def __init__(
        self,
        server: ApiServer,
        consumer: IngestionActivity,
        sockets: Optional[Sequence[socket.socket]] = None,
        shutdown_timeout: float = 5.0,
        handle_signals: bool = True,
    ):
        """
        Initialize lifecycle coordinator.

        Args:
            server: API server, stopped through its ``should_exit`` flag
            consumer: Ingestion loop owning the stream transport
            sockets: Pre-bound listener sockets handed to the server
            shutdown_timeout: Bound in seconds on draining each activity
            handle_signals: Install SIGINT/SIGTERM handlers while running
        """
        self.server = server
        self.consumer = consumer
        self.sockets = list(sockets) if sockets else None
        self.shutdown_timeout = shutdown_timeout
        self.handle_signals = handle_signals
        self.stop_event = asyncio.Event()

    def request_stop(self, reason: str = "requested") -> None:
        """Begin shutdown. Safe to call repeatedly and from signal handlers."""
        if not self.stop_event.is_set():
            logger.info("Shutdown requested", reason=reason)
        self.stop_event.set()

    async def run(self) -> int:
        """
        Run both activities until shutdown and drain them.

        Returns:
            0 after a requested shutdown, 1 if an activity failed or ended
            on its own
        """
        loop = asyncio.get_running_loop()
        if self.handle_signals:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self.request_stop, sig.name)

        api_task = asyncio.create_task(self.server.serve(sockets=self.sockets), name="api")
        ingestion_task = asyncio.create_task(
            self.consumer.run(self.stop_event), name="ingestion"
        )
        stop_waiter = asyncio.create_task(self.stop_event.wait(), name="stop-waiter")
        logger.info("Service running")

        exit_code = 0
        try:
            done, _ = await asyncio.wait(
                {api_task, ingestion_task, stop_waiter},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if not self.stop_event.is_set():
                for task in (api_task, ingestion_task):
                    if task in done:
                        exit_code = 1
                        self._report_unexpected_exit(task)
                self.request_stop("activity exited")

            await self._drain(api_task, ingestion_task)
        finally:
            stop_waiter.cancel()
            if self.handle_signals:
                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.remove_signal_handler(sig)

        for task in (api_task, ingestion_task):
            if task.done() and not task.cancelled() and task.exception() is not None:
                exit_code = 1

        logger.info("Service stopped", exit_code=exit_code)
        return exit_code

    async def _drain(self, api_task: asyncio.Task, ingestion_task: asyncio.Task) -> None:
        self.stop_event.set()

        self.server.should_exit = True
        if not await self._settle(api_task):
            logger.warning(
                "API drain timed out, abandoning in-flight requests",
                timeout_seconds=self.shutdown_timeout,
            )

        if not await self._settle(ingestion_task):
            logger.warning(
                "Ingestion loop did not stop in time",
                timeout_seconds=self.shutdown_timeout,
            )

        try:
            await self.consumer.close()
        except Exception as e:
            logger.error(
                "Failed to close stream transport",
                error=str(e),
                error_type=type(e).__name__,
            )

    async def _settle(self, task: asyncio.Task) -> bool:
        """Wait for ``task`` within the shutdown timeout, cancelling it after."""
        if not task.done():
            await asyncio.wait({task}, timeout=self.shutdown_timeout)
        if task.done():
            return True

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        return False

    @staticmethod
    def _report_unexpected_exit(task: asyncio.Task) -> None:
        if task.cancelled():
            logger.error("Activity cancelled unexpectedly", activity=task.get_name())
            return

        error = task.exception()
        if error is None:
            logger.error("Activity exited unexpectedly", activity=task.get_name())
        else:
            logger.error(
                "Activity failed",
                activity=task.get_name(),
                error=str(error),
                error_type=type(error).__name__,
                exc_info=error,
            )
