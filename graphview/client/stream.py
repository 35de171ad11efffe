"""
graphview/client/stream.py

Long-lived WebSocket connection to ``/graph/{app}/ws``.

GraphStream.run() connects, reports ``live`` once the handshake succeeds,
hands every text frame to ``on_message`` and reports ``offline`` when the
connection errors or closes.  Reconnection uses exponential backoff
(``reconnect_delay * 2 ** (attempt - 1)``) up to ``max_reconnect_attempts``
consecutive failures; the counter resets after every successful open.
Setting the limit to 0 disables reconnection, leaving the view offline
until it is refreshed by hand.

Cancelling the task running ``run()`` closes the socket and reports
``closed``.
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from graphview.client.session import Session
from graphview.config import settings
from graphview.sync.synchronizer import ConnectionState

logger = structlog.get_logger(__name__)

MessageCallback = Callable[[str | bytes], object]
StatusCallback = Callable[[ConnectionState], None]


class GraphStream:
    """Streaming connection for a single application graph."""

    def __init__(
        self,
        session: Session,
        app_name: str,
        *,
        max_reconnect_attempts: int = settings.stream_max_reconnect_attempts,
        reconnect_delay: float = settings.stream_reconnect_delay,
        ping_interval: float | None = settings.stream_ping_interval,
    ) -> None:
        self._session = session
        self.app_name = app_name
        self.max_reconnect_attempts = max_reconnect_attempts
        self.reconnect_delay = reconnect_delay
        self.ping_interval = ping_interval
        self.attempts = 0

    @property
    def url(self) -> str:
        return self._session.stream_url(self.app_name)

    def backoff(self, attempt: int) -> float:
        """Delay before reconnect *attempt* (1-based)."""
        return self.reconnect_delay * (2 ** (attempt - 1))

    async def _session_once(self, on_message: MessageCallback, on_status: StatusCallback) -> None:
        async with connect(self.url, ping_interval=self.ping_interval) as websocket:
            self.attempts = 0
            on_status(ConnectionState.LIVE)
            logger.info("graph_stream_connected", app=self.app_name)
            async for frame in websocket:
                try:
                    on_message(frame)
                except Exception:
                    logger.exception("graph_stream_callback_failed", app=self.app_name)

    async def run(self, on_message: MessageCallback, on_status: StatusCallback) -> None:
        """Stream until cancelled or the reconnect budget is exhausted."""
        try:
            while True:
                on_status(ConnectionState.CONNECTING)
                try:
                    await self._session_once(on_message, on_status)
                    logger.info("graph_stream_closed_by_server", app=self.app_name)
                except ConnectionClosed as exc:
                    logger.info("graph_stream_connection_closed", app=self.app_name, code=exc.rcvd.code if exc.rcvd else None)
                except (OSError, WebSocketException, asyncio.TimeoutError) as exc:
                    logger.warning("graph_stream_error", app=self.app_name, error=str(exc))

                on_status(ConnectionState.OFFLINE)

                if self.attempts >= self.max_reconnect_attempts:
                    logger.warning(
                        "graph_stream_gave_up",
                        app=self.app_name,
                        attempts=self.attempts,
                    )
                    return

                self.attempts += 1
                delay = self.backoff(self.attempts)
                logger.info(
                    "graph_stream_reconnecting",
                    app=self.app_name,
                    attempt=self.attempts,
                    max_attempts=self.max_reconnect_attempts,
                    delay_s=delay,
                )
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            on_status(ConnectionState.CLOSED)
            logger.info("graph_stream_cancelled", app=self.app_name)
            raise
