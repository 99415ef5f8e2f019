"""Socket Mode session lifecycle."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Final

from aiohttp import WSMessage
from loguru import logger
from slack_sdk.socket_mode.async_client import AsyncBaseSocketModeClient
from slack_sdk.socket_mode.aiohttp import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse

from slackhello.config import Settings
from slackhello.errors import SessionStartError
from slackhello.events import (
    EVENTS_API_REQUEST,
    Connected,
    ConnectionFailed,
    Connecting,
    EventsAPI,
    Hello,
    Other,
    SessionState,
    TransportEvent,
)
from slackhello.transport import TransportClient

_END: Final = object()

ReconnectListener = Callable[[str], Awaitable[None]]


class ObservedSocketModeClient(SocketModeClient):
    """``SocketModeClient`` that announces reconnects before performing them.

    slack_sdk reconnects on its own for `disconnect` frames, stale sessions and CLOSE
    frames, none of which reach the regular listeners first.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.reconnect_listeners: list[ReconnectListener] = []

    async def connect_to_new_endpoint(self, force: bool = False) -> None:
        if force or not await self.is_connected():
            reason = "refresh requested" if force else "session lost"
            for listener in self.reconnect_listeners:
                await listener(reason)
        await super().connect_to_new_endpoint(force=force)


class RealtimeSession:
    """Own one Socket Mode connection and surface its traffic as ordered events.

    slack_sdk listener callbacks only enqueue; the connection keep-alive and reconnect
    logic never waits on whoever consumes ``events()``.
    """

    def __init__(
        self,
        client: ObservedSocketModeClient,
        transport: TransportClient,
        *,
        auto_reconnect: bool = True,
    ) -> None:
        self._client = client
        self.transport = transport
        self.auto_reconnect = auto_reconnect
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._state = SessionState.CONNECTING
        self._started = False
        self._subscribed = False
        self._terminated = False
        self._stop_requested = asyncio.Event()

        client.message_listeners.append(self._on_message)
        client.socket_mode_request_listeners.append(self._on_request)
        client.on_error_listeners.append(self._on_ws_error)
        client.on_close_listeners.append(self._on_ws_close)
        client.reconnect_listeners.append(self._on_reconnect)

    @classmethod
    def from_settings(cls, settings: Settings) -> RealtimeSession:
        transport = TransportClient.from_token(settings.slack_bot_token)
        client = ObservedSocketModeClient(
            app_token=settings.slack_app_token,
            web_client=transport.web_client,
            logger=logging.getLogger("slack_sdk.socket_mode"),
            auto_reconnect_enabled=settings.auto_reconnect,
            ping_interval=settings.ping_interval,
            trace_enabled=settings.debug,
        )
        return cls(client, transport, auto_reconnect=settings.auto_reconnect)

    @property
    def state(self) -> SessionState:
        return self._state

    async def start(self) -> None:
        """Connect and block until ``stop()`` or an unrecoverable connection drop.

        Raises ``SessionStartError`` when the first connection attempt fails.
        """

        if self._started:
            raise RuntimeError("session already started")
        self._started = True
        self._transition(SessionState.CONNECTING, Connecting())
        try:
            # connect() retries forever on its own; open the URL once so auth and network
            # failures surface here.
            self._client.wss_uri = await self._client.issue_new_wss_url()
            await self._client.connect()
        except Exception as exc:
            logger.error("session.connect.failed error={error}", error=repr(exc))
            await self.close()
            raise SessionStartError(f"could not open Socket Mode connection: {exc}") from exc

        try:
            await self._stop_requested.wait()
        finally:
            await self.close()

    def stop(self) -> None:
        self._stop_requested.set()

    def events(self) -> AsyncIterator[TransportEvent]:
        """Return the ordered event sequence; only one subscriber is allowed."""

        if self._subscribed:
            raise RuntimeError("session events already have a subscriber")
        self._subscribed = True
        return self._iter_events()

    async def _iter_events(self) -> AsyncIterator[TransportEvent]:
        while True:
            event = await self._queue.get()
            if event is _END:
                return
            yield event

    async def ack(self, envelope_id: str) -> None:
        await self._client.send_socket_mode_response(SocketModeResponse(envelope_id=envelope_id))
        logger.debug("session.ack envelope_id={envelope_id}", envelope_id=envelope_id)

    async def post_message(self, channel: str, thread_ts: str | None, text: str) -> str:
        return await self.transport.post_message(channel, thread_ts, text)

    def _transition(self, state: SessionState, event: TransportEvent) -> None:
        if state is not self._state:
            logger.info("session.state from={previous} to={current}", previous=self._state, current=state)
        self._state = state
        self._queue.put_nowait(event)

    async def close(self) -> None:
        """Close the socket client and end the event sequence."""

        if self._terminated:
            return
        self._terminated = True
        self._stop_requested.set()
        try:
            await self._client.close()
        except Exception:
            logger.exception("session.close.error")
        logger.info("session.state from={previous} to={current}", previous=self._state, current=SessionState.TERMINATED)
        self._state = SessionState.TERMINATED
        self._queue.put_nowait(_END)

    async def _on_message(
        self, _client: AsyncBaseSocketModeClient, message: dict[str, Any], _raw_message: str | None
    ) -> None:
        if self._terminated or message.get("type") != "hello":
            return
        if self._state is not SessionState.CONNECTED:
            self._transition(SessionState.CONNECTED, Connected())
        self._queue.put_nowait(Hello(num_connections=message.get("num_connections")))

    async def _on_request(self, _client: AsyncBaseSocketModeClient, request: SocketModeRequest) -> None:
        if self._terminated:
            return
        if request.type == EVENTS_API_REQUEST:
            self._queue.put_nowait(EventsAPI(request))
        else:
            self._queue.put_nowait(Other(type=request.type, payload=request.payload))

    async def _on_ws_error(self, message: WSMessage) -> None:
        self._connection_lost(f"websocket error: {message.data!r}", reconnecting=self.auto_reconnect)

    async def _on_ws_close(self, message: WSMessage) -> None:
        self._connection_lost(f"websocket closed: {message.type.name}", reconnecting=self.auto_reconnect)

    async def _on_reconnect(self, reason: str) -> None:
        self._connection_lost(reason, reconnecting=True)

    def _connection_lost(self, reason: str, *, reconnecting: bool) -> None:
        # Several callbacks can report the same drop; only the first counts.
        if self._stop_requested.is_set() or self._state is not SessionState.CONNECTED:
            return
        self._transition(SessionState.CONNECTION_ERROR, ConnectionFailed(reason=reason))
        if reconnecting:
            self._transition(SessionState.CONNECTING, Connecting())
        else:
            logger.warning("session.unrecoverable reason={reason}", reason=reason)
            self.stop()
