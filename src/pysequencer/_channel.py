"""Push-notification channel (socket.io) runtime."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, Protocol

import socketio
from socketio import exceptions as sio_exceptions

from pysequencer._redact import summarize_for_log
from pysequencer.exceptions import SequencerChannelError

EventCallback = Callable[[str, Any], None]


class Channel(Protocol):
    """Structural interface of a push channel.

    The scheduler only needs to connect, disconnect and ask whether the
    channel is up; lifecycle transitions and events come back through the
    callbacks given to the factory.
    """

    @property
    def is_connected(self) -> bool: ...

    async def connect(self, url: str) -> None: ...

    async def disconnect(self) -> None: ...


class ChannelFactory(Protocol):
    def __call__(
        self,
        *,
        events: Iterable[str],
        on_event: EventCallback,
        on_connect: Callable[[], None],
        on_error: Callable[[Any], None],
        on_disconnect: Callable[[Any], None],
    ) -> Channel: ...


class SocketChannel:
    """socket.io client that forwards a fixed set of events to one callback."""

    def __init__(
        self,
        *,
        events: Iterable[str],
        on_event: EventCallback,
        on_connect: Callable[[], None],
        on_error: Callable[[Any], None],
        on_disconnect: Callable[[Any], None],
        transports: Iterable[str] = ("websocket", "polling"),
        reconnection: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._transports = list(transports)
        self._reconnection = reconnection
        self._on_event = on_event
        self._client = socketio.AsyncClient(
            reconnection=reconnection,
            logger=False,
            handle_sigint=False,
        )

        def _connected() -> None:
            self._logger.debug("socket connected sid=%s", self._client.sid)
            on_connect()

        def _connect_error(data: Any = None) -> None:
            on_error(data)

        def _disconnected(reason: Any = None) -> None:
            on_disconnect(reason)

        self._client.on("connect", _connected)
        self._client.on("connect_error", _connect_error)
        self._client.on("disconnect", _disconnected)
        for name in events:
            self._client.on(name, self._forwarder(name))

    def _forwarder(self, name: str) -> Callable[..., None]:
        def _forward(*args: Any) -> None:
            payload = args[0] if args else None
            self._logger.debug("socket event %s payload=%s", name, summarize_for_log(payload))
            self._on_event(name, payload)

        return _forward

    @property
    def is_connected(self) -> bool:
        return bool(self._client.connected)

    async def connect(self, url: str) -> None:
        """Open the connection; raises :class:`SequencerChannelError` on failure.

        With reconnection enabled a failed first attempt keeps retrying with
        backoff, reporting each failure through ``on_error``, and this call
        only returns once connected. It raises when retrying is aborted.
        """
        try:
            await self._client.connect(url, transports=self._transports, retry=self._reconnection)
        except (sio_exceptions.ConnectionError, ValueError, OSError) as exc:
            raise SequencerChannelError(f"socket connect to {url} failed: {exc}") from exc

    async def disconnect(self) -> None:
        """Disconnect, or stop a background reconnect loop."""
        await self._client.shutdown()


def socket_channel_factory(
    *,
    transports: Iterable[str],
    reconnection: bool,
    logger: logging.Logger | None = None,
) -> ChannelFactory:
    """Build a factory producing :class:`SocketChannel` with fixed options."""

    def _factory(
        *,
        events: Iterable[str],
        on_event: EventCallback,
        on_connect: Callable[[], None],
        on_error: Callable[[Any], None],
        on_disconnect: Callable[[Any], None],
    ) -> Channel:
        return SocketChannel(
            events=events,
            on_event=on_event,
            on_connect=on_connect,
            on_error=on_error,
            on_disconnect=on_disconnect,
            transports=transports,
            reconnection=reconnection,
            logger=logger,
        )

    return _factory
