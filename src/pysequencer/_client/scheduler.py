"""Dual-channel update scheduling for SequencerClient.

Owns:
- the initial full refresh of a session
- opening the push channel and reacting to its lifecycle
- the polling fallback timer (started at most once, stopped only at teardown)
- dispatching channel events to lane-scoped or full refreshes

Refreshes are fire-and-forget tasks. They may overlap; the store decides
which response wins.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from pysequencer._channel import Channel, ChannelFactory
from pysequencer._client.gateway import LaneFetchResult, LaneGateway
from pysequencer.config import SequencerConfig
from pysequencer.state.events import (
    CHANNEL_EVENTS,
    ConnectionStatus,
    RefreshIntent,
    Side,
    intent_for_event,
)
from pysequencer.state.store import ViewStateStore


class UpdateScheduler:
    def __init__(
        self,
        *,
        config: SequencerConfig,
        gateway: LaneGateway,
        store: ViewStateStore,
        channel_factory: ChannelFactory | None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._gateway = gateway
        self._store = store
        self._channel_factory = channel_factory
        self._logger = logger or logging.getLogger(__name__)
        self._channel: Channel | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._started = False
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def polling(self) -> bool:
        return self._poll_task is not None

    @property
    def channel(self) -> Channel | None:
        return self._channel

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin the session. Must be called from a running event loop.

        Kicks off the initial full refresh and, independently, the push
        channel. Calling it again is a no-op.
        """
        if self._started:
            return
        self._started = True
        self._running = True
        self._store.set_status(ConnectionStatus.CONNECTING)
        self._spawn(self._initial_refresh(), name="sequencer-initial-refresh")
        self._open_channel()

    async def stop(self) -> None:
        """Tear down: stop polling, close the channel, cancel in-flight refreshes.

        Safe to call more than once.
        """
        self._running = False

        pending: list[asyncio.Task[Any]] = []
        for task in (self._poll_task, self._connect_task):
            if task is not None:
                task.cancel()
                pending.append(task)
        self._poll_task = None
        self._connect_task = None

        for task in list(self._tasks):
            task.cancel()
            pending.append(task)

        channel = self._channel
        self._channel = None
        if channel is not None:
            try:
                await channel.disconnect()
            except Exception:
                self._logger.debug("channel disconnect failed", exc_info=True)

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def drain(self) -> None:
        """Wait until every refresh scheduled so far has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _initial_refresh(self) -> None:
        await self.refresh_all()
        if self._running:
            self._store.set_status(ConnectionStatus.READY)

    # ------------------------------------------------------------------
    # Push channel
    # ------------------------------------------------------------------

    def _open_channel(self) -> None:
        if not self._config.socket_enabled or self._channel_factory is None:
            self._logger.info("push channel disabled; polling every %sms", self._config.poll_interval_ms)
            self.start_polling()
            return

        try:
            channel = self._channel_factory(
                events=CHANNEL_EVENTS,
                on_event=self.dispatch_event,
                on_connect=self._on_channel_connect,
                on_error=self._on_channel_error,
                on_disconnect=self._on_channel_disconnect,
            )
        except Exception as exc:
            self._logger.warning("socket setup failed: %s", exc)
            self.start_polling()
            self._store.set_status(ConnectionStatus.POLLING)
            return

        self._channel = channel
        # Not tracked with refreshes: a retrying connect may run for the whole session.
        self._connect_task = asyncio.get_running_loop().create_task(
            self._connect_channel(channel),
            name="sequencer-channel-connect",
        )

    async def _connect_channel(self, channel: Channel) -> None:
        url = self._config.resolved_socket_url
        self._logger.debug("connecting push channel url=%s", url)
        try:
            await channel.connect(url)
        except Exception as exc:
            self._on_channel_error(exc)
        finally:
            if self._connect_task is asyncio.current_task():
                self._connect_task = None

    def _on_channel_connect(self) -> None:
        if not self._running:
            return
        self._logger.info("push channel connected")
        self._store.set_status(ConnectionStatus.SOCKET_CONNECTED)

    def _on_channel_error(self, error: Any) -> None:
        if not self._running:
            return
        self._logger.warning("socket connect_error: %s", error)
        self.start_polling()
        self._store.set_status(ConnectionStatus.SOCKET_ERROR)

    def _on_channel_disconnect(self, reason: Any = None) -> None:
        if not self._running:
            return
        self._logger.warning("socket disconnected: %s", reason)
        self.start_polling()
        self._store.set_status(ConnectionStatus.SOCKET_DISCONNECTED)

    def dispatch_event(self, event: str, payload: Any = None) -> None:
        """Translate one channel event into exactly one refresh."""
        if not self._running:
            return
        intent = intent_for_event(event, payload)
        if intent is None:
            self._logger.debug("ignoring channel event %s", event)
            return
        self.request(intent)

    # ------------------------------------------------------------------
    # Polling fallback
    # ------------------------------------------------------------------

    def start_polling(self) -> None:
        """Start the polling timer unless it is already running.

        Polling is never stopped by a channel reconnect, only by :meth:`stop`.
        """
        if self._poll_task is not None or not self._running:
            return
        self._logger.info("starting polling every %sms", self._config.poll_interval_ms)
        self._poll_task = asyncio.get_running_loop().create_task(
            self._poll_loop(),
            name="sequencer-poll",
        )
        self._store.set_status(ConnectionStatus.POLLING)

    async def _poll_loop(self) -> None:
        interval = self._config.poll_interval
        while self._running:
            await asyncio.sleep(interval)
            if not self._running:
                return
            self._spawn(self.refresh_all(), name="sequencer-poll-refresh")

    # ------------------------------------------------------------------
    # Refreshes
    # ------------------------------------------------------------------

    def request(self, intent: RefreshIntent) -> None:
        """Schedule a refresh for *intent* without waiting for it."""
        intent = RefreshIntent(intent)
        if intent is RefreshIntent.FULL:
            self._spawn(self.refresh_all(), name="sequencer-refresh-full")
        else:
            side = intent.sides[0]
            self._spawn(self.refresh_lane(side), name=f"sequencer-refresh-{side}")

    async def refresh_lane(self, side: Side) -> LaneFetchResult:
        """Fetch one lane and apply it to the store if it is still current."""
        side = Side(side)
        ticket = self._store.next_ticket(side)
        result = await self._gateway.fetch_lane(side)
        if result.snapshot is not None:
            self._store.apply_fetch(side, result.snapshot, ticket=ticket)
        return result

    async def refresh_all(self) -> tuple[LaneFetchResult, LaneFetchResult]:
        """Fetch both lanes concurrently; one lane failing never blocks the other."""
        left, right = await asyncio.gather(
            self.refresh_lane(Side.LEFT),
            self.refresh_lane(Side.RIGHT),
        )
        return left, right

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("%s failed", task.get_name(), exc_info=exc)
