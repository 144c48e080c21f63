"""High-level async client mirroring the sequencer backend."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiohttp

from pysequencer._channel import ChannelFactory, socket_channel_factory
from pysequencer._client.gateway import ActionResult, LaneFetchResult, LaneGateway
from pysequencer._client.scheduler import UpdateScheduler
from pysequencer._constants import ACTION_FLUSH
from pysequencer._transport import HttpTransport, Transport
from pysequencer.config import SequencerConfig
from pysequencer.exceptions import SequencerError
from pysequencer.models.row import SequenceRow
from pysequencer.state.events import ConnectionStatus, Side
from pysequencer.state.store import Listener, ViewStateStore
from pysequencer.state.view import LaneView, ViewState

_logger = logging.getLogger(__name__)


class SequencerClient:
    """Async client keeping both sequencing lanes in sync with the backend.

    Usage::

        async with SequencerClient(SequencerConfig(base_url="http://host:3000")) as client:
            view = client.derive(Side.LEFT)
    """

    def __init__(
        self,
        config: SequencerConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        channel_factory: ChannelFactory | None = None,
        on_change: Listener | None = None,
    ) -> None:
        self._config = config or SequencerConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._channel_factory = channel_factory
        self._store = ViewStateStore(
            page_size=self._config.page_size,
            discard_stale_responses=self._config.discard_stale_responses,
        )
        if on_change is not None:
            self._store.subscribe(on_change)
        self._gateway: LaneGateway | None = None
        self._scheduler: UpdateScheduler | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SequencerClient:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def start(self) -> None:
        """Open HTTP resources, run the initial refresh and open the push channel."""
        if self._scheduler is not None:
            return
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        self._gateway = LaneGateway(self._config, self._transport)

        factory = self._channel_factory
        if factory is None and self._config.socket_enabled:
            factory = socket_channel_factory(
                transports=self._config.socket_transports,
                reconnection=self._config.socket_reconnection,
                logger=logging.getLogger("pysequencer._channel"),
            )
        self._scheduler = UpdateScheduler(
            config=self._config,
            gateway=self._gateway,
            store=self._store,
            channel_factory=factory,
        )
        self._scheduler.start()

    async def close(self) -> None:
        """Tear the session down. Safe to call more than once."""
        scheduler = self._scheduler
        self._scheduler = None
        if scheduler is not None:
            await scheduler.stop()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None
        self._gateway = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_scheduler(self) -> UpdateScheduler:
        if self._scheduler is None:
            raise SequencerError("Client not started. Use 'async with SequencerClient(...) as client:'")
        return self._scheduler

    def _require_gateway(self) -> LaneGateway:
        if self._gateway is None:
            raise SequencerError("Client not started. Use 'async with SequencerClient(...) as client:'")
        return self._gateway

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def config(self) -> SequencerConfig:
        return self._config

    @property
    def store(self) -> ViewStateStore:
        return self._store

    @property
    def status(self) -> ConnectionStatus:
        return self._store.status

    @property
    def view(self) -> ViewState:
        return self._store.view

    def derive(self, side: Side) -> LaneView:
        return self._store.derive(side)

    # ------------------------------------------------------------------
    # Refresh and control actions
    # ------------------------------------------------------------------

    async def refresh(self) -> tuple[LaneFetchResult, LaneFetchResult]:
        """Re-fetch both lanes and wait for both to settle."""
        return await self._require_scheduler().refresh_all()

    async def refresh_lane(self, side: Side) -> LaneFetchResult:
        return await self._require_scheduler().refresh_lane(side)

    async def drain(self) -> None:
        """Wait until every refresh scheduled so far (initial, pushed, polled) has settled."""
        await self._require_scheduler().drain()

    async def flush(self, side: Side | None = None) -> list[ActionResult]:
        """Flush one lane, or both (left then right) when *side* is ``None``.

        Always followed by a full refresh, whatever the flush outcome.
        """
        gateway = self._require_gateway()
        sides = (Side.LEFT, Side.RIGHT) if side is None else (Side(side),)
        results: list[ActionResult] = []
        for lane in sides:
            result = await gateway.trigger_action(ACTION_FLUSH, lane)
            results.append(result)
            if not result.ok:
                break
        await self.refresh()
        return results

    # ------------------------------------------------------------------
    # View intents
    # ------------------------------------------------------------------

    def set_search(self, text: str) -> None:
        self._store.set_search(text)

    def set_tentative_only(self, enabled: bool) -> None:
        self._store.set_tentative_only(enabled)

    def set_page_size(self, page_size: int) -> None:
        self._store.set_page_size(page_size)

    def set_page(self, side: Side, page: int) -> None:
        self._store.set_page(side, page)

    def select_row(self, side: Side, row_id: int | str) -> None:
        self._store.select_row(side, row_id)

    def selected_row(self) -> SequenceRow | None:
        return self._store.selected_row()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_csv(self, side: Side) -> str | None:
        return self._store.export_csv(side)

    def write_csv(self, side: Side, directory: str | Path = ".") -> Path | None:
        """Write the filtered rows of *side* to a timestamped CSV file.

        Returns the file path, or ``None`` without writing when there is
        nothing to export.
        """
        content = self._store.export_csv(side)
        if content is None:
            _logger.debug("nothing to export for %s lane", Side(side))
            return None
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        path = Path(directory) / f"sequence-{Side(side)}-{stamp}.csv"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        _logger.info("exported %s lane to %s", Side(side), path)
        return path
