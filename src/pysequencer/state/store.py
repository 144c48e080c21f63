"""In-memory view state store.

This is the only component allowed to mutate lane state or view settings.
Every mutation is synchronous, so a change is fully applied within one
event-loop turn before any listener or reader sees it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pysequencer._constants import DEFAULT_PAGE_SIZE
from pysequencer.models.lane import LaneSnapshot, LaneState
from pysequencer.models.row import SequenceRow
from pysequencer.state import view as _view
from pysequencer.state.events import ConnectionStatus, Side
from pysequencer.state.export import rows_to_csv
from pysequencer.state.policy import should_accept_fetch
from pysequencer.state.view import LaneView, ViewState

_logger = logging.getLogger(__name__)

Listener = Callable[["ViewStateStore"], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ViewStateStore:
    """Holds both lanes, the shared buffer, connection status and view settings."""

    def __init__(
        self,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        discard_stale_responses: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._clock = clock
        self._discard_stale = discard_stale_responses
        self._lanes: dict[Side, LaneState] = {Side.LEFT: LaneState(), Side.RIGHT: LaneState()}
        self._tickets: dict[Side, int] = {Side.LEFT: 0, Side.RIGHT: 0}
        self._buffer: Any = None
        self._status = ConnectionStatus.CONNECTING
        self._view = ViewState(page_size=page_size)
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                _logger.warning("store listener %r failed", listener, exc_info=True)

    # ------------------------------------------------------------------
    # Lane state
    # ------------------------------------------------------------------

    def lane(self, side: Side) -> LaneState:
        return self._lanes[Side(side)]

    def rows(self, side: Side) -> tuple[SequenceRow, ...]:
        return self._lanes[Side(side)].rows

    @property
    def buffer(self) -> Any:
        """Last known buffer value reported by either lane."""
        return self._buffer

    def next_ticket(self, side: Side) -> int:
        """Reserve the ticket for a fetch about to be sent for *side*."""
        side = Side(side)
        self._tickets[side] += 1
        return self._tickets[side]

    def apply_fetch(self, side: Side, snapshot: LaneSnapshot, *, ticket: int | None = None) -> bool:
        """Replace *side*'s rows and pending items with *snapshot*.

        A ``None`` buffer keeps the previous value. Returns ``False`` when the
        response is older than the lane's current state and was discarded.
        """
        side = Side(side)
        current = self._lanes[side]
        if not should_accept_fetch(
            last_applied=current.generation,
            incoming=ticket,
            discard_stale=self._discard_stale,
        ):
            _logger.debug(
                "discarding stale %s lane response ticket=%s applied=%s",
                side,
                ticket,
                current.generation,
            )
            return False

        buffer = snapshot.buffer if snapshot.buffer is not None else current.buffer
        self._lanes[side] = LaneState(
            rows=snapshot.rows,
            pending=snapshot.pending,
            buffer=buffer,
            generation=ticket if ticket is not None else current.generation,
            updated_at=self._clock(),
        )
        if snapshot.buffer is not None:
            self._buffer = snapshot.buffer
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Connection status
    # ------------------------------------------------------------------

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    def set_status(self, status: ConnectionStatus) -> None:
        status = ConnectionStatus(status)
        if status == self._status:
            return
        _logger.debug("status %s -> %s", self._status, status)
        self._status = status
        self._notify()

    # ------------------------------------------------------------------
    # View settings
    # ------------------------------------------------------------------

    @property
    def view(self) -> ViewState:
        return self._view

    def _set_view(self, view: ViewState) -> None:
        if view == self._view:
            return
        self._view = view
        self._notify()

    def set_search(self, text: str) -> None:
        self._set_view(_view.with_search(self._view, text))

    def set_tentative_only(self, enabled: bool) -> None:
        self._set_view(_view.with_tentative_only(self._view, enabled))

    def set_page_size(self, page_size: int) -> None:
        self._set_view(_view.with_page_size(self._view, page_size))

    def set_page(self, side: Side, page: int) -> None:
        self._set_view(_view.with_page(self._view, side, page))

    def select_row(self, side: Side, row_id: int | str) -> None:
        self._set_view(_view.with_selection(self._view, side, row_id))

    def clear_selection(self) -> None:
        self._set_view(_view.with_selection(self._view, None, None))

    def selected_row(self) -> SequenceRow | None:
        """The selected row as currently held, or ``None`` if it is gone."""
        selection = self._view.selection
        if selection is None:
            return None
        for row in self._lanes[selection.side].rows:
            if row.id == selection.row_id:
                return row
        return None

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def filtered(self, side: Side) -> list[SequenceRow]:
        return _view.filter_rows(self.rows(side), self._view)

    def derive(self, side: Side) -> LaneView:
        return _view.derive_lane(self.rows(side), self._view, side)

    def export_csv(self, side: Side) -> str | None:
        """CSV of the filtered (unpaged) rows of *side*; ``None`` when empty."""
        return rows_to_csv(self.filtered(side))
