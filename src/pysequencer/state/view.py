"""Operator view settings and the pure functions deriving lane views.

:class:`ViewState` is an explicit, serializable value. Every transition
returns a new instance and every derivation is a plain function of
``(rows, view)``, so nothing here depends on hidden module state.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

from pysequencer._constants import DEFAULT_PAGE_SIZE
from pysequencer.models.row import SequenceRow
from pysequencer.state.events import Side


def _zero_pages() -> dict[Side, int]:
    return {Side.LEFT: 0, Side.RIGHT: 0}


class RowSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    side: Side
    row_id: int | str


class ViewState(BaseModel):
    model_config = ConfigDict(frozen=True)

    search_text: str = ""
    tentative_only: bool = False
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    pages: dict[Side, int] = Field(default_factory=_zero_pages)
    selection: RowSelection | None = None

    def page(self, side: Side) -> int:
        return self.pages.get(Side(side), 0)


class LaneView(BaseModel):
    """One page of a lane after filtering."""

    model_config = ConfigDict(frozen=True)

    side: Side
    rows: tuple[SequenceRow, ...]
    total: int
    """Number of rows passing the filters (all pages)."""
    page: int
    page_size: int
    page_count: int


def row_matches(row: SequenceRow, view: ViewState) -> bool:
    """Apply the tentative-only filter and the search text.

    The search text is trimmed and lowercased before a substring match, so
    surrounding whitespace is ignored and a blank search matches every row.
    """
    if view.tentative_only and row.is_final:
        return False
    query = view.search_text.strip().lower()
    if not query:
        return True
    return query in row.searchable_text


def filter_rows(rows: Sequence[SequenceRow], view: ViewState) -> list[SequenceRow]:
    return [row for row in rows if row_matches(row, view)]


def page_count(total: int, page_size: int) -> int:
    return max(1, math.ceil(total / page_size))


def page_window(rows: Sequence[SequenceRow], page: int, page_size: int) -> list[SequenceRow]:
    start = page * page_size
    return list(rows[start : start + page_size])


def derive_lane(rows: Sequence[SequenceRow], view: ViewState, side: Side) -> LaneView:
    side = Side(side)
    filtered = filter_rows(rows, view)
    page = view.page(side)
    return LaneView(
        side=side,
        rows=tuple(page_window(filtered, page, view.page_size)),
        total=len(filtered),
        page=page,
        page_size=view.page_size,
        page_count=page_count(len(filtered), view.page_size),
    )


def with_search(view: ViewState, text: str) -> ViewState:
    return view.model_copy(update={"search_text": text or "", "pages": _zero_pages()})


def with_tentative_only(view: ViewState, enabled: bool) -> ViewState:
    return view.model_copy(update={"tentative_only": bool(enabled), "pages": _zero_pages()})


def with_page_size(view: ViewState, page_size: int) -> ViewState:
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")
    return view.model_copy(update={"page_size": page_size, "pages": _zero_pages()})


def with_page(view: ViewState, side: Side, page: int) -> ViewState:
    pages = dict(view.pages)
    pages[Side(side)] = max(0, page)
    return view.model_copy(update={"pages": pages})


def with_selection(view: ViewState, side: Side | None, row_id: int | str | None) -> ViewState:
    if side is None or row_id is None:
        return view.model_copy(update={"selection": None})
    return view.model_copy(update={"selection": RowSelection(side=Side(side), row_id=row_id)})
