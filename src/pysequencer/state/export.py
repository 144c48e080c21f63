"""CSV export of lane rows."""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from typing import Any

from pysequencer._constants import CSV_HEADER
from pysequencer.ingestion.rows import canonical_timestamp
from pysequencer.models.row import SequenceRow


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def row_to_record(row: SequenceRow) -> list[str]:
    values = (
        row.id,
        row.wagon_no,
        row.train_no,
        row.side,
        row.container_no_1,
        row.iso_code_1,
        row.container_no_2,
        row.iso_code_2,
        row.finalized_at,
        canonical_timestamp(row),
    )
    return [_cell(value) for value in values]


def rows_to_csv(rows: Sequence[SequenceRow]) -> str | None:
    """Serialize *rows* as CSV; ``None`` when there are no rows.

    The header line is plain, every value is quoted with doubled-quote
    escaping.
    """
    if not rows:
        return None
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    buffer.write(",".join(CSV_HEADER) + "\n")
    writer.writerows(row_to_record(row) for row in rows)
    return buffer.getvalue()
