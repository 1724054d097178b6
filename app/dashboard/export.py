"""CSV export of the rows currently displayed in the grid."""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Any, Iterable, TextIO

from app.dashboard.columns import ColumnDef


def _cell(value: Any) -> Any:
    return "" if value is None else value


def rows_to_csv(rows: Iterable[dict[str, Any]], columns: list[ColumnDef]) -> str:
    """Flatten rows to CSV text; the header row is the column headers in order."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([column.header_name for column in columns])
    for row in rows:
        writer.writerow([_cell(column.value(row)) for column in columns])
    return buffer.getvalue()


def write_csv(
    rows: Iterable[dict[str, Any]],
    columns: list[ColumnDef],
    destination: str | Path | TextIO,
) -> str:
    """Write rows as CSV to a path or open text stream and return the text."""
    text = rows_to_csv(rows, columns)
    if isinstance(destination, (str, Path)):
        Path(destination).write_text(text, encoding="utf-8", newline="")
    else:
        destination.write(text)
    return text
