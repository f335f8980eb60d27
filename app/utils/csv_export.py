"""
CSV download responses
"""
import csv
import io
from datetime import date, datetime
from typing import Any, Dict, Iterable, Iterator, List
from fastapi.responses import StreamingResponse

from app.utils.datetime_utils import iso_local


def _cell(value: Any) -> str:
    """Render one value the way the JSON API would show it"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, datetime):
        return iso_local(value)
    if isinstance(value, date):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def _csv_lines(headers: List[str], rows: Iterable[Dict]) -> Iterator[str]:
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    def flush() -> str:
        chunk = buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
        return chunk

    writer.writerow(headers)
    yield flush()
    for row in rows:
        # missing keys become empty cells, unknown keys are dropped
        writer.writerow([_cell(row.get(h)) for h in headers])
        yield flush()


def stream_csv(headers: List[str], rows: Iterable[Dict], filename: str = "export.csv") -> StreamingResponse:
    """
    Build a streaming ``text/csv`` attachment.

    Rows are dicts keyed by header; values may be enums, dates, UTC datetimes
    (written in the attendance time zone) or booleans (``yes``/``no``).
    """
    return StreamingResponse(
        _csv_lines(headers, rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
