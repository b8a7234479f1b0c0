"""JSON and CSV exports of an extracted record."""

import csv
import io
import json
from datetime import datetime, timezone
from typing import Any

from models import ExtractedData
from rendering import compact_json

JSON_MEDIA_TYPE = "application/json"
CSV_MEDIA_TYPE = "text/csv;charset=utf-8"


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def to_json(data: ExtractedData) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def json_filename(now: datetime | None = None) -> str:
    """``abstraction-2024-01-01T12:00:00.000Z.json`` (UTC, millisecond precision)."""
    stamp = _now(now).astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return f"abstraction-{stamp.replace('+00:00', 'Z')}.json"


def csv_filename(now: datetime | None = None) -> str:
    return f"clinical_data_{_now(now).astimezone(timezone.utc).date().isoformat()}.csv"


def _list_item(item: Any) -> str:
    if isinstance(item, str):
        return item
    return compact_json(item)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "; ".join(_list_item(v) for v in value)
    if isinstance(value, dict):
        return compact_json(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_csv(data: ExtractedData) -> str:
    """Two rows: every top-level key, then the flattened values.

    Every cell is quoted and embedded quotes are doubled.
    """
    headers = list(data)
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerow([_cell(data[key]) for key in headers])
    return buf.getvalue().rstrip("\n")
