"""
JSON serializer utility for converting Python objects to JSON-safe values
"""
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel


def sanitize_for_json(obj: Any) -> Any:
    """
    Recursively sanitize Python objects for JSON storage.
    Use before saving to JSON columns (audit_logs.meta_json, attendance_records.gps_location)
    and before rendering error context.

    - datetime/date -> ISO-8601
    - time -> HH:MM (policy and shift times carry minute precision)
    - Enum -> value
    - dataclasses and pydantic models -> dict
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, time):
        return obj.strftime("%H:%M")
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, BaseModel):
        return sanitize_for_json(obj.model_dump())
    if is_dataclass(obj) and not isinstance(obj, type):
        return sanitize_for_json(asdict(obj))
    if isinstance(obj, dict):
        return {str(k): sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [sanitize_for_json(item) for item in obj]
    return str(obj)
