"""
Normalize source row values into literals the destination accepts
"""

from typing import Any, Dict, Iterable, Optional
from datetime import date, datetime, time, timezone
from core.exceptions import TransformationError
import logging

logger = logging.getLogger(__name__)


def to_iso_timestamp(value: Any) -> Optional[str]:
    """
    Canonical ISO-8601 UTC form with millisecond precision, e.g.
    ``2024-01-15T10:00:00.000Z``.

    Accepts datetimes (naive values are taken as UTC), dates, ISO strings
    and epoch milliseconds. ``None`` stays ``None``. Applying it to its own
    output returns the same string.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, bool):
        raise TransformationError(
            "Boolean is not a timestamp",
            context={"value": value}
        )
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        dt = _parse_timestamp_string(value)
    else:
        raise TransformationError(
            f"Unsupported timestamp type: {type(value).__name__}",
            context={"value": repr(value)}
        )

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)

    return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt.microsecond // 1000:03d}Z"


def _parse_timestamp_string(value: str) -> datetime:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise TransformationError(
            f"Unparseable timestamp: {value!r}",
            context={"value": value},
            original_exception=e
        )


class RowNormalizer:
    """
    Rewrites the timestamp fields of a row to the canonical string form.

    Every other field passes through unchanged. The input row is never
    mutated, so a row can be normalized again on retry.
    """

    def __init__(self, timestamp_fields: Iterable[str] = ()):
        self.timestamp_fields = tuple(timestamp_fields)

    def normalize(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if not self.timestamp_fields:
            return dict(row)

        normalized = dict(row)
        for field in self.timestamp_fields:
            if field in normalized:
                normalized[field] = to_iso_timestamp(normalized[field])
        return normalized
