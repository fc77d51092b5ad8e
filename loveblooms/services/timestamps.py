# loveblooms/services/timestamps.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_datetime(ts: Any) -> datetime:
    """
    Coerce whatever a stored document carries into an aware UTC datetime.
    Firestore hands back DatetimeWithNanoseconds (a datetime subclass),
    older documents may hold ISO strings or {"seconds": ...} maps.
    Unknown values map to the epoch so they sort last and fall outside periods.
    """
    if ts is None or ts == "":
        return EPOCH
    if isinstance(ts, datetime):
        return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)
    if isinstance(ts, dict) and "seconds" in ts:
        return datetime.fromtimestamp(float(ts["seconds"]), tz=timezone.utc)
    if isinstance(ts, (int, float)) and not isinstance(ts, bool):
        return datetime.fromtimestamp(float(ts), tz=timezone.utc)
    if isinstance(ts, str):
        try:
            parsed = datetime.fromisoformat(ts.replace("Z", "+00:00"))
        except ValueError:
            return EPOCH
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return EPOCH
