from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as written by Jira, GitHub or the stores.

    Jira writes offsets without a colon (``+0000``); naive values are taken as UTC.
    """
    if not value:
        return None
    text = value.strip().replace("Z", "+00:00")
    if len(text) > 5 and text[-5] in "+-" and text[-4:].isdigit():
        text = f"{text[:-2]}:{text[-2:]}"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def older_than(value: str, days: int, now: Optional[datetime] = None) -> bool:
    """True when ``value`` lies more than ``days`` days before ``now``. Unparseable values are never old."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return False
    now = now or datetime.now(timezone.utc)
    return parsed < now - timedelta(days=days)


def relative_date(value: str, now: Optional[datetime] = None) -> str:
    """Short human form of a timestamp: ``just now``, ``5m ago``, ``3d ago``."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or "-"
    seconds = int(((now or datetime.now(timezone.utc)) - parsed).total_seconds())
    if seconds < 60:
        return "just now"
    for unit, size in (("d", 86400), ("h", 3600), ("m", 60)):
        if seconds >= size:
            return f"{seconds // size}{unit} ago"
    return "just now"
