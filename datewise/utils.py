from __future__ import annotations
import re
from datetime import datetime, timezone as dt_timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tzlocal import get_localzone_name

_ISO_INSTANT = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d{1,6})?)?([+-]\d{2}:\d{2}|Z|z)$"
)


def local_timezone_name() -> str:
    try:
        return get_localzone_name() or "UTC"
    except (LookupError, ValueError, OSError):
        # tzlocal raises when /etc/localtime is missing (slim containers)
        return "UTC"


def resolve_zone(name: Optional[str]):
    """Return a tzinfo for an IANA name, or the local zone when the name is empty/unknown."""
    for candidate in (name, local_timezone_name()):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            continue
    return dt_timezone.utc


def parse_instant(value: Optional[str]) -> Optional[datetime]:
    """Parse a model-produced date value into an absolute (offset-aware) instant.

    Returns None when the value is empty, malformed, or has no UTC offset.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if not _ISO_INSTANT.match(text):
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        return None
    return parsed


def format_instant_for_display(instant: datetime, timezone: Optional[str] = None) -> str:
    local = instant.astimezone(resolve_zone(timezone)) if timezone else instant
    return local.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
