"""Offline fallback built on dateparser.

Used when a provider has no usable configuration. The parser is consumed as a
black box: ``match_dates`` returns ranked candidates and the fallback takes the
first one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Any, Callable, Dict, List, Optional

import dateparser
from dateparser.search import search_dates

from .providers.types import DateInterpretation, ProviderId
from .utils import resolve_zone

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.2
FALLBACK_REASONING = "Fallback parser with dateparser"
DEFAULT_LANGUAGES = ["en"]


@dataclass(frozen=True)
class DateMatch:
    text: str
    start: datetime

    def date(self) -> datetime:
        return self.start


DateMatcher = Callable[..., List[DateMatch]]
FallbackInterpreter = Callable[..., Optional[DateInterpretation]]


def _languages_for(locale: Optional[str]) -> List[str]:
    if not locale:
        return list(DEFAULT_LANGUAGES)
    return [locale.replace("_", "-").split("-")[0].lower()]


def match_dates(
    text: str,
    reference: datetime,
    *,
    prefer_future: bool = True,
    timezone: Optional[str] = None,
    languages: Optional[List[str]] = None,
) -> List[DateMatch]:
    """Return candidate dates found in ``text``, best first.

    A parse of the whole text ranks first; expressions found inside the text
    follow in the order they appear.
    """
    zone = resolve_zone(timezone)
    tz_name = getattr(zone, "key", "UTC")
    relative_base = reference.astimezone(zone).replace(tzinfo=None) if reference.tzinfo else reference
    settings: Dict[str, Any] = {
        "RELATIVE_BASE": relative_base,
        "TIMEZONE": tz_name,
        "TO_TIMEZONE": tz_name,
        "RETURN_AS_TIMEZONE_AWARE": True,
    }
    if prefer_future:
        settings["PREFER_DATES_FROM"] = "future"

    stripped = (text or "").strip()
    if not stripped:
        return []

    out: List[DateMatch] = []
    whole = dateparser.parse(stripped, languages=languages, settings=settings)
    if whole is not None:
        out.append(DateMatch(stripped, whole))
    for found_text, found_dt in search_dates(stripped, languages=languages, settings=settings) or []:
        if whole is not None and found_text.strip() == stripped:
            continue
        out.append(DateMatch(found_text, found_dt))
    return out


def fallback_interpreter(
    prompt: str,
    locale: Optional[str] = None,
    timezone: Optional[str] = None,
    now: Optional[datetime] = None,
    *,
    matcher: DateMatcher = match_dates,
) -> Optional[DateInterpretation]:
    """Interpret ``prompt`` without a model.

    Returns None when nothing in the text looks like a date; that is a normal
    outcome, not an error.
    """
    reference = now or datetime.now(dt_timezone.utc)
    zone = resolve_zone(timezone)
    tz_name = getattr(zone, "key", "UTC")
    try:
        matches = matcher(prompt, reference, prefer_future=True, timezone=tz_name, languages=_languages_for(locale))
    except ValueError as e:
        # dateparser rejects unknown language codes
        logger.debug("fallback retry in English for locale %r: %s", locale, e)
        matches = matcher(
            prompt, reference, prefer_future=True, timezone=tz_name, languages=list(DEFAULT_LANGUAGES)
        )
    if not matches:
        logger.info("Fallback parser found no date in %r", prompt)
        return None

    best = matches[0]
    instant = best.date()
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=zone)
    return DateInterpretation(
        value=instant.isoformat(timespec="seconds"),
        provider_id=ProviderId.FALLBACK,
        timezone=tz_name,
        confidence=FALLBACK_CONFIDENCE,
        reasoning=FALLBACK_REASONING,
        raw_response=best,
    )
