from datetime import date, datetime, timezone

import pytest

from datewise.fallback import DateMatch, fallback_interpreter, match_dates
from datewise.providers.types import ProviderId
from datewise.utils import parse_instant

REF = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def test_tomorrow_at_3pm_resolves_forward():
    res = fallback_interpreter("tomorrow at 3pm", timezone="UTC", now=REF)
    assert res is not None
    assert res.provider_id == ProviderId.FALLBACK
    assert res.confidence == 0.2
    assert res.reasoning == "Fallback parser with dateparser"
    assert res.timezone == "UTC"
    assert isinstance(res.raw_response, DateMatch)
    instant = parse_instant(res.value)
    assert instant is not None
    assert instant > REF
    assert instant.astimezone(timezone.utc).date() == date(2025, 1, 2)


def test_matcher_called_with_prefer_future():
    calls = []

    def matcher(text, reference, **kwargs):
        calls.append((text, reference, kwargs))
        return [
            DateMatch("friday", datetime(2025, 1, 3, 9, 0, tzinfo=timezone.utc)),
            DateMatch("monday", datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)),
        ]

    res = fallback_interpreter("friday or monday", locale="en-GB", timezone="UTC", now=REF, matcher=matcher)
    text, reference, kwargs = calls[0]
    assert text == "friday or monday"
    assert reference == REF
    assert kwargs["prefer_future"] is True
    assert kwargs["languages"] == ["en"]
    # first candidate wins
    assert res.value == "2025-01-03T09:00:00+00:00"
    assert res.raw_response.text == "friday"


def test_no_match_returns_none():
    res = fallback_interpreter("no dates in here", timezone="UTC", now=REF, matcher=lambda *a, **k: [])
    assert res is None


def test_naive_match_gets_requested_zone():
    res = fallback_interpreter(
        "noon", timezone="Asia/Shanghai", now=REF, matcher=lambda *a, **k: [DateMatch("noon", datetime(2025, 1, 1, 12))]
    )
    assert res.value == "2025-01-01T12:00:00+08:00"
    assert res.timezone == "Asia/Shanghai"


def test_match_dates_returns_aware_candidates():
    matches = match_dates("tomorrow at 3pm", REF, timezone="UTC", languages=["en"])
    assert matches
    best = matches[0].date()
    assert best.tzinfo is not None
    assert best.date() == date(2025, 1, 2)


def test_match_dates_empty_text():
    assert match_dates("   ", REF) == []


def test_defaults_to_english_without_locale():
    calls = []

    def matcher(text, reference, **kwargs):
        calls.append(kwargs["languages"])
        return []

    fallback_interpreter("demain", timezone="UTC", now=REF, matcher=matcher)
    assert calls == [["en"]]


def test_unknown_locale_retries_in_english():
    calls = []

    def matcher(text, reference, **kwargs):
        calls.append(kwargs["languages"])
        if kwargs["languages"] != ["en"]:
            raise ValueError("Unknown language(s): 'xx'")
        return [DateMatch("noon", datetime(2025, 1, 1, 12, tzinfo=timezone.utc))]

    res = fallback_interpreter("noon", locale="xx-YY", timezone="UTC", now=REF, matcher=matcher)
    assert calls == [["xx"], ["en"]]
    assert res.value == "2025-01-01T12:00:00+00:00"


@pytest.mark.parametrize("text", ["do it", "on it", "x", "I"])
def test_plain_words_are_not_dates(text):
    assert fallback_interpreter(text, timezone="UTC", now=REF) is None


def test_reports_zone_actually_used(monkeypatch):
    monkeypatch.setattr("datewise.utils.local_timezone_name", lambda: "UTC")
    res = fallback_interpreter(
        "noon", timezone="Mars/Base", now=REF, matcher=lambda *a, **k: [DateMatch("noon", datetime(2025, 1, 1, 12))]
    )
    assert res.timezone == "UTC"
    assert res.value == "2025-01-01T12:00:00+00:00"
