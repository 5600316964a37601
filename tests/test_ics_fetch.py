import pytest
import requests

from calfeed import ics_fetch
from calfeed.errors import FeedFetchError

ICS = "BEGIN:VCALENDAR\nX-WR-CALNAME:Test\nEND:VCALENDAR\n"


class FakeResponse:
    def __init__(self, status=200, text=ICS, content_type="text/calendar; charset=UTF-8"):
        self.status_code = status
        self.text = text
        self.headers = {"Content-Type": content_type}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture(autouse=True)
def _fresh_cache():
    ics_fetch.clear_cache()
    yield
    ics_fetch.clear_cache()


def _fake_get(responses, calls):
    def _get(url, **kwargs):
        calls.append(url)
        return responses.pop(0)
    return _get


def test_extract_calendar_id_forms():
    cid = "abc123@group.calendar.google.com"
    assert ics_fetch.extract_calendar_id(cid) == cid
    assert ics_fetch.extract_calendar_id(
        "https://calendar.google.com/calendar/embed?src=abc123%40group.calendar.google.com&ctz=UTC") == cid
    assert ics_fetch.extract_calendar_id(
        "https://calendar.google.com/calendar/ical/abc123%40group.calendar.google.com/public/basic.ics") == cid
    assert ics_fetch.extract_calendar_id("https://example.com/nothing") is None
    assert ics_fetch.extract_calendar_id("") is None


def test_feed_urls_quote_the_id():
    basic, full = ics_fetch.feed_urls("a@b.com")
    assert basic == "https://calendar.google.com/calendar/ical/a%40b.com/public/basic.ics"
    assert full.endswith("/public/full.ics")


def test_falls_back_to_full_ics(monkeypatch):
    calls = []
    monkeypatch.setattr(requests, "get", _fake_get([FakeResponse(404), FakeResponse()], calls))
    assert ics_fetch.get_ics_text("a@b.com") == ICS
    assert [u.rsplit("/", 1)[-1] for u in calls] == ["basic.ics", "full.ics"]


def test_raises_when_every_url_fails(monkeypatch):
    calls = []
    monkeypatch.setattr(requests, "get", _fake_get([FakeResponse(404), FakeResponse(403)], calls))
    with pytest.raises(FeedFetchError):
        ics_fetch.get_ics_text("a@b.com")
    assert len(calls) == 2


def test_rejects_non_calendar_documents(monkeypatch):
    html = FakeResponse(text="<html>sign in</html>", content_type="text/html")
    monkeypatch.setattr(requests, "get", _fake_get([html], []))
    with pytest.raises(FeedFetchError):
        ics_fetch.get_ics_text("https://example.com/cal.ics")


def test_invalid_source():
    with pytest.raises(FeedFetchError):
        ics_fetch.get_ics_text("not a calendar")


def test_direct_and_webcal_urls_are_cached(monkeypatch):
    calls = []
    monkeypatch.setattr(requests, "get", _fake_get([FakeResponse()], calls))
    assert ics_fetch.get_ics_text("webcal://example.com/cal.ics") == ICS
    assert ics_fetch.get_ics_text("https://example.com/cal.ics") == ICS
    assert calls == ["https://example.com/cal.ics"]


def test_zero_ttl_refetches(monkeypatch):
    calls = []
    monkeypatch.setattr(requests, "get", _fake_get([FakeResponse(), FakeResponse()], calls))
    ics_fetch.get_ics_text("https://example.com/cal.ics", cache_seconds=0)
    ics_fetch.get_ics_text("https://example.com/cal.ics", cache_seconds=0)
    assert len(calls) == 2


def test_fallback_feed_is_cached_per_calendar(monkeypatch):
    calls = []
    monkeypatch.setattr(requests, "get", _fake_get([FakeResponse(404), FakeResponse()], calls))
    assert ics_fetch.get_ics_text("a@b.com") == ICS
    assert ics_fetch.get_ics_text("a@b.com") == ICS
    assert [u.rsplit("/", 1)[-1] for u in calls] == ["basic.ics", "full.ics"]


def test_expired_entries_are_dropped(monkeypatch):
    monkeypatch.setattr(requests, "get", _fake_get([FakeResponse(), FakeResponse()], []))
    ics_fetch.get_ics_text("https://example.com/a.ics")
    assert "https://example.com/a.ics" in ics_fetch._CACHE
    ics_fetch.get_ics_text("https://example.com/b.ics", cache_seconds=0)
    assert "https://example.com/a.ics" not in ics_fetch._CACHE
