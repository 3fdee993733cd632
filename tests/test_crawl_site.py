import threading
import time

import requests

from emailcrawl.crawl import crawl
from emailcrawl.config import CrawlConfig

# A small in-memory site; no network.
SITE = {
    "http://example.com/": (
        '<html><body><a href="/team">Team</a> <a href="/contact">Contact</a>'
        "<p>info@example.com</p></body></html>"
    ),
    "http://example.com/team": (
        '<html><body><a href="/alice">Alice</a> <a href="/missing">gone</a>'
        "<span>snzvyl@rknzcyr.pbz</span> partner@other.org info@example.com</body></html>"
    ),
    "http://example.com/contact": (
        '<html><body><a href="/team">Team</a> <a href="mailto:sales@example.com">Mail us</a>'
        '<img src="img/logo@2x.png"><a href="/logo.png">logo</a></body></html>'
    ),
    "http://example.com/alice": '<html><body>alice@example.com <a href="/deep">deeper</a></body></html>',
    "http://example.com/deep": "<html><body>deep@example.com</body></html>",
    "http://example.com/logo.png": "\x89PNG",
}

class DummyResp:
    def __init__(self, url: str, text: str, content_type: str = "text/html; charset=utf-8"):
        self.url = url
        self.text = text
        self.status_code = 200
        self.headers = {"Content-Type": content_type}


def make_fetch(calls=None, delay=0.0):
    def fake_fetch(session, url, **kwargs):
        if calls is not None:
            calls.append(url)
        if delay:
            time.sleep(delay)
        if url not in SITE:
            raise requests.ConnectionError(f"no route to {url}")
        ctype = "image/png" if url.endswith(".png") else "text/html; charset=utf-8"
        return DummyResp(url, SITE[url], ctype)
    return fake_fetch


EXPECTED_DEPTH2 = {
    "info@example.com",
    "family@example.com",
    "partner@other.org",
    "sales@example.com",
    "alice@example.com",
}


def test_depth2_finds_expected_set():
    stats = {}
    out = crawl(CrawlConfig(seed="example.com", max_depth=2, threads=1), fetch_func=make_fetch(), stats=stats)
    assert {r["email"] for r in out} == EXPECTED_DEPTH2
    assert len(out) == len(EXPECTED_DEPTH2)
    assert stats["errors_fetch"] == 1  # /missing
    assert stats["skipped_non_text"] == 1  # /logo.png
    assert stats["emails_new"] == len(EXPECTED_DEPTH2)
    assert stats["emails_found"] > stats["emails_new"]


def test_thread_count_does_not_change_result():
    one = crawl(CrawlConfig(seed="example.com", threads=1), fetch_func=make_fetch())
    eight = crawl(CrawlConfig(seed="example.com", threads=8), fetch_func=make_fetch(delay=0.01))
    assert {r["email"] for r in one} == {r["email"] for r in eight} == EXPECTED_DEPTH2


def test_depth0_fetches_only_seed():
    calls = []
    stats = {}
    out = crawl(CrawlConfig(seed="example.com", max_depth=0, threads=4), fetch_func=make_fetch(calls), stats=stats)
    assert calls == ["http://example.com/"]
    assert stats["enqueued"] == 0
    assert [r["email"] for r in out] == ["info@example.com"]


def test_depth1_stops_before_grandchildren():
    calls = []
    crawl(CrawlConfig(seed="http://example.com/", max_depth=1, threads=2), fetch_func=make_fetch(calls))
    assert set(calls) == {"http://example.com/", "http://example.com/team", "http://example.com/contact"}


def test_each_url_fetched_once():
    calls = []
    crawl(CrawlConfig(seed="example.com", max_depth=5, threads=4), fetch_func=make_fetch(calls))
    assert len(calls) == len(set(calls))
    assert "http://example.com/deep" in calls


def test_records_carry_classification():
    out = crawl(CrawlConfig(seed="example.com"), fetch_func=make_fetch())
    by_email = {r["email"]: r for r in out}
    assert by_email["family@example.com"]["obfuscated"] is True
    assert by_email["family@example.com"]["sourceUrl"] == "http://example.com/team"
    assert by_email["family@example.com"]["depth"] == 1
    assert by_email["partner@other.org"]["matchesDomain"] is False
    assert by_email["info@example.com"]["matchesDomain"] is True


def test_on_email_called_once_per_address():
    seen = []
    lock = threading.Lock()

    def on_email(rec):
        with lock:
            seen.append(rec["email"])

    crawl(CrawlConfig(seed="example.com", threads=4), fetch_func=make_fetch(), on_email=on_email)
    assert sorted(seen) == sorted(EXPECTED_DEPTH2)


def test_fetch_errors_are_swallowed():
    def always_fail(session, url, **kwargs):
        raise requests.Timeout("slow")
    events = []
    stats = {}
    out = crawl(CrawlConfig(seed="example.com", threads=2), fetch_func=always_fail, stats=stats, event_cb=events.append)
    assert out == []
    assert stats["errors_fetch"] == 1
    assert any(e["type"] == "error" and e["phase"] == "fetch" for e in events)
    assert sum(1 for e in events if e["type"] == "worker_stop") == 2


def test_fetch_receives_request_timeout():
    seen = {}
    def fake_fetch(session, url, **kwargs):
        seen.update(kwargs)
        return DummyResp(url, "<html></html>")
    crawl(CrawlConfig(seed="example.com", max_depth=0, threads=1, request_timeout=7), fetch_func=fake_fetch)
    assert seen["timeout"] == 7
    assert seen["allow_redirects"] is True


def test_wait_for_inflight_same_result():
    out = crawl(
        CrawlConfig(seed="example.com", threads=4, wait_for_inflight=True),
        fetch_func=make_fetch(delay=0.01),
    )
    assert {r["email"] for r in out} == EXPECTED_DEPTH2
