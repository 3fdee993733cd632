from __future__ import annotations
import logging
import threading
from typing import Any, Callable, Dict, List, TypedDict

import requests

from .config import CrawlConfig
from .emails import extract_emails, matches_domain
from .state import CrawlState, FrontierEntry
from .urlnorm import extract_links, normalize_seed, target_domain

logger = logging.getLogger(__name__)

TEXTUAL_CONTENT_HINTS = ("xml", "json", "javascript")

class EmailRecord(TypedDict):
    email: str
    matchesDomain: bool
    obfuscated: bool
    sourceUrl: str
    depth: int

FetchFunc = Callable[..., requests.Response]
EventCallback = Callable[[Dict[str, Any]], None]
EmailCallback = Callable[[EmailRecord], None]

class FetchError(Exception):
    """Page could not be turned into text; the entry is dropped."""

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind

def _make_session(config: CrawlConfig) -> requests.Session:
    session = requests.Session()
    session.headers["User-Agent"] = config.user_agent
    return session

def _is_textual(content_type: str) -> bool:
    if not content_type:
        return True
    ctype = content_type.lower()
    if ctype.startswith("text/"):
        return True
    return any(h in ctype for h in TEXTUAL_CONTENT_HINTS)

def _fetch_text(session: requests.Session, url: str, config: CrawlConfig, fetch_func: FetchFunc | None) -> str:
    try:
        if fetch_func:
            resp = fetch_func(session, url, timeout=config.request_timeout, allow_redirects=True)
        else:
            resp = session.get(url, timeout=config.request_timeout, allow_redirects=True)
    except requests.RequestException as e:
        raise FetchError("request", str(e)) from e
    headers = getattr(resp, "headers", None) or {}
    ctype = headers.get("Content-Type", "")
    if not _is_textual(ctype):
        raise FetchError("non_text", f"content type {ctype}")
    try:
        return resp.text
    except (UnicodeDecodeError, LookupError) as e:
        raise FetchError("decode", str(e)) from e

class _Worker:
    """One fetch/extract/enqueue loop over the shared state."""

    def __init__(
        self,
        name: str,
        state: CrawlState,
        config: CrawlConfig,
        fetch_func: FetchFunc | None,
        event_cb: EventCallback | None,
        on_email: Callable[[str, FrontierEntry, bool], None],
    ):
        self.name = name
        self.state = state
        self.config = config
        self.fetch_func = fetch_func
        self.event_cb = event_cb
        self.on_email = on_email
        self.session = _make_session(config)

    def _emit(self, ev: Dict[str, Any]) -> None:
        if self.event_cb:
            self.event_cb(ev)

    def run(self) -> None:
        state = self.state
        reason = "frontier_empty"
        try:
            while True:
                if state.deadline_passed():
                    reason = "timeout"
                    break
                entry = state.try_dequeue(wait=self.config.wait_for_inflight)
                if entry is None:
                    reason = "timeout" if state.deadline_passed() else "frontier_empty"
                    break
                try:
                    self._process(entry)
                finally:
                    state.task_done()
        finally:
            self.session.close()
        logger.debug("%s stopped (%s)", self.name, reason)
        self._emit({"type": "worker_stop", "worker": self.name, "reason": reason})

    def _process(self, entry: FrontierEntry) -> None:
        state = self.state
        if entry.depth > state.max_depth:
            state.bump("skipped_depth")
            self._emit({"type": "depth_skip", "url": entry.url, "depth": entry.depth})
            return
        try:
            text = _fetch_text(self.session, entry.url, self.config, self.fetch_func)
        except FetchError as e:
            if e.kind == "non_text":
                state.bump("skipped_non_text")
                self._emit({"type": "non_text", "url": entry.url, "error": str(e)})
            else:
                state.bump("errors_fetch")
                self._emit({"type": "error", "phase": "fetch", "url": entry.url, "error": str(e)})
            logger.debug("dropping %s: %s", entry.url, e)
            return
        state.bump("fetched_ok")
        self._emit({"type": "fetched", "url": entry.url, "depth": entry.depth, "text_len": len(text)})

        for cand in extract_emails(text, self.config.tlds):
            state.bump("emails_found")
            if state.record_email_if_new(cand.email):
                state.bump("emails_new")
                self.on_email(cand.email, entry, cand.obfuscated)

        if entry.depth >= state.max_depth:
            return
        for nu in extract_links(text, entry.url):
            if state.enqueue_if_unseen(nu, entry.depth + 1):
                state.bump("enqueued")
                self._emit({"type": "enqueued", "url": nu, "parent": entry.url, "depth": entry.depth + 1})
            else:
                state.bump("duplicates")

def crawl(
    config: CrawlConfig,
    fetch_func: FetchFunc | None = None,
    stats: Dict[str, int] | None = None,
    event_cb: EventCallback | None = None,
    on_email: EmailCallback | None = None,
    clock: Callable[[], float] | None = None,
) -> List[EmailRecord]:
    """Crawl from ``config.seed`` with ``config.threads`` workers.

    Returns every distinct email in discovery order. ``on_email`` fires once
    per new address, from the worker thread that found it. Network failures
    never raise; they show up only as events and in ``stats``.
    """
    seed = normalize_seed(config.seed)
    domain = target_domain(seed)
    state_kwargs: Dict[str, Any] = {"stats": stats}
    if clock is not None:
        state_kwargs["clock"] = clock
    state = CrawlState(config.max_depth, config.timeout, **state_kwargs)
    state.enqueue_if_unseen(seed, 0)

    records: List[EmailRecord] = []
    records_lock = threading.Lock()

    def _record(email: str, entry: FrontierEntry, obfuscated: bool) -> None:
        rec = EmailRecord(
            email=email,
            matchesDomain=matches_domain(email, domain),
            obfuscated=obfuscated,
            sourceUrl=entry.url,
            depth=entry.depth,
        )
        with records_lock:
            records.append(rec)
        if event_cb:
            event_cb({"type": "email", **rec})
        if on_email:
            on_email(rec)

    logger.debug("crawl start seed=%s domain=%s threads=%d depth=%d", seed, domain, config.threads, config.max_depth)
    workers = []
    for i in range(config.threads):
        w = _Worker(f"worker-{i}", state, config, fetch_func, event_cb, _record)
        t = threading.Thread(target=w.run, name=f"emailcrawl-{w.name}", daemon=True)
        workers.append(t)
        t.start()
    for t in workers:
        t.join()
    logger.debug("crawl done visited=%d emails=%d", state.visited_count(), len(state.found_emails()))
    return records
