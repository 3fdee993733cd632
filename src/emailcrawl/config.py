from __future__ import annotations
from dataclasses import dataclass

# Closed allow-list; newer gTLDs and most ccTLDs are rejected on purpose.
COMMON_TLDS: frozenset[str] = frozenset({
    "com", "org", "net", "edu", "gov", "mil", "int", "co", "io", "me", "biz",
    "info", "us", "uk", "ca", "de", "jp", "fr", "au", "ru", "ch", "it", "nl",
    "se", "no", "es", "tv", "ly",
})

@dataclass(frozen=True)
class CrawlConfig:
    seed: str
    max_depth: int = 2
    threads: int = 4
    timeout: float = 60.0  # seconds, wall clock for the whole crawl
    request_timeout: int = 10  # seconds, per fetch
    strict: bool = False
    user_agent: str = "emailcrawl/1.0 (+https://example.com/bot)"
    wait_for_inflight: bool = False  # if True, idle workers wait for in-flight fetches instead of exiting
    tlds: frozenset[str] = COMMON_TLDS
