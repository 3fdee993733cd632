from __future__ import annotations
import collections
import threading
import time
from typing import Callable, Deque, Dict, FrozenSet, NamedTuple, Optional, Set

STAT_KEYS = (
    "fetched_ok",
    "errors_fetch",
    "skipped_non_text",
    "skipped_depth",
    "enqueued",
    "duplicates",
    "emails_found",
    "emails_new",
)

class FrontierEntry(NamedTuple):
    url: str
    depth: int

class CrawlState:
    """Frontier, visited set and found-email set shared by every worker.

    Each collection has its own lock. ``enqueue_if_unseen`` takes visited then
    frontier; nothing takes them in the other order. The methods below are the
    only mutation points. ``in_flight``, ``is_visited`` and ``frontier_size``
    are read-only inspection helpers for tests.
    """

    def __init__(
        self,
        max_depth: int,
        timeout: float,
        clock: Callable[[], float] = time.monotonic,
        stats: Dict[str, int] | None = None,
    ):
        self.max_depth = max_depth
        self.timeout = timeout
        self._clock = clock
        self.started = clock()

        self._frontier: Deque[FrontierEntry] = collections.deque()
        self._frontier_cond = threading.Condition(threading.Lock())
        self._in_flight = 0

        self._visited: Set[str] = set()
        self._visited_lock = threading.Lock()

        self._emails: Set[str] = set()
        self._emails_lock = threading.Lock()

        self._stats_lock = threading.Lock()
        self.stats = stats if stats is not None else {}
        for k in STAT_KEYS:
            self.stats.setdefault(k, 0)

    # -- deadline -----------------------------------------------------------
    def elapsed(self) -> float:
        return self._clock() - self.started

    def deadline_passed(self) -> bool:
        return self.elapsed() > self.timeout

    # -- frontier / visited -------------------------------------------------
    def enqueue_if_unseen(self, url: str, depth: int) -> bool:
        with self._visited_lock:
            if url in self._visited:
                return False
            self._visited.add(url)
            with self._frontier_cond:
                self._frontier.append(FrontierEntry(url, depth))
                self._frontier_cond.notify()
        return True

    def try_dequeue(self, wait: bool = False) -> Optional[FrontierEntry]:
        """Pop the frontier head.

        With ``wait=False`` an empty frontier returns None at once, even if
        other workers are mid-fetch and about to enqueue more. With
        ``wait=True`` the caller blocks while any fetch is in flight and gets
        None only once the frontier is empty and nothing is in flight, or the
        deadline has passed. A returned entry counts as in flight until
        ``task_done`` is called for it.
        """
        with self._frontier_cond:
            while not self._frontier:
                if not wait or self._in_flight == 0:
                    return None
                remaining = self.timeout - self.elapsed()
                if remaining <= 0:
                    return None
                self._frontier_cond.wait(timeout=min(remaining, 0.5))
            self._in_flight += 1
            return self._frontier.popleft()

    def task_done(self) -> None:
        with self._frontier_cond:
            self._in_flight -= 1
            if self._in_flight <= 0:
                self._frontier_cond.notify_all()

    def in_flight(self) -> int:
        with self._frontier_cond:
            return self._in_flight

    def frontier_size(self) -> int:
        with self._frontier_cond:
            return len(self._frontier)

    def visited_count(self) -> int:
        with self._visited_lock:
            return len(self._visited)

    def is_visited(self, url: str) -> bool:
        with self._visited_lock:
            return url in self._visited

    # -- emails -------------------------------------------------------------
    def record_email_if_new(self, email: str) -> bool:
        with self._emails_lock:
            if email in self._emails:
                return False
            self._emails.add(email)
            return True

    def found_emails(self) -> FrozenSet[str]:
        with self._emails_lock:
            return frozenset(self._emails)

    # -- stats --------------------------------------------------------------
    def bump(self, key: str, n: int = 1) -> None:
        with self._stats_lock:
            self.stats[key] = self.stats.get(key, 0) + n
