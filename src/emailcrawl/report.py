from __future__ import annotations
import sys
import threading
from typing import TextIO

from colorama import Fore, Style

from .emails import matches_domain

class EmailReporter:
    """Streams newly found emails as they are discovered.

    Domain matches are printed green, everything else white. In strict mode
    only domain matches reach the stream; storage and crawling are unaffected.
    """

    def __init__(self, domain: str, strict: bool = False, stream: TextIO | None = None, color: bool = True):
        self.domain = domain
        self.strict = strict
        self.stream = stream if stream is not None else sys.stdout
        self.color = color
        self.printed = 0
        self._lock = threading.Lock()

    def _paint(self, email: str, color: str) -> str:
        if not self.color:
            return email
        return f"{color}{email}{Style.RESET_ALL}"

    def report(self, email: str) -> bool:
        """Print ``email`` unless strict mode filters it. Returns True if printed."""
        hit = matches_domain(email, self.domain)
        if self.strict and not hit:
            return False
        line = self._paint(email, Fore.GREEN if hit else Fore.WHITE)
        with self._lock:
            self.stream.write(line + "\n")
            self.stream.flush()
            self.printed += 1
        return True

    def banner(self, url: str) -> None:
        with self._lock:
            self.stream.write(f"Starting email scraping on: {url}\n")
            self.stream.flush()

    def summary(self, total: int) -> None:
        with self._lock:
            self.stream.write(f"Finished scraping. Found {total} emails.\n")
            self.stream.flush()
