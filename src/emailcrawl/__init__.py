"""Threaded same-seed email crawler with ROT13 de-obfuscation."""
from __future__ import annotations

__version__ = "1.0.0"

from .config import CrawlConfig, COMMON_TLDS  # noqa: E402
from .crawl import crawl, EmailRecord  # noqa: E402

__all__ = ["CrawlConfig", "COMMON_TLDS", "crawl", "EmailRecord", "__version__"]
