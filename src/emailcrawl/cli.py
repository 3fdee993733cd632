from __future__ import annotations
import argparse
import json
import logging
import sys
import threading
from pathlib import Path

import colorama

from . import __version__
from .config import CrawlConfig
from .crawl import crawl
from .iojsonl import write_jsonl
from .report import EmailReporter
from .urlnorm import normalize_seed, target_domain

def _non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number, got {value!r}")
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="emailcrawl", description="Searches a website for email addresses.")
    ap.add_argument("url", metavar="URL", help="The URL to scrape (http:// is assumed when no scheme is given)")
    ap.add_argument("-d", "--depth", type=_non_negative_int, default=2, metavar="DEPTH", help="Depth of recursion (seed is depth 0)")
    ap.add_argument("-t", "--threads", type=_non_negative_int, default=4, metavar="THREADS", help="Number of threads to use")
    ap.add_argument("--timeout", type=_non_negative_int, default=60, metavar="SECONDS", help="Wall-clock budget for the whole crawl")
    ap.add_argument("--strict", action="store_true", help="Only print emails that match the domain provided")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    ap.add_argument("--requestTimeout", type=_non_negative_int, default=10, metavar="SECONDS", help="Per-request timeout")
    ap.add_argument("--userAgent", default=None, help="Override User-Agent string (default from CrawlConfig)")
    ap.add_argument("--waitInflight", action="store_true", help="Idle workers wait for in-flight fetches instead of exiting on an empty queue")
    ap.add_argument("--noColor", action="store_true", help="Disable colored output")
    ap.add_argument("--out", help="Write found emails as JSONL to this file after the crawl")
    ap.add_argument("--stats", action="store_true", help="Print crawl stats JSON to stderr at end")
    ap.add_argument("--verbose", action="store_true", help="Print crawl events and debug logging to stderr")
    ap.add_argument("--logEvents", help="Write JSONL event log to this file")
    return ap

def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not args.noColor:
        colorama.just_fix_windows_console()

    seed = normalize_seed(args.url)
    cfg = CrawlConfig(
        seed=seed,
        max_depth=args.depth,
        threads=args.threads,
        timeout=float(args.timeout),
        request_timeout=args.requestTimeout,
        strict=args.strict,
        user_agent=args.userAgent or CrawlConfig.__dataclass_fields__['user_agent'].default,
        wait_for_inflight=args.waitInflight,
    )
    reporter = EmailReporter(target_domain(seed), strict=cfg.strict, color=not args.noColor)

    event_fp = None
    if args.logEvents:
        event_log_file = Path(args.logEvents)
        event_log_file.parent.mkdir(parents=True, exist_ok=True)
        event_fp = event_log_file.open('w', encoding='utf-8')
    event_lock = threading.Lock()

    def event_cb(ev):  # called from worker threads
        line = json.dumps(ev, ensure_ascii=False) + "\n"
        with event_lock:
            if args.verbose:
                sys.stderr.write(line)
            if event_fp:
                event_fp.write(line)

    stats = {}
    reporter.banner(seed)
    try:
        records = crawl(
            config=cfg,
            stats=stats,
            event_cb=event_cb if (args.verbose or event_fp) else None,
            on_email=lambda rec: reporter.report(rec["email"]),
        )
    finally:
        if event_fp:
            event_fp.close()
    reporter.summary(len(records))

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        write_jsonl(records, str(out_path))
    if args.stats:
        sys.stderr.write(json.dumps(stats) + "\n")
    return 0

if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
