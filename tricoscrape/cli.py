"""
CLI (Command Line Interface).

Downloads one term and writes it to a JSON file:

    tricoscrape --semester fall --year 2024
    tricoscrape -s spring -y 2025 -o data/spring25.json --workers 8
    tricoscrape                      # asks for semester and year

A run has four phases, always in this order:

1. prime the server session for the term (best effort)
2. page through the search endpoint (sequential, retried per page)
3. fetch every course description (bounded thread pool)
4. write the file

Exit codes: 0 success, 1 download or write failed, 2 bad input,
130 interrupted.
"""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeRemainingColumn

from tricoscrape import config
from tricoscrape.catalog import fetch_catalog
from tricoscrape.client import HttpClient
from tricoscrape.config import Settings
from tricoscrape.describe import assign_description_urls, enrich_descriptions
from tricoscrape.errors import FetchExhausted, PersistenceError
from tricoscrape.model import Dataset
from tricoscrape.session import bootstrap_session, new_session_id
from tricoscrape.storage import write_dataset
from tricoscrape.term import encode_term

log = logging.getLogger("tricoscrape")
console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def _describe_with_progress(client: Any, settings: Settings, term: str, dataset: Dataset) -> list[str]:
    with Progress(
        TextColumn("[bold]Descriptions"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("describe", total=len(dataset))

        def on_done(finished: int, total: int) -> None:
            progress.update(task, completed=finished)

        return enrich_descriptions(client, settings, term, dataset, on_done=on_done)


def run(
    settings: Settings,
    term: str,
    client: Optional[Any] = None,
    describe: bool = True,
    progress: bool = True,
    sleep: Callable[[float], None] = time.sleep,
) -> Dataset:
    """
    Download term, attach descriptions and write settings.output.

    client defaults to a fresh HttpClient, closed again at the end.
    """
    started = time.perf_counter()
    owns_client = client is None
    if client is None:
        client = HttpClient(settings)

    try:
        session_id = new_session_id()
        failed_steps = bootstrap_session(client, settings, term, session_id)
        if failed_steps:
            print(f"Session primed with {len(failed_steps)} failed step(s): {', '.join(failed_steps)}")
        else:
            print("Session primed")

        print(f"Requesting courses for term {term}")
        dataset = fetch_catalog(client, settings, term, session_id, sleep=sleep)
        print(f"Finished processing: {dataset.total_count} courses")

        assign_description_urls(settings, term, dataset)
        if describe:
            if progress:
                failed = _describe_with_progress(client, settings, term, dataset)
            else:
                failed = enrich_descriptions(client, settings, term, dataset)
            if failed:
                print(f"Descriptions missing for {len(failed)} course(s)")
    finally:
        if owns_client:
            client.close()

    out_path = write_dataset(dataset, settings.output)
    print(f"Wrote {len(dataset)} courses to: {out_path}")
    print(f"Run took {time.perf_counter() - started:.1f}s")
    return dataset


# ---------------------------------------------------------------------------
# CLI entry
# ---------------------------------------------------------------------------


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _prompt(msg: str) -> str:
    return console.input(msg).strip()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tricoscrape", description="Download a Banner SSB course catalog for one term")
    p.add_argument("--semester", "-s", type=str, help="Semester label (fall or spring); asked for when omitted")
    p.add_argument("--year", "-y", type=str, help="Four-digit year (e.g. 2024); asked for when omitted")
    p.add_argument("--output", "-o", type=Path, default=config.OUTPUT_PATH, help="Output JSON file")
    p.add_argument("--base-url", type=str, default=config.BASE_URL, help="StudentRegistrationSsb root URL")
    p.add_argument("--page-size", type=int, default=config.MAX_PAGE_SIZE, help="Courses per search request (max 500)")
    p.add_argument("--workers", type=int, default=config.MAX_WORKERS, help="Concurrent description requests")
    p.add_argument("--backoff", type=float, default=config.BACKOFF_SECONDS, help="Seconds to wait before retrying a page")
    p.add_argument("--max-attempts", type=int, default=config.MAX_ATTEMPTS, help="Attempts per page before giving up")
    p.add_argument("--timeout", type=float, default=config.TIMEOUT_SECONDS, help="Per-request timeout in seconds")
    p.add_argument("--skip-descriptions", action="store_true", help="Do not fetch course descriptions")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return p


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, runs the download and exits via
    SystemExit with a return code.
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        semester = args.semester or _prompt("Enter your semester (i.e. fall): ")
        year = args.year or _prompt("Enter your year (i.e. 2024): ")
    except (EOFError, KeyboardInterrupt):
        print("No semester/year given.")
        raise SystemExit(2)

    if not semester or not year:
        print("Please provide a semester and a year.")
        raise SystemExit(2)

    try:
        settings = Settings(
            base_url=args.base_url,
            page_size=args.page_size,
            backoff_seconds=args.backoff,
            max_attempts=args.max_attempts,
            max_workers=args.workers,
            timeout=args.timeout,
            output=args.output,
        )
    except ValueError as exc:
        print(f"Invalid option: {exc}")
        raise SystemExit(2)

    term = encode_term(semester, year)

    try:
        run(settings, term, describe=not args.skip_descriptions)
    except FetchExhausted as exc:
        log.error("catalog download failed: %s", exc)
        raise SystemExit(1)
    except PersistenceError as exc:
        log.error("%s", exc)
        raise SystemExit(1)
    except KeyboardInterrupt:
        log.error("interrupted")
        raise SystemExit(130)

    raise SystemExit(0)
