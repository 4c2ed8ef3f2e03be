"""
Catalog download (search endpoint -> Dataset).

The search endpoint pages through a term at most 500 sections at a
time. Pages are fetched strictly in offset order on one thread; a page
that fails is retried at the same offset after a fixed pause, so a
record is never skipped or appended twice.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from tricoscrape.config import Settings
from tricoscrape.errors import DecodeError, FetchExhausted, TransportError
from tricoscrape.model import CatalogPage, Dataset

log = logging.getLogger(__name__)

SEARCH_PATH = "ssb/searchResults/searchResults"


def search_params(term: str, offset: int, page_size: int, session_id: str) -> Dict[str, Any]:
    return {
        "txt_term": term,
        "startDatepicker": "",
        "endDatepicker": "",
        "uniqueSessionId": session_id,
        "pageOffset": offset,
        "pageMaxSize": page_size,
        "sortColumn": "subjectDescription",
        "sortDirection": "asc",
    }


def fetch_page(
    client: Any,
    settings: Settings,
    term: str,
    offset: int,
    page_size: int,
    session_id: str,
) -> CatalogPage:
    """
    Fetch and decode one page of search results.

    Raises TransportError if the request fails and DecodeError if the
    body is not a search result envelope.
    """
    body = client.get_text(
        settings.endpoint(SEARCH_PATH),
        params=search_params(term, offset, page_size, session_id),
    )
    try:
        raw = json.loads(body)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"search result at offset {offset} is not JSON: {exc}") from exc
    return CatalogPage.from_json(raw)


def fetch_catalog(
    client: Any,
    settings: Settings,
    term: str,
    session_id: str,
    sleep: Callable[[float], None] = time.sleep,
    on_page: Optional[Callable[[Dataset], None]] = None,
) -> Dataset:
    """
    Download every section of term into a Dataset, in server order.

    Stops once the number of collected courses reaches the totalCount
    declared by the first page, or once the offset runs past that count
    (repeated CRNs leave the dataset short). Each offset gets
    settings.max_attempts tries; after that FetchExhausted is raised.
    """
    dataset = Dataset()
    offset = 0
    first = True

    while first or (not dataset.complete and offset < dataset.total_count):
        attempt = 0
        while True:
            attempt += 1
            try:
                page = fetch_page(client, settings, term, offset, settings.page_size, session_id)
                expected = page.total_count if first else dataset.total_count
                if offset < expected and not page.courses:
                    raise DecodeError(
                        f"empty page at offset {offset} with {expected - len(dataset)} courses outstanding"
                    )
                break
            except (TransportError, DecodeError) as exc:
                if attempt >= settings.max_attempts:
                    raise FetchExhausted(offset, attempt, exc) from exc
                log.warning(
                    "page at offset %d failed (attempt %d/%d): %s; retrying in %.0f seconds",
                    offset,
                    attempt,
                    settings.max_attempts,
                    exc,
                    settings.backoff_seconds,
                )
                sleep(settings.backoff_seconds)

        added = dataset.add_page(page)
        first = False
        print(f"Fetched offset {offset}: +{added} courses ({len(dataset)}/{dataset.total_count})")
        if on_page is not None:
            on_page(dataset)
        offset += settings.page_size

    if not dataset.complete:
        log.warning(
            "server declared %d courses but only %d distinct ones were returned",
            dataset.total_count,
            len(dataset),
        )
    return dataset
