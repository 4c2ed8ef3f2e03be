"""
Course descriptions (getCourseDescription HTML -> Course.description).

The search endpoint has no description field. Banner serves it as a
small HTML fragment per section, where the text we want follows the
label "Section information text:".

Every course is fetched as its own task on a bounded thread pool. A
failure only leaves that course's description empty.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

from bs4 import BeautifulSoup

from tricoscrape.config import Settings
from tricoscrape.errors import TransportError
from tricoscrape.model import Dataset

log = logging.getLogger(__name__)

DESCRIPTION_PATH = "ssb/searchResults/getCourseDescription"
SECTION_SELECTOR = 'section[aria-labelledby="courseDescription"]'
MARKER = "Section information text:"
NO_DESCRIPTION = "No course description provided. Contact Professor."


def description_url(settings: Settings, term: str, crn: str) -> str:
    query = urlencode({"term": term, "courseReferenceNumber": crn})
    return f"{settings.endpoint(DESCRIPTION_PATH)}?{query}"


def assign_description_urls(settings: Settings, term: str, dataset: Dataset) -> None:
    for course in dataset.courses:
        course.description_url = description_url(settings, term, course.ref)


def extract_description(html: str) -> str:
    """
    Return the text after MARKER inside the description section, or
    NO_DESCRIPTION when the marker is missing.
    """
    soup = BeautifulSoup(html, "html.parser")
    section = soup.select_one(SECTION_SELECTOR)
    text = section.get_text() if section is not None else ""

    _, found, rest = text.partition(MARKER)
    if not found:
        return NO_DESCRIPTION
    return rest.strip()


def _describe_one(client: Any, dataset: Dataset, index: int) -> None:
    # Only touches dataset.courses[index].
    course = dataset.courses[index]
    html = client.get_text(course.description_url)
    course.set_description(extract_description(html))


def enrich_descriptions(
    client: Any,
    settings: Settings,
    term: str,
    dataset: Dataset,
    on_done: Optional[Callable[[int, int], None]] = None,
) -> List[str]:
    """
    Fill in the description of every course in dataset.

    Runs at most settings.max_workers requests at once and returns when
    all of them have finished. Returns the CRNs whose description could
    not be fetched; those courses keep an empty description.

    on_done(finished, total) is called from the calling thread after
    each course.
    """
    for course in dataset.courses:
        if not course.description_url:
            course.description_url = description_url(settings, term, course.ref)

    total = len(dataset.courses)
    failed: List[str] = []
    if total == 0:
        return failed

    with ThreadPoolExecutor(max_workers=settings.max_workers, thread_name_prefix="describe") as executor:
        future_to_index: Dict[Any, int] = {
            executor.submit(_describe_one, client, dataset, i): i for i in range(total)
        }

        finished = 0
        try:
            for future in as_completed(future_to_index):
                index = future_to_index[future]
                course = dataset.courses[index]
                try:
                    future.result()
                except TransportError as exc:
                    log.warning("description of CRN %s (%s) not fetched: %s", course.ref, course.code, exc)
                    failed.append(course.ref)
                except Exception:
                    log.exception("description of CRN %s (%s) could not be processed", course.ref, course.code)
                    failed.append(course.ref)

                finished += 1
                if on_done is not None:
                    on_done(finished, total)
        except BaseException:
            # Ctrl-C or a failing callback: drop the queued requests.
            executor.shutdown(wait=True, cancel_futures=True)
            raise

    if len(dataset.courses) != total:
        raise RuntimeError("course list was resized while descriptions were being fetched")

    return failed
