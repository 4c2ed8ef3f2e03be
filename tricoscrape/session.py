"""
Session bootstrap.

Before the search endpoint returns anything, Banner wants to see the
same sequence of pages a browser would load: the registration landing
page, the menu, term selection, the term list, the term confirmation
and finally the class search page. Each call adds to the server-side
session, so they are issued one after another.

Failures here are logged and ignored. Some servers do not need every
step, and a real session problem shows up again as an empty or failing
search.
"""

from __future__ import annotations

import logging
import random
import string
import time
from typing import Any, Dict, List, Tuple

from tricoscrape.config import Settings
from tricoscrape.errors import TransportError

log = logging.getLogger(__name__)

PrimingRequest = Tuple[str, str, Dict[str, Any]]


def _millis() -> int:
    return int(time.time() * 1000)


def new_session_id() -> str:
    """
    Return a uniqueSessionId the way the Banner web client builds one:
    five random characters followed by the current epoch milliseconds.
    """
    prefix = "".join(random.choices(string.ascii_lowercase + string.digits, k=5))
    return f"{prefix}{_millis()}"


def priming_requests(term: str, session_id: str) -> List[PrimingRequest]:
    """
    The ordered (name, path, params) list of priming requests for term.
    """
    return [
        ("landing page", "ssb/registration", {}),
        ("menu data", "ssb/selfServiceMenu/data", {}),
        ("term selection", "ssb/term/termSelection", {"mode": "search"}),
        (
            "get terms",
            "ssb/classSearch/getTerms",
            {"searchTerm": "", "offset": 1, "max": 10, "_": _millis()},
        ),
        (
            "term search",
            "ssb/term/search",
            {
                "mode": "search",
                "term": term,
                "studyPath": "",
                "studyPathText": "",
                "startDatepicker": "",
                "endDatepicker": "",
                "uniqueSessionId": session_id,
            },
        ),
        ("search init", "ssb/classSearch/classSearch", {}),
    ]


def bootstrap_session(client: Any, settings: Settings, term: str, session_id: str) -> List[str]:
    """
    Prime the client's session for term. Returns the names of the steps
    that failed (empty when every request went through).
    """
    failed: List[str] = []
    for name, path, params in priming_requests(term, session_id):
        try:
            client.get_text(settings.endpoint(path), params=params)
        except TransportError as exc:
            log.warning("session bootstrap step %r failed, continuing: %s", name, exc)
            failed.append(name)
        else:
            log.debug("session bootstrap step %r ok", name)
    return failed
