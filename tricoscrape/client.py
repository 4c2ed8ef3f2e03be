"""
Shared HTTP client.

Banner keeps the selected term in the server-side session, so every
request of a run must carry the same cookies. HttpClient owns one
cookie jar and hands each thread its own requests.Session bound to that
jar: the enrichment workers share session cookies but never a
connection pool.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping, Optional

import requests
from requests.cookies import RequestsCookieJar

from tricoscrape.config import Settings
from tricoscrape.errors import TransportError

log = logging.getLogger(__name__)


class HttpClient:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.cookies = RequestsCookieJar()
        self.headers = {
            "User-Agent": settings.user_agent,
            "Accept": "text/html,application/json;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._lock = threading.Lock()

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self.headers)
            session.cookies = self.cookies
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def get_text(self, url: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """
        GET url and return the body as text.

        Raises TransportError for connection problems, timeouts and
        non-2xx answers.
        """
        try:
            resp = self._session().get(url, params=params, timeout=self.settings.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(url, str(exc)) from exc
        log.debug("GET %s -> %s (%d bytes)", resp.url, resp.status_code, len(resp.content))
        return resp.text

    def close(self) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
