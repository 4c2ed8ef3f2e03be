"""
Exceptions raised while scraping a term.

TransportError and DecodeError are retryable by the page loop.
FetchExhausted and PersistenceError end the run.
"""

from __future__ import annotations

from typing import Optional


class ScrapeError(Exception):
    """Base class for all tricoscrape errors."""


class TransportError(ScrapeError):
    """A request failed on the network or came back with an error status."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"GET {url} failed: {reason}")
        self.url = url
        self.reason = reason


class DecodeError(ScrapeError):
    """The search endpoint answered with something that is not a catalog page."""


class FetchExhausted(ScrapeError):
    def __init__(self, offset: int, attempts: int, last_error: Optional[Exception] = None) -> None:
        super().__init__(f"giving up on page at offset {offset} after {attempts} attempts: {last_error}")
        self.offset = offset
        self.attempts = attempts
        self.last_error = last_error


class PersistenceError(ScrapeError):
    """Writing or reading the output file failed."""
