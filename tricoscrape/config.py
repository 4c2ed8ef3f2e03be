"""
Run settings.

Defaults target Swarthmore's registration server. Every value can be
overridden from the command line (see tricoscrape.cli).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

BASE_URL = "https://studentregistration.swarthmore.edu/StudentRegistrationSsb/"

# The search endpoint refuses to return more than 500 sections per call.
MAX_PAGE_SIZE = 500

BACKOFF_SECONDS = 7.0
MAX_ATTEMPTS = 5
MAX_WORKERS = 16
TIMEOUT_SECONDS = 30.0
OUTPUT_PATH = Path("courses.json")
USER_AGENT = "Mozilla/5.0 (compatible; tricoscrape)"


@dataclass
class Settings:
    base_url: str = BASE_URL
    page_size: int = MAX_PAGE_SIZE
    backoff_seconds: float = BACKOFF_SECONDS
    max_attempts: int = MAX_ATTEMPTS
    max_workers: int = MAX_WORKERS
    timeout: float = TIMEOUT_SECONDS
    output: Path = OUTPUT_PATH
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        if not self.base_url.endswith("/"):
            self.base_url += "/"
        if self.page_size < 1:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        self.page_size = min(self.page_size, MAX_PAGE_SIZE)
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")
        self.output = Path(self.output)

    def endpoint(self, path: str) -> str:
        """
        Absolute URL for an SSB-relative path such as "ssb/registration".
        """
        return self.base_url + path.lstrip("/")
