"""
Tests for the paged catalog download.

The fake client serves a catalog of `total` sections, numbered by their
position, and can be told to fail a given offset a number of times.
"""

from __future__ import annotations

import json
import unittest
from collections import Counter
from urllib.parse import urlparse

from tricoscrape.catalog import SEARCH_PATH, fetch_catalog, fetch_page, search_params
from tricoscrape.config import Settings
from tricoscrape.errors import DecodeError, FetchExhausted, TransportError


def _course(n: int) -> dict:
    return {"id": n, "courseReferenceNumber": str(10000 + n), "subject": "MATH", "courseNumber": "015"}


class FakeSearch:
    def __init__(self, total: int, failures: dict | None = None, garbage: dict | None = None) -> None:
        self.total = total
        self.failures = Counter(failures or {})
        self.garbage = Counter(garbage or {})
        self.offsets: list[int] = []

    def get_text(self, url, params=None):
        assert urlparse(url).path.endswith(SEARCH_PATH)
        offset = int(params["pageOffset"])
        size = int(params["pageMaxSize"])
        self.offsets.append(offset)
        if self.failures[offset] > 0:
            self.failures[offset] -= 1
            raise TransportError(url, "connection reset")
        if self.garbage[offset] > 0:
            self.garbage[offset] -= 1
            return "<html>Service Unavailable</html>"
        data = [_course(n) for n in range(offset, min(offset + size, self.total))]
        return json.dumps({"success": True, "totalCount": self.total, "data": data})


def _settings(**kw) -> Settings:
    kw.setdefault("backoff_seconds", 7.0)
    return Settings(**kw)


class TestSearchParams(unittest.TestCase):
    def test_query(self) -> None:
        p = search_params("202404", 500, 500, "abcde1717225731537")
        self.assertEqual(p["txt_term"], "202404")
        self.assertEqual(p["pageOffset"], 500)
        self.assertEqual(p["pageMaxSize"], 500)
        self.assertEqual(p["sortColumn"], "subjectDescription")
        self.assertEqual(p["sortDirection"], "asc")
        self.assertEqual(p["uniqueSessionId"], "abcde1717225731537")

    def test_page_size_is_capped(self) -> None:
        self.assertEqual(Settings(page_size=2000).page_size, 500)


class TestFetchPage(unittest.TestCase):
    def test_decodes_page(self) -> None:
        page = fetch_page(FakeSearch(3), _settings(), "202404", 0, 500, "sid")
        self.assertEqual(page.total_count, 3)
        self.assertEqual(len(page.courses), 3)

    def test_non_json_is_decode_error(self) -> None:
        with self.assertRaises(DecodeError):
            fetch_page(FakeSearch(3, garbage={0: 1}), _settings(), "202404", 0, 500, "sid")

    def test_transport_error_propagates(self) -> None:
        with self.assertRaises(TransportError):
            fetch_page(FakeSearch(3, failures={0: 1}), _settings(), "202404", 0, 500, "sid")


class TestFetchCatalog(unittest.TestCase):
    def test_pagination_offsets(self) -> None:
        client = FakeSearch(1200)
        ds = fetch_catalog(client, _settings(), "202404", "sid", sleep=lambda s: None)
        self.assertEqual(client.offsets, [0, 500, 1000])
        self.assertEqual(len(ds), 1200)
        self.assertEqual(ds.total_count, 1200)
        self.assertEqual(len({c.ref for c in ds.courses}), 1200)
        # server order is preserved
        self.assertEqual([c.id for c in ds.courses], list(range(1200)))

    def test_zero_total_stops_after_first_page(self) -> None:
        client = FakeSearch(0)
        ds = fetch_catalog(client, _settings(), "202404", "sid", sleep=lambda s: None)
        self.assertEqual(client.offsets, [0])
        self.assertEqual(len(ds), 0)
        self.assertEqual(ds.total_count, 0)

    def test_retry_is_idempotent(self) -> None:
        clean = fetch_catalog(FakeSearch(1200), _settings(), "202404", "sid", sleep=lambda s: None)

        sleeps: list[float] = []
        flaky = FakeSearch(1200, failures={500: 2})
        with self.assertLogs("tricoscrape.catalog", level="WARNING"):
            retried = fetch_catalog(flaky, _settings(), "202404", "sid", sleep=sleeps.append)

        self.assertEqual(flaky.offsets, [0, 500, 500, 500, 1000])
        self.assertEqual(sleeps, [7.0, 7.0])
        self.assertEqual([c.ref for c in retried.courses], [c.ref for c in clean.courses])

    def test_bad_json_is_retried(self) -> None:
        client = FakeSearch(10, garbage={0: 1})
        with self.assertLogs("tricoscrape.catalog", level="WARNING"):
            ds = fetch_catalog(client, _settings(), "202404", "sid", sleep=lambda s: None)
        self.assertEqual(client.offsets, [0, 0])
        self.assertEqual(len(ds), 10)

    def test_gives_up_after_max_attempts(self) -> None:
        client = FakeSearch(1200, failures={500: 99})
        with self.assertLogs("tricoscrape.catalog", level="WARNING"):
            with self.assertRaises(FetchExhausted) as ctx:
                fetch_catalog(client, _settings(max_attempts=3), "202404", "sid", sleep=lambda s: None)
        self.assertEqual(ctx.exception.offset, 500)
        self.assertEqual(ctx.exception.attempts, 3)
        self.assertIsInstance(ctx.exception.last_error, TransportError)
        self.assertEqual(client.offsets, [0, 500, 500, 500])

    def test_empty_page_before_total_is_retried(self) -> None:
        class ShortServer(FakeSearch):
            def get_text(self, url, params=None):
                if int(params["pageOffset"]) >= 500:
                    self.offsets.append(int(params["pageOffset"]))
                    return json.dumps({"totalCount": self.total, "data": []})
                return super().get_text(url, params)

        client = ShortServer(600)
        with self.assertLogs("tricoscrape.catalog", level="WARNING"):
            with self.assertRaises(FetchExhausted) as ctx:
                fetch_catalog(client, _settings(max_attempts=2), "202404", "sid", sleep=lambda s: None)
        self.assertIsInstance(ctx.exception.last_error, DecodeError)

    def test_small_page_size(self) -> None:
        client = FakeSearch(25)
        ds = fetch_catalog(client, _settings(page_size=10), "202404", "sid", sleep=lambda s: None)
        self.assertEqual(client.offsets, [0, 10, 20])
        self.assertEqual(len(ds), 25)

    def test_repeated_crn_across_pages_stops_at_end_of_catalog(self) -> None:
        # The sort is not stable between requests: CRN 10002 shows up on
        # both pages and CRN 10004 never does.
        pages = {0: [1, 2], 2: [2, 3], 4: []}

        class ShiftingServer(FakeSearch):
            def get_text(self, url, params=None):
                offset = int(params["pageOffset"])
                self.offsets.append(offset)
                data = [_course(n) for n in pages.get(offset, [])]
                return json.dumps({"totalCount": self.total, "data": data})

        client = ShiftingServer(4)
        with self.assertLogs("tricoscrape", level="WARNING") as logs:
            ds = fetch_catalog(client, _settings(page_size=2, max_attempts=3), "202404", "sid", sleep=lambda s: None)

        self.assertEqual(client.offsets, [0, 2])
        self.assertEqual([c.ref for c in ds.courses], ["10001", "10002", "10003"])
        self.assertEqual(ds.total_count, 4)
        self.assertTrue(any(r.name == "tricoscrape.catalog" for r in logs.records))


if __name__ == "__main__":
    unittest.main()
