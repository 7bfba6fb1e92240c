"""
Pytest Configuration and Fixtures.
===================================

Shared fixtures for all test modules:
- A fake Docebo API served through httpx.MockTransport
- Fetchers with zero retry delay
- Sample API payloads
"""

import tempfile
from pathlib import Path
from typing import Any, Generator, Optional

import httpx
import pytest

BASE_URL = "https://acme.docebosaas.com"


# ─────────────────────────────────────────────────────────────────────────────
# Fake API
# ─────────────────────────────────────────────────────────────────────────────


class FakeDoceboApi:
    """
    In-memory Docebo API.

    catalogs maps a catalog id to its pages; each page is a dict with
    "items" and "has_more". courses and related are keyed by item id
    string. failing holds request paths (or (path, page) for catalog pages)
    that always answer 500; flaky maps a path to the number of 503s it
    answers before succeeding. echo_page maps (catalog id, page) to the
    current_page the response reports instead of the requested page.
    """

    def __init__(self) -> None:
        self.catalogs: dict[str, list[dict[str, Any]]] = {}
        self.courses: dict[str, dict[str, Any]] = {}
        self.related: dict[str, list[dict[str, Any]]] = {}
        self.failing: set = set()
        self.flaky: dict[str, int] = {}
        self.echo_page: dict[tuple[str, int], int] = {}
        self.requests: list[tuple[str, dict[str, str]]] = []

    def add_catalog(self, catalog_id: Any, *pages: list[dict[str, Any]]) -> None:
        """Register a catalog; every page but the last reports more data."""
        self.catalogs[str(catalog_id)] = [
            {"items": items, "has_more": i < len(pages) - 1} for i, items in enumerate(pages)
        ]

    def add_course(self, course_id: Any, **fields: Any) -> None:
        self.courses[str(course_id)] = {"id": course_id, **fields}

    def add_related(self, course_id: Any, *id_courses: Any) -> None:
        self.related[str(course_id)] = [
            {"id_course": cid, "name": f"Course {cid}"} for cid in id_courses
        ]

    def paths(self, prefix: str = "") -> list[str]:
        return [path for path, _ in self.requests if path.startswith(prefix)]

    def catalog_pages_requested(self, catalog_id: Any) -> list[int]:
        path = f"/learn/v1/catalog/{catalog_id}"
        return [int(params["page"]) for p, params in self.requests if p == path]

    def _error(self, status: int) -> httpx.Response:
        return httpx.Response(status, json={"message": "error"})

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        params = dict(request.url.params)
        self.requests.append((path, params))

        if self.flaky.get(path, 0) > 0:
            self.flaky[path] -= 1
            return self._error(503)
        if path in self.failing:
            return self._error(500)

        parts = path.strip("/").split("/")

        if path.startswith("/learn/v1/catalog/"):
            return self._catalog_page(parts[-1], int(params.get("page", 1)))

        if path.endswith("/by_category"):
            items = self.related.get(parts[-2], [])
            return httpx.Response(200, json={"data": {"items": items}})

        if path == "/learn/v1/courses":
            return httpx.Response(200, json={"data": {"items": []}})

        if path.startswith("/learn/v1/courses/"):
            course = self.courses.get(parts[-1])
            if course is None:
                return self._error(404)
            return httpx.Response(200, json={"data": course})

        return self._error(404)

    def _catalog_page(self, catalog_id: str, page: int) -> httpx.Response:
        if (f"/learn/v1/catalog/{catalog_id}", page) in self.failing:
            return self._error(500)
        pages = self.catalogs.get(catalog_id)
        if pages is None or page > len(pages):
            return self._error(404)
        current = pages[page - 1]
        return httpx.Response(
            200,
            json={
                "data": {
                    "items": current["items"],
                    "current_page": self.echo_page.get((catalog_id, page), page),
                    "has_more_data": current["has_more"],
                }
            },
        )


def entry(item_id: Any, access_status: int = 1) -> dict[str, Any]:
    """Raw catalog item as returned by the API."""
    return {"item_id": item_id, "access_status": access_status, "item_type": "course"}


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def api() -> FakeDoceboApi:
    """An empty fake Docebo API."""
    return FakeDoceboApi()


@pytest.fixture
def make_fetcher(api: FakeDoceboApi):
    """Factory for fetchers bound to the fake API, with zero retry delay."""
    from docebo_source.ingestion.fetcher import ResilientFetcher

    def factory(
        max_retries: int = 2,
        initial_delay: float = 0.0,
        sleep: Optional[Any] = None,
    ) -> ResilientFetcher:
        client = httpx.AsyncClient(transport=httpx.MockTransport(api.handler))
        return ResilientFetcher(
            BASE_URL,
            max_retries=max_retries,
            initial_delay=initial_delay,
            client=client,
            sleep=sleep,
        )

    return factory


@pytest.fixture
def fetcher(make_fetcher):
    """A fetcher with two retries and no delay."""
    return make_fetcher()


@pytest.fixture
def source_options():
    """Source options pointing at the fake API."""
    from docebo_source.shared.config import SourceOptions

    return SourceOptions(base_url=BASE_URL, catalog_ids=[1], related_links=5)


@pytest.fixture
def sample_course_data() -> dict:
    """Sample course detail payload."""
    return {
        "id": 10,
        "slug_name": "intro",
        "thumbnail": "https://cdn.example.com/intro.png",
        "uidCourse": "E-ABC123",
        "name": "Introduction",
        "description": "<p>Getting started</p>",
        "duration": 3600,
        "credits": 2,
        "additional_fields": [{"id": 1, "value": "beginner"}],
        "tree": [{"id": 4, "name": "Onboarding"}],
    }
