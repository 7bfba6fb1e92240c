"""
Loaders Module - Fetch course details and related courses per entry.
====================================================================

Both loaders fan out one request per distinct active item id and settle
all of them before returning: a failed entry is logged and left out, it
never aborts the others.

The related loader joins every related item to the loaded course details
by id_course, so it must run after the detail set is complete.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Mapping, Sequence, TypeVar

from pydantic import ValidationError

from docebo_source.ingestion.fetcher import ResilientFetcher, envelope_data
from docebo_source.shared.errors import FetchError
from docebo_source.shared.logging import StageTimer, get_logger
from docebo_source.shared.schemas import (
    CatalogEntry,
    CourseDetail,
    RelatedCourseItem,
    RelatedCourseList,
)
from docebo_source.shared.utils import unique_in_order

logger = get_logger(__name__)

T = TypeVar("T")

# Failures that exclude one entry; anything else is a bug and propagates
ENTRY_ERRORS = (FetchError, ValueError)


# ─────────────────────────────────────────────────────────────────────────────
# Settle-all
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class Settled:
    """Outcome of a settle-all fan out, in submission order."""

    successes: list = field(default_factory=list)
    failures: dict[str, BaseException] = field(default_factory=dict)


async def settle_all(
    keys: Sequence[str],
    task: Callable[[str], Awaitable[T]],
) -> Settled:
    """
    Run task(key) for every key concurrently and partition the outcomes.

    Entry-level errors become failures; other exceptions are re-raised
    once every task has settled.
    """
    outcomes = await asyncio.gather(*(task(key) for key in keys), return_exceptions=True)

    settled = Settled()
    for key, outcome in zip(keys, outcomes):
        if isinstance(outcome, ENTRY_ERRORS):
            settled.failures[key] = outcome
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            settled.successes.append(outcome)
    return settled


def distinct_item_ids(entries: Iterable[CatalogEntry]) -> list[str]:
    """Item ids of the entries, each once, in first-seen order."""
    return unique_in_order(entry.key for entry in entries)


# ─────────────────────────────────────────────────────────────────────────────
# Course Details
# ─────────────────────────────────────────────────────────────────────────────


class CourseDetailLoader:
    """Fetches /learn/v1/courses/{item_id} for every active entry."""

    def __init__(self, fetcher: ResilientFetcher):
        self.fetcher = fetcher
        self.failures: dict[str, BaseException] = {}

    async def fetch_detail(self, item_id: str) -> CourseDetail:
        body = await self.fetcher.fetch(self.fetcher.course_url(item_id))
        return CourseDetail.model_validate(envelope_data(body))

    async def load(self, entries: Iterable[CatalogEntry]) -> list[CourseDetail]:
        """
        Load the details of every distinct item id.

        Returns:
            Successfully loaded details, in first-seen item order
        """
        item_ids = distinct_item_ids(entries)

        with StageTimer(logger, f"Course details retrieved for {len(item_ids)} items"):
            settled = await settle_all(item_ids, self.fetch_detail)

        self.failures = settled.failures
        for item_id, error in settled.failures.items():
            logger.error(f"Docebo: Failed to load course {item_id}: {error}")

        logger.info(
            f"Docebo: Loaded {len(settled.successes)} course details "
            f"({len(settled.failures)} failed)"
        )
        return settled.successes


# ─────────────────────────────────────────────────────────────────────────────
# Related Courses
# ─────────────────────────────────────────────────────────────────────────────


def index_details(details: Iterable[CourseDetail]) -> dict[str, CourseDetail]:
    """Map course key to detail; the first detail wins on repeated ids."""
    index: dict[str, CourseDetail] = {}
    for detail in details:
        index.setdefault(detail.key, detail)
    return index


def join_related_items(
    raw_items: Iterable[Any],
    details: Mapping[str, CourseDetail],
) -> list[RelatedCourseItem]:
    """
    Attach the slug of the matching course to each related item.

    A slug already present on the raw item is kept. Items that do not
    validate, or whose id_course matches no known course, are dropped.
    """
    joined = []
    for raw in raw_items:
        try:
            item = RelatedCourseItem.model_validate(raw)
        except ValidationError as e:
            logger.debug(f"Docebo: Dropping invalid related course {raw!r}: {e}")
            continue
        course = details.get(item.key)
        if course is None:
            logger.debug(f"Docebo: Dropping related course {item.key}, no matching detail")
            continue
        if item.slug is None:
            item.slug = course.slug_name
        joined.append(item)
    return joined


class RelatedCourseLoader:
    """Fetches the by_category related courses of every active entry."""

    def __init__(self, fetcher: ResilientFetcher, page_size: int = 5):
        self.fetcher = fetcher
        self.page_size = page_size
        self.failures: dict[str, BaseException] = {}

    async def fetch_related(
        self,
        item_id: str,
        details: Mapping[str, CourseDetail],
    ) -> RelatedCourseList:
        body = await self.fetcher.fetch(
            self.fetcher.related_url(item_id), params={"page_size": self.page_size}
        )
        data = envelope_data(body)
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise ValueError(f"related courses of {item_id} have no items list")
        return RelatedCourseList(id=item_id, items=join_related_items(data["items"], details))

    async def load(
        self,
        entries: Iterable[CatalogEntry],
        details: Iterable[CourseDetail],
    ) -> list[RelatedCourseList]:
        """
        Load related courses for every distinct item id.

        Args:
            entries: Active catalog entries
            details: The complete set of loaded course details

        Returns:
            One RelatedCourseList per successful fetch
        """
        item_ids = distinct_item_ids(entries)
        index = index_details(details)

        async def fetch(item_id: str) -> RelatedCourseList:
            return await self.fetch_related(item_id, index)

        with StageTimer(logger, f"Related courses retrieved for {len(item_ids)} items"):
            settled = await settle_all(item_ids, fetch)

        self.failures = settled.failures
        for item_id, error in settled.failures.items():
            logger.error(f"Docebo: Failed to load related courses for {item_id}: {error}")

        logger.info(
            f"Docebo: Loaded {len(settled.successes)} related course lists "
            f"({len(settled.failures)} failed)"
        )
        return settled.successes
