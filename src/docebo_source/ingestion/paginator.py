"""
Paginator Module - Walk every page of one catalog.
==================================================

Pages are requested strictly in order: page 1 first, then the
``current_page + 1`` echoed by the previous response, until the API
reports ``has_more_data: false``.

A page that cannot be fetched or parsed ends the walk early; the entries
of the pages before it are still returned (TRUNCATED).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from docebo_source.ingestion.fetcher import ResilientFetcher, envelope_data
from docebo_source.shared.errors import FetchError
from docebo_source.shared.logging import StageTimer, get_logger
from docebo_source.shared.schemas import CatalogEntry, CatalogPage

logger = get_logger(__name__)

FIRST_PAGE = 1


class PaginationState(str, Enum):
    """States of one catalog walk."""

    REQUESTING = "requesting"
    EXHAUSTED = "exhausted"
    TRUNCATED = "truncated"


@dataclass
class PaginationResult:
    """Entries of one catalog and how the walk ended."""

    catalog_id: Any
    entries: list[CatalogEntry] = field(default_factory=list)
    state: PaginationState = PaginationState.REQUESTING
    pages_fetched: int = 0
    error: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.state == PaginationState.EXHAUSTED


class CatalogPaginator:
    """Loads all entries of a catalog through a ResilientFetcher."""

    def __init__(self, fetcher: ResilientFetcher):
        self.fetcher = fetcher

    async def fetch_page(self, catalog_id: Any, page: int) -> CatalogPage:
        """
        Fetch and parse one catalog page.

        Raises:
            FetchError: If the request failed after retries
            ValueError: If the body is not a valid catalog page
        """
        body = await self.fetcher.fetch(
            self.fetcher.catalog_url(catalog_id), params={"page": page}
        )
        return CatalogPage.model_validate(envelope_data(body))

    async def load_all(self, catalog_id: Any) -> PaginationResult:
        """
        Load every page of a catalog.

        Args:
            catalog_id: Catalog identifier

        Returns:
            PaginationResult with entries in page order
        """
        result = PaginationResult(catalog_id=catalog_id)
        page = FIRST_PAGE

        logger.info(f"Docebo: Retrieving data for catalog id: {catalog_id}")

        with StageTimer(logger, f"Records retrieved for catalog id: {catalog_id}"):
            while result.state == PaginationState.REQUESTING:
                try:
                    catalog_page = await self.fetch_page(catalog_id, page)
                except (FetchError, ValueError) as e:
                    result.state = PaginationState.TRUNCATED
                    result.error = f"page {page}: {e}"
                    logger.error(
                        f"Docebo: Catalog {catalog_id} truncated at page {page}, "
                        f"keeping {len(result.entries)} records: {e}"
                    )
                    break

                result.entries.extend(catalog_page.items)
                result.pages_fetched += 1

                if not catalog_page.has_more_data:
                    result.state = PaginationState.EXHAUSTED
                    break

                next_page = catalog_page.current_page + 1
                if next_page <= page:
                    result.state = PaginationState.TRUNCATED
                    result.error = (
                        f"page {page}: current_page {catalog_page.current_page} "
                        "does not advance"
                    )
                    logger.error(f"Docebo: Catalog {catalog_id} stopped: {result.error}")
                    break
                page = next_page

        logger.info(f"Docebo: Retrieved {len(result.entries)} records for catalog id: {catalog_id}")
        return result
