"""
Catalogs Module - Aggregate and filter all configured catalogs.
===============================================================

Runs one paginator per catalog id concurrently, flattens the results in
catalog-id order and keeps only active entries. Each paginator already
degrades to partial results, so nothing here fails per catalog; an empty
active set is the only error and it aborts the run.
"""

import asyncio
from typing import Any, Iterable, Sequence

from docebo_source.ingestion.paginator import CatalogPaginator, PaginationResult
from docebo_source.shared.errors import EmptyCatalogError
from docebo_source.shared.logging import get_logger
from docebo_source.shared.schemas import CatalogEntry

logger = get_logger(__name__)


def filter_active_entries(entries: Iterable[CatalogEntry]) -> list[CatalogEntry]:
    """Keep entries whose access_status is 1. Applying it twice changes nothing."""
    return [entry for entry in entries if entry.is_active]


def flatten_results(results: Sequence[PaginationResult]) -> list[CatalogEntry]:
    """Concatenate the entries of several catalogs, in the given order."""
    return [entry for result in results for entry in result.entries]


class CatalogAggregator:
    """Loads every configured catalog and returns the active entries."""

    def __init__(self, paginator: CatalogPaginator):
        self.paginator = paginator
        self.results: list[PaginationResult] = []

    async def load_catalogs(self, catalog_ids: Sequence[Any]) -> list[PaginationResult]:
        """Walk all catalogs concurrently and wait for every one of them."""
        self.results = list(
            await asyncio.gather(*(self.paginator.load_all(cid) for cid in catalog_ids))
        )
        return self.results

    async def aggregate(self, catalog_ids: Sequence[Any]) -> list[CatalogEntry]:
        """
        Load, flatten and filter all catalogs.

        Args:
            catalog_ids: Catalog identifiers

        Returns:
            Active entries; duplicates across catalogs are kept

        Raises:
            EmptyCatalogError: If no active entry remains
        """
        results = await self.load_catalogs(catalog_ids)
        combined = flatten_results(results)
        active = filter_active_entries(combined)

        truncated = [r.catalog_id for r in results if not r.is_complete]
        if truncated:
            logger.warning(f"Docebo: Partial results for catalog ids: {truncated}")

        logger.info(
            f"Docebo: {len(active)} active of {len(combined)} records "
            f"across {len(results)} catalog(s)"
        )

        if not active:
            raise EmptyCatalogError(
                f"No active catalog entries found for catalog ids {list(catalog_ids)}"
            )
        return active
