"""
Ingestion Module - Fetch, paginate, load, and correlate course data.
====================================================================

This module handles one source run:

- fetcher: GET with bounded retry and exponential backoff
- paginator: walk all pages of one catalog
- catalogs: aggregate catalogs and keep active entries
- loaders: course details and related courses, settled per entry
- correlator: build course nodes and emit them to a sink
- pipeline: run state machine and entry points

Pipeline flow:
    catalog ids → Paginator → Aggregator → {Details, Related} → Correlator → sink
"""

from docebo_source.ingestion.fetcher import ResilientFetcher, FetcherStats
from docebo_source.ingestion.paginator import (
    CatalogPaginator,
    PaginationResult,
    PaginationState,
)
from docebo_source.ingestion.catalogs import CatalogAggregator, filter_active_entries
from docebo_source.ingestion.loaders import (
    CourseDetailLoader,
    RelatedCourseLoader,
    settle_all,
)
from docebo_source.ingestion.correlator import Correlator, build_course_node
from docebo_source.ingestion.pipeline import (
    RunReport,
    RunStage,
    SourceRun,
    run_source,
    source_nodes,
)

__all__ = [
    # Fetcher
    "ResilientFetcher",
    "FetcherStats",
    # Paginator
    "CatalogPaginator",
    "PaginationResult",
    "PaginationState",
    # Catalogs
    "CatalogAggregator",
    "filter_active_entries",
    # Loaders
    "CourseDetailLoader",
    "RelatedCourseLoader",
    "settle_all",
    # Correlator
    "Correlator",
    "build_course_node",
    # Pipeline
    "RunReport",
    "RunStage",
    "SourceRun",
    "run_source",
    "source_nodes",
]
