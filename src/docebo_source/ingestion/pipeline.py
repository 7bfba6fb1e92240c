"""
Pipeline Module - One source run, stage by stage.
=================================================

Run stages:

    INIT → CATALOGS_LOADING → CATALOGS_FILTERED → DETAILS_LOADING
         → RELATED_LOADING → CORRELATING → EMITTING → DONE

ABORTED is reachable from CATALOGS_FILTERED only, when no active catalog
entry is left. Every other stage tolerates partial loss and moves on.
The detail stage is fully awaited before the related stage starts.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from docebo_source.ingestion.catalogs import CatalogAggregator
from docebo_source.ingestion.correlator import Correlator
from docebo_source.ingestion.fetcher import FetcherStats, ResilientFetcher
from docebo_source.ingestion.loaders import CourseDetailLoader, RelatedCourseLoader
from docebo_source.ingestion.paginator import CatalogPaginator
from docebo_source.shared.config import FetchConfig, SourceOptions
from docebo_source.shared.errors import EmptyCatalogError
from docebo_source.shared.logging import get_logger
from docebo_source.sinks import RecordSink

logger = get_logger(__name__)


class RunStage(str, Enum):
    """Stages of a source run."""

    INIT = "init"
    CATALOGS_LOADING = "catalogs_loading"
    CATALOGS_FILTERED = "catalogs_filtered"
    DETAILS_LOADING = "details_loading"
    RELATED_LOADING = "related_loading"
    CORRELATING = "correlating"
    EMITTING = "emitting"
    DONE = "done"
    ABORTED = "aborted"


TRANSITIONS: dict[RunStage, set[RunStage]] = {
    RunStage.INIT: {RunStage.CATALOGS_LOADING},
    RunStage.CATALOGS_LOADING: {RunStage.CATALOGS_FILTERED},
    RunStage.CATALOGS_FILTERED: {RunStage.DETAILS_LOADING, RunStage.ABORTED},
    RunStage.DETAILS_LOADING: {RunStage.RELATED_LOADING},
    RunStage.RELATED_LOADING: {RunStage.CORRELATING},
    RunStage.CORRELATING: {RunStage.EMITTING},
    RunStage.EMITTING: {RunStage.DONE},
    RunStage.DONE: set(),
    RunStage.ABORTED: set(),
}


@dataclass
class RunReport:
    """What a run did, for logging and the command line summary."""

    stage: RunStage = RunStage.INIT
    catalogs: dict[str, str] = field(default_factory=dict)
    records_retrieved: int = 0
    active_entries: int = 0
    details_loaded: int = 0
    detail_failures: list[str] = field(default_factory=list)
    related_loaded: int = 0
    related_failures: list[str] = field(default_factory=list)
    records_emitted: int = 0
    abort_reason: Optional[str] = None
    fetch_stats: Optional[FetcherStats] = None

    @property
    def aborted(self) -> bool:
        return self.stage == RunStage.ABORTED


class SourceRun:
    """
    Executes one run against a fetcher and a sink.

    Example:
        >>> async with ResilientFetcher(options.base_url) as fetcher:
        ...     report = await SourceRun(options, sink, fetcher).execute()
    """

    def __init__(self, options: SourceOptions, sink: RecordSink, fetcher: ResilientFetcher):
        self.options = options
        self.sink = sink
        self.fetcher = fetcher
        self.report = RunReport()

        self.aggregator = CatalogAggregator(CatalogPaginator(fetcher))
        self.detail_loader = CourseDetailLoader(fetcher)
        self.related_loader = RelatedCourseLoader(fetcher, page_size=options.related_links)
        self.correlator = Correlator()

    @property
    def stage(self) -> RunStage:
        return self.report.stage

    def _advance(self, stage: RunStage) -> None:
        if stage not in TRANSITIONS[self.report.stage]:
            raise RuntimeError(f"Illegal run transition {self.report.stage.value} -> {stage.value}")
        logger.debug(f"Docebo: stage {self.report.stage.value} -> {stage.value}")
        self.report.stage = stage

    async def execute(self) -> RunReport:
        """
        Run every stage once.

        Returns:
            The run report

        Raises:
            EmptyCatalogError: If no active catalog entry was found; the
                report is left in the ABORTED stage and nothing is emitted
        """
        self._advance(RunStage.CATALOGS_LOADING)
        try:
            entries = await self.aggregator.aggregate(self.options.catalog_ids)
        except EmptyCatalogError as e:
            self._record_catalogs()
            self._advance(RunStage.CATALOGS_FILTERED)
            self._advance(RunStage.ABORTED)
            self.report.abort_reason = str(e)
            self.report.fetch_stats = self.fetcher.stats
            logger.error(f"Docebo: Run aborted: {e}")
            raise
        self._record_catalogs()
        self.report.active_entries = len(entries)
        self._advance(RunStage.CATALOGS_FILTERED)

        self._advance(RunStage.DETAILS_LOADING)
        details = await self.detail_loader.load(entries)
        self.report.details_loaded = len(details)
        self.report.detail_failures = list(self.detail_loader.failures)

        self._advance(RunStage.RELATED_LOADING)
        related_lists = await self.related_loader.load(entries, details)
        self.report.related_loaded = len(related_lists)
        self.report.related_failures = list(self.related_loader.failures)

        self._advance(RunStage.CORRELATING)
        nodes = self.correlator.correlate(details, related_lists)

        self._advance(RunStage.EMITTING)
        self.report.records_emitted = self.correlator.emit(nodes, self.sink)

        self._advance(RunStage.DONE)
        self.report.fetch_stats = self.fetcher.stats
        logger.info(
            f"Docebo: Run finished, {self.report.records_emitted} records emitted "
            f"({len(self.report.detail_failures)} detail and "
            f"{len(self.report.related_failures)} related failures)"
        )
        return self.report

    def _record_catalogs(self) -> None:
        results = self.aggregator.results
        self.report.catalogs = {str(r.catalog_id): r.state.value for r in results}
        self.report.records_retrieved = sum(len(r.entries) for r in results)


# ─────────────────────────────────────────────────────────────────────────────
# Entry Points
# ─────────────────────────────────────────────────────────────────────────────


async def source_nodes(
    options: SourceOptions,
    sink: RecordSink,
    fetcher: Optional[ResilientFetcher] = None,
    fetch_config: Optional[FetchConfig] = None,
    **fetcher_kwargs: Any,
) -> RunReport:
    """
    Fetch, correlate and emit all course records of the configured catalogs.

    Args:
        options: Validated source options
        sink: Receives every built record
        fetcher: Optional fetcher to use (not closed here)
        fetch_config: Retry settings for a fetcher created here
        **fetcher_kwargs: Extra ResilientFetcher arguments

    Returns:
        The run report

    Raises:
        EmptyCatalogError: If the run was aborted
    """
    if fetcher is not None:
        return await SourceRun(options, sink, fetcher).execute()

    async with ResilientFetcher(options.base_url, config=fetch_config, **fetcher_kwargs) as owned:
        return await SourceRun(options, sink, owned).execute()


def run_source(
    options: SourceOptions,
    sink: RecordSink,
    fetch_config: Optional[FetchConfig] = None,
    **fetcher_kwargs: Any,
) -> RunReport:
    """Synchronous wrapper around source_nodes."""
    return asyncio.run(source_nodes(options, sink, fetch_config=fetch_config, **fetcher_kwargs))
