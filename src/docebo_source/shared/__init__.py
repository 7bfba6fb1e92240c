"""
Shared Module - Common configuration, schemas, errors, and logging.
===================================================================

This module provides foundational components used across all other modules:

- config: Configuration loading and option validation
- errors: Exception hierarchy
- logging: Logging setup and stage timers
- schemas: Pydantic data models
- utils: Hashing, canonical JSON and JSONL helpers
"""

from docebo_source.shared.config import (
    get_settings,
    Settings,
    SourceOptions,
    FetchConfig,
    validate_options,
    check_availability,
)
from docebo_source.shared.errors import (
    DoceboSourceError,
    FetchError,
    EmptyCatalogError,
    ConfigurationError,
)
from docebo_source.shared.logging import get_logger, setup_logging, StageTimer
from docebo_source.shared.schemas import (
    CatalogEntry,
    CatalogPage,
    CourseDetail,
    RelatedCourseItem,
    RelatedCourseList,
    CourseNode,
)
from docebo_source.shared.utils import (
    compute_hash,
    canonical_json,
    compute_content_digest,
    unique_in_order,
)

__all__ = [
    # Config
    "get_settings",
    "Settings",
    "SourceOptions",
    "FetchConfig",
    "validate_options",
    "check_availability",
    # Errors
    "DoceboSourceError",
    "FetchError",
    "EmptyCatalogError",
    "ConfigurationError",
    # Logging
    "get_logger",
    "setup_logging",
    "StageTimer",
    # Schemas
    "CatalogEntry",
    "CatalogPage",
    "CourseDetail",
    "RelatedCourseItem",
    "RelatedCourseList",
    "CourseNode",
    # Utils
    "compute_hash",
    "canonical_json",
    "compute_content_digest",
    "unique_in_order",
]
