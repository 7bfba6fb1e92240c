"""
Sinks Module - Destinations for emitted course records.
=======================================================

The source hands every record to a sink through a single
``accept(record, fingerprint)`` call and knows nothing about how the sink
stores, indexes or de-duplicates it.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from docebo_source.shared.logging import get_logger
from docebo_source.shared.utils import append_jsonl, ensure_parent_directory

logger = get_logger(__name__)


class RecordSink(ABC):
    """Receives course records one at a time."""

    @abstractmethod
    def accept(self, record: dict[str, Any], fingerprint: str) -> None:
        """
        Accept one record.

        Args:
            record: The course record
            fingerprint: Content digest of the record, for idempotent upserts
        """


class CollectingSink(RecordSink):
    """Keeps accepted records in memory."""

    def __init__(self) -> None:
        self.records: list[tuple[dict[str, Any], str]] = []

    def accept(self, record: dict[str, Any], fingerprint: str) -> None:
        self.records.append((record, fingerprint))

    def __len__(self) -> int:
        return len(self.records)


class JsonlSink(RecordSink):
    """
    Writes each record as one JSON line.

    The file is truncated when the sink is created, so a run always leaves
    a complete snapshot of its own records.
    """

    def __init__(self, file_path: Path):
        self.file_path = ensure_parent_directory(Path(file_path))
        self.file_path.write_text("", encoding="utf-8")
        self.count = 0

    def accept(self, record: dict[str, Any], fingerprint: str) -> None:
        append_jsonl(self.file_path, record)
        self.count += 1
        logger.debug(f"Wrote record {record.get('id')} ({fingerprint}) to {self.file_path}")
