"""
Utilities Module - Common helper functions.
==========================================

Provides utility functions for:
- Hashing and canonical JSON (content digests)
- Order-preserving de-duplication
- JSONL writing
"""

import hashlib
import json
from pathlib import Path
from typing import Any, Iterable, TypeVar

T = TypeVar("T")


# ─────────────────────────────────────────────────────────────────────────────
# Hashing Functions
# ─────────────────────────────────────────────────────────────────────────────


def compute_hash(text: str, algorithm: str = "sha256") -> str:
    """
    Compute hash of text content.

    Args:
        text: Text to hash
        algorithm: Hash algorithm (default: sha256)

    Returns:
        Hexadecimal hash string

    Example:
        >>> compute_hash("hello world")
        'b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9'
    """
    hasher = hashlib.new(algorithm)
    hasher.update(text.encode("utf-8"))
    return hasher.hexdigest()


def canonical_json(data: Any) -> str:
    """
    Serialize data to its canonical JSON form.

    Keys are sorted and separators are compact, so equal values always
    produce the same string.
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def compute_content_digest(data: Any) -> str:
    """
    Compute the content digest of a record.

    Args:
        data: JSON-serializable record

    Returns:
        MD5 hex digest of the canonical JSON form
    """
    return compute_hash(canonical_json(data), algorithm="md5")


# ─────────────────────────────────────────────────────────────────────────────
# Collections
# ─────────────────────────────────────────────────────────────────────────────


def unique_in_order(values: Iterable[T]) -> list[T]:
    """
    Drop repeated values, keeping the first occurrence of each.

    Example:
        >>> unique_in_order([3, 1, 3, 2, 1])
        [3, 1, 2]
    """
    seen: set = set()
    result = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


# ─────────────────────────────────────────────────────────────────────────────
# JSONL File I/O
# ─────────────────────────────────────────────────────────────────────────────


def ensure_parent_directory(file_path: Path) -> Path:
    """
    Ensure the parent directory of a file exists.

    Args:
        file_path: File path

    Returns:
        The file path (for chaining)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return file_path


def append_jsonl(file_path: Path, item: dict[str, Any]) -> None:
    """
    Append a single item to a JSONL file.

    Args:
        file_path: Path to JSONL file
        item: Dictionary to append
    """
    file_path = ensure_parent_directory(Path(file_path))

    with open(file_path, "a", encoding="utf-8") as f:
        line = json.dumps(item, ensure_ascii=False, default=str)
        f.write(line + "\n")
