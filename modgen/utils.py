# File: modgen/utils.py
"""
modgen - Utility Functions & Helpers
=====================================
String helpers, file I/O and timing utilities shared by the pipeline.

- String helpers are ``lru_cache``-decorated; renderers call them for every
  field of every artifact.
- File writes go through a temp file and ``os.replace`` so a crash never
  leaves a half-written source file behind.
"""

from __future__ import annotations

import functools
import hashlib
import json
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Any, List, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_NON_ALPHANUM_UPPER_RE: re.Pattern[str] = re.compile(r"[^A-Z0-9]")
_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def capitalize_first(name: str) -> str:
    """Uppercase the first character only: ``orderItems`` → ``OrderItems``."""
    return name[:1].upper() + name[1:]


@functools.lru_cache(maxsize=None)
def to_enum_key(value: str) -> str:
    """
    Derive a TypeScript enum member key from a value.

    Keys that would start with a digit (or come out empty) get a leading
    underscore so the member name stays a valid identifier.

    Examples:
        >>> to_enum_key("in-progress")
        'IN_PROGRESS'
        >>> to_enum_key("1")
        '_1'
    """
    key: str = _NON_ALPHANUM_UPPER_RE.sub("_", value.upper())
    if not key or key[0].isdigit():
        key = "_" + key
    return key


@functools.lru_cache(maxsize=None)
def is_identifier(name: str) -> bool:
    """True if *name* is a valid JavaScript identifier (ASCII subset)."""
    return bool(_IDENTIFIER_RE.match(name))


def quote_ts(value: str) -> str:
    """Single-quoted TypeScript string literal: ``it's`` → ``'it\\'s'``."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def quote_list(items: Sequence[str]) -> str:
    """Render ``['a', 'b']`` the way generated TypeScript spells string lists."""
    return "[" + ", ".join(quote_ts(item) for item in items) + "]"


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file in the same directory
    first, then renames it over the target.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(encoded)
            os.replace(tmp_path, str(path))
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def read_file(path: Path) -> str:
    """Read a file and return its content as a string."""
    return path.read_text(encoding="utf-8")


def read_json(path: Path) -> Any:
    """Load a JSON file. Raises ValueError on malformed content."""
    try:
        return json.loads(read_file(path))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc


def write_json(path: Path, data: Any) -> int:
    """Pretty-print *data* as JSON (2-space indent) and write it atomically."""
    return write_file(path, json.dumps(data, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for pipeline steps.

    Usage:
        with Timer("render") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "capitalize_first",
    "to_enum_key",
    "is_identifier",
    "quote_ts",
    "quote_list",
    "ensure_directory",
    "write_file",
    "read_file",
    "read_json",
    "write_json",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("modgen.utils loaded.")
