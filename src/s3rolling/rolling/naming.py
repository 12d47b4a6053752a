"""File naming for rolled and compressed log files."""

from __future__ import annotations

import os
import re
import time
from datetime import datetime
from typing import Optional

from s3rolling.config.config import CompressionMode

DEFAULT_DATE_FORMAT = "%Y-%m-%d"
TMP_SUFFIX = ".tmp"

_DATE_TOKEN = re.compile(r"%d(?:\{([^}]*)\})?")


def temp_path_for(raw_file_path: str) -> str:
    """Unique sibling path the raw file is moved to before compression."""
    return f"{raw_file_path}{time.monotonic_ns()}{TMP_SUFFIX}"


def normalize_compressed_name(
    name: str, mode: CompressionMode, name_suffix: str = ""
) -> str:
    """
    Return the artifact name for ``mode``.

    A trailing mode suffix is stripped before ``name_suffix`` is appended and
    then added back, so the result never ends in ``.gz.gz`` or ``.zip.zip``.
    Names for :attr:`CompressionMode.NONE` are returned unchanged.
    """
    suffix = mode.suffix
    if not suffix:
        return name
    if name.endswith(suffix):
        name = name[: -len(suffix)]
    return f"{name}{name_suffix}{suffix}"


def zip_entry_name(compressed_name: str) -> str:
    """Default entry name inside a zip archive: the file name without ``.zip``."""
    base = os.path.basename(compressed_name)
    if base.endswith(".zip"):
        base = base[: -len(".zip")]
    return base


class FileNamePattern:
    """
    Resolves ``%d`` date tokens in a rolled file name pattern.

    ``%d`` alone uses ``%Y-%m-%d``; ``%d{...}`` takes a strftime format, e.g.
    ``app.%d{%Y-%m-%d_%H}.log.gz``. A pattern without a date token is invalid
    because every rollover would produce the same name.
    """

    def __init__(self, pattern: str) -> None:
        if not _DATE_TOKEN.search(pattern):
            raise ValueError(f"file name pattern {pattern!r} has no %d date token")
        self.pattern = pattern
        self.compression_mode = CompressionMode.from_pattern(pattern)

    def convert(self, moment: datetime) -> str:
        def _replace(match: re.Match[str]) -> str:
            fmt: Optional[str] = match.group(1)
            return moment.strftime(fmt or DEFAULT_DATE_FORMAT)

        return _DATE_TOKEN.sub(_replace, self.pattern)

    def __repr__(self) -> str:
        return f"FileNamePattern({self.pattern!r})"


__all__ = [
    "DEFAULT_DATE_FORMAT",
    "FileNamePattern",
    "normalize_compressed_name",
    "temp_path_for",
    "zip_entry_name",
]
