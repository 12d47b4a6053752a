"""Synchronous rename of the active log file."""

from __future__ import annotations

import errno
import os

from s3rolling.errors import RolloverFailure
from s3rolling.utils.logging import get_logger

logger = get_logger(__name__)


class Renamer:
    """Moves a raw log file to a new path without copying it."""

    def rename(self, source: str, target: str) -> None:
        if source == target:
            logger.warning("rename_source_equals_target", source=source)
            return
        if not os.path.exists(source):
            raise RolloverFailure(f"File [{source}] does not exist.")
        if os.path.lexists(target):
            raise RolloverFailure(f"Rename target [{target}] already exists.")

        parent = os.path.dirname(target)
        try:
            if parent:
                os.makedirs(parent, exist_ok=True)
            os.rename(source, target)
        except OSError as exc:
            if exc.errno == errno.EXDEV:
                raise RolloverFailure(
                    f"Cannot rename [{source}] to [{target}]: different file systems"
                ) from exc
            raise RolloverFailure(
                f"Failed to rename [{source}] to [{target}]: {exc.strerror or exc}"
            ) from exc

        logger.debug("file_renamed", source=source, target=target)


__all__ = ["Renamer"]
