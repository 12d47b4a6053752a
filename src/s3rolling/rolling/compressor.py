"""Background compression of rolled log files."""

from __future__ import annotations

import gzip
import os
import shutil
import time
import zipfile
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Optional

from s3rolling.config.config import CompressionMode
from s3rolling.errors import CompressionError, RolloverFailure
from s3rolling.monitoring.metrics import COMPRESSION_DURATION
from s3rolling.rolling.naming import normalize_compressed_name, zip_entry_name
from s3rolling.rolling.renamer import Renamer
from s3rolling.utils.executor import SerialExecutor
from s3rolling.utils.logging import get_logger

logger = get_logger(__name__)

BUFFER_SIZE = 8192


@dataclass
class CompressionTask:
    source: str
    target: str
    mode: CompressionMode
    inner_entry_name: Optional[str] = None


class Compressor:
    """
    Turns a renamed raw file into its upload artifact on a dedicated worker.

    On success the source is removed and the future resolves to the artifact
    path. On failure the source stays on disk and the future raises
    :class:`CompressionError`.
    """

    def __init__(
        self,
        mode: CompressionMode,
        executor: SerialExecutor,
        renamer: Optional[Renamer] = None,
    ) -> None:
        self.mode = mode
        self.executor = executor
        self.renamer = renamer or Renamer()

    def compress_async(
        self,
        source: str,
        compressed_name: str,
        inner_entry_name: Optional[str] = None,
    ) -> "Future[str]":
        task = CompressionTask(
            source=source,
            target=normalize_compressed_name(compressed_name, self.mode),
            mode=self.mode,
            inner_entry_name=inner_entry_name,
        )
        return self.executor.submit(self.compress, task)

    def compress(self, task: CompressionTask) -> str:
        start = time.perf_counter()
        logger.info(
            "compression_started",
            source=task.source,
            target=task.target,
            mode=task.mode.value,
        )
        if not os.path.exists(task.source):
            raise CompressionError(f"File [{task.source}] does not exist.")

        if task.mode is CompressionMode.NONE:
            try:
                self.renamer.rename(task.source, task.target)
            except RolloverFailure as exc:
                raise CompressionError(str(exc)) from exc
        else:
            if os.path.exists(task.target):
                raise CompressionError(
                    f"The target compressed file [{task.target}] exists already."
                )
            parent = os.path.dirname(task.target)
            if parent:
                os.makedirs(parent, exist_ok=True)
            try:
                if task.mode is CompressionMode.GZIP:
                    self._gzip(task)
                else:
                    self._zip(task)
            except OSError as exc:
                _remove_quietly(task.target)
                raise CompressionError(
                    f"Error occurred while compressing [{task.source}] into [{task.target}]"
                ) from exc
            os.remove(task.source)

        elapsed = time.perf_counter() - start
        COMPRESSION_DURATION.labels(mode=task.mode.value).observe(elapsed)
        logger.info(
            "compression_finished",
            target=task.target,
            mode=task.mode.value,
            duration_seconds=elapsed,
        )
        return task.target

    @staticmethod
    def _gzip(task: CompressionTask) -> None:
        with open(task.source, "rb") as src, gzip.open(task.target, "wb") as dst:
            shutil.copyfileobj(src, dst, BUFFER_SIZE)

    @staticmethod
    def _zip(task: CompressionTask) -> None:
        entry = task.inner_entry_name or zip_entry_name(task.target)
        with zipfile.ZipFile(task.target, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            zf.write(task.source, arcname=entry)


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


__all__ = ["CompressionTask", "Compressor"]
