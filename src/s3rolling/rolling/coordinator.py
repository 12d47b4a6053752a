"""Rollover sequencing: rename, bounded wait on compression, then upload."""

from __future__ import annotations

from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from s3rolling.config.config import CompressionMode
from s3rolling.errors import (
    CompressionError,
    CompressionTimeout,
    QueueClosedError,
    RolloverFailure,
)
from s3rolling.monitoring.metrics import ERRORS, ROLLOVERS
from s3rolling.monitoring.recording import record_error
from s3rolling.rolling.compressor import Compressor
from s3rolling.rolling.naming import normalize_compressed_name, temp_path_for
from s3rolling.rolling.renamer import Renamer
from s3rolling.rolling.uploader import Uploader
from s3rolling.utils.logging import get_logger, log_context

logger = get_logger(__name__)

DEFAULT_COMPRESSION_TIMEOUT = 5.0


class RolloverCoordinator:
    """
    Runs one rollover per trigger.

    The rename happens on the caller's thread and its failure is the only
    error raised back to the caller. Compression runs on the compressor's
    worker; the caller waits at most ``compression_timeout`` seconds for it and
    then hands the artifact to the uploader without waiting for the upload.
    """

    def __init__(
        self,
        renamer: Renamer,
        compressor: Compressor,
        uploader: Uploader,
        compression_timeout: float = DEFAULT_COMPRESSION_TIMEOUT,
        name_suffix: str = "",
    ) -> None:
        self.renamer = renamer
        self.compressor = compressor
        self.uploader = uploader
        self.compression_timeout = compression_timeout
        self.name_suffix = name_suffix

    @property
    def compression_mode(self) -> CompressionMode:
        return self.compressor.mode

    def perform_rollover(
        self,
        raw_file_path: str,
        compressed_name: str,
        inner_entry_name: Optional[str] = None,
    ) -> "Future[str]":
        with log_context(raw_file=raw_file_path):
            tmp_target = temp_path_for(raw_file_path)
            try:
                self.renamer.rename(raw_file_path, tmp_target)
            except RolloverFailure as exc:
                ROLLOVERS.labels(outcome="failed").inc()
                ERRORS.labels(kind=exc.kind).inc()
                logger.error("rollover_rename_failed", tmp_target=tmp_target, error=str(exc))
                raise

            logger.info("rollover_renamed", tmp_target=tmp_target)
            artifact = self.artifact_name(compressed_name)
            try:
                future = self.compressor.compress_async(
                    tmp_target, artifact, inner_entry_name
                )
            except QueueClosedError as exc:
                ROLLOVERS.labels(outcome="compression_error").inc()
                record_error(
                    logger,
                    "compression_rejected",
                    CompressionError(f"Compression queue is closed: {exc}"),
                    tmp_target=tmp_target,
                )
                future = Future()
                future.set_exception(exc)
                return future

            try:
                future.result(timeout=self.compression_timeout)
            except FutureTimeoutError:
                ROLLOVERS.labels(outcome="compression_timeout").inc()
                record_error(
                    logger,
                    "compression_wait_timed_out",
                    CompressionTimeout(
                        "Timeout while waiting for compression job to finish"
                    ),
                    tmp_target=tmp_target,
                    timeout_seconds=self.compression_timeout,
                )
                return future
            except Exception as exc:
                ROLLOVERS.labels(outcome="compression_error").inc()
                error = CompressionError(
                    "Unexpected exception while waiting for compression job to finish"
                )
                error.__cause__ = exc
                record_error(
                    logger,
                    "compression_wait_failed",
                    error,
                    tmp_target=tmp_target,
                )
                return future

            self.uploader.enqueue_upload(artifact)
            ROLLOVERS.labels(outcome="succeeded").inc()
            logger.info("rollover_finished", artifact=artifact)
            return future

    def artifact_name(self, compressed_name: str) -> str:
        """Final artifact name for ``compressed_name`` under the current mode."""
        return normalize_compressed_name(
            compressed_name, self.compression_mode, self.name_suffix
        )


__all__ = ["DEFAULT_COMPRESSION_TIMEOUT", "RolloverCoordinator"]
