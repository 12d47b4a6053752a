"""Fire-and-forget uploads on a single FIFO worker."""

from __future__ import annotations

import os
from dataclasses import dataclass

from s3rolling.errors import QueueClosedError, UploadFailure
from s3rolling.monitoring.metrics import UPLOADED_BYTES, UPLOADS
from s3rolling.monitoring.recording import record_error
from s3rolling.rolling.storage import S3StorageBackend
from s3rolling.utils.executor import SerialExecutor
from s3rolling.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadTask:
    local_path: str
    key: str
    bucket: str


class Uploader:
    """
    Queues uploads of finished log artifacts.

    Nothing is returned to the caller and nothing is raised: failures are
    recorded and the task is dropped without retry.
    """

    def __init__(self, storage: S3StorageBackend, executor: SerialExecutor) -> None:
        self.storage = storage
        self.executor = executor

    def enqueue_upload(self, local_path: str) -> None:
        # Missing or empty artifacts are a benign race, not an error.
        try:
            empty = not os.path.isfile(local_path) or os.path.getsize(local_path) == 0
        except OSError:
            empty = True
        if empty:
            UPLOADS.labels(outcome="skipped").inc()
            logger.debug("upload_skipped_empty_or_missing", path=local_path)
            return

        task = UploadTask(
            local_path=local_path,
            key=self.storage.object_key(local_path),
            bucket=self.storage.bucket,
        )
        try:
            self.executor.submit(self._run, task)
        except QueueClosedError as exc:
            UPLOADS.labels(outcome="rejected").inc()
            logger.warning(
                "upload_rejected_queue_closed",
                path=local_path,
                key=task.key,
                error=str(exc),
            )
            return

        UPLOADS.labels(outcome="queued").inc()
        logger.info("upload_queued", path=local_path, bucket=task.bucket, key=task.key)

    def _run(self, task: UploadTask) -> None:
        try:
            size = os.path.getsize(task.local_path)
            self.storage.upload(task.local_path, task.key)
        except Exception as exc:
            UPLOADS.labels(outcome="failed").inc()
            failure = UploadFailure(
                f"Failed to upload [{task.local_path}] to s3://{task.bucket}/{task.key}"
            )
            failure.__cause__ = exc
            record_error(
                logger,
                "upload_failed",
                failure,
                path=task.local_path,
                bucket=task.bucket,
                key=task.key,
            )
            return

        UPLOADS.labels(outcome="succeeded").inc()
        UPLOADED_BYTES.inc(size)
        logger.info(
            "upload_finished",
            path=task.local_path,
            bucket=task.bucket,
            key=task.key,
            size_bytes=size,
        )


__all__ = ["UploadTask", "Uploader"]
