"""Process-scoped wiring of the rollover/compress/upload pipeline."""

from __future__ import annotations

import atexit
import threading
from concurrent.futures import Future
from datetime import datetime
from typing import Any, Callable, Optional

from s3rolling.config.config import CompressionMode, S3RollingConfig
from s3rolling.rolling.compressor import Compressor
from s3rolling.rolling.coordinator import RolloverCoordinator
from s3rolling.rolling.naming import FileNamePattern, zip_entry_name
from s3rolling.rolling.renamer import Renamer
from s3rolling.rolling.shutdown import ShutdownSequencer, ShutdownState
from s3rolling.rolling.storage import S3ClientProvider, S3StorageBackend
from s3rolling.rolling.uploader import Uploader
from s3rolling.utils.executor import SerialExecutor
from s3rolling.utils.logging import get_logger

logger = get_logger(__name__)

class S3RollingPolicy:
    """
    Owns the shared client, both worker queues and the exit hook for one
    active log file.

    ``start()`` registers the exit hook once. ``shutdown()`` runs it early
    (e.g. from a signal handler); it is a no-op afterwards and nothing is
    restarted.

    Hosts that keep the active file open set ``exit_rollover`` (close the
    file, then call :meth:`rollover`) and ``exit_flush`` (flush buffered
    records before the file is uploaded as-is).
    """

    def __init__(
        self,
        config: S3RollingConfig,
        active_file_name: str,
        file_name_pattern: str | FileNamePattern,
        *,
        client_provider: Optional[S3ClientProvider] = None,
        clock: Callable[[], datetime] = datetime.now,
        register_hook: Callable[[Callable[[], Any]], Any] = atexit.register,
    ) -> None:
        self.config = config
        self.active_file_name = active_file_name
        self.file_name_pattern = (
            file_name_pattern
            if isinstance(file_name_pattern, FileNamePattern)
            else FileNamePattern(file_name_pattern)
        )
        self.compression_mode: CompressionMode = (
            config.compression_mode or self.file_name_pattern.compression_mode
        )
        self._clock = clock
        self._register_hook = register_hook

        self.client_provider = client_provider or S3ClientProvider(config)
        self.compress_executor = SerialExecutor("compress")
        self.upload_executor = SerialExecutor("upload")

        self.compressor = Compressor(self.compression_mode, self.compress_executor)
        self.uploader = Uploader(
            S3StorageBackend(
                self.client_provider,
                bucket=config.s3_bucket_name,
                prefix=config.s3_folder_name,
            ),
            self.upload_executor,
        )
        self.coordinator = RolloverCoordinator(
            renamer=Renamer(),
            compressor=self.compressor,
            uploader=self.uploader,
            compression_timeout=config.compression_timeout,
        )
        self.sequencer = ShutdownSequencer(
            uploader=self.uploader,
            upload_executor=self.upload_executor,
            rollover=self._exit_rollover,
            active_file_name=self._exit_active_file,
            rolling_on_exit=config.rolling_on_exit,
            timeout=config.shutdown_timeout,
        )

        self.exit_rollover: Optional[Callable[[], Any]] = None
        self.exit_flush: Optional[Callable[[], None]] = None
        self._shutdown_lock = threading.Lock()
        self._started = False

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.sequencer.register(self._register_hook, self.shutdown)
        logger.info(
            "policy_started",
            active_file=self.active_file_name,
            pattern=self.file_name_pattern.pattern,
            compression=self.compression_mode.value,
            bucket=self.config.s3_bucket_name,
            folder=self.config.s3_folder_name,
            rolling_on_exit=self.config.rolling_on_exit,
        )

    def rollover(self, moment: Optional[datetime] = None) -> "Future[str]":
        """Roll the active file into the name the pattern gives for ``moment``."""
        compressed_name = self.file_name_pattern.convert(moment or self._clock())
        inner_entry_name = (
            zip_entry_name(compressed_name)
            if self.compression_mode is CompressionMode.ZIP
            else None
        )
        return self.coordinator.perform_rollover(
            self.active_file_name, compressed_name, inner_entry_name
        )

    def upload_active_file(self) -> None:
        self.uploader.enqueue_upload(self.active_file_name)

    def shutdown(self) -> Optional[ShutdownState]:
        """Run the exit sequence now; later calls return the first outcome."""
        with self._shutdown_lock:
            outcome = self.sequencer.run()
            # Late compressions have nothing left to upload them.
            self.compress_executor.abandon()
            return outcome

    def _exit_rollover(self) -> Any:
        if self.exit_rollover is not None:
            return self.exit_rollover()
        return self.rollover()

    def _exit_active_file(self) -> str:
        if self.exit_flush is not None:
            self.exit_flush()
        return self.active_file_name


__all__ = ["S3RollingPolicy"]
