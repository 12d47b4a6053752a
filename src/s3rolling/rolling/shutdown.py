"""Exit hook that flushes the last log file to S3 before the process ends."""

from __future__ import annotations

import atexit
import threading
import time
from enum import Enum
from typing import Any, Callable, List, Optional

from s3rolling.errors import ShutdownDrainExceeded, ShutdownSequenceError
from s3rolling.monitoring.metrics import SHUTDOWN_DRAIN_DURATION
from s3rolling.monitoring.recording import record_error
from s3rolling.rolling.uploader import Uploader
from s3rolling.utils.executor import SerialExecutor
from s3rolling.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SHUTDOWN_TIMEOUT = 600.0


class ShutdownState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    DRAINED = "drained"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    DONE = "done"


class ShutdownSequencer:
    """
    Runs once at process exit.

    Either rolls the active file one last time or queues it for upload as it
    is, then closes the upload queue and waits for it to drain. Pending uploads
    are abandoned once ``timeout`` seconds have passed. Never raises.
    """

    def __init__(
        self,
        *,
        uploader: Uploader,
        upload_executor: SerialExecutor,
        rollover: Callable[[], Any],
        active_file_name: Callable[[], str],
        rolling_on_exit: bool = True,
        timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
    ) -> None:
        self.uploader = uploader
        self.upload_executor = upload_executor
        self._rollover = rollover
        self._active_file_name = active_file_name
        self.rolling_on_exit = rolling_on_exit
        self.timeout = timeout

        self._lock = threading.Lock()
        self._registered = False
        self.state = ShutdownState.IDLE
        self.outcome: Optional[ShutdownState] = None
        self.transitions: List[ShutdownState] = [ShutdownState.IDLE]

    def register(
        self,
        register_hook: Callable[[Callable[[], Any]], Any] = atexit.register,
        callback: Optional[Callable[[], Any]] = None,
    ) -> bool:
        """
        Register the exit hook. Only the first call registers.

        ``callback`` is registered instead of :meth:`run` when the owner wraps it.
        """
        with self._lock:
            if self._registered:
                return False
            self._registered = True
        register_hook(callback or self.run)
        logger.debug("shutdown_hook_registered", rolling_on_exit=self.rolling_on_exit)
        return True

    def run(self) -> Optional[ShutdownState]:
        with self._lock:
            if self.state is not ShutdownState.IDLE:
                return self.outcome
            self._transition(ShutdownState.RUNNING)

        start = time.monotonic()
        try:
            if self.rolling_on_exit:
                logger.info("shutdown_final_rollover")
                self._rollover()
            else:
                active = self._active_file_name()
                logger.info("shutdown_upload_active_file", path=active)
                self.uploader.enqueue_upload(active)

            self.upload_executor.close()
            self._transition(ShutdownState.DRAINING)
            logger.info(
                "shutdown_draining",
                pending=self.upload_executor.pending,
                timeout_seconds=self.timeout,
            )
            if self.upload_executor.drain(self.timeout):
                self.outcome = ShutdownState.DRAINED
                self._transition(ShutdownState.DRAINED)
                logger.info("shutdown_drained", elapsed_seconds=time.monotonic() - start)
            else:
                abandoned = self.upload_executor.abandon()
                self.outcome = ShutdownState.DEADLINE_EXCEEDED
                self._transition(ShutdownState.DEADLINE_EXCEEDED)
                record_error(
                    logger,
                    "shutdown_drain_deadline_exceeded",
                    ShutdownDrainExceeded(
                        f"Uploads still pending after {self.timeout} seconds"
                    ),
                    abandoned=abandoned,
                    timeout_seconds=self.timeout,
                )
        except Exception as exc:
            abandoned = self.upload_executor.abandon()
            error = ShutdownSequenceError("Failed to upload a log in S3")
            error.__cause__ = exc
            record_error(logger, "shutdown_sequence_failed", error, abandoned=abandoned)
        finally:
            SHUTDOWN_DRAIN_DURATION.observe(time.monotonic() - start)
            self._transition(ShutdownState.DONE)
        return self.outcome

    def _transition(self, state: ShutdownState) -> None:
        self.state = state
        self.transitions.append(state)


__all__ = ["DEFAULT_SHUTDOWN_TIMEOUT", "ShutdownSequencer", "ShutdownState"]
