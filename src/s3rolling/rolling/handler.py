"""``logging`` handler that rolls its file through the S3 pipeline."""

from __future__ import annotations

import os
import time
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Optional

from s3rolling.config.config import S3RollingConfig
from s3rolling.rolling.policy import S3RollingPolicy


class S3TimedRotatingFileHandler(TimedRotatingFileHandler):
    """
    TimedRotatingFileHandler that hands the rolled file to :class:`S3RollingPolicy`.

    The stdlib keeps deciding *when* to roll. Instead of renaming and pruning
    backups itself, the handler lets the policy rename, compress and upload
    the file, so ``backupCount`` is not supported. A failed rename is reported
    through :meth:`logging.Handler.handleError` and the handler keeps writing to
    the active file.

    Pass either ``file_name_pattern`` and ``config``, or a prebuilt ``policy``
    whose active file is ``filename``.

    Example::

        handler = S3TimedRotatingFileHandler(
            "logs/app.log",
            file_name_pattern="logs/app.%d.log.gz",
            config=S3RollingConfig(s3_bucket_name="my-logs", s3_folder_name="app"),
        )
        logging.getLogger().addHandler(handler)
    """

    def __init__(
        self,
        filename: str,
        file_name_pattern: Optional[str] = None,
        config: Optional[S3RollingConfig] = None,
        when: str = "midnight",
        interval: int = 1,
        encoding: Optional[str] = None,
        utc: bool = False,
        atTime: Any = None,
        policy: Optional[S3RollingPolicy] = None,
    ) -> None:
        if policy is None and (file_name_pattern is None or config is None):
            raise ValueError("file_name_pattern and config are required without a policy")
        if policy is not None and (file_name_pattern is not None or config is not None):
            raise ValueError("Pass either a policy or file_name_pattern and config, not both")

        super().__init__(
            filename,
            when=when,
            interval=interval,
            backupCount=0,
            encoding=encoding,
            delay=False,
            utc=utc,
            atTime=atTime,
        )
        if policy is None:
            policy = S3RollingPolicy(
                config,  # type: ignore[arg-type]
                active_file_name=self.baseFilename,
                file_name_pattern=file_name_pattern,  # type: ignore[arg-type]
            )
        elif os.path.abspath(policy.active_file_name) != self.baseFilename:
            self.close()
            raise ValueError(
                f"Policy rolls [{policy.active_file_name}], handler writes [{self.baseFilename}]"
            )
        self.policy = policy
        self.policy.exit_rollover = self._rollover_on_exit
        self.policy.exit_flush = self.flush
        self.policy.start()

    def doRollover(self) -> None:
        current_time = int(time.time())
        moment = self._period_start(current_time)
        if self.stream:
            self.stream.close()
            self.stream = None  # type: ignore[assignment]
        try:
            self.policy.rollover(moment)
        finally:
            self.stream = self._open()
            self.rolloverAt = self._next_rollover_at(current_time)

    def _next_rollover_at(self, current_time: int) -> int:
        new_rollover_at = self.computeRollover(current_time)
        while new_rollover_at <= current_time:
            new_rollover_at += self.interval
        # Day-based rollovers stay on local midnight across a DST change.
        if (self.when == "MIDNIGHT" or self.when.startswith("W")) and not self.utc:
            dst_now = self._is_dst(current_time)
            if dst_now != self._is_dst(new_rollover_at):
                new_rollover_at += 3600 if dst_now else -3600
        return new_rollover_at

    def _period_start(self, current_time: Optional[int] = None) -> datetime:
        """Start of the period the active file covers, used to name it."""
        t = self.rolloverAt - self.interval
        if self.utc:
            return datetime.fromtimestamp(t, tz=timezone.utc)
        if current_time is None:
            current_time = int(time.time())
        dst_now = self._is_dst(current_time)
        if dst_now != self._is_dst(t):
            t += 3600 if dst_now else -3600
        return datetime.fromtimestamp(t)

    @staticmethod
    def _is_dst(t: float) -> bool:
        return time.localtime(t).tm_isdst > 0

    def _rollover_on_exit(self) -> Any:
        self.acquire()
        try:
            if self.stream:
                self.stream.flush()
                self.stream.close()
                self.stream = None  # type: ignore[assignment]
            return self.policy.rollover()
        finally:
            self.release()


__all__ = ["S3TimedRotatingFileHandler"]
