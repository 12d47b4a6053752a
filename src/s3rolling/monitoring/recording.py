"""Recording channel for errors that are absorbed instead of raised."""

from __future__ import annotations

from typing import Any

from structlog.stdlib import BoundLogger

from s3rolling.errors import S3RollingError
from s3rolling.monitoring.metrics import ERRORS


def record_error(
    logger: BoundLogger, event: str, error: S3RollingError, **fields: Any
) -> S3RollingError:
    """Log ``error`` with its traceback and count it once under its kind."""
    ERRORS.labels(kind=error.kind).inc()
    logger.error(event, error=str(error), error_kind=error.kind, exc_info=error, **fields)
    return error


__all__ = ["record_error"]
