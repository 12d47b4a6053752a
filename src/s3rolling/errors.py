"""Error taxonomy for the rollover/compress/upload pipeline.

Only :class:`RolloverFailure` is ever raised to the code that triggers a
rollover. The remaining errors are recorded (logged and counted) where they
happen and then absorbed.
"""

from __future__ import annotations


class S3RollingError(Exception):
    """Base class for all s3rolling errors."""

    kind = "error"


class RolloverFailure(S3RollingError):
    """The active log file could not be renamed; it is left in place."""

    kind = "rollover_failure"


class CompressionTimeout(S3RollingError):
    """Compression did not finish within the bounded wait."""

    kind = "compression_timeout"


class CompressionError(S3RollingError):
    """Compression failed, or waiting on it failed unexpectedly."""

    kind = "compression_error"


class UploadFailure(S3RollingError):
    """Transmission of a file to the object store failed."""

    kind = "upload_failure"


class ShutdownDrainExceeded(S3RollingError):
    """The shutdown deadline elapsed with uploads still pending."""

    kind = "shutdown_drain_exceeded"


class ShutdownSequenceError(S3RollingError):
    """Unexpected failure while running the shutdown hook."""

    kind = "shutdown_sequence_error"


class QueueClosedError(S3RollingError):
    """A task was submitted to an executor that no longer accepts work."""

    kind = "queue_closed"


__all__ = [
    "S3RollingError",
    "RolloverFailure",
    "CompressionTimeout",
    "CompressionError",
    "UploadFailure",
    "ShutdownDrainExceeded",
    "ShutdownSequenceError",
    "QueueClosedError",
]
