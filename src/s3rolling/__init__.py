"""S3 Rolling Logs - roll, compress and ship log files to S3."""

__version__ = "0.1.0"

from .config import CompressionMode, S3RollingConfig  # noqa: E402
from .errors import (  # noqa: E402
    CompressionError,
    CompressionTimeout,
    RolloverFailure,
    S3RollingError,
    ShutdownDrainExceeded,
    ShutdownSequenceError,
    UploadFailure,
)
from .rolling import (  # noqa: E402
    RolloverCoordinator,
    S3RollingPolicy,
    S3TimedRotatingFileHandler,
    ShutdownSequencer,
    Uploader,
)

__all__ = [
    "CompressionMode",
    "S3RollingConfig",
    "S3RollingError",
    "RolloverFailure",
    "CompressionTimeout",
    "CompressionError",
    "UploadFailure",
    "ShutdownDrainExceeded",
    "ShutdownSequenceError",
    "RolloverCoordinator",
    "Uploader",
    "ShutdownSequencer",
    "S3RollingPolicy",
    "S3TimedRotatingFileHandler",
]
