"""
Rollover, compression and upload of log files.
"""

from .compressor import Compressor, CompressionTask
from .coordinator import RolloverCoordinator
from .handler import S3TimedRotatingFileHandler
from .naming import FileNamePattern, normalize_compressed_name
from .policy import S3RollingPolicy
from .renamer import Renamer
from .shutdown import ShutdownSequencer, ShutdownState
from .storage import S3ClientProvider, S3StorageBackend
from .uploader import Uploader, UploadTask

__all__ = [
    "Compressor",
    "CompressionTask",
    "FileNamePattern",
    "Renamer",
    "RolloverCoordinator",
    "S3ClientProvider",
    "S3RollingPolicy",
    "S3StorageBackend",
    "S3TimedRotatingFileHandler",
    "ShutdownSequencer",
    "ShutdownState",
    "Uploader",
    "UploadTask",
    "normalize_compressed_name",
]
