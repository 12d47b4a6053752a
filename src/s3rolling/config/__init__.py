from .config import CompressionMode, S3RollingConfig

__all__ = ["CompressionMode", "S3RollingConfig"]
