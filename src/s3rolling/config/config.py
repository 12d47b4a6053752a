"""Configuration management."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class CompressionMode(str, Enum):
    """How a rolled log file is turned into an upload artifact."""

    NONE = "none"
    GZIP = "gzip"
    ZIP = "zip"

    @property
    def suffix(self) -> str:
        if self is CompressionMode.GZIP:
            return ".gz"
        if self is CompressionMode.ZIP:
            return ".zip"
        return ""

    @classmethod
    def from_pattern(cls, pattern: str) -> "CompressionMode":
        """Infer the mode from a file name pattern's extension."""
        if pattern.endswith(".gz"):
            return cls.GZIP
        if pattern.endswith(".zip"):
            return cls.ZIP
        return cls.NONE

    @classmethod
    def parse(cls, value: "str | CompressionMode") -> "CompressionMode":
        if isinstance(value, CompressionMode):
            return value
        normalized = value.strip().lower()
        aliases = {"gz": cls.GZIP, "": cls.NONE}
        if normalized in aliases:
            return aliases[normalized]
        return cls(normalized)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_optional(name: str) -> Optional[str]:
    raw = os.getenv(name)
    return raw if raw else None


class S3RollingConfig(BaseModel):
    """Upload destination, credentials and pipeline timeouts."""

    aws_access_key: Optional[str] = Field(
        None,
        description="Access key; the default credential chain is used unless both keys are set",
    )
    aws_secret_key: Optional[str] = Field(None, description="Secret key")
    s3_bucket_name: str = Field(..., description="Destination bucket")
    s3_folder_name: Optional[str] = Field(
        None,
        description="Folder prefix placed in front of every object key",
    )
    region_name: Optional[str] = Field(None, description="AWS region for the client")
    endpoint_url: Optional[str] = Field(
        None,
        description="Custom S3 endpoint (S3-compatible stores)",
    )
    rolling_on_exit: bool = Field(
        True,
        description="Roll the active file on exit instead of uploading it as-is",
    )
    compression_mode: Optional[CompressionMode] = Field(
        None,
        description="none, gzip or zip; inferred from the file name pattern when unset",
    )
    compression_timeout: float = Field(
        5.0,
        gt=0,
        description="Seconds a rollover waits for compression before skipping upload",
    )
    shutdown_timeout: float = Field(
        600.0,
        gt=0,
        description="Seconds the exit hook waits for queued uploads",
    )

    @field_validator("s3_folder_name")
    @classmethod
    def _strip_folder(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        stripped = value.strip().rstrip("/")
        return stripped or None

    @field_validator("compression_mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return CompressionMode.parse(value)
        return value

    @property
    def has_static_credentials(self) -> bool:
        return self.aws_access_key is not None and self.aws_secret_key is not None

    @classmethod
    def from_env(cls) -> "S3RollingConfig":
        bucket = os.getenv("S3ROLLING_BUCKET")
        if not bucket:
            raise RuntimeError("S3ROLLING_BUCKET must be set")

        return cls(
            aws_access_key=_env_optional("S3ROLLING_AWS_ACCESS_KEY"),
            aws_secret_key=_env_optional("S3ROLLING_AWS_SECRET_KEY"),
            s3_bucket_name=bucket,
            s3_folder_name=_env_optional("S3ROLLING_FOLDER"),
            region_name=_env_optional("S3ROLLING_REGION"),
            endpoint_url=_env_optional("S3ROLLING_ENDPOINT_URL"),
            rolling_on_exit=_env_bool("S3ROLLING_ROLLING_ON_EXIT", True),
            compression_mode=_env_optional("S3ROLLING_COMPRESSION"),
            compression_timeout=float(os.getenv("S3ROLLING_COMPRESSION_TIMEOUT", "5")),
            shutdown_timeout=float(os.getenv("S3ROLLING_SHUTDOWN_TIMEOUT", "600")),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "S3RollingConfig":
        """Load from a YAML mapping, either flat or nested under ``s3rolling``."""
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        section = data.get("s3rolling", data)
        return cls.model_validate(section)


__all__ = ["CompressionMode", "S3RollingConfig"]
