"""S3 client construction and upload backend."""

from __future__ import annotations

import os
import threading
from typing import Any, Callable, Optional

import boto3

from s3rolling.config.config import S3RollingConfig
from s3rolling.utils.logging import get_logger

logger = get_logger(__name__)


class S3ClientProvider:
    """
    Builds the boto3 S3 client on first use and hands out the same instance
    afterwards. Safe when the exit hook and a rollover race to be first.
    """

    def __init__(
        self,
        config: S3RollingConfig,
        factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.config = config
        self._factory = factory or boto3.client
        self._client: Any = None
        self._lock = threading.Lock()

    def get(self) -> Any:
        client = self._client
        if client is not None:
            return client
        with self._lock:
            if self._client is None:
                self._client = self._build()
            return self._client

    def _build(self) -> Any:
        kwargs: dict[str, Any] = {}
        if self.config.region_name:
            kwargs["region_name"] = self.config.region_name
        if self.config.endpoint_url:
            kwargs["endpoint_url"] = self.config.endpoint_url
        if self.config.has_static_credentials:
            kwargs["aws_access_key_id"] = self.config.aws_access_key
            kwargs["aws_secret_access_key"] = self.config.aws_secret_key
        logger.info(
            "s3_client_created",
            static_credentials=self.config.has_static_credentials,
            region=self.config.region_name,
            endpoint_url=self.config.endpoint_url,
        )
        return self._factory("s3", **kwargs)


class S3StorageBackend:
    """Uploads local files to a bucket, under an optional folder prefix."""

    def __init__(
        self, client_provider: S3ClientProvider, bucket: str, prefix: Optional[str] = None
    ) -> None:
        self.client_provider = client_provider
        self.bucket = bucket
        self.prefix = prefix.rstrip("/") if prefix else None

    def object_key(self, local_path: str) -> str:
        """Remote key for ``local_path``: ``<prefix>/<basename>`` or the basename."""
        name = os.path.basename(local_path)
        if self.prefix:
            return f"{self.prefix}/{name}"
        return name

    def upload(self, local_path: str, key: str) -> None:
        self.client_provider.get().upload_file(local_path, self.bucket, key)


__all__ = ["S3ClientProvider", "S3StorageBackend"]
