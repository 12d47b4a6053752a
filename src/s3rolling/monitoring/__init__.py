"""
Monitoring utilities for s3rolling.

Metrics live in the default ``prometheus_client`` registry; the host
application exposes them with its own exporter.
"""

from s3rolling.monitoring.metrics import (
    ERRORS,
    QUEUE_DEPTH,
    ROLLOVERS,
    UPLOADED_BYTES,
    UPLOADS,
)

__all__ = [
    "ROLLOVERS",
    "UPLOADS",
    "UPLOADED_BYTES",
    "ERRORS",
    "QUEUE_DEPTH",
]
