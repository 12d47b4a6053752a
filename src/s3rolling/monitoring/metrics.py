"""Prometheus metrics for s3rolling components."""

from prometheus_client import Counter, Gauge, Histogram

# Counters
ROLLOVERS = Counter(
    "s3rolling_rollovers_total",
    "Rollover attempts by outcome",
    ["outcome"],
)
UPLOADS = Counter(
    "s3rolling_uploads_total",
    "Upload tasks by outcome",
    ["outcome"],
)
UPLOADED_BYTES = Counter(
    "s3rolling_uploaded_bytes_total",
    "Total bytes uploaded to the object store",
)
ERRORS = Counter(
    "s3rolling_errors_total",
    "Recorded (absorbed or propagated) errors by kind",
    ["kind"],
)

# Gauges
QUEUE_DEPTH = Gauge(
    "s3rolling_queue_depth",
    "Tasks submitted but not yet finished",
    ["queue"],
)

# Histograms
COMPRESSION_DURATION = Histogram(
    "s3rolling_compression_duration_seconds",
    "Duration of compression jobs",
    ["mode"],
)
SHUTDOWN_DRAIN_DURATION = Histogram(
    "s3rolling_shutdown_drain_seconds",
    "Time spent draining the upload queue at shutdown",
    buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 120, 300, 600),
)

__all__ = [
    "ROLLOVERS",
    "UPLOADS",
    "UPLOADED_BYTES",
    "ERRORS",
    "QUEUE_DEPTH",
    "COMPRESSION_DURATION",
    "SHUTDOWN_DRAIN_DURATION",
]
