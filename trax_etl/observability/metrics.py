"""
Prometheus metrics for the trax pipeline

Counts files and rows by outcome and times file processing.
"""
import os

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from trax_etl.core.models import FileOutcome

# Global registry for metrics
REGISTRY = CollectorRegistry()

ROW_OUTCOMES = ("inserted", "duplicate", "skipped_header", "decode_error", "write_error")

files_processed_total = Counter(
    name="trax_files_processed_total",
    documentation="Total number of files processed",
    labelnames=["platform", "status"],  # status: success, failed
    registry=REGISTRY,
)

rows_processed_total = Counter(
    name="trax_rows_processed_total",
    documentation="Total number of rows processed, by outcome",
    labelnames=["platform", "outcome"],  # outcome: one of ROW_OUTCOMES
    registry=REGISTRY,
)

file_processing_duration_seconds = Histogram(
    name="trax_file_processing_duration_seconds",
    documentation="Time spent processing a single file in seconds",
    labelnames=["platform"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """Metrics in Prometheus text format"""
    return generate_latest(REGISTRY)


def start_metrics_server(port: int | None = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Lazy import: no port binding unless the endpoint is enabled
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    counter.labels(**labels).inc(value)


def record_row(platform: str, outcome: str) -> None:
    if outcome not in ROW_OUTCOMES:
        raise ValueError(f"Unknown row outcome: {outcome}")
    increment_counter(rows_processed_total, platform=platform, outcome=outcome)


def record_file_outcome(outcome: FileOutcome) -> None:
    """
    Record file-level metrics for a finished file.

    Args:
        outcome: Terminal outcome of the file
    """
    platform = outcome.platform.value if outcome.platform else "unknown"
    increment_counter(files_processed_total, platform=platform, status=outcome.status)
    file_processing_duration_seconds.labels(platform=platform).observe(outcome.duration_seconds)
