"""Prometheus metrics for the extractor service.

Exposed at the /metrics/prometheus endpoint.
"""

import time

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

from .models import Summary

# ============ Metrics Definitions ============

LINES_TOTAL = Counter(
    'spsites_lines_total',
    'Input lines processed by the extractor',
    ['outcome']  # valid, or the failure kind (missing_protocol, domain_typo, ...)
)

RUNS_TOTAL = Counter(
    'spsites_runs_total',
    'Aggregation runs',
    ['mode', 'status']  # mode: sync/job/cli, status: completed/cancelled/superseded/failed
)

RUN_DURATION = Histogram(
    'spsites_run_duration_seconds',
    'Wall time of aggregation runs',
    ['mode'],
    buckets=[0.01, 0.05, 0.1, 0.5, 1, 2, 5, 10, 30]
)

RUN_INPUT_LINES = Histogram(
    'spsites_run_input_lines',
    'Canonical input lines per run',
    buckets=[1, 10, 100, 1000, 10000, 100000]
)

ACTIVE_RUNS = Gauge(
    'spsites_active_runs',
    'Aggregation runs currently executing'
)

# ============ Helper Functions ============


def record_summary(summary: Summary) -> None:
    """Count every line of ``summary`` by outcome."""
    outcomes = {}
    for r in summary.results:
        key = (r.error_kind or 'invalid') if r.is_error else 'valid'
        outcomes[key] = outcomes.get(key, 0) + 1
    for outcome, n in outcomes.items():
        LINES_TOTAL.labels(outcome=outcome).inc(n)
    RUN_INPUT_LINES.observe(summary.total)


def record_run(mode: str, status: str, duration: float) -> None:
    RUNS_TOTAL.labels(mode=mode, status=status).inc()
    RUN_DURATION.labels(mode=mode).observe(duration)


def track_active_run():
    """Context manager counting a run in ACTIVE_RUNS while it executes."""
    class ActiveRun:
        def __enter__(self):
            ACTIVE_RUNS.inc()
            self.start_time = time.time()
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            ACTIVE_RUNS.dec()
            return False

        @property
        def duration(self):
            return time.time() - self.start_time

    return ActiveRun()


def get_metrics() -> bytes:
    return generate_latest()


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST
