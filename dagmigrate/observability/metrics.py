"""
dagmigrate Metrics.

Counters and a duration histogram for migration runs, recorded through the
OpenTelemetry metrics API.

Metrics tracked:
- dagmigrate.migrations.applied: migrations applied successfully
- dagmigrate.migrations.reverted: migrations reverted successfully
- dagmigrate.migrations.failed: failed apply/revert attempts
- dagmigrate.migration.duration: per-migration wall time (ms)
"""

import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from opentelemetry import metrics

from dagmigrate.migration import MigrationDirection

_metrics_instance: Optional["MigrationMetrics"] = None
_metrics_lock = threading.Lock()


class MigrationMetrics:
    """Semantic metric recording for migration runs."""

    def __init__(self, meter_name: str = "dagmigrate"):
        meter = metrics.get_meter(meter_name)
        self._applied = meter.create_counter(
            name="dagmigrate.migrations.applied",
            description="Migrations applied successfully",
        )
        self._reverted = meter.create_counter(
            name="dagmigrate.migrations.reverted",
            description="Migrations reverted successfully",
        )
        self._failed = meter.create_counter(
            name="dagmigrate.migrations.failed",
            description="Failed migration apply/revert attempts",
        )
        self._duration = meter.create_histogram(
            name="dagmigrate.migration.duration",
            unit="ms",
            description="Time spent applying or reverting one migration",
        )

    def record_success(self, direction: MigrationDirection, duration_ms: float) -> None:
        labels = {"direction": direction.value}
        if direction == MigrationDirection.UP:
            self._applied.add(1, labels)
        else:
            self._reverted.add(1, labels)
        self._duration.record(duration_ms, {**labels, "success": "true"})

    def record_failure(self, direction: MigrationDirection, duration_ms: float) -> None:
        labels = {"direction": direction.value}
        self._failed.add(1, labels)
        self._duration.record(duration_ms, {**labels, "success": "false"})

    @contextmanager
    def measure(self, direction: MigrationDirection) -> Iterator[Dict[str, float]]:
        """
        Time one apply/revert and record success or failure.

        Yields a dict whose "duration_ms" key is filled in on exit.
        """
        timing = {"duration_ms": 0.0}
        start = time.perf_counter()
        try:
            yield timing
        except Exception:
            timing["duration_ms"] = (time.perf_counter() - start) * 1000
            self.record_failure(direction, timing["duration_ms"])
            raise
        timing["duration_ms"] = (time.perf_counter() - start) * 1000
        self.record_success(direction, timing["duration_ms"])


def get_metrics() -> MigrationMetrics:
    """Get the process-wide MigrationMetrics instance."""
    global _metrics_instance

    if _metrics_instance is None:
        with _metrics_lock:
            if _metrics_instance is None:
                _metrics_instance = MigrationMetrics()

    return _metrics_instance
