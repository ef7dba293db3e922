import logging
import threading
from typing import Dict, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, start_http_server

from .metrics import Metrics


logger = logging.getLogger(__name__)


class PrometheusExporter:
    """Mirrors a transport's ``Metrics`` into Prometheus collectors."""

    def __init__(self, metrics: Metrics, port: int = 8000, registry: Optional[CollectorRegistry] = None) -> None:
        self.metrics = metrics
        self.port = port
        self.registry = registry or REGISTRY
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        self.requests_total = Counter(
            "fetchlib_requests_total", "Total number of HTTP exchanges", registry=self.registry
        )
        self.bytes_total = Counter(
            "fetchlib_bytes_total", "Total number of response bytes received", registry=self.registry
        )
        self.errors_total = Counter(
            "fetchlib_errors_total", "Exchanges that failed or returned a non-2xx status", registry=self.registry
        )
        self.responses_total = Counter(
            "fetchlib_responses_total", "Responses by status class", ["status_class"], registry=self.registry
        )
        self.requests_per_second = Gauge(
            "fetchlib_requests_per_second", "Exchanges per second since the metrics started", registry=self.registry
        )
        self.avg_fetch_duration_seconds = Gauge(
            "fetchlib_avg_fetch_duration_seconds", "Average exchange duration in seconds", registry=self.registry
        )

        self._last_requests = 0
        self._last_bytes = 0
        self._last_errors = 0
        self._last_status_classes: Dict[str, int] = {}

    def start(self) -> None:
        start_http_server(self.port, registry=self.registry)
        logger.info("Prometheus metrics server started on port %d", self.port)

        self._thread = threading.Thread(target=self._update_metrics_loop, name="prometheus-updater", daemon=True)
        self._thread.start()

    def _update_metrics_loop(self) -> None:
        while not self._stop_event.is_set():
            self.update()
            self._stop_event.wait(5.0)

    def update(self) -> None:
        totals, elapsed = self.metrics.snapshot()

        if totals.requests > self._last_requests:
            self.requests_total.inc(totals.requests - self._last_requests)
        if totals.bytes > self._last_bytes:
            self.bytes_total.inc(totals.bytes - self._last_bytes)
        if totals.errors > self._last_errors:
            self.errors_total.inc(totals.errors - self._last_errors)
        for status_class, count in totals.status_classes.items():
            delta = count - self._last_status_classes.get(status_class, 0)
            if delta > 0:
                self.responses_total.labels(status_class=status_class).inc(delta)

        self.requests_per_second.set(totals.requests / elapsed)
        if totals.requests > 0:
            self.avg_fetch_duration_seconds.set(totals.avg_fetch_ms / 1000.0)

        self._last_requests = totals.requests
        self._last_bytes = totals.bytes
        self._last_errors = totals.errors
        self._last_status_classes = dict(totals.status_classes)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2.0)
