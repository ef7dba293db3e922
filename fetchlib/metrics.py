import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class Totals:
    requests: int = 0
    bytes: int = 0
    errors: int = 0
    fetch_ms_sum: float = 0.0
    # "2xx", "4xx", ... keyed counts of responses that came back at all.
    status_classes: Dict[str, int] = field(default_factory=dict)

    @property
    def avg_fetch_ms(self) -> float:
        return self.fetch_ms_sum / max(1, self.requests)


class Metrics:
    """Thread-safe counters shared by every task a transport runs."""

    def __init__(self):
        self._totals = Totals()
        self._lock = threading.Lock()
        self._start = time.time()

    def record_fetch(self, ok: bool, bytes_read: int, fetch_ms: float, status: Optional[int] = None) -> None:
        with self._lock:
            self._totals.requests += 1
            self._totals.bytes += max(0, bytes_read)
            if not ok:
                self._totals.errors += 1
            self._totals.fetch_ms_sum += fetch_ms
            if status is not None:
                key = f"{status // 100}xx"
                self._totals.status_classes[key] = self._totals.status_classes.get(key, 0) + 1

    def snapshot(self) -> tuple[Totals, float]:
        with self._lock:
            t = Totals(
                requests=self._totals.requests,
                bytes=self._totals.bytes,
                errors=self._totals.errors,
                fetch_ms_sum=self._totals.fetch_ms_sum,
                status_classes=dict(self._totals.status_classes),
            )
        elapsed = max(1e-6, time.time() - self._start)
        return t, elapsed
