import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Tuple
from urllib.parse import urljoin

import urllib3
from urllib3 import HTTPHeaderDict
from urllib3 import exceptions as urllib3_exc
from urllib3.util.retry import Retry

from .config import TransportConfig
from .metrics import Metrics
from .types import HTTPResponse, Request, TransportCallback, TransportProtocol


class DataTask:
    """One request/response exchange handed to a transport's worker pool.

    Nothing happens until ``resume()``; the callback then fires exactly once
    on a worker thread. ``cancel()`` only prevents a task that has not begun
    executing; once the worker picked it up the exchange runs to completion.
    """

    SUSPENDED = "suspended"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELED = "canceled"

    def __init__(self, transport: "Urllib3Transport", request: Request, callback: TransportCallback):
        self.request = request
        self._transport = transport
        self._callback = callback
        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._state = self.SUSPENDED

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    def resume(self) -> None:
        with self._lock:
            if self._state != self.SUSPENDED:
                return
            self._state = self.RUNNING
            self._future = self._transport._executor.submit(self._run)

    def cancel(self) -> None:
        with self._lock:
            if self._state == self.SUSPENDED:
                self._state = self.CANCELED
            elif self._state == self.RUNNING and self._future is not None and self._future.cancel():
                self._state = self.CANCELED

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the callback has returned. Meant for scripts and tests."""
        with self._lock:
            future = self._future
        if future is not None and not future.cancelled():
            future.result(timeout=timeout)

    def _run(self) -> None:
        data, response, error = self._transport._perform(self.request)
        with self._lock:
            self._state = self.COMPLETED
        try:
            self._callback(data, response, error)
        except Exception:
            logging.exception("Completion for %s %s raised", self.request.method, self.request.url)


def _final_url(request_url: str, response) -> str:
    """Absolute URL of the resource that produced ``response``.

    urllib3 reports only the request target of the last hop, so each redirect
    in the retry history is resolved against the URL before it.
    """
    retries = getattr(response, "retries", None)
    redirects = [h.redirect_location for h in getattr(retries, "history", ()) if h.redirect_location]
    if not redirects:
        return urljoin(request_url, response.url or "")
    url = request_url
    for location in redirects:
        url = urljoin(url, location)
    return url


class Urllib3Transport:
    def __init__(self, config: Optional[TransportConfig] = None, metrics: Optional[Metrics] = None):
        self.config = config or TransportConfig()
        self.metrics = metrics or Metrics()
        self.timeout = urllib3.Timeout(connect=self.config.connect_timeout, read=self.config.request_timeout)
        self.http = urllib3.PoolManager(
            num_pools=max(8, self.config.max_workers),
            maxsize=self.config.max_connections,
            headers={
                "User-Agent": self.config.user_agent,
                **self.config.default_headers,
            },
            # Redirects are followed; nothing else is ever retried.
            retries=Retry(
                total=None,
                connect=0,
                read=0,
                status=0,
                other=0,
                redirect=self.config.max_redirects,
                raise_on_redirect=False,
                raise_on_status=False,
            ),
        )
        self._executor = ThreadPoolExecutor(max_workers=self.config.max_workers, thread_name_prefix="fetchlib")

    def data_task(self, request: Request, callback: TransportCallback) -> DataTask:
        return DataTask(self, request, callback)

    def _perform(self, request: Request) -> Tuple[Optional[bytes], Optional[HTTPResponse], Optional[BaseException]]:
        headers = HTTPHeaderDict(self.http.headers)
        for name, value in request.headers.items():
            headers[name] = value
        t0 = time.perf_counter()
        try:
            response = self.http.request(
                request.method,
                request.url,
                body=request.body,
                headers=headers,
                timeout=self.timeout,
                preload_content=True,
            )
        except urllib3_exc.HTTPError as exc:
            self.metrics.record_fetch(False, 0, (time.perf_counter() - t0) * 1000.0)
            logging.debug("Transport error for %s %s: %s", request.method, request.url, exc)
            return None, None, exc
        except Exception as exc:
            self.metrics.record_fetch(False, 0, (time.perf_counter() - t0) * 1000.0)
            logging.warning("Unexpected error for %s %s: %r", request.method, request.url, exc)
            return None, None, exc
        dt_ms = (time.perf_counter() - t0) * 1000.0
        body = response.data
        meta = HTTPResponse(
            url=_final_url(request.url, response),
            status_code=response.status,
            headers=dict(response.headers),
        )
        self.metrics.record_fetch(200 <= response.status <= 299, len(body or b""), dt_ms, response.status)
        logging.debug("%s %s -> %d (%d bytes, %.1f ms)", request.method, request.url, response.status, len(body or b""), dt_ms)
        return body, meta, None

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self.http.clear()


_shared_lock = threading.Lock()
_shared: Optional[TransportProtocol] = None


def shared_transport() -> TransportProtocol:
    global _shared
    with _shared_lock:
        if _shared is None:
            _shared = Urllib3Transport()
        return _shared


def set_shared_transport(transport: Optional[TransportProtocol]) -> Optional[TransportProtocol]:
    """Swap the process-wide default transport and return the previous one.

    Passing ``None`` drops the current default; the next ``shared_transport()``
    call creates a fresh ``Urllib3Transport``.
    """
    global _shared
    with _shared_lock:
        previous, _shared = _shared, transport
        return previous
