import logging
from typing import Any, Callable, Optional

from urllib3.exceptions import LocationParseError
from urllib3.util import parse_url

from .decoding import DecoderProtocol
from .errors import EmptyData, EmptyPath, InvalidPath, UnknownResponse, WrongStatusCode
from .net import shared_transport
from .types import (
    DataTaskProtocol,
    DecodedResponse,
    Failure,
    HTTPData,
    HTTPResponse,
    JSONResponse,
    Request,
    Result,
    Success,
    TransportProtocol,
)


Completion = Callable[[Result[HTTPData]], None]
DecodedCompletion = Callable[[Result[DecodedResponse]], None]
JSONCompletion = Callable[[Result[JSONResponse]], None]


def classify(data: Optional[bytes], response: Optional[object], error: Optional[BaseException]) -> Result[HTTPData]:
    """Turn a transport's ``(data, response, error)`` triple into one result.

    The checks run in a fixed order and the first one that applies wins: a
    transport error is passed through untouched, then missing data, then an
    unrecognised response object, then a status outside 200-299 (reported with
    the body so the caller can read the server's error), and only then success.
    """
    if error is not None:
        return Failure(error)
    if data is None:
        return Failure(EmptyData())
    if not isinstance(response, HTTPResponse):
        return Failure(UnknownResponse())
    http_data = HTTPData(data=data, response=response)
    if 200 <= response.status_code <= 299:
        return Success(http_data)
    return Failure(WrongStatusCode(http_data))


def _valid_url(path: str) -> bool:
    if any(ch.isspace() for ch in path):
        return False
    try:
        parsed = parse_url(path)
    except LocationParseError:
        return False
    return bool(parsed.scheme and parsed.host)


class HTTPURLRequest:
    def __init__(self, request: Request, transport: Optional[TransportProtocol] = None):
        self.request = request
        self.transport = transport if transport is not None else shared_transport()

    @classmethod
    def from_url(cls, url: str, transport: Optional[TransportProtocol] = None) -> "HTTPURLRequest":
        return cls(Request.from_url(url), transport)

    @classmethod
    def from_path(cls, path: str, transport: Optional[TransportProtocol] = None) -> "HTTPURLRequest":
        """Build a GET request for ``path``.

        Raises ``EmptyPath`` for blank input and ``InvalidPath`` when the
        trimmed string is not an absolute URL with a scheme and a host.
        """
        path = path.strip()
        if not path:
            raise EmptyPath()
        if not _valid_url(path):
            raise InvalidPath(path)
        return cls.from_url(path, transport)

    @classmethod
    def create(cls, path: str, transport: Optional[TransportProtocol] = None) -> Result["HTTPURLRequest"]:
        try:
            return Success(cls.from_path(path, transport))
        except (EmptyPath, InvalidPath) as exc:
            return Failure(exc)

    def data_task(self, completion: Completion) -> DataTaskProtocol:
        """Start the request right away and report the classified outcome.

        Returns the transport's task handle so callers can cancel it. The
        completion runs on whichever thread the transport calls back on.
        """
        request = self.request

        def on_complete(data: Optional[bytes], response: Optional[object], error: Optional[BaseException]) -> None:
            result = classify(data, response, error)
            if isinstance(result, Failure):
                logging.debug("%s %s failed: %s", request.method, request.url, result.error)
            completion(result)

        task = self.transport.data_task(request, on_complete)
        logging.debug("Starting %s %s", request.method, request.url)
        task.resume()
        return task

    def decoding_data_task(
        self, type_: type, completion: DecodedCompletion, decoder: Optional[DecoderProtocol] = None
    ) -> DataTaskProtocol:
        def on_result(result: Result[HTTPData]) -> None:
            if isinstance(result, Failure):
                completion(result)
                return
            decoded = result.value.decode(type_, decoder)
            if isinstance(decoded, Failure):
                completion(decoded)
                return
            completion(Success(DecodedResponse(decoded=decoded.value, response=result.value.response)))

        return self.data_task(on_result)

    def json_data_task(self, completion: JSONCompletion, **options: Any) -> DataTaskProtocol:
        def on_result(result: Result[HTTPData]) -> None:
            if isinstance(result, Failure):
                completion(result)
                return
            parsed = result.value.json(**options)
            if isinstance(parsed, Failure):
                completion(parsed)
                return
            completion(Success(JSONResponse(json=parsed.value, response=result.value.response)))

        return self.data_task(on_result)

    def __repr__(self) -> str:
        return f"HTTPURLRequest({self.request.method} {self.request.url})"
