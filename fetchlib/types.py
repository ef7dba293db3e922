from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable, Generic, Mapping, Optional, Protocol, Tuple, TypeVar, Union


T = TypeVar("T")


@dataclass(frozen=True)
class Request:
    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    @classmethod
    def from_url(cls, url: str) -> "Request":
        return cls(url=url)


@dataclass(frozen=True)
class HTTPResponse:
    url: str
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def localized_status_code(self) -> str:
        try:
            return HTTPStatus(self.status_code).phrase.lower()
        except ValueError:
            return "unknown"


@dataclass(frozen=True)
class HTTPData:
    """Response body plus the metadata it arrived with."""

    data: bytes
    response: HTTPResponse

    @property
    def text(self) -> str:
        from .decoding import utf8_string

        return utf8_string(self.data)

    def json(self, **options: Any) -> "Result[Any]":
        from .decoding import json_value

        return json_value(self.data, **options)

    def decode(self, type_: type, decoder=None) -> "Result[Any]":
        from .decoding import decoding

        return decoding(self.data, type_, decoder)


@dataclass(frozen=True)
class DecodedResponse(Generic[T]):
    decoded: T
    response: HTTPResponse


@dataclass(frozen=True)
class JSONResponse:
    json: Any
    response: HTTPResponse


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def is_success(self) -> bool:
        return True

    @property
    def success(self) -> T:
        return self.value

    @property
    def failure(self) -> None:
        return None

    @property
    def output(self) -> Tuple[T, None]:
        return self.value, None


@dataclass(frozen=True)
class Failure:
    error: BaseException

    @property
    def is_success(self) -> bool:
        return False

    @property
    def success(self) -> None:
        return None

    @property
    def failure(self) -> BaseException:
        return self.error

    @property
    def output(self) -> Tuple[None, BaseException]:
        return None, self.error


Result = Union[Success[T], Failure]

# (data, response, error) as handed over by a transport.
TransportCallback = Callable[[Optional[bytes], Optional[object], Optional[BaseException]], None]


class DataTaskProtocol(Protocol):
    def resume(self) -> None: ...

    def cancel(self) -> None: ...


class TransportProtocol(Protocol):
    def data_task(self, request: Request, callback: TransportCallback) -> DataTaskProtocol: ...
