from dataclasses import dataclass
from typing import Optional

from .types import HTTPData


class HTTPURLRequestError(Exception):
    """Base class for failures raised or reported by HTTPURLRequest itself.

    Transport and decode failures are never wrapped in these classes; they
    reach the caller as the original exception object.
    """


@dataclass
class EmptyPath(HTTPURLRequestError):
    def __str__(self) -> str:
        return "String path is empty"


@dataclass
class InvalidPath(HTTPURLRequestError):
    path: str

    def __str__(self) -> str:
        return f"Invalid path for URL: {self.path}"


@dataclass
class EmptyData(HTTPURLRequestError):
    def __str__(self) -> str:
        return "There is no data in the server response"


@dataclass
class UnknownResponse(HTTPURLRequestError):
    def __str__(self) -> str:
        return "Server response was not recognized"


@dataclass
class WrongStatusCode(HTTPURLRequestError):
    http_data: HTTPData

    @property
    def status_code(self) -> int:
        return self.http_data.response.status_code

    def __str__(self) -> str:
        response = self.http_data.response
        return (
            f"Unsuccessful HTTP status code: {response.status_code} "
            f"({response.localized_status_code}). Error: {self.http_data.text}"
        )


def as_request_error(error: Optional[BaseException]) -> Optional[HTTPURLRequestError]:
    if isinstance(error, HTTPURLRequestError):
        return error
    return None
