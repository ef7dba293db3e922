import json
import threading
from typing import Any, Dict, Optional, Protocol

from pydantic import ConfigDict, TypeAdapter

from .types import Failure, Result, Success


class DecoderProtocol(Protocol):
    def decode(self, type_: type, data: bytes) -> Any: ...


def utf8_string(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def json_value(data: bytes, **options: Any) -> Result[Any]:
    try:
        return Success(json.loads(data, **options))
    except (ValueError, TypeError) as exc:
        return Failure(exc)


class JSONDecoder:
    """Validates JSON bytes into any type pydantic can build.

    That covers models, stdlib dataclasses, enums, tuples and the usual
    containers. Custom date or number formats belong on the target type
    (``Annotated[date, BeforeValidator(...)]``, field validators); ``context``
    is handed to those validators and ``strict`` turns off lax coercion.
    ``config`` only applies to types that carry no config of their own.
    """

    def __init__(
        self,
        strict: Optional[bool] = None,
        context: Optional[Dict[str, Any]] = None,
        config: Optional[ConfigDict] = None,
    ):
        self.strict = strict
        self.context = context
        self.config = config
        self._adapters: Dict[Any, TypeAdapter] = {}
        self._lock = threading.Lock()

    def adapter(self, type_: Any) -> TypeAdapter:
        with self._lock:
            adapter = self._adapters.get(type_)
            if adapter is None:
                adapter = TypeAdapter(type_, config=self.config)
                self._adapters[type_] = adapter
            return adapter

    def decode(self, type_: Any, data: bytes) -> Any:
        return self.adapter(type_).validate_json(data, strict=self.strict, context=self.context)


class JSONEncoder:
    def __init__(self, **dump_options: Any):
        self.dump_options = dump_options

    def encode(self, value: Any) -> bytes:
        return TypeAdapter(type(value)).dump_json(value, **self.dump_options)


def decoding(data: bytes, type_: type, decoder: Optional[DecoderProtocol] = None) -> Result[Any]:
    decoder = decoder or JSONDecoder()
    try:
        return Success(decoder.decode(type_, data))
    except Exception as exc:
        return Failure(exc)
