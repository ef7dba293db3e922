import json
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Dict, List, Optional, Tuple

import pytest
from pydantic import BaseModel, BeforeValidator, ValidationError

from fetchlib.decoding import JSONDecoder, JSONEncoder, decoding, json_value, utf8_string
from fetchlib.types import Failure, HTTPData, HTTPResponse, Success


JSON_BYTES = b'{"names":["Bob","Tim","Tina"]}'


@dataclass(frozen=True)
class Names:
    names: List[str]


@dataclass(frozen=True)
class Address:
    city: str
    zip_code: Optional[str] = None


@dataclass(frozen=True)
class Person:
    name: str
    age: int
    born: date
    address: Address
    tags: Dict[str, float] = field(default_factory=dict)
    nickname: Optional[str] = None


class Color(Enum):
    RED = "red"
    BLUE = "blue"


@dataclass
class Item:
    color: Color
    pos: Tuple[int, int]


class Invoice(BaseModel):
    number: str
    total: Decimal
    issued: Annotated[date, BeforeValidator(lambda v: datetime.strptime(v, "%d/%m/%Y").date())]


def payload(data: bytes) -> HTTPData:
    return HTTPData(data=data, response=HTTPResponse(url="http://example.com/", status_code=200))


def test_utf8_string():
    assert utf8_string("TEST".encode("utf-8")) == "TEST"
    assert payload(b"TEST").text == "TEST"


def test_utf8_string_replaces_invalid_bytes():
    assert utf8_string(b"ok\xff\xfe") == "ok\ufffd\ufffd"


def test_json_matches_reference_parser():
    result = json_value(JSON_BYTES)
    assert result == Success(json.loads(JSON_BYTES))
    assert payload(JSON_BYTES).json().value == {"names": ["Bob", "Tim", "Tina"]}


def test_json_invalid_is_failure():
    result = payload(b"INVALID").json()
    assert isinstance(result, Failure)
    assert result.success is None
    assert isinstance(result.failure, json.JSONDecodeError)


def test_json_options_are_forwarded():
    result = json_value(b'{"price": 1.10}', parse_float=Decimal)
    assert result.value == {"price": Decimal("1.10")}


def test_json_is_repeatable():
    data = payload(JSON_BYTES)
    assert data.json() == data.json()
    bad = payload(b"INVALID")
    assert type(bad.json().error) is type(bad.json().error)
    assert str(bad.json().error) == str(bad.json().error)


def test_decode_simple_record():
    result = payload(JSON_BYTES).decode(Names)
    assert result == Success(Names(names=["Bob", "Tim", "Tina"]))


def test_decode_invalid_json_is_failure():
    result = payload(b"INVALID").decode(Names)
    assert isinstance(result, Failure)
    assert isinstance(result.error, ValidationError)
    assert result.success is None


@pytest.mark.parametrize("data", [b'{"names": "Bob"}', b"{}", b"[]"])
def test_decode_wrong_shape_is_failure(data):
    assert isinstance(decoding(data, Names).error, ValidationError)


def test_decode_enum_and_tuple_fields():
    result = decoding(b'{"color": "red", "pos": [1, 2]}', Item)
    assert result == Success(Item(color=Color.RED, pos=(1, 2)))


def test_decode_round_trip():
    person = Person(
        name="Tina",
        age=41,
        born=date(1983, 5, 17),
        address=Address(city="Oslo"),
        tags={"score": 1.5},
    )
    data = JSONEncoder().encode(person)
    assert JSONDecoder().decode(Person, data) == person
    assert decoding(data, Person) == Success(person)


def test_decode_custom_date_format_on_model():
    result = decoding(b'{"number": "A-7", "total": "10.50", "issued": "17/05/1983"}', Invoice)
    assert result.value == Invoice(number="A-7", total=Decimal("10.50"), issued=date(1983, 5, 17))


def test_strict_decoder_rejects_coercion():
    assert JSONDecoder().decode(int, b'"3"') == 3
    assert isinstance(decoding(b'"3"', int, JSONDecoder(strict=True)).error, ValidationError)


def test_decode_int_widens_to_float():
    assert JSONDecoder().decode(float, b"3") == 3.0


def test_decoder_reuses_adapters():
    decoder = JSONDecoder()
    assert decoder.adapter(Names) is decoder.adapter(Names)


def test_decode_list_of_records():
    result = decoding(b'[{"city": "Oslo"}, {"city": "Rome", "zip_code": "00100"}]', List[Address])
    assert result.value == [Address("Oslo"), Address("Rome", "00100")]


def test_custom_decoder_is_used():
    class StubDecoder:
        def __init__(self):
            self.calls = []

        def decode(self, type_, data):
            self.calls.append((type_, data))
            return "decoded"

    stub = StubDecoder()
    assert payload(b"anything").decode(str, stub) == Success("decoded")
    assert stub.calls == [(str, b"anything")]


def test_decoder_errors_are_returned():
    class Exploding:
        def decode(self, type_, data):
            raise RuntimeError("boom")

    result = decoding(b"{}", dict, Exploding())
    assert isinstance(result.error, RuntimeError)


@pytest.mark.parametrize("data", [JSON_BYTES, b"INVALID"])
def test_decode_is_repeatable(data):
    first = decoding(data, Names)
    second = decoding(data, Names)
    assert type(first) is type(second)
    assert first.output[0] == second.output[0]
