import datetime
import decimal
import enum
import pytest

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, make_dataclass
from structpatch.annotation import Name
from structpatch.codec import DecodeError, EncodeError, JSONCodec, dumps, loads, split_object
from typing import Annotated, Any, Literal, Optional, TypedDict, Union
from uuid import UUID


# ----- str -----


def test_str_json_decode_success():
    assert JSONCodec.get(str).decode("a") == "a"


def test_str_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(str).decode(1)


def test_str_json_encode_error():
    with pytest.raises(EncodeError):
        JSONCodec.get(str).encode(b"a")


# ----- bytes -----


def test_bytes_json_encode_success():
    assert JSONCodec.get(bytes).encode(b"Hello world") == "SGVsbG8gd29ybGQ="


def test_bytes_json_decode_success():
    assert JSONCodec.get(bytes).decode("SGVsbG8gd29ybGQ=") == b"Hello world"


def test_bytes_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(bytes).decode("not base64!")


# ----- int -----


def test_int_json_decode_success():
    assert JSONCodec.get(int).decode(1) == 1


def test_int_json_decode_float():
    assert JSONCodec.get(int).decode(2.0) == 2


def test_int_json_decode_error_float():
    with pytest.raises(DecodeError):
        JSONCodec.get(int).decode(1.5)


def test_int_json_decode_error_bool():
    with pytest.raises(DecodeError):
        JSONCodec.get(int).decode(True)


def test_int_json_decode_error_infinity():
    with pytest.raises(DecodeError):
        JSONCodec.get(int).decode(float("inf"))


def test_int_json_decode_error_nan():
    with pytest.raises(DecodeError):
        JSONCodec.get(int).decode(float("nan"))


def test_int_json_encode_error():
    with pytest.raises(EncodeError):
        JSONCodec.get(int).encode("1")


# ----- float -----


def test_float_json_decode_int():
    value = JSONCodec.get(float).decode(1)
    assert value == 1.0
    assert isinstance(value, float)


def test_float_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(float).decode("1.0")


def test_float_json_decode_error_infinity():
    with pytest.raises(DecodeError):
        JSONCodec.get(float).decode(float("-inf"))


def test_float_json_decode_error_too_large():
    with pytest.raises(DecodeError):
        JSONCodec.get(float).decode(10**400)


def test_float_json_dumps_error_nan():
    with pytest.raises(EncodeError):
        dumps(float("nan"), float)


# ----- bool -----


def test_bool_json_decode_success():
    assert JSONCodec.get(bool).decode(False) is False


def test_bool_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(bool).decode(0)


# ----- None -----


def test_none_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(type(None)).decode(0)


# ----- Decimal -----


def test_decimal_json_encode_success():
    assert JSONCodec.get(decimal.Decimal).encode(decimal.Decimal("1.10")) == "1.10"


def test_decimal_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(decimal.Decimal).decode("one")


# ----- date/datetime -----


def test_date_json_decode_success():
    assert JSONCodec.get(datetime.date).decode("2018-06-16") == datetime.date(2018, 6, 16)


def test_date_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(datetime.date).decode("20180616x")


def test_datetime_json_encode_success():
    value = datetime.datetime(2020, 4, 7, 12, 34, 56, 789012, tzinfo=datetime.timezone.utc)
    assert JSONCodec.get(datetime.datetime).encode(value) == "2020-04-07T12:34:56.789012Z"


def test_datetime_json_decode_offset():
    value = JSONCodec.get(datetime.datetime).decode("2020-04-07T14:34:56+02:00")
    assert value == datetime.datetime(2020, 4, 7, 12, 34, 56, tzinfo=datetime.timezone.utc)
    assert value.utcoffset() == datetime.timedelta(0)


def test_datetime_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(datetime.datetime).decode("yesterday")


# ----- UUID -----


def test_uuid_json_decode_success():
    value = "f8c8a1c6-4a0b-4c37-8e25-0d4c8b7d6c4b"
    assert JSONCodec.get(UUID).decode(value) == UUID(value)


def test_uuid_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(UUID).decode("not-a-uuid")


# ----- Enum -----


class Color(enum.Enum):
    RED = "red"
    GREEN = "green"


class Size(enum.IntEnum):
    SMALL = 1
    LARGE = 2


class Shape(str, enum.Enum):
    SQUARE = "square"


def test_enum_json_encode_success():
    assert JSONCodec.get(Color).encode(Color.GREEN) == "green"


def test_enum_json_decode_success():
    assert JSONCodec.get(Color).decode("red") is Color.RED


def test_enum_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(Color).decode("blue")


def test_int_enum_json_decode_success():
    assert JSONCodec.get(Size).decode(2) is Size.LARGE


def test_int_enum_json_decode_bool_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(Size).decode(True)


def test_str_enum_json_decode_success():
    assert JSONCodec.get(Shape).decode("square") is Shape.SQUARE


# ----- TypedDict -----


class TD(TypedDict):
    a: str
    b: int


def test_typeddict_json_decode_success():
    assert JSONCodec.get(TD).decode({"a": "x", "b": 1, "c": 2}) == {"a": "x", "b": 1}


def test_typeddict_json_decode_missing():
    with pytest.raises(DecodeError) as exc_info:
        JSONCodec.get(TD).decode({"a": "x"})
    assert exc_info.value.path == ["b"]


# ----- tuple -----


def test_tuple_json_decode_fixed():
    assert JSONCodec.get(tuple[int, str]).decode([1, "a"]) == (1, "a")


def test_tuple_json_decode_fixed_length_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(tuple[int, str]).decode([1])


def test_tuple_json_decode_variable():
    assert JSONCodec.get(tuple[int, ...]).decode([1, 2, 3]) == (1, 2, 3)


def test_tuple_json_encode_error_path():
    with pytest.raises(EncodeError) as exc_info:
        JSONCodec.get(tuple[int, ...]).encode((1, "2"))
    assert exc_info.value.path == [1]


def test_tuple_ellipsis_error():
    with pytest.raises(TypeError):
        JSONCodec.get(tuple[..., int])


# ----- Mapping -----


def test_dict_json_decode_success():
    assert JSONCodec.get(dict[str, bool]).decode({"a": True}) == {"a": True}


def test_dict_json_decode_error_path():
    with pytest.raises(DecodeError) as exc_info:
        JSONCodec.get(dict[str, str]).decode({"a": False})
    assert exc_info.value.path == ["a"]


def test_dict_non_str_keys():
    with pytest.raises(TypeError):
        JSONCodec.get(dict[int, str])


# ----- Iterable -----


def test_list_json_decode_success():
    assert JSONCodec.get(list[int]).decode([1, 2]) == [1, 2]


def test_list_json_decode_error_path():
    with pytest.raises(DecodeError) as exc_info:
        JSONCodec.get(list[int]).decode([1, "x"])
    assert exc_info.value.path == [1]


def test_set_json_encode_sorted():
    assert JSONCodec.get(set[int]).encode({3, 1, 2}) == [1, 2, 3]


def test_set_json_decode_success():
    assert JSONCodec.get(set[str]).decode(["a", "b", "a"]) == {"a", "b"}


def test_abstract_iterable_json_decode():
    assert JSONCodec.get(Sequence[int]).decode([1]) == [1]
    assert JSONCodec.get(Iterable[int]).decode([1]) == [1]


def test_list_json_decode_not_array():
    with pytest.raises(DecodeError):
        JSONCodec.get(list[int]).decode({"a": 1})


# ----- dataclass -----


@dataclass
class DC:
    a: Annotated[int, Name("aye")]
    b: Optional[str]
    c: list[str] = field(default_factory=list)
    _d: int = 0


def test_dataclass_json_encode_success():
    assert JSONCodec.get(DC).encode(DC(a=1, b=None, c=["x"])) == {"aye": 1, "c": ["x"]}


def test_dataclass_json_decode_success():
    assert JSONCodec.get(DC).decode({"aye": 1, "c": ["x"]}) == DC(a=1, b=None, c=["x"])


def test_dataclass_json_decode_private_ignored():
    assert JSONCodec.get(DC).decode({"aye": 1, "_d": 5}) == DC(a=1, b=None)


def test_dataclass_json_decode_error_path():
    with pytest.raises(DecodeError) as exc_info:
        JSONCodec.get(DC).decode({"aye": "one"})
    assert exc_info.value.path == ["aye"]


def test_dataclass_json_decode_missing():
    with pytest.raises(DecodeError):
        JSONCodec.get(DC).decode({"b": "x"})


def test_dataclass_keyword_field():
    KW = make_dataclass("KW", (("in_", str),))
    assert JSONCodec.get(KW).encode(KW(in_="x")) == {"in": "x"}
    assert JSONCodec.get(KW).decode({"in": "x"}) == KW(in_="x")


# ----- Union -----


def test_union_json_decode_success():
    codec = JSONCodec.get(Union[int, UUID])
    assert codec.decode(1) == 1
    value = "f8c8a1c6-4a0b-4c37-8e25-0d4c8b7d6c4b"
    assert codec.decode(value) == UUID(value)


def test_optional_json_decode_none():
    assert JSONCodec.get(Optional[int]).decode(None) is None


def test_union_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(int | str).decode([])


# ----- Literal -----


def test_literal_json_decode_success():
    assert JSONCodec.get(Literal["a", "b"]).decode("b") == "b"


def test_literal_json_decode_error():
    with pytest.raises(DecodeError):
        JSONCodec.get(Literal["a", "b"]).decode("c")


def test_literal_json_decode_type_mismatch():
    with pytest.raises(DecodeError):
        JSONCodec.get(Literal[1]).decode(True)


# ----- Any -----


def test_any_json_decode_passthrough():
    assert JSONCodec.get(Any).decode({"a": [1]}) == {"a": [1]}


def test_any_json_encode_by_type():
    assert JSONCodec.get(Any).encode(DC(a=1, b="b")) == {"aye": 1, "b": "b", "c": []}


# ----- text -----


def test_loads_success():
    assert loads('{"aye": 2}', DC) == DC(a=2, b=None)


def test_loads_bytes():
    assert loads(b"[1, 2]", list[int]) == [1, 2]


def test_loads_invalid_json():
    with pytest.raises(DecodeError):
        loads("not json", int)


def test_loads_invalid_utf8():
    with pytest.raises(DecodeError):
        loads(b"\xff", int)


def test_loads_nan_constant():
    for text in ("NaN", "Infinity", "-Infinity"):
        with pytest.raises(DecodeError):
            loads(text, Any)


def test_loads_int_overflow():
    with pytest.raises(DecodeError):
        loads("1e400", int)


def test_split_object():
    assert split_object('{ "a" : 1.50 , "b":{"c": [1, 2]},"d":null }') == {
        "a": "1.50",
        "b": '{"c": [1, 2]}',
        "d": "null",
    }


def test_split_object_empty():
    assert split_object(" {} ") == {}


def test_split_object_bytes():
    assert split_object('{"\\u00e9": "x"}'.encode()) == {"é": '"x"'}


def test_split_object_last_member_wins():
    assert split_object('{"a": 1, "a": 2}') == {"a": "2"}


def test_split_object_errors():
    for text in ("[1]", "{", '{"a" 1}', '{"a": 1,}', '{"a": 1} x', '{"a": NaN}', "{1: 2}", ""):
        with pytest.raises(DecodeError):
            split_object(text)


def test_dumps_success():
    assert dumps(datetime.date(2020, 1, 2), datetime.date) == '"2020-01-02"'


def test_no_codec():
    with pytest.raises(TypeError):
        JSONCodec.get(object)


def test_codec_cached():
    assert JSONCodec.get(list[int]) is JSONCodec.get(list[int])
