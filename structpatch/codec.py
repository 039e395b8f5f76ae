"""Module to support encoding and decoding of values to and from JSON."""

import base64
import dataclasses
import enum
import inspect
import iso8601
import json
import math
import re
import structpatch.field
import typing

from collections.abc import Iterable, Mapping, Set
from contextlib import contextmanager, suppress
from datetime import date, datetime, timezone
from decimal import Decimal
from structpatch.types import is_optional, is_subclass, strip_annotations
from types import NoneType, UnionType
from typing import Any, Generic, Literal, TypeVar, Union, get_args, get_origin
from uuid import UUID


# ----- type aliases -----


BinaryType = bytes | bytearray
JSONType = Any
StringType = str


# ----- utilities -----


@contextmanager
def _wrap(exception):
    try:
        yield
    except Exception as e:
        if isinstance(e, exception):
            raise
        raise exception(str(e)) from e


def _b2s(b):
    if not isinstance(b, bytes | bytearray):
        raise DecodeError("expecting bytes")
    with _wrap(DecodeError):
        return b.decode()


def _reject_constant(name):
    raise ValueError(f"invalid JSON constant: {name}")


# NaN and Infinity are not JSON
_decoder = json.JSONDecoder(parse_constant=_reject_constant)

_ws = re.compile(r"[ \t\n\r]*")


def _s2j(s):
    if not isinstance(s, str):
        raise DecodeError("expecting str")
    with _wrap(DecodeError):
        return json.loads(s, parse_constant=_reject_constant)


# ----- errors -----


class CodecError(ValueError):
    """
    Error raised in the event that a value cannot be encoded or decoded.
    """

    __slots__ = {"message", "path"}

    def __init__(self, message: str | None = None, path: list[str | int] | None = None):
        self.message = message
        self.path = path

    def __repr__(self):
        return f"{self.__class__.__name__}({self.message!r}, {self.path!r})"

    def __str__(self):
        return " ".join(str(s) for s in (self.message, self.path) if s is not None)

    @staticmethod
    @contextmanager
    def path_on_error(path: list[str | int] | str | int) -> None:
        """Context manager to add to error path in the event that a CodecError is raised."""
        try:
            yield
        except CodecError as ce:
            if ce.path is None:
                ce.path = []
            match path:
                case str() | int():
                    ce.path.insert(0, path)
                case list():
                    ce.path = path + ce.path
            raise


class EncodeError(CodecError):
    """Error raised in the event that a value cannot be encoded."""


class DecodeError(CodecError):
    """Error raised in the event that a value cannot be decoded."""


# ----- base -----


PT = TypeVar("PT")  # Python type hint
TT = TypeVar("TT")  # target type hint


class Codec(Generic[PT, TT]):
    """
    Base class for all things encode and decode.
    """

    def __init__(self, python_type: Any):
        self.python_type = python_type

    @staticmethod
    def handles(python_type: Any) -> bool:
        """Return True if the codec handles the specified Python type."""
        raise NotImplementedError

    @classmethod
    def get(cls, python_type: Any) -> "Codec[PT, TT]":
        """
        Return a codec that handles the specified Python type.

        If the subclass contains a `_cache` mapping attribute, codecs are cached in it by
        Python type. Raises TypeError if no codec handles the type.
        """
        if cls is Codec:
            raise NotImplementedError
        with suppress(AttributeError, KeyError, TypeError):
            return cls._cache[python_type]
        for codec_class in cls.__subclasses__():
            if codec_class.handles(python_type):
                codec = codec_class(python_type)
                cache = getattr(cls, "_cache", None)
                if isinstance(cache, dict):
                    with suppress(TypeError):  # unhashable type hint
                        cache[python_type] = codec
                return codec
        raise TypeError(f"no codec for {python_type}")

    def encode(self, value: PT) -> TT:
        """Encode value from Python type to target type."""
        raise NotImplementedError

    def decode(self, value: TT) -> PT:
        """Decode value from target type to Python type."""
        raise NotImplementedError


class JSONCodec(Codec[PT, JSONType]):
    """Encodes Python types to/from the JSON representations."""

    _cache = {}

    def encode(self, value: PT) -> JSONType:
        """Encode value from Python type to JSON type."""
        raise NotImplementedError

    def decode(self, value: JSONType) -> PT:
        """Decode value from JSON type to Python type."""
        raise NotImplementedError


# ----- JSON text -----


def loads(text: str | BinaryType, python_type: Any = Any) -> Any:
    """
    Decode a value of the specified Python type from JSON text.

    Parameters:
    • text: JSON text as a string, or as UTF-8 encoded bytes
    • python_type: type of value to decode

    Raises DecodeError if the text is not valid JSON or does not represent the type.
    """
    if isinstance(text, bytes | bytearray):
        text = _b2s(text)
    return JSONCodec.get(python_type).decode(_s2j(text))


def dumps(value: Any, python_type: Any = Any) -> str:
    """Encode a value of the specified Python type to JSON text."""
    encoded = JSONCodec.get(python_type).encode(value)
    with _wrap(EncodeError):
        return json.dumps(encoded, allow_nan=False)


def split_object(text: str | BinaryType) -> dict[str, str]:
    """
    Split the text of a JSON object into its members, without decoding member values.

    Returns a dict of member name to the original JSON text of its value. If a name occurs
    more than once, the last member wins.

    Raises DecodeError if the text is not a JSON object.
    """
    if isinstance(text, bytes | bytearray):
        text = _b2s(text)
    if not isinstance(text, str):
        raise DecodeError("expecting str")
    result = {}
    with _wrap(DecodeError):
        pos = _ws.match(text, 0).end()
        if text[pos : pos + 1] != "{":
            raise DecodeError("expecting JSON object")
        pos = _ws.match(text, pos + 1).end()
        if text[pos : pos + 1] == "}":
            pos += 1
        else:
            while True:
                if text[pos : pos + 1] != '"':
                    raise DecodeError(f"expecting member name at position {pos}")
                key, pos = json.decoder.scanstring(text, pos + 1)
                pos = _ws.match(text, pos).end()
                if text[pos : pos + 1] != ":":
                    raise DecodeError(f"expecting ':' at position {pos}")
                start = _ws.match(text, pos + 1).end()
                _, pos = _decoder.raw_decode(text, start)
                result[key] = text[start:pos]
                pos = _ws.match(text, pos).end()
                delimiter = text[pos : pos + 1]
                if delimiter not in {",", "}"}:
                    raise DecodeError(f"expecting ',' or '}}' at position {pos}")
                pos = _ws.match(text, pos + 1).end()
                if delimiter == "}":
                    break
        if _ws.match(text, pos).end() != len(text):
            raise DecodeError(f"extra data at position {pos}")
    return result


# ----- str -----


class StrJSONCodec(JSONCodec[str]):
    """JSON codec for Unicode character strings."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, str) and not is_subclass(python_type, enum.Enum)

    def encode(self, value: str) -> JSONType:
        if not isinstance(value, str):
            raise EncodeError("expecting str")
        return value

    def decode(self, value: JSONType) -> str:
        if not isinstance(value, str):
            raise DecodeError("expecting string")
        return value


# ----- bytes/bytearray -----


class BytesJSONCodec(JSONCodec[bytes | bytearray]):
    """
    JSON codec for byte sequences. A byte sequence is represented in JSON values as a
    base64-encoded string. Example: "SGVsbG8gd29ybGQ=".
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, BinaryType)

    def encode(self, value: bytes | bytearray) -> JSONType:
        if not isinstance(value, BinaryType):
            raise EncodeError("expecting bytes")
        return base64.b64encode(value).decode()

    def decode(self, value: JSONType) -> bytes | bytearray:
        if not isinstance(value, str):
            raise DecodeError("expecting base64-encoded string")
        with _wrap(DecodeError):
            return base64.b64decode(value, validate=True)


# ----- int -----


class IntJSONCodec(JSONCodec[int]):
    """JSON codec for integers."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return (
            is_subclass(python_type, int)
            and not is_subclass(python_type, bool)
            and not is_subclass(python_type, enum.Enum)
        )

    def encode(self, value: int) -> JSONType:
        if not isinstance(value, int) or isinstance(value, bool):
            raise EncodeError("expecting int")
        return value

    def decode(self, value: JSONType) -> int:
        if not isinstance(value, int | float) or isinstance(value, bool):
            raise DecodeError("expecting integer")
        result = value
        if isinstance(result, float):
            if not math.isfinite(result):
                raise DecodeError("expecting finite integer")
            result = int(result)
            if result != value:  # 1.0 == 1
                raise DecodeError("expecting integer")
        return result


# ----- float -----


class FloatJSONCodec(JSONCodec[float]):
    """JSON codec for floating point numbers."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, float) and not is_subclass(python_type, enum.Enum)

    def encode(self, value: float) -> JSONType:
        if not isinstance(value, float):
            raise EncodeError("expecting float")
        return value

    def decode(self, value: JSONType) -> float:
        if not isinstance(value, int | float) or isinstance(value, bool):
            raise DecodeError("expecting number")
        with _wrap(DecodeError):  # int too large for float
            result = float(value)
        if not math.isfinite(result):
            raise DecodeError("expecting finite number")
        return result


# ----- bool -----


class BoolJSONCodec(JSONCodec[bool]):
    """JSON codec for boolean values."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, bool)

    def encode(self, value: bool) -> JSONType:
        if not isinstance(value, bool):
            raise EncodeError("expecting bool")
        return value

    def decode(self, value: JSONType) -> bool:
        if not isinstance(value, bool):
            raise DecodeError("expecting boolean")
        return value


# ----- NoneType -----


class NoneTypeJSONCodec(JSONCodec[NoneType]):
    """JSON codec for None value."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return python_type is NoneType or python_type is None

    def encode(self, value: NoneType) -> JSONType:
        if value is not None:
            raise EncodeError("expecting None")
        return None

    def decode(self, value: JSONType) -> NoneType:
        if value is not None:
            raise DecodeError("expecting null")
        return None


# ----- Decimal -----


class DecimalJSONCodec(JSONCodec[Decimal]):
    """
    JSON codec for Decimal numbers. Decimal numbers are represented in JSON as strings, due to
    the imprecision of floating point numbers.
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, Decimal)

    def encode(self, value: Decimal) -> JSONType:
        if not isinstance(value, Decimal):
            raise EncodeError("expecting Decimal")
        return str(value)

    def decode(self, value: JSONType) -> Decimal:
        if not isinstance(value, str):
            raise DecodeError("expecting decimal string")
        with _wrap(DecodeError):
            return Decimal(value)


# ----- date -----


class DateJSONCodec(JSONCodec[date]):
    """
    JSON codec for dates. A date is represented in JSON as an RFC 3339 formatted string.
    Example: "2018-06-16".
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, date) and not is_subclass(python_type, datetime)

    def encode(self, value: date) -> JSONType:
        if not isinstance(value, date):
            raise EncodeError("expecting date")
        return value.isoformat()

    def decode(self, value: JSONType) -> date:
        if not isinstance(value, str):
            raise DecodeError("expecting date string")
        with _wrap(DecodeError):
            return date.fromisoformat(value)


# ----- datetime -----


def _to_utc(value):
    if value.tzinfo is None:  # naive value interpreted as UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DatetimeJSONCodec(JSONCodec[datetime]):
    """
    JSON codec for datetime.

    It will decode a datetime represented in an ISO 8601 formatted string. It will encode a
    datetime to an RFC 3339 (subset of ISO 8601) formatted string.

    Datetimes always encode and decode to UTC timezone offset.

    Example: "2020-04-07T12:34:56.789012Z".
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, datetime)

    def encode(self, value: datetime) -> JSONType:
        if not isinstance(value, datetime):
            raise EncodeError("expecting datetime")
        result = _to_utc(value).isoformat()
        if result.endswith("+00:00"):
            result = result[0:-6]
        if "+" not in result and not result.endswith("Z"):
            result = f"{result}Z"
        return result

    def decode(self, value: JSONType) -> datetime:
        if not isinstance(value, str):
            raise DecodeError("expecting datetime string")
        with _wrap(DecodeError):
            return _to_utc(iso8601.parse_date(value))


# ----- UUID -----


class UUIDJSONCodec(JSONCodec[UUID]):
    """JSON codec for UUID."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, UUID)

    def encode(self, value: UUID) -> JSONType:
        if not isinstance(value, UUID):
            raise EncodeError("expecting UUID")
        return str(value)

    def decode(self, value: JSONType) -> UUID:
        if not isinstance(value, str):
            raise DecodeError("expecting UUID string")
        with _wrap(DecodeError):
            return UUID(value)


# ----- Enum -----


class EnumJSONCodec(JSONCodec[enum.Enum]):
    """JSON codec for enumerations. A member is represented in JSON by its value."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, enum.Enum)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        self.raw_type = strip_annotations(python_type)

    def encode(self, value: enum.Enum) -> JSONType:
        if not isinstance(value, self.raw_type):
            raise EncodeError(f"expecting {self.raw_type.__name__}")
        return JSONCodec.get(type(value.value)).encode(value.value)

    def decode(self, value: JSONType) -> enum.Enum:
        if isinstance(value, bool | dict | list) or value is None:
            raise DecodeError(f"expecting {self.raw_type.__name__} value")
        with _wrap(DecodeError):
            return self.raw_type(value)


# ----- TypedDict -----


class TypedDictJSONCodec(JSONCodec[PT]):
    """JSON codec for TypedDict. Only keys declared in the TypedDict are processed."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return typing.is_typeddict(python_type)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        self.hints = typing.get_type_hints(python_type, include_extras=True)
        self.required = python_type.__required_keys__

    def _process(self, value: dict[str, Any], method) -> dict[str, Any]:
        result = {}
        for key in self.hints:
            if key not in value:
                if key in self.required and method == "decode":
                    raise DecodeError("missing required key", [key])
                continue
            codec = JSONCodec.get(self.hints[key])
            with CodecError.path_on_error(key):
                result[key] = getattr(codec, method)(value[key])
        return result

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, dict):
            raise EncodeError("expecting dict")
        return self._process(value, "encode")

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, dict):
            raise DecodeError("expecting object")
        return self._process(value, "decode")


# ----- tuple -----


class TupleJSONCodec(JSONCodec[PT]):
    """
    JSON codec for tuples. A tuple is represented in JSON as an array. Both fixed-length
    (tuple[A, B]) and variable-length (tuple[A, ...]) tuples are supported.
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, tuple) or is_subclass(get_origin(python_type), tuple)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        args = get_args(python_type) or (Any, ...)
        if len(args) != 2 and Ellipsis in args or args[0] is Ellipsis:
            raise TypeError(f"unexpected ellipsis in {python_type}")
        self.varg = args[0] if len(args) == 2 and args[1] is Ellipsis else None
        self.args = () if self.varg else args
        self.codecs = [JSONCodec.get(arg) for arg in self.args]
        self.vcodec = JSONCodec.get(self.varg) if self.varg else None

    def _codec(self, n: int) -> JSONCodec:
        return self.vcodec or self.codecs[n]

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, tuple) or (self.args and len(value) != len(self.args)):
            raise EncodeError("expecting tuple")
        result = []
        for n, item in enumerate(value):
            with CodecError.path_on_error(n):
                result.append(self._codec(n).encode(item))
        return result

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, list):
            raise DecodeError("expecting array")
        if self.args and len(value) != len(self.args):
            raise DecodeError(f"expecting array of {len(self.args)} items")
        result = []
        for n, item in enumerate(value):
            with CodecError.path_on_error(n):
                result.append(self._codec(n).decode(item))
        return tuple(result)


# ----- Mapping -----


class MappingJSONCodec(JSONCodec[PT]):
    """JSON codec for mappings. Keys must be strings; they are represented as object keys."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        return is_subclass(origin, Mapping) and not getattr(origin, "__annotations__", None)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        args = get_args(python_type) or (str, Any)
        if len(args) != 2:
            raise TypeError("expecting Mapping[KT, VT]")
        if not is_subclass(strip_annotations(args[0]), str) and args[0] is not Any:
            raise TypeError("codec only supports mappings with str keys")
        self.value_codec = JSONCodec.get(args[1])

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, Mapping):
            raise EncodeError("expecting mapping")
        result = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise EncodeError("expecting str key")
            with CodecError.path_on_error(k):
                result[k] = self.value_codec.encode(v)
        return result

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, Mapping):
            raise DecodeError("expecting object")
        result = {}
        for k, v in value.items():
            with CodecError.path_on_error(k):
                result[k] = self.value_codec.decode(v)
        return result


# ----- Iterable -----


class IterableJSONCodec(JSONCodec[PT]):
    """
    JSON codec for iterables such as list and set. An iterable is represented in JSON as an
    array. Abstract iterable types decode to list (or set, for abstract set types).
    """

    _AVOID = str | bytes | bytearray | Mapping | tuple

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        return is_subclass(origin, Iterable) and not is_subclass(
            origin, IterableJSONCodec._AVOID
        )

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        args = get_args(python_type) or (Any,)
        if len(args) != 1:
            raise TypeError("expecting Iterable[T]")
        self.codec = JSONCodec.get(args[0])
        self.is_set = is_subclass(origin, Set)
        if inspect.isabstract(origin):
            self.decode_type = set if self.is_set else list
        else:
            self.decode_type = origin

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, Iterable) or isinstance(value, IterableJSONCodec._AVOID):
            raise EncodeError("expecting iterable")
        if self.is_set:
            value = sorted(value)
        result = []
        for n, item in enumerate(value):
            with CodecError.path_on_error(n):
                result.append(self.codec.encode(item))
        return result

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, list):
            raise DecodeError("expecting array")
        result = []
        for n, item in enumerate(value):
            with CodecError.path_on_error(n):
                result.append(self.codec.decode(item))
        with _wrap(DecodeError):
            return self.decode_type(result)


# ----- dataclass -----


class DataclassJSONCodec(JSONCodec[PT]):
    """
    JSON codec for dataclasses. A dataclass is represented in JSON as an object whose keys
    are the exposed names of its public fields; fields with None values are omitted.
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return dataclasses.is_dataclass(python_type) and isinstance(python_type, type)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        self.raw_type = strip_annotations(python_type)

    @property
    def _fields(self) -> tuple["structpatch.field.Field", ...]:
        return structpatch.field.resolve(self.raw_type)

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, self.raw_type):
            raise EncodeError(f"expecting {self.raw_type.__name__}")
        result = {}
        for field in self._fields:
            v = field.get(value)
            if v is not None:
                with CodecError.path_on_error(field.name):
                    result[field.name] = JSONCodec.get(field.type).encode(v)
        return result

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, dict):
            raise DecodeError("expecting object")
        kwargs = {}
        init = {f.name: f for f in dataclasses.fields(self.raw_type) if f.init}
        for field in self._fields:
            if field.attr not in init:
                continue
            try:
                v = value[field.name]
            except KeyError:
                if (
                    is_optional(field.type)
                    and init[field.attr].default is dataclasses.MISSING
                    and init[field.attr].default_factory is dataclasses.MISSING
                ):
                    kwargs[field.attr] = None
                continue
            with CodecError.path_on_error(field.name):
                kwargs[field.attr] = JSONCodec.get(field.type).decode(v)
        with _wrap(DecodeError):
            return self.raw_type(**kwargs)


# ----- UnionType/Union -----


class UnionJSONCodec(JSONCodec[PT]):
    """
    JSON codec for union types. Member types are tried in declaration order; the first
    codec that successfully encodes or decodes the value wins.
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return get_origin(python_type) in {UnionType, Union}

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        self.codecs = tuple(JSONCodec.get(arg) for arg in dict.fromkeys(get_args(python_type)))

    def encode(self, value: PT) -> JSONType:
        for codec in self.codecs:
            with suppress(EncodeError):
                return codec.encode(value)
        raise EncodeError("value does not match any type in union")

    def decode(self, value: JSONType) -> PT:
        for codec in self.codecs:
            with suppress(DecodeError):
                return codec.decode(value)
        raise DecodeError("value does not match any type in union")


# ----- Literal -----


class LiteralJSONCodec(JSONCodec[PT]):
    """JSON codec for literal types."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return get_origin(python_type) is Literal

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        self.values = get_args(python_type)

    def _match(self, value: Any) -> bool:
        return any(type(value) is type(v) and value == v for v in self.values)

    def encode(self, value: PT) -> JSONType:
        if not self._match(value):
            raise EncodeError("value not in literal")
        return JSONCodec.get(type(value)).encode(value)

    def decode(self, value: JSONType) -> PT:
        if not self._match(value):
            raise DecodeError("value not in literal")
        return value


# ----- Any -----


class AnyJSONCodec(JSONCodec[Any]):
    """JSON codec for Any. Type variables are treated as Any."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return python_type is Any or isinstance(python_type, TypeVar)

    def encode(self, value: Any) -> Any:
        return JSONCodec.get(type(value)).encode(value)

    def decode(self, value: Any) -> Any:
        return value
