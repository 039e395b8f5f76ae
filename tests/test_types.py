import enum

from collections.abc import Iterable, Mapping, Sequence, Set
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from structpatch.annotation import Name
from structpatch.types import is_optional, split_annotated, strip_annotations, zero_value
from types import NoneType
from typing import Annotated, Any, Literal, Optional, TypedDict, TypeVar, Union
from uuid import UUID


def test_split_annotated():
    assert split_annotated(Annotated[int, Name("a"), "x"]) == (int, (Name("a"), "x"))
    assert split_annotated(int) == (int, ())


def test_strip_annotations():
    assert strip_annotations(Annotated[str, Name("a")]) is str


def test_is_optional():
    assert is_optional(Optional[int])
    assert is_optional(int | None)
    assert is_optional(Union[int, str, None])
    assert is_optional(NoneType)
    assert is_optional(Annotated[int | None, Name("a")])
    assert not is_optional(int)
    assert not is_optional(int | str)


# ----- zero_value -----


class Color(enum.Enum):
    RED = "red"
    GREEN = "green"


class Size(enum.IntEnum):
    SMALL = 1
    LARGE = 2


class Empty(enum.Enum):
    pass


class TD(TypedDict):
    a: int


@dataclass
class Inner:
    x: int
    y: str


@dataclass
class Outer:
    inner: Inner
    tags: list[str]
    note: Optional[str]
    count: int = 5
    seen: set[int] = field(init=False, default_factory=set)


def test_zero_value_scalars():
    assert zero_value(bool) is False
    assert zero_value(int) == 0
    assert zero_value(float) == 0.0
    assert zero_value(complex) == 0j
    assert zero_value(Decimal) == Decimal(0)
    assert zero_value(str) == ""
    assert zero_value(bytes) == b""
    assert zero_value(bytearray) == bytearray()


def test_zero_value_float_type():
    value = zero_value(float)
    assert isinstance(value, float)


def test_zero_value_none():
    assert zero_value(Optional[int]) is None
    assert zero_value(str | None) is None
    assert zero_value(NoneType) is None
    assert zero_value(Any) is None
    assert zero_value(TypeVar("T")) is None


def test_zero_value_union():
    assert zero_value(int | str) == 0
    assert zero_value(Union[str, int]) == ""


def test_zero_value_literal():
    assert zero_value(Literal["a", "b"]) == "a"


def test_zero_value_annotated():
    assert zero_value(Annotated[int, Name("a")]) == 0


def test_zero_value_temporal():
    assert zero_value(UUID) == UUID("00000000-0000-0000-0000-000000000000")
    assert zero_value(date) == date(1, 1, 1)
    assert zero_value(datetime) == datetime(1, 1, 1, tzinfo=timezone.utc)


def test_zero_value_enum():
    assert zero_value(Color) is Color.RED
    assert zero_value(Size) is Size.SMALL


def test_zero_value_empty_enum():
    assert zero_value(Empty) is None


def test_zero_value_collections():
    assert zero_value(list[int]) == []
    assert zero_value(list) == []
    assert zero_value(Sequence[int]) == []
    assert zero_value(Iterable[int]) == []
    assert zero_value(dict[str, int]) == {}
    assert zero_value(Mapping[str, int]) == {}
    assert zero_value(set[int]) == set()
    assert zero_value(Set[int]) == set()
    assert zero_value(frozenset[int]) == frozenset()
    assert zero_value(TD) == {}


def test_zero_value_tuple():
    assert zero_value(tuple[int, str]) == (0, "")
    assert zero_value(tuple[int, ...]) == ()
    assert zero_value(tuple) == ()


def test_zero_value_dataclass():
    assert zero_value(Outer) == Outer(inner=Inner(x=0, y=""), tags=[], note=None, count=0)


def test_zero_value_new_instance():
    assert zero_value(list[int]) is not zero_value(list[int])


def test_zero_value_requires_arguments():
    class NeedsArgs:
        def __init__(self, value):
            self.value = value

    assert zero_value(NeedsArgs) is None


def test_zero_value_constructible_class():
    class Bare:
        pass

    assert isinstance(zero_value(Bare), Bare)
