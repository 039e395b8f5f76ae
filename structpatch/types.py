"""Module to manage types and type hints."""

import dataclasses
import enum
import types
import typing

from collections.abc import Iterable, Mapping, Set
from datetime import date, datetime, timezone
from decimal import Decimal
from types import NoneType
from typing import Any, TypeVar
from uuid import UUID


def split_annotated(type_hint: Any) -> tuple[Any, tuple[Any, ...]]:
    """Return a tuple separating the python type and annotations."""
    if not typing.get_origin(type_hint) is typing.Annotated:
        return type_hint, ()
    args = typing.get_args(type_hint)
    return args[0], args[1:]


def strip_annotations(type_hint: Any) -> Any:
    """Return the python type with any Annotated metadata removed."""
    return split_annotated(type_hint)[0]


def is_optional(type_hint: Any) -> bool:
    """
    Return if the specified type is optional.

    A type is optional if its type hint matches any of the following:
    • None
    • Optional[...]
    • Union[..., None]
    • ... | None
    """
    python_type, _ = split_annotated(type_hint)
    if not typing.get_origin(python_type) in {types.UnionType, typing.Union}:
        return python_type is NoneType
    for arg in typing.get_args(python_type):
        if is_optional(arg):
            return True
    return False


def is_subclass(cls: Any, class_or_tuple: type | tuple[type, ...]) -> bool:
    """A more forgiving issubclass."""
    try:
        return issubclass(cls, class_or_tuple)
    except TypeError:
        return False


def _empty(origin: Any, default: type) -> Any:
    # abstract collection types (Mapping, Set, Sequence...) can't be instantiated
    try:
        return origin()
    except TypeError:
        return default()


def zero_value(type_hint: Any) -> Any:
    """
    Return the zero value for a type hint: the canonical empty value for the type.

    • Optional[...], None, Any and type variables: None
    • Union[A, B, ...]: zero value of A
    • Literal[v, ...]: the first literal value
    • bool: False; numbers: zero; str, bytes, bytearray: empty
    • UUID: the nil UUID; date: date.min; datetime: 0001-01-01T00:00:00Z
    • Enum: the first member
    • tuple[A, B]: tuple of zero values; tuple[A, ...]: empty tuple
    • mappings, sets and other iterables: empty collection
    • dataclass: an instance with all initialization fields set to their zero values
    • other classes: an instance constructed with no arguments

    If no zero value can be determined (empty enumeration, class that can't be constructed
    without arguments), None is returned.
    """
    python_type, _ = split_annotated(type_hint)
    if is_optional(python_type) or python_type is Any or isinstance(python_type, TypeVar):
        return None
    origin = typing.get_origin(python_type)
    args = typing.get_args(python_type)
    if origin in {types.UnionType, typing.Union}:
        return zero_value(args[0])
    if origin is typing.Literal:
        return args[0]
    if is_subclass(python_type, enum.Enum):
        return next(iter(python_type), None)
    if is_subclass(python_type, bool):
        return False
    if is_subclass(python_type, int | float | complex | Decimal):
        return python_type(0)
    if is_subclass(python_type, str | bytes | bytearray):
        return python_type()
    if is_subclass(python_type, UUID):
        return UUID(int=0)
    if is_subclass(python_type, datetime):
        return datetime(1, 1, 1, tzinfo=timezone.utc)
    if is_subclass(python_type, date):
        return date.min
    if dataclasses.is_dataclass(python_type):
        hints = typing.get_type_hints(python_type, include_extras=True)
        return python_type(
            **{
                field.name: zero_value(hints[field.name])
                for field in dataclasses.fields(python_type)
                if field.init
            }
        )
    if typing.is_typeddict(python_type):
        return {}
    origin = origin or python_type
    if is_subclass(origin, tuple):
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            return ()
        return tuple(zero_value(arg) for arg in args)
    if is_subclass(origin, Mapping):
        return _empty(origin, dict)
    if is_subclass(origin, Set):
        return _empty(origin, set)
    if is_subclass(origin, Iterable):
        return _empty(origin, list)
    try:
        return python_type()
    except Exception:  # requires arguments, or not a class
        return None
