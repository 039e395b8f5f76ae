"""Module to resolve the patchable fields of dataclass records."""

import dataclasses
import functools
import keyword
import typing

from structpatch.annotation import Name, ReadOnly
from structpatch.types import split_annotated
from typing import Any


# keywords have _ suffix in dataclass fields (e.g. "in_", "for_", ...)
_kw = {k + "_": k for k in keyword.kwlist}


@dataclasses.dataclass(frozen=True)
class Field:
    """
    Describes one field of a record type.

    Attributes:
    • name: name the field is exposed under to patch sets and JSON representations
    • attr: attribute name of the field in the record
    • type: type hint of the field, including any Annotated metadata
    • accessible: whether the field can be written by a patch
    """

    name: str
    attr: str
    type: Any
    accessible: bool = True

    def get(self, record: Any) -> Any:
        """Return the value of the field in the record."""
        return getattr(record, self.attr)

    def set(self, record: Any, value: Any) -> None:
        """Set the value of the field in the record, in place."""
        setattr(record, self.attr, value)


def is_private(attr: str) -> bool:
    """Return if an attribute name is outside of a record's public contract."""
    return attr.startswith("_")


def exposed_name(attr: str, type_hint: Any) -> str:
    """
    Return the name a field is exposed under. The first Name annotation in the type hint with
    a non-empty name takes precedence; otherwise it's the attribute name, with the trailing
    underscore of a keyword attribute name (e.g. "in_") removed.
    """
    _, annotations = split_annotated(type_hint)
    for annotation in annotations:
        if isinstance(annotation, Name) and annotation.name:
            return annotation.name
    return _kw.get(attr, attr)


def _read_only(type_hint: Any) -> bool:
    _, annotations = split_annotated(type_hint)
    return any(isinstance(a, ReadOnly) and a.value for a in annotations)


@functools.cache
def resolve(record_type: type) -> tuple[Field, ...]:
    """
    Return the fields of a dataclass record type, in declaration order.

    Private fields (attribute names starting with underscore) are not part of the record's
    public contract, and are excluded. Fields annotated with ReadOnly(True) are included, but
    are not accessible.

    Results are cached per record type; record types are not expected to change after they
    are first resolved.
    """
    if not (dataclasses.is_dataclass(record_type) and isinstance(record_type, type)):
        raise TypeError(f"expecting dataclass type: {record_type!r}")
    hints = typing.get_type_hints(record_type, include_extras=True)
    return tuple(
        Field(
            name=exposed_name(field.name, hints[field.name]),
            attr=field.name,
            type=hints[field.name],
            accessible=not _read_only(hints[field.name]),
        )
        for field in dataclasses.fields(record_type)
        if not is_private(field.name)
    )
