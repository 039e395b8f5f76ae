"""Record partial modification (patch) module."""

import dataclasses
import json
import logging
import structpatch.codec
import weakref
import wrapt

from collections.abc import Mapping
from copy import deepcopy
from structpatch.codec import DecodeError, JSONCodec
from structpatch.error import FieldDecodeError, NotAStructError, UnaddressableError
from structpatch.field import resolve
from structpatch.types import is_optional, zero_value
from types import NoneType
from typing import Any, TypeVar


_logger = logging.getLogger(__name__)


T = TypeVar("T")


class Raw:
    """
    Raw JSON text of a patch value, held until the type of its target field is known.

    Parameters:
    • value: JSON text as a string, or as UTF-8 encoded bytes
    """

    __slots__ = {"value"}

    def __init__(self, value: str | bytes | bytearray):
        if isinstance(value, bytes | bytearray):
            value = value.decode()
        if not isinstance(value, str):
            raise TypeError("raw value must be str or bytes")
        self.value = value

    def __repr__(self):
        return f"{type(self).__name__}({self.value!r})"

    def __str__(self):
        return self.value

    def __eq__(self, other: Any):
        return type(self) == type(other) and self.value == other.value

    def __hash__(self):
        return hash((self.__class__, self.value))

    def decode(self, python_type: Any = Any) -> Any:
        """Decode the raw JSON text as a value of the specified type."""
        return structpatch.codec.loads(self.value, python_type)


PatchSet = Mapping[str, Any]
"""
Mapping of exposed field name to patch value. For each field:
• key absent: the field is left untouched
• None: explicit null; the field is set to the zero value of its type
• Raw: raw JSON text, decoded into the type of the field
• any other value: a JSON value (as returned by json.loads), decoded into the field type
"""


def _unwrap(value: Any) -> Any:
    while True:
        if isinstance(value, weakref.ProxyTypes):
            return value  # referent not reachable; attribute access is forwarded
        if isinstance(value, wrapt.ObjectProxy):
            value = value.__wrapped__
        elif isinstance(value, weakref.ref):
            value = value()  # None if referent no longer exists
        else:
            return value


def _shape(value: Any) -> type:
    if isinstance(value, weakref.ProxyTypes):
        try:
            return value.__class__
        except ReferenceError:  # referent no longer exists
            return NoneType
    return type(value)


def _decode(value: Any, python_type: Any) -> Any:
    try:
        codec = JSONCodec.get(python_type)
    except TypeError as te:
        raise DecodeError(f"no codec for {python_type}") from te
    if isinstance(value, Raw):
        value = structpatch.codec.loads(value.value)
    return codec.decode(value)


def apply(record: Any, patches: PatchSet) -> None:
    """
    Patch a dataclass record in place with the values in a patch set.

    Parameters:
    • record: dataclass instance to patch
    • patches: patch set to apply

    The record can be wrapped in indirection (wrapt object proxies, weak references), which is
    unwrapped to reach the dataclass instance to patch. A weakref.proxy is patched through the
    proxy.

    Public fields are matched with patch set keys by exposed name. A field whose patch value
    is None is set to the zero value of its type; any other patch value is decoded into the
    field's type and assigned. Fields not named in the patch set, private fields and read-only
    fields are left untouched. The patch set is not modified.

    Patching is not atomic: if a value fails to decode, fields patched before it remain
    patched. Use `patched` to patch a copy of the record instead.

    Raises:
    • NotAStructError: if the record is not a dataclass instance
    • UnaddressableError: if the record cannot be modified in place (frozen dataclass)
    • FieldDecodeError: if a patch value cannot be decoded into its field's type
    """
    value = _unwrap(record)
    shape = _shape(value)
    if not dataclasses.is_dataclass(shape) or isinstance(value, type):
        raise NotAStructError(shape)
    if shape.__dataclass_params__.frozen:
        raise UnaddressableError(shape)
    if not isinstance(patches, Mapping):
        raise TypeError("patches must be a mapping; use parse to read JSON text")
    fields = resolve(shape)
    if _logger.isEnabledFor(logging.DEBUG):
        _logger.debug("patch: %s(%s)", shape.__qualname__, ", ".join(patches))
    for field in fields:
        if not field.accessible or field.name not in patches:
            continue
        patch = patches[field.name]
        if patch is None:
            _logger.debug("zero field: %s", field.name)
            field.set(value, zero_value(field.type))
            continue
        _logger.debug("decode field: %s", field.name)
        try:
            decoded = _decode(patch, field.type)
        except DecodeError as de:
            raise FieldDecodeError(field.name, de) from de
        field.set(value, decoded)


def patched(record: T, patches: PatchSet) -> T:
    """
    Return a patched copy of a dataclass record, leaving the record itself untouched.

    The record is deep-copied and the patch set is applied to the copy with `apply`. If
    patching fails, the error is raised and the partially patched copy is discarded.
    """
    result = deepcopy(_unwrap(record))
    apply(result, patches)
    return result


def parse(text: str | bytes | bytearray) -> dict[str, Raw | None]:
    """
    Parse a patch set from the text of a JSON object. Each JSON null value becomes an explicit
    null (None); every other value is kept verbatim as its original JSON text in a Raw value,
    to be decoded when applied.

    Raises DecodeError if the text is not a JSON object.
    """
    members = structpatch.codec.split_object(text)
    return {key: None if v == "null" else Raw(v) for key, v in members.items()}


def _text(patch: Any) -> str:
    if isinstance(patch, Raw):
        patch.decode()  # must be valid JSON
        return patch.value
    return structpatch.codec.dumps(patch)


def dumps(patches: PatchSet) -> str:
    """
    Return the text of a JSON object representing a patch set. Raw values are written
    verbatim.

    Raises DecodeError if a Raw value is not valid JSON text.
    """
    members = (f"{json.dumps(key)}: {_text(patch)}" for key, patch in patches.items())
    return "{" + ", ".join(members) + "}"


def diff(old: Any, new: Any) -> dict[str, Raw | None]:
    """
    Return a patch set that, applied to a copy of the old record, yields a record whose
    accessible fields are equal to those of the new record. A None value in an optional field
    is expressed as an explicit null; every other changed value is encoded as Raw JSON text.
    Raises EncodeError if a changed value cannot be encoded as its field's type, including
    None in a field whose type is not optional.

    Both records must be instances of the same dataclass.
    """
    old, new = _unwrap(old), _unwrap(new)
    shape = _shape(new)
    if not dataclasses.is_dataclass(shape) or isinstance(new, type) or _shape(old) is not shape:
        raise TypeError("expecting instances of the same dataclass")
    result = {}
    for field in resolve(shape):
        if not field.accessible:
            continue
        old_value, new_value = field.get(old), field.get(new)
        if new_value != old_value:
            if new_value is None and is_optional(field.type):
                result[field.name] = None
            else:
                result[field.name] = Raw(structpatch.codec.dumps(new_value, field.type))
    return result
