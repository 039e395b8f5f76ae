"""Module for type hint annotations."""

from typing import Any


class Annotation:
    """Base class for annotations."""

    __slots__ = {"value"}

    def __repr__(self):
        return f"{type(self).__name__}({self.value!r})"

    def __str__(self):
        return str(self.value)

    def __eq__(self, other: Any):
        return type(self) == type(other) and self.value == other.value

    def __hash__(self):
        return hash((self.__class__, self.value))


class Name(Annotation):
    """
    Type annotation to expose a dataclass field under a name other than its attribute name.

    The value can carry trailing comma-delimited options (example: "id,omitempty"); only the
    first segment is the exposed name. An empty first segment leaves the attribute name in
    effect.
    """

    def __init__(self, value: str):
        if not isinstance(value, str):
            raise TypeError("name annotation value must be str")
        self.value = value

    @property
    def name(self) -> str:
        """Exposed name, or empty string if not specified."""
        return self.value.split(",")[0]

    @property
    def options(self) -> tuple[str, ...]:
        """Options following the exposed name."""
        return tuple(self.value.split(",")[1:])


class ReadOnly(Annotation):
    """Type annotation to indicate a value is read-only."""

    def __init__(self, value: bool):
        if not isinstance(value, bool):
            raise TypeError("read-only annotation value must be bool")
        self.value = value
