"""Patch error module."""

import http

from typing import Any


class ApplyError(Exception):
    """
    Base class for errors raised when applying a patch set to a record.

    All error classes include the following attributes:
    • status: HTTP status code (int) to report the error with
    • phrase: HTTP reason phrase
    """

    status = http.HTTPStatus.INTERNAL_SERVER_ERROR.value
    phrase = http.HTTPStatus.INTERNAL_SERVER_ERROR.phrase


class NotAStructError(ApplyError, TypeError):
    """
    Raised if the value to patch is not a dataclass instance.

    Attribute:
    • shape: type of the value encountered after unwrapping any indirection
    """

    def __init__(self, shape: Any):
        super().__init__(f"can't operate on non-struct: {getattr(shape, '__name__', shape)}")
        self.shape = shape


class UnaddressableError(ApplyError, TypeError):
    """
    Raised if the dataclass instance to patch cannot be modified in place.

    Attribute:
    • shape: type of the dataclass instance
    """

    def __init__(self, shape: Any):
        super().__init__(f"unaddressable struct value: {getattr(shape, '__name__', shape)}")
        self.shape = shape


class FieldDecodeError(ApplyError, ValueError):
    """
    Raised if a patch value cannot be decoded into the declared type of its field. The
    underlying codec error is chained as the exception cause.

    Attributes:
    • field: exposed name of the field
    • error: underlying codec error
    """

    status = http.HTTPStatus.BAD_REQUEST.value
    phrase = http.HTTPStatus.BAD_REQUEST.phrase

    def __init__(self, field: str, error: Exception):
        super().__init__(f"{field}: {error}")
        self.field = field
        self.error = error
