"""Partial modification (patch) of dataclass records."""

__version__ = "0.1.0"
