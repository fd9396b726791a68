"""Error types raised by jsonstore."""

from os import PathLike
from typing import Union


class StoreError(Exception):
    """Base error for store operations."""
    pass


class CorruptedStoreError(StoreError):
    """The backing file does not hold a usable JSON object."""

    def __init__(self, path: Union[str, PathLike], reason: str = ''):
        self.path = path
        message = f"Store file is corrupted: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class RepairError(StoreError):
    """Malformed JSON text could not be repaired into an object."""
    pass


class ReservedKeyError(StoreError, KeyError):
    """A user operation named one of the metadata keys."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Key is reserved for store metadata: {key!r}")

    def __str__(self) -> str:
        return Exception.__str__(self)
