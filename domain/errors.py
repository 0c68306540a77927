from __future__ import annotations


class CurrencyError(Exception):
    """Base class for currency definition failures."""


class InvalidArgument(CurrencyError, ValueError):
    """A currency definition was rejected because of a bad argument."""


class AlreadyExists(CurrencyError):
    """A currency with the same key is already registered."""

    def __init__(self, key: str) -> None:
        super().__init__(f"a currency with the key {key!r} already exists")
        self.key = key
