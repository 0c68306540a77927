from __future__ import annotations

import logging
import threading
from typing import List, Optional

from domain.errors import AlreadyExists, InvalidArgument
from domain.models import (
    INVALID_CURRENCY_NAME,
    Currency,
    SyncPolicy,
    is_integer_amount,
    make_sync_key,
)
from domain.repositories import CurrencyRepository

from .events import CurrencyDefined, EventHub


logger = logging.getLogger(__name__)


class CurrencyRegistry:
    """
    Single source of truth for currency definitions.

    The registry is constructed explicitly and handed to every wallet
    synchronizer that needs it, so independent registries can coexist
    (one per test, for instance). `define` is the only operation that
    raises; every read accessor degrades to a safe default because keys
    frequently come from untrusted client data.
    """

    def __init__(self, repository: CurrencyRepository, events: EventHub) -> None:
        self._repository = repository
        self._events = events
        self._define_lock = threading.Lock()

    @property
    def events(self) -> EventHub:
        return self._events

    def define(self, key: str, display_name: str, sync_policy: int) -> Currency:
        """
        Register a new currency and notify `CurrencyDefined` listeners.

        `sync_policy` may be a `SyncPolicy` member or its numeric code.
        Raises `InvalidArgument` for an empty/non-string key or display
        name, or an unrecognised policy, and `AlreadyExists` when the key
        is taken. A rejected call leaves the registry untouched.
        """

        if not isinstance(key, str) or not key:
            raise InvalidArgument("key is not a string/is an empty string")
        if not isinstance(display_name, str) or not display_name:
            raise InvalidArgument("display_name is not a string/is an empty string")
        if not is_integer_amount(sync_policy):
            raise InvalidArgument("sync_policy is not an integer")

        with self._define_lock:
            if self._repository.contains(key):
                raise AlreadyExists(key)
            try:
                policy = SyncPolicy(sync_policy)
            except ValueError:
                raise InvalidArgument(f"invalid sync_policy value: {sync_policy}") from None

            currency = Currency(
                key=key,
                display_name=display_name,
                sync_policy=policy,
                sync_key=make_sync_key(key),
            )
            self._repository.add(currency)

        logger.info(
            f"Defined currency {key!r} ({display_name}) with policy {policy.name}"
        )
        self._events.emit(
            CurrencyDefined(
                key=currency.key,
                display_name=currency.display_name,
                sync_policy=currency.sync_policy,
                sync_key=currency.sync_key,
            )
        )
        return currency

    def has(self, key: str) -> bool:
        return isinstance(key, str) and self._repository.contains(key)

    def get(self, key: str) -> Optional[Currency]:
        """Return the currency, or None if `key` is not registered."""

        if not isinstance(key, str):
            return None
        return self._repository.get(key)

    def list_keys(self) -> List[str]:
        """All registered keys in definition order."""

        return self._repository.keys()

    def display_name_of(self, key: str) -> str:
        currency = self.get(key)
        return currency.display_name if currency is not None else INVALID_CURRENCY_NAME

    def sync_policy_of(self, key: str) -> SyncPolicy:
        # Unknown currencies are never replicated.
        currency = self.get(key)
        return currency.sync_policy if currency is not None else SyncPolicy.NONE

    def sync_key_of(self, key: str) -> Optional[str]:
        currency = self.get(key)
        return currency.sync_key if currency is not None else None
