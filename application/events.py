from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Type, TypeVar

from domain.models import SyncPolicy, UpdateReason


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrencyDefined:
    """Emitted once a currency definition has been stored."""

    key: str
    display_name: str
    sync_policy: SyncPolicy
    sync_key: str


@dataclass(frozen=True)
class WalletReplaced:
    """Emitted after a player's whole wallet was replaced."""

    player_id: str
    old_wallet: Dict[str, int]
    new_wallet: Dict[str, int]


@dataclass(frozen=True)
class CurrencyUpdated:
    """Emitted after a single balance was set or adjusted."""

    player_id: str
    key: str
    old_amount: int
    new_amount: int
    reason: UpdateReason


Event = TypeVar("Event", CurrencyDefined, WalletReplaced, CurrencyUpdated)
Handler = Callable[[Event], None]

EVENT_TYPES = (CurrencyDefined, WalletReplaced, CurrencyUpdated)


class EventHub:
    """
    Explicit subscription point for the three currency notifications.

    Handlers are keyed by event class and invoked synchronously in the
    order they were registered. A handler that raises stops delivery and
    the exception reaches the caller of `emit`.
    """

    def __init__(self) -> None:
        self._handlers: Dict[type, List[Callable]] = {
            event_type: [] for event_type in EVENT_TYPES
        }

    def _handlers_for(self, event_type: type) -> List[Callable]:
        try:
            return self._handlers[event_type]
        except KeyError:
            raise TypeError(f"Unknown event type: {event_type!r}") from None

    def subscribe(self, event_type: Type[Event], handler: Handler) -> Handler:
        """Register `handler` for `event_type`; returns it so it can be used as a decorator target."""

        self._handlers_for(event_type).append(handler)
        return handler

    def unsubscribe(self, event_type: Type[Event], handler: Handler) -> bool:
        handlers = self._handlers_for(event_type)
        if handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    def handler_count(self, event_type: Type[Event]) -> int:
        return len(self._handlers_for(event_type))

    def emit(self, event: Event) -> None:
        # Copy so handlers may unsubscribe themselves while being called.
        handlers = list(self._handlers_for(type(event)))
        logger.debug(f"Emitting {type(event).__name__} to {len(handlers)} handler(s)")
        for handler in handlers:
            handler(event)
