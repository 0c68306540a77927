from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from .models import Currency


class CurrencyRepository(Protocol):
    """
    Storage for currency definitions, keyed by currency key.

    Implementations must preserve insertion order in `keys()` so that
    diagnostics are reproducible.
    """

    def get(self, key: str) -> Optional[Currency]:
        """Return the currency with the given key, or None if not registered."""

        ...

    def contains(self, key: str) -> bool:
        ...

    def add(self, currency: Currency) -> None:
        """Store a new definition. Callers check for duplicates first."""

        ...

    def keys(self) -> List[str]:
        ...


class WalletRepository(Protocol):
    """
    Side table mapping player IDs to their wallets.

    A wallet is a plain `dict` of currency key to integer balance. The
    repository hands out the live mapping; the synchronizer is the only
    writer.
    """

    def get_wallet(self, player_id: str) -> Optional[Dict[str, int]]:
        """Return the live wallet for the player, or None if none is attached."""

        ...

    def attach(self, player_id: str, wallet: Dict[str, int]) -> None:
        """Attach (or replace) the wallet for a player."""

        ...

    def discard(self, player_id: str) -> None:
        """Drop the player's wallet, if any."""

        ...

    def player_ids(self) -> List[str]:
        ...


class VariableReplicator(Protocol):
    """
    Host-provided mechanism that pushes a named value to game clients.

    The synchronizer never calls either method for currencies whose
    policy is `SyncPolicy.NONE`.
    """

    def broadcast_variable(self, player_id: str, sync_key: str, value: int) -> None:
        """Publish the player's value under `sync_key` to every connected client."""

        ...

    def send_own_variable(self, player_id: str, sync_key: str, value: int) -> None:
        """Publish the value under `sync_key` to the owning player's client only."""

        ...
