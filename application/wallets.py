from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any, Dict, Optional

from domain.models import Currency, SyncPolicy, UpdateReason, is_integer_amount
from domain.repositories import VariableReplicator, WalletRepository

from .events import CurrencyUpdated, EventHub, WalletReplaced
from .registry import CurrencyRegistry


logger = logging.getLogger(__name__)


def filter_wallet_entries(
    raw_wallet: Mapping[Any, Any],
    registry: CurrencyRegistry,
) -> Dict[str, int]:
    """
    Keep only the entries of `raw_wallet` that may live in a wallet.

    An entry survives when its key is a registered currency and its value
    is an integer (booleans excluded). Everything else is dropped and
    logged; dropping is never an error. Input order is preserved.
    """

    filtered: Dict[str, int] = {}
    for key, value in raw_wallet.items():
        if not registry.has(key):
            logger.warning(f"Dropping wallet entry {key!r}: not a registered currency")
            continue
        if not is_integer_amount(value):
            logger.warning(
                f"Dropping wallet entry {key!r}: value {value!r} is not an integer"
            )
            continue
        filtered[key] = value
    return filtered


class WalletSynchronizer:
    """
    Holds every player's wallet and applies balance mutations.

    Wallets live in a `WalletRepository` side table keyed by player ID,
    attached by `on_player_join` and dropped by `on_player_leave`. Each
    successful mutation replicates the new balance according to the
    currency's sync policy and then emits a notification on the
    registry's event hub.

    All player-facing operations are soft-failing: bad keys, non-integer
    amounts, malformed input or a player without a wallet make them
    return False (or 0) instead of raising.
    """

    def __init__(
        self,
        registry: CurrencyRegistry,
        wallets: WalletRepository,
        replicator: VariableReplicator,
    ) -> None:
        self._registry = registry
        self._wallets = wallets
        self._replicator = replicator
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # -- lifecycle ---------------------------------------------------------

    def on_player_join(self, player_id: str) -> None:
        """Attach an empty wallet. Joining again resets the wallet."""

        with self._locks_guard:
            lock = self._locks.setdefault(player_id, threading.Lock())
        with lock:
            self._wallets.attach(player_id, {})
        logger.debug(f"Attached empty wallet to player {player_id}")

    def on_player_leave(self, player_id: str) -> None:
        # The lock is kept so a later join reuses it.
        lock = self._player_lock(player_id)
        if lock is None:
            self._wallets.discard(player_id)
        else:
            with lock:
                self._wallets.discard(player_id)
        logger.debug(f"Discarded wallet of player {player_id}")

    def has_wallet(self, player_id: str) -> bool:
        return self._wallets.get_wallet(player_id) is not None

    def _player_lock(self, player_id: str) -> Optional[threading.Lock]:
        """Lock of a player that has joined at least once, else None."""

        with self._locks_guard:
            return self._locks.get(player_id)

    # -- reads -------------------------------------------------------------

    def get_wallet(self, player_id: str) -> Dict[str, int]:
        """Snapshot copy of the player's wallet (empty if none is attached)."""

        wallet = self._wallets.get_wallet(player_id)
        return dict(wallet) if wallet is not None else {}

    def get_balance(self, player_id: str, key: str) -> int:
        wallet = self._wallets.get_wallet(player_id)
        if wallet is None:
            return 0
        return wallet.get(key, 0)

    # -- mutations ---------------------------------------------------------

    def replace_wallet(self, player_id: str, new_balances: Any) -> bool:
        """
        Replace the player's whole wallet with the valid part of `new_balances`.

        Returns False without touching anything when `new_balances` is not a
        mapping or the player has no wallet. Otherwise invalid entries are
        dropped, the filtered mapping becomes the wallet, every surviving
        balance is replicated, `WalletReplaced` is emitted and True is
        returned even if entries were dropped.
        """

        if not isinstance(new_balances, Mapping):
            logger.warning(
                f"Rejected wallet replacement for player {player_id}: "
                f"expected a mapping, got {type(new_balances).__name__}"
            )
            return False

        lock = self._player_lock(player_id)
        if lock is None:
            logger.warning(f"Rejected wallet replacement: player {player_id} never joined")
            return False

        with lock:
            old_wallet = self._wallets.get_wallet(player_id)
            if old_wallet is None:
                logger.warning(f"Rejected wallet replacement: player {player_id} has no wallet")
                return False

            replacement = filter_wallet_entries(new_balances, self._registry)
            dropped = len(new_balances) - len(replacement)
            self._wallets.attach(player_id, replacement)

            for key, amount in replacement.items():
                self._replicate(player_id, self._registry.get(key), amount)

            snapshot = dict(replacement)

        if dropped:
            logger.info(f"Replaced wallet of player {player_id}, dropped {dropped} invalid entries")
        else:
            logger.debug(f"Replaced wallet of player {player_id}")

        self._registry.events.emit(
            WalletReplaced(
                player_id=player_id,
                old_wallet=dict(old_wallet),
                new_wallet=snapshot,
            )
        )
        return True

    def set_balance(self, player_id: str, key: str, new_amount: Any) -> bool:
        """Overwrite one balance. Emits `CurrencyUpdated` with reason "set"."""

        return self._mutate(player_id, key, new_amount, UpdateReason.SET)

    def adjust_balance(self, player_id: str, key: str, delta: Any) -> bool:
        """
        Add `delta` to one balance; a missing balance counts as 0.

        No floor is enforced, so balances may go negative. Emits
        `CurrencyUpdated` with reason "adjust".
        """

        return self._mutate(player_id, key, delta, UpdateReason.ADJUST)

    def _mutate(self, player_id: str, key: str, value: Any, reason: UpdateReason) -> bool:
        currency = self._registry.get(key)
        if currency is None or not is_integer_amount(value):
            logger.warning(
                f"Rejected {reason.value} of {key!r} for player {player_id}: "
                f"unknown currency or non-integer amount {value!r}"
            )
            return False

        lock = self._player_lock(player_id)
        if lock is None:
            logger.warning(f"Rejected {reason.value} of {key!r}: player {player_id} never joined")
            return False

        with lock:
            wallet = self._wallets.get_wallet(player_id)
            if wallet is None:
                logger.warning(f"Rejected {reason.value} of {key!r}: player {player_id} has no wallet")
                return False

            old_amount = wallet.get(key, 0)
            if reason is UpdateReason.SET:
                new_amount = value
            else:
                new_amount = old_amount + value
            wallet[key] = new_amount
            self._replicate(player_id, currency, new_amount)

        logger.debug(
            f"Player {player_id} {currency.key}: {old_amount} -> {new_amount} ({reason.value})"
        )
        self._registry.events.emit(
            CurrencyUpdated(
                player_id=player_id,
                key=key,
                old_amount=old_amount,
                new_amount=new_amount,
                reason=reason,
            )
        )
        return True

    def _replicate(self, player_id: str, currency: Optional[Currency], amount: int) -> None:
        if currency is None:
            return
        if currency.sync_policy is SyncPolicy.BROADCAST:
            self._replicator.broadcast_variable(player_id, currency.sync_key, amount)
        elif currency.sync_policy is SyncPolicy.OWNER_ONLY:
            self._replicator.send_own_variable(player_id, currency.sync_key, amount)
