from __future__ import annotations

from typing import Dict, List, Optional

from domain.repositories import WalletRepository


class InMemoryWalletRepository(WalletRepository):
    """Player ID -> wallet side table. Nothing outlives the process."""

    def __init__(self) -> None:
        self._wallets: Dict[str, Dict[str, int]] = {}

    def get_wallet(self, player_id: str) -> Optional[Dict[str, int]]:
        return self._wallets.get(player_id)

    def attach(self, player_id: str, wallet: Dict[str, int]) -> None:
        self._wallets[player_id] = wallet

    def discard(self, player_id: str) -> None:
        self._wallets.pop(player_id, None)

    def player_ids(self) -> List[str]:
        return list(self._wallets)
