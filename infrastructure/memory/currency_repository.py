from __future__ import annotations

from typing import Dict, List, Optional

from domain.models import Currency
from domain.repositories import CurrencyRepository


class InMemoryCurrencyRepository(CurrencyRepository):
    """
    Process-lifetime store of currency definitions.

    Backed by a plain dict, so `keys()` comes back in definition order.
    """

    def __init__(self) -> None:
        self._currencies: Dict[str, Currency] = {}

    def get(self, key: str) -> Optional[Currency]:
        return self._currencies.get(key)

    def contains(self, key: str) -> bool:
        return key in self._currencies

    def add(self, currency: Currency) -> None:
        self._currencies[currency.key] = currency

    def keys(self) -> List[str]:
        return list(self._currencies)
