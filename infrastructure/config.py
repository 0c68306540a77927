from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Tuple

from dotenv import load_dotenv

from application.registry import CurrencyRegistry
from domain.models import Currency, SyncPolicy


logger = logging.getLogger(__name__)

CurrencyDefinition = Tuple[str, str, SyncPolicy]

_POLICY_NAMES = {
    "none": SyncPolicy.NONE,
    "broadcast": SyncPolicy.BROADCAST,
    "everyone": SyncPolicy.BROADCAST,
    "owner_only": SyncPolicy.OWNER_ONLY,
    "owner": SyncPolicy.OWNER_ONLY,
}


@dataclass(frozen=True)
class Settings:
    """Process configuration read from the environment (and `.env`)."""

    telegram_token: Optional[str]
    currencies: List[CurrencyDefinition] = field(default_factory=list)
    admin_ids: FrozenSet[str] = frozenset()
    log_level: str = "INFO"


def parse_sync_policy(text: str) -> SyncPolicy:
    """Accept a policy name (`none`, `broadcast`, `owner_only`) or its numeric code."""

    value = text.strip().lower()
    if value in _POLICY_NAMES:
        return _POLICY_NAMES[value]
    try:
        return SyncPolicy(int(value))
    except ValueError:
        raise ValueError(f"Invalid sync policy: {text!r}") from None


def parse_currency_definitions(text: str) -> List[CurrencyDefinition]:
    """
    Parse a `CURRENCIES` value.

    Format: comma-separated `key:Display Name:policy` entries, e.g.
    `cash:Cash:owner_only,jackpot:Jackpot:broadcast`. Blank entries are
    ignored.
    """

    definitions: List[CurrencyDefinition] = []
    for entry in text.split(","):
        entry = entry.strip()
        if not entry:
            continue

        parts = [part.strip() for part in entry.split(":")]
        if len(parts) != 3 or not parts[0] or not parts[1]:
            raise ValueError(f"Invalid currency definition: {entry!r}")

        key, display_name, policy = parts
        definitions.append((key, display_name, parse_sync_policy(policy)))
    return definitions


def parse_id_list(text: str) -> FrozenSet[str]:
    return frozenset(part.strip() for part in text.split(",") if part.strip())


def load_settings() -> Settings:
    load_dotenv()

    return Settings(
        telegram_token=os.environ.get("TELEGRAM_TOKEN"),
        currencies=parse_currency_definitions(os.environ.get("CURRENCIES", "")),
        admin_ids=parse_id_list(os.environ.get("ADMIN_IDS", "")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


def define_currencies(
    registry: CurrencyRegistry,
    definitions: List[CurrencyDefinition],
) -> List[Currency]:
    """Define every configured currency; any rejected definition aborts startup."""

    defined = []
    for key, display_name, policy in definitions:
        defined.append(registry.define(key, display_name, policy))
    logger.info(f"Defined {len(defined)} currencies from configuration")
    return defined
