from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


INVALID_CURRENCY_NAME = "Invalid Currency"
SYNC_KEY_PREFIX = "currency_"


class SyncPolicy(IntEnum):
    """
    How a balance change is replicated to game clients.

    The numeric values match the codes hosts pass when defining currencies:
    0 = kept server-side, 1 = shared with everyone, 2 = shared with the owner.
    """

    NONE = 0
    BROADCAST = 1
    OWNER_ONLY = 2


class UpdateReason(str, Enum):
    SET = "set"
    ADJUST = "adjust"


def make_sync_key(key: str) -> str:
    return f"{SYNC_KEY_PREFIX}{key}"


@dataclass(frozen=True)
class Currency:
    """
    A registered currency definition.

    Instances are created once by the registry and never change afterwards;
    `sync_key` is the channel name balances are replicated under.
    """

    key: str
    display_name: str
    sync_policy: SyncPolicy
    sync_key: str


def is_integer_amount(value: object) -> bool:
    """True for ints, False for bools, floats and everything else."""

    return isinstance(value, int) and not isinstance(value, bool)
