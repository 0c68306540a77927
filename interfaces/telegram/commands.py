from __future__ import annotations


def parse_mutation_command(text: str) -> tuple[str, str, int]:
    """
    Parse `/set <player_id> <currency> <amount>` or `/adjust ...`.

    Returns (player_id, currency_key, amount). The command name itself is
    ignored, as is a `@botname` suffix on it.
    """

    parts = text.split()
    if len(parts) != 4:
        raise ValueError(f"Expected <player_id> <currency> <amount>, got: {text}")

    player_id = parts[1]
    key = parts[2]
    try:
        amount = int(parts[3])
    except ValueError:
        raise ValueError(f"Amount must be a whole number: {parts[3]}") from None
    return player_id, key, amount


def parse_currency_argument(text: str) -> str:
    """Parse `/balance <currency>` and return the currency key."""

    parts = text.split()
    if len(parts) != 2:
        raise ValueError(f"Expected <currency>, got: {text}")
    return parts[1]


def format_variable(sync_key: str, value: int) -> str:
    return f"{sync_key} = {value}"
