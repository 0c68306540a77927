from __future__ import annotations

import logging
from typing import FrozenSet

import telebot

from application.registry import CurrencyRegistry
from application.wallets import WalletSynchronizer
from interfaces.telegram.commands import parse_currency_argument, parse_mutation_command
from interfaces.telegram.replicator import TelegramVariableReplicator


logger = logging.getLogger(__name__)


def _player_id(message) -> str:
    return str(message.from_user.id)


def _player_name(message) -> str:
    user = message.from_user
    name = f"{user.first_name or ''} {user.last_name or ''}".strip()
    return name or user.username or str(user.id)


def create_telegram_bot(
    bot: telebot.TeleBot,
    registry: CurrencyRegistry,
    wallets: WalletSynchronizer,
    replicator: TelegramVariableReplicator,
    admin_ids: FrozenSet[str],
) -> telebot.TeleBot:
    """
    Register the wallet commands on `bot` and return it.

    This module only deals with Telegram concerns: it maps chat sessions to
    the wallet lifecycle hooks and parses command arguments. Balances are
    changed exclusively through `WalletSynchronizer`.
    """

    @bot.message_handler(commands=["start", "help"])
    def handle_help(message):
        bot.send_message(
            message.chat.id,
            "/join                               - join the game with an empty wallet\n"
            "/leave                              - leave the game (wallet is discarded)\n"
            "/wallet                             - show your balances\n"
            "/balance <currency>                 - show one balance\n"
            "/currencies                         - list the available currencies\n"
            "/set <player_id> <currency> <n>     - (admin) set a balance\n"
            "/adjust <player_id> <currency> <n>  - (admin) add to a balance\n",
        )

    @bot.message_handler(commands=["join"])
    def handle_join(message):
        player_id = _player_id(message)
        replicator.connect(player_id, message.chat.id, _player_name(message))
        wallets.on_player_join(player_id)
        bot.send_message(message.chat.id, "You joined the game with an empty wallet.")

    @bot.message_handler(commands=["leave"])
    def handle_leave(message):
        player_id = _player_id(message)
        wallets.on_player_leave(player_id)
        replicator.disconnect(player_id)
        bot.send_message(message.chat.id, "You left the game.")

    @bot.message_handler(commands=["currencies"])
    def handle_currencies(message):
        keys = registry.list_keys()
        if not keys:
            bot.send_message(message.chat.id, "No currencies are defined.")
            return

        lines = [
            f"{key} - {registry.display_name_of(key)} ({registry.sync_policy_of(key).name.lower()})"
            for key in keys
        ]
        bot.send_message(message.chat.id, "\n".join(lines))

    @bot.message_handler(commands=["wallet"])
    def handle_wallet(message):
        player_id = _player_id(message)
        if not wallets.has_wallet(player_id):
            bot.send_message(message.chat.id, "Use /join first.")
            return

        wallet = wallets.get_wallet(player_id)
        if not wallet:
            bot.send_message(message.chat.id, "Your wallet is empty.")
            return

        lines = [f"{registry.display_name_of(key)}: {amount}" for key, amount in wallet.items()]
        bot.send_message(message.chat.id, "\n".join(lines))

    @bot.message_handler(commands=["balance"])
    def handle_balance(message):
        try:
            key = parse_currency_argument(message.text)
        except ValueError:
            bot.send_message(message.chat.id, "Usage: /balance <currency>")
            return

        amount = wallets.get_balance(_player_id(message), key)
        bot.send_message(message.chat.id, f"{registry.display_name_of(key)}: {amount}")

    @bot.message_handler(commands=["set", "adjust"])
    def handle_mutation(message):
        if _player_id(message) not in admin_ids:
            bot.send_message(message.chat.id, "Only admins can change balances.")
            return

        try:
            player_id, key, amount = parse_mutation_command(message.text)
        except ValueError as exc:
            bot.send_message(message.chat.id, str(exc))
            return

        op = message.text.split()[0][1:].split("@")[0]
        if op == "set":
            ok = wallets.set_balance(player_id, key, amount)
        else:
            ok = wallets.adjust_balance(player_id, key, amount)

        if not ok:
            bot.send_message(
                message.chat.id,
                f"Could not {op} {key} for {player_id}: unknown currency or player not in game.",
            )
            return

        logger.info(f"Admin {_player_id(message)} ran {op} {key} {amount} on player {player_id}")
        bot.send_message(
            message.chat.id,
            f"{registry.display_name_of(key)} for {player_id} is now {wallets.get_balance(player_id, key)}.",
        )

    return bot
