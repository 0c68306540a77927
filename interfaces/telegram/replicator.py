from __future__ import annotations

import logging
from typing import Dict, List, Tuple

import requests
import telebot

from domain.repositories import VariableReplicator
from interfaces.telegram.commands import format_variable


logger = logging.getLogger(__name__)


class TelegramVariableReplicator(VariableReplicator):
    """
    Replicates balances as Telegram messages.

    Each joined player is a "connected client" identified by their chat.
    Broadcast values go to every connected chat, prefixed with the owning
    player's name; owner-only values go to the owner's chat alone.
    """

    def __init__(self, bot: telebot.TeleBot) -> None:
        self._bot = bot
        # player_id -> (chat_id, display name)
        self._sessions: Dict[str, Tuple[int, str]] = {}

    def connect(self, player_id: str, chat_id: int, name: str) -> None:
        self._sessions[player_id] = (chat_id, name)

    def disconnect(self, player_id: str) -> None:
        self._sessions.pop(player_id, None)

    def connected_players(self) -> List[str]:
        return list(self._sessions)

    def broadcast_variable(self, player_id: str, sync_key: str, value: int) -> None:
        owner_name = self._sessions.get(player_id, (None, player_id))[1]
        text = f"{owner_name}: {format_variable(sync_key, value)}"
        for chat_id, _ in list(self._sessions.values()):
            self._send(chat_id, text)

    def send_own_variable(self, player_id: str, sync_key: str, value: int) -> None:
        session = self._sessions.get(player_id)
        if session is None:
            logger.debug(f"Player {player_id} has no chat; skipping {sync_key}")
            return
        self._send(session[0], format_variable(sync_key, value))

    def _send(self, chat_id: int, text: str) -> None:
        # Delivery failures are logged, never raised to the synchronizer.
        try:
            self._bot.send_message(chat_id, text)
        except (telebot.apihelper.ApiException, requests.exceptions.RequestException) as exc:
            logger.warning(f"Could not deliver {text!r} to chat {chat_id}: {exc}")
