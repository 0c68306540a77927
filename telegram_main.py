import logging

import telebot

from application.events import CurrencyDefined, CurrencyUpdated, EventHub, WalletReplaced
from application.registry import CurrencyRegistry
from application.wallets import WalletSynchronizer
from infrastructure.config import define_currencies, load_settings
from infrastructure.memory.currency_repository import InMemoryCurrencyRepository
from infrastructure.memory.wallet_repository import InMemoryWalletRepository
from interfaces.telegram.handlers import create_telegram_bot
from interfaces.telegram.replicator import TelegramVariableReplicator


logger = logging.getLogger(__name__)


def _log_event(event) -> None:
    logger.info(f"{type(event).__name__}: {event}")


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not settings.telegram_token:
        raise RuntimeError("TELEGRAM_TOKEN environment variable is not set.")

    events = EventHub()
    for event_type in (CurrencyDefined, WalletReplaced, CurrencyUpdated):
        events.subscribe(event_type, _log_event)

    registry = CurrencyRegistry(InMemoryCurrencyRepository(), events)
    define_currencies(registry, settings.currencies)

    bot = telebot.TeleBot(settings.telegram_token)
    replicator = TelegramVariableReplicator(bot)
    wallets = WalletSynchronizer(registry, InMemoryWalletRepository(), replicator)

    create_telegram_bot(bot, registry, wallets, replicator, settings.admin_ids)
    logger.info("Telegram bot polling")
    bot.infinity_polling()


if __name__ == "__main__":
    main()
