"""
Operator notifications over Telegram.
"""

import logging
from typing import Optional, Protocol

from aiogram import Bot

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def notify(self, message: str) -> None: ...


class TelegramNotifier:
    """
    Sends HTML messages to a Telegram chat.

    Disabled (every `notify` is a no-op) unless both a bot token and a chat
    id are given. Delivery failures are logged and never raised, so a
    Telegram outage cannot take the dashboard down with it.
    """

    def __init__(
        self, bot_token: Optional[str] = None, chat_id: Optional[str] = None
    ) -> None:
        self._bot: Bot | None = None
        self._chat_id: str | None = None

        if bot_token and chat_id:
            try:
                self._bot = Bot(token=bot_token)
                self._chat_id = chat_id
                logger.info("✅ Telegram notifications enabled")
            except Exception as e:
                logger.warning(f"Failed to setup Telegram bot: {e}")
        else:
            logger.info("ℹ️ Telegram notifications disabled (no credentials)")

    @property
    def enabled(self) -> bool:
        return self._bot is not None

    async def notify(self, message: str) -> None:
        if not self._bot or not self._chat_id:
            return
        try:
            await self._bot.send_message(
                chat_id=self._chat_id, text=message, parse_mode="HTML"
            )
        except Exception as e:
            logger.error(f"Failed to send Telegram notification: {e}")

    async def close(self) -> None:
        if self._bot:
            await self._bot.session.close()
