"""
Chat transport - the only outbound path to Telegram.

Wraps telegram.Bot with the four calls the handlers and the reminder
service need.
"""
import logging
from typing import Any, Optional

from telegram import Bot
from telegram.error import BadRequest

logger = logging.getLogger(__name__)


class TelegramTransport:
    """send_message / edit_message / answer_callback / get_file_link over a Bot."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_message(self, chat_id: int, text: str, keyboard: Any = None):
        """
        Send a message to a Telegram chat.

        Args:
            chat_id: Telegram chat ID
            text: Message text (plain, no parse mode)
            keyboard: Optional reply or inline markup
        """
        try:
            message = await self.bot.send_message(chat_id=chat_id, text=text, reply_markup=keyboard)
            logger.debug(f"Sent message to chat {chat_id}")
            return message
        except Exception as e:
            logger.error(f"Failed to send message to chat {chat_id}: {e}")
            raise

    async def edit_message(self, chat_id: int, message_id: int, text: str, keyboard: Any = None):
        """Replace a message's text and inline keyboard."""
        try:
            return await self.bot.edit_message_text(
                chat_id=chat_id,
                message_id=message_id,
                text=text,
                reply_markup=keyboard,
            )
        except BadRequest as e:
            # Pressing the same filter twice yields identical content
            if "not modified" in str(e).lower():
                return None
            logger.error(f"Failed to edit message {message_id} in chat {chat_id}: {e}")
            raise

    async def answer_callback(self, callback_id: str, text: Optional[str] = None, show_alert: bool = False):
        """Acknowledge a button press (stops the client's spinner)."""
        try:
            await self.bot.answer_callback_query(callback_query_id=callback_id, text=text, show_alert=show_alert)
        except BadRequest as e:
            # Callbacks older than ~15 minutes can no longer be answered
            logger.warning(f"Could not answer callback {callback_id}: {e}")

    async def get_file_link(self, file_id: str) -> Optional[str]:
        """Download URL of an uploaded file."""
        telegram_file = await self.bot.get_file(file_id)
        return telegram_file.file_path
