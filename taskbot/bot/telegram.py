"""
Telegram bot - converts updates into events for the routing handler.

Text, commands, photos and inline button presses all end up in
RoutingHandler.handle() as an IncomingEvent.
"""

import logging
from typing import Any, Optional
from telegram import Bot, Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from config import settings
from .base_handler import IncomingEvent
from .handlers import RoutingHandler
from .session_manager import ConversationStore
from .transport import TelegramTransport

logger = logging.getLogger(__name__)


def event_from_update(update: Update) -> Optional[IncomingEvent]:
    """Reduce a Telegram update to an IncomingEvent (None for updates we ignore)."""
    user = update.effective_user
    chat = update.effective_chat
    if user is None or chat is None:
        return None

    event = IncomingEvent(
        user_id=user.id,
        chat_id=chat.id,
        username=user.username,
        first_name=user.first_name,
    )

    query = update.callback_query
    if query is not None:
        event.callback_id = query.id
        event.callback_data = query.data or ""
        if query.message is not None:
            event.message_id = query.message.message_id
        return event

    message = update.effective_message
    if message is None:
        return None

    if message.photo:
        # Largest size comes last
        event.photo_file_id = message.photo[-1].file_id
        event.text = message.caption or ""
    else:
        event.text = message.text or ""
    event.message_id = message.message_id
    return event


class TelegramBot:
    """
    Telegram application wired to the routing handler.

    Webhook mode feeds updates through process_webhook_update(); polling
    mode is used when no public webhook URL is configured.
    """

    def __init__(self, conversations: ConversationStore, token: Optional[str] = None):
        self.token = token or settings.telegram_bot_token
        self.webhook_url = f"{settings.webhook_base_url}/webhook/telegram" if settings.webhook_base_url else ""
        self.conversations = conversations

        self.app: Optional[Application] = None
        self.transport: Optional[TelegramTransport] = None
        self.router: Optional[RoutingHandler] = None
        self._polling = False

    async def initialize(self) -> None:
        """Build the application and the handler chain."""
        if not self.token:
            logger.error("Telegram bot token not configured")
            return

        self.app = Application.builder().token(self.token).build()
        self.transport = TelegramTransport(self.app.bot)
        self.router = RoutingHandler(self.transport, self.conversations)

        self.app.add_handler(CallbackQueryHandler(self._handle_update))
        self.app.add_handler(MessageHandler(filters.PHOTO, self._handle_update))
        self.app.add_handler(MessageHandler(filters.TEXT, self._handle_update))
        self.app.add_error_handler(self._handle_error)

        # Required for v20+
        await self.app.initialize()
        logger.info("Telegram bot initialized")

    async def _handle_update(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        event = event_from_update(update)
        if event is None:
            return
        await self.router.handle(event)

    async def _handle_error(self, update: Any, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error(f"Unhandled error in update handler: {context.error}", exc_info=context.error)

    async def process_webhook_update(self, update_data: dict) -> None:
        """Process a webhook payload."""
        if not self.app:
            await self.initialize()
        if not self.app:
            return

        update = Update.de_json(update_data, self.app.bot)
        await self.app.process_update(update)

    async def set_webhook(self) -> bool:
        """Register the webhook URL with Telegram."""
        if not self.token or not self.webhook_url:
            return False

        try:
            bot = self.app.bot if self.app else Bot(self.token)
            await bot.set_webhook(url=self.webhook_url)
            logger.info(f"Webhook set: {self.webhook_url}")
            return True
        except Exception as e:
            logger.error(f"Webhook error: {e}")
            return False

    async def start_polling(self) -> None:
        """Run long polling inside the current event loop."""
        if not self.app:
            await self.initialize()
        if not self.app:
            return

        await self.app.bot.delete_webhook()
        await self.app.start()
        await self.app.updater.start_polling(allowed_updates=Update.ALL_TYPES)
        self._polling = True
        logger.info("Telegram long polling started")

    async def stop(self) -> None:
        if not self.app:
            return
        if self._polling:
            await self.app.updater.stop()
            await self.app.stop()
            self._polling = False
        await self.app.shutdown()
        logger.info("Telegram bot stopped")
