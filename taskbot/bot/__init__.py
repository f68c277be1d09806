"""Telegram bot: transport, conversation store, dialogs and handlers."""

from .session_manager import ConversationStore, create_conversation_store
from .telegram import TelegramBot, event_from_update
from .transport import TelegramTransport

__all__ = [
    "ConversationStore",
    "create_conversation_store",
    "TelegramBot",
    "event_from_update",
    "TelegramTransport",
]
