"""
RoutingHandler - Routes events to the specialized handlers.

The active dialog sees every event first; whatever it passes on goes to
the first handler that accepts it. Button presses nobody claims belong
to a dialog that is no longer active.
"""
from typing import List, Optional
import logging

from ..base_handler import BaseHandler, IncomingEvent, GENERIC_FAILURE
from .admin_handler import AdminHandler
from .command_handler import CommandHandler
from .dialog_handler import DialogHandler
from .task_handler import TaskHandler

logger = logging.getLogger(__name__)

SESSION_EXPIRED = "Сессия устарела. Начните заново из меню."
UNKNOWN_MESSAGE = "Не понял. Воспользуйтесь меню или /help."


class RoutingHandler(BaseHandler):
    """
    Routes incoming events to specialized handlers.

    Responsibilities:
    - Give the active dialog the first look at every event
    - Delegate to the first handler whose can_handle() accepts the event
    - Answer stale buttons and unknown text
    - Turn unexpected failures into a generic apology
    """

    def __init__(self, transport, conversations, handlers: Optional[List[BaseHandler]] = None):
        super().__init__(transport, conversations)
        self.dialogs = DialogHandler(transport, conversations)
        if handlers is None:
            handlers = [
                CommandHandler(transport, conversations),
                AdminHandler(transport, conversations),
                TaskHandler(transport, conversations),
            ]
        self.handlers = handlers
        self.logger = logging.getLogger("RoutingHandler")

    async def can_handle(self, event: IncomingEvent) -> bool:
        return True

    async def handle(self, event: IncomingEvent) -> bool:
        """
        Route an event.

        Process:
        1. Let the active dialog consume it
        2. Delegate to the first specialized handler that accepts it
        3. Fall back to a hint (text) or an expired-session notice (button)
        """
        async with self.conversations.lock(str(event.user_id)):
            try:
                return await self._route(event)

            except Exception as e:
                self.logger.error(f"Routing error for user {event.user_id}: {e}", exc_info=True)
                try:
                    await self.acknowledge(event)
                    await self.send_error(event, GENERIC_FAILURE)
                except Exception as send_error:
                    self.logger.error(f"Could not report error to {event.user_id}: {send_error}")
                return False

    async def _route(self, event: IncomingEvent) -> bool:
        if await self.dialogs.handle(event):
            return True

        for handler in self.handlers:
            if await handler.can_handle(event):
                self.logger.debug(f"Routing to: {handler.__class__.__name__}")
                if await handler.handle(event):
                    return True

        await self._fallback(event)
        return True

    async def _fallback(self, event: IncomingEvent):
        if event.is_callback:
            await self.acknowledge(event, SESSION_EXPIRED, alert=True)
            return
        if event.photo_file_id:
            # Photos outside the issue dialog are ignored
            return
        await self.reply_with_menu(event, UNKNOWN_MESSAGE)
