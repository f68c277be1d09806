"""
Base handler for all bot event handlers.

Provides the inbound event shape, repository and transport access,
admin checks and the shared reply helpers.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Optional
import logging

from config import settings
from ..database.repositories import (
    get_issue_repository,
    get_role_repository,
    get_task_repository,
    get_template_repository,
    get_user_repository,
    get_workspace_repository,
)
from ..models.task import UserView
from .dialogs import DialogEvent, Transition
from .keyboards import main_menu
from .session_manager import ConversationStore


logger = logging.getLogger(__name__)

GENERIC_FAILURE = "❌ Что-то пошло не так. Попробуйте еще раз позже."
NOT_ALLOWED = "Недостаточно прав"
NO_WORKSPACE = "Сначала присоединитесь к рабочему пространству: 🏢 Присоединиться к workspace"
INVALID_INVITE = (
    "Ссылка-приглашение недействительна или устарела. "
    "Попросите у администратора новый код."
)

# Usernames that hint at a phone client get compact lists
MOBILE_MARKERS = ("mobile", "android", "iphone", "ipad")


@dataclass
class IncomingEvent:
    """A Telegram message, button press or photo, reduced to what handlers use."""

    user_id: int
    chat_id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    text: str = ""
    callback_data: str = ""
    callback_id: Optional[str] = None
    message_id: Optional[int] = None
    photo_file_id: Optional[str] = None

    @property
    def is_callback(self) -> bool:
        return self.callback_id is not None

    @property
    def command(self) -> Optional[str]:
        """'/start' for '/start invite_ABC123' (bot mention stripped)."""
        if not self.text.startswith("/"):
            return None
        return self.text.split()[0].split("@")[0].lower()

    @property
    def command_args(self) -> str:
        parts = self.text.split(maxsplit=1)
        return parts[1] if len(parts) > 1 else ""

    def to_dialog_event(self) -> DialogEvent:
        if self.photo_file_id:
            return DialogEvent.photo(self.photo_file_id, self.text)
        if self.is_callback:
            return DialogEvent.button(self.callback_data)
        return DialogEvent.text_message(self.text)


class BaseHandler(ABC):
    """
    Abstract base class for all event handlers.

    Subclasses must implement:
    - can_handle(event) -> bool
    - handle(event) -> bool (True when the event was consumed)
    """

    def __init__(self, transport: Any, conversations: ConversationStore):
        self.transport = transport
        self.conversations = conversations

        # Repositories
        self.user_repo = get_user_repository()
        self.workspace_repo = get_workspace_repository()
        self.role_repo = get_role_repository()
        self.task_repo = get_task_repository()
        self.issue_repo = get_issue_repository()
        self.template_repo = get_template_repository()

        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    async def can_handle(self, event: IncomingEvent) -> bool:
        pass

    @abstractmethod
    async def handle(self, event: IncomingEvent) -> bool:
        pass

    # ==================== PERMISSIONS ====================

    def is_admin(self, event: IncomingEvent) -> bool:
        """ADMIN_TELEGRAM_ID may hold the numeric id or the username."""
        admin = settings.admin_telegram_id.strip().lstrip("@")
        if not admin:
            return False
        if admin == str(event.user_id):
            return True
        return bool(event.username) and admin.lower() == event.username.lower()

    async def get_admin_chat_id(self) -> Optional[int]:
        admin = settings.admin_telegram_id.strip().lstrip("@")
        if not admin:
            return None
        if admin.isdigit():
            return int(admin)
        user = await self.user_repo.get_by_username(admin)
        return user.telegram_id if user else None

    def compact_for(self, username: Optional[str]) -> bool:
        """Whether messages to this user go out in the compact (mobile) form."""
        if settings.compact_output:
            return True
        username = (username or "").lower()
        return any(marker in username for marker in MOBILE_MARKERS)

    def is_compact(self, event: IncomingEvent) -> bool:
        return self.compact_for(event.username)

    async def current_user(self, event: IncomingEvent) -> UserView:
        return await self.user_repo.upsert_by_telegram(event.user_id, event.username, event.first_name)

    # ==================== RESPONSE HELPERS ====================

    async def reply(self, event: IncomingEvent, text: str, keyboard: Any = None):
        await self.transport.send_message(event.chat_id, text, keyboard)

    async def reply_with_menu(self, event: IncomingEvent, text: str):
        await self.reply(event, text, main_menu(self.is_admin(event)))

    async def acknowledge(self, event: IncomingEvent, text: Optional[str] = None, alert: bool = False):
        if event.is_callback:
            await self.transport.answer_callback(event.callback_id, text, show_alert=alert)

    async def send_error(self, event: IncomingEvent, text: str = GENERIC_FAILURE):
        await self.reply(event, text)

    async def best_effort(self, description: str, call: Awaitable) -> bool:
        """Await a secondary step; failures are logged, never raised."""
        try:
            await call
            return True
        except Exception as e:
            self.logger.warning(f"{description} failed: {e}")
            return False

    async def notify_admin(self, text: str, keyboard: Any = None) -> bool:
        chat_id = await self.get_admin_chat_id()
        if chat_id is None:
            self.logger.warning("Admin chat unknown, notification dropped")
            return False
        return await self.best_effort(
            "Admin notification",
            self.transport.send_message(chat_id, text, keyboard),
        )

    # ==================== DIALOGS ====================

    async def start_dialog(self, event: IncomingEvent, transition: Transition):
        """Store the new dialog (replacing any other) and show its first prompt."""
        await self.conversations.set(str(event.user_id), transition.state)
        await self.reply(event, transition.outcome.text, transition.outcome.keyboard)

    async def join_workspace(self, event: IncomingEvent, code: str) -> bool:
        """Bind the user to the workspace with this invite code."""
        workspace = await self.workspace_repo.get_by_invite_code(code)
        if workspace is None:
            await self.reply(event, INVALID_INVITE)
            return False

        user = await self.current_user(event)
        await self.user_repo.set_workspace(user.id, workspace.id)
        self.logger.info(f"User {event.user_id} joined workspace {workspace.id}")
        await self.reply_with_menu(event, f"✅ Присоединились к рабочему пространству: {workspace.name}")
        return True
