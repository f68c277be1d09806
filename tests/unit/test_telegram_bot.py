"""
Unit tests for Telegram update conversion and bot wiring.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from taskbot.bot.telegram import TelegramBot, event_from_update


def make_update(text=None, callback_data=None, photo_ids=None, caption=None, user=True):
    update = MagicMock()
    if user:
        update.effective_user.id = 222
        update.effective_user.username = "bob"
        update.effective_user.first_name = "Bob"
    else:
        update.effective_user = None
    update.effective_chat.id = 222

    if callback_data is not None:
        update.callback_query.id = "cb-9"
        update.callback_query.data = callback_data
        update.callback_query.message.message_id = 77
    else:
        update.callback_query = None

    message = update.effective_message
    message.message_id = 42
    message.text = text
    message.caption = caption
    message.photo = [MagicMock(file_id=file_id) for file_id in (photo_ids or [])]
    return update


class TestEventFromUpdate:

    def test_text(self):
        event = event_from_update(make_update(text="/start invite_ABC234"))
        assert event.user_id == 222
        assert event.chat_id == 222
        assert event.username == "bob"
        assert event.command == "/start"
        assert event.command_args == "invite_ABC234"
        assert event.is_callback is False
        assert event.message_id == 42

    def test_button(self):
        event = event_from_update(make_update(callback_data="task:view:task-1"))
        assert event.is_callback is True
        assert event.callback_id == "cb-9"
        assert event.callback_data == "task:view:task-1"
        assert event.message_id == 77

    def test_photo_takes_largest_size(self):
        event = event_from_update(make_update(photo_ids=["small", "medium", "large"], caption="Кран течет"))
        assert event.photo_file_id == "large"
        assert event.text == "Кран течет"

    def test_without_user(self):
        assert event_from_update(make_update(text="hi", user=False)) is None


class TestTelegramBot:

    @pytest.mark.asyncio
    async def test_no_token(self, conversations):
        with patch("taskbot.bot.telegram.settings") as mock_settings:
            mock_settings.telegram_bot_token = ""
            mock_settings.webhook_base_url = ""
            bot = TelegramBot(conversations)

            await bot.initialize()
            assert bot.app is None
            assert await bot.set_webhook() is False

    def test_webhook_url(self, conversations):
        with patch("taskbot.bot.telegram.settings") as mock_settings:
            mock_settings.telegram_bot_token = "123:abc"
            mock_settings.webhook_base_url = "https://bot.example.com"
            bot = TelegramBot(conversations)

        assert bot.webhook_url == "https://bot.example.com/webhook/telegram"

    @pytest.mark.asyncio
    async def test_updates_reach_router(self, conversations):
        bot = TelegramBot(conversations, token="123:abc")
        bot.router = MagicMock()
        bot.router.handle = AsyncMock(return_value=True)

        await bot._handle_update(make_update(text="привет"), MagicMock())

        event = bot.router.handle.await_args.args[0]
        assert event.text == "привет"
