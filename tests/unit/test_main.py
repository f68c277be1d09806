"""
Unit tests for the FastAPI endpoints.
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from taskbot import main


def json_request(payload):
    request = MagicMock()
    request.json = AsyncMock(return_value=payload)
    return request


class TestHealth:

    @pytest.mark.asyncio
    async def test_reports_services(self):
        database = MagicMock()
        database.health_check = AsyncMock(return_value={"status": "healthy"})
        scheduler = MagicMock()
        scheduler.get_job_status.return_value = {"deadline_reminders": {"name": "Deadline Reminders"}}

        with patch.object(main, "get_database", return_value=database), \
             patch.object(main, "get_scheduler_manager", return_value=scheduler):
            body = await main.health_check()

        assert body["status"] == "healthy"
        assert body["services"]["database"] == "healthy"
        assert "deadline_reminders" in body["services"]["jobs"]

    @pytest.mark.asyncio
    async def test_database_error(self):
        database = MagicMock()
        database.health_check = AsyncMock(side_effect=RuntimeError("down"))

        with patch.object(main, "get_database", return_value=database), \
             patch.object(main, "get_scheduler_manager", return_value=MagicMock()):
            body = await main.health_check()

        assert body["services"]["database"] == "error"


class TestWebhook:

    @pytest.mark.asyncio
    async def test_bot_not_ready(self):
        with patch.object(main, "_telegram_bot", None):
            response = await main.telegram_webhook(json_request({"update_id": 1}))
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_update_processed_in_background(self):
        bot = MagicMock()
        bot.process_webhook_update = AsyncMock()

        with patch.object(main, "_telegram_bot", bot):
            body = await main.telegram_webhook(json_request({"update_id": 7}))
            await asyncio.sleep(0)

        assert body == {"ok": True}
        bot.process_webhook_update.assert_awaited_once_with({"update_id": 7})

    @pytest.mark.asyncio
    async def test_bad_payload_still_200(self):
        request = MagicMock()
        request.json = AsyncMock(side_effect=ValueError("not json"))

        response = await main.telegram_webhook(request)

        assert response.status_code == 200
