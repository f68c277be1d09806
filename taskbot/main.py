"""
Task Bot - Main Application Entry Point

FastAPI application with the Telegram webhook endpoint and the reminder
scheduler. Without a public webhook URL the bot falls back to long polling.
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import settings
from .bot.session_manager import ConversationStore, create_conversation_store
from .bot.telegram import TelegramBot
from .database import close_database, get_database, init_database
from .database.repositories import get_role_repository
from .scheduler import get_reminder_service, get_scheduler_manager

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

_conversations: Optional[ConversationStore] = None
_telegram_bot: Optional[TelegramBot] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown."""
    global _conversations, _telegram_bot

    logger.info(f"Starting {settings.app_name}...")

    try:
        if await init_database():
            logger.info("PostgreSQL database initialized")
            await get_role_repository().ensure_default_roles()
        else:
            logger.warning("PostgreSQL not configured or failed to initialize")
    except Exception as e:
        logger.warning(f"PostgreSQL init failed: {e}")

    _conversations = await create_conversation_store(settings.redis_url, settings.conversation_ttl_seconds)

    try:
        _telegram_bot = TelegramBot(_conversations)
        await _telegram_bot.initialize()
        if _telegram_bot.webhook_url:
            await _telegram_bot.set_webhook()
        else:
            await _telegram_bot.start_polling()
    except Exception as e:
        logger.error(f"Telegram bot failed to start: {e}", exc_info=True)

    try:
        get_reminder_service(_telegram_bot.transport if _telegram_bot else None)
        get_scheduler_manager().start()
    except Exception as e:
        logger.error(f"Scheduler failed to start: {e}", exc_info=True)

    logger.info(f"{settings.app_name} started successfully!")

    yield

    logger.info(f"Shutting down {settings.app_name}...")

    try:
        get_scheduler_manager().stop()
    except Exception as e:
        logger.warning(f"Failed to stop scheduler during shutdown: {e}")

    if _telegram_bot:
        try:
            await _telegram_bot.stop()
        except Exception as e:
            logger.warning(f"Failed to stop Telegram bot during shutdown: {e}")

    if _conversations:
        try:
            await _conversations.close()
        except Exception as e:
            logger.warning(f"Failed to close conversation store during shutdown: {e}")

    try:
        await close_database()
    except Exception as e:
        logger.warning(f"Failed to close database during shutdown: {e}")

    logger.info("Shutdown complete")


app = FastAPI(
    title="Task Bot",
    description="Telegram task management bot with natural-language deadlines",
    version="1.0.0",
    lifespan=lifespan
)


@app.get("/health")
async def health_check():
    """Health check with database and scheduler status."""
    db_health = {"status": "not_configured"}
    try:
        db_health = await get_database().health_check()
    except Exception as e:
        db_health = {"status": "error", "error": str(e)}

    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "services": {
            "telegram": bool(settings.telegram_bot_token),
            "redis": bool(settings.redis_url),
            "database": db_health.get("status", "unknown"),
            "jobs": get_scheduler_manager().get_job_status(),
        }
    }


@app.post("/webhook/telegram")
async def telegram_webhook(request: Request):
    """
    Telegram webhook endpoint.

    Updates are processed in the background so Telegram gets its answer
    before the handlers finish.
    """
    try:
        update_data = await request.json()
        update_id = update_data.get("update_id")
        logger.debug(f"Received Telegram update: {update_id}")

        if _telegram_bot is None:
            return JSONResponse(status_code=503, content={"ok": False, "error": "bot not ready"})

        async def process_in_background():
            try:
                await _telegram_bot.process_webhook_update(update_data)
            except Exception as e:
                logger.error(f"Background processing error for update {update_id}: {e}", exc_info=True)

        asyncio.create_task(process_in_background())
        return {"ok": True}

    except Exception as e:
        logger.error(f"Error processing Telegram webhook: {e}")
        return JSONResponse(
            status_code=200,  # 200 stops Telegram from retrying
            content={"ok": False, "error": str(e)}
        )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )


def run():
    import uvicorn
    uvicorn.run(
        "taskbot.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )


if __name__ == "__main__":
    run()
