"""Telegram task management bot with natural-language deadlines."""

__version__ = "1.0.0"
