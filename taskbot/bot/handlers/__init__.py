"""
Bot event handlers.

RoutingHandler is the entry point; it gives the active dialog the first
look and delegates the rest to the specialized handlers.
"""
from .admin_handler import AdminHandler
from .command_handler import CommandHandler
from .dialog_handler import DialogHandler
from .routing_handler import RoutingHandler
from .task_handler import TaskHandler

__all__ = [
    "AdminHandler",
    "CommandHandler",
    "DialogHandler",
    "RoutingHandler",
    "TaskHandler",
]
