"""
User-facing notifications and prompt state
"""

from .queue import NotificationQueue, Notification, Prompts

__all__ = ["NotificationQueue", "Notification", "Prompts"]
