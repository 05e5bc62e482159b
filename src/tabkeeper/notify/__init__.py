"""Notification module for closing-soon warnings and grace grants."""

from tabkeeper.notify.controller import NotificationController

__all__ = ["NotificationController"]
