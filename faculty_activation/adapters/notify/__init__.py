"""Notifier adapters - User-facing notices."""

from .console import ConsoleNotifier

__all__ = ["ConsoleNotifier"]
