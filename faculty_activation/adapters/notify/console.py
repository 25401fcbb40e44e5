"""
Console notifier adapter - Implements Notifier protocol.

This module provides a console-based implementation of the domain's
notifier port. Notices are logged and buffered until the screen drains
them for display as transient toasts.
"""

import logging

from faculty_activation.domain.ports import Notice, NoticeLevel

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """
    Implements Notifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Keeps notices in memory until ``drain()`` hands them to the screen.
    """

    def __init__(self) -> None:
        self._pending: list[Notice] = []

    def notify(self, notice: Notice) -> None:
        """
        Log a notice and queue it for display.

        Error notices are logged at WARNING, everything else at INFO.

        Args:
            notice: Notice produced by the activation flow
        """
        level = logging.WARNING if notice.level is NoticeLevel.ERROR else logging.INFO
        logger.log(level, "[ACTIVATION] %s: %s", notice.title, notice.message)
        self._pending.append(notice)

    def drain(self) -> list[Notice]:
        """Return queued notices, oldest first, and clear the queue."""
        notices, self._pending = self._pending, []
        return notices
