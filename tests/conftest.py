"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A mocked Activation Service port
- A real ConsoleNotifier to observe notices
- An ActivationFlow wired to both
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from faculty_activation.adapters.notify.console import ConsoleNotifier
from faculty_activation.domain.activation import ActivationFlow
from faculty_activation.domain.ports import ActivationService, ActivationSession

SESSION = ActivationSession(
    session_id="sess-1",
    email_masked="f***@inst.edu",
    expires_at=datetime(2026, 1, 1, 12, 10, tzinfo=timezone.utc),
)


@pytest.fixture
def session() -> ActivationSession:
    return SESSION


@pytest.fixture
def service() -> AsyncMock:
    """Activation Service mock that accepts every request."""
    mock = AsyncMock(spec=ActivationService)
    mock.validate_token.return_value = SESSION
    mock.send_otp.return_value = None
    mock.verify_otp.return_value = "spt-99"
    mock.set_password.return_value = None
    return mock


@pytest.fixture
def notifier() -> ConsoleNotifier:
    return ConsoleNotifier()


@pytest.fixture
def flow(service: AsyncMock, notifier: ConsoleNotifier) -> ActivationFlow:
    return ActivationFlow(service=service, notifier=notifier)
