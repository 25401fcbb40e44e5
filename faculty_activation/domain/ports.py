"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) the activation flow requires
from infrastructure, together with the value types that cross them.
Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class ActivationStep(str, Enum):
    """
    Activation flow steps.

    Transitions (forward-only):
    - TOKEN -> OTP (token validated, OTP dispatch attempted)
    - OTP -> PASSWORD (OTP verified)
    - PASSWORD -> DONE (password set)

    Terminal State:
    - DONE: Account activated, the flow cannot be reused
    """

    TOKEN = "token"
    OTP = "otp"
    PASSWORD = "password"
    DONE = "done"


class FlowEvent(str, Enum):
    """Successful remote outcomes that move the flow forward."""

    TOKEN_VALIDATED = "token_validated"
    OTP_VERIFIED = "otp_verified"
    PASSWORD_SET = "password_set"


class NoticeLevel(str, Enum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A transient, user-facing notification (toast)."""

    level: NoticeLevel
    title: str
    message: str


@dataclass(frozen=True)
class ActivationSession:
    """Server-issued activation session, held in memory only."""

    session_id: str
    email_masked: str
    expires_at: datetime


class ActivationService(Protocol):
    """Port interface for the remote Activation Service."""

    async def validate_token(self, token: str) -> ActivationSession:
        """
        Validate an activation token and open an activation session.

        Args:
            token: Opaque single-use activation token

        Returns:
            The new ActivationSession

        Raises:
            ServiceRejected: Token invalid, expired or already used
            NetworkFailure: Request did not complete
        """
        ...

    async def send_otp(self, session_id: str) -> None:
        """
        Ask the service to email an OTP for the session.

        Raises:
            ServiceRejected: Session unknown/expired or dispatch refused
            NetworkFailure: Request did not complete
        """
        ...

    async def verify_otp(self, session_id: str, otp: str) -> str:
        """
        Verify a 6-digit OTP against the session.

        Returns:
            Single-use set-password token

        Raises:
            ServiceRejected: OTP invalid or expired
            NetworkFailure: Request did not complete
        """
        ...

    async def set_password(self, set_password_token: str, new_password: str) -> None:
        """
        Set the account password, completing activation.

        Raises:
            ServiceRejected: Token invalid/used or password refused
            NetworkFailure: Request did not complete
        """
        ...


class Notifier(Protocol):
    """Port interface for transient user notifications."""

    def notify(self, notice: Notice) -> None:
        """Show a notice to the user."""
        ...
