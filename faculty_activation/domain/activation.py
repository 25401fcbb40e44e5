"""
Activation flow controller - Faculty account activation state machine.

This module contains the client-side logic that walks a faculty member
through account activation against the remote Activation Service.

Activation Flow (Forward-Only Transitions)
==========================================

Steps:
- TOKEN: Waiting for the activation token from the invitation email
- OTP: Session open, OTP dispatched to the masked email address
- PASSWORD: OTP verified, set-password token held
- DONE: Terminal state after the password has been set

Valid Transitions (see ``transition``):
    TOKEN -> OTP        (token validated, OTP dispatch attempted)
    OTP -> PASSWORD     (OTP verified)
    PASSWORD -> DONE    (password set)

Failures never move the flow. Every operation catches its own errors,
reports them through the Notifier and returns a StepResult, so a caller
(the screen) only has to render the outcome.
"""

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from .exceptions import ActivationError, FlowStateError, InputValidationError
from .ports import (
    ActivationService,
    ActivationSession,
    ActivationStep,
    FlowEvent,
    Notice,
    NoticeLevel,
    Notifier,
)

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[tuple[ActivationStep, FlowEvent], ActivationStep] = {
    (ActivationStep.TOKEN, FlowEvent.TOKEN_VALIDATED): ActivationStep.OTP,
    (ActivationStep.OTP, FlowEvent.OTP_VERIFIED): ActivationStep.PASSWORD,
    (ActivationStep.PASSWORD, FlowEvent.PASSWORD_SET): ActivationStep.DONE,
}

# What the user still has to do at each step
_PENDING_ACTION = {
    ActivationStep.TOKEN: "Validate token first",
    ActivationStep.OTP: "Verify OTP first",
    ActivationStep.PASSWORD: "Set your password to finish activation",
}

_NON_DIGITS = re.compile(r"[^0-9]")


def transition(step: ActivationStep, event: FlowEvent) -> ActivationStep:
    """
    Apply a flow event to a step.

    Raises:
        FlowStateError: If the event is not valid at this step
    """
    try:
        return _TRANSITIONS[(step, event)]
    except KeyError:
        raise FlowStateError(
            f"Cannot apply {event.value} at step {step.value}"
        ) from None


def sanitize_otp(raw: str, length: int = 6) -> str:
    """Keep ASCII digits only, clamped to ``length`` characters."""
    return _NON_DIGITS.sub("", raw)[:length]


def _is_encodable(value: str) -> bool:
    """True if the value can be sent as UTF-8 (no lone surrogates)."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


@dataclass
class FlowSecrets:
    """Short-lived values carried between steps. Never persisted."""

    session: ActivationSession | None = None
    set_password_token: str | None = None

    def clear(self) -> None:
        self.session = None
        self.set_password_token = None


@dataclass(frozen=True)
class StepResult:
    """Outcome of one flow operation, as shown to the user."""

    ok: bool
    step: ActivationStep
    message: str
    error: ActivationError | None = None


@dataclass
class ActivationFlow:
    """
    Controller for one activation screen instance.

    Owns the flow step and the in-memory secrets for the lifetime of the
    screen. Not reusable: once DONE (or disposed) a new flow is required
    to activate another account.
    """

    service: ActivationService
    notifier: Notifier
    otp_length: int = 6
    min_password_length: int = 6
    prefilled_token: str | None = None

    step: ActivationStep = field(default=ActivationStep.TOKEN, init=False)
    last_error: ActivationError | None = field(default=None, init=False)
    _secrets: FlowSecrets = field(default_factory=FlowSecrets, init=False, repr=False)
    _busy: bool = field(default=False, init=False)
    _closed: bool = field(default=False, init=False)

    @property
    def session(self) -> ActivationSession | None:
        return self._secrets.session

    @property
    def session_id(self) -> str | None:
        session = self._secrets.session
        return session.session_id if session else None

    @property
    def email_masked(self) -> str | None:
        session = self._secrets.session
        return session.email_masked if session else None

    @property
    def expires_at(self) -> datetime | None:
        session = self._secrets.session
        return session.expires_at if session else None

    @property
    def has_set_password_token(self) -> bool:
        return bool(self._secrets.set_password_token)

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def finished(self) -> bool:
        return self.step is ActivationStep.DONE

    @property
    def closed(self) -> bool:
        return self._closed

    async def validate_token(self, token: str) -> StepResult:
        """
        Validate the activation token, then dispatch the first OTP.

        The OTP dispatch is chained automatically. The flow advances to
        OTP once the dispatch attempt completes, even if it failed; that
        failure is reported separately and the user can resend.

        Args:
            token: Activation token pasted or deep-linked by the user

        Returns:
            StepResult; on failure the flow stays at TOKEN
        """
        return await self._run("Validate failed", self._validate_token, token)

    async def send_otp(self, session_id: str | None = None) -> StepResult:
        """
        Dispatch (or re-dispatch) an OTP to the session's email.

        Falls back to the session held by the flow when no id is given.
        Never changes the step. No cooldown is applied client-side.
        """
        return await self._run("Send OTP failed", self._send_otp, session_id)

    async def verify_otp(self, otp: str) -> StepResult:
        """
        Verify the OTP entered by the user.

        Non-digits are stripped and the value clamped before checking its
        length; a short OTP is rejected without calling the service.
        """
        return await self._run("Verify failed", self._verify_otp, otp)

    async def set_password(self, new_password: str, confirm_password: str) -> StepResult:
        """
        Set the account password and finish activation.

        Weak or mismatched passwords are rejected without calling the
        service. On success the flow is DONE and all secrets are dropped.
        """
        return await self._run(
            "Set password failed", self._set_password, new_password, confirm_password
        )

    def dispose(self) -> None:
        """Screen unmount. Drops secrets; the flow cannot be used again."""
        self._closed = True
        self._secrets.clear()
        logger.debug("Activation flow disposed at step %s", self.step.value)

    async def _run(
        self,
        failure_title: str,
        operation: Callable[..., Awaitable[str]],
        *args: str | None,
    ) -> StepResult:
        try:
            self._ensure_available()
        except FlowStateError as exc:
            return self._fail(failure_title, exc)

        self.last_error = None
        self._busy = True
        try:
            message = await operation(*args)
        except ActivationError as exc:
            return self._fail(failure_title, exc)
        finally:
            self._busy = False

        return StepResult(ok=True, step=self.step, message=message)

    async def _validate_token(self, token: str) -> str:
        self._require_step(ActivationStep.TOKEN)
        token = token.strip()
        if not token:
            raise InputValidationError("Paste activation token", field="token")
        if not _is_encodable(token):
            raise InputValidationError("Activation token contains invalid characters", field="token")

        session = await self.service.validate_token(token)
        self._ensure_open()
        self._secrets.session = session
        logger.info("Activation session created for %s", session.email_masked)

        message = f"Session created for {session.email_masked}"
        self._notify_info("Validated", message)

        await self._dispatch_otp(session.session_id)
        self._ensure_open()
        self._apply(FlowEvent.TOKEN_VALIDATED)
        return message

    async def _dispatch_otp(self, session_id: str) -> None:
        # Chained from token validation: report service failures, never raise them.
        # A closed flow still aborts validation and is reported once by _run.
        try:
            await self._send_otp(session_id)
        except FlowStateError:
            raise
        except ActivationError as exc:
            self._fail("Send OTP failed", exc)

    async def _send_otp(self, session_id: str | None) -> str:
        if self.step is ActivationStep.PASSWORD:
            raise FlowStateError("OTP already verified")
        session_id = session_id or self.session_id
        if not session_id:
            raise InputValidationError(
                "Validate token first (session id not found)",
                field="activation_session_id",
            )

        await self.service.send_otp(session_id)
        self._ensure_open()

        message = f"Check email: {self.email_masked or 'faculty inbox'}"
        self._notify_info("OTP sent", message)
        return message

    async def _verify_otp(self, otp: str) -> str:
        self._require_step(ActivationStep.OTP)
        otp = sanitize_otp(otp, self.otp_length)
        if len(otp) < self.otp_length:
            raise InputValidationError(
                f"Enter the complete {self.otp_length}-digit OTP", field="otp"
            )

        set_password_token = await self.service.verify_otp(self.session_id, otp)
        self._ensure_open()
        self._secrets.set_password_token = set_password_token
        self._apply(FlowEvent.OTP_VERIFIED)

        message = "Now set your password"
        self._notify_info("OTP Verified", message)
        return message

    async def _set_password(self, new_password: str, confirm_password: str) -> str:
        self._require_step(ActivationStep.PASSWORD)
        if len(new_password) < self.min_password_length:
            raise InputValidationError(
                f"Enter minimum {self.min_password_length} characters",
                field="new_password",
            )
        if new_password != confirm_password:
            raise InputValidationError("Passwords do not match", field="confirm_password")
        if not _is_encodable(new_password):
            raise InputValidationError("Password contains invalid characters", field="new_password")

        await self.service.set_password(self._secrets.set_password_token, new_password)
        self._ensure_open()
        self._apply(FlowEvent.PASSWORD_SET)
        self._secrets.clear()

        message = "Password set. Please login now."
        self._notify_info("Activated", message)
        return message

    def _apply(self, event: FlowEvent) -> None:
        self.step = transition(self.step, event)
        logger.info("Activation flow moved to %s", self.step.value)

    def _ensure_open(self) -> None:
        if self._closed:
            raise FlowStateError("Activation flow closed")

    def _ensure_available(self) -> None:
        self._ensure_open()
        if self.step is ActivationStep.DONE:
            raise FlowStateError("Activation already completed")
        if self._busy:
            raise FlowStateError("Request already in progress")

    def _require_step(self, expected: ActivationStep) -> None:
        if self.step is not expected:
            raise FlowStateError(_PENDING_ACTION[self.step])

    def _notify_info(self, title: str, message: str) -> None:
        self.notifier.notify(Notice(level=NoticeLevel.INFO, title=title, message=message))

    def _fail(self, title: str, exc: ActivationError) -> StepResult:
        self.last_error = exc
        logger.info(
            "Activation step failed at %s (%s): %s",
            self.step.value,
            type(exc).__name__,
            exc.message,
        )
        self.notifier.notify(Notice(level=NoticeLevel.ERROR, title=title, message=exc.message))
        return StepResult(ok=False, step=self.step, message=exc.message, error=exc)
