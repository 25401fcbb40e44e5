"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from faculty_activation.domain.ports import ActivationStep, NoticeLevel


class CreateFlowRequest(BaseModel):
    """Request model for mounting an activation screen."""

    token: str | None = Field(
        None,
        max_length=4096,
        description="Deep-linked activation token used to prefill the token step",
    )


class ValidateTokenRequest(BaseModel):
    """Request model for token validation."""

    token: str | None = Field(
        None,
        max_length=4096,
        description="Activation token; the deep-linked token is used when omitted",
    )


class VerifyOtpRequest(BaseModel):
    """Request model for OTP verification."""

    otp: str = Field(
        ...,
        max_length=64,
        description="OTP as typed; non-digits are stripped and the value clamped to 6 digits",
    )


class SetPasswordRequest(BaseModel):
    """Request model for setting the account password."""

    new_password: str = Field(..., max_length=128, description="New password (min 6 characters)")
    confirm_password: str = Field(..., max_length=128, description="Must equal new_password")


class NoticeModel(BaseModel):
    """Transient notice for the screen to show as a toast."""

    level: NoticeLevel
    title: str
    message: str


class FlowStateResponse(BaseModel):
    """What the activation screen renders."""

    flow_id: str
    step: ActivationStep
    session_hint: str | None = Field(
        None, description="First characters of the activation session id, for confirmation"
    )
    email_masked: str | None = None
    expires_at: datetime | None = None
    busy: bool = False
    prefilled_token: str | None = None
    notices: list[NoticeModel] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
