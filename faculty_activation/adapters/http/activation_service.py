"""
HTTP Activation Service adapter - Implements ActivationService protocol.

This module talks to the remote Activation Service over HTTPS/JSON using
an httpx.AsyncClient, and translates HTTP outcomes into domain errors:

- Non-2xx response: ServiceRejected, with the response's ``detail`` string
  when present, otherwise a per-step fallback message
- Transport failure (connect error, timeout, ...): NetworkFailure
- 2xx with an unusable body: ServiceRejected("Unexpected response from server")

Tokens, OTPs and passwords are never logged.
"""

import logging
from datetime import datetime
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, Field, ValidationError

from faculty_activation.config.settings import Settings
from faculty_activation.domain.exceptions import NetworkFailure, ServiceRejected
from faculty_activation.domain.ports import ActivationSession

logger = logging.getLogger(__name__)

VALIDATE_PATH = "/faculty/activation/validate"
SEND_OTP_PATH = "/faculty/activation/send-otp"
VERIFY_OTP_PATH = "/faculty/activation/verify-otp"
SET_PASSWORD_PATH = "/faculty/activation/set-password"

UNEXPECTED_RESPONSE = "Unexpected response from server"
NETWORK_ERROR = "Unable to connect to server"

_ResponseModel = TypeVar("_ResponseModel", bound=BaseModel)


class ValidateTokenResponse(BaseModel):
    """Body of a successful token validation."""

    activation_session_id: str = Field(..., min_length=1)
    email_masked: str
    expires_at: datetime


class VerifyOtpResponse(BaseModel):
    """Body of a successful OTP verification."""

    set_password_token: str = Field(..., min_length=1)


class HttpActivationService:
    """
    Implements ActivationService protocol via httpx.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The client is expected to carry the service base URL and timeout;
    use ``from_settings`` to build one from configuration.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpActivationService":
        client = httpx.AsyncClient(
            base_url=settings.activation_api_base_url,
            timeout=settings.request_timeout_seconds,
            headers={"Accept": "application/json"},
        )
        return cls(client)

    async def validate_token(self, token: str) -> ActivationSession:
        response = await self._request(
            "GET", VALIDATE_PATH, fallback="Invalid token", params={"token": token}
        )
        body = _parse(ValidateTokenResponse, response)
        return ActivationSession(
            session_id=body.activation_session_id,
            email_masked=body.email_masked,
            expires_at=body.expires_at,
        )

    async def send_otp(self, session_id: str) -> None:
        await self._request(
            "POST",
            SEND_OTP_PATH,
            fallback="Failed to send OTP",
            json={"activation_session_id": session_id},
        )

    async def verify_otp(self, session_id: str, otp: str) -> str:
        response = await self._request(
            "POST",
            VERIFY_OTP_PATH,
            fallback="Invalid OTP",
            json={"activation_session_id": session_id, "otp": otp},
        )
        return _parse(VerifyOtpResponse, response).set_password_token

    async def set_password(self, set_password_token: str, new_password: str) -> None:
        await self._request(
            "POST",
            SET_PASSWORD_PATH,
            fallback="Failed to set password",
            json={"set_password_token": set_password_token, "new_password": new_password},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpActivationService":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def _request(
        self, method: str, path: str, *, fallback: str, **kwargs: Any
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning(
                "Activation Service unreachable: %s %s (%s)", method, path, type(exc).__name__
            )
            raise NetworkFailure(NETWORK_ERROR) from exc

        if response.is_success:
            return response

        logger.info("Activation Service rejected %s %s: %d", method, path, response.status_code)
        raise ServiceRejected(_error_detail(response) or fallback, response.status_code)


def _error_detail(response: httpx.Response) -> str | None:
    """Return the ``detail`` string of an error body, if it has one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    detail = body.get("detail")
    if isinstance(detail, str) and detail.strip():
        return detail
    return None


def _parse(model: type[_ResponseModel], response: httpx.Response) -> _ResponseModel:
    try:
        return model.model_validate_json(response.content)
    except ValidationError as exc:
        logger.warning("Activation Service sent an unusable %s body", model.__name__)
        raise ServiceRejected(UNEXPECTED_RESPONSE, response.status_code) from exc
