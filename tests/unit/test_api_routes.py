"""
Unit tests for API v1 routes.

Tests endpoint responses with a mocked Activation Service.
"""

from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from faculty_activation.api.dependencies import get_flow_registry
from faculty_activation.api.registry import FlowRegistry
from faculty_activation.api.v1.routes import router
from faculty_activation.domain.exceptions import NetworkFailure, ServiceRejected
from faculty_activation.domain.ports import ActivationSession

FLOWS = "/v1/activation/flows"


@pytest.fixture
def app(service: AsyncMock) -> FastAPI:
    """Create test FastAPI application."""
    test_app = FastAPI()
    test_app.include_router(router, prefix="/v1")

    test_app.state.flows = FlowRegistry(max_flows=10)
    test_app.state.activation_service = service

    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client for the application."""
    return TestClient(app)


def start_flow(client: TestClient, **body: str) -> str:
    response = client.post(FLOWS, json=body or None)
    assert response.status_code == 201
    return response.json()["flow_id"]


def flow_at_otp(client: TestClient) -> str:
    flow_id = start_flow(client)
    assert client.post(f"{FLOWS}/{flow_id}/token", json={"token": "abc123"}).status_code == 200
    return flow_id


def flow_at_password(client: TestClient) -> str:
    flow_id = flow_at_otp(client)
    assert client.post(f"{FLOWS}/{flow_id}/otp", json={"otp": "482913"}).status_code == 200
    return flow_id


class TestCreateFlow:
    """Tests for POST /v1/activation/flows."""

    def test_create_returns_201_at_token_step(self, client: TestClient) -> None:
        """A new flow starts at the token step."""
        response = client.post(FLOWS)

        assert response.status_code == 201
        body = response.json()
        assert body["step"] == "token"
        assert body["flow_id"]
        assert body["email_masked"] is None
        assert body["notices"] == []

    def test_create_with_deep_linked_token(self, client: TestClient) -> None:
        """Deep-linked token is returned for prefill."""
        response = client.post(FLOWS, json={"token": "abc123"})

        assert response.json()["prefilled_token"] == "abc123"

    def test_flows_are_independent(self, client: TestClient) -> None:
        """Each call mounts a separate flow."""
        assert start_flow(client) != start_flow(client)

    def test_oldest_flow_evicted_when_full(self, app: FastAPI, client: TestClient) -> None:
        """Registry bound drops the oldest flow."""
        app.state.flows = FlowRegistry(max_flows=1)
        first = start_flow(client)
        start_flow(client)

        assert client.get(f"{FLOWS}/{first}").status_code == 404


class TestGetFlow:
    """Tests for GET /v1/activation/flows/{flow_id}."""

    def test_unknown_flow_returns_404(self, client: TestClient) -> None:
        """Unknown ids are 404."""
        response = client.get(f"{FLOWS}/nope")

        assert response.status_code == 404
        assert response.json() == {"detail": "Activation flow not found"}

    def test_notices_delivered_once(self, client: TestClient) -> None:
        """Notices are drained by the response that delivers them."""
        flow_id = flow_at_otp(client)

        assert client.get(f"{FLOWS}/{flow_id}").json()["notices"] == []


class TestValidateTokenEndpoint:
    """Tests for POST /v1/activation/flows/{flow_id}/token."""

    def test_success_moves_to_otp(self, client: TestClient, service: AsyncMock) -> None:
        """Valid token returns OTP step and notices."""
        flow_id = start_flow(client)

        response = client.post(f"{FLOWS}/{flow_id}/token", json={"token": "abc123"})

        assert response.status_code == 200
        body = response.json()
        assert body["step"] == "otp"
        assert body["email_masked"] == "f***@inst.edu"
        assert body["expires_at"] == "2026-01-01T12:10:00Z"
        assert [n["title"] for n in body["notices"]] == ["Validated", "OTP sent"]
        service.send_otp.assert_awaited_once_with("sess-1")

    def test_falls_back_to_deep_linked_token(
        self, client: TestClient, service: AsyncMock
    ) -> None:
        """Without a body the prefilled token is validated."""
        flow_id = start_flow(client, token="deep-link-token")

        response = client.post(f"{FLOWS}/{flow_id}/token")

        assert response.status_code == 200
        service.validate_token.assert_awaited_once_with("deep-link-token")

    def test_missing_token_returns_400(self, client: TestClient, service: AsyncMock) -> None:
        """No token at all is an input error."""
        flow_id = start_flow(client)

        response = client.post(f"{FLOWS}/{flow_id}/token", json={})

        assert response.status_code == 400
        assert response.json() == {"detail": "Paste activation token"}
        service.validate_token.assert_not_called()

    def test_unencodable_token_returns_400(
        self, client: TestClient, service: AsyncMock
    ) -> None:
        """A token with a lone surrogate is an input error, not a crash."""
        flow_id = start_flow(client)

        response = client.post(
            f"{FLOWS}/{flow_id}/token",
            content=b'{"token": "abc\\ud800"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Activation token contains invalid characters"}
        service.validate_token.assert_not_called()

    def test_session_hint_shows_start_of_session_id(
        self, client: TestClient, service: AsyncMock, session: ActivationSession
    ) -> None:
        """The screen gets the first 10 characters of the session id."""
        service.validate_token.return_value = replace(
            session, session_id="a1b2c3d4e5f6a7b8c9d0"
        )
        flow_id = start_flow(client)
        assert client.get(f"{FLOWS}/{flow_id}").json()["session_hint"] is None

        response = client.post(f"{FLOWS}/{flow_id}/token", json={"token": "abc123"})

        assert response.json()["session_hint"] == "a1b2c3d4e5"

    def test_expired_token_returns_detail(self, client: TestClient, service: AsyncMock) -> None:
        """Server detail is passed through verbatim."""
        service.validate_token.side_effect = ServiceRejected("Token expired", 400)
        flow_id = start_flow(client)

        response = client.post(f"{FLOWS}/{flow_id}/token", json={"token": "expired-token"})

        assert response.status_code == 400
        assert response.json() == {"detail": "Token expired"}
        state = client.get(f"{FLOWS}/{flow_id}").json()
        assert state["step"] == "token"
        assert state["notices"] == []

    def test_upstream_5xx_returns_502(self, client: TestClient, service: AsyncMock) -> None:
        """Service failures are a bad gateway."""
        service.validate_token.side_effect = ServiceRejected("Invalid token", 500)
        flow_id = start_flow(client)

        response = client.post(f"{FLOWS}/{flow_id}/token", json={"token": "abc123"})

        assert response.status_code == 502

    def test_network_failure_returns_503(self, client: TestClient, service: AsyncMock) -> None:
        """Unreachable service is 503."""
        service.validate_token.side_effect = NetworkFailure("Unable to connect to server")
        flow_id = start_flow(client)

        response = client.post(f"{FLOWS}/{flow_id}/token", json={"token": "abc123"})

        assert response.status_code == 503
        assert response.json() == {"detail": "Unable to connect to server"}

    def test_repeat_after_validation_returns_409(self, client: TestClient) -> None:
        """Token step is over once validated."""
        flow_id = flow_at_otp(client)

        response = client.post(f"{FLOWS}/{flow_id}/token", json={"token": "abc123"})

        assert response.status_code == 409
        assert response.json() == {"detail": "Verify OTP first"}


class TestResendOtpEndpoint:
    """Tests for POST /v1/activation/flows/{flow_id}/otp/resend."""

    def test_resend(self, client: TestClient, service: AsyncMock) -> None:
        """Resend dispatches another OTP and stays at OTP."""
        flow_id = flow_at_otp(client)

        response = client.post(f"{FLOWS}/{flow_id}/otp/resend")

        assert response.status_code == 200
        assert response.json()["step"] == "otp"
        assert response.json()["notices"][0]["message"] == "Check email: f***@inst.edu"
        assert service.send_otp.await_count == 2

    def test_resend_before_validation_returns_400(self, client: TestClient) -> None:
        """No session yet."""
        flow_id = start_flow(client)

        response = client.post(f"{FLOWS}/{flow_id}/otp/resend")

        assert response.status_code == 400
        assert response.json() == {"detail": "Validate token first (session id not found)"}


class TestVerifyOtpEndpoint:
    """Tests for POST /v1/activation/flows/{flow_id}/otp."""

    def test_success_moves_to_password(self, client: TestClient, service: AsyncMock) -> None:
        """Verified OTP moves to the password step."""
        flow_id = flow_at_otp(client)

        response = client.post(f"{FLOWS}/{flow_id}/otp", json={"otp": "12a3456xyz"})

        assert response.status_code == 200
        assert response.json()["step"] == "password"
        service.verify_otp.assert_awaited_once_with("sess-1", "123456")

    def test_short_otp_returns_400(self, client: TestClient, service: AsyncMock) -> None:
        """Short OTP is rejected without calling the service."""
        flow_id = flow_at_otp(client)

        response = client.post(f"{FLOWS}/{flow_id}/otp", json={"otp": "123"})

        assert response.status_code == 400
        assert response.json() == {"detail": "Enter the complete 6-digit OTP"}
        service.verify_otp.assert_not_called()

    def test_missing_body_returns_422(self, client: TestClient) -> None:
        """otp is required."""
        flow_id = flow_at_otp(client)

        response = client.post(f"{FLOWS}/{flow_id}/otp", json={})

        assert response.status_code == 422


class TestSetPasswordEndpoint:
    """Tests for POST /v1/activation/flows/{flow_id}/password."""

    def test_success_finishes_flow(self, client: TestClient, service: AsyncMock) -> None:
        """Password set ends the flow."""
        flow_id = flow_at_password(client)

        response = client.post(
            f"{FLOWS}/{flow_id}/password",
            json={"new_password": "Secur3!", "confirm_password": "Secur3!"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["step"] == "done"
        assert body["email_masked"] is None
        assert body["notices"][-1]["message"] == "Password set. Please login now."
        service.set_password.assert_awaited_once_with("spt-99", "Secur3!")

    def test_mismatch_returns_400(self, client: TestClient, service: AsyncMock) -> None:
        """Mismatched confirmation never reaches the service."""
        flow_id = flow_at_password(client)

        response = client.post(
            f"{FLOWS}/{flow_id}/password",
            json={"new_password": "Secur3!", "confirm_password": "Secur3?"},
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Passwords do not match"}
        service.set_password.assert_not_called()

    def test_before_otp_returns_409(self, client: TestClient) -> None:
        """Password step is unreachable before OTP verification."""
        flow_id = flow_at_otp(client)

        response = client.post(
            f"{FLOWS}/{flow_id}/password",
            json={"new_password": "Secur3!", "confirm_password": "Secur3!"},
        )

        assert response.status_code == 409


class TestCloseFlow:
    """Tests for DELETE /v1/activation/flows/{flow_id}."""

    def test_close_returns_204(self, client: TestClient) -> None:
        """Closing forgets the flow."""
        flow_id = flow_at_otp(client)

        response = client.delete(f"{FLOWS}/{flow_id}")

        assert response.status_code == 204
        assert client.get(f"{FLOWS}/{flow_id}").status_code == 404

    def test_close_disposes_flow(self, app: FastAPI) -> None:
        """The flow's secrets are dropped on close."""
        registry = MagicMock(spec=FlowRegistry)
        registry.remove.return_value = True
        app.dependency_overrides[get_flow_registry] = lambda: registry
        client = TestClient(app)

        try:
            response = client.delete(f"{FLOWS}/abc")

            assert response.status_code == 204
            registry.remove.assert_called_once_with("abc")
        finally:
            app.dependency_overrides.clear()

    def test_close_unknown_returns_404(self, client: TestClient) -> None:
        """Unknown ids are 404."""
        assert client.delete(f"{FLOWS}/nope").status_code == 404
