"""
Domain exceptions - Semantic error types for faculty activation.

One exception per client-observed failure category. Adapters translate
transport and HTTP details into these types so the flow controller never
sees httpx or status-code handling.
"""


class ActivationError(Exception):
    """Base class for activation flow errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(ActivationError):
    """Local input rejected before any network call."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ServiceRejected(ActivationError):
    """Activation Service answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkFailure(ActivationError):
    """Request never completed (connection error, timeout)."""

    pass


class FlowStateError(ActivationError):
    """Operation not available at the flow's current step."""

    pass
