"""
Domain layer - Pure activation logic with zero framework imports.

This package contains the faculty activation flow controller. It defines
its own port interfaces for the remote Activation Service and for user
notifications, so adapters can be swapped without touching the flow.
"""

from .activation import ActivationFlow, FlowSecrets, StepResult, sanitize_otp, transition
from .exceptions import (
    ActivationError,
    FlowStateError,
    InputValidationError,
    NetworkFailure,
    ServiceRejected,
)
from .ports import (
    ActivationService,
    ActivationSession,
    ActivationStep,
    FlowEvent,
    Notice,
    NoticeLevel,
    Notifier,
)

__all__ = [
    "ActivationError",
    "ActivationFlow",
    "ActivationService",
    "ActivationSession",
    "ActivationStep",
    "FlowEvent",
    "FlowSecrets",
    "FlowStateError",
    "InputValidationError",
    "NetworkFailure",
    "Notice",
    "NoticeLevel",
    "Notifier",
    "ServiceRejected",
    "StepResult",
    "sanitize_otp",
    "transition",
]
