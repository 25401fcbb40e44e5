"""HTTP adapters - Remote Activation Service client."""

from .activation_service import HttpActivationService

__all__ = ["HttpActivationService"]
