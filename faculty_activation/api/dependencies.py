"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the flow registry,
the Activation Service adapter and individual flows into routes.
"""

from fastapi import Depends, HTTPException, Request, status

from faculty_activation.api.registry import FlowHandle, FlowRegistry
from faculty_activation.domain.ports import ActivationService


def get_flow_registry(request: Request) -> FlowRegistry:
    """
    Get the flow registry from app state.

    The registry is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.flows


def get_activation_service(request: Request) -> ActivationService:
    """Get the shared Activation Service client from app state."""
    return request.app.state.activation_service


def get_flow(
    flow_id: str,
    registry: FlowRegistry = Depends(get_flow_registry),
) -> FlowHandle:
    """
    Resolve a flow id from the path.

    Raises:
        HTTPException: 404 if the flow is unknown, disposed or evicted
    """
    handle = registry.get(flow_id)
    if handle is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Activation flow not found",
        )
    return handle
