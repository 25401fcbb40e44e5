"""
API v1 routes.

Defines the activation screen endpoints. Each flow is one mounted screen;
each POST is one of the screen's buttons.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from faculty_activation.adapters.notify.console import ConsoleNotifier
from faculty_activation.api.dependencies import (
    get_activation_service,
    get_flow,
    get_flow_registry,
)
from faculty_activation.api.models import (
    CreateFlowRequest,
    ErrorResponse,
    FlowStateResponse,
    NoticeModel,
    SetPasswordRequest,
    ValidateTokenRequest,
    VerifyOtpRequest,
)
from faculty_activation.api.registry import FlowHandle, FlowRegistry
from faculty_activation.config.settings import Settings, get_settings
from faculty_activation.domain.activation import ActivationFlow, StepResult
from faculty_activation.domain.exceptions import (
    ActivationError,
    FlowStateError,
    InputValidationError,
    NetworkFailure,
    ServiceRejected,
)
from faculty_activation.domain.ports import ActivationService

router = APIRouter(prefix="/activation/flows", tags=["v1"])

SESSION_HINT_LENGTH = 10

_STEP_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid input or rejected by the Activation Service"},
    404: {"model": ErrorResponse, "description": "Activation flow not found"},
    409: {"model": ErrorResponse, "description": "Not available at the current step"},
    502: {"model": ErrorResponse, "description": "Activation Service failed"},
    503: {"model": ErrorResponse, "description": "Activation Service unreachable"},
}


def _status_for(error: ActivationError | None) -> int:
    if isinstance(error, InputValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, ServiceRejected):
        if 400 <= error.status_code < 500:
            return status.HTTP_400_BAD_REQUEST
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(error, NetworkFailure):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(error, FlowStateError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _state(handle: FlowHandle) -> FlowStateResponse:
    flow = handle.flow
    return FlowStateResponse(
        flow_id=handle.flow_id,
        step=flow.step,
        session_hint=flow.session_id[:SESSION_HINT_LENGTH] if flow.session_id else None,
        email_masked=flow.email_masked,
        expires_at=flow.expires_at,
        busy=flow.busy,
        prefilled_token=flow.prefilled_token,
        notices=[
            NoticeModel(level=n.level, title=n.title, message=n.message)
            for n in handle.notifier.drain()
        ],
    )


def _respond(handle: FlowHandle, result: StepResult) -> FlowStateResponse:
    if result.ok:
        return _state(handle)

    # The error itself is the response; its queued toast would repeat it
    handle.notifier.drain()
    raise HTTPException(status_code=_status_for(result.error), detail=result.message)


@router.post(
    "",
    response_model=FlowStateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start an activation flow",
    description="Mount the activation screen. An activation token from a deep link "
    "may be passed to prefill the token step.",
)
async def create_flow(
    request_data: CreateFlowRequest | None = None,
    registry: FlowRegistry = Depends(get_flow_registry),
    service: ActivationService = Depends(get_activation_service),
    settings: Settings = Depends(get_settings),
) -> FlowStateResponse:
    notifier = ConsoleNotifier()
    flow = ActivationFlow(
        service=service,
        notifier=notifier,
        otp_length=settings.otp_length,
        min_password_length=settings.min_password_length,
        prefilled_token=request_data.token if request_data else None,
    )
    handle = registry.add(flow, notifier)
    return _state(handle)


@router.get(
    "/{flow_id}",
    response_model=FlowStateResponse,
    responses={404: _STEP_ERRORS[404]},
    summary="Get activation flow state",
)
async def get_flow_state(handle: FlowHandle = Depends(get_flow)) -> FlowStateResponse:
    return _state(handle)


@router.post(
    "/{flow_id}/token",
    response_model=FlowStateResponse,
    responses=_STEP_ERRORS,
    summary="Validate activation token",
    description="Validate the activation token and send the first OTP to the "
    "faculty email. Falls back to the deep-linked token when none is given.",
)
async def validate_token(
    request_data: ValidateTokenRequest | None = None,
    handle: FlowHandle = Depends(get_flow),
) -> FlowStateResponse:
    token = request_data.token if request_data else None
    if token is None:
        token = handle.flow.prefilled_token or ""
    result = await handle.flow.validate_token(token)
    return _respond(handle, result)


@router.post(
    "/{flow_id}/otp/resend",
    response_model=FlowStateResponse,
    responses=_STEP_ERRORS,
    summary="Resend OTP",
)
async def resend_otp(handle: FlowHandle = Depends(get_flow)) -> FlowStateResponse:
    result = await handle.flow.send_otp()
    return _respond(handle, result)


@router.post(
    "/{flow_id}/otp",
    response_model=FlowStateResponse,
    responses=_STEP_ERRORS,
    summary="Verify OTP",
)
async def verify_otp(
    request_data: VerifyOtpRequest,
    handle: FlowHandle = Depends(get_flow),
) -> FlowStateResponse:
    result = await handle.flow.verify_otp(request_data.otp)
    return _respond(handle, result)


@router.post(
    "/{flow_id}/password",
    response_model=FlowStateResponse,
    responses=_STEP_ERRORS,
    summary="Set password and activate",
)
async def set_password(
    request_data: SetPasswordRequest,
    handle: FlowHandle = Depends(get_flow),
) -> FlowStateResponse:
    result = await handle.flow.set_password(
        request_data.new_password, request_data.confirm_password
    )
    return _respond(handle, result)


@router.delete(
    "/{flow_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: _STEP_ERRORS[404]},
    summary="Close an activation flow",
    description="Unmount the activation screen and drop its session secrets.",
)
async def close_flow(
    flow_id: str,
    registry: FlowRegistry = Depends(get_flow_registry),
) -> Response:
    if not registry.remove(flow_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Activation flow not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
