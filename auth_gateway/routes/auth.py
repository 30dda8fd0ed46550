"""
Authentication Routes
Orchestrated sign-up, sign-in, registration completion and sign-out
"""

from typing import Awaitable, Callable

from fastapi import APIRouter, Request, Response

from auth_gateway.config import Settings
from auth_gateway.models.responses import OrchestrationResult
from auth_gateway.routes.helpers import CLIENT_CLOSED_REQUEST, ClientDisconnected, cancel_on_disconnect
from auth_gateway.utils.dependencies import OrchestratorDep, SettingsDep
from auth_gateway.utils.errors import ErrorCode
from auth_gateway.utils.response_writer import error_response, ok, render_result

router = APIRouter()


async def _run_flow(
    request: Request,
    settings: Settings,
    flow: Callable[[bytes], Awaitable[OrchestrationResult]],
) -> Response:
    raw_body = await request.body()
    try:
        result = await cancel_on_disconnect(
            request, flow(raw_body), settings.disconnect_poll_interval_seconds,
        )
    except ClientDisconnected:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    return render_result(result, request)


@router.post("/signup")
async def sign_up(request: Request, orchestrator: OrchestratorDep, settings: SettingsDep):
    """
    Register a new account

    Creates the account in the account service, then issues a token pair
    for the new account id.
    """
    return await _run_flow(request, settings, orchestrator.sign_up)


@router.post("/signin")
async def sign_in(request: Request, orchestrator: OrchestratorDep, settings: SettingsDep):
    """
    Sign in with email and password

    Invalid credentials are reported as 401 INVALID_CREDENTIALS.
    """
    return await _run_flow(request, settings, orchestrator.sign_in)


@router.post("/complete-registration")
async def complete_registration(request: Request, orchestrator: OrchestratorDep, settings: SettingsDep):
    """Complete a registration profile and sign the account in"""
    return await _run_flow(request, settings, orchestrator.complete_registration)


@router.post("/signout")
async def sign_out(request: Request, orchestrator: OrchestratorDep):
    """
    Acknowledge sign-out

    Requires `Authorization: Bearer <token>` and a `userId` body field.
    No session or token is revoked by the gateway.
    """
    error = await orchestrator.sign_out(request.headers.get("Authorization"), request.body)
    if error is not None:
        response = error_response(error, request)
        if error.code == ErrorCode.UNAUTHORIZED:
            response.headers["WWW-Authenticate"] = "Bearer"
        return response
    return ok("Signed out successfully")
