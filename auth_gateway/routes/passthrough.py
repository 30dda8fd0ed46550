"""
Pass-through Routes
Account and token operations forwarded to the downstream services unchanged
"""

from urllib.parse import quote

from fastapi import APIRouter, Request

from auth_gateway.config import ServiceTarget
from auth_gateway.utils.dependencies import ProxyDep
from auth_gateway.utils.response_writer import render_proxy

router = APIRouter()

ACCOUNT = ServiceTarget.ACCOUNT_SERVICE
TOKEN = ServiceTarget.TOKEN_SERVICE


def _segment(value: str) -> str:
    """Escape a path parameter for use as a single downstream path segment"""
    return quote(value, safe="@")


@router.post("/start-registration")
async def start_registration(request: Request, proxy: ProxyDep):
    """Create a pending account"""
    return render_proxy(await proxy.forward(request, ACCOUNT, "/accounts"))


@router.post("/confirm-email-code")
async def confirm_email_code(request: Request, proxy: ProxyDep):
    """Confirm the emailed verification code"""
    return render_proxy(await proxy.forward(request, ACCOUNT, "/accounts/confirm-email-code"))


# by-email must be registered before /account/{user_id}
@router.get("/account/by-email/{email}")
async def get_account_by_email(email: str, request: Request, proxy: ProxyDep):
    """Look up an account by email"""
    return render_proxy(await proxy.forward(request, ACCOUNT, f"/accounts/by-email/{_segment(email)}"))


@router.get("/account/{user_id}")
async def get_account(user_id: str, request: Request, proxy: ProxyDep):
    """Fetch an account"""
    return render_proxy(await proxy.forward(request, ACCOUNT, f"/accounts/{_segment(user_id)}"))


@router.put("/account/{user_id}")
async def update_account(user_id: str, request: Request, proxy: ProxyDep):
    """Update an account"""
    return render_proxy(await proxy.forward(request, ACCOUNT, f"/accounts/{_segment(user_id)}"))


@router.delete("/account/{user_id}")
async def delete_account(user_id: str, request: Request, proxy: ProxyDep):
    """Delete an account"""
    return render_proxy(await proxy.forward(request, ACCOUNT, f"/accounts/{_segment(user_id)}"))


@router.post("/account/{user_id}/email-confirmation-token")
async def create_email_confirmation_token(user_id: str, request: Request, proxy: ProxyDep):
    """Issue a new email confirmation token"""
    return render_proxy(await proxy.forward(
        request, ACCOUNT, f"/accounts/{_segment(user_id)}/email-confirmation-token",
    ))


@router.post("/validate-credentials")
async def validate_credentials(request: Request, proxy: ProxyDep):
    """Check credentials without issuing tokens"""
    return render_proxy(await proxy.forward(request, ACCOUNT, "/accounts/validate"))


@router.post("/forgot-password")
async def forgot_password(request: Request, proxy: ProxyDep):
    """Start a password reset"""
    return render_proxy(await proxy.forward(request, ACCOUNT, "/accounts/forgot-password"))


@router.post("/reset-password")
async def reset_password(request: Request, proxy: ProxyDep):
    """Finish a password reset"""
    return render_proxy(await proxy.forward(request, ACCOUNT, "/accounts/reset-password"))


@router.post("/generate-token")
async def generate_token(request: Request, proxy: ProxyDep):
    """Issue a token pair directly from the token service"""
    return render_proxy(await proxy.forward(request, TOKEN, "/GenerateToken"))


@router.post("/validate-token")
async def validate_token(request: Request, proxy: ProxyDep):
    """Validate a token with the token service"""
    return render_proxy(await proxy.forward(request, TOKEN, "/validate-token"))
