"""
Data models for the auth gateway
"""

from .requests import (
    CompleteRegistrationRequest, GatewayRequest, SignInRequest, SignOutRequest, SignUpRequest
)
from .responses import (
    AccountRecord, AccountServiceResult, OrchestrationResult, TokenPair, extract_account_id
)

__all__ = [
    "GatewayRequest",
    "SignUpRequest",
    "SignInRequest",
    "CompleteRegistrationRequest",
    "SignOutRequest",
    "AccountRecord",
    "AccountServiceResult",
    "TokenPair",
    "OrchestrationResult",
    "extract_account_id",
]
