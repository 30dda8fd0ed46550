"""
Account Service Client
Typed calls to the account service used by the orchestrated flows
"""

from typing import Any, Dict

from auth_gateway.config import ServiceTarget, Settings
from auth_gateway.models.responses import AccountServiceResult
from auth_gateway.utils.downstream_client import DownstreamClient, DownstreamResult


class AccountServiceClient:
    """HTTP client for account service operations"""

    CREATE_ACCOUNT_PATH = "/accounts"
    VALIDATE_CREDENTIALS_PATH = "/accounts/validate"
    COMPLETE_REGISTRATION_PATH = "/accounts/complete-registration"

    def __init__(self, settings: Settings, client: DownstreamClient):
        self.target = settings.resolve_target(ServiceTarget.ACCOUNT_SERVICE)
        self.client = client

    async def _post(self, path: str, payload: Dict[str, Any]) -> DownstreamResult[AccountServiceResult]:
        return await self.client.call(
            "POST",
            self.target.url(path),
            response_model=AccountServiceResult,
            payload=payload,
            access_key=self.target.access_key,
        )

    async def create_account(self, email: str) -> DownstreamResult[AccountServiceResult]:
        """Create an account; only the email is sent, the password is set at registration completion"""
        return await self._post(self.CREATE_ACCOUNT_PATH, {"email": email})

    async def validate_credentials(self, email: str, password: str) -> DownstreamResult[AccountServiceResult]:
        """Check an email/password pair"""
        return await self._post(self.VALIDATE_CREDENTIALS_PATH, {"email": email, "password": password})

    async def complete_registration(self, profile: Dict[str, Any]) -> DownstreamResult[AccountServiceResult]:
        """Submit the full registration profile"""
        return await self._post(self.COMPLETE_REGISTRATION_PATH, profile)
