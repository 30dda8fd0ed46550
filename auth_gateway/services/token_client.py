"""
Token Service Client
Requests access/refresh token pairs for an account
"""

from typing import Optional

from auth_gateway.config import ServiceTarget, Settings
from auth_gateway.models.responses import TokenPair
from auth_gateway.utils.downstream_client import DownstreamClient, DownstreamResult


class TokenServiceClient:
    """HTTP client for token service operations"""

    GENERATE_TOKEN_PATH = "/GenerateToken"

    def __init__(self, settings: Settings, client: DownstreamClient):
        self.target = settings.resolve_target(ServiceTarget.TOKEN_SERVICE)
        self.default_role = settings.default_role
        self.client = client

    async def request_token(
        self,
        user_id: str,
        email: Optional[str],
        role: Optional[str] = None,
    ) -> DownstreamResult[TokenPair]:
        """
        Request a token pair

        A response without an access token comes back as a deserialization
        failure, never as an empty token.
        """
        payload = {
            "userId": user_id,
            "email": email,
            "role": role or self.default_role,
        }
        return await self.client.call(
            "POST",
            self.target.url(self.GENERATE_TOKEN_PATH),
            response_model=TokenPair,
            payload=payload,
            access_key=self.target.access_key,
        )
