"""
Authentication orchestration
Sign-up, sign-in and registration completion across the account and token services
"""

from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from auth_gateway.models.requests import (
    CompleteRegistrationRequest, SignInRequest, SignOutRequest, SignUpRequest
)
from auth_gateway.models.responses import (
    AccountRecord, AccountServiceResult, OrchestrationResult, extract_account_id
)
from auth_gateway.services.account_client import AccountServiceClient
from auth_gateway.services.token_client import TokenServiceClient
from auth_gateway.utils.downstream_client import DownstreamErrorKind, DownstreamResult
from auth_gateway.utils.errors import ErrorCode, GatewayError, error_from_downstream
from auth_gateway.utils.logger import get_logger
from auth_gateway.utils.request_validator import validate_body

logger = get_logger(__name__)

ACCOUNT_SERVICE = "AccountService"
TOKEN_SERVICE = "TokenService"


class AuthOrchestrator:
    """
    Sequences downstream calls for the auth flows

    Each flow validates its body first, then calls the account service,
    extracts the account id and requests tokens for it. Calls are strictly
    sequential and the first failure ends the flow. Failures are returned
    as OrchestrationResult.failure, never raised.
    """

    def __init__(self, accounts: AccountServiceClient, tokens: TokenServiceClient):
        self.accounts = accounts
        self.tokens = tokens

    async def sign_up(self, raw_body: bytes) -> OrchestrationResult:
        """Create an account and issue its first token pair"""
        validation = validate_body(raw_body, SignUpRequest)
        if not validation.succeeded:
            return OrchestrationResult.failure(validation.error)
        form = validation.value

        account_result = await self.accounts.create_account(form.email)
        if not account_result.succeeded:
            return self._downstream_failure("sign_up", account_result, ACCOUNT_SERVICE)

        account = self._account_with_id(account_result.value)
        if account is None:
            logger.warning("userId could not be extracted from account service response", flow="sign_up")
            return OrchestrationResult.failure(GatewayError(
                ErrorCode.USER_ID_MISSING, "UserId could not be extracted",
            ))

        return await self._issue_tokens(
            "sign_up", account, form.email, "Account created successfully",
        )

    async def sign_in(self, raw_body: bytes) -> OrchestrationResult:
        """Validate credentials and issue a token pair"""
        validation = validate_body(raw_body, SignInRequest)
        if not validation.succeeded:
            return OrchestrationResult.failure(validation.error)
        form = validation.value

        account_result = await self.accounts.validate_credentials(form.email, form.password)
        if not account_result.succeeded:
            error = account_result.error
            rejected = (
                error.kind == DownstreamErrorKind.NON_SUCCESS_STATUS
                and error.status_code is not None
                and 400 <= error.status_code < 500
            )
            if not rejected:
                return self._downstream_failure("sign_in", account_result, ACCOUNT_SERVICE)
            logger.info("Credentials rejected by account service", status_code=error.status_code)
            return self._invalid_credentials()

        account = self._account_with_id(account_result.value)
        if account is None:
            return self._invalid_credentials()

        return await self._issue_tokens("sign_in", account, form.email, "Login successful")

    async def complete_registration(self, raw_body: bytes) -> OrchestrationResult:
        """Complete a registration profile and issue a token pair for the account"""
        validation = validate_body(raw_body, CompleteRegistrationRequest)
        if not validation.succeeded:
            return OrchestrationResult.failure(validation.error)
        form = validation.value

        account_result = await self.accounts.complete_registration(form.to_account_payload())
        if not account_result.succeeded:
            return self._downstream_failure("complete_registration", account_result, ACCOUNT_SERVICE)

        account = self._account_with_id(account_result.value)
        if account is None:
            logger.warning(
                "userId could not be extracted from account service response",
                flow="complete_registration",
            )
            return OrchestrationResult.failure(GatewayError(
                ErrorCode.USER_ID_MISSING, "UserId could not be extracted",
            ))

        return await self._issue_tokens(
            "complete_registration",
            account,
            account.email or form.email,
            "Registration completed successfully",
        )

    async def sign_out(
        self,
        authorization: Optional[str],
        read_body: Callable[[], Awaitable[bytes]],
    ) -> Optional[GatewayError]:
        """
        Acknowledge a sign-out

        The bearer header is checked before the body is read. Nothing is
        revoked here; session and token revocation belong to the token
        service. Returns None on success.
        """
        if not self._bearer_token(authorization):
            return GatewayError(ErrorCode.UNAUTHORIZED, "Bearer token is required")

        validation = validate_body(await read_body(), SignOutRequest)
        if not validation.succeeded:
            return validation.error

        logger.info(
            "User signed out",
            user_id=validation.value.user_id,
            signed_out_at=datetime.now(timezone.utc).isoformat(),
        )
        return None

    @staticmethod
    def _bearer_token(authorization: Optional[str]) -> Optional[str]:
        """Token from an `Authorization: Bearer <token>` header; the scheme is case-insensitive"""
        parts = (authorization or "").split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return None
        return parts[1]

    @staticmethod
    def _account_with_id(result: Optional[AccountServiceResult]) -> Optional[AccountRecord]:
        """The account record with its id filled from the ordered fallback, or None"""
        account_id = extract_account_id(result)
        if not account_id:
            return None
        user = result.data.user if result.data and result.data.user else None
        if user is None:
            return AccountRecord(id=account_id)
        return user.model_copy(update={"id": account_id})

    async def _issue_tokens(
        self,
        flow: str,
        account: AccountRecord,
        email: Optional[str],
        message: str,
    ) -> OrchestrationResult:
        token_result = await self.tokens.request_token(account.id, email, account.role)
        if not token_result.succeeded or not token_result.value.succeeded:
            diagnostics = {"flow": flow, "user_id": account.id}
            if token_result.error is not None:
                diagnostics.update(
                    kind=token_result.error.kind.value,
                    status_code=token_result.error.status_code,
                    raw_body=token_result.error.raw_body,
                )
            else:
                diagnostics["message"] = token_result.value.message
            logger.error("Token generation failed", **diagnostics)
            return OrchestrationResult.failure(GatewayError(
                ErrorCode.TOKEN_FAILED,
                "Could not generate access token",
                diagnostics=diagnostics,
            ))

        logger.info("Auth flow succeeded", flow=flow, user_id=account.id)
        return OrchestrationResult.success(message, account, token_result.value)

    @staticmethod
    def _invalid_credentials() -> OrchestrationResult:
        return OrchestrationResult.failure(GatewayError(
            ErrorCode.INVALID_CREDENTIALS, "Invalid email or password.",
        ))

    @staticmethod
    def _downstream_failure(flow: str, result: DownstreamResult, service: str) -> OrchestrationResult:
        error = error_from_downstream(result.error, service)
        logger.error(
            "Downstream call failed",
            flow=flow,
            code=error.code.value,
            **error.diagnostics,
        )
        return OrchestrationResult.failure(error)
