"""
Downstream response models and orchestration results
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from auth_gateway.utils.errors import GatewayError


class DownstreamModel(BaseModel):
    """Base for models decoded from downstream JSON (camelCase on the wire)"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


def _opaque_id(v: Any) -> Any:
    """Render identifiers (UUIDs, ints) as strings"""
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class AccountRecord(DownstreamModel):
    """Request-scoped copy of an account-service user"""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v):
        return _opaque_id(v)

    def to_public(self) -> Dict[str, Any]:
        """Wire form returned to gateway clients"""
        return self.model_dump(by_alias=True, exclude_none=True)


class AccountServiceData(DownstreamModel):
    """The `data` envelope of an account-service response"""
    id: Optional[str] = None
    user_id: Optional[str] = None
    user: Optional[AccountRecord] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def normalize_ids(cls, v):
        return _opaque_id(v)


class AccountServiceResult(DownstreamModel):
    """Account-service response; every field is optional"""
    succeeded: Optional[bool] = None
    message: Optional[str] = None
    id: Optional[str] = None
    user_id: Optional[str] = None
    data: Optional[AccountServiceData] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def normalize_ids(cls, v):
        return _opaque_id(v)


def extract_account_id(result: Optional[AccountServiceResult]) -> Optional[str]:
    """
    Pull the account id out of an account-service response

    Candidates are tried in order: data.user.id, id, data.id, data.userId,
    userId. Empty strings count as absent.
    """
    if result is None:
        return None

    data = result.data
    candidates = (
        data.user.id if data and data.user else None,
        result.id,
        data.id if data else None,
        data.user_id if data else None,
        result.user_id,
    )
    for candidate in candidates:
        if candidate:
            return candidate
    return None


class TokenPair(DownstreamModel):
    """Token-service response; an access token is mandatory"""
    succeeded: bool
    access_token: str = Field(..., min_length=1)
    refresh_token: Optional[str] = None
    message: Optional[str] = None


@dataclass
class OrchestrationResult:
    """Unified outcome of an orchestrated auth operation"""
    succeeded: bool
    message: str
    account: Optional[AccountRecord] = None
    tokens: Optional[TokenPair] = None
    error: Optional["GatewayError"] = None

    @classmethod
    def success(cls, message: str, account: AccountRecord, tokens: TokenPair) -> "OrchestrationResult":
        """Build a success result; both an account id and an access token are required"""
        if account is None or not account.id:
            raise ValueError("Successful orchestration requires an account id")
        if tokens is None or not tokens.access_token:
            raise ValueError("Successful orchestration requires an access token")
        return cls(succeeded=True, message=message, account=account, tokens=tokens)

    @classmethod
    def failure(cls, error: "GatewayError") -> "OrchestrationResult":
        """Build a failure result carrying no account or tokens"""
        return cls(succeeded=False, message=error.message, error=error)

    def to_payload(self) -> Dict[str, Any]:
        """Success payload: user plus token fields"""
        payload: Dict[str, Any] = {}
        if self.account is not None:
            payload["user"] = self.account.to_public()
        if self.tokens is not None:
            payload["accessToken"] = self.tokens.access_token
            payload["refreshToken"] = self.tokens.refresh_token
        return payload
