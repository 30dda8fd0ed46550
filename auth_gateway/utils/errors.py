"""
Error taxonomy and classification

Every failure the gateway reports is a GatewayError carrying a stable
machine-readable code. Codes map to a fixed category, and the category
decides the HTTP status. Downstream rejections that arrive with nothing but
a message are classified by message text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from auth_gateway.utils.downstream_client import DownstreamError, DownstreamErrorKind


class ErrorCategory(str, Enum):
    """Response categories and their HTTP status"""
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BAD_GATEWAY = "bad_gateway"
    INTERNAL = "internal"

    @property
    def http_status(self) -> int:
        return _CATEGORY_STATUS[self]


_CATEGORY_STATUS = {
    ErrorCategory.BAD_REQUEST: 400,
    ErrorCategory.UNAUTHORIZED: 401,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.BAD_GATEWAY: 502,
    ErrorCategory.INTERNAL: 500,
}

STATUS_NAMES = {
    400: "BadRequest",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    409: "Conflict",
    500: "InternalServerError",
    502: "BadGateway",
}


class ErrorCode(str, Enum):
    """Machine-readable error codes"""
    EMPTY_BODY = "EMPTY_BODY"
    MALFORMED_JSON = "MALFORMED_JSON"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    USER_ID_MISSING = "USER_ID_MISSING"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    UNAUTHORIZED = "UNAUTHORIZED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    DOWNSTREAM_REJECTED = "DOWNSTREAM_REJECTED"
    TOKEN_FAILED = "TOKEN_FAILED"
    DOWNSTREAM_UNAVAILABLE = "DOWNSTREAM_UNAVAILABLE"
    DOWNSTREAM_ERROR = "DOWNSTREAM_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def category(self) -> ErrorCategory:
        return _CODE_CATEGORY[self]


_CODE_CATEGORY = {
    ErrorCode.EMPTY_BODY: ErrorCategory.BAD_REQUEST,
    ErrorCode.MALFORMED_JSON: ErrorCategory.BAD_REQUEST,
    ErrorCode.MISSING_REQUIRED_FIELD: ErrorCategory.BAD_REQUEST,
    ErrorCode.USER_ID_MISSING: ErrorCategory.BAD_REQUEST,
    ErrorCode.INVALID_CREDENTIALS: ErrorCategory.UNAUTHORIZED,
    ErrorCode.UNAUTHORIZED: ErrorCategory.UNAUTHORIZED,
    ErrorCode.RESOURCE_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.RESOURCE_CONFLICT: ErrorCategory.CONFLICT,
    ErrorCode.DOWNSTREAM_REJECTED: ErrorCategory.BAD_REQUEST,
    ErrorCode.TOKEN_FAILED: ErrorCategory.INTERNAL,
    ErrorCode.DOWNSTREAM_UNAVAILABLE: ErrorCategory.BAD_GATEWAY,
    ErrorCode.DOWNSTREAM_ERROR: ErrorCategory.BAD_GATEWAY,
    ErrorCode.INTERNAL_ERROR: ErrorCategory.INTERNAL,
}

_TITLES = {
    ErrorCode.EMPTY_BODY: "Request body is empty",
    ErrorCode.MALFORMED_JSON: "Malformed request body",
    ErrorCode.MISSING_REQUIRED_FIELD: "Required field missing",
    ErrorCode.USER_ID_MISSING: "User id missing",
    ErrorCode.INVALID_CREDENTIALS: "Invalid credentials",
    ErrorCode.UNAUTHORIZED: "Unauthorized",
    ErrorCode.RESOURCE_NOT_FOUND: "Resource not found",
    ErrorCode.RESOURCE_CONFLICT: "Resource conflict",
    ErrorCode.DOWNSTREAM_REJECTED: "Request rejected",
    ErrorCode.TOKEN_FAILED: "Token generation failed",
    ErrorCode.DOWNSTREAM_UNAVAILABLE: "Upstream service unavailable",
    ErrorCode.DOWNSTREAM_ERROR: "Upstream service error",
    ErrorCode.INTERNAL_ERROR: "An error occurred",
}


@dataclass
class GatewayError:
    """
    A classified failure

    `diagnostics` holds internal context (downstream status, raw body) and
    is only ever logged.
    """
    code: ErrorCode
    message: str
    detail: Optional[str] = None
    errors: Optional[List[Dict[str, Any]]] = None
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    @property
    def category(self) -> ErrorCategory:
        return self.code.category

    @property
    def http_status(self) -> int:
        return self.code.category.http_status


@dataclass
class ProblemDetail:
    """Normalized error representation rendered by the response writer"""
    code: str
    http_status: int
    title: str
    detail: Optional[str] = None
    extensions: Dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> str:
        status_name = STATUS_NAMES.get(self.http_status, str(self.http_status))
        return f"Status:{self.http_status}:{status_name}:{self.code.lower()}"

    def to_response(self, message: Optional[str] = None) -> Dict[str, Any]:
        """Problem envelope body"""
        return {
            "succeeded": False,
            "message": message or self.detail or self.title,
            "code": self.code,
            "title": self.title,
            "detail": self.detail,
            "status": self.http_status,
            "type": self.type,
            "extensions": {k: v for k, v in self.extensions.items() if v is not None},
        }


def classify_message(message: Optional[str]) -> ErrorCategory:
    """
    Classify a failure by its message text

    First match wins: "not found", then "invalid credentials", then
    "already exists"; anything else is a bad request.
    """
    text = (message or "").lower()
    if "not found" in text:
        return ErrorCategory.NOT_FOUND
    if "invalid credentials" in text or text == ErrorCode.INVALID_CREDENTIALS.value.lower():
        return ErrorCategory.UNAUTHORIZED
    if "already exists" in text:
        return ErrorCategory.CONFLICT
    return ErrorCategory.BAD_REQUEST


_STATUS_CATEGORY = {
    401: ErrorCategory.UNAUTHORIZED,
    404: ErrorCategory.NOT_FOUND,
    409: ErrorCategory.CONFLICT,
}

_CATEGORY_CODE = {
    ErrorCategory.NOT_FOUND: ErrorCode.RESOURCE_NOT_FOUND,
    ErrorCategory.UNAUTHORIZED: ErrorCode.INVALID_CREDENTIALS,
    ErrorCategory.CONFLICT: ErrorCode.RESOURCE_CONFLICT,
    ErrorCategory.BAD_REQUEST: ErrorCode.DOWNSTREAM_REJECTED,
}


def error_from_downstream(error: DownstreamError, service: str) -> GatewayError:
    """Convert a downstream call failure into a classified gateway error"""
    diagnostics = {
        "service": service,
        "kind": error.kind.value,
        "status_code": error.status_code,
        "raw_body": error.raw_body,
    }

    if error.kind == DownstreamErrorKind.TRANSPORT_FAILURE:
        return GatewayError(
            ErrorCode.DOWNSTREAM_UNAVAILABLE,
            f"{service} is unavailable",
            diagnostics=diagnostics,
        )

    if error.kind == DownstreamErrorKind.DESERIALIZATION_FAILURE or (error.status_code or 0) >= 500:
        return GatewayError(
            ErrorCode.DOWNSTREAM_ERROR,
            f"{service} request failed",
            diagnostics=diagnostics,
        )

    message = error.downstream_message
    category = classify_message(message)
    if category == ErrorCategory.BAD_REQUEST:
        category = _STATUS_CATEGORY.get(error.status_code, ErrorCategory.BAD_REQUEST)

    return GatewayError(
        _CATEGORY_CODE[category],
        message or _TITLES[_CATEGORY_CODE[category]],
        diagnostics=diagnostics,
    )


def classify(
    error: GatewayError,
    request_id: Optional[str] = None,
    trace_id: Optional[str] = None,
) -> ProblemDetail:
    """Build the problem detail for a gateway error"""
    extensions: Dict[str, Any] = {"requestId": request_id, "traceId": trace_id}
    if error.errors:
        extensions["errors"] = error.errors
    return ProblemDetail(
        code=error.code.value,
        http_status=error.http_status,
        title=_TITLES[error.code],
        detail=error.detail or error.message,
        extensions=extensions,
    )


def internal_error(request_id: Optional[str] = None, trace_id: Optional[str] = None) -> ProblemDetail:
    """Problem detail for unexpected exceptions; exposes nothing internal"""
    return classify(
        GatewayError(ErrorCode.INTERNAL_ERROR, "Internal server error"),
        request_id=request_id,
        trace_id=trace_id,
    )
