"""
Request body validation
Decodes raw JSON bodies into request models and reports what is wrong
"""

import json
from dataclasses import dataclass
from typing import Generic, Optional, Type, TypeVar

from pydantic import ValidationError

from auth_gateway.models.requests import GatewayRequest
from auth_gateway.utils.errors import ErrorCode, GatewayError
from auth_gateway.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=GatewayRequest)


@dataclass
class ValidationResult(Generic[T]):
    """Either a decoded request or the reason it was rejected"""
    value: Optional[T] = None
    error: Optional[GatewayError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def validate_body(raw_body: bytes, model: Type[T]) -> ValidationResult[T]:
    """
    Validate a raw request body against a request model

    Args:
        raw_body: Body bytes exactly as received
        model: Request model declaring REQUIRED_FIELDS

    Returns:
        ValidationResult holding the untouched typed value, or an
        EMPTY_BODY / MALFORMED_JSON / MISSING_REQUIRED_FIELD error
    """
    if not raw_body:
        logger.warning("Request body is empty", model=model.__name__)
        return ValidationResult(error=GatewayError(
            ErrorCode.EMPTY_BODY, "Request body is empty.",
        ))

    try:
        data = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning("Request body is not valid JSON", model=model.__name__, error=str(e))
        return ValidationResult(error=GatewayError(
            ErrorCode.MALFORMED_JSON, "Invalid JSON format in request body.",
        ))

    if not isinstance(data, dict):
        return ValidationResult(error=GatewayError(
            ErrorCode.MALFORMED_JSON, "Invalid request format.",
        ))

    try:
        value = model.model_validate(data)
    except ValidationError as e:
        errors = [
            {
                "field": ".".join(str(loc) for loc in err["loc"]),
                "message": err["msg"],
            }
            for err in e.errors()
        ]
        logger.warning("Request body has invalid field types", model=model.__name__, errors=errors)
        return ValidationResult(error=GatewayError(
            ErrorCode.MALFORMED_JSON, "Invalid request format.", errors=errors,
        ))

    missing = [
        alias
        for name, alias in zip(model.REQUIRED_FIELDS, model.required_aliases())
        if _is_missing(getattr(value, name))
    ]
    if missing:
        return ValidationResult(error=GatewayError(
            ErrorCode.MISSING_REQUIRED_FIELD,
            f"{missing[0]} is required",
            detail=f"Missing required field(s): {', '.join(missing)}",
            errors=[{"field": alias, "message": f"{alias} is required"} for alias in missing],
        ))

    return ValidationResult(value=value)
