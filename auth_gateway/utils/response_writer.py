"""
Response rendering
Success and problem envelopes for every gateway endpoint
"""

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from auth_gateway.models.responses import OrchestrationResult
from auth_gateway.utils.errors import GatewayError, ProblemDetail, classify
from auth_gateway.utils.logger import get_logger
from auth_gateway.utils.reverse_proxy import PROBLEM_CONTENT_TYPE, ProxyResponse

logger = get_logger(__name__)


def request_context(request: Optional[Request]) -> dict:
    """Request and trace ids recorded by the request middleware"""
    if request is None:
        return {"request_id": None, "trace_id": None}
    return {
        "request_id": getattr(request.state, "request_id", None),
        "trace_id": getattr(request.state, "trace_id", None),
    }


def ok(message: str, status_code: int = 200, **payload: Any) -> JSONResponse:
    """Success envelope: {succeeded: true, message, ...payload}"""
    return JSONResponse(
        status_code=status_code,
        content={"succeeded": True, "message": message, **payload},
    )


def problem(problem_detail: ProblemDetail, message: Optional[str] = None) -> JSONResponse:
    """Problem envelope with the status code of its category"""
    return JSONResponse(
        status_code=problem_detail.http_status,
        content=problem_detail.to_response(message),
        media_type=PROBLEM_CONTENT_TYPE,
    )


def error_response(error: GatewayError, request: Optional[Request] = None) -> JSONResponse:
    """Classify a gateway error and render it"""
    problem_detail = classify(error, **request_context(request))
    if error.http_status >= 500:
        logger.error("Request failed", code=error.code.value, status=error.http_status)
    else:
        logger.info("Request rejected", code=error.code.value, status=error.http_status)
    return problem(problem_detail, error.message)


def render_result(result: OrchestrationResult, request: Optional[Request] = None) -> JSONResponse:
    """Render an orchestration result"""
    if result.succeeded:
        return ok(result.message, **result.to_payload())
    return error_response(result.error, request)


def render_proxy(proxy_response: ProxyResponse) -> Response:
    """Pass a proxied downstream response through unchanged"""
    return Response(
        content=proxy_response.body,
        status_code=proxy_response.status,
        media_type=proxy_response.content_type,
    )
