"""
Reverse proxy for pass-through endpoints
Forwards requests that need no orchestration to a downstream service
"""

import json
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request

from auth_gateway.config import ServiceTarget, Settings
from auth_gateway.utils.downstream_client import BODYLESS_METHODS, DownstreamClient
from auth_gateway.utils.errors import ErrorCode, GatewayError, classify
from auth_gateway.utils.logger import get_logger

logger = get_logger(__name__)

JSON_CONTENT_TYPE = "application/json"
PROBLEM_CONTENT_TYPE = "application/problem+json"


@dataclass(frozen=True)
class ProxyResponse:
    """Downstream status and body; the content type is always JSON"""
    status: int
    body: bytes
    content_type: str = JSON_CONTENT_TYPE


class ReverseProxy:
    """Transparent forwarding to the account and token services"""

    def __init__(self, settings: Settings, client: DownstreamClient):
        self.settings = settings
        self.client = client

    async def forward(
        self,
        request: Request,
        target: ServiceTarget,
        path: str,
        method: Optional[str] = None,
    ) -> ProxyResponse:
        """
        Forward a request verbatim

        Args:
            request: Inbound request; its body is read once for methods with a body
            target: Named downstream service
            path: Path on the downstream service
            method: HTTP method to use downstream (defaults to the inbound method)

        Returns:
            ProxyResponse with the downstream status and body, or a
            DOWNSTREAM_UNAVAILABLE problem when no response was received
        """
        method = (method or request.method).upper()
        resolved = self.settings.resolve_target(target)
        url = resolved.url(path)

        content = None
        if method not in BODYLESS_METHODS:
            content = await request.body()

        try:
            response = await self.client.send(
                method,
                url,
                content=content,
                access_key=resolved.access_key,
                params=list(request.query_params.multi_items()) or None,
            )
        except httpx.RequestError as e:
            logger.error(
                "Proxy request failed",
                target=target.value,
                method=method,
                url=url,
                error_type=type(e).__name__,
                error=str(e),
            )
            return self._unavailable(request, target)

        logger.info(
            "Proxied request",
            target=target.value,
            method=method,
            url=url,
            status_code=response.status_code,
        )
        return ProxyResponse(status=response.status_code, body=response.content)

    def _unavailable(self, request: Request, target: ServiceTarget) -> ProxyResponse:
        error = GatewayError(ErrorCode.DOWNSTREAM_UNAVAILABLE, f"{target.value} is unavailable")
        problem = classify(
            error,
            request_id=getattr(request.state, "request_id", None),
            trace_id=getattr(request.state, "trace_id", None),
        )
        return ProxyResponse(
            status=problem.http_status,
            body=json.dumps(problem.to_response(error.message)).encode("utf-8"),
            content_type=PROBLEM_CONTENT_TYPE,
        )
