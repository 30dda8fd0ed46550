"""
Downstream HTTP Client
Typed JSON calls to the account and token services

Connection pooling follows the usual httpx pattern:
- Single shared AsyncClient created at app startup and closed at shutdown
- Connection limits and a bounded timeout on every call
- One attempt per call; failures are returned, not raised
"""

import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from auth_gateway.config import Settings
from auth_gateway.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

BODYLESS_METHODS = frozenset({"GET", "DELETE"})


class DownstreamErrorKind(str, Enum):
    """How a downstream call failed"""
    TRANSPORT_FAILURE = "transport_failure"
    NON_SUCCESS_STATUS = "non_success_status"
    DESERIALIZATION_FAILURE = "deserialization_failure"


@dataclass
class DownstreamError:
    """A failed downstream call; raw_body is kept for diagnostics"""
    kind: DownstreamErrorKind
    url: str
    status_code: Optional[int] = None
    raw_body: Optional[str] = None
    reason: Optional[str] = None

    @property
    def downstream_message(self) -> Optional[str]:
        """Best-effort human message from the downstream body"""
        if not self.raw_body:
            return None
        try:
            body = json.loads(self.raw_body)
        except ValueError:
            return self.raw_body.strip() or None
        if isinstance(body, dict):
            for key in ("message", "detail", "title", "error"):
                value = body.get(key)
                if isinstance(value, str) and value:
                    return value
            return None
        if isinstance(body, str):
            return body or None
        return None


@dataclass
class DownstreamResult(Generic[T]):
    """Outcome of a downstream call: either a value or an error"""
    value: Optional[T] = None
    error: Optional[DownstreamError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class DownstreamClient:
    """
    HTTP client shared by every downstream call the gateway makes.

    Lifecycle:
        - Call start() during app startup (FastAPI lifespan)
        - Call stop() during app shutdown
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def started(self) -> bool:
        return self._client is not None

    async def start(self) -> None:
        """Initialize the shared HTTP client"""
        if self._client is not None:
            logger.warning("DownstreamClient already started")
            return

        limits = httpx.Limits(
            max_connections=self.settings.downstream_max_connections,
            max_keepalive_connections=self.settings.downstream_max_keepalive,
            keepalive_expiry=self.settings.downstream_keepalive_expiry,
        )
        timeout = httpx.Timeout(
            self.settings.downstream_timeout_seconds,
            connect=self.settings.downstream_connect_timeout_seconds,
        )
        self._client = httpx.AsyncClient(
            limits=limits,
            timeout=timeout,
            transport=self._transport,
        )
        logger.info(
            "DownstreamClient started",
            max_connections=self.settings.downstream_max_connections,
            timeout_seconds=self.settings.downstream_timeout_seconds,
        )

    async def stop(self) -> None:
        """Close the HTTP client and release pooled connections"""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("DownstreamClient stopped")

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("DownstreamClient.start() must be called before making requests")
        return self._client

    def _headers(self, access_key: Optional[str], has_body: bool) -> dict:
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if access_key:
            headers[self.settings.access_key_header] = access_key
        return headers

    async def send(
        self,
        method: str,
        url: str,
        content: Optional[bytes] = None,
        access_key: Optional[str] = None,
        params: Optional[List[Tuple[str, str]]] = None,
    ) -> httpx.Response:
        """
        Send raw bytes and return the raw response

        Transport failures propagate as httpx.RequestError.
        """
        method = method.upper()
        body = None if method in BODYLESS_METHODS else content
        client = self._require_client()
        return await client.request(
            method,
            url,
            content=body,
            params=params,
            headers=self._headers(access_key, body is not None),
        )

    async def call(
        self,
        method: str,
        url: str,
        response_model: Optional[Type[T]] = None,
        payload: Optional[Any] = None,
        access_key: Optional[str] = None,
    ) -> DownstreamResult[T]:
        """
        Make a typed JSON call

        Args:
            method: HTTP method
            url: Absolute downstream URL
            response_model: Pydantic model the 2xx body must satisfy; None ignores the body
            payload: JSON-serializable body, sent only for methods other than GET/DELETE
            access_key: Service access key, sent in the configured header

        Returns:
            DownstreamResult with either the decoded value or a DownstreamError
        """
        method = method.upper()
        content = None
        if payload is not None and method not in BODYLESS_METHODS:
            content = json.dumps(payload).encode("utf-8")

        started = time.perf_counter()
        try:
            response = await self.send(method, url, content=content, access_key=access_key)
        except httpx.RequestError as e:
            logger.error(
                "Downstream request failed",
                method=method,
                url=url,
                error_type=type(e).__name__,
                error=str(e),
            )
            return DownstreamResult(error=DownstreamError(
                DownstreamErrorKind.TRANSPORT_FAILURE, url, reason=type(e).__name__,
            ))

        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        raw_body = response.text

        if not response.is_success:
            logger.warning(
                "Downstream returned non-success status",
                method=method,
                url=url,
                status_code=response.status_code,
                elapsed_ms=elapsed_ms,
                raw_body=raw_body,
            )
            return DownstreamResult(error=DownstreamError(
                DownstreamErrorKind.NON_SUCCESS_STATUS, url,
                status_code=response.status_code, raw_body=raw_body,
            ))

        logger.info(
            "Downstream call completed",
            method=method,
            url=url,
            status_code=response.status_code,
            elapsed_ms=elapsed_ms,
        )

        if response_model is None:
            return DownstreamResult()

        try:
            value = response_model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning(
                "Downstream response could not be decoded",
                url=url,
                model=response_model.__name__,
                status_code=response.status_code,
                error=str(e),
                raw_body=raw_body,
            )
            return DownstreamResult(error=DownstreamError(
                DownstreamErrorKind.DESERIALIZATION_FAILURE, url,
                status_code=response.status_code, raw_body=raw_body,
                reason=type(e).__name__,
            ))

        return DownstreamResult(value=value)
