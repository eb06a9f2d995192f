"""
Transport: sends a signed envelope with timeout and bounded retry.

One logical call runs through these states:

    Pending → Sending → Succeeded
                      → TimedOut          (deadline hit on every attempt)
                      → NetworkFailed     (connection errors on every attempt)
                      → ProtocolRejected  (non-2xx response)

Retry policy:
- Deadline exceeded: the in-flight call is cancelled and the next attempt
  starts immediately.
- Network failure: wait min(1s * 2^attempt, 5s) before the next attempt.
  Any other exception from the network port, or from decoding a 2xx
  body, is treated as a network failure.
- Non-2xx: never retried. The gateway actively rejected the request.

Attempts within a call are strictly sequential. Separate calls share
nothing, so any number can run concurrently on the same Transport.

The network itself is an injected NetworkPort: an async callable taking a
NetworkRequest and returning a NetworkResponse. HttpxNetworkPort is the
production implementation; tests substitute a plain coroutine function.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Mapping, Optional, Union

import httpx

from ..shared.constants import Config, ErrorCode
from ..shared.errors import AddPayError
from .envelope import IncomingEnvelope, OutgoingEnvelope

logger = logging.getLogger(__name__)


class NetworkError(Exception):
    """Connection-level failure (refused, DNS, reset, unreadable body)."""
    pass


class NetworkTimeout(NetworkError):
    """The network layer gave up waiting for a response."""
    pass


@dataclass(frozen=True)
class NetworkRequest:
    method: str
    url: str
    headers: Dict[str, str]
    body: bytes


@dataclass(frozen=True)
class NetworkResponse:
    status: int
    reason: str = ""
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


NetworkPort = Callable[[NetworkRequest], Awaitable[NetworkResponse]]
SleepFunc = Callable[[float], Awaitable[None]]


class HttpxNetworkPort:
    """
    NetworkPort backed by an httpx.AsyncClient.

    Deadlines are enforced by the Transport, so the client is created
    without its own timeout unless one is passed in.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=None)

    async def __call__(self, request: NetworkRequest) -> NetworkResponse:
        try:
            response = await self._client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
            )
        except httpx.TimeoutException as e:
            raise NetworkTimeout(str(e) or type(e).__name__) from e
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            # Transport, decoding and redirect failures alike
            raise NetworkError(str(e) or type(e).__name__) from e

        return NetworkResponse(
            status=response.status_code,
            reason=response.reason_phrase,
            body=response.content,
            headers=dict(response.headers),
        )

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()


def backoff_delay(attempt: int) -> float:
    """
    Seconds to wait after a network failure on `attempt` (0-indexed).

    1s, 2s, 4s, then capped at 5s.
    """
    return min(Config.BACKOFF_BASE * (2 ** attempt), Config.BACKOFF_MAX)


class Transport:
    """
    Sends envelopes through a NetworkPort.

    send() never raises for network conditions: it returns either the
    decoded IncomingEnvelope or a classified AddPayError.
    """

    def __init__(self, network: NetworkPort, sleep: SleepFunc = asyncio.sleep):
        self.network = network
        self.sleep = sleep

    async def send(
        self,
        envelope: OutgoingEnvelope,
        method: str,
        url: str,
        timeout: float = Config.DEFAULT_TIMEOUT,
        max_retries: int = Config.DEFAULT_RETRIES,
        headers: Optional[Mapping[str, str]] = None
    ) -> Union[IncomingEnvelope, AddPayError]:
        """
        Send an envelope, retrying timeouts and network failures.

        Args:
            envelope: Signed envelope; each attempt gets a fresh timestamp/nonce
            method: HTTP method
            url: Full request URL
            timeout: Seconds allowed per attempt
            max_retries: Additional attempts after the first
            headers: Extra headers merged over the JSON defaults

        Returns:
            IncomingEnvelope on a 2xx JSON response, otherwise an AddPayError
            with code HTTP_ERROR, TIMEOUT or NETWORK_ERROR
        """
        request_headers = dict(Config.DEFAULT_HEADERS)
        if headers:
            request_headers.update(headers)

        for attempt in range(max_retries + 1):
            request = NetworkRequest(
                method=method,
                url=url,
                headers=request_headers,
                body=json.dumps(envelope.stamp()).encode("utf-8"),
            )
            logger.debug("%s %s attempt %d/%d", method, url, attempt + 1, max_retries + 1)

            try:
                return await self._attempt(request, timeout)

            except (asyncio.TimeoutError, NetworkTimeout):
                if attempt < max_retries:
                    logger.warning(
                        "%s %s timed out after %ss, retrying (%d/%d)",
                        method, url, timeout, attempt + 1, max_retries,
                    )
                    continue
                return AddPayError(
                    ErrorCode.TIMEOUT,
                    f"Request timeout after {timeout}s",
                    {"attempts": attempt + 1, "timeout": timeout},
                )

            except Exception as e:
                # NetworkError, OSError and anything else raised by the port.
                # CancelledError is a BaseException and propagates.
                if attempt < max_retries:
                    delay = backoff_delay(attempt)
                    logger.warning(
                        "%s %s failed (%s), retrying in %.1fs (%d/%d)",
                        method, url, e, delay, attempt + 1, max_retries,
                    )
                    await self.sleep(delay)
                    continue
                return AddPayError(
                    ErrorCode.NETWORK_ERROR,
                    f"Network error: {str(e) or type(e).__name__}",
                    {"attempts": attempt + 1, "error": repr(e)},
                )

        return AddPayError(ErrorCode.UNKNOWN_ERROR, "Unknown error occurred")

    async def _attempt(
        self,
        request: NetworkRequest,
        timeout: float
    ) -> Union[IncomingEnvelope, AddPayError]:
        response = await asyncio.wait_for(self.network(request), timeout)

        if not response.ok:
            logger.warning("%s %s rejected: HTTP %d", request.method, request.url, response.status)
            return AddPayError(
                ErrorCode.HTTP_ERROR,
                f"HTTP {response.status}: {response.reason}",
                {
                    "status": response.status,
                    "status_text": response.reason,
                    "body": response.body.decode("utf-8", errors="replace"),
                },
            )

        try:
            return IncomingEnvelope.from_json(response.body)
        except (ValueError, RecursionError) as e:
            raise NetworkError(f"Invalid JSON response: {e}") from e
