"""
HttpClient: one logical gateway call, end to end.

    build envelope → send (timeout/retry) → validate → result

execute() returns the validated IncomingEnvelope or an AddPayError
value; request() raises the error instead. Resources use request().
"""

import asyncio
import logging
from typing import Any, Mapping, Optional, Union

from ..shared.constants import Config
from ..shared.errors import AddPayError, InvalidRequestError
from .config import ClientConfig, RequestOptions
from .envelope import IncomingEnvelope, RequestEnvelopeBuilder
from .transport import HttpxNetworkPort, NetworkPort, SleepFunc, Transport
from .validator import ResponseValidator

logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")


class HttpClient:
    """
    Signed-request pipeline bound to one ClientConfig.

    Args:
        config: Validated client configuration
        network: NetworkPort to send through (default: httpx)
        sleep: Backoff sleep function (default: asyncio.sleep)
    """

    def __init__(
        self,
        config: ClientConfig,
        network: Optional[NetworkPort] = None,
        sleep: SleepFunc = asyncio.sleep
    ):
        self.config = config
        self._owned_network = HttpxNetworkPort() if network is None else None
        self.network = network or self._owned_network

        self.builder = RequestEnvelopeBuilder(config)
        self.transport = Transport(self.network, sleep=sleep)
        self.validator = ResponseValidator(config.gateway_public_key)

    def url_for(self, endpoint: str) -> str:
        return f"{self.config.base_url}{endpoint}"

    async def execute(
        self,
        endpoint: str,
        method: str = "POST",
        data: Optional[Mapping[str, Any]] = None,
        options: Optional[RequestOptions] = None
    ) -> Union[IncomingEnvelope, AddPayError]:
        """
        Run one logical call.

        Returns:
            The validated IncomingEnvelope, or the AddPayError that ended
            the call. Retries are not visible here except as latency.

        Raises:
            InvalidRequestError: Unsupported HTTP method
            AddPayError: SIGNING_ERROR if the private key is unusable
        """
        method = method.upper()
        if method not in HTTP_METHODS:
            raise InvalidRequestError("method", f"Unsupported HTTP method: {method}")

        options = options or RequestOptions()
        timeout = options.timeout or self.config.timeout or Config.DEFAULT_TIMEOUT

        envelope = self.builder.build(data or {})
        result = await self.transport.send(
            envelope,
            method=method,
            url=self.url_for(endpoint),
            timeout=timeout,
            max_retries=options.retries,
            headers=options.headers,
        )

        if isinstance(result, AddPayError):
            logger.info("%s %s failed: %s %s", method, endpoint, result.code, result.message)
            return result

        return self.validator.validate(result)

    async def request(
        self,
        endpoint: str,
        method: str = "POST",
        data: Optional[Mapping[str, Any]] = None,
        options: Optional[RequestOptions] = None
    ) -> IncomingEnvelope:
        """Like execute(), but raises the AddPayError."""
        result = await self.execute(endpoint, method, data, options)
        if isinstance(result, AddPayError):
            raise result
        return result

    async def aclose(self):
        if self._owned_network is not None:
            await self._owned_network.aclose()
