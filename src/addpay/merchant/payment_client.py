"""
AddPay Payment Client

This is what a merchant's backend uses to communicate with
the AddPay gateway.

Example usage:
    async with AddPayClient(
        app_id="app_123",
        merchant_no="M0001",
        store_no="S0001",
        private_key=private_pem,
        public_key=public_pem,
        gateway_public_key=gateway_pem,
        sandbox=True,
    ) as client:
        checkout = await client.checkout.create(CheckoutRequest(
            merchant_order_no="ORD-1001",
            order_amount="249.99",
            price_currency=Currency.ZAR,
            notify_url="https://shop.example/notify",
            return_url="https://shop.example/done",
        ))
        print(checkout.pay_url)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..shared.constants import ErrorCode
from ..shared.encryption import key_fingerprint
from ..shared.errors import AddPayError
from .config import ClientConfig, RequestOptions
from .http_client import HttpClient
from .transport import NetworkPort, SleepFunc

logger = logging.getLogger(__name__)


@dataclass
class PaymentResponse:
    """Wrapper for the `data` payload of a successful response."""
    data: Dict

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self.data.get(name)

    def __getitem__(self, key):
        return self.data[key]

    def to_dict(self) -> Dict:
        return self.data


class APIResource:
    """Base class for API resources."""

    # Used in the MISSING_DATA message, e.g. "No checkout data returned"
    label = "response"

    def __init__(self, client: HttpClient):
        self.client = client

    async def _request(
        self,
        endpoint: str,
        params: Mapping[str, Any],
        options: Optional[RequestOptions] = None,
        label: Optional[str] = None
    ) -> PaymentResponse:
        """POST to an endpoint and unwrap `data`, which must be present."""
        envelope = await self.client.request(endpoint, "POST", params, options)

        if envelope.data is None:
            raise AddPayError(
                ErrorCode.MISSING_DATA,
                f"No {label or self.label} data returned",
                envelope.raw,
            )

        return PaymentResponse(envelope.data)


class AddPayClient:
    """
    AddPay Gateway Client.

    Main entry point: validates credentials once, then exposes the
    checkout, debicheck and token resources.

    Usage:
        client = AddPayClient(app_id=..., merchant_no=..., store_no=...,
                              private_key=..., public_key=...,
                              gateway_public_key=...)
        # or
        client = AddPayClient(ClientConfig.from_env())

        mandate = await client.debicheck.create_mandate(request)
        await client.aclose()
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        network: Optional[NetworkPort] = None,
        sleep: Optional[SleepFunc] = None,
        **settings
    ):
        """
        Initialize the client.

        Args:
            config: A ClientConfig; if omitted, one is built from `settings`
            network: NetworkPort override (tests, custom HTTP stacks)
            sleep: Backoff sleep override
            **settings: ClientConfig fields (app_id, merchant_no, ...)

        Raises:
            ConfigurationError: naming the first missing credential
        """
        # Local imports: the resource modules import APIResource from here
        from .checkout import CheckoutResource
        from .debicheck import DebiCheckResource
        from .token import TokenResource

        if config is None:
            config = ClientConfig(**settings)
        elif settings:
            raise TypeError("Pass either a ClientConfig or keyword settings, not both")

        self.config = config
        self.http = HttpClient(config, network=network, sleep=sleep or asyncio.sleep)

        self.checkout = CheckoutResource(self.http)
        self.debicheck = DebiCheckResource(self.http)
        self.token = TokenResource(self.http)

        logger.info(
            "AddPayClient initialized: %s (app_id=%s, merchant_no=%s, key=%s)",
            config.base_url,
            config.app_id,
            config.merchant_no,
            key_fingerprint(config.private_key),
        )

    @classmethod
    def create(cls, **settings) -> "AddPayClient":
        """Create a client from keyword settings."""
        return cls(**settings)

    @classmethod
    def from_env(cls, prefix: Optional[str] = None, **kwargs) -> "AddPayClient":
        """Create a client from ADDPAY_* environment variables."""
        config = ClientConfig.from_env(prefix) if prefix else ClientConfig.from_env()
        return cls(config, **kwargs)

    async def aclose(self):
        await self.http.aclose()

    async def __aenter__(self) -> "AddPayClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
