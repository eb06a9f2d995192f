"""
Card tokenization and token payments.

Tokens represent a stored card and can be charged later without the
customer re-entering card details. Card details are sent once, at
tokenization; afterwards only the token is used.

SECURITY NOTE: card numbers and CVVs are excluded from repr() so they
do not end up in logs or tracebacks.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from ..shared.constants import Currency
from .checkout import Amount
from .config import RequestOptions
from .models import RequestModel
from .payment_client import APIResource, PaymentResponse


@dataclass(frozen=True)
class BillingAddress(RequestModel):
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


@dataclass(frozen=True)
class CardInfo(RequestModel):
    """
    Card details for tokenization.

    All fields are optional: when omitted, the customer enters the card
    on the hosted page instead.
    """
    card_number: Optional[str] = field(default=None, repr=False)
    card_holder_name: Optional[str] = None
    expiry_month: Optional[str] = None
    expiry_year: Optional[str] = None
    cvv: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class TokenCustomerInfo(RequestModel):
    customer_id: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_name: Optional[str] = None
    billing_address: Optional[BillingAddress] = None

    REQUIRED = ("customer_id",)


@dataclass(frozen=True)
class TokenizationRequest(RequestModel):
    merchant_order_no: str
    notify_url: str
    card_info: Optional[CardInfo] = None
    customer_info: Optional[TokenCustomerInfo] = None
    return_url: Optional[str] = None
    verification_amount: Optional[Amount] = None
    currency: Optional[Union[Currency, str]] = None

    REQUIRED = ("merchant_order_no", "notify_url")


@dataclass(frozen=True)
class TokenPaymentRequest(RequestModel):
    token: str
    merchant_order_no: str
    order_amount: Amount
    currency: Union[Currency, str]
    notify_url: str
    cvv: Optional[str] = field(default=None, repr=False)
    description: Optional[str] = None
    return_url: Optional[str] = None
    customer_info: Optional[TokenCustomerInfo] = None

    REQUIRED = ("token", "merchant_order_no", "order_amount", "currency", "notify_url")


@dataclass(frozen=True)
class TokenDeleteRequest(RequestModel):
    token: str
    customer_id: Optional[str] = None

    REQUIRED = ("token",)


@dataclass(frozen=True)
class TokenListRequest(RequestModel):
    customer_id: str
    page: Optional[int] = None
    limit: Optional[int] = None

    REQUIRED = ("customer_id",)


class TokenResource(APIResource):
    """
    Tokens API.

    Tokens are reusable and represent a card that can be charged.
    """

    label = "tokenization"

    async def tokenize(
        self,
        request: TokenizationRequest,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        """
        Tokenize a card for future payments.

        Returns:
            Token object (token, token_status, card_info with masked number, ...)
        """
        return await self._request("/api/entry/token/create", request.to_params(), options)

    async def pay(
        self,
        request: TokenPaymentRequest,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        """Charge a stored token."""
        return await self._request(
            "/api/entry/token/pay", request.to_params(), options, label="payment"
        )

    async def delete(
        self,
        request: TokenDeleteRequest,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        return await self._request(
            "/api/entry/token/delete", request.to_params(), options, label="deletion"
        )

    async def list(
        self,
        request: TokenListRequest,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        """List all tokens stored for a customer."""
        return await self._request(
            "/api/entry/token/list", request.to_params(), options, label="token list"
        )

    async def get(
        self,
        token: str,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        """Retrieve a token by value."""
        return await self._request(
            "/api/entry/token/get", {"token": token}, options, label="token"
        )
