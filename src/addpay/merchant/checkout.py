"""
Hosted checkout.

The merchant creates a checkout session and redirects the customer to
the returned `pay_url`. The gateway reports the outcome to `notify_url`
and sends the customer back to `return_url`.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Union

from ..shared.constants import Currency, PlatformType
from .config import RequestOptions
from .models import RequestModel
from .payment_client import APIResource, PaymentResponse

Amount = Union[str, int, Decimal]


@dataclass(frozen=True)
class GoodsInfo(RequestModel):
    """A line item shown on the hosted payment page."""
    goods_name: str
    goods_id: Optional[str] = None
    goods_category: Optional[str] = None
    goods_desc: Optional[str] = None
    goods_quantity: Optional[int] = None
    goods_price: Optional[Amount] = None

    REQUIRED = ("goods_name",)


@dataclass(frozen=True)
class SceneInfo(RequestModel):
    device_id: Optional[str] = None
    device_ip: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None


@dataclass(frozen=True)
class CustomerInfo(RequestModel):
    customer_id: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_name: Optional[str] = None


@dataclass(frozen=True)
class CheckoutRequest(RequestModel):
    """
    A checkout session request.

    Amounts are major units as the gateway expects them ("100.00"),
    not cents.
    """
    merchant_order_no: str
    order_amount: Amount
    price_currency: Union[Currency, str]
    notify_url: str
    return_url: str
    description: Optional[str] = None
    attach: Optional[str] = None
    expire_time: Optional[int] = None
    goods_info: Optional[List[GoodsInfo]] = None
    terminal: Optional[Union[PlatformType, str]] = None
    scene_info: Optional[SceneInfo] = None
    customer_info: Optional[CustomerInfo] = None

    REQUIRED = (
        "merchant_order_no",
        "order_amount",
        "price_currency",
        "notify_url",
        "return_url",
    )


@dataclass(frozen=True)
class CheckoutStatusRequest(RequestModel):
    """Look up a checkout by our order number or the gateway's."""
    merchant_order_no: Optional[str] = None
    order_no: Optional[str] = None

    ONE_OF = ("merchant_order_no", "order_no")


class CheckoutResource(APIResource):
    """
    Checkout API.

    Create, inspect, cancel and refund hosted checkout sessions.
    """

    label = "checkout"

    async def create(
        self,
        request: CheckoutRequest,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        """
        Create a checkout session for the hosted payment page.

        Returns:
            Checkout object (merchant_order_no, order_no, pay_url, trans_status, ...)
        """
        return await self._request("/api/entry/checkout", request.to_params(), options)

    async def get_status(
        self,
        request: CheckoutStatusRequest,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        """Get the status of a checkout session."""
        return await self._request(
            "/api/entry/checkout/status", request.to_params(), options, label="status"
        )

    async def cancel(
        self,
        merchant_order_no: str,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        """Cancel a checkout session that has not been paid."""
        return await self._request(
            "/api/entry/checkout/cancel",
            {"merchant_order_no": merchant_order_no},
            options,
            label="cancellation",
        )

    async def refund(
        self,
        merchant_order_no: str,
        refund_amount: Optional[Amount] = None,
        reason: Optional[str] = None,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        """
        Refund a completed checkout transaction.

        Args:
            merchant_order_no: The order to refund
            refund_amount: Amount to refund (default: full amount)
            reason: Free-text refund reason
        """
        params = {"merchant_order_no": merchant_order_no}
        if refund_amount is not None:
            params["refund_amount"] = refund_amount
        if reason:
            params["refund_reason"] = reason

        return await self._request(
            "/api/entry/checkout/refund", params, options, label="refund"
        )
