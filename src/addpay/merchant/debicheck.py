"""
DebiCheck mandates and collections.

A DebiCheck mandate is a debit order the customer authenticates with
their bank. Once the mandate is APPROVED the merchant can collect
against it, up to `max_amount` per collection.

Flow:
1. create_mandate(): customer receives an authentication request
2. Gateway notifies `notify_url` when the mandate is approved/rejected
3. collect(): debit the account against the approved mandate
"""

from dataclasses import dataclass
from typing import Optional, Union

from ..shared.constants import AccountType, Currency, MandateFrequency, MandateType
from .checkout import Amount
from .config import RequestOptions
from .models import RequestModel
from .payment_client import APIResource, PaymentResponse


@dataclass(frozen=True)
class DebiCheckCustomerInfo(RequestModel):
    """Account holder details. Bank details are required by the scheme."""
    customer_id: str
    customer_name: str
    id_number: str
    account_number: str
    account_type: Union[AccountType, str]
    bank_name: str
    branch_code: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None

    REQUIRED = (
        "customer_id",
        "customer_name",
        "id_number",
        "account_number",
        "account_type",
        "bank_name",
        "branch_code",
    )


@dataclass(frozen=True)
class MandateInfo(RequestModel):
    """
    Mandate terms.

    Dates are YYYY-MM-DD strings.
    """
    mandate_type: Union[MandateType, str]
    max_amount: Amount
    currency: Union[Currency, str]
    start_date: str
    end_date: Optional[str] = None
    frequency: Optional[Union[MandateFrequency, str]] = None
    installments: Optional[int] = None
    tracking_days: Optional[int] = None
    description: Optional[str] = None

    REQUIRED = ("mandate_type", "max_amount", "currency", "start_date")


@dataclass(frozen=True)
class DebiCheckMandateRequest(RequestModel):
    merchant_order_no: str
    customer_info: DebiCheckCustomerInfo
    mandate_info: MandateInfo
    notify_url: str
    return_url: Optional[str] = None

    REQUIRED = ("merchant_order_no", "customer_info", "mandate_info", "notify_url")


@dataclass(frozen=True)
class DebiCheckCollectionRequest(RequestModel):
    mandate_reference: str
    merchant_order_no: str
    collection_amount: Amount
    currency: Union[Currency, str]
    notify_url: str
    collection_date: Optional[str] = None

    REQUIRED = (
        "mandate_reference",
        "merchant_order_no",
        "collection_amount",
        "currency",
        "notify_url",
    )


@dataclass(frozen=True)
class DebiCheckStatusRequest(RequestModel):
    mandate_reference: Optional[str] = None
    merchant_order_no: Optional[str] = None

    ONE_OF = ("mandate_reference", "merchant_order_no")


class DebiCheckResource(APIResource):
    """DebiCheck API."""

    label = "mandate"

    async def create_mandate(
        self,
        request: DebiCheckMandateRequest,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        """
        Create a DebiCheck mandate.

        Returns:
            Mandate object (mandate_reference, mandate_status, auth_url, ...)
        """
        return await self._request("/api/entry/debicheck/mandate", request.to_params(), options)

    async def collect(
        self,
        request: DebiCheckCollectionRequest,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        """Initiate a collection against an approved mandate."""
        return await self._request(
            "/api/entry/debicheck/collect", request.to_params(), options, label="collection"
        )

    async def get_status(
        self,
        request: DebiCheckStatusRequest,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        """Get the status of a mandate and its collections."""
        return await self._request(
            "/api/entry/debicheck/status", request.to_params(), options, label="status"
        )

    async def cancel_mandate(
        self,
        mandate_reference: str,
        options: Optional[RequestOptions] = None
    ) -> PaymentResponse:
        return await self._request(
            "/api/entry/debicheck/mandate/cancel",
            {"mandate_reference": mandate_reference},
            options,
            label="cancellation",
        )
