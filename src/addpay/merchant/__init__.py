"""Merchant package."""

from .config import ClientConfig, RequestOptions

from .envelope import (
    IncomingEnvelope,
    OutgoingEnvelope,
    RequestEnvelopeBuilder,
)

from .transport import (
    HttpxNetworkPort,
    NetworkError,
    NetworkPort,
    NetworkRequest,
    NetworkResponse,
    NetworkTimeout,
    Transport,
    backoff_delay,
)

from .validator import ResponseValidator

from .http_client import HttpClient

from .payment_client import (
    AddPayClient,
    APIResource,
    PaymentResponse,
)

from .checkout import (
    CheckoutResource,
    CheckoutRequest,
    CheckoutStatusRequest,
    CustomerInfo,
    GoodsInfo,
    SceneInfo,
)

from .debicheck import (
    DebiCheckResource,
    DebiCheckMandateRequest,
    DebiCheckCollectionRequest,
    DebiCheckStatusRequest,
    DebiCheckCustomerInfo,
    MandateInfo,
)

from .token import (
    TokenResource,
    TokenizationRequest,
    TokenPaymentRequest,
    TokenDeleteRequest,
    TokenListRequest,
    TokenCustomerInfo,
    CardInfo,
    BillingAddress,
)

from .notifications import (
    NotificationHandler,
    Notification,
    NotificationVerificationError,
)

__all__ = [
    # Config
    "ClientConfig",
    "RequestOptions",
    # Pipeline
    "IncomingEnvelope",
    "OutgoingEnvelope",
    "RequestEnvelopeBuilder",
    "HttpxNetworkPort",
    "NetworkError",
    "NetworkPort",
    "NetworkRequest",
    "NetworkResponse",
    "NetworkTimeout",
    "Transport",
    "backoff_delay",
    "ResponseValidator",
    "HttpClient",
    # Client
    "AddPayClient",
    "APIResource",
    "PaymentResponse",
    # Checkout
    "CheckoutResource",
    "CheckoutRequest",
    "CheckoutStatusRequest",
    "CustomerInfo",
    "GoodsInfo",
    "SceneInfo",
    # DebiCheck
    "DebiCheckResource",
    "DebiCheckMandateRequest",
    "DebiCheckCollectionRequest",
    "DebiCheckStatusRequest",
    "DebiCheckCustomerInfo",
    "MandateInfo",
    # Tokens
    "TokenResource",
    "TokenizationRequest",
    "TokenPaymentRequest",
    "TokenDeleteRequest",
    "TokenListRequest",
    "TokenCustomerInfo",
    "CardInfo",
    "BillingAddress",
    # Notifications
    "NotificationHandler",
    "Notification",
    "NotificationVerificationError",
]
