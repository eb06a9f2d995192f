"""
AddPay SDK for Python.

Async client for the AddPay (PayCloud) payment gateway: hosted
checkout, DebiCheck mandates and card tokenization over RSA-signed
requests.
"""

import logging

from .shared import (
    AccountType,
    AddPayError,
    ConfigurationError,
    Currency,
    ErrorCode,
    InvalidRequestError,
    MandateFrequency,
    MandateStatus,
    MandateType,
    PaymentScenario,
    PlatformType,
    RsaCipher,
    SignatureCodec,
    TransactionStatus,
    TransactionType,
    canonicalize,
)

from .merchant import (
    AddPayClient,
    BillingAddress,
    CardInfo,
    CheckoutRequest,
    CheckoutStatusRequest,
    ClientConfig,
    CustomerInfo,
    DebiCheckCollectionRequest,
    DebiCheckCustomerInfo,
    DebiCheckMandateRequest,
    DebiCheckStatusRequest,
    GoodsInfo,
    MandateInfo,
    Notification,
    NotificationHandler,
    NotificationVerificationError,
    PaymentResponse,
    RequestOptions,
    SceneInfo,
    TokenCustomerInfo,
    TokenDeleteRequest,
    TokenizationRequest,
    TokenListRequest,
    TokenPaymentRequest,
)

__version__ = "1.0.0"

# Library logging: applications configure handlers
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AccountType",
    "AddPayClient",
    "AddPayError",
    "BillingAddress",
    "CardInfo",
    "CheckoutRequest",
    "CheckoutStatusRequest",
    "ClientConfig",
    "ConfigurationError",
    "Currency",
    "CustomerInfo",
    "DebiCheckCollectionRequest",
    "DebiCheckCustomerInfo",
    "DebiCheckMandateRequest",
    "DebiCheckStatusRequest",
    "ErrorCode",
    "GoodsInfo",
    "InvalidRequestError",
    "MandateFrequency",
    "MandateInfo",
    "MandateStatus",
    "MandateType",
    "Notification",
    "NotificationHandler",
    "NotificationVerificationError",
    "PaymentResponse",
    "PaymentScenario",
    "PlatformType",
    "RequestOptions",
    "RsaCipher",
    "SceneInfo",
    "SignatureCodec",
    "TokenCustomerInfo",
    "TokenDeleteRequest",
    "TokenizationRequest",
    "TokenListRequest",
    "TokenPaymentRequest",
    "TransactionStatus",
    "TransactionType",
    "canonicalize",
]
