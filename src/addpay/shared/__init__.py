"""Shared package initialization."""

from .constants import (
    Currency,
    TransactionStatus,
    TransactionType,
    PaymentScenario,
    PlatformType,
    MandateType,
    MandateFrequency,
    MandateStatus,
    AccountType,
    ErrorCode,
    SUCCESS_CODES,
    Config,
)

from .errors import (
    AddPayError,
    ConfigurationError,
    InvalidRequestError,
)

from .canonical import (
    FieldKind,
    classify,
    canonicalize,
    render_value,
    serialize_nested,
)

from .encryption import (
    SignatureCodec,
    RsaCipher,
    load_private_key,
    load_public_key,
    generate_nonce,
    generate_timestamp,
)

__all__ = [
    # Constants
    "Currency",
    "TransactionStatus",
    "TransactionType",
    "PaymentScenario",
    "PlatformType",
    "MandateType",
    "MandateFrequency",
    "MandateStatus",
    "AccountType",
    "ErrorCode",
    "SUCCESS_CODES",
    "Config",
    # Errors
    "AddPayError",
    "ConfigurationError",
    "InvalidRequestError",
    # Canonicalization
    "FieldKind",
    "classify",
    "canonicalize",
    "render_value",
    "serialize_nested",
    # Signing
    "SignatureCodec",
    "RsaCipher",
    "load_private_key",
    "load_public_key",
    "generate_nonce",
    "generate_timestamp",
]
