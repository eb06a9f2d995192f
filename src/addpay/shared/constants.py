"""
Shared constants and configuration for the AddPay SDK.

This module defines the enumerations and defaults used across the
signing layer, the transport pipeline and the resource layer.
"""

from enum import Enum

# =============================================================================
# CURRENCY CODES (ISO 4217)
# =============================================================================

class Currency(str, Enum):
    """Currencies accepted by the gateway."""
    ZAR = "ZAR"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"


# =============================================================================
# TRANSACTION STATUS
# =============================================================================

class TransactionStatus(int, Enum):
    """Status of a transaction as reported in `trans_status`."""
    PROCESSING = 0
    CLOSED = 1
    COMPLETED = 2
    CANCELLED = 3


class TransactionType(int, Enum):
    """Type of a transaction as reported in `trans_type`."""
    PURCHASE = 1
    PURCHASE_CANCELLATION = 2
    REFUND = 3
    PRE_AUTH = 4
    CASHBACK = 11


class PaymentScenario(str, Enum):
    """Payment scenario for hosted checkout."""
    WEB_PAY = "WEB_PAY"     # PC web payment
    WAP_PAY = "WAP_PAY"     # Mobile/WAP payment
    CNP_PAY = "CNP_PAY"     # Online card payment


class PlatformType(str, Enum):
    """Terminal the customer is paying from."""
    WEB = "WEB"
    WAP = "WAP"
    ANDROID = "ANDROID"
    IOS = "IOS"


# =============================================================================
# DEBICHECK
# =============================================================================

class MandateType(str, Enum):
    ONCE_OFF = "ONCE_OFF"
    RECURRING = "RECURRING"


class MandateFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class MandateStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class AccountType(str, Enum):
    """Bank account types accepted for DebiCheck mandates."""
    CURRENT = "CURRENT"
    SAVINGS = "SAVINGS"
    TRANSMISSION = "TRANSMISSION"


# =============================================================================
# ERROR CODES
# =============================================================================

class ErrorCode(str, Enum):
    """
    Stable error codes for programmatic branching.

    Business errors are not listed here: the gateway's own `code`
    is passed through verbatim when the status check fails.
    """
    HTTP_ERROR = "HTTP_ERROR"                   # Non-2xx, never retried
    TIMEOUT = "TIMEOUT"                         # Deadline exceeded on every attempt
    NETWORK_ERROR = "NETWORK_ERROR"             # Connection-level failure on every attempt
    INVALID_SIGNATURE = "INVALID_SIGNATURE"     # Response authenticity check failed
    SIGNING_ERROR = "SIGNING_ERROR"             # Private key could not be used
    MISSING_DATA = "MISSING_DATA"               # Successful response without payload
    UNKNOWN_ERROR = "UNKNOWN_ERROR"             # Should be unreachable


# Business status codes that mean success
SUCCESS_CODES = ("0", "SUCCESS")


# =============================================================================
# WIRE FIELD NAMES
# =============================================================================

SIGN_FIELD = "sign"
APP_ID_FIELD = "app_id"
MERCHANT_NO_FIELD = "merchant_no"
STORE_NO_FIELD = "store_no"
TIMESTAMP_FIELD = "timestamp"
NONCE_FIELD = "nonce"


# =============================================================================
# CONFIGURATION
# =============================================================================

class Config:
    """Configuration constants."""

    # Hosts
    SANDBOX_BASE_URL = "http://gw.wisepaycloud.com"
    PRODUCTION_BASE_URL = "https://api.paycloud.africa"

    # Request lifecycle (seconds)
    DEFAULT_TIMEOUT = 30.0
    DEFAULT_RETRIES = 0
    BACKOFF_BASE = 1.0
    BACKOFF_MAX = 5.0

    # Nonce configuration
    NONCE_BYTES = 16  # 32 hex characters

    # Environment variable prefix for ClientConfig.from_env()
    ENV_PREFIX = "ADDPAY_"

    DEFAULT_HEADERS = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
