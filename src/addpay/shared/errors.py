"""
Error types for the AddPay SDK.

Every failure inside the request pipeline is represented by exactly one
AddPayError carrying a stable code. Pipeline stages hand these back as
values; the public request methods raise them.

Construction-time mistakes (missing credentials, incomplete request
objects) are programming errors and raise immediately as ValueError
subclasses instead.
"""

import time
from typing import Any, Dict, Optional, Union

from .constants import ErrorCode


class AddPayError(Exception):
    """
    A classified failure from the request pipeline.

    Attributes:
        code: An ErrorCode value, or the gateway's own business code
        message: Human-readable description
        details: Structured context (HTTP status, original gateway payload)
        timestamp: Capture time in milliseconds since epoch
    """

    def __init__(
        self,
        code: Union[ErrorCode, str],
        message: str,
        details: Optional[Any] = None
    ):
        super().__init__(message)
        self.code = code.value if isinstance(code, ErrorCode) else str(code)
        self.message = message
        self.details = details
        self.timestamp = int(time.time() * 1000)

    @property
    def is_business_error(self) -> bool:
        """True when the code came from the gateway rather than the SDK."""
        return self.code not in ErrorCode._value2member_map_

    @property
    def http_status(self) -> Optional[int]:
        if self.code == ErrorCode.HTTP_ERROR.value and isinstance(self.details, dict):
            return self.details.get("status")
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return f"AddPayError(code={self.code!r}, message={self.message!r})"


class ConfigurationError(ValueError):
    """Client credentials or settings are missing or malformed."""

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Missing required configuration: {field}")
        self.field = field


class InvalidRequestError(ValueError):
    """A request object is missing a required field."""

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Missing required field: {field}")
        self.field = field
