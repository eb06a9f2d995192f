"""
Request and response envelopes.

An outgoing envelope is the full set of fields sent to the gateway:

    business fields        (nested objects flattened to JSON text)
    app_id, merchant_no, store_no
    sign                   RSA signature over the canonical string
    timestamp, nonce       minted fresh for every attempt

The signature covers the business fields plus the three identity fields.
It never covers the timestamp or nonce, so a retry can re-stamp the same
signed envelope without re-signing.
"""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..shared.canonical import FieldKind, canonicalize, classify, serialize_nested
from ..shared.constants import (
    APP_ID_FIELD,
    MERCHANT_NO_FIELD,
    NONCE_FIELD,
    SIGN_FIELD,
    STORE_NO_FIELD,
    SUCCESS_CODES,
    TIMESTAMP_FIELD,
)
from ..shared.encryption import SignatureCodec, generate_nonce, generate_timestamp
from .config import ClientConfig

logger = logging.getLogger(__name__)


def wire_value(value: Any) -> Any:
    """
    Value as it goes into the JSON request body.

    Nested objects become JSON text via the same serializer the
    canonicalizer uses; numbers, booleans and strings pass through.
    """
    if classify(value) is FieldKind.NESTED:
        return serialize_nested(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    return value


@dataclass(frozen=True)
class OutgoingEnvelope:
    """A signed request, ready to be stamped and sent."""
    fields: Dict[str, Any]
    canonical: str = field(repr=False)

    @property
    def signature(self) -> str:
        return self.fields[SIGN_FIELD]

    def stamp(self) -> Dict[str, Any]:
        """Wire body for one attempt, with its own timestamp and nonce."""
        body = dict(self.fields)
        body[TIMESTAMP_FIELD] = generate_timestamp()
        body[NONCE_FIELD] = generate_nonce()
        return body


class RequestEnvelopeBuilder:
    """
    Builds signed envelopes for one set of credentials.

    Usage:
        builder = RequestEnvelopeBuilder(config)
        envelope = builder.build({"merchant_order_no": "ORD-1", "order_amount": "100.00"})
        body = envelope.stamp()
    """

    def __init__(self, config: ClientConfig):
        self.config = config

    def identity_fields(self) -> Dict[str, str]:
        return {
            APP_ID_FIELD: self.config.app_id,
            MERCHANT_NO_FIELD: self.config.merchant_no,
            STORE_NO_FIELD: self.config.store_no,
        }

    def build(self, params: Mapping[str, Any]) -> OutgoingEnvelope:
        """
        Sign business fields and assemble the envelope.

        None values are dropped entirely. Empty strings are transmitted
        but, like None, never signed.

        Raises:
            AddPayError: SIGNING_ERROR if the private key is unusable
        """
        business = {k: v for k, v in params.items() if v is not None}

        signed_fields = dict(business)
        signed_fields.update(self.identity_fields())
        canonical = canonicalize(signed_fields)
        signature = SignatureCodec.sign(canonical, self.config.private_key)

        body = {k: wire_value(v) for k, v in business.items()}
        body.update(self.identity_fields())
        body[SIGN_FIELD] = signature

        logger.debug("Signed envelope with %d business fields", len(business))
        return OutgoingEnvelope(fields=body, canonical=canonical)


@dataclass
class IncomingEnvelope:
    """
    A decoded gateway response.

    `raw` keeps every field exactly as received, since the response
    signature is computed over all of them.
    """
    code: str
    msg: str = ""
    data: Optional[Any] = None
    sign: Optional[str] = field(default=None, repr=False)
    timestamp: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "IncomingEnvelope":
        code = payload.get("code")
        return cls(
            code="" if code is None else str(code),
            msg=payload.get("msg") or "",
            data=payload.get("data"),
            sign=payload.get(SIGN_FIELD),
            timestamp=payload.get(TIMESTAMP_FIELD),
            raw=dict(payload),
        )

    @classmethod
    def from_json(cls, body: bytes) -> "IncomingEnvelope":
        """
        Decode a response body.

        Raises:
            ValueError: If the body is not a JSON object
        """
        payload = json.loads(body)
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
        return cls.from_dict(payload)

    @property
    def is_success(self) -> bool:
        return self.code in SUCCESS_CODES

    def signable_fields(self) -> Dict[str, Any]:
        return {k: v for k, v in self.raw.items() if k != SIGN_FIELD}
