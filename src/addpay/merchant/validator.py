"""
Response validation.

A response that made it through the transport is checked in order:

1. Business status: `code` must be "0" or "SUCCESS". Otherwise the
   gateway's code and message are returned verbatim.
2. Authenticity: if the response carries a `sign`, it must verify
   against the gateway public key over every other field.

A response without `sign` is accepted. This mirrors the gateway's
behaviour of not signing every response; callers that need strict
authenticity should check `envelope.sign` themselves.
"""

import logging
from typing import Union

from ..shared.canonical import canonicalize
from ..shared.constants import ErrorCode
from ..shared.encryption import SignatureCodec
from ..shared.errors import AddPayError
from .envelope import IncomingEnvelope

logger = logging.getLogger(__name__)


class ResponseValidator:
    """Checks business status and signature of gateway responses."""

    def __init__(self, gateway_public_key: str):
        self.gateway_public_key = gateway_public_key

    def verify_signature(self, envelope: IncomingEnvelope) -> bool:
        """True if the envelope is unsigned or its signature is valid."""
        if not envelope.sign:
            return True
        canonical = canonicalize(envelope.signable_fields())
        return SignatureCodec.verify(canonical, envelope.sign, self.gateway_public_key)

    def validate(self, envelope: IncomingEnvelope) -> Union[IncomingEnvelope, AddPayError]:
        if not envelope.is_success:
            return AddPayError(
                envelope.code,
                envelope.msg or "Unknown error",
                envelope.raw,
            )

        if not self.verify_signature(envelope):
            logger.warning("Response signature verification failed (code=%s)", envelope.code)
            return AddPayError(
                ErrorCode.INVALID_SIGNATURE,
                "Response signature verification failed",
                envelope.raw,
            )

        return envelope
