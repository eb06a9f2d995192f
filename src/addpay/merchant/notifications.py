"""
Gateway Notification Handler

The gateway reports asynchronous outcomes (checkout paid, mandate
approved, token created) by POSTing a signed payload to the merchant's
`notify_url`. This module verifies and parses those payloads.

Key principles:
1. ALWAYS verify the signature first
2. Unsigned notifications are rejected (unlike API responses, there is
   no request of ours they answer)
3. Use merchant_order_no to find your order, and make handling
   idempotent: the gateway may deliver the same notification twice
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from ..shared.canonical import canonicalize
from ..shared.constants import SIGN_FIELD
from ..shared.encryption import SignatureCodec

logger = logging.getLogger(__name__)


class NotificationVerificationError(Exception):
    """Raised when a notification payload is malformed or its signature is invalid."""
    pass


@dataclass
class Notification:
    """A verified gateway notification."""
    fields: Dict[str, Any]

    @property
    def merchant_order_no(self) -> Optional[str]:
        return self.fields.get("merchant_order_no")

    @property
    def order_no(self) -> Optional[str]:
        return self.fields.get("order_no")

    @property
    def trans_status(self) -> Optional[Any]:
        return self.fields.get("trans_status")

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


class NotificationHandler:
    """
    Verifies notifications with the gateway public key.

    Usage:
        handler = NotificationHandler(gateway_public_key=gateway_pem)

        # In your web framework route:
        def notify_route(request):
            try:
                notification = handler.verify(request.body)
            except NotificationVerificationError:
                return Response(status=400)
            mark_order(notification.merchant_order_no, notification.trans_status)
            return Response(status=200)
    """

    def __init__(self, gateway_public_key: str):
        self.gateway_public_key = gateway_public_key

    def parse(self, payload: Union[str, bytes, Mapping[str, Any]]) -> Dict[str, Any]:
        """Decode a raw body (or an already-parsed form/JSON mapping)."""
        if isinstance(payload, Mapping):
            return dict(payload)
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            raise NotificationVerificationError(f"Invalid payload: {e}")
        if not isinstance(data, dict):
            raise NotificationVerificationError("Invalid payload: expected a JSON object")
        return data

    def verify(self, payload: Union[str, bytes, Mapping[str, Any]]) -> Notification:
        """
        Verify a notification and return it.

        Raises:
            NotificationVerificationError: if unsigned, malformed or tampered
        """
        data = self.parse(payload)

        signature = data.get(SIGN_FIELD)
        if not signature:
            raise NotificationVerificationError("Notification is not signed")

        if not SignatureCodec.verify(canonicalize(data), signature, self.gateway_public_key):
            logger.warning(
                "Rejected notification with invalid signature (merchant_order_no=%s)",
                data.get("merchant_order_no"),
            )
            raise NotificationVerificationError("Signature mismatch")

        return Notification(fields={k: v for k, v in data.items() if k != SIGN_FIELD})
