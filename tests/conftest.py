"""
Shared fixtures: RSA key pairs and an in-process fake gateway.

The fake gateway plays the remote side of the protocol. It checks every
request signature with the merchant public key and answers with
responses signed by the gateway private key, so tests exercise the real
signing path in both directions without sockets.
"""

import json
import time

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from addpay.merchant.config import ClientConfig
from addpay.merchant.transport import NetworkRequest, NetworkResponse
from addpay.shared.canonical import canonicalize
from addpay.shared.encryption import SignatureCodec


def generate_pem_pair():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture(scope="session")
def merchant_keys():
    return generate_pem_pair()


@pytest.fixture(scope="session")
def gateway_keys():
    return generate_pem_pair()


@pytest.fixture
def config(merchant_keys, gateway_keys):
    return ClientConfig(
        app_id="app_test",
        merchant_no="M0001",
        store_no="S0001",
        private_key=merchant_keys[0],
        public_key=merchant_keys[1],
        gateway_public_key=gateway_keys[1],
        sandbox=True,
    )


class FakeGateway:
    """
    NetworkPort that behaves like the gateway.

    Queue replies with reply()/fail(); when the queue is empty it answers
    code "0" with an empty data object. Every received request is kept
    in `requests` as (NetworkRequest, decoded body, signature_valid).
    """

    def __init__(self, merchant_public_key: str, gateway_private_key: str):
        self.merchant_public_key = merchant_public_key
        self.gateway_private_key = gateway_private_key
        self.requests = []
        self._queue = []

    def signed_payload(self, code="0", msg="Success", data=None, sign=True, **extra):
        payload = {"code": code, "msg": msg}
        if data is not None:
            payload["data"] = data
        payload["timestamp"] = int(time.time() * 1000)
        payload.update(extra)
        if sign:
            payload["sign"] = SignatureCodec.sign(canonicalize(payload), self.gateway_private_key)
        return payload

    def reply(self, code="0", msg="Success", data=None, sign=True, **extra):
        self._queue.append(("json", self.signed_payload(code, msg, data, sign, **extra)))
        return self

    def reply_raw(self, payload, status=200, reason="OK"):
        self._queue.append(("raw", (payload, status, reason)))
        return self

    def fail(self, exc):
        self._queue.append(("raise", exc))
        return self

    def request_signature_valid(self, body):
        signed = {k: v for k, v in body.items() if k not in ("timestamp", "nonce")}
        return SignatureCodec.verify(canonicalize(signed), body["sign"], self.merchant_public_key)

    async def __call__(self, request: NetworkRequest) -> NetworkResponse:
        body = json.loads(request.body)
        self.requests.append((request, body, self.request_signature_valid(body)))

        kind, value = self._queue.pop(0) if self._queue else ("json", self.signed_payload(data={}))
        if kind == "raise":
            raise value
        if kind == "raw":
            payload, status, reason = value
            raw = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
            return NetworkResponse(status=status, reason=reason, body=raw)
        return NetworkResponse(status=200, reason="OK", body=json.dumps(value).encode())


@pytest.fixture
def gateway(merchant_keys, gateway_keys):
    return FakeGateway(merchant_keys[1], gateway_keys[0])


@pytest.fixture
def sleeps():
    """Recording replacement for asyncio.sleep."""
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    fake_sleep.delays = delays
    return fake_sleep
