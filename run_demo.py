#!/usr/bin/env python3
"""
AddPay Client Demo Runner

Runs the client against an in-process sandbox gateway (an
httpx.MockTransport), so every flow works offline with real RSA
signatures in both directions.

Usage:
    python run_demo.py            # Run all demos
    python run_demo.py checkout   # Hosted checkout only
    python run_demo.py debicheck  # DebiCheck mandate and collection
    python run_demo.py token      # Card tokenization and token payment
    python run_demo.py notify     # Notification verification
    python run_demo.py failures   # Business errors, tampering, retries
"""

import asyncio
import json
import logging
import os
import sys
import time
import uuid

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import httpx
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from addpay import (
    AccountType,
    AddPayClient,
    AddPayError,
    CardInfo,
    CheckoutRequest,
    CheckoutStatusRequest,
    ClientConfig,
    Currency,
    DebiCheckCollectionRequest,
    DebiCheckCustomerInfo,
    DebiCheckMandateRequest,
    GoodsInfo,
    MandateFrequency,
    MandateInfo,
    MandateType,
    NotificationHandler,
    NotificationVerificationError,
    RequestOptions,
    SignatureCodec,
    TokenCustomerInfo,
    TokenizationRequest,
    TokenPaymentRequest,
    canonicalize,
)
from addpay.merchant.transport import HttpxNetworkPort


def print_header(title):
    print("\n")
    print("=" * 70)
    print(f"  {title}")
    print("=" * 70)


def _pem_pair():
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


class SandboxGateway:
    """
    Minimal gateway: verifies request signatures and answers each
    endpoint with a signed response.
    """

    def __init__(self, merchant_public_key, gateway_private_key):
        self.merchant_public_key = merchant_public_key
        self.gateway_private_key = gateway_private_key
        self.tokens = {}
        # Scripted faults consumed before normal handling: ("drop"|"tamper"|"decline")
        self.faults = []

    def signed(self, payload):
        payload["timestamp"] = int(time.time() * 1000)
        payload["sign"] = SignatureCodec.sign(canonicalize(payload), self.gateway_private_key)
        return payload

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        signed_fields = {k: v for k, v in body.items() if k not in ("timestamp", "nonce")}
        if not SignatureCodec.verify(canonicalize(signed_fields), body.get("sign"), self.merchant_public_key):
            return httpx.Response(200, json=self.signed({"code": "4001", "msg": "Invalid signature"}))

        fault = self.faults.pop(0) if self.faults else None
        if fault == "drop":
            raise httpx.ConnectError("Connection reset by peer", request=request)
        if fault == "decline":
            return httpx.Response(200, json=self.signed({"code": "9999", "msg": "Insufficient funds"}))

        endpoint = request.url.path.replace("/api/entry/", "")
        data = self.route(endpoint, body)
        payload = self.signed({"code": "0", "msg": "Success", "data": data})
        if fault == "tamper":
            payload["data"]["order_amount"] = "0.01"
        return httpx.Response(200, json=payload)

    def route(self, endpoint, body):
        order = {"merchant_order_no": body.get("merchant_order_no"), "order_no": f"GW{uuid.uuid4().hex[:10]}"}

        if endpoint == "checkout":
            return {**order, "order_amount": body["order_amount"], "trans_status": 0,
                    "pay_url": f"https://pay.sandbox.example/{order['order_no']}"}
        if endpoint == "checkout/status":
            return {**order, "trans_status": 2}
        if endpoint in ("checkout/cancel", "checkout/refund"):
            return {**order, "trans_status": 3}

        if endpoint == "debicheck/mandate":
            reference = f"MR{uuid.uuid4().hex[:8].upper()}"
            return {**order, "mandate_reference": reference, "mandate_status": "PENDING",
                    "auth_url": f"https://auth.sandbox.example/{reference}"}
        if endpoint == "debicheck/collect":
            return {**order, "collection_amount": body["collection_amount"], "trans_status": 0}

        if endpoint == "token/create":
            token = f"tok_{uuid.uuid4().hex[:16]}"
            card = json.loads(body.get("card_info", "{}"))
            self.tokens[token] = card.get("card_number", "")[-4:]
            return {"token": token, "token_status": "ACTIVE",
                    "card_info": {"masked_card_number": f"************{self.tokens[token]}"}}
        if endpoint == "token/pay":
            return {**order, "order_amount": body["order_amount"], "trans_status": 2}

        return {}


def _sandbox():
    merchant_private, merchant_public = _pem_pair()
    gateway_private, gateway_public = _pem_pair()

    gateway = SandboxGateway(merchant_public, gateway_private)
    http = httpx.AsyncClient(transport=httpx.MockTransport(gateway.handle))

    config = ClientConfig(
        app_id="app_demo",
        merchant_no="M0001",
        store_no="S0001",
        private_key=merchant_private,
        public_key=merchant_public,
        gateway_public_key=gateway_public,
        sandbox=True,
    )
    client = AddPayClient(config, network=HttpxNetworkPort(http))
    return gateway, client, http


async def demo_checkout():
    gateway, client, http = _sandbox()
    async with http, client:
        checkout = await client.checkout.create(CheckoutRequest(
            merchant_order_no="ORD-1001",
            order_amount="249.99",
            price_currency=Currency.ZAR,
            notify_url="https://shop.example/notify",
            return_url="https://shop.example/done",
            goods_info=[GoodsInfo(goods_name="Trail shoes", goods_quantity=1, goods_price="249.99")],
        ))
        print(f"  Checkout created: {checkout.order_no}")
        print(f"  Redirect customer to: {checkout.pay_url}")

        status = await client.checkout.get_status(CheckoutStatusRequest(merchant_order_no="ORD-1001"))
        print(f"  Status: trans_status={status.trans_status}")

        refund = await client.checkout.refund("ORD-1001", refund_amount="50.00", reason="Wrong size")
        print(f"  Partial refund accepted: trans_status={refund.trans_status}")


async def demo_debicheck():
    gateway, client, http = _sandbox()
    async with http, client:
        mandate = await client.debicheck.create_mandate(DebiCheckMandateRequest(
            merchant_order_no="MAN-2001",
            customer_info=DebiCheckCustomerInfo(
                customer_id="C-88",
                customer_name="Thandi Nkosi",
                id_number="9001015009087",
                account_number="62000000001",
                account_type=AccountType.CURRENT,
                bank_name="FNB",
                branch_code="250655",
            ),
            mandate_info=MandateInfo(
                mandate_type=MandateType.RECURRING,
                max_amount="500.00",
                currency=Currency.ZAR,
                start_date="2026-11-01",
                frequency=MandateFrequency.MONTHLY,
            ),
            notify_url="https://shop.example/notify",
        ))
        print(f"  Mandate {mandate.mandate_reference}: {mandate.mandate_status}")
        print(f"  Customer authenticates at: {mandate.auth_url}")

        collection = await client.debicheck.collect(DebiCheckCollectionRequest(
            mandate_reference=mandate.mandate_reference,
            merchant_order_no="COL-2001",
            collection_amount="199.00",
            currency=Currency.ZAR,
            notify_url="https://shop.example/notify",
        ))
        print(f"  Collection {collection.order_no} for R{collection.collection_amount}")


async def demo_token():
    gateway, client, http = _sandbox()
    async with http, client:
        token = await client.token.tokenize(TokenizationRequest(
            merchant_order_no="TOK-3001",
            notify_url="https://shop.example/notify",
            card_info=CardInfo(
                card_number="4242424242424242",
                card_holder_name="T Nkosi",
                expiry_month="12",
                expiry_year="2030",
            ),
            customer_info=TokenCustomerInfo(customer_id="C-88"),
        ))
        print(f"  Token: {token.token} ({token.card_info['masked_card_number']})")

        payment = await client.token.pay(TokenPaymentRequest(
            token=token.token,
            merchant_order_no="ORD-3002",
            order_amount="75.00",
            currency=Currency.ZAR,
            notify_url="https://shop.example/notify",
        ))
        print(f"  Charged R{payment.order_amount}: trans_status={payment.trans_status}")


async def demo_notify():
    gateway, client, http = _sandbox()
    async with http, client:
        handler = NotificationHandler(client.config.gateway_public_key)

        payload = gateway.signed({"merchant_order_no": "ORD-1001", "order_no": "GW1", "trans_status": 2})
        notification = handler.verify(json.dumps(payload))
        print(f"  Verified: {notification.merchant_order_no} -> trans_status={notification.trans_status}")

        payload["trans_status"] = 3
        try:
            handler.verify(payload)
        except NotificationVerificationError as e:
            print(f"  Forged notification rejected: {e}")


async def demo_failures():
    gateway, client, http = _sandbox()
    request = CheckoutRequest(
        merchant_order_no="ORD-4001",
        order_amount="10.00",
        price_currency=Currency.ZAR,
        notify_url="https://shop.example/notify",
        return_url="https://shop.example/done",
    )
    async with http, client:
        gateway.faults.append("decline")
        try:
            await client.checkout.create(request)
        except AddPayError as e:
            print(f"  Business error passed through: {e.code} {e.message}")

        gateway.faults.append("tamper")
        try:
            await client.checkout.create(request)
        except AddPayError as e:
            print(f"  Tampered response: {e.code}")

        gateway.faults.extend(["drop", "drop"])
        checkout = await client.checkout.create(request, RequestOptions(retries=2))
        print(f"  Succeeded after two dropped connections: {checkout.order_no}")


def run_all_demos():
    print_header("ADDPAY CLIENT DEMO (sandbox gateway, offline)")
    for title, demo in DEMOS.values():
        print_header(title)
        asyncio.run(demo())
    print_header("DEMO COMPLETE")


DEMOS = {
    "checkout": ("1. Hosted Checkout", demo_checkout),
    "debicheck": ("2. DebiCheck Mandate and Collection", demo_debicheck),
    "token": ("3. Card Tokenization", demo_token),
    "notify": ("4. Notification Verification", demo_notify),
    "failures": ("5. Failure Handling", demo_failures),
}


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if len(sys.argv) > 1:
        command = sys.argv[1].lower()
        if command in DEMOS:
            title, demo = DEMOS[command]
            print_header(title)
            asyncio.run(demo())
        elif command == "all":
            run_all_demos()
        else:
            print(f"Unknown command: {command}")
            print("\nAvailable commands:")
            for cmd in ("all", *DEMOS):
                print(f"  {cmd}")
    else:
        run_all_demos()


if __name__ == "__main__":
    main()
