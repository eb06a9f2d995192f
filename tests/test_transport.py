"""
Tests for the signed-request pipeline: envelope building, transport
retry/timeout behaviour and response validation.
"""

import asyncio
import json

import pytest


class TestRequestEnvelopeBuilder:
    """Test outgoing envelope assembly."""

    def test_identity_and_signature_fields(self, config, merchant_keys):
        from addpay.merchant.envelope import RequestEnvelopeBuilder
        from addpay.shared.canonical import canonicalize
        from addpay.shared.encryption import SignatureCodec

        envelope = RequestEnvelopeBuilder(config).build({"merchant_order_no": "ORD-1"})
        body = envelope.stamp()

        assert body["app_id"] == "app_test"
        assert body["merchant_no"] == "M0001"
        assert body["store_no"] == "S0001"
        assert len(body["nonce"]) == 32
        assert isinstance(body["timestamp"], int)

        signed = {k: v for k, v in body.items() if k not in ("timestamp", "nonce")}
        assert envelope.canonical == canonicalize(signed)
        assert SignatureCodec.verify(envelope.canonical, body["sign"], merchant_keys[1])

    def test_signature_excludes_timestamp_and_nonce(self, config):
        from addpay.merchant.envelope import RequestEnvelopeBuilder

        envelope = RequestEnvelopeBuilder(config).build({"order_amount": "10.00"})

        assert "timestamp" not in envelope.canonical
        assert "nonce" not in envelope.canonical
        assert envelope.canonical == (
            "app_id=app_test&merchant_no=M0001&order_amount=10.00&store_no=S0001"
        )

    def test_each_stamp_mints_fresh_nonce(self, config):
        from addpay.merchant.envelope import RequestEnvelopeBuilder

        envelope = RequestEnvelopeBuilder(config).build({"a": "1"})
        first, second = envelope.stamp(), envelope.stamp()

        assert first["nonce"] != second["nonce"]
        assert first["sign"] == second["sign"]

    def test_nested_values_flattened_with_same_serializer(self, config):
        from addpay.merchant.envelope import RequestEnvelopeBuilder
        from addpay.shared.canonical import canonicalize

        params = {
            "merchant_order_no": "ORD-1",
            "customer_info": {"customer_name": "Thandi Nkosi", "customer_id": "C1"},
        }
        envelope = RequestEnvelopeBuilder(config).build(params)

        assert envelope.fields["customer_info"] == '{"customer_name":"Thandi Nkosi","customer_id":"C1"}'
        # Signing the object and signing its transmitted text agree
        flat = {k: v for k, v in envelope.fields.items() if k != "sign"}
        assert canonicalize(flat) == envelope.canonical

    def test_none_dropped_empty_string_transmitted(self, config):
        from addpay.merchant.envelope import RequestEnvelopeBuilder

        envelope = RequestEnvelopeBuilder(config).build(
            {"description": None, "attach": "", "order_amount": "5.00"}
        )

        assert "description" not in envelope.fields
        assert envelope.fields["attach"] == ""
        assert "attach" not in envelope.canonical

    def test_invalid_private_key_is_fatal(self, config):
        from dataclasses import replace
        from addpay.merchant.envelope import RequestEnvelopeBuilder
        from addpay.shared.errors import AddPayError

        broken = replace(config, private_key="not a key")

        with pytest.raises(AddPayError) as exc_info:
            RequestEnvelopeBuilder(broken).build({"a": "1"})

        assert exc_info.value.code == "SIGNING_ERROR"


class TestTransport:
    """Test timeout, retry and classification."""

    def _envelope(self, config):
        from addpay.merchant.envelope import RequestEnvelopeBuilder
        return RequestEnvelopeBuilder(config).build({"merchant_order_no": "ORD-1"})

    @pytest.mark.asyncio
    async def test_success(self, config, gateway):
        from addpay.merchant.envelope import IncomingEnvelope
        from addpay.merchant.transport import Transport

        gateway.reply(data={"order_no": "GW-1"})
        result = await Transport(gateway).send(self._envelope(config), "POST", "https://gw/x")

        assert isinstance(result, IncomingEnvelope)
        assert result.data == {"order_no": "GW-1"}
        request, body, signature_valid = gateway.requests[0]
        assert signature_valid
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_caller_headers_merged(self, config, gateway):
        from addpay.merchant.transport import Transport

        await Transport(gateway).send(
            self._envelope(config), "POST", "https://gw/x", headers={"X-Trace-Id": "t-1"}
        )

        request = gateway.requests[0][0]
        assert request.headers["X-Trace-Id"] == "t-1"
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_always_timing_out_makes_n_plus_one_attempts(self, config, sleeps):
        from addpay.merchant.transport import Transport
        from addpay.shared.errors import AddPayError

        attempts = []

        async def hanging(request):
            attempts.append(json.loads(request.body)["nonce"])
            await asyncio.sleep(10)

        result = await Transport(hanging, sleep=sleeps).send(
            self._envelope(config), "POST", "https://gw/x", timeout=0.01, max_retries=3
        )

        assert isinstance(result, AddPayError)
        assert result.code == "TIMEOUT"
        assert len(attempts) == 4
        assert len(set(attempts)) == 4  # fresh nonce per attempt
        assert sleeps.delays == []  # timeouts retry immediately

    @pytest.mark.asyncio
    async def test_timeout_without_retries(self, config):
        from addpay.merchant.transport import Transport

        calls = []

        async def hanging(request):
            calls.append(request)
            await asyncio.sleep(10)

        result = await Transport(hanging).send(
            self._envelope(config), "POST", "https://gw/x", timeout=0.01
        )

        assert result.code == "TIMEOUT"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_network_failure_backoff_schedule(self, config, sleeps):
        from addpay.merchant.transport import NetworkError, Transport

        calls = []

        async def refusing(request):
            calls.append(request)
            raise NetworkError("Connection refused")

        result = await Transport(refusing, sleep=sleeps).send(
            self._envelope(config), "POST", "https://gw/x", max_retries=5
        )

        assert result.code == "NETWORK_ERROR"
        assert "Connection refused" in result.message
        assert len(calls) == 6
        assert sleeps.delays == [1.0, 2.0, 4.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_network_failure_then_success(self, config, gateway, sleeps):
        from addpay.merchant.envelope import IncomingEnvelope
        from addpay.merchant.transport import NetworkError, Transport

        gateway.fail(NetworkError("reset")).reply(data={"ok": True})

        result = await Transport(gateway, sleep=sleeps).send(
            self._envelope(config), "POST", "https://gw/x", max_retries=2
        )

        assert isinstance(result, IncomingEnvelope)
        assert len(gateway.requests) == 2
        assert sleeps.delays == [1.0]

    @pytest.mark.asyncio
    async def test_os_error_is_network_failure(self, config, gateway, sleeps):
        from addpay.merchant.transport import Transport

        gateway.fail(ConnectionRefusedError("refused"))

        result = await Transport(gateway, sleep=sleeps).send(
            self._envelope(config), "POST", "https://gw/x"
        )

        assert result.code == "NETWORK_ERROR"

    @pytest.mark.asyncio
    async def test_unexpected_port_exception_is_network_failure(self, config, sleeps):
        from addpay.merchant.transport import Transport
        from addpay.shared.errors import AddPayError

        calls = []

        async def broken(request):
            calls.append(request)
            raise RuntimeError("adapter bug")

        result = await Transport(broken, sleep=sleeps).send(
            self._envelope(config), "POST", "https://gw/x", max_retries=1
        )

        assert isinstance(result, AddPayError)
        assert result.code == "NETWORK_ERROR"
        assert "adapter bug" in result.message
        assert len(calls) == 2
        assert sleeps.delays == [1.0]

    @pytest.mark.asyncio
    async def test_undecodable_body_through_httpx_is_network_failure(self, config, sleeps):
        import httpx
        from addpay.merchant.transport import HttpxNetworkPort, Transport

        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(
                200,
                headers={"Content-Encoding": "gzip"},
                stream=httpx.ByteStream(b"not gzip"),
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            transport = Transport(HttpxNetworkPort(client), sleep=sleeps)
            result = await transport.send(
                self._envelope(config), "POST", "https://gw.example/api", max_retries=1
            )

        assert result.code == "NETWORK_ERROR"
        assert len(calls) == 2
        assert sleeps.delays == [1.0]

    @pytest.mark.asyncio
    async def test_deeply_nested_body_is_network_failure(self, config, gateway, sleeps):
        from addpay.merchant.transport import Transport

        gateway.reply_raw(b"[" * 100000 + b"]" * 100000)

        result = await Transport(gateway, sleep=sleeps).send(
            self._envelope(config), "POST", "https://gw/x"
        )

        assert result.code == "NETWORK_ERROR"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, config):
        from addpay.merchant.transport import Transport

        started = asyncio.Event()

        async def hanging(request):
            started.set()
            await asyncio.sleep(10)

        task = asyncio.ensure_future(
            Transport(hanging).send(self._envelope(config), "POST", "https://gw/x", max_retries=3)
        )
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_non_2xx_never_retried(self, config, gateway, sleeps):
        from addpay.merchant.transport import Transport

        gateway.reply_raw({"error": "bad request"}, status=400, reason="Bad Request")

        result = await Transport(gateway, sleep=sleeps).send(
            self._envelope(config), "POST", "https://gw/x", max_retries=5
        )

        assert result.code == "HTTP_ERROR"
        assert result.message == "HTTP 400: Bad Request"
        assert result.details["status"] == 400
        assert result.http_status == 400
        assert len(gateway.requests) == 1
        assert sleeps.delays == []

    @pytest.mark.asyncio
    async def test_invalid_json_retried_as_network_failure(self, config, gateway, sleeps):
        from addpay.merchant.transport import Transport

        gateway.reply_raw(b"<html>maintenance</html>").reply(data={"ok": True})

        result = await Transport(gateway, sleep=sleeps).send(
            self._envelope(config), "POST", "https://gw/x", max_retries=1
        )

        assert result.data == {"ok": True}
        assert sleeps.delays == [1.0]

    @pytest.mark.asyncio
    async def test_concurrent_calls_are_independent(self, config, gateway):
        from addpay.merchant.transport import Transport

        transport = Transport(gateway)
        results = await asyncio.gather(*[
            transport.send(self._envelope(config), "POST", "https://gw/x") for _ in range(5)
        ])

        assert all(r.is_success for r in results)
        nonces = {body["nonce"] for _, body, _ in gateway.requests}
        assert len(nonces) == 5

    def test_backoff_delay(self):
        from addpay.merchant.transport import backoff_delay

        assert [backoff_delay(k - 1) for k in range(1, 6)] == [1.0, 2.0, 4.0, 5.0, 5.0]


class TestHttpxNetworkPort:
    """Test the httpx adapter with a mock transport."""

    @pytest.mark.asyncio
    async def test_round_trip(self):
        import httpx
        from addpay.merchant.transport import HttpxNetworkPort, NetworkRequest

        def handler(request):
            assert request.method == "POST"
            assert json.loads(request.content) == {"a": "1"}
            return httpx.Response(200, json={"code": "0", "msg": "ok"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            port = HttpxNetworkPort(client)
            response = await port(NetworkRequest(
                method="POST",
                url="https://gw.example/api",
                headers={"Content-Type": "application/json"},
                body=b'{"a": "1"}',
            ))

        assert response.ok
        assert json.loads(response.body)["code"] == "0"

    @pytest.mark.asyncio
    async def test_connect_error_translated(self):
        import httpx
        from addpay.merchant.transport import HttpxNetworkPort, NetworkError, NetworkRequest

        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            port = HttpxNetworkPort(client)
            with pytest.raises(NetworkError):
                await port(NetworkRequest("POST", "https://gw.example/api", {}, b"{}"))

    @pytest.mark.asyncio
    async def test_decoding_error_translated(self):
        import httpx
        from addpay.merchant.transport import HttpxNetworkPort, NetworkError, NetworkRequest

        def handler(request):
            return httpx.Response(
                200,
                headers={"Content-Encoding": "gzip"},
                stream=httpx.ByteStream(b"not gzip"),
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            port = HttpxNetworkPort(client)
            with pytest.raises(NetworkError):
                await port(NetworkRequest("POST", "https://gw.example/api", {}, b"{}"))

    @pytest.mark.asyncio
    async def test_timeout_translated(self):
        import httpx
        from addpay.merchant.transport import HttpxNetworkPort, NetworkRequest, NetworkTimeout

        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            port = HttpxNetworkPort(client)
            with pytest.raises(NetworkTimeout):
                await port(NetworkRequest("POST", "https://gw.example/api", {}, b"{}"))


class TestResponseValidator:
    """Test business status and signature checks."""

    def test_success_with_valid_signature(self, config, gateway):
        from addpay.merchant.envelope import IncomingEnvelope
        from addpay.merchant.validator import ResponseValidator

        envelope = IncomingEnvelope.from_dict(gateway.signed_payload(data={"order_no": "GW-1"}))
        result = ResponseValidator(config.gateway_public_key).validate(envelope)

        assert result is envelope

    def test_success_marker_literal(self, config):
        from addpay.merchant.envelope import IncomingEnvelope
        from addpay.merchant.validator import ResponseValidator

        envelope = IncomingEnvelope.from_dict({"code": "SUCCESS", "msg": "ok", "data": {}})

        assert ResponseValidator(config.gateway_public_key).validate(envelope) is envelope

    def test_business_error_passed_through(self, config, gateway):
        from addpay.merchant.envelope import IncomingEnvelope
        from addpay.merchant.validator import ResponseValidator
        from addpay.shared.errors import AddPayError

        envelope = IncomingEnvelope.from_dict(
            gateway.signed_payload(code="9999", msg="Insufficient funds")
        )
        result = ResponseValidator(config.gateway_public_key).validate(envelope)

        assert isinstance(result, AddPayError)
        assert result.code == "9999"
        assert result.message == "Insufficient funds"
        assert result.is_business_error
        assert result.details["code"] == "9999"

    def test_business_check_precedes_signature_check(self, config):
        from addpay.merchant.envelope import IncomingEnvelope
        from addpay.merchant.validator import ResponseValidator

        envelope = IncomingEnvelope.from_dict(
            {"code": "1001", "msg": "Bad merchant", "sign": "forged"}
        )
        result = ResponseValidator(config.gateway_public_key).validate(envelope)

        assert result.code == "1001"

    def test_tampered_response_rejected(self, config, gateway):
        from addpay.merchant.envelope import IncomingEnvelope
        from addpay.merchant.validator import ResponseValidator

        payload = gateway.signed_payload(data={"order_amount": "100.00"})
        payload["data"]["order_amount"] = "1.00"
        result = ResponseValidator(config.gateway_public_key).validate(
            IncomingEnvelope.from_dict(payload)
        )

        assert result.code == "INVALID_SIGNATURE"

    def test_unsigned_response_accepted(self, config, gateway):
        from addpay.merchant.envelope import IncomingEnvelope
        from addpay.merchant.validator import ResponseValidator

        envelope = IncomingEnvelope.from_dict(gateway.signed_payload(data={}, sign=False))

        assert ResponseValidator(config.gateway_public_key).validate(envelope) is envelope

    def test_success_without_data(self, config, gateway):
        from addpay.merchant.envelope import IncomingEnvelope
        from addpay.merchant.validator import ResponseValidator

        envelope = IncomingEnvelope.from_dict(gateway.signed_payload())
        result = ResponseValidator(config.gateway_public_key).validate(envelope)

        assert result is envelope
        assert result.data is None


class TestHttpClient:
    """Test the end-to-end pipeline."""

    @pytest.mark.asyncio
    async def test_execute_returns_error_value(self, config, gateway):
        from addpay.merchant.http_client import HttpClient
        from addpay.shared.errors import AddPayError

        gateway.reply(code="9999", msg="Insufficient funds")
        result = await HttpClient(config, network=gateway).execute("/api/entry/checkout")

        assert isinstance(result, AddPayError)
        assert result.code == "9999"

    @pytest.mark.asyncio
    async def test_request_raises_error(self, config, gateway):
        from addpay.merchant.http_client import HttpClient
        from addpay.shared.errors import AddPayError

        gateway.reply_raw({}, status=503, reason="Service Unavailable")

        with pytest.raises(AddPayError) as exc_info:
            await HttpClient(config, network=gateway).request("/api/entry/checkout")

        assert exc_info.value.code == "HTTP_ERROR"

    @pytest.mark.asyncio
    async def test_url_and_method(self, config, gateway):
        from addpay.merchant.http_client import HttpClient

        await HttpClient(config, network=gateway).request("/api/entry/token/get", "get", {"token": "t"})

        request = gateway.requests[0][0]
        assert request.url == "http://gw.wisepaycloud.com/api/entry/token/get"
        assert request.method == "GET"

    @pytest.mark.asyncio
    async def test_unsupported_method(self, config, gateway):
        from addpay.merchant.http_client import HttpClient
        from addpay.shared.errors import InvalidRequestError

        with pytest.raises(InvalidRequestError):
            await HttpClient(config, network=gateway).execute("/x", "PATCH")

    @pytest.mark.asyncio
    async def test_options_override_timeout_and_retries(self, config, sleeps):
        from addpay.merchant.config import RequestOptions
        from addpay.merchant.http_client import HttpClient

        calls = []

        async def hanging(request):
            calls.append(request)
            await asyncio.sleep(10)

        client = HttpClient(config, network=hanging, sleep=sleeps)
        result = await client.execute("/x", options=RequestOptions(timeout=0.01, retries=2))

        assert result.code == "TIMEOUT"
        assert len(calls) == 3
