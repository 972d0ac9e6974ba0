"""
Unit Tests for KrakenClient

Tests request building, signing, OTP relay and the classification of
outcomes into ServerError / ResponseError / result payload.
"""

import logging
from decimal import Decimal
from urllib.parse import parse_qsl

import pytest
import requests

from market_adapter.exchange.exceptions import (
    CredentialError,
    ResponseError,
    ServerError,
)
from market_adapter.exchange.hmac_signer import sign
from market_adapter.exchange.kraken_client import EndpointKind, KrakenClient
from market_adapter.exchange.nonce import NonceGenerator

from conftest import TEST_API_KEY, TEST_API_SECRET, RecordingTransport


# =============================================================================
# Construction
# =============================================================================

class TestConstruction:

    def test_public_only_client(self, public_client) -> None:
        assert not public_client.is_authenticated()

    def test_authenticated_client(self, client) -> None:
        assert client.is_authenticated()

    def test_key_without_secret_rejected(self, transport) -> None:
        with pytest.raises(CredentialError):
            KrakenClient(api_key="key", transport=transport)

    def test_secret_without_key_rejected(self, transport) -> None:
        with pytest.raises(CredentialError):
            KrakenClient(api_secret=TEST_API_SECRET, transport=transport)

    def test_malformed_secret_rejected(self, transport) -> None:
        with pytest.raises(CredentialError):
            KrakenClient(api_key="key", api_secret="***", transport=transport)

    def test_path_layout(self, client) -> None:
        assert client.path_for(EndpointKind.PRIVATE, "Balance") == "/0/private/Balance"
        assert client.path_for(EndpointKind.PUBLIC, "Time") == "/0/public/Time"


# =============================================================================
# Request building and signing
# =============================================================================

class TestPublicRequests:

    def test_url_and_body(self, public_client, transport) -> None:
        transport.queue(result={"XXBTZUSD": {}})

        public_client.public("Ticker", {"pair": "XBTUSD"})

        call = transport.calls[0]
        assert call.url == "https://api.kraken.com/0/public/Ticker"
        assert call.body == "pair=XBTUSD"
        assert "API-Key" not in call.headers
        assert "API-Sign" not in call.headers

    def test_none_params_are_dropped(self, public_client, transport) -> None:
        transport.queue(result={})
        public_client.public("Depth", {"pair": "XBTUSD", "count": None})
        assert transport.calls[0].body == "pair=XBTUSD"

    def test_base_url_override(self, transport) -> None:
        client = KrakenClient(transport=transport, base_url="https://sandbox.example.com/")
        transport.queue(result={"unixtime": 1})
        client.public("Time")
        assert transport.calls[0].url == "https://sandbox.example.com/0/public/Time"


class TestPrivateRequests:

    def test_nonce_first_and_signature_valid(self, client, transport) -> None:
        transport.queue(result={"ZUSD": "1.0"})

        client.private("Balance")

        call = transport.calls[0]
        fields = parse_qsl(call.body)
        assert fields[0][0] == "nonce"
        nonce = fields[0][1]
        assert len(nonce) == 19

        expected = sign("/0/private/Balance", nonce, call.body, TEST_API_SECRET)
        assert call.headers["API-Sign"] == expected
        assert call.headers["API-Key"] == TEST_API_KEY

    def test_params_are_encoded_in_order(self, client, transport) -> None:
        transport.queue(result={"txid": ["O1"]})

        client.private("AddOrder", [
            ("pair", "XBTUSD"),
            ("type", "buy"),
            ("volume", Decimal("1.25000000")),
            ("validate", True),
        ])

        fields = parse_qsl(transport.calls[0].body)
        assert [k for k, _ in fields] == ["nonce", "pair", "type", "volume", "validate"]
        assert dict(fields)["volume"] == "1.25"
        assert dict(fields)["validate"] == "true"

    def test_each_call_gets_a_fresh_nonce(self, client, transport) -> None:
        transport.queue(result={}).queue(result={})

        client.private("Balance")
        client.private("Balance")

        nonces = [dict(parse_qsl(c.body))["nonce"] for c in transport.calls]
        assert int(nonces[1]) > int(nonces[0])

    def test_otp_is_relayed_last(self, transport, fixed_clock) -> None:
        client = KrakenClient(
            api_key=TEST_API_KEY,
            api_secret=TEST_API_SECRET,
            otp="123456",
            transport=transport,
            nonce_generator=NonceGenerator(clock_ns=fixed_clock),
        )
        transport.queue(result={})

        client.private("Balance")

        fields = parse_qsl(transport.calls[0].body)
        assert fields[-1] == ("otp", "123456")

    def test_set_otp_last_write_wins(self, client, transport) -> None:
        transport.queue(result={}).queue(result={}).queue(result={})

        client.set_otp("111111")
        client.private("Balance")
        client.set_otp("222222")
        client.private("Balance")
        client.set_otp(None)
        client.private("Balance")

        otps = [dict(parse_qsl(c.body)).get("otp") for c in transport.calls]
        assert otps == ["111111", "222222", None]

    def test_private_call_without_credentials(self, public_client, transport) -> None:
        with pytest.raises(CredentialError):
            public_client.private("Balance")
        assert transport.calls == []

    def test_otp_and_secret_never_logged(self, client, transport, caplog) -> None:
        caplog.set_level(logging.DEBUG)
        client.set_otp("987654")
        transport.queue(result={})

        client.private("Balance")

        assert "987654" not in caplog.text
        assert TEST_API_SECRET not in caplog.text
        assert transport.calls[0].headers["API-Sign"] not in caplog.text


# =============================================================================
# Classification
# =============================================================================

class TestClassification:

    def test_success_returns_result(self, public_client, transport) -> None:
        transport.queue(result={"unixtime": 1688669448})
        assert public_client.public("Time") == {"unixtime": 1688669448}

    def test_floats_decode_as_decimal(self, public_client, transport) -> None:
        transport.queue(content=b'{"error": [], "result": {"price": 0.1}}')
        result = public_client.public("Time")
        assert result["price"] == Decimal("0.1")

    @pytest.mark.parametrize("status", [400, 403, 404, 500, 502, 503, 520])
    def test_non_2xx_is_server_error(self, public_client, transport, status: int) -> None:
        transport.queue(result={"unixtime": 1}, status=status)

        with pytest.raises(ServerError) as exc_info:
            public_client.public("Time")

        assert exc_info.value.status_code == status

    def test_error_list_is_response_error(self, client, transport) -> None:
        transport.queue(error=["EOrder:Insufficient funds", "EGeneral:Invalid arguments"])

        with pytest.raises(ResponseError) as exc_info:
            client.private("AddOrder", {"pair": "XBTUSD"})

        assert exc_info.value.errors == [
            "EOrder:Insufficient funds",
            "EGeneral:Invalid arguments",
        ]
        assert exc_info.value.method == "AddOrder"

    def test_error_wins_over_result(self, public_client, transport) -> None:
        transport.queue(result={"partial": True}, error=["EAPI:Rate limit exceeded"])
        with pytest.raises(ResponseError):
            public_client.public("Time")

    def test_non_json_body_is_server_error(self, public_client, transport) -> None:
        transport.queue(content=b"<html>Cloudflare</html>")
        with pytest.raises(ServerError) as exc_info:
            public_client.public("Time")
        assert exc_info.value.cause is not None

    def test_wrong_envelope_shape_is_server_error(self, public_client, transport) -> None:
        transport.queue(content=b'{"error": "not-a-list"}')
        with pytest.raises(ServerError):
            public_client.public("Time")

    def test_missing_result_is_server_error(self, public_client, transport) -> None:
        transport.queue(content=b'{"error": []}')
        with pytest.raises(ServerError):
            public_client.public("Time")

    @pytest.mark.parametrize("exc", [
        requests.ConnectionError("refused"),
        requests.Timeout("timed out"),
    ])
    def test_transport_exception_is_server_error(self, public_client, transport, exc) -> None:
        transport.queue_exception(exc)

        with pytest.raises(ServerError) as exc_info:
            public_client.public("Time")

        assert exc_info.value.cause is exc
        assert exc_info.value.status_code is None

    @pytest.mark.parametrize("exc", [
        ConnectionError("socket reset"),
        TimeoutError("read timed out"),
        OSError("network unreachable"),
    ])
    def test_builtin_network_error_is_server_error(self, exc) -> None:
        class SocketTransport:
            def post(self, url, headers, body):
                raise exc

        client = KrakenClient(transport=SocketTransport())

        with pytest.raises(ServerError) as exc_info:
            client.public("Time")

        assert exc_info.value.cause is exc

    def test_no_retry_on_failure(self, public_client, transport) -> None:
        transport.queue(status=503, content=b"")
        with pytest.raises(ServerError):
            public_client.public("Time")
        assert len(transport.calls) == 1


class TestLifecycle:

    def test_context_manager_closes_transport(self) -> None:
        transport = RecordingTransport()
        with KrakenClient(transport=transport):
            pass
        assert transport.closed
