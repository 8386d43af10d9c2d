"""
Client Transport Tests.

============================================================
PURPOSE
============================================================
Tests for BybitClient request building and response handling.

TEST CATEGORIES:
- Signing integration: Sent bytes equal signed bytes
- Credentials: Private calls fail locally without them
- Envelope handling: retCode mapping and malformed bodies
- Transport failures: Timeouts and connection errors
- Lifecycle: Constructors and session ownership

============================================================
"""

import asyncio

import aiohttp
import pytest

from bybit_client import (
    ApiError,
    AuthenticationError,
    BybitClient,
    BybitConfig,
    CreateOrderRequest,
    ErrorCategory,
    InvalidParameterError,
    OrderType,
    RateLimitError,
    RequestError,
    SerializationError,
    Side,
    TimestampError,
)
from bybit_client.config import MAINNET_URL, TESTNET_URL


GET_SIGNATURE = "f2f79889fd1201752936b389c890e9d393e01e0311a6d8785fb80753aa26c69b"
POST_SIGNATURE = "e2c8ecf7c5cc3502583ee25ae424165fa97814e006804936ec1b399e764df92a"
ORDER_BODY = '{"category":"linear","symbol":"BTCUSDT","side":"Buy","orderType":"Market","qty":"0.001"}'


def _sent(session, call_index=-1):
    """(method, url, headers, data) of a recorded session.request call."""
    call = session.request.call_args_list[call_index]
    method, url = call.args
    return method, str(url), call.kwargs["headers"], call.kwargs["data"]


# ============================================================
# SIGNING INTEGRATION
# ============================================================

class TestSignedRequests:
    """Tests that the transmitted request is the signed request."""

    @pytest.mark.asyncio
    async def test_get_query_matches_signature(self, make_session, make_client, envelope):
        """Test GET sends exactly the signed query string."""
        session = make_session(envelope({"list": [], "nextPageCursor": ""}))
        client = make_client(session)

        await client.get_open_orders("linear", symbol="BTCUSDT")

        method, url, headers, data = _sent(session)
        assert method == "GET"
        assert url == f"{MAINNET_URL}/v5/order/realtime?category=linear&symbol=BTCUSDT"
        assert data is None
        assert headers["X-BAPI-SIGN"] == GET_SIGNATURE
        assert headers["X-BAPI-API-KEY"] == "testkey"
        assert headers["X-BAPI-TIMESTAMP"] == "1700000000000"
        assert headers["X-BAPI-RECV-WINDOW"] == "5000"

    @pytest.mark.asyncio
    async def test_post_body_matches_signature(self, make_session, make_client, envelope):
        """Test POST sends exactly the signed JSON body."""
        session = make_session(envelope({"orderId": "1321003749386327552", "orderLinkId": ""}))
        client = make_client(session)

        request = (
            CreateOrderRequest.builder()
            .symbol("BTCUSDT")
            .side(Side.BUY)
            .order_type(OrderType.MARKET)
            .qty("0.001")
            .build()
        )
        ack = await client.create_order(request)

        method, url, headers, data = _sent(session)
        assert method == "POST"
        assert url == f"{MAINNET_URL}/v5/order/create"
        assert data == ORDER_BODY.encode("utf-8")
        assert headers["X-BAPI-SIGN"] == POST_SIGNATURE
        assert headers["Content-Type"] == "application/json"
        assert ack.order_id == "1321003749386327552"
        assert ack.order_link_id is None

    @pytest.mark.asyncio
    async def test_fresh_timestamp_per_request(self, make_session, envelope):
        """Test each request reads the clock and signs independently."""
        body = envelope({"list": [], "nextPageCursor": ""})
        session = make_session(body, body)
        ticks = iter([1700000000000, 1700000000001])
        client = BybitClient(
            api_key="testkey",
            api_secret="testsecret",
            session=session,
            clock=lambda: next(ticks),
        )

        await client.get_open_orders("linear", symbol="BTCUSDT")
        await client.get_open_orders("linear", symbol="BTCUSDT")

        first = _sent(session, 0)[2]
        second = _sent(session, 1)[2]
        assert first["X-BAPI-TIMESTAMP"] == "1700000000000"
        assert second["X-BAPI-TIMESTAMP"] == "1700000000001"
        assert first["X-BAPI-SIGN"] != second["X-BAPI-SIGN"]

    @pytest.mark.asyncio
    async def test_public_request_unsigned(self, make_session, make_client, envelope):
        """Test market data is sent without auth headers."""
        session = make_session(envelope({"timeSecond": "1700000000", "timeNano": "1700000000000000000"}))
        client = make_client(session, credentials=False)

        server_time = await client.get_server_time()

        _, url, headers, _ = _sent(session)
        assert url == f"{MAINNET_URL}/v5/market/time"
        assert "X-BAPI-SIGN" not in headers
        assert server_time.time_second == 1700000000


# ============================================================
# CREDENTIALS
# ============================================================

class TestCredentials:
    """Tests for private calls without credentials."""

    @pytest.mark.asyncio
    async def test_private_call_without_credentials(self, make_session, make_client):
        """Test no request leaves the client without credentials."""
        session = make_session()
        client = make_client(session, credentials=False)

        with pytest.raises(AuthenticationError):
            await client.get_wallet_balance()

        session.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_secret(self, make_session, make_client):
        """Test an empty secret counts as missing."""
        session = make_session()
        client = make_client(session, api_key="testkey", api_secret="")

        with pytest.raises(AuthenticationError):
            await client.get_position("linear", symbol="BTCUSDT")

        session.request.assert_not_called()

    def test_with_credentials(self):
        """Test with_credentials keeps settings and adds keys."""
        client = BybitClient.testnet()
        authed = client.with_credentials("testkey", "testsecret")

        assert not client.has_credentials
        assert authed.has_credentials
        assert authed.base_url == TESTNET_URL

    def test_repr_hides_credentials(self):
        """Test repr does not leak the key pair."""
        client = BybitClient(api_key="testkey", api_secret="testsecret")

        assert "testsecret" not in repr(client)
        assert "testkey" not in repr(client)


# ============================================================
# ENVELOPE HANDLING
# ============================================================

class TestResponseHandling:
    """Tests for retCode handling and malformed responses."""

    @pytest.mark.asyncio
    async def test_api_error(self, make_session, make_client, envelope):
        """Test a non-zero retCode raises ApiError with code and message."""
        session = make_session(envelope(ret_code=10001, ret_msg="params error: symbol invalid"))
        client = make_client(session)

        with pytest.raises(ApiError) as exc_info:
            await client.get_position("linear", symbol="NOPE")

        assert exc_info.value.ret_code == 10001
        assert exc_info.value.ret_msg == "params error: symbol invalid"
        assert exc_info.value.endpoint == "/v5/position/list"

    @pytest.mark.asyncio
    async def test_timestamp_error(self, make_session, make_client, envelope):
        """Test retCode 10002 raises TimestampError."""
        session = make_session(envelope(ret_code=10002, ret_msg="invalid request, please check your server timestamp"))
        client = make_client(session)

        with pytest.raises(TimestampError):
            await client.get_wallet_balance()

    @pytest.mark.asyncio
    async def test_rate_limit_reset_header(self, make_session, make_client, envelope):
        """Test rate limit errors carry the reset timestamp header."""
        session = make_session(
            envelope(ret_code=10006, ret_msg="Too many visits!"),
            headers={
                "X-Bapi-Limit": "10",
                "X-Bapi-Limit-Status": "0",
                "X-Bapi-Limit-Reset-Timestamp": "1700000001000",
            },
        )
        client = make_client(session)

        with pytest.raises(RateLimitError) as exc_info:
            await client.get_wallet_balance()

        assert exc_info.value.limit_reset_ms == 1700000001000
        assert client.metrics.rate_limit.remaining == 0
        assert client.metrics.get_summary()["errors"]["rate_limit_hits"] == 1

    @pytest.mark.asyncio
    async def test_non_json_error_page(self, make_session, make_client):
        """Test an HTML error page maps through the HTTP status."""
        session = make_session("<html>403 Forbidden</html>", status=403)
        client = make_client(session)

        with pytest.raises(ApiError) as exc_info:
            await client.get_wallet_balance()

        assert exc_info.value.http_status == 403
        assert exc_info.value.category == ErrorCategory.AUTHENTICATION

    @pytest.mark.asyncio
    async def test_non_json_success_body(self, make_session, make_client):
        """Test an unparseable 200 body raises SerializationError."""
        session = make_session("not json")
        client = make_client(session, credentials=False)

        with pytest.raises(SerializationError):
            await client.get_server_time()

    @pytest.mark.asyncio
    async def test_unexpected_result_shape(self, make_session, make_client, envelope):
        """Test a result missing required keys raises SerializationError."""
        session = make_session(envelope({"timeSecond": "1700000000"}))
        client = make_client(session, credentials=False)

        with pytest.raises(SerializationError, match="/v5/market/time"):
            await client.get_server_time()

    @pytest.mark.asyncio
    async def test_success_metrics(self, make_session, make_client, envelope):
        """Test successful requests are counted per endpoint."""
        session = make_session(envelope({"timeSecond": "1", "timeNano": "1000000000"}))
        client = make_client(session, credentials=False)

        await client.get_server_time()

        summary = client.metrics.get_summary()
        assert summary["requests"]["success"] == 1
        assert "/v5/market/time" in client.metrics.get_latency_by_endpoint()

    @pytest.mark.asyncio
    async def test_invalid_utf8_body(self, make_session, make_client):
        """Test an undecodable body raises SerializationError and is counted."""
        session = make_session(UnicodeDecodeError("utf-8", b"\xff\xfe", 0, 1, "invalid start byte"))
        client = make_client(session, credentials=False)

        with pytest.raises(SerializationError, match="UTF-8") as exc_info:
            await client.get_server_time()

        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
        summary = client.metrics.get_summary()
        assert summary["requests"]["failure"] == 1
        assert summary["errors"]["by_code"] == {"SERIALIZATION": 1}

    @pytest.mark.asyncio
    async def test_result_not_an_object(self, make_session, make_client, envelope):
        """Test a non-object result on a list endpoint raises SerializationError."""
        session = make_session(envelope("unexpected"))
        client = make_client(session, credentials=False)

        with pytest.raises(SerializationError, match="/v5/market/tickers"):
            await client.get_tickers("linear")


# ============================================================
# TRANSPORT FAILURES
# ============================================================

class TestTransportFailures:
    """Tests for network errors and timeouts."""

    @pytest.mark.asyncio
    async def test_timeout(self, make_session, make_client):
        """Test timeouts raise RequestError flagged as timeout."""
        session = make_session()
        session.request.side_effect = asyncio.TimeoutError()
        client = make_client(session, credentials=False)

        with pytest.raises(RequestError) as exc_info:
            await client.get_server_time()

        assert exc_info.value.timeout
        assert exc_info.value.category == ErrorCategory.TIMEOUT
        assert client.metrics.get_summary()["errors"]["timeouts"] == 1

    @pytest.mark.asyncio
    async def test_connection_error(self, make_session, make_client):
        """Test connection failures raise RequestError."""
        session = make_session()
        session.request.side_effect = aiohttp.ClientConnectionError("connection reset")
        client = make_client(session, credentials=False)

        with pytest.raises(RequestError) as exc_info:
            await client.get_server_time()

        assert not exc_info.value.timeout
        assert exc_info.value.endpoint == "/v5/market/time"
        assert exc_info.value.category == ErrorCategory.NETWORK
        assert client.metrics.get_summary()["errors"]["connection_errors"] == 1

    @pytest.mark.asyncio
    async def test_no_retry(self, make_session, make_client, envelope):
        """Test a retryable error is still raised after one attempt."""
        session = make_session(envelope(ret_code=10016, ret_msg="Server error"))
        client = make_client(session)

        with pytest.raises(ApiError) as exc_info:
            await client.get_wallet_balance()

        assert exc_info.value.is_retryable()
        assert session.request.call_count == 1


# ============================================================
# REQUEST VALIDATION
# ============================================================

class TestRequestValidation:
    """Tests for raw request argument checks."""

    @pytest.mark.asyncio
    async def test_get_with_body(self, make_session, make_client):
        session = make_session()
        client = make_client(session)

        with pytest.raises(InvalidParameterError):
            await client.request("GET", "/v5/order/realtime", body={"symbol": "BTCUSDT"})

        session.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_post_with_params(self, make_session, make_client):
        session = make_session()
        client = make_client(session)

        with pytest.raises(InvalidParameterError):
            await client.request("POST", "/v5/order/create", params={"symbol": "BTCUSDT"})

    @pytest.mark.asyncio
    async def test_unsupported_method(self, make_session, make_client):
        client = make_client(make_session())

        with pytest.raises(InvalidParameterError):
            await client.request("DELETE", "/v5/order/cancel")


# ============================================================
# LIFECYCLE
# ============================================================

class TestLifecycle:
    """Tests for constructors and session ownership."""

    def test_default_mainnet(self):
        assert BybitClient().base_url == MAINNET_URL

    def test_testnet(self):
        assert BybitClient.testnet().base_url == TESTNET_URL
        assert BybitClient(testnet=True).base_url == TESTNET_URL

    def test_pinned_constructors_reject_base_url(self):
        with pytest.raises(InvalidParameterError, match="base_url"):
            BybitClient.mainnet(base_url="https://api.bytick.com")
        with pytest.raises(InvalidParameterError, match="base_url"):
            BybitClient.testnet(base_url="https://api.bytick.com")

    def test_custom_base_url(self):
        client = BybitClient(base_url="https://api.bytick.com/")

        assert client.base_url == "https://api.bytick.com"

    def test_overrides_applied_to_config(self):
        """Test keyword overrides take precedence over config."""
        config = BybitConfig(recv_window=5000, testnet=False)
        client = BybitClient(config, recv_window=20000, testnet=True)

        assert client.recv_window == 20000
        assert client.base_url == TESTNET_URL
        assert config.recv_window == 5000

    @pytest.mark.asyncio
    async def test_external_session_not_closed(self, make_session):
        """Test a caller-owned session stays open."""
        session = make_session()

        async with BybitClient(session=session) as client:
            assert client.base_url == MAINNET_URL

        session.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_owned_session_closed(self):
        """Test a client-created session is closed on exit."""
        client = BybitClient()

        async with client:
            session = client._get_session()
            assert not session.closed

        assert session.closed
