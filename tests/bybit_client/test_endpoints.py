"""
Endpoint Tests.

Tests for the market, trade and account wrappers: request
parameters, argument validation and typed results.
"""

import json
from decimal import Decimal
from urllib.parse import parse_qsl, urlsplit

import pytest

from bybit_client import (
    AccountType,
    ApiError,
    Category,
    CreateOrderRequest,
    InvalidEnumValueError,
    InvalidParameterError,
    KlineInterval,
    OrderStatus,
)
from bybit_client.account import CLOSED_PNL_MAX_WINDOW_MS


def _last_query(session):
    url = str(session.request.call_args.args[1])
    return urlsplit(url).path, dict(parse_qsl(urlsplit(url).query))


def _last_body(session):
    url = str(session.request.call_args.args[1])
    return urlsplit(url).path, json.loads(session.request.call_args.kwargs["data"])


ORDER_RECORD = {
    "orderId": "fd4300ae-7847-404e-b947-b46980a4d140",
    "orderLinkId": "my-link",
    "symbol": "BTCUSDT",
    "side": "Buy",
    "orderType": "Limit",
    "orderStatus": "New",
    "qty": "0.01",
    "price": "30000",
    "timeInForce": "GTC",
    "positionIdx": 0,
    "createdTime": "1700000000000",
}


# ============================================================
# MARKET DATA
# ============================================================

class TestMarketEndpoints:
    """Tests for /v5/market/* wrappers."""

    @pytest.mark.asyncio
    async def test_get_kline(self, make_session, make_client, envelope):
        """Test kline params and candle parsing."""
        session = make_session(envelope({
            "category": "linear",
            "symbol": "BTCUSDT",
            "list": [
                ["1700000060000", "37010", "37020", "37000", "37015", "12.5", "462687.5"],
                ["1700000000000", "37000", "37012", "36990", "37010", "10", "370000"],
            ],
        }))
        client = make_client(session, credentials=False)

        klines = await client.get_kline("linear", "BTCUSDT", KlineInterval.MIN_1, limit=2)

        path, query = _last_query(session)
        assert path == "/v5/market/kline"
        assert query == {"category": "linear", "symbol": "BTCUSDT", "interval": "1", "limit": "2"}
        assert len(klines) == 2
        assert klines[0].close == Decimal("37015")
        assert klines.category == Category.LINEAR

    @pytest.mark.asyncio
    async def test_get_kline_invalid_range(self, make_session, make_client):
        """Test start after end is rejected locally."""
        session = make_session()
        client = make_client(session, credentials=False)

        with pytest.raises(InvalidParameterError):
            await client.get_kline("linear", "BTCUSDT", "60", start=2, end=1)

        session.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_kline_invalid_limit(self, make_session, make_client):
        client = make_client(make_session(), credentials=False)

        with pytest.raises(InvalidParameterError):
            await client.get_kline("linear", "BTCUSDT", "D", limit=1001)

    @pytest.mark.asyncio
    async def test_get_kline_invalid_interval(self, make_session, make_client):
        client = make_client(make_session(), credentials=False)

        with pytest.raises(InvalidEnumValueError):
            await client.get_kline("linear", "BTCUSDT", "7")

    @pytest.mark.asyncio
    async def test_get_tickers(self, make_session, make_client, envelope):
        """Test ticker list parsing."""
        session = make_session(envelope({
            "category": "spot",
            "list": [{"symbol": "BTCUSDT", "lastPrice": "37000.1", "bid1Price": "37000"}],
        }))
        client = make_client(session, credentials=False)

        tickers = await client.get_tickers(Category.SPOT, symbol="BTCUSDT")

        _, query = _last_query(session)
        assert query == {"category": "spot", "symbol": "BTCUSDT"}
        assert tickers.first().last_price == Decimal("37000.1")

    @pytest.mark.asyncio
    async def test_get_orderbook(self, make_session, make_client, envelope):
        """Test orderbook request and parsing."""
        session = make_session(envelope({
            "s": "BTCUSDT",
            "b": [["37000", "1"]],
            "a": [["37001", "2"]],
            "ts": 1700000000000,
            "u": 100,
        }))
        client = make_client(session, credentials=False)

        book = await client.get_orderbook("linear", "BTCUSDT", limit=50)

        _, query = _last_query(session)
        assert query["limit"] == "50"
        assert book.best_ask.price == Decimal("37001")

    @pytest.mark.asyncio
    async def test_get_orderbook_limit_per_category(self, make_session, make_client):
        """Test depth limits differ by category."""
        client = make_client(make_session(), credentials=False)

        with pytest.raises(InvalidParameterError, match="spot"):
            await client.get_orderbook("spot", "BTCUSDT", limit=201)

    @pytest.mark.asyncio
    async def test_get_instruments(self, make_session, make_client, envelope):
        """Test instruments with pagination cursor."""
        session = make_session(envelope({
            "category": "linear",
            "list": [{
                "symbol": "BTCUSDT",
                "status": "Trading",
                "baseCoin": "BTC",
                "quoteCoin": "USDT",
                "contractType": "LinearPerpetual",
                "lotSizeFilter": {"qtyStep": "0.001", "minOrderQty": "0.001", "maxOrderQty": "100"},
                "priceFilter": {"tickSize": "0.10"},
            }],
            "nextPageCursor": "next",
        }))
        client = make_client(session, credentials=False)

        instruments = await client.get_instruments("linear", limit=1)

        path, _ = _last_query(session)
        assert path == "/v5/market/instruments-info"
        assert instruments.has_more
        assert instruments[0].qty_step == Decimal("0.001")


# ============================================================
# TRADE
# ============================================================

class TestTradeEndpoints:
    """Tests for /v5/order/* wrappers."""

    @pytest.mark.asyncio
    async def test_amend_order(self, make_session, make_client, envelope):
        """Test amend sends only the changed fields."""
        session = make_session(envelope({"orderId": "abc", "orderLinkId": ""}))
        client = make_client(session)

        ack = await client.amend_order("linear", "BTCUSDT", order_id="abc", price=Decimal("30100.5"))

        path, body = _last_body(session)
        assert path == "/v5/order/amend"
        assert body == {"category": "linear", "symbol": "BTCUSDT", "orderId": "abc", "price": "30100.5"}
        assert ack.order_id == "abc"

    @pytest.mark.asyncio
    async def test_amend_requires_change(self, make_session, make_client):
        session = make_session()
        client = make_client(session)

        with pytest.raises(InvalidParameterError):
            await client.amend_order("linear", "BTCUSDT", order_id="abc")

        session.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_order(self, make_session, make_client, envelope):
        """Test cancel by order link id."""
        session = make_session(envelope({"orderId": "abc", "orderLinkId": "my-link"}))
        client = make_client(session)

        ack = await client.cancel_order("linear", "BTCUSDT", order_link_id="my-link")

        path, body = _last_body(session)
        assert path == "/v5/order/cancel"
        assert body == {"category": "linear", "symbol": "BTCUSDT", "orderLinkId": "my-link"}
        assert ack.order_link_id == "my-link"
        assert client.metrics.get_summary()["orders"]["canceled"] == 1

    @pytest.mark.asyncio
    async def test_cancel_requires_id(self, make_session, make_client):
        client = make_client(make_session())

        with pytest.raises(InvalidParameterError):
            await client.cancel_order("linear", "BTCUSDT")

    @pytest.mark.asyncio
    async def test_cancel_all_orders(self, make_session, make_client, envelope):
        """Test cancel-all returns the cancelled acknowledgements."""
        session = make_session(envelope({
            "list": [{"orderId": "1", "orderLinkId": ""}, {"orderId": "2", "orderLinkId": ""}],
            "success": "1",
        }))
        client = make_client(session)

        cancelled = await client.cancel_all_orders("linear", settle_coin="USDT")

        _, body = _last_body(session)
        assert body == {"category": "linear", "settleCoin": "USDT"}
        assert [ack.order_id for ack in cancelled] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_cancel_all_derivatives_need_scope(self, make_session, make_client):
        client = make_client(make_session())

        with pytest.raises(InvalidParameterError):
            await client.cancel_all_orders("inverse")

    @pytest.mark.asyncio
    async def test_create_order_rejection(self, make_session, make_client, envelope):
        """Test a rejected order is counted and re-raised."""
        session = make_session(envelope(ret_code=110007, ret_msg="ab not enough for new order"))
        client = make_client(session)
        request = CreateOrderRequest("BTCUSDT", "Buy", "Limit", qty="1", price="30000")

        with pytest.raises(ApiError) as exc_info:
            await client.create_order(request)

        assert exc_info.value.ret_code == 110007
        orders = client.metrics.get_summary()["orders"]
        assert orders["rejected"] == 1
        assert orders["submitted"] == 0

    @pytest.mark.asyncio
    async def test_get_order_open(self, make_session, make_client, envelope):
        """Test an open order is found without querying history."""
        session = make_session(envelope({"category": "linear", "list": [ORDER_RECORD]}))
        client = make_client(session)

        order = await client.get_order("linear", order_id=ORDER_RECORD["orderId"])

        assert session.request.call_count == 1
        assert order.order_status == OrderStatus.NEW
        assert order.order_link_id == "my-link"

    @pytest.mark.asyncio
    async def test_get_order_falls_back_to_history(self, make_session, make_client, envelope):
        """Test a closed order is looked up in history."""
        filled = dict(ORDER_RECORD, orderStatus="Filled", cumExecQty="0.01")
        session = make_session(
            envelope({"category": "linear", "list": [], "nextPageCursor": ""}),
            envelope({"category": "linear", "list": [filled]}),
        )
        client = make_client(session)

        order = await client.get_order("linear", order_link_id="my-link")

        paths = [urlsplit(str(call.args[1])).path for call in session.request.call_args_list]
        assert paths == ["/v5/order/realtime", "/v5/order/history"]
        assert order.order_status.is_terminal()

    @pytest.mark.asyncio
    async def test_get_order_unknown(self, make_session, make_client, envelope):
        """Test an unknown order returns None."""
        empty = envelope({"list": []})
        client = make_client(make_session(empty, empty))

        assert await client.get_order("linear", order_id="missing") is None

    @pytest.mark.asyncio
    async def test_get_order_history(self, make_session, make_client, envelope):
        session = make_session(envelope({"list": [ORDER_RECORD], "nextPageCursor": "c2"}))
        client = make_client(session)

        history = await client.get_order_history("linear", symbol="BTCUSDT", limit=1, cursor="c1")

        path, query = _last_query(session)
        assert path == "/v5/order/history"
        assert query == {"category": "linear", "symbol": "BTCUSDT", "limit": "1", "cursor": "c1"}
        assert history.next_page_cursor == "c2"


# ============================================================
# ACCOUNT
# ============================================================

class TestAccountEndpoints:
    """Tests for account, position and execution wrappers."""

    @pytest.mark.asyncio
    async def test_get_wallet_balance(self, make_session, make_client, envelope):
        """Test wallet balance request and parsing."""
        session = make_session(envelope({"list": [{
            "accountType": "UNIFIED",
            "totalEquity": "1500.25",
            "totalWalletBalance": "1500",
            "totalAvailableBalance": "1200",
            "coin": [{"coin": "USDT", "walletBalance": "1500", "equity": "1500.25"}],
        }]}))
        client = make_client(session)

        balances = await client.get_wallet_balance(coin="USDT")

        path, query = _last_query(session)
        assert path == "/v5/account/wallet-balance"
        assert query == {"accountType": "UNIFIED", "coin": "USDT"}
        account = balances.first()
        assert account.account_type == AccountType.UNIFIED
        assert account.get_coin("USDT").equity == Decimal("1500.25")

    @pytest.mark.asyncio
    async def test_get_position(self, make_session, make_client, envelope):
        session = make_session(envelope({"category": "linear", "list": [{
            "symbol": "BTCUSDT",
            "side": "Sell",
            "size": "0.5",
            "positionIdx": 0,
            "avgPrice": "37000",
            "unrealisedPnl": "-12.5",
        }]}))
        client = make_client(session)

        positions = await client.get_position("linear", symbol="BTCUSDT")

        assert positions[0].is_open
        assert positions[0].unrealised_pnl == Decimal("-12.5")

    @pytest.mark.asyncio
    async def test_get_position_needs_scope(self, make_session, make_client):
        client = make_client(make_session())

        with pytest.raises(InvalidParameterError):
            await client.get_position("linear")

    @pytest.mark.asyncio
    async def test_set_leverage(self, make_session, make_client, envelope):
        """Test leverage values are sent as decimal strings."""
        session = make_session(envelope({}))
        client = make_client(session)

        result = await client.set_leverage("linear", "BTCUSDT", 10, Decimal("5.5"))

        path, body = _last_body(session)
        assert path == "/v5/position/set-leverage"
        assert body == {
            "category": "linear",
            "symbol": "BTCUSDT",
            "buyLeverage": "10",
            "sellLeverage": "5.5",
        }
        assert result is None

    @pytest.mark.asyncio
    async def test_set_leverage_not_modified(self, make_session, make_client, envelope):
        """Test an unchanged leverage is reported as an ApiError."""
        client = make_client(make_session(envelope(ret_code=110043, ret_msg="leverage not modified")))

        with pytest.raises(ApiError) as exc_info:
            await client.set_leverage("linear", "BTCUSDT", "10", "10")

        assert exc_info.value.ret_code == 110043

    @pytest.mark.asyncio
    async def test_set_leverage_spot_rejected(self, make_session, make_client):
        client = make_client(make_session())

        with pytest.raises(InvalidParameterError):
            await client.set_leverage("spot", "BTCUSDT", "2", "2")

    @pytest.mark.asyncio
    async def test_get_execution_list(self, make_session, make_client, envelope):
        session = make_session(envelope({"list": [{
            "execId": "e1",
            "symbol": "BTCUSDT",
            "orderId": "o1",
            "side": "Buy",
            "execPrice": "37000",
            "execQty": "0.01",
            "execTime": "1700000000000",
            "execFee": "0.2035",
            "isMaker": False,
        }]}))
        client = make_client(session)

        executions = await client.get_execution_list("linear", symbol="BTCUSDT")

        path, _ = _last_query(session)
        assert path == "/v5/execution/list"
        assert executions[0].exec_fee == Decimal("0.2035")
        assert executions[0].is_maker is False

    @pytest.mark.asyncio
    async def test_get_closed_pnl(self, make_session, make_client, envelope):
        session = make_session(envelope({"list": [{
            "symbol": "BTCUSDT",
            "orderId": "o1",
            "side": "Sell",
            "qty": "0.01",
            "closedPnl": "4.2",
            "avgEntryPrice": "37000",
            "avgExitPrice": "37420",
        }]}))
        client = make_client(session)

        pnl = await client.get_closed_pnl("linear", start_time=1700000000000, end_time=1700086400000)

        _, query = _last_query(session)
        assert query["startTime"] == "1700000000000"
        assert pnl[0].closed_pnl == Decimal("4.2")

    @pytest.mark.asyncio
    async def test_get_closed_pnl_window_limit(self, make_session, make_client):
        client = make_client(make_session())

        with pytest.raises(InvalidParameterError, match="7 days"):
            await client.get_closed_pnl("linear", start_time=0, end_time=CLOSED_PNL_MAX_WINDOW_MS + 1)
