"""
Bybit Client - Types.

============================================================
PURPOSE
============================================================
Typed request/response structures for the Bybit V5 REST API.

WIRE FORMAT:
- Prices, quantities and balances travel as decimal strings.
  Responses parse them into Decimal; requests always emit strings.
- Millisecond timestamps travel as strings and parse into int.
- Empty strings on optional fields parse into None.

RESPONSE WRAPPERS:
    Every list endpoint returns { list, nextPageCursor, category },
    represented once by the generic PagedList[T].

============================================================
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar, Union

from .errors import InvalidEnumValueError, InvalidParameterError, MissingRequiredFieldError, SerializationError


T = TypeVar("T")

DecimalLike = Union[str, Decimal, int, float]


# ============================================================
# PARSING HELPERS
# ============================================================

def _decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(str(value))


def _decimal_or_zero(value: Any) -> Decimal:
    parsed = _decimal(value)
    return parsed if parsed is not None else Decimal("0")


def _int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _bool(value: Any) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def to_wire_decimal(value: Optional[DecimalLike], name: str = "value") -> Optional[str]:
    """Normalize a numeric request argument into its decimal string form."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidParameterError(f"{name} must be numeric, got {value!r}")
    if isinstance(value, str):
        return value
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (int, float)):
        return format(Decimal(str(value)), "f")
    raise InvalidParameterError(f"{name} must be numeric, got {value!r}")


# ============================================================
# ENUMS
# ============================================================

class BybitEnum(Enum):
    """Enum whose values are the exact wire strings."""

    @classmethod
    def parse(cls, value: Any):
        """
        Accept a member or its wire value.

        Raises:
            InvalidEnumValueError: value is not part of the closed set
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidEnumValueError(cls.__name__, value) from None

    @classmethod
    def parse_optional(cls, value: Any):
        if value is None or value == "":
            return None
        return cls.parse(value)

    def __str__(self) -> str:
        return str(self.value)


class Category(BybitEnum):
    """Product category."""

    LINEAR = "linear"
    INVERSE = "inverse"
    SPOT = "spot"
    OPTION = "option"


class Side(BybitEnum):
    BUY = "Buy"
    SELL = "Sell"


class OrderType(BybitEnum):
    MARKET = "Market"
    LIMIT = "Limit"


class TimeInForce(BybitEnum):
    """Time in force."""

    GTC = "GTC"
    """Good Till Canceled."""

    IOC = "IOC"
    """Immediate Or Cancel."""

    FOK = "FOK"
    """Fill Or Kill."""

    POST_ONLY = "PostOnly"
    """Maker only."""

    RPI = "RPI"
    """Retail Price Improvement."""


class OrderStatus(BybitEnum):
    """Order status as reported by the exchange."""

    NEW = "New"
    PARTIALLY_FILLED = "PartiallyFilled"
    UNTRIGGERED = "Untriggered"
    FILLED = "Filled"
    CANCELLED = "Cancelled"
    REJECTED = "Rejected"
    PARTIALLY_FILLED_CANCELED = "PartiallyFilledCanceled"
    TRIGGERED = "Triggered"
    DEACTIVATED = "Deactivated"
    ACTIVE = "Active"

    def is_terminal(self) -> bool:
        """Check if the order can no longer change."""
        return self in {
            OrderStatus.FILLED,
            OrderStatus.CANCELLED,
            OrderStatus.REJECTED,
            OrderStatus.PARTIALLY_FILLED_CANCELED,
            OrderStatus.DEACTIVATED,
        }


class AccountType(BybitEnum):
    UNIFIED = "UNIFIED"
    CONTRACT = "CONTRACT"
    SPOT = "SPOT"


class PositionIdx(BybitEnum):
    """Position index: one-way mode or a hedge-mode side."""

    ONE_WAY = 0
    HEDGE_BUY = 1
    HEDGE_SELL = 2

    @classmethod
    def parse(cls, value: Any):
        if isinstance(value, str) and value.isdigit():
            value = int(value)
        return super().parse(value)


class TriggerBy(BybitEnum):
    LAST_PRICE = "LastPrice"
    INDEX_PRICE = "IndexPrice"
    MARK_PRICE = "MarkPrice"


class KlineInterval(BybitEnum):
    """Kline interval; minutes as digits, then day/week/month."""

    MIN_1 = "1"
    MIN_3 = "3"
    MIN_5 = "5"
    MIN_15 = "15"
    MIN_30 = "30"
    HOUR_1 = "60"
    HOUR_2 = "120"
    HOUR_4 = "240"
    HOUR_6 = "360"
    HOUR_12 = "720"
    DAY = "D"
    WEEK = "W"
    MONTH = "M"

    @classmethod
    def parse(cls, value: Any):
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        return super().parse(value)


# ============================================================
# ENVELOPE
# ============================================================

@dataclass
class ApiResponse:
    """Outer { retCode, retMsg, result, retExtInfo, time } envelope."""

    ret_code: int
    ret_msg: str
    result: Any
    ret_ext_info: Dict[str, Any] = field(default_factory=dict)
    time: Optional[int] = None

    @property
    def is_success(self) -> bool:
        return self.ret_code == 0

    @classmethod
    def from_dict(cls, data: Any) -> "ApiResponse":
        if not isinstance(data, dict) or "retCode" not in data:
            raise SerializationError("response is not a Bybit envelope")
        try:
            ret_code = int(data["retCode"])
        except (TypeError, ValueError):
            raise SerializationError(f"invalid retCode: {data['retCode']!r}") from None
        return cls(
            ret_code=ret_code,
            ret_msg=str(data.get("retMsg", "")),
            result=data.get("result") or {},
            ret_ext_info=data.get("retExtInfo") or {},
            time=_int(data.get("time")),
        )


# ============================================================
# PAGINATION
# ============================================================

@dataclass
class PagedList(Generic[T]):
    """
    Generic { list, nextPageCursor } wrapper.

    Iterable and sized; ``items`` holds the parsed entries.
    """

    items: List[T] = field(default_factory=list)
    next_page_cursor: Optional[str] = None
    category: Optional[Category] = None

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> T:
        return self.items[index]

    @property
    def has_more(self) -> bool:
        return bool(self.next_page_cursor)

    def first(self) -> Optional[T]:
        return self.items[0] if self.items else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], item_parser: Callable[[Any], T]) -> "PagedList[T]":
        return cls(
            items=[item_parser(item) for item in data.get("list") or []],
            next_page_cursor=_str(data.get("nextPageCursor")),
            category=Category.parse_optional(data.get("category")),
        )


# ============================================================
# MARKET DATA
# ============================================================

@dataclass
class ServerTime:
    time_second: int
    time_nano: int

    @property
    def time_ms(self) -> int:
        return self.time_nano // 1_000_000

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerTime":
        return cls(
            time_second=int(data["timeSecond"]),
            time_nano=int(data["timeNano"]),
        )


@dataclass
class Ticker:
    symbol: str
    last_price: Decimal
    bid1_price: Optional[Decimal] = None
    bid1_size: Optional[Decimal] = None
    ask1_price: Optional[Decimal] = None
    ask1_size: Optional[Decimal] = None
    index_price: Optional[Decimal] = None
    mark_price: Optional[Decimal] = None
    prev_price_24h: Optional[Decimal] = None
    price_24h_pcnt: Optional[Decimal] = None
    high_price_24h: Optional[Decimal] = None
    low_price_24h: Optional[Decimal] = None
    volume_24h: Optional[Decimal] = None
    turnover_24h: Optional[Decimal] = None
    open_interest: Optional[Decimal] = None
    funding_rate: Optional[Decimal] = None
    next_funding_time: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ticker":
        return cls(
            symbol=data["symbol"],
            last_price=_decimal_or_zero(data.get("lastPrice")),
            bid1_price=_decimal(data.get("bid1Price")),
            bid1_size=_decimal(data.get("bid1Size")),
            ask1_price=_decimal(data.get("ask1Price")),
            ask1_size=_decimal(data.get("ask1Size")),
            index_price=_decimal(data.get("indexPrice")),
            mark_price=_decimal(data.get("markPrice")),
            prev_price_24h=_decimal(data.get("prevPrice24h")),
            price_24h_pcnt=_decimal(data.get("price24hPcnt")),
            high_price_24h=_decimal(data.get("highPrice24h")),
            low_price_24h=_decimal(data.get("lowPrice24h")),
            volume_24h=_decimal(data.get("volume24h")),
            turnover_24h=_decimal(data.get("turnover24h")),
            open_interest=_decimal(data.get("openInterest")),
            funding_rate=_decimal(data.get("fundingRate")),
            next_funding_time=_int(data.get("nextFundingTime")),
        )


@dataclass
class OrderBookLevel:
    price: Decimal
    size: Decimal

    @classmethod
    def from_list(cls, level: List[str]) -> "OrderBookLevel":
        return cls(price=Decimal(level[0]), size=Decimal(level[1]))


@dataclass
class OrderBook:
    """Order book snapshot. Bids descend, asks ascend, as sent."""

    symbol: str
    bids: List[OrderBookLevel]
    asks: List[OrderBookLevel]
    timestamp: int
    update_id: int
    seq: Optional[int] = None
    cts: Optional[int] = None

    @property
    def best_bid(self) -> Optional[OrderBookLevel]:
        return self.bids[0] if self.bids else None

    @property
    def best_ask(self) -> Optional[OrderBookLevel]:
        return self.asks[0] if self.asks else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderBook":
        return cls(
            symbol=data["s"],
            bids=[OrderBookLevel.from_list(level) for level in data.get("b") or []],
            asks=[OrderBookLevel.from_list(level) for level in data.get("a") or []],
            timestamp=int(data["ts"]),
            update_id=int(data["u"]),
            seq=_int(data.get("seq")),
            cts=_int(data.get("cts")),
        )


@dataclass
class Kline:
    """One candle: [startTime, open, high, low, close, volume, turnover]."""

    start_time: int
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    turnover: Decimal

    @classmethod
    def from_list(cls, row: List[str]) -> "Kline":
        return cls(
            start_time=int(row[0]),
            open=Decimal(row[1]),
            high=Decimal(row[2]),
            low=Decimal(row[3]),
            close=Decimal(row[4]),
            volume=Decimal(row[5]),
            turnover=Decimal(row[6]),
        )


@dataclass
class InstrumentInfo:
    symbol: str
    status: str
    base_coin: str
    quote_coin: str
    contract_type: Optional[str] = None
    settle_coin: Optional[str] = None
    price_scale: Optional[int] = None
    tick_size: Optional[Decimal] = None
    qty_step: Optional[Decimal] = None
    min_order_qty: Optional[Decimal] = None
    max_order_qty: Optional[Decimal] = None
    min_notional_value: Optional[Decimal] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InstrumentInfo":
        lot_filter = data.get("lotSizeFilter") or {}
        price_filter = data.get("priceFilter") or {}

        return cls(
            symbol=data["symbol"],
            status=data.get("status", ""),
            base_coin=data.get("baseCoin", ""),
            quote_coin=data.get("quoteCoin", ""),
            contract_type=_str(data.get("contractType")),
            settle_coin=_str(data.get("settleCoin")),
            price_scale=_int(data.get("priceScale")),
            tick_size=_decimal(price_filter.get("tickSize")),
            # spot instruments expose basePrecision instead of qtyStep
            qty_step=_decimal(lot_filter.get("qtyStep") or lot_filter.get("basePrecision")),
            min_order_qty=_decimal(lot_filter.get("minOrderQty")),
            max_order_qty=_decimal(lot_filter.get("maxOrderQty")),
            min_notional_value=_decimal(
                lot_filter.get("minNotionalValue") or lot_filter.get("minOrderAmt")
            ),
        )


# ============================================================
# ACCOUNT
# ============================================================

@dataclass
class CoinBalance:
    coin: str
    wallet_balance: Decimal
    equity: Optional[Decimal] = None
    usd_value: Optional[Decimal] = None
    available_to_withdraw: Optional[Decimal] = None
    transfer_balance: Optional[Decimal] = None
    locked: Optional[Decimal] = None
    unrealised_pnl: Optional[Decimal] = None
    cum_realised_pnl: Optional[Decimal] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CoinBalance":
        return cls(
            coin=data["coin"],
            wallet_balance=_decimal_or_zero(data.get("walletBalance")),
            equity=_decimal(data.get("equity")),
            usd_value=_decimal(data.get("usdValue")),
            available_to_withdraw=_decimal(data.get("availableToWithdraw")),
            transfer_balance=_decimal(data.get("transferBalance")),
            locked=_decimal(data.get("locked")),
            unrealised_pnl=_decimal(data.get("unrealisedPnl")),
            cum_realised_pnl=_decimal(data.get("cumRealisedPnl")),
        )


@dataclass
class AccountBalance:
    account_type: AccountType
    total_equity: Decimal
    total_wallet_balance: Decimal
    total_available_balance: Decimal
    total_margin_balance: Optional[Decimal] = None
    total_perp_upl: Optional[Decimal] = None
    total_initial_margin: Optional[Decimal] = None
    total_maintenance_margin: Optional[Decimal] = None
    account_im_rate: Optional[Decimal] = None
    account_mm_rate: Optional[Decimal] = None
    coins: List[CoinBalance] = field(default_factory=list)

    def get_coin(self, coin: str) -> Optional[CoinBalance]:
        return next((c for c in self.coins if c.coin == coin), None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccountBalance":
        return cls(
            account_type=AccountType.parse(data["accountType"]),
            total_equity=_decimal_or_zero(data.get("totalEquity")),
            total_wallet_balance=_decimal_or_zero(data.get("totalWalletBalance")),
            total_available_balance=_decimal_or_zero(data.get("totalAvailableBalance")),
            total_margin_balance=_decimal(data.get("totalMarginBalance")),
            total_perp_upl=_decimal(data.get("totalPerpUPL")),
            total_initial_margin=_decimal(data.get("totalInitialMargin")),
            total_maintenance_margin=_decimal(data.get("totalMaintenanceMargin")),
            account_im_rate=_decimal(data.get("accountIMRate")),
            account_mm_rate=_decimal(data.get("accountMMRate")),
            coins=[CoinBalance.from_dict(c) for c in data.get("coin") or []],
        )


@dataclass
class Position:
    symbol: str
    size: Decimal
    position_idx: PositionIdx
    side: Optional[Side] = None
    position_status: Optional[str] = None
    avg_price: Optional[Decimal] = None
    position_value: Optional[Decimal] = None
    leverage: Optional[Decimal] = None
    mark_price: Optional[Decimal] = None
    liq_price: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None
    stop_loss: Optional[Decimal] = None
    unrealised_pnl: Optional[Decimal] = None
    cum_realised_pnl: Optional[Decimal] = None
    created_time: Optional[int] = None
    updated_time: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.size != 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        # side is "" (or "None") when the position is flat
        side = data.get("side")
        return cls(
            symbol=data["symbol"],
            size=_decimal_or_zero(data.get("size")),
            position_idx=PositionIdx.parse(data.get("positionIdx", 0)),
            side=Side.parse_optional(None if side == "None" else side),
            position_status=_str(data.get("positionStatus")),
            avg_price=_decimal(data.get("avgPrice")),
            position_value=_decimal(data.get("positionValue")),
            leverage=_decimal(data.get("leverage")),
            mark_price=_decimal(data.get("markPrice")),
            liq_price=_decimal(data.get("liqPrice")),
            take_profit=_decimal(data.get("takeProfit")),
            stop_loss=_decimal(data.get("stopLoss")),
            unrealised_pnl=_decimal(data.get("unrealisedPnl")),
            cum_realised_pnl=_decimal(data.get("cumRealisedPnl")),
            created_time=_int(data.get("createdTime")),
            updated_time=_int(data.get("updatedTime")),
        )


@dataclass
class Execution:
    exec_id: str
    symbol: str
    order_id: str
    side: Side
    exec_price: Decimal
    exec_qty: Decimal
    exec_time: int
    order_link_id: Optional[str] = None
    order_type: Optional[OrderType] = None
    exec_type: Optional[str] = None
    exec_value: Optional[Decimal] = None
    exec_fee: Optional[Decimal] = None
    fee_rate: Optional[Decimal] = None
    is_maker: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Execution":
        return cls(
            exec_id=data["execId"],
            symbol=data["symbol"],
            order_id=data["orderId"],
            side=Side.parse(data["side"]),
            exec_price=_decimal_or_zero(data.get("execPrice")),
            exec_qty=_decimal_or_zero(data.get("execQty")),
            exec_time=int(data["execTime"]),
            order_link_id=_str(data.get("orderLinkId")),
            order_type=OrderType.parse_optional(data.get("orderType")),
            exec_type=_str(data.get("execType")),
            exec_value=_decimal(data.get("execValue")),
            exec_fee=_decimal(data.get("execFee")),
            fee_rate=_decimal(data.get("feeRate")),
            is_maker=_bool(data.get("isMaker")),
        )


@dataclass
class ClosedPnl:
    symbol: str
    order_id: str
    side: Side
    qty: Decimal
    closed_pnl: Decimal
    order_price: Optional[Decimal] = None
    order_type: Optional[OrderType] = None
    exec_type: Optional[str] = None
    closed_size: Optional[Decimal] = None
    cum_entry_value: Optional[Decimal] = None
    avg_entry_price: Optional[Decimal] = None
    cum_exit_value: Optional[Decimal] = None
    avg_exit_price: Optional[Decimal] = None
    fill_count: Optional[int] = None
    leverage: Optional[Decimal] = None
    created_time: Optional[int] = None
    updated_time: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClosedPnl":
        return cls(
            symbol=data["symbol"],
            order_id=data["orderId"],
            side=Side.parse(data["side"]),
            qty=_decimal_or_zero(data.get("qty")),
            closed_pnl=_decimal_or_zero(data.get("closedPnl")),
            order_price=_decimal(data.get("orderPrice")),
            order_type=OrderType.parse_optional(data.get("orderType")),
            exec_type=_str(data.get("execType")),
            closed_size=_decimal(data.get("closedSize")),
            cum_entry_value=_decimal(data.get("cumEntryValue")),
            avg_entry_price=_decimal(data.get("avgEntryPrice")),
            cum_exit_value=_decimal(data.get("cumExitValue")),
            avg_exit_price=_decimal(data.get("avgExitPrice")),
            fill_count=_int(data.get("fillCount")),
            leverage=_decimal(data.get("leverage")),
            created_time=_int(data.get("createdTime")),
            updated_time=_int(data.get("updatedTime")),
        )


# ============================================================
# ORDERS
# ============================================================

@dataclass
class Order:
    order_id: str
    symbol: str
    side: Side
    order_type: OrderType
    order_status: OrderStatus
    qty: Decimal
    order_link_id: Optional[str] = None
    price: Optional[Decimal] = None
    time_in_force: Optional[TimeInForce] = None
    leaves_qty: Optional[Decimal] = None
    cum_exec_qty: Optional[Decimal] = None
    cum_exec_value: Optional[Decimal] = None
    avg_price: Optional[Decimal] = None
    position_idx: Optional[PositionIdx] = None
    trigger_price: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None
    stop_loss: Optional[Decimal] = None
    reduce_only: Optional[bool] = None
    close_on_trigger: Optional[bool] = None
    create_type: Optional[str] = None
    cancel_type: Optional[str] = None
    reject_reason: Optional[str] = None
    created_time: Optional[int] = None
    updated_time: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        position_idx = data.get("positionIdx")
        return cls(
            order_id=data["orderId"],
            symbol=data["symbol"],
            side=Side.parse(data["side"]),
            order_type=OrderType.parse(data["orderType"]),
            order_status=OrderStatus.parse(data["orderStatus"]),
            qty=_decimal_or_zero(data.get("qty")),
            order_link_id=_str(data.get("orderLinkId")),
            price=_decimal(data.get("price")),
            time_in_force=TimeInForce.parse_optional(data.get("timeInForce")),
            leaves_qty=_decimal(data.get("leavesQty")),
            cum_exec_qty=_decimal(data.get("cumExecQty")),
            cum_exec_value=_decimal(data.get("cumExecValue")),
            avg_price=_decimal(data.get("avgPrice")),
            position_idx=PositionIdx.parse(position_idx) if position_idx is not None else None,
            trigger_price=_decimal(data.get("triggerPrice")),
            take_profit=_decimal(data.get("takeProfit")),
            stop_loss=_decimal(data.get("stopLoss")),
            reduce_only=_bool(data.get("reduceOnly")),
            close_on_trigger=_bool(data.get("closeOnTrigger")),
            create_type=_str(data.get("createType")),
            cancel_type=_str(data.get("cancelType")),
            reject_reason=_str(data.get("rejectReason")),
            created_time=_int(data.get("createdTime")),
            updated_time=_int(data.get("updatedTime")),
        )


@dataclass
class OrderAck:
    """Acknowledgement returned by create / amend / cancel."""

    order_id: str
    order_link_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderAck":
        return cls(
            order_id=data["orderId"],
            order_link_id=_str(data.get("orderLinkId")),
        )


# (attribute, wire name) in wire order
_CREATE_ORDER_FIELDS = (
    ("category", "category"),
    ("symbol", "symbol"),
    ("side", "side"),
    ("order_type", "orderType"),
    ("qty", "qty"),
    ("price", "price"),
    ("time_in_force", "timeInForce"),
    ("position_idx", "positionIdx"),
    ("order_link_id", "orderLinkId"),
    ("trigger_price", "triggerPrice"),
    ("trigger_direction", "triggerDirection"),
    ("trigger_by", "triggerBy"),
    ("take_profit", "takeProfit"),
    ("stop_loss", "stopLoss"),
    ("tp_trigger_by", "tpTriggerBy"),
    ("sl_trigger_by", "slTriggerBy"),
    ("reduce_only", "reduceOnly"),
    ("close_on_trigger", "closeOnTrigger"),
    ("market_unit", "marketUnit"),
    ("slippage_tolerance_type", "slippageToleranceType"),
    ("slippage_tolerance", "slippageTolerance"),
    ("order_filter", "orderFilter"),
)

_DECIMAL_ORDER_FIELDS = (
    "qty",
    "price",
    "trigger_price",
    "take_profit",
    "stop_loss",
    "slippage_tolerance",
)


@dataclass
class CreateOrderRequest:
    """
    Body of POST /v5/order/create.

    Enum fields accept a member or its wire string; numeric
    fields accept str, Decimal, int or float and are stored as
    decimal strings. Unset optional fields are omitted on the wire.
    """

    symbol: str
    side: Side
    order_type: OrderType
    category: Category = Category.LINEAR
    qty: Optional[str] = None
    price: Optional[str] = None
    time_in_force: Optional[TimeInForce] = None
    position_idx: Optional[PositionIdx] = None
    order_link_id: Optional[str] = None
    trigger_price: Optional[str] = None
    trigger_direction: Optional[int] = None
    trigger_by: Optional[TriggerBy] = None
    take_profit: Optional[str] = None
    stop_loss: Optional[str] = None
    tp_trigger_by: Optional[TriggerBy] = None
    sl_trigger_by: Optional[TriggerBy] = None
    reduce_only: Optional[bool] = None
    close_on_trigger: Optional[bool] = None
    market_unit: Optional[str] = None
    slippage_tolerance_type: Optional[str] = None
    slippage_tolerance: Optional[str] = None
    order_filter: Optional[str] = None

    def __post_init__(self):
        if not self.symbol:
            raise MissingRequiredFieldError("symbol")
        self.category = Category.parse(self.category)
        self.side = Side.parse(self.side)
        self.order_type = OrderType.parse(self.order_type)
        self.time_in_force = TimeInForce.parse_optional(self.time_in_force)
        if self.position_idx is not None:
            self.position_idx = PositionIdx.parse(self.position_idx)
        self.trigger_by = TriggerBy.parse_optional(self.trigger_by)
        self.tp_trigger_by = TriggerBy.parse_optional(self.tp_trigger_by)
        self.sl_trigger_by = TriggerBy.parse_optional(self.sl_trigger_by)
        if self.trigger_direction is not None and self.trigger_direction not in (1, 2):
            raise InvalidParameterError("trigger_direction must be 1 (rise) or 2 (fall)")

        for name in _DECIMAL_ORDER_FIELDS:
            setattr(self, name, to_wire_decimal(getattr(self, name), name))

    @classmethod
    def builder(cls) -> "CreateOrderRequestBuilder":
        return CreateOrderRequestBuilder()

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation, in stable field order."""
        body: Dict[str, Any] = {}
        for attr, wire_name in _CREATE_ORDER_FIELDS:
            value = getattr(self, attr)
            if value is None:
                continue
            body[wire_name] = value.value if isinstance(value, Enum) else value
        return body


class CreateOrderRequestBuilder:
    """
    Fluent builder for CreateOrderRequest.

    category defaults to linear; symbol, side and order_type are
    required and build() raises MissingRequiredFieldError without them.
    """

    def __init__(self):
        self._fields: Dict[str, Any] = {}

    def _set(self, name: str, value: Any) -> "CreateOrderRequestBuilder":
        self._fields[name] = value
        return self

    def category(self, category: Union[Category, str]) -> "CreateOrderRequestBuilder":
        return self._set("category", category)

    def symbol(self, symbol: str) -> "CreateOrderRequestBuilder":
        return self._set("symbol", symbol)

    def side(self, side: Union[Side, str]) -> "CreateOrderRequestBuilder":
        return self._set("side", side)

    def order_type(self, order_type: Union[OrderType, str]) -> "CreateOrderRequestBuilder":
        return self._set("order_type", order_type)

    def qty(self, qty: DecimalLike) -> "CreateOrderRequestBuilder":
        return self._set("qty", qty)

    def price(self, price: DecimalLike) -> "CreateOrderRequestBuilder":
        return self._set("price", price)

    def time_in_force(self, time_in_force: Union[TimeInForce, str]) -> "CreateOrderRequestBuilder":
        return self._set("time_in_force", time_in_force)

    def position_idx(self, position_idx: Union[PositionIdx, int]) -> "CreateOrderRequestBuilder":
        return self._set("position_idx", position_idx)

    def order_link_id(self, order_link_id: str) -> "CreateOrderRequestBuilder":
        return self._set("order_link_id", order_link_id)

    def trigger_price(self, trigger_price: DecimalLike) -> "CreateOrderRequestBuilder":
        return self._set("trigger_price", trigger_price)

    def trigger_direction(self, trigger_direction: int) -> "CreateOrderRequestBuilder":
        return self._set("trigger_direction", trigger_direction)

    def trigger_by(self, trigger_by: Union[TriggerBy, str]) -> "CreateOrderRequestBuilder":
        return self._set("trigger_by", trigger_by)

    def take_profit(self, take_profit: DecimalLike) -> "CreateOrderRequestBuilder":
        return self._set("take_profit", take_profit)

    def stop_loss(self, stop_loss: DecimalLike) -> "CreateOrderRequestBuilder":
        return self._set("stop_loss", stop_loss)

    def tp_trigger_by(self, tp_trigger_by: Union[TriggerBy, str]) -> "CreateOrderRequestBuilder":
        return self._set("tp_trigger_by", tp_trigger_by)

    def sl_trigger_by(self, sl_trigger_by: Union[TriggerBy, str]) -> "CreateOrderRequestBuilder":
        return self._set("sl_trigger_by", sl_trigger_by)

    def reduce_only(self, reduce_only: bool) -> "CreateOrderRequestBuilder":
        return self._set("reduce_only", reduce_only)

    def close_on_trigger(self, close_on_trigger: bool) -> "CreateOrderRequestBuilder":
        return self._set("close_on_trigger", close_on_trigger)

    def market_unit(self, market_unit: str) -> "CreateOrderRequestBuilder":
        return self._set("market_unit", market_unit)

    def slippage_tolerance_type(self, slippage_tolerance_type: str) -> "CreateOrderRequestBuilder":
        return self._set("slippage_tolerance_type", slippage_tolerance_type)

    def slippage_tolerance(self, slippage_tolerance: DecimalLike) -> "CreateOrderRequestBuilder":
        return self._set("slippage_tolerance", slippage_tolerance)

    def order_filter(self, order_filter: str) -> "CreateOrderRequestBuilder":
        return self._set("order_filter", order_filter)

    def build(self) -> CreateOrderRequest:
        for required in ("symbol", "side", "order_type"):
            if self._fields.get(required) is None:
                raise MissingRequiredFieldError(required)
        return CreateOrderRequest(**self._fields)
