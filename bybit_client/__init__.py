"""
Bybit Client.

============================================================
PURPOSE
============================================================
Unofficial async client for the Bybit V5 REST API.

MODULES:
- auth: Request signing (HMAC-SHA256 auth headers)
- client: BybitClient transport and envelope handling
- market / trade / account: Typed endpoint wrappers
- types: Enums, response structures, order builder
- errors: Typed error taxonomy and retCode mapping
- config: BybitConfig and environment loading

============================================================
"""

__version__ = "0.3.0"

# Signing
from .auth import (
    DEFAULT_RECV_WINDOW,
    AuthHeaders,
    Credentials,
    HttpMethod,
    SignableRequest,
    canonical_string,
    current_timestamp_ms,
    generate_signature,
    sign,
)

# Client
from .client import BybitClient
from .config import BybitConfig, MAINNET_URL, TESTNET_URL

# Errors
from .errors import (
    ApiError,
    AuthenticationError,
    BybitError,
    ErrorCategory,
    InvalidEnumValueError,
    InvalidParameterError,
    MissingRequiredFieldError,
    RateLimitError,
    RequestError,
    RetryEligibility,
    SerializationError,
    TimestampError,
    map_bybit_error,
)

# Types
from .types import (
    AccountBalance,
    AccountType,
    ApiResponse,
    Category,
    ClosedPnl,
    CoinBalance,
    CreateOrderRequest,
    CreateOrderRequestBuilder,
    Execution,
    InstrumentInfo,
    Kline,
    KlineInterval,
    Order,
    OrderAck,
    OrderBook,
    OrderBookLevel,
    OrderStatus,
    OrderType,
    PagedList,
    Position,
    PositionIdx,
    ServerTime,
    Side,
    Ticker,
    TimeInForce,
    TriggerBy,
)

# Observability
from .logging_utils import ClientLogger, mask_headers, mask_params, mask_value
from .metrics import ClientMetrics, RateLimitStatus


__all__ = [
    # Signing
    "DEFAULT_RECV_WINDOW",
    "AuthHeaders",
    "Credentials",
    "HttpMethod",
    "SignableRequest",
    "canonical_string",
    "current_timestamp_ms",
    "generate_signature",
    "sign",
    # Client
    "BybitClient",
    "BybitConfig",
    "MAINNET_URL",
    "TESTNET_URL",
    # Errors
    "ApiError",
    "AuthenticationError",
    "BybitError",
    "ErrorCategory",
    "InvalidEnumValueError",
    "InvalidParameterError",
    "MissingRequiredFieldError",
    "RateLimitError",
    "RequestError",
    "RetryEligibility",
    "SerializationError",
    "TimestampError",
    "map_bybit_error",
    # Types
    "AccountBalance",
    "AccountType",
    "ApiResponse",
    "Category",
    "ClosedPnl",
    "CoinBalance",
    "CreateOrderRequest",
    "CreateOrderRequestBuilder",
    "Execution",
    "InstrumentInfo",
    "Kline",
    "KlineInterval",
    "Order",
    "OrderAck",
    "OrderBook",
    "OrderBookLevel",
    "OrderStatus",
    "OrderType",
    "PagedList",
    "Position",
    "PositionIdx",
    "ServerTime",
    "Side",
    "Ticker",
    "TimeInForce",
    "TriggerBy",
    # Observability
    "ClientLogger",
    "ClientMetrics",
    "RateLimitStatus",
    "mask_headers",
    "mask_params",
    "mask_value",
]
