"""
Bybit Client - Error Handling and Mapping.

============================================================
PURPOSE
============================================================
Typed errors raised by the client, plus the mapping from
Bybit V5 ``retCode`` values to those types.

============================================================
ERROR TAXONOMY
============================================================
BybitError
├── AuthenticationError   - Missing/empty credentials (local)
├── ApiError              - Exchange rejected the request
│   ├── TimestampError    - Clock skew / recv_window violation
│   └── RateLimitError    - Too many requests
├── RequestError          - Network failure or timeout
├── SerializationError    - Response is not a valid envelope
└── InvalidParameterError - Caller supplied an invalid argument
    ├── MissingRequiredFieldError
    └── InvalidEnumValueError

============================================================
"""

from enum import Enum
from typing import Optional, Dict, Any, Tuple


# ============================================================
# CLASSIFICATION
# ============================================================

class ErrorCategory(Enum):
    """Broad category of an exchange-side rejection."""

    NETWORK = "NETWORK"
    RATE_LIMIT = "RATE_LIMIT"
    AUTHENTICATION = "AUTHENTICATION"
    TIMESTAMP = "TIMESTAMP"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    INVALID_ORDER = "INVALID_ORDER"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    SYMBOL_NOT_FOUND = "SYMBOL_NOT_FOUND"
    POSITION = "POSITION"
    EXCHANGE_ERROR = "EXCHANGE_ERROR"
    TIMEOUT = "TIMEOUT"
    UNKNOWN = "UNKNOWN"


class RetryEligibility(Enum):
    """Whether a caller may safely retry. The client itself never retries."""

    RETRY = "RETRY"
    NO_RETRY = "NO_RETRY"
    BACKOFF = "BACKOFF"


# ============================================================
# EXCEPTIONS
# ============================================================

class BybitError(Exception):
    """Base class for every error raised by this package."""


class AuthenticationError(BybitError):
    """
    Credentials are missing or empty.

    Always raised locally, before any request is sent.
    """

    def __init__(self, message: str = "API credentials are required"):
        self.message = message
        super().__init__(f"Authentication failed: {message}")


class ApiError(BybitError):
    """
    The exchange answered with a non-zero ``retCode``.

    Carries the exchange's own code and message unchanged.
    """

    def __init__(
        self,
        ret_code: int,
        ret_msg: str,
        http_status: Optional[int] = None,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        retry_eligible: RetryEligibility = RetryEligibility.NO_RETRY,
        endpoint: Optional[str] = None,
    ):
        self.ret_code = ret_code
        self.ret_msg = ret_msg
        self.http_status = http_status
        self.category = category
        self.retry_eligible = retry_eligible
        self.endpoint = endpoint
        super().__init__(f"API error (code {ret_code}): {ret_msg}")

    def is_retryable(self) -> bool:
        """Check if the caller may retry."""
        return self.retry_eligible in (RetryEligibility.RETRY, RetryEligibility.BACKOFF)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": type(self).__name__,
            "ret_code": self.ret_code,
            "ret_msg": self.ret_msg,
            "http_status": self.http_status,
            "category": self.category.value,
            "retry_eligible": self.retry_eligible.value,
            "endpoint": self.endpoint,
        }


class TimestampError(ApiError):
    """Request rejected for clock skew or an exceeded recv_window."""


class RateLimitError(ApiError):
    """Request rejected because a rate limit was hit."""

    def __init__(
        self,
        ret_code: int,
        ret_msg: str,
        http_status: Optional[int] = None,
        category: ErrorCategory = ErrorCategory.RATE_LIMIT,
        retry_eligible: RetryEligibility = RetryEligibility.BACKOFF,
        endpoint: Optional[str] = None,
        limit_type: str = "API",
        limit_reset_ms: Optional[int] = None,
    ):
        super().__init__(
            ret_code,
            ret_msg,
            http_status=http_status,
            category=category,
            retry_eligible=retry_eligible,
            endpoint=endpoint,
        )
        self.limit_type = limit_type
        self.limit_reset_ms = limit_reset_ms


class RequestError(BybitError):
    """HTTP request failed before a response envelope was received."""

    def __init__(self, message: str, endpoint: Optional[str] = None, timeout: bool = False):
        self.message = message
        self.endpoint = endpoint
        self.timeout = timeout
        self.category = ErrorCategory.TIMEOUT if timeout else ErrorCategory.NETWORK
        super().__init__(f"HTTP request failed: {message}")


class SerializationError(BybitError):
    """Response body could not be decoded into the expected structure."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Serialization error: {message}")


class InvalidParameterError(BybitError, ValueError):
    """Caller supplied an invalid argument."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Invalid parameter: {message}")


class MissingRequiredFieldError(InvalidParameterError):

    def __init__(self, field_name: str):
        self.field_name = field_name
        InvalidParameterError.__init__(self, f"missing required field: {field_name}")


class InvalidEnumValueError(InvalidParameterError):

    def __init__(self, enum_name: str, value: Any):
        self.enum_name = enum_name
        self.value = value
        InvalidParameterError.__init__(self, f"invalid enum value for {enum_name}: {value!r}")


# ============================================================
# BYBIT RETCODE MAPPING
# ============================================================

# Bybit V5 retCode -> (category, retry eligibility)
BYBIT_ERROR_MAP: Dict[int, Tuple[ErrorCategory, RetryEligibility]] = {
    # Request / parameters
    10001: (ErrorCategory.INVALID_PARAMETER, RetryEligibility.NO_RETRY),
    10002: (ErrorCategory.TIMESTAMP, RetryEligibility.RETRY),

    # Authentication
    10003: (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    10004: (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    10005: (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    10007: (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    10010: (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    33004: (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),

    # Rate limiting
    10006: (ErrorCategory.RATE_LIMIT, RetryEligibility.BACKOFF),
    10018: (ErrorCategory.RATE_LIMIT, RetryEligibility.BACKOFF),

    # Orders
    110001: (ErrorCategory.ORDER_NOT_FOUND, RetryEligibility.NO_RETRY),
    110003: (ErrorCategory.INVALID_ORDER, RetryEligibility.NO_RETRY),
    110004: (ErrorCategory.INSUFFICIENT_FUNDS, RetryEligibility.NO_RETRY),
    110007: (ErrorCategory.INSUFFICIENT_FUNDS, RetryEligibility.NO_RETRY),
    110012: (ErrorCategory.INSUFFICIENT_FUNDS, RetryEligibility.NO_RETRY),
    110017: (ErrorCategory.INVALID_ORDER, RetryEligibility.NO_RETRY),
    110020: (ErrorCategory.INVALID_ORDER, RetryEligibility.NO_RETRY),
    110094: (ErrorCategory.INVALID_ORDER, RetryEligibility.NO_RETRY),
    170131: (ErrorCategory.INSUFFICIENT_FUNDS, RetryEligibility.NO_RETRY),
    170213: (ErrorCategory.ORDER_NOT_FOUND, RetryEligibility.NO_RETRY),

    # Symbol
    10029: (ErrorCategory.SYMBOL_NOT_FOUND, RetryEligibility.NO_RETRY),

    # Position / leverage
    110043: (ErrorCategory.POSITION, RetryEligibility.NO_RETRY),
    110025: (ErrorCategory.POSITION, RetryEligibility.NO_RETRY),

    # Exchange internal
    10000: (ErrorCategory.EXCHANGE_ERROR, RetryEligibility.RETRY),
    10016: (ErrorCategory.EXCHANGE_ERROR, RetryEligibility.RETRY),
    10027: (ErrorCategory.TIMEOUT, RetryEligibility.RETRY),
}


def map_bybit_error(
    code: int,
    message: str,
    http_status: int = None,
    endpoint: str = None,
    limit_reset_ms: int = None,
) -> ApiError:
    """
    Map a Bybit rejection to a typed ApiError.

    Args:
        code: Bybit retCode
        message: Bybit retMsg
        http_status: HTTP status code
        endpoint: Request path, for context
        limit_reset_ms: Value of the rate limit reset header, if present

    Returns:
        ApiError, TimestampError or RateLimitError
    """
    if code in BYBIT_ERROR_MAP:
        category, retry = BYBIT_ERROR_MAP[code]
    elif http_status == 429:
        category = ErrorCategory.RATE_LIMIT
        retry = RetryEligibility.BACKOFF
    elif http_status == 403 or http_status == 401:
        category = ErrorCategory.AUTHENTICATION
        retry = RetryEligibility.NO_RETRY
    elif http_status and http_status >= 500:
        category = ErrorCategory.EXCHANGE_ERROR
        retry = RetryEligibility.RETRY
    else:
        category = ErrorCategory.UNKNOWN
        retry = RetryEligibility.NO_RETRY

    if category == ErrorCategory.TIMESTAMP:
        return TimestampError(
            code,
            message,
            http_status=http_status,
            category=category,
            retry_eligible=retry,
            endpoint=endpoint,
        )

    if category == ErrorCategory.RATE_LIMIT:
        return RateLimitError(
            code,
            message,
            http_status=http_status,
            category=category,
            retry_eligible=retry,
            endpoint=endpoint,
            limit_type="IP" if code == 10018 else "API",
            limit_reset_ms=limit_reset_ms,
        )

    return ApiError(
        code,
        message,
        http_status=http_status,
        category=category,
        retry_eligible=retry,
        endpoint=endpoint,
    )
