"""
Bybit Client - Request Signing.

============================================================
PURPOSE
============================================================
Authentication headers for private Bybit V5 endpoints.

SIGNATURE:
    HMAC-SHA256(api_secret, timestamp + api_key + recv_window + payload)

    payload is the query string (GET) or the JSON body (POST)
    exactly as transmitted. Parameter order is the insertion
    order of the request, never re-sorted.

CONSTRAINTS:
- Pure: no network, no disk, no clock access inside sign()
- Timestamp is generated by the caller, fresh per request
- Secrets are never logged

============================================================
"""

import hashlib
import hmac
import json
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

from .errors import AuthenticationError, InvalidParameterError


# ============================================================
# CONSTANTS
# ============================================================

DEFAULT_RECV_WINDOW = 5000

HEADER_API_KEY = "X-BAPI-API-KEY"
HEADER_TIMESTAMP = "X-BAPI-TIMESTAMP"
HEADER_RECV_WINDOW = "X-BAPI-RECV-WINDOW"
HEADER_SIGN = "X-BAPI-SIGN"

AUTH_HEADER_NAMES = (
    HEADER_API_KEY,
    HEADER_TIMESTAMP,
    HEADER_RECV_WINDOW,
    HEADER_SIGN,
)

AuthHeaders = Dict[str, str]


class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"


# ============================================================
# DATA
# ============================================================

@dataclass(frozen=True)
class Credentials:
    """API key pair. Both values are masked in repr."""

    api_key: str = field(repr=False)
    api_secret: str = field(repr=False)

    def __repr__(self) -> str:
        return "Credentials(api_key=***, api_secret=***)"

    def validate(self) -> None:
        """Raise AuthenticationError if either value is empty."""
        if not self.api_key:
            raise AuthenticationError("api_key is empty")
        if not self.api_secret:
            raise AuthenticationError("api_secret is empty")


@dataclass(frozen=True)
class SignableRequest:
    """
    One outgoing private call, in its final wire form.

    A GET carries only a query string and a POST only a body.
    Either may be empty for a call without parameters.
    """

    timestamp: int
    recv_window: int
    method: HttpMethod
    query_string: str = ""
    body: str = ""

    def __post_init__(self):
        method = self.method
        if isinstance(method, str):
            try:
                method = HttpMethod(method.upper())
            except ValueError:
                raise InvalidParameterError(f"unsupported HTTP method: {self.method}") from None
            object.__setattr__(self, "method", method)

        # bool is an int subclass; reject it so True never signs as "True"
        for name in ("timestamp", "recv_window"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise InvalidParameterError(f"{name} must be non-negative")

        if method == HttpMethod.GET and self.body:
            raise InvalidParameterError("GET request cannot carry a body")
        if method == HttpMethod.POST and self.query_string:
            raise InvalidParameterError("POST request cannot carry a query string")

    @property
    def payload(self) -> str:
        """Query string for GET, body for POST."""
        if self.method == HttpMethod.GET:
            return self.query_string
        return self.body


# ============================================================
# SIGNING
# ============================================================

def current_timestamp_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def canonical_string(credentials: Credentials, request: SignableRequest) -> str:
    """Build the exact string the server reconstructs and verifies."""
    return f"{request.timestamp}{credentials.api_key}{request.recv_window}{request.payload}"


def generate_signature(api_secret: str, message: str) -> str:
    """
    Lowercase hex HMAC-SHA256 of message keyed by api_secret.

    Args:
        api_secret: Secret key, must be non-empty
        message: Canonical string

    Returns:
        64-character hex digest
    """
    if not api_secret:
        raise AuthenticationError("api_secret is empty")
    return hmac.new(
        api_secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def sign(credentials: Optional[Credentials], request: SignableRequest) -> AuthHeaders:
    """
    Produce the four authentication headers for a private call.

    Args:
        credentials: API key pair
        request: Request in its final serialized form

    Returns:
        Dict with X-BAPI-API-KEY, X-BAPI-TIMESTAMP,
        X-BAPI-RECV-WINDOW and X-BAPI-SIGN

    Raises:
        AuthenticationError: credentials missing or empty
    """
    if credentials is None:
        raise AuthenticationError("no credentials configured")
    credentials.validate()

    signature = generate_signature(
        credentials.api_secret,
        canonical_string(credentials, request),
    )

    return {
        HEADER_API_KEY: credentials.api_key,
        HEADER_TIMESTAMP: str(request.timestamp),
        HEADER_RECV_WINDOW: str(request.recv_window),
        HEADER_SIGN: signature,
    }


# ============================================================
# WIRE SERIALIZATION
# ============================================================

def _json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        # plain notation, never exponent form
        return format(value, "f")
    return value


def _wire_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(_json_value(value))


def build_query_string(params: Optional[Mapping[str, Any]]) -> str:
    """
    URL-encode params in insertion order, dropping None values.

    The result is both signed and sent, so it must not be
    re-encoded by the HTTP layer.
    """
    if not params:
        return ""
    pairs = [
        (key, _wire_value(value))
        for key, value in params.items()
        if value is not None
    ]
    return urlencode(pairs)


def build_json_body(body: Optional[Mapping[str, Any]]) -> str:
    """Compact JSON in insertion order, dropping None values."""
    if not body:
        return ""
    cleaned = {
        key: _json_value(value)
        for key, value in body.items()
        if value is not None
    }
    return json.dumps(cleaned, separators=(",", ":"))
