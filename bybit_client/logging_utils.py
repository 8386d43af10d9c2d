"""
Bybit Client - Secure Logging Utilities.

============================================================
PURPOSE
============================================================
Structured logging for client requests with:
- Credential masking (API key, signature)
- Request bodies logged as a short hash only
- Correlation IDs between request and response entries

============================================================
SECURITY REQUIREMENTS
============================================================
1. NEVER log the API secret
2. Mask X-BAPI-API-KEY and X-BAPI-SIGN
3. Never log a raw POST body

============================================================
"""

import hashlib
import itertools
import json
import logging
import re
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SENSITIVE DATA
# ============================================================

SENSITIVE_HEADERS = {
    "authorization",
    "x-bapi-api-key",
    "x-bapi-sign",
    "api-key",
    "secret",
    "signature",
}

SENSITIVE_PARAMS = {
    "apikey",
    "api_key",
    "api_secret",
    "secret",
    "password",
    "signature",
    "sign",
    "token",
}

# Credentials are masked whole, never with a visible prefix
CREDENTIAL_KEYS = {
    "x-bapi-api-key",
    "api-key",
    "apikey",
    "api_key",
    "api_secret",
    "secret",
    "password",
}

# 64-char lowercase hex is the shape of an HMAC-SHA256 signature
_HMAC_PATTERN = re.compile(r"\b[a-f0-9]{64}\b", re.IGNORECASE)


def mask_value(value: str, show_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only the first few chars.

    Args:
        value: Value to mask
        show_chars: Number of chars to show at start

    Returns:
        Masked value
    """
    if not value or show_chars <= 0 or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}...***"


def mask_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Return a copy of headers with sensitive values masked."""
    if not headers:
        return {}

    masked = {}
    for key, value in headers.items():
        lowered = key.lower()
        if lowered in SENSITIVE_HEADERS:
            masked[key] = mask_value(str(value), 0 if lowered in CREDENTIAL_KEYS else 4)
        else:
            masked[key] = value
    return masked


def mask_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return a copy of params with sensitive keys and HMAC-shaped values masked."""
    if not params:
        return {}

    masked = {}
    for key, value in params.items():
        lowered = key.lower()
        if lowered in SENSITIVE_PARAMS:
            masked[key] = mask_value(str(value), 0 if lowered in CREDENTIAL_KEYS else 4) if value else value
        elif isinstance(value, dict):
            masked[key] = mask_params(value)
        elif isinstance(value, str):
            masked[key] = _HMAC_PATTERN.sub("***HMAC***", value)
        else:
            masked[key] = value
    return masked


def hash_body(body: Optional[str]) -> Optional[str]:
    """Short SHA-256 prefix of a serialized body, for correlation."""
    if not body:
        return None
    return hashlib.sha256(body.encode("utf-8")).hexdigest()[:16]


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# LOG ENTRIES
# ============================================================

@dataclass
class RequestLogEntry:
    """Structured log entry for requests."""

    timestamp: str
    operation: str
    method: str
    endpoint: str
    request_id: str

    headers: Dict[str, str] = None
    params: Dict[str, Any] = None
    body_hash: str = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


@dataclass
class ResponseLogEntry:
    """Structured log entry for responses."""

    timestamp: str
    operation: str
    request_id: str

    status_code: int
    latency_ms: float
    success: bool

    ret_code: int = None
    error_message: str = None
    response_preview: str = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


@dataclass
class OrderLogEntry:
    """Structured log entry for order operations."""

    timestamp: str
    operation: str  # create, amend, cancel

    symbol: str
    order_id: str = None
    order_link_id: str = None
    side: str = None
    order_type: str = None
    qty: str = None
    price: str = None

    ret_code: int = None
    error_message: str = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


# ============================================================
# CLIENT LOGGER
# ============================================================

class ClientLogger:
    """
    Secure logger for client operations.

    Request/response entries go out at DEBUG, failures at WARNING,
    order operations at INFO.
    """

    def __init__(self, logger_name: str = "bybit_client.http"):
        self._logger = logging.getLogger(logger_name)
        self._counter = itertools.count(1)

    def _next_request_id(self) -> str:
        return f"bybit-{next(self._counter)}"

    def log_request(
        self,
        operation: str,
        method: str,
        endpoint: str,
        headers: Dict[str, str] = None,
        params: Dict[str, Any] = None,
        body: str = None,
    ) -> str:
        """
        Log an outgoing request.

        Args:
            operation: Operation name (last path segment)
            method: HTTP method
            endpoint: API path
            headers: Request headers (masked before logging)
            params: Query parameters (masked before logging)
            body: Serialized body (only its hash is logged)

        Returns:
            Request ID for correlation
        """
        request_id = self._next_request_id()

        entry = RequestLogEntry(
            timestamp=_utcnow(),
            operation=operation,
            method=method,
            endpoint=endpoint,
            request_id=request_id,
            headers=mask_headers(headers) if headers else None,
            params=mask_params(params) if params else None,
            body_hash=hash_body(body),
        )

        self._logger.debug(f"REQUEST: {entry.to_json()}")
        return request_id

    def log_response(
        self,
        operation: str,
        request_id: str,
        status_code: int,
        latency_ms: float,
        success: bool,
        ret_code: int = None,
        error_message: str = None,
        response_body: Any = None,
    ) -> None:
        preview = None
        if response_body is not None:
            try:
                preview = json.dumps(response_body, default=str)[:200]
            except (TypeError, ValueError):
                preview = "<unserializable>"

        entry = ResponseLogEntry(
            timestamp=_utcnow(),
            operation=operation,
            request_id=request_id,
            status_code=status_code,
            latency_ms=round(latency_ms, 3),
            success=success,
            ret_code=ret_code,
            error_message=error_message[:200] if error_message else None,
            response_preview=preview,
        )

        if success:
            self._logger.debug(f"RESPONSE: {entry.to_json()}")
        else:
            self._logger.warning(f"RESPONSE_ERROR: {entry.to_json()}")

    def log_order(
        self,
        operation: str,
        symbol: str,
        order_id: str = None,
        order_link_id: str = None,
        side: str = None,
        order_type: str = None,
        qty: str = None,
        price: str = None,
        ret_code: int = None,
        error_message: str = None,
    ) -> None:
        entry = OrderLogEntry(
            timestamp=_utcnow(),
            operation=operation,
            symbol=symbol,
            order_id=order_id,
            order_link_id=order_link_id,
            side=side,
            order_type=order_type,
            qty=qty,
            price=price,
            ret_code=ret_code,
            error_message=error_message[:200] if error_message else None,
        )

        if ret_code is not None:
            self._logger.warning(f"ORDER_ERROR: {entry.to_json()}")
        else:
            self._logger.info(f"ORDER: {entry.to_json()}")
