"""
Bybit Client - Metrics.

============================================================
PURPOSE
============================================================
In-process observability for client requests.

METRICS TRACKED:
- Request latency (overall and by endpoint)
- Request success/failure counts
- Error distribution by category and retCode
- Last-seen rate limit headers (observed only, never enforced)

============================================================
"""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Deque, Dict, List, Mapping, Optional


logger = logging.getLogger(__name__)


HEADER_LIMIT = "X-Bapi-Limit"
HEADER_LIMIT_STATUS = "X-Bapi-Limit-Status"
HEADER_LIMIT_RESET = "X-Bapi-Limit-Reset-Timestamp"


class MetricType(Enum):
    REQUEST_SUCCESS = "request_success"
    REQUEST_FAILURE = "request_failure"
    RATE_LIMIT_HIT = "rate_limit_hit"
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    ORDER_SUBMITTED = "order_submitted"
    ORDER_REJECTED = "order_rejected"
    ORDER_CANCELED = "order_canceled"


@dataclass
class LatencyStats:
    """Latency statistics."""

    count: int = 0
    total_ms: float = 0.0
    min_ms: float = float("inf")
    max_ms: float = 0.0

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.count if self.count > 0 else 0.0

    def record(self, latency_ms: float) -> None:
        self.count += 1
        self.total_ms += latency_ms
        self.min_ms = min(self.min_ms, latency_ms)
        self.max_ms = max(self.max_ms, latency_ms)

    def to_dict(self) -> Dict[str, float]:
        return {
            "count": self.count,
            "avg_ms": self.avg_ms,
            "min_ms": self.min_ms if self.min_ms != float("inf") else 0,
            "max_ms": self.max_ms,
        }


@dataclass
class RateLimitStatus:
    """Rate limit state as last reported by the exchange."""

    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset_timestamp_ms: Optional[int] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> Optional["RateLimitStatus"]:
        """
        Parse the X-Bapi-Limit* response headers.

        Returns None when the response carries none of them.
        """
        # aiohttp headers are case-insensitive; plain dicts are not
        lowered = {str(k).lower(): v for k, v in headers.items()}

        def _get(name: str) -> Optional[int]:
            value = lowered.get(name.lower())
            if value is None or value == "":
                return None
            try:
                return int(value)
            except ValueError:
                logger.debug(f"Ignoring malformed header {name}={value!r}")
                return None

        status = cls(
            limit=_get(HEADER_LIMIT),
            remaining=_get(HEADER_LIMIT_STATUS),
            reset_timestamp_ms=_get(HEADER_LIMIT_RESET),
        )
        if status.limit is None and status.remaining is None and status.reset_timestamp_ms is None:
            return None
        return status


class ClientMetrics:
    """
    Metrics collector for one client instance.
    """

    def __init__(self, max_recent: int = 100):
        self._start_time = datetime.now(timezone.utc)
        self._latency: Dict[str, LatencyStats] = defaultdict(LatencyStats)
        self._counters: Dict[MetricType, int] = {mt: 0 for mt in MetricType}
        self._error_codes: Dict[str, int] = defaultdict(int)
        self._recent_requests: Deque[Dict[str, Any]] = deque(maxlen=max_recent)
        self.rate_limit: Optional[RateLimitStatus] = None

    # --------------------------------------------------------
    # RECORDING
    # --------------------------------------------------------

    def record_request(
        self,
        endpoint: str,
        latency_ms: float,
        success: bool,
        status_code: int = None,
        error_code: str = None,
    ) -> None:
        """
        Record a completed request.

        Args:
            endpoint: API path
            latency_ms: Request latency in ms
            success: Whether the envelope carried retCode 0
            status_code: HTTP status code
            error_code: Error category or retCode if failed
        """
        self._latency[endpoint].record(latency_ms)
        self._latency["_all"].record(latency_ms)

        if success:
            self._counters[MetricType.REQUEST_SUCCESS] += 1
        else:
            self._counters[MetricType.REQUEST_FAILURE] += 1

            if error_code:
                self._error_codes[error_code] += 1
                upper = error_code.upper()
                if "RATE" in upper:
                    self._counters[MetricType.RATE_LIMIT_HIT] += 1
                elif "TIMEOUT" in upper:
                    self._counters[MetricType.TIMEOUT] += 1
                elif "NETWORK" in upper:
                    self._counters[MetricType.CONNECTION_ERROR] += 1

        self._recent_requests.append({
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoint": endpoint,
            "latency_ms": latency_ms,
            "success": success,
            "status_code": status_code,
            "error_code": error_code,
        })

    def record_rate_limit_headers(self, headers: Mapping[str, str]) -> None:
        status = RateLimitStatus.from_headers(headers)
        if status is not None:
            self.rate_limit = status

    def record_order_submitted(self) -> None:
        self._counters[MetricType.ORDER_SUBMITTED] += 1

    def record_order_rejected(self, error_code: str = None) -> None:
        self._counters[MetricType.ORDER_REJECTED] += 1
        if error_code:
            self._error_codes[error_code] += 1

    def record_order_canceled(self) -> None:
        self._counters[MetricType.ORDER_CANCELED] += 1

    # --------------------------------------------------------
    # REPORTING
    # --------------------------------------------------------

    def get_summary(self) -> Dict[str, Any]:
        """
        Get metrics summary.

        Returns:
            Dict with all metrics
        """
        uptime = (datetime.now(timezone.utc) - self._start_time).total_seconds()
        all_latency = self._latency.get("_all", LatencyStats())
        success = self._counters[MetricType.REQUEST_SUCCESS]
        failure = self._counters[MetricType.REQUEST_FAILURE]
        total = success + failure

        return {
            "uptime_seconds": uptime,
            "requests": {
                "total": total,
                "success": success,
                "failure": failure,
                "success_rate": success / total if total > 0 else 1.0,
            },
            "latency": all_latency.to_dict(),
            "orders": {
                "submitted": self._counters[MetricType.ORDER_SUBMITTED],
                "rejected": self._counters[MetricType.ORDER_REJECTED],
                "canceled": self._counters[MetricType.ORDER_CANCELED],
            },
            "errors": {
                "rate_limit_hits": self._counters[MetricType.RATE_LIMIT_HIT],
                "timeouts": self._counters[MetricType.TIMEOUT],
                "connection_errors": self._counters[MetricType.CONNECTION_ERROR],
                "by_code": dict(self._error_codes),
            },
            "rate_limit": (
                {
                    "limit": self.rate_limit.limit,
                    "remaining": self.rate_limit.remaining,
                    "reset_timestamp_ms": self.rate_limit.reset_timestamp_ms,
                }
                if self.rate_limit
                else None
            ),
        }

    def get_latency_by_endpoint(self) -> Dict[str, Dict[str, float]]:
        return {
            endpoint: stats.to_dict()
            for endpoint, stats in self._latency.items()
            if endpoint != "_all"
        }

    def get_recent_requests(self, limit: int = 20) -> List[Dict[str, Any]]:
        return list(self._recent_requests)[-limit:]

    def reset(self) -> None:
        """Reset all metrics."""
        self._start_time = datetime.now(timezone.utc)
        self._latency.clear()
        self._counters = {mt: 0 for mt in MetricType}
        self._error_codes.clear()
        self._recent_requests.clear()
        self.rate_limit = None
