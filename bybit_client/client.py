"""
Bybit Client - HTTP Transport.

============================================================
PURPOSE
============================================================
Async client for the Bybit V5 REST API.

REQUEST FLOW:
1. Serialize params (GET) or body (POST) into the wire form
2. Sign that exact string (private endpoints only)
3. Send it verbatim, never re-encoded
4. Parse the { retCode, retMsg, result, time } envelope
5. Raise a typed error for retCode != 0, else return result

No retries are performed; errors propagate to the caller.

============================================================
API DOCUMENTATION
============================================================
https://bybit-exchange.github.io/docs/v5/intro

============================================================
"""

import asyncio
import json
import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Optional, TypeVar

import aiohttp
from yarl import URL

from .account import AccountEndpoints
from .auth import (
    HttpMethod,
    SignableRequest,
    build_json_body,
    build_query_string,
    current_timestamp_ms,
    sign,
)
from .config import MAINNET_URL, TESTNET_URL, BybitConfig
from .errors import (
    AuthenticationError,
    InvalidParameterError,
    RequestError,
    SerializationError,
    map_bybit_error,
)
from .logging_utils import ClientLogger
from .market import MarketEndpoints
from .metrics import ClientMetrics
from .trade import TradeEndpoints
from .types import ApiResponse


logger = logging.getLogger(__name__)

T = TypeVar("T")


class BybitClient(MarketEndpoints, TradeEndpoints, AccountEndpoints):
    """
    Bybit V5 REST client.

    Usage:
        async with BybitClient.testnet() as client:
            server_time = await client.get_server_time()

    Private endpoints require credentials, either through the
    constructor, with_credentials() or from_env().
    """

    def __init__(
        self,
        config: Optional[BybitConfig] = None,
        *,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        testnet: Optional[bool] = None,
        base_url: Optional[str] = None,
        recv_window: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], int] = current_timestamp_ms,
    ):
        """
        Initialize client.

        Args:
            config: Base configuration (default: BybitConfig())
            api_key: Overrides config.api_key
            api_secret: Overrides config.api_secret
            testnet: Overrides config.testnet
            base_url: Overrides config.base_url
            recv_window: Overrides config.recv_window
            timeout_seconds: Overrides config.timeout_seconds
            session: Externally owned aiohttp session; not closed by close()
            clock: Millisecond timestamp source, called once per request
        """
        overrides = {
            key: value
            for key, value in (
                ("api_key", api_key),
                ("api_secret", api_secret),
                ("testnet", testnet),
                ("base_url", base_url),
                ("recv_window", recv_window),
                ("timeout_seconds", timeout_seconds),
            )
            if value is not None
        }
        base = config or BybitConfig()
        self._config = replace(base, **overrides) if overrides else base

        self._session = session
        self._owns_session = session is None
        self._clock = clock

        self._metrics = ClientMetrics()
        self._log = ClientLogger()

    # --------------------------------------------------------
    # CONSTRUCTORS
    # --------------------------------------------------------

    @classmethod
    def mainnet(cls, **kwargs) -> "BybitClient":
        """Client pinned to the mainnet URL. base_url is rejected."""
        return cls._pinned(MAINNET_URL, kwargs)

    @classmethod
    def testnet(cls, **kwargs) -> "BybitClient":
        """Client pinned to the testnet URL. base_url is rejected."""
        return cls._pinned(TESTNET_URL, kwargs)

    @classmethod
    def _pinned(cls, base_url: str, kwargs: Dict[str, Any]) -> "BybitClient":
        if "base_url" in kwargs:
            raise InvalidParameterError(
                "base_url cannot be combined with mainnet()/testnet(); use BybitClient(base_url=...)"
            )
        return cls(base_url=base_url, **kwargs)

    @classmethod
    def from_env(cls, dotenv: bool = True, **kwargs) -> "BybitClient":
        """Client configured from BYBIT_* environment variables."""
        return cls(BybitConfig.from_env(dotenv=dotenv), **kwargs)

    def with_credentials(self, api_key: str, api_secret: str) -> "BybitClient":
        """
        New client with the same settings plus credentials.

        The new client opens its own session.
        """
        return BybitClient(
            replace(self._config, api_key=api_key, api_secret=api_secret),
            clock=self._clock,
        )

    # --------------------------------------------------------
    # PROPERTIES
    # --------------------------------------------------------

    @property
    def config(self) -> BybitConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.resolved_base_url

    @property
    def recv_window(self) -> int:
        return self._config.recv_window

    @property
    def has_credentials(self) -> bool:
        return self._config.has_credentials

    @property
    def metrics(self) -> ClientMetrics:
        return self._metrics

    def __repr__(self) -> str:
        return (
            f"BybitClient(base_url={self.base_url!r}, "
            f"credentials={'set' if self.has_credentials else 'unset'})"
        )

    # --------------------------------------------------------
    # SESSION
    # --------------------------------------------------------

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this client opened it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "BybitClient":
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # --------------------------------------------------------
    # REQUEST HANDLING
    # --------------------------------------------------------

    def _build_headers(self, method: HttpMethod, query_string: str, body: str, auth: bool) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if not auth:
            return headers

        credentials = self._config.credentials
        if credentials is None:
            raise AuthenticationError("private endpoint requires api_key and api_secret")

        signable = SignableRequest(
            timestamp=self._clock(),
            recv_window=self._config.recv_window,
            method=method,
            query_string=query_string,
            body=body,
        )
        headers.update(sign(credentials, signable))
        return headers

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        auth: bool = True,
    ) -> Any:
        """
        Send a request and return the envelope's result.

        Args:
            method: "GET" or "POST"
            path: API path, e.g. /v5/order/create
            params: Query parameters (GET)
            body: JSON body (POST)
            auth: Sign the request

        Returns:
            The decoded ``result`` object

        Raises:
            AuthenticationError: auth requested without credentials
            ApiError: retCode != 0 (TimestampError, RateLimitError, ...)
            RequestError: network failure or timeout
            SerializationError: response is not a valid envelope
        """
        try:
            http_method = HttpMethod(method.upper())
        except ValueError:
            raise InvalidParameterError(f"unsupported HTTP method: {method}") from None

        if http_method == HttpMethod.GET:
            if body:
                raise InvalidParameterError("GET request cannot carry a body")
            query_string = build_query_string(params)
            body_str = ""
        else:
            if params:
                raise InvalidParameterError("POST request cannot carry query parameters")
            query_string = ""
            body_str = build_json_body(body)

        # Signed over the exact strings sent below
        headers = self._build_headers(http_method, query_string, body_str, auth)

        url = f"{self.base_url}{path}"
        if query_string:
            url = f"{url}?{query_string}"

        operation = path.rsplit("/", 1)[-1]
        request_id = self._log.log_request(
            operation=operation,
            method=http_method.value,
            endpoint=path,
            headers=headers,
            params=params,
            body=body_str,
        )

        session = self._get_session()
        start_time = time.monotonic()

        try:
            async with session.request(
                http_method.value,
                URL(url, encoded=True),
                headers=headers,
                data=body_str.encode("utf-8") if body_str else None,
            ) as resp:
                return await self._handle_response(resp, request_id, path, start_time)
        except asyncio.TimeoutError as e:
            error = RequestError(
                f"timed out after {self._config.timeout_seconds}s",
                endpoint=path,
                timeout=True,
            )
            self._metrics.record_request(
                endpoint=path,
                latency_ms=(time.monotonic() - start_time) * 1000,
                success=False,
                error_code=error.category.value,
            )
            logger.warning(f"Request {request_id} to {path} timed out")
            raise error from e
        except aiohttp.ClientError as e:
            error = RequestError(str(e), endpoint=path)
            self._metrics.record_request(
                endpoint=path,
                latency_ms=(time.monotonic() - start_time) * 1000,
                success=False,
                error_code=error.category.value,
            )
            logger.warning(f"Request {request_id} to {path} failed: {e}")
            raise error from e

    async def _handle_response(
        self,
        response: aiohttp.ClientResponse,
        request_id: str,
        endpoint: str,
        start_time: float,
    ) -> Any:
        """Decode the envelope, raising a typed error on failure."""
        operation = endpoint.rsplit("/", 1)[-1]
        self._metrics.record_rate_limit_headers(response.headers)

        try:
            text = await response.text()
        except UnicodeDecodeError as e:
            latency_ms = (time.monotonic() - start_time) * 1000
            error = SerializationError(f"response body is not valid UTF-8: {e.reason}")
            self._record_serialization_failure(error, response.status, request_id, endpoint, latency_ms)
            raise error from e
        latency_ms = (time.monotonic() - start_time) * 1000

        try:
            data = json.loads(text)
        except ValueError:
            data = None

        if data is None and response.status >= 400:
            # e.g. an HTML 403 page from the edge
            data = {"retCode": -1, "retMsg": text[:200] or f"HTTP {response.status}"}

        try:
            envelope = ApiResponse.from_dict(data)
        except SerializationError as e:
            self._record_serialization_failure(e, response.status, request_id, endpoint, latency_ms)
            raise

        if not envelope.is_success:
            reset_ms = self._metrics.rate_limit.reset_timestamp_ms if self._metrics.rate_limit else None
            error = map_bybit_error(
                envelope.ret_code,
                envelope.ret_msg,
                http_status=response.status,
                endpoint=endpoint,
                limit_reset_ms=reset_ms,
            )

            self._metrics.record_request(
                endpoint=endpoint,
                latency_ms=latency_ms,
                success=False,
                status_code=response.status,
                error_code=error.category.value,
            )
            self._log.log_response(
                operation=operation,
                request_id=request_id,
                status_code=response.status,
                latency_ms=latency_ms,
                success=False,
                ret_code=envelope.ret_code,
                error_message=envelope.ret_msg,
            )
            raise error

        self._metrics.record_request(
            endpoint=endpoint,
            latency_ms=latency_ms,
            success=True,
            status_code=response.status,
        )
        self._log.log_response(
            operation=operation,
            request_id=request_id,
            status_code=response.status,
            latency_ms=latency_ms,
            success=True,
            response_body=envelope.result,
        )

        return envelope.result

    def _record_serialization_failure(
        self,
        error: SerializationError,
        status_code: int,
        request_id: str,
        endpoint: str,
        latency_ms: float,
    ) -> None:
        self._metrics.record_request(
            endpoint=endpoint,
            latency_ms=latency_ms,
            success=False,
            status_code=status_code,
            error_code="SERIALIZATION",
        )
        self._log.log_response(
            operation=endpoint.rsplit("/", 1)[-1],
            request_id=request_id,
            status_code=status_code,
            latency_ms=latency_ms,
            success=False,
            error_message=error.message,
        )

    # --------------------------------------------------------
    # TYPED HELPERS
    # --------------------------------------------------------

    @staticmethod
    def _parse(result: Any, parser: Callable[[Any], T], endpoint: str) -> T:
        try:
            return parser(result)
        except InvalidParameterError:
            # unknown enum values keep their own type
            raise
        except (AttributeError, KeyError, IndexError, TypeError, ValueError, ArithmeticError) as e:
            raise SerializationError(f"unexpected result shape from {endpoint}: {e!r}") from e

    async def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        parser: Optional[Callable[[Any], T]] = None,
        auth: bool = True,
    ) -> Any:
        result = await self.request("GET", path, params=params, auth=auth)
        if parser is None:
            return result
        return self._parse(result, parser, path)

    async def _post(
        self,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        parser: Optional[Callable[[Any], T]] = None,
    ) -> Any:
        result = await self.request("POST", path, body=body, auth=True)
        if parser is None:
            return result
        return self._parse(result, parser, path)
