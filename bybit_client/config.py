"""
Bybit Client - Configuration.

============================================================
PURPOSE
============================================================
Client configuration with environment loading.

ENVIRONMENT:
    BYBIT_API_KEY           API key
    BYBIT_API_SECRET        API secret
    BYBIT_TESTNET           "1"/"true" selects testnet
    BYBIT_BASE_URL          Overrides the base URL
    BYBIT_RECV_WINDOW       recv_window in ms (default 5000)
    BYBIT_TIMEOUT_SECONDS   Total request timeout (default 10)

A local .env file is honored through python-dotenv.

============================================================
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .auth import DEFAULT_RECV_WINDOW, Credentials
from .errors import InvalidParameterError


logger = logging.getLogger(__name__)


MAINNET_URL = "https://api.bybit.com"
TESTNET_URL = "https://api-testnet.bybit.com"

_TRUTHY = {"1", "true", "yes", "y", "on"}


@dataclass
class BybitConfig:
    """
    Client configuration.

    Credentials are optional: public market data needs none.
    """

    api_key: Optional[str] = field(default=None, repr=False)
    """API key."""

    api_secret: Optional[str] = field(default=None, repr=False)
    """API secret. Never logged."""

    testnet: bool = False
    """Use the testnet endpoint."""

    base_url: Optional[str] = None
    """Explicit base URL; overrides testnet selection."""

    recv_window: int = DEFAULT_RECV_WINDOW
    """Tolerance window in ms for the exchange's freshness check."""

    timeout_seconds: float = 10.0
    """Total timeout per HTTP request."""

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if isinstance(self.recv_window, bool) or not isinstance(self.recv_window, int):
            raise InvalidParameterError("recv_window must be an integer number of ms")
        if self.recv_window <= 0:
            raise InvalidParameterError("recv_window must be positive")
        if self.timeout_seconds <= 0:
            raise InvalidParameterError("timeout_seconds must be positive")

    @property
    def resolved_base_url(self) -> str:
        if self.base_url:
            return self.base_url.rstrip("/")
        return TESTNET_URL if self.testnet else MAINNET_URL

    @property
    def credentials(self) -> Optional[Credentials]:
        """Credentials when both values are set, else None."""
        if self.api_key and self.api_secret:
            return Credentials(self.api_key, self.api_secret)
        return None

    @property
    def has_credentials(self) -> bool:
        return self.credentials is not None

    @classmethod
    def from_env(cls, dotenv: bool = True, dotenv_path: Optional[str] = None) -> "BybitConfig":
        """
        Build a config from BYBIT_* environment variables.

        Args:
            dotenv: Load a .env file first
            dotenv_path: Explicit .env path (default: search upwards)
        """
        if dotenv:
            load_dotenv(dotenv_path)

        recv_window = os.getenv("BYBIT_RECV_WINDOW")
        timeout = os.getenv("BYBIT_TIMEOUT_SECONDS")

        try:
            recv_window_ms = int(recv_window) if recv_window else DEFAULT_RECV_WINDOW
            timeout_seconds = float(timeout) if timeout else 10.0
        except ValueError as e:
            raise InvalidParameterError(f"invalid BYBIT_* environment value: {e}") from e

        config = cls(
            api_key=os.getenv("BYBIT_API_KEY") or None,
            api_secret=os.getenv("BYBIT_API_SECRET") or None,
            testnet=os.getenv("BYBIT_TESTNET", "0").strip().lower() in _TRUTHY,
            base_url=os.getenv("BYBIT_BASE_URL") or None,
            recv_window=recv_window_ms,
            timeout_seconds=timeout_seconds,
        )

        logger.debug(
            f"Loaded Bybit config from environment: base_url={config.resolved_base_url} "
            f"credentials={'set' if config.has_credentials else 'unset'}"
        )
        return config
