"""
Shared fixtures for client tests.

The fake session stands in for aiohttp.ClientSession: each call to
``session.request(...)`` yields the next queued response body.
"""

import json
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from bybit_client import BybitClient


TIMESTAMP = 1700000000000


def _envelope(result: Any = None, ret_code: int = 0, ret_msg: str = "OK") -> str:
    return json.dumps({
        "retCode": ret_code,
        "retMsg": ret_msg,
        "result": result if result is not None else {},
        "retExtInfo": {},
        "time": TIMESTAMP,
    })


@pytest.fixture
def envelope():
    """Serializer for { retCode, retMsg, result } response bodies."""
    return _envelope


@pytest.fixture
def make_session():
    """Factory for a fake aiohttp session returning queued bodies."""

    def _make(*bodies: str, status: int = 200, headers: Optional[Dict[str, str]] = None):
        response = MagicMock()
        response.status = status
        response.headers = headers or {}
        response.text = AsyncMock(side_effect=list(bodies))

        session = MagicMock()
        session.closed = False
        session.request.return_value.__aenter__.return_value = response
        session.request.return_value.__aexit__.return_value = False
        return session

    return _make


@pytest.fixture
def make_client():
    """Factory for a client bound to a fake session and a fixed clock."""

    def _make(session, credentials: bool = True, **kwargs) -> BybitClient:
        if credentials:
            kwargs.setdefault("api_key", "testkey")
            kwargs.setdefault("api_secret", "testsecret")
        return BybitClient(session=session, clock=lambda: TIMESTAMP, **kwargs)

    return _make
