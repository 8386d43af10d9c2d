"""
Bybit Client - Market Data Endpoints.

Public endpoints; requests are sent unsigned.
"""

from typing import Optional, Union

from .errors import InvalidParameterError
from .types import (
    Category,
    InstrumentInfo,
    Kline,
    KlineInterval,
    OrderBook,
    PagedList,
    ServerTime,
    Ticker,
)


# Max depth per category, per the V5 orderbook docs
ORDERBOOK_MAX_LIMIT = {
    Category.SPOT: 200,
    Category.LINEAR: 500,
    Category.INVERSE: 500,
    Category.OPTION: 25,
}


class MarketEndpoints:
    """Mixin: /v5/market/*."""

    async def get_server_time(self) -> ServerTime:
        return await self._get("/v5/market/time", parser=ServerTime.from_dict, auth=False)

    async def get_kline(
        self,
        category: Union[Category, str],
        symbol: str,
        interval: Union[KlineInterval, str, int],
        start: Optional[int] = None,
        end: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> PagedList[Kline]:
        """
        Candles for a symbol, newest first.

        Args:
            category: spot, linear or inverse
            symbol: e.g. BTCUSDT
            interval: KlineInterval or its wire value ("15", "D", ...)
            start: Start timestamp in ms
            end: End timestamp in ms
            limit: Page size, 1-1000
        """
        if start is not None and end is not None and start > end:
            raise InvalidParameterError("start must not be after end")
        if limit is not None and not 1 <= limit <= 1000:
            raise InvalidParameterError("limit must be between 1 and 1000")

        params = {
            "category": Category.parse(category),
            "symbol": symbol,
            "interval": KlineInterval.parse(interval),
            "start": start,
            "end": end,
            "limit": limit,
        }
        return await self._get(
            "/v5/market/kline",
            params,
            parser=lambda data: PagedList.from_dict(data, Kline.from_list),
            auth=False,
        )

    async def get_tickers(
        self,
        category: Union[Category, str],
        symbol: Optional[str] = None,
    ) -> PagedList[Ticker]:
        params = {"category": Category.parse(category), "symbol": symbol}
        return await self._get(
            "/v5/market/tickers",
            params,
            parser=lambda data: PagedList.from_dict(data, Ticker.from_dict),
            auth=False,
        )

    async def get_orderbook(
        self,
        category: Union[Category, str],
        symbol: str,
        limit: int = 25,
    ) -> OrderBook:
        category = Category.parse(category)
        max_limit = ORDERBOOK_MAX_LIMIT[category]
        if not 1 <= limit <= max_limit:
            raise InvalidParameterError(
                f"orderbook limit for {category.value} must be between 1 and {max_limit}"
            )

        params = {"category": category, "symbol": symbol, "limit": limit}
        return await self._get(
            "/v5/market/orderbook",
            params,
            parser=OrderBook.from_dict,
            auth=False,
        )

    async def get_instruments(
        self,
        category: Union[Category, str],
        symbol: Optional[str] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> PagedList[InstrumentInfo]:
        params = {
            "category": Category.parse(category),
            "symbol": symbol,
            "limit": limit,
            "cursor": cursor,
        }
        return await self._get(
            "/v5/market/instruments-info",
            params,
            parser=lambda data: PagedList.from_dict(data, InstrumentInfo.from_dict),
            auth=False,
        )
