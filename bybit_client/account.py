"""
Bybit Client - Account Endpoints.

Wallet balance, positions, leverage, executions and closed PnL.
All endpoints are private and signed.
"""

from typing import Optional, Union

from .errors import InvalidParameterError
from .types import (
    AccountBalance,
    AccountType,
    Category,
    ClosedPnl,
    DecimalLike,
    Execution,
    PagedList,
    Position,
    to_wire_decimal,
)


# /v5/position/closed-pnl accepts at most a 7 day window
CLOSED_PNL_MAX_WINDOW_MS = 7 * 24 * 60 * 60 * 1000


class AccountEndpoints:
    """Mixin: /v5/account/*, /v5/position/*, /v5/execution/*."""

    async def get_wallet_balance(
        self,
        account_type: Union[AccountType, str] = AccountType.UNIFIED,
        coin: Optional[str] = None,
    ) -> PagedList[AccountBalance]:
        """
        Wallet balance per account.

        Args:
            account_type: UNIFIED, CONTRACT or SPOT
            coin: Restrict to coins, comma separated (e.g. "USDT,BTC")
        """
        params = {"accountType": AccountType.parse(account_type), "coin": coin}
        return await self._get(
            "/v5/account/wallet-balance",
            params,
            parser=lambda data: PagedList.from_dict(data, AccountBalance.from_dict),
        )

    async def get_position(
        self,
        category: Union[Category, str],
        symbol: Optional[str] = None,
        settle_coin: Optional[str] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> PagedList[Position]:
        category = Category.parse(category)
        if category in (Category.LINEAR, Category.INVERSE) and not (symbol or settle_coin):
            raise InvalidParameterError("symbol or settle_coin is required for derivatives")

        params = {
            "category": category,
            "symbol": symbol,
            "settleCoin": settle_coin,
            "limit": limit,
            "cursor": cursor,
        }
        return await self._get(
            "/v5/position/list",
            params,
            parser=lambda data: PagedList.from_dict(data, Position.from_dict),
        )

    async def set_leverage(
        self,
        category: Union[Category, str],
        symbol: str,
        buy_leverage: DecimalLike,
        sell_leverage: DecimalLike,
    ) -> None:
        """
        Set leverage for a symbol.

        retCode 110043 (leverage not modified) is raised as ApiError
        like any other rejection.
        """
        category = Category.parse(category)
        if category not in (Category.LINEAR, Category.INVERSE):
            raise InvalidParameterError("leverage applies to linear and inverse only")

        body = {
            "category": category,
            "symbol": symbol,
            "buyLeverage": to_wire_decimal(buy_leverage, "buy_leverage"),
            "sellLeverage": to_wire_decimal(sell_leverage, "sell_leverage"),
        }
        await self._post("/v5/position/set-leverage", body)

    async def get_execution_list(
        self,
        category: Union[Category, str],
        symbol: Optional[str] = None,
        order_id: Optional[str] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> PagedList[Execution]:
        params = {
            "category": Category.parse(category),
            "symbol": symbol,
            "orderId": order_id,
            "limit": limit,
            "cursor": cursor,
        }
        return await self._get(
            "/v5/execution/list",
            params,
            parser=lambda data: PagedList.from_dict(data, Execution.from_dict),
        )

    async def get_closed_pnl(
        self,
        category: Union[Category, str],
        symbol: Optional[str] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> PagedList[ClosedPnl]:
        if start_time is not None and end_time is not None:
            if start_time > end_time:
                raise InvalidParameterError("start_time must not be after end_time")
            if end_time - start_time > CLOSED_PNL_MAX_WINDOW_MS:
                raise InvalidParameterError("closed PnL window cannot exceed 7 days")

        params = {
            "category": Category.parse(category),
            "symbol": symbol,
            "startTime": start_time,
            "endTime": end_time,
            "limit": limit,
            "cursor": cursor,
        }
        return await self._get(
            "/v5/position/closed-pnl",
            params,
            parser=lambda data: PagedList.from_dict(data, ClosedPnl.from_dict),
        )
