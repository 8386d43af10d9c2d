"""
Bybit Client - Order Management Endpoints.

============================================================
PURPOSE
============================================================
Create, amend, cancel and query orders (/v5/order/*).

All endpoints are private and signed. Exchange rejections are
logged as ORDER_ERROR and re-raised unchanged.

============================================================
"""

import logging
from typing import Any, Dict, Optional, Union

from .errors import ApiError, InvalidParameterError
from .types import (
    Category,
    CreateOrderRequest,
    DecimalLike,
    Order,
    OrderAck,
    PagedList,
    TriggerBy,
    to_wire_decimal,
)


logger = logging.getLogger(__name__)


def _require_order_id(order_id: Optional[str], order_link_id: Optional[str]) -> None:
    if not order_id and not order_link_id:
        raise InvalidParameterError("either order_id or order_link_id is required")


class TradeEndpoints:
    """Mixin: /v5/order/*."""

    async def _order_call(
        self,
        operation: str,
        path: str,
        body: Dict[str, Any],
    ) -> OrderAck:
        """POST an order operation, logging the outcome."""
        try:
            ack = await self._post(path, body, parser=OrderAck.from_dict)
        except ApiError as e:
            if operation == "create":
                self._metrics.record_order_rejected(f"BYBIT_{e.ret_code}")
            self._log.log_order(
                operation=operation,
                symbol=body.get("symbol", ""),
                order_id=body.get("orderId"),
                order_link_id=body.get("orderLinkId"),
                side=body.get("side"),
                order_type=body.get("orderType"),
                qty=body.get("qty"),
                price=body.get("price"),
                ret_code=e.ret_code,
                error_message=e.ret_msg,
            )
            raise

        if operation == "create":
            self._metrics.record_order_submitted()
        elif operation == "cancel":
            self._metrics.record_order_canceled()

        self._log.log_order(
            operation=operation,
            symbol=body.get("symbol", ""),
            order_id=ack.order_id,
            order_link_id=ack.order_link_id,
            side=body.get("side"),
            order_type=body.get("orderType"),
            qty=body.get("qty"),
            price=body.get("price"),
        )
        return ack

    async def create_order(self, request: CreateOrderRequest) -> OrderAck:
        """
        Place an order.

        Args:
            request: CreateOrderRequest, e.g. from CreateOrderRequest.builder()

        Returns:
            OrderAck with the exchange order id
        """
        return await self._order_call("create", "/v5/order/create", request.to_dict())

    async def amend_order(
        self,
        category: Union[Category, str],
        symbol: str,
        order_id: Optional[str] = None,
        order_link_id: Optional[str] = None,
        qty: Optional[DecimalLike] = None,
        price: Optional[DecimalLike] = None,
        trigger_price: Optional[DecimalLike] = None,
        take_profit: Optional[DecimalLike] = None,
        stop_loss: Optional[DecimalLike] = None,
        trigger_by: Optional[Union[TriggerBy, str]] = None,
    ) -> OrderAck:
        """Modify an open order. At least one field must change."""
        _require_order_id(order_id, order_link_id)

        changes = {
            "qty": to_wire_decimal(qty, "qty"),
            "price": to_wire_decimal(price, "price"),
            "triggerPrice": to_wire_decimal(trigger_price, "trigger_price"),
            "takeProfit": to_wire_decimal(take_profit, "take_profit"),
            "stopLoss": to_wire_decimal(stop_loss, "stop_loss"),
            "triggerBy": TriggerBy.parse_optional(trigger_by),
        }
        if all(value is None for value in changes.values()):
            raise InvalidParameterError("amend_order needs at least one field to change")

        body = {
            "category": Category.parse(category),
            "symbol": symbol,
            "orderId": order_id,
            "orderLinkId": order_link_id,
            **changes,
        }
        return await self._order_call("amend", "/v5/order/amend", body)

    async def cancel_order(
        self,
        category: Union[Category, str],
        symbol: str,
        order_id: Optional[str] = None,
        order_link_id: Optional[str] = None,
    ) -> OrderAck:
        _require_order_id(order_id, order_link_id)

        body = {
            "category": Category.parse(category),
            "symbol": symbol,
            "orderId": order_id,
            "orderLinkId": order_link_id,
        }
        return await self._order_call("cancel", "/v5/order/cancel", body)

    async def cancel_all_orders(
        self,
        category: Union[Category, str],
        symbol: Optional[str] = None,
        settle_coin: Optional[str] = None,
    ) -> PagedList[OrderAck]:
        """
        Cancel all open orders for a symbol or settle coin.

        Derivatives require symbol or settle_coin; spot accepts neither.
        """
        category = Category.parse(category)
        if category in (Category.LINEAR, Category.INVERSE) and not (symbol or settle_coin):
            raise InvalidParameterError("symbol or settle_coin is required for derivatives")

        body = {
            "category": category,
            "symbol": symbol,
            "settleCoin": settle_coin,
        }
        result = await self._post(
            "/v5/order/cancel-all",
            body,
            parser=lambda data: PagedList.from_dict(data, OrderAck.from_dict),
        )
        logger.info(f"Cancelled {len(result)} orders ({category.value} {symbol or settle_coin or 'all'})")
        return result

    async def get_order(
        self,
        category: Union[Category, str],
        order_id: Optional[str] = None,
        order_link_id: Optional[str] = None,
        symbol: Optional[str] = None,
    ) -> Optional[Order]:
        """
        Look up one order.

        Checks open orders first, then order history.

        Returns:
            The order, or None if the exchange does not know it
        """
        _require_order_id(order_id, order_link_id)

        params = {
            "category": Category.parse(category),
            "symbol": symbol,
            "orderId": order_id,
            "orderLinkId": order_link_id,
        }
        orders = await self._get(
            "/v5/order/realtime",
            params,
            parser=lambda data: PagedList.from_dict(data, Order.from_dict),
        )
        if not orders:
            orders = await self._get(
                "/v5/order/history",
                params,
                parser=lambda data: PagedList.from_dict(data, Order.from_dict),
            )
        return orders.first()

    async def get_open_orders(
        self,
        category: Union[Category, str],
        symbol: Optional[str] = None,
        settle_coin: Optional[str] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> PagedList[Order]:
        params = {
            "category": Category.parse(category),
            "symbol": symbol,
            "settleCoin": settle_coin,
            "limit": limit,
            "cursor": cursor,
        }
        return await self._get(
            "/v5/order/realtime",
            params,
            parser=lambda data: PagedList.from_dict(data, Order.from_dict),
        )

    async def get_order_history(
        self,
        category: Union[Category, str],
        symbol: Optional[str] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> PagedList[Order]:
        params = {
            "category": Category.parse(category),
            "symbol": symbol,
            "limit": limit,
            "cursor": cursor,
        }
        return await self._get(
            "/v5/order/history",
            params,
            parser=lambda data: PagedList.from_dict(data, Order.from_dict),
        )
