#!/usr/bin/env python3
"""
Account Overview - Signed read-only calls against Bybit V5.

Reads BYBIT_API_KEY / BYBIT_API_SECRET (and the other BYBIT_*
settings) from the environment or a .env file.

Usage:
    python scripts/account_overview.py
    python scripts/account_overview.py --symbol ETHUSDT
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bybit_client import (
    AuthenticationError,
    BybitClient,
    BybitError,
    Category,
    TimestampError,
)


async def show_account(symbol: str) -> bool:
    """Print wallet balance, positions, open orders and recent fills."""
    client = BybitClient.from_env()

    print("=" * 60)
    print(f"BYBIT ACCOUNT OVERVIEW ({client.base_url})")
    print("=" * 60)
    print()

    if not client.has_credentials:
        print("❌ Missing BYBIT_API_KEY / BYBIT_API_SECRET! Check .env file.")
        return False

    async with client:
        try:
            balances = await client.get_wallet_balance(coin="USDT")
            for account in balances:
                print(f"💰 {account.account_type.value}: equity={account.total_equity} "
                      f"available={account.total_available_balance}")
                usdt = account.get_coin("USDT")
                if usdt:
                    print(f"   USDT wallet={usdt.wallet_balance} upl={usdt.unrealised_pnl}")

            positions = await client.get_position(Category.LINEAR, symbol=symbol)
            open_positions = [p for p in positions if p.is_open]
            print(f"📊 Open positions ({symbol}): {len(open_positions)}")
            for position in open_positions:
                print(f"   {position.side.value} {position.size} @ {position.avg_price} "
                      f"lev={position.leverage} upl={position.unrealised_pnl}")

            orders = await client.get_open_orders(Category.LINEAR, symbol=symbol)
            print(f"📝 Open orders: {len(orders)}")
            for order in orders:
                print(f"   {order.order_id} {order.side.value} {order.order_type.value} "
                      f"{order.qty} @ {order.price} [{order.order_status.value}]")

            executions = await client.get_execution_list(Category.LINEAR, symbol=symbol, limit=5)
            print(f"✅ Recent fills: {len(executions)}")
            for execution in executions:
                print(f"   {execution.exec_time} {execution.side.value} "
                      f"{execution.exec_qty} @ {execution.exec_price} fee={execution.exec_fee}")

        except AuthenticationError as e:
            print(f"❌ {e}")
            return False
        except TimestampError as e:
            print(f"❌ {e} (check the local clock or raise BYBIT_RECV_WINDOW)")
            return False
        except BybitError as e:
            print(f"❌ {e}")
            return False

    return True


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Show Bybit account state")
    parser.add_argument("--symbol", default="BTCUSDT", help="Linear symbol (default: BTCUSDT)")
    parser.add_argument("--debug", action="store_true", help="Log masked requests and responses")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    success = asyncio.run(show_account(args.symbol))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
