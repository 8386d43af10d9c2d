#!/usr/bin/env python3
"""
Market Data Check - Quick tour of the public Bybit V5 endpoints.

Usage:
    python scripts/market_data.py
    python scripts/market_data.py --symbol ETHUSDT --mainnet
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bybit_client import BybitClient, BybitError, Category, KlineInterval


async def show_market_data(symbol: str, testnet: bool) -> bool:
    """Print server time, ticker, orderbook, instrument and klines."""
    client = BybitClient.testnet() if testnet else BybitClient.mainnet()

    print("=" * 60)
    print(f"BYBIT MARKET DATA ({client.base_url})")
    print("=" * 60)
    print()

    async with client:
        try:
            server_time = await client.get_server_time()
            print(f"1. Server time: {server_time.time_second} s ({server_time.time_ms} ms)")

            tickers = await client.get_tickers(Category.LINEAR, symbol=symbol)
            ticker = tickers.first()
            if ticker:
                print(f"2. {ticker.symbol} last price: {ticker.last_price}")
                print(f"   Bid: {ticker.bid1_price} @ {ticker.bid1_size}")
                print(f"   Ask: {ticker.ask1_price} @ {ticker.ask1_size}")

            book = await client.get_orderbook(Category.LINEAR, symbol, limit=10)
            print(f"3. Orderbook: {len(book.bids)} bids / {len(book.asks)} asks")
            if book.best_bid and book.best_ask:
                print(f"   Spread: {book.best_ask.price - book.best_bid.price}")

            instruments = await client.get_instruments(Category.LINEAR, symbol=symbol)
            instrument = instruments.first()
            if instrument:
                print(f"4. {instrument.symbol} ({instrument.contract_type}) status={instrument.status}")
                print(f"   Tick size: {instrument.tick_size}  Qty step: {instrument.qty_step}")

            klines = await client.get_kline(Category.LINEAR, symbol, KlineInterval.MIN_15, limit=5)
            print(f"5. Last {len(klines)} candles (15m):")
            for kline in klines:
                print(f"   {kline.start_time}  O={kline.open} H={kline.high} L={kline.low} C={kline.close}")

        except BybitError as e:
            print(f"❌ {e}")
            return False

    print()
    print(f"Requests: {client.metrics.get_summary()['requests']}")
    return True


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Show Bybit V5 market data")
    parser.add_argument("--symbol", default="BTCUSDT", help="Linear symbol (default: BTCUSDT)")
    parser.add_argument("--mainnet", action="store_true", help="Use mainnet instead of testnet")
    parser.add_argument("--debug", action="store_true", help="Log requests and responses")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    success = asyncio.run(show_market_data(args.symbol, testnet=not args.mainnet))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
