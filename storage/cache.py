"""
In-Memory Snapshot Caches

Latest-value stores for tickers, order books and accounts. Adapters publish
complete replacement values into these caches and read them back on cached
lookups.

Thread-safety contract:
    Every get/publish takes the cache's lock for the duration of a single dict
    operation, so concurrent callers (threads or asyncio tasks) always observe
    either the previous value or the newly published one, never a partial one.
    Callers must not hold values across calls and expect them to change: values
    are frozen pydantic models, replaced, not mutated.
"""

import threading
from typing import Dict, Generic, Hashable, List, Optional, TypeVar

from core.schemas import AccountSnapshot, OrderBookSnapshot, Ticker

V = TypeVar("V")


class SnapshotStore(Generic[V]):
    """Lock-guarded key → latest value mapping."""

    def __init__(self) -> None:
        self._items: Dict[Hashable, V] = {}
        self._lock = threading.Lock()

    def _put(self, key: Hashable, value: V) -> None:
        with self._lock:
            self._items[key] = value

    def _get(self, key: Hashable) -> Optional[V]:
        with self._lock:
            return self._items.get(key)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def values(self) -> List[V]:
        with self._lock:
            return list(self._items.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def _market_key(exchange: str, pair: str, asset: str):
    return exchange.lower(), pair.upper(), asset.lower()


class TickerCache(SnapshotStore[Ticker]):
    """Latest ticker per (exchange, pair, asset)."""

    def publish(self, ticker: Ticker) -> None:
        self._put(_market_key(ticker.exchange, ticker.pair, ticker.asset), ticker)

    def get(self, exchange: str, pair: str, asset: str = "spot") -> Optional[Ticker]:
        return self._get(_market_key(exchange, pair, asset))


class OrderBookCache(SnapshotStore[OrderBookSnapshot]):
    """Latest order book per (exchange, pair, asset)."""

    def publish(self, book: OrderBookSnapshot) -> None:
        self._put(_market_key(book.exchange, book.pair, book.asset), book)

    def get(self, exchange: str, pair: str, asset: str = "spot") -> Optional[OrderBookSnapshot]:
        return self._get(_market_key(exchange, pair, asset))


class AccountCache(SnapshotStore[AccountSnapshot]):
    """Latest account snapshot per exchange."""

    def publish(self, snapshot: AccountSnapshot) -> None:
        self._put(snapshot.exchange.lower(), snapshot)

    def get(self, exchange: str) -> Optional[AccountSnapshot]:
        return self._get(exchange.lower())
