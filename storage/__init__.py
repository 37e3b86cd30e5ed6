"""
Storage Package

Holds the latest canonical values produced by exchange adapters.

Current implementation:
- In-memory, lock-guarded caches for tickers, order books and account snapshots

Adapters receive these caches as constructor arguments, so a different store
(e.g. Redis-backed) can be swapped in as long as it offers the same
publish/get methods and is safe for concurrent use.
"""

from storage.cache import AccountCache, OrderBookCache, TickerCache

__all__ = ["AccountCache", "OrderBookCache", "TickerCache"]
