"""
Account & Order Sources

Gate.io exposes balances and open orders through two transports:

    RealtimeSource - the authenticated WebSocket (balance.query, order.query)
    PolledSource   - the private REST API (private/balances, private/openOrders)

Both implement AccountSource, so the exchange façade fetches through one
interface and `select_source()` decides which transport serves each call.
The capability probe runs on every call, because the WebSocket can drop and
reconnect between calls. There is no fallback: if the selected source fails,
its error reaches the caller unchanged.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from core.schemas import Balance, OrderRecord, normalize_pair
from exchanges.gateio.balances import balances_from_realtime, balances_from_rest
from exchanges.gateio.models import RawOrderPage, decode, rest_pair, ws_market
from exchanges.gateio.normalizer import normalize_open_orders, normalize_realtime_orders
from exchanges.gateio.pagination import DEFAULT_PAGE_SIZE, paginate


class AccountSource(ABC):
    """Where balances and open orders come from for one call."""

    kind: str

    @abstractmethod
    async def fetch_balances(self) -> Dict[str, Balance]:
        """Return one Balance per currency, keyed by currency code."""
        ...

    @abstractmethod
    async def fetch_open_orders(self, pairs: Optional[Sequence[str]] = None) -> List[OrderRecord]:
        """
        Return every open order, optionally restricted to `pairs`.

        Only non-terminal orders (open, partially filled) are returned.
        """
        ...


class RealtimeSource(AccountSource):
    """
    Reads through the authenticated WebSocket.

    Order queries are market-scoped and paginated, so open orders are
    collected pair by pair; when no pairs are given, `default_pairs()` (the
    exchange's enabled pairs) decides which markets to query.
    """

    kind = "realtime"

    def __init__(
        self,
        channel: Any,
        exchange: str,
        default_pairs: Callable[[], Sequence[str]],
        page_size: int = DEFAULT_PAGE_SIZE
    ):
        self.channel = channel
        self.exchange = exchange
        self.default_pairs = default_pairs
        self.page_size = page_size

    async def fetch_balances(self) -> Dict[str, Balance]:
        payload = await self.channel.query_balances([])
        return balances_from_realtime(payload)

    async def fetch_open_orders(self, pairs: Optional[Sequence[str]] = None) -> List[OrderRecord]:
        markets = [ws_market(p) for p in (pairs or self.default_pairs())]
        orders: List[OrderRecord] = []

        for market in markets:
            async def fetch_page(offset: int, limit: int, market: str = market):
                payload = await self.channel.query_orders(market, offset, limit)
                return decode(RawOrderPage, payload, "order.query").records

            orders.extend(await paginate(
                fetch_page,
                lambda records: normalize_realtime_orders(records, self.exchange),
                self.page_size,
            ))

        return orders


class PolledSource(AccountSource):
    """Reads through the private REST API."""

    kind = "polled"

    def __init__(self, client: Any, exchange: str):
        self.client = client
        self.exchange = exchange

    async def fetch_balances(self) -> Dict[str, Balance]:
        payload = await self.client.call("private/balances", authenticated=True)
        return balances_from_rest(payload)

    async def fetch_open_orders(self, pairs: Optional[Sequence[str]] = None) -> List[OrderRecord]:
        wanted = {normalize_pair(p) for p in pairs or []}
        params = {"currencyPair": rest_pair(next(iter(wanted)))} if len(wanted) == 1 else None

        payload = await self.client.call("private/openOrders", params, authenticated=True)
        orders = normalize_open_orders(payload, self.exchange)

        return [
            order for order in orders
            if not order.status.is_terminal and (not wanted or order.pair in wanted)
        ]


def select_source(channel: Any, realtime: AccountSource, polled: AccountSource) -> AccountSource:
    """
    Pick the source for one call.

    Args:
        channel: Real-time channel; only its `is_usable()` probe is consulted
        realtime: Source used while the channel is usable
        polled: Source used otherwise

    Returns:
        AccountSource: `realtime` if the authenticated channel is usable now,
            else `polled`
    """
    if channel is not None and channel.is_usable():
        return realtime
    return polled
