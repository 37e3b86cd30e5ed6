"""
Shared fakes for the Gate.io adapter tests.

FakeClient stands in for GateioAPIClient (records every call and answers
from a per-endpoint table) and FakeChannel for GateioWebSocketClient.
"""

import pytest

from core.config import Settings
from exchanges.gateio import GateioExchange


class FakeClient:
    """
    Request executor double.

    `responses` maps endpoint → payload, exception instance, or a callable
    taking the request params and returning a payload.
    """

    def __init__(self, responses=None, has_credentials=True):
        self.responses = dict(responses or {})
        self.has_credentials = has_credentials
        self.calls = []
        self.closed = False

    async def call(self, endpoint, params=None, authenticated=False):
        self.calls.append((endpoint, params, authenticated))
        if endpoint not in self.responses:
            raise AssertionError(f"Unexpected call to {endpoint}")
        response = self.responses[endpoint]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(params)
        return response

    async def close(self):
        self.closed = True

    def endpoints(self):
        return [endpoint for endpoint, _, _ in self.calls]


class FakeChannel:
    """
    Real-time channel double.

    `orders` maps market ("ETH_BTC") → list of raw order.query records;
    query_orders serves them in (offset, limit) slices.
    """

    def __init__(self, usable=True, balances=None, orders=None):
        self.usable = usable
        self.balances = balances if balances is not None else {}
        self.orders = orders or {}
        self.order_queries = []
        self.balance_queries = []

    def is_usable(self):
        return self.usable

    async def query_balances(self, currencies):
        self.balance_queries.append(list(currencies))
        return self.balances

    async def query_orders(self, market, offset, limit):
        self.order_queries.append((market, offset, limit))
        records = self.orders.get(market, [])
        return {
            "offset": offset,
            "limit": limit,
            "total": len(records),
            "records": records[offset:offset + limit],
        }


def realtime_order(order_id, market="ETH_BTC", side=0, order_type=1, amount="1", filled="0",
                   price="0.05", ctime=1500000000.25):
    """A raw order.query record."""
    return {
        "id": order_id,
        "market": market,
        "user": 42,
        "ctime": ctime,
        "mtime": ctime,
        "price": price,
        "amount": amount,
        "left": "0",
        "filledAmount": filled,
        "dealFee": "0.001",
        "orderType": order_type,
        "type": side,
    }


def open_order(order_number, pair="eth_btc", side="buy", amount="1", filled="0",
               status="open", timestamp=1500000000):
    """A raw private/openOrders entry."""
    return {
        "orderNumber": order_number,
        "type": side,
        "rate": "0.05",
        "amount": amount,
        "initialAmount": amount,
        "filledAmount": filled,
        "currencyPair": pair,
        "timestamp": timestamp,
        "status": status,
    }


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        enabled_pairs="ETH_BTC,BTC_USDT",
        websocket_enabled=False,
        auto_pair_updates=False,
        gateio_api_key="key",
        gateio_secret_key="secret",
    )


@pytest.fixture
def make_exchange(settings):
    """Build a GateioExchange around fake collaborators."""

    def _make(client=None, channel=None, enabled_pairs=None):
        return GateioExchange(
            client=client or FakeClient(),
            channel=channel,
            enabled_pairs=enabled_pairs,
            config=settings,
        )

    return _make
