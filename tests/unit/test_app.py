"""
Unit Tests for the FastAPI Application

The global manager is swapped for one holding a GateioExchange wired to a
FakeClient, so no request leaves the process.

Run with:
    pytest tests/unit/test_app.py -v
"""

import pytest
from fastapi.testclient import TestClient

import app.main as main
from conftest import FakeClient, open_order
from core.exceptions import TransportError
from core.exchange_manager import ExchangeManager

TICKERS = {
    "eth_btc": {"last": "0.05", "high24hr": "0.06", "low24hr": "0.04", "baseVolume": "100", "quoteVolume": "5"},
}


@pytest.fixture
def api(monkeypatch, make_exchange):
    """TestClient over an app whose only exchange is backed by `client`"""

    def _api(client):
        exchange = make_exchange(client)
        monkeypatch.setattr(main, "manager", ExchangeManager({"gateio": exchange}))
        return TestClient(main.app)

    return _api


class TestSystemEndpoints:

    def test_root(self, api):
        response = api(FakeClient()).get("/")

        assert response.status_code == 200
        assert response.json()["exchanges"] == ["gateio"]

    def test_health(self, api):
        response = api(FakeClient({"pairs": ["eth_btc"]})).get("/health")

        assert response.json() == {"status": "healthy", "exchanges": {"gateio": True}}

    def test_health_degraded(self, api):
        response = api(FakeClient({"pairs": TransportError("down", "gateio")})).get("/health")

        assert response.json()["status"] == "degraded"

    def test_exchanges_lists_capabilities(self, api):
        response = api(FakeClient()).get("/exchanges")

        [entry] = response.json()["exchanges"]
        assert entry["name"] == "gateio"
        assert entry["capabilities"]["fiat_withdrawal"] is False


class TestMarketDataEndpoints:

    def test_ticker(self, api):
        response = api(FakeClient({"tickers": TICKERS})).get("/gateio/ticker/eth_btc")

        assert response.status_code == 200
        body = response.json()
        assert body["pair"] == "ETH_BTC"
        assert body["last"] == 0.05
        assert body["volume"] == 100.0

    def test_unknown_exchange(self, api):
        response = api(FakeClient()).get("/kraken/ticker/ETH_BTC")

        assert response.status_code == 404

    def test_ticker_not_listed(self, api):
        response = api(FakeClient({"tickers": TICKERS})).get("/gateio/ticker/BTC_USDT")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_malformed_payload_is_bad_gateway(self, api):
        response = api(FakeClient({"tickers": {"eth_btc": {"last": "??"}}})).get("/gateio/ticker/ETH_BTC")

        assert response.status_code == 502
        assert response.json()["error"] == "MalformedResponse"

    def test_transport_error_is_service_unavailable(self, api):
        client = FakeClient({"orderBook/eth_btc": TransportError("HTTP 500", "gateio", code=500)})

        response = api(client).get("/gateio/orderbook/ETH_BTC")

        assert response.status_code == 503
        assert response.json()["exchange"] == "gateio"

    def test_order_book(self, api):
        client = FakeClient({"orderBook/eth_btc": {"asks": [["0.051", "1"]], "bids": []}})

        response = api(client).get("/gateio/orderbook/ETH_BTC")

        assert response.status_code == 200
        assert len(response.json()["asks"]) == 1

    def test_pairs(self, api):
        response = api(FakeClient({"pairs": ["eth_btc", "btc_usdt"]})).get("/gateio/pairs")

        assert response.json() == ["ETH_BTC", "BTC_USDT"]


class TestAccountEndpoints:

    def test_account(self, api):
        client = FakeClient({"private/balances": {"available": {"BTC": "1.0"}, "locked": {"BTC": "0.5"}}})

        response = api(client).get("/gateio/account")

        assert response.status_code == 200
        balances = response.json()["accounts"][0]["balances"]
        assert set(balances) == {"BTC"}

    def test_open_orders_filtered(self, api):
        client = FakeClient({"private/openOrders": {"orders": [
            open_order(1, side="buy"),
            open_order(2, side="sell"),
        ]}})

        response = api(client).get("/gateio/orders/open", params={"pair": "ETH_BTC", "side": "sell"})

        assert response.status_code == 200
        assert [order["id"] for order in response.json()] == ["2"]
        assert client.calls[0][1] == {"currencyPair": "eth_btc"}
