"""
Unit Tests for the Gate.io REST API Client

These tests verify that GateioAPIClient:
- Sends public calls as GETs to the market host
- Signs private calls (HMAC-SHA512 over the form body) and POSTs them
- Maps HTTP failures, timeouts and `"result": "false"` to TransportError
- Works with mocked HTTP sessions

Run with:
    pytest tests/unit/test_gateio_api_client.py -v
"""

import asyncio
import hashlib
import hmac
import json

import aiohttp
import pytest
import pytest_asyncio

from core.exceptions import MalformedResponse, TransportError
from exchanges.gateio.api_client import GateioAPIClient

MARKET_URL = "https://data.example.test/api2/1"
TRADE_URL = "https://api.example.test/api2/1"


# ============================================
# Mock HTTP Session Helpers
# ============================================

class MockResponse:
    """Mock aiohttp response usable with `async with`"""

    def __init__(self, status=200, body=None, error=None):
        self.status = status
        self._text = body if isinstance(body, str) else json.dumps(body)
        self._error = error

    async def text(self):
        return self._text

    async def __aenter__(self):
        if self._error is not None:
            raise self._error
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class MockSession:
    """Records requests and answers each with the same response"""

    def __init__(self, response):
        self.response = response
        self.requests = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.requests.append(("GET", url, {"params": params}))
        return self.response

    def post(self, url, data=None, headers=None, timeout=None):
        self.requests.append(("POST", url, {"data": data, "headers": headers}))
        return self.response

    async def close(self):
        self.closed = True


def make_client(response, api_key="key", secret_key="secret"):
    client = GateioAPIClient(
        api_key=api_key,
        secret_key=secret_key,
        market_url=MARKET_URL,
        trade_url=TRADE_URL + "/",
        timeout=5,
    )
    client.session = MockSession(response)
    return client


# ============================================
# Fixtures
# ============================================

@pytest_asyncio.fixture
async def live_session_client():
    """A client with a real (unused) aiohttp session"""
    async with GateioAPIClient(api_key="", secret_key="") as client:
        yield client


# ============================================
# Tests for Session Management
# ============================================

class TestSessionManagement:

    @pytest.mark.asyncio
    async def test_context_manager_creates_session(self, live_session_client):
        assert live_session_client.session is not None
        assert not live_session_client.session.closed

    @pytest.mark.asyncio
    async def test_call_without_session_raises(self):
        client = GateioAPIClient(api_key="", secret_key="")

        with pytest.raises(RuntimeError, match="not initialized"):
            await client.call("tickers")

    @pytest.mark.asyncio
    async def test_private_call_without_credentials(self, live_session_client):
        with pytest.raises(TransportError, match="credentials"):
            await live_session_client.call("private/balances", authenticated=True)


# ============================================
# Tests for Requests
# ============================================

class TestRequests:

    @pytest.mark.asyncio
    async def test_public_call_is_get_on_market_host(self):
        client = make_client(MockResponse(body={"eth_btc": {"last": "0.05"}}))

        data = await client.call("tickers")

        assert data == {"eth_btc": {"last": "0.05"}}
        method, url, kwargs = client.session.requests[0]
        assert method == "GET"
        assert url == f"{MARKET_URL}/tickers"
        assert kwargs["params"] is None

    @pytest.mark.asyncio
    async def test_private_call_is_signed_post_on_trade_host(self):
        client = make_client(MockResponse(body={"result": "true", "orders": []}))

        await client.call("private/openOrders", {"currencyPair": "eth_btc"}, authenticated=True)

        method, url, kwargs = client.session.requests[0]
        assert method == "POST"
        assert url == f"{TRADE_URL}/private/openOrders"
        assert kwargs["data"] == "currencyPair=eth_btc"

        expected = hmac.new(b"secret", b"currencyPair=eth_btc", hashlib.sha512).hexdigest()
        assert kwargs["headers"]["KEY"] == "key"
        assert kwargs["headers"]["SIGN"] == expected
        assert kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"

    def test_sign_is_hex_hmac_sha512(self):
        client = make_client(MockResponse(body={}))

        assert client.sign("") == hmac.new(b"secret", b"", hashlib.sha512).hexdigest()
        assert len(client.sign("a=1")) == 128


# ============================================
# Tests for Error Mapping
# ============================================

class TestErrors:

    @pytest.mark.asyncio
    async def test_result_false_is_transport_error(self):
        body = {"result": "false", "code": 5, "message": "Error: invalid key"}
        client = make_client(MockResponse(body=body))

        with pytest.raises(TransportError, match="invalid key") as exc_info:
            await client.call("private/balances", authenticated=True)

        assert exc_info.value.code == 5
        assert exc_info.value.response == body

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = make_client(MockResponse(status=502, body="Bad Gateway"))

        with pytest.raises(TransportError) as exc_info:
            await client.call("tickers")

        assert exc_info.value.code == 502

    @pytest.mark.asyncio
    async def test_connection_error(self):
        client = make_client(MockResponse(error=aiohttp.ClientConnectionError("refused")))

        with pytest.raises(TransportError, match="refused"):
            await client.call("tickers")

    @pytest.mark.asyncio
    async def test_timeout(self):
        client = make_client(MockResponse(error=asyncio.TimeoutError()))

        with pytest.raises(TransportError, match="Timeout"):
            await client.call("tickers")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        client = make_client(MockResponse(body="<html>maintenance</html>"))

        with pytest.raises(MalformedResponse):
            await client.call("tickers")

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self):
        client = make_client(MockResponse(status=500, body="oops"))

        with pytest.raises(TransportError):
            await client.call("tickers")

        assert len(client.session.requests) == 1
