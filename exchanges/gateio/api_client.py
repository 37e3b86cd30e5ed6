"""
Gate.io REST API Client

This module provides the async request executor for the Gate.io v2 REST API.
It handles:
- Public GET requests against the market data host
- Signed POST requests against the trading host (HMAC-SHA512 over the form body)
- Mapping HTTP failures, timeouts and `"result": "false"` payloads to TransportError

It does not retry: a failed request is reported once, and retry policy is left
to the caller.

API Documentation:
    https://www.gate.io/api2

Usage:
    async with GateioAPIClient() as client:
        tickers = await client.call("tickers")
        balances = await client.call("private/balances", authenticated=True)
"""

import asyncio
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import aiohttp

from core.exceptions import MalformedResponse, TransportError
from core.logging import get_logger, log_api_request, log_api_response

# Public endpoints (market host, GET)
PAIRS = "pairs"
TICKERS = "tickers"
ORDER_BOOK = "orderBook/{pair}"
MARKET_INFO = "marketinfo"

# Private endpoints (trade host, signed POST)
BALANCES = "private/balances"
OPEN_ORDERS = "private/openOrders"
TRADE_HISTORY = "private/tradeHistory"
BUY = "private/buy"
SELL = "private/sell"
CANCEL_ORDER = "private/cancelOrder"
CANCEL_ALL_ORDERS = "private/cancelAllOrders"
DEPOSIT_ADDRESS = "private/depositAddress"
WITHDRAW = "private/withdraw"


class GateioAPIClient:
    """
    Async HTTP client for the Gate.io REST API

    Attributes:
        name: Exchange identifier used in errors and logs
        market_url: Base URL for public endpoints
        trade_url: Base URL for private endpoints
        session: aiohttp ClientSession for HTTP requests

    Example:
        >>> async with GateioAPIClient(api_key="...", secret_key="...") as client:
        ...     book = await client.call("orderBook/eth_btc")

    Notes:
        - Uses context manager for automatic session cleanup
        - Private calls require both api_key and secret_key
    """

    name = "gateio"

    def __init__(
        self,
        api_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        market_url: Optional[str] = None,
        trade_url: Optional[str] = None,
        timeout: Optional[int] = None
    ):
        """
        Initialize the Gate.io API client. Unset arguments fall back to settings.
        """
        from core.config import settings

        self.api_key = api_key if api_key is not None else settings.gateio_api_key
        self.secret_key = secret_key if secret_key is not None else settings.gateio_secret_key
        self.market_url = (market_url or settings.gateio_market_url).rstrip("/")
        self.trade_url = (trade_url or settings.gateio_trade_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout

        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self.logger.debug("GateioAPIClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
            self.logger.debug("GateioAPIClient session closed")

    # ============================================
    # Signing
    # ============================================

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.secret_key)

    def sign(self, body: str) -> str:
        """HMAC-SHA512 of the form-encoded body, hex encoded."""
        return hmac.new(self.secret_key.encode(), body.encode(), hashlib.sha512).hexdigest()

    # ============================================
    # Request Executor
    # ============================================

    async def call(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        authenticated: bool = False
    ) -> Any:
        """
        Perform one named operation and return the decoded JSON payload.

        Args:
            endpoint: Endpoint path relative to the host (e.g., "tickers",
                      "private/balances")
            params: Query parameters (public) or form fields (private)
            authenticated: Sign and send to the trading host

        Returns:
            Decoded JSON payload

        Raises:
            TransportError: On connection failure, timeout, non-200 status,
                missing credentials, or a `"result": "false"` payload
            MalformedResponse: If the body is not JSON
            RuntimeError: If the session is not open
        """
        if not self.session:
            raise RuntimeError("Client session not initialized. Use 'async with' statement.")

        if authenticated and not self.has_credentials:
            raise TransportError(f"API credentials are required for {endpoint}", self.name)

        log_api_request(self.name, endpoint, params, authenticated)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        started = time.monotonic()

        try:
            if authenticated:
                body = urlencode(params or {})
                headers = {
                    "Content-Type": "application/x-www-form-urlencoded",
                    "KEY": self.api_key,
                    "SIGN": self.sign(body),
                }
                request = self.session.post(
                    f"{self.trade_url}/{endpoint}", data=body, headers=headers, timeout=timeout
                )
            else:
                request = self.session.get(
                    f"{self.market_url}/{endpoint}", params=params, timeout=timeout
                )

            async with request as resp:
                text = await resp.text()
                log_api_response(self.name, endpoint, resp.status, time.monotonic() - started)
                if resp.status != 200:
                    raise TransportError(
                        f"HTTP {resp.status} on {endpoint}: {text[:200]}",
                        self.name,
                        code=resp.status,
                    )

        except asyncio.TimeoutError as e:
            raise TransportError(f"Timeout on {endpoint} after {self.timeout}s", self.name) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request failed on {endpoint}: {e}", self.name) from e

        try:
            data = json.loads(text)
        except ValueError as e:
            raise MalformedResponse(f"Non-JSON response from {endpoint}", self.name) from e

        if isinstance(data, dict) and str(data.get("result", "true")).lower() == "false":
            raise TransportError(
                f"Gate.io error on {endpoint}: {data.get('message', 'unknown error')}",
                self.name,
                code=data.get("code"),
                response=data,
            )

        return data
