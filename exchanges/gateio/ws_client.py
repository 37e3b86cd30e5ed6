"""
Gate.io WebSocket Client

This module provides the authenticated real-time channel for the Gate.io v3
WebSocket API. Unlike a streaming feed, the account methods used here are
request/response: every request carries an id, and the reader task resolves
the matching pending future when the response arrives.

Request Format:
    {"id": 7, "method": "order.query", "params": ["ETH_BTC", 0, 100]}

Response Format:
    {"error": null, "result": {...}, "id": 7}

Supported Methods:
    - server.sign     [api_key, signature, nonce]
    - balance.query   [currency, ...] (empty list = all currencies)
    - order.query     [market, offset, limit]

WebSocket Documentation:
    https://www.gate.io/docs/websocket/index.html

Usage:
    async with GateioWebSocketClient() as client:
        await client.connect()
        await client.authenticate()
        page = await client.query_orders("ETH_BTC", 0, 100)
"""

import aiohttp
import asyncio
import base64
import hashlib
import hmac
import itertools
import json
import time
from typing import Any, Dict, List, Optional, Sequence

from core.exceptions import TransportError
from core.logging import get_logger, log_websocket_event


class GateioWebSocketClient:
    """
    Async request/response client for the Gate.io WebSocket API.

    Attributes:
        url: WebSocket endpoint
        session: aiohttp ClientSession for the WebSocket
        ws: Active WebSocket connection
        request_timeout: Seconds to wait for a response before failing

    Notes:
        - The channel is usable only while connected AND authenticated
        - A dropped connection fails every pending request with TransportError
          and clears the authenticated flag; callers fall back to REST
        - No automatic reconnection: connect() and authenticate() again
    """

    name = "gateio"

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        request_timeout: Optional[int] = None
    ):
        from core.config import settings

        self.url = url or settings.gateio_websocket_url
        self.api_key = api_key if api_key is not None else settings.gateio_api_key
        self.secret_key = secret_key if secret_key is not None else settings.gateio_secret_key
        self.request_timeout = request_timeout or settings.request_timeout

        # Connection state
        self.session: Optional[aiohttp.ClientSession] = None
        self.ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._reader: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._authenticated = False

        self.logger = get_logger(__name__)

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self.logger.debug("GateioWebSocketClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ============================================
    # Connection Management
    # ============================================

    async def connect(self) -> None:
        """
        Open the WebSocket and start the response reader.

        Raises:
            RuntimeError: If session not initialized
            TransportError: If the connection cannot be established
        """
        if not self.session:
            raise RuntimeError("Client session not initialized. Use 'async with' statement.")

        self.logger.info(f"Connecting to {self.url}")
        try:
            self.ws = await self.session.ws_connect(
                self.url,
                heartbeat=30,
                timeout=aiohttp.ClientTimeout(total=10)
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"Failed to connect to {self.url}: {e}")
            raise TransportError(f"WebSocket connection failed: {e}", self.name) from e

        self._authenticated = False
        self._reader = asyncio.create_task(self._read_loop())
        log_websocket_event(self.name, "connected", details=self.url)

    async def close(self) -> None:
        """Close the WebSocket, the reader task and the session. Safe to call twice."""
        self._authenticated = False

        if self.ws and not self.ws.closed:
            await self.ws.close()
            log_websocket_event(self.name, "closed")

        if self._reader and not self._reader.done():
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
        self._reader = None

        self._fail_pending(TransportError("WebSocket closed", self.name))

        if self.session and not self.session.closed:
            await self.session.close()
            self.logger.debug("GateioWebSocketClient session closed")

    def is_connected(self) -> bool:
        return self.ws is not None and not self.ws.closed

    def is_usable(self) -> bool:
        """True while the channel is connected and authenticated."""
        return self.is_connected() and self._authenticated

    # ============================================
    # Response Reader
    # ============================================

    async def _read_loop(self) -> None:
        try:
            async for msg in self.ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._dispatch(msg.data)
                elif msg.type in (aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                    self.logger.warning(f"WebSocket {msg.type.name.lower()}: {msg.data}")
                    break
        finally:
            self._authenticated = False
            self._fail_pending(TransportError("WebSocket connection lost", self.name))
            log_websocket_event(self.name, "disconnected")

    def _dispatch(self, raw: str) -> None:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            self.logger.error(f"Failed to parse JSON: {raw[:100]}")
            return

        # Server pushes (subscriptions) carry no id
        request_id = data.get("id") if isinstance(data, dict) else None
        future = self._pending.pop(request_id, None)
        if future is None:
            self.logger.debug(f"Unsolicited message: {str(data)[:100]}")
            return
        if not future.done():
            future.set_result(data)

    def _fail_pending(self, error: TransportError) -> None:
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(error)

    # ============================================
    # Requests
    # ============================================

    async def request(self, method: str, params: Sequence[Any]) -> Any:
        """
        Send one request and wait for its response.

        Returns:
            The response's `result` member

        Raises:
            TransportError: If not connected, the request times out, the
                connection drops, or the response carries an error
        """
        if not self.is_connected():
            raise TransportError(f"WebSocket is not connected ({method})", self.name)

        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        log_websocket_event(self.name, "request", method=method)
        try:
            await self.ws.send_json({"id": request_id, "method": method, "params": list(params)})
            response = await asyncio.wait_for(future, self.request_timeout)
        except asyncio.TimeoutError as e:
            raise TransportError(f"Timed out waiting for {method}", self.name) from e
        except (aiohttp.ClientError, ConnectionResetError) as e:
            raise TransportError(f"Failed to send {method}: {e}", self.name) from e
        finally:
            self._pending.pop(request_id, None)

        error = response.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            code = error.get("code") if isinstance(error, dict) else None
            raise TransportError(f"{method} failed: {message}", self.name, code=code, response=response)

        return response.get("result")

    def signature(self, nonce: int) -> str:
        """Base64 HMAC-SHA512 of the nonce, keyed by the secret."""
        digest = hmac.new(self.secret_key.encode(), str(nonce).encode(), hashlib.sha512).digest()
        return base64.b64encode(digest).decode()

    async def authenticate(self) -> None:
        """
        Sign in with server.sign. Marks the channel usable on success.

        Raises:
            TransportError: If credentials are missing or the server rejects them
        """
        if not (self.api_key and self.secret_key):
            raise TransportError("API credentials are required for server.sign", self.name)

        nonce = int(time.time() * 1000)
        await self.request("server.sign", [self.api_key, self.signature(nonce), nonce])
        self._authenticated = True
        log_websocket_event(self.name, "authenticated")

    async def query_orders(self, market: str, offset: int, limit: int) -> Any:
        """One page of open orders for a market ("ETH_BTC")."""
        return await self.request("order.query", [market, offset, limit])

    async def query_balances(self, currencies: List[str]) -> Any:
        """Balances for the given currencies; an empty list returns all."""
        return await self.request("balance.query", currencies)
