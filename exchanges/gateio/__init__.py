"""
Gate.io Exchange Connector

This module implements the ExchangeInterface for Gate.io spot trading.

Gate.io offers two transports for account data:
- A v2 REST API (public market data and signed private endpoints)
- A v3 WebSocket API with request/response account queries, usable once
  signed in with server.sign

API Documentation:
    https://www.gate.io/api2
    https://www.gate.io/docs/websocket/index.html

Endpoints Used:
    REST (market host, GET):
        - pairs, tickers, orderBook/{pair}, marketinfo
    REST (trade host, signed POST):
        - private/balances, private/openOrders, private/tradeHistory
        - private/buy, private/sell, private/cancelOrder, private/cancelAllOrders
        - private/depositAddress, private/withdraw
    WebSocket:
        - server.sign, balance.query, order.query

Structure:
    exchanges/gateio/
    ├── __init__.py          # This file (GateioExchange façade)
    ├── api_client.py        # REST request executor (aiohttp)
    ├── ws_client.py         # Authenticated WebSocket channel (aiohttp)
    ├── models.py            # Raw payload models, strict decoding
    ├── mappers.py           # Tickers / order book → canonical values
    ├── balances.py          # Balance reconciliation
    ├── normalizer.py        # Orders / trades → OrderRecord
    ├── pagination.py        # Offset pagination driver
    ├── fees.py              # Trade and withdrawal fee estimates
    └── sources.py           # Real-time vs polled source selection
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.exceptions import ExchangeAdapterError, MalformedResponse, NotFound, NotSupported, TransportError
from core.exchange_interface import ExchangeInterface
from core.logging import get_logger
from core.schemas import (
    AccountSnapshot,
    CancelAllResult,
    CancelOrderRequest,
    FeeRequest,
    FeeType,
    OrderBookSnapshot,
    OrderRecord,
    OrderSide,
    OrdersFilter,
    OrderType,
    SubAccount,
    SubmitOrderRequest,
    SubmitOrderResult,
    Ticker,
    WithdrawRequest,
    normalize_pair,
)
from core.utils.time import current_utc_datetime
from storage.cache import AccountCache, OrderBookCache, TickerCache
from . import api_client as endpoints
from .api_client import GateioAPIClient
from .fees import offline_trade_fee, pair_fee_percent, trade_fee, withdrawal_fee
from .mappers import map_order_book, map_tickers
from .models import RawDepositAddress, RawNewOrder, RawWithdrawal, decode, decode_symbols, rest_pair
from .normalizer import filter_orders, find_order, normalize_trade_history
from .sources import AccountSource, PolledSource, RealtimeSource, select_source
from .ws_client import GateioWebSocketClient

logger = get_logger(__name__)

# Returned in place of an address while the exchange is still creating one
GENERATING_ADDRESS = "New address is being generated for you, please wait a moment and refresh this page."

# private/cancelAllOrders "type": -1 cancels both sides
CANCEL_BOTH_SIDES = "-1"


class GateioExchange(ExchangeInterface):
    """
    Gate.io Spot Exchange Connector

    Composes the REST client, the optional WebSocket channel and the snapshot
    caches into the ExchangeInterface operation set. Every collaborator can
    be injected, which is how the tests drive it with fakes.

    Attributes:
        name: Exchange identifier ("gateio")
        capabilities: Supported features
        client: REST request executor
        channel: Real-time channel, or None when WebSockets are disabled
        ticker_cache / order_book_cache / account_cache: Snapshot caches

    Example:
        >>> exchange = GateioExchange()
        >>> await exchange.initialize()
        >>> ticker = await exchange.get_ticker("ETH_BTC")
        >>> account = await exchange.refresh_account()
        >>> await exchange.shutdown()

    Notes:
        - Balances and open orders come from the WebSocket while it is
          connected and authenticated, and from REST otherwise. The choice is
          made on every call.
        - Cached reads (get_*) refresh once on a miss and never retry.
        - Market orders are not offered by Gate.io's v2 API.
    """

    # ============================================
    # Class Attributes
    # ============================================

    name = "gateio"

    capabilities = {
        "ticker": True,
        "order_book": True,
        "account": True,
        "submit_order": True,
        "cancel_order": True,
        "order_history": True,
        "deposit_address": True,
        "crypto_withdrawal": True,
        "fiat_withdrawal": False,
        "funding_history": False,
        "exchange_history": False,
        "modify_order": False,
        "trade_fee": True,
        "crypto_withdrawal_fee": True,
        "websocket": True,
    }

    # ============================================
    # Initialization
    # ============================================

    def __init__(
        self,
        client: Any = None,
        channel: Any = None,
        ticker_cache: Optional[TickerCache] = None,
        order_book_cache: Optional[OrderBookCache] = None,
        account_cache: Optional[AccountCache] = None,
        enabled_pairs: Optional[List[str]] = None,
        config: Any = None
    ):
        """
        Initialize the Gate.io connector.

        Network connections are established in initialize(). Collaborators
        left as None are built from settings; a channel is only built when
        WEBSOCKET_ENABLED is set.
        """
        from core.config import settings

        self.settings = config or settings

        self._owns_client = client is None
        self.client = client or GateioAPIClient(
            api_key=self.settings.gateio_api_key,
            secret_key=self.settings.gateio_secret_key,
            market_url=self.settings.gateio_market_url,
            trade_url=self.settings.gateio_trade_url,
            timeout=self.settings.request_timeout,
        )

        self._owns_channel = channel is None
        if channel is None and self.settings.websocket_enabled:
            channel = GateioWebSocketClient(
                url=self.settings.gateio_websocket_url,
                api_key=self.settings.gateio_api_key,
                secret_key=self.settings.gateio_secret_key,
                request_timeout=self.settings.request_timeout,
            )
        self.channel = channel

        self.ticker_cache = ticker_cache or TickerCache()
        self.order_book_cache = order_book_cache or OrderBookCache()
        self.account_cache = account_cache or AccountCache()

        pairs = enabled_pairs if enabled_pairs is not None else self.settings.pairs_list
        self._enabled_pairs = [normalize_pair(p) for p in pairs]
        self.available_pairs: List[str] = []

        self._realtime = RealtimeSource(
            self.channel, self.name, lambda: self.enabled_pairs, self.settings.order_page_size
        )
        self._polled = PolledSource(self.client, self.name)

        logger.debug(f"GateioExchange created (pairs={self._enabled_pairs})")

    @property
    def enabled_pairs(self) -> List[str]:
        return list(self._enabled_pairs)

    def source(self) -> AccountSource:
        """The account source for the current call."""
        return select_source(self.channel, self._realtime, self._polled)

    async def initialize(self) -> None:
        """
        Open the REST session, refresh the tradable pairs when
        AUTO_PAIR_UPDATES is set, and when enabled connect and sign in to
        the WebSocket. A failed pair refresh is logged and startup goes on.

        A WebSocket that fails to connect or sign in is logged and left
        unusable; account reads then go through REST.
        """
        logger.info("Initializing Gate.io exchange connector...")

        if self._owns_client:
            await self.client.__aenter__()

        if self.settings.auto_pair_updates:
            try:
                await self.update_tradable_pairs()
            except ExchangeAdapterError as e:
                logger.error(f"Failed to update Gate.io tradable pairs: {e}")

        if self.channel is not None and self._owns_channel:
            await self.channel.__aenter__()
            try:
                await self.channel.connect()
                if self.settings.authenticated_websocket:
                    await self.authenticate_websocket()
            except TransportError as e:
                logger.warning(f"Gate.io WebSocket unavailable, using REST for account data: {e}")

        logger.info("✓ Gate.io exchange connector initialized")

    async def shutdown(self) -> None:
        logger.info("Shutting down Gate.io exchange connector...")

        if self.channel is not None and self._owns_channel:
            await self.channel.close()
        if self._owns_client:
            await self.client.close()

        logger.info("✓ Gate.io exchange connector shut down")

    async def health_check(self) -> bool:
        """
        Check that the public API answers.

        Returns:
            bool: True if GET /pairs succeeds, False otherwise
        """
        try:
            await self.client.call(endpoints.PAIRS)
            return True
        except ExchangeAdapterError as e:
            logger.error(f"Gate.io health check failed: {e}")
            return False

    # ============================================
    # Pairs & Credentials
    # ============================================

    async def fetch_tradable_pairs(self) -> List[str]:
        """
        List every pair Gate.io trades.

        Returns:
            List[str]: Canonical pairs (e.g., ["BTC_USDT", "ETH_BTC"])
        """
        payload = await self.client.call(endpoints.PAIRS)
        return [normalize_pair(symbol) for symbol in decode_symbols(payload)]

    async def update_tradable_pairs(self) -> List[str]:
        """Refresh `available_pairs` from the exchange and return it."""
        pairs = await self.fetch_tradable_pairs()
        self.available_pairs = pairs
        logger.info(f"Gate.io lists {len(pairs)} tradable pairs")

        unlisted = self.unlisted_pairs()
        if unlisted:
            logger.warning(f"Enabled pairs not traded on Gate.io: {unlisted}")
        return pairs

    def unlisted_pairs(self) -> List[str]:
        """Enabled pairs missing from the last tradable pair list (none before the first update)."""
        if not self.available_pairs:
            return []
        listed = set(self.available_pairs)
        return [p for p in self._enabled_pairs if p not in listed]

    async def authenticate_websocket(self) -> None:
        """
        Sign in to the WebSocket so account reads can use it.

        Raises:
            TransportError: If no channel is configured or sign-in fails
        """
        if self.channel is None:
            raise TransportError("WebSocket channel is not configured", self.name)
        await self.channel.authenticate()

    async def validate_credentials(self) -> AccountSnapshot:
        """Verify the API keys with an authenticated account fetch."""
        return await self.refresh_account()

    # ============================================
    # Market Data
    # ============================================

    async def refresh_ticker(self, pair: str, asset: str = "spot") -> Ticker:
        """
        Fetch all tickers, publish one per enabled pair, and return `pair`'s.

        Gate.io returns every market in one call, so a refresh for one pair
        updates the cache for all enabled pairs.

        Raises:
            NotFound: If no ticker was produced for `pair`
        """
        pair = normalize_pair(pair)
        payload = await self.client.call(endpoints.TICKERS)
        tickers = map_tickers(payload, self._enabled_pairs, self.name, asset, self.ticker_cache.publish)

        if len(tickers) < len(self._enabled_pairs):
            produced = {t.pair for t in tickers}
            missing = [p for p in self._enabled_pairs if p not in produced]
            logger.debug(f"Gate.io returned no ticker for {missing}")

        for ticker in tickers:
            if ticker.pair == pair:
                return ticker

        cached = self.ticker_cache.get(self.name, pair, asset)
        if cached is None:
            raise NotFound(f"No ticker for {pair} ({asset})", self.name)
        return cached

    async def get_ticker(self, pair: str, asset: str = "spot") -> Ticker:
        cached = self.ticker_cache.get(self.name, pair, asset)
        if cached is not None:
            return cached
        return await self.refresh_ticker(pair, asset)

    async def refresh_order_book(self, pair: str, asset: str = "spot") -> OrderBookSnapshot:
        pair = normalize_pair(pair)
        payload = await self.client.call(endpoints.ORDER_BOOK.format(pair=rest_pair(pair)))
        book = map_order_book(payload, self.name, pair, asset)
        self.order_book_cache.publish(book)
        return book

    async def get_order_book(self, pair: str, asset: str = "spot") -> OrderBookSnapshot:
        cached = self.order_book_cache.get(self.name, pair, asset)
        if cached is not None:
            return cached
        return await self.refresh_order_book(pair, asset)

    # ============================================
    # Account
    # ============================================

    async def refresh_account(self) -> AccountSnapshot:
        """
        Fetch balances from the selected source and publish one snapshot.

        Gate.io has no sub-accounts, so the snapshot holds a single account.
        """
        source = self.source()
        logger.debug(f"Fetching Gate.io balances via {source.kind} source")
        balances = await source.fetch_balances()

        snapshot = AccountSnapshot(
            exchange=self.name,
            accounts=[SubAccount(balances=balances)],
            timestamp=current_utc_datetime(),
        )
        self.account_cache.publish(snapshot)
        return snapshot

    async def get_account(self) -> AccountSnapshot:
        cached = self.account_cache.get(self.name)
        if cached is not None:
            return cached
        return await self.refresh_account()

    # ============================================
    # Orders
    # ============================================

    async def submit_order(self, request: SubmitOrderRequest) -> SubmitOrderResult:
        """
        Place a limit order.

        Returns:
            SubmitOrderResult: `fully_matched` when nothing was left on the book

        Raises:
            NotSupported: For market orders
        """
        if request.type == OrderType.MARKET:
            raise NotSupported("Market orders", self.name)

        endpoint = endpoints.BUY if request.side == OrderSide.BUY else endpoints.SELL
        params = {
            "currencyPair": rest_pair(request.pair),
            "rate": str(request.price),
            "amount": str(request.amount),
        }
        payload = await self.client.call(endpoint, params, authenticated=True)
        raw = decode(RawNewOrder, payload, "new order")

        logger.info(f"Gate.io {request.side.value} order placed on {request.pair}: {raw.order_number}")
        return SubmitOrderResult(
            order_id=str(raw.order_number) if raw.order_number > 0 else None,
            is_placed=True,
            fully_matched=raw.left_amount == 0,
        )

    async def cancel_order(self, request: CancelOrderRequest) -> None:
        """
        Raises:
            ValueError: If the order id is not numeric
        """
        if not request.order_id.isdigit():
            raise ValueError(f"Gate.io order ids are numeric, got {request.order_id!r}")

        params = {"orderNumber": request.order_id, "currencyPair": rest_pair(request.pair)}
        await self.client.call(endpoints.CANCEL_ORDER, params, authenticated=True)

    async def cancel_all_orders(self, pair_filter: Optional[List[str]] = None) -> CancelAllResult:
        """
        Cancel every open order, one request per pair holding open orders.

        A failed pair does not stop the others; its error message is
        recorded in the result instead.
        """
        orders = await self.source().fetch_open_orders(pair_filter or None)

        pairs: List[str] = []
        for order in orders:
            if order.pair not in pairs:
                pairs.append(order.pair)

        status: Dict[str, str] = {}
        for pair in pairs:
            params = {"type": CANCEL_BOTH_SIDES, "currencyPair": rest_pair(pair)}
            try:
                await self.client.call(endpoints.CANCEL_ALL_ORDERS, params, authenticated=True)
            except TransportError as e:
                logger.warning(f"Gate.io cancel-all failed for {pair}: {e}")
                status[pair] = str(e)

        return CancelAllResult(status=status)

    async def get_order_info(self, order_id: str) -> OrderRecord:
        """
        Raises:
            NotFound: If no current open order has this id
        """
        orders = await self.source().fetch_open_orders()
        return find_order(orders, order_id)

    async def get_active_orders(self, orders_filter: Optional[OrdersFilter] = None) -> List[OrderRecord]:
        pairs = orders_filter.pairs if orders_filter else None
        orders = await self.source().fetch_open_orders(pairs or None)
        return filter_orders(orders, orders_filter)

    async def get_order_history(self, orders_filter: Optional[OrdersFilter] = None) -> List[OrderRecord]:
        """
        Executed trades for the filter's pairs (all enabled pairs when empty).

        Gate.io's trade history is pair-scoped, so one request is made per pair.
        """
        pairs = (orders_filter.pairs if orders_filter else None) or self._enabled_pairs

        records: List[OrderRecord] = []
        for pair in pairs:
            payload = await self.client.call(
                endpoints.TRADE_HISTORY, {"currencyPair": rest_pair(pair)}, authenticated=True
            )
            records.extend(normalize_trade_history(payload, self.name))

        return filter_orders(records, orders_filter)

    # ============================================
    # Funding
    # ============================================

    async def get_deposit_address(self, currency: str) -> str:
        """
        Raises:
            NotFound: While Gate.io is still generating the address
        """
        payload = await self.client.call(
            endpoints.DEPOSIT_ADDRESS, {"currency": currency.upper()}, authenticated=True
        )
        raw = decode(RawDepositAddress, payload, "deposit address")

        if raw.addr.strip() == GENERATING_ADDRESS:
            raise NotFound(f"Deposit address for {currency.upper()} is still being generated", self.name)
        return raw.addr

    async def withdraw_crypto(self, currency: str, address: str, amount: Decimal) -> str:
        """
        Returns:
            str: The withdrawal id when Gate.io returns one, else its message

        Raises:
            MalformedResponse: If the response carries neither
        """
        request = WithdrawRequest(currency=currency, address=address, amount=amount)
        params = {
            "currency": request.currency,
            "amount": str(request.amount),
            "address": request.address,
        }
        payload = await self.client.call(endpoints.WITHDRAW, params, authenticated=True)
        raw = decode(RawWithdrawal, payload, "withdrawal")

        reference = raw.id or raw.message.strip()
        if not reference:
            raise MalformedResponse("Withdrawal response carries neither an id nor a message", self.name)

        logger.info(f"Gate.io withdrawal submitted: {request.amount} {request.currency}")
        return reference

    # ============================================
    # Fees
    # ============================================

    async def get_fee_by_type(self, request: FeeRequest) -> Decimal:
        """
        Estimate a trade or withdrawal fee.

        Without API credentials a trade fee is estimated offline at a flat
        rate instead of the pair's published fee.

        Raises:
            NotFound: If Gate.io publishes no fee for the pair
        """
        fee_type = request.fee_type
        if fee_type == FeeType.TRADE and not self.client.has_credentials:
            fee_type = FeeType.OFFLINE_TRADE

        if fee_type == FeeType.TRADE:
            payload = await self.client.call(endpoints.MARKET_INFO)
            percent = pair_fee_percent(payload, rest_pair(request.pair))
            return trade_fee(percent, request.price, request.amount)
        if fee_type == FeeType.OFFLINE_TRADE:
            return offline_trade_fee(request.price, request.amount)
        return withdrawal_fee(request.fee_currency)
