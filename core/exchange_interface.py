"""
Exchange Interface: Abstract Contract for Trading Adapters

This module defines the abstract base class that every exchange adapter must
implement. By enforcing a consistent interface, we ensure:
- All exchanges expose the same operation set
- Callers work with canonical schemas only, never raw exchange payloads
- Operations an exchange does not offer fail loudly with NotSupported

Design Philosophy:
    "Program to an interface, not an implementation"

    The trading system works with ExchangeInterface, not a specific adapter.
    Adding an exchange means adding one subclass; nothing upstream changes.

Capabilities System:
    Each exchange declares which features it supports via the `capabilities`
    dict. Callers can check `supports()` before calling; calling an
    unsupported operation anyway raises NotSupported rather than returning
    an empty result, so "no data" and "not offered" stay distinguishable.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Optional

from core.exceptions import NotSupported
from core.schemas import (
    AccountSnapshot,
    CancelAllResult,
    CancelOrderRequest,
    FeeRequest,
    OrderBookSnapshot,
    OrderRecord,
    OrdersFilter,
    SubmitOrderRequest,
    SubmitOrderResult,
    Ticker,
)


class ExchangeInterface(ABC):
    """
    Abstract Base Class for Exchange Adapters

    Class Attributes:
        name: Unique identifier for the exchange (lowercase, e.g., "gateio")
        capabilities: Dictionary indicating which features this exchange supports

    Abstract Methods (MUST be implemented by all exchanges):
        - refresh_ticker / get_ticker
        - refresh_order_book / get_order_book
        - refresh_account / get_account
        - submit_order / cancel_order / cancel_all_orders
        - get_order_info / get_active_orders / get_order_history
        - get_deposit_address / withdraw_crypto

    Optional Methods (raise NotSupported unless overridden):
        - withdraw_fiat, withdraw_fiat_to_international_bank
        - get_funding_history, get_exchange_history, modify_order
        - get_fee_by_type

    Lifecycle Methods (no-ops unless overridden):
        - initialize, shutdown, health_check
    """

    # ============================================
    # Class Attributes (must be set by subclasses)
    # ============================================

    name: str
    """Unique exchange identifier (lowercase). Example: "gateio" """

    capabilities: Dict[str, bool] = {
        "ticker": False,
        "order_book": False,
        "account": False,
        "submit_order": False,
        "cancel_order": False,
        "order_history": False,
        "deposit_address": False,
        "crypto_withdrawal": False,
        "fiat_withdrawal": False,
        "funding_history": False,
        "exchange_history": False,
        "modify_order": False,
        "trade_fee": False,
        "crypto_withdrawal_fee": False,
        "websocket": False,
    }
    """Dictionary indicating which features this exchange supports"""

    # ============================================
    # Market Data
    # ============================================

    @abstractmethod
    async def refresh_ticker(self, pair: str, asset: str = "spot") -> Ticker:
        """
        Fetch fresh tickers, publish them to the ticker cache, and return the
        ticker for `pair`.

        Raises:
            NotFound: If the exchange returned no ticker for `pair`
            TransportError, MalformedResponse: On fetch/decoding failure
        """
        ...

    @abstractmethod
    async def get_ticker(self, pair: str, asset: str = "spot") -> Ticker:
        """Return the cached ticker, refreshing once on a cache miss."""
        ...

    @abstractmethod
    async def refresh_order_book(self, pair: str, asset: str = "spot") -> OrderBookSnapshot:
        """Fetch the order book for `pair`, publish it, and return it."""
        ...

    @abstractmethod
    async def get_order_book(self, pair: str, asset: str = "spot") -> OrderBookSnapshot:
        """Return the cached order book, refreshing once on a cache miss."""
        ...

    # ============================================
    # Account
    # ============================================

    @abstractmethod
    async def refresh_account(self) -> AccountSnapshot:
        """Fetch balances, publish the account snapshot, and return it."""
        ...

    @abstractmethod
    async def get_account(self) -> AccountSnapshot:
        """Return the cached account snapshot, refreshing once on a cache miss."""
        ...

    # ============================================
    # Orders
    # ============================================

    @abstractmethod
    async def submit_order(self, request: SubmitOrderRequest) -> SubmitOrderResult:
        ...

    @abstractmethod
    async def cancel_order(self, request: CancelOrderRequest) -> None:
        ...

    @abstractmethod
    async def cancel_all_orders(self, pair_filter: Optional[List[str]] = None) -> CancelAllResult:
        """
        Cancel every open order, optionally restricted to `pair_filter`.

        Returns:
            CancelAllResult: pair → error message for pairs that failed
        """
        ...

    @abstractmethod
    async def get_order_info(self, order_id: str) -> OrderRecord:
        """
        Look up one open order by id.

        Raises:
            NotFound: If no current open order has this id
        """
        ...

    @abstractmethod
    async def get_active_orders(self, orders_filter: Optional[OrdersFilter] = None) -> List[OrderRecord]:
        ...

    @abstractmethod
    async def get_order_history(self, orders_filter: Optional[OrdersFilter] = None) -> List[OrderRecord]:
        ...

    # ============================================
    # Funding
    # ============================================

    @abstractmethod
    async def get_deposit_address(self, currency: str) -> str:
        ...

    @abstractmethod
    async def withdraw_crypto(self, currency: str, address: str, amount: Decimal) -> str:
        """
        Submit a crypto withdrawal.

        Returns:
            str: Opaque withdrawal reference returned by the exchange
        """
        ...

    # ============================================
    # Optional Operations (not offered by default)
    # ============================================

    async def withdraw_fiat(self, currency: str, amount: Decimal, bank_account: str) -> str:
        raise NotSupported("Fiat withdrawal", self.name)

    async def withdraw_fiat_to_international_bank(self, currency: str, amount: Decimal, bank_account: str) -> str:
        raise NotSupported("International bank withdrawal", self.name)

    async def get_funding_history(self) -> list:
        raise NotSupported("Funding history", self.name)

    async def get_exchange_history(self, pair: str, asset: str = "spot") -> list:
        raise NotSupported("Historical trade export", self.name)

    async def modify_order(self, order_id: str, price: Decimal, amount: Decimal) -> str:
        raise NotSupported("Order modification", self.name)

    async def get_fee_by_type(self, request: FeeRequest) -> Decimal:
        raise NotSupported("Fee estimates", self.name)

    # ============================================
    # Optional Lifecycle Methods
    # ============================================

    async def initialize(self) -> None:
        """
        Initialize the exchange adapter (open sessions, connect channels).

        Should be idempotent; the default does nothing.
        """
        pass

    async def shutdown(self) -> None:
        """
        Release the adapter's resources (close sessions and channels).

        Should not raise; the default does nothing.
        """
        pass

    async def health_check(self) -> bool:
        """Return True if the exchange API is reachable; the default returns True."""
        return True

    # ============================================
    # Helper Methods
    # ============================================

    def supports(self, feature: str) -> bool:
        """
        Check if this exchange supports a specific feature.

        Example:
            >>> exchange.supports("fiat_withdrawal")
            False
        """
        return self.capabilities.get(feature, False)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}')>"
