"""
Canonical Trading Schemas

This module defines Pydantic models for the exchange-agnostic trading domain.
Every exchange adapter produces these values, so the layers above can treat
all exchanges uniformly.

Key Principle:
    Regardless of how the exchange shapes its payloads (string amounts, numeric
    flags, loosely-typed maps), the adapter normalizes them into these schemas.
    All models are frozen: a value is built once, handed to the caller, and a
    refresh produces a brand new value instead of mutating the old one.

Models:
    - Ticker: Last/high/low/open/close prices and volumes for a pair
    - OrderBookSnapshot: Bids and asks for a pair, as received
    - AccountSnapshot: Sub-accounts holding per-currency balances
    - OrderRecord: An order (or executed trade) in canonical form
    - Request/result models for order submission, cancellation, withdrawals
      and fee estimates

Numeric Conventions:
    - Market data prices and volumes (Ticker) are floats
    - Order book levels, balances and order amounts are Decimals, so that
      derived quantities (total = hold + available, remaining = amount - executed)
      are exact
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================
# Enumerations
# ============================================

class OrderSide(str, Enum):
    """Order side. Values are the canonical lowercase strings."""

    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    """Order type."""

    LIMIT = "limit"
    MARKET = "market"


class OrderStatus(str, Enum):
    """
    Order lifecycle status.

    FILLED and CANCELLED are terminal.
    """

    OPEN = "open"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.FILLED, OrderStatus.CANCELLED)


class FeeType(str, Enum):
    """
    Kind of fee estimate.

    OFFLINE_TRADE uses a flat rate instead of the exchange's per-pair fee.
    """

    TRADE = "trade"
    OFFLINE_TRADE = "offline_trade"
    CRYPTO_WITHDRAWAL = "crypto_withdrawal"


# ============================================
# Base Model
# ============================================

def normalize_pair(value: str) -> str:
    """
    Normalize a pair to canonical form: uppercase, "_" delimited.

    Example:
        >>> normalize_pair("eth_btc")
        'ETH_BTC'
    """
    return value.strip().upper()


class CanonicalModel(BaseModel):
    """Frozen base for every canonical value."""

    model_config = ConfigDict(frozen=True)


class BaseMarketModel(CanonicalModel):
    """
    Base model for all pair-scoped market data.

    Defines the fields every market data value shares:
    - exchange: The source exchange (lowercase)
    - pair: The currency pair (uppercase, e.g. "ETH_BTC")
    - asset: The market segment (e.g. "spot")
    - timestamp: When the adapter produced the value
    """

    exchange: str = Field(
        ...,
        description="Source exchange identifier (lowercase)",
        examples=["gateio"]
    )

    pair: str = Field(
        ...,
        description="Currency pair in canonical BASE_QUOTE form",
        examples=["BTC_USDT", "ETH_BTC"]
    )

    asset: str = Field(
        default="spot",
        description="Market segment the pair belongs to"
    )

    timestamp: datetime = Field(
        ...,
        description="Time the value was produced (UTC)"
    )

    @field_validator("pair")
    @classmethod
    def validate_pair(cls, v: str) -> str:
        """Ensure pair is uppercase"""
        return normalize_pair(v)

    @field_validator("exchange")
    @classmethod
    def validate_exchange(cls, v: str) -> str:
        """Ensure exchange is lowercase"""
        return v.lower()


# ============================================
# Ticker Schema
# ============================================

class Ticker(BaseMarketModel):
    """
    Ticker Data Model

    Latest price summary for a pair. Keyed by (exchange, pair, asset) and
    overwritten on every refresh; no history is retained.

    Attributes:
        last: Last traded price
        high: 24h high
        low: 24h low
        open: Opening price of the 24h window (0.0 when not reported)
        close: Closing price (0.0 when not reported)
        volume: Volume in base currency
        quote_volume: Volume in quote currency

    Example:
        >>> Ticker(
        ...     exchange="gateio",
        ...     pair="ETH_BTC",
        ...     timestamp=datetime.now(timezone.utc),
        ...     last=0.05, high=0.06, low=0.04,
        ...     volume=100.0, quote_volume=5.0
        ... )
    """

    last: float = Field(..., ge=0, description="Last traded price")
    high: float = Field(default=0.0, ge=0, description="24h high")
    low: float = Field(default=0.0, ge=0, description="24h low")
    open: float = Field(default=0.0, ge=0, description="Opening price")
    close: float = Field(default=0.0, ge=0, description="Closing price")
    volume: float = Field(default=0.0, ge=0, description="Volume in base currency")
    quote_volume: float = Field(default=0.0, ge=0, description="Volume in quote currency")


# ============================================
# Order Book Schema
# ============================================

class OrderBookLevel(CanonicalModel):
    """A single (price, amount) level."""

    price: Decimal = Field(..., ge=0)
    amount: Decimal = Field(..., ge=0)


class OrderBookSnapshot(BaseMarketModel):
    """
    Order Book Snapshot

    Bids and asks exactly as received from the exchange: no sorting,
    deduplication or depth checks. Replaced wholesale on each refresh.
    """

    bids: List[OrderBookLevel] = Field(default_factory=list)
    asks: List[OrderBookLevel] = Field(default_factory=list)


# ============================================
# Account Schemas
# ============================================

class Balance(CanonicalModel):
    """
    Balance for one currency.

    Invariant: total >= hold >= 0. `hold` is the amount locked in open orders
    or withdrawals; `total - hold` is freely available.
    """

    currency: str
    total: Decimal = Field(default=Decimal("0"))
    hold: Decimal = Field(default=Decimal("0"))

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def check_amounts(self) -> "Balance":
        if self.hold < 0:
            raise ValueError(f"{self.currency}: hold ({self.hold}) cannot be negative")
        if self.total < self.hold:
            raise ValueError(f"{self.currency}: total ({self.total}) is below hold ({self.hold})")
        return self

    @property
    def available(self) -> Decimal:
        return self.total - self.hold


class SubAccount(CanonicalModel):
    """One sub-account; currencies are unique because balances is keyed by code."""

    id: Optional[str] = None
    balances: Dict[str, Balance] = Field(default_factory=dict)


class AccountSnapshot(CanonicalModel):
    """
    Account Snapshot

    Holdings for one exchange across one or more sub-accounts.
    """

    exchange: str
    accounts: List[SubAccount] = Field(default_factory=list)
    timestamp: datetime

    @field_validator("exchange")
    @classmethod
    def validate_exchange(cls, v: str) -> str:
        return v.lower()

    def get_balance(self, currency: str, account_index: int = 0) -> Optional[Balance]:
        """Return the balance for a currency in one sub-account, or None."""
        if account_index >= len(self.accounts):
            return None
        return self.accounts[account_index].balances.get(currency.upper())


# ============================================
# Order Schemas
# ============================================

class OrderRecord(CanonicalModel):
    """
    Order Record

    Created on submit or discovered via query; never mutated. Re-fetching
    yields a fresh record.

    Invariant: remaining_amount == amount - executed_amount and is never negative.
    """

    id: str
    exchange: str
    account_id: Optional[str] = None
    pair: str
    side: OrderSide
    type: OrderType = OrderType.LIMIT
    price: Decimal = Field(..., ge=0)
    amount: Decimal = Field(..., ge=0)
    executed_amount: Decimal = Field(default=Decimal("0"), ge=0)
    remaining_amount: Decimal = Field(default=Decimal("0"), ge=0)
    status: OrderStatus = OrderStatus.OPEN
    date: datetime
    fee: Decimal = Field(default=Decimal("0"))

    @field_validator("pair")
    @classmethod
    def validate_pair(cls, v: str) -> str:
        return normalize_pair(v)

    @model_validator(mode="after")
    def check_remaining(self) -> "OrderRecord":
        if self.remaining_amount != self.amount - self.executed_amount:
            raise ValueError(
                f"order {self.id}: remaining ({self.remaining_amount}) != "
                f"amount ({self.amount}) - executed ({self.executed_amount})"
            )
        return self


class OrdersFilter(CanonicalModel):
    """
    Filter for active-order and order-history queries.

    Empty `pairs` means "no pair restriction" for active orders and
    "all enabled pairs" for order history.
    """

    pairs: List[str] = Field(default_factory=list)
    side: Optional[OrderSide] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("pairs")
    @classmethod
    def validate_pairs(cls, v: List[str]) -> List[str]:
        return [normalize_pair(p) for p in v]

    @field_validator("start", "end")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Naive datetimes are taken as UTC"""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class SubmitOrderRequest(CanonicalModel):
    """
    A new order to place.

    Construction fails (pydantic ValidationError) when the amount is not
    positive or a limit order has no positive price.
    """

    pair: str
    side: OrderSide
    type: OrderType = OrderType.LIMIT
    amount: Decimal = Field(..., gt=0)
    price: Optional[Decimal] = None

    @field_validator("pair")
    @classmethod
    def validate_pair(cls, v: str) -> str:
        v = normalize_pair(v)
        if not v:
            raise ValueError("pair is required")
        return v

    @model_validator(mode="after")
    def check_price(self) -> "SubmitOrderRequest":
        if self.type == OrderType.LIMIT and (self.price is None or self.price <= 0):
            raise ValueError("limit orders require a positive price")
        return self


class SubmitOrderResult(CanonicalModel):
    """Outcome of an order submission."""

    order_id: Optional[str] = None
    is_placed: bool = False
    fully_matched: bool = False


class CancelOrderRequest(CanonicalModel):
    order_id: str
    pair: str

    @field_validator("pair")
    @classmethod
    def validate_pair(cls, v: str) -> str:
        return normalize_pair(v)


class CancelAllResult(CanonicalModel):
    """Per-pair error messages for pairs whose cancellation failed."""

    status: Dict[str, str] = Field(default_factory=dict)


class WithdrawRequest(CanonicalModel):
    currency: str
    address: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return v.strip().upper()


class FeeRequest(CanonicalModel):
    """
    Inputs for a fee estimate.

    Trade fees use `pair`, `price` and `amount`. Withdrawal fees use
    `currency`, falling back to the base currency of `pair`.
    """

    fee_type: FeeType
    pair: str = ""
    currency: str = ""
    price: Decimal = Field(default=Decimal("0"), ge=0)
    amount: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("pair", "currency")
    @classmethod
    def normalize_codes(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def fee_currency(self) -> str:
        if self.currency:
            return self.currency
        return self.pair.split("_", 1)[0]
