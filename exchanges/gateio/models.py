"""
Gate.io Raw Payload Models

Pydantic models describing the exact shapes Gate.io returns, used to decode
raw JSON at the adapter boundary. Anything that does not fit is rejected with
MalformedResponse here, so code past this boundary works with typed values
only and never inspects loosely-typed JSON.

Shape Quirks Handled:
    - Amounts arrive as strings or numbers; both decode to Decimal through
      their string form (no binary float rounding)
    - Balance maps are `[]` instead of `{}` when empty
    - Order ids are strings on some endpoints and integers on others
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from core.exceptions import MalformedResponse


# ============================================
# Field Types
# ============================================

def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValueError(f"expected a number, got {value!r}")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float, str)):
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"not a number: {value!r}")
    else:
        raise ValueError(f"expected a number, got {type(value).__name__}")
    if not number.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return number


def _to_id(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"expected an id, got {value!r}")
    return str(value)


def _empty_list_as_dict(value: Any) -> Any:
    # Gate.io encodes an empty balance map as [] and sometimes omits it.
    if value is None or (isinstance(value, list) and not value):
        return {}
    return value


DecimalValue = Annotated[Decimal, BeforeValidator(_to_decimal)]
IdValue = Annotated[str, BeforeValidator(_to_id)]
RawAmount = Union[str, int, float]


class RawModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ============================================
# Market Data
# ============================================

class RawTicker(RawModel):
    """One entry of GET /tickers, keyed by lowercase pair."""

    last: float
    high: float = Field(alias="high24hr")
    low: float = Field(alias="low24hr")
    base_volume: float = Field(alias="baseVolume")
    quote_volume: float = Field(alias="quoteVolume")
    open: float = 0.0
    close: float = 0.0


class RawOrderBook(RawModel):
    """GET /orderBook/{pair}: levels are [price, amount] pairs."""

    asks: List[Tuple[DecimalValue, DecimalValue]] = Field(default_factory=list)
    bids: List[Tuple[DecimalValue, DecimalValue]] = Field(default_factory=list)


class RawPairInfo(RawModel):
    """One pair entry of GET /marketinfo. `fee` is a percentage."""

    decimal_places: int = 0
    min_amount: DecimalValue = Decimal("0")
    fee: DecimalValue


class RawMarketInfo(RawModel):
    """
    GET /marketinfo: a list of single-key maps, {"eth_btc": {...}}.

    Entries stay raw; only the pair being priced is validated.
    """

    pairs: List[Dict[str, Any]] = Field(default_factory=list)


# ============================================
# Account
# ============================================

class RawBalances(RawModel):
    """
    POST /private/balances.

    Amount values stay raw; the balance reconciler parses them so that one
    bad amount fails the whole reconciliation.
    """

    available: Dict[str, RawAmount] = Field(default_factory=dict)
    locked: Dict[str, RawAmount] = Field(default_factory=dict)

    @field_validator("available", "locked", mode="before")
    @classmethod
    def normalize_empty(cls, v: Any) -> Any:
        return _empty_list_as_dict(v)


class RawRealtimeBalance(RawModel):
    """One currency entry of the WebSocket balance.query result."""

    available: RawAmount
    freeze: RawAmount


# ============================================
# Orders & Trades
# ============================================

class RawOpenOrder(RawModel):
    """One entry of POST /private/openOrders."""

    order_number: IdValue = Field(alias="orderNumber")
    type: str
    rate: DecimalValue
    initial_amount: DecimalValue = Field(alias="initialAmount")
    filled_amount: DecimalValue = Field(default=Decimal("0"), alias="filledAmount")
    currency_pair: str = Field(alias="currencyPair")
    timestamp: int
    status: str


class RawOpenOrders(RawModel):
    orders: List[RawOpenOrder] = Field(default_factory=list)

    @field_validator("orders", mode="before")
    @classmethod
    def normalize_empty(cls, v: Any) -> Any:
        return v or []


class RawTrade(RawModel):
    """One entry of POST /private/tradeHistory."""

    trade_id: Optional[IdValue] = Field(default=None, alias="tradeID")
    order_number: IdValue = Field(alias="orderNumber")
    pair: str
    type: str
    rate: DecimalValue
    amount: DecimalValue
    time_unix: int


class RawTradeHistory(RawModel):
    trades: List[RawTrade] = Field(default_factory=list)

    @field_validator("trades", mode="before")
    @classmethod
    def normalize_empty(cls, v: Any) -> Any:
        return v or []


class RawRealtimeOrder(RawModel):
    """
    One record of the WebSocket order.query result.

    `type` is the side flag and `orderType` the order type flag. `left` is
    deliberately not decoded: remaining amount is always derived locally.
    """

    id: IdValue
    market: str
    user: Optional[IdValue] = None
    ctime: DecimalValue
    price: DecimalValue
    amount: DecimalValue
    filled_amount: DecimalValue = Field(default=Decimal("0"), alias="filledAmount")
    deal_fee: DecimalValue = Field(default=Decimal("0"), alias="dealFee")
    order_type: int = Field(alias="orderType")
    type: int


class RawOrderPage(RawModel):
    offset: int = 0
    limit: int = 0
    total: Optional[int] = None
    records: List[RawRealtimeOrder] = Field(default_factory=list)

    @field_validator("records", mode="before")
    @classmethod
    def normalize_empty(cls, v: Any) -> Any:
        return v or []


class RawNewOrder(RawModel):
    """POST /private/buy or /private/sell."""

    order_number: int = Field(default=0, alias="orderNumber")
    left_amount: DecimalValue = Field(alias="leftAmount")


# ============================================
# Funding
# ============================================

class RawDepositAddress(RawModel):
    addr: str


class RawWithdrawal(RawModel):
    id: Optional[IdValue] = None
    message: str = ""


# ============================================
# Pair Formats
# ============================================

def rest_pair(pair: str) -> str:
    """Canonical pair to REST request format: "ETH_BTC" -> "eth_btc"."""
    return pair.strip().lower()


def ws_market(pair: str) -> str:
    """Canonical pair to WebSocket market format: "eth_btc" -> "ETH_BTC"."""
    return pair.strip().upper()


# ============================================
# Decoding
# ============================================

T = TypeVar("T")

_TICKERS = TypeAdapter(Dict[str, Any])
_SYMBOLS = TypeAdapter(List[str])
_REALTIME_BALANCES = TypeAdapter(Dict[str, RawRealtimeBalance])


def decode(model: Union[Type[T], TypeAdapter], payload: Any, what: str) -> T:
    """
    Decode a raw payload into a model (or TypeAdapter target).

    Raises:
        MalformedResponse: If the payload does not match the expected shape
    """
    try:
        if isinstance(model, TypeAdapter):
            return model.validate_python(payload)
        return model.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponse(f"Malformed {what} payload: {e.error_count()} error(s): {e.errors()[0]['msg']}", "gateio")


def decode_tickers(payload: Any) -> Dict[str, Any]:
    """Decode only the outer map; entries are validated when matched."""
    return decode(_TICKERS, payload, "tickers")


def decode_symbols(payload: Any) -> List[str]:
    return decode(_SYMBOLS, payload, "pairs")


def decode_realtime_balances(payload: Any) -> Dict[str, RawRealtimeBalance]:
    return decode(_REALTIME_BALANCES, _empty_list_as_dict(payload), "balance.query")


def construct(model: Type[T], what: str, **fields: Any) -> T:
    """
    Build a canonical model from decoded values.

    A canonical invariant violated by exchange data (negative price, hold
    above total, executed above amount) is the exchange's fault, so it is
    reported as MalformedResponse rather than a bare ValidationError.
    """
    try:
        return model(**fields)
    except ValidationError as e:
        raise MalformedResponse(f"Invalid {what}: {e.errors()[0]['msg']}", "gateio")
