"""
Gate.io Order/Trade Normalizer

Maps Gate.io's order encodings onto the canonical OrderRecord:

    Side     WebSocket: numeric flag 0 = buy, 1 = sell
             REST:      "buy"/"sell"/"bid"/"ask", any casing
    Type     WebSocket: numeric flag 0 = market, 1 = limit
             REST:      no signal; only limit orders are queryable
    Status   REST:      "open", "closed"/"done"/"filled", "cancelled"/"canceled"
             WebSocket: order.query only returns open orders
    Time     REST:      integer epoch seconds
             WebSocket: fractional epoch seconds (`ctime`)

Unknown codes fail closed with UnrecognizedEnum; a side is never defaulted.
A bad record fails its whole batch, so callers never receive an order set
that looks complete but silently dropped entries.

Remaining amount is always amount - executed, computed here.
"""

from decimal import Decimal
from typing import Any, Iterable, List, Optional

from core.exceptions import MalformedResponse, NotFound, UnrecognizedEnum
from core.schemas import OrderRecord, OrderSide, OrderStatus, OrdersFilter, OrderType, normalize_pair
from core.utils.time import from_unix, split_float_timestamp
from exchanges.gateio.models import (
    RawOpenOrder,
    RawOpenOrders,
    RawRealtimeOrder,
    RawTrade,
    RawTradeHistory,
    construct,
    decode,
)

_SIDE_FLAGS = {0: OrderSide.BUY, 1: OrderSide.SELL}

_SIDE_NAMES = {
    "buy": OrderSide.BUY,
    "bid": OrderSide.BUY,
    "sell": OrderSide.SELL,
    "ask": OrderSide.SELL,
}

_TYPE_FLAGS = {0: OrderType.MARKET, 1: OrderType.LIMIT}

_STATUS_NAMES = {
    "open": OrderStatus.OPEN,
    "closed": OrderStatus.FILLED,
    "done": OrderStatus.FILLED,
    "filled": OrderStatus.FILLED,
    "cancelled": OrderStatus.CANCELLED,
    "canceled": OrderStatus.CANCELLED,
}


# ============================================
# Enumerations
# ============================================

def side_from_flag(flag: Any) -> OrderSide:
    if isinstance(flag, bool) or flag not in _SIDE_FLAGS:
        raise UnrecognizedEnum("side flag", flag, "gateio")
    return _SIDE_FLAGS[flag]


def side_from_name(name: Any) -> OrderSide:
    if not isinstance(name, str) or name.strip().lower() not in _SIDE_NAMES:
        raise UnrecognizedEnum("side", name, "gateio")
    return _SIDE_NAMES[name.strip().lower()]


def type_from_flag(flag: Any) -> OrderType:
    if isinstance(flag, bool) or flag not in _TYPE_FLAGS:
        raise UnrecognizedEnum("order type flag", flag, "gateio")
    return _TYPE_FLAGS[flag]


def status_from_name(name: Any) -> OrderStatus:
    if not isinstance(name, str) or name.strip().lower() not in _STATUS_NAMES:
        raise UnrecognizedEnum("order status", name, "gateio")
    return _STATUS_NAMES[name.strip().lower()]


def _open_status(status: OrderStatus, executed: Decimal) -> OrderStatus:
    if status == OrderStatus.OPEN and executed > 0:
        return OrderStatus.PARTIALLY_FILLED
    return status


# ============================================
# Derived Fields
# ============================================

def remaining_amount(amount: Decimal, executed: Decimal) -> Decimal:
    """
    Remaining = amount - executed.

    Raises:
        MalformedResponse: If executed exceeds amount
    """
    remaining = amount - executed
    if remaining < 0:
        raise MalformedResponse(f"Executed amount {executed} exceeds order amount {amount}", "gateio")
    return remaining


def date_from_seconds(seconds: int):
    try:
        return from_unix(seconds)
    except (ValueError, OverflowError) as e:
        raise MalformedResponse(f"Invalid timestamp {seconds!r}: {e}", "gateio")


def date_from_fractional(value: Decimal):
    """Split fractional epoch seconds into seconds + nanoseconds, then convert."""
    try:
        seconds, nanos = split_float_timestamp(value)
        return from_unix(seconds, nanos)
    except (ValueError, OverflowError) as e:
        raise MalformedResponse(f"Invalid timestamp {value!r}: {e}", "gateio")


# ============================================
# Record Normalization
# ============================================

def normalize_realtime_order(raw: RawRealtimeOrder, exchange: str) -> OrderRecord:
    """Normalize one WebSocket order.query record (always an open order)."""
    side = side_from_flag(raw.type)
    order_type = type_from_flag(raw.order_type)
    remaining = remaining_amount(raw.amount, raw.filled_amount)

    return construct(
        OrderRecord,
        f"order {raw.id}",
        id=raw.id,
        exchange=exchange,
        account_id=raw.user,
        pair=normalize_pair(raw.market),
        side=side,
        type=order_type,
        price=raw.price,
        amount=raw.amount,
        executed_amount=raw.filled_amount,
        remaining_amount=remaining,
        status=_open_status(OrderStatus.OPEN, raw.filled_amount),
        date=date_from_fractional(raw.ctime),
        fee=raw.deal_fee,
    )


def normalize_open_order(raw: RawOpenOrder, exchange: str) -> OrderRecord:
    """Normalize one REST openOrders entry."""
    side = side_from_name(raw.type)
    status = status_from_name(raw.status)
    remaining = remaining_amount(raw.initial_amount, raw.filled_amount)

    return construct(
        OrderRecord,
        f"order {raw.order_number}",
        id=raw.order_number,
        exchange=exchange,
        pair=normalize_pair(raw.currency_pair),
        side=side,
        type=OrderType.LIMIT,
        price=raw.rate,
        amount=raw.initial_amount,
        executed_amount=raw.filled_amount,
        remaining_amount=remaining,
        status=_open_status(status, raw.filled_amount),
        date=date_from_seconds(raw.timestamp),
    )


def normalize_trade(raw: RawTrade, exchange: str) -> OrderRecord:
    """
    Normalize one REST tradeHistory entry.

    A trade is an executed fill, so executed = amount and remaining = 0.
    The record id is the order the trade belongs to.
    """
    return construct(
        OrderRecord,
        f"trade {raw.trade_id or raw.order_number}",
        id=raw.order_number,
        exchange=exchange,
        pair=normalize_pair(raw.pair),
        side=side_from_name(raw.type),
        type=OrderType.LIMIT,
        price=raw.rate,
        amount=raw.amount,
        executed_amount=raw.amount,
        remaining_amount=Decimal("0"),
        status=OrderStatus.FILLED,
        date=date_from_seconds(raw.time_unix),
    )


def normalize_realtime_orders(records: Iterable[RawRealtimeOrder], exchange: str) -> List[OrderRecord]:
    return [normalize_realtime_order(record, exchange) for record in records]


def normalize_open_orders(payload: Any, exchange: str) -> List[OrderRecord]:
    """Decode and normalize a REST openOrders payload (all statuses)."""
    raw = decode(RawOpenOrders, payload, "open orders")
    return [normalize_open_order(order, exchange) for order in raw.orders]


def normalize_trade_history(payload: Any, exchange: str) -> List[OrderRecord]:
    raw = decode(RawTradeHistory, payload, "trade history")
    return [normalize_trade(trade, exchange) for trade in raw.trades]


# ============================================
# Lookup & Filtering
# ============================================

def find_order(orders: Iterable[OrderRecord], order_id: str) -> OrderRecord:
    """
    Return the first order whose id matches.

    Linear scan: open-order sets are small, and first-match order decides
    which record wins if the exchange ever reports a duplicate id.

    Raises:
        NotFound: If no order matches
    """
    for order in orders:
        if order.id == order_id:
            return order
    raise NotFound(f"No order found with id {order_id}", "gateio")


def filter_orders(orders: List[OrderRecord], orders_filter: Optional[OrdersFilter]) -> List[OrderRecord]:
    """
    Apply pair, side and time window restrictions.

    `start` and `end` are inclusive and applied independently.
    """
    if orders_filter is None:
        return list(orders)

    pairs = set(orders_filter.pairs)
    result = []
    for order in orders:
        if pairs and order.pair not in pairs:
            continue
        if orders_filter.side is not None and order.side != orders_filter.side:
            continue
        if orders_filter.start is not None and order.date < orders_filter.start:
            continue
        if orders_filter.end is not None and order.date > orders_filter.end:
            continue
        result.append(order)
    return result
