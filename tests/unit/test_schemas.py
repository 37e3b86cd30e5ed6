"""
Unit Tests for Canonical Schemas

These tests verify that the canonical models:
- Normalize pair, exchange and currency casing
- Enforce the balance and remaining-amount invariants
- Validate order submission requests
- Are immutable once built

Run with:
    pytest tests/unit/test_schemas.py -v
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from core.schemas import (
    AccountSnapshot,
    Balance,
    OrderRecord,
    OrderSide,
    OrdersFilter,
    OrderStatus,
    OrderType,
    SubAccount,
    SubmitOrderRequest,
    Ticker,
    WithdrawRequest,
    normalize_pair,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_order(**overrides):
    fields = dict(
        id="1",
        exchange="gateio",
        pair="ETH_BTC",
        side=OrderSide.BUY,
        price=Decimal("0.05"),
        amount=Decimal("2"),
        executed_amount=Decimal("0.5"),
        remaining_amount=Decimal("1.5"),
        date=NOW,
    )
    fields.update(overrides)
    return OrderRecord(**fields)


class TestMarketModels:
    """Tests for Ticker and pair normalization"""

    def test_normalize_pair(self):
        assert normalize_pair(" eth_btc ") == "ETH_BTC"

    def test_ticker_normalizes_casing(self):
        ticker = Ticker(exchange="GateIO", pair="eth_btc", timestamp=NOW, last=0.05)

        assert ticker.exchange == "gateio"
        assert ticker.pair == "ETH_BTC"
        assert ticker.asset == "spot"
        assert ticker.open == 0.0
        assert ticker.close == 0.0

    def test_ticker_rejects_negative_price(self):
        with pytest.raises(ValidationError):
            Ticker(exchange="gateio", pair="ETH_BTC", timestamp=NOW, last=-1)

    def test_ticker_is_immutable(self):
        ticker = Ticker(exchange="gateio", pair="ETH_BTC", timestamp=NOW, last=0.05)

        with pytest.raises(ValidationError):
            ticker.last = 1.0


class TestBalance:
    """Tests for the total >= hold >= 0 invariant"""

    def test_available_is_total_minus_hold(self):
        balance = Balance(currency="btc", total=Decimal("1.5"), hold=Decimal("0.5"))

        assert balance.currency == "BTC"
        assert balance.available == Decimal("1.0")

    def test_hold_above_total_rejected(self):
        with pytest.raises(ValidationError, match="below hold"):
            Balance(currency="BTC", total=Decimal("1"), hold=Decimal("2"))

    def test_negative_hold_rejected(self):
        with pytest.raises(ValidationError, match="negative"):
            Balance(currency="BTC", total=Decimal("0"), hold=Decimal("-1"))

    def test_account_snapshot_get_balance(self):
        snapshot = AccountSnapshot(
            exchange="gateio",
            accounts=[SubAccount(balances={"BTC": Balance(currency="BTC", total=Decimal("1"))})],
            timestamp=NOW,
        )

        assert snapshot.get_balance("btc").total == Decimal("1")
        assert snapshot.get_balance("ETH") is None
        assert snapshot.get_balance("BTC", account_index=1) is None


class TestOrderRecord:
    """Tests for OrderRecord invariants"""

    def test_valid_record(self):
        order = make_order(pair="eth_btc")

        assert order.pair == "ETH_BTC"
        assert order.type == OrderType.LIMIT
        assert order.status == OrderStatus.OPEN

    def test_remaining_must_equal_amount_minus_executed(self):
        with pytest.raises(ValidationError, match="remaining"):
            make_order(remaining_amount=Decimal("1"))

    def test_remaining_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            make_order(executed_amount=Decimal("3"), remaining_amount=Decimal("-1"))

    def test_terminal_statuses(self):
        assert OrderStatus.FILLED.is_terminal
        assert OrderStatus.CANCELLED.is_terminal
        assert not OrderStatus.OPEN.is_terminal
        assert not OrderStatus.PARTIALLY_FILLED.is_terminal


class TestRequests:
    """Tests for request models"""

    def test_limit_order_requires_price(self):
        with pytest.raises(ValidationError, match="positive price"):
            SubmitOrderRequest(pair="ETH_BTC", side=OrderSide.BUY, amount=Decimal("1"))

    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            SubmitOrderRequest(pair="ETH_BTC", side="sell", amount=Decimal("0"), price=Decimal("1"))

    def test_market_order_needs_no_price(self):
        request = SubmitOrderRequest(pair="eth_btc", side="buy", type="market", amount=Decimal("1"))

        assert request.pair == "ETH_BTC"
        assert request.type == OrderType.MARKET

    def test_withdraw_request_requires_address(self):
        with pytest.raises(ValidationError):
            WithdrawRequest(currency="btc", address="", amount=Decimal("1"))

    def test_filter_treats_naive_datetimes_as_utc(self):
        orders_filter = OrdersFilter(pairs=["eth_btc"], start=datetime(2024, 1, 1))

        assert orders_filter.pairs == ["ETH_BTC"]
        assert orders_filter.start.tzinfo == timezone.utc
