"""
Unit Tests for Exchange Interface and Manager

These tests verify that:
- ExchangeInterface is properly defined as an abstract class
- Optional operations raise NotSupported unless overridden
- ExchangeManager correctly manages exchange instances
- Lifecycle methods work as expected

Run with:
    pytest tests/unit/test_exchange_interface.py -v
"""

from decimal import Decimal

import pytest

from core.exceptions import NotSupported
from core.exchange_interface import ExchangeInterface
from core.exchange_manager import ExchangeManager
from core.schemas import FeeRequest, FeeType
from exchanges.gateio import GateioExchange


# ============================================
# Dummy Exchange for Testing
# ============================================

class DummyExchange(ExchangeInterface):
    """
    Minimal implementation of ExchangeInterface for testing purposes.

    Every required operation is a stub; lifecycle calls are recorded.
    """

    name = "dummy"
    capabilities = {"ticker": True, "fiat_withdrawal": False}

    def __init__(self, healthy=True, fail_initialize=False):
        self.healthy = healthy
        self.fail_initialize = fail_initialize
        self.events = []

    async def refresh_ticker(self, pair, asset="spot"):
        return None

    async def get_ticker(self, pair, asset="spot"):
        return None

    async def refresh_order_book(self, pair, asset="spot"):
        return None

    async def get_order_book(self, pair, asset="spot"):
        return None

    async def refresh_account(self):
        return None

    async def get_account(self):
        return None

    async def submit_order(self, request):
        return None

    async def cancel_order(self, request):
        return None

    async def cancel_all_orders(self, pair_filter=None):
        return None

    async def get_order_info(self, order_id):
        return None

    async def get_active_orders(self, orders_filter=None):
        return []

    async def get_order_history(self, orders_filter=None):
        return []

    async def get_deposit_address(self, currency):
        return "address"

    async def withdraw_crypto(self, currency, address, amount):
        return "reference"

    async def initialize(self):
        if self.fail_initialize:
            raise RuntimeError("cannot connect")
        self.events.append("initialize")

    async def shutdown(self):
        self.events.append("shutdown")

    async def health_check(self):
        return self.healthy


# ============================================
# Tests for ExchangeInterface
# ============================================

class TestExchangeInterface:
    """Test the ExchangeInterface abstract class"""

    def test_cannot_instantiate_abstract_interface(self):
        with pytest.raises(TypeError):
            ExchangeInterface()

    def test_supports_method_returns_correct_values(self):
        exchange = DummyExchange()

        assert exchange.supports("ticker") is True
        assert exchange.supports("fiat_withdrawal") is False
        assert exchange.supports("nonexistent_feature") is False

    @pytest.mark.asyncio
    async def test_optional_operations_raise_not_supported(self):
        exchange = DummyExchange()

        with pytest.raises(NotSupported, match="dummy"):
            await exchange.withdraw_fiat("USD", Decimal("10"), "acct")
        with pytest.raises(NotImplementedError):
            await exchange.modify_order("1", Decimal("1"), Decimal("1"))
        with pytest.raises(NotSupported):
            await exchange.get_fee_by_type(FeeRequest(fee_type=FeeType.OFFLINE_TRADE))

    @pytest.mark.asyncio
    async def test_default_lifecycle(self):
        class Bare(DummyExchange):
            initialize = ExchangeInterface.initialize
            shutdown = ExchangeInterface.shutdown
            health_check = ExchangeInterface.health_check

        exchange = Bare()
        await exchange.initialize()
        await exchange.shutdown()
        assert await exchange.health_check() is True

    def test_gateio_implements_exchange_interface(self, make_exchange):
        assert isinstance(make_exchange(), ExchangeInterface)


# ============================================
# Tests for ExchangeManager
# ============================================

class TestExchangeManager:
    """Test the ExchangeManager registry"""

    def test_default_registry_holds_gateio(self):
        manager = ExchangeManager()

        assert manager.list_exchanges() == ["gateio"]
        assert isinstance(manager.get_exchange("gateio"), GateioExchange)

    def test_get_exchange_case_insensitive(self):
        dummy = DummyExchange()
        manager = ExchangeManager({"dummy": dummy})

        assert manager.get_exchange("DUMMY") is manager.get_exchange("Dummy") is dummy
        assert manager.has_exchange("DUMMY") is True
        assert manager.has_exchange("unknown") is False

    def test_get_exchange_raises_for_unknown(self):
        manager = ExchangeManager({"dummy": DummyExchange()})

        with pytest.raises(ValueError, match="not supported"):
            manager.get_exchange("unknown_exchange")

    def test_length_and_capabilities(self):
        manager = ExchangeManager({"dummy": DummyExchange()})

        assert len(manager) == 1
        assert manager.get_exchange_capabilities("dummy") == {"ticker": True, "fiat_withdrawal": False}
        assert manager.get_exchanges_with_feature("ticker") == ["dummy"]
        assert manager.get_exchanges_with_feature("fiat_withdrawal") == []

    @pytest.mark.asyncio
    async def test_initialize_all_continues_past_failures(self):
        broken = DummyExchange(fail_initialize=True)
        working = DummyExchange()
        manager = ExchangeManager({"broken": broken, "working": working})

        await manager.initialize_all()

        assert working.events == ["initialize"]

    @pytest.mark.asyncio
    async def test_shutdown_all(self):
        dummy = DummyExchange()
        manager = ExchangeManager({"dummy": dummy})

        await manager.shutdown_all()

        assert dummy.events == ["shutdown"]

    @pytest.mark.asyncio
    async def test_health_check_all(self):
        manager = ExchangeManager({"up": DummyExchange(), "down": DummyExchange(healthy=False)})

        assert await manager.health_check_all() == {"up": True, "down": False}
