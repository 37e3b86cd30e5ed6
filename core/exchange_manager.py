"""
Exchange Manager: Registry for Exchange Adapters

This module provides a registry of exchange adapters keyed by name, plus
lifecycle management (initialize/shutdown/health) for all of them at once.

API routes look adapters up by name, so adding an exchange means registering
one more ExchangeInterface subclass here; no route changes.

Example Usage:
    manager = ExchangeManager()
    await manager.initialize_all()

    @app.get("/{exchange}/ticker/{pair}")
    async def get_ticker(exchange: str, pair: str):
        return await manager.get_exchange(exchange).get_ticker(pair)
"""

from typing import Dict, List, Optional

from core.exchange_interface import ExchangeInterface
from core.logging import logger


class ExchangeManager:
    """
    Registry of exchange adapters.

    Attributes:
        exchanges: Exchange name → adapter instance, e.g. {"gateio": GateioExchange()}

    Example:
        >>> manager = ExchangeManager()
        >>> await manager.initialize_all()
        >>> gateio = manager.get_exchange("gateio")
        >>> ticker = await gateio.get_ticker("ETH_BTC")
        >>> await manager.shutdown_all()
    """

    def __init__(self, exchanges: Optional[Dict[str, ExchangeInterface]] = None):
        """
        Register adapters. With no argument, every built-in adapter is created.

        Adapters are created but not initialized here; call initialize_all().
        """
        if exchanges is None:
            # Import here to avoid circular imports
            from exchanges.gateio import GateioExchange

            exchanges = {"gateio": GateioExchange()}

        self.exchanges: Dict[str, ExchangeInterface] = {
            name.lower(): exchange for name, exchange in exchanges.items()
        }

        logger.info(f"ExchangeManager initialized with {len(self.exchanges)} exchange(s): {', '.join(self.exchanges.keys())}")

    # ============================================
    # Exchange Retrieval Methods
    # ============================================

    def get_exchange(self, name: str) -> ExchangeInterface:
        """
        Get an exchange adapter by name (case-insensitive).

        Raises:
            ValueError: If the exchange is not registered
        """
        name = name.lower()

        if name not in self.exchanges:
            available = ", ".join(self.exchanges.keys())
            logger.error(f"Exchange '{name}' not found. Available: {available}")
            raise ValueError(
                f"Exchange '{name}' is not supported. "
                f"Available exchanges: {available}"
            )

        return self.exchanges[name]

    def has_exchange(self, name: str) -> bool:
        return name.lower() in self.exchanges

    def list_exchanges(self) -> List[str]:
        return list(self.exchanges.keys())

    # ============================================
    # Lifecycle Management
    # ============================================

    async def initialize_all(self) -> None:
        """
        Initialize every registered exchange.

        A failing exchange is logged and skipped so the others still start.
        """
        logger.info("Initializing all exchanges...")

        for name, exchange in self.exchanges.items():
            try:
                await exchange.initialize()
                logger.info(f"✓ {name} initialized successfully")
            except Exception as e:
                logger.error(f"✗ Failed to initialize {name}: {e}")

        logger.info("All exchanges initialized")

    async def shutdown_all(self) -> None:
        """Shut down every registered exchange, continuing past failures."""
        logger.info("Shutting down all exchanges...")

        for name, exchange in self.exchanges.items():
            try:
                await exchange.shutdown()
                logger.info(f"✓ {name} shut down successfully")
            except Exception as e:
                logger.error(f"✗ Error shutting down {name}: {e}")

        logger.info("All exchanges shut down")

    # ============================================
    # Health Check Methods
    # ============================================

    async def health_check_all(self) -> Dict[str, bool]:
        """
        Check health status of all exchanges.

        Returns:
            Dict[str, bool]: Exchange name → True if reachable

        Example:
            >>> await manager.health_check_all()
            {'gateio': True}
        """
        health_status = {}
        for name, exchange in self.exchanges.items():
            try:
                health_status[name] = await exchange.health_check()
            except Exception as e:
                logger.error(f"Health check failed for {name}: {e}")
                health_status[name] = False

        return health_status

    # ============================================
    # Capability Queries
    # ============================================

    def get_exchanges_with_feature(self, feature: str) -> List[str]:
        """
        Names of exchanges that support a feature.

        Example:
            >>> manager.get_exchanges_with_feature("fiat_withdrawal")
            []
        """
        return [
            name for name, exchange in self.exchanges.items()
            if exchange.supports(feature)
        ]

    def get_exchange_capabilities(self, name: str) -> Dict[str, bool]:
        return self.get_exchange(name).capabilities.copy()

    def __repr__(self) -> str:
        return f"<ExchangeManager(exchanges={list(self.exchanges.keys())})>"

    def __len__(self) -> int:
        return len(self.exchanges)
