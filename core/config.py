"""
Configuration Management Module

This module handles loading, validating, and providing access to application configuration
from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Validates all required settings
- Provides type-safe access to configuration values
- Converts comma-separated strings to lists (pairs, CORS origins)
- Handles optional settings (API credentials) with sensible defaults

Usage:
    from core.config import settings

    # Access configuration values
    print(settings.gateio_market_url)
    print(settings.pairs_list)  # Returns a list of strings
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Application Settings

    This class defines all configuration parameters for the application.
    Values are automatically loaded from environment variables or .env file.

    Attributes:
        gateio_trade_url: Base URL for Gate.io private (trading) REST API
        gateio_market_url: Base URL for Gate.io public market data REST API
        gateio_websocket_url: Gate.io WebSocket endpoint
        gateio_api_key: API key (required for account/order endpoints)
        gateio_secret_key: Secret key (required for account/order endpoints)
        enabled_pairs: Comma-separated pairs tracked by the adapter (e.g., "BTC_USDT,ETH_BTC")
        auto_pair_updates: Refresh the tradable pair list in initialize()
        websocket_enabled: Connect the real-time channel on initialize()
        authenticated_websocket: Sign in on the real-time channel after connecting
        order_page_size: Page size used when querying orders over the real-time channel
        request_timeout: Timeout for HTTP requests in seconds
        environment: Current environment (development, production)
        log_level: Logging level
        app_host: Host address for FastAPI server
        app_port: Port number for FastAPI server
        cors_origins: Comma-separated list of allowed CORS origins
    """

    # ============================================
    # Gate.io API Configuration
    # ============================================

    gateio_trade_url: str = Field(
        default="https://api.gateio.life/api2/1",
        description="Gate.io private REST API base URL"
    )

    gateio_market_url: str = Field(
        default="https://data.gateio.life/api2/1",
        description="Gate.io public market data REST API base URL"
    )

    gateio_websocket_url: str = Field(
        default="wss://ws.gate.io/v3/",
        description="Gate.io WebSocket endpoint"
    )

    gateio_api_key: str = Field(
        default="",
        description="Gate.io API key (required for private endpoints)"
    )

    gateio_secret_key: str = Field(
        default="",
        description="Gate.io secret key (required for private endpoints)"
    )

    # ============================================
    # Supported Markets Configuration
    # ============================================

    enabled_pairs: str = Field(
        default="BTC_USDT,ETH_USDT,ETH_BTC",
        description="Comma-separated list of enabled currency pairs"
    )

    auto_pair_updates: bool = Field(
        default=True,
        description="Refresh the tradable pair list on startup"
    )

    # ============================================
    # Real-time Channel Configuration
    # ============================================

    websocket_enabled: bool = Field(
        default=False,
        description="Connect the Gate.io WebSocket on startup"
    )

    authenticated_websocket: bool = Field(
        default=False,
        description="Authenticate the WebSocket so account/order queries can use it"
    )

    order_page_size: int = Field(
        default=100,
        description="Records requested per page on real-time order queries"
    )

    # ============================================
    # Application Configuration
    # ============================================

    request_timeout: int = Field(
        default=30,
        description="HTTP request timeout in seconds"
    )

    environment: str = Field(
        default="development",
        description="Application environment (development, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    app_host: str = Field(
        default="0.0.0.0",
        description="FastAPI server host address"
    )

    app_port: int = Field(
        default=8000,
        description="FastAPI server port"
    )

    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    # ============================================
    # Pydantic Settings Configuration
    # ============================================

    model_config = SettingsConfigDict(
        # Look for .env file in the project root
        env_file=".env",
        # Ignore extra fields in .env that aren't defined here
        extra="ignore",
        # Case-insensitive environment variable matching
        case_sensitive=False
    )

    # ============================================
    # Custom Properties
    # ============================================

    @property
    def pairs_list(self) -> List[str]:
        """
        Convert comma-separated pairs string to a list.

        Returns:
            List of canonical pair strings (e.g., ["BTC_USDT", "ETH_BTC"])

        Example:
            >>> settings.pairs_list
            ['BTC_USDT', 'ETH_USDT', 'ETH_BTC']
        """
        return [p.strip().upper() for p in self.enabled_pairs.split(",") if p.strip()]

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert comma-separated CORS origins string to a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def has_credentials(self) -> bool:
        """
        Check if API credentials are configured.

        Returns:
            True if both key and secret are set, False otherwise
        """
        return bool(self.gateio_api_key and self.gateio_secret_key)


# ============================================
# Global Settings Instance
# ============================================

# Create a single instance of settings to be imported throughout the application
settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(config: Settings = None) -> None:
    """
    Validate critical configuration settings on application startup.

    Args:
        config: Settings to validate (defaults to the global settings)

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    # Import logger here to avoid circular import
    # (logging.py imports config.py, so we can't import at module level)
    from core.logging import logger

    config = config or settings

    if not config.pairs_list:
        raise ValueError("ENABLED_PAIRS must contain at least one pair")

    for pair in config.pairs_list:
        parts = pair.split("_")
        if len(parts) != 2 or not all(parts):
            raise ValueError(
                f"Pair '{pair}' must be formatted BASE_QUOTE (e.g., BTC_USDT). "
                f"Please update ENABLED_PAIRS in .env"
            )

    if config.order_page_size <= 0:
        raise ValueError(f"Invalid ORDER_PAGE_SIZE: {config.order_page_size}. Must be positive")

    if not (1 <= config.app_port <= 65535):
        raise ValueError(f"Invalid port number: {config.app_port}. Must be between 1 and 65535")

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    if config.authenticated_websocket and not config.has_credentials:
        logger.warning("AUTHENTICATED_WEBSOCKET is set but no API credentials are configured")

    logger.info("Configuration validated successfully")
    logger.info(f"Enabled pairs: {', '.join(config.pairs_list)}")
    logger.info(f"Gate.io market API: {config.gateio_market_url}")
    logger.info(f"Gate.io trade API: {config.gateio_trade_url}")
    logger.info(f"Real-time channel: {'enabled' if config.websocket_enabled else 'disabled'}")
    logger.info(f"Log level: {config.log_level.upper()}")
