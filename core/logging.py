"""
Unified Logging Configuration

This module sets up a centralized logging system for the entire application.
All modules should import and use the logger from this module instead of
using print() statements.

The adapter core (mappers, reconciler, normalizer, paginator, source selector)
never logs. Logging happens at the edges: the transports and the exchange
façade, which report request flow and skipped data but never swallow errors.

Usage:
    from core.logging import get_logger

    logger = get_logger(__name__)
    logger.debug("Fetched 3 tickers")

Configuration:
    Log level is controlled by the LOG_LEVEL setting in .env file.
"""

import logging
import sys
from typing import Optional


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include logger name in log messages

    Returns:
        logging.Logger: Configured "gatebridge" logger

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Adapter started")
        2024-01-01 12:00:00 [INFO] gatebridge: Adapter started
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s:")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger("gatebridge")
    logger.setLevel(level)

    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from core.config import settings
    log_level = settings.log_level
except ImportError:
    log_level = "INFO"

logger = setup_logging(log_level=log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child of the project logger for a specific module.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: e.g. "gatebridge.exchanges.gateio.api_client"
    """
    return logging.getLogger(f"gatebridge.{name}")


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(exchange: str, endpoint: str, params: dict = None, authenticated: bool = False) -> None:
    """
    Log a REST request with consistent formatting.

    Private requests never have their parameters logged, since they can carry
    withdrawal addresses and amounts.

    Example:
        >>> log_api_request("gateio", "orderBook/eth_btc")
        [DEBUG] API Request: gateio orderBook/eth_btc
    """
    if params and not authenticated:
        logger.debug(f"API Request: {exchange} {endpoint} | Params: {params}")
    else:
        logger.debug(f"API Request: {exchange} {endpoint}{' (private)' if authenticated else ''}")


def log_api_response(exchange: str, endpoint: str, status: int, response_time: float = None) -> None:
    """
    Log a REST response with status and timing information.

    Example:
        >>> log_api_response("gateio", "tickers", 200, 0.342)
        [DEBUG] API Response: gateio tickers | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {exchange} {endpoint} | Status: {status}{time_str}")


def log_websocket_event(exchange: str, event: str, method: str = None, details: str = None) -> None:
    """
    Log a WebSocket event with consistent formatting.

    Args:
        exchange: Exchange name
        event: Event type (e.g., "connected", "authenticated", "closed", "error")
        method: RPC method involved (optional)
        details: Additional details (optional)

    Example:
        >>> log_websocket_event("gateio", "error", "order.query", "Connection reset")
        [ERROR] WebSocket: gateio error | Method: order.query | Connection reset
    """
    method_str = f" | Method: {method}" if method else ""
    details_str = f" | {details}" if details else ""

    level = logging.ERROR if event == "error" else logging.INFO
    logger.log(level, f"WebSocket: {exchange} {event}{method_str}{details_str}")
