"""
FastAPI Application - Exchange Adapter API

Read-only HTTP access to the canonical values produced by the exchange
adapters.

Supported Exchanges:
    - Gate.io (spot)

Features:
    - Tickers and order books (cached, refreshed on miss or on demand)
    - Account balances
    - Open orders and executed-trade history

Usage:
    uvicorn app.main:app --reload --host 0.0.0.0 --port 8000

Docs:
    - Swagger: http://localhost:8000/docs
    - ReDoc: http://localhost:8000/redoc
"""

from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import settings, validate_configuration
from core.exceptions import (
    ExchangeAdapterError,
    MalformedResponse,
    NotFound,
    NotSupported,
    TransportError,
    UnrecognizedEnum,
)
from core.exchange_interface import ExchangeInterface
from core.exchange_manager import ExchangeManager
from core.logging import logger
from core.schemas import AccountSnapshot, OrderBookSnapshot, OrderRecord, OrderSide, OrdersFilter, Ticker


# ============================================
# Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info("=== Application Starting ===")
    validate_configuration()
    await manager.initialize_all()
    logger.info("=== Started Successfully ===")

    yield

    logger.info("=== Shutting Down ===")
    await manager.shutdown_all()
    logger.info("=== Shutdown Complete ===")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Gatebridge Exchange Adapter API",
    description=(
        "Canonical market and account data from cryptocurrency exchanges.\n\n"
        "**Supported Exchanges:** Gate.io\n\n"
        "## REST Endpoints\n"
        "- `GET /{exchange}/ticker/{pair}` - Latest ticker (`?refresh=true` to bypass the cache)\n"
        "- `GET /{exchange}/orderbook/{pair}` - Order book snapshot\n"
        "- `GET /{exchange}/pairs` - Tradable pairs listed by the exchange\n"
        "- `GET /{exchange}/account` - Balances\n"
        "- `GET /{exchange}/orders/open` - Open orders (`?pair=ETH_BTC&side=buy`)\n"
        "- `GET /{exchange}/orders/history` - Executed trades\n"
        "- `GET /exchanges` - List supported exchanges\n"
        "- `GET /health` - Health check\n\n"
        "Pairs use the canonical `BASE_QUOTE` form, e.g. `ETH_BTC`."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

manager = ExchangeManager()  # Global exchange manager


def _exchange(name: str) -> ExchangeInterface:
    try:
        return manager.get_exchange(name)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ============================================
# System Endpoints
# ============================================

@app.get("/", tags=["System"])
async def root():
    """API information and available exchanges."""
    return {
        "name": "Gatebridge Exchange Adapter API",
        "version": "1.0.0",
        "status": "operational",
        "docs": "/docs",
        "exchanges": manager.list_exchanges()
    }


@app.get("/health", tags=["System"])
async def health_check():
    """Health check - tests connectivity to all exchanges."""
    health = await manager.health_check_all()
    return {
        "status": "healthy" if all(health.values()) else "degraded",
        "exchanges": health
    }


@app.get("/exchanges", tags=["System"])
async def list_exchanges():
    """List all supported exchanges and their capabilities."""
    return {
        "exchanges": [
            {
                "name": name,
                "capabilities": manager.get_exchange_capabilities(name)
            }
            for name in manager.list_exchanges()
        ]
    }


# ============================================
# Market Data Endpoints
# ============================================

@app.get("/{exchange}/ticker/{pair}", response_model=Ticker, tags=["Market Data"])
async def get_ticker(
    exchange: str,
    pair: str,
    refresh: bool = Query(default=False, description="Fetch from the exchange instead of the cache")
):
    """
    Get the latest ticker for a pair.

    Examples:
        GET /gateio/ticker/ETH_BTC
        GET /gateio/ticker/eth_btc?refresh=true
    """
    ex = _exchange(exchange)
    if refresh:
        return await ex.refresh_ticker(pair)
    return await ex.get_ticker(pair)


@app.get("/{exchange}/orderbook/{pair}", response_model=OrderBookSnapshot, tags=["Market Data"])
async def get_order_book(
    exchange: str,
    pair: str,
    refresh: bool = Query(default=False, description="Fetch from the exchange instead of the cache")
):
    """
    Get the order book for a pair.

    Example:
        GET /gateio/orderbook/BTC_USDT
    """
    ex = _exchange(exchange)
    if refresh:
        return await ex.refresh_order_book(pair)
    return await ex.get_order_book(pair)


@app.get("/{exchange}/pairs", response_model=List[str], tags=["Market Data"])
async def get_pairs(exchange: str):
    """List every pair the exchange trades."""
    ex = _exchange(exchange)
    fetch = getattr(ex, "fetch_tradable_pairs", None)
    if fetch is None:
        raise HTTPException(status_code=501, detail=f"{exchange} does not list tradable pairs")
    return await fetch()


# ============================================
# Account Endpoints
# ============================================

@app.get("/{exchange}/account", response_model=AccountSnapshot, tags=["Account"])
async def get_account(
    exchange: str,
    refresh: bool = Query(default=False, description="Fetch from the exchange instead of the cache")
):
    """Get account balances."""
    ex = _exchange(exchange)
    if refresh:
        return await ex.refresh_account()
    return await ex.get_account()


@app.get("/{exchange}/orders/open", response_model=List[OrderRecord], tags=["Account"])
async def get_open_orders(
    exchange: str,
    pair: Optional[List[str]] = Query(default=None, description="Restrict to these pairs"),
    side: Optional[OrderSide] = Query(default=None, description="buy or sell")
):
    """
    Get open orders.

    Example:
        GET /gateio/orders/open?pair=ETH_BTC&side=buy
    """
    ex = _exchange(exchange)
    return await ex.get_active_orders(OrdersFilter(pairs=pair or [], side=side))


@app.get("/{exchange}/orders/history", response_model=List[OrderRecord], tags=["Account"])
async def get_order_history(
    exchange: str,
    pair: Optional[List[str]] = Query(default=None, description="Defaults to all enabled pairs"),
    side: Optional[OrderSide] = Query(default=None, description="buy or sell")
):
    """Get executed trades."""
    ex = _exchange(exchange)
    return await ex.get_order_history(OrdersFilter(pairs=pair or [], side=side))


# ============================================
# Error Handlers
# ============================================

_ERROR_STATUS = [
    (NotFound, 404),
    (NotSupported, 501),
    (MalformedResponse, 502),
    (UnrecognizedEnum, 502),
    (TransportError, 503),
]


@app.exception_handler(ExchangeAdapterError)
async def adapter_error_handler(request: Request, exc: ExchangeAdapterError):
    """Map adapter errors to HTTP statuses."""
    status_code = next((code for kind, code in _ERROR_STATUS if isinstance(exc, kind)), 500)
    if status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__, "exchange": exc.exchange}
    )
