"""
Core Package

Contains the exchange-agnostic layer:
- ExchangeInterface: Abstract base class every exchange adapter implements
- ExchangeManager: Registry of adapters by name
- Schemas: Canonical pydantic models (Ticker, OrderBookSnapshot, AccountSnapshot, OrderRecord, ...)
- Exceptions: The adapter error taxonomy

Callers depend on this layer only, never on a specific exchange's payloads.
"""
