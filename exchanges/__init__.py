"""
Exchange Adapters Package

Each exchange has its own subpackage with:
- api_client.py: REST request executor
- ws_client.py: Real-time channel
- __init__.py: The adapter class implementing ExchangeInterface

Adapters only emit the canonical values defined in core.schemas.
"""
