"""
Adapter Error Taxonomy

Every failure surfaced by an exchange adapter is one of these kinds. Errors are
raised where they are detected and propagate unchanged to the caller; nothing in
the adapter retries, swallows, or re-tags them.

    ExchangeAdapterError
    ├── TransportError      - REST/WebSocket transport or exchange API failure
    ├── MalformedResponse   - payload missing a field or carrying an unparseable value
    ├── UnrecognizedEnum    - side/type/status code outside the known set
    ├── NotFound            - no current record matches the requested id
    └── NotSupported        - the exchange does not offer the operation

The secondary bases (ValueError, LookupError, NotImplementedError) let callers
that only know the builtin exceptions keep working.
"""

from typing import Any, Optional


class ExchangeAdapterError(Exception):
    """Base class for every adapter error."""

    def __init__(self, message: str, exchange: Optional[str] = None):
        super().__init__(message)
        self.exchange = exchange


class TransportError(ExchangeAdapterError):
    """
    Raised by the request executor or real-time channel.

    Attributes:
        code: HTTP status or exchange error code, when one is known
        response: Raw decoded error payload, when one was received
    """

    def __init__(
        self,
        message: str,
        exchange: Optional[str] = None,
        code: Optional[int] = None,
        response: Any = None
    ):
        super().__init__(message, exchange)
        self.code = code
        self.response = response


class MalformedResponse(ExchangeAdapterError, ValueError):
    """A raw payload lacked an expected field or held an unparseable value."""


class UnrecognizedEnum(ExchangeAdapterError, ValueError):
    """A side, type or status code is not in the known set."""

    def __init__(self, kind: str, value: Any, exchange: Optional[str] = None):
        super().__init__(f"Unrecognized {kind}: {value!r}", exchange)
        self.kind = kind
        self.value = value


class NotFound(ExchangeAdapterError, LookupError):
    """A requested id or key has no matching current record."""


class NotSupported(ExchangeAdapterError, NotImplementedError):
    """The exchange's API does not offer this operation."""

    def __init__(self, operation: str, exchange: Optional[str] = None):
        name = exchange or "this exchange"
        super().__init__(f"{operation} is not supported by {name}", exchange)
        self.operation = operation
