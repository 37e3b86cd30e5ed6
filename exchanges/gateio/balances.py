"""
Gate.io Balance Reconciler

Gate.io reports balances in two shapes:

    REST (POST /private/balances)
        {"available": {"BTC": "1.0", "ETH": "2.0"}, "locked": {"BTC": "0.5"}}
        Two independently keyed maps; a currency may appear in only one.

    WebSocket (balance.query)
        {"BTC": {"available": "1.0", "freeze": "0.5"}}

Both are merged into one Balance per currency with total = available + locked
and hold = locked. Amounts are parsed strictly: a single unparseable amount
fails the whole reconciliation, since acting on partial balances risks
over-trading.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping

from core.exceptions import MalformedResponse
from core.schemas import Balance
from exchanges.gateio.models import RawBalances, construct, decode, decode_realtime_balances


def parse_amount(currency: str, value: Any) -> Decimal:
    """
    Parse a raw amount into a Decimal.

    Raises:
        MalformedResponse: If the value is not a finite number
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        raise MalformedResponse(f"Non-numeric amount for {currency}: {value!r}", "gateio")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise MalformedResponse(f"Non-numeric amount for {currency}: {value!r}", "gateio")
    if not amount.is_finite():
        raise MalformedResponse(f"Non-finite amount for {currency}: {value!r}", "gateio")
    return amount


def reconcile_balances(
    locked: Mapping[str, Any],
    available: Mapping[str, Any]
) -> Dict[str, Balance]:
    """
    Merge locked and available amounts into one Balance per currency.

    1. Every locked currency starts with hold = total = locked amount.
    2. Every available currency either completes an existing record
       (total = hold + available) or creates one with hold = 0.

    Every currency in either input appears exactly once in the output.
    Currency codes are compared uppercased.

    Args:
        locked: currency → locked amount (may be empty)
        available: currency → available amount (may be empty)

    Returns:
        Dict[str, Balance]: Keyed by uppercase currency code

    Raises:
        MalformedResponse: If any amount is non-numeric, or a resulting
            balance would break total >= hold >= 0

    Example:
        >>> reconcile_balances({"BTC": "0.5"}, {"BTC": "1.0", "ETH": "2.0"})
        {'BTC': Balance(currency='BTC', total=Decimal('1.5'), hold=Decimal('0.5')),
         'ETH': Balance(currency='ETH', total=Decimal('2.0'), hold=Decimal('0'))}
    """
    # currency -> [hold, total]
    merged: Dict[str, list] = {}

    for currency, raw_amount in (locked or {}).items():
        code = currency.upper()
        amount = parse_amount(code, raw_amount)
        merged[code] = [amount, amount]

    for currency, raw_amount in (available or {}).items():
        code = currency.upper()
        amount = parse_amount(code, raw_amount)
        if code in merged:
            merged[code][1] = merged[code][0] + amount
        else:
            merged[code] = [Decimal("0"), amount]

    return {
        code: construct(Balance, f"balance {code}", currency=code, hold=hold, total=total)
        for code, (hold, total) in merged.items()
    }


def balances_from_rest(payload: Any) -> Dict[str, Balance]:
    """Decode a REST balances payload and reconcile it."""
    raw = decode(RawBalances, payload, "balances")
    return reconcile_balances(raw.locked, raw.available)


def balances_from_realtime(payload: Any) -> Dict[str, Balance]:
    """
    Decode a WebSocket balance.query result.

    Each entry already carries both views, so total = available + freeze and
    hold = freeze.
    """
    raw = decode_realtime_balances(payload)
    balances = {}

    for currency, entry in raw.items():
        code = currency.upper()
        freeze = parse_amount(code, entry.freeze)
        available = parse_amount(code, entry.available)
        balances[code] = construct(
            Balance,
            f"balance {code}",
            currency=code,
            hold=freeze,
            total=available + freeze,
        )

    return balances
