"""
Gate.io Fee Estimates

Trade fees come from the per-pair percentage published by GET /marketinfo.
Without API credentials the adapter falls back to a flat offline rate.
Withdrawal fees are a static table of Gate.io's published per-currency fees.
"""

from decimal import Decimal
from typing import Any, Dict

from core.exceptions import NotFound
from exchanges.gateio.models import RawMarketInfo, RawPairInfo, decode

# Flat taker rate used when the per-pair fee cannot be requested
OFFLINE_TRADE_FEE_RATE = Decimal("0.002")

WITHDRAWAL_FEES: Dict[str, Decimal] = {
    "USDT": Decimal("10"),
    "BTC": Decimal("0.002"),
    "ETH": Decimal("0.003"),
    "LTC": Decimal("0.002"),
    "BCH": Decimal("0.0006"),
    "ETC": Decimal("0.01"),
    "BTG": Decimal("0.002"),
    "QTUM": Decimal("0.1"),
    "NEO": Decimal("0"),
    "GAS": Decimal("0.02"),
    "ZEC": Decimal("0.001"),
    "XRP": Decimal("1"),
    "XMR": Decimal("0.1"),
    "DOGE": Decimal("20"),
    "DASH": Decimal("0.02"),
    "EOS": Decimal("0.1"),
    "XLM": Decimal("0.01"),
}


def pair_fee_percent(payload: Any, pair: str) -> Decimal:
    """
    Find `pair`'s trade fee percentage in a GET /marketinfo payload.

    Raises:
        MalformedResponse: If the payload or the matched entry is malformed
        NotFound: If the pair is not listed or has no fee
    """
    info = decode(RawMarketInfo, payload, "market info")
    wanted = pair.casefold()

    for entry in info.pairs:
        for key, value in entry.items():
            if key.casefold() != wanted:
                continue
            fee = decode(RawPairInfo, value, f"market info {key}").fee
            if fee > 0:
                return fee

    raise NotFound(f"No fee data for {pair}", "gateio")


def trade_fee(fee_percent: Decimal, price: Decimal, amount: Decimal) -> Decimal:
    return fee_percent / 100 * price * amount


def offline_trade_fee(price: Decimal, amount: Decimal) -> Decimal:
    return OFFLINE_TRADE_FEE_RATE * price * amount


def withdrawal_fee(currency: str) -> Decimal:
    """Unlisted currencies estimate to zero."""
    return WITHDRAWAL_FEES.get(currency.upper(), Decimal("0"))
