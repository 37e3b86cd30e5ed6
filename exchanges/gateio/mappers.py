"""
Gate.io Raw Response Mapper

Pure translation of decoded market data payloads into canonical values. The
only side effect is the `publish` callback handed in by the caller; no I/O,
no logging.
"""

from typing import Any, Callable, Iterable, List

from core.schemas import OrderBookSnapshot, Ticker
from core.utils.time import current_utc_datetime
from exchanges.gateio.models import RawOrderBook, RawTicker, construct, decode, decode_tickers


def map_tickers(
    payload: Any,
    enabled_pairs: Iterable[str],
    exchange: str,
    asset: str,
    publish: Callable[[Ticker], None]
) -> List[Ticker]:
    """
    Translate a GET /tickers payload into one Ticker per enabled pair.

    Pair matching is case-insensitive, since the exchange's key casing is not
    stable. Enabled pairs with no raw counterpart are skipped (the exchange may
    not list them yet). Only matched entries are validated, so a malformed
    entry for a pair nobody enabled is ignored. Each Ticker is published as
    soon as it is built.

    Args:
        payload: Raw tickers map, e.g. {"eth_btc": {"last": "0.05", ...}}
        enabled_pairs: Canonical pairs to extract
        exchange: Exchange name stamped on each Ticker
        asset: Market segment stamped on each Ticker
        publish: Called with each Ticker in production order

    Returns:
        List[Ticker]: The produced tickers, in production order

    Raises:
        MalformedResponse: If the payload or any matched entry is malformed
    """
    raw = decode_tickers(payload)
    produced = []
    timestamp = current_utc_datetime()

    for pair in enabled_pairs:
        wanted = pair.casefold()
        for key, value in raw.items():
            if key.casefold() != wanted:
                continue
            entry = decode(RawTicker, value, f"ticker {key}")
            ticker = construct(
                Ticker,
                f"ticker {key}",
                exchange=exchange,
                pair=pair,
                asset=asset,
                timestamp=timestamp,
                last=entry.last,
                high=entry.high,
                low=entry.low,
                open=entry.open,
                close=entry.close,
                volume=entry.base_volume,
                quote_volume=entry.quote_volume,
            )
            publish(ticker)
            produced.append(ticker)

    return produced


def map_order_book(payload: Any, exchange: str, pair: str, asset: str) -> OrderBookSnapshot:
    """
    Translate a GET /orderBook payload into an OrderBookSnapshot.

    Levels are copied verbatim: no sorting, deduplication or depth check.
    The caller publishes the finished snapshot.

    Raises:
        MalformedResponse: If a level is not a [price, amount] pair of
            non-negative numbers
    """
    raw = decode(RawOrderBook, payload, "order book")

    return construct(
        OrderBookSnapshot,
        f"order book {pair}",
        exchange=exchange,
        pair=pair,
        asset=asset,
        timestamp=current_utc_datetime(),
        bids=[{"price": price, "amount": amount} for price, amount in raw.bids],
        asks=[{"price": price, "amount": amount} for price, amount in raw.asks],
    )
