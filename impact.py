"""
News impact: an immediate price jump plus a lasting drift/momentum kick.

Weights (see config):
- COMPANY news hits only the named symbol.
- SECTOR news hits every instrument in that sector; crypto coins all count as
  sector "Crypto". Landing on the other asset class it is dampened (ADJACENT).
- MARKET / ECONOMIC news hits everything in its own asset class fully and the
  other class dampened (CROSS).
"""
from typing import Dict, Optional, Tuple

import config
from market import Instrument, MarketBook
from news_engine import NewsEvent

CRYPTO_SECTOR = "Crypto"


def effective_sector(inst: Instrument) -> Optional[str]:
    if inst.kind == "crypto":
        return CRYPTO_SECTOR
    return inst.sector


def impact_factor(event: NewsEvent, inst: Instrument) -> float:
    same_class = event.kind == inst.kind
    if event.type == "COMPANY":
        return event.impact * config.DIRECT_WEIGHT if event.symbol == inst.symbol else 0.0
    if event.type == "SECTOR":
        if event.sector is None or event.sector != effective_sector(inst):
            return 0.0
        return event.impact * (config.DIRECT_WEIGHT if same_class else config.ADJACENT_WEIGHT)
    if event.type in ("MARKET", "ECONOMIC"):
        return event.impact * (config.DIRECT_WEIGHT if same_class else config.CROSS_WEIGHT)
    return 0.0


def shocked_price(price: float, event: NewsEvent, inst: Instrument) -> float:
    return price * (1.0 + impact_factor(event, inst))


def apply_news(event: NewsEvent, book: MarketBook) -> Tuple[Dict[str, float], Dict[str, float]]:
    """
    Compute the price shock for every instrument in `book` and kick its drift/momentum.

    Prices are NOT written; the caller commits the returned updates as one batch
    (so liquidation runs once). Returns (price_updates, applied_factors).
    """
    kicks = config.DRIFT_KICK[book.kind]
    updates: Dict[str, float] = {}
    factors: Dict[str, float] = {}
    for i, inst in enumerate(book.instruments):
        factor = impact_factor(event, inst)
        if factor == 0:
            continue
        updates[inst.symbol] = inst.price * (1.0 + factor)
        book.bias[i] += factor * kicks.get(event.type, 0.0)
        factors[inst.symbol] = factor
    return updates, factors
