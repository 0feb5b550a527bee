"""
Equity price engine.

Each tick a stock moves by:  sentiment bias * sector beta + gaussian noise + drift

- Drift is a hidden per-stock trend that random-walks and decays toward zero,
  so trends persist for a while and then turn. News kicks it.
- Noise volatility grows at both sentiment extremes (panic and euphoria).
- A circuit breaker caps any single tick, then the floor/ceiling clamps apply.
  Hitting either one bends the drift back toward the middle.
"""
import logging
import math
import random
from typing import Dict, Optional

import config
from macro import MacroState
from market import CatalogEntry, Instrument, MarketBook
from sentiment import FearGreedIndex
from variates import standard_normal

logger = logging.getLogger(__name__)


def sector_beta(sector: Optional[str]) -> float:
    return config.SECTOR_BETA.get(sector, config.DEFAULT_BETA)


def evolve_drift(drift: float, rng=random) -> float:
    return (drift + (rng.random() - 0.5) * config.DRIFT_STEP) * config.DRIFT_DECAY


def next_price(inst: Instrument, drift: float, mood: FearGreedIndex, macro: MacroState,
               entry: Optional[CatalogEntry] = None, rng=random):
    """
    Compute one tick for a single stock.

    Returns (new_price, new_drift). The drift passed in is evolved first.
    """
    drift = evolve_drift(drift, rng)

    volatility = entry.volatility if entry else inst.volatility
    base = entry.base_price if entry else inst.base_price

    vol = volatility * (config.EQUITY_VOL_BASE + mood.extreme_factor * config.EQUITY_VOL_EXTREME)
    noise = standard_normal(rng) * vol
    pct = mood.bias * sector_beta(inst.sector) + noise + drift
    if not math.isfinite(pct) or not math.isfinite(inst.price):
        logger.debug("Non-finite move for %s, keeping %r", inst.symbol, inst.price)
        return inst.price, (drift if math.isfinite(drift) else 0.0)

    # circuit breaker
    pct = max(-config.CIRCUIT_BREAKER_PCT, min(config.CIRCUIT_BREAKER_PCT, pct))
    price = inst.price * (1.0 + pct)

    floor = base * config.EQUITY_FLOOR_MULT
    ceiling = base * macro.ceiling_multiplier()
    if price < floor:
        price = floor
        drift = abs(drift) * 0.5 + config.BOUNCE_DRIFT
    elif price > ceiling:
        price = ceiling
        drift = -(abs(drift) * 0.5 + config.BOUNCE_DRIFT)

    price = max(config.MIN_PRICE, min(config.MAX_PRICE, price))
    return price, drift


def tick(book: MarketBook, catalog: Dict[str, CatalogEntry], mood: FearGreedIndex,
         macro: MacroState, rng=random) -> Dict[str, float]:
    """Advance every stock in the book once. Mutates drift; returns symbol -> new price."""
    updates: Dict[str, float] = {}
    for i, inst in enumerate(book.instruments):
        price, book.bias[i] = next_price(
            inst, book.bias[i], mood, macro, catalog.get(inst.symbol), rng
        )
        updates[inst.symbol] = price
    return updates
