"""
Crypto price engine: momentum + Levy-flight noise + mood bias + trend following.

Momentum decays slower than equity drift, so runs last longer and go parabolic.
Noise is heavy-tailed. Prices live in a band around the catalog base price.
"""
import logging
import math
import random
from typing import Deque, Dict, Optional

import config
from market import CatalogEntry, Instrument, MarketBook
from sentiment import FearGreedIndex
from variates import stable_levy

logger = logging.getLogger(__name__)


def evolve_momentum(momentum: float, rng=random) -> float:
    step = rng.uniform(-config.MOMENTUM_STEP, config.MOMENTUM_STEP)
    return (momentum + step) * config.MOMENTUM_DECAY


def mood_bias(mood: FearGreedIndex) -> float:
    if mood.value > config.BULL_THRESHOLD:
        return config.BULL_BIAS
    if mood.value < config.BEAR_THRESHOLD:
        return config.BEAR_BIAS
    return 0.0


def trend_bias(trend: Deque[float]) -> float:
    recent = list(trend)[-config.TREND_LOOKBACK:]
    if not recent:
        return 0.0
    return sum(recent) / len(recent) * config.TREND_FOLLOW_K


def price_band(entry: Optional[CatalogEntry]):
    if entry is None:
        return config.CRYPTO_MIN_PRICE, math.inf
    return entry.base_price * config.CRYPTO_FLOOR_MULT, entry.base_price * config.CRYPTO_CEILING_MULT


def next_price(inst: Instrument, momentum: float, trend: Deque[float], mood: FearGreedIndex,
               entry: Optional[CatalogEntry] = None, rng=random):
    """
    Compute one tick for a single coin.

    Returns (new_price, new_momentum); the % change is pushed onto `trend`.
    """
    momentum = evolve_momentum(momentum, rng)

    volatility = entry.volatility if entry else inst.volatility
    vol = volatility * (1.0 + mood.extreme_factor * config.CRYPTO_EXTREME_VOL) * config.CRYPTO_VOL_SCALE
    noise = stable_levy(config.LEVY_ALPHA, rng) * vol

    pct = momentum + noise + mood_bias(mood) + trend_bias(trend)
    if not math.isfinite(pct) or not math.isfinite(inst.price):
        logger.debug("Non-finite move for %s, keeping %r", inst.symbol, inst.price)
        return inst.price, (momentum if math.isfinite(momentum) else 0.0)
    trend.append(pct)

    floor, ceiling = price_band(entry)
    price = max(floor, min(ceiling, inst.price * (1.0 + pct)))
    return price, momentum


def tick(book: MarketBook, catalog: Dict[str, CatalogEntry], mood: FearGreedIndex,
         rng=random) -> Dict[str, float]:
    """Advance every coin once. Mutates momentum and trend state; returns symbol -> new price."""
    updates: Dict[str, float] = {}
    for i, inst in enumerate(book.instruments):
        price, book.bias[i] = next_price(
            inst, book.bias[i], book.trends[i], mood, catalog.get(inst.symbol), rng
        )
        updates[inst.symbol] = price
    return updates
