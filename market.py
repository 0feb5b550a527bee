import json
import logging
import math
import os
import random
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional

import config

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

KINDS = ("equity", "crypto")


# -------------------- Catalog --------------------
@dataclass(frozen=True)
class CatalogEntry:
    symbol: str
    name: str
    base_price: float
    volatility: float
    sector: Optional[str] = None
    description: str = ""


def load_catalog(path: str) -> Dict[str, CatalogEntry]:
    """Read a static catalog JSON file; relative paths resolve against the project root."""
    if not os.path.isabs(path):
        path = os.path.join(BASE_DIR, path)
    with open(path, "r", encoding="utf-8") as f:
        rows = json.load(f)
    return {
        r["symbol"]: CatalogEntry(
            symbol=r["symbol"],
            name=r["name"],
            base_price=float(r["base_price"]),
            volatility=float(r["volatility"]),
            sector=r.get("sector"),
            description=r.get("description", ""),
        )
        for r in rows
    }


# -------------------- Instruments --------------------
@dataclass
class PricePoint:
    timestamp: float
    value: float


def _history(points: Iterable[PricePoint] = ()) -> Deque[PricePoint]:
    return deque(points, maxlen=config.HISTORY_CAPACITY)


@dataclass
class Instrument:
    symbol: str
    name: str
    kind: str                    # "equity" or "crypto"
    price: float
    base_price: float
    open_price: float
    volatility: float
    sector: Optional[str] = None
    history: Deque[PricePoint] = field(default_factory=_history)

    @property
    def change_pct(self) -> float:
        if self.open_price <= 0:
            return 0.0
        return (self.price - self.open_price) / self.open_price * 100.0

    def record(self, price: float, ts: float) -> None:
        self.price = price
        self.history.append(PricePoint(ts, price))

    def to_dict(self) -> Dict:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "kind": self.kind,
            "sector": self.sector,
            "price": self.price,
            "base_price": self.base_price,
            "open_price": self.open_price,
            "change_pct": self.change_pct,
            "volatility": self.volatility,
            "history": [{"timestamp": p.timestamp, "value": p.value} for p in self.history],
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "Instrument":
        return cls(
            symbol=d["symbol"],
            name=d.get("name", d["symbol"]),
            kind=d["kind"],
            price=float(d["price"]),
            base_price=float(d["base_price"]),
            open_price=float(d.get("open_price", d["price"])),
            volatility=float(d.get("volatility", 1.0)),
            sector=d.get("sector"),
            history=_history(PricePoint(float(p["timestamp"]), float(p["value"]))
                             for p in d.get("history", [])),
        )


def instrument_from_catalog(entry: CatalogEntry, kind: str, ts: float) -> Instrument:
    inst = Instrument(
        symbol=entry.symbol,
        name=entry.name,
        kind=kind,
        price=entry.base_price,
        base_price=entry.base_price,
        open_price=entry.base_price,
        volatility=entry.volatility,
        # crypto carries no classification tag
        sector=entry.sector if kind == "equity" else None,
    )
    inst.history.append(PricePoint(ts, entry.base_price))
    return inst


def is_valid_price(price) -> bool:
    return isinstance(price, (int, float)) and math.isfinite(price) and price > 0


# -------------------- Market book --------------------
class MarketBook:
    """
    All instruments of one asset class plus their per-symbol scratch state.

    `bias[i]` is the drift (equity) or momentum (crypto) of instruments[i];
    `trends[i]` holds the last few per-tick % changes (crypto only). Both are
    sized once when the book is built and never persisted.
    """

    def __init__(self, kind: str, instruments: List[Instrument], rng=random):
        if kind not in KINDS:
            raise ValueError(f"unknown asset class: {kind}")
        self.kind = kind
        self.instruments = list(instruments)
        self.index: Dict[str, int] = {inst.symbol: i for i, inst in enumerate(self.instruments)}
        seed = config.DRIFT_SEED if kind == "equity" else config.MOMENTUM_SEED
        self.bias: List[float] = [(rng.random() - 0.5) * seed for _ in self.instruments]
        self.trends: List[Deque[float]] = [
            deque(maxlen=config.TREND_WINDOW) for _ in self.instruments
        ]

    @classmethod
    def seed(cls, kind: str, catalog: Dict[str, CatalogEntry], rng=random,
             now: Optional[float] = None) -> "MarketBook":
        ts = time.time() if now is None else now
        return cls(kind, [instrument_from_catalog(e, kind, ts) for e in catalog.values()], rng)

    def __len__(self) -> int:
        return len(self.instruments)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self.index

    def get(self, symbol: str) -> Optional[Instrument]:
        i = self.index.get(symbol)
        return None if i is None else self.instruments[i]

    def prices(self) -> Dict[str, float]:
        return {inst.symbol: inst.price for inst in self.instruments}

    def apply_prices(self, updates: Dict[str, float], now: Optional[float] = None) -> List[float]:
        """
        Write new prices and append them to history.

        Unknown symbols are ignored; a non-finite or non-positive price keeps the
        previous one. Returns the realized % change of every updated instrument.
        """
        ts = time.time() if now is None else now
        realized = []
        for symbol, price in updates.items():
            inst = self.get(symbol)
            if inst is None:
                continue
            prev = inst.price
            if not is_valid_price(price):
                logger.debug("Rejected degenerate price %r for %s", price, symbol)
                price = prev
            inst.record(float(price), ts)
            realized.append((price - prev) / prev if prev > 0 else 0.0)
        return realized

    def reset_session(self) -> None:
        for inst in self.instruments:
            inst.open_price = inst.price

    def to_list(self) -> List[Dict]:
        return [inst.to_dict() for inst in self.instruments]

    @classmethod
    def from_list(cls, kind: str, rows: List[Dict], rng=random) -> "MarketBook":
        return cls(kind, [Instrument.from_dict(r) for r in rows], rng)


def ensure_valid(book: Optional[MarketBook], kind: str, catalog: Dict[str, CatalogEntry],
                 rng=random, now: Optional[float] = None) -> MarketBook:
    """Return `book` if it is consistent with the catalog, otherwise a freshly seeded one."""
    problem = None
    if book is None or len(book) == 0:
        problem = "empty"
    elif set(book.index) != set(catalog):
        problem = "symbols differ from catalog"
    else:
        for inst in book.instruments:
            if not is_valid_price(inst.price) or not inst.history:
                problem = f"corrupt instrument {inst.symbol}"
                break
    if problem is None:
        return book
    logger.warning("Re-seeding %s book: %s", kind, problem)
    return MarketBook.seed(kind, catalog, rng, now)
