import json
import os
import random
import time
import uuid
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Optional

import config
from market import BASE_DIR, Instrument

NEWS_TYPES = ("COMPANY", "SECTOR", "MARKET", "ECONOMIC")
SEVERITIES = ("LOW", "MEDIUM", "HIGH")
SUGGESTIONS = ("BUY", "SELL", "HOLD")


@dataclass(frozen=True)
class NewsEvent:
    id: str
    timestamp: float
    type: str
    severity: str
    headline: str
    impact: float
    kind: str = "equity"            # asset class the story is about
    symbol: Optional[str] = None
    sector: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class NewsTemplates:
    company: Dict[str, List[str]]
    sector: Dict[str, List[str]]
    market: List[Dict]
    economic: List[Dict]


def load_templates(path: str) -> NewsTemplates:
    if not os.path.isabs(path):
        path = os.path.join(BASE_DIR, path)
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return NewsTemplates(
        company=raw.get("company", {}),
        sector=raw.get("sector", {}),
        market=raw.get("market", []),
        economic=raw.get("economic", []),
    )


def _suggest(impact: float, threshold: float) -> str:
    if impact > threshold:
        return "BUY"
    if impact < -threshold:
        return "SELL"
    return "HOLD"


def _signed(base: float, spread: float, positive_prob: float, rng) -> float:
    magnitude = base + rng.random() * spread
    return magnitude if rng.random() < positive_prob else -magnitude


class NewsGenerator:
    """
    Probabilistic headline generator for one asset class.

    Category mix: company 40%, sector 25%, market 20%, economic 15%.
    A poll only fires once `min_interval` seconds have passed since the last
    event, and then only with `max_probability`.
    """

    def __init__(self, templates: NewsTemplates, kind: str = "equity",
                 min_interval: float = config.NEWS_MIN_INTERVAL,
                 max_probability: float = config.NEWS_MAX_FIRE_PROBABILITY,
                 fixed_sector: Optional[str] = None):
        self.templates = templates
        self.kind = kind
        self.min_interval = min_interval
        self.max_probability = max_probability
        self.fixed_sector = fixed_sector

    def interval_passed(self, last_fire: float, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return now - last_fire >= self.min_interval

    def should_fire(self, last_fire: float, now: Optional[float] = None, rng=random) -> bool:
        if not self.interval_passed(last_fire, now):
            return False
        return rng.random() < self.max_probability

    def generate(self, instruments: Iterable[Instrument], now: Optional[float] = None,
                 rng=random) -> Optional[NewsEvent]:
        ts = time.time() if now is None else now
        roll = rng.random()
        category = config.NEWS_CATEGORY_THRESHOLDS[-1][1]
        for threshold, name in config.NEWS_CATEGORY_THRESHOLDS:
            if roll < threshold:
                category = name
                break

        if category == "COMPANY":
            fields = self._company(instruments, rng)
        elif category == "SECTOR":
            fields = self._sector(rng)
        else:
            fields = self._fixed(category, rng)
        if fields is None:
            return None

        impact = max(-config.MAX_NEWS_IMPACT, min(config.MAX_NEWS_IMPACT, fields.pop("impact")))
        return NewsEvent(
            id=f"news-{uuid.uuid4().hex[:12]}",
            timestamp=ts,
            type=category,
            impact=impact,
            kind=self.kind,
            **fields,
        )

    def _company(self, instruments, rng) -> Optional[Dict]:
        eligible = [i for i in instruments if self.templates.company.get(i.symbol)]
        if not eligible:
            return None
        inst = rng.choice(eligible)
        base, spread = config.COMPANY_IMPACT
        impact = _signed(base, spread, config.COMPANY_POSITIVE_PROB, rng)
        if abs(impact) > config.COMPANY_HIGH_SEVERITY:
            severity = "HIGH"
        elif abs(impact) > config.COMPANY_MEDIUM_SEVERITY:
            severity = "MEDIUM"
        else:
            severity = "LOW"
        return {
            "headline": rng.choice(self.templates.company[inst.symbol]),
            "symbol": inst.symbol,
            "severity": severity,
            "impact": impact,
            "suggestion": _suggest(impact, config.COMPANY_SUGGEST),
        }

    def _sector(self, rng) -> Optional[Dict]:
        if self.fixed_sector:
            sector = self.fixed_sector
        else:
            sector = rng.choice(sorted(self.templates.sector))
        base, spread = config.SECTOR_IMPACT
        impact = _signed(base, spread, config.SECTOR_POSITIVE_PROB, rng)
        return {
            "headline": rng.choice(self.templates.sector[sector]),
            "sector": sector,
            "severity": "MEDIUM",
            "impact": impact,
            "suggestion": _suggest(impact, config.SECTOR_SUGGEST),
        }

    def _fixed(self, category, rng) -> Dict:
        pool = self.templates.market if category == "MARKET" else self.templates.economic
        item = rng.choice(pool)
        impact = float(item["impact"])
        return {
            "headline": item["headline"],
            "severity": "HIGH" if abs(impact) > config.FIXED_HIGH_SEVERITY else "MEDIUM",
            "impact": impact,
        }


def equity_generator(templates: Optional[NewsTemplates] = None) -> NewsGenerator:
    return NewsGenerator(templates or load_templates(config.STOCK_NEWS_FILE), kind="equity",
                         min_interval=config.NEWS_MIN_INTERVAL)


def crypto_generator(templates: Optional[NewsTemplates] = None) -> NewsGenerator:
    return NewsGenerator(templates or load_templates(config.CRYPTO_NEWS_FILE), kind="crypto",
                         min_interval=config.CRYPTO_NEWS_MIN_INTERVAL, fixed_sector="Crypto")
