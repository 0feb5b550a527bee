from dataclasses import dataclass
from typing import Dict, Sequence

import config


def _clamp_index(x: float) -> float:
    return max(0.0, min(100.0, x))


@dataclass
class FearGreedIndex:
    """
    Fear & Greed index for one asset class (0 = extreme fear, 100 = extreme greed).

    Fed every tick with realized % changes, slowly pulled back to neutral.
    """
    scale: float
    bias_k: float
    value: float = config.SENTIMENT_NEUTRAL

    def update(self, pct_changes: Sequence[float]) -> float:
        if pct_changes:
            avg = sum(pct_changes) / len(pct_changes)
        else:
            avg = 0.0
        moved = self.value + avg * self.scale
        k = config.SENTIMENT_REVERSION
        self.value = _clamp_index((1.0 - k) * moved + k * config.SENTIMENT_NEUTRAL)
        return self.value

    def apply_news(self, impact: float) -> float:
        self.value = _clamp_index(self.value + impact * config.NEWS_SENTIMENT_SHIFT)
        return self.value

    @property
    def bias(self) -> float:
        return (self.value - config.SENTIMENT_NEUTRAL) / config.SENTIMENT_NEUTRAL * self.bias_k

    @property
    def extreme_factor(self) -> float:
        return abs(self.value - config.SENTIMENT_NEUTRAL) / config.SENTIMENT_NEUTRAL

    @property
    def label(self) -> str:
        for upper, name in config.MOOD_LABELS:
            if self.value <= upper:
                return name
        return config.MOOD_LABELS[-1][1]

    def reset(self) -> None:
        self.value = config.SENTIMENT_NEUTRAL

    def to_dict(self) -> Dict:
        return {"value": self.value, "label": self.label}


def equity_index() -> FearGreedIndex:
    return FearGreedIndex(scale=config.EQUITY_SENTIMENT_SCALE, bias_k=config.EQUITY_SENTIMENT_K)


def crypto_index() -> FearGreedIndex:
    return FearGreedIndex(scale=config.CRYPTO_SENTIMENT_SCALE, bias_k=config.CRYPTO_SENTIMENT_K)
