from dataclasses import dataclass, asdict
from typing import Dict

import config


def _clamp(x: float, bounds) -> float:
    lo, hi = bounds
    return max(lo, min(hi, x))


@dataclass
class MacroState:
    """Slow-moving economy: overheating -> policy hikes -> cooling -> stimulus."""
    interest_rate: float = config.START_INTEREST_RATE
    gdp_growth: float = config.START_GDP_GROWTH
    inflation: float = config.START_INFLATION

    def step(self) -> None:
        if self.gdp_growth > config.OVERHEAT_GDP:
            self.inflation += config.OVERHEAT_INFLATION_STEP

        if self.inflation > config.POLICY_INFLATION:
            self.interest_rate += config.POLICY_RATE_STEP

        if self.interest_rate > config.TIGHT_RATE:
            self.gdp_growth -= config.GROWTH_STEP
        elif self.interest_rate < config.LOOSE_RATE:
            self.gdp_growth += config.GROWTH_STEP

        k = config.MACRO_REVERSION
        self.gdp_growth = (1.0 - k) * self.gdp_growth + k * config.MACRO_TARGET
        self.inflation = (1.0 - k) * self.inflation + k * config.MACRO_TARGET

        # policy rate drifts back to neutral once the pressure is gone
        r = config.RATE_REVERSION
        self.interest_rate = (1.0 - r) * self.interest_rate + r * config.RATE_TARGET

        self.interest_rate = _clamp(self.interest_rate, config.RATE_BOUNDS)
        self.gdp_growth = _clamp(self.gdp_growth, config.GDP_BOUNDS)
        self.inflation = _clamp(self.inflation, config.INFLATION_BOUNDS)

    @property
    def in_recession(self) -> bool:
        return self.gdp_growth < 0

    @property
    def phase(self) -> str:
        if self.in_recession:
            return "recession"
        if self.inflation > config.POLICY_INFLATION or self.interest_rate > config.TIGHT_RATE:
            return "late"
        if self.interest_rate < config.LOOSE_RATE:
            return "early"
        return "mid"

    def ceiling_multiplier(self) -> float:
        if self.in_recession:
            return config.RECESSION_CEILING_MULT
        return config.EQUITY_CEILING_MULT

    def to_dict(self) -> Dict:
        out = asdict(self)
        out["phase"] = self.phase
        return out

    @classmethod
    def from_dict(cls, d: Dict) -> "MacroState":
        return cls(
            interest_rate=float(d.get("interest_rate", config.START_INTEREST_RATE)),
            gdp_growth=float(d.get("gdp_growth", config.START_GDP_GROWTH)),
            inflation=float(d.get("inflation", config.START_INFLATION)),
        )
