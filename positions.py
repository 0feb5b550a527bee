import logging
import math
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Deque, Dict, List, Optional

import config

logger = logging.getLogger(__name__)


class TradeRejected(Exception):
    """Raised when a trade cannot happen; the portfolio is left untouched."""


@dataclass
class LeveragedPosition:
    symbol: str
    quantity: float
    average_cost: float
    leverage: int
    entry_price: float
    margin: float
    liquidation_price: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            "symbol": self.symbol,
            "quantity": self.quantity,
            "average_cost": self.average_cost,
            "leverage": self.leverage,
            "entry_price": self.entry_price,
            "margin": self.margin,
            "liquidation_price": self.liquidation_price,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "LeveragedPosition":
        liq = d.get("liquidation_price")
        return cls(
            symbol=d["symbol"],
            quantity=float(d["quantity"]),
            average_cost=float(d["average_cost"]),
            leverage=int(d.get("leverage", 1)),
            entry_price=float(d.get("entry_price", d["average_cost"])),
            margin=float(d.get("margin", d["quantity"] * d["average_cost"])),
            liquidation_price=None if liq is None else float(liq),
        )


@dataclass
class Liquidation:
    player: str
    symbol: str
    quantity: float
    leverage: int
    liquidation_price: float
    price: float
    margin_lost: float
    timestamp: float
    reward_xp: int = config.LIQUIDATION_XP

    def to_dict(self) -> Dict:
        return asdict(self)


def liquidation_price_for(entry_price: float, leverage: int) -> Optional[float]:
    """Long-only: the position is wiped when price falls by 1/leverage."""
    if leverage <= 1:
        return None
    return entry_price * (1.0 - 1.0 / leverage)


@dataclass
class Portfolio:
    cash: float = float(config.START_CASH)
    positions: Dict[str, LeveragedPosition] = field(default_factory=dict)
    trades: Deque[Dict] = field(default_factory=lambda: deque(maxlen=config.TRADE_LOG_SIZE))
    xp: int = 0

    def buy(self, symbol: str, quantity: float, price: float, leverage: int = 1,
            kind: str = "equity", now: Optional[float] = None) -> LeveragedPosition:
        if not math.isfinite(quantity) or quantity <= 0:
            raise TradeRejected("Quantity must be positive")
        if not math.isfinite(price) or price <= 0:
            raise TradeRejected("Invalid price")
        if leverage not in config.ALLOWED_LEVERAGE:
            raise TradeRejected(f"Leverage must be one of {config.ALLOWED_LEVERAGE}")
        if leverage > 1 and kind not in config.LEVERAGED_KINDS:
            raise TradeRejected(f"Leverage is not available for {kind}")

        margin = quantity * price / leverage
        if self.cash < margin:
            raise TradeRejected("Not enough cash")

        new_liq = liquidation_price_for(price, leverage)
        pos = self.positions.get(symbol)
        if pos is None:
            pos = LeveragedPosition(symbol, quantity, price, leverage, price, margin, new_liq)
            self.positions[symbol] = pos
        else:
            total = pos.quantity + quantity
            pos.average_cost = (pos.average_cost * pos.quantity + price * quantity) / total
            pos.quantity = total
            pos.leverage = max(pos.leverage, leverage)
            pos.entry_price = price
            pos.margin += margin
            known = [p for p in (pos.liquidation_price, new_liq) if p is not None]
            pos.liquidation_price = max(known) if known else None

        self.cash -= margin
        self._log("BUY", symbol, quantity, price, leverage, now=now)
        return pos

    def sell(self, symbol: str, quantity: float, price: float,
             now: Optional[float] = None) -> float:
        """Close part or all of a position. Returns the cash credited."""
        pos = self.positions.get(symbol)
        if not math.isfinite(quantity) or quantity <= 0:
            raise TradeRejected("Quantity must be positive")
        if pos is None or pos.quantity < quantity:
            raise TradeRejected("Not enough holdings")

        share = quantity / pos.quantity
        released = pos.margin * share
        profit = (price - pos.average_cost) * quantity
        proceeds = max(0.0, released + profit)

        pos.quantity -= quantity
        pos.margin -= released
        if pos.quantity <= config.DUST_QUANTITY:
            del self.positions[symbol]

        self.cash += proceeds
        self._log("SELL", symbol, quantity, price, pos.leverage, pnl=profit, now=now)
        return proceeds

    def liquidate(self, player: str, pos: LeveragedPosition, price: float,
                  now: Optional[float] = None) -> Liquidation:
        del self.positions[pos.symbol]
        self.xp += config.LIQUIDATION_XP
        ts = time.time() if now is None else now
        self._log("LIQUIDATED", pos.symbol, pos.quantity, price, pos.leverage,
                  pnl=-pos.margin, now=ts)
        return Liquidation(
            player=player,
            symbol=pos.symbol,
            quantity=pos.quantity,
            leverage=pos.leverage,
            liquidation_price=pos.liquidation_price,
            price=price,
            margin_lost=pos.margin,
            timestamp=ts,
        )

    def value(self, prices: Dict[str, float]) -> Dict:
        """Equity = cash + margin + unrealized P&L of every open position."""
        holdings_value = 0.0
        for sym, pos in self.positions.items():
            px = prices.get(sym, pos.average_cost)
            holdings_value += pos.margin + (px - pos.average_cost) * pos.quantity
        return {
            "cash": self.cash,
            "holdings_value": holdings_value,
            "total_value": self.cash + holdings_value,
            "holdings": {s: p.to_dict() for s, p in self.positions.items()},
            "xp": self.xp,
        }

    def _log(self, side, symbol, quantity, price, leverage, pnl=None, now=None):
        self.trades.appendleft({
            "side": side,
            "symbol": symbol,
            "quantity": quantity,
            "price": price,
            "leverage": leverage,
            "pnl": pnl,
            "timestamp": time.time() if now is None else now,
        })

    def to_dict(self) -> Dict:
        return {
            "cash": self.cash,
            "xp": self.xp,
            "positions": {s: p.to_dict() for s, p in self.positions.items()},
            "trades": list(self.trades),
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "Portfolio":
        p = cls(cash=float(d.get("cash", config.START_CASH)), xp=int(d.get("xp", 0)))
        for sym, row in (d.get("positions") or {}).items():
            p.positions[sym] = LeveragedPosition.from_dict(row)
        p.trades.extend(d.get("trades") or [])
        return p


def check_liquidations(portfolios: Dict[str, Portfolio], prices: Dict[str, float],
                       now: Optional[float] = None) -> List[Liquidation]:
    """Close every leveraged position whose price is at or below its liquidation price."""
    out: List[Liquidation] = []
    for player, portfolio in portfolios.items():
        for pos in list(portfolio.positions.values()):
            if pos.leverage <= 1 or pos.liquidation_price is None:
                continue
            price = prices.get(pos.symbol)
            if price is None or price > pos.liquidation_price:
                continue
            liq = portfolio.liquidate(player, pos, price, now)
            logger.warning("LIQUIDATED %s %sx %s at %.4f (liq %.4f)",
                           player, pos.leverage, pos.symbol, price, pos.liquidation_price)
            out.append(liq)
    return out
