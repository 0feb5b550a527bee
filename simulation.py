import logging
import random
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Tuple

import config
import crypto_engine
import equity_engine
from impact import apply_news
from macro import MacroState
from market import CatalogEntry, MarketBook, ensure_valid, load_catalog
from news_engine import NewsEvent, NewsGenerator, crypto_generator, equity_generator
from positions import Liquidation, Portfolio, TradeRejected, check_liquidations
from sentiment import FearGreedIndex, crypto_index, equity_index

logger = logging.getLogger(__name__)


class Simulation:
    """
    Owns every piece of mutable market state.

    All public methods take `lock`, so a tick from one schedule never sees a
    half-written batch from another. Every price write goes through `_commit`,
    which appends history and runs the liquidation check before returning.
    """

    def __init__(self, stock_catalog: Dict[str, CatalogEntry], crypto_catalog: Dict[str, CatalogEntry],
                 equity_news: Optional[NewsGenerator] = None, crypto_news: Optional[NewsGenerator] = None,
                 rng: Optional[random.Random] = None, now: Optional[float] = None):
        self.lock = threading.Lock()
        self.rng = rng or random.Random()
        self.catalogs = {"equity": stock_catalog, "crypto": crypto_catalog}
        self.news = {
            "equity": equity_news or equity_generator(),
            "crypto": crypto_news or crypto_generator(),
        }
        self._reset(time.time() if now is None else now)

    @classmethod
    def from_files(cls, **kwargs) -> "Simulation":
        return cls(load_catalog(config.STOCK_CATALOG_FILE), load_catalog(config.CRYPTO_CATALOG_FILE), **kwargs)

    def _reset(self, now: float) -> None:
        self.books: Dict[str, MarketBook] = {
            kind: MarketBook.seed(kind, catalog, self.rng, now) for kind, catalog in self.catalogs.items()
        }
        self.moods: Dict[str, FearGreedIndex] = {"equity": equity_index(), "crypto": crypto_index()}
        self.macro = MacroState()
        self.portfolios: Dict[str, Portfolio] = {}
        self.last_news: Dict[str, float] = {"equity": now, "crypto": now}
        self.liquidations: Deque[Liquidation] = deque(maxlen=config.LIQUIDATION_FEED_SIZE)
        self.crypto_ticks = 0

    # -------------------- internals (lock held) --------------------
    def _ensure_valid(self, kind: str, now: float) -> MarketBook:
        book = ensure_valid(self.books.get(kind), kind, self.catalogs[kind], self.rng, now)
        self.books[kind] = book
        return book

    def _all_prices(self) -> Dict[str, float]:
        prices: Dict[str, float] = {}
        for book in self.books.values():
            prices.update(book.prices())
        return prices

    def _book_for(self, symbol: str) -> Optional[MarketBook]:
        for book in self.books.values():
            if symbol in book:
                return book
        return None

    def _commit(self, updates: Dict[str, float], now: float) -> Tuple[List[float], List[Liquidation]]:
        realized: List[float] = []
        for book in self.books.values():
            batch = {s: p for s, p in updates.items() if s in book}
            if batch:
                realized.extend(book.apply_prices(batch, now))
        fired = check_liquidations(self.portfolios, self._all_prices(), now)
        self.liquidations.extend(fired)
        return realized, fired

    def _apply_event(self, event: NewsEvent, now: float) -> List[Liquidation]:
        updates: Dict[str, float] = {}
        factors: Dict[str, float] = {}
        fired: List[Liquidation] = []
        for book in self.books.values():
            shocked, applied = apply_news(event, book)
            updates.update(shocked)
            factors.update(applied)
        if updates:
            _, fired = self._commit(updates, now)
        self.moods[event.kind].apply_news(event.impact)
        self.last_news[event.kind] = now
        strongest = max(factors.values(), key=abs, default=0.0)
        logger.info("NEWS [%s/%s %s] %s (impact %+.3f, %d instruments hit, strongest %+.3f)",
                    event.kind, event.type, event.severity, event.headline, event.impact,
                    len(factors), strongest)
        return fired

    # -------------------- scheduled callbacks --------------------
    def equity_tick(self, now: Optional[float] = None) -> List[Liquidation]:
        now = time.time() if now is None else now
        with self.lock:
            book = self._ensure_valid("equity", now)
            updates = equity_engine.tick(book, self.catalogs["equity"], self.moods["equity"],
                                         self.macro, self.rng)
            realized, fired = self._commit(updates, now)
            self.moods["equity"].update(realized)
            return fired

    def crypto_tick(self, now: Optional[float] = None) -> List[Liquidation]:
        now = time.time() if now is None else now
        with self.lock:
            book = self._ensure_valid("crypto", now)
            updates = crypto_engine.tick(book, self.catalogs["crypto"], self.moods["crypto"], self.rng)
            realized, fired = self._commit(updates, now)
            self.moods["crypto"].update(realized)

            self.crypto_ticks += 1
            if self.crypto_ticks >= config.SESSION_RESET_TICKS:
                for b in self.books.values():
                    b.reset_session()
                self.crypto_ticks = 0
            return fired

    def macro_tick(self) -> MacroState:
        with self.lock:
            self.macro.step()
            return self.macro

    def news_tick(self, now: Optional[float] = None) -> List[NewsEvent]:
        """Poll both news gates; fire and apply whatever passes."""
        now = time.time() if now is None else now
        fired = []
        with self.lock:
            for kind, gen in self.news.items():
                if not gen.should_fire(self.last_news[kind], now, self.rng):
                    continue
                book = self._ensure_valid(kind, now)
                event = gen.generate(book.instruments, now, self.rng)
                if event is not None:
                    self._apply_event(event, now)
                    fired.append(event)
        return fired

    # -------------------- external interface --------------------
    def instruments(self, kind: Optional[str] = None) -> List[Dict]:
        with self.lock:
            kinds = [kind] if kind else list(self.books)
            return [row for k in kinds if k in self.books for row in self.books[k].to_list()]

    def update_prices(self, updates: Dict[str, float], now: Optional[float] = None) -> List[Liquidation]:
        now = time.time() if now is None else now
        with self.lock:
            _, fired = self._commit(updates, now)
            return fired

    def update_price(self, symbol: str, price: float, now: Optional[float] = None) -> List[Liquidation]:
        return self.update_prices({symbol: price}, now)

    def news_due(self, kind: str = "equity", now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        with self.lock:
            return self.news[kind].interval_passed(self.last_news[kind], now)

    def fire_news(self, kind: str = "equity", now: Optional[float] = None) -> Optional[NewsEvent]:
        """Generate and apply one event right now, ignoring the time gate."""
        now = time.time() if now is None else now
        with self.lock:
            book = self._ensure_valid(kind, now)
            event = self.news[kind].generate(book.instruments, now, self.rng)
            if event is not None:
                self._apply_event(event, now)
            return event

    def apply_event(self, event: NewsEvent, now: Optional[float] = None) -> List[Liquidation]:
        now = time.time() if now is None else now
        with self.lock:
            return self._apply_event(event, now)

    def _portfolio(self, player: str) -> Portfolio:
        if player not in self.portfolios:
            self.portfolios[player] = Portfolio()
        return self.portfolios[player]

    def buy(self, player: str, symbol: str, quantity: float, leverage: int = 1,
            now: Optional[float] = None) -> Dict:
        with self.lock:
            book = self._book_for(symbol)
            if book is None:
                raise TradeRejected(f"Unknown symbol {symbol}")
            price = book.get(symbol).price
            pos = self._portfolio(player).buy(symbol, quantity, price, leverage, book.kind, now)
            return {"price": price, "position": pos.to_dict()}

    def sell(self, player: str, symbol: str, quantity: float, now: Optional[float] = None) -> Dict:
        with self.lock:
            book = self._book_for(symbol)
            if book is None:
                raise TradeRejected(f"Unknown symbol {symbol}")
            price = book.get(symbol).price
            proceeds = self._portfolio(player).sell(symbol, quantity, price, now)
            return {"price": price, "proceeds": proceeds}

    def portfolio(self, player: str) -> Dict:
        with self.lock:
            return self._portfolio(player).value(self._all_prices())

    def holdings(self, player: str) -> Dict[str, Dict]:
        with self.lock:
            p = self.portfolios.get(player)
            return {} if p is None else {s: pos.to_dict() for s, pos in p.positions.items()}

    def recent_liquidations(self, player: Optional[str] = None) -> List[Dict]:
        with self.lock:
            return [l.to_dict() for l in self.liquidations if player is None or l.player == player]

    def indicators(self) -> Dict:
        with self.lock:
            return {
                "macro": self.macro.to_dict(),
                "fear_greed": {kind: mood.to_dict() for kind, mood in self.moods.items()},
            }

    def reset(self, now: Optional[float] = None) -> None:
        with self.lock:
            self._reset(time.time() if now is None else now)
            logger.info("Simulation reset")

    # -------------------- persistence --------------------
    def to_dict(self) -> Dict:
        with self.lock:
            return {
                "books": {kind: book.to_list() for kind, book in self.books.items()},
                "fear_greed": {kind: mood.value for kind, mood in self.moods.items()},
                "macro": self.macro.to_dict(),
                "portfolios": {name: p.to_dict() for name, p in self.portfolios.items()},
                "last_news": dict(self.last_news),
            }

    def load_dict(self, data: Dict, now: Optional[float] = None) -> None:
        """Restore from `to_dict` output. Scratch state (drift, momentum, trends) is reseeded."""
        now = time.time() if now is None else now
        with self.lock:
            for kind, rows in (data.get("books") or {}).items():
                if kind in self.catalogs:
                    self.books[kind] = MarketBook.from_list(kind, rows, self.rng)
                    self._ensure_valid(kind, now)
            for kind, value in (data.get("fear_greed") or {}).items():
                if kind in self.moods:
                    self.moods[kind].value = max(0.0, min(100.0, float(value)))
            self.macro = MacroState.from_dict(data.get("macro") or {})
            self.portfolios = {
                name: Portfolio.from_dict(p) for name, p in (data.get("portfolios") or {}).items()
            }
            self.last_news.update(data.get("last_news") or {})
            self.liquidations.extend(check_liquidations(self.portfolios, self._all_prices(), now))


class Scheduler:
    """
    Runs the periodic jobs on daemon threads.

    Jobs serialize on the simulation lock; `cancel()` stops every job and joins
    the threads, so no callback runs after it returns.
    """

    def __init__(self, sim: Simulation):
        self.sim = sim
        self.jobs: List[tuple] = [
            ("equity", config.EQUITY_TICK_SECONDS, sim.equity_tick),
            ("crypto", config.CRYPTO_TICK_SECONDS, sim.crypto_tick),
            ("macro", config.MACRO_TICK_SECONDS, sim.macro_tick),
            ("news", config.NEWS_POLL_SECONDS, sim.news_tick),
        ]
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []
        self._start_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return bool(self._threads) and not self._stop.is_set()

    def start(self) -> None:
        with self._start_lock:
            if self.running:
                return
            self._stop.clear()
            self._threads = [
                threading.Thread(target=self._loop, args=(name, interval, fn),
                                 name=f"sim-{name}", daemon=True)
                for name, interval, fn in self.jobs
            ]
            for t in self._threads:
                t.start()
            logger.info("Scheduler started (%d jobs)", len(self._threads))

    def cancel(self, timeout: Optional[float] = None) -> None:
        with self._start_lock:
            self._stop.set()
            for t in self._threads:
                if t is not threading.current_thread():
                    t.join(timeout)
            self._threads = []
            logger.info("Scheduler cancelled")

    def _loop(self, name: str, interval: float, fn: Callable) -> None:
        while not self._stop.wait(interval):
            try:
                fn()
            except Exception:
                logger.exception("Scheduled job %s failed", name)
