import pytest

import config
from impact import apply_news, effective_sector, impact_factor, shocked_price
from market import MarketBook
from news_engine import NewsEvent

from conftest import make_entry, make_instrument


def _event(type_, impact, kind="equity", symbol=None, sector=None):
    return NewsEvent(id="news-test", timestamp=0.0, type=type_, severity="MEDIUM",
                     headline="test", impact=impact, kind=kind, symbol=symbol, sector=sector)


def test_company_news_hits_only_its_symbol():
    aapl = make_instrument("AAPL", 100.0)
    msft = make_instrument("MSFT", 100.0)
    e = _event("COMPANY", 0.10, symbol="AAPL")
    assert shocked_price(100.0, e, aapl) == pytest.approx(110.0)
    assert shocked_price(100.0, e, msft) == 100.0


def test_sector_news_hits_matching_sector():
    tech = make_instrument("AAPL", 100.0, sector="Tech")
    bank = make_instrument("JPM", 100.0, sector="Finance")
    e = _event("SECTOR", 0.08, sector="Tech")
    assert shocked_price(100.0, e, tech) == pytest.approx(108.0)
    assert shocked_price(100.0, e, bank) == 100.0


def test_market_news_is_uniform():
    e = _event("MARKET", 0.05)
    for inst in (make_instrument("AAPL", 100.0, sector="Tech"),
                 make_instrument("XOM", 100.0, sector="Energy"),
                 make_instrument("O", 100.0, sector="Real Estate")):
        assert shocked_price(100.0, e, inst) == pytest.approx(105.0)


def test_negative_and_zero_impact():
    aapl = make_instrument("AAPL", 100.0)
    assert shocked_price(100.0, _event("COMPANY", -0.10, symbol="AAPL"), aapl) == pytest.approx(90.0)
    assert shocked_price(100.0, _event("MARKET", 0.0), aapl) == 100.0


def test_cross_class_weights():
    coin = make_instrument("BTC", 100.0, kind="crypto", sector=None)
    stock = make_instrument("AAPL", 100.0)
    assert effective_sector(coin) == "Crypto"

    assert impact_factor(_event("SECTOR", 0.05, sector="Crypto"), coin) == pytest.approx(0.05 * config.ADJACENT_WEIGHT)
    assert impact_factor(_event("MARKET", 0.06), coin) == pytest.approx(0.06 * config.CROSS_WEIGHT)
    assert impact_factor(_event("ECONOMIC", -0.04, kind="crypto"), stock) == pytest.approx(-0.04 * config.CROSS_WEIGHT)
    assert impact_factor(_event("MARKET", 0.06, kind="crypto"), coin) == pytest.approx(0.06)


def test_apply_news_returns_updates_and_kicks_drift(rng):
    catalog = {s: make_entry(s, 100.0, sector=sec) for s, sec in (("AAPL", "Tech"), ("JPM", "Finance"))}
    book = MarketBook.seed("equity", catalog, rng, now=0.0)
    before = list(book.bias)

    updates, factors = apply_news(_event("COMPANY", 0.10, symbol="AAPL"), book)

    assert updates == pytest.approx({"AAPL": 110.0})
    assert factors == pytest.approx({"AAPL": 0.10})
    assert book.get("AAPL").price == 100.0  # caller commits
    i = book.index["AAPL"]
    assert book.bias[i] == pytest.approx(before[i] + 0.10 * config.DRIFT_KICK["equity"]["COMPANY"])
    assert book.bias[book.index["JPM"]] == before[book.index["JPM"]]


def test_zero_impact_produces_no_updates(rng):
    catalog = {"AAPL": make_entry("AAPL", 100.0)}
    book = MarketBook.seed("equity", catalog, rng, now=0.0)
    updates, _ = apply_news(_event("MARKET", 0.0), book)
    assert updates == {}
