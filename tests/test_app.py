import pytest

import config
from app import app, scheduler, sim


@pytest.fixture
def client():
    app.testing = True
    sim.reset()
    with app.test_client() as c:
        yield c
    assert not scheduler.running


def _trade(client, **body):
    body.setdefault("player", "ann")
    return client.post("/api/trade", json=body)


def test_bootstrap(client):
    data = client.get("/api/bootstrap").get_json()
    assert len(data["stocks"]) == 16
    assert len(data["crypto"]) == 10
    assert data["leverage"] == list(config.ALLOWED_LEVERAGE)


def test_state_with_player(client):
    data = client.get("/api/state?player=ann").get_json()
    assert len(data["stocks"]) == 16
    assert len(data["crypto"]) == 10
    assert data["portfolio"]["cash"] == config.START_CASH
    assert "macro" in data["indicators"]


def test_instruments_by_kind(client):
    assert len(client.get("/api/instruments?kind=crypto").get_json()["instruments"]) == 10
    assert len(client.get("/api/instruments").get_json()["instruments"]) == 26
    r = client.get("/api/instruments?kind=bonds")
    assert r.status_code == 400
    assert r.get_json()["ok"] is False


def test_indicators(client):
    data = client.get("/api/indicators").get_json()
    assert data["fear_greed"]["crypto"]["label"] == "Neutral"
    assert data["macro"]["phase"] in ("recession", "late", "early", "mid")


def test_buy_then_oversell(client):
    r = _trade(client, symbol="aapl", side="BUY", qty=10)
    assert r.status_code == 200
    assert r.get_json()["ok"] is True
    assert r.get_json()["portfolio"]["holdings"]["AAPL"]["quantity"] == 10

    r = _trade(client, symbol="AAPL", side="SELL", qty=20)
    assert r.status_code == 400
    assert r.get_json() == {"ok": False, "error": "Not enough holdings"}

    r = _trade(client, symbol="AAPL", side="SELL", qty=10)
    assert r.status_code == 200
    assert client.get("/api/portfolio?player=ann").get_json()["holdings"] == {}


@pytest.mark.parametrize("body", [
    dict(symbol="AAPL", side="BUY", qty=1, leverage=2),
    dict(symbol="AAPL", side="HOLD", qty=1),
    dict(symbol="AAPL", side="BUY", qty="lots"),
    dict(symbol="AAPL", side="BUY", qty="nan"),
    dict(symbol="AAPL", side="BUY", qty="inf"),
    dict(symbol="NOPE", side="BUY", qty=1),
    dict(symbol="BTC", side="BUY", qty=1000),
])
def test_rejected_trades(client, body):
    r = _trade(client, **body)
    assert r.status_code == 400
    assert r.get_json()["ok"] is False
    assert client.get("/api/portfolio?player=ann").get_json()["cash"] == config.START_CASH


def test_price_shock_liquidates(client):
    r = _trade(client, symbol="BTC", side="BUY", qty=1, leverage=10)
    assert r.status_code == 200
    entry = r.get_json()["price"]

    r = client.post("/api/prices/btc", json={"price": entry * 0.8})
    assert r.status_code == 200
    assert [l["symbol"] for l in r.get_json()["liquidations"]] == ["BTC"]

    feed = client.get("/api/liquidations?player=ann").get_json()["liquidations"]
    assert len(feed) == 1
    assert feed[0]["reward_xp"] == config.LIQUIDATION_XP


def test_batched_prices(client):
    r = client.post("/api/prices", json={"updates": {"MSFT": 321.0, "ETH": 2500.0}})
    assert r.status_code == 200
    prices = {row["symbol"]: row["price"] for row in client.get("/api/instruments").get_json()["instruments"]}
    assert prices["MSFT"] == 321.0
    assert prices["ETH"] == 2500.0

    assert client.post("/api/prices", json={"updates": {"MSFT": "abc"}}).status_code == 400
    assert client.post("/api/prices", json={}).status_code == 400
    assert client.post("/api/prices/MSFT", json={"price": None}).status_code == 400


def test_news_endpoints(client):
    assert client.get("/api/news/due?kind=crypto").get_json()["due"] is False
    assert client.get("/api/news/due?kind=bonds").status_code == 400

    r = client.post("/api/admin/news", json={"password": "wrong", "kind": "crypto"})
    assert r.status_code == 401

    r = client.post("/api/admin/news", json={"password": config.ADMIN_PASSWORD, "kind": "crypto"})
    assert r.status_code == 200
    news = r.get_json()["news"]
    assert news["kind"] == "crypto"
    assert abs(news["impact"]) <= config.MAX_NEWS_IMPACT


def test_admin_reset(client):
    _trade(client, symbol="AAPL", side="BUY", qty=1)
    assert client.post("/api/admin/reset", json={"password": "nope"}).status_code == 401

    assert client.post("/api/admin/reset", json={"password": config.ADMIN_PASSWORD}).get_json() == {"ok": True}
    assert client.get("/api/portfolio?player=ann").get_json()["holdings"] == {}


def test_nan_sell_keeps_holdings(client):
    assert _trade(client, symbol="AAPL", side="BUY", qty=5).status_code == 200
    before = client.get("/api/portfolio?player=ann").get_json()

    r = _trade(client, symbol="AAPL", side="SELL", qty="nan")
    assert r.status_code == 400
    assert r.get_json()["ok"] is False
    assert client.get("/api/portfolio?player=ann").get_json() == before
