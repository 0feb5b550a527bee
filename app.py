import logging
import math
from dataclasses import asdict
from typing import Dict, Optional

from flask import Flask, request, jsonify

import config
from market import KINDS
from positions import TradeRejected
from simulation import Scheduler, Simulation

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = Flask(__name__)

# -------------------- Shared state --------------------
sim = Simulation.from_files()
scheduler = Scheduler(sim)

# -------------------- Background jobs (Gunicorn/Render safe) --------------------
@app.before_request
def _start_bg_once():
    if app.testing:
        return
    if not scheduler.running:
        scheduler.start()

# -------------------- Helpers --------------------
def _fail(error: str, code: int = 400):
    return jsonify({"ok": False, "error": error}), code

def _body() -> Dict:
    return request.get_json(force=True, silent=True) or {}

def _kind_arg(default: Optional[str] = None) -> Optional[str]:
    kind = (request.args.get("kind") or "").strip().lower()
    return kind or default

def check_admin(password: str) -> bool:
    return password == config.ADMIN_PASSWORD

def _as_price(value) -> Optional[float]:
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    return price if math.isfinite(price) else None

# -------------------- Read APIs --------------------
@app.get("/api/bootstrap")
def api_bootstrap():
    return jsonify({
        "stocks": [asdict(e) for e in sim.catalogs["equity"].values()],
        "crypto": [asdict(e) for e in sim.catalogs["crypto"].values()],
        "leverage": list(config.ALLOWED_LEVERAGE),
        "leveraged_kinds": list(config.LEVERAGED_KINDS),
    })

@app.get("/api/state")
def api_state():
    player = (request.args.get("player") or "").strip()
    out = {
        "stocks": sim.instruments("equity"),
        "crypto": sim.instruments("crypto"),
        "indicators": sim.indicators(),
    }
    if player:
        out["portfolio"] = sim.portfolio(player)
    return jsonify(out)

@app.get("/api/instruments")
def api_instruments():
    kind = _kind_arg()
    if kind and kind not in KINDS:
        return _fail("Unknown asset class")
    return jsonify({"instruments": sim.instruments(kind)})

@app.get("/api/indicators")
def api_indicators():
    return jsonify(sim.indicators())

@app.get("/api/portfolio")
def api_portfolio():
    player = (request.args.get("player") or "").strip()
    if not player:
        return _fail("Missing player")
    return jsonify(sim.portfolio(player))

@app.get("/api/liquidations")
def api_liquidations():
    player = (request.args.get("player") or "").strip() or None
    return jsonify({"liquidations": sim.recent_liquidations(player)})

@app.get("/api/news/due")
def api_news_due():
    kind = _kind_arg("equity")
    if kind not in KINDS:
        return _fail("Unknown asset class")
    return jsonify({"kind": kind, "due": sim.news_due(kind)})

# -------------------- Price entry points --------------------
@app.post("/api/prices")
def api_prices():
    updates = _body().get("updates")
    if not isinstance(updates, dict) or not updates:
        return _fail("Missing updates")
    clean = {}
    for symbol, value in updates.items():
        price = _as_price(value)
        if price is None:
            return _fail(f"Invalid price for {symbol}")
        clean[str(symbol).strip().upper()] = price
    fired = sim.update_prices(clean)
    return jsonify({"ok": True, "liquidations": [l.to_dict() for l in fired]})

@app.post("/api/prices/<symbol>")
def api_price(symbol: str):
    price = _as_price(_body().get("price"))
    if price is None:
        return _fail("Invalid price")
    fired = sim.update_price(symbol.strip().upper(), price)
    return jsonify({"ok": True, "liquidations": [l.to_dict() for l in fired]})

# -------------------- Trading --------------------
@app.post("/api/trade")
def api_trade():
    data = _body()
    player = (data.get("player") or "").strip()
    symbol = (data.get("symbol") or "").strip().upper()
    side = (data.get("side") or "").strip().upper()
    try:
        qty = float(data.get("qty") or 0)
        leverage = int(data.get("leverage") or 1)
    except (TypeError, ValueError):
        return _fail("Invalid trade")

    if not player or not symbol or side not in ("BUY", "SELL"):
        return _fail("Invalid trade")

    try:
        if side == "BUY":
            result = sim.buy(player, symbol, qty, leverage)
        else:
            result = sim.sell(player, symbol, qty)
    except TradeRejected as e:
        return _fail(str(e))

    result["ok"] = True
    result["portfolio"] = sim.portfolio(player)
    return jsonify(result)

# -------- Admin APIs --------
@app.post("/api/admin/news")
def api_admin_news():
    data = _body()
    if not check_admin(data.get("password") or ""):
        return _fail("Unauthorized", 401)
    kind = (data.get("kind") or "equity").strip().lower()
    if kind not in KINDS:
        return _fail("Unknown asset class")

    event = sim.fire_news(kind)
    if event is None:
        return _fail("No eligible instrument for this story", 409)
    return jsonify({"ok": True, "news": event.to_dict()})

@app.post("/api/admin/reset")
def api_admin_reset():
    data = _body()
    if not check_admin(data.get("password") or ""):
        return _fail("Unauthorized", 401)
    sim.reset()
    return jsonify({"ok": True})

if __name__ == "__main__":
    app.run(host=config.HOST, port=config.PORT, debug=False, threaded=True)
