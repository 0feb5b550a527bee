# config.py — Market simulation configuration
# Tuned for: visible but bounded moves, news that leaves an aftershock, crypto that feels wilder than stocks

# -------------------- App / Server --------------------
HOST = "0.0.0.0"
PORT = 5000
LOG_LEVEL = "INFO"

# -------------------- Admin --------------------
ADMIN_PASSWORD = "admin123"  # change this before hosting publicly

# -------------------- Schedules (seconds) --------------------
EQUITY_TICK_SECONDS = 1.0    # stock prices update every second
CRYPTO_TICK_SECONDS = 2.0    # crypto runs on its own, slightly slower cadence
MACRO_TICK_SECONDS = 10.0    # economy drifts slowly
NEWS_POLL_SECONDS = 5.0      # news gate is polled, the gate itself is multi-minute

# -------------------- Catalogs --------------------
STOCK_CATALOG_FILE = "data/stocks.json"
CRYPTO_CATALOG_FILE = "data/crypto.json"
STOCK_NEWS_FILE = "data/news.json"
CRYPTO_NEWS_FILE = "data/crypto_news.json"

HISTORY_CAPACITY = 50        # price points kept per instrument
SESSION_RESET_TICKS = 300    # crypto ticks between open-price resets (display % only)

# -------------------- Equity Dynamics --------------------
DRIFT_SEED = 0.002           # initial drift drawn from +/- DRIFT_SEED / 2
DRIFT_STEP = 0.0005          # drift random walk step
DRIFT_DECAY = 0.99           # drift pulled back toward zero each tick

EQUITY_VOL_BASE = 0.005      # vol = catalog vol * (BASE + extreme * EXTREME)
EQUITY_VOL_EXTREME = 0.005

# Sector beta to market sentiment
SECTOR_BETA = {
    "Tech":       1.5,
    "Consumer":   1.5,
    "Healthcare": 0.7,
    "Energy":     0.7,
}
DEFAULT_BETA = 1.0

CIRCUIT_BREAKER_PCT = 0.12   # max single-tick move
EQUITY_FLOOR_MULT = 0.20     # hard floor = 20% of base price
EQUITY_CEILING_MULT = 50.0   # ceiling = 50x base price
RECESSION_CEILING_MULT = 1.5 # ceiling while GDP growth is negative
BOUNCE_DRIFT = 0.005         # drift push applied when a floor/ceiling is hit
MIN_PRICE = 0.01             # absolute safety clamp
MAX_PRICE = 100000.0

# -------------------- Crypto Dynamics --------------------
MOMENTUM_SEED = 0.001        # initial momentum drawn from +/- MOMENTUM_SEED / 2
MOMENTUM_STEP = 0.0005       # momentum random walk step (uniform +/-)
MOMENTUM_DECAY = 0.995       # weaker mean reversion than equity drift

CRYPTO_VOL_SCALE = 0.02
CRYPTO_EXTREME_VOL = 2.0     # vol multiplier = 1 + extreme * CRYPTO_EXTREME_VOL
LEVY_ALPHA = 1.5

BULL_THRESHOLD = 75          # fear-greed above this = bull run
BULL_BIAS = 0.002
BEAR_THRESHOLD = 25          # fear-greed below this = bear market
BEAR_BIAS = -0.003           # bear bias is stronger than bull bias

TREND_WINDOW = 5             # per-tick % changes remembered
TREND_LOOKBACK = 3           # changes averaged for trend following
TREND_FOLLOW_K = 0.25

CRYPTO_FLOOR_MULT = 0.3
CRYPTO_CEILING_MULT = 3.0
CRYPTO_MIN_PRICE = 0.000001  # floor when the catalog entry is missing

# -------------------- Sentiment (Fear & Greed) --------------------
SENTIMENT_NEUTRAL = 50.0
SENTIMENT_REVERSION = 0.01   # 1% pull toward neutral each tick
EQUITY_SENTIMENT_SCALE = 100.0
CRYPTO_SENTIMENT_SCALE = 100.0
EQUITY_SENTIMENT_K = 0.01    # max directional bias from sentiment
CRYPTO_SENTIMENT_K = 0.005
NEWS_SENTIMENT_SHIFT = 15.0  # index points per unit of news impact

MOOD_LABELS = [
    (24, "Extreme Fear"),
    (49, "Fear"),
    (55, "Neutral"),
    (75, "Greed"),
    (100, "Extreme Greed"),
]

# -------------------- Macro --------------------
START_INTEREST_RATE = 3.0
START_GDP_GROWTH = 2.5
START_INFLATION = 2.5

OVERHEAT_GDP = 3.0           # gdp above this pushes inflation up
OVERHEAT_INFLATION_STEP = 0.1
POLICY_INFLATION = 3.0       # inflation above this makes the central bank hike
POLICY_RATE_STEP = 0.05
TIGHT_RATE = 4.0             # rates above this cool growth
LOOSE_RATE = 2.0             # rates below this stimulate growth
GROWTH_STEP = 0.1

MACRO_TARGET = 2.0           # gdp and inflation revert toward this
MACRO_REVERSION = 0.02
RATE_TARGET = 3.0            # neutral policy rate
RATE_REVERSION = 0.01

RATE_BOUNDS = (0.0, 10.0)
GDP_BOUNDS = (-10.0, 10.0)
INFLATION_BOUNDS = (-5.0, 20.0)

# -------------------- News Generation --------------------
NEWS_MIN_INTERVAL = 120.0         # equities: 2 minutes between events
CRYPTO_NEWS_MIN_INTERVAL = 180.0  # crypto: 3 minutes between events
NEWS_MAX_FIRE_PROBABILITY = 0.80  # chance a poll fires once the interval has passed

# Cumulative thresholds: company 40%, sector 25%, market 20%, economic 15%
NEWS_CATEGORY_THRESHOLDS = [
    (0.40, "COMPANY"),
    (0.65, "SECTOR"),
    (0.85, "MARKET"),
    (1.00, "ECONOMIC"),
]

COMPANY_IMPACT = (0.05, 0.10)     # base + U(0, spread)
COMPANY_POSITIVE_PROB = 0.70
COMPANY_HIGH_SEVERITY = 0.10
COMPANY_MEDIUM_SEVERITY = 0.07
COMPANY_SUGGEST = 0.08

SECTOR_IMPACT = (0.03, 0.05)
SECTOR_POSITIVE_PROB = 0.65
SECTOR_SUGGEST = 0.05

FIXED_HIGH_SEVERITY = 0.04        # market / economic catalog events

MAX_NEWS_IMPACT = 0.15

# -------------------- News Impact Weights --------------------
# DIRECT = same asset class as the news
# ADJACENT = sector news landing on the other asset class
# CROSS = market/economic news landing on the other asset class
DIRECT_WEIGHT = 1.00
ADJACENT_WEIGHT = 0.80
CROSS_WEIGHT = 0.50

# Lasting drift / momentum kick per unit of applied impact
DRIFT_KICK = {
    "equity": {"COMPANY": 0.10, "SECTOR": 0.05, "MARKET": 0.02, "ECONOMIC": 0.02},
    "crypto": {"COMPANY": 0.20, "SECTOR": 0.10, "MARKET": 0.05, "ECONOMIC": 0.05},
}

# -------------------- Trading / Leverage --------------------
START_CASH = 100000          # virtual cash per player
ALLOWED_LEVERAGE = (1, 2, 5, 10)
LEVERAGED_KINDS = ("crypto",)
DUST_QUANTITY = 0.000001     # remaining quantity below this closes the position
TRADE_LOG_SIZE = 100
LIQUIDATION_XP = 50          # consolation reward for getting liquidated
LIQUIDATION_FEED_SIZE = 50
