import random

import pytest

from market import CatalogEntry, Instrument, instrument_from_catalog


@pytest.fixture
def rng():
    return random.Random(1234)


def make_entry(symbol="AAPL", base=100.0, volatility=1.0, sector="Tech"):
    return CatalogEntry(symbol=symbol, name=symbol, base_price=base, volatility=volatility, sector=sector)


def make_instrument(symbol="AAPL", price=100.0, kind="equity", sector="Tech", base=None) -> Instrument:
    entry = make_entry(symbol, base if base is not None else price, 1.0, sector)
    inst = instrument_from_catalog(entry, kind, 0.0)
    inst.price = price
    return inst
