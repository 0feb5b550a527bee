import pytest

import config
from macro import MacroState
from sentiment import FearGreedIndex, crypto_index, equity_index


def test_overheating_economy_raises_inflation():
    m = MacroState(interest_rate=3.0, gdp_growth=4.0, inflation=2.5)
    m.step()
    assert m.inflation == pytest.approx(0.98 * 2.6 + 0.02 * 2.0)
    assert m.gdp_growth == pytest.approx(0.98 * 4.0 + 0.02 * 2.0)
    assert m.interest_rate == pytest.approx(3.0)


def test_high_inflation_triggers_hike():
    m = MacroState(interest_rate=3.0, gdp_growth=2.5, inflation=3.5)
    m.step()
    assert m.interest_rate == pytest.approx(0.99 * 3.05 + 0.01 * 3.0)
    assert m.interest_rate > 3.0


def test_rates_steer_growth():
    tight = MacroState(interest_rate=5.0, gdp_growth=2.5, inflation=2.0)
    tight.step()
    assert tight.gdp_growth == pytest.approx(0.98 * 2.4 + 0.02 * 2.0)

    loose = MacroState(interest_rate=1.0, gdp_growth=2.5, inflation=2.0)
    loose.step()
    assert loose.gdp_growth == pytest.approx(0.98 * 2.6 + 0.02 * 2.0)


def test_macro_values_stay_bounded():
    m = MacroState(interest_rate=50.0, gdp_growth=-50.0, inflation=80.0)
    m.step()
    assert m.interest_rate == config.RATE_BOUNDS[1]
    assert m.gdp_growth == config.GDP_BOUNDS[0]
    assert m.inflation == config.INFLATION_BOUNDS[1]


def test_phase_and_recession_ceiling():
    assert MacroState(gdp_growth=-1.0).phase == "recession"
    assert MacroState(gdp_growth=-1.0).ceiling_multiplier() == config.RECESSION_CEILING_MULT
    assert MacroState(interest_rate=4.5, gdp_growth=1.0, inflation=2.0).phase == "late"
    assert MacroState(interest_rate=1.5, gdp_growth=1.0, inflation=2.0).phase == "early"
    assert MacroState(interest_rate=3.0, gdp_growth=1.0, inflation=2.0).phase == "mid"
    assert MacroState().ceiling_multiplier() == config.EQUITY_CEILING_MULT
    assert MacroState().to_dict()["phase"] == "mid"


def test_fear_greed_update_blends_toward_neutral():
    idx = equity_index()
    idx.update([0.01, 0.01, 0.01])
    assert idx.value == pytest.approx(0.99 * 51.0 + 0.01 * 50.0)

    idx.value = 60.0
    idx.update([])
    assert idx.value == pytest.approx(59.9)


def test_fear_greed_is_clamped():
    idx = crypto_index()
    idx.update([5.0])
    assert idx.value == 100.0
    idx.update([-50.0])
    assert idx.value == 0.0
    idx.apply_news(-1.0)
    assert idx.value == 0.0


def test_fear_greed_derived_values():
    idx = FearGreedIndex(scale=100.0, bias_k=0.01, value=100.0)
    assert idx.bias == pytest.approx(0.01)
    assert idx.extreme_factor == pytest.approx(1.0)

    idx.value = 0.0
    assert idx.bias == pytest.approx(-0.01)
    assert idx.extreme_factor == pytest.approx(1.0)

    idx.value = 50.0
    assert idx.bias == 0.0
    assert idx.extreme_factor == 0.0


@pytest.mark.parametrize("value,label", [
    (10, "Extreme Fear"), (40, "Fear"), (50, "Neutral"), (70, "Greed"), (90, "Extreme Greed"),
])
def test_fear_greed_labels(value, label):
    assert FearGreedIndex(scale=100.0, bias_k=0.01, value=value).label == label


def test_news_shifts_index():
    idx = equity_index()
    idx.apply_news(0.1)
    assert idx.value == pytest.approx(51.5)
    idx.reset()
    assert idx.value == 50.0
