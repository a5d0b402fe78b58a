"""Tests for config.settings."""
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from config.settings import DEFAULT_SPOT_RATES, PROJECT_ROOT, Settings


def test_defaults():
    cfg = Settings(_env_file=None)

    assert cfg.domestic_currency == "EUR"
    assert cfg.days_per_year == 365.0
    assert cfg.default_risk_free_rate == 0.02
    assert cfg.foreign_risk_free_rate == 0.005
    assert cfg.default_volatility == 0.15
    assert cfg.mc_num_simulations == 50_000
    assert cfg.mc_min_steps == 50
    assert cfg.mc_steps_per_year == 252
    assert cfg.touch_model == "first_passage"
    assert cfg.touch_payment == "expiry"
    assert cfg.double_touch_model == "monte_carlo"
    assert cfg.default_spot_rates == DEFAULT_SPOT_RATES


def test_default_log_file_under_project_root():
    cfg = Settings(_env_file=None)
    assert Path(cfg.log_file) == PROJECT_ROOT / "logs" / "fx_valuation.log"


def test_log_level_is_normalised():
    assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MC_NUM_SIMULATIONS", "1234")
    monkeypatch.setenv("TOUCH_MODEL", "simplified")

    cfg = Settings(_env_file=None)
    assert cfg.mc_num_simulations == 1234
    assert cfg.touch_model == "simplified"


@pytest.mark.parametrize(
    "overrides",
    [
        {"log_level": "LOUD"},
        {"default_volatility": 0.0},
        {"mc_batch_size": 0},
        {"days_per_year": -1},
        {"domestic_currency": "EURO"},
        {"touch_model": "closed_form"},
        {"default_spot_rates": {"EURUSD": -1.0}},
    ],
)
def test_invalid_values_rejected(overrides):
    with pytest.raises(PydanticValidationError):
        Settings(_env_file=None, **overrides)


def test_pair_keys_upper_cased():
    cfg = Settings(_env_file=None, default_spot_rates={"eurusd": 1.1}, default_volatilities={"eurusd": 0.1})
    assert cfg.default_spot_rates == {"EURUSD": 1.1}
    assert cfg.default_volatilities == {"EURUSD": 0.1}
