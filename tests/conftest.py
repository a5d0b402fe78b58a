"""
Pytest fixtures and configuration.
"""
from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

import pytest

# Ensure the project root is first on sys.path so local packages win.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import Settings
from core.types import Instrument, InstrumentType, StrikeType
from marketdata.snapshot import MarketDataSnapshot
from valuation.pricing.dispatcher import InstrumentPricer


@pytest.fixture
def as_of():
    """Fixed valuation timestamp."""
    return datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def one_year_out(as_of):
    """Maturity exactly one 365-day year after ``as_of``."""
    return as_of + timedelta(days=365)


@pytest.fixture
def market():
    """Small market snapshot with round numbers."""
    return MarketDataSnapshot(
        spot_rates={"EURUSD": 1.10, "EURGBP": 0.85, "EURJPY": 160.0},
        volatilities={"EURUSD": 0.12, "EURGBP": 0.10},
        risk_free_rate=0.02,
        foreign_rate=0.005,
    )


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env, with a cheap seeded Monte Carlo."""
    return Settings(
        _env_file=None,
        mc_num_simulations=4_000,
        mc_batch_size=1_500,
        mc_seed=7,
    )


@pytest.fixture
def pricer(test_settings):
    return InstrumentPricer(test_settings)


@pytest.fixture
def make_instrument(one_year_out):
    """Factory for instruments maturing in one year unless told otherwise."""

    def _make(type_, **kwargs):
        kwargs.setdefault("currency", "USD")
        kwargs.setdefault("amount", 1_000_000)
        kwargs.setdefault("maturity", one_year_out)
        return Instrument(type=InstrumentType(type_), **kwargs)

    return _make


@pytest.fixture
def sample_book(one_year_out, as_of):
    """A small hedge book mixing linear, vanilla and exotic instruments."""
    half_year = as_of + timedelta(days=182)
    return [
        Instrument(type=InstrumentType.FORWARD, currency="USD", amount=-500_000,
                   rate=1.05, maturity=half_year, id="FWD-1"),
        Instrument(type=InstrumentType.CALL, currency="USD", amount=1_000_000,
                   rate=100, strike_type=StrikeType.PERCENTAGE, maturity=one_year_out,
                   premium=20_000, id="CALL-1"),
        Instrument(type=InstrumentType.PUT, currency="GBP", amount=-250_000,
                   rate=0.84, maturity=half_year, premium=3_000, id="PUT-1"),
        Instrument(type=InstrumentType.CALL_KNOCK_OUT, currency="USD", amount=300_000,
                   rate=1.12, barrier=1.0, maturity=half_year, premium=2_000, id="KO-1"),
        Instrument(type=InstrumentType.ONE_TOUCH, currency="GBP", amount=100_000,
                   barrier=0.90, maturity=half_year, premium=10_000, id="OT-1"),
    ]
