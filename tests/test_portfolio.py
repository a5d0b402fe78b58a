"""
组合批量估值测试。
"""
import logging
import math
from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from core.exceptions import PricingError, UnsupportedInstrumentError, ValidationError
from valuation.risk.greeks import calculate_greeks
from valuation.risk.mtm import calculate_mtm
from valuation.risk.portfolio import PortfolioValuator, maturity_in_days, value_portfolio


@pytest.fixture
def bad_records(as_of):
    maturity = (as_of + timedelta(days=30)).isoformat()
    return [
        {"id": "BAD-1", "type": "Variance Swap", "currency": "USD", "amount": 100_000, "maturity": maturity},
        {"id": "BAD-2", "type": "Call", "currency": "USD", "amount": -50_000, "maturity": maturity},
    ]


@pytest.fixture
def valuation(sample_book, bad_records, market, as_of, pricer):
    return PortfolioValuator(pricer).value(sample_book + bad_records, market, as_of=as_of)


class TestPortfolioValuation:
    """批量估值"""

    def test_failures_do_not_abort_batch(self, valuation):
        assert len(valuation.positions) == 7
        assert len(valuation.valued) == 5
        assert [p.id for p in valuation.failed] == ["BAD-1", "BAD-2"]
        assert isinstance(valuation.failed[0].error, UnsupportedInstrumentError)
        assert isinstance(valuation.failed[1].error, ValidationError)

    def test_total_mtm_matches_single_instrument_mtm(self, valuation, sample_book, market, as_of, pricer):
        expected = sum(calculate_mtm(inst, market, as_of=as_of, pricer=pricer) for inst in sample_book)
        assert valuation.total_mtm == pytest.approx(expected)

    def test_rows_carry_method_and_greeks(self, valuation):
        rows = {p.id: p for p in valuation.positions}
        assert rows["FWD-1"].method == "forward"
        assert rows["FWD-1"].greeks is None
        assert rows["CALL-1"].method == "garman_kohlhagen"
        assert rows["CALL-1"].greeks.delta > 0
        assert rows["KO-1"].method == "barrier_reflection"
        assert rows["OT-1"].method == "touch_first_passage"
        assert rows["FWD-1"].maturity_days == 182
        assert rows["CALL-1"].maturity_days == 365

    def test_notional_and_maturity(self, valuation):
        amounts = [500_000, 1_000_000, 250_000, 300_000, 100_000, 100_000, 50_000]
        assert valuation.total_notional == sum(amounts)
        weighted = (182 * 500_000 + 365 * 1_000_000 + 182 * 250_000 + 182 * 300_000 + 182 * 100_000)
        assert valuation.average_maturity_days == pytest.approx(weighted / sum(amounts))

    def test_hedge_ratio(self, valuation):
        assert valuation.hedge_ratio(4_600_000) == pytest.approx(50.0)
        assert valuation.hedge_ratio(-4_600_000) == pytest.approx(50.0)
        assert valuation.hedge_ratio(0) == 0.0

    def test_greeks_by_currency(self, valuation, sample_book, market, as_of, pricer):
        by_ccy = valuation.greeks_by_currency()
        assert set(by_ccy) == {"USD", "GBP"}
        call = calculate_greeks(sample_book[1], market, as_of=as_of, pricer=pricer)
        put = calculate_greeks(sample_book[2], market, as_of=as_of, pricer=pricer)
        assert by_ccy["USD"].delta == pytest.approx(call.delta)
        assert by_ccy["GBP"].vega == pytest.approx(put.vega)

    def test_to_frame(self, valuation):
        frame = valuation.to_frame()
        assert isinstance(frame, pd.DataFrame)
        assert len(frame) == 7
        assert {"id", "price", "mtm", "method", "delta", "error"} <= set(frame.columns)
        assert frame["error"].notna().sum() == 2
        assert frame.loc[frame["id"] == "CALL-1", "delta"].iloc[0] > 0

    def test_summary(self, valuation, as_of):
        summary = valuation.summary(total_exposure=4_600_000)
        assert summary["as_of"] == as_of.isoformat()
        assert summary["positions"] == 7
        assert summary["failed"] == 2
        assert summary["hedge_ratio"] == pytest.approx(50.0)
        assert "hedge_ratio" not in valuation.summary()

    def test_snapshot_shared_by_batch(self, valuation, market):
        assert valuation.market_data is market


def test_failures_logged(sample_book, bad_records, market, as_of, test_settings, caplog):
    with caplog.at_level(logging.WARNING):
        value_portfolio(sample_book + bad_records, market, as_of=as_of, settings=test_settings)
    assert "Failed to value instrument BAD-1" in caplog.text
    assert "Failed to value instrument BAD-2" in caplog.text


def test_numerical_failure_recorded_per_row(sample_book, market, as_of, pricer, monkeypatch):
    def overflow(*args, **kwargs):
        raise OverflowError("(34, 'Numerical result out of range')")

    monkeypatch.setattr(pricer.barrier, "calculate_price", overflow)
    valuation = PortfolioValuator(pricer).value(sample_book, market, as_of=as_of)

    assert [p.id for p in valuation.failed] == ["KO-1"]
    assert isinstance(valuation.failed[0].error, PricingError)
    assert "OverflowError" in str(valuation.failed[0].error)
    assert [p.id for p in valuation.valued] == ["FWD-1", "CALL-1", "PUT-1", "OT-1"]


def test_tiny_vol_barrier_book(market, one_year_out, as_of, test_settings):
    maturity = one_year_out.isoformat()
    records = [
        {"id": "KO-TINY", "type": "Call Knock-Out", "currency": "USD", "amount": 1_000_000,
         "rate": 1.05, "barrier": 1.00, "maturity": maturity,
         "impliedVolatility": 0.0005, "riskFreeRate": 0.0},
        {"id": "CALL-2", "type": "Call", "currency": "USD", "amount": 1_000_000,
         "rate": 1.12, "maturity": maturity},
    ]
    valuation = value_portfolio(records, market, as_of=as_of, settings=test_settings)
    assert not valuation.failed
    knock_out = valuation.positions[0]
    assert knock_out.price == pytest.approx(1.10 * math.exp(-0.005) - 1.05, abs=1e-6)


def test_empty_portfolio(market, as_of, test_settings):
    valuation = value_portfolio([], market, as_of=as_of, settings=test_settings)
    assert valuation.total_mtm == 0.0
    assert valuation.average_maturity_days == 0.0
    assert valuation.to_frame().empty


def test_maturity_in_days(as_of):
    assert maturity_in_days(as_of + timedelta(hours=1), as_of) == 1
    assert maturity_in_days(as_of + timedelta(days=2), as_of) == 2
    assert maturity_in_days(as_of - timedelta(days=2), as_of) == 0
    assert maturity_in_days(datetime(2024, 1, 16, tzinfo=timezone.utc).date(), as_of) == 1
