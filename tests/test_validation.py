"""Tests for dashboard record schemas and validators."""
from datetime import date, datetime, timezone

import numpy as np
import pytest

from core.exceptions import UnsupportedInstrumentError, ValidationError
from core.types import InstrumentType, StrikeType
from core.validation import (
    InstrumentRecord,
    MarketDataRecord,
    parse_model,
    validate_barrier_range,
    validate_currency_code,
    validate_finite,
    validate_positive,
)


class TestValidators:
    def test_positive(self):
        assert validate_positive(1.1, "spot") == 1.1
        assert validate_positive(0, "vol", strict=False) == 0.0
        with pytest.raises(ValidationError) as exc:
            validate_positive(0, "spot")
        assert exc.value.field == "spot"
        with pytest.raises(ValidationError):
            validate_positive(-0.1, "vol", strict=False)

    @pytest.mark.parametrize("bad", [None, "1.1", True, np.nan, np.inf])
    def test_finite_rejects_non_numbers(self, bad):
        with pytest.raises(ValidationError):
            validate_finite(bad, "rate")

    def test_finite_accepts_negative_rates(self):
        assert validate_finite(-0.005, "rate") == -0.005
        assert validate_finite(np.float64(0.01)) == 0.01

    def test_currency_code(self):
        assert validate_currency_code(" usd ") == "USD"
        for bad in ("", "US", "USDX", "U5D"):
            with pytest.raises(ValidationError):
                validate_currency_code(bad)

    def test_barrier_range(self):
        validate_barrier_range(1.0, 1.2)
        with pytest.raises(ValidationError):
            validate_barrier_range(1.2, 1.2)
        with pytest.raises(ValidationError):
            validate_barrier_range(None, 1.2)
        with pytest.raises(ValidationError):
            validate_barrier_range(-1.0, 1.2)


class TestInstrumentRecord:
    """Dashboard instrument records."""

    def test_camel_case_aliases(self):
        record = parse_model(InstrumentRecord, {
            "type": "Call Double Knock-Out",
            "currency": "usd",
            "amount": -250000,
            "rate": 1.1,
            "strikeType": "Absolute",
            "lowerBarrier": 1.0,
            "upperBarrier": 1.2,
            "maturity": "2025-03-31T00:00:00Z",
            "impliedVolatility": 0.1,
            "riskFreeRate": 0.01,
        })
        assert record.type is InstrumentType.CALL_DOUBLE_KNOCK_OUT
        assert record.currency == "USD"
        assert record.strike_type is StrikeType.ABSOLUTE
        assert record.maturity == datetime(2025, 3, 31, tzinfo=timezone.utc)
        assert record.risk_free_rate == 0.01

    def test_snake_case_names_accepted(self):
        record = InstrumentRecord(type="Put", currency="GBP", amount=1, rate=95,
                                  strike_type="percentage", maturity=date(2025, 6, 30))
        assert record.strike_type is StrikeType.PERCENTAGE
        assert record.maturity == datetime(2025, 6, 30)

    def test_unknown_type_is_unsupported_not_invalid(self):
        with pytest.raises(UnsupportedInstrumentError):
            parse_model(InstrumentRecord, {
                "type": "Variance Swap", "currency": "USD", "amount": 1, "maturity": "2025-01-01",
            })

    def test_beta_label(self):
        record = parse_model(InstrumentRecord, {
            "type": "Outside Binary (beta)", "currency": "USD", "amount": 1,
            "lowerBarrier": 1.0, "upperBarrier": 1.2, "maturity": "2025-01-01",
        })
        assert record.type is InstrumentType.OUTSIDE_BINARY

    @pytest.mark.parametrize(
        "record",
        [
            {"type": "Call", "currency": "USD", "amount": 1, "maturity": "2025-01-01"},
            {"type": "Forward", "currency": "USD", "amount": 1, "rate": 0, "maturity": "2025-01-01"},
            {"type": "One Touch", "currency": "USD", "amount": 1, "maturity": "2025-01-01"},
            {"type": "Put Knock-In", "currency": "USD", "amount": 1, "rate": 1.1,
             "maturity": "2025-01-01"},
            {"type": "Double No Touch", "currency": "USD", "amount": 1, "lowerBarrier": 1.2,
             "upperBarrier": 1.0, "maturity": "2025-01-01"},
            {"type": "Range Binary", "currency": "USD", "amount": 1, "lowerBarrier": 1.0,
             "maturity": "2025-01-01"},
            {"type": "Call", "currency": "US", "amount": 1, "rate": 1.1, "maturity": "2025-01-01"},
            {"type": "Call", "currency": "U5D", "amount": 1, "rate": 1.1, "maturity": "2025-01-01"},
            {"type": "One Touch", "currency": "USD", "amount": 1, "barrier": -1,
             "maturity": "2025-01-01"},
            {"type": "Call", "currency": "USD", "amount": 1, "rate": 1.1, "maturity": "not a date"},
        ],
    )
    def test_invalid_records_raise_validation_error(self, record):
        with pytest.raises(ValidationError):
            parse_model(InstrumentRecord, record)

    def test_validation_error_names_field(self):
        with pytest.raises(ValidationError) as exc:
            parse_model(InstrumentRecord, {
                "type": "Call", "currency": "USD", "amount": 1, "rate": 1.1,
                "maturity": "2025-01-01", "impliedVolatility": -0.2,
            })
        assert exc.value.field == "impliedVolatility"
        assert exc.value.value == -0.2

    def test_currency_uses_code_validator(self):
        record = parse_model(InstrumentRecord, {
            "type": "Call", "currency": "jpy", "amount": 1, "rate": 150, "maturity": "2025-01-01",
        })
        assert record.currency == "JPY"
        with pytest.raises(ValidationError) as exc:
            parse_model(InstrumentRecord, {
                "type": "Call", "currency": "U5D", "amount": 1, "rate": 1.1, "maturity": "2025-01-01",
            })
        assert exc.value.field == "currency"
        assert exc.value.value == "U5D"
        assert "3 letters" in str(exc.value)

    def test_to_instrument(self):
        inst = InstrumentRecord(type="Swap", currency="JPY", amount=100, rate=150,
                                maturity="2025-01-01", premium=5, id=7).to_instrument()
        assert inst.type is InstrumentType.SWAP
        assert inst.premium == 5
        assert inst.id == "7"


class TestMarketDataRecord:
    def test_aliases_and_upper_keys(self):
        record = parse_model(MarketDataRecord, {
            "spotRates": {"eurusd": 1.1},
            "volatilities": {"eurusd": 0.12},
            "riskFreeRate": 0.03,
            "foreignRates": {"usd": 0.045},
        })
        assert record.spot_rates == {"EURUSD": 1.1}
        assert record.volatilities == {"EURUSD": 0.12}
        assert record.foreign_rates == {"USD": 0.045}
        assert record.foreign_rate is None

    def test_empty_record_is_valid(self):
        record = parse_model(MarketDataRecord, {})
        assert record.spot_rates is None

    @pytest.mark.parametrize(
        "data",
        [{"spotRates": {"EURUSD": 0}}, {"volatilities": {"EURUSD": -0.1}}],
    )
    def test_rejects_bad_levels(self, data):
        with pytest.raises(ValidationError):
            parse_model(MarketDataRecord, data)
