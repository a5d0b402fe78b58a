"""Tests for custom exception hierarchy in core.exceptions."""

from core.exceptions import (
    ConfigurationError,
    FXValuationError,
    MarketDataError,
    PricingError,
    UnsupportedInstrumentError,
    ValidationError,
)


def test_base_error_string_with_and_without_code():
    err_with_code = FXValuationError("boom", code="E1")
    err_without_code = FXValuationError("boom")

    assert str(err_with_code) == "[E1] boom"
    assert str(err_without_code) == "boom"


def test_validation_error_formats_field_and_value():
    err = ValidationError("invalid", field="barrier", value=-1, code="V1")
    fallback = ValidationError("invalid")

    assert err.field == "barrier"
    assert err.value == -1
    assert str(err) == "[V1] barrier=-1: invalid"
    assert str(fallback) == "[VALIDATION_ERROR] invalid"


def test_specialized_errors_store_extra_metadata():
    pricing = PricingError("pricing failed")
    market = MarketDataError("no spot", pair="EURNOK")
    config = ConfigurationError("config failed")
    unsupported = UnsupportedInstrumentError("Variance Swap")

    assert pricing.code == "PRICING_ERROR"
    assert market.code == "MARKET_DATA_ERROR" and market.pair == "EURNOK"
    assert config.code == "CONFIG_ERROR"
    assert unsupported.code == "UNSUPPORTED_INSTRUMENT"
    assert unsupported.instrument_type == "Variance Swap"
    assert "Variance Swap" in str(unsupported)


def test_every_error_is_an_engine_error():
    for err in (
        ValidationError("x"),
        PricingError("x"),
        UnsupportedInstrumentError("x"),
        MarketDataError("x"),
        ConfigurationError("x"),
    ):
        assert isinstance(err, FXValuationError)
    assert isinstance(UnsupportedInstrumentError("x"), PricingError)
