"""
Position Greeks for vanilla FX options.

Only ``Call`` and ``Put`` carry Greeks; every other type returns None.
Per-unit Garman-Kohlhagen Greeks are scaled by the signed notional.
"""
from typing import Optional

from core.exceptions import UnsupportedInstrumentError
from core.types import Greeks
from marketdata.snapshot import MarketDataLike
from valuation.pricing.dispatcher import (
    AsOf,
    InstrumentLike,
    InstrumentPricer,
    coerce_instrument,
    get_default_pricer,
)


def calculate_greeks(
    instrument: InstrumentLike,
    market_data: MarketDataLike = None,
    *,
    as_of: AsOf = None,
    pricer: Optional[InstrumentPricer] = None,
) -> Optional[Greeks]:
    """
    Position Greeks (delta, gamma, vega per vol point, theta per day).

    Uses the same resolved spot, strike, rates and volatility as pricing.
    Returns zeros once the option has expired.
    """
    pricer = pricer or get_default_pricer()
    try:
        instrument = coerce_instrument(instrument)
    except UnsupportedInstrumentError:
        return None

    if not instrument.type.is_vanilla:
        return None

    resolved = pricer.resolve(instrument, market_data, as_of=as_of)
    m = resolved.market
    if m.T <= 0:
        return Greeks.zero()

    per_unit = pricer.vanilla.calculate_greeks(
        m.spot, resolved.strike, m.T, m.r_d, m.r_f, m.sigma, resolved.is_call
    )
    return per_unit.scaled(instrument.amount)
