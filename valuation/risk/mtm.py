"""
Mark-to-market of a hedging position.

    total = per-unit price x |amount|
    MTM   = total                  (forwards, swaps)
    MTM   = total - premium        (every optional instrument)
    MTM   = -MTM                   when amount < 0
"""
import logging
from typing import Optional

from core.exceptions import UnsupportedInstrumentError
from core.types import Instrument
from marketdata.snapshot import MarketDataLike
from utils.logging_config import log_extra
from valuation.pricing.dispatcher import (
    AsOf,
    InstrumentLike,
    InstrumentPricer,
    coerce_instrument,
    get_default_pricer,
)

logger = logging.getLogger(__name__)


def position_value(price_per_unit: float, instrument: Instrument) -> float:
    """Apply notional, premium and direction to a per-unit price."""
    total = price_per_unit * instrument.notional
    if instrument.type.has_premium:
        total -= instrument.premium or 0.0
    return -total if instrument.is_short else total


def calculate_mtm(
    instrument: InstrumentLike,
    market_data: MarketDataLike = None,
    *,
    as_of: AsOf = None,
    pricer: Optional[InstrumentPricer] = None,
) -> float:
    """Position-level MTM of ``instrument`` in domestic currency."""
    pricer = pricer or get_default_pricer()
    try:
        instrument = coerce_instrument(instrument)
    except UnsupportedInstrumentError as exc:
        logger.warning(
            "Unknown instrument type: %s",
            exc.instrument_type,
            extra=log_extra(instrument_type=exc.instrument_type),
        )
        return 0.0

    price = pricer.price(instrument, market_data, as_of=as_of)
    mtm = position_value(price, instrument)
    logger.debug(
        "MTM %s",
        instrument.type.value,
        extra=log_extra(
            id=instrument.id,
            price_per_unit=price,
            amount=instrument.amount,
            premium=instrument.premium,
            mtm=mtm,
        ),
    )
    return mtm
