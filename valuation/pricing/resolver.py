"""
Instrument resolution: the one place where a dashboard instrument is turned
into absolute pricing inputs.

Every percentage-quoted strike or barrier is converted here (``spot x value
/ 100``), per-instrument overrides are applied, and time to expiry is
computed against a single ``as_of`` timestamp. Pricers only ever see the
resolved variants defined below.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union

from core.exceptions import ValidationError
from core.types import Instrument, InstrumentType, StrikeType
from core.validation.validators import validate_barrier_range, validate_positive
from marketdata.snapshot import MarketDataSnapshot
from utils.logging_config import log_extra

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400.0


@dataclass(frozen=True)
class MarketInputs:
    """Market inputs shared by every resolved variant."""
    spot: float
    T: float
    r_d: float
    r_f: float
    sigma: float


@dataclass(frozen=True)
class ResolvedLinear:
    kind: InstrumentType
    market: MarketInputs
    strike: float

    @property
    def is_swap(self) -> bool:
        return self.kind is InstrumentType.SWAP


@dataclass(frozen=True)
class ResolvedVanilla:
    kind: InstrumentType
    market: MarketInputs
    strike: float

    @property
    def is_call(self) -> bool:
        return self.kind.is_call


@dataclass(frozen=True)
class ResolvedBarrier:
    kind: InstrumentType
    market: MarketInputs
    strike: float
    barrier: float
    rebate: float = 0.0

    @property
    def is_call(self) -> bool:
        return self.kind.is_call

    @property
    def is_knock_out(self) -> bool:
        return self.kind.is_knock_out


@dataclass(frozen=True)
class ResolvedDoubleBarrier:
    kind: InstrumentType
    market: MarketInputs
    strike: float
    lower: float
    upper: float
    rebate: float = 0.0

    @property
    def is_call(self) -> bool:
        return self.kind.is_call

    @property
    def is_knock_out(self) -> bool:
        return self.kind.is_knock_out


@dataclass(frozen=True)
class ResolvedTouch:
    kind: InstrumentType
    market: MarketInputs
    barrier: float
    payout: float = 1.0

    @property
    def is_one_touch(self) -> bool:
        return self.kind is InstrumentType.ONE_TOUCH


@dataclass(frozen=True)
class ResolvedDoubleTouch:
    kind: InstrumentType
    market: MarketInputs
    lower: float
    upper: float
    payout: float = 1.0

    @property
    def is_double_touch(self) -> bool:
        return self.kind is InstrumentType.DOUBLE_TOUCH


@dataclass(frozen=True)
class ResolvedRangeDigital:
    kind: InstrumentType
    market: MarketInputs
    lower: float
    upper: float
    payout: float = 1.0

    @property
    def is_range(self) -> bool:
        return self.kind is InstrumentType.RANGE_BINARY


ResolvedInstrument = Union[
    ResolvedLinear,
    ResolvedVanilla,
    ResolvedBarrier,
    ResolvedDoubleBarrier,
    ResolvedTouch,
    ResolvedDoubleTouch,
    ResolvedRangeDigital,
]


def to_utc(value: Union[date, datetime]) -> datetime:
    """A bare date is midnight UTC; naive datetimes are taken as UTC."""
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def time_to_expiry(
    maturity: Union[date, datetime],
    as_of: Optional[Union[date, datetime]] = None,
    days_per_year: float = 365.0,
) -> float:
    """Year fraction from ``as_of`` to ``maturity``, floored at 0."""
    now = to_utc(as_of) if as_of is not None else datetime.now(timezone.utc)
    seconds = (to_utc(maturity) - now).total_seconds()
    return max(0.0, seconds / (days_per_year * SECONDS_PER_DAY))


def resolve_level(value: float, quote: StrikeType, spot: float) -> float:
    """Absolute level of a strike / barrier quoted as ``quote``."""
    if quote is StrikeType.PERCENTAGE:
        return spot * (value / 100.0)
    return value


def resolve_market_inputs(
    instrument: Instrument,
    market_data: MarketDataSnapshot,
    as_of: Optional[Union[date, datetime]] = None,
    settings=None,
) -> MarketInputs:
    """Spot, T, rates and volatility for ``instrument``; overrides win when not None."""
    if settings is None:
        from config.settings import settings

    pair = instrument.pair(settings.domestic_currency)
    spot = market_data.spot(pair)

    r_d = instrument.risk_free_rate if instrument.risk_free_rate is not None else market_data.risk_free_rate
    r_f = market_data.foreign_rate_for(instrument.currency)

    if instrument.implied_volatility is not None:
        sigma = instrument.implied_volatility
    else:
        sigma = market_data.volatility(pair)
        if sigma is None:
            sigma = settings.default_volatility
            logger.warning(
                "No volatility for %s, falling back to default",
                pair,
                extra=log_extra(pair=pair, volatility=sigma),
            )

    T = time_to_expiry(instrument.maturity, as_of, settings.days_per_year)
    return MarketInputs(spot=spot, T=T, r_d=float(r_d), r_f=float(r_f), sigma=float(sigma))


def _require(value: Optional[float], field: str, kind: InstrumentType) -> float:
    if value is None:
        raise ValidationError(f"{kind.value} requires {field}", field=field, value=None)
    return value


def resolve_instrument(
    instrument: Instrument,
    market_data: MarketDataSnapshot,
    as_of: Optional[Union[date, datetime]] = None,
    settings=None,
) -> ResolvedInstrument:
    """
    Resolve ``instrument`` against ``market_data`` into a pricing variant.

    Raises:
        ValidationError: a field the instrument type requires is missing or invalid
        MarketDataError: no spot rate for the instrument's pair
    """
    kind = instrument.type
    market = resolve_market_inputs(instrument, market_data, as_of, settings)
    spot = market.spot

    def strike() -> float:
        level = resolve_level(_require(instrument.rate, "rate", kind), instrument.strike_type, spot)
        return validate_positive(level, "rate")

    def barrier() -> float:
        level = resolve_level(_require(instrument.barrier, "barrier", kind), instrument.barrier_type, spot)
        return validate_positive(level, "barrier")

    def corridor():
        lower = _require(instrument.lower_barrier, "lower_barrier", kind)
        upper = _require(instrument.upper_barrier, "upper_barrier", kind)
        lower = resolve_level(lower, instrument.barrier_type, spot)
        upper = resolve_level(upper, instrument.barrier_type, spot)
        validate_barrier_range(lower, upper)
        return lower, upper

    rebate = instrument.rebate or 0.0

    if kind.is_linear:
        return ResolvedLinear(kind, market, strike())
    if kind.is_vanilla:
        return ResolvedVanilla(kind, market, strike())
    if kind.is_single_barrier:
        return ResolvedBarrier(kind, market, strike(), barrier(), rebate)
    if kind.is_double_barrier:
        lower, upper = corridor()
        return ResolvedDoubleBarrier(kind, market, strike(), lower, upper, rebate)
    if kind.is_touch:
        return ResolvedTouch(kind, market, barrier())
    if kind.is_double_touch:
        lower, upper = corridor()
        return ResolvedDoubleTouch(kind, market, lower, upper)
    if kind.is_range_digital:
        lower, upper = corridor()
        return ResolvedRangeDigital(kind, market, lower, upper)

    # InstrumentType is closed; reaching here means a member was added without a family
    raise ValidationError(f"No resolution rule for {kind.value}", field="type", value=kind.value)
