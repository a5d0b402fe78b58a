"""
Instrument dispatcher: the single entry point from an instrument record to a
per-unit theoretical price.

    calculate_theoretical_price(instrument, market_data) -> float
    price_instrument(instrument, market_data) -> PricingResult

The float entry point keeps the dashboard contract (an unsupported type is
logged and priced at 0.0); ``price_instrument`` returns a tagged result so
callers can tell "unsupported" from "worth zero".
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Union

import numpy as np

from core.exceptions import FXValuationError, PricingError, UnsupportedInstrumentError
from core.types import Greeks, Instrument, PricingResult
from marketdata.snapshot import MarketDataLike, MarketDataSnapshot, ensure_snapshot
from utils.logging_config import log_extra
from valuation.pricing.barrier import BarrierOptionPricer, DoubleBarrierOptionPricer
from valuation.pricing.digital import DigitalMCConfig, MonteCarloDigitalPricer
from valuation.pricing.garman_kohlhagen import GarmanKohlhagenPricer
from valuation.pricing.resolver import (
    ResolvedBarrier,
    ResolvedDoubleBarrier,
    ResolvedDoubleTouch,
    ResolvedInstrument,
    ResolvedLinear,
    ResolvedRangeDigital,
    ResolvedTouch,
    ResolvedVanilla,
    resolve_instrument,
)
from valuation.pricing.touch import TouchOptionPricer

logger = logging.getLogger(__name__)

InstrumentLike = Union[Instrument, Mapping[str, Any]]
AsOf = Optional[Union[date, datetime]]


def coerce_instrument(instrument: InstrumentLike) -> Instrument:
    """Accept an Instrument or a raw dashboard record."""
    if isinstance(instrument, Instrument):
        return instrument
    return Instrument.from_record(instrument)


def numerical_failure(exc: ArithmeticError) -> PricingError:
    """Overflow, division by zero or a trapped floating-point error as an engine error."""
    return PricingError(f"Numerical failure ({type(exc).__name__}): {exc}")


class InstrumentPricer:
    """
    Maps an instrument's type to the matching pricer.

    One instance holds the configured pricers (normal CDF choice, touch
    model, Monte Carlo settings and generator) so that a batch is priced
    with a single consistent configuration.
    """

    def __init__(
        self,
        settings=None,
        digital_pricer: Optional[MonteCarloDigitalPricer] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        if settings is None:
            from config.settings import settings
        self.settings = settings
        exact = settings.exact_normal_cdf
        self.vanilla = GarmanKohlhagenPricer(exact_cdf=exact)
        self.barrier = BarrierOptionPricer(exact_cdf=exact)
        self.double_barrier = DoubleBarrierOptionPricer(exact_cdf=exact)
        self.touch = TouchOptionPricer(
            exact_cdf=exact,
            model=settings.touch_model,
            payment=settings.touch_payment,
        )
        self.digital = digital_pricer or MonteCarloDigitalPricer(DigitalMCConfig.from_settings(settings))
        self.rng = rng

    # -- resolution ---------------------------------------------------------

    def snapshot(self, market_data: MarketDataLike = None) -> MarketDataSnapshot:
        return ensure_snapshot(market_data, self.settings)

    def resolve(
        self,
        instrument: InstrumentLike,
        market_data: MarketDataLike = None,
        *,
        as_of: AsOf = None,
    ) -> ResolvedInstrument:
        return resolve_instrument(
            coerce_instrument(instrument),
            self.snapshot(market_data),
            as_of=as_of,
            settings=self.settings,
        )

    # -- pricing ------------------------------------------------------------

    def price_resolved(self, resolved: ResolvedInstrument) -> PricingResult:
        """Dispatch a resolved instrument to its pricer."""
        m = resolved.market

        if isinstance(resolved, ResolvedLinear):
            df = np.exp(-m.r_d * m.T)
            if resolved.is_swap:
                return PricingResult.ok((m.spot - resolved.strike) * m.T * df, "swap")
            return PricingResult.ok((m.spot - resolved.strike) * df, "forward")

        if isinstance(resolved, ResolvedVanilla):
            price = self.vanilla.calculate_price(
                m.spot, resolved.strike, m.T, m.r_d, m.r_f, m.sigma, resolved.is_call
            )
            return PricingResult.ok(price, "garman_kohlhagen")

        if isinstance(resolved, ResolvedBarrier):
            price = self.barrier.calculate_price(
                m.spot, resolved.strike, resolved.barrier, m.T, m.r_d, m.r_f, m.sigma,
                resolved.is_call, resolved.is_knock_out, resolved.rebate,
            )
            approximate = m.T > 0 and self.barrier.uses_approximation(
                resolved.strike, resolved.barrier, resolved.is_call
            )
            return PricingResult.ok(price, "barrier_reflection", approximate=approximate)

        if isinstance(resolved, ResolvedDoubleBarrier):
            price = self.double_barrier.calculate_price(
                m.spot, resolved.strike, resolved.lower, resolved.upper, m.T, m.r_d, m.r_f, m.sigma,
                resolved.is_call, resolved.is_knock_out, resolved.rebate,
            )
            return PricingResult.ok(price, "double_barrier_range_factor", approximate=m.T > 0)

        if isinstance(resolved, ResolvedTouch):
            pricer = self.touch.one_touch_price if resolved.is_one_touch else self.touch.no_touch_price
            price = pricer(m.spot, resolved.barrier, m.T, m.r_d, m.r_f, m.sigma, resolved.payout)
            simplified = self.touch.model == "simplified"
            method = "touch_simplified" if simplified else "touch_first_passage"
            return PricingResult.ok(price, method, approximate=simplified and m.T > 0)

        if isinstance(resolved, ResolvedDoubleTouch):
            if self.settings.double_touch_model == "analytic":
                pricer = (self.touch.double_touch_price if resolved.is_double_touch
                          else self.touch.double_no_touch_price)
                price = pricer(m.spot, resolved.lower, resolved.upper, m.T, m.r_d, m.r_f, m.sigma,
                               resolved.payout)
                return PricingResult.ok(price, "double_touch_hui")
            # double touch pays when the corridor is left, like an outside binary
            result = self.digital.price(
                m.spot, resolved.lower, resolved.upper, m.T, m.r_d, m.r_f, m.sigma,
                is_range=not resolved.is_double_touch, payout=resolved.payout, rng=self.rng,
            )
            return PricingResult.ok(result.price, "double_touch_monte_carlo", std_error=result.std_error)

        if isinstance(resolved, ResolvedRangeDigital):
            result = self.digital.price(
                m.spot, resolved.lower, resolved.upper, m.T, m.r_d, m.r_f, m.sigma,
                is_range=resolved.is_range, payout=resolved.payout, rng=self.rng,
            )
            return PricingResult.ok(result.price, "range_digital_monte_carlo", std_error=result.std_error)

        raise UnsupportedInstrumentError(getattr(resolved, "kind", type(resolved).__name__))

    def evaluate(
        self,
        instrument: InstrumentLike,
        market_data: MarketDataLike = None,
        *,
        as_of: AsOf = None,
    ) -> PricingResult:
        """Tagged per-unit price; engine errors are captured in the result."""
        if as_of is None:
            as_of = datetime.now(timezone.utc)
        try:
            resolved = self.resolve(instrument, market_data, as_of=as_of)
            result = self.price_resolved(resolved)
        except FXValuationError as exc:
            return PricingResult.failure(exc)
        except ArithmeticError as exc:
            return PricingResult.failure(numerical_failure(exc))

        m = resolved.market
        logger.debug(
            "Valued %s",
            resolved.kind.value,
            extra=log_extra(
                type=resolved.kind.value,
                spot=m.spot,
                strike=getattr(resolved, "strike", None),
                volatility=m.sigma,
                time_to_expiry=m.T,
                price=result.price,
                method=result.method,
            ),
        )
        return result

    def price(
        self,
        instrument: InstrumentLike,
        market_data: MarketDataLike = None,
        *,
        as_of: AsOf = None,
    ) -> float:
        """Per-unit price; unsupported types log a warning and return 0.0."""
        result = self.evaluate(instrument, market_data, as_of=as_of)
        if result.is_ok:
            return result.unwrap()
        if isinstance(result.error, UnsupportedInstrumentError):
            logger.warning(
                "Unknown instrument type: %s",
                result.error.instrument_type,
                extra=log_extra(instrument_type=result.error.instrument_type),
            )
            return 0.0
        raise result.error

    def mtm(
        self,
        instrument: InstrumentLike,
        market_data: MarketDataLike = None,
        *,
        as_of: AsOf = None,
    ) -> float:
        from valuation.risk.mtm import calculate_mtm

        return calculate_mtm(instrument, market_data, as_of=as_of, pricer=self)

    def greeks(
        self,
        instrument: InstrumentLike,
        market_data: MarketDataLike = None,
        *,
        as_of: AsOf = None,
    ) -> Optional[Greeks]:
        from valuation.risk.greeks import calculate_greeks

        return calculate_greeks(instrument, market_data, as_of=as_of, pricer=self)


_default_pricer: Optional[InstrumentPricer] = None


def get_default_pricer() -> InstrumentPricer:
    """Lazily built pricer bound to the global settings."""
    global _default_pricer
    if _default_pricer is None:
        _default_pricer = InstrumentPricer()
    return _default_pricer


def calculate_theoretical_price(
    instrument: InstrumentLike,
    market_data: MarketDataLike = None,
    *,
    as_of: AsOf = None,
    settings=None,
) -> float:
    """Per-unit theoretical price of ``instrument`` (0.0 for unsupported types)."""
    pricer = InstrumentPricer(settings) if settings is not None else get_default_pricer()
    return pricer.price(instrument, market_data, as_of=as_of)


def price_instrument(
    instrument: InstrumentLike,
    market_data: MarketDataLike = None,
    *,
    as_of: AsOf = None,
    settings=None,
) -> PricingResult:
    """Tagged per-unit price of ``instrument``."""
    pricer = InstrumentPricer(settings) if settings is not None else get_default_pricer()
    return pricer.evaluate(instrument, market_data, as_of=as_of)
