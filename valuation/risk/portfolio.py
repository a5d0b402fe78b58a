"""
Batch valuation of a hedge book.

Every instrument in a batch is valued against the same market snapshot and
the same ``as_of`` timestamp. A failure on one instrument is recorded on its
row and never aborts the batch.
"""
import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from core.exceptions import FXValuationError
from core.types import Greeks, Instrument
from marketdata.snapshot import MarketDataLike, MarketDataSnapshot
from utils.logging_config import log_extra
from valuation.pricing.dispatcher import (
    AsOf,
    InstrumentLike,
    InstrumentPricer,
    coerce_instrument,
    get_default_pricer,
    numerical_failure,
)
from valuation.pricing.resolver import SECONDS_PER_DAY, to_utc
from valuation.risk.greeks import calculate_greeks
from valuation.risk.mtm import position_value

logger = logging.getLogger(__name__)


@dataclass
class PositionValuation:
    """One row of a portfolio valuation."""
    id: Optional[str]
    type: str
    currency: str
    amount: float
    maturity_days: int
    price: Optional[float] = None
    mtm: Optional[float] = None
    method: Optional[str] = None
    approximate: bool = False
    std_error: Optional[float] = None
    greeks: Optional[Greeks] = None
    error: Optional[FXValuationError] = None

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            'id': self.id,
            'type': self.type,
            'currency': self.currency,
            'amount': self.amount,
            'maturity_days': self.maturity_days,
            'price': self.price,
            'mtm': self.mtm,
            'method': self.method,
            'approximate': self.approximate,
            'std_error': self.std_error,
            'error': str(self.error) if self.error is not None else None,
        }
        greeks = self.greeks.to_dict() if self.greeks is not None else {}
        for name in ('delta', 'gamma', 'vega', 'theta'):
            row[name] = greeks.get(name)
        return row


@dataclass
class PortfolioValuation:
    """Result of valuing a batch of instruments."""
    as_of: datetime
    market_data: MarketDataSnapshot
    positions: List[PositionValuation] = field(default_factory=list)

    @property
    def valued(self) -> List[PositionValuation]:
        return [p for p in self.positions if p.is_ok]

    @property
    def failed(self) -> List[PositionValuation]:
        return [p for p in self.positions if not p.is_ok]

    @property
    def total_mtm(self) -> float:
        """Unrealised P&L of the book (valued positions only)."""
        return float(sum(p.mtm for p in self.valued))

    @property
    def total_notional(self) -> float:
        return float(sum(abs(p.amount) for p in self.positions))

    @property
    def average_maturity_days(self) -> float:
        """Maturity in days weighted by |amount|."""
        weight = self.total_notional
        if weight <= 0:
            return 0.0
        return float(sum(p.maturity_days * abs(p.amount) for p in self.positions) / weight)

    def hedge_ratio(self, total_exposure: float) -> float:
        """Hedged notional as a percentage of the underlying exposure."""
        exposure = abs(total_exposure)
        if exposure <= 0:
            return 0.0
        return self.total_notional / exposure * 100.0

    def greeks_by_currency(self) -> Dict[str, Greeks]:
        """
        Aggregate vanilla Greeks per currency.

        Deltas on different pairs are not additive, so they are reported per
        currency rather than summed.
        """
        totals: Dict[str, Greeks] = defaultdict(Greeks.zero)
        for p in self.valued:
            if p.greeks is not None:
                totals[p.currency] = totals[p.currency] + p.greeks
        return dict(totals)

    def to_frame(self) -> pd.DataFrame:
        """One row per instrument."""
        columns = [
            'id', 'type', 'currency', 'amount', 'maturity_days', 'price', 'mtm',
            'method', 'approximate', 'std_error', 'delta', 'gamma', 'vega', 'theta', 'error',
        ]
        return pd.DataFrame([p.to_dict() for p in self.positions], columns=columns)

    def summary(self, total_exposure: Optional[float] = None) -> Dict[str, Any]:
        result = {
            'as_of': self.as_of.isoformat(),
            'positions': len(self.positions),
            'failed': len(self.failed),
            'total_mtm': self.total_mtm,
            'total_notional': self.total_notional,
            'average_maturity_days': self.average_maturity_days,
        }
        if total_exposure is not None:
            result['hedge_ratio'] = self.hedge_ratio(total_exposure)
        return result


def maturity_in_days(maturity, as_of: datetime) -> int:
    """Whole days to maturity, rounded up and floored at 0."""
    seconds = (to_utc(maturity) - to_utc(as_of)).total_seconds()
    return max(0, math.ceil(seconds / SECONDS_PER_DAY))


class PortfolioValuator:
    """Values a list of instruments with one snapshot and one timestamp."""

    def __init__(self, pricer: Optional[InstrumentPricer] = None):
        self.pricer = pricer or get_default_pricer()

    def _value_one(
        self,
        instrument: Instrument,
        snapshot: MarketDataSnapshot,
        as_of: datetime,
    ) -> PositionValuation:
        row = PositionValuation(
            id=instrument.id,
            type=instrument.type.value,
            currency=instrument.currency.upper(),
            amount=instrument.amount,
            maturity_days=maturity_in_days(instrument.maturity, as_of),
        )
        result = self.pricer.evaluate(instrument, snapshot, as_of=as_of)
        if not result.is_ok:
            row.error = result.error
            return row

        row.price = result.price
        row.mtm = position_value(result.price, instrument)
        row.method = result.method
        row.approximate = result.approximate
        row.std_error = result.std_error
        row.greeks = calculate_greeks(instrument, snapshot, as_of=as_of, pricer=self.pricer)
        return row

    def value(
        self,
        instruments: Iterable[InstrumentLike],
        market_data: MarketDataLike = None,
        *,
        as_of: AsOf = None,
    ) -> PortfolioValuation:
        snapshot = self.pricer.snapshot(market_data)
        as_of = to_utc(as_of) if as_of is not None else datetime.now(timezone.utc)
        valuation = PortfolioValuation(as_of=as_of, market_data=snapshot)

        for index, raw in enumerate(instruments):
            try:
                instrument = coerce_instrument(raw)
                row = self._value_one(instrument, snapshot, as_of)
            except (FXValuationError, ArithmeticError) as exc:
                error = numerical_failure(exc) if isinstance(exc, ArithmeticError) else exc
                row = PositionValuation(
                    id=_raw_field(raw, 'id'),
                    type=str(_raw_field(raw, 'type')),
                    currency=str(_raw_field(raw, 'currency') or ''),
                    amount=_raw_amount(raw),
                    maturity_days=0,
                    error=error,
                )

            if row.error is not None:
                logger.warning(
                    "Failed to value instrument %s: %s",
                    row.id if row.id is not None else f"#{index}",
                    row.error,
                    extra=log_extra(id=row.id, index=index, type=row.type, code=row.error.code),
                )
            valuation.positions.append(row)

        logger.info(
            "Valued portfolio",
            extra=log_extra(
                positions=len(valuation.positions),
                failed=len(valuation.failed),
                total_mtm=valuation.total_mtm,
            ),
        )
        return valuation


def _raw_field(raw: InstrumentLike, name: str) -> Any:
    if isinstance(raw, Instrument):
        value = getattr(raw, name)
        return value.value if name == 'type' else value
    try:
        return raw.get(name)
    except AttributeError:
        return None


def _raw_amount(raw: InstrumentLike) -> float:
    value = _raw_field(raw, 'amount')
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def value_portfolio(
    instruments: Iterable[InstrumentLike],
    market_data: MarketDataLike = None,
    *,
    as_of: Optional[datetime] = None,
    settings=None,
) -> PortfolioValuation:
    """Value a hedge book in one consistent batch."""
    pricer = InstrumentPricer(settings) if settings is not None else None
    return PortfolioValuator(pricer).value(instruments, market_data, as_of=as_of)
