"""
Immutable market-data snapshot used by every valuation.

A snapshot is read-only; updates return a new snapshot so that a batch
valuation always sees one consistent set of rates.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from core.exceptions import MarketDataError
from core.validation.schemas import MarketDataRecord, parse_model
from core.validation.validators import validate_finite, validate_positive

logger = logging.getLogger(__name__)


def _frozen(values: Optional[Mapping[str, float]]) -> Mapping[str, float]:
    return MappingProxyType({str(k).upper(): float(v) for k, v in (values or {}).items()})


@dataclass(frozen=True)
class MarketDataSnapshot:
    """Spot rates and volatilities keyed by pair (``EURUSD``), plus flat rates."""
    spot_rates: Mapping[str, float]
    volatilities: Mapping[str, float]
    risk_free_rate: float = 0.02
    foreign_rate: float = 0.005
    foreign_rates: Mapping[str, float] = field(default_factory=dict)
    last_updated: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "spot_rates", _frozen(self.spot_rates))
        object.__setattr__(self, "volatilities", _frozen(self.volatilities))
        object.__setattr__(self, "foreign_rates", _frozen(self.foreign_rates))

    def has_spot(self, pair: str) -> bool:
        return pair.upper() in self.spot_rates

    def spot(self, pair: str) -> float:
        """Spot rate for ``pair``; raises MarketDataError if the pair is unknown."""
        try:
            return self.spot_rates[pair.upper()]
        except KeyError:
            raise MarketDataError(f"No spot rate for {pair.upper()}", pair=pair.upper()) from None

    def volatility(self, pair: str) -> Optional[float]:
        """Volatility for ``pair`` or None; the caller decides the fallback."""
        return self.volatilities.get(pair.upper())

    def foreign_rate_for(self, currency: str) -> float:
        return self.foreign_rates.get(currency.upper(), self.foreign_rate)

    # copy-on-write updates

    def with_spot_rate(self, pair: str, rate: float) -> "MarketDataSnapshot":
        rate = validate_positive(rate, "spot_rate")
        spots = dict(self.spot_rates)
        spots[pair.upper()] = rate
        return self._replace(spot_rates=spots)

    def with_volatility(self, pair: str, vol: float) -> "MarketDataSnapshot":
        vol = validate_positive(vol, "volatility", strict=False)
        vols = dict(self.volatilities)
        vols[pair.upper()] = vol
        return self._replace(volatilities=vols)

    def with_risk_free_rate(self, rate: float) -> "MarketDataSnapshot":
        return self._replace(risk_free_rate=validate_finite(rate, "risk_free_rate"))

    def with_foreign_rate(self, rate: float, currency: Optional[str] = None) -> "MarketDataSnapshot":
        """Set the flat foreign rate, or an override for one currency."""
        rate = validate_finite(rate, "foreign_rate")
        if currency is None:
            return self._replace(foreign_rate=rate)
        rates = dict(self.foreign_rates)
        rates[currency.upper()] = rate
        return self._replace(foreign_rates=rates)

    def _replace(self, **changes: Any) -> "MarketDataSnapshot":
        changes.setdefault("last_updated", datetime.now(timezone.utc))
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase view, as consumed by the dashboard."""
        return {
            "spotRates": dict(self.spot_rates),
            "volatilities": dict(self.volatilities),
            "riskFreeRate": self.risk_free_rate,
            "foreignRate": self.foreign_rate,
            "foreignRates": dict(self.foreign_rates),
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], settings=None) -> "MarketDataSnapshot":
        """Build from a raw record; missing sections fall back to the defaults."""
        if settings is None:
            from config.settings import settings
        record = parse_model(MarketDataRecord, data)
        return cls(
            spot_rates=record.spot_rates if record.spot_rates is not None else settings.default_spot_rates,
            volatilities=(
                record.volatilities if record.volatilities is not None else settings.default_volatilities
            ),
            risk_free_rate=(
                record.risk_free_rate if record.risk_free_rate is not None
                else settings.default_risk_free_rate
            ),
            foreign_rate=(
                record.foreign_rate if record.foreign_rate is not None
                else settings.foreign_risk_free_rate
            ),
            foreign_rates=record.foreign_rates or {},
            last_updated=record.last_updated,
        )


MarketDataLike = Union[MarketDataSnapshot, Mapping[str, Any], None]


def default_market_data(settings=None) -> MarketDataSnapshot:
    """Snapshot built from the configured defaults (also used to reset)."""
    if settings is None:
        from config.settings import settings
    return MarketDataSnapshot(
        spot_rates=settings.default_spot_rates,
        volatilities=settings.default_volatilities,
        risk_free_rate=settings.default_risk_free_rate,
        foreign_rate=settings.foreign_risk_free_rate,
        last_updated=datetime.now(timezone.utc),
    )


def ensure_snapshot(market_data: MarketDataLike, settings=None) -> MarketDataSnapshot:
    """Accept a snapshot, a raw mapping or None."""
    if isinstance(market_data, MarketDataSnapshot):
        return market_data
    if market_data is None:
        logger.debug("No market data supplied, using configured defaults")
        return default_market_data(settings)
    return MarketDataSnapshot.from_mapping(market_data, settings)
