"""
Pydantic schemas for the records exchanged with the dashboard.

The dashboard sends camelCase keys (``strikeType``, ``lowerBarrier``,
``spotRates`` ...); the schemas accept them through aliases as well as the
snake_case field names. Compatible with Pydantic v2.
"""
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import UnsupportedInstrumentError, ValidationError
from core.types import Instrument, InstrumentType, StrikeType
from core.validation.validators import validate_currency_code

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_model(model_cls: Type[ModelT], data: Mapping[str, Any]) -> ModelT:
    """Validate ``data`` against ``model_cls``, raising the engine's ValidationError."""
    try:
        return model_cls.model_validate(dict(data))
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(part) for part in first.get("loc", ()))
        value = first.get("input") if loc else None
        raise ValidationError(first.get("msg", str(exc)), field=loc or None, value=value) from exc


class InstrumentRecord(BaseModel):
    """Validated hedging instrument record."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: InstrumentType
    currency: str = Field(..., min_length=3, max_length=3)
    amount: float
    maturity: datetime
    rate: Optional[float] = None
    strike_type: StrikeType = Field(StrikeType.ABSOLUTE, alias="strikeType")
    premium: Optional[float] = None
    barrier: Optional[float] = Field(None, gt=0)
    barrier_type: StrikeType = Field(StrikeType.ABSOLUTE, alias="barrierType")
    lower_barrier: Optional[float] = Field(None, gt=0, alias="lowerBarrier")
    upper_barrier: Optional[float] = Field(None, gt=0, alias="upperBarrier")
    rebate: Optional[float] = Field(None, ge=0)
    implied_volatility: Optional[float] = Field(None, ge=0, alias="impliedVolatility")
    risk_free_rate: Optional[float] = Field(None, alias="riskFreeRate")
    id: Optional[Union[str, int]] = None

    @field_validator('type', mode='before')
    @classmethod
    def parse_type(cls, v: Any) -> InstrumentType:
        """Unknown labels are unsupported instruments, not malformed input."""
        if isinstance(v, InstrumentType):
            return v
        try:
            return InstrumentType(v)
        except ValueError:
            raise UnsupportedInstrumentError(v) from None

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        try:
            return validate_currency_code(v)
        except ValidationError as exc:
            raise ValueError(exc.message) from None

    @field_validator('maturity', mode='before')
    @classmethod
    def parse_maturity(cls, v: Any) -> Any:
        """Accept ISO strings, dates and datetimes."""
        if isinstance(v, datetime):
            return v
        if isinstance(v, date):
            return datetime(v.year, v.month, v.day)
        if isinstance(v, str):
            text = v.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return datetime.fromisoformat(text)
        return v

    @field_validator('strike_type', 'barrier_type', mode='before')
    @classmethod
    def lower_strike_type(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @model_validator(mode='after')
    def check_required_levels(self) -> 'InstrumentRecord':
        """Each instrument family needs its own strike / barrier fields."""
        kind = self.type
        if kind.requires_strike:
            if self.rate is None:
                raise ValueError(f"{kind.value} requires a rate")
            if self.rate <= 0:
                raise ValueError("rate must be positive")
        if kind.requires_barrier and self.barrier is None:
            raise ValueError(f"{kind.value} requires a barrier")
        if kind.requires_range:
            if self.lower_barrier is None or self.upper_barrier is None:
                raise ValueError(f"{kind.value} requires lowerBarrier and upperBarrier")
            if self.lower_barrier >= self.upper_barrier:
                raise ValueError("lowerBarrier must be below upperBarrier")
        return self

    def to_instrument(self) -> Instrument:
        return Instrument(
            type=self.type,
            currency=self.currency,
            amount=self.amount,
            maturity=self.maturity,
            rate=self.rate,
            strike_type=self.strike_type,
            premium=self.premium,
            barrier=self.barrier,
            barrier_type=self.barrier_type,
            lower_barrier=self.lower_barrier,
            upper_barrier=self.upper_barrier,
            rebate=self.rebate,
            implied_volatility=self.implied_volatility,
            risk_free_rate=self.risk_free_rate,
            id=None if self.id is None else str(self.id),
        )


class MarketDataRecord(BaseModel):
    """Validated market-data snapshot record.

    Every section is optional; missing sections fall back to the configured
    defaults when the snapshot is built.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    spot_rates: Optional[Dict[str, float]] = Field(None, alias="spotRates")
    volatilities: Optional[Dict[str, float]] = None
    risk_free_rate: Optional[float] = Field(None, alias="riskFreeRate")
    foreign_rate: Optional[float] = Field(None, alias="foreignRate")
    foreign_rates: Optional[Dict[str, float]] = Field(None, alias="foreignRates")
    last_updated: Optional[datetime] = Field(None, alias="lastUpdated")

    @field_validator('spot_rates')
    @classmethod
    def positive_spots(cls, v: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        if v is None:
            return v
        for pair, rate in v.items():
            if rate <= 0:
                raise ValueError(f"spot rate for {pair} must be positive")
        return {pair.upper(): rate for pair, rate in v.items()}

    @field_validator('volatilities')
    @classmethod
    def non_negative_vols(cls, v: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        if v is None:
            return v
        for pair, vol in v.items():
            if vol < 0:
                raise ValueError(f"volatility for {pair} cannot be negative")
        return {pair.upper(): vol for pair, vol in v.items()}

    @field_validator('foreign_rates')
    @classmethod
    def upper_foreign_keys(cls, v: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        if v is None:
            return v
        return {ccy.upper(): rate for ccy, rate in v.items()}
