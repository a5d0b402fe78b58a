"""
Core type definitions for the FX hedging valuation engine.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from core.exceptions import FXValuationError, PricingError, UnsupportedInstrumentError, ValidationError

DOMESTIC_CURRENCY = "EUR"

_BETA_SUFFIX = "(beta)"


class InstrumentType(str, Enum):
    """Closed set of hedging instruments handled by the engine."""
    FORWARD = "Forward"
    SWAP = "Swap"
    CALL = "Call"
    PUT = "Put"
    CALL_KNOCK_OUT = "Call Knock-Out"
    PUT_KNOCK_OUT = "Put Knock-Out"
    CALL_KNOCK_IN = "Call Knock-In"
    PUT_KNOCK_IN = "Put Knock-In"
    CALL_DOUBLE_KNOCK_OUT = "Call Double Knock-Out"
    PUT_DOUBLE_KNOCK_OUT = "Put Double Knock-Out"
    CALL_DOUBLE_KNOCK_IN = "Call Double Knock-In"
    PUT_DOUBLE_KNOCK_IN = "Put Double Knock-In"
    ONE_TOUCH = "One Touch"
    NO_TOUCH = "No Touch"
    DOUBLE_TOUCH = "Double Touch"
    DOUBLE_NO_TOUCH = "Double No Touch"
    RANGE_BINARY = "Range Binary"
    OUTSIDE_BINARY = "Outside Binary"

    @classmethod
    def _missing_(cls, value: object) -> Optional["InstrumentType"]:
        # Dashboard labels such as "Range Binary (beta)" or lower-case variants.
        if not isinstance(value, str):
            return None
        label = value.strip()
        if label.lower().endswith(_BETA_SUFFIX):
            label = label[: -len(_BETA_SUFFIX)].strip()
        for member in cls:
            if member.value.lower() == label.lower():
                return member
        return None

    @property
    def is_linear(self) -> bool:
        return self in (InstrumentType.FORWARD, InstrumentType.SWAP)

    @property
    def is_vanilla(self) -> bool:
        return self in (InstrumentType.CALL, InstrumentType.PUT)

    @property
    def is_single_barrier(self) -> bool:
        return self in (
            InstrumentType.CALL_KNOCK_OUT,
            InstrumentType.PUT_KNOCK_OUT,
            InstrumentType.CALL_KNOCK_IN,
            InstrumentType.PUT_KNOCK_IN,
        )

    @property
    def is_double_barrier(self) -> bool:
        return self in (
            InstrumentType.CALL_DOUBLE_KNOCK_OUT,
            InstrumentType.PUT_DOUBLE_KNOCK_OUT,
            InstrumentType.CALL_DOUBLE_KNOCK_IN,
            InstrumentType.PUT_DOUBLE_KNOCK_IN,
        )

    @property
    def is_touch(self) -> bool:
        return self in (InstrumentType.ONE_TOUCH, InstrumentType.NO_TOUCH)

    @property
    def is_double_touch(self) -> bool:
        return self in (InstrumentType.DOUBLE_TOUCH, InstrumentType.DOUBLE_NO_TOUCH)

    @property
    def is_range_digital(self) -> bool:
        return self in (InstrumentType.RANGE_BINARY, InstrumentType.OUTSIDE_BINARY)

    @property
    def is_call(self) -> bool:
        return self.value.startswith("Call")

    @property
    def is_knock_out(self) -> bool:
        return self.value.endswith("Knock-Out")

    @property
    def has_premium(self) -> bool:
        """Forwards and swaps never carry a premium."""
        return not self.is_linear

    @property
    def requires_strike(self) -> bool:
        return self.is_linear or self.is_vanilla or self.is_single_barrier or self.is_double_barrier

    @property
    def requires_barrier(self) -> bool:
        return self.is_single_barrier or self.is_touch

    @property
    def requires_range(self) -> bool:
        return self.is_double_barrier or self.is_double_touch or self.is_range_digital


class StrikeType(str, Enum):
    """How a strike or barrier level is quoted."""
    PERCENTAGE = "percentage"
    ABSOLUTE = "absolute"


@dataclass(frozen=True)
class Instrument:
    """Hedging position as recorded by the dashboard.

    Levels may be quoted as a percentage of spot; they are resolved to
    absolute levels by ``valuation.pricing.resolver`` before pricing.
    """
    type: InstrumentType
    currency: str
    amount: float  # signed notional: >0 long, <0 short
    maturity: Union[date, datetime]
    rate: Optional[float] = None
    strike_type: StrikeType = StrikeType.ABSOLUTE
    premium: Optional[float] = None
    barrier: Optional[float] = None
    barrier_type: StrikeType = StrikeType.ABSOLUTE
    lower_barrier: Optional[float] = None
    upper_barrier: Optional[float] = None
    rebate: Optional[float] = None
    implied_volatility: Optional[float] = None
    risk_free_rate: Optional[float] = None
    id: Optional[str] = None

    def __post_init__(self) -> None:
        # accept plain labels ("Call", "percentage") as well as enum members
        if not isinstance(self.type, InstrumentType):
            try:
                object.__setattr__(self, "type", InstrumentType(self.type))
            except ValueError:
                raise UnsupportedInstrumentError(self.type) from None
        for name in ("strike_type", "barrier_type"):
            value = getattr(self, name)
            if not isinstance(value, StrikeType):
                try:
                    object.__setattr__(self, name, StrikeType(str(value).lower()))
                except ValueError:
                    raise ValidationError("Unknown quote type", field=name, value=value) from None

    def pair(self, domestic: str = DOMESTIC_CURRENCY) -> str:
        """Market-data key, e.g. EURUSD for a USD instrument."""
        return f"{domestic}{self.currency.upper()}"

    @property
    def is_short(self) -> bool:
        return self.amount < 0

    @property
    def notional(self) -> float:
        """Unsigned notional."""
        return abs(self.amount)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Instrument":
        """Build an instrument from a raw dashboard record (camelCase keys)."""
        from core.validation.schemas import InstrumentRecord, parse_model

        return parse_model(InstrumentRecord, record).to_instrument()


@dataclass
class Greeks:
    """Garman-Kohlhagen sensitivities.

    vega is per 1 vol point, theta per calendar day.
    """
    delta: float
    gamma: float
    vega: float
    theta: float

    @classmethod
    def zero(cls) -> "Greeks":
        return cls(delta=0.0, gamma=0.0, vega=0.0, theta=0.0)

    def scaled(self, factor: float) -> "Greeks":
        return Greeks(
            delta=self.delta * factor,
            gamma=self.gamma * factor,
            vega=self.vega * factor,
            theta=self.theta * factor,
        )

    def __add__(self, other: "Greeks") -> "Greeks":
        return Greeks(
            delta=self.delta + other.delta,
            gamma=self.gamma + other.gamma,
            vega=self.vega + other.vega,
            theta=self.theta + other.theta,
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            'delta': self.delta,
            'gamma': self.gamma,
            'vega': self.vega,
            'theta': self.theta,
        }


@dataclass(frozen=True)
class PricingResult:
    """Outcome of pricing one instrument.

    Either a per-unit price (``is_ok``) or the error that prevented it, so
    an unsupported instrument is never mistaken for a zero-valued one.
    """
    price: Optional[float] = None
    method: Optional[str] = None
    approximate: bool = False
    std_error: Optional[float] = None
    error: Optional[FXValuationError] = field(default=None, compare=False)

    @classmethod
    def ok(
        cls,
        price: float,
        method: str,
        approximate: bool = False,
        std_error: Optional[float] = None,
    ) -> "PricingResult":
        return cls(price=float(price), method=method, approximate=approximate, std_error=std_error)

    @classmethod
    def failure(cls, error: FXValuationError) -> "PricingResult":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> float:
        """Return the price or raise the stored error."""
        if self.error is not None:
            raise self.error
        if self.price is None:
            raise PricingError("Pricing result holds neither a price nor an error")
        return self.price
