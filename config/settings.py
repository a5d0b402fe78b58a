"""Configuration settings using Pydantic."""
from pathlib import Path
from typing import Dict, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Project root for resolving relative paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Fallback market snapshot used when the caller supplies no market data.
DEFAULT_SPOT_RATES: Dict[str, float] = {
    "EURUSD": 1.0856,
    "EURGBP": 0.8434,
    "EURJPY": 161.85,
    "EURCHF": 0.9642,
    "EURAUD": 1.6234,
    "EURCAD": 1.4567,
}

DEFAULT_VOLATILITIES: Dict[str, float] = {
    "EURUSD": 0.12,
    "EURGBP": 0.10,
    "EURJPY": 0.15,
    "EURCHF": 0.08,
    "EURAUD": 0.18,
    "EURCAD": 0.14,
}


class Settings(BaseSettings):
    """FX valuation engine settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "testing", "staging", "production"] = "development"

    # Logging - supports LOG_FILE env var, defaults to project_root/logs/fx_valuation.log
    log_level: str = "INFO"
    log_file: Optional[str] = Field(None, validate_default=True)
    log_format: str = "standard"

    # Market conventions
    domestic_currency: str = "EUR"
    days_per_year: float = 365.0
    default_risk_free_rate: float = 0.02
    # No per-currency foreign curve: one flat foreign rate for every pair.
    foreign_risk_free_rate: float = 0.005
    default_volatility: float = 0.15
    default_spot_rates: Dict[str, float] = dict(DEFAULT_SPOT_RATES)
    default_volatilities: Dict[str, float] = dict(DEFAULT_VOLATILITIES)

    # Monte Carlo (range / outside binaries)
    mc_num_simulations: int = 50_000
    mc_min_steps: int = 50
    mc_steps_per_year: int = 252
    mc_batch_size: int = 10_000
    mc_max_batch_cells: int = 2_520_000
    mc_seed: Optional[int] = None
    mc_antithetic: bool = False

    # Model selection
    touch_model: Literal["first_passage", "simplified"] = "first_passage"
    touch_payment: Literal["expiry", "hit"] = "expiry"
    double_touch_model: Literal["monte_carlo", "analytic"] = "monte_carlo"
    exact_normal_cdf: bool = False

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    @field_validator('log_file')
    @classmethod
    def set_default_log_file(cls, v: Optional[str]) -> str:
        """Set default log file path if not provided."""
        if v is None:
            return str(PROJECT_ROOT / "logs" / "fx_valuation.log")
        return str(Path(v).expanduser().resolve())

    @field_validator('domestic_currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Currency codes are three uppercase letters."""
        code = v.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError("domestic_currency must be a 3-letter ISO code")
        return code

    @field_validator('default_volatility')
    @classmethod
    def validate_default_volatility(cls, v: float) -> float:
        """Validate the fallback volatility is positive."""
        if v <= 0:
            raise ValueError("default_volatility must be positive")
        return v

    @field_validator('default_spot_rates')
    @classmethod
    def validate_spot_rates(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Spot rates are keyed by uppercase pair and strictly positive."""
        cleaned = {}
        for pair, rate in v.items():
            if rate <= 0:
                raise ValueError(f"default spot rate for {pair} must be positive")
            cleaned[pair.upper()] = float(rate)
        return cleaned

    @field_validator('default_volatilities')
    @classmethod
    def validate_volatilities(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Volatilities are keyed by uppercase pair and non-negative."""
        cleaned = {}
        for pair, vol in v.items():
            if vol < 0:
                raise ValueError(f"default volatility for {pair} cannot be negative")
            cleaned[pair.upper()] = float(vol)
        return cleaned

    @field_validator('days_per_year')
    @classmethod
    def validate_days_per_year(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("days_per_year must be positive")
        return v

    @field_validator('mc_num_simulations', 'mc_min_steps', 'mc_steps_per_year', 'mc_batch_size',
                     'mc_max_batch_cells')
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Monte Carlo sizes must be positive."""
        if v <= 0:
            raise ValueError("Monte Carlo sizes must be positive")
        return v


# Global settings instance
settings = Settings()
