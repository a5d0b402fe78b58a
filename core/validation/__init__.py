"""
数据验证模块。

使用 Pydantic 校验来自仪表盘的工具记录与市场数据，保证进入定价器的数据完整。
"""
from core.validation.schemas import (
    InstrumentRecord,
    MarketDataRecord,
    parse_model,
)
from core.validation.validators import (
    validate_barrier_range,
    validate_currency_code,
    validate_finite,
    validate_positive,
)

__all__ = [
    # Schemas
    "InstrumentRecord",
    "MarketDataRecord",
    "parse_model",
    # Validators
    "validate_positive",
    "validate_finite",
    "validate_currency_code",
    "validate_barrier_range",
]
