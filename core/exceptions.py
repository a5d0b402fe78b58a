"""
统一异常处理模块。

估值引擎的异常层次结构：所有可预期的失败都继承自 FXValuationError，
批量估值只捕获这一层次，单个头寸失败不会中断整批计算。
定价中的数值异常（溢出、除零）在 InstrumentPricer.evaluate 中包装为 PricingError。
"""
from typing import Any, Optional


class FXValuationError(Exception):
    """估值引擎基础异常类。"""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message: str = message
        self.code: Optional[str] = code

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ValidationError(FXValuationError):
    """输入数据验证错误（缺失障碍价、非正即期汇率等）。"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        code: str = "VALIDATION_ERROR"
    ) -> None:
        self.field: Optional[str] = field
        self.value: Any = value
        if field is not None and value is not None:
            super().__init__(f"{field}={value}: {message}", code)
        else:
            super().__init__(message, code)


class PricingError(FXValuationError):
    """定价计算错误。"""

    def __init__(self, message: str, code: str = "PRICING_ERROR") -> None:
        super().__init__(message, code)


class UnsupportedInstrumentError(PricingError):
    """工具类型不在支持的枚举范围内。"""

    def __init__(
        self,
        instrument_type: Any,
        code: str = "UNSUPPORTED_INSTRUMENT"
    ) -> None:
        self.instrument_type: Any = instrument_type
        super().__init__(f"Unsupported instrument type: {instrument_type!r}", code)


class MarketDataError(FXValuationError):
    """市场数据缺失或无效。"""

    def __init__(
        self,
        message: str,
        pair: Optional[str] = None,
        code: str = "MARKET_DATA_ERROR"
    ) -> None:
        self.pair: Optional[str] = pair
        super().__init__(message, code)


class ConfigurationError(FXValuationError):
    """配置错误。"""

    def __init__(self, message: str, code: str = "CONFIG_ERROR") -> None:
        super().__init__(message, code)
