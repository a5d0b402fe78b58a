"""
外汇期权定价模型 (Garman-Kohlhagen 框架)。

支持:
- 香草期权定价与希腊字母 (Garman-Kohlhagen)
- 单障碍 / 双障碍敲入敲出期权
- 一触即付 / 不触碰 / 双触碰期权
- 区间 / 区间外二元期权 (Monte Carlo)
- 工具记录解析与统一定价入口
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "normal_cdf",
    "normal_pdf",
    "GarmanKohlhagenPricer",
    "black_scholes_price",
    "black_scholes_greeks",
    "BarrierOptionPricer",
    "DoubleBarrierOptionPricer",
    "DigitalMCConfig",
    "MonteCarloDigitalPricer",
    "MonteCarloResult",
    "TouchOptionPricer",
    "MarketInputs",
    "resolve_instrument",
    "time_to_expiry",
    "InstrumentPricer",
    "calculate_theoretical_price",
    "price_instrument",
]

_EXPORTS: dict[str, tuple[str, str]] = {
    "normal_cdf": ("valuation.pricing.statistics", "normal_cdf"),
    "normal_pdf": ("valuation.pricing.statistics", "normal_pdf"),
    "GarmanKohlhagenPricer": ("valuation.pricing.garman_kohlhagen", "GarmanKohlhagenPricer"),
    "black_scholes_price": ("valuation.pricing.garman_kohlhagen", "black_scholes_price"),
    "black_scholes_greeks": ("valuation.pricing.garman_kohlhagen", "black_scholes_greeks"),
    "BarrierOptionPricer": ("valuation.pricing.barrier", "BarrierOptionPricer"),
    "DoubleBarrierOptionPricer": ("valuation.pricing.barrier", "DoubleBarrierOptionPricer"),
    "DigitalMCConfig": ("valuation.pricing.digital", "DigitalMCConfig"),
    "MonteCarloDigitalPricer": ("valuation.pricing.digital", "MonteCarloDigitalPricer"),
    "MonteCarloResult": ("valuation.pricing.digital", "MonteCarloResult"),
    "TouchOptionPricer": ("valuation.pricing.touch", "TouchOptionPricer"),
    "MarketInputs": ("valuation.pricing.resolver", "MarketInputs"),
    "resolve_instrument": ("valuation.pricing.resolver", "resolve_instrument"),
    "time_to_expiry": ("valuation.pricing.resolver", "time_to_expiry"),
    "InstrumentPricer": ("valuation.pricing.dispatcher", "InstrumentPricer"),
    "calculate_theoretical_price": ("valuation.pricing.dispatcher", "calculate_theoretical_price"),
    "price_instrument": ("valuation.pricing.dispatcher", "price_instrument"),
}


def __getattr__(name: str) -> Any:
    target = _EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module 'valuation.pricing' has no attribute '{name}'")

    module_name, symbol_name = target
    module = import_module(module_name)
    symbol = getattr(module, symbol_name)
    globals()[name] = symbol
    return symbol


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(__all__))
