"""
头寸风险与估值：MTM、香草期权希腊字母、组合批量估值。
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "calculate_mtm",
    "position_value",
    "calculate_greeks",
    "PortfolioValuation",
    "PortfolioValuator",
    "PositionValuation",
    "value_portfolio",
]

_EXPORTS: dict[str, tuple[str, str]] = {
    "calculate_mtm": ("valuation.risk.mtm", "calculate_mtm"),
    "position_value": ("valuation.risk.mtm", "position_value"),
    "calculate_greeks": ("valuation.risk.greeks", "calculate_greeks"),
    "PortfolioValuation": ("valuation.risk.portfolio", "PortfolioValuation"),
    "PortfolioValuator": ("valuation.risk.portfolio", "PortfolioValuator"),
    "PositionValuation": ("valuation.risk.portfolio", "PositionValuation"),
    "value_portfolio": ("valuation.risk.portfolio", "value_portfolio"),
}


def __getattr__(name: str) -> Any:
    target = _EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module 'valuation.risk' has no attribute '{name}'")

    module_name, symbol_name = target
    module = import_module(module_name)
    symbol = getattr(module, symbol_name)
    globals()[name] = symbol
    return symbol


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(__all__))
