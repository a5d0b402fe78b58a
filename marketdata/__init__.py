"""Market-data package.

Symbols are exposed lazily so importing ``marketdata`` does not pull in the
validation layer until a snapshot is actually built.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "MarketDataSnapshot",
    "default_market_data",
    "ensure_snapshot",
]

_EXPORTS: dict[str, tuple[str, str]] = {
    "MarketDataSnapshot": ("marketdata.snapshot", "MarketDataSnapshot"),
    "default_market_data": ("marketdata.snapshot", "default_market_data"),
    "ensure_snapshot": ("marketdata.snapshot", "ensure_snapshot"),
}


def __getattr__(name: str) -> Any:
    target = _EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module 'marketdata' has no attribute '{name}'")

    module_name, symbol_name = target
    module = import_module(module_name)
    symbol = getattr(module, symbol_name)
    globals()[name] = symbol
    return symbol


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(__all__))
