"""
工具函数和配置模块。
"""
from utils.logging_config import (
    ROOT_LOGGER_NAME,
    JSONFormatter,
    StandardFormatter,
    get_logger,
    log_extra,
    setup_logging,
)

__all__ = [
    "ROOT_LOGGER_NAME",
    "setup_logging",
    "get_logger",
    "log_extra",
    "JSONFormatter",
    "StandardFormatter",
]
