"""
统一日志配置模块。

估值引擎的日志出口：控制台 + 滚动文件，标准格式或 JSON 格式。
默认值取自 config.settings（LOG_LEVEL / LOG_FILE / LOG_FORMAT 环境变量同样生效）。
"""
import json
import logging
import logging.handlers
import math
import re
import sys
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

ROOT_LOGGER_NAME = "fx_valuation"


def _json_default(value: Any) -> Any:
    """numpy 标量、日期与枚举的 JSON 序列化。"""
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


class JSONFormatter(logging.Formatter):
    """JSON 格式的日志格式化器，带敏感信息过滤。"""

    # 市场数据源凭据等字段不落盘
    SENSITIVE_PATTERNS = [
        r'api[_-]?key', r'api[_-]?secret', r'password',
        r'token', r'secret', r'auth'
    ]

    def _sanitize(self, data: Any) -> Any:
        """过滤敏感信息，并把 NaN/inf 转成字符串以保持 JSON 合法。"""
        if isinstance(data, float) and not math.isfinite(data):
            return str(data)
        if not isinstance(data, dict):
            return data

        sanitized = {}
        for key, value in data.items():
            if any(re.search(p, str(key).lower()) for p in self.SENSITIVE_PATTERNS):
                sanitized[key] = "***REDACTED***"
            else:
                sanitized[key] = self._sanitize(value)
        return sanitized

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        if hasattr(record, "extra_data"):
            log_data["extra"] = self._sanitize(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=_json_default)


class StandardFormatter(logging.Formatter):
    """标准格式；附带 extra_data 时以 key=value 追加在消息后。"""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        extra = getattr(record, "extra_data", None)
        if extra:
            pairs = " ".join(f"{k}={v}" for k, v in extra.items())
            text = f"{text} | {pairs}"
        return text


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    force: bool = True,
    to_file: bool = True,
) -> None:
    """
    配置全局日志系统。

    Args:
        level: 日志级别，缺省取 settings.log_level
        log_file: 日志文件路径，缺省取 settings.log_file
        log_format: json 或 standard，缺省取 settings.log_format
        max_bytes: 单个日志文件最大字节数
        backup_count: 保留的备份文件数量
        force: 是否清除现有处理器；测试中设为 False 以保留 caplog
        to_file: 为 False 时只输出到控制台
    """
    from config.settings import settings

    level = (level or settings.log_level).upper()
    log_file = log_file or settings.log_file
    log_format = (log_format or settings.log_format).lower()

    numeric_level = getattr(logging, level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    if force:
        root_logger.handlers = []

    if log_format == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = StandardFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if to_file and log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # pandas 可选依赖的噪声日志
    logging.getLogger("numexpr").setLevel(logging.WARNING)

    logging.getLogger(ROOT_LOGGER_NAME).info(
        "Logging configured",
        extra=log_extra(level=level, format=log_format, file=log_file if to_file else None),
    )


def get_logger(name: str) -> logging.Logger:
    """获取估值引擎命名空间下的日志记录器。"""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_extra(**kwargs: Any) -> Dict[str, Any]:
    """
    创建额外的日志数据字典。

    Usage:
        logger.debug("Valued instrument", extra=log_extra(type="Call", price=0.0123))
    """
    return {"extra_data": kwargs}
