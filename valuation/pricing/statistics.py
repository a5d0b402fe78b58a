"""
正态分布基础函数。

normal_cdf 使用 Abramowitz & Stegun 7.1.26 的 erf 有理逼近（最大绝对误差约 1.5e-7），
所有定价公式都基于它，以保证不同实现之间的价格一致。
exact_normal_cdf 是 scipy 的精确实现，用于误差校验，也可通过配置切换。
"""
from typing import Callable, Union

import numpy as np
from scipy.stats import norm

ArrayLike = Union[float, np.ndarray]

# A&S 7.1.26
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911

_SQRT2 = np.sqrt(2.0)
_INV_SQRT_2PI = 1.0 / np.sqrt(2.0 * np.pi)

MAX_APPROXIMATION_ERROR = 1.5e-7


def _as_output(values: np.ndarray) -> ArrayLike:
    return float(values) if values.ndim == 0 else values


def normal_cdf(x: ArrayLike) -> ArrayLike:
    """
    标准正态分布累积函数（A&S 7.1.26）。

    N(x) = 0.5 * (1 + sign(x) * erf(|x|/√2))，保证 N(0) = 0.5 与 N(-x) = 1 - N(x)。
    标量输入返回 float，数组输入返回 ndarray。
    """
    x_arr = np.asarray(x, dtype=float)
    z = np.abs(x_arr) / _SQRT2
    t = 1.0 / (1.0 + _P * z)
    poly = ((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t
    erf = 1.0 - poly * np.exp(-z * z)
    return _as_output(0.5 * (1.0 + np.sign(x_arr) * erf))


def normal_pdf(x: ArrayLike) -> ArrayLike:
    """标准正态密度 exp(-x²/2)/√(2π)。"""
    x_arr = np.asarray(x, dtype=float)
    return _as_output(_INV_SQRT_2PI * np.exp(-0.5 * x_arr * x_arr))


def exact_normal_cdf(x: ArrayLike) -> ArrayLike:
    """scipy 精确正态累积函数。"""
    return _as_output(np.asarray(norm.cdf(x), dtype=float))


def select_cdf(exact: bool = False) -> Callable[[ArrayLike], ArrayLike]:
    """按配置选择累积函数。"""
    return exact_normal_cdf if exact else normal_cdf


# exp() 上限，留出与 float 最大值之间的余量
MAX_LOG_SCALE = 700.0


def scaled_cdf(
    log_scale: float,
    x: float,
    cdf: Callable[[ArrayLike], ArrayLike] = normal_cdf,
) -> float:
    """
    在对数空间计算 e^(log_scale) · N(x)。

    反射项在小波动率下指数可达数千，直接相乘会出现 inf·0 = nan。
    N(x) 下溢为 0 时返回 0；指数截断在 MAX_LOG_SCALE，结果始终有限。
    """
    p = float(cdf(x))
    if p <= 0.0:
        return 0.0
    return float(np.exp(min(log_scale + np.log(p), MAX_LOG_SCALE)))
