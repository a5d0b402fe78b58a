"""
Garman-Kohlhagen 外汇期权定价模型。

欧式外汇期权的 Black-Scholes 变体：本币利率 r_d 用于贴现行权价，
外币利率 r_f 作为标的的“股息率”。

    d1 = [ln(S/K) + (r_d - r_f + σ²/2)T] / (σ√T)
    d2 = d1 - σ√T
    Call = S·e^(-r_f·T)·N(d1) - K·e^(-r_d·T)·N(d2)
    Put  = K·e^(-r_d·T)·N(-d2) - S·e^(-r_f·T)·N(-d1)

边界条件：
- T <= 0：返回内在价值，希腊字母全为 0
- σ ≈ 0：确定性远期演化，价格为贴现后的远期内在价值
"""
from typing import Tuple

import numpy as np

from core.exceptions import ValidationError
from core.types import Greeks
from core.validation.validators import validate_finite, validate_positive
from valuation.pricing.statistics import normal_pdf, select_cdf


class GarmanKohlhagenPricer:
    """
    欧式外汇期权定价器。

    Greeks 约定：
    - vega: 每 1 个波动率点（1%）
    - theta: 每自然日（除以 365）
    """

    EPSILON = 1e-12  # σ 低于此值视为零波动率
    THETA_DAYS_PER_YEAR = 365.0
    VEGA_SCALING = 0.01
    MAX_REASONABLE_VOLATILITY = 10.0

    def __init__(self, exact_cdf: bool = False):
        self._cdf = select_cdf(exact_cdf)

    @staticmethod
    def validate_inputs(S: float, K: float, T: float, r_d: float, r_f: float, sigma: float) -> None:
        """验证输入参数；T 允许为负（按到期处理）。"""
        validate_positive(S, "S")
        validate_positive(K, "K")
        validate_finite(T, "T")
        validate_finite(r_d, "r_d")
        validate_finite(r_f, "r_f")
        validate_positive(sigma, "sigma", strict=False)
        if sigma > GarmanKohlhagenPricer.MAX_REASONABLE_VOLATILITY:
            raise ValidationError(
                f"Volatility exceeds reasonable maximum ({GarmanKohlhagenPricer.MAX_REASONABLE_VOLATILITY})",
                field="sigma",
                value=sigma,
            )

    @staticmethod
    def intrinsic_value(S: float, K: float, is_call: bool) -> float:
        return max(0.0, S - K) if is_call else max(0.0, K - S)

    @staticmethod
    def d1_d2(S: float, K: float, T: float, r_d: float, r_f: float, sigma: float) -> Tuple[float, float]:
        vol_sqrt_t = sigma * np.sqrt(T)
        d1 = (np.log(S / K) + (r_d - r_f + 0.5 * sigma ** 2) * T) / vol_sqrt_t
        return float(d1), float(d1 - vol_sqrt_t)

    def calculate_price(
        self,
        S: float,
        K: float,
        T: float,
        r_d: float,
        r_f: float,
        sigma: float,
        is_call: bool,
    ) -> float:
        """
        计算单位名义本金的期权价格（以本币计）。

        Args:
            S: 即期汇率
            K: 行权价（绝对水平）
            T: 到期时间（年）
            r_d: 本币无风险利率
            r_f: 外币无风险利率
            sigma: 年化波动率
            is_call: True 为看涨，False 为看跌
        """
        self.validate_inputs(S, K, T, r_d, r_f, sigma)

        if T <= 0:
            return self.intrinsic_value(S, K, is_call)

        df_d = np.exp(-r_d * T)
        df_f = np.exp(-r_f * T)

        if sigma < self.EPSILON:
            forward_value = S * df_f - K * df_d
            return float(max(0.0, forward_value if is_call else -forward_value))

        d1, d2 = self.d1_d2(S, K, T, r_d, r_f, sigma)
        N = self._cdf
        if is_call:
            price = S * df_f * N(d1) - K * df_d * N(d2)
        else:
            price = K * df_d * N(-d2) - S * df_f * N(-d1)

        # 逼近误差可能导致微小负值
        return float(max(0.0, price))

    def calculate_greeks(
        self,
        S: float,
        K: float,
        T: float,
        r_d: float,
        r_f: float,
        sigma: float,
        is_call: bool,
    ) -> Greeks:
        """计算单位名义本金的 delta / gamma / vega / theta。"""
        self.validate_inputs(S, K, T, r_d, r_f, sigma)

        if T <= 0:
            return Greeks.zero()

        df_d = np.exp(-r_d * T)
        df_f = np.exp(-r_f * T)

        if sigma < self.EPSILON:
            # 零波动率：delta 为贴现后的指示函数，只剩漂移项 theta
            forward_value = S * df_f - K * df_d
            in_the_money = forward_value > 0 if is_call else forward_value < 0
            if not in_the_money:
                return Greeks.zero()
            sign = 1.0 if is_call else -1.0
            theta = sign * (r_f * S * df_f - r_d * K * df_d)
            return Greeks(
                delta=sign * float(df_f),
                gamma=0.0,
                vega=0.0,
                theta=float(theta) / self.THETA_DAYS_PER_YEAR,
            )

        d1, d2 = self.d1_d2(S, K, T, r_d, r_f, sigma)
        N = self._cdf
        pdf_d1 = normal_pdf(d1)
        sqrt_t = np.sqrt(T)

        gamma = df_f * pdf_d1 / (S * sigma * sqrt_t)
        vega = S * df_f * pdf_d1 * sqrt_t * self.VEGA_SCALING
        decay = -S * df_f * pdf_d1 * sigma / (2.0 * sqrt_t)

        if is_call:
            delta = df_f * N(d1)
            theta = decay - r_d * K * df_d * N(d2) + r_f * S * df_f * N(d1)
        else:
            delta = df_f * (N(d1) - 1.0)
            theta = decay + r_d * K * df_d * N(-d2) - r_f * S * df_f * N(-d1)

        return Greeks(
            delta=float(delta),
            gamma=float(gamma),
            vega=float(vega),
            theta=float(theta) / self.THETA_DAYS_PER_YEAR,
        )

    def put_call_parity_gap(
        self,
        S: float,
        K: float,
        T: float,
        r_d: float,
        r_f: float,
        sigma: float,
    ) -> float:
        """Call - Put - (S·e^(-r_f·T) - K·e^(-r_d·T))，理论上为 0。"""
        call = self.calculate_price(S, K, T, r_d, r_f, sigma, is_call=True)
        put = self.calculate_price(S, K, T, r_d, r_f, sigma, is_call=False)
        if T <= 0:
            return call - put - (S - K)
        return float(call - put - (S * np.exp(-r_f * T) - K * np.exp(-r_d * T)))


_default_pricer = GarmanKohlhagenPricer()


def black_scholes_price(S: float, K: float, T: float, r: float, sigma: float, is_call: bool) -> float:
    """Legacy Black-Scholes entry point: Garman-Kohlhagen with r_f = 0."""
    return _default_pricer.calculate_price(S, K, T, r, 0.0, sigma, is_call)


def black_scholes_greeks(S: float, K: float, T: float, r: float, sigma: float, is_call: bool) -> Greeks:
    """Legacy Black-Scholes Greeks (r_f = 0)."""
    return _default_pricer.calculate_greeks(S, K, T, r, 0.0, sigma, is_call)
