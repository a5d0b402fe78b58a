"""
障碍期权定价（单障碍反射公式 + 双障碍区间宽度近似）。

单障碍（反射原理闭式解）：
    μ = r_d - r_f - σ²/2
    λ = (μ + σ²/2) / σ²
    x1 = ln(S/K)/(σ√T) + λσ√T
    y1 = ln(B/S)/(σ√T) + λσ√T
    y  = ln(B²/(S·K))/(σ√T) + λσ√T

看涨且 B <= K（下方障碍）：
    A = S·e^(-r_f·T)·N(x1) - K·e^(-r_d·T)·N(x1 - σ√T)
    B = S·e^(-r_f·T)·N(y1) - K·e^(-r_d·T)·N(y1 - σ√T)
    C = S·e^(-r_f·T)·(B/S)^(2λ)·N(y) - K·e^(-r_d·T)·(B/S)^(2λ-2)·N(y - σ√T)
    敲出 = A - B - C，敲入 = 香草 - 敲出
看跌且 B >= K（上方障碍）使用镜像公式（参数取负）。

障碍位于“错误一侧”（看涨 B > K、看跌 B < K）时闭式解退化，
使用已记录的近似：敲出 = 0，敲入 = 香草价格。该分支通过 uses_approximation 标记。

双障碍没有实现真正的闭式解，使用区间宽度因子近似：
    f = min(1, ln(U/L) / (2σ√T))
    敲出 = f·香草，敲入 = (1 - f)·香草
"""
from typing import Literal

import numpy as np

from core.validation.validators import validate_barrier_range, validate_positive
from valuation.pricing.garman_kohlhagen import GarmanKohlhagenPricer
from valuation.pricing.statistics import scaled_cdf, select_cdf

BarrierDirection = Literal["down", "up"]


class BarrierOptionPricer:
    """单障碍敲入/敲出期权定价器。"""

    EPSILON = GarmanKohlhagenPricer.EPSILON

    def __init__(self, exact_cdf: bool = False):
        self._cdf = select_cdf(exact_cdf)
        self._vanilla = GarmanKohlhagenPricer(exact_cdf=exact_cdf)

    @staticmethod
    def barrier_direction(K: float, B: float, is_call: bool) -> BarrierDirection:
        """
        障碍方向：看涨 B <= K 为下方障碍，B > K 为上方障碍；
        看跌 B >= K 为上方障碍，B < K 为下方障碍。
        """
        if is_call:
            return "down" if B <= K else "up"
        return "up" if B >= K else "down"

    @staticmethod
    def uses_approximation(K: float, B: float, is_call: bool) -> bool:
        """障碍在错误一侧时使用近似（非精确）定价。"""
        return B > K if is_call else B < K

    @staticmethod
    def is_barrier_touched(S: float, B: float, direction: BarrierDirection) -> bool:
        return S <= B if direction == "down" else S >= B

    def _reflection_knock_out(
        self,
        S: float,
        K: float,
        B: float,
        T: float,
        r_d: float,
        r_f: float,
        sigma: float,
        is_call: bool,
    ) -> float:
        """反射公式 A - B - C（未截断）。"""
        N = self._cdf
        vol_sqrt_t = sigma * np.sqrt(T)
        mu = r_d - r_f - 0.5 * sigma ** 2
        lam = (mu + 0.5 * sigma ** 2) / sigma ** 2
        shift = lam * vol_sqrt_t

        x1 = np.log(S / K) / vol_sqrt_t + shift
        y1 = np.log(B / S) / vol_sqrt_t + shift
        y = np.log(B * B / (S * K)) / vol_sqrt_t + shift

        spot_leg = S * np.exp(-r_f * T)
        strike_leg = K * np.exp(-r_d * T)
        # (B/S)^p 在对数空间与 N(.) 相乘，小波动率下 |2λ| 很大
        log_ratio = np.log(B / S)
        spot_scale = 2 * lam * log_ratio
        strike_scale = (2 * lam - 2) * log_ratio

        if is_call:
            a = spot_leg * N(x1) - strike_leg * N(x1 - vol_sqrt_t)
            b = spot_leg * N(y1) - strike_leg * N(y1 - vol_sqrt_t)
            c = (spot_leg * scaled_cdf(spot_scale, y, N)
                 - strike_leg * scaled_cdf(strike_scale, y - vol_sqrt_t, N))
        else:
            a = -spot_leg * N(-x1) + strike_leg * N(-x1 + vol_sqrt_t)
            b = -spot_leg * N(-y1) + strike_leg * N(-y1 + vol_sqrt_t)
            c = (-spot_leg * scaled_cdf(spot_scale, -y, N)
                 + strike_leg * scaled_cdf(strike_scale, -y + vol_sqrt_t, N))

        return float(a - b - c)

    @staticmethod
    def _deterministic_path_touches(
        S: float, B: float, T: float, r_d: float, r_f: float, direction: BarrierDirection
    ) -> bool:
        # 零波动率下路径单调，只需比较起点与终点
        terminal = S * np.exp((r_d - r_f) * T)
        if direction == "down":
            return min(S, terminal) <= B
        return max(S, terminal) >= B

    def calculate_price(
        self,
        S: float,
        K: float,
        B: float,
        T: float,
        r_d: float,
        r_f: float,
        sigma: float,
        is_call: bool,
        is_knock_out: bool,
        rebate: float = 0.0,
    ) -> float:
        """
        计算单障碍期权的单位价格。

        Args:
            S: 即期汇率
            K: 行权价（绝对水平）
            B: 障碍水平（绝对水平）
            T: 到期时间（年）
            r_d: 本币利率
            r_f: 外币利率
            sigma: 波动率
            is_call: 看涨/看跌
            is_knock_out: 敲出/敲入
            rebate: 返还金额

        Returns:
            价格（截断为非负）
        """
        self._vanilla.validate_inputs(S, K, T, r_d, r_f, sigma)
        validate_positive(B, "barrier")
        rebate = validate_positive(rebate, "rebate", strict=False)

        direction = self.barrier_direction(K, B, is_call)

        if T <= 0:
            touched = self.is_barrier_touched(S, B, direction)
            if is_knock_out == touched:
                # 已敲出，或从未敲入
                return rebate
            return self._vanilla.intrinsic_value(S, K, is_call)

        rebate_pv = rebate * np.exp(-r_d * T)
        vanilla = self._vanilla.calculate_price(S, K, T, r_d, r_f, sigma, is_call)

        if self.is_barrier_touched(S, B, direction):
            return float(rebate_pv) if is_knock_out else vanilla

        if sigma < self.EPSILON:
            crossed = self._deterministic_path_touches(S, B, T, r_d, r_f, direction)
            ko_core = 0.0 if crossed else vanilla
        elif self.uses_approximation(K, B, is_call):
            ko_core = 0.0
        else:
            ko_core = min(max(0.0, self._reflection_knock_out(S, K, B, T, r_d, r_f, sigma, is_call)), vanilla)

        core = ko_core if is_knock_out else vanilla - ko_core
        return float(max(0.0, core + rebate_pv))


class DoubleBarrierOptionPricer:
    """双障碍敲入/敲出期权（区间宽度因子近似）。"""

    EPSILON = GarmanKohlhagenPricer.EPSILON

    def __init__(self, exact_cdf: bool = False):
        self._vanilla = GarmanKohlhagenPricer(exact_cdf=exact_cdf)

    @staticmethod
    def survival_factor(L: float, U: float, T: float, sigma: float) -> float:
        """f = min(1, ln(U/L)/(2σ√T))。"""
        if sigma <= 0 or T <= 0:
            return 1.0
        return float(min(1.0, np.log(U / L) / (2.0 * sigma * np.sqrt(T))))

    @staticmethod
    def is_outside_range(S: float, L: float, U: float) -> bool:
        return S <= L or S >= U

    def calculate_price(
        self,
        S: float,
        K: float,
        L: float,
        U: float,
        T: float,
        r_d: float,
        r_f: float,
        sigma: float,
        is_call: bool,
        is_knock_out: bool,
        rebate: float = 0.0,
    ) -> float:
        """计算双障碍期权的单位价格（近似）。"""
        self._vanilla.validate_inputs(S, K, T, r_d, r_f, sigma)
        validate_barrier_range(L, U)
        rebate = validate_positive(rebate, "rebate", strict=False)

        outside = self.is_outside_range(S, L, U)

        if T <= 0:
            if is_knock_out == outside:
                return rebate
            return self._vanilla.intrinsic_value(S, K, is_call)

        rebate_pv = rebate * np.exp(-r_d * T)
        vanilla = self._vanilla.calculate_price(S, K, T, r_d, r_f, sigma, is_call)

        if outside:
            return float(rebate_pv) if is_knock_out else vanilla

        if sigma < self.EPSILON:
            terminal = S * np.exp((r_d - r_f) * T)
            factor = 0.0 if self.is_outside_range(terminal, L, U) else 1.0
        else:
            factor = self.survival_factor(L, U, T, sigma)

        core = factor * vanilla if is_knock_out else (1.0 - factor) * vanilla
        return float(max(0.0, core + rebate_pv))
