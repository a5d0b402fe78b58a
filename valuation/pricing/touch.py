"""
触碰期权定价（一触即付 / 不触碰 / 双触碰 / 双不触碰）。

单障碍使用 GBM 首次通过概率（漂移 μ = r_d - r_f - σ²/2，h = ln(B/S)）：
    上方障碍：P = N((-h + μT)/(σ√T)) + e^(2μh/σ²)·N((-h - μT)/(σ√T))
    下方障碍：P = N((h - μT)/(σ√T)) + e^(2μh/σ²)·N((h + μT)/(σ√T))
    一触即付（到期支付）= P·payout·e^(-r_d·T)
    不触碰 = (1 - P)·payout·e^(-r_d·T)

触碰即付使用 λ = √(μ² + 2·r_d·σ²)/σ 的闭式解。

仪表盘早期使用的简化公式保留为 simplified_touch_probability：
    d = ln(B/S)/(σ√T)，P = 2N(|d|) - 1
该公式不考虑漂移，且数值上更接近不触碰概率，仅作为可选模型。

双不触碰使用 Hui (1996) 级数（截断），双触碰 = payout·e^(-r_d·T) - 双不触碰。
"""
from typing import Literal

import numpy as np

from core.exceptions import PricingError
from core.validation.validators import validate_barrier_range, validate_finite, validate_positive
from valuation.pricing.statistics import MAX_LOG_SCALE, scaled_cdf, select_cdf


TouchModel = Literal["first_passage", "simplified"]
TouchPayment = Literal["expiry", "hit"]


class TouchOptionPricer:
    """一触即付 / 不触碰 / 双触碰定价器。"""

    EPSILON = 1e-12
    HUI_TERMS = 100

    def __init__(
        self,
        exact_cdf: bool = False,
        model: TouchModel = "first_passage",
        payment: TouchPayment = "expiry",
    ):
        if model not in ("first_passage", "simplified"):
            raise PricingError(f"Unknown touch model: {model!r}")
        if payment not in ("expiry", "hit"):
            raise PricingError(f"Unknown touch payment: {payment!r}")
        self._cdf = select_cdf(exact_cdf)
        self.model = model
        self.payment = payment

    @staticmethod
    def _validate(S: float, B: float, T: float, r_d: float, r_f: float, sigma: float) -> None:
        validate_positive(S, "S")
        validate_positive(B, "barrier")
        validate_finite(T, "T")
        validate_finite(r_d, "r_d")
        validate_finite(r_f, "r_f")
        validate_positive(sigma, "sigma", strict=False)

    @staticmethod
    def at_barrier(S: float, B: float) -> bool:
        return bool(np.isclose(S, B, rtol=1e-12, atol=0.0))

    def simplified_touch_probability(self, S: float, B: float, T: float, sigma: float) -> float:
        """简化概率 2N(|d|) - 1，d = ln(B/S)/(σ√T)。"""
        d = np.log(B / S) / (sigma * np.sqrt(T))
        return float(2.0 * self._cdf(abs(d)) - 1.0)

    def touch_probability(
        self, S: float, B: float, T: float, r_d: float, r_f: float, sigma: float
    ) -> float:
        """到期前触碰障碍的风险中性概率。"""
        self._validate(S, B, T, r_d, r_f, sigma)

        if T <= 0:
            return 1.0 if self.at_barrier(S, B) else 0.0
        if self.at_barrier(S, B):
            return 1.0

        if sigma < self.EPSILON:
            # 确定性路径 S·e^((r_d - r_f)t)，单调
            terminal = S * np.exp((r_d - r_f) * T)
            return 1.0 if min(S, terminal) <= B <= max(S, terminal) else 0.0

        if self.model == "simplified":
            return self.simplified_touch_probability(S, B, T, sigma)

        N = self._cdf
        mu = r_d - r_f - 0.5 * sigma ** 2
        h = np.log(B / S)
        vol_sqrt_t = sigma * np.sqrt(T)
        # 反射因子 e^(2μh/σ²) 在小波动率下溢出，与 N(.) 在对数空间相乘
        log_reflection = 2.0 * mu * h / sigma ** 2

        if h > 0:
            prob = (N((-h + mu * T) / vol_sqrt_t)
                    + scaled_cdf(log_reflection, (-h - mu * T) / vol_sqrt_t, N))
        else:
            prob = (N((h - mu * T) / vol_sqrt_t)
                    + scaled_cdf(log_reflection, (h + mu * T) / vol_sqrt_t, N))

        return float(min(1.0, max(0.0, prob)))

    def _pay_at_hit_value(
        self, S: float, B: float, T: float, r_d: float, r_f: float, sigma: float
    ) -> float:
        """触碰即付的单位价值（已含贴现）。"""
        N = self._cdf
        mu = r_d - r_f - 0.5 * sigma ** 2
        radicand = mu ** 2 + 2.0 * r_d * sigma ** 2
        if radicand < 0:
            raise PricingError(
                "Pay-at-hit touch is undefined for this rate/volatility combination "
                f"(mu={mu:.6f}, r_d={r_d:.6f}, sigma={sigma:.6f})"
            )
        lam = np.sqrt(radicand) / sigma
        a = mu / sigma ** 2
        b = lam / sigma
        vol_sqrt_t = sigma * np.sqrt(T)
        eta = 1.0 if S > B else -1.0  # 下方障碍为 1
        z = np.log(B / S) / vol_sqrt_t + b * vol_sqrt_t
        log_ratio = np.log(B / S)
        value = (scaled_cdf((a + b) * log_ratio, eta * z, N)
                 + scaled_cdf((a - b) * log_ratio, eta * z - 2.0 * eta * b * vol_sqrt_t, N))
        return float(max(0.0, value))

    def one_touch_price(
        self,
        S: float,
        B: float,
        T: float,
        r_d: float,
        r_f: float,
        sigma: float,
        payout: float = 1.0,
    ) -> float:
        """一触即付价格。"""
        self._validate(S, B, T, r_d, r_f, sigma)
        payout = validate_positive(payout, "payout", strict=False)

        if T <= 0:
            return payout if self.at_barrier(S, B) else 0.0

        if self.payment == "hit" and self.model == "first_passage":
            if self.at_barrier(S, B):
                return payout
            if sigma < self.EPSILON:
                growth = r_d - r_f
                if self.touch_probability(S, B, T, r_d, r_f, sigma) == 0.0 or growth == 0:
                    return 0.0
                hit_time = np.log(B / S) / growth
                return float(payout * np.exp(-r_d * hit_time))
            return payout * self._pay_at_hit_value(S, B, T, r_d, r_f, sigma)

        prob = self.touch_probability(S, B, T, r_d, r_f, sigma)
        return float(prob * payout * np.exp(-r_d * T))

    def no_touch_price(
        self,
        S: float,
        B: float,
        T: float,
        r_d: float,
        r_f: float,
        sigma: float,
        payout: float = 1.0,
    ) -> float:
        """不触碰价格，总在到期支付。"""
        self._validate(S, B, T, r_d, r_f, sigma)
        payout = validate_positive(payout, "payout", strict=False)

        if T <= 0:
            return 0.0 if self.at_barrier(S, B) else payout

        prob = self.touch_probability(S, B, T, r_d, r_f, sigma)
        return float((1.0 - prob) * payout * np.exp(-r_d * T))

    def double_no_touch_price(
        self,
        S: float,
        L: float,
        U: float,
        T: float,
        r_d: float,
        r_f: float,
        sigma: float,
        payout: float = 1.0,
        n_terms: int = HUI_TERMS,
    ) -> float:
        """
        双不触碰价格（Hui 1996 级数）。

        α = -½(2b/σ² - 1)，β = -¼(2b/σ² - 1)² - 2r_d/σ²，Z = ln(U/L)，b = r_d - r_f
        """
        validate_positive(S, "S")
        validate_barrier_range(L, U)
        validate_finite(T, "T")
        validate_finite(r_d, "r_d")
        validate_finite(r_f, "r_f")
        validate_positive(sigma, "sigma", strict=False)
        payout = validate_positive(payout, "payout", strict=False)

        inside = L < S < U
        if T <= 0:
            return payout if inside else 0.0
        if not inside:
            return 0.0

        discounted = payout * np.exp(-r_d * T)
        if sigma < self.EPSILON:
            terminal = S * np.exp((r_d - r_f) * T)
            return float(discounted) if L < terminal < U else 0.0

        b = r_d - r_f
        k = 2.0 * b / sigma ** 2 - 1.0
        alpha = -0.5 * k
        beta = -0.25 * k ** 2 - 2.0 * r_d / sigma ** 2
        Z = np.log(U / L)

        i = np.arange(1, n_terms + 1, dtype=float)
        freq = i * np.pi / Z
        sign = np.where(i % 2 == 0, 1.0, -1.0)  # (-1)^i
        # (S/X)^α·e^(βσ²T/2) 合并为一个指数，α 很大时单独计算会溢出
        damping = 0.5 * beta * sigma ** 2 * T
        lower = np.exp(min(alpha * np.log(S / L) + damping, MAX_LOG_SCALE))
        upper = np.exp(min(alpha * np.log(S / U) + damping, MAX_LOG_SCALE))
        terms = (
            2.0 * np.pi * i * payout / Z ** 2
            * (lower - sign * upper) / (alpha ** 2 + freq ** 2)
            * np.sin(freq * np.log(S / L))
            * np.exp(-0.5 * freq ** 2 * sigma ** 2 * T)
        )
        value = float(np.sum(terms))
        if not np.isfinite(value):
            raise PricingError(
                f"Double no touch series did not converge (sigma={sigma:.6f}, T={T:.6f})"
            )
        return float(min(discounted, max(0.0, value)))

    def double_touch_price(
        self,
        S: float,
        L: float,
        U: float,
        T: float,
        r_d: float,
        r_f: float,
        sigma: float,
        payout: float = 1.0,
        n_terms: int = HUI_TERMS,
    ) -> float:
        """双触碰 = 贴现支付额 - 双不触碰（到期支付）。"""
        dnt = self.double_no_touch_price(S, L, U, T, r_d, r_f, sigma, payout, n_terms)
        if T <= 0:
            return payout - dnt
        return float(payout * np.exp(-r_d * T) - dnt)
