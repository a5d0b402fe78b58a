"""
Monte Carlo pricer for range / outside binaries.

Spot follows risk-neutral GBM with drift r_d - r_f, stepped on a log-Euler
grid. A range binary pays when the path never leaves the open corridor
(L, U); an outside binary pays when it does.
"""

import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import numpy as np
from scipy.stats import norm

from core.exceptions import ConfigurationError
from core.validation.validators import validate_barrier_range, validate_finite, validate_positive

logger = logging.getLogger(__name__)


@dataclass
class DigitalMCConfig:
    """Configuration for digital path simulation."""

    n_paths: int = 50_000
    min_steps: int = 50
    steps_per_year: int = 252
    batch_size: int = 10_000
    # 单批 normals 矩阵元素上限（batch_size × 一年日步数）
    max_batch_cells: int = 2_520_000
    seed: Optional[int] = None
    antithetic_sampling: bool = False
    confidence: float = 0.95

    @classmethod
    def from_settings(cls, settings) -> "DigitalMCConfig":
        return cls(
            n_paths=settings.mc_num_simulations,
            min_steps=settings.mc_min_steps,
            steps_per_year=settings.mc_steps_per_year,
            batch_size=settings.mc_batch_size,
            max_batch_cells=settings.mc_max_batch_cells,
            seed=settings.mc_seed,
            antithetic_sampling=settings.mc_antithetic,
        )


@dataclass(frozen=True)
class MonteCarloResult:
    price: float
    std_error: float
    ci_low: float
    ci_high: float
    n_paths: int
    n_steps: int
    simulation_time_sec: float = 0.0

    @classmethod
    def exact(cls, price: float) -> "MonteCarloResult":
        """Terminal or already-decided payoff: no simulation noise."""
        return cls(price=float(price), std_error=0.0, ci_low=float(price), ci_high=float(price),
                   n_paths=0, n_steps=0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MonteCarloDigitalPricer:
    """
    Range / outside binary pricer.

    Normals come from a Box-Muller transform of uniforms drawn from an
    injectable ``numpy.random.Generator``; a seeded generator gives
    reproducible prices.
    """

    def __init__(self, config: Optional[DigitalMCConfig] = None):
        config = config or DigitalMCConfig()
        if config.n_paths <= 0:
            raise ConfigurationError("n_paths must be positive")
        if config.min_steps <= 0:
            raise ConfigurationError("min_steps must be positive")
        if config.steps_per_year <= 0:
            raise ConfigurationError("steps_per_year must be positive")
        if config.batch_size <= 0:
            raise ConfigurationError("batch_size must be positive")
        if config.max_batch_cells <= 0:
            raise ConfigurationError("max_batch_cells must be positive")
        if not (0.5 < config.confidence < 1.0):
            raise ConfigurationError("confidence must be in (0.5, 1.0)")
        self.config = config
        self._rng = np.random.default_rng(config.seed)

    def num_steps(self, T: float) -> int:
        return max(self.config.min_steps, int(np.floor(T * self.config.steps_per_year)))

    def rows_per_batch(self, n_steps: int) -> int:
        """Paths per batch, capped so that rows × n_steps stays within max_batch_cells."""
        return max(1, min(self.config.batch_size, self.config.max_batch_cells // n_steps))

    @staticmethod
    def box_muller(rng: np.random.Generator, n_rows: int, n_cols: int) -> np.ndarray:
        """Standard normals of shape (n_rows, n_cols) from paired uniforms."""
        half = (n_rows + 1) // 2
        u1 = 1.0 - rng.random((half, n_cols))  # (0, 1]
        u2 = rng.random((half, n_cols))
        radius = np.sqrt(-2.0 * np.log(u1))
        angle = 2.0 * np.pi * u2
        z = np.vstack([radius * np.cos(angle), radius * np.sin(angle)])
        return z[:n_rows]

    def _draw_normals(self, rng: np.random.Generator, n_rows: int, n_cols: int) -> np.ndarray:
        if self.config.antithetic_sampling and n_rows > 1:
            z_half = self.box_muller(rng, (n_rows + 1) // 2, n_cols)
            return np.vstack([z_half, -z_half])[:n_rows]
        return self.box_muller(rng, n_rows, n_cols)

    def _simulate_stays_inside(
        self,
        rng: np.random.Generator,
        n_rows: int,
        n_steps: int,
        S: float,
        L: float,
        U: float,
        drift_dt: float,
        diffusion: float,
    ) -> np.ndarray:
        """Boolean per path: True if the path never left (L, U)."""
        z = self._draw_normals(rng, n_rows, n_steps)
        log_paths = np.log(S) + np.cumsum(drift_dt + diffusion * z, axis=1)
        inside = (log_paths > np.log(L)) & (log_paths < np.log(U))
        return inside.all(axis=1)

    def price(
        self,
        S: float,
        L: float,
        U: float,
        T: float,
        r_d: float,
        r_f: float,
        sigma: float,
        is_range: bool,
        payout: float = 1.0,
        rng: Optional[np.random.Generator] = None,
        n_paths: Optional[int] = None,
    ) -> MonteCarloResult:
        """
        Price a range (``is_range=True``) or outside binary.

        Args:
            S: spot
            L, U: corridor barriers (absolute levels, L < U)
            T: time to expiry in years
            r_d, r_f: domestic / foreign rates
            sigma: volatility
            payout: amount paid per unit notional
            rng: generator overriding the pricer's own
            n_paths: path count overriding the configured one

        Returns:
            MonteCarloResult with the discounted average payoff and its
            standard error / confidence interval.
        """
        validate_positive(S, "S")
        validate_barrier_range(L, U)
        validate_finite(T, "T")
        validate_finite(r_d, "r_d")
        validate_finite(r_f, "r_f")
        validate_positive(sigma, "sigma", strict=False)
        payout = validate_positive(payout, "payout", strict=False)

        if T <= 0:
            in_range = L < S < U
            return MonteCarloResult.exact(payout if is_range == in_range else 0.0)

        discounted_payout = payout * float(np.exp(-r_d * T))

        if S <= L or S >= U:
            # corridor already broken
            return MonteCarloResult.exact(0.0 if is_range else discounted_payout)

        t0 = time.perf_counter()
        rng = rng if rng is not None else self._rng
        n_total = int(n_paths) if n_paths is not None else self.config.n_paths
        if n_total <= 0:
            raise ConfigurationError("n_paths must be positive")

        n_steps = self.num_steps(T)
        dt = T / n_steps
        drift_dt = (r_d - r_f - 0.5 * sigma ** 2) * dt
        diffusion = sigma * np.sqrt(dt)

        rows = self.rows_per_batch(n_steps)
        hits = 0
        remaining = n_total
        while remaining > 0:
            batch = min(rows, remaining)
            stayed = self._simulate_stays_inside(rng, batch, n_steps, S, L, U, drift_dt, diffusion)
            hits += int(np.count_nonzero(stayed if is_range else ~stayed))
            remaining -= batch

        # Bernoulli payoff: sample variance follows from the hit ratio
        p = hits / n_total
        price = discounted_payout * p
        if n_total > 1:
            std = discounted_payout * np.sqrt(p * (1.0 - p) * n_total / (n_total - 1))
        else:
            std = 0.0
        std_error = float(std / np.sqrt(n_total))

        z = float(norm.ppf(0.5 + self.config.confidence / 2.0))
        elapsed = float(max(time.perf_counter() - t0, 0.0))
        logger.debug(
            "Digital MC priced: range=%s paths=%d steps=%d price=%.6f se=%.2e (%.3fs)",
            is_range, n_total, n_steps, price, std_error, elapsed,
        )
        return MonteCarloResult(
            price=float(price),
            std_error=std_error,
            ci_low=float(price - z * std_error),
            ci_high=float(price + z * std_error),
            n_paths=n_total,
            n_steps=n_steps,
            simulation_time_sec=elapsed,
        )
