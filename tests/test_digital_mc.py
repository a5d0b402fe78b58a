"""
Monte Carlo 区间/区间外二元期权测试。
"""
import numpy as np
import pytest

from core.exceptions import ConfigurationError, ValidationError
from valuation.pricing.digital import DigitalMCConfig, MonteCarloDigitalPricer, MonteCarloResult

S, L, U, T, R_D, R_F, SIGMA = 1.10, 1.05, 1.15, 0.25, 0.02, 0.005, 0.12


def _pricer(n_paths=5_000, seed=42, **kwargs):
    return MonteCarloDigitalPricer(DigitalMCConfig(n_paths=n_paths, seed=seed, batch_size=2_000, **kwargs))


class TestBoundaries:
    """到期与已越界"""

    def test_expiry_inside(self):
        pricer = _pricer()
        assert pricer.price(S, L, U, 0.0, R_D, R_F, SIGMA, is_range=True).price == 1.0
        assert pricer.price(S, L, U, 0.0, R_D, R_F, SIGMA, is_range=False).price == 0.0

    def test_expiry_on_barrier_is_outside(self):
        result = _pricer().price(L, L, U, 0.0, R_D, R_F, SIGMA, is_range=True, payout=100.0)
        assert result.price == 0.0
        assert result.std_error == 0.0

    def test_spot_already_outside(self):
        pricer = _pricer()
        rng_result = pricer.price(1.20, L, U, T, R_D, R_F, SIGMA, is_range=True)
        out_result = pricer.price(1.20, L, U, T, R_D, R_F, SIGMA, is_range=False, payout=2.0)
        assert rng_result.price == 0.0
        assert out_result.price == pytest.approx(2.0 * np.exp(-R_D * T))
        assert out_result.n_paths == 0

    def test_invalid_inputs(self):
        with pytest.raises(ValidationError):
            _pricer().price(S, U, L, T, R_D, R_F, SIGMA, is_range=True)
        with pytest.raises(ValidationError):
            _pricer().price(S, L, U, T, R_D, R_F, -0.1, is_range=True)

    @pytest.mark.parametrize(
        "kwargs",
        [{"n_paths": 0}, {"min_steps": 0}, {"batch_size": -1}, {"max_batch_cells": 0}, {"confidence": 1.5}],
    )
    def test_invalid_config(self, kwargs):
        with pytest.raises(ConfigurationError):
            MonteCarloDigitalPricer(DigitalMCConfig(**kwargs))


class TestSimulation:
    """模拟性质"""

    def test_seeded_pricer_is_reproducible(self):
        first = _pricer(seed=123).price(S, L, U, T, R_D, R_F, SIGMA, is_range=True)
        second = _pricer(seed=123).price(S, L, U, T, R_D, R_F, SIGMA, is_range=True)
        assert first.price == second.price

    def test_injected_generator_is_used(self):
        pricer = _pricer(seed=None)
        a = pricer.price(S, L, U, T, R_D, R_F, SIGMA, True, rng=np.random.default_rng(9))
        b = pricer.price(S, L, U, T, R_D, R_F, SIGMA, True, rng=np.random.default_rng(9))
        assert a.price == b.price

    def test_range_plus_outside_is_discounted_payout(self):
        pricer = _pricer()
        range_price = pricer.price(S, L, U, T, R_D, R_F, SIGMA, True, payout=5.0,
                                   rng=np.random.default_rng(2024)).price
        outside_price = pricer.price(S, L, U, T, R_D, R_F, SIGMA, False, payout=5.0,
                                     rng=np.random.default_rng(2024)).price
        assert range_price + outside_price == pytest.approx(5.0 * np.exp(-R_D * T), abs=1e-12)

    def test_price_within_bounds_and_ci(self):
        result = _pricer().price(S, L, U, T, R_D, R_F, SIGMA, is_range=True)
        assert isinstance(result, MonteCarloResult)
        assert 0.0 < result.price < np.exp(-R_D * T)
        assert result.ci_low <= result.price <= result.ci_high
        assert result.std_error > 0
        assert result.n_paths == 5_000
        assert result.n_steps == 63

    def test_std_error_shrinks_with_paths(self):
        small = _pricer().price(S, L, U, T, R_D, R_F, SIGMA, True, n_paths=1_000)
        large = _pricer().price(S, L, U, T, R_D, R_F, SIGMA, True, n_paths=16_000)
        assert large.std_error < small.std_error

    @pytest.mark.slow
    def test_spread_across_seeds_shrinks_with_paths(self):
        def spread(n_paths):
            prices = [
                _pricer(n_paths=n_paths, seed=seed).price(S, L, U, T, R_D, R_F, SIGMA, True).price
                for seed in range(10)
            ]
            return np.std(prices)

        assert spread(20_000) < spread(500)

    def test_wider_corridor_is_worth_more(self):
        narrow = _pricer().price(S, L, U, T, R_D, R_F, SIGMA, True, rng=np.random.default_rng(1)).price
        wide = _pricer().price(S, 1.0, 1.2, T, R_D, R_F, SIGMA, True, rng=np.random.default_rng(1)).price
        assert wide > narrow

    def test_antithetic_sampling(self):
        result = _pricer(antithetic_sampling=True).price(S, L, U, T, R_D, R_F, SIGMA, True)
        assert 0.0 < result.price < np.exp(-R_D * T)

    def test_antithetic_draws_are_mirrored(self):
        pricer = _pricer(antithetic_sampling=True)
        z = pricer._draw_normals(np.random.default_rng(0), 5, 4)
        assert z.shape == (5, 4)
        np.testing.assert_allclose(z[3], -z[0])
        np.testing.assert_allclose(z[4], -z[1])


def test_num_steps():
    pricer = _pricer()
    assert pricer.num_steps(0.1) == 50
    assert pricer.num_steps(2.0) == 504


def test_rows_per_batch_scale_with_steps():
    pricer = MonteCarloDigitalPricer()
    assert pricer.rows_per_batch(252) == 10_000
    assert pricer.rows_per_batch(50) == 10_000
    assert pricer.rows_per_batch(pricer.num_steps(10.0)) == 1_000
    assert pricer.rows_per_batch(10_000_000) == 1


def test_long_tenor_batches_stay_within_cell_budget(monkeypatch):
    pricer = MonteCarloDigitalPricer(DigitalMCConfig(n_paths=3_000, seed=1, max_batch_cells=252_000))
    simulate = pricer._simulate_stays_inside
    cells = []

    def recording(rng, n_rows, n_steps, *args):
        cells.append(n_rows * n_steps)
        return simulate(rng, n_rows, n_steps, *args)

    monkeypatch.setattr(pricer, "_simulate_stays_inside", recording)
    result = pricer.price(S, L, U, 10.0, R_D, R_F, SIGMA, is_range=True)

    assert len(cells) == 30
    assert max(cells) <= 252_000
    assert result.n_paths == 3_000
    assert result.n_steps == 2_520


def test_box_muller_is_standard_normal():
    z = MonteCarloDigitalPricer.box_muller(np.random.default_rng(7), 1_001, 200)
    assert z.shape == (1_001, 200)
    assert abs(z.mean()) < 0.01
    assert abs(z.std() - 1.0) < 0.01


def test_config_from_settings(test_settings):
    config = DigitalMCConfig.from_settings(test_settings)
    assert config.n_paths == 4_000
    assert config.batch_size == 1_500
    assert config.max_batch_cells == 2_520_000
    assert config.seed == 7


def test_result_to_dict():
    assert MonteCarloResult.exact(0.5).to_dict()["ci_high"] == 0.5
