import numpy as np
import pytest

from commons_sim.model.logistic import (
    COLLAPSE,
    LogisticGrid,
    equilibrium_population,
    logistic_growth_rate,
    logistic_growth_step,
)


def test_growth_rate_peaks_at_half_capacity():
    assert logistic_growth_rate(50, 0.2, 100) == pytest.approx(5.0)
    assert logistic_growth_rate(100, 0.2, 100) == pytest.approx(0.0)
    assert logistic_growth_rate(0, 0.2, 100) == pytest.approx(0.0)


def test_step_is_clamped_to_capacity_range():
    assert logistic_growth_step(150, 0.5, 100, 1.0) == pytest.approx(100)
    assert logistic_growth_step(-5, 0.5, 100, 1.0) == pytest.approx(0)
    assert logistic_growth_step(50, 0.2, 100, 0.5) == pytest.approx(52.5)


def test_equilibrium_population():
    assert equilibrium_population(0.15, 100, 8) == COLLAPSE
    expected = 50 + np.sqrt(2500 - 2 * 100 / 0.15)
    assert equilibrium_population(0.15, 100, 2) == pytest.approx(expected)
    assert equilibrium_population(0.2, 100, 0) == pytest.approx(100)


def test_grid_starts_full_and_consumes():
    grid = LogisticGrid(4, 4, 0.5, 100)
    assert grid.get_average() == pytest.approx(100)

    assert grid.consume(1, 1, 30) == pytest.approx(30)
    assert grid.get(1, 1) == pytest.approx(70)
    assert grid.consume(1, 1, 500) == pytest.approx(70)
    assert grid.get(1, 1) == 0.0

    assert grid.consume(-1, 0, 10) == 0.0
    assert grid.consume(0, 0, -10) == 0.0


def test_set_is_clamped():
    grid = LogisticGrid(2, 2, 0.5, 100)
    grid.set(0, 0, 250)
    grid.set(1, 1, -3)
    assert grid.get(0, 0) == pytest.approx(100)
    assert grid.get(1, 1) == 0.0


def test_cells_stay_within_capacity(rng):
    grid = LogisticGrid(8, 8, 2.0, 50)
    for _ in range(200):
        x, y = rng.integers(0, 8, size=2)
        grid.consume(x, y, rng.uniform(0, 40))
        grid.update(0.1)
        assert grid.data.min() >= 0
        assert grid.data.max() <= 50


def test_reset_matches_fresh_grid():
    fresh = LogisticGrid(3, 3, 0.3, 80)
    grid = LogisticGrid(3, 3, 0.3, 80)
    grid.consume(0, 0, 60)
    grid.update(1.0)
    grid.reset()
    grid.update(0)
    np.testing.assert_array_equal(grid.data, fresh.data)


def test_overharvest_collapses_cell():
    r, k, demand, dt = 0.15, 100, 8.0, 1 / 60
    grid = LogisticGrid(1, 1, r, k)
    assert equilibrium_population(r, k, demand) == COLLAPSE

    for _ in range(300):
        grid.update(dt)
        grid.consume(0, 0, demand * dt)

    # Net loss is at least demand - rK/4 per second
    assert grid.get(0, 0) < 80


def test_sustainable_harvest_converges_to_equilibrium():
    r, k, demand, dt = 0.15, 100, 2.0, 1 / 60
    grid = LogisticGrid(1, 1, r, k)
    for _ in range(int(120 / dt)):
        grid.update(dt)
        grid.consume(0, 0, demand * dt)

    assert grid.get(0, 0) == pytest.approx(equilibrium_population(r, k, demand), rel=1e-3)


def test_lowering_capacity_clips_stock_immediately():
    grid = LogisticGrid(4, 4, 0.5, 100)
    grid.consume(1, 1, 70)
    grid.set_params(0.5, 50)

    assert grid.data.max() <= 50
    assert grid.get(0, 0) == 50
    assert grid.get(1, 1) == pytest.approx(30)
