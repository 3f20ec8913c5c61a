import numpy as np
import pytest

from commons_sim.model.wear import WearGrid


def test_wear_scales_with_durability_and_clamps():
    lawn = WearGrid(4, 4, durability=0.5)
    lawn.wear(1, 1, 0.1)
    assert lawn.get(1, 1) == pytest.approx(0.8)
    lawn.wear(1, 1, 10)
    assert lawn.get(1, 1) == 0.0


def test_off_grid_is_pristine():
    lawn = WearGrid(4, 4)
    lawn.wear(-1, 0, 5)
    assert lawn.get(-1, 0) == 1.0
    assert lawn.get_average_health() == pytest.approx(1.0)


def test_recovery_caps_at_one():
    lawn = WearGrid(3, 3, recovery_rate=0.1, durability=1.0)
    lawn.wear(0, 0, 0.5)
    lawn.update(1.0)
    assert lawn.get(0, 0) == pytest.approx(0.6)
    lawn.update(100.0)
    assert lawn.get(0, 0) == pytest.approx(1.0)
    assert lawn.data.max() <= 1.0


def test_wear_radius_hits_center_hardest():
    lawn = WearGrid(9, 9, durability=1.0)
    lawn.wear_radius(4, 4, 2, 0.5)
    assert lawn.get(4, 4) == pytest.approx(0.5)
    assert lawn.get(4, 4) < lawn.get(5, 4) < 1.0
    assert lawn.get(8, 8) == 1.0


def test_path_cost_prefers_worn_ground():
    lawn = WearGrid(3, 3)
    lawn.paint([(0, 0)], 0.0)
    assert lawn.get_path_cost(1, 1, 0.0) == pytest.approx(11.0)
    assert lawn.get_path_cost(0, 0, 0.0) == pytest.approx(1.0)
    assert lawn.get_path_cost(1, 1, 1.0) == pytest.approx(11.0 * 0.2)


def test_paint_and_worn_percentage():
    lawn = WearGrid(4, 4)
    lawn.paint([(x, 0) for x in range(4)], 0.1)
    lawn.paint([(0, 1)], -2.0)
    assert lawn.get(0, 1) == 0.0
    assert lawn.get_worn_percentage(0.5) == pytest.approx(5 / 16)


def test_reset_matches_fresh_lawn(rng):
    fresh = WearGrid(5, 5)
    lawn = WearGrid(5, 5)
    for _ in range(20):
        lawn.wear(*rng.integers(0, 5, size=2), rng.uniform(0, 0.2))
    lawn.reset()
    lawn.update(0)
    np.testing.assert_array_equal(lawn.data, fresh.data)
