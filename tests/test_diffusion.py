import numpy as np
import pytest

from commons_sim.model.diffusion import STABILITY_LIMIT, DiffusionGrid


def test_emit_saturates_at_one():
    field = DiffusionGrid(4, 4)
    field.emit(1, 1, 0.7)
    field.emit(1, 1, 0.7)
    assert field.get(1, 1) == pytest.approx(1.0)
    field.emit(-1, 2, 0.5)
    assert field.get_total() == pytest.approx(1.0)


def test_emit_radius_peaks_at_center():
    field = DiffusionGrid(9, 9)
    field.emit_radius(4, 4, 2, 0.5)
    assert field.get(4, 4) == pytest.approx(0.5)
    assert 0 < field.get(5, 4) < field.get(4, 4)
    assert field.get(0, 0) == 0.0


def test_still_air_without_diffusion_is_unchanged(rng):
    field = DiffusionGrid(6, 6, d=0.0, absorption=0.0)
    field.data[:] = rng.uniform(0, 1, size=(6, 6))
    before = field.data.copy()
    field.update(5.0)
    np.testing.assert_allclose(field.data, before)


def test_diffusion_conserves_mass_at_reflecting_edges():
    field = DiffusionGrid(10, 10, d=0.5, absorption=0.0)
    field.emit(0, 0, 1.0)
    field.emit(5, 5, 0.8)
    total = field.get_total()
    for _ in range(50):
        field.update(0.1)
    assert field.get_total() == pytest.approx(total, rel=1e-4)
    assert field.get(1, 0) > 0


def test_absorption_decays_concentration():
    field = DiffusionGrid(5, 5, d=0.0, absorption=0.5)
    field.data[:] = 0.8
    field.update(0.1)
    assert field.get_average() == pytest.approx(0.8 * (1 - 0.05))


def test_wind_carries_pollution_downwind():
    field = DiffusionGrid(11, 11, d=0.01, absorption=0.0)
    field.emit(5, 5, 1.0)
    for _ in range(10):
        field.update(0.1, wind_x=1.0)
    assert field.get(7, 5) > field.get(3, 5)

    field.reset()
    field.emit(5, 5, 1.0)
    for _ in range(10):
        field.update(0.1, wind_y=-1.0)
    assert field.get(5, 3) > field.get(5, 7)


def test_cells_stay_in_unit_range(rng):
    field = DiffusionGrid(16, 16, d=2.0, absorption=0.01)
    for _ in range(100):
        field.emit_radius(*rng.uniform(0, 16, size=2), 2, 0.6)
        field.update(0.2, *rng.uniform(-3, 3, size=2))
        assert field.data.min() >= 0.0
        assert field.data.max() <= 1.0


def test_reset_matches_fresh_field():
    fresh = DiffusionGrid(5, 5)
    field = DiffusionGrid(5, 5)
    field.emit_radius(2, 2, 2, 1.0)
    field.update(0.1, 1.0, 1.0)
    field.reset()
    field.update(0, 0.0, 0.0)
    np.testing.assert_array_equal(field.data, fresh.data)
    np.testing.assert_array_equal(field.buffer.cells, fresh.buffer.cells)


def test_explicit_scheme_oscillates_above_stability_limit():
    def checkerboard():
        field = DiffusionGrid(8, 8, d=1.0, absorption=0.0)
        ys, xs = np.indices((8, 8))
        field.data[:] = ((xs + ys) % 2 == 0).astype(np.float32)
        return field

    unstable_dt = 0.5
    stable_dt = 0.1
    assert 1.0 * unstable_dt > STABILITY_LIMIT

    field = checkerboard()
    assert not field.is_stable(unstable_dt)
    field.update(unstable_dt)
    # Interior peaks and troughs swap instead of smoothing
    assert field.get(3, 3) == pytest.approx(0.0)
    assert field.get(4, 3) == pytest.approx(1.0)

    field = checkerboard()
    assert field.is_stable(stable_dt)
    field.update(stable_dt)
    assert field.get(3, 3) == pytest.approx(0.6)
    assert field.get(4, 3) == pytest.approx(0.4)
