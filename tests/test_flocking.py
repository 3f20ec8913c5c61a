import numpy as np
import pytest

from commons_sim.model.flocking import Boid, BoidParams, FlockingModel


def test_spawn_inside_bounds(rng):
    flock = FlockingModel(rng=rng)
    spawned = flock.spawn(40, (-5, -2, -5), (5, 2, 5))
    assert len(spawned) == 40
    positions = flock.get_positions()
    assert positions.shape == (40, 3)
    assert (positions >= [-5, -2, -5]).all()
    assert (positions <= [5, 2, 5]).all()


def test_speed_never_exceeds_max(rng):
    flock = FlockingModel(BoidParams(max_speed=3.0, boundary_size=5.0), rng=rng)
    flock.spawn(60, (-8, -8, -8), (8, 8, 8))
    for _ in range(30):
        flock.update(1 / 30)
        speeds = np.linalg.norm(flock.get_velocities(), axis=1)
        assert speeds.max() <= 3.0 + 1e-9


def test_remove_tombstones_then_compact(rng):
    flock = FlockingModel(rng=rng)
    flock.spawn(10, (0, 0, 0), (1, 1, 1))
    assert flock.remove(4) == 4
    assert flock.get_count() == 6
    assert len(flock.boids) == 10
    flock.compact()
    assert len(flock.boids) == 6
    assert flock.remove(50) == 6
    assert flock.remove(1) == 0


def test_lone_boid_inside_box_keeps_velocity():
    flock = FlockingModel()
    flock.boids.append(Boid(position=np.zeros(3), velocity=np.array([1.0, 0.0, 0.0])))
    flock.update(0.1)
    np.testing.assert_allclose(flock.boids[0].velocity, [1.0, 0.0, 0.0])
    np.testing.assert_allclose(flock.boids[0].position, [0.1, 0.0, 0.0])


def test_boundary_pull_grows_with_excursion():
    params = BoidParams(boundary_size=30.0, boundary_force=0.5, max_speed=100.0)
    near = FlockingModel(params)
    far = FlockingModel(BoidParams(**vars(params)))
    near.boids.append(Boid(position=np.array([32.0, 0, 0]), velocity=np.zeros(3)))
    far.boids.append(Boid(position=np.array([40.0, 0, 0]), velocity=np.zeros(3)))
    near.update(0.1)
    far.update(0.1)
    assert near.boids[0].velocity[0] == pytest.approx(-0.1)
    assert far.boids[0].velocity[0] == pytest.approx(-0.5)


def test_dead_boids_are_ignored(rng):
    flock = FlockingModel(rng=rng)
    flock.spawn(5, (0, 0, 0), (1, 1, 1))
    flock.boids[0].alive = False
    frozen = flock.boids[0].position.copy()
    flock.update(0.1)
    np.testing.assert_array_equal(flock.boids[0].position, frozen)
    assert flock.get_positions().shape == (4, 3)


def test_set_params_rejects_unknown_names():
    flock = FlockingModel()
    flock.set_params(max_speed=7.0)
    assert flock.params.max_speed == 7.0
    with pytest.raises(ValueError):
        flock.set_params(warp_speed=9)


def test_empty_flock():
    flock = FlockingModel()
    flock.update(0.1)
    assert flock.get_count() == 0
    assert flock.get_positions().shape == (0, 3)
