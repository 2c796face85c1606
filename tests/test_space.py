"""Tests for the particle and space data model."""

from __future__ import annotations

import numpy as np
import pytest

from offlattice.particle import TWO_PI, Particle, ParticleState, normalize_angle
from offlattice.space import (
    InvalidDomainError,
    MissingInputError,
    ParticleOutOfBoundsError,
    Space,
    SpaceError,
)
from offlattice.state import StateSaver


def _particles():
    return [
        Particle(x=0.0, y=0.0, angle=0.0, speed=0.5, id=0),
        Particle(x=10.0, y=10.0, angle=1.0, speed=0.5, id=1),
        Particle(x=3.5, y=7.25, angle=4.0, speed=0.5, id=2),
    ]


def test_particle_angle_is_normalized():
    assert Particle(1.0, 1.0, angle=-np.pi / 2).angle == pytest.approx(1.5 * np.pi)
    assert Particle(1.0, 1.0, angle=TWO_PI).angle == 0.0
    assert 0.0 <= normalize_angle(-1e-18) < TWO_PI


def test_particle_is_immutable_and_moved_to_copies():
    p = Particle(1.0, 2.0, angle=0.5, speed=0.3, id=7)
    with pytest.raises(AttributeError):
        p.x = 5.0  # type: ignore[misc]
    q = p.moved_to(3.0, 4.0, 1.0)
    assert (p.x, p.y, p.angle) == (1.0, 2.0, 0.5)
    assert (q.x, q.y, q.angle, q.speed, q.id) == (3.0, 4.0, 1.0, 0.3, 7)


def test_particle_velocity_and_state():
    p = Particle(1.0, 2.0, angle=np.pi / 2, speed=2.0, id=3)
    np.testing.assert_allclose(p.position, [1.0, 2.0])
    np.testing.assert_allclose(p.velocity, [0.0, 2.0], atol=1e-12)
    np.testing.assert_allclose(p.heading, [0.0, 1.0], atol=1e-12)
    assert p.save_state() == ParticleState(id=3, x=1.0, y=2.0, angle=np.pi / 2, speed=2.0)


def test_valid_space_keeps_particles():
    particles = _particles()
    space = Space(10.0, particles)
    assert space.side_length == 10.0
    assert len(space) == 3
    assert space.particles == particles


def test_boundary_coordinates_are_inside():
    Space(5.0, [Particle(5.0, 0.0, 0.0), Particle(0.0, 5.0, 0.0)])


@pytest.mark.parametrize("side_length", [0.0, -1.0, -1e-9, float("nan"), float("inf")])
def test_non_positive_side_length_is_invalid_domain(side_length):
    with pytest.raises(InvalidDomainError):
        Space(side_length, _particles())


def test_invalid_domain_checked_for_empty_list():
    with pytest.raises(InvalidDomainError):
        Space(0.0, [])


@pytest.mark.parametrize(
    "x, y",
    [(-0.1, 1.0), (1.0, -0.1), (10.01, 1.0), (1.0, 10.01), (float("nan"), 1.0)],
)
def test_particle_outside_is_out_of_bounds(x, y):
    with pytest.raises(ParticleOutOfBoundsError):
        Space(10.0, _particles() + [Particle(x, y, 0.0)])


def test_missing_particles():
    with pytest.raises(MissingInputError):
        Space(10.0, None)


def test_errors_share_base_class():
    assert issubclass(InvalidDomainError, SpaceError)
    assert issubclass(ParticleOutOfBoundsError, ValueError)


def test_particles_returns_defensive_copy():
    space = Space(10.0, _particles())
    handle = space.particles
    handle.clear()
    handle.append(Particle(99.0, 99.0, 0.0))
    assert len(space) == 3
    assert all(p.x <= 10.0 for p in space.particles)


def test_input_list_mutation_does_not_leak():
    particles = _particles()
    space = Space(10.0, particles)
    particles.append(Particle(1.0, 1.0, 0.0))
    assert len(space) == 3


def test_save_state_captures_snapshot():
    space = Space(10.0, _particles())
    assert isinstance(space, StateSaver)
    assert isinstance(space.particles[0], StateSaver)
    state = space.save_state(step=4)
    assert state.side_length == 10.0
    assert state.step == 4
    assert [ps.id for ps in state.particle_states] == [0, 1, 2]
    np.testing.assert_allclose(state.positions(), space.positions())
    np.testing.assert_allclose(state.angles(), space.angles())

    # A later space never changes an earlier snapshot.
    moved = Space(10.0, [p.moved_to(5.0, 5.0, 2.0) for p in space.particles])
    np.testing.assert_allclose(state.positions()[0], [0.0, 0.0])
    assert moved.save_state().particle_states[0].x == 5.0


def test_from_arrays_and_random():
    space = Space.from_arrays(4.0, [[1.0, 2.0], [3.0, 0.5]], [0.1, 0.2], speed=0.7)
    assert [p.id for p in space.particles] == [0, 1]
    np.testing.assert_allclose(space.speeds(), [0.7, 0.7])

    rng = np.random.default_rng(0)
    rand = Space.random(6.0, 50, 0.1, rng)
    x = rand.positions()
    assert x.shape == (50, 2)
    assert np.all((x >= 0.0) & (x < 6.0))
    assert np.all((rand.angles() >= 0.0) & (rand.angles() < TWO_PI))


def test_from_arrays_length_mismatch():
    with pytest.raises(ValueError):
        Space.from_arrays(4.0, [[1.0, 2.0]], [0.1, 0.2])
