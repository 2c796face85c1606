import numpy as np

from offlattice.domain import (
    brute_force_neighbors,
    minimum_image,
    pair_displacements,
    wrap_positions,
)


def test_minimal_image_periodic():
    x = np.array([[19.5, 10.0], [0.5, 10.0]])
    dx, dy, rij = pair_displacements(x, L=20.0)
    np.testing.assert_allclose(rij[0, 1], 1.0)
    np.testing.assert_allclose(dx[0, 1], 1.0)
    np.testing.assert_allclose(dx[1, 0], -1.0)


def test_translation_invariance():
    x = np.array([[2.0, 3.0], [5.0, 7.0]])
    dx1, dy1, rij1 = pair_displacements(x, L=20.0)
    x_shifted = x + np.array([20.0, 0.0])
    dx2, dy2, rij2 = pair_displacements(x_shifted, L=20.0)
    np.testing.assert_allclose(rij1, rij2)
    np.testing.assert_allclose(dx1, dx2)
    np.testing.assert_allclose(dy1, dy2)


def test_minimum_image_is_never_longer_than_half_box():
    rng = np.random.default_rng(0)
    delta = rng.uniform(-30.0, 30.0, size=1000)
    wrapped = minimum_image(delta, 10.0)
    assert np.all(np.abs(wrapped) <= 5.0 + 1e-12)


def test_wrap_positions():
    x = np.array([[10.2, -0.3], [5.0, 20.0]])
    np.testing.assert_allclose(wrap_positions(x, 10.0), [[0.2, 9.7], [5.0, 0.0]], atol=1e-12)


def test_brute_force_self_option():
    x = np.array([[0.2, 0.5], [9.8, 0.5], [5.0, 5.0]])
    without = brute_force_neighbors(x, 10.0, radius=0.6)
    with_self = brute_force_neighbors(x, 10.0, radius=0.6, include_self=True)
    assert without[0].tolist() == [1]
    assert with_self[0].tolist() == [0, 1]
    assert with_self[2].tolist() == [2]
