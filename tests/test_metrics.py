import numpy as np
import pytest

from offlattice.metrics import compute_timeseries, dnn, mean_neighbor_count, polarization
from offlattice.space import Space
from offlattice.state import StateHistory


def test_polarization_limits():
    assert polarization(np.full(10, 1.3)) == pytest.approx(1.0)
    assert polarization(np.array([0.0, np.pi])) == pytest.approx(0.0, abs=1e-12)
    assert polarization(np.array([])) == 0.0


def test_polarization_handles_wraparound():
    assert polarization(np.array([0.05, 2 * np.pi - 0.05])) > 0.99


def test_dnn_uses_minimum_image():
    x = np.array([[0.5, 5.0], [9.5, 5.0], [5.0, 5.0]])
    assert dnn(x, 10.0) == pytest.approx((1.0 + 1.0 + 4.5) / 3)
    assert np.isnan(dnn(x[:1], 10.0))


def test_mean_neighbor_count():
    assert mean_neighbor_count([np.array([1, 2]), np.array([0]), np.array([], dtype=int)]) == 1.0
    assert mean_neighbor_count([]) == 0.0


def test_compute_timeseries():
    history = StateHistory()
    space = Space.from_arrays(10.0, [[1.0, 1.0], [2.0, 1.0]], [0.0, 0.0])
    history.record(space.save_state(step=0))
    history.record(space.save_state(step=2))
    df = compute_timeseries(history, dt=0.5)
    assert list(df.columns) == ["step", "time", "polarization", "dnn"]
    np.testing.assert_allclose(df["time"], [0.0, 1.0])
    np.testing.assert_allclose(df["polarization"], [1.0, 1.0])
    np.testing.assert_allclose(df["dnn"], [1.0, 1.0])
