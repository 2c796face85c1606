"""Order parameters and diagnostics for Vicsek simulations.

Implements the Vicsek order parameter (normalised mean velocity) and
nearest-neighbour statistics, plus a helper that turns a recorded
history into a time-series table.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from .domain import pair_displacements
from .state import StateHistory

ArrayLike = np.ndarray


def polarization(angles: ArrayLike) -> float:
    """Vicsek order parameter ``v_a = |<exp(i theta)>|`` in ``[0, 1]``."""

    angles = np.asarray(angles, dtype=float)
    if angles.size == 0:
        return 0.0
    return float(np.hypot(np.mean(np.cos(angles)), np.mean(np.sin(angles))))


def mean_neighbor_count(neighbors: Sequence[ArrayLike]) -> float:
    """Average neighbourhood size (self excluded)."""

    if len(neighbors) == 0:
        return 0.0
    return float(np.mean([len(idx) for idx in neighbors]))


def dnn(x: ArrayLike, L: float) -> float:
    """Mean nearest-neighbour distance under the minimum-image convention."""

    x = np.asarray(x, dtype=float).reshape(-1, 2)
    if x.shape[0] < 2:
        return float("nan")
    _, _, rij = pair_displacements(x, L)
    np.fill_diagonal(rij, np.inf)
    nearest = np.min(rij, axis=1)
    return float(np.mean(nearest))


def compute_timeseries(history: StateHistory, dt: float = 1.0) -> pd.DataFrame:
    """Compute diagnostic time series for a recorded history."""

    records = []
    for state in history:
        records.append(
            {
                "step": state.step,
                "time": state.step * dt,
                "polarization": polarization(state.angles()),
                "dnn": dnn(state.positions(), state.side_length),
            }
        )
    return pd.DataFrame.from_records(records, columns=["step", "time", "polarization", "dnn"])


__all__ = ["polarization", "mean_neighbor_count", "dnn", "compute_timeseries"]
