"""Snapshot plumbing between the simulation loop and its recorders."""

from __future__ import annotations

from typing import Iterator, List, Protocol, Tuple, TypeVar, runtime_checkable

import numpy as np
import pandas as pd

from .space import SpaceState

S = TypeVar("S", covariant=True)


@runtime_checkable
class StateSaver(Protocol[S]):
    """Anything that can produce an immutable snapshot of itself."""

    def save_state(self) -> S:
        ...


@runtime_checkable
class StateRecorder(Protocol):
    """Collaborator that receives one :class:`SpaceState` per recorded step."""

    def record(self, state: SpaceState) -> None:
        ...


class StateHistory:
    """In-memory, ordered list of recorded :class:`SpaceState` snapshots."""

    def __init__(self) -> None:
        self._states: List[SpaceState] = []

    def record(self, state: SpaceState) -> None:
        self._states.append(state)

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[SpaceState]:
        return iter(self._states)

    def __getitem__(self, index: int) -> SpaceState:
        return self._states[index]

    @property
    def states(self) -> List[SpaceState]:
        return list(self._states)

    @property
    def final(self) -> SpaceState:
        if not self._states:
            raise IndexError("No state has been recorded yet.")
        return self._states[-1]

    def steps(self) -> np.ndarray:
        return np.array([s.step for s in self._states], dtype=int)

    def times(self, dt: float = 1.0) -> np.ndarray:
        return self.steps() * float(dt)

    def to_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """Stack snapshots into ``traj (T, N, 2)`` and ``angles (T, N)``.

        Requires a constant particle count across snapshots.
        """

        if not self._states:
            return np.empty((0, 0, 2)), np.empty((0, 0))
        traj = np.stack([s.positions() for s in self._states], axis=0)
        angles = np.stack([s.angles() for s in self._states], axis=0)
        return traj, angles

    def to_frame(self) -> pd.DataFrame:
        """Long-format table with one row per particle per snapshot."""

        records = [
            {
                "step": state.step,
                "id": p.id,
                "x": p.x,
                "y": p.y,
                "angle": p.angle,
                "speed": p.speed,
            }
            for state in self._states
            for p in state.particle_states
        ]
        columns = ["step", "id", "x", "y", "angle", "speed"]
        return pd.DataFrame.from_records(records, columns=columns)


__all__ = ["StateSaver", "StateRecorder", "StateHistory"]
