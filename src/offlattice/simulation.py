"""Time evolution for off-lattice Vicsek simulations.

Responsibilities:
- Build the initial :class:`Space`, either random from a seeded
    generator or from externally supplied particles.
- Drive exactly ``iterations`` steps. Each step computes the full
    neighbour map with :class:`CellIndexMethod` and only then applies
    :class:`OrientationUpdater`, which returns a new ``Space``.
- Hand a :class:`SpaceState` snapshot to the recorder for the initial
    state and every ``save_every``-th step (the last step is always
    recorded).

Plotting and file output live in :mod:`offlattice.cli` and
:mod:`offlattice.io` so the numerics stay free of side-effects.
"""

from __future__ import annotations

from typing import Iterable, TypeVar

import numpy as np
from tqdm import tqdm

from .cell_index import CellIndexMethod
from .config import ConfigError, SimulationConfig
from .orientation import OrientationUpdater
from .particle import Particle
from .space import MissingInputError, Space
from .state import StateHistory, StateRecorder

R = TypeVar("R", bound=StateRecorder)


class SimulationLoop:
    """Run the cell-index / orientation-update cycle for a fixed number of steps.

    ``cell_index`` and ``updater`` are built from ``config`` unless given.
    Building them here checks the grid against the interaction radius
    before any step runs.
    """

    def __init__(
        self,
        config: SimulationConfig,
        rng: np.random.Generator,
        *,
        cell_index: CellIndexMethod | None = None,
        updater: OrientationUpdater | None = None,
        progress: bool = False,
    ):
        if config is None:
            raise MissingInputError("A simulation configuration is required.")
        self.config = config
        self.rng = rng
        self.cell_index = cell_index or CellIndexMethod(
            config.side_length,
            config.m,
            config.radius,
            inclusive=config.inclusive_radius,
        )
        self.updater = updater or OrientationUpdater(
            config.eta,
            dt=config.dt,
            noise_kind=config.noise_kind,
            include_self=config.include_self,
            match_variance=config.match_variance,
        )
        self.progress = progress

    def step(self, space: Space) -> Space:
        """Advance ``space`` by one step and return the new space."""

        neighbors = self.cell_index.neighbors(space)
        return self.updater.update(space, neighbors, self.rng)

    def run(self, space: Space, recorder: R | None = None) -> R | StateHistory:
        """Run all iterations starting from ``space``.

        Returns the recorder (a new :class:`StateHistory` when none is given).
        """

        if space is None:
            raise MissingInputError("An initial space is required.")
        if space.side_length != self.cell_index.side_length:
            raise ConfigError(
                f"Space side length {space.side_length} does not match the grid "
                f"side length {self.cell_index.side_length}."
            )
        history = recorder if recorder is not None else StateHistory()
        iterations = self.config.iterations
        save_every = self.config.save_every

        history.record(space.save_state(step=0))
        pbar = tqdm(
            range(1, iterations + 1),
            desc="Simulating",
            unit="step",
            disable=not self.progress,
        )
        for step in pbar:
            space = self.step(space)
            if step % save_every == 0 or step == iterations:
                history.record(space.save_state(step=step))
        pbar.close()
        return history


def initial_space(
    config: SimulationConfig,
    rng: np.random.Generator,
    particles: Iterable[Particle] | None = None,
) -> Space:
    """Random initial population, or ``particles`` when supplied."""

    if particles is not None:
        return Space(config.side_length, particles)
    return Space.random(config.side_length, config.n_particles, config.speed, rng)


def simulate(
    config: SimulationConfig,
    particles: Iterable[Particle] | None = None,
    *,
    progress: bool = False,
) -> StateHistory:
    """Seed a generator from ``config.seed``, build the initial space and run."""

    rng = np.random.default_rng(config.seed)
    loop = SimulationLoop(config, rng, progress=progress)
    space = initial_space(config, rng, particles)
    return loop.run(space)


__all__ = ["SimulationLoop", "initial_space", "simulate"]
