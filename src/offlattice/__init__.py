"""Top-level package for off-lattice Vicsek collective motion simulations.

Self-propelled point particles move at constant speed in a periodic
square domain. At every step each particle takes the mean heading of its
neighbours within a fixed radius (found with the cell index method),
adds bounded random noise and advances along the new heading.

The package exposes two convenience functions at package level:

- ``load_config(path, overrides)``: load and validate a YAML
    configuration file (delegates to ``offlattice.config``).
- ``simulate(config)``: run a simulation from a configuration
    dictionary or :class:`~offlattice.config.SimulationConfig` and return
    the recorded :class:`~offlattice.state.StateHistory`.

so callers (or tests) can do::

        from offlattice import load_config, simulate

without importing internal modules directly. The building blocks
(:class:`Space`, :class:`CellIndexMethod`, :class:`OrientationUpdater`,
:class:`SimulationLoop`) are re-exported as well.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

from .cell_index import CellIndexMethod
from .config import ConfigError, SimulationConfig
from .orientation import OrientationUpdater
from .particle import Particle, ParticleState
from .simulation import SimulationLoop
from .space import (
    InvalidDomainError,
    MissingInputError,
    ParticleOutOfBoundsError,
    Space,
    SpaceError,
    SpaceState,
)
from .state import StateHistory


def load_config(path: str, overrides=None) -> Dict[str, Any]:
    """Load a YAML configuration and apply optional overrides.

    Thin wrapper around :func:`offlattice.config.load_config`.

    Returns
    -------
    dict
        A validated configuration dictionary ready to be passed to
        :func:`offlattice.simulate`.
    """

    from .config import load_config as _load_config

    return _load_config(path, overrides)


def simulate(
    config: Mapping[str, Any] | SimulationConfig,
    particles: Iterable[Particle] | None = None,
) -> StateHistory:
    """Run a simulation and return the recorded history.

    ``config`` may be the nested dictionary returned by
    :func:`load_config` or an already built :class:`SimulationConfig`.
    The generator is seeded once from the config's ``seed``.
    """

    from .simulation import simulate as _simulate

    if not isinstance(config, SimulationConfig):
        config = SimulationConfig.from_dict(config)
    return _simulate(config, particles)


__all__ = [
    "load_config",
    "simulate",
    "CellIndexMethod",
    "ConfigError",
    "InvalidDomainError",
    "MissingInputError",
    "OrientationUpdater",
    "Particle",
    "ParticleOutOfBoundsError",
    "ParticleState",
    "SimulationConfig",
    "SimulationLoop",
    "Space",
    "SpaceError",
    "SpaceState",
    "StateHistory",
]
