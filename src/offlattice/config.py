"""Configuration utilities for off-lattice Vicsek simulations.

This module centralizes loading, merging, and validating configuration
values for the offlattice package. It provides:

- A `DEFAULT_CONFIG` describing reasonable defaults for the domain,
    the alignment rule, the noise and the output controls.
- `load_config(path, overrides)` which reads a user YAML file, merges it
    deeply with the defaults, applies dotted-key CLI overrides and runs
    a validation pass.
- `SimulationConfig`, the immutable value object the simulation loop
    actually consumes. It is built once from the validated dictionary
    and passed explicitly to :class:`offlattice.simulation.SimulationLoop`.

Design notes
------------
The nested dictionary is what users edit and override from the
command-line (``--simulation.eta 0.5``). The dataclass is what the
numerics read, so the loop never looks up string keys while running.
Settings that are unusual but legal (for example a step ``v*dt`` larger
than the interaction radius) emit a ``RuntimeWarning`` instead of
failing.
"""

from __future__ import annotations

import json
import numbers
import warnings
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, MutableMapping, Optional

import yaml

NOISE_KINDS = ("uniform", "gaussian")

DEFAULT_CONFIG: Dict[str, Any] = {
    "seed": 0,
    "out_dir": "outputs/single",
    "space": {
        "L": 20.0,
        "N": 400,
        "speed": 0.03,
    },
    "simulation": {
        "iterations": 1000,
        "eta": 0.5,
        "M": 20,
        "R": 1.0,
        "dt": 1.0,
        "save_every": 1,
        "include_self": True,
        "inclusive_radius": True,
    },
    "noise": {
        "kind": "uniform",
        "match_variance": True,
    },
    "initial": {
        "particles": None,
    },
    "outputs": {
        "save_npz": True,
        "save_csv": True,
        "save_xyz": False,
        "plots": True,
        "progress": True,
    },
    "sweep": {
        "eta": [0.1, 0.5, 1.0, 2.0, 3.0, 4.0, 5.0],
        "reps": 1,
        "tail": 0.5,
    },
}


class ConfigError(ValueError):
    """Raised when a configuration fails validation."""


@dataclass(frozen=True)
class SimulationConfig:
    """Read-only parameters for one simulation run.

    ``iterations``, ``eta`` and ``m`` are the run controls; the rest
    describe the domain, the particles and the alignment rule.
    Validation happens on construction so an invalid combination (for
    example cells smaller than the interaction radius) fails before the
    first step.
    """

    iterations: int
    eta: float
    m: int
    side_length: float
    n_particles: int
    speed: float
    radius: float = 1.0
    dt: float = 1.0
    seed: Optional[int] = None
    noise_kind: str = "uniform"
    match_variance: bool = True
    include_self: bool = True
    inclusive_radius: bool = True
    save_every: int = 1

    def __post_init__(self) -> None:
        for name, minimum in (("iterations", 1), ("m", 1), ("n_particles", 0), ("save_every", 1)):
            value = getattr(self, name)
            if not _is_whole(value) or value < minimum:
                raise ConfigError(f"{name} must be an integer >= {minimum}, got {value!r}.")
            object.__setattr__(self, name, int(value))
        if self.eta < 0:
            raise ConfigError("Noise amplitude eta must be non-negative.")
        if self.side_length <= 0:
            raise ConfigError("Side length L must be positive.")
        if self.speed < 0:
            raise ConfigError("Particle speed must be non-negative.")
        if self.radius < 0:
            raise ConfigError("Interaction radius R must be non-negative.")
        if self.dt <= 0:
            raise ConfigError("Time step dt must be positive.")
        if self.noise_kind not in NOISE_KINDS:
            raise ConfigError(f"Noise kind must be one of {NOISE_KINDS}, got '{self.noise_kind}'.")
        if self.side_length / self.m < self.radius:
            raise ConfigError(
                f"Cell size L/M = {self.side_length / self.m:.4g} is smaller than the "
                f"interaction radius R = {self.radius:.4g}; decrease M."
            )

    @property
    def cell_size(self) -> float:
        return self.side_length / self.m

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "SimulationConfig":
        """Build the value object from a (merged) nested configuration.

        Raises :class:`ConfigError` naming the first missing or null key.
        """

        if not isinstance(config, Mapping):
            raise ConfigError("A configuration mapping is required.")
        space = _section(config, "space")
        sim = _section(config, "simulation")
        noise = config.get("noise") or {}

        try:
            return cls(
                iterations=_required(sim, "simulation", "iterations"),
                eta=float(_required(sim, "simulation", "eta")),
                m=_required(sim, "simulation", "M"),
                side_length=float(_required(space, "space", "L")),
                n_particles=_required(space, "space", "N"),
                speed=float(_required(space, "space", "speed")),
                radius=float(sim.get("R", 1.0)),
                dt=float(sim.get("dt", 1.0)),
                seed=None if config.get("seed") is None else int(config["seed"]),
                noise_kind=str(noise.get("kind", "uniform")).lower(),
                match_variance=bool(noise.get("match_variance", True)),
                include_self=bool(sim.get("include_self", True)),
                inclusive_radius=bool(sim.get("inclusive_radius", True)),
                save_every=sim.get("save_every", 1),
            )
        except ConfigError:
            raise
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration value: {exc}") from exc


def _is_whole(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return float(value).is_integer()


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = config.get(name)
    if not isinstance(section, Mapping):
        raise ConfigError(f"Configuration section '{name}' is missing.")
    return section


def _required(section: Mapping[str, Any], section_name: str, key: str) -> Any:
    value = section.get(key)
    if value is None:
        raise ConfigError(f"Configuration value '{section_name}.{key}' is missing.")
    return value


def _deep_update(base: MutableMapping[str, Any], update: Mapping[str, Any]) -> None:
    """Recursively merge ``update`` into ``base`` in-place.

    This behaves similarly to ``dict.update`` but performs a deep
    recursive merge for nested mappings. Lists and non-mapping values
    are replaced by the value from ``update``.

    Example
    -------
    >>> base = {"a": 1, "b": {"x": 2, "y": 3}}
    >>> _deep_update(base, {"b": {"y": 9, "z": 10}})
    >>> base
    {'a': 1, 'b': {'x': 2, 'y': 9, 'z': 10}}
    """

    for key, value in update.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), MutableMapping):
            _deep_update(base[key], value)  # type: ignore[index]
        else:
            base[key] = value


def _set_by_dotted_key(config: MutableMapping[str, Any], dotted_key: str, value: Any) -> None:
    """Assign ``value`` into ``config`` using a dotted path.

    The dotted key syntax allows CLI overrides such as
    ``simulation.eta`` or ``space.N``. Intermediate mappings are
    created as needed.
    """

    keys = dotted_key.split(".")
    target: MutableMapping[str, Any] = config
    for key in keys[:-1]:
        if key not in target or not isinstance(target[key], MutableMapping):
            target[key] = {}
        target = target[key]  # type: ignore[assignment]
    target[keys[-1]] = value


def _validate(config: Mapping[str, Any]) -> SimulationConfig:
    """Perform sanity checks on the merged configuration.

    Hard errors come from :class:`SimulationConfig`; this function adds
    the output-section checks and the non-fatal warnings.
    """

    sim_config = SimulationConfig.from_dict(config)

    sweep = config.get("sweep") or {}
    if sweep:
        if int(sweep.get("reps", 1)) < 1:
            raise ConfigError("sweep.reps must be a positive integer.")
        tail = float(sweep.get("tail", 0.5))
        if not 0.0 < tail <= 1.0:
            raise ConfigError("sweep.tail must lie in (0, 1].")
        etas = sweep.get("eta", [])
        if not isinstance(etas, (list, tuple)):
            etas = [etas]
        if any(float(eta) < 0 for eta in etas):
            raise ConfigError("sweep.eta values must be non-negative.")

    if sim_config.speed * sim_config.dt > sim_config.radius:
        warnings.warn(
            f"Step length v*dt = {sim_config.speed * sim_config.dt:.3g} exceeds the interaction "
            f"radius R = {sim_config.radius:.3g}; particles may jump over their neighbourhood.",
            RuntimeWarning,
            stacklevel=3,
        )
    return sim_config


def load_config(path: str | Path, overrides: Iterable[tuple[str, Any]] | None = None) -> Dict[str, Any]:
    """Load a YAML configuration file and merge it with defaults.

    This helper performs the following steps:

    1. Create a deep copy of :data:`DEFAULT_CONFIG` so callers receive a
       fresh mutable dict.
    2. Load the YAML at ``path`` and deep-merge it into the defaults
       using :func:`_deep_update`.
    3. Apply any dotted-key overrides supplied by the CLI via
       :func:`_set_by_dotted_key`.
    4. Run :func:`_validate` to perform sanity checks.

    Parameters
    ----------
    path:
        Path to the YAML configuration file.
    overrides:
        Optional iterable of ``(key, value)`` pairs where ``key`` is a dotted
        path specifying the field to override (e.g. ``simulation.eta``).

    Returns
    -------
    dict
        The merged and validated configuration dictionary. Use
        :meth:`SimulationConfig.from_dict` to obtain the value object.
    """

    cfg = default_config()
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(config_path)

    with config_path.open("r", encoding="utf-8") as fh:
        user_cfg = yaml.safe_load(fh) or {}
    if not isinstance(user_cfg, Mapping):
        raise ConfigError("Configuration file must define a mapping.")
    _deep_update(cfg, user_cfg)

    if overrides:
        for key, value in overrides:
            _set_by_dotted_key(cfg, key, value)

    _validate(cfg)
    return cfg


def default_config() -> Dict[str, Any]:
    """Return a fresh deep copy of :data:`DEFAULT_CONFIG`."""

    return json.loads(json.dumps(DEFAULT_CONFIG))


__all__ = [
    "load_config",
    "default_config",
    "DEFAULT_CONFIG",
    "ConfigError",
    "SimulationConfig",
    "NOISE_KINDS",
]
