"""Square periodic domain holding the particle population.

A :class:`Space` is validated once, at construction, and never changes
afterwards. Evolving the simulation means building a new ``Space`` from
the previous one (see :mod:`offlattice.orientation`). Snapshots are
taken with :meth:`Space.save_state` and are immutable as well.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .particle import TWO_PI, Particle, ParticleState


class SpaceError(ValueError):
    """Base class for invalid domain states."""


class InvalidDomainError(SpaceError):
    """Raised when the side length is not a positive finite number."""


class ParticleOutOfBoundsError(SpaceError):
    """Raised when a particle lies outside ``[0, L]`` on either axis."""


class MissingInputError(SpaceError):
    """Raised when the particle list is absent."""


@dataclass(frozen=True)
class SpaceState:
    """Immutable snapshot of a :class:`Space` at one step."""

    side_length: float
    particle_states: Tuple[ParticleState, ...]
    step: int = 0

    def __len__(self) -> int:
        return len(self.particle_states)

    def positions(self) -> np.ndarray:
        return np.array([[p.x, p.y] for p in self.particle_states], dtype=float).reshape(-1, 2)

    def angles(self) -> np.ndarray:
        return np.array([p.angle for p in self.particle_states], dtype=float)

    def speeds(self) -> np.ndarray:
        return np.array([p.speed for p in self.particle_states], dtype=float)


class Space:
    """Square domain of side ``side_length`` and the particles inside it.

    Raises
    ------
    InvalidDomainError
        If ``side_length`` is not positive.
    MissingInputError
        If ``particles`` is ``None``.
    ParticleOutOfBoundsError
        If any particle has ``x`` or ``y`` outside ``[0, side_length]``.
    """

    def __init__(self, side_length: float, particles: Iterable[Particle] | None):
        side_length = _validate_side_length(side_length)
        if particles is None:
            raise MissingInputError("The particles list must not be None.")
        particles = tuple(particles)
        _validate_particles(particles, side_length)
        self._side_length = side_length
        self._particles = particles

    @property
    def side_length(self) -> float:
        return self._side_length

    @property
    def particles(self) -> List[Particle]:
        """A fresh list of the particles; editing it never affects the space."""

        return list(self._particles)

    def __len__(self) -> int:
        return len(self._particles)

    def __repr__(self) -> str:
        return f"Space(side_length={self._side_length}, n_particles={len(self._particles)})"

    def positions(self) -> np.ndarray:
        """Particle positions as an ``(N, 2)`` array."""

        return np.array([[p.x, p.y] for p in self._particles], dtype=float).reshape(-1, 2)

    def angles(self) -> np.ndarray:
        return np.array([p.angle for p in self._particles], dtype=float)

    def speeds(self) -> np.ndarray:
        return np.array([p.speed for p in self._particles], dtype=float)

    def save_state(self, step: int = 0) -> SpaceState:
        return SpaceState(
            side_length=self._side_length,
            particle_states=tuple(p.save_state() for p in self._particles),
            step=step,
        )

    @classmethod
    def from_arrays(
        cls,
        side_length: float,
        positions: np.ndarray,
        angles: np.ndarray,
        speed: float | Sequence[float] = 1.0,
    ) -> "Space":
        """Build a space from ``(N, 2)`` positions and ``(N,)`` angles."""

        positions = np.asarray(positions, dtype=float).reshape(-1, 2)
        angles = np.asarray(angles, dtype=float).reshape(-1)
        if angles.shape[0] != positions.shape[0]:
            raise ValueError(
                f"Got {positions.shape[0]} positions but {angles.shape[0]} angles."
            )
        speeds = np.broadcast_to(np.asarray(speed, dtype=float), angles.shape)
        particles = [
            Particle(x=x, y=y, angle=theta, speed=v, id=i)
            for i, ((x, y), theta, v) in enumerate(zip(positions, angles, speeds))
        ]
        return cls(side_length, particles)

    @classmethod
    def random(
        cls,
        side_length: float,
        n_particles: int,
        speed: float,
        rng: np.random.Generator,
    ) -> "Space":
        """Uniform random positions in ``[0, L)^2`` and headings in ``[0, 2*pi)``."""

        side_length = _validate_side_length(side_length)
        positions = rng.uniform(0.0, side_length, size=(n_particles, 2))
        angles = rng.uniform(0.0, TWO_PI, size=n_particles)
        return cls.from_arrays(side_length, positions, angles, speed)


def _validate_side_length(side_length: float) -> float:
    try:
        value = float(side_length)
    except (TypeError, ValueError) as exc:
        raise InvalidDomainError(f"The side length must be a number, got {side_length!r}.") from exc
    if not np.isfinite(value) or value <= 0.0:
        raise InvalidDomainError(f"The side length must be positive, got {side_length!r}.")
    return value


def _validate_particles(particles: Tuple[Particle, ...], side_length: float) -> None:
    outside = [
        i
        for i, p in enumerate(particles)
        if not (0.0 <= p.x <= side_length and 0.0 <= p.y <= side_length)
    ]
    if outside:
        shown = ", ".join(str(i) for i in outside[:10])
        more = "" if len(outside) <= 10 else f" (+{len(outside) - 10} more)"
        raise ParticleOutOfBoundsError(
            f"{len(outside)} particle(s) are not part of the space [0, {side_length}]^2: "
            f"indices {shown}{more}."
        )


__all__ = [
    "Space",
    "SpaceState",
    "SpaceError",
    "InvalidDomainError",
    "ParticleOutOfBoundsError",
    "MissingInputError",
]
