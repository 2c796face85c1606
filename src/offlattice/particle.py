"""Self-propelled point particles.

A :class:`Particle` is a frozen value: position, heading angle and a
constant speed. The update rule never mutates a particle; it builds a
new one with :meth:`Particle.moved_to`, so snapshots taken earlier stay
valid while the simulation keeps running.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np

TWO_PI = 2.0 * np.pi


@dataclass(frozen=True)
class ParticleState:
    """Immutable snapshot of a single particle at one step."""

    id: int
    x: float
    y: float
    angle: float
    speed: float


@dataclass(frozen=True)
class Particle:
    """Point particle moving at constant ``speed`` along ``angle``.

    Parameters
    ----------
    x, y:
        Position in the domain.
    angle:
        Heading in radians. Normalised to ``[0, 2*pi)``.
    speed:
        Scalar speed, constant across the simulation.
    id:
        Stable identifier used to follow a particle across snapshots.
    """

    x: float
    y: float
    angle: float
    speed: float = 1.0
    id: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))
        object.__setattr__(self, "speed", float(self.speed))
        object.__setattr__(self, "angle", normalize_angle(self.angle))

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)

    @property
    def heading(self) -> np.ndarray:
        """Unit vector along the current angle."""

        return np.array([np.cos(self.angle), np.sin(self.angle)], dtype=float)

    @property
    def velocity(self) -> np.ndarray:
        return self.speed * self.heading

    def moved_to(self, x: float, y: float, angle: float) -> "Particle":
        """Return a copy of this particle at a new position and heading."""

        return replace(self, x=x, y=y, angle=angle)

    def save_state(self) -> ParticleState:
        return ParticleState(id=self.id, x=self.x, y=self.y, angle=self.angle, speed=self.speed)


def normalize_angle(angle: float) -> float:
    """Map ``angle`` into ``[0, 2*pi)``."""

    wrapped = float(np.mod(angle, TWO_PI))
    # np.mod can round a tiny negative input up to exactly 2*pi.
    if wrapped >= TWO_PI:
        wrapped = 0.0
    return wrapped


__all__ = ["Particle", "ParticleState", "normalize_angle", "TWO_PI"]
