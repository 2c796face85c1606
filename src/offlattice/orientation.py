"""Vicsek heading and position update.

Follows Vicsek et al., "Novel Type of Phase Transition in a System of
Self-Driven Particles", Phys. Rev. Lett. 75, 1226 (1995):

    theta_i(t+1) = arg( sum_{j in {i} U N_i(t)} exp(i theta_j(t)) ) + xi_i
    x_i(t+1)     = x_i(t) + v dt (cos theta_i(t+1), sin theta_i(t+1))   (mod L)

with ``xi_i`` uniform in ``[-eta/2, eta/2]``. The mean heading is the
angle of the summed unit vectors, not the arithmetic mean of angles, so
headings on both sides of ``0 / 2*pi`` average correctly.

The update is synchronous: every new heading and position is computed
from the arrays of the previous :class:`Space` before the next one is
built.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from .config import NOISE_KINDS, ConfigError
from .noise import NoiseModel
from .particle import TWO_PI, Particle
from .space import Space

ArrayLike = np.ndarray

# Below this norm the summed headings are treated as cancelled out.
_DEGENERATE_NORM = 1e-12


def circular_mean(angles: ArrayLike) -> float:
    """Angle of the vector sum of unit headings, in ``[0, 2*pi)``."""

    angles = np.asarray(angles, dtype=float)
    return float(np.mod(np.arctan2(np.sin(angles).sum(), np.cos(angles).sum()), TWO_PI))


class OrientationUpdater:
    """Compute the next :class:`Space` from the current one and its neighbours.

    Parameters
    ----------
    eta : float
        Noise amplitude; perturbations lie in ``[-eta/2, eta/2]``.
    dt : float
        Time step.
    noise_kind : {"uniform", "gaussian"}
        Noise distribution, see :class:`offlattice.noise.NoiseModel`.
    include_self : bool
        Whether a particle's own heading enters its average.
    match_variance : bool
        Gaussian noise only: use ``sigma = eta / sqrt(12)``.
    """

    def __init__(
        self,
        eta: float,
        *,
        dt: float = 1.0,
        noise_kind: str = "uniform",
        include_self: bool = True,
        match_variance: bool = True,
    ):
        if eta < 0:
            raise ConfigError("Noise amplitude eta must be non-negative.")
        if dt <= 0:
            raise ConfigError("Time step dt must be positive.")
        if noise_kind not in NOISE_KINDS:
            raise ConfigError(f"Noise kind must be one of {NOISE_KINDS}, got '{noise_kind}'.")
        self.eta = float(eta)
        self.dt = float(dt)
        self.noise_kind = noise_kind
        self.include_self = include_self
        self.match_variance = match_variance
        self.noise = NoiseModel(self.eta, noise_kind, match_variance)

    def mean_angles(self, theta: ArrayLike, neighbors: Sequence[ArrayLike]) -> ArrayLike:
        """Circular mean heading of each particle's neighbourhood."""

        n = theta.shape[0]
        if len(neighbors) != n:
            raise ValueError(f"Expected {n} neighbour lists, got {len(neighbors)}.")
        cos_t = np.cos(theta)
        sin_t = np.sin(theta)
        sum_cos = cos_t.copy() if self.include_self else np.zeros(n)
        sum_sin = sin_t.copy() if self.include_self else np.zeros(n)
        for i, idx in enumerate(neighbors):
            if len(idx):
                idx = np.asarray(idx, dtype=int)
                sum_cos[i] += cos_t[idx].sum()
                sum_sin[i] += sin_t[idx].sum()

        mean = np.arctan2(sum_sin, sum_cos)
        # Opposing headings cancel (or no neighbours without self): keep heading.
        degenerate = np.hypot(sum_cos, sum_sin) < _DEGENERATE_NORM
        mean[degenerate] = theta[degenerate]
        return mean

    def new_angles(
        self,
        space: Space,
        neighbors: Sequence[ArrayLike],
        rng: np.random.Generator,
    ) -> ArrayLike:
        """Headings for the next step, wrapped to ``[0, 2*pi)``."""

        theta = space.angles()
        mean = self.mean_angles(theta, neighbors)
        return self.noise.perturb(mean, rng)

    def update(
        self,
        space: Space,
        neighbors: Sequence[ArrayLike],
        rng: np.random.Generator,
    ) -> Space:
        """Return the next :class:`Space`; ``space`` itself is left untouched."""

        L = space.side_length
        particles = space.particles
        x = space.positions()
        speeds = space.speeds()

        theta_new = self.new_angles(space, neighbors, rng)
        step = (speeds * self.dt)[:, None] * np.column_stack((np.cos(theta_new), np.sin(theta_new)))
        x_new = np.mod(x + step, L)

        moved: List[Particle] = [
            p.moved_to(xi, yi, ti)
            for p, (xi, yi), ti in zip(particles, x_new, theta_new)
        ]
        return Space(L, moved)


__all__ = ["OrientationUpdater", "circular_mean"]
