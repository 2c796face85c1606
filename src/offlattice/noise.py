"""Angular noise for the alignment rule.

All draws for one step are taken in a single call, one value per
particle in particle order, from the run's generator. With a seeded
generator this fixes the draw order and makes runs reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .particle import TWO_PI


def angle_noise(
    rng: np.random.Generator,
    kind: str,
    eta: float,
    size,
    *,
    match_variance: bool = True,
) -> np.ndarray:
    """Draw one angular perturbation per entry of ``size``.

    Parameters
    ----------
    rng : np.random.Generator
        The run's single random source.
    kind : {"uniform", "gaussian"}
        ``"uniform"`` is the original Vicsek noise, uniform on
        ``[-eta/2, eta/2]``. ``"gaussian"`` is centred normal noise.
    eta : float
        Noise amplitude in radians, ``eta >= 0``.
    size : int or tuple
        Output shape, ``(N,)`` for one draw per particle.
    match_variance : bool, optional
        Gaussian only. With the default ``True`` the standard deviation is
        ``eta / sqrt(12)``, the standard deviation of the uniform noise of
        the same ``eta``; otherwise it is ``eta`` itself.

    Notes
    -----
    ``eta = 0`` still consumes draws from ``rng`` so that the random
    stream does not depend on the noise amplitude.

    Examples
    --------
    >>> rng = np.random.default_rng(42)
    >>> phi = angle_noise(rng, "uniform", eta=0.5, size=100)
    >>> bool(np.all(np.abs(phi) <= 0.25))
    True
    """
    if eta < 0:
        raise ValueError(f"Noise amplitude must be non-negative, got {eta}.")
    half_width = 0.5 * eta
    if kind == "uniform":
        return rng.uniform(-half_width, half_width, size=size)
    if kind == "gaussian":
        return rng.normal(0.0, _gaussian_sigma(eta, match_variance), size=size)
    raise ValueError(f"Unknown noise kind: '{kind}'. Expected 'uniform' or 'gaussian'.")


def noise_variance(kind: str, eta: float, match_variance: bool = True) -> float:
    """Theoretical variance of :func:`angle_noise`; ``eta**2 / 12`` for uniform noise."""
    if kind == "uniform":
        return eta**2 / 12.0
    if kind == "gaussian":
        return _gaussian_sigma(eta, match_variance) ** 2
    raise ValueError(f"Unknown noise kind: '{kind}'")


def _gaussian_sigma(eta: float, match_variance: bool) -> float:
    return eta / np.sqrt(12.0) if match_variance else eta


@dataclass(frozen=True)
class NoiseModel:
    """The angular noise of one run.

    ``draw`` returns one perturbation per particle, indexed like
    :attr:`offlattice.space.Space.particles`, so the i-th value of every
    step belongs to the i-th particle.
    """

    eta: float
    kind: str = "uniform"
    match_variance: bool = True

    def __post_init__(self) -> None:
        if self.eta < 0:
            raise ValueError(f"Noise amplitude must be non-negative, got {self.eta}.")
        if self.kind not in ("uniform", "gaussian"):
            raise ValueError(f"Unknown noise kind: '{self.kind}'. Expected 'uniform' or 'gaussian'.")

    @property
    def variance(self) -> float:
        return noise_variance(self.kind, self.eta, self.match_variance)

    @property
    def bound(self) -> float:
        """Largest possible ``|perturbation|``; unbounded for Gaussian noise."""

        return 0.5 * self.eta if self.kind == "uniform" else float("inf")

    def draw(self, rng: np.random.Generator, n_particles: int) -> np.ndarray:
        return angle_noise(rng, self.kind, self.eta, size=n_particles, match_variance=self.match_variance)

    def perturb(self, angles: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        """Add one draw per heading and wrap the result to ``[0, 2*pi)``."""

        angles = np.asarray(angles, dtype=float)
        return np.mod(angles + self.draw(rng, angles.shape[0]), TWO_PI)


__all__ = ["NoiseModel", "angle_noise", "noise_variance"]
