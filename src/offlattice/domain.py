"""Periodic geometry helpers for the square simulation domain.

These functions implement the minimum-image convention and the
coordinate wrap used by the position update. ``pair_displacements`` and
``brute_force_neighbors`` build full ``N x N`` arrays; they are meant
for small systems, diagnostics and as the reference the cell index
method is checked against.
"""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

ArrayLike = np.ndarray


def wrap_positions(x: ArrayLike, L: float) -> ArrayLike:
    """Return positions wrapped into the periodic domain ``[0, L)``."""

    return np.mod(np.asarray(x, dtype=float), L)


def minimum_image(delta: ArrayLike, L: float) -> ArrayLike:
    """Shorter of the direct and wrap-around difference, per component."""

    delta = np.asarray(delta, dtype=float)
    return delta - L * np.round(delta / L)


def pair_displacements(x: ArrayLike, L: float) -> Tuple[ArrayLike, ArrayLike, ArrayLike]:
    """Compute minimum-image pairwise displacements and distances.

    Returns
    -------
    dx : ndarray (N, N)
        x_j - x_i for each pair (i, j) after the minimum-image wrap.
    dy : ndarray (N, N)
        y_j - y_i for each pair (i, j).
    rij : ndarray (N, N)
        Euclidean distances for each pair.
    """

    x = np.asarray(x, dtype=float).reshape(-1, 2)
    diff = x[None, :, :] - x[:, None, :]
    dx = minimum_image(diff[:, :, 0], L)
    dy = minimum_image(diff[:, :, 1], L)
    rij = np.hypot(dx, dy)
    return dx, dy, rij


def within_radius(rij: ArrayLike, radius: float, inclusive: bool = True) -> ArrayLike:
    """Boolean mask of distances inside the interaction radius."""

    return rij <= radius if inclusive else rij < radius


def brute_force_neighbors(
    x: ArrayLike,
    L: float,
    radius: float,
    include_self: bool = False,
    inclusive: bool = True,
) -> List[np.ndarray]:
    """O(N^2) neighbour lists with the minimum-image distance."""

    _, _, rij = pair_displacements(x, L)
    mask = within_radius(rij, radius, inclusive)
    if not include_self:
        np.fill_diagonal(mask, False)
    return [np.flatnonzero(row) for row in mask]


__all__ = [
    "wrap_positions",
    "minimum_image",
    "pair_displacements",
    "within_radius",
    "brute_force_neighbors",
]
