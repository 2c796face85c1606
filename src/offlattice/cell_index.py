"""Cell index method for neighbour searches in the periodic square domain.

The domain is split into an ``M x M`` grid of square cells of side
``L / M``. Each particle is placed in exactly one cell; the neighbours of
a particle can then only live in its own cell or one of the 8 adjacent
cells, provided the cell side is at least the interaction radius. Cell
indices wrap modulo ``M``, so a particle near an edge sees the particles
near the opposite edge, and distances use the minimum-image convention.

For a bounded number of particles per cell the search is O(N) instead of
the O(N^2) all-pairs scan in :func:`offlattice.domain.brute_force_neighbors`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Set, Tuple

import numpy as np

from .config import ConfigError
from .domain import minimum_image, within_radius
from .space import Space

ArrayLike = np.ndarray

Cell = Tuple[int, int]


@dataclass
class CellList:
    """Particle indices grouped by grid cell."""

    cells: Dict[Cell, np.ndarray]
    cell_size: float
    m: int


def cell_coordinates(x: ArrayLike, L: float, m: int) -> ArrayLike:
    """Integer cell coordinates ``(N, 2)`` for positions ``x``.

    A coordinate equal to ``L`` is the periodic image of ``0`` and lands
    in cell ``0``.
    """

    cell_size = L / m
    idx = np.floor(np.asarray(x, dtype=float).reshape(-1, 2) / cell_size).astype(int)
    return np.mod(idx, m)


def build_cells(x: ArrayLike, L: float, m: int) -> CellList:
    """Construct the cell list for positions ``x``."""

    coords = cell_coordinates(x, L, m)
    buckets: Dict[Cell, List[int]] = {}
    for idx, (ix, iy) in enumerate(coords):
        buckets.setdefault((int(ix), int(iy)), []).append(idx)
    cells = {cell: np.array(members, dtype=int) for cell, members in buckets.items()}
    return CellList(cells=cells, cell_size=L / m, m=m)


def adjacent_cells(ix: int, iy: int, m: int) -> List[Cell]:
    """Own cell plus the 8 surrounding cells, wrapped and de-duplicated.

    For ``m < 3`` several offsets wrap onto the same cell; each cell is
    returned once so no candidate is visited twice.
    """

    seen: List[Cell] = []
    for dx_cell in (-1, 0, 1):
        for dy_cell in (-1, 0, 1):
            cell = ((ix + dx_cell) % m, (iy + dy_cell) % m)
            if cell not in seen:
                seen.append(cell)
    return seen


class CellIndexMethod:
    """Neighbour search on an ``m x m`` periodic cell grid.

    Parameters
    ----------
    side_length : float
        Side ``L`` of the square domain.
    m : int
        Number of cells per side.
    radius : float
        Interaction radius ``r``. Requires ``L / m >= r``.
    inclusive : bool
        Whether a particle at exactly distance ``r`` counts as a neighbour.

    Raises
    ------
    ConfigError
        If the grid is invalid or the cells are smaller than the radius.

    Examples
    --------
    >>> cim = CellIndexMethod(side_length=10.0, m=5, radius=1.0)
    >>> space = Space.from_arrays(10.0, [[0.5, 0.5], [9.7, 0.5]], [0.0, 0.0])
    >>> [n.tolist() for n in cim.neighbors(space)]
    [[1], [0]]
    """

    def __init__(self, side_length: float, m: int, radius: float, *, inclusive: bool = True):
        if side_length <= 0:
            raise ConfigError("Side length must be positive.")
        if int(m) != m or m < 1:
            raise ConfigError(f"Grid resolution M must be a positive integer, got {m!r}.")
        if radius < 0:
            raise ConfigError("Interaction radius must be non-negative.")
        if side_length / m < radius:
            raise ConfigError(
                f"Cell size L/M = {side_length / m:.4g} is smaller than the interaction "
                f"radius {radius:.4g}; neighbours two cells away would be missed."
            )
        self.side_length = float(side_length)
        self.m = int(m)
        self.radius = float(radius)
        self.inclusive = inclusive
        self._cell_list: CellList | None = None

    @property
    def cell_size(self) -> float:
        return self.side_length / self.m

    @property
    def cell_list(self) -> CellList | None:
        """Cell list built by the last call to :meth:`neighbors`."""

        return self._cell_list

    def neighbors(self, space: Space) -> List[np.ndarray]:
        """Return, for every particle, the sorted indices of its neighbours.

        The particle itself is never part of its own list.
        """

        if space.side_length != self.side_length:
            raise ConfigError(
                f"Space side length {space.side_length} does not match the grid "
                f"side length {self.side_length}."
            )
        x = space.positions()
        n = x.shape[0]
        result: List[np.ndarray] = [np.empty(0, dtype=int) for _ in range(n)]
        if n == 0:
            self._cell_list = build_cells(x, self.side_length, self.m)
            return result

        cell_list = build_cells(x, self.side_length, self.m)
        self._cell_list = cell_list
        L = self.side_length

        for (ix, iy), members in cell_list.cells.items():
            candidate_groups = [
                cell_list.cells[cell]
                for cell in adjacent_cells(ix, iy, self.m)
                if cell in cell_list.cells
            ]
            candidates = np.sort(np.concatenate(candidate_groups))

            # members x candidates distance block
            dx = minimum_image(x[candidates, 0][None, :] - x[members, 0][:, None], L)
            dy = minimum_image(x[candidates, 1][None, :] - x[members, 1][:, None], L)
            mask = within_radius(np.hypot(dx, dy), self.radius, self.inclusive)
            mask &= candidates[None, :] != members[:, None]

            for row, i in enumerate(members):
                result[i] = candidates[mask[row]]
        return result

    def neighbor_sets(self, space: Space) -> Dict[int, Set[int]]:
        """Same result as :meth:`neighbors`, as a mapping of index to set."""

        return {i: set(idx.tolist()) for i, idx in enumerate(self.neighbors(space))}


__all__ = [
    "CellList",
    "CellIndexMethod",
    "adjacent_cells",
    "build_cells",
    "cell_coordinates",
]
