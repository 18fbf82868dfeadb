"""
Chemical potential field used to steer dendrite growth.

Every cell and neuron is an attractor whose potential at a query point q is

    P_i(q) = activation_i * (1 - |q - p_i| / radius)    for |q - p_i| < radius

and 0 further away. Only positive potentials attract, so silent or inhibited
cells are ignored. Distances are Euclidean in the (x, y) plane.

A field is a snapshot: positions and activations are copied when it is
built, so every query against one field sees the same tissue state no matter
what is mutated afterwards. The "nearby" relation is answered by a k-d tree
over the attractor positions.
"""

import numpy as np
from dataclasses import dataclass
from scipy.spatial import cKDTree
from typing import Optional, Tuple

from .base import NO_TARGET, ThingType


@dataclass(frozen=True)
class Gradient:
    """Result of a gradient query: the strongest attractor and a step toward it."""
    weight: float = 0.0
    dx: float = 0.0
    dy: float = 0.0
    kind: ThingType = ThingType.CELL
    target: int = NO_TARGET
    distance: float = float('inf')

    @property
    def step(self) -> Tuple[float, float]:
        return (self.dx, self.dy)

    @property
    def found(self) -> bool:
        return self.target != NO_TARGET


NO_GRADIENT = Gradient()


class PotentialField:
    """
    Read-only snapshot of attractor positions and activations.

    Rows are addressed internally; `row_of` and `rows_for` translate
    (kind, id) pairs into rows so that callers can restrict a query to a
    subset of attractors, e.g. the members of one layer.
    """

    def __init__(self, positions, activations, kinds, ids, radius: float):
        if radius <= 0:
            raise ValueError(f"radius must be > 0, got {radius}")
        self.positions = np.array(positions, dtype=np.float64).reshape(-1, 2)
        self.activations = np.array(activations, dtype=np.float64).reshape(-1)
        self.kinds = np.array(kinds, dtype=np.int8).reshape(-1)
        self.ids = np.array(ids, dtype=np.int64).reshape(-1)
        n = len(self.positions)
        if not (len(self.activations) == len(self.kinds) == len(self.ids) == n):
            raise ValueError("positions, activations, kinds and ids must have equal length")
        self.radius = float(radius)
        self._tree = cKDTree(self.positions) if n else None
        self._rows = {(int(k), int(i)): row for row, (k, i) in enumerate(zip(self.kinds, self.ids))}

    @classmethod
    def snapshot(cls, organoid, radius: float = None) -> 'PotentialField':
        """Copy the current cells and neurons of an organoid into a field."""
        if radius is None:
            radius = organoid.growth.field_radius
        cells, neurons = organoid.cells, organoid.neurons
        n_cells, n_neurons = len(cells), len(neurons)
        return cls(
            positions=np.vstack([cells.positions(), neurons.positions()]),
            activations=np.concatenate([cells.activations(), neurons.activations()]),
            kinds=np.concatenate([
                np.full(n_cells, ThingType.CELL, dtype=np.int8),
                np.full(n_neurons, ThingType.NEURON, dtype=np.int8),
            ]),
            ids=np.concatenate([np.arange(n_cells), np.arange(n_neurons)]),
            radius=radius,
        )

    def __len__(self) -> int:
        return len(self.positions)

    def row_of(self, kind: ThingType, identifier: int) -> Optional[int]:
        return self._rows.get((int(kind), int(identifier)))

    def rows_for(self, kind: ThingType, identifiers) -> np.ndarray:
        """Rows of the given identifiers; ids absent from the snapshot are skipped."""
        rows = [self._rows.get((int(kind), int(i))) for i in identifiers]
        return np.array([r for r in rows if r is not None], dtype=np.int64)

    def nearby(self, x: float, y: float) -> np.ndarray:
        """Rows of all attractors within the field radius of (x, y), sorted."""
        if self._tree is None:
            return np.empty(0, dtype=np.int64)
        rows = self._tree.query_ball_point([x, y], self.radius)
        return np.array(sorted(rows), dtype=np.int64)

    def potentials(self, x: float, y: float, rows: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Potential and distance of each given row at (x, y)."""
        delta = self.positions[rows] - np.array([x, y])
        dist = np.hypot(delta[:, 0], delta[:, 1])
        falloff = np.clip(1.0 - dist / self.radius, 0.0, None)
        return self.activations[rows] * falloff, dist

    def follow_gradient(self, x: float, y: float, max_step: float,
                        candidates: np.ndarray = None) -> Gradient:
        """
        Strongest attractor near (x, y) and a step of at most max_step toward it.

        Ties on potential go to the nearer attractor, then to cells before
        neurons, then to the lowest identifier. The step never goes past the
        attractor. With no positive potential in range the zero step is
        returned.
        """
        rows = self.nearby(x, y)
        if candidates is not None:
            rows = rows[np.isin(rows, candidates)]
        if len(rows) == 0:
            return NO_GRADIENT

        pot, dist = self.potentials(x, y, rows)
        positive = pot > 0
        if not positive.any():
            return NO_GRADIENT
        rows, pot, dist = rows[positive], pot[positive], dist[positive]

        order = np.lexsort((self.ids[rows], self.kinds[rows], dist, -pot))
        best = order[0]
        row, d = rows[best], float(dist[best])

        dx = dy = 0.0
        if d > 0:
            scale = min(max_step, d) / d
            tx, ty = self.positions[row]
            dx = float((tx - x) * scale)
            dy = float((ty - y) * scale)

        return Gradient(
            weight=float(pot[best]),
            dx=dx,
            dy=dy,
            kind=ThingType(int(self.kinds[row])),
            target=int(self.ids[row]),
            distance=d,
        )
