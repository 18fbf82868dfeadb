"""
Layers and grid placement.

A Layer is a flat sheet at one depth. It owns only membership: the ids it
lists point into the organoid's cell or neuron store. Dendrites of a neuron
layer grow toward the layer registered at `toward`, or within their own
layer when `toward` is None.
"""

import numpy as np
from typing import List, Optional, Tuple

from .base import ThingType, XY_DTYPE, check_xy
from .errors import CapacityExceeded, LayerPopulated


class Layer:
    """A flat, single-depth collection of cell or neuron identifiers."""

    def __init__(self, name: str, capacity: int, cells_are: ThingType = ThingType.CELL,
                 depth: int = 0, toward: Optional[int] = None):
        if cells_are not in (ThingType.CELL, ThingType.NEURON):
            raise ValueError(f"a layer holds cells or neurons, not {cells_are!r}")
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.name = name
        self.capacity = capacity
        self.cells_are = ThingType(cells_are)
        self.depth = check_xy(depth, "depth")
        self.toward = None if toward is None else check_xy(toward, "toward")
        self._members: Tuple[int, ...] = ()
        self._member_set = frozenset()

    def __repr__(self):
        return (f"Layer({self.name!r}, depth={self.depth}, {self.cells_are.name.lower()}s="
                f"{len(self)}/{self.capacity}, toward={self.toward})")

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, identifier) -> bool:
        return int(identifier) in self._member_set

    def __iter__(self):
        return iter(self._members)

    @property
    def members(self) -> Tuple[int, ...]:
        return self._members

    @property
    def is_populated(self) -> bool:
        return bool(self._members)

    def commit(self, identifiers):
        """Record the layer's membership; allowed exactly once."""
        if self._members:
            raise LayerPopulated(f"layer {self.name!r} already holds {len(self)} members")
        members = tuple(int(i) for i in identifiers)
        if len(set(members)) != len(members):
            raise ValueError(f"duplicate members for layer {self.name!r}")
        if len(members) > self.capacity:
            raise CapacityExceeded(f"layer {self.name!r}", self.capacity, len(members))
        self._members = members
        self._member_set = frozenset(members)


# ============================================================================
# GRID PLACEMENT
# ============================================================================

def grid_positions(rows: int, cols: int, spacing: int,
                   mirror_rows: bool = False) -> np.ndarray:
    """
    (rows*cols, 2) integer positions of a grid centred on (0, 0), row-major.

    x comes from the row index and y from the column index. With
    mirror_rows the row index is used for y as well, which reproduces the
    layout of older tissues (every row collapses onto the diagonal).
    """
    if rows < 0 or cols < 0:
        raise ValueError(f"grid size must be non-negative, got {rows}x{cols}")
    roff = ((rows - 1) * spacing) // 2
    coff = ((cols - 1) * spacing) // 2
    r, c = np.meshgrid(np.arange(rows), np.arange(cols), indexing='ij')
    r, c = r.ravel(), c.ravel()
    x = r * spacing - roff
    y = (r if mirror_rows else c) * spacing - coff
    xy = np.column_stack([x, y]).astype(np.int64)
    if xy.size:
        check_xy(xy.min(), "grid coordinate")
        check_xy(xy.max(), "grid coordinate")
    return xy


def place_grid(organoid, layer: Layer, rows: int, cols: int, spacing: int,
               mirror_rows: bool = False) -> List[int]:
    """
    Populate a layer with a rows x cols grid of newly allocated entities.

    All-or-nothing: when the layer or the store cannot hold the whole grid,
    CapacityExceeded is raised before anything is allocated and the layer
    stays empty.
    """
    if layer.is_populated:
        raise LayerPopulated(f"layer {layer.name!r} already holds {len(layer)} members")

    xy = grid_positions(rows, cols, spacing, mirror_rows)
    n = len(xy)
    if n > layer.capacity:
        raise CapacityExceeded(f"layer {layer.name!r}", layer.capacity, n)

    store = organoid.store_for(layer.cells_are)
    ids = store.allocate_block(n)
    block = slice(ids.start, ids.stop)
    store.data['x'][block] = xy[:, 0].astype(XY_DTYPE)
    store.data['y'][block] = xy[:, 1].astype(XY_DTYPE)
    store.data['z'][block] = layer.depth

    layer.commit(ids)
    return list(ids)
