"""
Arena stores for cells, neurons, and dendrites.

Each store is a single numpy structured array allocated at its full capacity
up front, plus a "next free slot" counter that only ever increases:
  - CellStore: activation + position
  - NeuronStore: the cell fields + axon input + a bounded dendrite id table
  - DendriteStore: state, parent, target, weight, and growth tip

Entities are addressed by dense zero-based identifiers. Nothing is ever
freed or reused, so an identifier names one entity for the whole lifetime of
the store.
"""

import numpy as np
from typing import Tuple

from .base import (
    ACTIVATION_DTYPE, WEIGHT_DTYPE, XY_DTYPE, ID_DTYPE, TIP_DTYPE,
    NO_TARGET, ThingType, DendriteIs, Cell, Neuron, Dendrite,
    clamp_activation, clamp_weight, check_xy,
)
from .errors import CapacityExceeded, InvalidIdentifier


CELL_FIELDS = [
    ('activation', ACTIVATION_DTYPE),
    ('x', XY_DTYPE),
    ('y', XY_DTYPE),
    ('z', XY_DTYPE),
]

NEURON_FIELDS = CELL_FIELDS + [
    ('axon', ACTIVATION_DTYPE),
    ('n_dendrites', np.int16),
]

DENDRITE_FIELDS = [
    ('doing', np.int8),
    ('to_kind', np.int8),
    ('weight', WEIGHT_DTYPE),
    ('parent', ID_DTYPE),
    ('to', ID_DTYPE),
    ('tip_x', TIP_DTYPE),
    ('tip_y', TIP_DTYPE),
]


class Arena:
    """Pre-sized, append-only array of records."""

    what = "entity"
    fields = []

    def __init__(self, capacity: int):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.data = np.zeros(capacity, dtype=self.fields)
        self._next = 0

    def __len__(self) -> int:
        return self._next

    @property
    def capacity(self) -> int:
        return len(self.data)

    @property
    def free(self) -> int:
        return self.capacity - self._next

    def allocate(self) -> int:
        """Claim the next free slot and return its identifier."""
        return self.allocate_block(1).start

    def allocate_block(self, n: int) -> range:
        """
        Claim n consecutive slots, all or nothing.

        Raises CapacityExceeded without touching the counter when fewer
        than n slots remain.
        """
        if n < 0:
            raise ValueError(f"cannot allocate {n} {self.what}s")
        if n > self.free:
            raise CapacityExceeded(f"{self.what} store", self.capacity, n)
        start = self._next
        self._next += n
        return range(start, self._next)

    def check(self, identifier) -> int:
        """Return identifier as an int, or raise InvalidIdentifier."""
        i = int(identifier)
        if not 0 <= i < self._next:
            raise InvalidIdentifier(self.what, i, self._next)
        return i

    def populated(self) -> np.ndarray:
        """View of the allocated records."""
        return self.data[:self._next]


class CellStore(Arena):
    """Arena of plain cells."""

    what = "cell"
    fields = CELL_FIELDS

    def get(self, identifier) -> Cell:
        i = self.check(identifier)
        rec = self.data[i]
        return Cell(i, int(rec['activation']), int(rec['x']), int(rec['y']), int(rec['z']))

    def set_activation(self, identifier, value: float):
        i = self.check(identifier)
        self.data['activation'][i] = clamp_activation(value)

    def set_position(self, identifier, x: int, y: int, z: int = None):
        i = self.check(identifier)
        self.data['x'][i] = check_xy(x, "x")
        self.data['y'][i] = check_xy(y, "y")
        if z is not None:
            self.data['z'][i] = check_xy(z, "z")

    def positions(self) -> np.ndarray:
        """(n, 2) float copy of the populated (x, y) positions."""
        rec = self.populated()
        return np.column_stack([rec['x'], rec['y']]).astype(np.float64)

    def activations(self) -> np.ndarray:
        return self.populated()['activation'].astype(np.float64)


class NeuronStore(CellStore):
    """
    Arena of neurons.

    Dendrite identifiers live in a (capacity, max_dendrites) table padded
    with NO_TARGET, which keeps every neuron record the same small size.
    """

    what = "neuron"
    fields = NEURON_FIELDS

    def __init__(self, capacity: int, max_dendrites: int = 8):
        super().__init__(capacity)
        self.max_dendrites = max_dendrites
        self.dendrite_table = np.full((capacity, max_dendrites), NO_TARGET, dtype=ID_DTYPE)

    def get(self, identifier) -> Neuron:
        i = self.check(identifier)
        rec = self.data[i]
        return Neuron(
            i, int(rec['activation']), int(rec['x']), int(rec['y']), int(rec['z']),
            int(rec['axon']), self.dendrites_of(i),
        )

    def set_axon(self, identifier, value: float):
        i = self.check(identifier)
        self.data['axon'][i] = clamp_activation(value)

    def dendrites_of(self, identifier) -> Tuple[int, ...]:
        i = self.check(identifier)
        n = int(self.data['n_dendrites'][i])
        return tuple(int(d) for d in self.dendrite_table[i, :n])

    def dendrite_room(self, identifier) -> int:
        i = self.check(identifier)
        return self.max_dendrites - int(self.data['n_dendrites'][i])

    def add_dendrite(self, identifier, dendrite_id: int):
        """Append a dendrite id to the neuron's bounded list."""
        i = self.check(identifier)
        n = int(self.data['n_dendrites'][i])
        if n >= self.max_dendrites:
            raise CapacityExceeded(f"dendrite list of neuron {i}", self.max_dendrites)
        self.dendrite_table[i, n] = dendrite_id
        self.data['n_dendrites'][i] = n + 1


class DendriteStore(Arena):
    """Arena of dendrites and their growth tips."""

    what = "dendrite"
    fields = DENDRITE_FIELDS

    def create(self, parent: int, x: float, y: float) -> int:
        """Allocate a growing dendrite whose tip starts at (x, y)."""
        i = self.allocate()
        rec = self.data
        rec['doing'][i] = DendriteIs.GROWING
        rec['parent'][i] = parent
        rec['to_kind'][i] = ThingType.CELL
        rec['to'][i] = NO_TARGET
        rec['weight'][i] = 0
        rec['tip_x'][i] = x
        rec['tip_y'][i] = y
        return i

    def get(self, identifier) -> Dendrite:
        i = self.check(identifier)
        rec = self.data[i]
        return Dendrite(
            id=i,
            parent=int(rec['parent']),
            doing=DendriteIs(int(rec['doing'])),
            to_kind=ThingType(int(rec['to_kind'])),
            to=int(rec['to']),
            weight=int(rec['weight']),
            tip_x=float(rec['tip_x']),
            tip_y=float(rec['tip_y']),
        )

    def is_growing(self, identifier) -> bool:
        i = self.check(identifier)
        return self.data['doing'][i] == DendriteIs.GROWING

    def growing_ids(self) -> np.ndarray:
        return np.flatnonzero(self.populated()['doing'] == DendriteIs.GROWING)

    def attached_ids(self) -> np.ndarray:
        return np.flatnonzero(self.populated()['doing'] == DendriteIs.ATTACHED)

    def move_tip(self, identifier, dx: float, dy: float):
        i = self.check(identifier)
        self.data['tip_x'][i] += dx
        self.data['tip_y'][i] += dy

    def retarget(self, identifier, kind: ThingType, to: int):
        """Record the current best candidate of a growing dendrite."""
        i = self.check(identifier)
        if self.data['doing'][i] != DendriteIs.GROWING:
            return
        self.data['to_kind'][i] = kind
        self.data['to'][i] = to

    def attach(self, identifier, kind: ThingType, to: int, weight: float):
        """One-way transition to ATTACHED; a no-op on attached dendrites."""
        i = self.check(identifier)
        if self.data['doing'][i] == DendriteIs.ATTACHED:
            return
        self.data['to_kind'][i] = kind
        self.data['to'][i] = to
        self.data['weight'][i] = clamp_weight(weight)
        self.data['doing'][i] = DendriteIs.ATTACHED
