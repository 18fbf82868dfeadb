"""
The organoid: a named stack of depth-keyed layers over shared arenas.

The organoid owns the cell, neuron and dendrite stores and every layer.
Layers only borrow identifiers into the stores, and dendrites refer to their
parent and target by identifier, so there are no object references between
entities.
"""

import numpy as np
from typing import Dict, List, Optional, Tuple

from .base import (
    ThingType, TissueParams, GrowthParams, Cell, Neuron, Dendrite,
    check_xy,
)
from .errors import CapacityExceeded, NoSuchDepth
from .layers import Layer, place_grid
from .stores import CellStore, NeuronStore, DendriteStore


class Organoid:
    """3D tissue made of depth-keyed layers of cells and neurons."""

    def __init__(self, name: str, cell_capacity: int, neuron_capacity: int,
                 dendrite_capacity: int, params: TissueParams = None,
                 growth: GrowthParams = None):
        self.name = name
        self.params = params or TissueParams()
        self.params.validate()
        self.growth = growth or GrowthParams()
        self.growth.validate()

        self.layers: Dict[int, Layer] = {}
        self.cells = CellStore(cell_capacity)
        self.neurons = NeuronStore(neuron_capacity, self.params.max_dendrites)
        self.dendrites = DendriteStore(dendrite_capacity)

    def __repr__(self):
        return (f"Organoid({self.name!r}, layers={self.depths()}, cells={len(self.cells)}, "
                f"neurons={len(self.neurons)}, dendrites={len(self.dendrites)})")

    def store_for(self, kind: ThingType):
        if kind == ThingType.CELL:
            return self.cells
        if kind == ThingType.NEURON:
            return self.neurons
        if kind == ThingType.DENDRITE:
            return self.dendrites
        raise ValueError(f"unknown kind {kind!r}")

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    def add_layer(self, layer: Layer, depth: int) -> Layer:
        """
        Register a layer at a depth. An existing layer at that depth is
        replaced (last write wins).
        """
        depth = check_xy(depth, "depth")
        layer.depth = depth
        if layer.members:
            store = self.store_for(layer.cells_are)
            store.data['z'][list(layer.members)] = depth
        self.layers[depth] = layer
        return layer

    def layer_at(self, depth: int) -> Layer:
        try:
            return self.layers[depth]
        except KeyError:
            raise NoSuchDepth(depth) from None

    def depths(self) -> List[int]:
        return sorted(self.layers)

    def layer_of(self, kind: ThingType, identifier: int) -> Optional[Layer]:
        """The registered layer holding a cell or neuron, if any."""
        store = self.store_for(kind)
        i = store.check(identifier)
        layer = self.layers.get(int(store.data['z'][i]))
        if layer is not None and layer.cells_are == kind and i in layer:
            return layer
        return None

    def place_grid(self, layer: Layer, rows: int, cols: int, spacing: int,
                   mirror_rows: bool = False) -> List[int]:
        return place_grid(self, layer, rows, cols, spacing, mirror_rows)

    def stimulate(self, depth: int, values):
        """
        Set the activation of every member of a layer, in membership order.

        `values` may be a scalar or an array with one entry per member (a
        rows x cols array of a placed grid works too). Values are clamped.
        """
        layer = self.layer_at(depth)
        values = np.asarray(values, dtype=np.float64)
        values = np.broadcast_to(values.ravel() if values.ndim else values, (len(layer),))
        store = self.store_for(layer.cells_are)
        for identifier, value in zip(layer.members, values):
            store.set_activation(identifier, value)

    # ------------------------------------------------------------------
    # Dendrites
    # ------------------------------------------------------------------

    def sprout(self, neuron_id: int, count: int = 1) -> List[int]:
        """Start `count` growing dendrites at a neuron, all or nothing."""
        if count < 0:
            raise ValueError(f"cannot sprout {count} dendrites")
        neuron = self.neurons.get(neuron_id)
        if count > self.neurons.dendrite_room(neuron_id):
            raise CapacityExceeded(
                f"dendrite list of neuron {neuron.id}", self.params.max_dendrites, count)
        if count > self.dendrites.free:
            raise CapacityExceeded("dendrite store", self.dendrites.capacity, count)

        new_ids = []
        for _ in range(count):
            did = self.dendrites.create(neuron.id, neuron.x, neuron.y)
            self.neurons.add_dendrite(neuron.id, did)
            new_ids.append(did)
        return new_ids

    def sprout_layer(self, depth: int, per_neuron: int = 1) -> List[int]:
        """Sprout `per_neuron` dendrites on every neuron of a layer, all or nothing."""
        layer = self.layer_at(depth)
        if layer.cells_are != ThingType.NEURON:
            raise ValueError(f"layer {layer.name!r} holds cells, which have no dendrites")
        needed = per_neuron * len(layer)
        if needed > self.dendrites.free:
            raise CapacityExceeded("dendrite store", self.dendrites.capacity, needed)
        for nid in layer:
            if per_neuron > self.neurons.dendrite_room(nid):
                raise CapacityExceeded(
                    f"dendrite list of neuron {nid}", self.params.max_dendrites, per_neuron)

        new_ids = []
        for nid in layer:
            new_ids.extend(self.sprout(nid, per_neuron))
        return new_ids

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def cell_at(self, identifier: int) -> Cell:
        return self.cells.get(identifier)

    def neuron_at(self, identifier: int) -> Neuron:
        return self.neurons.get(identifier)

    def dendrite_at(self, identifier: int) -> Dendrite:
        return self.dendrites.get(identifier)

    def dendrites_of(self, neuron_id: int) -> List[Dendrite]:
        return [self.dendrites.get(d) for d in self.neurons.dendrites_of(neuron_id)]

    def synapses(self) -> List[Tuple[int, ThingType, int, int]]:
        """(parent neuron, target kind, target id, weight) of every attached dendrite."""
        out = []
        for did in self.dendrites.attached_ids():
            d = self.dendrites.get(did)
            out.append((d.parent, d.to_kind, d.to, d.weight))
        return out

    def attached_targets(self, neuron_id: int) -> frozenset:
        """(kind, id) pairs a neuron is already connected to."""
        return frozenset(
            (d.to_kind, d.to) for d in self.dendrites_of(neuron_id) if d.is_attached
        )


def new_organoid(name: str, cell_capacity: int, neuron_capacity: int,
                 dendrite_capacity: int, params: TissueParams = None,
                 growth: GrowthParams = None) -> Organoid:
    """Create an organoid whose arena capacities are fixed for its lifetime."""
    return Organoid(name, cell_capacity, neuron_capacity, dendrite_capacity, params, growth)
