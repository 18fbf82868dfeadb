"""
Dendrite growth engine.

Each dendrite is a two-state machine:

    GROWING --(potential > threshold and target within contact radius)--> ATTACHED

On every tick a growing tip queries the potential field at its position. If
the strongest attractor is close enough and strong enough the dendrite
attaches to it, with a weight derived from the potential. Otherwise the tip
moves one bounded step toward that attractor and remembers it as the current
candidate. Attached dendrites never move or detach again.

A round (`tick_all`) advances every growing dendrite once. All of them read
the same field snapshot and the same record of existing synapses, both taken
at the start of the round, so the outcome does not depend on the order in
which dendrites are visited.
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from .base import ThingType, DendriteIs, GrowthParams
from .field import PotentialField


@dataclass
class GrowthReport:
    """Counts from one growth round."""
    num_grown: int = 0     # Growing dendrites whose tip moved
    num_attached: int = 0  # Dendrites that attached this round
    num_stalled: int = 0   # Growing dendrites with nothing to follow
    num_growing: int = 0   # Dendrites still growing after the round

    @property
    def quiescent(self) -> bool:
        return self.num_grown == 0 and self.num_attached == 0


class GrowthRound:
    """
    State shared by all ticks of one round: the field snapshot, the growth
    parameters, and each neuron's synapses as first read in the round.

    A scheduler that ticks many dendrites should build one GrowthRound, call
    `prepare` with the dendrites it will visit, then `advance` each of them.
    """

    def __init__(self, organoid, field: PotentialField = None, params: GrowthParams = None):
        self.organoid = organoid
        self.params = params or organoid.growth
        self.params.validate()
        self.field = field if field is not None else PotentialField.snapshot(
            organoid, self.params.field_radius)
        self._layer_rows: Dict[Optional[int], Optional[np.ndarray]] = {}
        self._attached: Dict[int, FrozenSet[Tuple[int, int]]] = {}

    def prepare(self, dendrite_ids):
        """
        Validate and cache everything the given dendrites will read, before
        any of them is mutated.

        Parents are checked, target layers resolved and existing synapses
        recorded, so InvalidIdentifier or NoSuchDepth surface here and a
        round that gets past this point cannot fail halfway.
        """
        parents = set()
        for did in dendrite_ids:
            d = self.organoid.dendrites.get(did)
            parents.add(self.organoid.neurons.check(d.parent))
        for parent in sorted(parents):
            self._target_rows(parent)
            self.attached_targets(parent)

    def attached_targets(self, neuron_id: int) -> FrozenSet[Tuple[int, int]]:
        """Targets a neuron is connected to; cached on first use for the round."""
        if neuron_id not in self._attached:
            self._attached[neuron_id] = frozenset(
                (int(kind), to) for kind, to in self.organoid.attached_targets(neuron_id))
        return self._attached[neuron_id]

    def _target_rows(self, neuron_id: int) -> Optional[np.ndarray]:
        """Field rows a neuron's dendrites may grow toward; None means all rows."""
        home = self.organoid.layer_of(ThingType.NEURON, neuron_id)
        if home is None:
            key = None
        else:
            key = home.depth if home.toward is None else home.toward
        if key not in self._layer_rows:
            if key is None:
                rows = None
            else:
                target = self.organoid.layer_at(key)
                rows = self.field.rows_for(target.cells_are, target.members)
            self._layer_rows[key] = rows
        return self._layer_rows[key]

    def candidates(self, neuron_id: int) -> np.ndarray:
        """Rows a neuron may attach to: its target layer, minus itself and existing synapses."""
        rows = self._target_rows(neuron_id)
        if rows is None:
            rows = np.arange(len(self.field))
        excluded = {(int(ThingType.NEURON), neuron_id)} | self.attached_targets(neuron_id)
        drop = [self.field.row_of(kind, ident) for kind, ident in excluded]
        drop = [r for r in drop if r is not None]
        if drop:
            rows = rows[~np.isin(rows, drop)]
        return rows

    def advance(self, dendrite_id: int) -> Tuple[DendriteIs, bool]:
        """Tick one dendrite. Returns its new state and whether its tip moved."""
        store = self.organoid.dendrites
        d = store.get(dendrite_id)
        if d.doing == DendriteIs.ATTACHED:
            return DendriteIs.ATTACHED, False

        self.organoid.neurons.check(d.parent)
        p = self.params
        grad = self.field.follow_gradient(
            d.tip_x, d.tip_y, p.max_step, candidates=self.candidates(d.parent))

        if (grad.found and grad.weight > p.attach_threshold
                and grad.distance <= p.contact_radius):
            store.attach(d.id, grad.kind, grad.target, grad.weight * p.weight_scale)
            return DendriteIs.ATTACHED, False

        if grad.found:
            store.retarget(d.id, grad.kind, grad.target)
        moved = grad.dx != 0.0 or grad.dy != 0.0
        if moved:
            store.move_tip(d.id, grad.dx, grad.dy)
        return DendriteIs.GROWING, moved


def tick(organoid, dendrite_id: int, field: PotentialField = None,
         params: GrowthParams = None) -> DendriteIs:
    """
    Advance a single dendrite by one step.

    Without an explicit field the current tissue is snapshotted first.
    Only the parent neuron's synapses are read, so ticking dendrites one
    at a time costs no more than a round does.
    Raises InvalidIdentifier for an unknown dendrite or parent neuron.
    """
    state, _ = GrowthRound(organoid, field, params).advance(dendrite_id)
    return state


def tick_all(organoid, params: GrowthParams = None) -> GrowthReport:
    """One round over all growing dendrites against a single snapshot.

    Every growing dendrite is validated before the first one moves: when the
    round raises, no dendrite has changed.
    """
    rnd = GrowthRound(organoid, params=params)
    growing = organoid.dendrites.growing_ids()
    rnd.prepare(growing)
    report = GrowthReport()
    for did in growing:
        state, moved = rnd.advance(int(did))
        if state == DendriteIs.ATTACHED:
            report.num_attached += 1
        elif moved:
            report.num_grown += 1
        else:
            report.num_stalled += 1
    report.num_growing = len(organoid.dendrites.growing_ids())
    return report


def grow(organoid, max_rounds: int = 100, params: GrowthParams = None,
         verbose: bool = False) -> List[GrowthReport]:
    """
    Run growth rounds until nothing moves or attaches, or max_rounds is hit.

    Returns the report of every round that ran.
    """
    reports = []
    if verbose:
        print(f"Growing {organoid.name!r}: {len(organoid.dendrites.growing_ids())} "
              f"growing dendrites, up to {max_rounds} rounds...")

    for r in range(max_rounds):
        report = tick_all(organoid, params)
        reports.append(report)
        if verbose:
            print(f"  Round {r + 1:3d}/{max_rounds} | "
                  f"Grown: {report.num_grown:4d} | "
                  f"Attached: {report.num_attached:4d} | "
                  f"Stalled: {report.num_stalled:4d} | "
                  f"Growing: {report.num_growing:4d}")
        if report.quiescent or report.num_growing == 0:
            break

    if verbose:
        total = sum(rep.num_attached for rep in reports)
        print(f"Growth stopped after {len(reports)} rounds, {total} new synapses.")
    return reports
