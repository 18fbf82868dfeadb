"""
Tests for the dendrite growth engine.
"""

import pytest
import sys
import numpy as np
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from organoid.base import ThingType, DendriteIs, GrowthParams
from organoid.errors import InvalidIdentifier, NoSuchDepth
from organoid.field import PotentialField
from organoid.growth import GrowthRound, tick, tick_all, grow
from organoid.layers import Layer
from organoid.tissue import new_organoid


def build_pair(cell_xy=(2, 0), activation=50, growth=None):
    """One cell on layer 0 and one neuron at the origin on layer 1 growing toward it."""
    org = new_organoid("pair", 4, 4, 8, growth=growth)
    retina = org.add_layer(Layer("retina", 4, ThingType.CELL), 0)
    cortex = org.add_layer(Layer("cortex", 4, ThingType.NEURON, toward=0), 1)

    (cid,) = org.place_grid(retina, 1, 1, 1)
    org.cells.set_position(cid, *cell_xy)
    org.cells.set_activation(cid, activation)
    (nid,) = org.place_grid(cortex, 1, 1, 1)
    (did,) = org.sprout(nid)
    return org, cid, nid, did


def build_sheet(seed=0):
    """A 6x6 cell sheet under a 3x3 neuron sheet with random activations."""
    org = new_organoid("sheet", 36, 9, 27)
    retina = org.add_layer(Layer("retina", 36, ThingType.CELL), 0)
    cortex = org.add_layer(Layer("cortex", 9, ThingType.NEURON, toward=0), 1)
    org.place_grid(retina, 6, 6, 2)
    org.place_grid(cortex, 3, 3, 4)
    rng = np.random.RandomState(seed)
    org.stimulate(0, rng.randint(-20, 100, size=(6, 6)))
    org.sprout_layer(1, per_neuron=3)
    return org


class TestTick:
    """Test suite for single-dendrite ticks."""

    def test_attaches_after_two_ticks(self):
        """Test monotonic approach: 2 units away, contact 1, step 1."""
        org, cid, nid, did = build_pair()

        assert tick(org, did) == DendriteIs.GROWING
        d = org.dendrite_at(did)
        assert d.tip == (1.0, 0.0), "Tip should move exactly one unit"
        assert d.to == cid, "Growing dendrite should record its candidate"

        assert tick(org, did) == DendriteIs.ATTACHED
        d = org.dendrite_at(did)
        assert d.to_kind == ThingType.CELL
        assert d.to == cid
        assert d.weight == 44, "Weight should be the rounded potential 50 * 7/8"

    def test_tick_on_attached_is_noop(self):
        """Test idempotence of ticks on attached dendrites."""
        org, cid, nid, did = build_pair(cell_xy=(1, 0))
        assert tick(org, did) == DendriteIs.ATTACHED
        before = org.dendrite_at(did)

        for _ in range(3):
            assert tick(org, did) == DendriteIs.ATTACHED
        assert org.dendrite_at(did) == before

    def test_no_attractor_in_range_keeps_growing(self):
        """Test that a dendrite with nothing to follow stays put."""
        org, cid, nid, did = build_pair(cell_xy=(20, 0))

        for _ in range(10):
            assert tick(org, did) == DendriteIs.GROWING
        d = org.dendrite_at(did)
        assert d.tip == (0.0, 0.0)
        assert d.to == -1

    def test_threshold_blocks_attachment(self):
        """Test that a weak potential never attaches."""
        org, cid, nid, did = build_pair(growth=GrowthParams(attach_threshold=100.0))

        for _ in range(5):
            assert tick(org, did) == DendriteIs.GROWING
        assert org.dendrite_at(did).tip == (2.0, 0.0), "Tip should stop on the cell"

    def test_weight_scale_is_clamped(self):
        """Test weight derivation with a large scale."""
        org, cid, nid, did = build_pair(cell_xy=(1, 0), growth=GrowthParams(weight_scale=10.0))
        tick(org, did)

        assert org.dendrite_at(did).weight == 127

    def test_unknown_dendrite(self):
        """Test that an unallocated dendrite id is rejected."""
        org, cid, nid, did = build_pair()
        with pytest.raises(InvalidIdentifier):
            tick(org, did + 1)

    def test_unknown_parent(self):
        """Test that a dendrite with an invalid parent propagates InvalidIdentifier."""
        org, cid, nid, did = build_pair()
        orphan = org.dendrites.create(parent=3, x=0.0, y=0.0)

        with pytest.raises(InvalidIdentifier):
            tick(org, orphan)

    def test_missing_target_layer(self):
        """Test that growing toward an unregistered depth fails."""
        org = new_organoid("lost", 0, 1, 1)
        cortex = org.add_layer(Layer("cortex", 1, ThingType.NEURON, toward=5), 1)
        (nid,) = org.place_grid(cortex, 1, 1, 1)
        (did,) = org.sprout(nid)

        with pytest.raises(NoSuchDepth):
            tick(org, did)

    def test_missing_target_layer_leaves_round_untouched(self):
        """Test that a misconfigured layer fails the round before any tip moves."""
        org = new_organoid("partial", 1, 2, 2)
        retina = org.add_layer(Layer("retina", 1, ThingType.CELL), 0)
        good = org.add_layer(Layer("good", 1, ThingType.NEURON, toward=0), 1)
        lost = org.add_layer(Layer("lost", 1, ThingType.NEURON, toward=9), 2)
        (cid,) = org.place_grid(retina, 1, 1, 1)
        org.cells.set_position(cid, 3, 0)
        org.cells.set_activation(cid, 50)
        (a,) = org.place_grid(good, 1, 1, 1)
        (b,) = org.place_grid(lost, 1, 1, 1)
        (first,) = org.sprout(a)
        org.sprout(b)

        with pytest.raises(NoSuchDepth):
            tick_all(org)
        assert org.dendrite_at(first).tip == (0.0, 0.0), "Failed round must not move tips"
        assert org.dendrite_at(first).to == -1

    def test_lateral_growth_within_own_layer(self):
        """Test that without a target layer dendrites attach to neighbours."""
        org = new_organoid("lateral", 0, 2, 2)
        cortex = org.add_layer(Layer("cortex", 2, ThingType.NEURON), 1)
        a, b = org.place_grid(cortex, 1, 2, 1)
        org.stimulate(1, 50)
        org.sprout_layer(1)

        report = tick_all(org)

        assert report.num_attached == 2
        (da,) = org.dendrites_of(a)
        (db,) = org.dendrites_of(b)
        assert (da.to_kind, da.to) == (ThingType.NEURON, b), "A neuron never attaches to itself"
        assert (db.to_kind, db.to) == (ThingType.NEURON, a)


class TestTickAll:
    """Test suite for growth rounds."""

    def test_report_counts(self):
        """Test the per-round report of the two-tick scenario."""
        org, cid, nid, did = build_pair()

        first = tick_all(org)
        assert (first.num_grown, first.num_attached, first.num_growing) == (1, 0, 1)

        second = tick_all(org)
        assert (second.num_grown, second.num_attached, second.num_growing) == (0, 1, 0)

        third = tick_all(org)
        assert third.quiescent
        assert third.num_growing == 0

    def test_unknown_parent_leaves_round_untouched(self):
        """Test that an orphan dendrite fails the round before any tip moves."""
        org, cid, nid, did = build_pair()
        org.dendrites.create(parent=3, x=0.0, y=0.0)

        with pytest.raises(InvalidIdentifier):
            tick_all(org)
        assert org.dendrite_at(did).tip == (0.0, 0.0), "Failed round must not move tips"

    def test_tick_reads_only_the_parent_synapses(self, monkeypatch):
        """Test that ticking does not list every synapse in the tissue."""
        org, cid, nid, did = build_pair()

        def listing():
            raise AssertionError("synapses() should not be called while ticking")

        monkeypatch.setattr(org, "synapses", listing)
        assert tick(org, did) == DendriteIs.GROWING
        assert tick_all(org).num_attached == 1

    def test_reused_round_matches_tick_all(self):
        """Test that one prepared GrowthRound advanced per dendrite equals a round."""
        whole, stepped = build_sheet(seed=5), build_sheet(seed=5)
        for _ in range(3):
            tick_all(whole)
            growing = stepped.dendrites.growing_ids()
            rnd = GrowthRound(stepped)
            rnd.prepare(growing)
            for did in growing:
                rnd.advance(int(did))

        assert np.array_equal(whole.dendrites.populated(), stepped.dendrites.populated())

    def test_stalled_dendrites_are_counted(self):
        """Test that dendrites with nothing to follow are reported as stalled."""
        org, cid, nid, did = build_pair(cell_xy=(20, 0))
        report = tick_all(org)

        assert report.num_stalled == 1
        assert report.quiescent

    def test_round_is_deterministic(self):
        """Test that identical tissues grow identically."""
        a, b = build_sheet(seed=3), build_sheet(seed=3)
        for _ in range(4):
            ra, rb = tick_all(a), tick_all(b)
            assert ra == rb
        assert np.array_equal(a.dendrites.populated(), b.dendrites.populated())
        assert a.synapses() == b.synapses()

    def test_round_is_order_independent(self):
        """Test that visiting dendrites in reverse gives the same result."""
        forward, backward = build_sheet(seed=7), build_sheet(seed=7)
        for _ in range(3):
            tick_all(forward)
            rnd = GrowthRound(backward)
            for did in backward.dendrites.growing_ids()[::-1]:
                rnd.advance(int(did))

        assert np.array_equal(forward.dendrites.populated(), backward.dendrites.populated())

    def test_round_reads_start_of_round_snapshot(self):
        """Test that all ticks in a round share one field."""
        org, cid, nid, did = build_pair()
        field = PotentialField.snapshot(org)
        org.cells.set_activation(cid, -50)

        assert tick(org, did, field=field) == DendriteIs.GROWING
        assert org.dendrite_at(did).tip == (1.0, 0.0), "Old snapshot should still attract"
        assert tick(org, did) == DendriteIs.GROWING
        assert org.dendrite_at(did).tip == (1.0, 0.0), "Fresh snapshot sees the inhibited cell"

    def test_existing_synapse_is_not_duplicated(self):
        """Test that a new dendrite looks past targets its neuron already has."""
        org = new_organoid("pairs", 2, 1, 2)
        retina = org.add_layer(Layer("retina", 2, ThingType.CELL), 0)
        cortex = org.add_layer(Layer("cortex", 1, ThingType.NEURON, toward=0), 1)
        near, far = org.place_grid(retina, 1, 2, 1)
        org.cells.set_position(near, 1, 0)
        org.cells.set_position(far, 0, 3)
        org.stimulate(0, 50)
        (nid,) = org.place_grid(cortex, 1, 1, 1)

        (first,) = org.sprout(nid)
        tick_all(org)
        assert org.dendrite_at(first).to == near

        (second,) = org.sprout(nid)
        grow(org, max_rounds=10)
        d = org.dendrite_at(second)
        assert d.is_attached
        assert d.to == far


class TestGrow:
    """Test suite for the multi-round driver."""

    def test_stops_when_everything_attached(self):
        """Test that growth ends once no dendrite is left growing."""
        org, cid, nid, did = build_pair()
        reports = grow(org, max_rounds=50)

        assert len(reports) == 2
        assert reports[-1].num_growing == 0
        assert org.synapses() == [(nid, ThingType.CELL, cid, 44)]

    def test_stops_at_quiescence(self):
        """Test that growth ends when nothing moves."""
        org, cid, nid, did = build_pair(cell_xy=(20, 0))
        reports = grow(org, max_rounds=50)

        assert len(reports) == 1

    def test_respects_max_rounds(self):
        """Test the round limit."""
        org, cid, nid, did = build_pair(cell_xy=(6, 0))
        reports = grow(org, max_rounds=2)

        assert len(reports) == 2
        assert org.dendrite_at(did).tip == (2.0, 0.0)

    def test_sheet_forms_synapses(self):
        """Test that a stimulated sheet wires up."""
        org = build_sheet(seed=1)
        reports = grow(org, max_rounds=100)

        assert sum(r.num_attached for r in reports) == len(org.synapses())
        assert len(org.synapses()) > 0
        for parent, kind, to, weight in org.synapses():
            assert kind == ThingType.CELL
            assert org.cell_at(to).activation > 0, "Only excited cells attract"
            assert weight > 0

    def test_verbose_prints_progress(self, capsys):
        """Test that verbose growth reports each round."""
        org, cid, nid, did = build_pair()
        grow(org, max_rounds=5, verbose=True)

        out = capsys.readouterr().out
        assert "Round   1/5" in out
        assert "1 new synapses" in out

    def test_silent_by_default(self, capsys):
        """Test that the core prints nothing unless asked."""
        org, cid, nid, did = build_pair()
        grow(org, max_rounds=5)

        assert capsys.readouterr().out == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
