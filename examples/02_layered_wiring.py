"""
Example 02: Layered Wiring

Builds a two-layer tissue: a stimulated sheet of cells and a sparser sheet
of neurons above it whose dendrites grow down toward the cells. Growth runs
until the tissue is quiescent, then the tissue and the growth history are
plotted.

Level: Intermediate
Runtime: ~5 seconds
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
from organoid import Layer, ThingType, GrowthParams, new_organoid, grow
from organoid.visualization import plot_tissue, plot_growth_history


def main():
    print("=== Example 02: Layered Wiring ===\n")

    rows, cols = 12, 12
    growth = GrowthParams(field_radius=10.0, contact_radius=1.0, max_step=1.0)
    org = new_organoid("cortex", cell_capacity=rows * cols, neuron_capacity=16,
                       dendrite_capacity=64, growth=growth)

    retina = org.add_layer(Layer("retina", rows * cols, ThingType.CELL), 0)
    cortex = org.add_layer(Layer("cortex", 16, ThingType.NEURON, toward=0), 1)
    org.place_grid(retina, rows, cols, 2)
    org.place_grid(cortex, 4, 4, 6)

    # Sparse excitation on the cell sheet
    np.random.seed(42)
    pattern = np.zeros((rows, cols), dtype=int)
    active = np.random.choice(rows * cols, size=30, replace=False)
    pattern.flat[active] = np.random.randint(20, 120, size=len(active))
    org.stimulate(0, pattern)

    org.sprout_layer(1, per_neuron=4)
    for depth in org.depths():
        print(f"  {org.layer_at(depth)}")
    print()

    reports = grow(org, max_rounds=50, verbose=True)

    synapses = org.synapses()
    weights = [w for _, _, _, w in synapses]
    print(f"\n=== Results ===")
    print(f"Synapses: {len(synapses)} of {len(org.dendrites)} dendrites")
    if weights:
        print(f"Weight: mean={np.mean(weights):.1f}, min={min(weights)}, max={max(weights)}")

    plot_tissue(org, save_path='02_layered_wiring_tissue.png')
    plot_growth_history(reports, save_path='02_layered_wiring_growth.png')


if __name__ == "__main__":
    main()
