"""
Example 01: Single Dendrite Attachment

One excited cell sits two units away from a neuron. The neuron sprouts a
dendrite that follows the chemical potential one step per tick and attaches
once it is within contact range.

Level: Beginner
Runtime: <1 second
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from organoid import Layer, ThingType, DendriteIs, GrowthParams, new_organoid, tick


def main():
    print("=== Example 01: Single Dendrite Attachment ===\n")

    growth = GrowthParams(field_radius=8.0, contact_radius=1.0, max_step=1.0)
    org = new_organoid("pair", cell_capacity=1, neuron_capacity=1,
                       dendrite_capacity=1, growth=growth)

    retina = org.add_layer(Layer("retina", 1, ThingType.CELL), 0)
    cortex = org.add_layer(Layer("cortex", 1, ThingType.NEURON, toward=0), 1)

    (cell,) = org.place_grid(retina, 1, 1, 1)
    org.cells.set_position(cell, 2, 0)
    org.cells.set_activation(cell, 50)
    (neuron,) = org.place_grid(cortex, 1, 1, 1)
    (dendrite,) = org.sprout(neuron)

    print(f"Cell {cell} at {org.cell_at(cell).pos}, activation {org.cell_at(cell).activation}")
    print(f"Neuron {neuron} at {org.neuron_at(neuron).pos}\n")

    t = 0
    while org.dendrite_at(dendrite).doing == DendriteIs.GROWING and t < 10:
        state = tick(org, dendrite)
        t += 1
        d = org.dendrite_at(dendrite)
        print(f"  Tick {t}: {state.name:8s} tip=({d.tip_x:.2f}, {d.tip_y:.2f}) "
              f"target={d.to} weight={d.weight}")

    print(f"\nSynapses: {org.synapses()}")


if __name__ == "__main__":
    main()
