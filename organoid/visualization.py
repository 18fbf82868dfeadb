"""
Visualization of a tissue and its growth.

Only the inspection interface of the organoid is used here:
  - plot_tissue: layer members, dendrite tips, and synapses in the (x, y) plane
  - plot_growth_history: per-round counts from the growth driver
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import List

from .base import ThingType
from .growth import GrowthReport


LAYER_COLORS = ['#2196F3', '#4CAF50', '#FF9800', '#9C27B0', '#F44336']


def _member_xy(organoid, layer) -> np.ndarray:
    lookup = organoid.cell_at if layer.cells_are == ThingType.CELL else organoid.neuron_at
    return np.array([lookup(i).pos for i in layer], dtype=float).reshape(-1, 2)


def draw_tissue(ax, organoid):
    """Draw every layer, dendrite tip and synapse of an organoid onto ax."""
    for k, depth in enumerate(organoid.depths()):
        layer = organoid.layer_at(depth)
        xy = _member_xy(organoid, layer)
        if len(xy) == 0:
            continue
        marker = 'o' if layer.cells_are == ThingType.CELL else '^'
        ax.scatter(xy[:, 0], xy[:, 1], s=30, marker=marker,
                   c=LAYER_COLORS[k % len(LAYER_COLORS)], alpha=0.7,
                   label=f'{layer.name} (z={depth})')

    for depth in organoid.depths():
        layer = organoid.layer_at(depth)
        if layer.cells_are != ThingType.NEURON:
            continue
        for nid in layer:
            neuron = organoid.neuron_at(nid)
            for d in organoid.dendrites_of(nid):
                if d.is_attached:
                    target = organoid.store_for(d.to_kind).get(d.to)
                    ax.plot([neuron.x, target.x], [neuron.y, target.y],
                            'k-', linewidth=0.6, alpha=0.6)
                else:
                    ax.plot([neuron.x, d.tip_x], [neuron.y, d.tip_y],
                            color='grey', linestyle=':', linewidth=0.6)
                    ax.scatter([d.tip_x], [d.tip_y], s=6, c='grey')

    ax.set_xlabel('x')
    ax.set_ylabel('y')
    ax.set_title(f'Tissue {organoid.name!r}: {len(organoid.synapses())} synapses')
    ax.set_aspect('equal', adjustable='datalim')
    if organoid.depths():
        ax.legend(loc='upper right', fontsize=8)
    ax.grid(True, alpha=0.3)


def plot_tissue(organoid, save_path: str = 'tissue.png', show: bool = True):
    """Top-down view of the tissue with growing and attached dendrites."""
    fig, ax = plt.subplots(1, 1, figsize=(8, 8))
    draw_tissue(ax, organoid)

    plt.tight_layout()
    plt.savefig(save_path, dpi=150)
    print(f"Tissue saved to: {save_path}")
    if show:
        plt.show()
    plt.close(fig)


def plot_growth_history(reports: List[GrowthReport], save_path: str = 'growth.png',
                        show: bool = True):
    """Per-round growth counts and the cumulative number of synapses."""
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))
    rounds = np.arange(1, len(reports) + 1)

    ax = axes[0]
    ax.plot(rounds, [r.num_grown for r in reports], 'b-o', markersize=3, label='Grown')
    ax.plot(rounds, [r.num_attached for r in reports], 'g-s', markersize=3, label='Attached')
    ax.plot(rounds, [r.num_stalled for r in reports], 'r-^', markersize=3, label='Stalled')
    ax.set_xlabel('Round')
    ax.set_ylabel('Dendrites')
    ax.set_title('Dendrite Activity per Round')
    ax.legend()
    ax.grid(True, alpha=0.3)

    ax = axes[1]
    ax.plot(rounds, np.cumsum([r.num_attached for r in reports]), 'm-', linewidth=2)
    ax.set_xlabel('Round')
    ax.set_ylabel('Synapses formed')
    ax.set_title('Cumulative Attachments')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(save_path, dpi=150)
    print(f"Growth history saved to: {save_path}")
    if show:
        plt.show()
    plt.close(fig)
