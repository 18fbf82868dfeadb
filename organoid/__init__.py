"""
Organoid: a continually growing neural tissue.

Cells and neurons sit in depth-keyed layers over fixed-size arenas. Neuron
dendrites grow along a chemical potential derived from cell activations and
attach to nearby cells or neurons, so the tissue keeps wiring itself without
ever reallocating.
"""

# Base types and parameters
from .base import (
    ThingType,
    DendriteIs,
    TissueParams,
    GrowthParams,
    Cell,
    Neuron,
    Dendrite,
)

# Errors
from .errors import (
    OrganoidError,
    CapacityExceeded,
    InvalidIdentifier,
    NoSuchDepth,
    LayerPopulated,
)

# Storage
from .stores import CellStore, NeuronStore, DendriteStore

# Potential field and growth
from .field import PotentialField, Gradient
from .growth import GrowthReport, GrowthRound, tick, tick_all, grow

# Tissue structure
from .layers import Layer, grid_positions, place_grid
from .tissue import Organoid, new_organoid

# Visualization
from .visualization import plot_tissue, plot_growth_history

__version__ = "0.1.0"
__all__ = [
    # Base
    "ThingType", "DendriteIs", "TissueParams", "GrowthParams",
    "Cell", "Neuron", "Dendrite",
    # Errors
    "OrganoidError", "CapacityExceeded", "InvalidIdentifier",
    "NoSuchDepth", "LayerPopulated",
    # Storage
    "CellStore", "NeuronStore", "DendriteStore",
    # Growth
    "PotentialField", "Gradient", "GrowthReport", "GrowthRound",
    "tick", "tick_all", "grow",
    # Structure
    "Layer", "grid_positions", "place_grid", "Organoid", "new_organoid",
    # Visualization
    "plot_tissue", "plot_growth_history",
]
