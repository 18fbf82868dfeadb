"""
Shared types, parameters, and record structures.

Numeric widths follow the compact storage layout used by the arenas:
  - XY / Depth: int16 spatial coordinates
  - AnActivation / ActWeight: int8, clamped rather than wrapped
  - Identifiers: int32, dense and zero-based per arena
"""

import numpy as np
from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple


# ============================================================================
# CONSTANTS
# ============================================================================

XY_DTYPE = np.int16
ACTIVATION_DTYPE = np.int8
WEIGHT_DTYPE = np.int8
ID_DTYPE = np.int32
TIP_DTYPE = np.float32

XY_MIN = int(np.iinfo(XY_DTYPE).min)
XY_MAX = int(np.iinfo(XY_DTYPE).max)
ACTIVATION_MIN = int(np.iinfo(ACTIVATION_DTYPE).min)
ACTIVATION_MAX = int(np.iinfo(ACTIVATION_DTYPE).max)
WEIGHT_MIN = int(np.iinfo(WEIGHT_DTYPE).min)
WEIGHT_MAX = int(np.iinfo(WEIGHT_DTYPE).max)

NO_TARGET = -1  # Dendrite has no candidate yet


class ThingType(IntEnum):
    """What kind of entity an identifier refers to."""
    CELL = 0      # A humble cell, e.g. a photoreceptor
    NEURON = 1    # A full-fledged neuron with dendrites
    DENDRITE = 2  # Not really a separate cell, but lives in its own arena


class DendriteIs(IntEnum):
    """What a dendrite is currently doing."""
    GROWING = 0   # Looking for something to attach to
    ATTACHED = 1  # Found a target and linked to it; terminal


# ============================================================================
# PARAMETER DATACLASSES
# ============================================================================

@dataclass
class TissueParams:
    """Structural limits fixed for the lifetime of an organoid."""
    max_dendrites: int = 8  # Dendrites per neuron

    def validate(self):
        if self.max_dendrites < 1:
            raise ValueError(f"max_dendrites must be >= 1, got {self.max_dendrites}")


@dataclass
class GrowthParams:
    """
    Dendrite growth and attachment parameters.

    A tip attaches when the best attractor's potential exceeds
    attach_threshold and lies within contact_radius; otherwise it moves at
    most max_step toward it. Attractors further than field_radius exert no
    potential.
    """
    field_radius: float = 8.0      # Reach of an attractor's potential
    contact_radius: float = 1.0    # Distance at which a tip can attach
    max_step: float = 1.0          # Longest tip movement per tick
    attach_threshold: float = 0.0  # Potential must exceed this to attach
    weight_scale: float = 1.0      # Synaptic weight per unit potential

    def validate(self):
        if self.field_radius <= 0:
            raise ValueError(f"field_radius must be > 0, got {self.field_radius}")
        if self.contact_radius < 0:
            raise ValueError(f"contact_radius must be >= 0, got {self.contact_radius}")
        if self.max_step <= 0:
            raise ValueError(f"max_step must be > 0, got {self.max_step}")


# ============================================================================
# RECORDS
# ============================================================================
# Read-only views handed out by the stores. Mutation always goes through the
# owning store so the arena is the single source of truth.

@dataclass(frozen=True)
class Cell:
    """A point entity with an activation level."""
    id: int
    activation: int
    x: int
    y: int
    z: int = 0

    @property
    def pos(self) -> Tuple[int, int]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Neuron:
    """A cell plus an axon input slot and its dendrites."""
    id: int
    activation: int
    x: int
    y: int
    z: int
    axon: int
    dendrites: Tuple[int, ...] = ()

    @property
    def pos(self) -> Tuple[int, int]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Dendrite:
    """A growth process from a parent neuron toward a cell or neuron."""
    id: int
    parent: int
    doing: DendriteIs
    to_kind: ThingType
    to: int
    weight: int
    tip_x: float
    tip_y: float

    @property
    def tip(self) -> Tuple[float, float]:
        return (self.tip_x, self.tip_y)

    @property
    def is_attached(self) -> bool:
        return self.doing == DendriteIs.ATTACHED


# ============================================================================
# CLAMPING
# ============================================================================

def clamp_activation(value: float) -> int:
    """Round and clamp into the AnActivation range."""
    return int(np.clip(np.rint(value), ACTIVATION_MIN, ACTIVATION_MAX))


def clamp_weight(value: float) -> int:
    """Round and clamp into the ActWeight range."""
    return int(np.clip(np.rint(value), WEIGHT_MIN, WEIGHT_MAX))


def check_xy(value: int, name: str = "coordinate") -> int:
    """Reject coordinates that would not fit the XY storage width."""
    value = int(value)
    if not XY_MIN <= value <= XY_MAX:
        raise ValueError(f"{name} {value} outside [{XY_MIN}, {XY_MAX}]")
    return value
