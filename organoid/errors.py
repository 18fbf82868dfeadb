"""
Exception hierarchy for the organoid core.

OrganoidError (base)
├── CapacityExceeded  - an arena, a layer, or a neuron's dendrite list is full
├── InvalidIdentifier - lookup of an identifier that was never allocated
├── NoSuchDepth       - no layer is registered at the requested depth
└── LayerPopulated    - a layer's shape is fixed once it has been placed

All of them are local, recoverable conditions raised by the operation that
detects them.
"""


class OrganoidError(Exception):
    """Base exception for all organoid-specific errors."""


class CapacityExceeded(OrganoidError):
    """A fixed-size store cannot satisfy an allocation."""

    def __init__(self, what: str, capacity: int, requested: int = 1):
        self.what = what
        self.capacity = capacity
        self.requested = requested
        super().__init__(
            f"{what} is full: capacity {capacity}, "
            f"{requested} more requested"
        )


class InvalidIdentifier(OrganoidError, IndexError):
    """An identifier outside the populated part of an arena."""

    def __init__(self, what: str, identifier: int, length: int):
        self.what = what
        self.identifier = identifier
        self.length = length
        super().__init__(
            f"{what} id {identifier} is not allocated "
            f"({length} {what} ids allocated)"
        )


class NoSuchDepth(OrganoidError, KeyError):
    """Layer lookup miss."""

    def __init__(self, depth: int):
        self.depth = depth
        super().__init__(depth)

    def __str__(self):
        return f"no layer at depth {self.depth}"


class LayerPopulated(OrganoidError):
    """Raised when placing into a layer that already has members."""
