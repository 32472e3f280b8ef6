"""Boundary model: per-field boundary conditions and cell classification.

Boundary conditions are applied with ghost cells. A read that falls outside
the domain returns ``bc * value`` of the nearest in-domain cell, where bc is
the condition's value:

    NO_SLIP  (-1): f(boundary) + f(neighbour) = 0
    NEUMANN  (+1): f(boundary) - f(neighbour) = 0
    ZERO     ( 0): f(boundary) = 0

Each field carries one static condition. The cell classification written by
boundary synthesis is a separate, derived field and does not feed back into
these conditions.
"""

from enum import Enum, IntEnum


class BoundaryCondition(Enum):
    """Ghost-cell multiplier applied to out-of-domain reads."""

    NO_SLIP = -1.0
    NEUMANN = 1.0
    ZERO = 0.0


class CellType(IntEnum):
    """Cell classification stored in the boundaries field."""

    FLUID = 0
    WALL = 1
    INFLOW = 2
    OUTFLOW = 3
