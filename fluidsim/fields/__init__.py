"""Field management for fluidsim.

This module provides double-buffered grids and declarative field containers
for managing Taichi fields.

Main classes:
- FieldBuffer: Two same-shaped grids with swappable input/output roles
- FieldSpec: Declarative field specification
- FieldRole: Field categorization (STATE, DERIVED)
- FieldContainer: Manages Taichi field lifecycle
- SimulationState: Every field of one fluid simulation
"""

from fluidsim.fields.base import FieldContainer, FieldRole, FieldSpec
from fluidsim.fields.buffer import FieldBuffer
from fluidsim.fields.state import (
    FieldId,
    SimulationState,
    create_state_specs,
    select_debug_field,
    velocity_id,
)

__all__ = [
    "FieldBuffer",
    "FieldContainer",
    "FieldId",
    "FieldRole",
    "FieldSpec",
    "SimulationState",
    "create_state_specs",
    "select_debug_field",
    "velocity_id",
]
