"""Base field container and specification classes.

This module provides the foundation for declarative field management:
- FieldSpec: Describes a field's name, dtype, role and boundary behaviour
- FieldRole: Enum categorizing field usage patterns
- FieldContainer: Manages field lifecycle, allocation, and double-buffering

Usage:
    container = FieldContainer(geometry)
    container.register(FieldSpec("pressure", DTYPE, FieldRole.STATE, double_buffer=True))
    container.allocate()
    p = container.get("pressure")          # current input view
    p_buf = container.get_buffer("pressure")
    container.swap("pressure")
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

import taichi as ti

from fluidsim.core.boundary import BoundaryCondition
from fluidsim.core.dtypes import CELL_DTYPE
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields.buffer import FieldBuffer


class FieldRole(Enum):
    """Categorizes field usage patterns for documentation and validation.

    STATE: Evolving simulation state (velocity, pressure, ink) - double-buffered
    DERIVED: Fully overwritten by the stage that writes it (divergence, boundaries)

    Solver workspaces are operator-owned fields, not container fields.
    """

    STATE = auto()
    DERIVED = auto()


@dataclass(frozen=True)
class FieldSpec:
    """Immutable specification for a Taichi field.

    Attributes:
        name: Field identifier (snake_case)
        dtype: Taichi data type (ti.f32, ti.i8, etc.)
        role: Field usage category
        double_buffer: If True, allocate a FieldBuffer instead of a single grid
        boundary: Ghost-cell condition used by stencil and sampling kernels
        stagger: Axis along which samples sit on the low cell face, or None
        description: Human-readable description with units
    """

    name: str
    dtype: Any  # Taichi dtype
    role: FieldRole
    double_buffer: bool = False
    boundary: BoundaryCondition | None = None
    stagger: int | None = None
    description: str = ""

    def __post_init__(self):
        """Validate field specification."""
        if not self.name:
            raise ValueError("Field name cannot be empty")
        if not self.name.islower() or not self.name.replace("_", "").isalnum():
            raise ValueError(
                f"Field name must be snake_case, got: {self.name}"
            )
        if self.double_buffer and self.role != FieldRole.STATE:
            raise ValueError(
                f"Only state fields can be double-buffered, '{self.name}' is {self.role.name}"
            )
        if self.stagger is not None and self.stagger < 0:
            raise ValueError(
                f"Stagger axis must be >= 0, got {self.stagger} for '{self.name}'"
            )

    @property
    def stagger_axis(self) -> int:
        """Stagger axis as a kernel argument (-1 for cell-centred)."""
        return -1 if self.stagger is None else self.stagger


class FieldContainer:
    """Manages Taichi field lifecycle with declarative specifications.

    A FieldContainer holds a collection of fields associated with a specific
    grid geometry. Fields are registered via FieldSpec, then allocated
    together. Double-buffered fields live in a FieldBuffer and are accessed
    through their current input view unless the buffer is requested.

    Example:
        container = FieldContainer(GridGeometry((64, 64), dx=1.0))
        container.register(FieldSpec("ink_density", DTYPE, FieldRole.STATE, double_buffer=True))
        container.register(FieldSpec("boundaries", ti.i8, FieldRole.DERIVED))
        container.allocate()

        ink = container["ink_density"]
        container.swap("ink_density")
    """

    def __init__(self, geometry: GridGeometry):
        """Initialize container with grid geometry.

        Args:
            geometry: Grid dimensions and cell size
        """
        self._geometry = geometry
        self._specs: dict[str, FieldSpec] = {}
        self._fields: dict[str, Any] = {}
        self._allocated = False

    @property
    def geometry(self) -> GridGeometry:
        """Get the grid geometry."""
        return self._geometry

    @property
    def allocated(self) -> bool:
        """Check if fields have been allocated."""
        return self._allocated

    @property
    def field_names(self) -> list[str]:
        """Get list of registered field names."""
        return list(self._specs.keys())

    def register(self, spec: FieldSpec) -> None:
        """Register a field specification.

        Raises:
            ValueError: If name already registered
            RuntimeError: If fields already allocated
        """
        if self._allocated:
            raise RuntimeError("Cannot register fields after allocation")
        if spec.name in self._specs:
            raise ValueError(f"Field '{spec.name}' already registered")
        self._specs[spec.name] = spec

    def register_many(self, specs: list[FieldSpec]) -> None:
        """Register multiple field specifications."""
        for spec in specs:
            self.register(spec)

    def allocate(self) -> None:
        """Allocate all registered fields.

        Double-buffered specs get a FieldBuffer, all others a single grid.

        Raises:
            RuntimeError: If already allocated or no fields registered
        """
        if self._allocated:
            raise RuntimeError("Fields already allocated")
        if not self._specs:
            raise RuntimeError("No fields registered")

        shape = self._geometry.shape

        for name, spec in self._specs.items():
            if spec.double_buffer:
                self._fields[name] = FieldBuffer(name, spec.dtype, shape)
            else:
                self._fields[name] = ti.field(dtype=spec.dtype, shape=shape, name=name)

        self._allocated = True

    def _lookup(self, name: str) -> Any:
        if not self._allocated:
            raise RuntimeError("Fields not yet allocated")
        if name not in self._fields:
            raise KeyError(f"Field '{name}' not found")
        return self._fields[name]

    def get(self, name: str) -> Any:
        """Get the current input view of a field.

        Raises:
            KeyError: If field not found
            RuntimeError: If fields not allocated
        """
        entry = self._lookup(name)
        if isinstance(entry, FieldBuffer):
            return entry.get_input()
        return entry

    def __getitem__(self, name: str) -> Any:
        """Get a field by name using bracket notation."""
        return self.get(name)

    def get_buffer(self, name: str) -> FieldBuffer:
        """Get the FieldBuffer backing a double-buffered field.

        Raises:
            ValueError: If field is not double-buffered
        """
        spec = self.get_spec(name)
        if not spec.double_buffer:
            raise ValueError(f"Field '{name}' is not double-buffered")
        return self._lookup(name)

    def swap(self, name: str) -> None:
        """Swap input and output of a double-buffered field (O(1))."""
        self.get_buffer(name).swap()

    def get_spec(self, name: str) -> FieldSpec:
        """Get the specification for a field."""
        if name not in self._specs:
            raise KeyError(f"Field '{name}' not registered")
        return self._specs[name]

    def fields_by_role(self, role: FieldRole) -> list[str]:
        """Get field names filtered by role."""
        return [name for name, spec in self._specs.items() if spec.role == role]

    def clear(self) -> None:
        """Zero every field and restore default buffer orientation."""
        for name in self._specs:
            entry = self._lookup(name)
            if isinstance(entry, FieldBuffer):
                entry.clear()
            else:
                entry.fill(0)

    @property
    def memory_bytes(self) -> int:
        """Estimate total memory usage in bytes."""
        if not self._allocated:
            return 0

        n_elements = self._geometry.n_cells
        total = 0

        for spec in self._specs.values():
            dtype_size = 4  # f32/i32
            if spec.dtype == ti.f64 or spec.dtype == ti.i64:
                dtype_size = 8
            elif spec.dtype == CELL_DTYPE or spec.dtype == ti.u8:
                dtype_size = 1
            elif spec.dtype == ti.i16:
                dtype_size = 2

            field_bytes = n_elements * dtype_size
            total += 2 * field_bytes if spec.double_buffer else field_bytes

        return total

    @property
    def memory_mb(self) -> float:
        """Estimate total memory usage in megabytes."""
        return self.memory_bytes / (1024 * 1024)

    def __contains__(self, name: str) -> bool:
        """Check if a field is registered."""
        return name in self._specs

    def __len__(self) -> int:
        """Number of registered fields (a buffer counts once)."""
        return len(self._specs)
