"""Simulation state: the named fields one fluid simulation owns.

State fields evolve every frame and are double-buffered:
- velocity_x, velocity_y (, velocity_z): Velocity per axis [cells/s · dx]
- pressure: Pressure [Pa], doubles as the next frame's initial guess
- ink_density: Passive dye carried by the flow

Derived fields are fully overwritten by the stage that writes them:
- divergence: Velocity divergence before projection [1/s]
- divergence_check: Divergence recomputed after projection [1/s]
- boundaries: Cell classification (see CellType)
"""

from enum import IntEnum
from typing import Any, Iterator

from fluidsim.core.boundary import BoundaryCondition
from fluidsim.core.dtypes import CELL_DTYPE, DTYPE
from fluidsim.core.geometry import GridGeometry, PhysicalProperties
from fluidsim.fields.base import FieldContainer, FieldRole, FieldSpec
from fluidsim.fields.buffer import FieldBuffer


class FieldId(IntEnum):
    """Fields a caller can select, in debug-selector order."""

    VELOCITY_X = 0
    VELOCITY_Y = 1
    VELOCITY_Z = 2
    PRESSURE = 3
    DIVERGENCE = 4
    DIVERGENCE_CHECK = 5
    BOUNDARIES = 6
    INK_DENSITY = 7


AXIS_NAMES = ("x", "y", "z")

FIELD_NAMES = {
    FieldId.VELOCITY_X: "velocity_x",
    FieldId.VELOCITY_Y: "velocity_y",
    FieldId.VELOCITY_Z: "velocity_z",
    FieldId.PRESSURE: "pressure",
    FieldId.DIVERGENCE: "divergence",
    FieldId.DIVERGENCE_CHECK: "divergence_check",
    FieldId.BOUNDARIES: "boundaries",
    FieldId.INK_DENSITY: "ink_density",
}


def velocity_id(axis: int) -> FieldId:
    """FieldId of the velocity component along ``axis``."""
    return FieldId(FieldId.VELOCITY_X + axis)


def create_state_specs(dim: int, staggered: bool = True) -> list[FieldSpec]:
    """Create specifications for every field a simulation state owns.

    Args:
        dim: Number of spatial dimensions (2 or 3)
        staggered: If True, each velocity axis sits on the low face of its cell

    Returns:
        List of FieldSpec in FieldId order
    """
    specs = [
        FieldSpec(
            name=f"velocity_{AXIS_NAMES[axis]}",
            dtype=DTYPE,
            role=FieldRole.STATE,
            double_buffer=True,
            boundary=BoundaryCondition.NO_SLIP,
            stagger=axis if staggered else None,
            description=f"Velocity along {AXIS_NAMES[axis]} [m/s]",
        )
        for axis in range(dim)
    ]
    specs += [
        FieldSpec(
            name="pressure",
            dtype=DTYPE,
            role=FieldRole.STATE,
            double_buffer=True,
            boundary=BoundaryCondition.NEUMANN,
            description="Pressure [Pa]",
        ),
        FieldSpec(
            name="divergence",
            dtype=DTYPE,
            role=FieldRole.DERIVED,
            boundary=BoundaryCondition.ZERO,
            description="Velocity divergence before projection [1/s]",
        ),
        FieldSpec(
            name="divergence_check",
            dtype=DTYPE,
            role=FieldRole.DERIVED,
            boundary=BoundaryCondition.ZERO,
            description="Velocity divergence after projection [1/s]",
        ),
        FieldSpec(
            name="boundaries",
            dtype=CELL_DTYPE,
            role=FieldRole.DERIVED,
            description="Cell classification (CellType)",
        ),
        FieldSpec(
            name="ink_density",
            dtype=DTYPE,
            role=FieldRole.STATE,
            double_buffer=True,
            boundary=BoundaryCondition.ZERO,
            description="Passive dye density",
        ),
    ]
    return specs


class SimulationState:
    """All fields of one fluid simulation plus its physical parameters.

    Example:
        state = SimulationState(GridGeometry((64, 64), dx=0.8))
        vx = state.velocity(0)          # FieldBuffer
        p = state.pressure.get_input()  # ti.field
        state.reset()
    """

    def __init__(
        self,
        geometry: GridGeometry,
        physics: PhysicalProperties | None = None,
        exterior_velocity: tuple[float, ...] | None = None,
    ):
        """Allocate every field for ``geometry``.

        Args:
            geometry: Grid dimensions, cell size and layout
            physics: Density and viscosity (defaults if None)
            exterior_velocity: Velocity of the fluid outside the domain, one
                entry per axis (zero if None)

        Raises:
            ValueError: If exterior_velocity has the wrong length
        """
        self.geometry = geometry
        self.physics = physics if physics is not None else PhysicalProperties()
        self.exterior_velocity = exterior_velocity
        self._container = FieldContainer(geometry)
        self._container.register_many(
            create_state_specs(geometry.dim, geometry.staggered)
        )
        self._container.allocate()

    @classmethod
    def from_config(cls, config: Any) -> "SimulationState":
        """Build a state from a SimulationConfig."""
        geometry = GridGeometry(
            size=config.grid.size,
            dx=config.grid.dx,
            staggered=config.grid.staggered,
        )
        physics = PhysicalProperties(
            density=config.physics.density,
            viscosity=config.physics.viscosity,
        )
        exterior = config.physics.exterior_velocity or None
        return cls(geometry, physics, exterior)

    @property
    def exterior_velocity(self) -> tuple[float, ...]:
        """Velocity of the fluid surrounding the domain."""
        return self._exterior_velocity

    @exterior_velocity.setter
    def exterior_velocity(self, value: tuple[float, ...] | None) -> None:
        if value is None:
            value = (0.0,) * self.geometry.dim
        value = tuple(float(v) for v in value)
        if len(value) != self.geometry.dim:
            raise ValueError(
                f"exterior_velocity needs {self.geometry.dim} entries, got {len(value)}"
            )
        self._exterior_velocity = value

    @property
    def dim(self) -> int:
        return self.geometry.dim

    @property
    def shape(self) -> tuple[int, ...]:
        return self.geometry.shape

    @property
    def container(self) -> FieldContainer:
        return self._container

    def velocity(self, axis: int) -> FieldBuffer:
        """Velocity buffer along ``axis``."""
        if not 0 <= axis < self.dim:
            raise IndexError(f"axis must be in [0, {self.dim}), got {axis}")
        return self._container.get_buffer(f"velocity_{AXIS_NAMES[axis]}")

    @property
    def velocity_buffers(self) -> list[FieldBuffer]:
        return [self.velocity(axis) for axis in range(self.dim)]

    @property
    def pressure(self) -> FieldBuffer:
        return self._container.get_buffer("pressure")

    @property
    def ink_density(self) -> FieldBuffer:
        return self._container.get_buffer("ink_density")

    @property
    def divergence(self) -> Any:
        return self._container["divergence"]

    @property
    def divergence_check(self) -> Any:
        return self._container["divergence_check"]

    @property
    def boundaries(self) -> Any:
        return self._container["boundaries"]

    def spec(self, field_id: FieldId) -> FieldSpec:
        """Specification of a field.

        Raises:
            KeyError: If the field does not exist for this dimensionality
        """
        return self._container.get_spec(FIELD_NAMES[FieldId(field_id)])

    def field(self, field_id: FieldId) -> Any:
        """Current input view of a field.

        Raises:
            KeyError: If the field does not exist for this dimensionality
        """
        return self._container[FIELD_NAMES[FieldId(field_id)]]

    def has_field(self, field_id: FieldId) -> bool:
        return FIELD_NAMES[FieldId(field_id)] in self._container

    def advected_fields(self) -> Iterator[tuple[FieldSpec, FieldBuffer]]:
        """(spec, buffer) pairs of every field carried by the flow."""
        for axis in range(self.dim):
            fid = velocity_id(axis)
            yield self.spec(fid), self.velocity(axis)
        yield self.spec(FieldId.INK_DENSITY), self.ink_density

    def reset(self) -> None:
        """Zero every field and restore default buffer orientation."""
        self._container.clear()

    @property
    def memory_mb(self) -> float:
        return self._container.memory_mb

    def __repr__(self) -> str:
        return (
            f"SimulationState(size={self.geometry.size}, dx={self.geometry.dx}, "
            f"staggered={self.geometry.staggered})"
        )


def select_debug_field(state: SimulationState, index: int) -> Any:
    """Field shown by an integer debug selector.

    Args:
        state: Simulation state
        index: Selector value, see FieldId for the ordering

    Returns:
        Current input view of the selected field

    Raises:
        IndexError: If index names no field of this state
    """
    if not 0 <= index < len(FieldId):
        raise IndexError(f"Debug selector out of range: {index}")
    field_id = FieldId(index)
    if not state.has_field(field_id):
        raise IndexError(
            f"Debug selector {index} ({field_id.name}) does not exist in {state.dim}D"
        )
    return state.field(field_id)


__all__ = [
    "AXIS_NAMES",
    "FIELD_NAMES",
    "FieldId",
    "SimulationState",
    "create_state_specs",
    "select_debug_field",
    "velocity_id",
]
