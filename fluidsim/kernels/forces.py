"""
External forces: gaussian velocity and ink impulses.

An impulse adds, to every sample at grid-space position x,

    velocity[a] += magnitude[a] * exp(-|x - position|^2 / radius^2)
    ink         += ink_amount * dt * exp(-|x - position|^2 / radius^2)

Updates are in place on the input views; no buffer is swapped.
"""

from dataclasses import dataclass

import taichi as ti

from fluidsim.core.boundary import BoundaryCondition
from fluidsim.core.dtypes import DTYPE
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields.state import FieldId, velocity_id
from fluidsim.kernels.protocol import StepParams
from fluidsim.kernels.sampling import as_vec3, sample_position, vec3


@dataclass(frozen=True)
class Impulse:
    """Gaussian stimulus applied by the forces stage.

    Attributes:
        position: Centre in grid space (cell I's centre is I + 0.5)
        magnitude: Velocity added at the centre, one entry per axis
        radius: Gaussian falloff radius in cells
        ink_amount: Ink added per second at the centre
    """

    position: tuple[float, ...]
    magnitude: tuple[float, ...]
    radius: float
    ink_amount: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "position", tuple(float(v) for v in self.position))
        object.__setattr__(self, "magnitude", tuple(float(v) for v in self.magnitude))
        if self.radius <= 0:
            raise ValueError(f"radius must be > 0, got {self.radius}")
        if len(self.position) not in (2, 3):
            raise ValueError(
                f"position must have 2 or 3 entries, got {len(self.position)}"
            )
        if len(self.magnitude) != len(self.position):
            raise ValueError(
                f"magnitude needs {len(self.position)} entries, got {len(self.magnitude)}"
            )

    @property
    def dim(self) -> int:
        return len(self.position)

    @classmethod
    def centered(
        cls,
        geometry: GridGeometry,
        axis: int,
        strength: float,
        radius: float,
        ink_amount: float = 0.0,
    ) -> "Impulse":
        """Impulse at the domain centre pushing along one axis.

        Args:
            geometry: Grid the impulse is applied to
            axis: Axis of the pushed velocity component
            strength: Velocity added at the centre along ``axis``
            radius: Gaussian falloff radius in cells
            ink_amount: Ink added per second at the centre
        """
        if not 0 <= axis < geometry.dim:
            raise ValueError(f"axis must be in [0, {geometry.dim}), got {axis}")
        magnitude = [0.0] * geometry.dim
        magnitude[axis] = strength
        return cls(geometry.center, tuple(magnitude), radius, ink_amount)


@ti.kernel
def add_gaussian(
    q: ti.template(),
    position: vec3,
    amount: DTYPE,
    inv_radius_sq: DTYPE,
    stagger: ti.template(),
    pin_wall: ti.template(),
):
    """Add amount * exp(-|x - position|^2 / r^2) to every sample of q."""
    dim = ti.static(len(q.shape))
    for I in ti.grouped(q):
        x = sample_position(I, stagger)
        dist_sq = ti.cast(0.0, DTYPE)
        for d in ti.static(range(dim)):
            dist_sq += (x[d] - position[d]) ** 2
        apply = True
        if ti.static(pin_wall):
            if I[stagger] == 0:
                apply = False
        if apply:
            q[I] += amount * ti.exp(-dist_sq * inv_radius_sq)


class ForcesStep:
    """Applies an Impulse to velocity and, optionally, ink.

    Implements GridOperator protocol.
    """

    def __init__(self, ctx, geometry: GridGeometry):
        self.ctx = ctx
        self.geometry = geometry

    @property
    def fields_read(self) -> set[FieldId]:
        return self.fields_written

    @property
    def fields_written(self) -> set[FieldId]:
        ids = {velocity_id(a) for a in range(self.geometry.dim)}
        return ids | {FieldId.INK_DENSITY}

    def compute(self, state, params: StepParams) -> None:
        impulse = params.impulse
        if impulse is None:
            raise ValueError("ForcesStep needs an impulse")
        if impulse.dim != state.dim:
            raise ValueError(
                f"Impulse is {impulse.dim}D but the state is {state.dim}D"
            )

        position = as_vec3(impulse.position)
        inv_radius_sq = 1.0 / (impulse.radius * impulse.radius)

        for axis, buffer in enumerate(state.velocity_buffers):
            if impulse.magnitude[axis] == 0.0:
                continue
            spec = state.spec(velocity_id(axis))
            stagger = spec.stagger_axis
            self.ctx.dispatch(
                "forces",
                add_gaussian,
                buffer.get_input(),
                position,
                impulse.magnitude[axis],
                inv_radius_sq,
                stagger,
                stagger >= 0 and spec.boundary == BoundaryCondition.NO_SLIP,
                reads=(buffer.input_label,),
                writes=(buffer.input_label,),
            )

        if not params.velocity_only and impulse.ink_amount != 0.0:
            ink = state.ink_density
            self.ctx.dispatch(
                "forces",
                add_gaussian,
                ink.get_input(),
                position,
                impulse.ink_amount * params.dt,
                inv_radius_sq,
                -1,
                False,
                reads=(ink.input_label,),
                writes=(ink.input_label,),
            )
