"""
Semi-Lagrangian advection of velocity and ink.

For every sample of an advected field the kernel traces the velocity back
over one timestep from the sample's grid-space position and resamples the
field's input view there by multilinear interpolation:

    q_out[I] = q_in(p_I - dt * v(p_I) / dx)

Every velocity component is interpolated at its own stagger. All advected
fields read the pre-advection velocity; buffers are swapped only after the
last field has been written.
"""

import taichi as ti

from fluidsim.core.boundary import BoundaryCondition
from fluidsim.core.dtypes import DTYPE
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields.state import FieldId, velocity_id
from fluidsim.kernels.protocol import StepParams
from fluidsim.kernels.sampling import sample_at, sample_position, velocity_at


@ti.kernel
def advect(
    q_in: ti.template(),
    q_out: ti.template(),
    vx: ti.template(),
    vy: ti.template(),
    vz: ti.template(),
    dt_over_dx: DTYPE,
    stagger: ti.template(),
    staggered: ti.template(),
    bc: ti.template(),
    pin_wall: ti.template(),
):
    """Backtrace every sample of q_out and resample q_in there."""
    for I in ti.grouped(q_out):
        p = sample_position(I, stagger)
        v = velocity_at(vx, vy, vz, p, staggered)
        value = sample_at(q_in, p - dt_over_dx * v, stagger, bc)
        if ti.static(pin_wall):
            if I[stagger] == 0:
                value = 0.0
        q_out[I] = value


class AdvectionStep:
    """Advects every velocity axis and the ink density.

    Implements GridOperator protocol.
    """

    def __init__(self, ctx, geometry: GridGeometry):
        self.ctx = ctx
        self.geometry = geometry

    @property
    def fields_read(self) -> set[FieldId]:
        ids = {velocity_id(a) for a in range(self.geometry.dim)}
        return ids | {FieldId.INK_DENSITY}

    @property
    def fields_written(self) -> set[FieldId]:
        return self.fields_read

    def compute(self, state, params: StepParams) -> None:
        geometry = state.geometry
        velocity = state.velocity_buffers
        vx, vy = velocity[0], velocity[1]
        vz = velocity[2] if geometry.dim == 3 else vx
        velocity_labels = tuple(buf.input_label for buf in velocity)
        staggered = 1 if geometry.staggered else 0
        dt_over_dx = params.dt / geometry.dx

        advected = list(state.advected_fields())
        for spec, buffer in advected:
            stagger = spec.stagger_axis
            pin_wall = stagger >= 0 and spec.boundary == BoundaryCondition.NO_SLIP
            self.ctx.dispatch(
                "advect",
                advect,
                buffer.get_input(),
                buffer.get_output(),
                vx.get_input(),
                vy.get_input(),
                vz.get_input(),
                dt_over_dx,
                stagger,
                staggered,
                spec.boundary.value,
                pin_wall,
                reads=tuple(dict.fromkeys((buffer.input_label,) + velocity_labels)),
                writes=(buffer.output_label,),
            )

        for _, buffer in advected:
            buffer.swap()
