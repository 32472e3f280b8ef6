"""
Velocity divergence.

Staggered (MAC) grid, velocity axis a stored on the low face of each cell:

    div[I] = sum_a (v_a[I + e_a] - v_a[I]) / dx

where the face beyond the far wall reads as zero. Collocated grid:

    div[I] = sum_a (v_a[I + e_a] - v_a[I - e_a]) / (2 dx)

with no-slip ghost values outside the domain.
"""

import taichi as ti

from fluidsim.core.dtypes import DTYPE
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields.state import FieldId, velocity_id
from fluidsim.kernels.protocol import StepParams
from fluidsim.kernels.sampling import NO_SLIP, ZERO, fetch


@ti.kernel
def compute_divergence(
    vx: ti.template(),
    vy: ti.template(),
    vz: ti.template(),
    div: ti.template(),
    inv_dx: DTYPE,
    staggered: ti.template(),
):
    """Write the divergence of (vx, vy[, vz]) into div."""
    dim = ti.static(len(div.shape))
    for I in ti.grouped(div):
        total = ti.cast(0.0, DTYPE)
        for a in ti.static(range(dim)):
            v = ti.static((vx, vy, vz)[a])
            e = ti.Vector.unit(dim, a, ti.i32)
            if ti.static(staggered):
                total += fetch(v, I + e, ZERO) - v[I]
            else:
                total += 0.5 * (fetch(v, I + e, NO_SLIP) - fetch(v, I - e, NO_SLIP))
        div[I] = total * inv_dx


def _velocity_args(state):
    velocity = state.velocity_buffers
    fields = [buf.get_input() for buf in velocity]
    if len(fields) == 2:
        fields.append(fields[0])
    labels = tuple(buf.input_label for buf in velocity)
    return fields, labels


class DivergenceStep:
    """Computes the velocity divergence into the divergence field.

    Implements GridOperator protocol.
    """

    target = FieldId.DIVERGENCE

    def __init__(self, ctx, geometry: GridGeometry):
        self.ctx = ctx
        self.geometry = geometry

    @property
    def fields_read(self) -> set[FieldId]:
        return {velocity_id(a) for a in range(self.geometry.dim)}

    @property
    def fields_written(self) -> set[FieldId]:
        return {self.target}

    def compute(self, state, params: StepParams | None = None) -> None:
        fields, labels = _velocity_args(state)
        target_name = self.target.name.lower()
        self.ctx.dispatch(
            target_name,
            compute_divergence,
            *fields,
            state.field(self.target),
            1.0 / state.geometry.dx,
            1 if state.geometry.staggered else 0,
            reads=labels,
            writes=(target_name,),
        )


class DivergenceCheckStep(DivergenceStep):
    """Recomputes the divergence after projection into divergence_check.

    Implements GridOperator protocol.
    """

    target = FieldId.DIVERGENCE_CHECK
