"""
Pressure projection.

Subtracts the pressure gradient from every velocity axis, in place:

    staggered:   v_a[I] -= (p[I] - p[I - e_a]) / (dx * rho)
    collocated:  v_a[I] -= (p[I + e_a] - p[I - e_a]) / (2 dx * rho)

Pressure ghost cells are Neumann, so wall faces of a staggered grid are
left unchanged. With rho = 1 both reduce to the plain v -= grad p update.

On the collocated grid the central-difference divergence of this update
does not match the 5-point Laplacian of the pressure solve, so a
checkerboard residual survives projection.
"""

import taichi as ti

from fluidsim.core.dtypes import DTYPE
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields.state import FieldId, velocity_id
from fluidsim.kernels.protocol import StepParams
from fluidsim.kernels.sampling import NEUMANN, fetch


@ti.kernel
def subtract_gradient(
    v: ti.template(),
    p: ti.template(),
    scale: DTYPE,
    axis: ti.template(),
    staggered: ti.template(),
):
    """v -= scale * (one-sided or central) pressure difference along axis."""
    dim = ti.static(len(v.shape))
    for I in ti.grouped(v):
        e = ti.Vector.unit(dim, axis, ti.i32)
        grad = ti.cast(0.0, DTYPE)
        if ti.static(staggered):
            grad = p[I] - fetch(p, I - e, NEUMANN)
        else:
            grad = 0.5 * (fetch(p, I + e, NEUMANN) - fetch(p, I - e, NEUMANN))
        v[I] -= scale * grad


class ProjectionStep:
    """Makes velocity divergence free using the solved pressure.

    Implements GridOperator protocol.
    """

    def __init__(self, ctx, geometry: GridGeometry):
        self.ctx = ctx
        self.geometry = geometry

    @property
    def fields_read(self) -> set[FieldId]:
        return self.fields_written | {FieldId.PRESSURE}

    @property
    def fields_written(self) -> set[FieldId]:
        return {velocity_id(a) for a in range(self.geometry.dim)}

    def compute(self, state, params: StepParams | None = None) -> None:
        geometry = state.geometry
        pressure = state.pressure
        scale = 1.0 / (geometry.dx * state.physics.density)
        staggered = 1 if geometry.staggered else 0

        for axis, buffer in enumerate(state.velocity_buffers):
            self.ctx.dispatch(
                "projection",
                subtract_gradient,
                buffer.get_input(),
                pressure.get_input(),
                scale,
                axis,
                staggered,
                reads=(buffer.input_label, pressure.input_label),
                writes=(buffer.input_label,),
            )
