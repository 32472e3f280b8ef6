"""
Grid scroll: circular shift of every field by an integer cell offset.

    q_out[I] = q_in[(I - offset) mod n]

Double-buffered fields are shifted into their output and swapped.
Unbuffered float fields go through a scratch grid owned by the operator
and are copied back. The boundary classification depends only on the
domain edges and is left as is.
"""

import taichi as ti

from fluidsim.core.dtypes import DTYPE
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields.state import FieldId
from fluidsim.kernels.protocol import StepParams
from fluidsim.kernels.sampling import as_ivec3, ivec3
from fluidsim.kernels.utils import copy_field


@ti.kernel
def scroll_field(q_in: ti.template(), q_out: ti.template(), offset: ivec3):
    """Circularly shift q_in by offset into q_out."""
    dim = ti.static(len(q_out.shape))
    for I in ti.grouped(q_out):
        J = I
        for d in ti.static(range(dim)):
            J[d] = (I[d] - offset[d]) % q_out.shape[d]
        q_out[I] = q_in[J]


SCROLLED_UNBUFFERED = (FieldId.DIVERGENCE, FieldId.DIVERGENCE_CHECK)


class ScrollStep:
    """Shifts every float field of the state by an integer offset.

    Implements GridOperator protocol.
    """

    def __init__(self, ctx, geometry: GridGeometry):
        self.ctx = ctx
        self.geometry = geometry
        self._scratch = ti.field(dtype=DTYPE, shape=geometry.shape, name="scroll scratch")

    @property
    def fields_read(self) -> set[FieldId]:
        return self.fields_written

    @property
    def fields_written(self) -> set[FieldId]:
        return {
            fid for fid in FieldId
            if fid != FieldId.BOUNDARIES
            and not (fid == FieldId.VELOCITY_Z and self.geometry.dim == 2)
        }

    def compute(self, state, params: StepParams) -> None:
        offset = tuple(int(o) for o in params.offset)
        if len(offset) != state.dim:
            raise ValueError(
                f"offset needs {state.dim} entries, got {len(offset)}"
            )
        if all(o == 0 for o in offset):
            return
        shift = as_ivec3(offset)

        buffers = state.velocity_buffers + [state.pressure, state.ink_density]
        for buffer in buffers:
            self.ctx.dispatch(
                "scroll",
                scroll_field,
                buffer.get_input(),
                buffer.get_output(),
                shift,
                reads=(buffer.input_label,),
                writes=(buffer.output_label,),
            )

        for fid in SCROLLED_UNBUFFERED:
            name = fid.name.lower()
            field = state.field(fid)
            self.ctx.dispatch(
                "scroll",
                scroll_field,
                field,
                self._scratch,
                shift,
                reads=(name,),
                writes=("scroll scratch",),
            )
            self.ctx.barrier()
            self.ctx.dispatch(
                "copy",
                copy_field,
                self._scratch,
                field,
                reads=("scroll scratch",),
                writes=(name,),
            )

        for buffer in buffers:
            buffer.swap()
