"""
Jacobi relaxation for the implicit diffusion and pressure Poisson solves.

One sweep computes, for every cell,

    x_out[I] = (sum of the 2*dim neighbours of x_in around I + alpha * source[I]) / beta

with out-of-domain neighbours given by the ghost-cell rule. A no-slip
staggered field is held at zero on both wall faces of its stagger axis.
A relaxation runs a fixed number of sweeps over three grids: the target
buffer's input (read by the first sweep only), its output, and a scratch
working grid. Sweeps alternate between output and scratch so that the
last one always lands in the output and no sweep reads the grid it writes.

Usage:
    it = JacobiIterator("pressure", geometry.shape)
    it.init(state.divergence, state.pressure, iterations=100)
    while it.remaining:
        it.step(ctx, coefficients)
        ctx.barrier()
    it.reset()
    state.pressure.swap()
"""

from dataclasses import dataclass
from typing import Any

import taichi as ti

from fluidsim.core.boundary import BoundaryCondition
from fluidsim.core.dtypes import DTYPE
from fluidsim.fields.buffer import FieldBuffer
from fluidsim.kernels.sampling import fetch_face


@dataclass(frozen=True)
class JacobiCoefficients:
    """Uniforms of one relaxation.

    Attributes:
        alpha: Weight of the source term
        beta: Divisor of the neighbour sum
        boundary: Ghost-cell condition of the relaxed field
        stagger: Stagger axis of the relaxed field (None for cell-centred)
    """

    alpha: float
    beta: float
    boundary: BoundaryCondition
    stagger: int | None = None

    def __post_init__(self):
        if self.beta == 0:
            raise ValueError("beta must be non-zero")

    @property
    def pin_axis(self) -> int:
        """Axis whose wall faces are held at zero, -1 if none."""
        if self.stagger is not None and self.boundary == BoundaryCondition.NO_SLIP:
            return self.stagger
        return -1


@ti.kernel
def jacobi_sweep(
    x_in: ti.template(),
    source: ti.template(),
    x_out: ti.template(),
    alpha: DTYPE,
    inv_beta: DTYPE,
    bc: ti.template(),
    pin_axis: ti.template(),
):
    """One Jacobi sweep over every cell of x_out."""
    dim = ti.static(len(x_out.shape))
    for I in ti.grouped(x_out):
        total = ti.cast(0.0, DTYPE)
        for d in ti.static(range(dim)):
            e = ti.Vector.unit(dim, d, ti.i32)
            total += fetch_face(x_in, I + e, bc, pin_axis)
            total += fetch_face(x_in, I - e, bc, pin_axis)
        value = (total + alpha * source[I]) * inv_beta
        if ti.static(pin_axis >= 0):
            if I[pin_axis] == 0:
                value = 0.0
        x_out[I] = value


class JacobiIterator:
    """Runs a fixed number of Jacobi sweeps into a FieldBuffer's output.

    The iterator owns its scratch working grid. Between init() and reset()
    it is bound to one source grid and one target buffer; calling step()
    more times than requested, or reset() before every sweep ran, is a
    programming error caught by assertions.

    Attributes:
        label: Name used for the working grid and in traces
    """

    def __init__(self, label: str, shape: tuple[int, ...], dtype: Any = DTYPE):
        self.label = label
        self._working_label = f"{label} working"
        self._working = ti.field(dtype=dtype, shape=tuple(shape), name=self._working_label)
        self._source = None
        self._source_label = ""
        self._field: FieldBuffer | None = None
        self._iterations = 0
        self._completed = 0
        self._write_to_working = False

    @property
    def working_field(self) -> Any:
        """Scratch grid alternated with the target's output."""
        return self._working

    @property
    def active(self) -> bool:
        """True between init() and reset()."""
        return self._field is not None

    @property
    def remaining(self) -> int:
        """Sweeps still to run."""
        return self._iterations - self._completed

    def init(
        self,
        source: Any,
        field: FieldBuffer,
        iterations: int,
        source_label: str = "source",
    ) -> None:
        """Bind source and target and plan ``iterations`` sweeps.

        Args:
            source: Grid holding the right-hand side (read only)
            field: Buffer whose input is the initial guess; the result
                lands in its output
            iterations: Number of sweeps, must be positive
            source_label: Name of the source grid in traces
        """
        assert iterations > 0, f"{self.label}: iterations must be > 0, got {iterations}"
        assert not self.active, f"{self.label}: init() called twice without reset()"
        assert source is not field.get_output(), f"{self.label}: source aliases the output"
        self._source = source
        self._source_label = source_label
        self._field = field
        self._iterations = iterations
        self._completed = 0
        # The last sweep must write the output; writes alternate from there.
        self._write_to_working = iterations % 2 == 0

    def step(self, ctx: Any, coefficients: JacobiCoefficients) -> None:
        """Dispatch one sweep through ``ctx``.

        The caller issues the barrier between consecutive sweeps.
        """
        assert self.active, f"{self.label}: step() before init()"
        assert self.remaining > 0, f"{self.label}: no sweeps remaining"

        field = self._field
        if self._completed == 0:
            read, read_label = field.get_input(), field.input_label
        elif self._write_to_working:
            read, read_label = field.get_output(), field.output_label
        else:
            read, read_label = self._working, self._working_label

        if self._write_to_working:
            write, write_label = self._working, self._working_label
        else:
            write, write_label = field.get_output(), field.output_label

        ctx.dispatch(
            "jacobi",
            jacobi_sweep,
            read,
            self._source,
            write,
            coefficients.alpha,
            1.0 / coefficients.beta,
            coefficients.boundary.value,
            coefficients.pin_axis,
            reads=(read_label, self._source_label),
            writes=(write_label,),
        )

        self._completed += 1
        self._write_to_working = not self._write_to_working

    def reset(self) -> None:
        """Release the bound grids once every sweep has run."""
        assert self.active, f"{self.label}: reset() before init()"
        assert self.remaining == 0, (
            f"{self.label}: reset() with {self.remaining} sweeps remaining"
        )
        self._source = None
        self._source_label = ""
        self._field = None
        self._iterations = 0
        self._completed = 0
        self._write_to_working = False
