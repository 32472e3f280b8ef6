"""
Pressure Poisson solve.

Relaxes laplacian(p) = rho * div with Jacobi sweeps, using

    alpha = -dx^2 * rho,   beta = 2 * dim,   Neumann ghost cells

so that a converged pressure makes the projection stage remove the
divergence exactly. A cold start clears the pressure buffer first; a warm
start relaxes from last frame's pressure.
"""

from fluidsim.core.boundary import BoundaryCondition
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields.state import FieldId
from fluidsim.kernels.jacobi import JacobiCoefficients, JacobiIterator
from fluidsim.kernels.protocol import StepParams


def pressure_coefficients(dim: int, dx: float, density: float) -> JacobiCoefficients:
    """Jacobi uniforms of the pressure equation."""
    return JacobiCoefficients(
        alpha=-dx * dx * density,
        beta=2.0 * dim,
        boundary=BoundaryCondition.NEUMANN,
    )


class PressureStep:
    """Solves for pressure from the divergence field.

    Implements GridOperator protocol.
    """

    def __init__(self, ctx, geometry: GridGeometry):
        self.ctx = ctx
        self.geometry = geometry
        self.iterator = JacobiIterator("pressure", geometry.shape)

    @property
    def fields_read(self) -> set[FieldId]:
        return {FieldId.DIVERGENCE, FieldId.PRESSURE}

    @property
    def fields_written(self) -> set[FieldId]:
        return {FieldId.PRESSURE}

    def compute(self, state, params: StepParams) -> None:
        pressure = state.pressure
        if not params.warm_start:
            pressure.clear()

        coefficients = pressure_coefficients(
            state.dim, state.geometry.dx, state.physics.density
        )
        self.iterator.init(
            state.divergence, pressure, params.iterations, source_label="divergence"
        )
        while self.iterator.remaining:
            self.iterator.step(self.ctx, coefficients)
            self.ctx.barrier()
        self.iterator.reset()
        pressure.swap()
