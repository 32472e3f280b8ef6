"""
Implicit viscous diffusion of velocity.

Each velocity axis solves (I - nu * dt * laplacian) v_new = v with Jacobi
sweeps, using

    alpha = dx^2 / (nu * dt),   beta = 2 * dim + alpha,   no-slip ghost cells

The axes relax together: sweep k of every axis is dispatched before one
shared barrier. With zero viscosity diffusion is the identity and nothing
is dispatched.
"""

from fluidsim.core.boundary import BoundaryCondition
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields.state import FieldId, velocity_id
from fluidsim.kernels.jacobi import JacobiCoefficients, JacobiIterator
from fluidsim.kernels.protocol import StepParams


def diffusion_coefficients(
    dim: int, dx: float, viscosity: float, dt: float, stagger: int | None
) -> JacobiCoefficients:
    """Jacobi uniforms of the implicit diffusion equation."""
    alpha = dx * dx / (viscosity * dt)
    return JacobiCoefficients(
        alpha=alpha,
        beta=2.0 * dim + alpha,
        boundary=BoundaryCondition.NO_SLIP,
        stagger=stagger,
    )


class DiffusionStep:
    """Diffuses every velocity axis.

    Implements GridOperator protocol.
    """

    def __init__(self, ctx, geometry: GridGeometry):
        self.ctx = ctx
        self.geometry = geometry
        self.iterators = [
            JacobiIterator(f"velocity_{'xyz'[axis]} diffusion", geometry.shape)
            for axis in range(geometry.dim)
        ]

    @property
    def fields_read(self) -> set[FieldId]:
        return self.fields_written

    @property
    def fields_written(self) -> set[FieldId]:
        return {velocity_id(a) for a in range(self.geometry.dim)}

    def compute(self, state, params: StepParams) -> None:
        viscosity = state.physics.viscosity
        if viscosity == 0.0:
            return

        geometry = state.geometry
        buffers = state.velocity_buffers
        coefficients = []
        for axis, buffer in enumerate(buffers):
            spec = state.spec(velocity_id(axis))
            coefficients.append(
                diffusion_coefficients(
                    geometry.dim, geometry.dx, viscosity, params.dt, spec.stagger
                )
            )
            self.iterators[axis].init(
                buffer.get_input(), buffer, params.iterations,
                source_label=buffer.input_label,
            )

        for _ in range(params.iterations):
            for iterator, coeff in zip(self.iterators, coefficients):
                iterator.step(self.ctx, coeff)
            self.ctx.barrier()

        for iterator, buffer in zip(self.iterators, buffers):
            iterator.reset()
            buffer.swap()
