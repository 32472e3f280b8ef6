"""
Taichi kernels and grid operators for the fluid pipeline.

This module provides one operator per pipeline stage and a registry for
substituting implementations (recording operators in tests, alternative
kernels in benchmarks) without changing the pipeline driver.

Usage:
    from fluidsim.kernels import SolverStep, get_registry

    registry = get_registry()
    pressure = registry.create(SolverStep.PRESSURE, ctx, geometry)
    pressure.compute(state, StepParams(iterations=100))

Submodules:
- protocol: Operator interface, per-call parameters, stage names
- sampling: Ghost-cell reads and multilinear interpolation
- jacobi: Relaxation solver shared by diffusion and pressure
- advection, diffusion, forces, divergence, pressure, projection,
  scroll, boundaries: Stage operators
"""

from typing import Any, Type

from fluidsim.kernels.advection import AdvectionStep
from fluidsim.kernels.boundaries import BoundaryStep
from fluidsim.kernels.diffusion import DiffusionStep
from fluidsim.kernels.divergence import DivergenceCheckStep, DivergenceStep
from fluidsim.kernels.forces import ForcesStep, Impulse
from fluidsim.kernels.jacobi import JacobiCoefficients, JacobiIterator
from fluidsim.kernels.pressure import PressureStep
from fluidsim.kernels.projection import ProjectionStep
from fluidsim.kernels.protocol import GridOperator, SolverStep, StepParams
from fluidsim.kernels.scroll import ScrollStep


class OperatorRegistry:
    """Registry mapping pipeline stages to operator implementations.

    Example:
        registry = OperatorRegistry()

        # Instantiate the default implementation
        advection = registry.create(SolverStep.ADVECTION, ctx, geometry)

        # Substitute an implementation
        registry.register(SolverStep.ADVECTION, RecordingAdvection)
    """

    def __init__(self):
        """Initialize registry with the Taichi implementations."""
        self._operators: dict[SolverStep, Type[GridOperator]] = {
            SolverStep.ADVECTION: AdvectionStep,
            SolverStep.DIFFUSION: DiffusionStep,
            SolverStep.FORCES: ForcesStep,
            SolverStep.DIVERGENCE: DivergenceStep,
            SolverStep.PRESSURE: PressureStep,
            SolverStep.PROJECTION: ProjectionStep,
            SolverStep.SCROLL: ScrollStep,
            SolverStep.BOUNDARIES: BoundaryStep,
            SolverStep.DIVERGENCE_CHECK: DivergenceCheckStep,
        }

    def create(self, step: SolverStep, ctx: Any, geometry: Any) -> GridOperator:
        """Instantiate the operator registered for ``step``.

        Args:
            step: Pipeline stage
            ctx: ComputeContext the operator dispatches through
            geometry: Grid the operator will run on

        Returns:
            Operator instance implementing GridOperator protocol

        Raises:
            KeyError: If no operator is registered for step
        """
        if step not in self._operators:
            raise KeyError(
                f"No operator registered for {step}. "
                f"Available: {list(self._operators.keys())}"
            )
        return self._operators[step](ctx, geometry)

    def register(self, step: SolverStep, operator_cls: Type[GridOperator]) -> None:
        """Register an operator implementation for a stage.

        Args:
            step: Stage to register under
            operator_cls: Class constructed as ``operator_cls(ctx, geometry)``
        """
        self._operators[step] = operator_cls

    def get(self, step: SolverStep) -> Type[GridOperator]:
        """Operator class registered for ``step``."""
        if step not in self._operators:
            raise KeyError(f"No operator registered for {step}")
        return self._operators[step]

    def available_steps(self) -> list[SolverStep]:
        """Stages with a registered operator."""
        return list(self._operators.keys())


# Default registry instance for convenience
_default_registry = OperatorRegistry()


def get_registry() -> OperatorRegistry:
    """Get the default operator registry.

    Returns:
        The global OperatorRegistry instance
    """
    return _default_registry


__all__ = [
    # Registry
    "OperatorRegistry",
    "get_registry",
    # Protocol types
    "GridOperator",
    "SolverStep",
    "StepParams",
    # Relaxation
    "JacobiCoefficients",
    "JacobiIterator",
    # Operators
    "AdvectionStep",
    "BoundaryStep",
    "DiffusionStep",
    "DivergenceCheckStep",
    "DivergenceStep",
    "ForcesStep",
    "Impulse",
    "PressureStep",
    "ProjectionStep",
    "ScrollStep",
]
