"""
Operator protocol definitions for swappable stage implementations.

Every pipeline stage is a grid operator: an object constructed with a
compute context and grid geometry that dispatches one or more kernels per
call. The protocol lets tests and benchmarks substitute recording or
reference operators without changing the pipeline driver.

Each operator has:
- compute() method: Run the stage once on a simulation state
- fields_read property: Fields read by this operator (for dependency tracking)
- fields_written property: Fields written by this operator
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Protocol, runtime_checkable


class SolverStep(Enum):
    """Operators the pipeline can run."""

    ADVECTION = auto()
    DIFFUSION = auto()
    FORCES = auto()
    DIVERGENCE = auto()
    PRESSURE = auto()
    PROJECTION = auto()
    SCROLL = auto()
    BOUNDARIES = auto()
    DIVERGENCE_CHECK = auto()


@dataclass(frozen=True)
class StepParams:
    """Per-call parameters handed to an operator.

    Attributes:
        dt: Timestep [s]
        iterations: Relaxation sweeps (diffusion and pressure only)
        warm_start: Reuse last frame's pressure as the initial guess
        impulse: Force to apply (forces only)
        velocity_only: If True, forces leave ink untouched
        offset: Integer shift per axis (scroll only)
    """

    dt: float = 0.0
    iterations: int = 0
    warm_start: bool = False
    impulse: Any = None
    velocity_only: bool = False
    offset: tuple[int, ...] = ()


@runtime_checkable
class GridOperator(Protocol):
    """Protocol for pipeline stage operators.

    Implementations are constructed as ``cls(ctx, geometry)`` and dispatch
    every kernel through ``ctx``.
    """

    def compute(self, state: Any, params: StepParams) -> None:
        """Run the operator once.

        Args:
            state: SimulationState to read and update
            params: Per-call parameters
        """
        ...

    @property
    def fields_read(self) -> set[Any]:
        """Fields read by this operator (FieldId values)."""
        ...

    @property
    def fields_written(self) -> set[Any]:
        """Fields written by this operator (FieldId values)."""
        ...
