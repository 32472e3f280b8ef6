"""Pipeline driver: one frame of the incompressible fluid solver.

A frame runs, in order,

    [boundary synthesis] -> START hooks
    advection   -> AFTER_ADVECTION hooks
    diffusion   -> AFTER_DIFFUSION hooks
    divergence  -> AFTER_DIVERGENCE hooks
    pressure    -> AFTER_PRESSURE hooks
    projection  -> [divergence check] -> AFTER_PROJECTION hooks

with a barrier before every stage. Any stage can be switched off; its
checkpoint hooks still run. Forces and grid scrolling are applied by the
caller between frames.
"""

from typing import Any

from fluidsim.context import ComputeContext
from fluidsim.core.geometry import GridGeometry
from fluidsim.hooks import Hook, HookRegistry, HookStage
from fluidsim.kernels import OperatorRegistry, SolverStep, StepParams, get_registry
from fluidsim.kernels.forces import Impulse
from fluidsim.params.schema import SimulationConfig, SolverParams, StageParams


class Solver:
    """Runs the per-frame stage pipeline on a SimulationState.

    Attributes:
        geometry: Grid the operators were built for
        ctx: ComputeContext every dispatch goes through
        hooks: Registered stage hooks
        frame: Number of completed advance() calls
        diffusion_iterations: Jacobi sweeps of the diffusion solve
        pressure_iterations: Jacobi sweeps of the pressure solve
        reuse_pressure: Warm-start the pressure solve from last frame
        verify_divergence: Recompute divergence after projection
        run_advection, run_diffusion, run_divergence, run_pressure,
        run_projection, run_boundaries: Stage toggles

    Example:
        solver = Solver((128, 128))
        state = SimulationState(solver.geometry)
        solver.apply_forces(state, Impulse.centered(solver.geometry, 0, 100.0, 8.0))
        solver.advance(state, 1 / 60)
    """

    def __init__(
        self,
        grid: GridGeometry | tuple[int, ...],
        ctx: ComputeContext | None = None,
        registry: OperatorRegistry | None = None,
        params: SolverParams | None = None,
        stages: StageParams | None = None,
    ):
        self.geometry = grid if isinstance(grid, GridGeometry) else GridGeometry(tuple(grid))
        self.ctx = ctx if ctx is not None else ComputeContext()
        self.registry = registry if registry is not None else get_registry()
        self.hooks = HookRegistry()
        self.frame = 0

        params = params or SolverParams()
        stages = stages or StageParams()
        self.diffusion_iterations = params.diffusion_iterations
        self.pressure_iterations = params.pressure_iterations
        self.reuse_pressure = params.reuse_pressure
        self.verify_divergence = params.verify_divergence

        self.run_advection = stages.advection
        self.run_diffusion = stages.diffusion
        self.run_divergence = stages.divergence
        self.run_pressure = stages.pressure
        self.run_projection = stages.projection
        self.run_boundaries = stages.boundaries

        self.operators = {
            step: self.registry.create(step, self.ctx, self.geometry)
            for step in SolverStep
        }

    @classmethod
    def from_config(
        cls,
        config: SimulationConfig,
        ctx: ComputeContext | None = None,
        registry: OperatorRegistry | None = None,
    ) -> "Solver":
        """Build a solver from a SimulationConfig."""
        geometry = GridGeometry(
            size=config.grid.size,
            dx=config.grid.dx,
            staggered=config.grid.staggered,
        )
        return cls(geometry, ctx, registry, config.solver, config.stages)

    def _check_state(self, state: Any) -> None:
        if tuple(state.shape) != self.geometry.shape:
            raise ValueError(
                f"State grid {tuple(state.shape)} does not match solver grid "
                f"{self.geometry.shape}"
            )

    def _run(self, step: SolverStep, state: Any, params: StepParams) -> None:
        self.ctx.barrier()
        self.operators[step].compute(state, params)

    def advance(self, state: Any, dt: float) -> None:
        """Advance ``state`` by one frame of length ``dt``.

        Raises:
            ValueError: If dt is not positive or the state grid differs
        """
        if dt <= 0:
            raise ValueError(f"dt must be > 0, got {dt}")
        self._check_state(state)

        if self.run_boundaries:
            self._run(SolverStep.BOUNDARIES, state, StepParams(dt=dt))
        self.hooks.fire(HookStage.START, state, dt)

        pipeline = (
            (self.run_advection, SolverStep.ADVECTION, HookStage.AFTER_ADVECTION,
             StepParams(dt=dt)),
            (self.run_diffusion, SolverStep.DIFFUSION, HookStage.AFTER_DIFFUSION,
             StepParams(dt=dt, iterations=self.diffusion_iterations)),
            (self.run_divergence, SolverStep.DIVERGENCE, HookStage.AFTER_DIVERGENCE,
             StepParams(dt=dt)),
            (self.run_pressure, SolverStep.PRESSURE, HookStage.AFTER_PRESSURE,
             StepParams(dt=dt, iterations=self.pressure_iterations,
                        warm_start=self.reuse_pressure)),
        )
        for enabled, step, checkpoint, params in pipeline:
            if enabled:
                self._run(step, state, params)
            self.hooks.fire(checkpoint, state, dt)

        if self.run_projection:
            self._run(SolverStep.PROJECTION, state, StepParams(dt=dt))
        if self.verify_divergence:
            self._run(SolverStep.DIVERGENCE_CHECK, state, StepParams(dt=dt))
        self.hooks.fire(HookStage.AFTER_PROJECTION, state, dt)

        self.frame += 1

    def apply_forces(
        self,
        state: Any,
        impulse: Impulse,
        velocity_only: bool = False,
        dt: float = 1.0 / 60.0,
    ) -> None:
        """Add a gaussian impulse to velocity (and ink unless velocity_only).

        Raises:
            ValueError: If dt is not positive or the impulse does not fit the grid
        """
        if dt <= 0:
            raise ValueError(f"dt must be > 0, got {dt}")
        self._check_state(state)
        self._run(
            SolverStep.FORCES,
            state,
            StepParams(dt=dt, impulse=impulse, velocity_only=velocity_only),
        )

    def scroll_grid(self, state: Any, offset: tuple[int, ...]) -> None:
        """Circularly shift every float field by ``offset`` cells.

        Raises:
            ValueError: If offset has the wrong number of entries
        """
        self._check_state(state)
        self._run(SolverStep.SCROLL, state, StepParams(offset=tuple(offset)))

    def synthesize_boundaries(self, state: Any) -> None:
        """Rebuild the cell classification from the exterior velocity."""
        self._check_state(state)
        self._run(SolverStep.BOUNDARIES, state, StepParams())

    # Hooks

    def register_hook(self, hook: Hook, stage: HookStage) -> int:
        return self.hooks.register(hook, stage)

    def modify_hook_stage(self, hook_id: int, stage: HookStage) -> bool:
        return self.hooks.modify_stage(hook_id, stage)

    def unregister_hook(self, hook_id: int) -> None:
        self.hooks.unregister(hook_id)
