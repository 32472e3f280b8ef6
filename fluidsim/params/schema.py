"""Parameter schema with validation. Units: grid cells, seconds, kg/dm³."""

from dataclasses import dataclass, field, asdict, fields
from typing import Any


class ValidationError(ValueError):
    """Parameter validation failed."""
    pass


def _positive(value: float, name: str) -> None:
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")


def _non_negative(value: float, name: str) -> None:
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")


def _as_tuple(obj: Any, name: str, cast: type) -> None:
    """Normalize a list-valued attribute of a frozen dataclass to a tuple."""
    object.__setattr__(obj, name, tuple(cast(v) for v in getattr(obj, name)))


@dataclass(frozen=True)
class GridParams:
    """Grid: size (cells per axis), dx (cell size [m]), staggered (MAC layout)."""
    size: tuple[int, ...] = (128, 128)
    dx: float = 0.8
    staggered: bool = True

    def __post_init__(self) -> None:
        _as_tuple(self, "size", int)
        if len(self.size) not in (2, 3):
            raise ValidationError(f"size must have 2 or 3 entries, got {len(self.size)}")
        for n in self.size:
            if n < 3:
                raise ValidationError(f"size entries must be >= 3, got {self.size}")
        _positive(self.dx, "dx")

    @property
    def dim(self) -> int:
        return len(self.size)


@dataclass(frozen=True)
class PhysicsParams:
    """Physics: density [kg/dm³], viscosity [m²/s], exterior_velocity [m/s]."""
    density: float = 1.0
    viscosity: float = 0.0025
    exterior_velocity: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        _as_tuple(self, "exterior_velocity", float)
        _positive(self.density, "density")
        _non_negative(self.viscosity, "viscosity")


@dataclass(frozen=True)
class SolverParams:
    """Solver: Jacobi sweeps per frame, pressure warm start, post-projection check."""
    diffusion_iterations: int = 100
    pressure_iterations: int = 100
    reuse_pressure: bool = False
    verify_divergence: bool = True

    def __post_init__(self) -> None:
        _positive(self.diffusion_iterations, "diffusion_iterations")
        _positive(self.pressure_iterations, "pressure_iterations")


@dataclass(frozen=True)
class StageParams:
    """Which pipeline stages run each frame."""
    advection: bool = True
    diffusion: bool = True
    divergence: bool = True
    pressure: bool = True
    projection: bool = True
    boundaries: bool = True


@dataclass(frozen=True)
class ImpulseParams:
    """Impulse: radius [cells], ink_amount [1/s], force_scale [m/s]."""
    radius: float = 8.0
    ink_amount: float = 7.0
    force_scale: float = 5.0

    def __post_init__(self) -> None:
        _positive(self.radius, "radius")
        _non_negative(self.ink_amount, "ink_amount")


_GROUPS = {
    "grid": GridParams,
    "physics": PhysicsParams,
    "solver": SolverParams,
    "stages": StageParams,
    "impulse": ImpulseParams,
}


def _group_dict(params: Any) -> dict[str, Any]:
    data = asdict(params)
    return {k: list(v) if isinstance(v, tuple) else v for k, v in data.items()}


@dataclass(frozen=True)
class SimulationConfig:
    """Complete simulation configuration."""

    grid: GridParams = field(default_factory=GridParams)
    physics: PhysicsParams = field(default_factory=PhysicsParams)
    solver: SolverParams = field(default_factory=SolverParams)
    stages: StageParams = field(default_factory=StageParams)
    impulse: ImpulseParams = field(default_factory=ImpulseParams)

    def __post_init__(self) -> None:
        ext = self.physics.exterior_velocity
        if ext and len(ext) != self.grid.dim:
            raise ValidationError(
                f"exterior_velocity needs {self.grid.dim} entries, got {len(ext)}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested dictionary of plain YAML types."""
        return {f.name: _group_dict(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimulationConfig":
        """Create from nested dictionary.

        Raises:
            ValidationError: On unknown groups or keys
        """
        kwargs = {}
        for key, values in data.items():
            if key not in _GROUPS:
                raise ValidationError(f"Unknown parameter group: {key}")
            try:
                kwargs[key] = _GROUPS[key](**(values or {}))
            except TypeError as exc:
                raise ValidationError(f"Invalid '{key}' parameters: {exc}") from exc
        return cls(**kwargs)

    def with_updates(self, **kwargs: Any) -> "SimulationConfig":
        """Create new config with updates."""
        current = self.to_dict()
        for key, value in kwargs.items():
            if key not in current:
                raise ValidationError(f"Unknown parameter group: {key}")
            if isinstance(value, dict):
                current[key].update(value)
            else:
                current[key] = _group_dict(value)
        return self.from_dict(current)

    # Convenience accessors
    @property
    def n_dim(self) -> int:
        return self.grid.dim

    @property
    def dx(self) -> float:
        return self.grid.dx
