"""Pytest fixtures and test utilities for fluidsim."""

import numpy as np
import pytest

from fluidsim.config import init_taichi
from fluidsim.context import ComputeContext
from fluidsim.core.geometry import GridGeometry, PhysicalProperties
from fluidsim.fields.state import SimulationState


@pytest.fixture(scope="session", autouse=True)
def taichi_init():
    """Initialize Taichi once per test session with CPU backend."""
    init_taichi(backend="cpu", debug=True)
    yield


@pytest.fixture
def ctx():
    """Compute context that records every dispatch."""
    return ComputeContext(trace=True)


@pytest.fixture
def state_factory():
    """Factory for simulation states of various sizes."""
    return make_state


def make_state(
    size=(16, 16),
    dx: float = 1.0,
    staggered: bool = True,
    density: float = 1.0,
    viscosity: float = 0.0,
    exterior_velocity=None,
) -> SimulationState:
    """Allocate a zeroed state."""
    geometry = GridGeometry(tuple(size), dx=dx, staggered=staggered)
    physics = PhysicalProperties(density=density, viscosity=viscosity)
    return SimulationState(geometry, physics, exterior_velocity)


@pytest.fixture
def smooth_bump():
    """Gaussian bump generator, zero on the outer two cells."""
    return make_smooth_bump


def make_smooth_bump(shape, amplitude: float = 1.0, width: float = 3.0, margin: int = 2):
    """Smooth bump centred in the grid, cut to zero near every edge."""
    axes = [np.arange(n, dtype=np.float64) + 0.5 - n / 2.0 for n in shape]
    grids = np.meshgrid(*axes, indexing="ij")
    r_sq = sum(g * g for g in grids)
    bump = amplitude * np.exp(-r_sq / (width * width))
    index = tuple(slice(margin, n - margin) for n in shape)
    out = np.zeros(shape, dtype=np.float32)
    out[index] = bump[index]
    return out


def interior(arr: np.ndarray, margin: int = 1) -> np.ndarray:
    """Slice of arr excluding ``margin`` cells at every edge."""
    return arr[tuple(slice(margin, n - margin) for n in arr.shape)]
