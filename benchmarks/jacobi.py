"""
Benchmark Jacobi sweep throughput.

The pressure solve dominates a frame: this measures sweeps per second of
the pressure relaxation alone at several grid sizes.

Usage:
    python -m benchmarks.run jacobi
"""

import time
from dataclasses import dataclass

import numpy as np
import taichi as ti

from benchmarks.harness import Benchmark
from fluidsim.context import ComputeContext
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields.state import SimulationState
from fluidsim.kernels import PressureStep, StepParams


@dataclass
class SweepMetrics:
    grid_size: int
    n_sweeps: int
    wall_time_s: float

    @property
    def sweeps_per_second(self) -> float:
        return self.n_sweeps / self.wall_time_s

    @property
    def bandwidth_gb_s(self) -> float:
        # 2*dim + 1 neighbour/source reads and one write of 4 bytes per cell
        bytes_per_cell = 4 * 6
        return bytes_per_cell * self.grid_size**2 * self.n_sweeps / self.wall_time_s / 1e9


class JacobiBenchmark(Benchmark):
    """Pressure relaxation sweeps per second."""

    sizes = [256, 512, 1024]

    def run(self, n_sweeps: int = 200) -> list[SweepMetrics]:
        self.print_header("JACOBI BENCHMARK")
        results = []
        for n in self.sizes:
            geometry = GridGeometry((n, n))
            state = SimulationState(geometry)
            rng = np.random.default_rng(42)
            state.divergence.from_numpy(rng.normal(size=(n, n)).astype(np.float32))
            step = PressureStep(ComputeContext(), geometry)

            step.compute(state, StepParams(iterations=10))
            ti.sync()
            start = time.perf_counter()
            step.compute(state, StepParams(iterations=n_sweeps))
            ti.sync()
            elapsed = time.perf_counter() - start

            metrics = SweepMetrics(grid_size=n, n_sweeps=n_sweeps, wall_time_s=elapsed)
            print(f"  {n}x{n}: {metrics.sweeps_per_second:.0f} sweeps/s, "
                  f"~{metrics.bandwidth_gb_s:.1f} GB/s")
            results.append(metrics)
        self.print_footer()
        self.teardown()
        return results
