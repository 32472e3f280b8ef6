"""
Benchmark the full per-frame pipeline.

Protocol:
1. Warmup: a few frames (JIT compilation)
2. Measurement: n_frames frames, synchronised before and after
3. Grid sizes: 128², 256², 512² and a small 3D grid

Usage:
    python -m benchmarks.run frame_rate
"""

import time
from dataclasses import dataclass

import taichi as ti

from benchmarks.harness import Benchmark
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields.state import SimulationState
from fluidsim.kernels.forces import Impulse
from fluidsim.simulation import Solver


@dataclass
class FrameMetrics:
    size: tuple[int, ...]
    n_frames: int
    wall_time_s: float

    @property
    def n_cells(self) -> int:
        total = 1
        for n in self.size:
            total *= n
        return total

    @property
    def ms_per_frame(self) -> float:
        return 1000.0 * self.wall_time_s / self.n_frames

    @property
    def megacells_per_second(self) -> float:
        return self.n_cells * self.n_frames / self.wall_time_s / 1e6


class FrameRateBenchmark(Benchmark):
    """Milliseconds per advance() across grid sizes."""

    sizes = [(128, 128), (256, 256), (512, 512), (64, 64, 64)]

    def run(self, n_warmup: int = 5, n_frames: int = 50) -> list[FrameMetrics]:
        self.print_header("FRAME RATE BENCHMARK")
        results = [self._run_single(size, n_warmup, n_frames) for size in self.sizes]
        self._print_report(results)
        self.teardown()
        return results

    def _run_single(self, size: tuple[int, ...], n_warmup: int, n_frames: int) -> FrameMetrics:
        label = "x".join(str(n) for n in size)
        print(f"\nBenchmarking {label}...")

        geometry = GridGeometry(size, dx=0.8)
        state = SimulationState(geometry)
        solver = Solver(geometry)
        impulse = Impulse.centered(geometry, 0, 100.0, radius=size[0] / 16, ink_amount=7.0)
        dt = 1.0 / 60.0

        print("  Warming up JIT...", end=" ", flush=True)
        for _ in range(n_warmup):
            solver.apply_forces(state, impulse, dt=dt)
            solver.advance(state, dt)
        if self.profile:
            ti.profiler.clear_kernel_profiler_info()
        ti.sync()
        print("Done.")

        print(f"  Running {n_frames} frames...", end=" ", flush=True)
        start = time.perf_counter()
        for _ in range(n_frames):
            solver.advance(state, dt)
        ti.sync()
        elapsed = time.perf_counter() - start
        print("Done.")

        return FrameMetrics(size=size, n_frames=n_frames, wall_time_s=elapsed)

    def _print_report(self, results: list[FrameMetrics]):
        self.print_header("RESULTS")
        print(f"{'Grid':<14} {'Cells':<12} {'ms/frame':<12} {'Mcells/s':<10}")
        print("-" * 80)
        for r in results:
            label = "x".join(str(n) for n in r.size)
            print(f"{label:<14} {r.n_cells:<12} {r.ms_per_frame:<12.2f} {r.megacells_per_second:<10.1f}")
        self.print_footer()
