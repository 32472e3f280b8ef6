"""Compute context: the handle every operator dispatches through.

Operators never call Taichi kernels directly. They hand the kernel and its
arguments to a ComputeContext, naming the fields the dispatch reads and
writes. The context runs the kernel and, when tracing, records the dispatch
so tests can check stage ordering and aliasing without inspecting kernels.

Usage:
    ctx = ComputeContext(trace=True)
    ctx.dispatch("divergence", divergence_kernel, vx, vy, div, dx,
                 reads=("velocity_x", "velocity_y"), writes=("divergence",))
    ctx.barrier()
"""

from dataclasses import dataclass
from typing import Any, Callable

import taichi as ti

BARRIER = "barrier"


@dataclass(frozen=True)
class DispatchRecord:
    """One traced dispatch or barrier.

    Attributes:
        name: Dispatch label, or BARRIER
        reads: Labels of the grids bound for reading
        writes: Labels of the grids bound for writing
    """

    name: str
    reads: tuple[str, ...] = ()
    writes: tuple[str, ...] = ()

    @property
    def is_barrier(self) -> bool:
        return self.name == BARRIER


class ComputeContext:
    """Dispatches Taichi kernels and issues visibility barriers.

    Attributes:
        trace: If True, every dispatch and barrier is recorded
        sync: If True, barrier() blocks until outstanding kernels finish
    """

    def __init__(self, trace: bool = False, sync: bool = True):
        self.trace_enabled = trace
        self.sync = sync
        self._trace: list[DispatchRecord] = []
        self.dispatch_count = 0
        self.barrier_count = 0

    def dispatch(
        self,
        name: str,
        kernel: Callable[..., Any],
        *args: Any,
        reads: tuple[str, ...] = (),
        writes: tuple[str, ...] = (),
    ) -> Any:
        """Run ``kernel(*args)`` over the grid.

        Args:
            name: Label for the trace
            kernel: Taichi kernel (or any callable)
            *args: Field bindings and uniforms, passed through unchanged
            reads: Labels of the fields the kernel reads
            writes: Labels of the fields the kernel writes

        Returns:
            Whatever the kernel returns
        """
        self.dispatch_count += 1
        if self.trace_enabled:
            self._trace.append(DispatchRecord(name, tuple(reads), tuple(writes)))
        return kernel(*args)

    def barrier(self) -> None:
        """Make every write of earlier dispatches visible to later ones."""
        self.barrier_count += 1
        if self.trace_enabled:
            self._trace.append(DispatchRecord(BARRIER))
        if self.sync:
            ti.sync()

    @property
    def trace(self) -> list[DispatchRecord]:
        """Recorded dispatches and barriers, oldest first."""
        return list(self._trace)

    def dispatch_names(self) -> list[str]:
        """Names of recorded dispatches, barriers excluded."""
        return [r.name for r in self._trace if not r.is_barrier]

    def clear_trace(self) -> None:
        """Forget recorded dispatches and reset the counters."""
        self._trace.clear()
        self.dispatch_count = 0
        self.barrier_count = 0


__all__ = ["BARRIER", "ComputeContext", "DispatchRecord"]
