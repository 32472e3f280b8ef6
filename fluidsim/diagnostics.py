"""Incompressibility checks and per-frame statistics.

Simple functions for verifying that projection removed the divergence and
for summarizing a frame on the command line.
"""

from dataclasses import dataclass

import numpy as np

from fluidsim.kernels.utils import field_sum, max_abs_interior

# Cells this close to an edge are excluded from divergence checks
EDGE_MARGIN = 1


def interior_max_abs(field, margin: int = EDGE_MARGIN) -> float:
    """Largest |value| over cells at least ``margin`` cells from every edge."""
    return float(max_abs_interior(field, margin))


def field_total(field) -> float:
    """Sum of a field over every cell."""
    return float(field_sum(field))


@dataclass
class FrameStats:
    """Summary of one frame."""

    max_divergence: float = 0.0  # before projection [1/s]
    max_residual_divergence: float = 0.0  # after projection [1/s]
    total_ink: float = 0.0
    max_speed: float = 0.0  # largest |v_a| over all axes [m/s]

    def format(self) -> str:
        return (
            f"div={self.max_divergence:.3e} "
            f"residual={self.max_residual_divergence:.3e} "
            f"ink={self.total_ink:.3f} "
            f"speed={self.max_speed:.3f}"
        )


def collect_stats(state, margin: int = EDGE_MARGIN) -> FrameStats:
    """Gather FrameStats from a state after advance()."""
    speeds = [np.abs(buf.to_numpy()).max() for buf in state.velocity_buffers]
    return FrameStats(
        max_divergence=interior_max_abs(state.divergence, margin),
        max_residual_divergence=interior_max_abs(state.divergence_check, margin),
        total_ink=field_total(state.ink_density.get_input()),
        max_speed=float(max(speeds)),
    )


def check_divergence_free(state, tol: float = 1e-3, margin: int = EDGE_MARGIN) -> float:
    """Check the post-projection divergence on interior cells.

    Args:
        state: SimulationState after an advance() with the divergence check on
        tol: Largest accepted |divergence_check| [1/s]
        margin: Cells this close to an edge are skipped

    Returns:
        Largest interior |divergence_check|

    Raises:
        AssertionError: If the residual divergence exceeds tol
    """
    residual = interior_max_abs(state.divergence_check, margin)
    if residual > tol:
        before = interior_max_abs(state.divergence, margin)
        raise AssertionError(
            f"Velocity not divergence free!\n"
            f"  Before projection: {before:.6e} 1/s\n"
            f"  After projection:  {residual:.6e} 1/s\n"
            f"  Tolerance:         {tol:.6e}"
        )
    return residual
