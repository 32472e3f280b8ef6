"""
Boundary synthesis: classify every cell from the exterior velocity.

Interior cells are FLUID. A cell on the domain edge is a WALL when the
fluid outside is at rest; otherwise it is INFLOW when the exterior velocity
points into the domain through the cell's outward normal and OUTFLOW when
it does not. Corner cells use the sum of the normals of their edges.
"""

import taichi as ti

from fluidsim.core.boundary import CellType
from fluidsim.core.dtypes import DTYPE
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields.state import FieldId
from fluidsim.kernels.protocol import StepParams
from fluidsim.kernels.sampling import as_vec3, vec3

# Exterior speed below which the surroundings count as at rest
REST_SPEED = 1e-6


@ti.kernel
def classify_cells(cells: ti.template(), exterior: vec3, rest_speed_sq: DTYPE):
    """Write a CellType into every cell."""
    dim = ti.static(len(cells.shape))
    speed_sq = ti.cast(0.0, DTYPE)
    for d in ti.static(range(dim)):
        speed_sq += exterior[d] * exterior[d]
    for I in ti.grouped(cells):
        on_edge = False
        flux = ti.cast(0.0, DTYPE)
        for d in ti.static(range(dim)):
            if I[d] == 0:
                on_edge = True
                flux -= exterior[d]
            elif I[d] == cells.shape[d] - 1:
                on_edge = True
                flux += exterior[d]
        kind = CellType.FLUID.value
        if on_edge:
            if speed_sq <= rest_speed_sq:
                kind = CellType.WALL.value
            elif flux < 0.0:
                kind = CellType.INFLOW.value
            else:
                kind = CellType.OUTFLOW.value
        cells[I] = kind


class BoundaryStep:
    """Rebuilds the boundaries field from the state's exterior velocity.

    Implements GridOperator protocol.
    """

    def __init__(self, ctx, geometry: GridGeometry):
        self.ctx = ctx
        self.geometry = geometry

    @property
    def fields_read(self) -> set[FieldId]:
        return set()

    @property
    def fields_written(self) -> set[FieldId]:
        return {FieldId.BOUNDARIES}

    def compute(self, state, params: StepParams | None = None) -> None:
        self.ctx.dispatch(
            "boundaries",
            classify_cells,
            state.boundaries,
            as_vec3(state.exterior_velocity),
            REST_SPEED * REST_SPEED,
            reads=(),
            writes=("boundaries",),
        )
