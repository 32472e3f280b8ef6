"""Core infrastructure: types, grid geometry and boundary model."""

from fluidsim.core.boundary import BoundaryCondition, CellType
from fluidsim.core.dtypes import CELL_DTYPE, DTYPE
from fluidsim.core.geometry import GridGeometry, PhysicalProperties

__all__ = [
    "DTYPE",
    "CELL_DTYPE",
    "BoundaryCondition",
    "CellType",
    "GridGeometry",
    "PhysicalProperties",
]
