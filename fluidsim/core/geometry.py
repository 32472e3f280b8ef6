"""Grid geometry and physical properties for fluidsim.

This module centralizes the spatial description of the simulation domain:
- GridGeometry: cell counts per axis, cell size and grid layout
- PhysicalProperties: fluid density and kinematic viscosity

Grid-space convention:
    Cell I covers [I, I + 1) along every axis, so its centre sits at I + 0.5.
    On a staggered (MAC) grid, velocity axis a is stored on the low face of
    each cell along a, at I + 0.5 - 0.5 * e_a.

Both dataclasses are mutable: cell size, density and viscosity are runtime
tunables. The cell counts are fixed once fields have been allocated.
"""

from dataclasses import dataclass


@dataclass
class GridGeometry:
    """Grid geometry specification.

    Attributes:
        size: Number of cells along each axis (2 or 3 entries)
        dx: Cell size in meters [m]
        staggered: True for the MAC layout, False for collocated velocity

    Properties:
        dim: Number of spatial dimensions
        shape: Field shape (same as size)
        n_cells: Total number of cells
        n_interior: Number of cells not touching the domain edge
        extent: Physical size along each axis [m]
        center: Grid-space position of the domain centre
    """

    size: tuple[int, ...]
    dx: float = 1.0
    staggered: bool = True

    def __post_init__(self):
        """Validate grid dimensions."""
        self.size = tuple(int(n) for n in self.size)
        if len(self.size) not in (2, 3):
            raise ValueError(
                f"size must have 2 or 3 entries, got {len(self.size)}"
            )
        for axis, n in enumerate(self.size):
            if n < 3:
                raise ValueError(f"size[{axis}] must be >= 3, got {n}")
        if self.dx <= 0:
            raise ValueError(f"dx must be > 0, got {self.dx}")

    @property
    def dim(self) -> int:
        """Number of spatial dimensions."""
        return len(self.size)

    @property
    def shape(self) -> tuple[int, ...]:
        """Field shape."""
        return self.size

    @property
    def n_cells(self) -> int:
        """Total number of cells."""
        total = 1
        for n in self.size:
            total *= n
        return total

    @property
    def n_interior(self) -> int:
        """Number of interior (non-edge) cells."""
        total = 1
        for n in self.size:
            total *= n - 2
        return total

    @property
    def extent(self) -> tuple[float, ...]:
        """Physical domain size per axis in meters."""
        return tuple(n * self.dx for n in self.size)

    @property
    def center(self) -> tuple[float, ...]:
        """Grid-space position of the domain centre."""
        return tuple(n / 2.0 for n in self.size)


@dataclass
class PhysicalProperties:
    """Physical properties of the simulated fluid.

    Attributes:
        density: Fluid density [kg/dm³]
        viscosity: Kinematic viscosity [m²/s], 0 disables diffusion
    """

    density: float = 1.0
    viscosity: float = 0.0025

    def __post_init__(self):
        if self.density <= 0:
            raise ValueError(f"density must be > 0, got {self.density}")
        if self.viscosity < 0:
            raise ValueError(f"viscosity must be >= 0, got {self.viscosity}")
