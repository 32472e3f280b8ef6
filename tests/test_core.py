"""Tests for core types: geometry, physical properties, boundary model."""

import pytest

from fluidsim.core import (
    CELL_DTYPE,
    DTYPE,
    BoundaryCondition,
    CellType,
    GridGeometry,
    PhysicalProperties,
)


class TestGridGeometry:
    """Tests for GridGeometry."""

    def test_2d_properties(self):
        """Test derived properties of a 2D grid."""
        g = GridGeometry((16, 8), dx=0.5)
        assert g.dim == 2
        assert g.shape == (16, 8)
        assert g.n_cells == 128
        assert g.n_interior == 14 * 6
        assert g.extent == (8.0, 4.0)
        assert g.center == (8.0, 4.0)
        assert g.staggered is True

    def test_3d_properties(self):
        """Test derived properties of a 3D grid."""
        g = GridGeometry((4, 5, 6))
        assert g.dim == 3
        assert g.n_cells == 120
        assert g.n_interior == 2 * 3 * 4

    def test_size_normalized_to_int_tuple(self):
        """Lists and numpy-like ints are normalized."""
        g = GridGeometry([8, 8])
        assert g.size == (8, 8)
        assert isinstance(g.size, tuple)

    @pytest.mark.parametrize("size", [(8,), (4, 4, 4, 4)])
    def test_rejects_wrong_dimensionality(self, size):
        with pytest.raises(ValueError, match="2 or 3 entries"):
            GridGeometry(size)

    def test_rejects_tiny_axis(self):
        with pytest.raises(ValueError, match=">= 3"):
            GridGeometry((8, 2))

    def test_rejects_non_positive_dx(self):
        with pytest.raises(ValueError, match="dx"):
            GridGeometry((8, 8), dx=0.0)

    def test_dx_is_mutable(self):
        """Cell size is a runtime tunable."""
        g = GridGeometry((8, 8), dx=1.0)
        g.dx = 0.25
        assert g.extent == (2.0, 2.0)


class TestPhysicalProperties:
    """Tests for PhysicalProperties."""

    def test_defaults(self):
        p = PhysicalProperties()
        assert p.density == 1.0
        assert p.viscosity == 0.0025

    def test_zero_viscosity_allowed(self):
        assert PhysicalProperties(viscosity=0.0).viscosity == 0.0

    def test_rejects_non_positive_density(self):
        with pytest.raises(ValueError, match="density"):
            PhysicalProperties(density=0.0)

    def test_rejects_negative_viscosity(self):
        with pytest.raises(ValueError, match="viscosity"):
            PhysicalProperties(viscosity=-1.0)


class TestBoundaryModel:
    """Tests for boundary condition and cell type enums."""

    def test_ghost_multipliers(self):
        assert BoundaryCondition.NO_SLIP.value == -1.0
        assert BoundaryCondition.NEUMANN.value == 1.0
        assert BoundaryCondition.ZERO.value == 0.0

    def test_cell_types(self):
        assert [c.value for c in CellType] == [0, 1, 2, 3]
        assert CellType.FLUID == 0

    def test_dtypes(self):
        import taichi as ti

        assert DTYPE == ti.f32
        assert CELL_DTYPE == ti.i8
