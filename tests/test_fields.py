"""Tests for field management module.

Tests FieldBuffer ping-pong, FieldSpec validation and FieldContainer.
"""

import numpy as np
import pytest
import taichi as ti

from fluidsim.core.boundary import BoundaryCondition
from fluidsim.core.dtypes import CELL_DTYPE, DTYPE
from fluidsim.core.geometry import GridGeometry
from fluidsim.fields import FieldBuffer, FieldContainer, FieldRole, FieldSpec
from fluidsim.fields.state import create_state_specs


class TestFieldBuffer:
    """Tests for FieldBuffer."""

    def test_creation(self):
        buf = FieldBuffer("ink", DTYPE, (8, 6))
        assert buf.name == "ink"
        assert buf.shape == (8, 6)
        assert buf.get_input().shape == (8, 6)
        assert buf.get_output().shape == (8, 6)

    def test_input_and_output_differ(self):
        buf = FieldBuffer("ink", DTYPE, (4, 4))
        assert buf.get_input() is not buf.get_output()

    def test_rejects_empty_shape(self):
        with pytest.raises(ValueError, match="non-empty shape"):
            FieldBuffer("ink", DTYPE, ())

    def test_swap_exchanges_roles(self):
        buf = FieldBuffer("ink", DTYPE, (4, 4))
        a, b = buf.get_input(), buf.get_output()
        buf.swap()
        assert buf.get_input() is b
        assert buf.get_output() is a

    @pytest.mark.parametrize("n_swaps", [0, 1, 2, 3, 4, 7])
    def test_parity_after_clear(self, n_swaps):
        """After clear() and N swaps, orientation matches iff N is even."""
        buf = FieldBuffer("p", DTYPE, (4, 4))
        buf.swap()
        buf.clear()
        a, b = buf.get_input(), buf.get_output()
        for _ in range(n_swaps):
            buf.swap()
        if n_swaps % 2 == 0:
            assert buf.get_input() is a and buf.get_output() is b
        else:
            assert buf.get_input() is b and buf.get_output() is a

    def test_clear_zeroes_both_grids(self):
        buf = FieldBuffer("p", DTYPE, (4, 4))
        buf.get_input().fill(3.0)
        buf.get_output().fill(5.0)
        buf.clear()
        np.testing.assert_array_equal(buf.get_input().to_numpy(), 0.0)
        np.testing.assert_array_equal(buf.get_output().to_numpy(), 0.0)

    def test_clear_restores_canonical_orientation(self):
        buf = FieldBuffer("p", DTYPE, (4, 4))
        first = buf.get_input()
        buf.swap()
        buf.clear()
        assert buf.get_input() is first
        assert buf.input_label == "p 1"
        assert buf.output_label == "p 2"

    def test_labels_follow_swap(self):
        buf = FieldBuffer("p", DTYPE, (4, 4))
        buf.swap()
        assert buf.input_label == "p 2"
        assert buf.output_label == "p 1"

    def test_numpy_roundtrip_uses_input(self):
        buf = FieldBuffer("p", DTYPE, (3, 5))
        values = np.arange(15, dtype=np.float32).reshape(3, 5)
        buf.from_numpy(values)
        np.testing.assert_array_equal(buf.to_numpy(), values)
        np.testing.assert_array_equal(buf.get_output().to_numpy(), 0.0)

    def test_from_numpy_shape_mismatch(self):
        buf = FieldBuffer("p", DTYPE, (3, 5))
        with pytest.raises(ValueError, match="Shape mismatch"):
            buf.from_numpy(np.zeros((5, 3)))


class TestFieldSpec:
    """Tests for FieldSpec dataclass."""

    def test_basic_creation(self):
        spec = FieldSpec(name="pressure", dtype=DTYPE, role=FieldRole.STATE)
        assert spec.double_buffer is False
        assert spec.boundary is None
        assert spec.stagger is None
        assert spec.stagger_axis == -1

    def test_staggered(self):
        spec = FieldSpec(
            name="velocity_y",
            dtype=DTYPE,
            role=FieldRole.STATE,
            double_buffer=True,
            boundary=BoundaryCondition.NO_SLIP,
            stagger=1,
        )
        assert spec.stagger_axis == 1

    def test_immutability(self):
        spec = FieldSpec(name="pressure", dtype=DTYPE, role=FieldRole.STATE)
        with pytest.raises(Exception):
            spec.name = "different"

    def test_validation_empty_name(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            FieldSpec(name="", dtype=DTYPE, role=FieldRole.STATE)

    def test_validation_non_snake_case(self):
        with pytest.raises(ValueError, match="snake_case"):
            FieldSpec(name="VelocityX", dtype=DTYPE, role=FieldRole.STATE)

    def test_validation_double_buffer_role(self):
        with pytest.raises(ValueError, match="double-buffered"):
            FieldSpec(name="divergence", dtype=DTYPE, role=FieldRole.DERIVED, double_buffer=True)

    def test_validation_negative_stagger(self):
        with pytest.raises(ValueError, match="Stagger"):
            FieldSpec(name="velocity_x", dtype=DTYPE, role=FieldRole.STATE, stagger=-1)

    def test_every_role_is_used(self):
        roles = {spec.role for spec in create_state_specs(3)}
        assert roles == set(FieldRole)


class TestFieldContainer:
    """Tests for FieldContainer."""

    @pytest.fixture
    def container(self):
        c = FieldContainer(GridGeometry((8, 8)))
        c.register(FieldSpec("ink_density", DTYPE, FieldRole.STATE, double_buffer=True))
        c.register(FieldSpec("divergence", DTYPE, FieldRole.DERIVED))
        c.register(FieldSpec("boundaries", CELL_DTYPE, FieldRole.DERIVED))
        return c

    def test_register_and_allocate(self, container):
        assert not container.allocated
        container.allocate()
        assert container.allocated
        assert len(container) == 3
        assert "ink_density" in container
        assert container.field_names == ["ink_density", "divergence", "boundaries"]

    def test_duplicate_registration(self, container):
        with pytest.raises(ValueError, match="already registered"):
            container.register(FieldSpec("divergence", DTYPE, FieldRole.DERIVED))

    def test_register_after_allocation(self, container):
        container.allocate()
        with pytest.raises(RuntimeError, match="after allocation"):
            container.register(FieldSpec("extra", DTYPE, FieldRole.DERIVED))

    def test_double_allocation(self, container):
        container.allocate()
        with pytest.raises(RuntimeError, match="already allocated"):
            container.allocate()

    def test_allocate_empty(self):
        with pytest.raises(RuntimeError, match="No fields"):
            FieldContainer(GridGeometry((8, 8))).allocate()

    def test_access_before_allocation(self, container):
        with pytest.raises(RuntimeError, match="not yet allocated"):
            container.get("divergence")

    def test_unknown_name(self, container):
        container.allocate()
        with pytest.raises(KeyError):
            container.get("velocity_x")

    def test_buffered_get_returns_input(self, container):
        container.allocate()
        buf = container.get_buffer("ink_density")
        assert isinstance(buf, FieldBuffer)
        assert container["ink_density"] is buf.get_input()
        container.swap("ink_density")
        assert container["ink_density"] is buf.get_input()

    def test_get_buffer_on_unbuffered(self, container):
        container.allocate()
        with pytest.raises(ValueError, match="not double-buffered"):
            container.get_buffer("divergence")

    def test_unbuffered_is_plain_field(self, container):
        container.allocate()
        div = container["divergence"]
        assert div.shape == (8, 8)
        assert container["boundaries"].dtype == CELL_DTYPE

    def test_fields_by_role(self, container):
        assert container.fields_by_role(FieldRole.STATE) == ["ink_density"]
        assert container.fields_by_role(FieldRole.DERIVED) == ["divergence", "boundaries"]

    def test_clear(self, container):
        container.allocate()
        container["divergence"].fill(2.0)
        buf = container.get_buffer("ink_density")
        first = buf.get_input()
        buf.get_input().fill(1.0)
        buf.swap()
        container.clear()
        assert buf.get_input() is first
        np.testing.assert_array_equal(container["divergence"].to_numpy(), 0.0)
        np.testing.assert_array_equal(buf.to_numpy(), 0.0)

    def test_memory(self, container):
        assert container.memory_bytes == 0
        container.allocate()
        # 2 * 64 * 4 (buffered f32) + 64 * 4 (f32) + 64 * 1 (i8)
        assert container.memory_bytes == 512 + 256 + 64
        assert container.memory_mb == pytest.approx(832 / (1024 * 1024))
