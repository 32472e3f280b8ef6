"""Tests for gaussian impulses."""

import math

import numpy as np
import pytest

from fluidsim.context import ComputeContext
from fluidsim.core.geometry import GridGeometry
from fluidsim.kernels import ForcesStep, Impulse, StepParams

from tests.conftest import make_state


class TestImpulse:
    """Tests for the Impulse dataclass."""

    def test_sequences_become_tuples(self):
        impulse = Impulse([1, 2], [0, 3], 1.5)
        assert impulse.position == (1.0, 2.0)
        assert impulse.magnitude == (0.0, 3.0)
        assert impulse.dim == 2

    def test_radius_must_be_positive(self):
        with pytest.raises(ValueError, match="radius"):
            Impulse((1.0, 1.0), (0.0, 0.0), 0.0)

    def test_position_dimensionality(self):
        with pytest.raises(ValueError, match="position"):
            Impulse((1.0,), (1.0,), 1.0)

    def test_magnitude_length(self):
        with pytest.raises(ValueError, match="magnitude"):
            Impulse((1.0, 1.0, 1.0), (1.0, 0.0), 1.0)

    def test_centered(self):
        geometry = GridGeometry((20, 10, 8))
        impulse = Impulse.centered(geometry, axis=2, strength=4.0, radius=2.0, ink_amount=1.0)
        assert impulse.position == (10.0, 5.0, 4.0)
        assert impulse.magnitude == (0.0, 0.0, 4.0)
        assert impulse.ink_amount == 1.0

    def test_centered_bad_axis(self):
        with pytest.raises(ValueError, match="axis"):
            Impulse.centered(GridGeometry((8, 8)), axis=2, strength=1.0, radius=1.0)


class TestForcesStep:
    """Tests for ForcesStep.compute."""

    def test_peak_at_cell_centre(self):
        state = make_state((16, 16), staggered=False)
        impulse = Impulse((8.5, 8.5), (3.0, 0.0), 2.0)

        ForcesStep(ComputeContext(), state.geometry).compute(
            state, StepParams(dt=0.1, impulse=impulse)
        )

        vx = state.velocity(0).to_numpy()
        assert vx[8, 8] == pytest.approx(3.0)
        assert vx[9, 8] == pytest.approx(3.0 * math.exp(-0.25))
        assert vx.max() == pytest.approx(3.0)
        assert vx[0, 0] < 1e-10
        np.testing.assert_array_equal(state.velocity(1).to_numpy(), 0.0)

    def test_staggered_sample_positions(self):
        state = make_state((16, 16))
        impulse = Impulse((8.5, 8.5), (0.0, 2.0), 2.0)

        ForcesStep(ComputeContext(), state.geometry).compute(
            state, StepParams(dt=0.1, impulse=impulse)
        )

        vy = state.velocity(1).to_numpy()
        # Face (8, 8) of the y velocity sits at (8.5, 8.0)
        assert vy[8, 8] == pytest.approx(2.0 * math.exp(-0.0625))
        assert vy[8, 9] == pytest.approx(vy[8, 8])

    def test_skips_zero_axes(self):
        ctx = ComputeContext(trace=True)
        state = make_state((8, 8))
        impulse = Impulse((4.0, 4.0), (1.0, 0.0), 1.0)

        ForcesStep(ctx, state.geometry).compute(state, StepParams(dt=0.1, impulse=impulse))

        assert ctx.dispatch_names() == ["forces"]
        assert ctx.trace[0].writes == (state.velocity(0).input_label,)

    def test_ink_scaled_by_dt(self):
        state = make_state((12, 12), staggered=False)
        impulse = Impulse((6.5, 6.5), (0.0, 0.0), 1.0, ink_amount=2.0)

        ForcesStep(ComputeContext(), state.geometry).compute(
            state, StepParams(dt=0.5, impulse=impulse)
        )

        assert state.ink_density.to_numpy()[6, 6] == pytest.approx(1.0)

    def test_velocity_only_leaves_ink(self):
        ctx = ComputeContext(trace=True)
        state = make_state((12, 12))
        impulse = Impulse((6.0, 6.0), (1.0, 1.0), 1.0, ink_amount=5.0)

        ForcesStep(ctx, state.geometry).compute(
            state, StepParams(dt=0.5, impulse=impulse, velocity_only=True)
        )

        np.testing.assert_array_equal(state.ink_density.to_numpy(), 0.0)
        assert ctx.dispatch_count == 2

    def test_accumulates(self):
        state = make_state((10, 10), staggered=False)
        impulse = Impulse((5.5, 5.5), (1.0, 0.0), 1.5)
        op = ForcesStep(ComputeContext(), state.geometry)
        op.compute(state, StepParams(dt=0.1, impulse=impulse))
        op.compute(state, StepParams(dt=0.1, impulse=impulse))
        assert state.velocity(0).to_numpy()[5, 5] == pytest.approx(2.0)

    def test_in_place(self):
        state = make_state((8, 8))
        before = state.velocity(0).get_input()
        ForcesStep(ComputeContext(), state.geometry).compute(
            state, StepParams(dt=0.1, impulse=Impulse((4.0, 4.0), (1.0, 0.0), 2.0))
        )
        assert state.velocity(0).get_input() is before
        np.testing.assert_array_equal(state.velocity(0).get_output().to_numpy(), 0.0)

    def test_wall_face_untouched(self):
        state = make_state((8, 8))
        impulse = Impulse((0.0, 4.5), (5.0, 0.0), 2.0)

        ForcesStep(ComputeContext(), state.geometry).compute(
            state, StepParams(dt=0.1, impulse=impulse)
        )

        vx = state.velocity(0).to_numpy()
        np.testing.assert_array_equal(vx[0, :], 0.0)
        assert vx[1, 4] > 0.0

    def test_3d(self):
        state = make_state((8, 8, 8), staggered=False)
        impulse = Impulse((4.5, 4.5, 4.5), (0.0, 0.0, 1.0), 1.0)

        ForcesStep(ComputeContext(), state.geometry).compute(
            state, StepParams(dt=0.1, impulse=impulse)
        )

        assert state.velocity(2).to_numpy()[4, 4, 4] == pytest.approx(1.0)

    def test_missing_impulse(self):
        state = make_state((8, 8))
        with pytest.raises(ValueError, match="impulse"):
            ForcesStep(ComputeContext(), state.geometry).compute(state, StepParams(dt=0.1))

    def test_dimension_mismatch(self):
        state = make_state((8, 8))
        impulse = Impulse((1.0, 1.0, 1.0), (1.0, 0.0, 0.0), 1.0)
        with pytest.raises(ValueError, match="3D"):
            ForcesStep(ComputeContext(), state.geometry).compute(
                state, StepParams(dt=0.1, impulse=impulse)
            )
