"""Tests for grid scrolling."""

import numpy as np
import pytest

from fluidsim.context import ComputeContext
from fluidsim.fields.state import FieldId
from fluidsim.kernels import ScrollStep, StepParams

from tests.conftest import make_state


def fill_random(state, rng):
    """Random values in every float field; returns them by name."""
    values = {}
    for buf in state.velocity_buffers + [state.pressure, state.ink_density]:
        values[buf.name] = rng.random(state.shape).astype(np.float32)
        buf.from_numpy(values[buf.name])
    for name in ("divergence", "divergence_check"):
        values[name] = rng.random(state.shape).astype(np.float32)
        state.container[name].from_numpy(values[name])
    return values


def current(state):
    out = {buf.name: buf.to_numpy() for buf in state.velocity_buffers}
    out["pressure"] = state.pressure.to_numpy()
    out["ink_density"] = state.ink_density.to_numpy()
    out["divergence"] = state.divergence.to_numpy()
    out["divergence_check"] = state.divergence_check.to_numpy()
    return out


class TestScrollStep:
    """Tests for ScrollStep.compute."""

    @pytest.mark.parametrize("offset", [(1, 0), (0, -2), (3, 5), (-7, 11), (40, -33)])
    def test_wraps_every_float_field(self, offset):
        state = make_state((8, 6))
        before = fill_random(state, np.random.default_rng(0))

        ScrollStep(ComputeContext(), state.geometry).compute(state, StepParams(offset=offset))

        after = current(state)
        for name, values in before.items():
            np.testing.assert_array_equal(
                after[name], np.roll(values, offset, axis=(0, 1)), err_msg=name
            )

    def test_3d(self):
        state = make_state((5, 4, 6))
        before = fill_random(state, np.random.default_rng(1))
        offset = (2, -1, 4)

        ScrollStep(ComputeContext(), state.geometry).compute(state, StepParams(offset=offset))

        after = current(state)
        for name, values in before.items():
            np.testing.assert_array_equal(after[name], np.roll(values, offset, axis=(0, 1, 2)))

    def test_round_trip(self):
        state = make_state((7, 7))
        before = fill_random(state, np.random.default_rng(2))
        op = ScrollStep(ComputeContext(), state.geometry)

        op.compute(state, StepParams(offset=(3, -4)))
        op.compute(state, StepParams(offset=(-3, 4)))

        after = current(state)
        for name, values in before.items():
            np.testing.assert_array_equal(after[name], values)

    def test_boundaries_untouched(self):
        state = make_state((6, 6))
        cells = np.zeros(state.shape, dtype=np.int8)
        cells[0, :] = 1
        state.boundaries.from_numpy(cells)

        ScrollStep(ComputeContext(), state.geometry).compute(state, StepParams(offset=(2, 2)))

        np.testing.assert_array_equal(state.boundaries.to_numpy(), cells)

    def test_zero_offset_dispatches_nothing(self):
        ctx = ComputeContext(trace=True)
        state = make_state((6, 6))
        label = state.pressure.input_label

        ScrollStep(ctx, state.geometry).compute(state, StepParams(offset=(0, 0)))

        assert ctx.trace == []
        assert state.pressure.input_label == label

    def test_wrong_offset_length(self):
        state = make_state((6, 6))
        with pytest.raises(ValueError, match="offset"):
            ScrollStep(ComputeContext(), state.geometry).compute(
                state, StepParams(offset=(1, 2, 3))
            )

    def test_unbuffered_fields_use_scratch(self):
        ctx = ComputeContext(trace=True)
        state = make_state((6, 6))

        ScrollStep(ctx, state.geometry).compute(state, StepParams(offset=(1, 1)))

        names = ctx.dispatch_names()
        assert names.count("scroll") == 6
        assert names.count("copy") == 2
        for index, record in enumerate(ctx.trace):
            if record.name == "copy":
                assert ctx.trace[index - 1].is_barrier
                assert record.reads == ("scroll scratch",)

    def test_fields(self):
        op = ScrollStep(ComputeContext(), make_state((4, 4)).geometry)
        assert FieldId.BOUNDARIES not in op.fields_written
        assert FieldId.VELOCITY_Z not in op.fields_written
        assert FieldId.INK_DENSITY in op.fields_written
