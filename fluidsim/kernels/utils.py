"""Utility kernels for fluidsim."""

import taichi as ti

from fluidsim.core.dtypes import DTYPE


@ti.kernel
def copy_field(src: ti.template(), dst: ti.template()):
    """Copy src to dst."""
    for I in ti.grouped(src):
        dst[I] = src[I]


@ti.kernel
def fill_field(field: ti.template(), value: DTYPE):
    """Set all field values to a constant."""
    for I in ti.grouped(field):
        field[I] = value


@ti.kernel
def max_abs_interior(field: ti.template(), margin: ti.i32) -> DTYPE:
    """Largest |field| over cells at least ``margin`` cells from every edge."""
    result = ti.cast(0.0, DTYPE)
    for I in ti.grouped(field):
        inside = True
        for d in ti.static(range(len(field.shape))):
            if I[d] < margin or I[d] > field.shape[d] - 1 - margin:
                inside = False
        if inside:
            ti.atomic_max(result, ti.abs(field[I]))
    return result


@ti.kernel
def field_sum(field: ti.template()) -> DTYPE:
    """Sum of every cell."""
    total = ti.cast(0.0, DTYPE)
    for I in ti.grouped(field):
        total += field[I]
    return total
