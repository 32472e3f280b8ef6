"""Ghost-cell reads and multilinear sampling shared by the stage kernels.

Index space: sample I of a field sits at sample coordinate I. A field
staggered along axis s stores sample I at grid-space position
I + 0.5 - 0.5 * e_s; a cell-centred field at I + 0.5.

Boundary conditions are static kernel arguments holding the ghost-cell
multiplier (see BoundaryCondition). Stagger axes are static ints, -1 for
cell-centred.
"""

import taichi as ti

from fluidsim.core.boundary import BoundaryCondition
from fluidsim.core.dtypes import DTYPE

NO_SLIP = BoundaryCondition.NO_SLIP.value
NEUMANN = BoundaryCondition.NEUMANN.value
ZERO = BoundaryCondition.ZERO.value

vec3 = ti.types.vector(3, DTYPE)
ivec3 = ti.types.vector(3, ti.i32)


def as_vec3(values, fill: float = 0.0) -> ti.Vector:
    """Pad a 2 or 3 entry sequence into a 3-vector kernel argument."""
    padded = [float(v) for v in values] + [fill] * (3 - len(values))
    return ti.Vector(padded, dt=DTYPE)


def as_ivec3(values) -> ti.Vector:
    """Pad a 2 or 3 entry integer sequence into a 3-vector kernel argument."""
    padded = [int(v) for v in values] + [0] * (3 - len(values))
    return ti.Vector(padded, dt=ti.i32)


@ti.func
def fetch(q: ti.template(), I, bc: ti.template()):
    """q[I], or bc times the nearest in-domain value when I is outside."""
    return fetch_face(q, I, bc, -1)


@ti.func
def fetch_face(q: ti.template(), I, bc: ti.template(), face_axis: ti.template()):
    """Like fetch, but index n along ``face_axis`` is the far wall face and reads 0.

    A field staggered along s stores faces 0..n-1; face n lies on the far
    wall. Overruns along the other axes follow ``bc``.
    """
    J = I
    scale = ti.cast(1.0, DTYPE)
    on_face = False
    for d in ti.static(range(len(q.shape))):
        if J[d] < 0:
            J[d] = 0
            scale = bc
        elif J[d] > q.shape[d] - 1:
            J[d] = q.shape[d] - 1
            if ti.static(d == face_axis):
                on_face = True
            else:
                scale = bc
    if ti.static(face_axis >= 0):
        if on_face:
            scale = 0.0
    return scale * q[J]


@ti.func
def sample(q: ti.template(), x, bc: ti.template(), face_axis: ti.template()):
    """Multilinear interpolation of q at sample coordinate x."""
    dim = ti.static(len(q.shape))
    base = ti.cast(ti.floor(x), ti.i32)
    frac = x - base
    w = [1.0 - frac, frac]
    result = ti.cast(0.0, DTYPE)
    for offset in ti.static(ti.grouped(ti.ndrange(*((2,) * dim)))):
        weight = ti.cast(1.0, DTYPE)
        for d in ti.static(range(dim)):
            weight *= w[offset[d]][d]
        result += weight * fetch_face(q, base + offset, bc, face_axis)
    return result


@ti.func
def sample_at(q: ti.template(), p, stagger: ti.template(), bc: ti.template()):
    """Sample q at grid-space position p, honouring its stagger axis.

    A no-slip field staggered along s is zero on both wall faces of s.
    """
    x = p - 0.5
    if ti.static(stagger >= 0):
        x[stagger] += 0.5
    return sample(q, x, bc, ti.static(stagger if bc == NO_SLIP else -1))


@ti.func
def sample_position(I, stagger: ti.template()):
    """Grid-space position of sample I of a field staggered along ``stagger``."""
    p = I + 0.5
    if ti.static(stagger >= 0):
        p[stagger] -= 0.5
    return p


@ti.func
def velocity_at(
    vx: ti.template(), vy: ti.template(), vz: ti.template(), p, staggered: ti.template()
):
    """Velocity at grid-space position p, each axis sampled at its own stagger.

    ``staggered`` is 1 for the MAC layout and 0 for collocated velocity.
    ``vz`` is not read on 2D grids.
    """
    dim = ti.static(len(vx.shape))
    v = ti.Vector.zero(DTYPE, dim)
    v[0] = sample_at(vx, p, ti.static(staggered - 1), NO_SLIP)
    v[1] = sample_at(vy, p, ti.static(2 * staggered - 1), NO_SLIP)
    if ti.static(dim == 3):
        v[2] = sample_at(vz, p, ti.static(3 * staggered - 1), NO_SLIP)
    return v
