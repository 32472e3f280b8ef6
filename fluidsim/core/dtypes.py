"""Type definitions for fluidsim.

Every simulated field holds one 32-bit float per cell. Single precision is
what the GPU backends run fastest and is enough for an interactive solver.
"""

import taichi as ti

# Default floating-point type for all fields and computations
DTYPE = ti.f32

# Cell classification field type
CELL_DTYPE = ti.i8
