"""Double-buffered Taichi field.

A FieldBuffer owns two same-shaped grids. At any time one is the "input"
(last confirmed value) and the other the "output" (being written). Stencil
operators read the input, write the output, then swap.

Usage:
    buf = FieldBuffer("pressure", DTYPE, (64, 64))
    some_kernel(buf.get_input(), buf.get_output())
    buf.swap()
"""

from typing import Any

import numpy as np
import taichi as ti

from fluidsim.core.dtypes import DTYPE


class FieldBuffer:
    """Two Taichi fields with an O(1) swappable input/output orientation.

    Attributes:
        name: Field identifier, also used to label the two grids
        dtype: Taichi data type of each cell
        shape: Grid shape shared by both grids
    """

    def __init__(self, name: str, dtype: Any = DTYPE, shape: tuple[int, ...] = ()):
        if not shape:
            raise ValueError(f"FieldBuffer '{name}' needs a non-empty shape")
        self._name = name
        self._dtype = dtype
        self._shape = tuple(shape)
        self._labels = (f"{name} 1", f"{name} 2")
        self._fields = tuple(
            ti.field(dtype=dtype, shape=self._shape, name=label)
            for label in self._labels
        )
        self._writing_back_buffer = True

    @property
    def name(self) -> str:
        return self._name

    @property
    def dtype(self) -> Any:
        return self._dtype

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    def get_input(self) -> Any:
        """Grid holding the last confirmed value."""
        return self._fields[0 if self._writing_back_buffer else 1]

    def get_output(self) -> Any:
        """Grid the next stencil pass writes into."""
        return self._fields[1 if self._writing_back_buffer else 0]

    @property
    def input_label(self) -> str:
        """Name of the grid currently acting as input."""
        return self._labels[0 if self._writing_back_buffer else 1]

    @property
    def output_label(self) -> str:
        """Name of the grid currently acting as output."""
        return self._labels[1 if self._writing_back_buffer else 0]

    def swap(self) -> None:
        """Exchange input and output roles without copying data."""
        self._writing_back_buffer = not self._writing_back_buffer

    def clear(self) -> None:
        """Zero both grids and restore the canonical orientation."""
        for field in self._fields:
            field.fill(0)
        self._writing_back_buffer = True

    def to_numpy(self) -> np.ndarray:
        """Copy of the input grid."""
        return self.get_input().to_numpy()

    def from_numpy(self, values: np.ndarray) -> None:
        """Overwrite the input grid."""
        values = np.asarray(values)
        if values.shape != self._shape:
            raise ValueError(
                f"Shape mismatch for '{self._name}': "
                f"expected {self._shape}, got {values.shape}"
            )
        self.get_input().from_numpy(values.astype(np.float32))

    def __repr__(self) -> str:
        return f"FieldBuffer(name={self._name!r}, shape={self._shape})"
