"""
Taichi configuration and initialization.

Environment variables:
    FLUIDSIM_BACKEND: 'cuda', 'vulkan', 'cpu', or 'auto' (default)
    FLUIDSIM_DEBUG: '1' to enable debug mode (bounds checks, kernel asserts)

Falls back to CPU if no GPU is found.
"""

import os
import subprocess

import taichi as ti

from fluidsim.core.dtypes import DTYPE

BACKENDS = ("cuda", "vulkan", "cpu")


def get_backend() -> str:
    """Determine Taichi backend: check env var, then auto-detect."""
    env = os.environ.get("FLUIDSIM_BACKEND", "auto").lower()

    if env in BACKENDS:
        return env
    if env != "auto":
        raise ValueError(f"Invalid FLUIDSIM_BACKEND: {env}")

    # Auto-detect CUDA
    try:
        result = subprocess.run(
            ["nvidia-smi", "-L"], capture_output=True, text=True, timeout=5
        )
        if result.returncode == 0 and "GPU" in result.stdout:
            return "cuda"
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass

    return "cpu"


def init_taichi(
    backend: str | None = None,
    debug: bool | None = None,
    kernel_profiler: bool = False,
) -> str:
    """Initialize Taichi with specified or auto-detected backend.

    Returns:
        Name of the backend in use

    Raises:
        ValueError: If the backend name is unknown
    """
    if backend is None or backend == "auto":
        backend = get_backend()
    if debug is None:
        debug = os.environ.get("FLUIDSIM_DEBUG", "0") == "1"

    arch = {"cuda": ti.cuda, "vulkan": ti.vulkan, "cpu": ti.cpu}.get(backend)
    if arch is None:
        raise ValueError(f"Unknown backend: {backend}")

    ti.init(
        arch=arch,
        default_fp=DTYPE,
        debug=debug,
        offline_cache=True,
        random_seed=42,
        kernel_profiler=kernel_profiler,
    )
    return backend
