"""
fluidsim: real-time grid-based incompressible fluid solver using Taichi.

Advances a velocity field and passively advected ink on a 2D or 3D grid by
advection, viscous diffusion, force injection, pressure projection and
optional grid scrolling.
"""

__version__ = "0.1.0"
