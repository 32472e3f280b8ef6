"""CLI entry point for headless fluidsim runs.

Builds a state and solver from a YAML config (or defaults), pushes a
centred gaussian impulse into the fluid every few frames and advances the
pipeline, printing frame statistics as it goes.
"""

import argparse
import sys
import time

from fluidsim.config import BACKENDS, init_taichi
from fluidsim.diagnostics import collect_stats
from fluidsim.fields.state import SimulationState
from fluidsim.kernels.forces import Impulse
from fluidsim.params import SimulationConfig, load_config_with_overrides, save_config
from fluidsim.simulation import Solver

# Multiplier from force_scale to the centred impulse's peak velocity
CENTERED_IMPULSE_SCALE = 20.0


def parse_size(text: str) -> list[int]:
    """Parse '64,64' or '32,32,32' into a list of cell counts."""
    try:
        return [int(part) for part in text.split(",")]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid grid size: {text!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="fluidsim headless run")
    parser.add_argument("--config", type=str, help="Path to YAML configuration file")
    parser.add_argument("--size", type=parse_size, help="Grid size, e.g. 128,128. Overrides config.")
    parser.add_argument("--frames", type=int, default=200, help="Number of frames to run")
    parser.add_argument("--dt", type=float, default=1.0 / 60.0, help="Frame timestep [s]")
    parser.add_argument("--impulse-every", type=int, default=20,
                        help="Apply the centred impulse every N frames (0 disables)")
    parser.add_argument("--axis", type=int, default=0, help="Axis the impulse pushes along")
    parser.add_argument("--backend", choices=BACKENDS + ("auto",), default=None,
                        help="Taichi backend (default: FLUIDSIM_BACKEND or auto)")
    parser.add_argument("--save-config", type=str, help="Write the effective config to this path")
    parser.add_argument("--report-every", type=int, default=20,
                        help="Print statistics every N frames")
    return parser


def resolve_config(args: argparse.Namespace) -> SimulationConfig:
    overrides = {}
    if args.size:
        overrides["grid"] = {"size": args.size}
    return load_config_with_overrides(args.config, overrides)


def run(config: SimulationConfig, args: argparse.Namespace) -> int:
    """Run the simulation loop; Taichi must already be initialized.

    Returns:
        Number of frames completed
    """
    state = SimulationState.from_config(config)
    solver = Solver.from_config(config)
    impulse = Impulse.centered(
        solver.geometry,
        args.axis,
        config.impulse.force_scale * CENTERED_IMPULSE_SCALE,
        config.impulse.radius,
        config.impulse.ink_amount,
    )

    print(f"Grid {'x'.join(str(n) for n in solver.geometry.size)}, "
          f"dx={solver.geometry.dx}, {state.memory_mb:.1f} MB")
    start_time = time.time()

    frames_done = 0
    try:
        for frame in range(args.frames):
            if args.impulse_every and frame % args.impulse_every == 0:
                solver.apply_forces(state, impulse, dt=args.dt)
            solver.advance(state, args.dt)
            frames_done += 1

            if args.report_every and frames_done % args.report_every == 0:
                stats = collect_stats(state)
                print(f"Frame {frames_done}: {stats.format()}")
    except KeyboardInterrupt:
        print("\nSimulation stopped by user.")

    duration = time.time() - start_time
    if frames_done:
        print(f"Ran {frames_done} frames in {duration:.2f}s "
              f"({1000.0 * duration / frames_done:.2f} ms/frame)")
    return frames_done


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = resolve_config(args)
    if args.save_config:
        save_config(config, args.save_config)
        print(f"Config written to {args.save_config}")

    backend = init_taichi(backend=args.backend)
    print(f"Taichi backend: {backend}")

    run(config, args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
