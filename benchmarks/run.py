import argparse

from benchmarks.frame_rate import FrameRateBenchmark
from benchmarks.jacobi import JacobiBenchmark

# Registry of available benchmarks
BENCHMARKS = {
    "frame_rate": FrameRateBenchmark,
    "jacobi": JacobiBenchmark,
}


def main():
    parser = argparse.ArgumentParser(description="fluidsim Benchmark Harness")
    parser.add_argument(
        "benchmark",
        nargs="?",
        choices=list(BENCHMARKS.keys()) + ["all"],
        default="all",
        help="Benchmark to run (default: all)"
    )
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Enable Taichi kernel profiler"
    )
    parser.add_argument("--backend", default=None, help="Taichi backend (default: auto)")

    args = parser.parse_args()

    if args.benchmark == "all":
        to_run = list(BENCHMARKS.values())
    else:
        to_run = [BENCHMARKS[args.benchmark]]

    for bench_cls in to_run:
        print(f"\nRunning {bench_cls.__name__}...")
        # ti.init resets the runtime, so each benchmark allocates its own fields
        bench = bench_cls(profile=args.profile, backend=args.backend)
        bench.run()


if __name__ == "__main__":
    main()
