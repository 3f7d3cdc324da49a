#!/usr/bin/env python3
"""
Live K-means CLI.

Usage:
    kmeans-live                        # open a window, one run per second
    kmeans-live -k 4 --seed 7          # four centroids, reproducible data
    kmeans-live --blocking             # whole run per frame (no intermediate steps)
    kmeans-live --headless --runs 2    # no window, print run summaries
    kmeans-live --save kmeans.gif      # write the first run to a gif
"""

import argparse
import sys

from kmeans_config import ConfigError, KMeansConfig
from kmeans_controller import build_session
from kmeans_core import EMPTY_POLICIES


def build_parser():
    defaults = KMeansConfig()
    parser = argparse.ArgumentParser(
        prog="kmeans-live",
        description="Watch K-means assign and update its way to convergence.")

    canvas = parser.add_argument_group("canvas")
    canvas.add_argument("--width", type=int, default=defaults.window_width)
    canvas.add_argument("--height", type=int, default=defaults.window_height)
    canvas.add_argument("--interval", type=int, default=defaults.frame_interval_ms,
                        help="Milliseconds per frame")

    data = parser.add_argument_group("data")
    data.add_argument("-k", "--clusters", type=int, default=defaults.num_clusters,
                      help="Number of centroids")
    data.add_argument("--samples-per-cluster", type=int,
                      default=defaults.samples_per_cluster)
    data.add_argument("--radius", type=float, default=defaults.cluster_radius,
                      help="Half-width of each sample cloud")
    data.add_argument("--seed", type=int, default=None)

    control = parser.add_argument_group("iteration control")
    control.add_argument("--epsilon", type=float, default=defaults.convergence_epsilon)
    control.add_argument("--pacing", type=float, default=defaults.pacing_threshold,
                         help="Seconds between runs")
    control.add_argument("--max-iterations", type=int, default=defaults.max_iterations)
    control.add_argument("--empty-policy", choices=EMPTY_POLICIES,
                         default=defaults.empty_policy)
    control.add_argument("--blocking", action="store_true",
                         help="Finish each run within a single frame")

    output = parser.add_argument_group("output")
    output.add_argument("--headless", action="store_true",
                        help="No window; tick the controller and print summaries")
    output.add_argument("--save", metavar="PATH", help="Write an animation (gif)")
    output.add_argument("--runs", type=int, default=1,
                        help="Runs to perform with --headless or --save")
    output.add_argument("--quiet", action="store_true")
    return parser


def config_from_args(args) -> KMeansConfig:
    return KMeansConfig(
        window_width=args.width,
        window_height=args.height,
        num_clusters=args.clusters,
        samples_per_cluster=args.samples_per_cluster,
        cluster_radius=args.radius,
        convergence_epsilon=args.epsilon,
        pacing_threshold=args.pacing,
        max_iterations=args.max_iterations,
        empty_policy=args.empty_policy,
        step_mode=not args.blocking,
        seed=args.seed,
        frame_interval_ms=args.interval,
        verbose=not args.quiet,
    )


def run_headless(session, runs=1, dt=None):
    """Feed fixed ticks until `runs` more runs have finished."""
    controller = session.controller
    if dt is None:
        dt = session.config.frame_interval_ms / 1000.0

    summaries = []
    target = controller.runs + runs
    while controller.runs < target:
        before = controller.runs
        controller.tick(dt)
        if controller.runs > before:
            summaries.append(controller.last_run)
    return summaries


def print_summary(session, summaries):
    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)
    for summary in summaries:
        verdict = "converged" if summary.converged else "did not converge"
        print(f"  Run {summary.run}: {verdict} after {summary.iterations} iterations, "
              f"inertia={summary.inertia:.1f}")
        if summary.empty_clusters:
            print(f"    empty clusters seen: {summary.empty_clusters}")

    print("  Final centroids:")
    for i, centroid in enumerate(session.centroids):
        print(f"    [{i}] ({centroid.x:.2f}, {centroid.y:.2f})")


def main(argv=None):
    args = build_parser().parse_args(argv)
    if args.runs < 1:
        print("error: --runs must be >= 1", file=sys.stderr)
        return 2

    try:
        session = build_session(config_from_args(args))
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if session.config.verbose:
        print("=" * 60)
        print(f"LIVE K-MEANS: {len(session.samples)} samples, "
              f"k={len(session.centroids)}")
        print("=" * 60)

    if args.headless:
        summaries = run_headless(session, runs=args.runs)
        if session.config.verbose:
            print_summary(session, summaries)
        return 0

    if args.save:
        import matplotlib
        matplotlib.use("Agg")

    from kmeans_render import Renderer

    renderer = Renderer(session)
    if args.save:
        renderer.save(args.save, runs=args.runs)
        renderer.close()
        if session.config.verbose:
            print(f"Saved: {args.save}")
        return 0

    renderer.show()
    return 0


if __name__ == "__main__":
    sys.exit(main())
