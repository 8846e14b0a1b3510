#!/usr/bin/env python3
"""
Headless driver: runs the particle kernel for a number of steps and reports
timing and state diagnostics. Stands in for the rendering loop, which only
reads positions as per-instance offsets.
"""

import argparse
import logging
import time

from particle_compute import scenarios
from particle_compute.core.backend import set_backend, auto_select_backend, get_backend, print_backend_info
from particle_compute.core.config import ForceConstants, VARIANTS
from particle_compute.core.scheduler import DispatchGrid, StepScheduler, DEFAULT_WORKGROUP_SIZE
from particle_compute.physics.diagnostics import summarize

logger = logging.getLogger("particle_compute.main_headless")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Particle compute kernel (headless)")
    parser.add_argument("--variant", default="nbody", choices=sorted(VARIANTS))
    parser.add_argument("--scenario", default="rest", choices=sorted(scenarios.SCENARIOS))
    parser.add_argument("--particles", type=int, default=1000)
    parser.add_argument("--capacity", type=int, default=None,
                        help="Store capacity (default: particle count)")
    parser.add_argument("--steps", type=int, default=100, help="Number of steps to run")
    parser.add_argument("--dt", type=float, default=0.02)
    parser.add_argument("--backend", choices=["cpu", "numba", "gpu", "auto"], default="auto")
    parser.add_argument("--workgroup-size", type=int, default=DEFAULT_WORKGROUP_SIZE)
    parser.add_argument("--workgroups", type=int, default=None,
                        help="Fixed workgroup count (default: enough to cover the particles)")
    parser.add_argument("--gravity", type=float, default=ForceConstants.gravity)
    parser.add_argument("--floor-height", type=float, default=ForceConstants.floor_height)
    parser.add_argument("--stiffness", type=float, default=ForceConstants.restitution_stiffness)
    parser.add_argument("--attraction", type=float, default=ForceConstants.attraction_strength)
    parser.add_argument("--softening", type=float, default=ForceConstants.softening)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(message)s")

    if args.backend == "auto":
        auto_select_backend(args.particles)
    elif not set_backend(args.backend):
        logger.warning("Backend '%s' not available, using %s", args.backend, get_backend())
    print_backend_info()

    logger.info("Loading scenario: %s", args.scenario)
    store, n_active = scenarios.SCENARIOS[args.scenario](args.particles, args.capacity, args.seed)

    constants = ForceConstants(
        gravity=args.gravity,
        floor_height=args.floor_height,
        restitution_stiffness=args.stiffness,
        attraction_strength=args.attraction,
        softening=args.softening,
    )
    scheduler = StepScheduler(
        store,
        variant=args.variant,
        constants=constants,
        time_delta=args.dt,
        grid=DispatchGrid(args.workgroup_size, args.workgroups),
        log_level=args.log_level,
    )
    scheduler.init(n_active, store.capacity)

    logger.info("Running %d steps: %d/%d particles, variant %s, backend %s",
                args.steps, n_active, store.capacity, args.variant, get_backend())

    start = time.perf_counter()
    for _ in range(args.steps):
        scheduler.step(n_active)
    elapsed = time.perf_counter() - start

    center, kinetic, below, finite = summarize(store, n_active, constants)
    logger.info("Elapsed: %.3f s (%.2f ms/step)", elapsed,
                1000.0 * elapsed / max(args.steps, 1))
    logger.info("Center of mass: (%.4f, %.4f, %.4f)", *center)
    logger.info("Kinetic energy: %.6g", kinetic)
    logger.info("Below floor: %d", below)
    if not finite:
        logger.error("Non-finite particle state after %d steps", scheduler.step_count)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
