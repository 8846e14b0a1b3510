from __future__ import annotations

"""StepScheduler – the dispatch contract between a driver and the kernels.

A step fans out one invocation per index of the dispatch width. The width
is a whole number of workgroups, so it can exceed the active count; the
surplus invocations do nothing. Each step runs in two phases separated by
a barrier:

1. force phase – every active invocation reads the whole store and writes
   only its own row of the force scratch array;
2. integrate phase – every active invocation updates only its own slot.

No invocation can therefore observe another slot's in-step write.
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .backend import dispatch
from .config import ForceConstants, SimulationConfig, VARIANTS, DEFAULT_TIME_DELTA
from .particles import ParticleStore

SeedFunction = Callable[[ParticleStore, int], None]

DEFAULT_WORKGROUP_SIZE = 8


def seed_nothing(store: ParticleStore, particle_count: int) -> None:
    """Default init hook: leaves the store as allocated."""
    return None


def check_coverage(dispatch_width: int, active_count: int) -> None:
    """Every active index needs one invocation; a narrower dispatch is an error."""
    if dispatch_width < active_count:
        raise ValueError(
            f"Dispatch width {dispatch_width} cannot cover {active_count} active particles"
        )


def invocation_ids(active_count: int, dispatch_width: int) -> np.ndarray:
    """Invocation indices of a dispatch that pass the out-of-range guard."""
    check_coverage(dispatch_width, active_count)
    ids = np.arange(dispatch_width)
    return ids[ids < active_count]


@dataclass(frozen=True)
class DispatchGrid:
    """Workgroup layout of a step.

    With `workgroups=None` the grid grows with the active count, otherwise a
    fixed number of workgroups is dispatched regardless of it.
    """
    workgroup_size: int = DEFAULT_WORKGROUP_SIZE
    workgroups: Optional[int] = None

    def __post_init__(self):
        if self.workgroup_size <= 0:
            raise ValueError(f"workgroup_size must be positive, got {self.workgroup_size}")
        if self.workgroups is not None and self.workgroups < 0:
            raise ValueError(f"workgroups must be non-negative, got {self.workgroups}")

    def width(self, active_count: int) -> int:
        """Number of invocations dispatched for `active_count` particles."""
        if self.workgroups is None:
            return math.ceil(active_count / self.workgroup_size) * self.workgroup_size
        width = self.workgroups * self.workgroup_size
        check_coverage(width, active_count)
        return width

    def invocation_ids(self, active_count: int) -> np.ndarray:
        return invocation_ids(active_count, self.width(active_count))


class SchedulerState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    IDLE = "idle"
    STEPPING = "stepping"


class StepScheduler:
    """Runs init and step passes over a ParticleStore."""

    def __init__(
        self,
        store: ParticleStore,
        *,
        variant: str = "nbody",
        constants: Optional[ForceConstants] = None,
        time_delta: float = DEFAULT_TIME_DELTA,
        grid: Optional[DispatchGrid] = None,
        backend: Optional[str] = None,
        seed: SeedFunction = seed_nothing,
        log_level: str | int = "INFO",
    ) -> None:
        if variant not in VARIANTS:
            raise ValueError(f"Unknown variant: {variant}. Choose from: {', '.join(VARIANTS)}")

        self.store = store
        self.terms = VARIANTS[variant]
        self.constants = constants if constants is not None else ForceConstants()
        self.time_delta = float(time_delta)
        self.grid = grid if grid is not None else DispatchGrid()
        self.backend = backend
        self.seed = seed

        self.state = SchedulerState.UNINITIALIZED
        self.step_count = 0
        self.particle_count = 0

        # ---------- logger -------------------------------------------------
        self.logger = logging.getLogger(f"ParticleCompute_{id(self)}")
        self.logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)
        self.logger.propagate = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def init(self, particle_count: int, capacity: Optional[int] = None) -> None:
        """One-time setup. Later calls leave the store untouched."""
        if capacity is not None and capacity != self.store.capacity:
            raise ValueError(
                f"capacity {capacity} does not match store capacity {self.store.capacity}"
            )
        if not 0 <= particle_count <= self.store.capacity:
            raise ValueError(
                f"particle_count {particle_count} outside [0, {self.store.capacity}]"
            )

        if self.state is not SchedulerState.UNINITIALIZED:
            self.logger.debug("init: already initialized, skipping")
            return

        self.seed(self.store, particle_count)
        self.particle_count = particle_count
        self.state = SchedulerState.IDLE
        self.logger.debug("init: %d particles, capacity %d", particle_count, self.store.capacity)

    def make_config(self, active_count: int, time_delta: Optional[float] = None) -> SimulationConfig:
        return SimulationConfig(
            active_count=active_count,
            time_delta=self.time_delta if time_delta is None else float(time_delta),
            constants=self.constants,
            terms=self.terms,
        )

    def step(self, active_count: Optional[int] = None,
             time_delta: Optional[float] = None) -> SimulationConfig:
        """Advance the simulation by one step.

        Args:
            active_count: Particles to simulate (defaults to the init count,
                required before init)
            time_delta: Step duration (defaults to the scheduler's)

        Returns:
            The SimulationConfig the step ran with
        """
        if active_count is None:
            if self.state is SchedulerState.UNINITIALIZED:
                raise RuntimeError("step() before init() needs an explicit active_count")
            active_count = self.particle_count
        return self.run(self.make_config(active_count, time_delta))

    def run(self, config: SimulationConfig) -> SimulationConfig:
        """Advance by one step with an explicit config."""
        config.validate(self.store.capacity)
        config.check_stability()

        if self.state is SchedulerState.UNINITIALIZED:
            self.init(config.active_count)

        width = self.grid.width(config.active_count)

        self.state = SchedulerState.STEPPING
        try:
            # Force phase reads every slot, writes only force rows
            dispatch("compute_forces", self.store, config, width, backend=self.backend)
            # Integrate phase writes each active slot from its own force row
            dispatch("integrate", self.store, config.active_count, width,
                     config.time_delta, backend=self.backend)
        finally:
            self.state = SchedulerState.IDLE

        self.step_count += 1
        self.logger.debug("step %d: %d active, width %d, dt %g",
                          self.step_count, config.active_count, width, config.time_delta)
        return config

    def run_steps(self, n_steps: int, active_count: Optional[int] = None,
                  time_delta: Optional[float] = None) -> None:
        for _ in range(n_steps):
            self.step(active_count, time_delta)

    # ------------------------------------------------------------------
    # Driver-facing state
    # ------------------------------------------------------------------
    def positions(self, n: Optional[int] = None) -> np.ndarray:
        """Render offsets for the first `n` particles (default: init count)."""
        return self.store.get_positions(self.particle_count if n is None else n)
