"""
Per-step simulation parameters.

A SimulationConfig is immutable and shared read-only by every invocation of
a step. The driver may swap it wholesale between steps.
"""

import enum
import math
import warnings
from dataclasses import dataclass, field, replace
from typing import Tuple


class ForceTerm(enum.Enum):
    """Force contributions, listed in accumulation order."""
    FLOOR = "floor"
    ATTRACTION = "attraction"
    GRAVITY = "gravity"


# Canonical accumulation order
TERM_ORDER = (ForceTerm.FLOOR, ForceTerm.ATTRACTION, ForceTerm.GRAVITY)

VARIANTS = {
    "gravity": (ForceTerm.GRAVITY,),
    "floor": (ForceTerm.FLOOR, ForceTerm.GRAVITY),
    "nbody": (ForceTerm.FLOOR, ForceTerm.ATTRACTION, ForceTerm.GRAVITY),
}

DEFAULT_TIME_DELTA = 0.02

# Above this restitution_stiffness * dt² the penalty spring tends to diverge
STABILITY_LIMIT = 0.1


@dataclass(frozen=True)
class ForceConstants:
    """Physical constants of the force model."""
    gravity: float = 0.02
    floor_height: float = -0.1
    restitution_stiffness: float = 10.0
    attraction_strength: float = 0.0003
    softening: float = 0.1


def velocity_decrement_gravity(decrement: float, time_delta: float) -> float:
    """Force-form gravity equivalent to `velocity.z -= decrement` each step."""
    if time_delta <= 0:
        raise ValueError(f"time_delta must be positive, got {time_delta}")
    return decrement / time_delta


def _ordered_terms(terms) -> Tuple[ForceTerm, ...]:
    requested = set(ForceTerm(t) for t in terms)
    return tuple(t for t in TERM_ORDER if t in requested)


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters for one step."""
    active_count: int
    time_delta: float = DEFAULT_TIME_DELTA
    constants: ForceConstants = field(default_factory=ForceConstants)
    terms: Tuple[ForceTerm, ...] = VARIANTS["nbody"]

    def __post_init__(self):
        # Normalize so terms are always applied in canonical order
        object.__setattr__(self, 'terms', _ordered_terms(self.terms))

    @classmethod
    def from_variant(cls, variant: str, active_count: int,
                     time_delta: float = DEFAULT_TIME_DELTA,
                     **constant_overrides) -> 'SimulationConfig':
        """Build a config for one of the named force model variants.

        Args:
            variant: 'gravity', 'floor' or 'nbody'
            active_count: Number of simulated particles
            time_delta: Step duration
            **constant_overrides: Fields of ForceConstants to override
        """
        if variant not in VARIANTS:
            raise ValueError(f"Unknown variant: {variant}. Choose from: {', '.join(VARIANTS)}")
        return cls(
            active_count=active_count,
            time_delta=time_delta,
            constants=ForceConstants(**constant_overrides),
            terms=VARIANTS[variant],
        )

    def has_term(self, term: ForceTerm) -> bool:
        return term in self.terms

    def with_active_count(self, active_count: int) -> 'SimulationConfig':
        return replace(self, active_count=active_count)

    def with_time_delta(self, time_delta: float) -> 'SimulationConfig':
        return replace(self, time_delta=time_delta)

    def validate(self, capacity: int):
        """Check the driver-side contract against a store capacity.

        Raises:
            ValueError: If the active count or time delta is unusable
        """
        if self.active_count < 0:
            raise ValueError(f"active_count must be non-negative, got {self.active_count}")
        if self.active_count > capacity:
            raise ValueError(
                f"active_count {self.active_count} exceeds store capacity {capacity}"
            )
        if not math.isfinite(self.time_delta) or self.time_delta <= 0:
            raise ValueError(f"time_delta must be positive and finite, got {self.time_delta}")

    def stability_number(self) -> float:
        """restitution_stiffness * dt², small values keep floor bounces bounded."""
        return self.constants.restitution_stiffness * self.time_delta ** 2

    def check_stability(self) -> bool:
        """Warn if the floor spring is likely to diverge with this time delta.

        Returns:
            True if within STABILITY_LIMIT or the floor term is disabled
        """
        if not self.has_term(ForceTerm.FLOOR):
            return True
        number = self.stability_number()
        if number > STABILITY_LIMIT:
            warnings.warn(
                f"restitution_stiffness * dt^2 = {number:.3g} exceeds {STABILITY_LIMIT}; "
                f"floor bounces may diverge",
                RuntimeWarning,
            )
            return False
        return True
