"""
Vectorized force model (NumPy reference implementation).

Force terms, accumulated in this order:
- Floor collision: penalty spring pushing up below floor_height
- Pairwise attraction: softened inverse-square pull between active particles
- Uniform gravity: constant pull along -z

Every term is a pure function of the positions snapshot and returns one
force row per requested index. Terms never write particle state.
"""

import numpy as np
from typing import Callable, Dict, List, Sequence

from ..core.config import ForceConstants, ForceTerm, SimulationConfig
from ..core.particles import ParticleStore

TermFunction = Callable[[np.ndarray, np.ndarray, int, ForceConstants], np.ndarray]


def floor_collision_term(positions: np.ndarray, ids: np.ndarray, n_active: int,
                         constants: ForceConstants) -> np.ndarray:
    """Penalty spring against the floor plane z = floor_height.

    Only ever pushes upward, proportional to penetration depth. No contact
    state is kept between steps.
    """
    force = np.zeros((len(ids), 3), dtype=np.float32)
    floor_height = np.float32(constants.floor_height)

    z = positions[ids, 2]
    below = z < floor_height
    deflection = floor_height - z[below]
    force[below, 2] = np.float32(constants.restitution_stiffness) * deflection
    return force


def pairwise_attraction_term(positions: np.ndarray, ids: np.ndarray, n_active: int,
                             constants: ForceConstants,
                             batch_size: int = 1000) -> np.ndarray:
    """Direct O(N²) attraction towards every other active particle.

    distance = |delta| + softening, direction = delta / distance,
    contribution = direction * strength / distance². Processed in batches of
    target particles to bound memory at batch_size * n_active.
    """
    force = np.zeros((len(ids), 3), dtype=np.float32)
    if n_active == 0:
        return force

    softening = np.float32(constants.softening)
    strength = np.float32(constants.attraction_strength)
    sources = positions[:n_active]
    source_ids = np.arange(n_active)

    for batch_start in range(0, len(ids), batch_size):
        batch = ids[batch_start:batch_start + batch_size]

        # (batch, n_active, 3)
        delta = sources[np.newaxis, :, :] - positions[batch][:, np.newaxis, :]
        distance = np.sqrt(np.sum(delta * delta, axis=2)) + softening
        direction = delta / distance[..., np.newaxis]
        contribution = direction * (strength / (distance * distance))[..., np.newaxis]

        # Skip self-interaction
        self_mask = source_ids[np.newaxis, :] == batch[:, np.newaxis]
        contribution[self_mask] = 0.0

        force[batch_start:batch_start + len(batch)] = np.sum(contribution, axis=1)

    return force


def uniform_gravity_term(positions: np.ndarray, ids: np.ndarray, n_active: int,
                         constants: ForceConstants) -> np.ndarray:
    """Constant force of magnitude `gravity` along -z."""
    force = np.zeros((len(ids), 3), dtype=np.float32)
    force[:, 2] = -np.float32(constants.gravity)
    return force


TERM_FUNCTIONS: Dict[ForceTerm, TermFunction] = {
    ForceTerm.FLOOR: floor_collision_term,
    ForceTerm.ATTRACTION: pairwise_attraction_term,
    ForceTerm.GRAVITY: uniform_gravity_term,
}


class ForceModel:
    """Ordered list of additive force terms."""

    def __init__(self, terms: Sequence[ForceTerm]):
        self.terms = tuple(terms)
        self.term_functions: List[TermFunction] = [TERM_FUNCTIONS[t] for t in self.terms]

    @classmethod
    def from_config(cls, config: SimulationConfig) -> 'ForceModel':
        return cls(config.terms)

    def accumulate(self, positions: np.ndarray, ids: np.ndarray, n_active: int,
                   constants: ForceConstants) -> np.ndarray:
        """Sum all enabled terms for the particles in `ids`.

        Returns:
            (len(ids), 3) float32 forces
        """
        ids = np.asarray(ids, dtype=np.int64)
        total = np.zeros((len(ids), 3), dtype=np.float32)
        for term in self.term_functions:
            total += term(positions, ids, n_active, constants)
        return total

    def __repr__(self):
        return f"ForceModel({', '.join(t.value for t in self.terms)})"


def compute_force(index: int, store: ParticleStore, config: SimulationConfig) -> np.ndarray:
    """Force on one particle given the whole store.

    Args:
        index: Particle slot
        store: Particle state (read-only here)
        config: Step parameters, including which terms are enabled

    Returns:
        (3,) float32 force
    """
    model = ForceModel.from_config(config)
    ids = np.array([index], dtype=np.int64)
    return model.accumulate(store.position, ids, config.active_count, config.constants)[0]


def compute_forces_vectorized(store: ParticleStore, config: SimulationConfig,
                              ids: np.ndarray) -> None:
    """Fill store.force for every slot in `ids` (read phase of a step)."""
    model = ForceModel.from_config(config)
    store.force[ids] = model.accumulate(store.position, ids, config.active_count,
                                        config.constants)
