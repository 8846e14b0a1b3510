"""Physics modules: force model terms and diagnostics."""

from .forces import (
    ForceModel,
    compute_force,
    compute_forces_vectorized,
    floor_collision_term,
    pairwise_attraction_term,
    uniform_gravity_term
)
from .diagnostics import (
    compute_center_of_mass,
    compute_total_momentum,
    compute_kinetic_energy,
    compute_attraction_potential_energy,
    count_below_floor,
    all_finite,
    summarize
)

__all__ = [
    # Forces
    'ForceModel',
    'compute_force',
    'compute_forces_vectorized',
    'floor_collision_term',
    'pairwise_attraction_term',
    'uniform_gravity_term',
    # Diagnostics
    'compute_center_of_mass',
    'compute_total_momentum',
    'compute_kinetic_energy',
    'compute_attraction_potential_energy',
    'count_below_floor',
    'all_finite',
    'summarize'
]
