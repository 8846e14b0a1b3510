"""
System-level diagnostics for the particle state.

All particles have implicit mass 1, so momentum is the summed velocity and
the centre of mass is the mean position.
"""

import numpy as np
from typing import Tuple
from ..core.config import ForceConstants
from ..core.particles import ParticleStore


def compute_center_of_mass(store: ParticleStore, n_active: int) -> np.ndarray:
    """Mean position of the active particles, (3,) or zeros if none."""
    if n_active == 0:
        return np.zeros(3, dtype=np.float64)
    return np.mean(store.position[:n_active].astype(np.float64), axis=0)


def compute_total_momentum(store: ParticleStore, n_active: int) -> np.ndarray:
    """Σ v over the active particles."""
    return np.sum(store.velocity[:n_active].astype(np.float64), axis=0)


def compute_kinetic_energy(store: ParticleStore, n_active: int) -> float:
    """½ Σ |v|²"""
    velocity = store.velocity[:n_active].astype(np.float64)
    return 0.5 * float(np.sum(velocity * velocity))


def compute_attraction_potential_energy(store: ParticleStore, n_active: int,
                                        constants: ForceConstants) -> float:
    """Potential of the softened attraction, summed over unique pairs.

    U = -k Σᵢ Σⱼ>ᵢ 1 / (rᵢⱼ + ε)

    Only exact for ε = 0; with softening the attraction force is not the
    gradient of this potential, so treat it as an indicator.
    """
    positions = store.position[:n_active].astype(np.float64)
    potential = 0.0
    for i in range(n_active - 1):
        delta = positions[i + 1:] - positions[i]
        distance = np.sqrt(np.sum(delta * delta, axis=1)) + constants.softening
        potential -= constants.attraction_strength * float(np.sum(1.0 / distance))
    return potential


def count_below_floor(store: ParticleStore, n_active: int,
                      constants: ForceConstants) -> int:
    """Particles currently penetrating the floor."""
    return int(np.sum(store.position[:n_active, 2] < np.float32(constants.floor_height)))


def all_finite(store: ParticleStore, n_active: int) -> bool:
    """False once any active position or velocity is NaN or infinite."""
    return bool(np.all(np.isfinite(store.position[:n_active])) and
                np.all(np.isfinite(store.velocity[:n_active])))


def summarize(store: ParticleStore, n_active: int,
              constants: ForceConstants) -> Tuple[np.ndarray, float, int, bool]:
    """(center of mass, kinetic energy, particles below floor, finite)"""
    return (
        compute_center_of_mass(store, n_active),
        compute_kinetic_energy(store, n_active),
        count_below_floor(store, n_active, constants),
        all_finite(store, n_active),
    )
