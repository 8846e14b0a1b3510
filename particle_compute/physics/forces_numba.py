"""
Numba-optimized force computation.

One prange iteration per invocation of the dispatch width. Invocations past
the active count return immediately, exactly like the GPU kernel guard.
"""

import numpy as np
import numba as nb

from ..core.config import ForceTerm, SimulationConfig
from ..core.particles import ParticleStore


@nb.njit(parallel=True, fastmath=True, cache=True)
def compute_forces_numba(position: np.ndarray, force: np.ndarray,
                         n_active: int, dispatch_width: int,
                         use_floor: bool, use_attraction: bool, use_gravity: bool,
                         floor_height: float, restitution_stiffness: float,
                         attraction_strength: float, softening: float,
                         gravity: float):
    """Fused floor + attraction + gravity kernel.

    Reads `position` only and writes one row of `force` per active index.
    """
    for i in nb.prange(dispatch_width):
        if i >= n_active:
            continue

        px_i = position[i, 0]
        py_i = position[i, 1]
        pz_i = position[i, 2]

        fx = 0.0
        fy = 0.0
        fz = 0.0

        if use_floor and pz_i < floor_height:
            deflection = floor_height - pz_i
            fz += restitution_stiffness * deflection

        if use_attraction:
            for j in range(n_active):
                if j == i:
                    continue
                dx = position[j, 0] - px_i
                dy = position[j, 1] - py_i
                dz = position[j, 2] - pz_i

                distance = np.sqrt(dx * dx + dy * dy + dz * dz) + softening
                factor = attraction_strength / (distance * distance * distance)
                fx += dx * factor
                fy += dy * factor
                fz += dz * factor

        if use_gravity:
            fz -= gravity

        force[i, 0] = fx
        force[i, 1] = fy
        force[i, 2] = fz


def compute_forces_numba_wrapper(store: ParticleStore, config: SimulationConfig,
                                 dispatch_width: int):
    """Wrapper for Numba force computation."""
    constants = config.constants
    compute_forces_numba(
        store.position, store.force,
        config.active_count, dispatch_width,
        config.has_term(ForceTerm.FLOOR),
        config.has_term(ForceTerm.ATTRACTION),
        config.has_term(ForceTerm.GRAVITY),
        np.float32(constants.floor_height), np.float32(constants.restitution_stiffness),
        np.float32(constants.attraction_strength), np.float32(constants.softening),
        np.float32(constants.gravity)
    )
