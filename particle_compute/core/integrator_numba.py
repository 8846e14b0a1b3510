"""Numba-optimized integration over the dispatch width."""

import numpy as np
import numba as nb

from .particles import ParticleStore


@nb.njit(parallel=True, fastmath=True, cache=True)
def integrate_numba(position: np.ndarray, velocity: np.ndarray, force: np.ndarray,
                    n_active: int, dispatch_width: int, dt: float):
    """Position from the pre-step velocity, then velocity from the force."""
    for i in nb.prange(dispatch_width):
        if i >= n_active:
            continue
        for k in range(3):
            v = velocity[i, k]
            position[i, k] += v * dt
            velocity[i, k] = v + force[i, k] * dt


def integrate_numba_wrapper(store: ParticleStore, n_active: int, dispatch_width: int,
                            dt: float):
    """Wrapper for Numba integration."""
    integrate_numba(store.position, store.velocity, store.force,
                    n_active, dispatch_width, np.float32(dt))
