"""
Initial particle layouts.

Each scenario allocates a store and returns (store, n_active). The
`*_seeder` helpers return functions usable as a StepScheduler init hook.
"""

import numpy as np
from typing import Optional, Tuple
from ..core.particles import ParticleStore


def _allocate(n_particles: int, capacity: Optional[int]) -> ParticleStore:
    if capacity is None:
        capacity = n_particles
    if n_particles > capacity:
        raise ValueError(f"{n_particles} particles do not fit in capacity {capacity}")
    return ParticleStore.allocate(capacity)


def create_rest_state(n_particles: int = 1000,
                      capacity: Optional[int] = None) -> Tuple[ParticleStore, int]:
    """Every particle at the origin with zero velocity."""
    return _allocate(n_particles, capacity), n_particles


def create_random_cloud(n_particles: int, capacity: Optional[int] = None,
                        center: Tuple[float, float, float] = (0.0, 0.0, 0.5),
                        extent: float = 0.5, velocity_scale: float = 0.0,
                        seed: Optional[int] = None) -> Tuple[ParticleStore, int]:
    """Particles uniformly distributed in a cube around `center`.

    Args:
        n_particles: Number of active particles
        capacity: Store capacity (default n_particles)
        center: Cube center
        extent: Half edge length of the cube
        velocity_scale: Half width of the uniform initial velocity range
        seed: Random seed for reproducible layouts
    """
    store = _allocate(n_particles, capacity)
    rng = np.random.default_rng(seed)

    offsets = rng.uniform(-extent, extent, size=(n_particles, 3))
    store.position[:n_particles] = np.asarray(center, dtype=np.float32) + offsets
    if velocity_scale > 0:
        store.velocity[:n_particles] = rng.uniform(-velocity_scale, velocity_scale,
                                                   size=(n_particles, 3))
    return store, n_particles


def create_grid_drop(n_per_side: int, spacing: float = 0.1, height: float = 1.0,
                     capacity: Optional[int] = None) -> Tuple[ParticleStore, int]:
    """Square sheet of particles at rest, `height` above the origin."""
    n_particles = n_per_side * n_per_side
    store = _allocate(n_particles, capacity)

    coords = (np.arange(n_per_side) - (n_per_side - 1) / 2.0) * spacing
    xs, ys = np.meshgrid(coords, coords, indexing='ij')
    store.position[:n_particles, 0] = xs.ravel()
    store.position[:n_particles, 1] = ys.ravel()
    store.position[:n_particles, 2] = height
    return store, n_particles


def random_cloud_seeder(extent: float = 0.5, height: float = 0.5, seed: Optional[int] = None):
    """Init hook placing particles in a random cube above the floor."""
    def seed_store(store: ParticleStore, particle_count: int) -> None:
        rng = np.random.default_rng(seed)
        store.position[:particle_count] = rng.uniform(-extent, extent, size=(particle_count, 3))
        store.position[:particle_count, 2] += height
        store.velocity[:particle_count] = 0.0
    return seed_store


SCENARIOS = {
    "rest": lambda n, capacity, seed: create_rest_state(n, capacity),
    "cloud": lambda n, capacity, seed: create_random_cloud(n, capacity, seed=seed),
    "drop": lambda n, capacity, seed: create_grid_drop(max(1, int(np.sqrt(n))), capacity=capacity),
}
