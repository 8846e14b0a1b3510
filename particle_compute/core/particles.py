"""
Fixed-capacity particle storage.

All state lives in pre-allocated float32 arrays so the same buffers can be
handed to NumPy, Numba and PyTorch kernels without conversion:
- position (capacity, 3)
- velocity (capacity, 3)
- force    (capacity, 3) per-step accumulator
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Dict


def _vec3(values) -> np.ndarray:
    vec = np.array(values, dtype=np.float32).reshape(-1)
    if vec.shape != (3,):
        raise ValueError(f"Expected 3 components, got shape {vec.shape}")
    return vec


@dataclass(eq=False)
class Particle:
    """One point mass (implicit mass 1)."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=np.float32))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=np.float32))

    def __post_init__(self):
        self.position = _vec3(self.position)
        self.velocity = _vec3(self.velocity)

    def __eq__(self, other):
        if not isinstance(other, Particle):
            return NotImplemented
        return (np.array_equal(self.position, other.position)
                and np.array_equal(self.velocity, other.velocity))


@dataclass(eq=False)
class ParticleStore:
    """Contiguous particle state for one simulation session.

    Capacity is fixed at allocation. Indices in [0, capacity) are valid for
    get/set; how many of them are simulated is decided per step by the
    active count. The store does no locking, the scheduler guarantees that
    each slot has exactly one writer per step.
    """
    position: np.ndarray        # shape: (N, 3) float32
    velocity: np.ndarray        # shape: (N, 3) float32
    force: np.ndarray           # shape: (N, 3) float32

    @staticmethod
    def allocate(capacity: int) -> 'ParticleStore':
        """Pre-allocate zeroed arrays.

        Args:
            capacity: Maximum number of particles the session supports

        Returns:
            Pre-allocated ParticleStore instance
        """
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")

        # Ensure 32-byte alignment for SIMD
        def aligned_zeros(shape, dtype=np.float32):
            count = int(np.prod(shape))
            size = count * np.dtype(dtype).itemsize
            aligned_size = max(((size + 31) // 32) * 32, 32)
            buffer = np.zeros(aligned_size, dtype=np.uint8)
            return np.frombuffer(buffer, dtype=dtype)[:count].reshape(shape)

        return ParticleStore(
            position=aligned_zeros((capacity, 3)),
            velocity=aligned_zeros((capacity, 3)),
            force=aligned_zeros((capacity, 3)),
        )

    @property
    def capacity(self) -> int:
        return self.position.shape[0]

    def _check_index(self, index: int):
        if not 0 <= index < self.capacity:
            raise IndexError(f"Particle index {index} out of range [0, {self.capacity})")

    def get(self, index: int) -> Particle:
        """Copy of the particle in slot `index`."""
        self._check_index(index)
        return Particle(self.position[index].copy(), self.velocity[index].copy())

    def set(self, index: int, particle: Particle):
        """Overwrite slot `index`."""
        self._check_index(index)
        self.position[index] = particle.position
        self.velocity[index] = particle.velocity

    def get_positions(self, n_active: Optional[int] = None) -> np.ndarray:
        """Positions as (n, 3) array, e.g. per-instance render offsets."""
        if n_active is None:
            return self.position.copy()
        return self.position[:n_active].copy()

    def get_velocities(self, n_active: Optional[int] = None) -> np.ndarray:
        """Velocities as (n, 3) array."""
        if n_active is None:
            return self.velocity.copy()
        return self.velocity[:n_active].copy()

    def reset_forces(self, n_active: int):
        """Reset force accumulators to zero."""
        self.force[:n_active] = 0.0

    def snapshot(self) -> Dict[str, np.ndarray]:
        """Deep copy of position and velocity."""
        return {
            'position': self.position.copy(),
            'velocity': self.velocity.copy(),
        }

    def restore(self, snapshot: Dict[str, np.ndarray]):
        """Write back a snapshot taken from a store of the same capacity."""
        if snapshot['position'].shape != self.position.shape:
            raise ValueError(
                f"Snapshot shape {snapshot['position'].shape} does not match "
                f"store shape {self.position.shape}"
            )
        self.position[:] = snapshot['position']
        self.velocity[:] = snapshot['velocity']
