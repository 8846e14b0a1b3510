"""
Time integration for particles.

    position' = position + velocity * dt
    velocity' = velocity + force * dt

Position is advanced with the velocity from before this step's force is
applied. Swapping the two lines changes the bounce trajectories.
"""

import numpy as np
from .particles import Particle


def integrate(particle: Particle, force: np.ndarray, dt: float) -> Particle:
    """Advance a single particle (mass 1) by one step.

    Args:
        particle: State at the start of the step
        force: Accumulated force for this step, shape (3,)
        dt: Time step

    Returns:
        New Particle; the input is not modified
    """
    dt = np.float32(dt)
    force = np.asarray(force, dtype=np.float32)
    position = particle.position + particle.velocity * dt
    velocity = particle.velocity + force * dt
    return Particle(position, velocity)


def integrate_arrays(position: np.ndarray, velocity: np.ndarray, force: np.ndarray,
                     ids: np.ndarray, dt: float):
    """Integrate the slots listed in `ids` in place.

    Args:
        position: (N, 3) float32 positions
        velocity: (N, 3) float32 velocities
        force: (N, 3) float32 forces, rows in `ids` must be filled
        ids: Slot indices owned by this step's invocations
        dt: Time step
    """
    dt = np.float32(dt)
    velocity_before = velocity[ids]
    position[ids] = position[ids] + velocity_before * dt
    velocity[ids] = velocity_before + force[ids] * dt
