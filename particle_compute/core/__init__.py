"""Core components: particle storage, step configuration, integration and dispatch."""

from .particles import Particle, ParticleStore
from .config import (
    ForceTerm,
    ForceConstants,
    SimulationConfig,
    VARIANTS,
    STABILITY_LIMIT,
    velocity_decrement_gravity
)
from .integrator import integrate, integrate_arrays
from .scheduler import DispatchGrid, SchedulerState, StepScheduler, seed_nothing

__all__ = [
    'Particle',
    'ParticleStore',
    'ForceTerm',
    'ForceConstants',
    'SimulationConfig',
    'VARIANTS',
    'STABILITY_LIMIT',
    'velocity_decrement_gravity',
    'integrate',
    'integrate_arrays',
    'DispatchGrid',
    'SchedulerState',
    'StepScheduler',
    'seed_nothing'
]
