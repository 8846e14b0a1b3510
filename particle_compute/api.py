"""
Unified API for the particle kernels with automatic backend dispatch.

This module registers the CPU, Numba and GPU implementations of the two
step phases ("compute_forces" and "integrate") and exposes functions that
dispatch to the current backend.
"""

import logging
from typing import Optional

from .core.backend import dispatch, set_backend, get_backend, list_backends, auto_select_backend, print_backend_info
from .core.backend import backend_function, for_backend, Backend
from .core.config import SimulationConfig
from .core.particles import ParticleStore
from .core.scheduler import DispatchGrid, check_coverage, invocation_ids
from .core.integrator import integrate_arrays
from .physics.forces import compute_forces_vectorized

logger = logging.getLogger(__name__)


# Register CPU implementations
@backend_function("compute_forces")
@for_backend(Backend.CPU)
def _compute_forces_cpu(store: ParticleStore, config: SimulationConfig, dispatch_width: int):
    compute_forces_vectorized(store, config, invocation_ids(config.active_count, dispatch_width))


@backend_function("integrate")
@for_backend(Backend.CPU)
def _integrate_cpu(store: ParticleStore, n_active: int, dispatch_width: int, dt: float):
    integrate_arrays(store.position, store.velocity, store.force,
                     invocation_ids(n_active, dispatch_width), dt)


# Try to import and register Numba implementations
try:
    from .physics.forces_numba import compute_forces_numba_wrapper
    from .core.integrator_numba import integrate_numba_wrapper

    @backend_function("compute_forces")
    @for_backend(Backend.NUMBA)
    def _compute_forces_numba(store: ParticleStore, config: SimulationConfig, dispatch_width: int):
        compute_forces_numba_wrapper(store, config, dispatch_width)

    @backend_function("integrate")
    @for_backend(Backend.NUMBA)
    def _integrate_numba(store: ParticleStore, n_active: int, dispatch_width: int, dt: float):
        integrate_numba_wrapper(store, n_active, dispatch_width, dt)

except ImportError:
    logger.debug("Numba not installed, NUMBA backend falls back to CPU")

# Try to import PyTorch GPU implementations
try:
    import torch
    if torch.cuda.is_available():
        # Registered by their decorators on import
        from .physics.forces_torch import compute_forces_torch, integrate_torch
        logger.info("PyTorch GPU backend available: %s", torch.cuda.get_device_name(0))
except ImportError:
    pass


# Public API functions that dispatch to appropriate backend
def compute_forces(store: ParticleStore, config: SimulationConfig,
                   dispatch_width: Optional[int] = None, backend: Optional[str] = None):
    """Fill store.force for all active particles (force phase).

    Args:
        store: Particle state
        config: Step parameters
        dispatch_width: Invocations to dispatch (default: active count rounded
            up to whole workgroups)
        backend: Override backend ('cpu', 'numba', 'gpu', or None for current)

    Raises:
        ValueError: If dispatch_width is smaller than the active count
    """
    if dispatch_width is None:
        dispatch_width = DispatchGrid().width(config.active_count)
    check_coverage(dispatch_width, config.active_count)
    dispatch("compute_forces", store, config, dispatch_width, backend=backend)


def integrate(store: ParticleStore, n_active: Optional[int] = None, dt: float = 0.02,
              dispatch_width: Optional[int] = None, backend: Optional[str] = None):
    """Integrate positions and velocities from store.force (write phase).

    Args:
        store: Particle state with forces computed
        n_active: Number of active particles
        dt: Time step
        dispatch_width: Invocations to dispatch, at least n_active
        backend: Override backend
    """
    if n_active is None:
        n_active = store.capacity
    if dispatch_width is None:
        dispatch_width = DispatchGrid().width(n_active)
    check_coverage(dispatch_width, n_active)
    dispatch("integrate", store, n_active, dispatch_width, dt, backend=backend)


def step(store: ParticleStore, config: SimulationConfig,
         grid: Optional[DispatchGrid] = None, backend: Optional[str] = None):
    """One complete step without a scheduler: validate, force phase, integrate phase."""
    config.validate(store.capacity)
    width = (grid or DispatchGrid()).width(config.active_count)
    compute_forces(store, config, width, backend=backend)
    integrate(store, config.active_count, config.time_delta, width, backend=backend)


__all__ = [
    # API functions
    'compute_forces',
    'integrate',
    'step',

    # Backend management
    'set_backend',
    'get_backend',
    'list_backends',
    'auto_select_backend',
    'print_backend_info',
]
