"""Data-parallel particle step kernel: gravity, floor bounce and N-body attraction."""

from . import core
from . import physics
from . import scenarios

# Import API to trigger backend registration
from . import api

from .api import (
    # Core functions
    compute_forces,
    integrate,
    step,

    # Backend management
    set_backend,
    get_backend,
    list_backends,
    auto_select_backend,
    print_backend_info,
)
from .core import (
    Particle,
    ParticleStore,
    ForceTerm,
    ForceConstants,
    SimulationConfig,
    DispatchGrid,
    StepScheduler
)
from .physics import ForceModel, compute_force

__version__ = "0.1.0"

__all__ = [
    # Modules
    'core',
    'physics',
    'scenarios',

    # API functions
    'compute_forces',
    'integrate',
    'step',
    'compute_force',

    # Backend management
    'set_backend',
    'get_backend',
    'list_backends',
    'auto_select_backend',
    'print_backend_info',

    # Core classes
    'Particle',
    'ParticleStore',
    'ForceTerm',
    'ForceConstants',
    'SimulationConfig',
    'DispatchGrid',
    'StepScheduler',
    'ForceModel'
]
