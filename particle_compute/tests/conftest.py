"""Pytest configuration for particle kernel tests."""
import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure(config):
    """Add workspace root to Python path for particle_compute imports."""
    workspace_root = Path(__file__).parent.parent.parent
    if str(workspace_root) not in sys.path:
        sys.path.insert(0, str(workspace_root))


@pytest.fixture
def backend(request):
    """Select the backend named by the test parameter, restore CPU afterwards."""
    import particle_compute

    name = getattr(request, 'param', 'cpu')
    if not particle_compute.list_backends().get(name, False):
        pytest.skip(f"Backend {name} not available")
    particle_compute.set_backend(name)
    yield name
    particle_compute.set_backend('cpu')


@pytest.fixture
def two_body_store():
    """Two particles at rest, 1 apart along x, in a store of capacity 4."""
    from particle_compute.core.particles import ParticleStore

    store = ParticleStore.allocate(4)
    store.position[0] = (0.0, 0.0, 1.0)
    store.position[1] = (1.0, 0.0, 1.0)
    # Sentinel values in the inactive slots
    store.position[2:] = np.float32(7.5)
    store.velocity[2:] = np.float32(-3.25)
    return store
