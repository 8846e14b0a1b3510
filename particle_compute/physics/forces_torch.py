"""
PyTorch GPU force and integration kernels.

Each phase runs as whole-tensor operations over the guarded invocation ids,
so the force phase has finished for every particle before any position is
written back.
"""

import torch
import numpy as np
from ..core.backend import backend_function, for_backend, Backend
from ..core.config import ForceTerm, SimulationConfig
from ..core.particles import ParticleStore
from ..core.scheduler import invocation_ids


def _device() -> torch.device:
    return torch.device('cuda' if torch.cuda.is_available() else 'cpu')


def _guarded_ids(n_active: int, dispatch_width: int, device: torch.device) -> torch.Tensor:
    return torch.from_numpy(invocation_ids(n_active, dispatch_width)).to(device)


def compute_forces_tensor(position: torch.Tensor, ids: torch.Tensor, n_active: int,
                          config: SimulationConfig) -> torch.Tensor:
    """Forces for the particles in `ids` from a (N, 3) position tensor."""
    constants = config.constants
    targets = position[ids]
    force = torch.zeros_like(targets)

    if config.has_term(ForceTerm.FLOOR):
        deflection = constants.floor_height - targets[:, 2]
        below = targets[:, 2] < constants.floor_height
        force[:, 2] += torch.where(below, constants.restitution_stiffness * deflection,
                                   torch.zeros_like(deflection))

    if config.has_term(ForceTerm.ATTRACTION) and n_active > 0:
        sources = position[:n_active]
        delta = sources.unsqueeze(0) - targets.unsqueeze(1)  # (k, n, 3)
        distance = torch.linalg.norm(delta, dim=2) + constants.softening
        contribution = delta / distance.unsqueeze(2) * (
            constants.attraction_strength / (distance * distance)).unsqueeze(2)
        self_mask = torch.arange(n_active, device=position.device).unsqueeze(0) == ids.unsqueeze(1)
        contribution[self_mask] = 0.0
        force += contribution.sum(dim=1)

    if config.has_term(ForceTerm.GRAVITY):
        force[:, 2] -= constants.gravity

    return force


@backend_function("compute_forces")
@for_backend(Backend.GPU)
def compute_forces_torch(store: ParticleStore, config: SimulationConfig, dispatch_width: int):
    """GPU force phase: upload positions, compute, download forces."""
    device = _device()
    n_active = config.active_count

    position = torch.from_numpy(store.position).to(device)
    ids = _guarded_ids(n_active, dispatch_width, device)
    force = compute_forces_tensor(position, ids, n_active, config)

    store.force[ids.cpu().numpy()] = force.cpu().numpy().astype(np.float32)


@backend_function("integrate")
@for_backend(Backend.GPU)
def integrate_torch(store: ParticleStore, n_active: int, dispatch_width: int, dt: float):
    """GPU integration over the guarded ids."""
    device = _device()
    ids = _guarded_ids(n_active, dispatch_width, device)

    position = torch.from_numpy(store.position[:n_active]).to(device)
    velocity = torch.from_numpy(store.velocity[:n_active]).to(device)
    force = torch.from_numpy(store.force[:n_active]).to(device)

    new_position = position[ids] + velocity[ids] * dt
    new_velocity = velocity[ids] + force[ids] * dt

    host_ids = ids.cpu().numpy()
    store.position[host_ids] = new_position.cpu().numpy()
    store.velocity[host_ids] = new_velocity.cpu().numpy()
