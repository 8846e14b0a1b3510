"""
Test suite for backend implementations.

Numba and GPU kernels must agree with the CPU reference.
"""

import warnings

import numpy as np
import pytest
import particle_compute
from particle_compute.core.backend import Backend, BackendManager
from particle_compute.core.config import SimulationConfig
from particle_compute.core.particles import ParticleStore
from particle_compute.core.scheduler import DispatchGrid, StepScheduler
from particle_compute.scenarios import create_random_cloud


def run_steps(backend_name, variant, n_steps=10, n=40, capacity=48):
    store, n_active = create_random_cloud(n, capacity=capacity, center=(0.0, 0.0, 0.0),
                                          velocity_scale=0.1, seed=12345)
    scheduler = StepScheduler(store, variant=variant, backend=backend_name,
                              grid=DispatchGrid(workgroup_size=8, workgroups=6))
    scheduler.run_steps(n_steps, active_count=n_active)
    return store


class TestBackends:

    @pytest.mark.parametrize("backend", ['cpu', 'numba', 'gpu'], indirect=True)
    def test_compute_forces(self, backend):
        store, n = create_random_cloud(20, seed=1)
        config = SimulationConfig.from_variant("nbody", active_count=n)

        particle_compute.compute_forces(store, config)

        assert np.all(np.isfinite(store.force[:n]))
        for index in range(n):
            np.testing.assert_allclose(store.force[index],
                                       particle_compute.compute_force(index, store, config),
                                       rtol=1e-4, atol=1e-7)

    @pytest.mark.parametrize("backend", ['cpu', 'numba', 'gpu'], indirect=True)
    def test_integration(self, backend):
        store = ParticleStore.allocate(9)
        store.force[:] = (10.0, 0.0, 0.0)
        store.velocity[:] = (0.0, 1.0, 0.0)

        particle_compute.integrate(store, n_active=5, dt=0.01)

        np.testing.assert_allclose(store.position[:5], [[0.0, 0.01, 0.0]] * 5, rtol=1e-6)
        np.testing.assert_allclose(store.velocity[:5], [[0.1, 1.0, 0.0]] * 5, rtol=1e-6)
        np.testing.assert_array_equal(store.position[5:], 0.0)
        np.testing.assert_array_equal(store.velocity[5:], [[0.0, 1.0, 0.0]] * 4)


class TestBackendConsistency:
    """All backends produce the same trajectories as CPU."""

    @pytest.mark.parametrize("variant", ['gravity', 'floor', 'nbody'])
    @pytest.mark.parametrize("other", ['numba', 'gpu'])
    def test_trajectories_match_cpu(self, variant, other):
        if not particle_compute.list_backends()[other]:
            pytest.skip(f"Backend {other} not available")

        reference = run_steps('cpu', variant)
        result = run_steps(other, variant)

        np.testing.assert_allclose(result.position, reference.position, rtol=1e-4, atol=1e-6,
                                   err_msg=f"{other} position differs from CPU")
        np.testing.assert_allclose(result.velocity, reference.velocity, rtol=1e-4, atol=1e-6,
                                   err_msg=f"{other} velocity differs from CPU")
        # Inactive tail is identical, not just close
        np.testing.assert_array_equal(result.position[40:], reference.position[40:])


class TestBackendSelection:

    def test_cpu_always_available(self):
        assert particle_compute.list_backends()['cpu'] is True

    def test_invalid_backend_name(self):
        original = particle_compute.get_backend()
        with pytest.warns(UserWarning):
            assert particle_compute.set_backend('fpga') is False
        assert particle_compute.get_backend() == original

    def test_unavailable_backend_keeps_current(self):
        unavailable = [name for name, ok in particle_compute.list_backends().items() if not ok]
        if not unavailable:
            pytest.skip("All backends available")

        with pytest.warns(UserWarning):
            assert particle_compute.set_backend(unavailable[0]) is False
        assert particle_compute.get_backend() == 'cpu'

    def test_auto_select_small_problem_uses_cpu(self):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            assert particle_compute.auto_select_backend(10) == 'cpu'
        particle_compute.set_backend('cpu')


class TestDispatchCoverage:
    """Every active index must get an invocation."""

    def test_forces_reject_narrow_width(self):
        store = ParticleStore.allocate(16)
        store.force[:] = 7.0
        config = SimulationConfig.from_variant("gravity", active_count=12)

        with pytest.raises(ValueError, match="cannot cover 12"):
            particle_compute.compute_forces(store, config, dispatch_width=8)
        np.testing.assert_array_equal(store.force, 7.0)

    def test_integrate_rejects_narrow_width(self):
        store = ParticleStore.allocate(16)
        store.force[:] = (0.0, 0.0, -0.02)

        with pytest.raises(ValueError, match="cannot cover 12"):
            particle_compute.integrate(store, n_active=12, dt=0.02, dispatch_width=8)
        np.testing.assert_array_equal(store.velocity, 0.0)

    @pytest.mark.parametrize("backend", ['cpu', 'numba', 'gpu'], indirect=True)
    def test_exact_width_steps_every_active_slot(self, backend):
        store = ParticleStore.allocate(16)
        config = SimulationConfig.from_variant("gravity", active_count=12)

        particle_compute.compute_forces(store, config, dispatch_width=12)
        particle_compute.integrate(store, n_active=12, dt=0.02, dispatch_width=12)

        np.testing.assert_allclose(store.velocity[:12, 2], -0.0004, rtol=1e-6)
        np.testing.assert_array_equal(store.velocity[12:], 0.0)


class TestBackendManager:

    def test_info_lists_every_backend(self):
        lines = BackendManager().info_lines()

        for name in ('cpu', 'numba', 'gpu'):
            assert any(line[2:].startswith(name) for line in lines)
        assert "Current backend: cpu" in lines

    def test_missing_kernel_falls_back_to_cpu(self):
        manager = BackendManager()
        manager.register("kernel", Backend.CPU, lambda: "cpu")

        with pytest.warns(UserWarning):
            assert manager.get_implementation("kernel", Backend.GPU)() == "cpu"
        with pytest.raises(ValueError):
            manager.get_implementation("unknown")
