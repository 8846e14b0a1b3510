"""Configuration and particle store tests."""

import numpy as np
import pytest
from particle_compute.core.config import (
    ForceConstants,
    ForceTerm,
    SimulationConfig,
    STABILITY_LIMIT,
    VARIANTS,
    velocity_decrement_gravity,
)
from particle_compute.core.particles import Particle, ParticleStore


class TestSimulationConfig:

    def test_reference_constants(self):
        constants = ForceConstants()

        assert constants.gravity == 0.02
        assert constants.floor_height == -0.1
        assert constants.restitution_stiffness == 10.0
        assert constants.attraction_strength == 0.0003
        assert constants.softening == 0.1

    def test_variants(self):
        assert VARIANTS["gravity"] == (ForceTerm.GRAVITY,)
        config = SimulationConfig.from_variant("nbody", active_count=3, softening=0.5)

        assert config.terms == (ForceTerm.FLOOR, ForceTerm.ATTRACTION, ForceTerm.GRAVITY)
        assert config.constants.softening == 0.5
        assert config.has_term(ForceTerm.ATTRACTION)

    def test_unknown_variant(self):
        with pytest.raises(ValueError):
            SimulationConfig.from_variant("sph", active_count=1)

    def test_terms_accept_names(self):
        config = SimulationConfig(active_count=1, terms=("gravity", "floor"))

        assert config.terms == (ForceTerm.FLOOR, ForceTerm.GRAVITY)

    def test_immutable_and_replaceable(self):
        config = SimulationConfig(active_count=2)

        with pytest.raises(AttributeError):
            config.active_count = 3

        assert config.with_active_count(3).active_count == 3
        assert config.with_time_delta(0.01).time_delta == 0.01
        assert config.active_count == 2

    @pytest.mark.parametrize("active_count,time_delta", [
        (-1, 0.02), (5, 0.02), (2, 0.0), (2, -0.1), (2, float('nan')), (2, float('inf')),
    ])
    def test_validate_rejects(self, active_count, time_delta):
        config = SimulationConfig(active_count=active_count, time_delta=time_delta)

        with pytest.raises(ValueError):
            config.validate(capacity=4)

    def test_validate_accepts_full_capacity(self):
        SimulationConfig(active_count=4).validate(capacity=4)

    def test_stability_warning(self):
        config = SimulationConfig.from_variant("floor", active_count=1, time_delta=0.2)

        assert config.stability_number() == pytest.approx(0.4)
        with pytest.warns(RuntimeWarning):
            assert not config.check_stability()

    def test_stability_ignored_without_floor(self):
        config = SimulationConfig.from_variant("gravity", active_count=1, time_delta=1.0)

        assert config.stability_number() > STABILITY_LIMIT
        assert config.check_stability()

    def test_velocity_decrement_conversion(self):
        assert velocity_decrement_gravity(0.001, 0.02) == pytest.approx(0.05)
        with pytest.raises(ValueError):
            velocity_decrement_gravity(0.001, 0.0)


class TestParticleStore:

    def test_allocate_zeroed_float32(self):
        store = ParticleStore.allocate(5)

        assert store.capacity == 5
        for array in (store.position, store.velocity, store.force):
            assert array.shape == (5, 3)
            assert array.dtype == np.float32
            assert np.all(array == 0.0)

    def test_get_set_roundtrip_copies(self):
        store = ParticleStore.allocate(3)
        store.set(2, Particle(position=(1.0, 2.0, 3.0), velocity=(-1.0, 0.0, 0.5)))

        particle = store.get(2)
        particle.position[:] = 0.0

        np.testing.assert_array_equal(store.position[2], [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(store.velocity[2], [-1.0, 0.0, 0.5])

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_out_of_range_index(self, index):
        store = ParticleStore.allocate(3)

        with pytest.raises(IndexError):
            store.get(index)
        with pytest.raises(IndexError):
            store.set(index, Particle())

    def test_particle_requires_three_components(self):
        with pytest.raises(ValueError):
            Particle(position=(1.0, 2.0))

    def test_snapshot_restore(self):
        store = ParticleStore.allocate(2)
        store.position[:] = 1.0
        snapshot = store.snapshot()
        store.position[:] = 2.0

        store.restore(snapshot)

        np.testing.assert_array_equal(store.position, 1.0)
        with pytest.raises(ValueError):
            ParticleStore.allocate(3).restore(snapshot)

    def test_reset_forces_only_active(self):
        store = ParticleStore.allocate(4)
        store.force[:] = 1.0

        store.reset_forces(2)

        np.testing.assert_array_equal(store.force[:2], 0.0)
        np.testing.assert_array_equal(store.force[2:], 1.0)

    def test_stores_compare_by_identity(self):
        store = ParticleStore.allocate(2)

        assert store == store
        assert store != ParticleStore.allocate(2)


class TestParticle:

    def test_equal_particles(self):
        a = Particle(position=(1.0, 2.0, 3.0), velocity=(0.0, -1.0, 0.0))
        b = Particle(position=[1.0, 2.0, 3.0], velocity=[0.0, -1.0, 0.0])

        assert a == b
        assert not (a != b)

    def test_unequal_particles(self):
        a = Particle(position=(1.0, 2.0, 3.0))

        assert a != Particle(position=(1.0, 2.0, 3.5))
        assert a != Particle(position=(1.0, 2.0, 3.0), velocity=(0.0, 0.0, 1.0))
        assert a != (1.0, 2.0, 3.0)

    def test_store_get_matches_set(self):
        store = ParticleStore.allocate(2)
        particle = Particle(position=(0.5, 0.0, -0.25), velocity=(1.0, 1.0, 1.0))
        store.set(1, particle)

        assert store.get(1) == particle
