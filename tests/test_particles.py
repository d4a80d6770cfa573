import logging

import numpy as np
import pytest

from TetFlipSim.flip.particles import ParticleSet


def test_truncation_warns_and_keeps_capacity(caplog):
    particles = ParticleSet(10)
    with caplog.at_level(logging.WARNING, logger="TetFlipSim"):
        particles.setPositions(np.zeros((15, 3)))
    assert particles.count == 10
    assert "Too many particles" in caplog.text


def test_flat_and_shaped_inputs_agree():
    flat = ParticleSet(4)
    shaped = ParticleSet(4)
    values = np.arange(9, dtype=float)
    flat.setPositions(values)
    shaped.setPositions(values.reshape(3, 3))
    assert flat.count == shaped.count == 3
    np.testing.assert_array_equal(flat.positions, shaped.positions)


def test_bad_length_rejected():
    particles = ParticleSet(4)
    with pytest.raises(ValueError):
        particles.setPositions(np.arange(7, dtype=float))


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        ParticleSet(0)


def test_set_velocities_keeps_count():
    particles = ParticleSet(5)
    particles.setPositions(np.zeros((2, 3)))
    particles.setVelocities([[1.0, 0.0, 0.0], [0.0, 2.0, 0.0]])
    assert particles.count == 2
    np.testing.assert_array_equal(particles.velocities[1], [0.0, 2.0, 0.0])


def test_views_cover_live_rows_only():
    particles = ParticleSet(8)
    particles.setPositions(np.ones((3, 3)))
    assert particles.positions.shape == (3, 3)
    particles.positions[0] = [4.0, 5.0, 6.0]
    np.testing.assert_array_equal(particles.positions[0], [4.0, 5.0, 6.0])


def test_energy_and_speed():
    particles = ParticleSet(4)
    particles.setPositions(np.zeros((2, 3)))
    particles.setVelocities([[1.0, 0.0, 0.0], [0.0, 2.0, 0.0]])
    assert particles.kineticEnergy() == pytest.approx(2.5)
    assert particles.maxSpeed() == pytest.approx(2.0)
    assert ParticleSet(1).maxSpeed() == 0.0
