import numpy as np
import pytest

from TetFlipSim.scenarios.damBreak import DamBreakConfig, createDamBreak


def test_standard_block():
    config = DamBreakConfig.standard(seed=3)
    positions, velocities = createDamBreak(config)
    assert positions.shape == (1000, 3)
    assert np.all(positions >= [-0.8, -0.8, -0.3])
    assert np.all(positions <= [-0.4, 0.4, 0.3])
    np.testing.assert_array_equal(velocities, 0.0)


def test_seed_reproduces_layout():
    a, _ = createDamBreak(DamBreakConfig(nParticles=20, seed=11))
    b, _ = createDamBreak(DamBreakConfig(nParticles=20, seed=11))
    c, _ = createDamBreak(DamBreakConfig(nParticles=20, seed=12))
    np.testing.assert_array_equal(a, b)
    assert not np.array_equal(a, c)


def test_presets():
    assert DamBreakConfig.small().nParticles == 250
    assert DamBreakConfig.small().seed == 0
    assert DamBreakConfig.standard().nParticles == 1000
    assert DamBreakConfig.fine().nParticles == 4000


def test_from_dict():
    config = DamBreakConfig.fromDict({"nParticles": 12, "regionMin": [0, 0, 0], "regionMax": [0.5, 0.5, 0.5], "seed": 4})
    assert config.nParticles == 12
    np.testing.assert_array_equal(config.regionMax, [0.5, 0.5, 0.5])
    assert config.seed == 4
    assert DamBreakConfig.fromDict({}).nParticles == 1000


def test_invalid_config_rejected():
    with pytest.raises(ValueError):
        DamBreakConfig(nParticles=-1)
    with pytest.raises(ValueError):
        DamBreakConfig(regionMin=[0, 0, 0], regionMax=[-1, 1, 1])
