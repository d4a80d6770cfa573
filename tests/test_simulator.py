import numpy as np
import pytest

from TetFlipSim import constants as const
from TetFlipSim.flip.forces import AccelerationField
from TetFlipSim.flip.protocols import SimulationConfig
from TetFlipSim.flip.simulator import TetFlipSimulator
from TetFlipSim.scenarios.damBreak import DamBreakConfig


def test_default_construction():
    sim = TetFlipSimulator(scenario=DamBreakConfig.standard(seed=0))
    assert sim.particleCount == 1000
    assert sim.tetrahedraCount == 2560
    assert sim.mesh.nodeCount == 729
    assert sim.simulationTime == 0.0
    assert sim.stepCount == 0


def test_dam_break_stays_in_domain():
    sim = TetFlipSimulator(scenario=DamBreakConfig.standard(seed=42))
    for _ in range(60):
        state = sim.step()

    positions = sim.particles.positions
    assert np.all(np.isfinite(positions))
    assert np.all(positions >= -1.0)
    assert np.all(positions <= 1.0)
    assert state.step == 60
    assert sim.simulationTime == pytest.approx(60 * 0.016)


def test_first_step_from_rest_is_pure_gravity(smallSimulator):
    smallSimulator.step()
    expected = np.tile([0.0, const.gravity * const.timeStep, 0.0], (smallSimulator.particleCount, 1))
    np.testing.assert_allclose(smallSimulator.particles.velocities, expected, atol=1e-9)


def test_flip_ratio_from_rest_matches_replacement(smallSimulator):
    smallSimulator.setFlipRatio(1.0)
    smallSimulator.step()
    velocities = smallSimulator.particles.velocities
    np.testing.assert_allclose(velocities[:, 1], const.gravity * const.timeStep, atol=1e-9)


def test_extra_forces_are_applied():
    config = SimulationConfig(meshResolution=(3, 3, 3), maxParticles=50, gravity=0.0)
    push = AccelerationField(lambda nodes: np.tile([1.0, 0.0, 0.0], (len(nodes), 1)))
    sim = TetFlipSimulator(config=config, scenario=DamBreakConfig(nParticles=50, seed=1), extraForces=[push])
    sim.step(0.01)
    np.testing.assert_allclose(sim.particles.velocities, np.tile([0.01, 0.0, 0.0], (50, 1)), atol=1e-9)


def test_explicit_dt(smallSimulator):
    state = smallSimulator.step(0.01)
    assert state.dt == 0.01
    assert smallSimulator.simulationTime == pytest.approx(0.01)
    with pytest.raises(ValueError):
        smallSimulator.step(1.0)


def test_state_diagnostics(smallSimulator):
    state = smallSimulator.step()
    assert state.particleCount == 200
    assert state.locatedParticles == 200
    assert state.lostParticles == 0
    assert 1 <= state.pressureIterations <= const.pressureMaxIterations
    assert state.maxVelocity == pytest.approx(abs(const.gravity * const.timeStep))
    assert smallSimulator.lastPressureResult.iterations == state.pressureIterations


def test_reset_restores_seeded_scenario(smallSimulator):
    initial = np.array(smallSimulator.particles.positions)
    nodes = np.array(smallSimulator.mesh.nodes)
    for _ in range(5):
        smallSimulator.step()
    assert not np.allclose(smallSimulator.particles.positions, initial)

    smallSimulator.reset()
    assert smallSimulator.simulationTime == 0.0
    assert smallSimulator.stepCount == 0
    assert smallSimulator.lastPressureResult is None
    np.testing.assert_array_equal(smallSimulator.particles.positions, initial)
    np.testing.assert_array_equal(smallSimulator.particles.velocities, 0.0)
    np.testing.assert_array_equal(smallSimulator.mesh.nodes, nodes)


def test_setters_validate(smallSimulator):
    with pytest.raises(ValueError):
        smallSimulator.setTimeStep(0.0)
    with pytest.raises(ValueError):
        smallSimulator.setGravity(1000.0)
    with pytest.raises(ValueError):
        smallSimulator.setFlipRatio(1.5)
    with pytest.raises(ValueError):
        smallSimulator.setViscosity(-0.1)
    with pytest.raises(ValueError):
        smallSimulator.setGravity(float("nan"))

    smallSimulator.setTimeStep(0.005)
    smallSimulator.setViscosity(0.5)
    smallSimulator.setFlipRatio(0.95)
    assert smallSimulator.config.timeStep == 0.005
    assert smallSimulator.config.viscosity == 0.5
    assert smallSimulator.config.flipRatio == 0.95


def test_set_gravity_changes_dynamics(smallSimulator):
    smallSimulator.setGravity(-2.0)
    smallSimulator.step()
    np.testing.assert_allclose(smallSimulator.particles.velocities[:, 1], -2.0 * const.timeStep, atol=1e-9)


def test_setters_leave_caller_config_untouched():
    config = SimulationConfig(meshResolution=(4, 4, 4), maxParticles=50)
    sim = TetFlipSimulator(config=config, scenario=DamBreakConfig(nParticles=50, seed=3))

    sim.setGravity(-1.0)
    sim.setTimeStep(0.004)
    sim.setFlipRatio(0.5)

    assert sim.config is not config
    assert sim.config.gravity == -1.0
    assert config.gravity == const.gravity
    assert config.timeStep == const.timeStep
    assert config.flipRatio == const.flipRatio


def test_getters_are_read_only(smallSimulator):
    snapshot = smallSimulator.particles
    assert snapshot.count == 200
    with pytest.raises(ValueError):
        snapshot.positions[0, 0] = 5.0
    with pytest.raises(ValueError):
        smallSimulator.velocityField[0, 0] = 5.0
    with pytest.raises(ValueError):
        smallSimulator.mesh.tetrahedra[0, 0] = 0


def test_capacity_truncates_scenario():
    config = SimulationConfig(meshResolution=(2, 2, 2), maxParticles=10)
    sim = TetFlipSimulator(config=config, scenario=DamBreakConfig(nParticles=25, seed=0))
    assert sim.particleCount == 10
    sim.step()
    assert sim.currentState.particleCount == 10


def test_empty_scenario_steps():
    config = SimulationConfig(meshResolution=(2, 2, 2), maxParticles=5)
    sim = TetFlipSimulator(config=config, scenario=DamBreakConfig(nParticles=0))
    state = sim.step()
    assert state.particleCount == 0
    assert state.maxVelocity == 0.0


def test_invalid_config_rejected():
    with pytest.raises(ValueError):
        TetFlipSimulator(config=SimulationConfig(timeStep=5.0))
