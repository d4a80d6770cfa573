import numpy as np
import pytest

from TetFlipSim.flip.pressureSolver import JacobiPressureSolver
from TetFlipSim.mesh.tetMesh import TetrahedralMesh


def test_zero_velocity_gives_zero_pressure(unitMesh):
    solver = JacobiPressureSolver(unitMesh)
    result = solver.solve(0.016)

    np.testing.assert_array_equal(result.pressure, 0.0)
    np.testing.assert_array_equal(unitMesh.nodeVelocities, 0.0)
    assert result.converged
    assert result.iterations == 1


def test_uniform_field_is_divergence_free(unitMesh):
    unitMesh.setNodeVelocities(np.tile([0.3, -1.2, 2.0], (unitMesh.nodeCount, 1)))
    solver = JacobiPressureSolver(unitMesh)
    result = solver.solve(0.016)

    np.testing.assert_allclose(result.divergence, 0.0, atol=1e-12)
    np.testing.assert_allclose(result.pressure, 0.0, atol=1e-12)
    np.testing.assert_allclose(unitMesh.nodeVelocities, np.tile([0.3, -1.2, 2.0], (unitMesh.nodeCount, 1)))


def test_residual_history_is_non_increasing(defaultMesh, rng):
    defaultMesh.setNodeVelocities(rng.normal(scale=2.0, size=(defaultMesh.nodeCount, 3)))
    solver = JacobiPressureSolver(defaultMesh)
    result = solver.solve(0.016)

    history = np.array(result.residualHistory)
    assert 1 <= len(history) <= 50
    assert result.iterations == len(history)
    assert np.all(np.diff(history) <= 1e-12)
    assert result.finalResidual == history[-1]
    defaultMesh.setNodeVelocities(np.zeros((defaultMesh.nodeCount, 3)))


def test_iteration_cap(defaultMesh, rng):
    defaultMesh.setNodeVelocities(rng.normal(scale=50.0, size=(defaultMesh.nodeCount, 3)))
    solver = JacobiPressureSolver(defaultMesh, maxIterations=3, tolerance=1e-12)
    result = solver.solve(0.016)

    assert result.iterations == 3
    assert not result.converged
    defaultMesh.setNodeVelocities(np.zeros((defaultMesh.nodeCount, 3)))


def test_divergence_of_single_tetrahedron(singleTet):
    velocities = np.zeros((5, 3))
    velocities[:4, 0] = np.asarray(singleTet.nodes)[:4, 0]     # v = (x, 0, 0)
    divergence = JacobiPressureSolver(singleTet).computeDivergence(velocities)
    np.testing.assert_allclose(divergence[:4], 1.0)
    assert divergence[4] == 0.0


def test_divergence_spacing_floor():
    nodes = 0.05 * np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=float)
    mesh = TetrahedralMesh(nodes, [[0, 1, 2, 3]], useSpatialIndex=False)
    velocities = np.zeros((4, 3))
    velocities[1, 0] = 0.05
    divergence = JacobiPressureSolver(mesh).computeDivergence(velocities)
    # 0.05 / max(0.05, 0.1)
    np.testing.assert_allclose(divergence, 0.5)


def test_pressure_gradient_on_single_tetrahedron(singleTet):
    pressure = np.array([0.0, 1.0, 0.0, 0.0, 0.0])
    velocities = np.zeros((5, 3))
    JacobiPressureSolver(singleTet).applyPressureGradient(pressure, velocities, 1.0)
    # Node 0: mean of (1 - 0) * (1, 0, 0) / 1 over its 3 neighbours
    np.testing.assert_allclose(velocities[0], [-1.0 / 3.0, 0.0, 0.0])


def test_isolated_node_is_untouched(singleTet, rng):
    velocities = rng.normal(size=(5, 3))
    velocities[4] = [1.0, 2.0, 3.0]
    singleTet.setNodeVelocities(velocities)

    result = JacobiPressureSolver(singleTet).solve(0.016)
    assert result.pressure[4] == 0.0
    assert result.divergence[4] == 0.0
    np.testing.assert_array_equal(singleTet.nodeVelocities[4], [1.0, 2.0, 3.0])


def test_foreign_mesh_rejected(unitMesh):
    other = TetrahedralMesh.createRegular((0, 0, 0), (1, 1, 1), (2, 2, 2))
    solver = JacobiPressureSolver(unitMesh)
    with pytest.raises(ValueError):
        solver.solve(0.016, other)
    solver.solve(0.016, unitMesh)


def test_invalid_settings_rejected(unitMesh):
    with pytest.raises(ValueError):
        JacobiPressureSolver(unitMesh, maxIterations=0)
    with pytest.raises(ValueError):
        JacobiPressureSolver(unitMesh, tolerance=0.0)
