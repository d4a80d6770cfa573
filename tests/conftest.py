import logging

import numpy as np
import pytest

from TetFlipSim.flip.protocols import SimulationConfig
from TetFlipSim.flip.simulator import TetFlipSimulator
from TetFlipSim.mesh.tetMesh import TetrahedralMesh
from TetFlipSim.scenarios.damBreak import DamBreakConfig


@pytest.fixture
def unitMesh():
    '''2 x 2 x 2 cells over the unit cube: 27 nodes, 40 tetrahedra.'''
    return TetrahedralMesh.createRegular((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (2, 2, 2))


@pytest.fixture(scope="module")
def defaultMesh():
    return TetrahedralMesh.createRegular((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0), (8, 8, 8))


@pytest.fixture
def singleTet():
    '''Right-angled unit tetrahedron with an extra isolated node.'''
    nodes = np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
        [5.0, 5.0, 5.0],
    ])
    return TetrahedralMesh.fromArrays(nodes, [[0, 1, 2, 3]])


@pytest.fixture
def smallSimulator():
    config = SimulationConfig(meshResolution=(4, 4, 4), maxParticles=200)
    scenario = DamBreakConfig(nParticles=200, seed=7)
    return TetFlipSimulator(config=config, scenario=scenario)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def restorePackageLogger():
    '''Drop handlers attached by setupLogging once the test is done.'''
    yield
    logger = logging.getLogger("TetFlipSim")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
