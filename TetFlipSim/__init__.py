# -- TetFlipSim Package -- #

'''
Liquid simulation with tetrahedral-mesh FLIP (TetFLIP).

Particles carry the liquid; a static tetrahedral mesh serves as the
grid for the pressure projection. Includes a dam break scenario and
JSON frame export for external viewers.

TetFlipSim [10/18/2026]
'''

__version__ = '0.1.0'

from TetFlipSim.flip.simulator import TetFlipSimulator
from TetFlipSim.flip.protocols import SimulationConfig, SimulationState
from TetFlipSim.mesh.tetMesh import TetrahedralMesh
from TetFlipSim.scenarios.damBreak import DamBreakConfig
from TetFlipSim.export.frameExporter import FrameExporter
from TetFlipSim.runner import TetFlipRunner
