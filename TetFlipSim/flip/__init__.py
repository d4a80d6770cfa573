# -- TetFLIP Engine Package -- #

'''
Core TetFLIP engine.

Provides the particle set, P2G/G2P transfers, body forces, the Jacobi
pressure projection, particle advection and collision, and the
simulator that sequences them into a time step.

TetFlipSim [10/18/2026]
'''

from TetFlipSim.flip.protocols import SimulationConfig, SimulationState
from TetFlipSim.flip.particles import ParticleSet
from TetFlipSim.flip.pressureSolver import JacobiPressureSolver, PressureSolveResult
from TetFlipSim.flip.simulator import TetFlipSimulator, ParticleSnapshot
