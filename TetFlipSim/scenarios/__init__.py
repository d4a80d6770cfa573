# -- Simulation Scenarios Package -- #

'''
Pre-configured initial conditions for TetFLIP simulations.

TetFlipSim [10/18/2026]
'''

from TetFlipSim.scenarios.damBreak import DamBreakConfig, createDamBreak
