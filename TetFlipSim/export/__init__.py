# -- Export Package -- #

'''
Data export utilities for TetFLIP simulation results.

Exports frame data as JSON for external viewers.

TetFlipSim [10/18/2026]
'''

from TetFlipSim.export.frameExporter import FrameExporter
