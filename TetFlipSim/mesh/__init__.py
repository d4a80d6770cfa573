# -- Tetrahedral Mesh Package -- #

'''
Static tetrahedral mesh for the TetFLIP simulator.

Provides the regular lattice tetrahedralisation, barycentric
coordinates, point location and the uniform-grid locator index.

TetFlipSim [10/18/2026]
'''

from TetFlipSim.mesh.tetMesh import TetrahedralMesh, MeshSnapshot, NOT_FOUND, signedVolume
from TetFlipSim.mesh.pointLocator import TetrahedronGrid
