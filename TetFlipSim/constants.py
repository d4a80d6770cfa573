# -- Physical and Numerical Constants for TetFLIP Simulation -- #

'''
Default physical and numerical parameters for the tetrahedral-mesh
FLIP liquid simulator. Units are nondimensional "scene" units: the
default domain is the cube [-1, 1]^3 and gravity acts along -y.

References:
-----------
Ando, Thurey & Wojtan (2013) -- Highly Adaptive Liquid Simulations
    on Tetrahedral Meshes
Zhu & Bridson (2005) -- Animating Sand as a Fluid

TetFlipSim [10/18/2026]
'''

#--------------------------------------------------------------------#
# -- Domain and Mesh -- #
#--------------------------------------------------------------------#

# Lower and upper corners of the simulation domain
defaultDomainMin: tuple[float, float, float] = (-1.0, -1.0, -1.0)
defaultDomainMax: tuple[float, float, float] = (1.0, 1.0, 1.0)

# Lattice cells per axis used to build the tetrahedral mesh
defaultMeshResolution: tuple[int, int, int] = (8, 8, 8)

# Each lattice cell is split into this many tetrahedra
tetrahedraPerCell: int = 5

# |Vol| below this marks a tetrahedron as degenerate
degenerateVolume: float = 1e-10

# Returned by point location when no tetrahedron contains the point
notFound: int = -1

#--------------------------------------------------------------------#
# -- Fluid Properties -- #
#--------------------------------------------------------------------#

# Gravitational acceleration along y
gravity: float = -9.8

# Kinematic viscosity (stored, not yet applied by the solver)
viscosity: float = 0.001

# Fixed time step (~60 frames per second)
timeStep: float = 0.016

# Particle buffer capacity for the default scenario
maxParticles: int = 1000

#--------------------------------------------------------------------#
# -- Transfer and Boundary -- #
#--------------------------------------------------------------------#

# FLIP/PIC blend used in G2P (0.0 = pure grid replacement)
flipRatio: float = 0.0

# Fraction of normal velocity retained after a wall collision
restitution: float = 0.3

#--------------------------------------------------------------------#
# -- Pressure Projection -- #
#--------------------------------------------------------------------#

# Jacobi relaxation iteration cap and max-delta tolerance
pressureMaxIterations: int = 50
pressureTolerance: float = 1e-4

# Smallest edge spacing used by the per-tetrahedron divergence estimate
minDivergenceSpacing: float = 0.1

# Neighbour pairs closer than this are skipped in the gradient estimate
minNeighborDistance: float = 1e-10

#--------------------------------------------------------------------#
# -- Parameter Ranges for Live Setters -- #
#--------------------------------------------------------------------#

timeStepRange: tuple[float, float] = (1e-5, 0.1)
gravityRange: tuple[float, float] = (-100.0, 100.0)
viscosityRange: tuple[float, float] = (0.0, 1.0)
flipRatioRange: tuple[float, float] = (0.0, 1.0)
restitutionRange: tuple[float, float] = (0.0, 1.0)
