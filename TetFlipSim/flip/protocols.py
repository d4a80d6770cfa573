# -- TetFLIP Simulation Protocols -- #

'''
Configuration, state snapshots and solver protocol for the TetFLIP
simulator.

SimulationConfig holds every tunable parameter of a run (there is no
process-wide parameter state); SimulationState captures the scalar
diagnostics returned by each time step.

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Protocol, TYPE_CHECKING

import numpy as np

from TetFlipSim import constants as const

if TYPE_CHECKING:
    from TetFlipSim.flip.pressureSolver import PressureSolveResult
    from TetFlipSim.mesh.tetMesh import TetrahedralMesh


def checkRange(name: str, value: float, bounds: tuple[float, float]) -> float:
    '''
    Validate that a parameter is finite and within inclusive bounds.

    Returns:
    --------
    float : The value as a float

    Raises:
    -------
    ValueError : If the value is not finite or out of range
    '''
    value = float(value)
    lo, hi = bounds
    if not math.isfinite(value) or value < lo or value > hi:
        raise ValueError(f'{name} must lie in [{lo}, {hi}], got {value}')
    return value


######################################################################
# -- Simulation Configuration -- #
######################################################################

@dataclass
class SimulationConfig:
    '''
    Configuration for a TetFLIP simulation.

    Parameters:
    -----------
    domainMin : np.ndarray
        Lower corner of the simulation domain
    domainMax : np.ndarray
        Upper corner of the simulation domain
    meshResolution : tuple[int, int, int]
        Lattice cells per axis for the tetrahedral mesh
    maxParticles : int
        Particle buffer capacity
    timeStep : float
        Fixed time step used by step() when no dt is given
    gravity : float
        Gravitational acceleration along y
    viscosity : float
        Kinematic viscosity (reserved, not applied)
    flipRatio : float
        FLIP/PIC blend for G2P (0.0 = grid velocity replaces
        particle velocity, 1.0 = pure FLIP)
    restitution : float
        Fraction of normal velocity kept after a wall collision
    pressureMaxIterations : int
        Jacobi iteration cap
    pressureTolerance : float
        Jacobi max-delta stopping tolerance
    useSpatialIndex : bool
        Accelerate point location with a uniform grid
    '''

    domainMin: np.ndarray = field(default_factory=lambda: np.array(const.defaultDomainMin))
    domainMax: np.ndarray = field(default_factory=lambda: np.array(const.defaultDomainMax))
    meshResolution: tuple[int, int, int] = const.defaultMeshResolution
    maxParticles: int = const.maxParticles
    timeStep: float = const.timeStep
    gravity: float = const.gravity
    viscosity: float = const.viscosity
    flipRatio: float = const.flipRatio
    restitution: float = const.restitution
    pressureMaxIterations: int = const.pressureMaxIterations
    pressureTolerance: float = const.pressureTolerance
    useSpatialIndex: bool = True

    def __post_init__(self) -> None:
        self.domainMin = np.asarray(self.domainMin, dtype=float)
        self.domainMax = np.asarray(self.domainMax, dtype=float)
        self.meshResolution = tuple(int(n) for n in self.meshResolution)

    @property
    def domainSize(self) -> np.ndarray:
        '''Domain extent along each axis.'''
        return self.domainMax - self.domainMin

    def validate(self) -> None:
        '''
        Check every parameter, raising ValueError on the first problem.
        '''
        if self.domainMin.shape != (3,) or self.domainMax.shape != (3,):
            raise ValueError('domainMin and domainMax must be 3-vectors')
        if np.any(self.domainMax <= self.domainMin):
            raise ValueError('domainMax must exceed domainMin on every axis')
        if len(self.meshResolution) != 3 or min(self.meshResolution) < 1:
            raise ValueError(f'meshResolution needs >= 1 cell per axis, got {self.meshResolution}')
        if self.maxParticles < 1:
            raise ValueError(f'maxParticles must be positive, got {self.maxParticles}')
        if self.pressureMaxIterations < 1:
            raise ValueError('pressureMaxIterations must be positive')
        if not self.pressureTolerance > 0.0:
            raise ValueError('pressureTolerance must be positive')

        checkRange('timeStep', self.timeStep, const.timeStepRange)
        checkRange('gravity', self.gravity, const.gravityRange)
        checkRange('viscosity', self.viscosity, const.viscosityRange)
        checkRange('flipRatio', self.flipRatio, const.flipRatioRange)
        checkRange('restitution', self.restitution, const.restitutionRange)

    @classmethod
    def fromJson(cls, configPath: str) -> SimulationConfig:
        '''
        Load configuration from a JSON file.

        Reads the 'simulation', 'mesh', 'fluid' and 'solver' sections;
        missing keys keep their defaults.

        Parameters:
        -----------
        configPath : str
            Path to the JSON configuration file

        Returns:
        --------
        SimulationConfig : Loaded and validated configuration
        '''
        with open(configPath, 'r') as f:
            data = json.load(f)

        return cls.fromDict(data)

    @classmethod
    def fromDict(cls, data: dict) -> SimulationConfig:
        '''Build a validated configuration from parsed JSON sections.'''
        simSection = data.get('simulation', {})
        meshSection = data.get('mesh', {})
        fluidSection = data.get('fluid', {})
        solverSection = data.get('solver', {})

        config = cls(
            domainMin=np.array(meshSection.get('domainMin', const.defaultDomainMin)),
            domainMax=np.array(meshSection.get('domainMax', const.defaultDomainMax)),
            meshResolution=tuple(meshSection.get('resolution', const.defaultMeshResolution)),
            maxParticles=simSection.get('maxParticles', const.maxParticles),
            timeStep=simSection.get('timeStep', const.timeStep),
            gravity=fluidSection.get('gravity', const.gravity),
            viscosity=fluidSection.get('viscosity', const.viscosity),
            flipRatio=solverSection.get('flipRatio', const.flipRatio),
            restitution=fluidSection.get('restitution', const.restitution),
            pressureMaxIterations=solverSection.get('maxIterations', const.pressureMaxIterations),
            pressureTolerance=solverSection.get('tolerance', const.pressureTolerance),
            useSpatialIndex=meshSection.get('useSpatialIndex', True),
        )
        config.validate()
        return config


######################################################################
# -- Simulation State -- #
######################################################################

@dataclass
class SimulationState:
    '''
    Snapshot of the simulation after a time step.

    Parameters:
    -----------
    time : float
        Elapsed simulation time
    step : int
        Number of completed steps
    dt : float
        Time step used by the last step
    particleCount : int
        Live particles
    locatedParticles : int
        Particles found inside the mesh during the last transfer
    maxVelocity : float
        Largest particle speed
    kineticEnergy : float
        Kinetic energy per unit particle mass, 0.5 * sum |v|^2
    pressureIterations : int
        Jacobi iterations used by the last projection
    maxDivergence : float
        Largest |node divergence| before the last projection
    '''

    time: float
    step: int
    dt: float
    particleCount: int
    locatedParticles: int
    maxVelocity: float
    kineticEnergy: float
    pressureIterations: int
    maxDivergence: float

    @property
    def lostParticles(self) -> int:
        '''Particles skipped by the transfers (outside every tetrahedron).'''
        return self.particleCount - self.locatedParticles


######################################################################
# -- Solver Protocol -- #
######################################################################

class PressureSolver(Protocol):
    '''Protocol for pressure projection solvers.'''

    def solve(self, dt: float, mesh: TetrahedralMesh | None = None) -> PressureSolveResult:
        '''Project the bound mesh's node velocities, in place.'''
        ...
