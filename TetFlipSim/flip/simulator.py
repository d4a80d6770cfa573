# -- Tetrahedral-Mesh FLIP Simulator -- #

'''
TetFLIP liquid simulator.

Particles carry the liquid and its velocity; a static tetrahedral mesh
acts as the grid on which velocities are made divergence-free.

Algorithm per time step:
    1. Locate every particle in the mesh (tetrahedron + barycentric weights)
    2. P2G: transfer particle velocities to mesh nodes
    3. Apply body forces (gravity) to node velocities
    4. Pressure projection (divergence, Jacobi solve, gradient)
    5. G2P: transfer node velocities back to particles
    6. Advect particles (explicit Euler)
    7. Clamp particles to the domain and reflect their velocity

Every phase finishes reading its input buffers before the next phase
writes. The mesh is static, and positions only change in phase 6, so
the locations found in phase 1 are reused by G2P.

References:
-----------
Ando, Thurey & Wojtan (2013) -- Highly Adaptive Liquid Simulations
    on Tetrahedral Meshes
Zhu & Bridson (2005) -- Animating Sand as a Fluid

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass

import numpy as np

from TetFlipSim import constants as const
from TetFlipSim.flip.protocols import SimulationConfig, SimulationState, PressureSolver, checkRange
from TetFlipSim.flip.particles import ParticleSet
from TetFlipSim.flip.pressureSolver import JacobiPressureSolver, PressureSolveResult
from TetFlipSim.flip.forces import BodyForce, UniformGravity, applyBodyForces
from TetFlipSim.flip.integration import TimeIntegrator, ExplicitEuler, BoxCollisionHandler
from TetFlipSim.flip.transfer import locateParticles, particlesToMesh, meshToParticles
from TetFlipSim.mesh.tetMesh import TetrahedralMesh, MeshSnapshot, NOT_FOUND, readOnlyView
from TetFlipSim.scenarios.damBreak import DamBreakConfig, createDamBreak

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParticleSnapshot:
    '''
    Read-only view of the live particles for the presentation layer.

    Parameters:
    -----------
    positions : np.ndarray
        Shape (count, 3)
    velocities : np.ndarray
        Shape (count, 3)
    count : int
        Number of live particles
    '''

    positions: np.ndarray
    velocities: np.ndarray
    count: int


class TetFlipSimulator:
    '''
    Orchestrates the TetFLIP time step and owns the simulation state.

    The mesh is built once at construction and never rebuilt; reset()
    only reinitialises the particles from the scenario.

    Parameters:
    -----------
    config : SimulationConfig | None
        Simulation parameters (defaults reproduce the reference setup).
        The simulator keeps its own copy; setters never touch the
        caller's object
    scenario : DamBreakConfig | None
        Initial particle layout (defaults to the standard dam break)
    extraForces : list[BodyForce] | None
        Body forces applied in addition to gravity
    '''

    def __init__(
        self,
        config: SimulationConfig | None = None,
        scenario: DamBreakConfig | None = None,
        extraForces: list[BodyForce] | None = None,
    ) -> None:
        self._config = copy.deepcopy(config) if config is not None else SimulationConfig()
        self._config.validate()
        self._scenario = scenario or DamBreakConfig.standard()

        cfg = self._config
        self._mesh = TetrahedralMesh.createRegular(
            cfg.domainMin,
            cfg.domainMax,
            cfg.meshResolution,
            useSpatialIndex=cfg.useSpatialIndex,
        )
        self._particles = ParticleSet(cfg.maxParticles)
        self._pressureSolver: PressureSolver = JacobiPressureSolver(
            self._mesh,
            maxIterations=cfg.pressureMaxIterations,
            tolerance=cfg.pressureTolerance,
        )
        self._integrator: TimeIntegrator = ExplicitEuler()
        self._collisionHandler = BoxCollisionHandler(
            cfg.domainMin, cfg.domainMax, restitution=cfg.restitution,
        )

        self._gravity = UniformGravity(cfg.gravity)
        self._forces: list[BodyForce] = [self._gravity] + list(extraForces or [])

        self._time: float = 0.0
        self._step: int = 0
        self._lastDt: float = cfg.timeStep
        self._lastPressure: PressureSolveResult | None = None
        self._lastLocated: int = 0

        logger.info(
            'Initialized TetFLIP simulator: %d nodes, %d tetrahedra, capacity %d',
            self._mesh.nodeCount, self._mesh.tetCount, cfg.maxParticles,
        )

        self.reset()

    ######################################################################
    # -- Scenario -- #
    ######################################################################

    def reset(self) -> None:
        '''
        Restore the initial scenario and zero the simulation clock.

        The mesh is kept as is.
        '''
        positions, velocities = createDamBreak(self._scenario)
        self._particles.setPositions(positions)
        self._particles.setVelocities(velocities)

        self._time = 0.0
        self._step = 0
        self._lastPressure = None
        self._lastLocated = self._particles.count

        logger.info('Reset scenario with %d particles', self._particles.count)

    ######################################################################
    # -- Main Time Step -- #
    ######################################################################

    def step(self, dt: float | None = None) -> SimulationState:
        '''
        Advance the simulation by one time step.

        Parameters:
        -----------
        dt : float | None
            Time step; the configured timeStep is used when None

        Returns:
        --------
        SimulationState : Diagnostics after the step
        '''
        dt = self._config.timeStep if dt is None else checkRange('dt', dt, const.timeStepRange)
        mesh = self._mesh
        p = self._particles

        # 1. Locate particles
        tetIndices, weights = locateParticles(mesh, p.positions)
        self._lastLocated = int(np.sum(tetIndices != NOT_FOUND))

        # 2. P2G
        particlesToMesh(mesh, p.velocities, tetIndices, weights)
        gridAfterTransfer = np.array(mesh.nodeVelocities) if self._config.flipRatio > 0.0 else None

        # 3. Body forces
        nodeVelocities = np.array(mesh.nodeVelocities)
        applyBodyForces(nodeVelocities, mesh.nodes, self._forces, dt)
        mesh.setNodeVelocities(nodeVelocities)

        # 4. Pressure projection
        self._lastPressure = self._pressureSolver.solve(dt, mesh)

        # 5. G2P
        meshToParticles(
            mesh,
            p.velocities,
            tetIndices,
            weights,
            flipRatio=self._config.flipRatio,
            previousNodeVelocities=gridAfterTransfer,
        )

        # 6. Advect
        self._integrator.advect(p, dt)

        # 7. Domain walls
        self._collisionHandler.enforceBoundary(p)

        self._time += dt
        self._step += 1
        self._lastDt = dt

        return self.currentState

    ######################################################################
    # -- Parameter Setters -- #
    ######################################################################

    def setTimeStep(self, dt: float) -> None:
        '''Set the default time step.'''
        self._config.timeStep = checkRange('timeStep', dt, const.timeStepRange)

    def setGravity(self, gravity: float) -> None:
        '''Set the gravitational acceleration along y.'''
        self._config.gravity = checkRange('gravity', gravity, const.gravityRange)
        self._gravity.gravity = self._config.gravity

    def setViscosity(self, viscosity: float) -> None:
        '''Store the viscosity (reserved; not applied by the solver).'''
        self._config.viscosity = checkRange('viscosity', viscosity, const.viscosityRange)

    def setFlipRatio(self, flipRatio: float) -> None:
        '''Set the FLIP/PIC blend used by G2P.'''
        self._config.flipRatio = checkRange('flipRatio', flipRatio, const.flipRatioRange)

    ######################################################################
    # -- Properties -- #
    ######################################################################

    @property
    def config(self) -> SimulationConfig:
        '''Live simulation parameters.'''
        return self._config

    @property
    def particles(self) -> ParticleSnapshot:
        '''Read-only view of the live particles.'''
        p = self._particles
        return ParticleSnapshot(
            positions=readOnlyView(p.positions),
            velocities=readOnlyView(p.velocities),
            count=p.count,
        )

    @property
    def mesh(self) -> MeshSnapshot:
        '''Read-only mesh data.'''
        return self._mesh.snapshot()

    @property
    def velocityField(self) -> np.ndarray:
        '''Node velocities, read-only.'''
        return self._mesh.nodeVelocities

    @property
    def particleCount(self) -> int:
        return self._particles.count

    @property
    def tetrahedraCount(self) -> int:
        return self._mesh.tetCount

    @property
    def simulationTime(self) -> float:
        '''Elapsed simulation time.'''
        return self._time

    @property
    def stepCount(self) -> int:
        return self._step

    @property
    def lastPressureResult(self) -> PressureSolveResult | None:
        '''Record of the most recent pressure projection.'''
        return self._lastPressure

    @property
    def currentState(self) -> SimulationState:
        '''Current simulation state snapshot.'''
        p = self._particles
        pressure = self._lastPressure

        return SimulationState(
            time=self._time,
            step=self._step,
            dt=self._lastDt,
            particleCount=p.count,
            locatedParticles=self._lastLocated,
            maxVelocity=p.maxSpeed(),
            kineticEnergy=p.kineticEnergy(),
            pressureIterations=pressure.iterations if pressure else 0,
            maxDivergence=float(np.max(np.abs(pressure.divergence))) if pressure else 0.0,
        )
