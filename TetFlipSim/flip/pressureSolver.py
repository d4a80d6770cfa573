# -- Jacobi Pressure Projection on a Tetrahedral Mesh -- #

'''
Pressure projection that pushes mesh node velocities toward a
divergence-free field.

Each solve runs three strictly ordered phases and keeps no state
between calls (other than its iteration cap and tolerance):

    1. Divergence assembly
       Per tetrahedron, a one-sided finite difference between node 0
       and nodes 1, 2, 3 along x, y, z respectively:

           div_t = dvx/dx + dvy/dy + dvz/dz,   d = max(|d|, 0.1)

       splatted equally onto the 4 nodes and averaged by the number of
       incident tetrahedra.

    2. Poisson solve (Jacobi relaxation)
       On the node graph (neighbours = nodes sharing a tetrahedron):

           p_new[i] = (sum_j p_old[j] - rhs[i]) / n_i,   rhs = div * dt

       All nodes update simultaneously from the previous iterate. Stops
       when max |p_new - p_old| < tolerance or at the iteration cap.

    3. Gradient projection
       grad_i = mean_j (p_j - p_i) * (x_j - x_i) / |x_j - x_i|^2
       v_i   -= dt * grad_i

The neighbour sum is a sparse matrix-vector product with the mesh
adjacency, so every per-node loop is a vectorised NumPy/SciPy pass.

References:
-----------
Bridson (2015) -- Fluid Simulation for Computer Graphics, Ch. 5
Saad (2003) -- Iterative Methods for Sparse Linear Systems, Ch. 4

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from TetFlipSim import constants as const
from TetFlipSim.mesh.tetMesh import TetrahedralMesh

logger = logging.getLogger(__name__)


######################################################################
# -- Solve Result -- #
######################################################################

@dataclass
class PressureSolveResult:
    '''
    Outcome of one pressure projection.

    Parameters:
    -----------
    pressure : np.ndarray
        Node pressures, shape (nodeCount,)
    divergence : np.ndarray
        Node divergence before projection, shape (nodeCount,)
    iterations : int
        Jacobi iterations performed
    converged : bool
        True if the tolerance was reached before the cap
    residualHistory : list[float]
        Max |p_new - p_old| after each iteration
    '''

    pressure: np.ndarray
    divergence: np.ndarray
    iterations: int
    converged: bool
    residualHistory: list[float] = field(default_factory=list)

    @property
    def finalResidual(self) -> float:
        '''Max node change of the last iteration (0 if none ran).'''
        return self.residualHistory[-1] if self.residualHistory else 0.0


######################################################################
# -- Jacobi Pressure Solver -- #
######################################################################

class JacobiPressureSolver:
    '''
    Mesh-topology Jacobi pressure projection.

    Holds a non-owning reference to the mesh it was built for; solving
    for any other mesh is rejected.

    Parameters:
    -----------
    mesh : TetrahedralMesh
        Mesh whose node velocities are projected
    maxIterations : int
        Jacobi iteration cap (default 50)
    tolerance : float
        Max-delta stopping tolerance (default 1e-4)
    '''

    def __init__(
        self,
        mesh: TetrahedralMesh,
        maxIterations: int = const.pressureMaxIterations,
        tolerance: float = const.pressureTolerance,
    ) -> None:
        if maxIterations < 1:
            raise ValueError(f'maxIterations must be positive, got {maxIterations}')
        if not tolerance > 0.0:
            raise ValueError(f'tolerance must be positive, got {tolerance}')

        self._mesh = mesh
        self.maxIterations = int(maxIterations)
        self.tolerance = float(tolerance)

        # Edge list of the adjacency for the gradient pass
        coo = mesh.adjacency.tocoo()
        self._edgeRows = coo.row.astype(np.int64)
        self._edgeCols = coo.col.astype(np.int64)

    @property
    def mesh(self) -> TetrahedralMesh:
        '''Mesh this solver is bound to.'''
        return self._mesh

    def solve(self, dt: float, mesh: TetrahedralMesh | None = None) -> PressureSolveResult:
        '''
        Project the mesh node velocities in place.

        Parameters:
        -----------
        dt : float
            Time step
        mesh : TetrahedralMesh | None
            Optional check that the caller's mesh is the bound one

        Returns:
        --------
        PressureSolveResult : Pressure, divergence and convergence record
        '''
        if mesh is not None and mesh is not self._mesh:
            raise ValueError('pressure solver was built for a different mesh')

        velocities = np.array(self._mesh.nodeVelocities)

        divergence = self.computeDivergence(velocities)
        pressure, iterations, converged, history = self.relax(divergence * dt)
        self.applyPressureGradient(pressure, velocities, dt)

        self._mesh.setNodeVelocities(velocities)

        if not converged:
            logger.debug(
                'Pressure relaxation hit the %d iteration cap (max delta %.3e)',
                self.maxIterations, history[-1],
            )

        return PressureSolveResult(
            pressure=pressure,
            divergence=divergence,
            iterations=iterations,
            converged=converged,
            residualHistory=history,
        )

    ######################################################################
    # -- Phase 1: Divergence -- #
    ######################################################################

    def computeDivergence(self, velocities: np.ndarray) -> np.ndarray:
        '''
        Per-node divergence estimate.

        Parameters:
        -----------
        velocities : np.ndarray
            Node velocities, shape (nodeCount, 3)

        Returns:
        --------
        np.ndarray : Divergence per node, shape (nodeCount,)
        '''
        mesh = self._mesh
        tets = mesh.tetrahedra
        positions = mesh.nodes[tets]          # (nTets, 4, 3)
        vels = velocities[tets]               # (nTets, 4, 3)

        # Node 1 against node 0 along x, node 2 along y, node 3 along z
        axes = np.arange(3)
        spacing = np.abs(positions[:, 1:, :][:, axes, axes] - positions[:, 0, :])
        spacing = np.maximum(spacing, const.minDivergenceSpacing)
        dv = vels[:, 1:, :][:, axes, axes] - vels[:, 0, :]
        tetDivergence = np.sum(dv / spacing, axis=1)

        divergence = np.zeros(mesh.nodeCount)
        np.add.at(divergence, tets.ravel(), np.repeat(tetDivergence, 4))

        counts = mesh.incidentCounts
        hasTets = counts > 0
        divergence[hasTets] /= counts[hasTets]
        return divergence

    ######################################################################
    # -- Phase 2: Jacobi Relaxation -- #
    ######################################################################

    def relax(self, rhs: np.ndarray) -> tuple[np.ndarray, int, bool, list[float]]:
        '''
        Jacobi relaxation of the neighbour-graph Poisson system.

        Parameters:
        -----------
        rhs : np.ndarray
            Right-hand side per node (divergence * dt)

        Returns:
        --------
        tuple[np.ndarray, int, bool, list[float]] :
            (pressure, iterations, converged, maxDeltaHistory)
        '''
        adjacency = self._mesh.adjacency
        counts = self._mesh.neighborCounts
        active = counts > 0
        safeCounts = np.where(active, counts, 1)

        pressure = np.zeros(self._mesh.nodeCount)
        history: list[float] = []
        converged = False

        for _ in range(self.maxIterations):
            neighborSum = adjacency @ pressure
            updated = np.where(active, (neighborSum - rhs) / safeCounts, pressure)

            maxDelta = float(np.max(np.abs(updated - pressure)))
            pressure = updated
            history.append(maxDelta)

            if maxDelta < self.tolerance:
                converged = True
                break

        return pressure, len(history), converged, history

    ######################################################################
    # -- Phase 3: Gradient Projection -- #
    ######################################################################

    def applyPressureGradient(
        self,
        pressure: np.ndarray,
        velocities: np.ndarray,
        dt: float,
    ) -> None:
        '''
        Subtract dt * grad(p) from node velocities, in place.

        Parameters:
        -----------
        pressure : np.ndarray
            Node pressures, shape (nodeCount,)
        velocities : np.ndarray
            Node velocities, shape (nodeCount, 3), modified in place
        dt : float
            Time step
        '''
        nodes = self._mesh.nodes
        rows, cols = self._edgeRows, self._edgeCols

        offset = nodes[cols] - nodes[rows]
        distSq = np.sum(offset * offset, axis=1)
        valid = np.sqrt(distSq) > const.minNeighborDistance
        rows, cols = rows[valid], cols[valid]

        dp = pressure[cols] - pressure[rows]
        contrib = (dp / distSq[valid])[:, np.newaxis] * offset[valid]

        gradient = np.zeros_like(velocities)
        np.add.at(gradient, rows, contrib)
        counts = np.bincount(rows, minlength=len(velocities))

        hasNeighbors = counts > 0
        gradient[hasNeighbors] /= counts[hasNeighbors, np.newaxis]
        velocities[hasNeighbors] -= dt * gradient[hasNeighbors]
