# -- Body Forces on Mesh Nodes -- #

'''
Body forces applied to the mesh velocity field between P2G and the
pressure projection. Density is uniform, so forces are expressed as
accelerations and applied to every node independently of mass.

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

from typing import Protocol

import numpy as np


class BodyForce(Protocol):
    '''Protocol for per-node body forces.'''

    def velocityIncrement(self, nodes: np.ndarray, dt: float) -> np.ndarray:
        '''
        Velocity change per node over one time step.

        Parameters:
        -----------
        nodes : np.ndarray
            Node positions, shape (nodeCount, 3)
        dt : float
            Time step

        Returns:
        --------
        np.ndarray : Increment, shape (nodeCount, 3)
        '''
        ...


class UniformGravity:
    '''
    Constant gravity along y: v.y += g * dt.

    Parameters:
    -----------
    gravity : float
        Acceleration along y (negative points down)
    '''

    def __init__(self, gravity: float) -> None:
        self.gravity = float(gravity)

    def velocityIncrement(self, nodes: np.ndarray, dt: float) -> np.ndarray:
        increment = np.zeros_like(nodes, dtype=float)
        increment[:, 1] = self.gravity * dt
        return increment


class AccelerationField:
    '''
    Spatially varying acceleration a(x) evaluated at node positions.

    Parameters:
    -----------
    field : callable
        Maps node positions (n, 3) to accelerations (n, 3)
    '''

    def __init__(self, field) -> None:
        self._field = field

    def velocityIncrement(self, nodes: np.ndarray, dt: float) -> np.ndarray:
        return np.asarray(self._field(nodes), dtype=float).reshape(nodes.shape) * dt


def applyBodyForces(
    nodeVelocities: np.ndarray,
    nodes: np.ndarray,
    forces: list[BodyForce],
    dt: float,
) -> None:
    '''Add every force's increment to the node velocities, in place.'''
    for force in forces:
        nodeVelocities += force.velocityIncrement(nodes, dt)
