# -- TetFLIP Particle Set -- #

'''
Fixed-capacity particle buffers for the TetFLIP simulator.

Positions and velocities are stored as contiguous (capacity, 3) NumPy
arrays allocated once at construction. Only the first `count` rows are
live; assigning more rows than the capacity truncates the input and
logs a warning instead of failing.

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)


def _asRows(values: np.ndarray, name: str) -> np.ndarray:
    '''Accept a flat [x, y, z, ...] array or an (n, 3) array.'''
    values = np.asarray(values, dtype=float)
    if values.size % 3 != 0:
        raise ValueError(f'{name} length must be a multiple of 3, got {values.size}')
    return values.reshape(-1, 3)


class ParticleSet:
    '''
    Particle positions and velocities with a fixed capacity.

    Parameters:
    -----------
    capacity : int
        Maximum number of particles (buffers are pre-sized)
    '''

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f'capacity must be positive, got {capacity}')
        self._capacity = int(capacity)
        self._count = 0
        self._positions = np.zeros((self._capacity, 3))
        self._velocities = np.zeros((self._capacity, 3))

    @property
    def capacity(self) -> int:
        '''Maximum number of particles.'''
        return self._capacity

    @property
    def count(self) -> int:
        '''Number of live particles.'''
        return self._count

    @property
    def positions(self) -> np.ndarray:
        '''Live particle positions, shape (count, 3), writable view.'''
        return self._positions[:self._count]

    @property
    def velocities(self) -> np.ndarray:
        '''Live particle velocities, shape (count, 3), writable view.'''
        return self._velocities[:self._count]

    def setPositions(self, positions: np.ndarray) -> None:
        '''
        Assign particle positions and set the live count.

        Parameters:
        -----------
        positions : np.ndarray
            Flat [x, y, z, ...] or shape (n, 3). Rows beyond the
            capacity are dropped with a warning.
        '''
        rows = _asRows(positions, 'positions')
        if len(rows) > self._capacity:
            logger.warning(
                'Too many particles (%d > capacity %d), truncating',
                len(rows), self._capacity,
            )
            rows = rows[:self._capacity]

        self._positions[:len(rows)] = rows
        self._count = len(rows)

    def setVelocities(self, velocities: np.ndarray) -> None:
        '''
        Assign particle velocities. The live count is not changed.

        Parameters:
        -----------
        velocities : np.ndarray
            Flat [vx, vy, vz, ...] or shape (n, 3). Rows beyond the
            capacity are dropped with a warning.
        '''
        rows = _asRows(velocities, 'velocities')
        if len(rows) > self._capacity:
            logger.warning(
                'Too many velocities (%d > capacity %d), truncating',
                len(rows), self._capacity,
            )
            rows = rows[:self._capacity]

        self._velocities[:len(rows)] = rows

    def kineticEnergy(self) -> float:
        '''
        Kinetic energy per unit particle mass of the live particles.

        KE = (1/2) * sum_i |v_i|^2
        '''
        v = self.velocities
        return 0.5 * float(np.sum(v * v))

    def maxSpeed(self) -> float:
        '''Largest live particle speed.'''
        if self._count == 0:
            return 0.0
        return float(np.max(np.linalg.norm(self.velocities, axis=1)))
