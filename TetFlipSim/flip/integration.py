# -- Particle Advection and Boundary Collision -- #

'''
Time integration and domain-wall handling for TetFLIP particles.

Advection is explicit (forward) Euler with no sub-stepping:

    x(t+dt) = x(t) + v * dt

Particles that leave the axis-aligned domain are clamped back onto the
violated wall and their normal velocity is reflected and damped by the
coefficient of restitution. Each axis is handled independently within
the same pass.

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

from typing import Protocol

import numpy as np

from TetFlipSim import constants as const
from TetFlipSim.flip.particles import ParticleSet


######################################################################
# -- Time Integrator Protocol -- #
######################################################################

class TimeIntegrator(Protocol):
    '''Protocol for particle advection schemes.'''

    def advect(self, particles: ParticleSet, dt: float) -> None:
        '''Move live particles by one time step.'''
        ...


class ExplicitEuler:
    '''
    Forward Euler advection, x += v * dt, applied per axis.
    '''

    def advect(self, particles: ParticleSet, dt: float) -> None:
        '''
        Advance live particle positions by one time step.

        Parameters:
        -----------
        particles : ParticleSet
            Particles to move
        dt : float
            Time step
        '''
        particles.positions[:] += particles.velocities * dt


######################################################################
# -- Box Collision -- #
######################################################################

class BoxCollisionHandler:
    '''
    Keeps particles inside an axis-aligned box.

    Parameters:
    -----------
    domainMin : np.ndarray
        Lower corner of the box
    domainMax : np.ndarray
        Upper corner of the box
    restitution : float
        Fraction of normal velocity kept after impact (default 0.3)
    '''

    def __init__(
        self,
        domainMin: np.ndarray,
        domainMax: np.ndarray,
        restitution: float = const.restitution,
    ) -> None:
        self._domainMin = np.array(domainMin, dtype=float)
        self._domainMax = np.array(domainMax, dtype=float)
        self.restitution = float(restitution)

    @property
    def domainMin(self) -> np.ndarray:
        return self._domainMin

    @property
    def domainMax(self) -> np.ndarray:
        return self._domainMax

    def enforceBoundary(self, particles: ParticleSet) -> int:
        '''
        Clamp escaped particles onto the walls and reflect their velocity.

        Below the minimum: x = min, v = |v| * restitution.
        Above the maximum: x = max, v = -|v| * restitution.

        Parameters:
        -----------
        particles : ParticleSet
            Particles to constrain (modified in place)

        Returns:
        --------
        int : Number of (particle, axis) wall hits
        '''
        positions = particles.positions
        velocities = particles.velocities
        hits = 0

        for d in range(3):
            belowMin = positions[:, d] < self._domainMin[d]
            aboveMax = ~belowMin & (positions[:, d] > self._domainMax[d])

            positions[belowMin, d] = self._domainMin[d]
            velocities[belowMin, d] = np.abs(velocities[belowMin, d]) * self.restitution

            positions[aboveMax, d] = self._domainMax[d]
            velocities[aboveMax, d] = -np.abs(velocities[aboveMax, d]) * self.restitution

            hits += int(np.sum(belowMin)) + int(np.sum(aboveMax))

        return hits
