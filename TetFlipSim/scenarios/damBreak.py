# -- Dam Break Scenario -- #

'''
Dam break: a block of liquid released from rest in one corner of the
domain collapses under gravity and spreads across the floor.

The scenario creates:
1. Particle positions drawn uniformly at random inside the fill region
2. Zero initial particle velocities

A fixed seed reproduces the same particle layout on every reset.

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


######################################################################
# -- Dam Break Configuration -- #
######################################################################

@dataclass
class DamBreakConfig:
    '''
    Configuration for a dam break scenario.

    Parameters:
    -----------
    nParticles : int
        Number of particles to create
    regionMin : np.ndarray
        Lower corner of the initial liquid block
    regionMax : np.ndarray
        Upper corner of the initial liquid block
    seed : int | None
        Random seed for particle placement (None = fresh entropy)
    '''

    nParticles: int = 1000
    regionMin: np.ndarray = field(default_factory=lambda: np.array([-0.8, -0.8, -0.3]))
    regionMax: np.ndarray = field(default_factory=lambda: np.array([-0.4, 0.4, 0.3]))
    seed: int | None = None

    def __post_init__(self) -> None:
        self.regionMin = np.asarray(self.regionMin, dtype=float)
        self.regionMax = np.asarray(self.regionMax, dtype=float)
        if self.nParticles < 0:
            raise ValueError(f'nParticles must be non-negative, got {self.nParticles}')
        if np.any(self.regionMax < self.regionMin):
            raise ValueError('regionMax must not be below regionMin')

    @classmethod
    def small(cls, seed: int | None = 0) -> DamBreakConfig:
        '''
        Small column for quick runs and tests.

        250 particles.
        '''
        return cls(nParticles=250, seed=seed)

    @classmethod
    def standard(cls, seed: int | None = None) -> DamBreakConfig:
        '''
        Default dam break column.

        1000 particles in x in [-0.8, -0.4], y in [-0.8, 0.4], z in [-0.3, 0.3].
        '''
        return cls(nParticles=1000, seed=seed)

    @classmethod
    def fine(cls, seed: int | None = None) -> DamBreakConfig:
        '''
        Denser column, better paired with a finer mesh.

        4000 particles.
        '''
        return cls(nParticles=4000, seed=seed)

    @classmethod
    def fromDict(cls, section: dict) -> DamBreakConfig:
        '''Build from the "scenario" section of a JSON config.'''
        defaults = cls()
        return cls(
            nParticles=section.get('nParticles', defaults.nParticles),
            regionMin=np.array(section.get('regionMin', defaults.regionMin)),
            regionMax=np.array(section.get('regionMax', defaults.regionMax)),
            seed=section.get('seed', defaults.seed),
        )


######################################################################
# -- Scenario Creation -- #
######################################################################

def createDamBreak(config: DamBreakConfig) -> tuple[np.ndarray, np.ndarray]:
    '''
    Create the initial particle state for a dam break.

    Parameters:
    -----------
    config : DamBreakConfig
        Scenario configuration

    Returns:
    --------
    tuple[np.ndarray, np.ndarray] :
        (positions, velocities), each of shape (nParticles, 3)
    '''
    rng = np.random.default_rng(config.seed)
    extent = config.regionMax - config.regionMin

    positions = config.regionMin + rng.random((config.nParticles, 3)) * extent
    velocities = np.zeros((config.nParticles, 3))

    return positions, velocities
