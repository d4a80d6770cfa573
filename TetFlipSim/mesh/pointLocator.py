# -- Uniform Grid Index for Tetrahedron Point Location -- #

'''
Uniform-grid spatial index mapping grid cells to the tetrahedra whose
axis-aligned bounding boxes overlap them.

A point query only tests the tetrahedra binned in the single cell that
contains the point, instead of scanning every tetrahedron in the mesh.
Candidate lists are kept in ascending tetrahedron order so that the
first-match rule of the exhaustive scan is preserved exactly.

Cell coordinates are computed with the same monotone floor mapping for
bounding boxes and query points, so a point lying inside a tetrahedron
always falls in a cell covered by that tetrahedron's bounding box.

References:
-----------
Ihmsen et al. (2011) -- Parallel Neighbor-Search for SPH
Akenine-Moller et al. (2018) -- Real-Time Rendering, Ch. 25

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

import logging
from typing import Protocol

import numpy as np

logger = logging.getLogger(__name__)


#--------------------------------------------------------------------#
# -- Point Locator Protocol -- #
#--------------------------------------------------------------------#

class PointLocator(Protocol):
    '''Protocol for tetrahedron candidate search structures.'''

    def build(self, nodes: np.ndarray, tetrahedra: np.ndarray) -> None:
        '''Bin tetrahedra from node positions and connectivity.'''
        ...

    def candidates(self, point: np.ndarray) -> np.ndarray:
        '''Ascending tetrahedron indices that may contain the point.'''
        ...

    def candidateTable(self, points: np.ndarray) -> np.ndarray:
        '''
        Candidate tetrahedra for many points at once.

        Returns:
        --------
        np.ndarray :
            Shape (nPoints, maxCandidates), padded with -1
        '''
        ...


#--------------------------------------------------------------------#
# -- Uniform Tetrahedron Grid -- #
#--------------------------------------------------------------------#

class TetrahedronGrid:
    '''
    Uniform grid of axis-aligned cells binning tetrahedra by AABB.

    The grid spans the bounding box of the mesh nodes. Query points
    outside that box are clamped onto the border cells; their
    containment test then simply fails.

    Parameters:
    -----------
    cellSize : np.ndarray | None
        Cell edge length per axis. If None, the median tetrahedron
        bounding-box extent is used.
    '''

    def __init__(self, cellSize: np.ndarray | None = None) -> None:
        self._requestedCellSize = None if cellSize is None else np.asarray(cellSize, dtype=float)
        self._cellSize: np.ndarray = np.ones(3)
        self._origin: np.ndarray = np.zeros(3)
        self._shape: np.ndarray = np.ones(3, dtype=np.int64)
        self._cells: dict[tuple, np.ndarray] = {}
        self._table: np.ndarray = np.full((1, 1), -1, dtype=np.int64)

    @property
    def shape(self) -> tuple[int, int, int]:
        '''Number of cells along each axis.'''
        return tuple(int(s) for s in self._shape)

    @property
    def maxCandidates(self) -> int:
        '''Largest number of tetrahedra binned into a single cell.'''
        return self._table.shape[1]

    def build(self, nodes: np.ndarray, tetrahedra: np.ndarray) -> None:
        '''
        Bin every tetrahedron into the cells its bounding box overlaps.

        Parameters:
        -----------
        nodes : np.ndarray
            Node positions, shape (nNodes, 3)
        tetrahedra : np.ndarray
            Node indices per tetrahedron, shape (nTets, 4)
        '''
        corners = nodes[tetrahedra]                 # (nTets, 4, 3)
        boxMin = corners.min(axis=1)
        boxMax = corners.max(axis=1)

        self._origin = nodes.min(axis=0)
        extent = nodes.max(axis=0) - self._origin

        if self._requestedCellSize is not None:
            cellSize = self._requestedCellSize.copy()
        else:
            cellSize = np.median(boxMax - boxMin, axis=0)

        # Flat axes (or degenerate boxes) fall back to the full extent
        cellSize = np.where(cellSize > 0.0, cellSize, np.where(extent > 0.0, extent, 1.0))
        self._cellSize = cellSize
        self._shape = np.maximum(np.ceil(extent / cellSize).astype(np.int64), 1)

        lo = self._cellCoords(boxMin)
        hi = self._cellCoords(boxMax)

        cellDict: dict[tuple, list[int]] = {}
        for t in range(len(tetrahedra)):
            for ix in range(lo[t, 0], hi[t, 0] + 1):
                for iy in range(lo[t, 1], hi[t, 1] + 1):
                    for iz in range(lo[t, 2], hi[t, 2] + 1):
                        key = (ix, iy, iz)
                        if key not in cellDict:
                            cellDict[key] = []
                        cellDict[key].append(t)

        # Tetrahedra were visited in ascending order, so every list is sorted
        self._cells = {k: np.array(v, dtype=np.int64) for k, v in cellDict.items()}

        nCells = int(np.prod(self._shape))
        width = max((len(v) for v in self._cells.values()), default=1)
        table = np.full((nCells, width), -1, dtype=np.int64)
        for key, members in self._cells.items():
            table[self._linearIndex(np.array(key)), :len(members)] = members
        self._table = table

        logger.debug(
            'Binned %d tetrahedra into %s grid (max %d per cell)',
            len(tetrahedra), self.shape, width,
        )

    def candidates(self, point: np.ndarray) -> np.ndarray:
        '''
        Tetrahedra whose bounding box overlaps the cell holding the point.

        Parameters:
        -----------
        point : np.ndarray
            Query point, shape (3,)

        Returns:
        --------
        np.ndarray : Ascending tetrahedron indices
        '''
        row = self._table[self._linearIndex(self._cellCoords(np.asarray(point, dtype=float)))]
        return row[row >= 0]

    def candidateTable(self, points: np.ndarray) -> np.ndarray:
        '''
        Candidate rows for a batch of points.

        Parameters:
        -----------
        points : np.ndarray
            Query points, shape (nPoints, 3)

        Returns:
        --------
        np.ndarray :
            Shape (nPoints, maxCandidates); unused slots hold -1
        '''
        coords = self._cellCoords(np.asarray(points, dtype=float))
        return self._table[self._linearIndex(coords)]

    def _cellCoords(self, positions: np.ndarray) -> np.ndarray:
        '''Integer cell coordinates, clamped onto the grid.'''
        coords = np.floor((positions - self._origin) / self._cellSize).astype(np.int64)
        return np.clip(coords, 0, self._shape - 1)

    def _linearIndex(self, coords: np.ndarray) -> np.ndarray:
        '''Flatten (ix, iy, iz) cell coordinates, x fastest.'''
        gx, gy = self._shape[0], self._shape[1]
        return coords[..., 0] + gx * (coords[..., 1] + gy * coords[..., 2])
