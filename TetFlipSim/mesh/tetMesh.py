# -- Tetrahedral Mesh -- #

'''
Static tetrahedral mesh used as the grid of the TetFLIP simulator.

The mesh owns node positions (fixed after creation), node velocities
(the simulated grid state) and the tetrahedron connectivity. It answers
point-location and barycentric-coordinate queries for the particle
transfer phases, and caches the node adjacency used by the pressure
projection.

Regular meshes are built from an axis-aligned lattice in which every
cell is split into 5 tetrahedra: four corner tetrahedra and one central
tetrahedron. Neighbouring cells alternate between the two mirror-image
splits (by the parity of i + j + k) so that shared faces carry the same
diagonal and the tetrahedra tile the domain without gaps or overlaps.

Signed volumes are taken from the scalar triple product:

    Vol(p0, p1, p2, p3) = (p1 - p0) . ((p2 - p0) x (p3 - p0)) / 6

Tetrahedron orientation is not normalised, so volumes may be negative;
barycentric coordinates divide by the signed volume and are therefore
orientation independent.

References:
-----------
Ando, Thurey & Wojtan (2013) -- Highly Adaptive Liquid Simulations
    on Tetrahedral Meshes
Carr, Fujishiro & Mayer (1993) -- Space-filling cube decompositions

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import scipy.sparse as sparse

from TetFlipSim import constants as const
from TetFlipSim.mesh.pointLocator import PointLocator, TetrahedronGrid

logger = logging.getLogger(__name__)

NOT_FOUND: int = const.notFound

# Corner ordering used by the cell split: bit 0 = x, bit 1 = y, bit 2 = z
# (0 = 000, 1 = 100, 2 = 010, 3 = 110, 4 = 001, 5 = 101, 6 = 011, 7 = 111)
_EVEN_CELL_SPLIT = np.array([
    [0, 1, 3, 5],
    [0, 3, 2, 6],
    [0, 5, 4, 6],
    [3, 5, 7, 6],
    [0, 3, 5, 6],
], dtype=np.int64)

# Mirror image of the even split across the cell's x mid-plane
_ODD_CELL_SPLIT = np.array([
    [1, 0, 2, 4],
    [1, 2, 3, 7],
    [1, 4, 5, 7],
    [2, 4, 6, 7],
    [1, 2, 4, 7],
], dtype=np.int64)


#--------------------------------------------------------------------#
# -- Geometry Helpers -- #
#--------------------------------------------------------------------#

def signedVolume(
    p0: np.ndarray,
    p1: np.ndarray,
    p2: np.ndarray,
    p3: np.ndarray,
) -> np.ndarray:
    '''
    Signed tetrahedron volume via the scalar triple product.

    Broadcasts over leading dimensions; the last axis holds x, y, z.

    Returns:
    --------
    np.ndarray : Signed volume(s)
    '''
    e1 = p1 - p0
    e2 = p2 - p0
    e3 = p3 - p0
    return np.sum(e1 * np.cross(e2, e3), axis=-1) / 6.0


def readOnlyView(array: np.ndarray) -> np.ndarray:
    '''Non-writeable view of an array.'''
    view = array.view()
    view.flags.writeable = False
    return view


######################################################################
# -- Mesh Snapshot -- #
######################################################################

@dataclass(frozen=True)
class MeshSnapshot:
    '''
    Read-only view of the mesh for the presentation layer.

    Parameters:
    -----------
    nodes : np.ndarray
        Node positions, shape (nodeCount, 3)
    tetrahedra : np.ndarray
        Node indices per tetrahedron, shape (tetCount, 4)
    nodeCount : int
        Number of nodes
    tetCount : int
        Number of tetrahedra
    '''

    nodes: np.ndarray
    tetrahedra: np.ndarray
    nodeCount: int
    tetCount: int


######################################################################
# -- Tetrahedral Mesh -- #
######################################################################

class TetrahedralMesh:
    '''
    Tetrahedral mesh with node velocities and point-location queries.

    Use TetrahedralMesh.createRegular() for the lattice construction
    or TetrahedralMesh.fromArrays() for explicit connectivity.

    Parameters:
    -----------
    nodes : np.ndarray
        Node positions, shape (nodeCount, 3)
    tetrahedra : np.ndarray
        Node indices per tetrahedron, shape (tetCount, 4)
    useSpatialIndex : bool
        Accelerate point location with a uniform grid (default True).
        When False every query scans all tetrahedra.
    cellSize : np.ndarray | None
        Cell size for the spatial index (default: derived from the mesh)
    '''

    def __init__(
        self,
        nodes: np.ndarray,
        tetrahedra: np.ndarray,
        useSpatialIndex: bool = True,
        cellSize: np.ndarray | None = None,
    ) -> None:
        nodes = np.array(nodes, dtype=float)
        tetrahedra = np.array(tetrahedra, dtype=np.int64)

        if nodes.ndim != 2 or nodes.shape[1] != 3 or len(nodes) == 0:
            raise ValueError(f'nodes must have shape (n, 3), got {nodes.shape}')
        if tetrahedra.ndim != 2 or tetrahedra.shape[1] != 4 or len(tetrahedra) == 0:
            raise ValueError(f'tetrahedra must have shape (m, 4), got {tetrahedra.shape}')
        if tetrahedra.min() < 0 or tetrahedra.max() >= len(nodes):
            raise ValueError(
                f'tetrahedron indices must lie in [0, {len(nodes) - 1}], '
                f'got [{tetrahedra.min()}, {tetrahedra.max()}]'
            )

        self._nodes = nodes
        self._nodeVelocities = np.zeros_like(nodes)
        self._tetrahedra = tetrahedra

        corners = nodes[tetrahedra]
        self._volumes = signedVolume(corners[:, 0], corners[:, 1], corners[:, 2], corners[:, 3])
        self._isDegenerate = np.abs(self._volumes) < const.degenerateVolume
        self._allDegenerate = bool(np.all(self._isDegenerate))

        self._buildAdjacency()

        # Set by createRegular() for lattice meshes
        self._resolution: tuple[int, int, int] | None = None
        self._spacing: np.ndarray | None = None

        self._locator: PointLocator | None = None
        if useSpatialIndex:
            self._locator = TetrahedronGrid(cellSize=cellSize)
            self._locator.build(nodes, tetrahedra)

        logger.debug(
            'Created mesh: %d nodes, %d tetrahedra (%d degenerate)',
            self.nodeCount, self.tetCount, int(np.sum(self._isDegenerate)),
        )

    ######################################################################
    # -- Construction -- #
    ######################################################################

    @classmethod
    def createRegular(
        cls,
        domainMin: np.ndarray,
        domainMax: np.ndarray,
        resolution: tuple[int, int, int] = const.defaultMeshResolution,
        useSpatialIndex: bool = True,
    ) -> TetrahedralMesh:
        '''
        Tetrahedralise a regular lattice spanning an axis-aligned box.

        Nodes are laid out x fastest, then y, then z, at
        x = domainMin + i * dx. Each of the nx * ny * nz cells is split
        into 5 tetrahedra, giving (nx+1)(ny+1)(nz+1) nodes and
        5 * nx * ny * nz tetrahedra.

        Parameters:
        -----------
        domainMin : np.ndarray
            Lower corner of the domain
        domainMax : np.ndarray
            Upper corner of the domain
        resolution : tuple[int, int, int]
            Number of cells along x, y, z (each >= 1)
        useSpatialIndex : bool
            Accelerate point location with a uniform grid

        Returns:
        --------
        TetrahedralMesh : Conforming tetrahedral mesh of the box
        '''
        domainMin = np.asarray(domainMin, dtype=float)
        domainMax = np.asarray(domainMax, dtype=float)
        if domainMin.shape != (3,) or domainMax.shape != (3,):
            raise ValueError('domain bounds must be 3-vectors')
        if np.any(domainMax <= domainMin):
            raise ValueError(f'empty domain: min {domainMin.tolist()}, max {domainMax.tolist()}')

        if len(resolution) != 3:
            raise ValueError(f'resolution must have 3 entries, got {resolution!r}')
        nx, ny, nz = (int(n) for n in resolution)
        if min(nx, ny, nz) < 1:
            raise ValueError(f'resolution needs at least one cell per axis, got {tuple(resolution)}')

        spacing = (domainMax - domainMin) / np.array([nx, ny, nz], dtype=float)

        # Lattice nodes: k slowest, i fastest
        kk, jj, ii = np.meshgrid(
            np.arange(nz + 1), np.arange(ny + 1), np.arange(nx + 1), indexing='ij',
        )
        nodes = np.column_stack([
            domainMin[0] + ii.ravel() * spacing[0],
            domainMin[1] + jj.ravel() * spacing[1],
            domainMin[2] + kk.ravel() * spacing[2],
        ])

        # Cell origins in the same k, j, i loop order
        ck, cj, ci = np.meshgrid(np.arange(nz), np.arange(ny), np.arange(nx), indexing='ij')
        ci, cj, ck = ci.ravel(), cj.ravel(), ck.ravel()

        def nodeIndex(i, j, k):
            return i + j * (nx + 1) + k * (nx + 1) * (ny + 1)

        # Corner node ids per cell, columns follow the bit layout of the splits
        cellCorners = np.column_stack([
            nodeIndex(ci + (c & 1), cj + ((c >> 1) & 1), ck + ((c >> 2) & 1))
            for c in range(8)
        ])

        oddCell = ((ci + cj + ck) % 2 == 1)[:, np.newaxis, np.newaxis]
        split = np.where(oddCell, _ODD_CELL_SPLIT, _EVEN_CELL_SPLIT)  # (nCells, 5, 4)
        tetrahedra = np.take_along_axis(
            cellCorners[:, np.newaxis, :].repeat(const.tetrahedraPerCell, axis=1),
            split,
            axis=2,
        ).reshape(-1, 4)

        mesh = cls(nodes, tetrahedra, useSpatialIndex=useSpatialIndex, cellSize=spacing)
        mesh._resolution = (nx, ny, nz)
        mesh._spacing = spacing
        return mesh

    @classmethod
    def fromArrays(
        cls,
        nodes: np.ndarray,
        tetrahedra: np.ndarray,
        useSpatialIndex: bool = True,
    ) -> TetrahedralMesh:
        '''
        Build a mesh from explicit node positions and connectivity.

        Accepts flat arrays ([x, y, z, ...] and [n0, n1, n2, n3, ...])
        or pre-shaped (n, 3) / (m, 4) arrays.
        '''
        nodes = np.asarray(nodes, dtype=float).reshape(-1, 3)
        tetrahedra = np.asarray(tetrahedra, dtype=np.int64).reshape(-1, 4)
        return cls(nodes, tetrahedra, useSpatialIndex=useSpatialIndex)

    def _buildAdjacency(self) -> None:
        '''
        Precompute node -> incident tetrahedra and node -> neighbour maps.

        Topology never changes after construction, so both maps are
        computed once and reused for the lifetime of the mesh.
        '''
        nNodes = self.nodeCount
        tets = self._tetrahedra

        # Incident tetrahedra in CSR layout, ascending tetrahedron order per node
        flatNodes = tets.ravel()
        flatTets = np.repeat(np.arange(len(tets)), 4)
        order = np.argsort(flatNodes, kind='stable')
        self._incidentIndices = flatTets[order]
        self._incidentPtr = np.concatenate([[0], np.cumsum(np.bincount(flatNodes, minlength=nNodes))])

        # Each tetrahedron links its 4 nodes pairwise (12 ordered pairs)
        rows = np.repeat(tets, 4, axis=1).ravel()
        cols = np.tile(tets, (1, 4)).ravel()
        distinct = rows != cols
        adjacency = sparse.coo_matrix(
            (np.ones(int(np.sum(distinct))), (rows[distinct], cols[distinct])),
            shape=(nNodes, nNodes),
        ).tocsr()
        adjacency.sum_duplicates()
        adjacency.data[:] = 1.0
        adjacency.sort_indices()
        self._adjacency = adjacency

    ######################################################################
    # -- Accessors -- #
    ######################################################################

    @property
    def nodeCount(self) -> int:
        '''Number of mesh nodes.'''
        return self._nodes.shape[0]

    @property
    def tetCount(self) -> int:
        '''Number of tetrahedra.'''
        return self._tetrahedra.shape[0]

    @property
    def nodes(self) -> np.ndarray:
        '''Node positions, shape (nodeCount, 3), read-only.'''
        return readOnlyView(self._nodes)

    @property
    def nodeVelocities(self) -> np.ndarray:
        '''Node velocities, shape (nodeCount, 3), read-only view.'''
        return readOnlyView(self._nodeVelocities)

    def setNodeVelocities(self, velocities: np.ndarray) -> None:
        '''
        Replace all node velocities.

        Parameters:
        -----------
        velocities : np.ndarray
            New velocities, flat or shape (nodeCount, 3)
        '''
        velocities = np.asarray(velocities, dtype=float).reshape(-1, 3)
        if velocities.shape != self._nodeVelocities.shape:
            raise ValueError(
                f'expected {self.nodeCount} node velocities, got {velocities.shape[0]}'
            )
        self._nodeVelocities[:] = velocities

    @property
    def tetrahedra(self) -> np.ndarray:
        '''Tetrahedron node indices, shape (tetCount, 4), read-only.'''
        return readOnlyView(self._tetrahedra)

    @property
    def volumes(self) -> np.ndarray:
        '''Signed tetrahedron volumes, read-only.'''
        return readOnlyView(self._volumes)

    @property
    def degenerateMask(self) -> np.ndarray:
        '''True where |volume| < degenerate threshold.'''
        return readOnlyView(self._isDegenerate)

    @property
    def adjacency(self) -> sparse.csr_matrix:
        '''Symmetric node adjacency (1 where two nodes share a tetrahedron).'''
        return self._adjacency

    @property
    def neighborCounts(self) -> np.ndarray:
        '''Number of distinct neighbour nodes per node.'''
        return np.diff(self._adjacency.indptr)

    @property
    def incidentCounts(self) -> np.ndarray:
        '''Number of tetrahedra incident to each node.'''
        return np.diff(self._incidentPtr)

    @property
    def resolution(self) -> tuple[int, int, int] | None:
        '''Lattice resolution for regular meshes, None otherwise.'''
        return self._resolution

    @property
    def spacing(self) -> np.ndarray | None:
        '''Lattice spacing for regular meshes, None otherwise.'''
        return self._spacing

    @property
    def usesSpatialIndex(self) -> bool:
        '''Whether point location is grid-accelerated.'''
        return self._locator is not None

    def getTetrahedron(self, index: int) -> np.ndarray:
        '''The 4 node indices of tetrahedron `index`.'''
        return readOnlyView(self._tetrahedra[index])

    def tetrahedronVolume(self, index: int) -> float:
        '''Signed volume of tetrahedron `index`.'''
        return float(self._volumes[index])

    def incidentTetrahedra(self, node: int) -> np.ndarray:
        '''Ascending indices of the tetrahedra that use `node`.'''
        return self._incidentIndices[self._incidentPtr[node]:self._incidentPtr[node + 1]]

    def neighbors(self, node: int) -> np.ndarray:
        '''Ascending indices of nodes sharing at least one tetrahedron with `node`.'''
        a = self._adjacency
        return a.indices[a.indptr[node]:a.indptr[node + 1]]

    def snapshot(self) -> MeshSnapshot:
        '''Read-only mesh data for rendering.'''
        return MeshSnapshot(
            nodes=self.nodes,
            tetrahedra=self.tetrahedra,
            nodeCount=self.nodeCount,
            tetCount=self.tetCount,
        )

    ######################################################################
    # -- Barycentric Coordinates -- #
    ######################################################################

    def barycentric(self, tetIndex: int, point: np.ndarray) -> np.ndarray:
        '''
        Barycentric coordinates of a point relative to one tetrahedron.

        Each weight is the volume of the tetrahedron obtained by
        substituting the point for one vertex, divided by the
        tetrahedron's own signed volume. Degenerate tetrahedra
        (|Vol| < 1e-10) return (0.25, 0.25, 0.25, 0.25).

        Parameters:
        -----------
        tetIndex : int
            Tetrahedron index
        point : np.ndarray
            Query point, shape (3,)

        Returns:
        --------
        np.ndarray : 4 weights, summing to 1 for non-degenerate tetrahedra
        '''
        return self._barycentricMany(
            np.array([tetIndex], dtype=np.int64),
            np.asarray(point, dtype=float).reshape(1, 3),
        )[0]

    def _barycentricMany(self, tetIndices: np.ndarray, points: np.ndarray) -> np.ndarray:
        '''
        Vectorised barycentric coordinates.

        Parameters:
        -----------
        tetIndices : np.ndarray
            Tetrahedron indices, any shape S
        points : np.ndarray
            Points broadcastable to S + (3,)

        Returns:
        --------
        np.ndarray : Weights, shape S + (4,)
        '''
        corners = self._nodes[self._tetrahedra[tetIndices]]    # S + (4, 3)
        p0, p1, p2, p3 = (corners[..., n, :] for n in range(4))
        p = np.broadcast_to(points, p0.shape)

        volume = self._volumes[tetIndices]
        degenerate = self._isDegenerate[tetIndices]
        safeVolume = np.where(degenerate, 1.0, volume)

        weights = np.stack([
            signedVolume(p, p1, p2, p3),
            signedVolume(p0, p, p2, p3),
            signedVolume(p0, p1, p, p3),
            signedVolume(p0, p1, p2, p),
        ], axis=-1) / safeVolume[..., np.newaxis]

        return np.where(degenerate[..., np.newaxis], 0.25, weights)

    ######################################################################
    # -- Point Location -- #
    ######################################################################

    def locate(self, point: np.ndarray) -> int:
        '''
        Index of the tetrahedron containing a point.

        A point is inside when all four barycentric coordinates are
        >= 0. Candidates are tested in ascending index order and the
        first non-degenerate match wins. Degenerate tetrahedra are never
        selected, unless every tetrahedron of the mesh is degenerate; then
        tetrahedron 0 is returned for any point.

        Parameters:
        -----------
        point : np.ndarray
            Query point, shape (3,)

        Returns:
        --------
        int : Tetrahedron index, or NOT_FOUND (-1)
        '''
        point = np.asarray(point, dtype=float).reshape(3)
        if self._allDegenerate:
            return 0

        if self._locator is not None:
            candidates = self._locator.candidates(point)
        else:
            candidates = np.arange(self.tetCount)
        if len(candidates) == 0:
            return NOT_FOUND

        degenerate = self._isDegenerate[candidates]
        weights = self._barycentricMany(candidates, point)
        inside = np.all(weights >= 0.0, axis=-1) & ~degenerate
        hits = np.flatnonzero(inside)
        if len(hits) == 0:
            return NOT_FOUND
        return int(candidates[hits[0]])

    def locateBatch(self, points: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        '''
        Locate many points and return their barycentric weights.

        Equivalent to calling locate() and barycentric() per point.

        Parameters:
        -----------
        points : np.ndarray
            Query points, shape (nPoints, 3)

        Returns:
        --------
        tuple[np.ndarray, np.ndarray] :
            (tetIndices, weights) with shapes (nPoints,) and (nPoints, 4).
            Points that are not found get NOT_FOUND and zero weights.
        '''
        points = np.asarray(points, dtype=float).reshape(-1, 3)
        nPoints = len(points)
        tetIndices = np.full(nPoints, NOT_FOUND, dtype=np.int64)
        weights = np.zeros((nPoints, 4))
        if nPoints == 0:
            return tetIndices, weights

        if self._allDegenerate:
            tetIndices[:] = 0
            weights[:] = 0.25
            return tetIndices, weights

        if self._locator is None:
            # Exhaustive scan, one point at a time to bound memory
            for n, point in enumerate(points):
                t = self.locate(point)
                if t != NOT_FOUND:
                    tetIndices[n] = t
                    weights[n] = self.barycentric(t, point)
            return tetIndices, weights

        table = self._locator.candidateTable(points)                    # (P, M)
        valid = table >= 0
        safeTable = np.where(valid, table, 0)
        degenerate = self._isDegenerate[safeTable] & valid

        candidateWeights = self._barycentricMany(safeTable, points[:, np.newaxis, :])  # (P, M, 4)
        inside = np.all(candidateWeights >= 0.0, axis=-1) & valid & ~degenerate

        rows = np.flatnonzero(np.any(inside, axis=1))
        first = np.argmax(inside[rows], axis=1)

        tetIndices[rows] = safeTable[rows, first]
        weights[rows] = candidateWeights[rows, first]
        return tetIndices, weights
