# -- Particle / Mesh Velocity Transfer -- #

'''
P2G and G2P transfer operators between particles and mesh nodes.

Both directions use the barycentric weights of each particle inside
its containing tetrahedron:

    P2G:  u_n = sum_p w_pn * v_p / sum_p w_pn      (nodes of p's tet)
    G2P:  v_p = sum_n w_pn * u_n

Particles outside every tetrahedron are skipped: they add nothing to
the grid and keep their velocity in G2P.

G2P optionally blends in the FLIP update,

    v_p = r * (v_p + sum_n w_pn * (u_n - u_n_old)) + (1 - r) * sum_n w_pn * u_n

where u_n_old is the grid field right after P2G and r is the FLIP
ratio. With r = 0 the grid velocity simply replaces the particle
velocity (PIC).

References:
-----------
Brackbill & Ruppel (1986) -- FLIP: A method for adaptively zoned,
    particle-in-cell calculations
Zhu & Bridson (2005) -- Animating Sand as a Fluid

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

import numpy as np

from TetFlipSim.mesh.tetMesh import TetrahedralMesh, NOT_FOUND


def locateParticles(
    mesh: TetrahedralMesh,
    positions: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    '''
    Containing tetrahedron and barycentric weights of every particle.

    Parameters:
    -----------
    mesh : TetrahedralMesh
        Mesh to search
    positions : np.ndarray
        Particle positions, shape (n, 3)

    Returns:
    --------
    tuple[np.ndarray, np.ndarray] :
        (tetIndices, weights); NOT_FOUND marks particles outside the mesh
    '''
    return mesh.locateBatch(positions)


def particlesToMesh(
    mesh: TetrahedralMesh,
    velocities: np.ndarray,
    tetIndices: np.ndarray,
    weights: np.ndarray,
) -> np.ndarray:
    '''
    Scatter particle velocities onto mesh nodes (P2G).

    Node velocities are reset to zero, accumulated from all located
    particles and normalised by the accumulated weight. Nodes that
    received no weight keep zero velocity.

    Parameters:
    -----------
    mesh : TetrahedralMesh
        Target mesh; its node velocities are overwritten
    velocities : np.ndarray
        Particle velocities, shape (n, 3)
    tetIndices : np.ndarray
        Containing tetrahedron per particle (from locateParticles)
    weights : np.ndarray
        Barycentric weights per particle, shape (n, 4)

    Returns:
    --------
    np.ndarray : Accumulated weight per node, shape (nodeCount,)
    '''
    found = tetIndices != NOT_FOUND
    nodeIds = mesh.tetrahedra[tetIndices[found]]          # (nFound, 4)
    w = weights[found]                                    # (nFound, 4)

    momentum = np.zeros((mesh.nodeCount, 3))
    nodeWeights = np.zeros(mesh.nodeCount)

    np.add.at(momentum, nodeIds.ravel(), (w[:, :, np.newaxis] * velocities[found][:, np.newaxis, :]).reshape(-1, 3))
    np.add.at(nodeWeights, nodeIds.ravel(), w.ravel())

    hasWeight = nodeWeights > 0.0
    momentum[hasWeight] /= nodeWeights[hasWeight, np.newaxis]
    momentum[~hasWeight] = 0.0

    mesh.setNodeVelocities(momentum)
    return nodeWeights


def interpolateVelocities(
    mesh: TetrahedralMesh,
    nodeVelocities: np.ndarray,
    tetIndices: np.ndarray,
    weights: np.ndarray,
) -> np.ndarray:
    '''
    Barycentric interpolation of a node field at located particles.

    Rows of particles that were not found are zero.

    Returns:
    --------
    np.ndarray : Interpolated velocities, shape (n, 3)
    '''
    found = tetIndices != NOT_FOUND
    result = np.zeros((len(tetIndices), 3))
    nodeIds = mesh.tetrahedra[tetIndices[found]]
    result[found] = np.einsum('pn,pnd->pd', weights[found], nodeVelocities[nodeIds])
    return result


def meshToParticles(
    mesh: TetrahedralMesh,
    velocities: np.ndarray,
    tetIndices: np.ndarray,
    weights: np.ndarray,
    flipRatio: float = 0.0,
    previousNodeVelocities: np.ndarray | None = None,
) -> None:
    '''
    Gather mesh node velocities back onto particles (G2P), in place.

    Parameters:
    -----------
    mesh : TetrahedralMesh
        Source mesh (pressure-corrected node velocities)
    velocities : np.ndarray
        Particle velocities, shape (n, 3), modified in place
    tetIndices : np.ndarray
        Containing tetrahedron per particle
    weights : np.ndarray
        Barycentric weights per particle, shape (n, 4)
    flipRatio : float
        FLIP/PIC blend; 0.0 replaces particle velocities outright
    previousNodeVelocities : np.ndarray | None
        Node field right after P2G, required when flipRatio > 0
    '''
    found = tetIndices != NOT_FOUND
    gridVelocity = interpolateVelocities(mesh, mesh.nodeVelocities, tetIndices, weights)

    if flipRatio > 0.0:
        if previousNodeVelocities is None:
            raise ValueError('FLIP blending needs the node velocities from before the update')
        change = gridVelocity - interpolateVelocities(mesh, previousNodeVelocities, tetIndices, weights)
        flipVelocity = velocities + change
        gridVelocity = flipRatio * flipVelocity + (1.0 - flipRatio) * gridVelocity

    velocities[found] = gridVelocity[found]
