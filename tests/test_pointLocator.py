import numpy as np

from TetFlipSim.mesh.pointLocator import TetrahedronGrid
from TetFlipSim.mesh.tetMesh import TetrahedralMesh


def buildGrid(mesh, cellSize=None):
    grid = TetrahedronGrid(cellSize=cellSize)
    grid.build(np.asarray(mesh.nodes), np.asarray(mesh.tetrahedra))
    return grid


def test_grid_shape_follows_cell_size(unitMesh):
    assert buildGrid(unitMesh, cellSize=np.full(3, 0.5)).shape == (2, 2, 2)
    assert buildGrid(unitMesh, cellSize=np.full(3, 0.25)).shape == (4, 4, 4)


def test_default_cell_size_from_bounding_boxes(unitMesh):
    # Every tetrahedron spans exactly one lattice cell
    assert buildGrid(unitMesh).shape == (2, 2, 2)


def test_candidates_are_sorted_and_contain_owner(defaultMesh, rng):
    grid = buildGrid(defaultMesh, cellSize=defaultMesh.spacing)
    for point in rng.uniform(-1.0, 1.0, size=(50, 3)):
        candidates = grid.candidates(point)
        assert np.all(np.diff(candidates) > 0)
        assert defaultMesh.locate(point) in candidates


def test_candidate_table_is_padded(unitMesh):
    grid = buildGrid(unitMesh)
    points = np.array([[0.1, 0.1, 0.1], [0.9, 0.9, 0.9]])
    table = grid.candidateTable(points)
    assert table.shape == (2, grid.maxCandidates)
    for row, point in zip(table, points):
        np.testing.assert_array_equal(row[row >= 0], grid.candidates(point))
        assert np.all(row[np.sum(row >= 0):] == -1)


def test_outside_points_clamp_to_border_cells(unitMesh):
    grid = buildGrid(unitMesh)
    far = grid.candidates([10.0, -10.0, 0.5])
    border = grid.candidates([0.99, 0.01, 0.5])
    np.testing.assert_array_equal(far, border)


def test_flat_axis_does_not_break_binning():
    nodes = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=float)
    mesh = TetrahedralMesh(nodes, [[0, 1, 2, 3]], useSpatialIndex=False)
    grid = buildGrid(mesh, cellSize=np.array([0.5, 0.0, 0.5]))
    assert grid.shape[1] == 1
    np.testing.assert_array_equal(grid.candidates([0.1, 0.1, 0.1]), [0])
