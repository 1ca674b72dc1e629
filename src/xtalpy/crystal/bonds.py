"""
Helpers for the bond graph of a crystal: an undirected graph over atom
indices, stored as a symmetric `scipy.sparse.dok_matrix`.

The geometry code treats this graph as opaque. It is only ever carried
along, remapped explicitly when atoms are removed, or dropped.
"""
import logging
import numpy as np
from scipy.sparse import dok_matrix, issparse
from xtalpy.exceptions import DimensionMismatchError

LOG = logging.getLogger(__name__)


def bond_graph(n: int, edges=()) -> dok_matrix:
    """
    Create a bond graph over n atoms.

    Args:
        n (int): number of atoms
        edges (Iterable[Tuple[int, int]], optional): bonded pairs (i, j)

    Returns:
        dok_matrix: (n, n) symmetric adjacency matrix
    """
    graph = dok_matrix((n, n), dtype=bool)
    for i, j in edges:
        if not (0 <= i < n and 0 <= j < n):
            raise DimensionMismatchError(
                "bond ({}, {}) refers to an atom outside [0, {})".format(i, j, n)
            )
        graph[i, j] = True
        graph[j, i] = True
    return graph


def as_bond_graph(bonds, n: int) -> dok_matrix:
    "Coerce None, a sparse/dense matrix or a list of pairs into a bond graph"
    if bonds is None:
        return bond_graph(n)
    square = isinstance(bonds, np.ndarray) and bonds.ndim == 2 and bonds.shape[0] == bonds.shape[1]
    if issparse(bonds) or square:
        if bonds.shape != (n, n):
            raise DimensionMismatchError(
                "bond graph of shape {} for {} atoms".format(bonds.shape, n)
            )
        return dok_matrix(bonds, dtype=bool)
    return bond_graph(n, bonds)


def n_bonds(graph) -> int:
    "number of undirected edges"
    upper = graph.tocoo()
    return int(np.count_nonzero(upper.row < upper.col))


def edges(graph):
    "Sorted list of bonded pairs (i, j) with i < j"
    coo = graph.tocoo()
    mask = coo.row < coo.col
    return sorted(zip(coo.row[mask].tolist(), coo.col[mask].tolist()))


def remap_bonds(graph, keep) -> dok_matrix:
    """
    Restrict a bond graph to a subset of atoms, renumbering them
    in order.

    Args:
        graph (dok_matrix): the bond graph
        keep (np.ndarray): boolean mask or index array of atoms to keep

    Returns:
        dok_matrix: the bond graph between the kept atoms
    """
    idx = np.arange(graph.shape[0])[keep]
    return dok_matrix(graph.tocsr()[idx][:, idx], dtype=bool)


def bonds_equal(a, b) -> bool:
    return a.shape == b.shape and (a.tocsr() != b.tocsr()).nnz == 0
