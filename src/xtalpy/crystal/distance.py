"""
Distances between particles under (optionally) periodic boundary conditions.

The periodic distance uses the minimum image convention applied to each
fractional component independently, i.e. `f - round(f)`. This is the
shortest separation across periodic images along each lattice direction,
which is exact for reasonably shaped cells but is not an exhaustive search
over all neighbouring images: for strongly skewed cells a shorter image
separation may exist.
"""
import logging
import numpy as np
from scipy.spatial import cKDTree as KDTree
from xtalpy.core.coords import Coords, Cart, Frac

LOG = logging.getLogger(__name__)


def _coords_of(obj) -> Coords:
    return obj if isinstance(obj, Coords) else obj.coords


def _cartesian_points(coords: Coords, box) -> np.ndarray:
    if isinstance(coords, Cart):
        return coords.x
    return np.dot(coords.values, box.f_to_c.T)


def minimum_image(dx: np.ndarray, box) -> np.ndarray:
    """
    Apply the minimum image convention to Cartesian displacement(s).

    Args:
        dx (np.ndarray): (N, 3) or (3,) Cartesian displacements
        box (Box): the periodic cell

    Returns:
        np.ndarray: the displacements, reduced to the nearest image along
        each lattice direction
    """
    f = np.dot(dx, box.c_to_f.T)
    f -= np.round(f)
    return np.dot(f, box.f_to_c.T)


def distance(obj, box, i: int, j: int, apply_pbc: bool) -> float:
    """
    Calculate the (Cartesian) distance between particles i and j.

    Arguments:
        obj (Coords, Atoms or Charges): the particles (fractional or Cartesian)
        box (Box): unit cell information
        i (int): index of the first particle
        j (int): index of the second particle
        apply_pbc (bool): apply periodic boundary conditions if true

    Returns:
        float: the distance in Angstroms, `distance(i, j) == distance(j, i)`
    """
    coords = _coords_of(obj)
    pts = coords.values[[i, j]]
    if not isinstance(coords, Cart):
        pts = np.dot(pts, box.f_to_c.T)
    dx = pts[1] - pts[0]
    if apply_pbc:
        dx = minimum_image(dx, box)
    return float(np.linalg.norm(dx))


def _wrapped(frac):
    frac = frac - np.floor(frac)
    frac[frac >= 1.0] = 0.0
    return frac


def periodic_fractional_pairs(frac: np.ndarray, r: float):
    """
    All pairs of points (i < j) whose minimum image separation in
    fractional space is at most r.

    Args:
        frac (np.ndarray): (N, 3) fractional coordinates, need not be wrapped
        r (float): the fractional space search radius

    Returns:
        np.ndarray: (M, 2) array of index pairs, sorted
    """
    if len(frac) < 2:
        return np.empty((0, 2), dtype=int)
    tree = KDTree(_wrapped(np.asarray(frac, dtype=np.float64)), boxsize=1.0)
    pairs = tree.query_pairs(r, output_type="ndarray")
    if len(pairs) == 0:
        return np.empty((0, 2), dtype=int)
    pairs = np.sort(pairs, axis=1)
    return pairs[np.lexsort((pairs[:, 1], pairs[:, 0]))]


def overlapping_pairs(obj, box, tol: float):
    """
    Find all pairs of particles closer than `tol` under periodic
    boundary conditions.

    Candidate pairs are found with a periodic KD-tree in fractional
    space, then confirmed with the same minimum image distance used by
    `distance`, so the result matches an exhaustive pairwise check.

    Arguments:
        obj (Coords, Atoms or Charges): the particles
        box (Box): unit cell information
        tol (float): the distance (Angstroms) below which particles overlap

    Returns:
        List[Tuple[int, int, float]]: (i, j, distance) with i < j, sorted by i then j
    """
    coords = _coords_of(obj)
    if len(coords) < 2 or tol <= 0:
        return []
    frac = np.dot(coords.values, box.c_to_f.T) if isinstance(coords, Cart) else coords.values
    # |f| <= ||c_to_f|| |x|, so this radius bounds every Cartesian candidate
    r_frac = tol * np.linalg.norm(box.c_to_f, ord=2)
    candidates = periodic_fractional_pairs(frac, r_frac)
    if len(candidates) == 0:
        return []
    cart = _cartesian_points(coords, box)
    dx = cart[candidates[:, 1]] - cart[candidates[:, 0]]
    d = np.linalg.norm(minimum_image(dx, box), axis=1)
    mask = d < tol
    LOG.debug("%d candidate pairs, %d within %g", len(candidates), np.sum(mask), tol)
    return [(int(i), int(j), float(r)) for (i, j), r in zip(candidates[mask], d[mask])]


def duplicate_mask(frac, labels=None, tol=1e-3, box=None) -> np.ndarray:
    """
    Identify duplicated particles, keeping the first occurrence.

    Particles i < j are duplicates if their labels are equal (or no labels
    are given) and they are closer than `tol`. Only particles that are
    themselves kept can mark later particles as duplicates, so the result
    only depends on the order of the input.

    Args:
        frac (np.ndarray): (N, 3) fractional coordinates
        labels (array_like, optional): N labels, e.g. species
        tol (float, optional): the separation below which particles are the same.
            In fractional units, or Angstroms if a box is given.
        box (Box, optional): if given, compare periodic Cartesian distances

    Returns:
        np.ndarray: (N,) boolean mask, true for particles to keep
    """
    frac = np.asarray(frac, dtype=np.float64)
    keep = np.ones(len(frac), dtype=bool)
    if box is None:
        candidates = periodic_fractional_pairs(frac, tol)
        pairs = [(i, j) for i, j in candidates if _within_frac(frac[i], frac[j], tol)]
    else:
        pairs = [(i, j) for i, j, _ in overlapping_pairs(Frac(frac), box, tol)]
    for i, j in pairs:
        if not keep[i] or not keep[j]:
            continue
        if labels is None or labels[i] == labels[j]:
            keep[j] = False
    return keep


def _within_frac(a, b, tol):
    f = b - a
    f -= np.round(f)
    return np.linalg.norm(f) < tol
