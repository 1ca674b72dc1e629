import logging
import unittest
import numpy as np
from xtalpy.core.coords import Cart, Frac
from xtalpy.core.matter import Atoms
from xtalpy.crystal.box import Box
from xtalpy.crystal.distance import (
    distance,
    duplicate_mask,
    minimum_image,
    overlapping_pairs,
    periodic_fractional_pairs,
)

LOG = logging.getLogger(__name__)


def brute_force_pairs(coords, box, tol):
    result = []
    for i in range(len(coords)):
        for j in range(i + 1, len(coords)):
            r = distance(coords, box, i, j, True)
            if r < tol:
                result.append((i, j, r))
    return result


class DistanceTestCase(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(7)

    def test_across_boundary(self):
        box = Box.cubic(10.0)
        f = Frac([[0.05, 0.0, 0.0], [0.95, 0.0, 0.0]])
        self.assertAlmostEqual(distance(f, box, 0, 1, True), 1.0)
        self.assertAlmostEqual(distance(f, box, 0, 1, False), 9.0)
        cart = Cart(box.to_cartesian(f.xf))
        self.assertAlmostEqual(distance(cart, box, 0, 1, True), 1.0)
        self.assertAlmostEqual(distance(cart, box, 0, 1, False), 9.0)

    def test_particle_sets(self):
        box = Box.orthorhombic(4.0, 5.0, 6.0)
        atoms = Atoms(["C", "O"], Frac([[0.0, 0.0, 0.0], [0.0, 0.0, 0.9]]))
        self.assertAlmostEqual(distance(atoms, box, 0, 1, True), 0.6)
        self.assertAlmostEqual(distance(atoms, box, 1, 0, False), 5.4)

    def test_symmetry(self):
        box = Box.triclinic(7.0, 9.5, 12.1, 1.3, 1.8, 2.0)
        f = Frac(self.rng.uniform(-1, 2, size=(20, 3)))
        for i, j in self.rng.integers(0, 20, size=(30, 2)):
            for pbc in (True, False):
                self.assertAlmostEqual(
                    distance(f, box, i, j, pbc), distance(f, box, j, i, pbc), places=12
                )

    def test_pbc_never_longer(self):
        for box in (Box.cubic(8.0), Box.orthorhombic(5.0, 9.0, 13.0)):
            f = Frac(self.rng.uniform(-0.5, 1.5, size=(30, 3)))
            for i in range(30):
                for j in range(i + 1, 30):
                    self.assertLessEqual(
                        distance(f, box, i, j, True),
                        distance(f, box, i, j, False) + 1e-12,
                    )

    def test_pbc_bound(self):
        box = Box.orthorhombic(5.0, 9.0, 13.0)
        f = Frac(self.rng.uniform(-3, 3, size=(30, 3)))
        half_diagonal = 0.5 * np.linalg.norm(box.lengths)
        for i in range(1, 30):
            self.assertLessEqual(distance(f, box, 0, i, True), half_diagonal + 1e-12)

    def test_minimum_image(self):
        box = Box.cubic(10.0)
        np.testing.assert_allclose(
            minimum_image(np.array([[9.0, -6.0, 0.5]]), box), [[-1.0, 4.0, 0.5]], atol=1e-12
        )

    def test_periodic_fractional_pairs(self):
        frac = np.array([[0.01, 0.5, 0.5], [0.99, 0.5, 0.5], [0.5, 0.5, 0.5]])
        np.testing.assert_array_equal(periodic_fractional_pairs(frac, 0.05), [[0, 1]])
        self.assertEqual(periodic_fractional_pairs(frac[:1], 0.05).shape, (0, 2))
        self.assertEqual(periodic_fractional_pairs(frac, 0.001).shape, (0, 2))

    def test_overlapping_pairs_match_brute_force(self):
        for box in (Box.cubic(10.0), Box.triclinic(9.0, 10.0, 11.0, 1.4, 1.6, 1.8)):
            f = Frac(self.rng.uniform(-0.2, 1.2, size=(60, 3)))
            expected = brute_force_pairs(f, box, 2.5)
            pairs = overlapping_pairs(f, box, 2.5)
            self.assertGreater(len(expected), 0)
            self.assertEqual([p[:2] for p in pairs], [p[:2] for p in expected])
            np.testing.assert_allclose(
                [p[2] for p in pairs], [p[2] for p in expected], atol=1e-10
            )

    def test_identical_coordinates_overlap(self):
        box = Box.cubic(10.0)
        atoms = Atoms(["C", "C", "O"], Frac([[0.1, 0.1, 0.1], [0.1, 0.1, 0.1], [0.6, 0.6, 0.6]]))
        self.assertEqual(overlapping_pairs(atoms, box, 0.1), [(0, 1, 0.0)])
        self.assertEqual(overlapping_pairs(atoms[[0, 2]], box, 0.1), [])
        self.assertEqual(overlapping_pairs(atoms, box, 0.0), [])

    def test_duplicate_mask(self):
        frac = np.array([[0.0, 0.0, 0.0], [0.0001, 0.0, 0.0], [0.9999, 0.0, 0.0]])
        np.testing.assert_array_equal(duplicate_mask(frac), [True, False, False])
        np.testing.assert_array_equal(
            duplicate_mask(frac, labels=["C", "O", "C"]), [True, True, False]
        )
        np.testing.assert_array_equal(
            duplicate_mask(frac, tol=0.001, box=Box.cubic(100.0)), [True, True, True]
        )
        self.assertEqual(len(duplicate_mask(np.empty((0, 3)))), 0)

    def test_duplicate_mask_keeps_first(self):
        # 0 and 2 are further apart than the tolerance, so 2 survives
        # once 1 has been removed as a duplicate of 0
        frac = np.array([[0.0, 0.5, 0.5], [0.0008, 0.5, 0.5], [0.0016, 0.5, 0.5]])
        np.testing.assert_array_equal(duplicate_mask(frac, tol=1e-3), [True, False, True])
        np.testing.assert_array_equal(
            duplicate_mask(frac[::-1], tol=1e-3), [True, False, True]
        )
