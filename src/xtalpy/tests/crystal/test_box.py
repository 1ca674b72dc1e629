import logging
import unittest
import numpy as np
from xtalpy.core.coords import Cart, Frac
from xtalpy.crystal.box import Box, unit_cube
from xtalpy.exceptions import InvalidGeometryError

LOG = logging.getLogger(__name__)


class BoxTestCase(unittest.TestCase):
    def test_cubic(self):
        box = Box.cubic(2.0)
        np.testing.assert_allclose(box.f_to_c, 2.0 * np.eye(3), atol=1e-12)
        np.testing.assert_allclose(box.c_to_f, 0.5 * np.eye(3), atol=1e-12)
        np.testing.assert_allclose(box.reciprocal_lattice, np.pi * np.eye(3), atol=1e-12)
        self.assertAlmostEqual(box.volume, 8.0)
        self.assertTrue(box.orthogonal)
        np.testing.assert_allclose(box.parameters, [2, 2, 2, 90, 90, 90])

    def test_triclinic_invariants(self):
        box = Box.triclinic(7.0, 9.5, 12.1, 1.3, 1.8, 2.0)
        np.testing.assert_allclose(box.c_to_f @ box.f_to_c, np.eye(3), atol=1e-12)
        np.testing.assert_allclose(
            box.reciprocal_lattice @ box.f_to_c, 2 * np.pi * np.eye(3), atol=1e-10
        )
        self.assertAlmostEqual(box.volume, abs(np.linalg.det(box.f_to_c)))
        np.testing.assert_allclose(box.lengths, [7.0, 9.5, 12.1])
        np.testing.assert_allclose(box.angles, [1.3, 1.8, 2.0])
        # lattice vector a along x, b in the xy plane
        np.testing.assert_allclose(box.f_to_c[1:, 0], 0.0, atol=1e-12)
        self.assertAlmostEqual(box.f_to_c[2, 1], 0.0)
        self.assertFalse(box.orthogonal)

    def test_from_matrix(self):
        reference = Box.triclinic(5.0, 6.0, 8.0, 1.4, 1.5, 1.9)
        box = Box(reference.f_to_c)
        self.assertTrue(box.isapprox(reference))
        self.assertAlmostEqual(box.alpha, 1.4)
        self.assertAlmostEqual(box.beta, 1.5)
        self.assertAlmostEqual(box.gamma, 1.9)

    def test_degrees(self):
        box = Box.from_lengths_and_angles([3.0, 3.0, 5.0], [90, 90, 120], unit="degrees")
        self.assertAlmostEqual(box.gamma, 2 * np.pi / 3)
        np.testing.assert_allclose(box.parameters[3:], [90, 90, 120])

    def test_handle_bad_angles(self):
        with self.assertLogs("xtalpy", level="WARNING"):
            with self.assertRaises(InvalidGeometryError):
                Box.from_lengths_and_angles([2.0] * 3, [90] * 3)

    def test_invalid(self):
        with self.assertRaises(InvalidGeometryError):
            Box(np.zeros((3, 3)))
        with self.assertRaises(InvalidGeometryError):
            Box(np.eye(2))
        with self.assertRaises(InvalidGeometryError):
            Box.orthorhombic(1.0, -1.0, 1.0)
        with self.assertRaises(InvalidGeometryError):
            Box.triclinic(1.0, 1.0, 1.0, 0.0, 1.5, 1.5)
        with self.assertRaises(InvalidGeometryError):
            Box.triclinic(1.0, 1.0, 1.0, np.pi, 1.5, 1.5)
        with self.assertRaises(ValueError):
            Box.from_lengths_and_angles([1.0, 1.0], [1.5, 1.5, 1.5])

    def test_immutable(self):
        box = Box.cubic(3.0)
        with self.assertRaises(ValueError):
            box.f_to_c[0, 0] = 1.0
        with self.assertRaises(AttributeError):
            box.a = 4.0
        self.assertEqual(box.a, 3.0)

    def test_transforms(self):
        box = Box.cubic(2.0)
        np.testing.assert_allclose(box.to_fractional(np.eye(3)), 0.5 * np.eye(3), atol=1e-8)
        np.testing.assert_allclose(box.to_cartesian(np.eye(3)), 2 * np.eye(3), atol=1e-8)
        cart = box.to_cartesian(Frac([0.5, 0.25, 0.0]))
        self.assertIsInstance(cart, Cart)
        np.testing.assert_allclose(cart.x, [[1.0, 0.5, 0.0]])
        self.assertIsInstance(box.to_fractional(cart), Frac)

    def test_replicate(self):
        box = Box.triclinic(5.0, 6.0, 8.0, 1.4, 1.5, 1.9)
        self.assertEqual(box.replicate((1, 1, 1)), box)
        big = box.replicate((2, 3, 1))
        np.testing.assert_allclose(big.lengths, [10.0, 18.0, 8.0])
        np.testing.assert_allclose(big.angles, box.angles)
        self.assertAlmostEqual(big.volume, 6 * box.volume)
        np.testing.assert_allclose(big.c_to_f @ big.f_to_c, np.eye(3), atol=1e-12)
        self.assertTrue(big.isapprox(Box(big.f_to_c)))
        for factors in ((0, 1, 1), (1.5, 1, 1), (True, 1, 1), (1, 1), (-1, 2, 2)):
            with self.assertRaises(InvalidGeometryError):
                box.replicate(factors)

    def test_equality(self):
        self.assertEqual(Box.cubic(1.0), unit_cube())
        self.assertNotEqual(Box.cubic(1.0), Box.cubic(1.0 + 1e-9))
        self.assertTrue(Box.cubic(1.0).isapprox(Box.cubic(1.0 + 1e-9)))
        self.assertFalse(Box.cubic(1.0).isapprox(Box.cubic(1.1)))
        self.assertAlmostEqual(unit_cube().volume, 1.0)

    def test_repr(self):
        self.assertEqual(
            repr(Box.cubic(2.0)),
            "<Box: a=2.000 b=2.000 c=2.000 (90.000,90.000,90.000) V=8.000>",
        )
