import logging
import unittest
import numpy as np
from xtalpy.core.coords import (
    Cart,
    Coords,
    Frac,
    isapprox,
    to_cartesian,
    to_fractional,
    translate_by,
    wrap,
)
from xtalpy.crystal.box import Box
from xtalpy.exceptions import DimensionMismatchError, MissingBoxError, TagMismatchError

LOG = logging.getLogger(__name__)


class CoordsTestCase(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(42)
        self.box = Box.triclinic(7.0, 9.5, 12.1, 1.3, 1.8, 2.0)

    def test_construction(self):
        f = Frac([0.1, 0.2, 0.3])
        self.assertEqual(len(f), 1)
        self.assertEqual(f.xf.shape, (1, 3))
        self.assertEqual(len(Cart([])), 0)
        self.assertEqual(len(Frac(np.zeros((5, 3)))), 5)
        with self.assertRaises(DimensionMismatchError):
            Frac([0.1, 0.2])
        with self.assertRaises(DimensionMismatchError):
            Cart(np.zeros((3, 4)))
        with self.assertRaises(TypeError):
            Coords(np.zeros((1, 3)))

    def test_fixed_shape(self):
        f = Frac(np.zeros((2, 3)))
        with self.assertRaises(AttributeError):
            f._values = np.zeros((3, 3))
        f.set([[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]])
        np.testing.assert_allclose(f.xf[1], [0.4, 0.5, 0.6])
        f.set([0.5, 0.5, 0.5])
        np.testing.assert_allclose(f.xf, 0.5)
        with self.assertRaises(DimensionMismatchError):
            f.set(np.zeros((3, 3)))
        f.xf[0, 0] = 0.25
        self.assertEqual(f.xf[0, 0], 0.25)

    def test_round_trip(self):
        xf = self.rng.random((50, 3))
        f = Frac(xf)
        cart = to_cartesian(f, self.box)
        self.assertIsInstance(cart, Cart)
        back = to_fractional(cart, self.box)
        self.assertIsInstance(back, Frac)
        np.testing.assert_allclose(back.xf, xf, atol=1e-9)
        np.testing.assert_allclose(self.box.to_cartesian(xf), cart.x, atol=1e-12)

    def test_conversion_copies(self):
        f = Frac([0.1, 0.2, 0.3])
        g = to_fractional(f, self.box)
        g.xf[0, 0] = 0.9
        self.assertEqual(f.xf[0, 0], 0.1)

    def test_wrap(self):
        f = Frac([1.2, -0.3, 0.9])
        f.wrap()
        np.testing.assert_allclose(f.xf, [[0.2, 0.7, 0.9]], atol=1e-12)
        once = f.xf.copy()
        f.wrap()
        np.testing.assert_array_equal(f.xf, once)

    def test_wrap_range(self):
        f = Frac(self.rng.uniform(-5, 5, size=(200, 3)))
        f.xf[0] = [-1e-17, 1.0, 2.0]
        wrap(f)
        self.assertTrue(np.all(f.xf >= 0.0))
        self.assertTrue(np.all(f.xf < 1.0))
        np.testing.assert_array_equal(f.xf[0], [0.0, 0.0, 0.0])

    def test_wrap_cartesian(self):
        with self.assertRaises(TagMismatchError):
            wrap(Cart([1.0, 2.0, 3.0]))

    def test_indexing(self):
        f = Frac(self.rng.random((4, 3)))
        np.testing.assert_array_equal(f[2].xf, f.xf[2:3])
        self.assertEqual(len(f[1:3]), 2)
        self.assertEqual(len(f[[True, False, True, False]]), 2)
        with self.assertRaises(IndexError):
            f[4]
        with self.assertRaises(DimensionMismatchError):
            f[[True, False]]
        sub = f[0]
        sub.xf[0, 0] = 5.0
        self.assertNotEqual(f.xf[0, 0], 5.0)

    def test_concatenation(self):
        f = Frac(self.rng.random((3, 3)))
        joined = f[0] + f[1:3]
        self.assertEqual(joined, f)
        with self.assertRaises(TagMismatchError):
            f + Cart(np.zeros((1, 3)))

    def test_equality(self):
        f = Frac([0.1, 0.2, 0.3])
        self.assertNotEqual(f, Cart([0.1, 0.2, 0.3]))
        self.assertTrue(isapprox(f, Frac([0.1, 0.2, 0.3 + 1e-10])))
        self.assertFalse(f.isapprox(Frac([0.1, 0.2, 0.31])))
        self.assertFalse(f.isapprox(Cart([0.1, 0.2, 0.3])))

    def test_translate(self):
        f = Frac(np.zeros((2, 3)))
        translate_by(f, Frac([0.5, 0.0, 0.0]))
        np.testing.assert_allclose(f.xf[:, 0], 0.5)
        f.translate_by(Frac([[0.1, 0, 0], [0.2, 0, 0]]))
        np.testing.assert_allclose(f.xf[:, 0], [0.6, 0.7])
        with self.assertRaises(DimensionMismatchError):
            translate_by(f, Frac(np.zeros((3, 3))))

    def test_translate_mixed(self):
        box = Box.cubic(10.0)
        f = Frac([0.1, 0.1, 0.1])
        with self.assertRaises(MissingBoxError):
            translate_by(f, Cart([1.0, 0.0, 0.0]))
        translate_by(f, Cart([1.0, 0.0, 0.0]), box=box)
        np.testing.assert_allclose(f.xf, [[0.2, 0.1, 0.1]])
        x = Cart([0.0, 0.0, 0.0])
        translate_by(x, Frac([0.5, 0.0, 0.0]), box=box)
        np.testing.assert_allclose(x.x, [[5.0, 0.0, 0.0]])

    def test_repr(self):
        self.assertTrue(repr(Frac([0.5, 0.5, 0.5])).startswith("Frac("))
