import logging
import unittest
import numpy as np
from xtalpy.crystal.symmetry_operation import (
    SymmetryOperation,
    decode_symm_str,
    encode_symm_str,
)
from xtalpy.exceptions import SymmetryParseError

LOG = logging.getLogger(__name__)


class SymmetryOperationTestCase(unittest.TestCase):
    def test_identity(self):
        op = SymmetryOperation.from_string("x,y,z")
        self.assertTrue(op.is_identity())
        self.assertEqual(op, SymmetryOperation.identity())
        self.assertEqual(SymmetryOperation.from_string("x+1,y,z-2"), op)
        self.assertEqual(str(op), "+x,+y,+z")
        self.assertFalse(SymmetryOperation.from_string("-x,-y,-z").is_identity())

    def test_parse(self):
        op = SymmetryOperation.from_string("1/2+x, 1/2-y, z")
        np.testing.assert_allclose(op.rotation, np.diag([1, -1, 1]))
        np.testing.assert_allclose(op.translation, [0.5, 0.5, 0.0])

        op = SymmetryOperation.from_string("'-y,x-y,z+1/3'")
        np.testing.assert_allclose(op.rotation, [[0, -1, 0], [1, -1, 0], [0, 0, 1]])
        np.testing.assert_allclose(op.translation, [0, 0, 1 / 3])

        op = SymmetryOperation.from_string("2*x-y, X, z-0.25")
        np.testing.assert_allclose(op.rotation, [[2, -1, 0], [1, 0, 0], [0, 0, 1]])
        np.testing.assert_allclose(op.translation, [0, 0, 0.75])

        op = SymmetryOperation.from_string("+1/2-x,-y+.5,1/4*2+z")
        np.testing.assert_allclose(op.rotation, np.diag([-1, -1, 1]))
        np.testing.assert_allclose(op.translation, [0.5, 0.5, 0.5])

        op = SymmetryOperation.from_string("x/2+y,y,z")
        np.testing.assert_allclose(op.rotation[0], [0.5, 1, 0])

    def test_parse_errors(self):
        bad = (
            "x*y,y,z",
            "x,y",
            "x,y,z,x",
            "x,y,z/0",
            "x,y,q",
            "x+,y,z",
            "1/x,y,z",
            "x,x,z",
            "x,,z",
            "",
            "x,y,z*",
        )
        for s in bad:
            with self.assertRaises(SymmetryParseError):
                SymmetryOperation.from_string(s)
        with self.assertRaises(ValueError):
            decode_symm_str("x,y")
        with self.assertRaises(SymmetryParseError):
            decode_symm_str(None)

    def test_encode(self):
        self.assertEqual(
            encode_symm_str(((-1, 0, 0), (0, 0, 1), (0, 1, 0)), (0, 0.5, 1 / 3)),
            "-x,1/2+z,1/3+y",
        )
        self.assertEqual(
            encode_symm_str(((2, -1, 0), (1, 0, 0), (0, 0, 1)), (0, 0, 0)),
            "+2*x-y,+x,+z",
        )
        self.assertEqual(encode_symm_str(np.zeros((3, 3)), (0, 0, 0)), "0,0,0")

    def test_string_round_trip(self):
        for s in ("-x,-y,-z", "1/2+x,1/2-y,+z", "-y,+x-y,1/3+z", "+2*x-y,+x,3/4+z"):
            op = SymmetryOperation.from_string(s)
            self.assertEqual(str(op), s)
            self.assertEqual(SymmetryOperation.from_string(str(op)), op)

    def test_apply(self):
        op = SymmetryOperation.from_string("1/2+x,1/2-y,-z")
        coords = np.array([[0.1, 0.2, 0.3], [0.0, 0.0, 0.0]])
        expected = np.array([[0.6, 0.3, -0.3], [0.5, 0.5, 0.0]])
        np.testing.assert_allclose(op.apply(coords), expected)
        np.testing.assert_allclose(op(coords), expected)
        homogeneous = np.hstack((coords, np.ones((2, 1))))
        np.testing.assert_allclose(op.apply(homogeneous)[:, :3], expected)

    def test_seitz_and_inverse(self):
        op = SymmetryOperation.from_string("1/2+x,y,z")
        s = op.seitz_matrix
        self.assertEqual(s.shape, (4, 4))
        np.testing.assert_allclose(s[:3, 3], [0.5, 0, 0])
        inv = op.inverted()
        np.testing.assert_allclose(inv.rotation, -np.eye(3))
        np.testing.assert_allclose(inv.translation, [0.5, 0, 0])

    def test_hash(self):
        ops = {
            SymmetryOperation.from_string("x,y,z"),
            SymmetryOperation.from_string("x+1,y,z"),
            SymmetryOperation.from_string("-x,-y,-z"),
        }
        self.assertEqual(len(ops), 2)
        self.assertEqual(repr(SymmetryOperation.identity()), "<SymmetryOperation: +x,+y,+z>")
