import logging
import numbers
import numpy as np
from numpy import zeros, allclose as close
from xtalpy.exceptions import InvalidGeometryError

LOG = logging.getLogger(__name__)

_VOLUME_EPS = 1e-12


def _readonly(arr):
    arr = np.array(arr, dtype=np.float64)
    arr.setflags(write=False)
    return arr


class Box:
    """
    Storage class for the unit cell of a periodic structure, and the
    transforms between fractional and Cartesian space it defines.

    A Box is an immutable value: geometric changes (e.g. replication)
    produce a new Box. Length units are Angstroms, angles are radians.

    Attributes:
        a, b, c (float): lattice side lengths
        alpha, beta, gamma (float): lattice angles
        volume (float): volume of the cell in cubic Angstroms
        f_to_c (np.ndarray): (3, 3) matrix mapping fractional to Cartesian
            coordinates, its columns are the lattice vectors
        c_to_f (np.ndarray): (3, 3) inverse of `f_to_c`
        reciprocal_lattice (np.ndarray): (3, 3) matrix whose rows are the
            reciprocal lattice vectors (including the factor of 2 pi)
    """

    __slots__ = (
        "_lengths",
        "_angles",
        "_volume",
        "_f_to_c",
        "_c_to_f",
        "_reciprocal_lattice",
    )

    def __init__(self, f_to_c):
        """
        Create a Box from a fractional to Cartesian matrix, whose
        columns are the lattice vectors A, B and C.

        Args:
            f_to_c (array_like): (3, 3) column major array of lattice vectors

        Raises:
            InvalidGeometryError: if the matrix is not (3, 3) or is singular
        """
        f_to_c = np.asarray(f_to_c, dtype=np.float64)
        if f_to_c.shape != (3, 3):
            raise InvalidGeometryError(
                "f_to_c must be a (3, 3) matrix, got shape {}".format(f_to_c.shape)
            )
        volume = abs(np.linalg.det(f_to_c))
        if not volume > _VOLUME_EPS:
            raise InvalidGeometryError("Singular f_to_c matrix (volume = {})".format(volume))
        lengths = np.linalg.norm(f_to_c, axis=0)
        u_a, u_b, u_c = (f_to_c[:, i] / lengths[i] for i in range(3))
        alpha = np.arccos(np.clip(np.vdot(u_b, u_c), -1, 1))
        beta = np.arccos(np.clip(np.vdot(u_c, u_a), -1, 1))
        gamma = np.arccos(np.clip(np.vdot(u_a, u_b), -1, 1))
        self._set(
            lengths, (alpha, beta, gamma), volume, f_to_c, np.linalg.inv(f_to_c)
        )

    def _set(self, lengths, angles, volume, f_to_c, c_to_f):
        self._lengths = tuple(float(x) for x in lengths)
        self._angles = tuple(float(x) for x in angles)
        self._volume = float(volume)
        self._f_to_c = _readonly(f_to_c)
        self._c_to_f = _readonly(c_to_f)
        self._reciprocal_lattice = _readonly(2 * np.pi * self._c_to_f)

    @classmethod
    def _from_parts(cls, lengths, angles, volume, f_to_c, c_to_f):
        box = cls.__new__(cls)
        box._set(lengths, angles, volume, f_to_c, c_to_f)
        return box

    @property
    def lengths(self):
        "Tuple of lattice side lengths (a, b, c)"
        return self._lengths

    @property
    def angles(self):
        "Tuple of lattice angles (alpha, beta, gamma) in radians"
        return self._angles

    @property
    def a(self) -> float:
        "Length of lattice vector a"
        return self._lengths[0]

    @property
    def b(self) -> float:
        "Length of lattice vector b"
        return self._lengths[1]

    @property
    def c(self) -> float:
        "Length of lattice vector c"
        return self._lengths[2]

    @property
    def alpha(self) -> float:
        "Angle between lattice vectors b and c"
        return self._angles[0]

    @property
    def beta(self) -> float:
        "Angle between lattice vectors a and c"
        return self._angles[1]

    @property
    def gamma(self) -> float:
        "Angle between lattice vectors a and b"
        return self._angles[2]

    @property
    def volume(self) -> float:
        "The volume of the unit cell, in cubic Angstroms"
        return self._volume

    @property
    def f_to_c(self) -> np.ndarray:
        return self._f_to_c

    @property
    def c_to_f(self) -> np.ndarray:
        return self._c_to_f

    @property
    def reciprocal_lattice(self) -> np.ndarray:
        "Rows are the reciprocal lattice vectors, scaled by 2 pi"
        return self._reciprocal_lattice

    @property
    def orthogonal(self) -> bool:
        "returns true if the lattice vectors are orthogonal"
        return close(np.abs(self._angles) - np.pi / 2, zeros(3))

    @property
    def parameters(self) -> np.ndarray:
        "single vector of lattice side lengths and angles in degrees"
        return np.hstack((self._lengths, np.degrees(self._angles)))

    def to_cartesian(self, coords):
        """
        Transform coordinates from fractional space (a, b, c)
        to Cartesian space (x, y, z). The x-direction will be aligned
        along lattice vector A.

        Args:
            coords (array_like or Frac): (N, 3) or (3,) array of fractional
                coordinates, or a `Frac` instance

        Returns:
            np.ndarray or Cart: Cartesian coordinates, a new `Cart` if a
            `Frac` was provided
        """
        from xtalpy.core.coords import Coords, to_cartesian

        if isinstance(coords, Coords):
            return to_cartesian(coords, self)
        return np.dot(coords, self._f_to_c.T)

    def to_fractional(self, coords):
        """
        Transform coordinates from Cartesian space (x, y, z)
        to fractional space (a, b, c).

        Args:
            coords (array_like or Cart): (N, 3) or (3,) array of Cartesian
                coordinates, or a `Cart` instance

        Returns:
            np.ndarray or Frac: fractional coordinates, a new `Frac` if a
            `Cart` was provided
        """
        from xtalpy.core.coords import Coords, to_fractional

        if isinstance(coords, Coords):
            return to_fractional(coords, self)
        return np.dot(coords, self._c_to_f.T)

    def replicate(self, repfactors) -> "Box":
        """
        Construct the Box of a supercell, replicating this box
        in the positive direction along each lattice vector.

        Fractional coordinates relative to the new box still lie in
        [0, 1) for the whole supercell. `box.replicate((1, 1, 1)) == box`.

        Args:
            repfactors (Tuple[int, int, int]): number of replicas along a, b and c

        Returns:
            Box: the supercell box

        Raises:
            InvalidGeometryError: if a factor is not a positive integer
        """
        factors = _check_repfactors(repfactors)
        scale = np.array(factors, dtype=np.float64)
        return Box._from_parts(
            np.array(self._lengths) * scale,
            self._angles,
            self._volume * float(np.prod(scale)),
            self._f_to_c * scale[np.newaxis, :],
            self._c_to_f / scale[:, np.newaxis],
        )

    def isapprox(self, other, rtol=1e-7, atol=1e-10) -> bool:
        "Compare all numeric payloads of two boxes within tolerance"
        return (
            np.allclose(self._lengths, other.lengths, rtol=rtol, atol=atol)
            and np.allclose(self._angles, other.angles, rtol=rtol, atol=atol)
            and np.isclose(self._volume, other.volume, rtol=rtol, atol=atol)
            and np.allclose(self._f_to_c, other.f_to_c, rtol=rtol, atol=atol)
            and np.allclose(self._c_to_f, other.c_to_f, rtol=rtol, atol=atol)
        )

    def __eq__(self, other):
        if not isinstance(other, Box):
            return NotImplemented
        return (
            self._lengths == other._lengths
            and self._angles == other._angles
            and self._volume == other._volume
            and np.array_equal(self._f_to_c, other._f_to_c)
            and np.array_equal(self._c_to_f, other._c_to_f)
        )

    __hash__ = None

    @classmethod
    def from_lengths_and_angles(cls, lengths, angles, unit="radians"):
        """
        Construct a new Box from the provided lengths and angles, with
        lattice vector A along x and B in the xy-plane.

        Args:
            lengths (array_like): Lattice side lengths (a, b, c) in Angstroms.
            angles (array_like): Lattice angles (alpha, beta, gamma) in provided units (default radians)
            unit (str, optional): Unit for angles i.e. 'radians' or 'degrees' (default radians).

        Returns:
            Box: A new box representing the provided lattice.

        Raises:
            InvalidGeometryError: for non-positive lengths, angles outside (0, pi)
                or a degenerate (zero volume) cell
        """
        lengths = np.asarray(lengths, dtype=np.float64)
        angles = np.asarray(angles, dtype=np.float64)
        if lengths.shape != (3,) or angles.shape != (3,):
            raise InvalidGeometryError("Require three lengths and three angles")
        if unit != "radians":
            angles = np.radians(angles)
        elif np.any(np.abs(angles) > np.pi):
            LOG.warning(
                "Large angle in Box.from_lengths_and_angles, "
                "are you sure your angles are not in degrees?"
            )
        if not np.all(lengths > 0):
            raise InvalidGeometryError("Box lengths must be positive: {}".format(lengths))
        if not np.all((angles > 0) & (angles < np.pi)):
            raise InvalidGeometryError(
                "Box angles must lie in (0, pi) radians: {}".format(angles)
            )
        a, b, c = lengths
        ca, cb, cg = np.cos(angles)
        sg = np.sin(angles[2])
        arg = 1 - ca * ca - cb * cb - cg * cg + 2 * ca * cb * cg
        v = a * b * c * np.sqrt(arg) if arg > 0 else 0.0
        if not v > _VOLUME_EPS:
            raise InvalidGeometryError(
                "Lengths {} and angles {} give a degenerate cell".format(lengths, angles)
            )
        f_to_c = np.array((
            (a, b * cg, c * cb),
            (0, b * sg, c * (ca - cb * cg) / sg),
            (0, 0, v / (a * b * sg)),
        ))
        c_to_f = np.array((
            (1.0 / a, -cg / (a * sg), b * c * (ca * cg - cb) / v / sg),
            (0.0, 1 / (b * sg), a * c * (cb * cg - ca) / v / sg),
            (0.0, 0.0, a * b * sg / v),
        ))
        return cls._from_parts(lengths, angles, v, f_to_c, c_to_f)

    @classmethod
    def triclinic(cls, a, b, c, alpha, beta, gamma, unit="radians"):
        "Construct a new Box from (a, b, c, alpha, beta, gamma)"
        return cls.from_lengths_and_angles((a, b, c), (alpha, beta, gamma), unit=unit)

    @classmethod
    def orthorhombic(cls, a, b, c):
        "Construct a new Box with right angles and side lengths (a, b, c)"
        return cls.from_lengths_and_angles((a, b, c), (np.pi / 2,) * 3)

    @classmethod
    def cubic(cls, length):
        "Construct a new cubic Box from the provided side length"
        return cls.orthorhombic(length, length, length)

    @classmethod
    def unit_cube(cls):
        "A cube with 1 Angstrom sides"
        return cls.cubic(1.0)

    def __repr__(self):
        return "<{}: a={:.3f} b={:.3f} c={:.3f} ({:.3f},{:.3f},{:.3f}) V={:.3f}>".format(
            self.__class__.__name__, *self.parameters, self._volume
        )


def unit_cube() -> Box:
    """
    A Box with a = b = c = 1 Angstrom and all angles pi/2.

    Returns:
        Box: the unit cube
    """
    return Box.unit_cube()


def _check_repfactors(repfactors):
    factors = tuple(repfactors)
    if len(factors) != 3 or not all(
        isinstance(x, numbers.Integral) and not isinstance(x, bool) and x > 0
        for x in factors
    ):
        raise InvalidGeometryError(
            "Replication factors must be three positive integers, got {}".format(
                repfactors
            )
        )
    return tuple(int(x) for x in factors)
