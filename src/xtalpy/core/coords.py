"""
Coordinates of point particles, stored either in fractional space
(relative to some `Box`) or in Cartesian space.

`Coords` is a closed variant: the only concrete kinds are `Frac` and
`Cart`. Both own an (N, 3) particle-major array whose shape and kind are
fixed at construction, while its values may be modified in place.
"""
import logging
import numbers
import numpy as np
from xtalpy.exceptions import DimensionMismatchError, MissingBoxError, TagMismatchError

LOG = logging.getLogger(__name__)


def _as_points(values) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    if arr.ndim == 1 and arr.shape[0] == 3:
        arr = arr.reshape(1, 3)
    elif arr.ndim == 1 and arr.shape[0] == 0:
        arr = arr.reshape(0, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise DimensionMismatchError(
            "coordinates must have shape (N, 3) or (3,), got {}".format(arr.shape)
        )
    return arr


class Coords:
    """
    Base class for a fixed size collection of 3D points.

    Not instantiated directly, use `Frac` or `Cart`.
    """

    __slots__ = ("_values",)

    def __init__(self, values):
        if type(self) is Coords:
            raise TypeError("Coords is abstract, construct a Frac or Cart instead")
        object.__setattr__(self, "_values", _as_points(values))

    def __setattr__(self, name, value):
        raise AttributeError(
            "{} is immutable, modify its values in place instead".format(
                self.__class__.__name__
            )
        )

    @property
    def values(self) -> np.ndarray:
        "(N, 3) array of coordinates (modifiable in place)"
        return self._values

    def set(self, values):
        """
        Overwrite every coordinate, keeping the number of points.

        Args:
            values (array_like): (N, 3) array, or a (3,) array which is
                broadcast to every point.
        """
        values = np.asarray(values, dtype=np.float64)
        if values.shape not in (self._values.shape, (3,)):
            raise DimensionMismatchError(
                "cannot set {} points from shape {}".format(len(self), values.shape)
            )
        self._values[...] = values

    def copy(self):
        return type(self)(self._values)

    def __len__(self):
        return self._values.shape[0]

    def _selection(self, idx):
        if isinstance(idx, numbers.Integral):
            if not -len(self) <= idx < len(self):
                raise IndexError(
                    "index {} out of range for {} points".format(idx, len(self))
                )
            idx = [idx]
        elif not isinstance(idx, slice):
            idx = np.asarray(idx)
            if idx.dtype == bool and idx.shape != (len(self),):
                raise DimensionMismatchError(
                    "boolean mask of shape {} for {} points".format(idx.shape, len(self))
                )
            if idx.dtype != bool:
                idx = idx.astype(np.intp)
        return idx

    def __getitem__(self, idx):
        return type(self)(self._values[self._selection(idx)])

    def __add__(self, other):
        if not isinstance(other, Coords):
            return NotImplemented
        if type(other) is not type(self):
            raise TagMismatchError(
                "cannot combine {} with {}".format(
                    self.__class__.__name__, other.__class__.__name__
                )
            )
        return type(self)(np.vstack((self._values, other._values)))

    def __eq__(self, other):
        if not isinstance(other, Coords):
            return NotImplemented
        return type(self) is type(other) and np.array_equal(self._values, other._values)

    __hash__ = None

    def isapprox(self, other, atol=1e-8) -> bool:
        "True if both are the same kind with the same points within tolerance"
        return (
            type(self) is type(other)
            and self._values.shape == other._values.shape
            and np.allclose(self._values, other._values, rtol=0.0, atol=atol)
        )

    def translate_by(self, dx, box=None):
        "Translate in place, see `translate_by`"
        translate_by(self, dx, box=box)

    def __repr__(self):
        return "{}({})".format(self.__class__.__name__, np.array2string(self._values))


class Frac(Coords):
    """
    Fractional coordinates, implicitly associated with a Box.

    Generally these lie in [0, 1) once wrapped, but this is not enforced.

    Examples:
        >>> f = Frac([1.2, -0.3, 0.9])
        >>> f.wrap()
        >>> f.xf.round(6).tolist()
        [[0.2, 0.7, 0.9]]
    """

    __slots__ = ()

    @property
    def xf(self) -> np.ndarray:
        "(N, 3) array of fractional coordinates"
        return self._values

    def wrap(self):
        """
        Wrap these coordinates into the unit cell i.e. [0, 1) in place.
        Wrapping already wrapped coordinates leaves them unchanged.
        """
        xf = self._values
        xf -= np.floor(xf)
        # x - floor(x) rounds up to 1.0 for tiny negative x
        xf[xf >= 1.0] = 0.0


class Cart(Coords):
    "Cartesian coordinates, in Angstroms"

    __slots__ = ()

    @property
    def x(self) -> np.ndarray:
        "(N, 3) array of Cartesian coordinates"
        return self._values


def to_cartesian(coords: Coords, box) -> Cart:
    """
    Convert coordinates to Cartesian space using the given box.

    Args:
        coords (Coords): coordinates to convert, a copy is returned if
            these are already Cartesian
        box (Box): the unit cell the fractional coordinates refer to

    Returns:
        Cart: new Cartesian coordinates
    """
    if isinstance(coords, Cart):
        return coords.copy()
    return Cart(np.dot(coords.values, box.f_to_c.T))


def to_fractional(coords: Coords, box) -> Frac:
    """
    Convert coordinates to fractional space using the given box.

    Args:
        coords (Coords): coordinates to convert, a copy is returned if
            these are already fractional
        box (Box): the unit cell defining the fractional space

    Returns:
        Frac: new fractional coordinates
    """
    if isinstance(coords, Frac):
        return coords.copy()
    return Frac(np.dot(coords.values, box.c_to_f.T))


def translate_by(coords: Coords, dx: Coords, box=None):
    """
    Translate coordinates in place by adding the vector(s) dx.

    Works for any combination of `Frac` and `Cart`, but a box is required
    when mixing the two. Periodic boundary conditions are not applied
    afterwards, wrap explicitly if desired.

    Args:
        coords (Coords): the coordinates to modify
        dx (Coords): a single displacement applied to every point, or
            one displacement per point
        box (Box, optional): required if `dx` and `coords` are of different kinds

    Raises:
        MissingBoxError: if mixing kinds without a box
    """
    if type(dx) is not type(coords):
        if box is None:
            raise MissingBoxError(
                "translating {} by {} requires a Box".format(
                    coords.__class__.__name__, dx.__class__.__name__
                )
            )
        dx = to_fractional(dx, box) if isinstance(coords, Frac) else to_cartesian(dx, box)
    if len(dx) not in (1, len(coords)):
        raise DimensionMismatchError(
            "cannot translate {} points by {} displacements".format(len(coords), len(dx))
        )
    coords.values[...] += dx.values


def wrap(obj):
    """
    Wrap fractional coordinates into [0, 1) in place.

    Args:
        obj: a `Frac`, or anything holding fractional coordinates
            e.g. `Atoms`, `Charges` or a `Crystal`

    Raises:
        TagMismatchError: if given Cartesian coordinates
    """
    if hasattr(obj, "wrap") and not isinstance(obj, Coords):
        obj.wrap()
        return
    if not isinstance(obj, Frac):
        raise TagMismatchError(
            "only fractional coordinates can be wrapped, got {}".format(
                obj.__class__.__name__
            )
        )
    obj.wrap()


def isapprox(a, b, atol=1e-8) -> bool:
    "Approximate equality of coordinates, particle sets or boxes"
    return a.isapprox(b, atol=atol)
