"""
Collections of point particles: `Atoms` (species + coordinates)
and `Charges` (point charge magnitudes + coordinates).

Both are parametrised by the kind of their coordinates, `Frac` or `Cart`,
and keep their metadata and coordinates the same length.
"""
import logging
import numpy as np
from xtalpy.exceptions import DimensionMismatchError, TagMismatchError
from .coords import Coords, Frac, Cart, to_cartesian, to_fractional, translate_by

LOG = logging.getLogger(__name__)


class _ParticleSet:
    "Shared behaviour of Atoms and Charges, which differ only in their metadata"

    _metadata_name = None

    def __init__(self, metadata, coords: Coords):
        if not isinstance(coords, Coords):
            raise TypeError(
                "coords must be Frac or Cart, got {}".format(coords.__class__.__name__)
            )
        if len(metadata) != len(coords):
            raise DimensionMismatchError(
                "{} has {} entries but there are {} coordinates".format(
                    self._metadata_name, len(metadata), len(coords)
                )
            )
        self.coords = coords

    @property
    def n(self) -> int:
        "number of particles"
        return len(self.coords)

    @property
    def coord_type(self):
        "the kind of coordinates stored, `Frac` or `Cart`"
        return type(self.coords)

    @property
    def is_fractional(self) -> bool:
        return isinstance(self.coords, Frac)

    def _metadata(self):
        return getattr(self, self._metadata_name)

    def _take(self, sel):
        return np.asarray(self._metadata())[sel]

    def _concat(self, other):
        return np.concatenate((self._metadata(), other._metadata()))

    def _with(self, metadata, coords):
        return type(self)(metadata, coords)

    def __len__(self):
        return self.n

    def __getitem__(self, idx):
        sel = self.coords._selection(idx)
        return self._with(self._take(sel), self.coords[sel])

    def __add__(self, other):
        if not isinstance(other, type(self)):
            return NotImplemented
        if other.coord_type is not self.coord_type:
            raise TagMismatchError(
                "cannot combine {}[{}] with {}[{}]".format(
                    type(self).__name__,
                    self.coord_type.__name__,
                    type(other).__name__,
                    other.coord_type.__name__,
                )
            )
        return self._with(self._concat(other), self.coords + other.coords)

    def copy(self):
        return self._with(self._take(slice(None)), self.coords.copy())

    def to_cartesian(self, box):
        "A copy of this set with Cartesian coordinates"
        return self._with(self._take(slice(None)), to_cartesian(self.coords, box))

    def to_fractional(self, box):
        "A copy of this set with fractional coordinates"
        return self._with(self._take(slice(None)), to_fractional(self.coords, box))

    def translate_by(self, dx, box=None):
        "Translate the coordinates in place, see `xtalpy.core.coords.translate_by`"
        translate_by(self.coords, dx, box=box)

    def wrap(self):
        "Wrap fractional coordinates into [0, 1) in place"
        if not self.is_fractional:
            raise TagMismatchError(
                "only fractional coordinates can be wrapped, got Cart"
            )
        self.coords.wrap()

    def __repr__(self):
        return "<{}[{}]: n={}>".format(
            type(self).__name__, self.coord_type.__name__, self.n
        )


class Atoms(_ParticleSet):
    """
    A set of atoms: their atomic species and coordinates.

    Attributes:
        species (List[str]): N atomic species e.g. 'C', 'Zn'
        coords (Coords): N coordinates (Frac or Cart)

    Examples:
        >>> atoms = Atoms(["O", "H", "H"], Cart([[0, 0, 0], [0.757, 0.586, 0], [-0.757, 0.586, 0]]))
        >>> atoms.n
        3
        >>> (atoms[0] + atoms[1:3]).isapprox(atoms)
        True
    """

    _metadata_name = "species"

    def __init__(self, species, coords: Coords):
        species = [str(s) for s in species]
        super().__init__(species, coords)
        self.species = species

    def _take(self, sel):
        if isinstance(sel, slice):
            return self.species[sel]
        return [self.species[i] for i in np.arange(self.n)[sel]]

    def _concat(self, other):
        return self.species + other.species

    def isapprox(self, other, atol=1e-8) -> bool:
        return (
            isinstance(other, Atoms)
            and self.species == other.species
            and self.coords.isapprox(other.coords, atol=atol)
        )

    def __eq__(self, other):
        if not isinstance(other, Atoms):
            return NotImplemented
        return self.species == other.species and self.coords == other.coords

    __hash__ = None


class Charges(_ParticleSet):
    """
    A set of point charges: their magnitudes (in units of electron charge)
    and coordinates.

    Attributes:
        q (np.ndarray): N charge magnitudes
        coords (Coords): N coordinates (Frac or Cart)
    """

    _metadata_name = "q"

    def __init__(self, q, coords: Coords):
        q = np.array(q, dtype=np.float64).reshape(-1)
        super().__init__(q, coords)
        self.q = q

    @classmethod
    def empty(cls, coord_type=Frac):
        "A set of zero charges"
        return cls([], coord_type(np.empty((0, 3))))

    @property
    def net_charge(self) -> float:
        return float(np.sum(self.q)) if self.n > 0 else 0.0

    def isapprox(self, other, atol=1e-8) -> bool:
        return (
            isinstance(other, Charges)
            and self.q.shape == other.q.shape
            and np.allclose(self.q, other.q, rtol=0.0, atol=atol)
            and self.coords.isapprox(other.coords, atol=atol)
        )

    def __eq__(self, other):
        if not isinstance(other, Charges):
            return NotImplemented
        return np.array_equal(self.q, other.q) and self.coords == other.coords

    __hash__ = None


def net_charge(obj) -> float:
    """
    The sum of the point charges in a `Charges` set, or in the charges
    of a crystal. If there are no charges, the net charge is zero.

    Args:
        obj (Charges or Crystal): the charges to sum

    Returns:
        float: the net charge
    """
    charges = getattr(obj, "charges", obj)
    if charges is None:
        return 0.0
    return charges.net_charge


def neutral(obj, tol=1e-5) -> bool:
    """
    Determine if a set of charges (or the charges in a crystal) sum to
    an absolute value less than `tol`.

    >>> neutral(Charges([-1.0, 0.5, 0.5], Frac(np.zeros((3, 3)))))
    True

    Args:
        obj (Charges or Crystal): the charges in question
        tol (float, optional): tolerance on the absolute net charge

    Returns:
        bool: true if the charges are neutral within tolerance
    """
    return abs(net_charge(obj)) < tol
