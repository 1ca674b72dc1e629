import logging
import numpy as np
from xtalpy.core.coords import Frac
from xtalpy.core.matter import Atoms
from xtalpy.exceptions import TagMismatchError
from .distance import duplicate_mask
from .symmetry_operation import SymmetryOperation

LOG = logging.getLogger(__name__)

SYMMETRY_TOL = 1e-3


class SymmetryInfo:
    """
    The symmetry of a crystal: the symmetry operations that generate
    it from its particles, and whether it is already in P1.

    Attributes:
        operations (Tuple[str]): symmetry operation strings e.g. ('x,y,z', '-x,-y,-z')
        space_group (str): space group name, for provenance
        is_p1 (bool): true if the particles are already fully expanded
    """

    def __init__(self, operations=("x,y,z",), space_group="P1", is_p1=True):
        self.operations = tuple(str(x) for x in operations)
        self.space_group = space_group
        self.is_p1 = bool(is_p1)

    @classmethod
    def p1(cls):
        return cls()

    @property
    def symmetry_operations(self):
        "The parsed SymmetryOperation objects"
        return [SymmetryOperation.from_string(s) for s in self.operations]

    @property
    def trivial(self) -> bool:
        "true if there is nothing to expand"
        return self.is_p1 or all(s.is_identity() for s in self.symmetry_operations)

    def __eq__(self, other):
        if not isinstance(other, SymmetryInfo):
            return NotImplemented
        return (
            self.operations == other.operations
            and self.space_group == other.space_group
            and self.is_p1 == other.is_p1
        )

    __hash__ = None

    def __repr__(self):
        return "<{}: {} ({} symops{})>".format(
            self.__class__.__name__,
            self.space_group,
            len(self.operations),
            ", P1" if self.is_p1 else "",
        )


def _as_symops(operations):
    symops = [
        x if isinstance(x, SymmetryOperation) else SymmetryOperation.from_string(x)
        for x in operations
    ]
    identity = SymmetryOperation.identity()
    if identity not in symops:
        LOG.debug("Prepending identity symop to symmetry operations")
        symops.insert(0, identity)
    return symops


def apply_symmetry_operations(particles, operations, tol=SYMMETRY_TOL):
    """
    Generate all particles related by the given symmetry operations,
    removing duplicates.

    Images are generated with the symmetry operations in the outer loop
    and the particles in the inner loop, wrapped into [0, 1), then two
    images are the same particle if they have the same species (atoms
    only) and lie within `tol` of each other in (periodic) fractional
    space. The first occurrence is kept, so the output is deterministic.

    Args:
        particles (Atoms or Charges): particles with fractional coordinates
        operations (List[str or SymmetryOperation]): the symmetry operations.
            The identity is added if not present.
        tol (float, optional): fractional distance below which images coincide

    Returns:
        Atoms or Charges: a new particle set in P1

    Raises:
        SymmetryParseError: if an operation string is malformed
        TagMismatchError: if the particles have Cartesian coordinates
    """
    if not particles.is_fractional:
        raise TagMismatchError("symmetry operations require fractional coordinates")
    symops = _as_symops(operations)
    pos = particles.coords.xf
    images = np.vstack([symop(pos) for symop in symops]) if len(pos) else np.empty((0, 3))
    images = Frac(images)
    images.wrap()
    meta_idx = np.tile(np.arange(particles.n), len(symops))
    candidates = particles[meta_idx]
    candidates.coords.set(images.xf)
    labels = candidates.species if isinstance(candidates, Atoms) else None
    keep = duplicate_mask(candidates.coords.xf, labels=labels, tol=tol)
    LOG.debug(
        "%d symops applied to %d particles: %d images, %d unique",
        len(symops),
        particles.n,
        len(keep),
        np.sum(keep),
    )
    return candidates[keep]


def expand_to_p1(atoms, charges, symmetry: SymmetryInfo, tol=SYMMETRY_TOL):
    """
    Expand atoms and charges to P1 using the symmetry operations in
    `symmetry`.

    Args:
        atoms (Atoms): atoms in fractional coordinates
        charges (Charges): charges in fractional coordinates
        symmetry (SymmetryInfo): the symmetry to apply
        tol (float, optional): fractional distance below which images coincide

    Returns:
        Tuple[Atoms, Charges, SymmetryInfo]: the expanded particles, and the
        symmetry marked as P1 with the operations kept for provenance.
    """
    operations = symmetry.symmetry_operations
    atoms = apply_symmetry_operations(atoms, operations, tol=tol)
    charges = apply_symmetry_operations(charges, operations, tol=tol)
    LOG.debug("Expanded %s to P1: %d atoms, %d charges", symmetry.space_group, atoms.n, charges.n)
    return atoms, charges, SymmetryInfo(symmetry.operations, symmetry.space_group, is_p1=True)
