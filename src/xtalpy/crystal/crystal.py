import itertools
import logging
import numpy as np
from xtalpy.core.coords import Frac
from xtalpy.core.element import (
    chemical_formula,
    formula_string,
    molecular_weight,
    strip_numbers,
)
from xtalpy.core.matter import Atoms, Charges, neutral
from xtalpy.exceptions import (
    DimensionMismatchError,
    IncompatibleOptionsError,
    InvalidGeometryError,
    NetChargeError,
    OverlapError,
    TagMismatchError,
    UnmappedSpeciesError,
)
from .bonds import as_bond_graph, bonds_equal, n_bonds, remap_bonds
from .box import Box, _check_repfactors
from .distance import distance, duplicate_mask, overlapping_pairs
from .options import AssemblyOptions
from .symmetry import SymmetryInfo, expand_to_p1

LOG = logging.getLogger(__name__)

ZERO_CHARGE_TOL = 1e-10
_MIRROR_TOL = 1e-6
_AMU_TO_KG = 1.66054e-27
_ANGSTROM3_TO_M3 = 1e-30


class Crystal:
    """
    Storage class for a periodic crystal structure, e.g. a metal-organic
    framework.

    Atoms and charges are always stored in fractional coordinates relative
    to `box`. Operations which change the structure (`replicate`,
    `assign_charges`) return a new Crystal and leave this one untouched.

    Attributes:
        name: the name of the structure, e.g. the file it was read from
        box: the unit cell
        atoms: the atoms, in fractional coordinates
        charges: the point charges, in fractional coordinates
        bonds: symmetric sparse adjacency matrix over atom indices
            (empty unless bonds were provided)
        symmetry: the symmetry operations that generate the structure
    """

    box: Box
    atoms: Atoms
    charges: Charges
    symmetry: SymmetryInfo

    def __init__(self, name, box, atoms, charges=None, bonds=None, symmetry=None):
        """
        Construct a new crystal directly from its parts, without any of
        the processing or validation of `Crystal.assemble`.

        Arguments:
            name (str): the name of the crystal
            box (Box): the unit cell
            atoms (Atoms): atoms in fractional coordinates
            charges (Charges, optional): charges in fractional coordinates
                (default none)
            bonds (optional): bond graph, a sparse matrix or list of (i, j) pairs
            symmetry (SymmetryInfo, optional): default P1

        Raises:
            TagMismatchError: if atoms or charges are in Cartesian coordinates
            DimensionMismatchError: if the bond graph does not match the atoms
        """
        if charges is None:
            charges = Charges.empty()
        for kind, particles in (("atoms", atoms), ("charges", charges)):
            if not particles.is_fractional:
                raise TagMismatchError(
                    "Crystal {} must be in fractional coordinates".format(kind)
                )
        self.name = name
        self.box = box
        self.atoms = atoms
        self.charges = charges
        self.bonds = as_bond_graph(bonds, atoms.n)
        self.symmetry = SymmetryInfo.p1() if symmetry is None else symmetry

    @classmethod
    def assemble(
        cls,
        name,
        box,
        atoms,
        charges=None,
        bonds=None,
        symmetry=None,
        options=None,
        **kwargs,
    ) -> "Crystal":
        """
        Assemble a validated crystal from raw particle data.

        In order: expand to P1 (`convert_to_p1`), wrap coordinates
        (`wrap_coords`), remove duplicate particles (`remove_duplicates`),
        drop zero charges or check they mirror the atoms
        (`include_zero_charges`), check for overlapping atoms
        (`check_overlap`) and check charge neutrality (`check_neutrality`).
        The inputs are not modified.

        Arguments:
            name (str): the name of the crystal
            box (Box): the unit cell
            atoms (Atoms): atoms in fractional coordinates
            charges (Charges, optional): charges in fractional coordinates
            bonds (optional): bond graph, only kept if `read_bonds_from_file`
            symmetry (SymmetryInfo, optional): default P1
            options (AssemblyOptions, optional): flags, default `AssemblyOptions()`
            **kwargs: individual flags overriding those in `options`

        Returns:
            Crystal: the assembled crystal

        Raises:
            IncompatibleOptionsError: if asked to keep bonds and expand to P1
            DimensionMismatchError: if included zero charges do not mirror the atoms
            OverlapError: if atoms overlap
            NetChargeError: if the structure is not charge neutral
        """
        opts = (options or AssemblyOptions()).with_overrides(**kwargs)
        symmetry = SymmetryInfo.p1() if symmetry is None else symmetry
        atoms = atoms.copy()
        charges = Charges.empty() if charges is None else charges.copy()
        if opts.read_bonds_from_file:
            bonds = as_bond_graph(bonds, atoms.n)
        else:
            bonds = None
        if opts.include_zero_charges and charges.n == 0 and atoms.n > 0:
            charges = Charges(np.zeros(atoms.n), atoms.coords.copy())

        if opts.convert_to_p1 and not symmetry.is_p1:
            if not symmetry.trivial:
                if opts.read_bonds_from_file:
                    raise IncompatibleOptionsError(
                        "Cannot keep bonds when converting {} to P1, "
                        "atom indices would change".format(name)
                    )
                atoms, charges, symmetry = expand_to_p1(
                    atoms, charges, symmetry, tol=opts.symmetry_tol
                )
            else:
                symmetry = SymmetryInfo(symmetry.operations, symmetry.space_group, True)

        if opts.wrap_coords:
            atoms.wrap()
            charges.wrap()

        if opts.remove_duplicates:
            keep = duplicate_mask(
                atoms.coords.xf, labels=atoms.species, tol=opts.duplicate_tol, box=box
            )
            if not np.all(keep):
                LOG.debug("Removing %d duplicate atoms", np.sum(~keep))
                atoms = atoms[keep]
                if bonds is not None:
                    bonds = remap_bonds(bonds, keep)
            keep = duplicate_mask(charges.coords.xf, tol=opts.duplicate_tol, box=box)
            if not np.all(keep):
                LOG.debug("Removing %d duplicate charges", np.sum(~keep))
                charges = charges[keep]

        if opts.include_zero_charges:
            if charges.n != atoms.n or not charges.coords.isapprox(
                atoms.coords, atol=_MIRROR_TOL
            ):
                raise DimensionMismatchError(
                    "With include_zero_charges there must be one charge at each "
                    "atom: {} charges for {} atoms".format(charges.n, atoms.n)
                )
        else:
            keep = np.abs(charges.q) >= ZERO_CHARGE_TOL
            if not np.all(keep):
                LOG.debug("Dropping %d zero charges", np.sum(~keep))
                charges = charges[keep]

        if opts.check_overlap:
            pairs = overlapping_pairs(atoms, box, opts.overlap_tol)
            if pairs:
                shown = ", ".join(
                    "{}{}-{}{} ({:.3f})".format(atoms.species[i], i, atoms.species[j], j, r)
                    for i, j, r in pairs[:10]
                )
                raise OverlapError(
                    "{} overlapping atom pair(s) in {} closer than {}: {}{}".format(
                        len(pairs),
                        name,
                        opts.overlap_tol,
                        shown,
                        ", ..." if len(pairs) > 10 else "",
                    ),
                    pairs=pairs,
                )

        if opts.check_neutrality:
            q = charges.net_charge
            if abs(q) > opts.net_charge_tol:
                raise NetChargeError(
                    "{} has net charge {} (tolerance {})".format(name, q, opts.net_charge_tol),
                    net_charge=q,
                )

        return cls(name, box, atoms, charges, bonds, symmetry)

    @classmethod
    def from_records(
        cls,
        name,
        cell,
        atom_records,
        charge_records=(),
        symmetry_operations=None,
        space_group="P1",
        bonds=(),
        options=None,
        **kwargs,
    ) -> "Crystal":
        """
        Assemble a crystal from the records produced by a structure
        file reader.

        Arguments:
            name (str): the name of the crystal
            cell (array_like): (a, b, c, alpha, beta, gamma), angles in radians,
                or a (3, 3) fractional to Cartesian matrix
            atom_records (Iterable[Tuple[str, array_like]]): (species, fractional xyz)
            charge_records (Iterable[Tuple[float, array_like]], optional): (q, fractional xyz)
            symmetry_operations (List[str], optional): symmetry operation strings,
                none means the structure is in P1
            space_group (str, optional): space group name, for provenance
            bonds (Iterable[Tuple[int, int]], optional): bonded atom pairs
            options (AssemblyOptions, optional): flags
            **kwargs: individual flags, see `Crystal.assemble`

        Returns:
            Crystal: the assembled crystal
        """
        cell = np.asarray(cell, dtype=np.float64)
        if cell.shape == (3, 3):
            box = Box(cell)
        elif cell.shape == (6,):
            box = Box.triclinic(*cell)
        else:
            raise InvalidGeometryError(
                "cell must be 6 parameters or a (3, 3) matrix, got shape {}".format(cell.shape)
            )
        atoms = _particles_from_records(Atoms, atom_records)
        charges = _particles_from_records(Charges, charge_records)
        if symmetry_operations is None:
            symmetry = SymmetryInfo(space_group=space_group)
        else:
            symmetry = SymmetryInfo(symmetry_operations, space_group, is_p1=False)
        return cls.assemble(
            name, box, atoms, charges, bonds, symmetry, options=options, **kwargs
        )

    def to_cartesian(self, coords) -> np.ndarray:
        "Convert fractional coordinates to Cartesian using this crystal's box"
        return self.box.to_cartesian(coords)

    def to_fractional(self, coords) -> np.ndarray:
        "Convert Cartesian coordinates to fractional using this crystal's box"
        return self.box.to_fractional(coords)

    def wrap(self):
        "Wrap atoms and charges into the unit cell, in place"
        self.atoms.wrap()
        self.charges.wrap()

    def distance(self, i, j, apply_pbc=True) -> float:
        "Distance (Angstroms) between atoms i and j"
        return distance(self.atoms, self.box, i, j, apply_pbc)

    @property
    def net_charge(self) -> float:
        "The sum of the point charges in this crystal"
        return self.charges.net_charge

    def neutral(self, tol=1e-5) -> bool:
        return neutral(self.charges, tol)

    @property
    def molecular_weight(self) -> float:
        "Mass of the atoms in the unit cell, in amu"
        return molecular_weight(self.atoms.species)

    @property
    def crystal_density(self) -> float:
        "Density of the crystal in kg/m^3"
        return self.molecular_weight * _AMU_TO_KG / (self.box.volume * _ANGSTROM3_TO_M3)

    def chemical_formula(self, reduce_counts=True) -> dict:
        """
        The chemical formula of the atoms in this crystal.

        Args:
            reduce_counts (bool, optional): give the irreducible formula (default)

        Returns:
            dict: species to count
        """
        return chemical_formula(self.atoms.species, reduce_counts=reduce_counts)

    @property
    def formula(self) -> str:
        "The irreducible chemical formula as a string e.g. 'C8H4O5Zn2'"
        return formula_string(self.chemical_formula())

    def strip_numbers_from_atom_labels(self):
        """
        Remove numbers (and anything after them) from atom species in place,
        e.g. C12 -> C, Ba12A_3 -> Ba.
        """
        self.atoms.species[:] = [strip_numbers(s) for s in self.atoms.species]

    def replicate(self, repfactors) -> "Crystal":
        "See `replicate`"
        return replicate(self, repfactors)

    def assign_charges(self, species_to_charge, net_charge_tol=1e-5) -> "Crystal":
        "See `assign_charges`"
        return assign_charges(self, species_to_charge, net_charge_tol=net_charge_tol)

    def copy(self) -> "Crystal":
        "A copy sharing no modifiable data with this crystal"
        return Crystal(
            self.name,
            self.box,
            self.atoms.copy(),
            self.charges.copy(),
            self.bonds.copy(),
            SymmetryInfo(self.symmetry.operations, self.symmetry.space_group, self.symmetry.is_p1),
        )

    def __eq__(self, other):
        if not isinstance(other, Crystal):
            return NotImplemented
        return (
            self.name == other.name
            and self.box == other.box
            and self.atoms == other.atoms
            and self.charges == other.charges
            and bonds_equal(self.bonds, other.bonds)
            and self.symmetry == other.symmetry
        )

    __hash__ = None

    def isapprox(self, other, atol=1e-8) -> bool:
        return (
            self.box.isapprox(other.box, atol=atol)
            and self.atoms.isapprox(other.atoms, atol=atol)
            and self.charges.isapprox(other.charges, atol=atol)
        )

    def __repr__(self):
        return "<Crystal {} {} {}>".format(self.name, self.formula, self.symmetry.space_group)


def _particles_from_records(kind, records):
    meta, positions = [], []
    for value, xyz in records:
        meta.append(value)
        positions.append(xyz)
    return kind(meta, Frac(np.reshape(np.asarray(positions, dtype=np.float64), (-1, 3))))


def _replicate_particles(particles, factors):
    offsets = np.array(list(itertools.product(*(range(f) for f in factors))), dtype=np.float64)
    xf = particles.coords.xf
    images = (xf[np.newaxis, :, :] + offsets[:, np.newaxis, :]) / np.array(factors, dtype=np.float64)
    result = particles[np.tile(np.arange(particles.n), len(offsets))]
    result.coords.set(images.reshape(-1, 3))
    return result


def replicate(obj, repfactors):
    """
    Replicate a Box, or the atoms and charges of a Crystal, in the
    positive direction along each lattice vector to build a supercell.

    Images are ordered by offset (i, j, k), then by original particle
    index, and have fractional coordinates ((x+i)/na, (y+j)/nb, (z+k)/nc)
    in the supercell. `replicate(crystal, (1, 1, 1)) == crystal`.

    Bond indices are not translated: replicating a crystal with bonds
    by anything other than (1, 1, 1) drops its bond graph.

    Arguments:
        obj (Box or Crystal): what to replicate
        repfactors (Tuple[int, int, int]): number of replicas along a, b and c

    Returns:
        Box or Crystal: the supercell

    Raises:
        InvalidGeometryError: if a factor is not a positive integer
        IncompatibleOptionsError: if the crystal is not in P1
    """
    if isinstance(obj, Box):
        return obj.replicate(repfactors)
    factors = _check_repfactors(repfactors)
    if not obj.symmetry.is_p1:
        raise IncompatibleOptionsError(
            "Cannot replicate {}: it is not in P1, expand its symmetry first".format(obj.name)
        )
    if factors == (1, 1, 1):
        bonds = obj.bonds.copy()
    else:
        bonds = None
        if n_bonds(obj.bonds) > 0:
            LOG.warning(
                "Dropping %d bonds of %s on replication, bond indices are not remapped",
                n_bonds(obj.bonds),
                obj.name,
            )
    return Crystal(
        obj.name,
        obj.box.replicate(factors),
        _replicate_particles(obj.atoms, factors),
        _replicate_particles(obj.charges, factors),
        bonds,
        SymmetryInfo(obj.symmetry.operations, obj.symmetry.space_group, True),
    )


def assign_charges(crystal, species_to_charge, net_charge_tol=1e-5) -> Crystal:
    """
    Assign a point charge to each atom of a crystal according to its
    species. Any existing charges are replaced (with a warning).

    Examples:
        >>> species_to_charge = {"Ca": 2.0, "C": 1.0, "H": -1.0}  # doctest: +SKIP
        >>> charged = assign_charges(crystal, species_to_charge, 1e-7)  # doctest: +SKIP

    Arguments:
        crystal (Crystal): the crystal, which is not modified
        species_to_charge (dict): map of atomic species to charge
        net_charge_tol (float, optional): tolerated net charge

    Returns:
        Crystal: a new crystal with one charge at each atom

    Raises:
        UnmappedSpeciesError: if an atom's species is not in the map
        NetChargeError: if the assigned charges are not neutral
    """
    for s in crystal.atoms.species:
        if s not in species_to_charge:
            raise UnmappedSpeciesError(s)
    if crystal.charges.n > 0:
        LOG.warning(
            "Replacing %d existing charges of %s", crystal.charges.n, crystal.name
        )
    charges = Charges(
        [species_to_charge[s] for s in crystal.atoms.species],
        crystal.atoms.coords.copy(),
    )
    if not neutral(charges, net_charge_tol):
        raise NetChargeError(
            "Assigned charges of {} sum to {} (tolerance {})".format(
                crystal.name, charges.net_charge, net_charge_tol
            ),
            net_charge=charges.net_charge,
        )
    result = crystal.copy()
    result.charges = charges
    return result
