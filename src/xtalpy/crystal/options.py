import dataclasses
from dataclasses import dataclass


@dataclass(frozen=True)
class AssemblyOptions:
    """
    Flags controlling how a Crystal is assembled and validated
    from raw particle data, see `Crystal.assemble`.

    Attributes:
        check_neutrality: fail if the net charge exceeds `net_charge_tol`
        net_charge_tol: tolerated absolute net charge
        check_overlap: fail if two atoms are closer than `overlap_tol`
        overlap_tol: overlap distance in Angstroms
        convert_to_p1: expand the particles with the symmetry operations
        read_bonds_from_file: keep the supplied bond graph
        wrap_coords: wrap fractional coordinates into [0, 1)
        include_zero_charges: keep zero charges, one per atom
        remove_duplicates: drop atoms/charges that coincide with an earlier one
        duplicate_tol: distance in Angstroms below which particles coincide
        symmetry_tol: fractional distance below which symmetry images coincide
    """

    check_neutrality: bool = True
    net_charge_tol: float = 1e-4
    check_overlap: bool = True
    overlap_tol: float = 0.1
    convert_to_p1: bool = True
    read_bonds_from_file: bool = False
    wrap_coords: bool = True
    include_zero_charges: bool = False
    remove_duplicates: bool = False
    duplicate_tol: float = 0.1
    symmetry_tol: float = 1e-3

    def __post_init__(self):
        for name in ("net_charge_tol", "overlap_tol", "duplicate_tol", "symmetry_tol"):
            if getattr(self, name) < 0:
                raise ValueError("{} must be non-negative, got {}".format(name, getattr(self, name)))

    def with_overrides(self, **kwargs) -> "AssemblyOptions":
        """
        A copy of these options with some flags changed.

        Raises:
            TypeError: for an unknown flag
        """
        names = {f.name for f in dataclasses.fields(self)}
        unknown = set(kwargs) - names
        if unknown:
            raise TypeError("Unknown assembly option(s): {}".format(", ".join(sorted(unknown))))
        return dataclasses.replace(self, **kwargs)
