"""Exceptions raised by xtalpy.

Every error derives from `XtalError`, and additionally from the builtin
exception closest in meaning, so `except ValueError` style handlers
keep working.
"""


class XtalError(Exception):
    pass


class InvalidGeometryError(XtalError, ValueError):
    """A degenerate or singular unit cell, or bad replication factors."""

    pass


class DimensionMismatchError(XtalError, ValueError):
    """Lengths of species/charges, coordinates or bonds disagree."""

    pass


class TagMismatchError(XtalError, TypeError):
    """Fractional and Cartesian coordinates were mixed."""

    pass


class MissingBoxError(XtalError, ValueError):
    """Converting between fractional and Cartesian space requires a Box."""

    pass


class SymmetryParseError(XtalError, ValueError):
    pass


class IncompatibleOptionsError(XtalError, ValueError):
    pass


class OverlapError(XtalError, ValueError):
    """
    Two or more atoms are closer than the overlap tolerance.

    Attributes:
        pairs (List[Tuple[int, int, float]]): offending (i, j, distance) triples
    """

    def __init__(self, message, pairs=()):
        super().__init__(message)
        self.pairs = list(pairs)


class NetChargeError(XtalError, ValueError):
    """
    The charges do not sum to zero within tolerance.

    Attributes:
        net_charge (float): the offending net charge
    """

    def __init__(self, message, net_charge=0.0):
        super().__init__(message)
        self.net_charge = net_charge


class UnmappedSpeciesError(XtalError, KeyError):
    def __init__(self, species):
        super().__init__(species)
        self.species = species

    def __str__(self):
        return "no charge assigned to species {!r}".format(self.species)
