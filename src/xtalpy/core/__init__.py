"""
This module implements the particles of a periodic structure: coordinates
in fractional (`Frac`) or Cartesian (`Cart`) space, sets of atoms (`Atoms`)
and point charges (`Charges`), and element data used for derived properties.
"""

from .coords import Cart, Coords, Frac, isapprox, translate_by, wrap
from .matter import Atoms, Charges, net_charge, neutral

__all__ = [
    "Atoms",
    "Cart",
    "Charges",
    "Coords",
    "Frac",
    "isapprox",
    "net_charge",
    "neutral",
    "translate_by",
    "wrap",
]
