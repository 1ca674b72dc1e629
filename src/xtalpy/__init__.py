from .core import Atoms, Cart, Charges, Frac, net_charge, neutral
from .crystal import (
    AssemblyOptions,
    Box,
    Crystal,
    SymmetryInfo,
    SymmetryOperation,
    assign_charges,
    distance,
    replicate,
)
from .exceptions import XtalError

__all__ = [
    "AssemblyOptions",
    "Atoms",
    "Box",
    "Cart",
    "Charges",
    "Crystal",
    "Frac",
    "SymmetryInfo",
    "SymmetryOperation",
    "XtalError",
    "assign_charges",
    "distance",
    "net_charge",
    "neutral",
    "replicate",
]
