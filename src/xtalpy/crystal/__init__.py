"""
This module implements funcionality associated with
3D periodic crystals (`Crystal`), including unit cells (`Box`),
symmetry operations in fractional coordinates (`SymmetryOperation`),
periodic distances, and the validation applied when assembling a crystal
from raw records (`AssemblyOptions`).
"""

from .box import Box, unit_cube
from .crystal import Crystal, assign_charges, replicate
from .distance import distance, overlapping_pairs
from .options import AssemblyOptions
from .symmetry import SymmetryInfo, apply_symmetry_operations
from .symmetry_operation import SymmetryOperation

__all__ = [
    "AssemblyOptions",
    "Box",
    "Crystal",
    "SymmetryInfo",
    "SymmetryOperation",
    "apply_symmetry_operations",
    "assign_charges",
    "distance",
    "overlapping_pairs",
    "replicate",
    "unit_cube",
]
