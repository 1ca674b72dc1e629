"""Atomic masses, element symbols and chemical formulae of species labels."""

import re
from collections import Counter
from functools import reduce
from math import gcd
import numpy as np

_DIGIT_REGEX = re.compile(r"\d")

# symbol, mass (amu)
_ELEMENT_MASSES = (
    ("H", 1.00794),
    ("He", 4.002602),
    ("Li", 6.941),
    ("Be", 9.012182),
    ("B", 10.811),
    ("C", 12.0107),
    ("N", 14.0067),
    ("O", 15.9994),
    ("F", 18.998403),
    ("Ne", 20.1797),
    ("Na", 22.98977),
    ("Mg", 24.305),
    ("Al", 26.981538),
    ("Si", 28.0855),
    ("P", 30.973761),
    ("S", 32.065),
    ("Cl", 35.453),
    ("Ar", 39.948),
    ("K", 39.0983),
    ("Ca", 40.078),
    ("Sc", 44.95591),
    ("Ti", 47.867),
    ("V", 50.9415),
    ("Cr", 51.9961),
    ("Mn", 54.938049),
    ("Fe", 55.845),
    ("Co", 58.9332),
    ("Ni", 58.6934),
    ("Cu", 63.546),
    ("Zn", 65.409),
    ("Ga", 69.723),
    ("Ge", 72.64),
    ("As", 74.9216),
    ("Se", 78.96),
    ("Br", 79.904),
    ("Kr", 83.798),
    ("Rb", 85.4678),
    ("Sr", 87.62),
    ("Y", 88.90585),
    ("Zr", 91.224),
    ("Nb", 92.90638),
    ("Mo", 95.94),
    ("Tc", 98.0),
    ("Ru", 101.07),
    ("Rh", 102.9055),
    ("Pd", 106.42),
    ("Ag", 107.8682),
    ("Cd", 112.411),
    ("In", 114.818),
    ("Sn", 118.71),
    ("Sb", 121.76),
    ("Te", 127.6),
    ("I", 126.90447),
    ("Xe", 131.293),
    ("Cs", 132.90545),
    ("Ba", 137.327),
    ("La", 138.9055),
    ("Ce", 140.116),
    ("Pr", 140.90765),
    ("Nd", 144.24),
    ("Pm", 145.0),
    ("Sm", 150.36),
    ("Eu", 151.964),
    ("Gd", 157.25),
    ("Tb", 158.92534),
    ("Dy", 162.5),
    ("Ho", 164.93032),
    ("Er", 167.259),
    ("Tm", 168.93421),
    ("Yb", 173.04),
    ("Lu", 174.967),
    ("Hf", 178.49),
    ("Ta", 180.9479),
    ("W", 183.84),
    ("Re", 186.207),
    ("Os", 190.23),
    ("Ir", 192.217),
    ("Pt", 195.078),
    ("Au", 196.96655),
    ("Hg", 200.59),
    ("Tl", 204.3833),
    ("Pb", 207.2),
    ("Bi", 208.98038),
    ("Po", 209.0),
    ("At", 210.0),
    ("Rn", 222.0),
    ("Fr", 223.0),
    ("Ra", 226.0),
    ("Ac", 227.0),
    ("Th", 232.0381),
    ("Pa", 231.03588),
    ("U", 238.02891),
    ("Np", 237.0),
    ("Pu", 244.0),
    ("Am", 243.0),
    ("Cm", 247.0),
    ("Bk", 247.0),
    ("Cf", 251.0),
    ("Es", 252.0),
    ("Fm", 257.0),
    ("Md", 258.0),
    ("No", 259.0),
    ("Lr", 262.0),
)

ATOMIC_MASSES = {s: m for s, m in _ELEMENT_MASSES}
ATOMIC_NUMBERS = {s: i for i, (s, _) in enumerate(_ELEMENT_MASSES, start=1)}


def strip_numbers(label: str) -> str:
    """Remove the first number in an atom label and everything after it.

    Examples:
        >>> strip_numbers("C12")
        'C'
        >>> strip_numbers("Ba12A_3")
        'Ba'
        >>> strip_numbers("Zn")
        'Zn'

    Args:
        label (str): the atom label

    Returns:
        str: the label truncated before its first digit
    """
    m = _DIGIT_REGEX.search(label)
    return label if m is None else label[: m.start()]


def element_symbol(label: str) -> str:
    """Determine the element symbol for a species label e.g. 'C1', 'ZN', 'o'.

    Two letter symbols are preferred over one letter ones, so 'Ca2' is
    calcium rather than carbon.

    Examples:
        >>> element_symbol("C1")
        'C'
        >>> element_symbol("ZN")
        'Zn'
        >>> element_symbol("D")
        'H'

    Args:
        label (str): a species label

    Returns:
        str: the element symbol, an exception is raised if none matches
    """
    letters = re.match(r"[A-Za-z]*", strip_numbers(label).strip()).group(0)
    if letters.capitalize() == "D":
        return "H"
    for length in (2, 1):
        sym = letters[:length].capitalize()
        if len(sym) == length and sym in ATOMIC_MASSES:
            return sym
    raise ValueError("Could not determine element symbol from {}".format(label))


def atomic_mass(label: str) -> float:
    """The atomic mass (amu) of the element a species label refers to.

    >>> atomic_mass("O1")
    15.9994
    """
    return ATOMIC_MASSES[element_symbol(label)]


def molecular_weight(species) -> float:
    """The total mass (amu) of a list of species labels.

    Args:
        species (List[str]): species labels

    Returns:
        float: the sum of their atomic masses
    """
    return float(np.sum([atomic_mass(s) for s in species]))


def chemical_formula(species, reduce_counts=True) -> dict:
    """Count the species in a list, optionally dividing through by the
    greatest common divisor of the counts to give the irreducible formula.

    Examples:
        >>> chemical_formula(["Zn", "Zn", "O", "O", "O", "O"])
        {'Zn': 1, 'O': 2}
        >>> chemical_formula(["C", "O", "O"], reduce_counts=False)
        {'C': 1, 'O': 2}

    Args:
        species (List[str]): species labels
        reduce_counts (bool, optional): toggle division by the gcd of the counts

    Returns:
        dict: a dictionary of species to counts, in order of first appearance
    """
    count = Counter(species)
    if reduce_counts and count:
        divisor = reduce(gcd, count.values())
        count = Counter({k: v // divisor for k, v in count.items()})
    return dict(count)


def formula_string(formula: dict) -> str:
    """Represent a formula dictionary as a string, carbon and hydrogen first,
    then other species in order of atomic number.

    >>> formula_string({"O": 2, "C": 1})
    'CO2'
    """

    def order(s):
        try:
            z = ATOMIC_NUMBERS[element_symbol(s)]
        except ValueError:
            z = len(ATOMIC_NUMBERS) + 1
        return ({6: 0, 1: 1}.get(z, 2), z, s)

    return "".join(
        "{}{}".format(s, formula[s] if formula[s] > 1 else "")
        for s in sorted(formula, key=order)
    )
