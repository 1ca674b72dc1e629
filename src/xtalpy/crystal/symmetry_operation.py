from fractions import Fraction
import logging
import re
import numpy as np
from xtalpy.exceptions import SymmetryParseError

LOG = logging.getLogger(__name__)

_SYMBOLS = "xyz"
_TOKEN_REGEX = re.compile(r"\s*(?:(\d+\.\d*|\.\d+|\d+)|([xyz])|([-+*/]))")


def encode_symm_str(rotation, translation):
    """
    Encode a rotation matrix and (rational) translation vector
    into string form e.g. 1/2-x,z-1/3,-y-1/6

    >>> encode_symm_str(((-1, 0, 0), (0, 0, 1), (0, 1, 0)), (0, 0.5, 1/3))
    '-x,1/2+z,1/3+y'
    >>> encode_symm_str(((1, -1, 0), (1, 0, 0), (0, 0, 1)), (0, 0, 1/6))
    '+x-y,+x,1/6+z'

    Args:
        rotation (array_like): (3,3) matrix encoding the rotation component
            of the symmetry operation
        translation (array_like): (3) vector of rational numbers encoding the translation component
            of the symmetry operation

    Returns:
        str: the encoded symmetry operation
    """
    res = []
    for i in (0, 1, 2):
        t = Fraction(translation[i]).limit_denominator(12)
        v = ""
        if t != 0:
            v += str(t)
        for j in range(0, 3):
            c = Fraction(rotation[i][j]).limit_denominator(12)
            if c == 0:
                continue
            s = "-" if c < 0 else "+"
            if abs(c) != 1:
                s += "{}*".format(abs(c))
            v += s + _SYMBOLS[j]
        res.append(v if v else "0")
    return ",".join(res)


def _tokenize(expr):
    pos = 0
    tokens = []
    expr = expr.rstrip()
    while pos < len(expr):
        m = _TOKEN_REGEX.match(expr, pos)
        if m is None:
            raise SymmetryParseError(
                "Unexpected character {!r} in symmetry expression {!r}".format(
                    expr[pos:].strip()[:1], expr
                )
            )
        number, symbol, op = m.groups()
        if number is not None:
            tokens.append(("num", Fraction(number)))
        elif symbol is not None:
            tokens.append(("var", _SYMBOLS.index(symbol)))
        else:
            tokens.append(("op", op))
        pos = m.end()
    return tokens


def _parse_term(tokens, pos, expr):
    # term := factor (('*' | '/') factor)*, linear in at most one variable
    coefficient = Fraction(1)
    variable = None
    expect_factor = True
    divide = False
    while pos < len(tokens):
        kind, value = tokens[pos]
        if expect_factor:
            if kind == "num":
                if divide:
                    if value == 0:
                        raise SymmetryParseError("Division by zero in {!r}".format(expr))
                    coefficient /= value
                else:
                    coefficient *= value
            elif kind == "var":
                if variable is not None or divide:
                    raise SymmetryParseError(
                        "Symmetry expression {!r} is not linear in x, y, z".format(expr)
                    )
                variable = value
            else:
                raise SymmetryParseError(
                    "Unexpected {!r} in symmetry expression {!r}".format(value, expr)
                )
            expect_factor = False
        elif kind == "op" and value in "*/":
            divide = value == "/"
            expect_factor = True
        elif kind == "var" or kind == "num":
            # implicit multiplication e.g. '2x'
            divide = False
            expect_factor = True
            continue
        else:
            break
        pos += 1
    if expect_factor:
        raise SymmetryParseError("Incomplete symmetry expression {!r}".format(expr))
    return coefficient, variable, pos


def _parse_component(expr):
    # expr := ['+' | '-'] term (('+' | '-') term)*
    tokens = _tokenize(expr)
    if not tokens:
        raise SymmetryParseError("Empty component in symmetry operation")
    row = [Fraction(0)] * 3
    shift = Fraction(0)
    pos = 0
    while pos < len(tokens):
        sign = 1
        while pos < len(tokens) and tokens[pos] in (("op", "+"), ("op", "-")):
            if tokens[pos][1] == "-":
                sign = -sign
            pos += 1
        coefficient, variable, pos = _parse_term(tokens, pos, expr)
        if variable is None:
            shift += sign * coefficient
        else:
            row[variable] += sign * coefficient
        if pos < len(tokens) and tokens[pos] not in (("op", "+"), ("op", "-")):
            raise SymmetryParseError(
                "Unexpected {!r} in symmetry expression {!r}".format(tokens[pos][1], expr)
            )
    return row, shift


def decode_symm_str(s):
    """
    Decode a symmetry operation represented in the string
    form e.g. '1/2 + x, y, -z -0.25' into a rotation matrix
    and translation vector.

    Each component is a linear expression in x, y and z made of
    `+`, `-`, `*`, `/`, integers, decimals and rationals.

    >>> encode_symm_str(*decode_symm_str("x,y,z"))
    '+x,+y,+z'
    >>> encode_symm_str(*decode_symm_str("1/2 - x,y-0.3333333,z"))
    '1/2-x,2/3+y,+z'

    Args:
        s (str): the encoded symmetry operation string

    Returns:
        Tuple[np.ndarray, np.ndarray]: a (3,3) rotation matrix and a (3) translation vector

    Raises:
        SymmetryParseError: if the string is not three linear expressions in x, y, z
    """
    if not isinstance(s, str):
        raise SymmetryParseError("Symmetry operation must be a string, got {!r}".format(s))
    tokens = s.lower().strip().strip("'\"").split(",")
    if len(tokens) != 3:
        raise SymmetryParseError(
            "Symmetry operation {!r} must have 3 comma separated components".format(s)
        )
    rotation = np.zeros((3, 3), dtype=np.float64)
    translation = np.zeros((3,), dtype=np.float64)
    for i, component in enumerate(tokens):
        row, shift = _parse_component(component)
        rotation[i, :] = [float(x) for x in row]
        translation[i] = float(shift)
    if abs(np.linalg.det(rotation)) < 1e-8:
        raise SymmetryParseError("Symmetry operation {!r} is singular".format(s))
    return rotation, translation % 1


class SymmetryOperation:
    """
    Class to represent a crystallographic symmetry operation,
    composed of a rotation and a translation.

    Attributes:
        rotation (np.ndarray): (3, 3) rotation matrix in fractional coordinates
        translation (np.ndarray): (3) translation vector in fractional coordinates
    """

    rotation: np.ndarray
    translation: np.ndarray

    def __init__(self, rotation, translation):
        """
        Construct a new symmetry operation from a rotation matrix and
        a translation vector

        Arguments:
            rotation (np.ndarray): (3, 3) rotation matrix
            translation (np.ndarray): (3) translation vector

        Returns:
            SymmetryOperation: a new SymmetryOperation
        """
        self.rotation = np.asarray(rotation, dtype=np.float64)
        self.translation = np.asarray(translation, dtype=np.float64) % 1

    @property
    def seitz_matrix(self) -> np.ndarray:
        "The Seitz matrix form of this SymmetryOperation"
        s = np.eye(4, dtype=np.float64)
        s[:3, :3] = self.rotation
        s[:3, 3] = self.translation
        return s

    @property
    def cif_form(self) -> str:
        "Represent this SymmetryOperation in string form e.g. '+x,+y,+z'"
        return encode_symm_str(self.rotation, self.translation)

    def inverted(self):
        """
        A copy of this symmetry operation under inversion

        Returns:
            SymmetryOperation: an inverted copy of this symmetry operation
        """
        return SymmetryOperation(-self.rotation, -self.translation)

    def apply(self, coordinates: np.ndarray) -> np.ndarray:
        """
        Apply this symmetry operation to a set of fractional coordinates.

        Args:
            coordinates (np.ndarray): (N,3) or (N,4) array of fractional coordinates or homogeneous
                fractional coordinates.

        Returns:
            np.ndarray: (N, 3) array of transformed coordinates
        """
        coordinates = np.asarray(coordinates)
        if coordinates.shape[1] == 4:
            return np.dot(coordinates, self.seitz_matrix.T)
        else:
            return np.dot(coordinates, self.rotation.T) + self.translation

    def _key(self):
        return (
            tuple(np.round(self.rotation, 6).ravel()),
            tuple(np.round(self.translation, 6) % 1),
        )

    def __str__(self):
        return self.cif_form

    def __eq__(self, other):
        if not isinstance(other, SymmetryOperation):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return "<{}: {}>".format(self.__class__.__name__, self)

    def __call__(self, coordinates):
        return self.apply(coordinates)

    @classmethod
    def from_string(cls, code: str):
        """
        Alternative constructor from a string encoded
        symmetry operation e.g. '+x,+y,+z' or '-y, x-y, z+1/3'.

        See also the `encode_symm_str`, `decode_symm_str` methods.

        Args:
            code (str): string-encoded symmetry operation

        Returns:
            SymmetryOperation: a new symmetry operation from the provided string code

        Raises:
            SymmetryParseError: if the string cannot be parsed
        """
        rot, trans = decode_symm_str(code)
        return cls(rot, trans)

    def is_identity(self) -> bool:
        "Returns true if this is the identity symmetry operation '+x,+y,+z'"
        return np.allclose(self.rotation, np.eye(3)) and np.allclose(
            np.round(self.translation, 6) % 1, 0
        )

    @classmethod
    def identity(cls):
        "Alternative constructor for the the identity symop i.e. x,y,z"
        return cls(np.eye(3), np.zeros(3))
