"""Runtime values flowing through stage evaluation.

Values are plain Python objects so that parameters and external functions
can exchange them without wrapping:

- numbers are ``float`` (an ``int`` that is not a ``bool`` is coerced at the
  parameter and function boundaries)
- booleans are ``bool``, strings are ``str``
- compiled patterns are ``re.Pattern``
- argument sequences are ``ArgumentList``
- the absent value is ``None``
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum, auto
from typing import Any, Final


class ValueKind(StrEnum):
    """The kind of a runtime value."""

    NUMBER = auto()
    BOOLEAN = auto()
    STRING = auto()
    PATTERN = auto()
    SEQUENCE = auto()
    ABSENT = auto()
    OTHER = auto()  # Opaque object from a function or resolver


@dataclass(frozen=True, slots=True)
class ArgumentList:
    """Ordered arguments built by separator stages for a function call.

    Only ever exists while a tree is being evaluated; it is never a stage.
    """

    items: tuple[Any, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __str__(self) -> str:
        return "[" + " ".join(format_value(item) for item in self.items) + "]"


class _NoBranch:
    """Result of a ternary ``?`` stage whose condition was false."""

    _instance: _NoBranch | None = None

    def __new__(cls) -> _NoBranch:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_BRANCH"

    def __bool__(self) -> bool:
        return False


NO_BRANCH: Final = _NoBranch()


def is_number(value: Any) -> bool:
    return isinstance(value, (float, int)) and not isinstance(value, bool)


def is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_pattern_or_string(value: Any) -> bool:
    return isinstance(value, (str, re.Pattern))


def kind_of(value: Any) -> ValueKind:  # noqa: PLR0911
    """Classify a runtime value."""
    if value is None:
        return ValueKind.ABSENT
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if is_number(value):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, re.Pattern):
        return ValueKind.PATTERN
    if isinstance(value, ArgumentList):
        return ValueKind.SEQUENCE
    return ValueKind.OTHER


def coerce_value(value: Any) -> Any:
    """Normalize a value entering the tree from outside.

    Integers become floats so that numeric operators see a single number
    type. Booleans are integers in Python and are left alone.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    return value


def values_equal(left: Any, right: Any) -> bool:
    """Compare two values by kind and value.

    Values of different kinds are never equal, so ``1.0`` and ``True``
    differ even though Python considers them equal.
    """
    left_kind = kind_of(left)
    if left_kind != kind_of(right):
        return False
    if left_kind == ValueKind.SEQUENCE:
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left.items, right.items, strict=True)
        )
    return bool(left == right)


def format_number(value: float) -> str:
    """Format a number with its shortest digits.

    Decimal exponents from -4 to 5 print positionally; anything else uses
    exponent notation with at least two exponent digits.

    Example:
        >>> format_number(1234567.5), format_number(100000.0), format_number(0.00001)
        ('1.2345675e+06', '100000', '1e-05')

    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    # repr gives the shortest digits that round-trip
    number = Decimal(repr(float(value))).normalize()
    sign, digits, exponent = number.as_tuple()
    decimal_exponent = len(digits) + int(exponent) - 1
    if -4 <= decimal_exponent < 6:  # noqa: PLR2004
        return format(number, "f")
    mantissa = str(digits[0])
    if len(digits) > 1:
        mantissa += "." + "".join(map(str, digits[1:]))
    exponent_sign = "+" if decimal_exponent >= 0 else "-"
    return f"{'-' if sign else ''}{mantissa}e{exponent_sign}{abs(decimal_exponent):02d}"


def format_value(value: Any) -> str:  # noqa: PLR0911
    """Return the default display form of a value."""
    if value is None or value is NO_BRANCH:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return format_number(float(value))
    if isinstance(value, str):
        return value
    if isinstance(value, re.Pattern):
        return str(value.pattern)
    return str(value)
