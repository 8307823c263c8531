"""Operator symbols of the compiled expression tree."""

from enum import StrEnum, auto
from typing import Self


class SymbolEnum(StrEnum):
    """Base class for string enums carrying a display text and a docstring.

    Implementation based on this article: https://guicommits.com/add-docstrings-python-enum-members/
    """

    display: str

    def __new__(cls, value: str, display: str = "", doc: str = "") -> Self:
        """Create a new enum member with a display text and a docstring."""
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.display = display or value
        obj.__doc__ = doc
        return obj


class OperatorSymbol(SymbolEnum):
    """Identifies the operation a stage performs."""

    LITERAL = "literal", "LITERAL", "Constant captured at construction"
    PARAMETER = "parameter", "VALUE", "Value looked up by name from the parameters"

    EQ = "eq", "==", "Equality by value"
    NEQ = "neq", "!=", "Inequality by value"
    GT = "gt", ">", "Numeric greater than"
    LT = "lt", "<", "Numeric less than"
    GTE = "gte", ">=", "Numeric greater than or equal"
    LTE = "lte", "<=", "Numeric less than or equal"
    REQ = "req", "=~", "Regex match"
    NREQ = "nreq", "!~", "Regex non-match"

    AND = "and", "&&", "Logical and"
    OR = "or", "||", "Logical or"

    PLUS = "plus", "+", "Addition or string concatenation"
    MINUS = "minus", "-", "Subtraction"
    MULTIPLY = "multiply", "*", "Multiplication"
    DIVIDE = "divide", "/", "Division"
    MODULUS = "modulus", "%", "Floating-point remainder"
    EXPONENT = "exponent", "**", "Power"

    BITWISE_AND = "bitwise_and", "&", "Signed 64-bit and"
    BITWISE_OR = "bitwise_or", "|", "Signed 64-bit or"
    BITWISE_XOR = "bitwise_xor", "^", "Signed 64-bit exclusive or"
    BITWISE_LSHIFT = "bitwise_lshift", "<<", "Unsigned 64-bit left shift"
    BITWISE_RSHIFT = "bitwise_rshift", ">>", "Unsigned 64-bit right shift"

    NEGATE = "negate", "-", "Numeric negation"
    INVERT = "invert", "!", "Logical not"
    BITWISE_NOT = "bitwise_not", "~", "Signed 64-bit complement"

    TERNARY_TRUE = "ternary_true", "?", "Then-branch of a ternary"
    TERNARY_FALSE = "ternary_false", ":", "Else-branch of a ternary"

    FUNCTIONAL = "functional", "FUNCTION", "Call of an external function"
    SEPARATE = "separate", ",", "Argument separator"


class Arity(StrEnum):
    """Which children a stage of a given symbol uses."""

    LEAF = auto()  # no children
    PREFIX = auto()  # right child only
    FUNCTION = auto()  # optional right child
    BINARY = auto()  # both children


def arity_of(symbol: OperatorSymbol) -> Arity:  # noqa: PLR0911
    """Return the arity of a symbol."""
    match symbol:
        case OperatorSymbol.LITERAL | OperatorSymbol.PARAMETER:
            return Arity.LEAF
        case OperatorSymbol.NEGATE | OperatorSymbol.INVERT | OperatorSymbol.BITWISE_NOT:
            return Arity.PREFIX
        case OperatorSymbol.FUNCTIONAL:
            return Arity.FUNCTION
        case (
            OperatorSymbol.EQ
            | OperatorSymbol.NEQ
            | OperatorSymbol.GT
            | OperatorSymbol.LT
            | OperatorSymbol.GTE
            | OperatorSymbol.LTE
            | OperatorSymbol.REQ
            | OperatorSymbol.NREQ
            | OperatorSymbol.AND
            | OperatorSymbol.OR
            | OperatorSymbol.PLUS
            | OperatorSymbol.MINUS
            | OperatorSymbol.MULTIPLY
            | OperatorSymbol.DIVIDE
            | OperatorSymbol.MODULUS
            | OperatorSymbol.EXPONENT
            | OperatorSymbol.BITWISE_AND
            | OperatorSymbol.BITWISE_OR
            | OperatorSymbol.BITWISE_XOR
            | OperatorSymbol.BITWISE_LSHIFT
            | OperatorSymbol.BITWISE_RSHIFT
            | OperatorSymbol.TERNARY_TRUE
            | OperatorSymbol.TERNARY_FALSE
            | OperatorSymbol.SEPARATE
        ):
            return Arity.BINARY
