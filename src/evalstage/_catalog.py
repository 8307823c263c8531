"""Operator catalog: what each symbol computes and which operands it accepts.

Every operator has the signature ``(left, right, parameters) -> value``.
Operators run only after the stage's type check passed, so their bodies
can rely on the operand kinds the check guarantees.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from enum import StrEnum, auto
from typing import TYPE_CHECKING, Any, Final, TypeAlias

from ._errors import (
    TYPEERROR_COMPARATOR,
    TYPEERROR_LOGICAL,
    TYPEERROR_MODIFIER,
    TYPEERROR_PREFIX,
    TYPEERROR_TERNARY,
    EvaluationError,
    FunctionCallError,
    ParameterError,
    PatternCompileError,
)
from ._symbols import OperatorSymbol
from ._values import (
    NO_BRANCH,
    ArgumentList,
    coerce_value,
    format_value,
    is_bool,
    is_number,
    is_pattern_or_string,
    is_string,
    values_equal,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._parameters import Parameters

logger = logging.getLogger(__name__)

StageOperator: TypeAlias = "Callable[[Any, Any, Parameters], Any]"
StageTypeCheck: TypeAlias = "Callable[[Any], bool]"
StageCombinedTypeCheck: TypeAlias = "Callable[[Any, Any], Side | None]"

_UINT64_MODULUS: Final = 1 << 64
_INT64_MIN: Final = -(1 << 63)


class Side(StrEnum):
    """The operand a combined type check rejected."""

    LEFT = auto()
    RIGHT = auto()


@dataclass(frozen=True, slots=True)
class OperatorSpec:
    """Evaluation behavior shared by every stage of one symbol.

    Attributes:
        operator: Function computing the stage value.
        left_type_check: Predicate for the left operand, None accepts anything.
        right_type_check: Predicate for the right operand, None accepts anything.
        type_check: Combined predicate; when set it replaces the per-side checks.
        type_error_format: Template for type errors of this symbol.

    """

    operator: StageOperator
    left_type_check: StageTypeCheck | None = None
    right_type_check: StageTypeCheck | None = None
    type_check: StageCombinedTypeCheck | None = None
    type_error_format: str = ""


# =============================================================================
# Numeric helpers
# =============================================================================


def _to_int64(value: float) -> int:
    """Truncate toward zero and wrap into the signed 64-bit range."""
    if not math.isfinite(value):
        return 0
    return ((int(value) - _INT64_MIN) % _UINT64_MODULUS) + _INT64_MIN


def _to_uint64(value: float) -> int:
    """Truncate toward zero and wrap into the unsigned 64-bit range."""
    if not math.isfinite(value):
        return 0
    return int(value) % _UINT64_MODULUS


def _divide(left: float, right: float) -> float:
    try:
        return left / right
    except ZeroDivisionError:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)


def _is_odd_integer(value: float) -> bool:
    return value.is_integer() and int(value) % 2 == 1


def _power(left: float, right: float) -> float:
    try:
        return math.pow(left, right)
    except OverflowError:
        if left < 0 and _is_odd_integer(right):
            return -math.inf
        return math.inf
    except ValueError:
        # pow(±0, negative) is a pole signed like the base for odd exponents
        if left == 0:
            return math.copysign(math.inf, left) if _is_odd_integer(right) else math.inf
        return math.nan


def _modulus(left: float, right: float) -> float:
    try:
        return math.fmod(left, right)
    except ValueError:
        return math.nan


# =============================================================================
# Operators
# =============================================================================


def add_stage(left: Any, right: Any, parameters: Parameters) -> Any:
    # String concatenation if either side is a string
    if is_string(left) or is_string(right):
        return format_value(left) + format_value(right)
    return float(left) + float(right)


def subtract_stage(left: Any, right: Any, parameters: Parameters) -> float:
    return float(left) - float(right)


def multiply_stage(left: Any, right: Any, parameters: Parameters) -> float:
    return float(left) * float(right)


def divide_stage(left: Any, right: Any, parameters: Parameters) -> float:
    return _divide(float(left), float(right))


def exponent_stage(left: Any, right: Any, parameters: Parameters) -> float:
    return _power(float(left), float(right))


def modulus_stage(left: Any, right: Any, parameters: Parameters) -> float:
    return _modulus(float(left), float(right))


def gte_stage(left: Any, right: Any, parameters: Parameters) -> bool:
    return bool(left >= right)


def gt_stage(left: Any, right: Any, parameters: Parameters) -> bool:
    return bool(left > right)


def lte_stage(left: Any, right: Any, parameters: Parameters) -> bool:
    return bool(left <= right)


def lt_stage(left: Any, right: Any, parameters: Parameters) -> bool:
    return bool(left < right)


def equal_stage(left: Any, right: Any, parameters: Parameters) -> bool:
    return values_equal(left, right)


def not_equal_stage(left: Any, right: Any, parameters: Parameters) -> bool:
    return not values_equal(left, right)


def and_stage(left: Any, right: Any, parameters: Parameters) -> bool:
    return left and right


def or_stage(left: Any, right: Any, parameters: Parameters) -> bool:
    return left or right


def negate_stage(left: Any, right: Any, parameters: Parameters) -> float:
    return -float(right)


def invert_stage(left: Any, right: Any, parameters: Parameters) -> bool:
    return not right


def bitwise_not_stage(left: Any, right: Any, parameters: Parameters) -> float:
    return float(~_to_int64(right))


def ternary_if_stage(left: Any, right: Any, parameters: Parameters) -> Any:
    if left:
        return right
    return NO_BRANCH


def ternary_else_stage(left: Any, right: Any, parameters: Parameters) -> Any:
    if left is not NO_BRANCH:
        return left
    return right


def regex_stage(left: Any, right: Any, parameters: Parameters) -> bool:
    if isinstance(right, re.Pattern):
        pattern = right
    else:
        try:
            pattern = re.compile(right)
        except re.error as e:
            raise PatternCompileError(right, str(e)) from e
    return pattern.search(left) is not None


def not_regex_stage(left: Any, right: Any, parameters: Parameters) -> bool:
    return not regex_stage(left, right, parameters)


def bitwise_or_stage(left: Any, right: Any, parameters: Parameters) -> float:
    return float(_to_int64(left) | _to_int64(right))


def bitwise_and_stage(left: Any, right: Any, parameters: Parameters) -> float:
    return float(_to_int64(left) & _to_int64(right))


def bitwise_xor_stage(left: Any, right: Any, parameters: Parameters) -> float:
    return float(_to_int64(left) ^ _to_int64(right))


def left_shift_stage(left: Any, right: Any, parameters: Parameters) -> float:
    shift = _to_uint64(right)
    if shift >= 64:  # noqa: PLR2004
        return 0.0
    return float((_to_uint64(left) << shift) % _UINT64_MODULUS)


def right_shift_stage(left: Any, right: Any, parameters: Parameters) -> float:
    shift = _to_uint64(right)
    if shift >= 64:  # noqa: PLR2004
        return 0.0
    return float(_to_uint64(left) >> shift)


def _spread(value: Any) -> tuple[Any, ...]:
    if isinstance(value, ArgumentList):
        return value.items
    return (value,)


def separator_stage(left: Any, right: Any, parameters: Parameters) -> ArgumentList:
    return ArgumentList((*_spread(left), *_spread(right)))


def make_literal_operator(literal: Any) -> StageOperator:
    """Build an operator that always returns ``literal``."""

    def literal_stage(left: Any, right: Any, parameters: Parameters) -> Any:
        return literal

    return literal_stage


def make_parameter_operator(name: str) -> StageOperator:
    """Build an operator that resolves ``name`` from the parameters."""

    def parameter_stage(left: Any, right: Any, parameters: Parameters) -> Any:
        logger.debug("Resolving parameter %r", name)
        try:
            value = parameters.get(name)
        except EvaluationError:
            raise
        except Exception as e:
            msg = f"Unable to resolve parameter '{name}': {e}"
            raise ParameterError(name, msg) from e
        return coerce_value(value)

    return parameter_stage


def make_function_operator(function: Callable[..., Any], name: str | None = None) -> StageOperator:
    """Build an operator that calls ``function``.

    An absent right operand means no arguments, an ``ArgumentList`` is spread
    into positional arguments, and any other value is the single argument.
    """
    function_name = name or getattr(function, "__name__", repr(function))

    def function_stage(left: Any, right: Any, parameters: Parameters) -> Any:
        if right is None:
            args: tuple[Any, ...] = ()
        elif isinstance(right, ArgumentList):
            args = right.items
        else:
            args = (right,)

        logger.debug("Calling function %s with %d argument(s)", function_name, len(args))
        try:
            result = function(*args)
        except EvaluationError:
            raise
        except Exception as e:
            raise FunctionCallError(function_name, str(e)) from e
        return coerce_value(result)

    return function_stage


# =============================================================================
# Type checks
# =============================================================================


def addition_type_check(left: Any, right: Any) -> Side | None:
    """Accept two numbers, or any pair where at least one side is a string."""
    if is_number(left) and is_number(right):
        return None
    if is_string(left) or is_string(right):
        return None
    if is_number(left):
        return Side.RIGHT
    return Side.LEFT


def _numeric(operator: StageOperator, type_error_format: str = TYPEERROR_MODIFIER) -> OperatorSpec:
    return OperatorSpec(
        operator=operator,
        left_type_check=is_number,
        right_type_check=is_number,
        type_error_format=type_error_format,
    )


def _logical(operator: StageOperator) -> OperatorSpec:
    return OperatorSpec(
        operator=operator,
        left_type_check=is_bool,
        right_type_check=is_bool,
        type_error_format=TYPEERROR_LOGICAL,
    )


def _regex(operator: StageOperator) -> OperatorSpec:
    return OperatorSpec(
        operator=operator,
        left_type_check=is_string,
        right_type_check=is_pattern_or_string,
        type_error_format=TYPEERROR_COMPARATOR,
    )


def _prefix(operator: StageOperator, right_type_check: StageTypeCheck) -> OperatorSpec:
    return OperatorSpec(
        operator=operator,
        right_type_check=right_type_check,
        type_error_format=TYPEERROR_PREFIX,
    )


def operator_spec(symbol: OperatorSymbol) -> OperatorSpec:  # noqa: C901, PLR0911, PLR0912
    """Return the catalog entry for a symbol.

    Raises:
        ValueError: If the symbol needs a captured operand (literal,
            parameter or function); use the ``make_*_operator`` factories.

    """
    match symbol:
        case OperatorSymbol.LITERAL | OperatorSymbol.PARAMETER | OperatorSymbol.FUNCTIONAL:
            msg = f"Symbol '{symbol}' has no shared operator; build it with a factory"
            raise ValueError(msg)
        case OperatorSymbol.EQ:
            return OperatorSpec(operator=equal_stage, type_error_format=TYPEERROR_COMPARATOR)
        case OperatorSymbol.NEQ:
            return OperatorSpec(operator=not_equal_stage, type_error_format=TYPEERROR_COMPARATOR)
        case OperatorSymbol.GT:
            return _numeric(gt_stage, TYPEERROR_COMPARATOR)
        case OperatorSymbol.LT:
            return _numeric(lt_stage, TYPEERROR_COMPARATOR)
        case OperatorSymbol.GTE:
            return _numeric(gte_stage, TYPEERROR_COMPARATOR)
        case OperatorSymbol.LTE:
            return _numeric(lte_stage, TYPEERROR_COMPARATOR)
        case OperatorSymbol.REQ:
            return _regex(regex_stage)
        case OperatorSymbol.NREQ:
            return _regex(not_regex_stage)
        case OperatorSymbol.AND:
            return _logical(and_stage)
        case OperatorSymbol.OR:
            return _logical(or_stage)
        case OperatorSymbol.PLUS:
            return OperatorSpec(
                operator=add_stage,
                type_check=addition_type_check,
                type_error_format=TYPEERROR_MODIFIER,
            )
        case OperatorSymbol.MINUS:
            return _numeric(subtract_stage)
        case OperatorSymbol.MULTIPLY:
            return _numeric(multiply_stage)
        case OperatorSymbol.DIVIDE:
            return _numeric(divide_stage)
        case OperatorSymbol.MODULUS:
            return _numeric(modulus_stage)
        case OperatorSymbol.EXPONENT:
            return _numeric(exponent_stage)
        case OperatorSymbol.BITWISE_AND:
            return _numeric(bitwise_and_stage)
        case OperatorSymbol.BITWISE_OR:
            return _numeric(bitwise_or_stage)
        case OperatorSymbol.BITWISE_XOR:
            return _numeric(bitwise_xor_stage)
        case OperatorSymbol.BITWISE_LSHIFT:
            return _numeric(left_shift_stage)
        case OperatorSymbol.BITWISE_RSHIFT:
            return _numeric(right_shift_stage)
        case OperatorSymbol.NEGATE:
            return _prefix(negate_stage, is_number)
        case OperatorSymbol.INVERT:
            return _prefix(invert_stage, is_bool)
        case OperatorSymbol.BITWISE_NOT:
            return _prefix(bitwise_not_stage, is_number)
        case OperatorSymbol.TERNARY_TRUE:
            return OperatorSpec(
                operator=ternary_if_stage,
                left_type_check=is_bool,
                type_error_format=TYPEERROR_TERNARY,
            )
        case OperatorSymbol.TERNARY_FALSE:
            return OperatorSpec(operator=ternary_else_stage, type_error_format=TYPEERROR_TERNARY)
        case OperatorSymbol.SEPARATE:
            return OperatorSpec(operator=separator_stage)
