"""Errors raised while building or evaluating stage trees."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from ._values import format_value

if TYPE_CHECKING:
    from ._symbols import OperatorSymbol

TYPEERROR_LOGICAL: Final = "Value '{value}' cannot be used with the logical operator '{symbol}', it is not a bool"
TYPEERROR_MODIFIER: Final = "Value '{value}' cannot be used with the modifier '{symbol}', it is not a number"
TYPEERROR_COMPARATOR: Final = "Value '{value}' cannot be used with the comparator '{symbol}', it is not a number"
TYPEERROR_TERNARY: Final = "Value '{value}' cannot be used with the ternary operator '{symbol}', it is not a bool"
TYPEERROR_PREFIX: Final = "Value '{value}' cannot be used with the prefix '{symbol}'"


class EvaluationError(Exception):
    """Base class for every error that aborts an evaluation."""


class StageTypeError(EvaluationError, TypeError):
    """An operand failed the type-acceptance policy of its stage.

    Attributes:
        value: The offending operand.
        symbol: The symbol of the stage that rejected it.

    """

    def __init__(self, type_error_format: str, value: Any, symbol: OperatorSymbol) -> None:
        self.value = value
        self.symbol = symbol
        super().__init__(type_error_format.format(value=format_value(value), symbol=symbol.display))


class StageRuntimeError(EvaluationError, RuntimeError):
    """Raised by operator logic while a stage runs."""


class PatternCompileError(StageRuntimeError):
    """A regex operand could not be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f"Unable to compile regexp pattern '{pattern}': {reason}")


class ParameterError(StageRuntimeError):
    """The parameters could not provide a value."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message if message is not None else f"No parameter '{name}' found.")


class FunctionCallError(StageRuntimeError):
    """An external function failed."""

    def __init__(self, function_name: str, reason: str) -> None:
        self.function_name = function_name
        super().__init__(f"Function '{function_name}' failed: {reason}")


class MaxDepthExceededError(StageRuntimeError):
    """The tree is deeper than the evaluator allows."""

    def __init__(self, max_depth: int, message: str | None = None) -> None:
        self.max_depth = max_depth
        super().__init__(message or f"Stage tree exceeds the maximum evaluation depth of {max_depth}")


class StageValidationError(ValueError):
    """A stage tree violates its structural invariants."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Invalid stage tree:\n" + "\n".join(f"- {problem}" for problem in problems))
