"""Recursive evaluation of stage trees."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from ._catalog import Side
from ._errors import EvaluationError, MaxDepthExceededError, StageTypeError
from ._parameters import EMPTY_PARAMETERS
from ._symbols import OperatorSymbol
from ._values import NO_BRANCH

if TYPE_CHECKING:
    from ._parameters import Parameters
    from ._stage import EvaluationStage

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH: Final = 256

# Interpreter frames kept free for the caller's own stack
_RECURSION_HEADROOM: Final = 200


def max_depth_limit() -> int:
    """Return the largest ``max_depth`` the interpreter stack can accommodate."""
    return max(sys.getrecursionlimit() - _RECURSION_HEADROOM, 1)


def check_max_depth(max_depth: int) -> int:
    """Return ``max_depth`` if it is usable.

    Raises:
        ValueError: If it is not a positive integer within ``max_depth_limit()``.

    """
    limit = max_depth_limit()
    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or not 1 <= max_depth <= limit:
        msg = f"max_depth must be an integer between 1 and {limit}, got {max_depth!r}"
        raise ValueError(msg)
    return max_depth


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Outcome of evaluating a stage tree.

    Exactly one of ``value`` and ``error`` is meaningful: when ``error`` is
    set the evaluation failed and ``value`` is None.

    Attributes:
        value: The computed value.
        error: The error that aborted the evaluation, if any.

    """

    value: Any = None
    error: EvaluationError | None = None

    @property
    def success(self) -> bool:
        """Check if evaluation completed without an error."""
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value, or raise the error of a failed evaluation."""
        if self.error is not None:
            raise self.error
        return self.value


def _check_types(stage: EvaluationStage, left: Any, right: Any) -> None:
    """Raise a StageTypeError if the operands fail the stage's policy."""
    if stage.type_check is not None:
        rejected = stage.type_check(left, right)
        if rejected is None:
            return
        offending = left if rejected == Side.LEFT else right
        raise StageTypeError(stage.type_error_format, offending, stage.symbol)

    if stage.left_type_check is not None and not stage.left_type_check(left):
        raise StageTypeError(stage.type_error_format, left, stage.symbol)
    if stage.right_type_check is not None and not stage.right_type_check(right):
        raise StageTypeError(stage.type_error_format, right, stage.symbol)


def _evaluate(stage: EvaluationStage, parameters: Parameters, depth: int, max_depth: int) -> Any:
    if depth > max_depth:
        raise MaxDepthExceededError(max_depth)

    left = None
    right = None
    if stage.left is not None:
        left = _evaluate(stage.left, parameters, depth + 1, max_depth)
        # Only an else-branch may see that a ternary condition was false
        if left is NO_BRANCH and stage.symbol != OperatorSymbol.TERNARY_FALSE:
            left = None
    if stage.right is not None:
        right = _evaluate(stage.right, parameters, depth + 1, max_depth)
        if right is NO_BRANCH:
            right = None

    _check_types(stage, left, right)
    return stage.operator(left, right, parameters)


def evaluate_stage(
    stage: EvaluationStage,
    parameters: Parameters,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Any:
    """Evaluate a stage tree depth-first, left before right.

    This is a pure function of the tree and the parameters: nothing in the
    tree is modified, so the same tree can be evaluated from several threads
    at once.

    Args:
        stage: Root of the tree.
        parameters: Resolver for parameter stages.
        max_depth: Deepest stage level that may be entered.

    Returns:
        The value of the root stage.

    Raises:
        StageTypeError: If an operand fails its stage's type check.
        StageRuntimeError: If an operator, the parameters or an external
            function fail, or the tree is deeper than ``max_depth``.
        ValueError: If ``max_depth`` is outside ``1..max_depth_limit()``.

    """
    check_max_depth(max_depth)
    logger.debug("Evaluating %r", stage)
    try:
        value = _evaluate(stage, parameters, 1, max_depth)
    except RecursionError as e:
        # The caller's own stack left less room than max_depth allows
        msg = "Stage tree is nested too deeply for the interpreter stack"
        raise MaxDepthExceededError(max_depth, msg) from e
    if value is NO_BRANCH:
        return None
    logger.debug("Result for %r: %r", stage, value)
    return value


def evaluate(
    stage: EvaluationStage,
    parameters: Parameters | None = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Any:
    """Evaluate a stage tree, raising the first error encountered.

    Example:
        >>> from evalstage import MapParameters, OperatorSymbol, binary, literal, parameter
        >>> tree = binary(OperatorSymbol.PLUS, parameter("x"), literal(2))
        >>> evaluate(tree, MapParameters(x=40))
        42.0

    """
    return evaluate_stage(
        stage,
        parameters if parameters is not None else EMPTY_PARAMETERS,
        max_depth=max_depth,
    )


def try_evaluate(
    stage: EvaluationStage,
    parameters: Parameters | None = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> EvaluationResult:
    """Evaluate a stage tree and capture the outcome in an EvaluationResult."""
    try:
        value = evaluate(stage, parameters, max_depth=max_depth)
    except EvaluationError as e:
        logger.debug("Evaluation of %r failed: %s", stage, e)
        return EvaluationResult(error=e)
    return EvaluationResult(value=value)
