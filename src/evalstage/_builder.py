"""Helpers to build stage trees without a parser.

Each helper returns a fresh stage that owns its children, so trees built
from them are tree-shaped by construction. Reusing one stage object in two
places of a tree is a sharing violation reported by ``validate_stage``.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from ._catalog import make_function_operator, make_literal_operator, make_parameter_operator, operator_spec
from ._stage import EvaluationStage
from ._symbols import Arity, OperatorSymbol, arity_of
from ._values import coerce_value, format_value

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


def _from_catalog(
    symbol: OperatorSymbol,
    left: EvaluationStage | None,
    right: EvaluationStage | None,
) -> EvaluationStage:
    spec = operator_spec(symbol)
    return EvaluationStage(
        symbol=symbol,
        operator=spec.operator,
        left=left,
        right=right,
        left_type_check=spec.left_type_check,
        right_type_check=spec.right_type_check,
        type_check=spec.type_check,
        type_error_format=spec.type_error_format,
    )


def literal(value: Any) -> EvaluationStage:
    """Build a stage that always yields ``value``.

    Integers are stored as floats. A compiled ``re.Pattern`` is kept as is,
    so regex stages using it skip compilation.
    """
    value = coerce_value(value)
    if isinstance(value, re.Pattern):
        label = f"/{value.pattern}/"
    elif isinstance(value, str):
        label = repr(value)
    else:
        label = format_value(value)
    return EvaluationStage(
        symbol=OperatorSymbol.LITERAL,
        operator=make_literal_operator(value),
        label=label,
    )


def parameter(name: str) -> EvaluationStage:
    """Build a stage that resolves ``name`` from the parameters."""
    return EvaluationStage(
        symbol=OperatorSymbol.PARAMETER,
        operator=make_parameter_operator(name),
        label=name,
    )


def arguments(*stages: EvaluationStage) -> EvaluationStage | None:
    """Chain argument stages with separators.

    Returns None for no arguments and the stage itself for a single one, so
    the result can be passed straight to ``function``.
    """
    if not stages:
        return None
    chain = stages[-1]
    for stage in reversed(stages[:-1]):
        chain = _from_catalog(OperatorSymbol.SEPARATE, stage, chain)
    return chain


def function(
    callable_: Callable[..., Any],
    *args: EvaluationStage,
    name: str | None = None,
) -> EvaluationStage:
    """Build a stage calling ``callable_`` with the values of ``args``."""
    function_name = name or getattr(callable_, "__name__", repr(callable_))
    return EvaluationStage(
        symbol=OperatorSymbol.FUNCTIONAL,
        operator=make_function_operator(callable_, function_name),
        right=arguments(*args),
        label=function_name,
    )


def binary(symbol: OperatorSymbol, left: EvaluationStage, right: EvaluationStage) -> EvaluationStage:
    """Build a stage applying a binary operator.

    Raises:
        ValueError: If ``symbol`` is not a binary operator.

    """
    if arity_of(symbol) != Arity.BINARY:
        msg = f"Symbol '{symbol}' is not a binary operator"
        raise ValueError(msg)
    return _from_catalog(symbol, left, right)


def prefix(symbol: OperatorSymbol, right: EvaluationStage) -> EvaluationStage:
    """Build a stage applying a prefix operator to ``right``.

    Raises:
        ValueError: If ``symbol`` is not a prefix operator.

    """
    if arity_of(symbol) != Arity.PREFIX:
        msg = f"Symbol '{symbol}' is not a prefix operator"
        raise ValueError(msg)
    return _from_catalog(symbol, None, right)


def ternary(
    condition: EvaluationStage,
    then: EvaluationStage,
    otherwise: EvaluationStage | None = None,
) -> EvaluationStage:
    """Build ``condition ? then : otherwise``.

    Without ``otherwise`` only the ``?`` stage is built, which yields None
    when the condition is false.
    """
    if_stage = _from_catalog(OperatorSymbol.TERNARY_TRUE, condition, then)
    if otherwise is None:
        return if_stage
    return _from_catalog(OperatorSymbol.TERNARY_FALSE, if_stage, otherwise)


def operator_stage(
    symbol: OperatorSymbol,
    left: EvaluationStage | None,
    right: EvaluationStage | None,
) -> EvaluationStage:
    """Build a stage of any catalog symbol without arity checks.

    Intended for loaders that validate the finished tree as a whole.
    """
    logger.debug("Building %s stage", symbol.name)
    return _from_catalog(symbol, left, right)
