"""Evaluation engine for compiled expression trees."""

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "ArgumentList",
    "Arity",
    "DocumentError",
    "EvaluationError",
    "EvaluationResult",
    "EvaluationStage",
    "FunctionCallError",
    "MapParameters",
    "MaxDepthExceededError",
    "OperatorSpec",
    "OperatorSymbol",
    "ParameterError",
    "Parameters",
    "PatternCompileError",
    "Side",
    "StageDocument",
    "StageRuntimeError",
    "StageTypeError",
    "StageValidationError",
    "ValueKind",
    "arguments",
    "arity_of",
    "binary",
    "build_stage",
    "check_max_depth",
    "dump_stage",
    "evaluate",
    "evaluate_stage",
    "format_value",
    "function",
    "kind_of",
    "literal",
    "load_stage_document",
    "max_depth_limit",
    "operator_spec",
    "parameter",
    "prefix",
    "save_stage_document",
    "ternary",
    "try_evaluate",
    "validate_stage",
    "values_equal",
]

from ._builder import arguments, binary, function, literal, parameter, prefix, ternary
from ._catalog import OperatorSpec, Side, operator_spec
from ._document import DocumentError, StageDocument, build_stage, dump_stage, load_stage_document, save_stage_document
from ._errors import (
    EvaluationError,
    FunctionCallError,
    MaxDepthExceededError,
    ParameterError,
    PatternCompileError,
    StageRuntimeError,
    StageTypeError,
    StageValidationError,
)
from ._evaluator import (
    DEFAULT_MAX_DEPTH,
    EvaluationResult,
    check_max_depth,
    evaluate,
    evaluate_stage,
    max_depth_limit,
    try_evaluate,
)
from ._parameters import MapParameters, Parameters
from ._stage import EvaluationStage, validate_stage
from ._symbols import Arity, OperatorSymbol, arity_of
from ._values import ArgumentList, ValueKind, format_value, kind_of, values_equal
