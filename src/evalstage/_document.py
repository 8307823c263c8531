"""Declarative tree documents: compiled stage trees stored as JSON or TOML.

A document mirrors the stage tree one-to-one. It is not an expression
syntax; it is the already-compiled tree written out field by field:

    symbol = "plus"

    [left]
    symbol = "parameter"
    name = "x"

    [right]
    symbol = "literal"
    value = 2
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from pathlib import Path  # noqa: TC003 - Used at runtime by load/save
from typing import TYPE_CHECKING, Any, Self

import tomli_w
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from ._builder import function, literal, operator_stage, parameter
from ._errors import StageValidationError
from ._evaluator import max_depth_limit
from ._parameters import EMPTY_PARAMETERS
from ._stage import arity_problem, validate_stage
from ._symbols import OperatorSymbol

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ._stage import EvaluationStage

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """A tree document cannot be read or turned into a stage tree."""


class StageDocument(BaseModel):
    """One stage of a tree document.

    Attributes:
        symbol: The operator symbol of the stage.
        value: Constant of a literal stage (number, boolean or string).
        pattern: Regex source of a pattern literal, compiled when built.
        name: Parameter name, or the registry name of a function.
        left: Left child.
        right: Right child.

    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    symbol: OperatorSymbol
    value: bool | float | str | None = None
    pattern: str | None = None
    name: str | None = None
    left: StageDocument | None = None
    right: StageDocument | None = None

    @model_validator(mode="after")
    def _check_fields(self) -> Self:
        is_literal = self.symbol == OperatorSymbol.LITERAL
        if not is_literal and (self.value is not None or self.pattern is not None):
            msg = f"'value' and 'pattern' are only allowed on literal stages, not on '{self.symbol}'"
            raise ValueError(msg)
        if is_literal and self.value is not None and self.pattern is not None:
            msg = "A literal stage takes either 'value' or 'pattern', not both"
            raise ValueError(msg)

        named = self.symbol in (OperatorSymbol.PARAMETER, OperatorSymbol.FUNCTIONAL)
        if named and not self.name:
            msg = f"Stage '{self.symbol}' requires a 'name'"
            raise ValueError(msg)
        if not named and self.name is not None:
            msg = f"'name' is not allowed on '{self.symbol}' stages"
            raise ValueError(msg)

        problem = arity_problem(self.symbol, has_left=self.left is not None, has_right=self.right is not None)
        if problem is not None:
            raise ValueError(problem)
        return self


def load_stage_document(path: Path) -> StageDocument:
    """Load a tree document from a ``.json`` or ``.toml`` file.

    Raises:
        DocumentError: If the file cannot be read, parsed or validated, or
            is nested too deeply.

    """
    logger.debug("Loading tree document from %s", path)
    try:
        if path.suffix == ".toml":
            with path.open("rb") as f:
                data: Any = tomllib.load(f)
        else:
            data = json.loads(path.read_text(encoding="utf-8"))
        return StageDocument.model_validate(data)
    except OSError as e:
        msg = f"Cannot read tree document {path}: {e}"
        raise DocumentError(msg) from e
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        msg = f"Invalid syntax in tree document {path}: {e}"
        raise DocumentError(msg) from e
    except ValidationError as e:
        msg = f"Invalid tree document {path}:\n{e}"
        raise DocumentError(msg) from e
    except RecursionError as e:
        msg = f"Tree document {path} is nested too deeply to be read"
        raise DocumentError(msg) from e


def save_stage_document(document: StageDocument, path: Path) -> None:
    """Write a tree document as ``.json`` or ``.toml`` depending on the suffix."""
    data = document.model_dump(mode="json", exclude_none=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".toml":
        with path.open("wb") as f:
            tomli_w.dump(data, f)
    else:
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def _too_deep(depth: int) -> DocumentError:
    return DocumentError(f"Tree document is nested deeper than {depth} levels")


def _build(document: StageDocument, functions: Mapping[str, Callable[..., Any]], depth: int) -> EvaluationStage:
    if depth > max_depth_limit():
        raise _too_deep(max_depth_limit())
    match document.symbol:
        case OperatorSymbol.LITERAL:
            if document.pattern is not None:
                try:
                    return literal(re.compile(document.pattern))
                except re.error as e:
                    msg = f"Invalid pattern literal '{document.pattern}': {e}"
                    raise DocumentError(msg) from e
            return literal(document.value)
        case OperatorSymbol.PARAMETER:
            return parameter(str(document.name))
        case OperatorSymbol.FUNCTIONAL:
            name = str(document.name)
            if name not in functions:
                msg = f"Unknown function '{name}'"
                raise DocumentError(msg)
            args = () if document.right is None else (_build(document.right, functions, depth + 1),)
            return function(functions[name], *args, name=name)
        case _:
            return operator_stage(
                document.symbol,
                None if document.left is None else _build(document.left, functions, depth + 1),
                None if document.right is None else _build(document.right, functions, depth + 1),
            )


def build_stage(
    document: StageDocument,
    functions: Mapping[str, Callable[..., Any]] | None = None,
) -> EvaluationStage:
    """Turn a tree document into an evaluable stage tree.

    Args:
        document: The root of the document.
        functions: Registry resolving function stage names to callables.

    Returns:
        The root stage.

    Raises:
        DocumentError: If a function name is unknown, a pattern is invalid
            or the document is nested deeper than ``max_depth_limit()``.
        StageValidationError: If the built tree violates its invariants.

    """
    stage = _build(document, functions if functions is not None else {}, 1)
    problems = validate_stage(stage)
    if problems:
        raise StageValidationError(problems)
    return stage


def _dump(stage: EvaluationStage) -> StageDocument:
    left = None if stage.left is None else _dump(stage.left)
    right = None if stage.right is None else _dump(stage.right)
    match stage.symbol:
        case OperatorSymbol.LITERAL:
            # Literal operators ignore their operands
            value = stage.operator(None, None, EMPTY_PARAMETERS)
            if isinstance(value, re.Pattern):
                return StageDocument(symbol=stage.symbol, pattern=value.pattern)
            if value is not None and not isinstance(value, (bool, float, str)):
                msg = f"Literal {value!r} cannot be stored in a tree document"
                raise DocumentError(msg)
            return StageDocument(symbol=stage.symbol, value=value)
        case OperatorSymbol.PARAMETER | OperatorSymbol.FUNCTIONAL:
            return StageDocument(symbol=stage.symbol, name=stage.label, right=right)
        case _:
            return StageDocument(symbol=stage.symbol, left=left, right=right)


def dump_stage(stage: EvaluationStage) -> StageDocument:
    """Describe a stage tree as a document.

    Function stages are described by their name; the callable itself is
    not part of the document.

    Raises:
        StageValidationError: If the tree violates its invariants.
        DocumentError: If a literal cannot be stored or the tree is deeper
            than ``max_depth_limit()``.

    """
    problems = validate_stage(stage)
    if problems:
        raise StageValidationError(problems)
    if stage.depth() > max_depth_limit():
        raise _too_deep(max_depth_limit())
    return _dump(stage)
