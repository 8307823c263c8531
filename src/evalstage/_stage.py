"""Stage tree model for compiled expressions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ._symbols import Arity, OperatorSymbol, arity_of

if TYPE_CHECKING:
    from collections.abc import Generator

    from ._catalog import StageCombinedTypeCheck, StageOperator, StageTypeCheck


@dataclass(slots=True, eq=False)
class EvaluationStage:
    """A node of a compiled expression tree.

    The evaluation behavior of the symbol (operator, type checks, error
    template) is copied onto every stage so the evaluator never has to look
    it up. A tree is built once and is read-only afterwards; it can then be
    evaluated concurrently with different parameters.

    Attributes:
        symbol: The operation this stage performs.
        left: Left child, absent for leaves, prefix operators and functions.
        right: Right child, absent for leaves and argument-less functions.
        operator: Computes the stage value from the child values.
        left_type_check: Predicate for the left value, None accepts anything.
        right_type_check: Predicate for the right value, None accepts anything.
        type_check: Combined predicate overriding the per-side checks.
        type_error_format: Template used when a type check fails.
        label: Leaf detail for display (literal text, parameter or function name).

    """

    symbol: OperatorSymbol
    operator: StageOperator
    left: EvaluationStage | None = None
    right: EvaluationStage | None = None
    left_type_check: StageTypeCheck | None = None
    right_type_check: StageTypeCheck | None = None
    type_check: StageCombinedTypeCheck | None = None
    type_error_format: str = ""
    label: str = ""

    @property
    def is_leaf(self) -> bool:
        """Check if this stage has no children."""
        return self.left is None and self.right is None

    def swap_with(self, other: EvaluationStage) -> None:
        """Exchange operation content with ``other``, keeping both children.

        Only for use while a tree is being built, e.g. to reorder stages for
        operator precedence without touching references held elsewhere.
        """
        for name in (
            "symbol",
            "operator",
            "left_type_check",
            "right_type_check",
            "type_check",
            "type_error_format",
            "label",
        ):
            mine = getattr(self, name)
            setattr(self, name, getattr(other, name))
            setattr(other, name, mine)

    def iter_stages(self) -> Generator[EvaluationStage]:
        """Iterate over this stage and its descendants in pre-order.

        The tree must be acyclic; run ``validate_stage`` first on trees from
        untrusted sources.
        """
        pending: list[EvaluationStage] = [self]
        while pending:
            stage = pending.pop()
            yield stage
            if stage.right is not None:
                pending.append(stage.right)
            if stage.left is not None:
                pending.append(stage.left)

    def depth(self) -> int:
        """Return the height of the tree rooted here (a leaf has depth 1)."""
        deepest = 0
        pending: list[tuple[EvaluationStage, int]] = [(self, 1)]
        while pending:
            stage, level = pending.pop()
            deepest = max(deepest, level)
            pending.extend((child, level + 1) for child in (stage.left, stage.right) if child is not None)
        return deepest

    def __repr__(self) -> str:
        if self.label:
            return f"EvaluationStage({self.symbol.name}, {self.label!r})"
        return f"EvaluationStage({self.symbol.name})"


def arity_problem(symbol: OperatorSymbol, *, has_left: bool, has_right: bool) -> str | None:  # noqa: PLR0911
    """Describe why a stage of ``symbol`` cannot have these children, or return None."""
    match arity_of(symbol):
        case Arity.LEAF:
            if has_left or has_right:
                return f"leaf stage {symbol.name} must not have children"
        case Arity.PREFIX:
            if has_left:
                return f"prefix stage {symbol.name} must not have a left child"
            if not has_right:
                return f"prefix stage {symbol.name} requires a right child"
        case Arity.FUNCTION:
            if has_left:
                return "function stage must not have a left child"
        case Arity.BINARY:
            if not (has_left and has_right):
                return f"binary stage {symbol.name} requires both children"
    return None


def validate_stage(root: EvaluationStage) -> list[str]:
    """Check the structural invariants of a stage tree.

    A tree is valid when every stage has exactly the children its symbol's
    arity calls for and no stage is reachable twice (no sharing, no cycles).

    Args:
        root: The root stage of the tree.

    Returns:
        List of problem descriptions, empty if the tree is valid.

    """
    problems: list[str] = []
    seen: set[int] = set()
    pending: list[tuple[EvaluationStage, str]] = [(root, "$")]

    while pending:
        stage, path = pending.pop()
        if id(stage) in seen:
            problems.append(f"{path}: stage {stage.symbol.name} is reachable more than once")
            continue
        seen.add(id(stage))

        problem = arity_problem(stage.symbol, has_left=stage.left is not None, has_right=stage.right is not None)
        if problem is not None:
            problems.append(f"{path}: {problem}")

        if stage.right is not None:
            pending.append((stage.right, f"{path}.right"))
        if stage.left is not None:
            pending.append((stage.left, f"{path}.left"))

    return problems
