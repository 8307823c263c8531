"""Rich rendering utilities for stage trees and results."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from evalstage._symbols import Arity, OperatorSymbol, arity_of
from evalstage._values import format_value, kind_of

if TYPE_CHECKING:
    from rich.console import Console

    from evalstage._stage import EvaluationStage


def _get_arity_style(arity: Arity) -> str:
    match arity:
        case Arity.LEAF:
            return "blue"
        case Arity.PREFIX:
            return "magenta"
        case Arity.FUNCTION:
            return "green"
        case Arity.BINARY:
            return "yellow"


def _stage_label(stage: EvaluationStage) -> str:
    style = _get_arity_style(arity_of(stage.symbol))
    text = f"[{style}]{escape(stage.symbol.display)}[/{style}]"
    if stage.label:
        text += f" {escape(stage.label)}"
    return text


def render_stage_tree(stage: EvaluationStage, console: Console) -> None:
    """Render a stage tree using Rich Tree.

    Args:
        stage: Root stage to render.
        console: Rich Console to output to.

    """
    rich_tree = Tree(_stage_label(stage))
    pending: list[tuple[EvaluationStage, Tree]] = [(stage, rich_tree)]
    while pending:
        current, node = pending.pop()
        for side, child in (("L", current.left), ("R", current.right)):
            if child is None:
                continue
            child_node = node.add(f"[dim]{side}[/dim] {_stage_label(child)}")
            pending.append((child, child_node))
    console.print(rich_tree)


def render_stage_summary(stage: EvaluationStage, console: Console) -> None:
    """Render stage counts per symbol and the tree depth as a Rich table.

    Args:
        stage: Root stage to summarize.
        console: Rich Console to output to.

    """
    counts = Counter(s.symbol for s in stage.iter_stages())

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Symbol", style="bold")
    table.add_column("Operator")
    table.add_column("Stages", justify="right")

    for symbol in OperatorSymbol:
        if counts[symbol]:
            table.add_row(symbol.name, escape(symbol.display), str(counts[symbol]))

    console.print(table)
    console.print(f"\n[dim]Total: {counts.total()} stages, depth {stage.depth()}[/dim]")


def render_value(value: Any, console: Console) -> None:
    """Print a result value with its kind."""
    console.print(f"{escape(format_value(value))} [dim]({kind_of(value)})[/dim]")
