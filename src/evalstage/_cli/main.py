import json
import logging
import tomllib
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import Annotated, Any

import tomli_w
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from evalstage._document import DocumentError, StageDocument, build_stage, load_stage_document
from evalstage._errors import EvaluationError, StageValidationError
from evalstage._evaluator import check_max_depth, evaluate
from evalstage._parameters import MapParameters
from evalstage._stage import EvaluationStage
from evalstage._values import ValueKind, format_value, kind_of

from .config import ConfigError, EvalstageConfig, get_config, parse_functions_source
from .discover import FunctionRegistry, load_functions_from_source
from .render import render_stage_summary, render_stage_tree, render_value

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

# Exit code for unreadable or invalid input, as opposed to a failed evaluation
EXIT_BAD_INPUT = 2


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Evalstage CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


class _UnboundFunctions(Mapping[str, Callable[..., Any]]):
    """Registry accepting any name, for commands that never call functions."""

    def __getitem__(self, name: str) -> Callable[..., Any]:
        def unbound(*args: Any) -> Any:
            msg = f"function '{name}' is not loaded"
            raise RuntimeError(msg)

        return unbound

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str)

    def __iter__(self) -> Iterator[str]:
        return iter(())

    def __len__(self) -> int:
        return 0


def _fail(message: str, code: int = EXIT_BAD_INPUT) -> typer.Exit:
    err_console.print(f"[red]✗ {escape(message)}[/red]")
    return typer.Exit(code=code)


def _load_config() -> EvalstageConfig:
    try:
        return get_config()
    except ConfigError as e:
        raise _fail(str(e)) from e


def _load_functions(functions: str | None, config: EvalstageConfig) -> FunctionRegistry | None:
    """Load the function registry from the CLI option or the config."""
    if functions is not None:
        if ":" in functions:
            source = parse_functions_source(functions)
        else:
            source = parse_functions_source({"script": functions})
    elif config.functions is not None:
        source = config.functions
    else:
        return None

    err_console.print(f"[cyan]Loading functions from:[/cyan] {escape(str(source))}")
    try:
        return load_functions_from_source(source)
    except (ImportError, ValueError, TypeError) as e:
        raise _fail(f"Cannot load functions: {e}") from e


def _load_tree(tree: Path, functions: FunctionRegistry | None) -> EvaluationStage:
    err_console.print(f"[cyan]Loading tree from:[/cyan] {tree}")
    try:
        document = load_stage_document(tree)
        return build_stage(document, functions if functions is not None else _UnboundFunctions())
    except (DocumentError, StageValidationError) as e:
        raise _fail(str(e)) from e


def parse_assignment(assignment: str) -> tuple[str, Any]:
    """Parse ``name=value`` where value is a TOML value or a bare string.

    Example:
        >>> parse_assignment("x=1.5")
        ('x', 1.5)
        >>> parse_assignment("label=sensor")
        ('label', 'sensor')

    """
    name, sep, raw = assignment.partition("=")
    name = name.strip()
    if not sep or not name:
        msg = f"Expected 'name=value', got '{assignment}'"
        raise typer.BadParameter(msg)
    try:
        value = tomllib.loads(f"v = {raw.strip()}")["v"]
    except tomllib.TOMLDecodeError:
        value = raw
    return name, value


def _load_parameters(
    parameters_file: Path | None,
    assignments: list[str] | None,
    config: EvalstageConfig,
) -> MapParameters:
    values: dict[str, Any] = {}
    source = parameters_file or config.parameters
    if source is not None:
        err_console.print(f"[cyan]Loading parameters from:[/cyan] {source}")
        try:
            with source.open("rb") as f:
                values.update(tomllib.load(f))
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise _fail(f"Cannot load parameters from {source}: {e}") from e
    for assignment in assignments or []:
        name, value = parse_assignment(assignment)
        values[name] = value
    logger.debug("Parameters: %r", values)
    return MapParameters(values)


def _validate_max_depth(value: int | None) -> int | None:
    if value is None:
        return None
    try:
        return check_max_depth(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def _serialize_result(value: Any) -> dict[str, Any]:
    """Describe a result as TOML-compatible data."""
    kind = kind_of(value)
    data: dict[str, Any] = {"kind": str(kind)}
    match kind:
        case ValueKind.ABSENT:
            pass
        case ValueKind.NUMBER | ValueKind.BOOLEAN | ValueKind.STRING:
            data["result"] = value
        case _:
            data["result"] = format_value(value)
    return data


@app.command("eval")
def eval_command(  # noqa: PLR0913
    tree: Annotated[
        Path,
        typer.Argument(help="Path to a tree document (.json or .toml)"),
    ],
    *,
    parameters_file: Annotated[
        Path | None,
        typer.Option("-p", "--parameters", help="Path to a TOML file with parameter values"),
    ] = None,
    assignments: Annotated[
        list[str] | None,
        typer.Option("--set", help="Parameter assignment 'name=value' (repeatable)"),
    ] = None,
    functions: Annotated[
        str | None,
        typer.Option("--functions", help="Function registry as script path or 'module.path:variable'"),
    ] = None,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", callback=_validate_max_depth, help="Maximum evaluation depth"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to output TOML file"),
    ] = None,
) -> None:
    """Evaluate a tree document and print the result."""
    config = _load_config()
    registry = _load_functions(functions, config)
    stage = _load_tree(tree, registry)
    parameters = _load_parameters(parameters_file, assignments, config)

    try:
        value = evaluate(stage, parameters, max_depth=max_depth or config.max_depth)
    except EvaluationError as e:
        raise _fail(f"{type(e).__name__}: {e}", code=1) from e

    render_value(value, out_console)

    if output is not None:
        err_console.print(f"[cyan]Writing result to:[/cyan] {output}")
        output.parent.mkdir(parents=True, exist_ok=True)
        with output.open("wb") as f:
            tomli_w.dump(_serialize_result(value), f)


@app.command()
def check(
    tree: Annotated[
        Path,
        typer.Argument(help="Path to a tree document (.json or .toml)"),
    ],
    *,
    functions: Annotated[
        str | None,
        typer.Option("--functions", help="Function registry as script path or 'module.path:variable'"),
    ] = None,
) -> None:
    """Validate a tree document without evaluating it."""
    config = _load_config()
    registry = _load_functions(functions, config)
    stage = _load_tree(tree, registry)

    depth = stage.depth()
    if depth > config.max_depth:
        raise _fail(f"Tree depth {depth} exceeds the maximum evaluation depth of {config.max_depth}", code=1)

    err_console.print()
    render_stage_summary(stage, err_console)
    err_console.print()
    err_console.print("[green]✓ Tree is valid[/green]")


@app.command()
def show(
    tree: Annotated[
        Path,
        typer.Argument(help="Path to a tree document (.json or .toml)"),
    ],
) -> None:
    """Display the structure of a tree document."""
    stage = _load_tree(tree, None)
    out_console.print(Panel.fit("[bold]Stage tree[/bold]", border_style="cyan"))
    render_stage_tree(stage, out_console)


@app.command()
def schema(
    *,
    output: Annotated[
        Path,
        typer.Option("-o", "--output", help="Path to output JSON schema file"),
    ],
    indent: Annotated[
        int,
        typer.Option("--indent", help="JSON indentation spaces"),
    ] = 2,
) -> None:
    """Generate the JSON schema of tree documents."""
    err_console.print(f"[cyan]Writing schema to:[/cyan] {output}")
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w") as f:
        json.dump(StageDocument.model_json_schema(), f, indent=indent)

    err_console.print("[green]✓ Schema generation complete[/green]")


def main() -> None:
    app()
