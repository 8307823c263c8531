"""Configuration loading from pyproject.toml."""

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from evalstage._evaluator import DEFAULT_MAX_DEPTH, check_max_depth

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Error in evalstage configuration."""


@dataclass(slots=True, frozen=True)
class ScriptSource:
    """Script path with optional registry variable name."""

    script: Path
    name: str | None = None


@dataclass(slots=True, frozen=True)
class ModuleSource:
    """Module path with registry variable name (e.g., 'mypkg.functions:FUNCTIONS')."""

    module_path: str


FunctionsSource = ScriptSource | ModuleSource


@dataclass(slots=True, frozen=True)
class EvalstageConfig:
    """Configuration loaded from pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    functions: FunctionsSource | None = None
    parameters: Path | None = None
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    current = (start_dir or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


def parse_functions_source(value: object, project_root: Path | None = None) -> FunctionsSource:
    """Parse a function registry reference.

    Accepts either ``"module.path:variable"`` or a table
    ``{ script = "path.py", name = "variable" }``.

    Raises:
        ConfigError: If the value format is invalid

    """
    if isinstance(value, str):
        if ":" not in value:
            msg = f"Invalid module path '{value}'. Expected format: 'module.path:variable_name'"
            raise ConfigError(msg)
        return ModuleSource(module_path=value)

    if isinstance(value, dict):
        value_dict = cast("dict[str, object]", value)
        script_value = value_dict.get("script")
        if not isinstance(script_value, str):
            msg = "Invalid [tool.evalstage].functions.script: expected string path"
            raise ConfigError(msg)
        script_path = Path(script_value)
        if project_root is not None and not script_path.is_absolute():
            script_path = project_root / script_path

        name = value_dict.get("name")
        if name is not None and not isinstance(name, str):
            msg = "Invalid [tool.evalstage].functions.name: expected string"
            raise ConfigError(msg)
        return ScriptSource(script=script_path, name=name)

    msg = "Invalid [tool.evalstage].functions configuration. Expected string or table with 'script' key."
    raise ConfigError(msg)


def _parse_max_depth(value: object) -> int:
    try:
        return check_max_depth(value)  # type: ignore[arg-type]
    except ValueError as e:
        msg = f"Invalid [tool.evalstage].max_depth: {e}"
        raise ConfigError(msg) from e


def load_config(pyproject_path: Path) -> EvalstageConfig:
    """Load and validate [tool.evalstage] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed EvalstageConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("evalstage", {})
    if not section:
        return EvalstageConfig(project_root=project_root)

    logger.debug("Loaded [tool.evalstage] from %s", pyproject_path)

    max_depth = _parse_max_depth(section["max_depth"]) if "max_depth" in section else DEFAULT_MAX_DEPTH

    functions: FunctionsSource | None = None
    if "functions" in section:
        functions = parse_functions_source(section["functions"], project_root)

    parameters_path: Path | None = None
    if "parameters" in section:
        parameters_value = section["parameters"]
        if not isinstance(parameters_value, str):
            msg = "Invalid [tool.evalstage].parameters: expected string path"
            raise ConfigError(msg)
        parameters_path = Path(parameters_value)
        if not parameters_path.is_absolute():
            parameters_path = project_root / parameters_path

    return EvalstageConfig(
        max_depth=max_depth,
        functions=functions,
        parameters=parameters_path,
        project_root=project_root,
    )


def get_config() -> EvalstageConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        EvalstageConfig (defaults if no pyproject.toml or no [tool.evalstage] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return EvalstageConfig()
    return load_config(pyproject_path)
