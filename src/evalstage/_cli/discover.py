"""Utilities to discover function registries in scripts and modules.

This module was adapted from `fastapi_cli.discover` of package `fastapi-cli` version 0.0.8 (77e6d1f).
"""

from __future__ import annotations

import importlib
import logging
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from pathlib import Path

    from .config import FunctionsSource

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_NAME = "FUNCTIONS"

FunctionRegistry: TypeAlias = Mapping[str, Callable[..., Any]]


@dataclass
class ModuleData:
    """Module data for a Python module."""

    module_import_str: str
    extra_sys_path: Path
    module_paths: list[Path]


def get_module_data_from_path(path: Path) -> ModuleData:
    """Get module data from a file path.

    Args:
        path: Path to a Python file or package

    Returns:
        ModuleData containing module import information

    """
    use_path = path.resolve()
    module_path = use_path
    if use_path.is_file() and use_path.stem == "__init__":
        module_path = use_path.parent
    module_paths = [module_path]
    extra_sys_path = module_path.parent
    for parent in module_path.parents:
        init_path = parent / "__init__.py"
        if init_path.is_file():
            module_paths.insert(0, parent)
            extra_sys_path = parent.parent
        else:
            break

    module_str = ".".join(p.stem for p in module_paths)
    return ModuleData(
        module_import_str=module_str,
        extra_sys_path=extra_sys_path.resolve(),
        module_paths=module_paths,
    )


def _check_registry(registry: object, where: str) -> FunctionRegistry:
    if not isinstance(registry, Mapping):
        msg = f"{where} is not a mapping of function names to callables"
        raise TypeError(msg)
    for name, func in registry.items():
        if not isinstance(name, str) or not callable(func):
            msg = f"{where} entry {name!r} is not a named callable"
            raise TypeError(msg)
    return registry


def load_functions_from_script(script_path: Path, registry_name: str | None = None) -> FunctionRegistry:
    """Load a function registry from a Python script path.

    Args:
        script_path: Path to the Python script defining the registry
        registry_name: Name of the registry variable. Defaults to ``FUNCTIONS``

    Returns:
        Mapping of function names to callables

    Raises:
        ImportError: If the module cannot be imported
        ValueError: If the registry variable does not exist
        TypeError: If the variable is not a mapping of callables

    """
    module_data = get_module_data_from_path(script_path)
    sys.path.insert(0, str(module_data.extra_sys_path))

    try:
        module = importlib.import_module(module_data.module_import_str)
    except (ImportError, ValueError):
        logger.exception("Import error")
        logger.warning("Ensure all the package directories have an __init__.py file")
        raise

    name = registry_name or DEFAULT_REGISTRY_NAME
    if not hasattr(module, name):
        msg = f"Could not find function registry '{name}' in {module_data.module_import_str}"
        raise ValueError(msg)
    logger.debug("Found function registry: %s", name)
    return _check_registry(getattr(module, name), f"'{name}' in {module_data.module_import_str}")


def load_functions_from_module_path(module_path: str) -> FunctionRegistry:
    """Load a function registry from a module path (e.g., 'mypkg.functions:FUNCTIONS').

    Raises:
        ValueError: If module path format is invalid
        TypeError: If the variable is not a mapping of callables

    """
    if ":" not in module_path:
        msg = "Module path must be in format 'module.path:variable_name'"
        raise ValueError(msg)

    module_name, registry_name = module_path.split(":", 1)
    module = importlib.import_module(module_name)
    return _check_registry(getattr(module, registry_name), f"'{registry_name}' in module '{module_name}'")


def load_functions_from_source(source: FunctionsSource) -> FunctionRegistry:
    """Load a function registry from a FunctionsSource (script or module)."""
    from .config import ModuleSource, ScriptSource  # noqa: PLC0415

    match source:
        case ScriptSource(script=script, name=name):
            return load_functions_from_script(script, name)
        case ModuleSource(module_path=module_path):
            return load_functions_from_module_path(module_path)
