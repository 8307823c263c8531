"""Tests for function registry discovery."""

import sys
from pathlib import Path

import pytest

from evalstage._cli.config import ModuleSource, ScriptSource
from evalstage._cli.discover import (
    get_module_data_from_path,
    load_functions_from_module_path,
    load_functions_from_script,
    load_functions_from_source,
)

REGISTRY_SCRIPT = """
def double(x):
    return x * 2


FUNCTIONS = {"double": double}
CUSTOM = {"triple": lambda x: x * 3}
BROKEN = {"not_callable": 1}
NOT_A_MAPPING = [double]
"""


@pytest.fixture(autouse=True)
def _restore_sys_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "path", list(sys.path))


def write_script(directory: Path, name: str) -> Path:
    script = directory / f"{name}.py"
    script.write_text(REGISTRY_SCRIPT)
    return script


class TestModuleData:
    def test_plain_script(self, tmp_path: Path) -> None:
        script = write_script(tmp_path, "plain_functions")

        data = get_module_data_from_path(script)

        assert data.module_import_str == "plain_functions"
        assert data.extra_sys_path == tmp_path.resolve()

    def test_script_inside_package(self, tmp_path: Path) -> None:
        package = tmp_path / "registry_pkg"
        package.mkdir()
        (package / "__init__.py").write_text("")
        script = write_script(package, "functions")

        data = get_module_data_from_path(script)

        assert data.module_import_str == "registry_pkg.functions"
        assert data.extra_sys_path == tmp_path.resolve()


class TestLoadFromScript:
    def test_default_registry_name(self, tmp_path: Path) -> None:
        script = write_script(tmp_path, "default_name_functions")

        registry = load_functions_from_script(script)

        assert set(registry) == {"double"}
        assert registry["double"](2) == 4

    def test_explicit_registry_name(self, tmp_path: Path) -> None:
        script = write_script(tmp_path, "explicit_name_functions")

        registry = load_functions_from_script(script, "CUSTOM")

        assert registry["triple"](2) == 6

    def test_missing_registry(self, tmp_path: Path) -> None:
        script = write_script(tmp_path, "missing_registry_functions")

        with pytest.raises(ValueError, match="Could not find function registry 'NOPE'"):
            load_functions_from_script(script, "NOPE")

    def test_entry_not_callable(self, tmp_path: Path) -> None:
        script = write_script(tmp_path, "broken_entry_functions")

        with pytest.raises(TypeError, match="'not_callable' is not a named callable"):
            load_functions_from_script(script, "BROKEN")

    def test_registry_not_a_mapping(self, tmp_path: Path) -> None:
        script = write_script(tmp_path, "list_registry_functions")

        with pytest.raises(TypeError, match="is not a mapping"):
            load_functions_from_script(script, "NOT_A_MAPPING")


class TestLoadFromModulePath:
    def test_module_path(self, tmp_path: Path) -> None:
        write_script(tmp_path, "module_path_functions")
        sys.path.insert(0, str(tmp_path))

        registry = load_functions_from_module_path("module_path_functions:CUSTOM")

        assert set(registry) == {"triple"}

    def test_missing_colon(self) -> None:
        with pytest.raises(ValueError, match="module.path:variable_name"):
            load_functions_from_module_path("module_path_functions")


class TestLoadFromSource:
    def test_script_source(self, tmp_path: Path) -> None:
        script = write_script(tmp_path, "script_source_functions")

        registry = load_functions_from_source(ScriptSource(script=script))

        assert "double" in registry

    def test_module_source(self, tmp_path: Path) -> None:
        write_script(tmp_path, "module_source_functions")
        sys.path.insert(0, str(tmp_path))

        registry = load_functions_from_source(ModuleSource(module_path="module_source_functions:FUNCTIONS"))

        assert "double" in registry
