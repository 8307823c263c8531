"""Tests for parameter resolvers."""

import pytest

from evalstage import MapParameters, ParameterError, Parameters


def test_get_existing() -> None:
    params = MapParameters({"x": 1.5}, name="sensor")
    assert params.get("x") == 1.5
    assert params.get("name") == "sensor"


def test_keyword_overrides_mapping() -> None:
    assert MapParameters({"x": 1}, x=2).get("x") == 2


def test_missing_raises_parameter_error() -> None:
    with pytest.raises(ParameterError, match="^No parameter 'y' found.$"):
        MapParameters(x=1).get("y")


def test_absent_value_is_returned() -> None:
    assert MapParameters(x=None).get("x") is None


def test_copies_the_mapping() -> None:
    values = {"x": 1}
    params = MapParameters(values)
    values["x"] = 2
    values["y"] = 3
    assert params.get("x") == 1
    assert "y" not in params
    assert len(params) == 1


def test_satisfies_protocol() -> None:
    assert isinstance(MapParameters(), Parameters)


def test_custom_resolver_satisfies_protocol() -> None:
    class Upper:
        def get(self, name: str) -> str:
            return name.upper()

    assert isinstance(Upper(), Parameters)


def test_repr() -> None:
    assert repr(MapParameters(x=1)) == "MapParameters({'x': 1})"
