"""Parameter resolvers used by parameter stages."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ._errors import ParameterError

if TYPE_CHECKING:
    from collections.abc import Mapping


@runtime_checkable
class Parameters(Protocol):
    """Resolves a parameter name to a value.

    Raising from ``get`` aborts the evaluation with a ``ParameterError``.
    """

    def get(self, name: str) -> Any: ...


class MapParameters:
    """Parameters backed by a private copy of a mapping.

    Example:
        >>> params = MapParameters({"x": 1, "name": "sensor"})
        >>> params.get("name")
        'sensor'

    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None, /, **kwargs: Any) -> None:
        self._values: dict[str, Any] = {**(values or {}), **kwargs}

    def get(self, name: str) -> Any:
        """Return the value of ``name``.

        Raises:
            ParameterError: If ``name`` is not present.

        """
        try:
            return self._values[name]
        except KeyError:
            raise ParameterError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"MapParameters({self._values!r})"


EMPTY_PARAMETERS = MapParameters()
