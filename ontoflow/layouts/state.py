"""Selected layout algorithm and its parameters."""

from __future__ import annotations

from typing import Any, Mapping

from .engine import LayoutConfig, get_default_params, resolve_algorithm


class LayoutState:
    def __init__(self, algorithm: str = "force-directed"):
        self._algorithm = resolve_algorithm(algorithm).value
        self._params = get_default_params(self._algorithm)

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def params(self) -> dict[str, Any]:
        return dict(self._params)

    def set_algorithm(self, algorithm: str) -> None:
        """Switch algorithm; parameters reset to its defaults."""
        self._algorithm = resolve_algorithm(algorithm).value
        self._params = get_default_params(self._algorithm)

    def update_params(self, params: Mapping[str, Any]) -> None:
        self._params.update(params)

    def reset_params(self) -> None:
        self._params = get_default_params(self._algorithm)

    def get_layout_config(self) -> LayoutConfig:
        return LayoutConfig(algorithm=self._algorithm, params=dict(self._params))
