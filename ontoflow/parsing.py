"""Shared YAML parsing helpers and the typed parse result."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, TypeVar

import yaml

T = TypeVar("T")


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Either a parsed value or a non-empty, ordered list of error strings.

    Callers never receive partially valid data: ``data`` is only set when
    ``success`` is true.
    """

    success: bool
    data: T | None = None
    errors: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls, data: T) -> "ParseResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, errors: list[str]) -> "ParseResult[T]":
        if not errors:
            errors = ["Unknown parsing error"]
        return cls(success=False, errors=list(errors))

    def unwrap(self, what: str = "document") -> T:
        """Return the parsed value or raise ValueError listing every error."""
        if not self.success:
            raise ValueError(f"Failed to parse {what}: {'; '.join(self.errors)}")
        return self.data  # type: ignore[return-value]


def coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def coerce_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def load_yaml_text(text: str) -> tuple[Any, str | None]:
    """Safe-load YAML text, returning (data, error message)."""
    try:
        return yaml.safe_load(text), None
    except yaml.YAMLError as exc:
        return None, f"Invalid YAML: {exc}"


def read_yaml_file(path: Path) -> Any:
    """Read a YAML file; raises ValueError on malformed content."""
    data, error = load_yaml_text(path.read_text(encoding="utf-8"))
    if error:
        raise ValueError(f"{path}: {error}")
    return data
