"""Toggle state: which anchors currently want which dependents visible."""

from __future__ import annotations

from typing import Iterable, Iterator


class ToggleState:
    """Set of (anchor, dependent) pairs kept as an anchor -> dependents mapping.

    A dependent is wanted while at least one anchor references it, so
    removing one pair never hides a dependent another anchor still holds.
    Owned by the caller and passed explicitly into every topology query.
    """

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()):
        self._by_anchor: dict[str, set[str]] = {}
        for anchor, dependent in pairs:
            self._by_anchor.setdefault(anchor, set()).add(dependent)

    def toggle(self, anchor_id: str, dependent_id: str) -> bool:
        """Flip membership of the pair; returns True if it is now on."""
        dependents = self._by_anchor.setdefault(anchor_id, set())
        if dependent_id in dependents:
            dependents.discard(dependent_id)
            if not dependents:
                del self._by_anchor[anchor_id]
            return False
        dependents.add(dependent_id)
        return True

    def set(self, anchor_id: str, dependent_id: str, on: bool) -> None:
        if self.is_on(anchor_id, dependent_id) != on:
            self.toggle(anchor_id, dependent_id)

    def is_on(self, anchor_id: str, dependent_id: str) -> bool:
        return dependent_id in self._by_anchor.get(anchor_id, ())

    def dependents_of(self, anchor_id: str) -> set[str]:
        return set(self._by_anchor.get(anchor_id, ()))

    def anchors_for(self, dependent_id: str) -> set[str]:
        return {a for a, deps in self._by_anchor.items() if dependent_id in deps}

    def visible_dependents(self) -> set[str]:
        """Dependents referenced by at least one pair."""
        result: set[str] = set()
        for deps in self._by_anchor.values():
            result |= deps
        return result

    def pairs(self) -> list[tuple[str, str]]:
        return sorted((a, d) for a, deps in self._by_anchor.items() for d in deps)

    def copy(self) -> "ToggleState":
        return ToggleState(self.pairs())

    def clear(self) -> None:
        self._by_anchor.clear()

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self.pairs())

    def __len__(self) -> int:
        return sum(len(deps) for deps in self._by_anchor.values())

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return self.is_on(pair[0], pair[1])

    def __repr__(self) -> str:
        return f"ToggleState({self.pairs()!r})"
