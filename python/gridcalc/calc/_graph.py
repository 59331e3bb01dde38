"""Bidirectional dependency graph over opaque keys."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator


class DependencyGraph:
    """A set of ordered pairs ``(s, t)`` meaning "t depends on s".

    ``t`` is a *dependent* of ``s`` and ``s`` is a *dependee* of ``t``: ``s``
    must be evaluated before ``t``.  Both directions are indexed, so either
    side of a key can be listed without scanning the whole graph.  The graph
    knows nothing about cells or cycles.

    Example::

        g = DependencyGraph()
        g.add_dependency("a", "b")
        g.add_dependency("a", "c")
        g.get_dependents("a")    # frozenset({'b', 'c'})
        g.get_dependees("b")     # frozenset({'a'})
        g["b"]                   # 1 (number of dependees of 'b')
        g.size                   # 2
    """

    __slots__ = ("_dependents", "_dependees", "_size")

    def __init__(self) -> None:
        # key -> keys that depend on it
        self._dependents: dict[Hashable, set[Hashable]] = {}
        # key -> keys it depends on (reverse edges)
        self._dependees: dict[Hashable, set[Hashable]] = {}
        self._size = 0

    @property
    def size(self) -> int:
        """Number of ordered pairs in the graph."""
        return self._size

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, s: Hashable) -> int:
        """Number of dependees of *s*."""
        return len(self._dependees.get(s, ()))

    def __iter__(self) -> Iterator[tuple[Hashable, Hashable]]:
        """Iterate over every ``(dependee, dependent)`` pair."""
        for s, targets in self._dependents.items():
            for t in targets:
                yield (s, t)

    def __repr__(self) -> str:
        return f"<DependencyGraph size={self._size}>"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_dependents(self, s: Hashable) -> bool:
        return bool(self._dependents.get(s))

    def has_dependees(self, s: Hashable) -> bool:
        return bool(self._dependees.get(s))

    def get_dependents(self, s: Hashable) -> frozenset[Hashable]:
        """Keys that depend on *s* (empty if none)."""
        return frozenset(self._dependents.get(s, ()))

    def get_dependees(self, s: Hashable) -> frozenset[Hashable]:
        """Keys that *s* depends on (empty if none)."""
        return frozenset(self._dependees.get(s, ()))

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def add_dependency(self, s: Hashable, t: Hashable) -> None:
        """Record that *t* depends on *s*.  No-op if the pair already exists."""
        targets = self._dependents.setdefault(s, set())
        if t in targets:
            return
        targets.add(t)
        self._dependees.setdefault(t, set()).add(s)
        self._size += 1

    def remove_dependency(self, s: Hashable, t: Hashable) -> None:
        """Remove the pair ``(s, t)`` if present."""
        targets = self._dependents.get(s)
        if not targets or t not in targets:
            return
        targets.discard(t)
        if not targets:
            del self._dependents[s]
        sources = self._dependees[t]
        sources.discard(s)
        if not sources:
            del self._dependees[t]
        self._size -= 1

    def replace_dependents(self, s: Hashable, new_dependents: Iterable[Hashable]) -> None:
        """Replace every pair ``(s, *)`` with ``(s, t)`` for each *t* in *new_dependents*."""
        new = list(new_dependents)
        for t in self.get_dependents(s):
            self.remove_dependency(s, t)
        for t in new:
            self.add_dependency(s, t)

    def replace_dependees(self, s: Hashable, new_dependees: Iterable[Hashable]) -> None:
        """Replace every pair ``(*, s)`` with ``(t, s)`` for each *t* in *new_dependees*."""
        new = list(new_dependees)
        for t in self.get_dependees(s):
            self.remove_dependency(t, s)
        for t in new:
            self.add_dependency(t, s)
