"""
Installation ordering — dependency-respecting order over service instances.

Pure functions, no I/O.  Dependencies are matched by display name;
names that match nothing in the candidate set are assumed to be
satisfied outside this run and are ignored.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, Sequence, TypeVar

from homestack.core.errors import CircularDependencyError


class Orderable(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def is_core(self) -> bool: ...

    @property
    def dependencies(self) -> tuple[str, ...]: ...


T = TypeVar("T", bound=Orderable)


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


def resolve_installation_order(instances: Sequence[T]) -> list[T]:
    """Order instances so every dependency precedes its dependents.

    Depth-first with three-colour marking.  Roots are visited core
    first, then optional, each in input order, so the result is
    deterministic for a fixed input.

    Raises:
        CircularDependencyError: the dependency graph has a cycle. The
            error carries the cycle path, first node repeated at the end.
    """
    by_name: dict[str, T] = {}
    for instance in instances:
        by_name.setdefault(instance.name, instance)

    marks: dict[str, _Mark] = {name: _Mark.UNVISITED for name in by_name}
    ordered: list[T] = []
    path: list[str] = []

    def visit(instance: T) -> None:
        mark = marks[instance.name]
        if mark is _Mark.DONE:
            return
        if mark is _Mark.IN_PROGRESS:
            start = path.index(instance.name)
            raise CircularDependencyError([*path[start:], instance.name])

        marks[instance.name] = _Mark.IN_PROGRESS
        path.append(instance.name)
        for dep_name in instance.dependencies:
            dep = by_name.get(dep_name)
            if dep is not None:
                visit(dep)
        path.pop()
        marks[instance.name] = _Mark.DONE
        ordered.append(instance)

    roots = [i for i in by_name.values() if i.is_core] + [i for i in by_name.values() if not i.is_core]
    for instance in roots:
        visit(instance)

    return ordered


def unmet_dependencies(instances: Sequence[Orderable]) -> dict[str, list[str]]:
    """Dependencies named by an instance but absent from the set.

    Not an error: reported so the operator knows which services the run
    assumes are already available.
    """
    names = {i.name for i in instances}
    unmet: dict[str, list[str]] = {}
    for instance in instances:
        missing = [d for d in instance.dependencies if d not in names]
        if missing:
            unmet[instance.name] = missing
    return unmet
