"""Resolve the execution order of registered scenarios."""

from __future__ import annotations

import heapq
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from itertools import combinations
from typing import Optional

from ..errors import ScenarioDefinitionError
from ..models import Scenario

# Unkeyed scenarios run after every keyed one, like JUnit's Order.DEFAULT.
DEFAULT_ORDER = 2**30


@dataclass(frozen=True)
class PlanEntry:
    """A registered scenario with its declaration position and ordering key."""

    index: int
    scenario: Scenario
    order: Optional[int] = None

    @property
    def name(self) -> str:
        return self.scenario.name

    @property
    def sort_key(self) -> tuple[int, int]:
        order = self.order if self.order is not None else self.scenario.order
        return (DEFAULT_ORDER if order is None else order, self.index)


def resolve_order(
    entries: Sequence[PlanEntry],
    selected: Optional[Iterable[str]] = None,
) -> list[Scenario]:
    """Return scenarios in an order that honours dependencies and ordering keys.

    Dependencies always win; among scenarios whose dependencies are done the
    lowest ordering key goes first, then declaration order.
    """

    by_name = {entry.name: entry for entry in entries}
    for entry in entries:
        for dependency in entry.scenario.depends_on:
            if dependency not in by_name:
                raise ScenarioDefinitionError(
                    f"{entry.name} depends on unknown scenario {dependency!r}"
                )
            if dependency == entry.name:
                raise ScenarioDefinitionError(f"{entry.name} depends on itself")

    ancestors = {entry.name: _ancestors(entry.name, by_name) for entry in entries}
    _check_shared_state(entries, ancestors)

    included = set(by_name)
    if selected is not None:
        wanted = list(selected)
        unknown = [name for name in wanted if name not in by_name]
        if unknown:
            raise ScenarioDefinitionError(f"Unknown scenario(s) selected: {', '.join(unknown)}")
        included = set(wanted)
        for name in wanted:
            included |= ancestors[name]

    waiting = {
        name: set(by_name[name].scenario.depends_on) for name in included
    }
    ready = [(by_name[name].sort_key, name) for name, deps in waiting.items() if not deps]
    heapq.heapify(ready)
    ordered: list[Scenario] = []
    while ready:
        _, name = heapq.heappop(ready)
        ordered.append(by_name[name].scenario)
        del waiting[name]
        for other, deps in waiting.items():
            if name in deps:
                deps.discard(name)
                if not deps:
                    heapq.heappush(ready, (by_name[other].sort_key, other))
    if waiting:
        raise ScenarioDefinitionError(
            f"Dependency cycle between scenarios: {', '.join(sorted(waiting))}"
        )
    return ordered


def _ancestors(name: str, by_name: dict[str, PlanEntry]) -> set[str]:
    seen: set[str] = set()
    stack = list(by_name[name].scenario.depends_on)
    while stack:
        current = stack.pop()
        if current in seen or current not in by_name:
            continue
        seen.add(current)
        stack.extend(by_name[current].scenario.depends_on)
    return seen


def _check_shared_state(
    entries: Sequence[PlanEntry],
    ancestors: dict[str, set[str]],
) -> None:
    """Scenarios touching the same site state must be ordered explicitly."""

    for first, second in combinations(entries, 2):
        shared = set(first.scenario.shares) & set(second.scenario.shares)
        if not shared:
            continue
        if first.name in ancestors[second.name] or second.name in ancestors[first.name]:
            continue
        raise ScenarioDefinitionError(
            f"{first.name} and {second.name} share {', '.join(sorted(shared))} "
            "but neither depends on the other"
        )
