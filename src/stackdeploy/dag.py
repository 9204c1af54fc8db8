# dag.py
from __future__ import annotations

import heapq
from typing import Dict, List, Sequence, Set, Tuple

from .errors import CycleError, DuplicateStackError, MissingDependencyError
from .model import StackDescriptor


def build_dag(
    stacks: Sequence[StackDescriptor],
    *,
    files_specified: bool = False,
) -> Tuple[Dict[str, StackDescriptor], Dict[str, Set[str]], Dict[str, int]]:
    """
    Build a DAG from host-filtered stack descriptors.

    Requires:
      - stack.name: str (unique)
      - stack.depends_on: names of stacks that must be deployed BEFORE this one

    Returns:
      by_name: name -> descriptor
      adj:     dependency -> set of dependents
      indeg:   number of dependencies per stack
    """
    by_name: Dict[str, StackDescriptor] = {}
    for stack in stacks:
        seen = by_name.get(stack.name)
        if seen is not None:
            raise DuplicateStackError(stack.name, seen.origin, stack.origin)
        by_name[stack.name] = stack

    adj: Dict[str, Set[str]] = {name: set() for name in by_name}
    indeg: Dict[str, int] = {name: 0 for name in by_name}

    for stack in stacks:
        for dep in stack.depends_on:
            if dep not in by_name:
                raise MissingDependencyError(stack.name, dep, files_specified)
            # Edge dep -> stack.name (dep must be deployed before stack)
            if stack.name not in adj[dep]:
                adj[dep].add(stack.name)
                indeg[stack.name] += 1

    return by_name, adj, indeg


def _cycle_members(adj: Dict[str, Set[str]], stuck: Set[str]) -> List[str]:
    # Peel off stuck nodes that have no stuck dependents; what is left
    # lies on (or between) cycles.
    remaining = set(stuck)
    changed = True
    while changed:
        changed = False
        for node in sorted(remaining):
            if not (adj.get(node, set()) & remaining):
                remaining.discard(node)
                changed = True
    return sorted(remaining or stuck)


def topo_order(adj: Dict[str, Set[str]], indeg: Dict[str, int]) -> List[str]:
    """
    Launch order: every dependency comes before its dependents.

    Ties between stacks that are ready at the same time are broken by
    name, so the same input always gives the same order.
    """
    indeg = dict(indeg)  # copy (we mutate it)
    ready = [n for n, d in indeg.items() if d == 0]
    heapq.heapify(ready)

    order: List[str] = []
    while ready:
        node = heapq.heappop(ready)
        order.append(node)
        for child in adj.get(node, set()):
            indeg[child] -= 1
            if indeg[child] == 0:
                heapq.heappush(ready, child)

    if len(order) != len(indeg):
        stuck = {n for n, d in indeg.items() if d > 0}
        raise CycleError(_cycle_members(adj, stuck))

    return order


def reverse_order(order: Sequence[str]) -> List[str]:
    """Teardown order: the launch order, reversed."""
    return list(reversed(order))


def sequence_stacks(
    stacks: Sequence[StackDescriptor],
    *,
    files_specified: bool = False,
) -> List[StackDescriptor]:
    """Validate `stacks` and return them in launch order."""
    by_name, adj, indeg = build_dag(stacks, files_specified=files_specified)
    return [by_name[name] for name in topo_order(adj, indeg)]
