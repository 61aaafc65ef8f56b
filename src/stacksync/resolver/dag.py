"""DAG resolution — which stacks are needed, in which order, and who pulled them in."""

from __future__ import annotations

import heapq
import logging
from collections import deque
from collections.abc import Iterable, Mapping, Sequence

from stacksync.core.errors import ResolutionError
from stacksync.core.models import CatalogEntry, Resolution

logger = logging.getLogger(__name__)

Catalog = Mapping[str, CatalogEntry]

# DFS node states for cycle extraction
_UNVISITED, _IN_PROGRESS, _DONE = 0, 1, 2


def catalog_from_depends(depends: Mapping[str, Iterable[str]]) -> dict[str, CatalogEntry]:
    """Build a catalog mapping from ``{id: [dependency, ...]}``."""
    return {
        stack_id: CatalogEntry(id=stack_id, depends=tuple(deps))
        for stack_id, deps in depends.items()
    }


def resolve(catalog: Catalog, explicit_ids: Sequence[str]) -> Resolution:
    """Resolve explicit stacks plus their transitive dependencies.

    Walks ``depends`` edges breadth-first from ``explicit_ids`` (in the
    given order) to find the needed set, then orders it with Kahn's
    algorithm, always emitting the lexicographically smallest ready id.

    Raises:
        ResolutionError: NOT_FOUND for an unknown explicit id,
            MISSING_DEPENDENCY for an edge to an unknown id,
            CIRCULAR_DEPENDENCY when the needed subgraph has a cycle.
    """
    for stack_id in explicit_ids:
        if stack_id not in catalog:
            raise ResolutionError.not_found(stack_id)

    explicit = frozenset(explicit_ids)
    needed: set[str] = set()
    dependency_of: dict[str, str] = {}

    queue: deque[str] = deque(explicit_ids)
    while queue:
        current = queue.popleft()
        if current in needed:
            continue
        needed.add(current)

        for dep in catalog[current].depends:
            if dep not in catalog:
                raise ResolutionError.missing_dependency(current, dep)
            # First requester seen in traversal order keeps the attribution
            if dep not in explicit and dep not in dependency_of:
                dependency_of[dep] = current
            queue.append(dep)

    # Build in-degree and adjacency restricted to the needed set
    in_degree: dict[str, int] = {stack_id: 0 for stack_id in needed}
    dependents: dict[str, list[str]] = {stack_id: [] for stack_id in needed}
    for stack_id in needed:
        for dep in catalog[stack_id].depends:
            if dep in needed:
                dependents[dep].append(stack_id)
                in_degree[stack_id] += 1

    ready = [stack_id for stack_id, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)

    order: list[str] = []
    while ready:
        stack_id = heapq.heappop(ready)
        order.append(stack_id)
        for dependent in dependents[stack_id]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, dependent)

    if len(order) != len(needed):
        raise ResolutionError.circular_dependency(find_cycle(catalog, needed))

    return Resolution(order=order, explicit=explicit, dependency_of=dependency_of)


def find_cycle(catalog: Catalog, needed: Iterable[str]) -> list[str]:
    """Return one cycle among ``needed`` as ``[a, b, ..., a]``, or [] if none.

    Depth-first search starting from each unvisited id in lexicographic
    order, following ``depends`` in declared order. Uses an explicit stack
    so pathological catalogs cannot hit the recursion limit.
    """
    needed = set(needed)
    state: dict[str, int] = dict.fromkeys(needed, _UNVISITED)

    for start in sorted(needed):
        if state[start] != _UNVISITED:
            continue

        path: list[str] = [start]
        state[start] = _IN_PROGRESS
        stack = [iter(catalog[start].depends)]

        while stack:
            node = path[-1]
            for dep in stack[-1]:
                if dep not in needed:
                    continue
                if state[dep] == _IN_PROGRESS:
                    return path[path.index(dep):] + [dep]
                if state[dep] == _UNVISITED:
                    state[dep] = _IN_PROGRESS
                    path.append(dep)
                    stack.append(iter(catalog[dep].depends))
                    break
            else:
                stack.pop()
                path.pop()
                state[node] = _DONE

    return []


def resolve_removal(
    catalog: Catalog,
    current_explicit: Sequence[str],
    removing: Iterable[str],
    *,
    strict: bool = False,
) -> list[str]:
    """Stacks that would no longer be needed after removing ``removing``.

    Resolves the current explicit set and the remaining one independently
    and returns, sorted, the ids only the current resolution needs
    (excluding the stacks being removed themselves).

    A failed resolution (e.g. a stack deleted from the catalog since it was
    installed) yields no orphans so the removal itself can go ahead. Pass
    ``strict=True`` to get the ResolutionError instead.
    """
    removing_set = set(removing)
    remaining = [stack_id for stack_id in current_explicit if stack_id not in removing_set]

    try:
        after = resolve(catalog, remaining)
        before = resolve(catalog, current_explicit)
    except ResolutionError as e:
        if strict:
            raise
        logger.warning("Orphan detection skipped, catalog could not be resolved: %s", e)
        return []

    still_needed = set(after.order)
    return sorted(
        stack_id
        for stack_id in before.order
        if stack_id not in still_needed and stack_id not in removing_set
    )
