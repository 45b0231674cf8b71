"""Dependency ordering of graph nodes."""

from __future__ import annotations

import heapq
from collections.abc import Iterable, Sequence

from orbita.graph import GraphEdge


class CycleError(ValueError):
    """Raised when the nodes cannot be ordered because edges form a cycle."""

    def __init__(self, unresolved: Sequence[str]) -> None:
        self.unresolved = tuple(unresolved)
        super().__init__(
            "Cannot order nodes, the graph contains a cycle through: "
            + ", ".join(self.unresolved)
        )


def dependency_order(node_ids: Sequence[str], edges: Iterable[GraphEdge]) -> list[str]:
    """Order *node_ids* so every edge's source precedes its target.

    Ties are broken by position in *node_ids*, so the result is stable for a
    given input.  A self-loop counts as a cycle.  Edges naming unknown nodes
    are ignored.

    Raises:
        CycleError: some nodes could not be ordered; they are listed in
            insertion order on the exception.
    """
    index = {node_id: i for i, node_id in enumerate(node_ids)}
    successors: list[list[int]] = [[] for _ in node_ids]
    in_degree = [0] * len(node_ids)
    blocked: set[int] = set()

    for edge in edges:
        src = index.get(edge.source)
        dst = index.get(edge.target)
        if src is None or dst is None:
            continue
        if src == dst:
            blocked.add(src)
            continue
        successors[src].append(dst)
        in_degree[dst] += 1

    ready = [i for i, degree in enumerate(in_degree) if degree == 0 and i not in blocked]
    heapq.heapify(ready)
    ordered: list[int] = []
    while ready:
        current = heapq.heappop(ready)
        ordered.append(current)
        for nxt in successors[current]:
            in_degree[nxt] -= 1
            if in_degree[nxt] == 0 and nxt not in blocked:
                heapq.heappush(ready, nxt)

    if len(ordered) < len(node_ids):
        done = set(ordered)
        raise CycleError([node_ids[i] for i in range(len(node_ids)) if i not in done])
    return [node_ids[i] for i in ordered]


__all__ = ["CycleError", "dependency_order"]
