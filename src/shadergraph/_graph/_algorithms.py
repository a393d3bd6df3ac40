"""Graph algorithms for node dependency ordering."""

import heapq
from collections import defaultdict
from collections.abc import Collection, Hashable, Mapping


def topological_sort[T: Hashable](successors: Mapping[T, Collection[T]]) -> list[T]:
    """Sort a graph topologically (dependencies before dependents).

    Given a graph represented as a mapping from nodes to their successors
    (nodes that depend on them), return nodes in an order where each node
    appears before all nodes that depend on it. Among the nodes that are ready
    at the same time, the smallest node comes first, so the order only depends
    on the graph, not on mapping iteration order.

    Args:
        successors: Mapping from node to collection of nodes that depend on it.
            An edge (a -> b) means "b depends on a". Nodes must be orderable.

    Returns:
        List of nodes in topological order.

    Raises:
        ValueError: If the graph contains a cycle.

    Example:
        >>> # 3 -> 1 and 2 -> 1: both roots ready, smaller handle first
        >>> topological_sort({3: [1], 2: [1], 1: []})
        [2, 3, 1]

    """
    indegree: defaultdict[T, int] = defaultdict(int)
    for node, deps in successors.items():
        indegree[node] = indegree.get(node, 0)
        for dep in deps:
            indegree[dep] += 1

    heap = [node for node, deg in indegree.items() if deg == 0]
    heapq.heapify(heap)
    order: list[T] = []

    while heap:
        node = heapq.heappop(heap)
        order.append(node)
        for successor in successors.get(node, []):
            indegree[successor] -= 1
            if indegree[successor] == 0:
                heapq.heappush(heap, successor)

    if len(order) != len(indegree):
        msg = "Cycle detected in graph"
        raise ValueError(msg)

    return order
