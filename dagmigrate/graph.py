"""
dagmigrate - Dependency Graph.

Directed acyclic graph of registered migrations. Nodes live in a growable
list and are referenced by their integer index (NodeRef); edges point from a
dependency to its dependent and are kept as adjacency lists of indices, so
nodes never reference each other directly.
"""

import heapq
from typing import Dict, Iterator, List, Set, Tuple

from dagmigrate.exceptions import CycleError
from dagmigrate.migration import Migration

NodeRef = int


class DependencyGraph:
    """
    Acyclic dependency graph keyed by node index.

    The graph guarantees structural validity: every edge joins two existing
    nodes and no edge that would close a cycle is ever stored. Uniqueness of
    migration ids is the caller's responsibility.
    """

    def __init__(self) -> None:
        self._nodes: List[Migration] = []
        self._outgoing: List[List[NodeRef]] = []  # dependency -> dependents
        self._incoming: List[List[NodeRef]] = []  # dependent -> dependencies

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[NodeRef]:
        return iter(range(len(self._nodes)))

    def copy(self) -> "DependencyGraph":
        """Return an independent copy sharing the migration objects."""
        clone = DependencyGraph()
        clone._nodes = list(self._nodes)
        clone._outgoing = [list(children) for children in self._outgoing]
        clone._incoming = [list(parents) for parents in self._incoming]
        return clone

    # ==================== MUTATION ====================

    def add_node(self, migration: Migration) -> NodeRef:
        """Insert a node and return its reference."""
        self._nodes.append(migration)
        self._outgoing.append([])
        self._incoming.append([])
        return len(self._nodes) - 1

    def add_edge(self, source: NodeRef, target: NodeRef) -> None:
        """
        Insert a directed edge from source (dependency) to target (dependent).

        Args:
            source: The dependency node
            target: The dependent node

        Raises:
            CycleError: If the edge would create a cycle. The graph is not
                modified in that case.
            IndexError: If either reference is not a node of this graph
        """
        self._check_ref(source)
        self._check_ref(target)

        if target in self._outgoing[source]:
            return

        if source == target or self._reaches(target, source):
            raise CycleError(
                from_id=self._nodes[source].id,
                to_id=self._nodes[target].id,
            )

        self._outgoing[source].append(target)
        self._incoming[target].append(source)

    # ==================== QUERIES ====================

    def node(self, ref: NodeRef) -> Migration:
        """Get the migration stored at a node."""
        self._check_ref(ref)
        return self._nodes[ref]

    def nodes(self) -> List[Migration]:
        """All migrations in insertion order."""
        return list(self._nodes)

    def edges(self) -> List[Tuple[NodeRef, NodeRef]]:
        """All edges as (dependency, dependent) pairs."""
        return [
            (source, target)
            for source, targets in enumerate(self._outgoing)
            for target in targets
        ]

    def parents(self, ref: NodeRef) -> List[NodeRef]:
        """Direct dependencies of a node."""
        self._check_ref(ref)
        return list(self._incoming[ref])

    def children(self, ref: NodeRef) -> List[NodeRef]:
        """Direct dependents of a node."""
        self._check_ref(ref)
        return list(self._outgoing[ref])

    def sources(self) -> Set[NodeRef]:
        """Nodes without incoming edges (no dependencies)."""
        return {ref for ref, parents in enumerate(self._incoming) if not parents}

    def sinks(self) -> Set[NodeRef]:
        """Nodes without outgoing edges (no dependents)."""
        return {ref for ref, children in enumerate(self._outgoing) if not children}

    def ancestors(self, ref: NodeRef) -> Set[NodeRef]:
        """The node and everything it transitively depends on."""
        self._check_ref(ref)
        return self._walk(ref, self._incoming)

    def descendants(self, ref: NodeRef) -> Set[NodeRef]:
        """The node and everything transitively depending on it."""
        self._check_ref(ref)
        return self._walk(ref, self._outgoing)

    def toposort(self) -> List[NodeRef]:
        """
        Order all nodes so that every dependency precedes its dependents.

        Uses Kahn's algorithm. Ties between independent nodes are broken by
        insertion order, so the result is deterministic for a given graph.

        Raises:
            RuntimeError: If not all nodes could be ordered. The graph is
                kept acyclic on insertion, so this means it was corrupted.
        """
        in_degree: Dict[NodeRef, int] = {
            ref: len(parents) for ref, parents in enumerate(self._incoming)
        }
        ready = [ref for ref, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)

        order: List[NodeRef] = []
        while ready:
            ref = heapq.heappop(ready)
            order.append(ref)
            for child in self._outgoing[ref]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    heapq.heappush(ready, child)

        if len(order) != len(self._nodes):
            remaining = sorted(set(in_degree) - set(order))
            raise RuntimeError(
                f"Impossible: dependency graph contains a cycle through nodes {remaining}"
            )

        return order

    # ==================== INTERNALS ====================

    def _check_ref(self, ref: NodeRef) -> None:
        if not 0 <= ref < len(self._nodes):
            raise IndexError(f"Node {ref} is not part of this graph")

    def _reaches(self, start: NodeRef, goal: NodeRef) -> bool:
        """Depth-first reachability along outgoing edges."""
        stack = [start]
        seen = {start}
        while stack:
            ref = stack.pop()
            if ref == goal:
                return True
            for child in self._outgoing[ref]:
                if child not in seen:
                    seen.add(child)
                    stack.append(child)
        return False

    @staticmethod
    def _walk(start: NodeRef, adjacency: List[List[NodeRef]]) -> Set[NodeRef]:
        seen = {start}
        stack = [start]
        while stack:
            ref = stack.pop()
            for neighbor in adjacency[ref]:
                if neighbor not in seen:
                    seen.add(neighbor)
                    stack.append(neighbor)
        return seen
