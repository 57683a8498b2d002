from __future__ import annotations

import time
from collections import deque
from collections.abc import Iterable

from .k_shortest import Adjacency, PathResult, yen_k_shortest_paths_with_stats
from .logging_utils import log_event
from .transits import TransitEdge


class RouteGraph:
    """Undirected, simple, weighted graph of transits keyed by star name.

    Built once per search and not mutated afterwards.
    """

    def __init__(self) -> None:
        self._edges: dict[str, dict[str, float]] = {}
        self._component_by_node: dict[str, int] = {}
        self._adjacency: Adjacency = {}

    @classmethod
    def build(cls, transits: Iterable[TransitEdge]) -> RouteGraph:
        graph = cls()
        skipped = 0
        for transit in transits:
            if transit is None or not transit.valid or transit.is_self_loop:
                skipped += 1
                continue
            graph._add_edge(transit.source.name, transit.target.name, float(transit.distance))
        graph._freeze()
        log_event(
            "route_graph_built",
            node_count=graph.node_count,
            edge_count=graph.edge_count,
            skipped_transits=skipped,
        )
        return graph

    def _add_edge(self, a: str, b: str, distance: float) -> None:
        # Parallel transits collapse onto the shorter one.
        current = self._edges.get(a, {}).get(b)
        if current is not None and current <= distance:
            return
        self._edges.setdefault(a, {})[b] = distance
        self._edges.setdefault(b, {})[a] = distance

    def _freeze(self) -> None:
        self._adjacency = {
            node: tuple(sorted(neighbours.items()))
            for node, neighbours in sorted(self._edges.items())
        }
        component = 0
        for node in self._adjacency:
            if node in self._component_by_node:
                continue
            queue = deque([node])
            self._component_by_node[node] = component
            while queue:
                current = queue.popleft()
                for nxt, _cost in self._adjacency[current]:
                    if nxt not in self._component_by_node:
                        self._component_by_node[nxt] = component
                        queue.append(nxt)
            component += 1

    @property
    def node_count(self) -> int:
        return len(self._adjacency)

    @property
    def edge_count(self) -> int:
        return sum(len(neighbours) for neighbours in self._adjacency.values()) // 2

    @property
    def component_count(self) -> int:
        return len(set(self._component_by_node.values()))

    @property
    def adjacency(self) -> Adjacency:
        return dict(self._adjacency)

    def has_node(self, name: str) -> bool:
        return name in self._adjacency

    def edge_distance(self, a: str, b: str) -> float | None:
        return self._edges.get(a, {}).get(b)

    def is_connected(self, a: str, b: str) -> bool:
        ca = self._component_by_node.get(a)
        cb = self._component_by_node.get(b)
        return ca is not None and ca == cb

    def k_shortest_paths(
        self,
        origin: str,
        destination: str,
        k: int,
        *,
        max_hops: int = 220,
        deadline_s: float | None = None,
    ) -> tuple[PathResult, ...]:
        """Up to ``k`` simple paths, ascending by total distance.

        Equal totals are ordered by fewer hops, then by the star-name sequence.
        Returns an empty tuple when the endpoints are not connected.
        """
        if not self.is_connected(origin, destination):
            return ()
        deadline = time.monotonic() + deadline_s if deadline_s else None
        paths, stats = yen_k_shortest_paths_with_stats(
            adjacency=self._adjacency,
            start=origin,
            goal=destination,
            k=k,
            max_hops=max_hops,
            deadline_monotonic_s=deadline,
        )
        log_event(
            "route_graph_k_shortest",
            origin=origin,
            destination=destination,
            k=k,
            path_count=len(paths),
            **stats,
        )
        return paths
