from __future__ import annotations

import heapq
import time
from dataclasses import dataclass

Adjacency = dict[str, tuple[tuple[str, float], ...]]
OrderKey = tuple[float, int, tuple[str, ...]]

# Totals are compared at this precision so 4.0 + 4.0 and 3.0 + 5.0 tie exactly.
_COST_DIGITS = 9


@dataclass(frozen=True)
class PathResult:
    nodes: tuple[str, ...]
    cost: float

    @property
    def hops(self) -> int:
        return max(0, len(self.nodes) - 1)


class PathNotFoundError(ValueError):
    pass


class SearchDeadlineExceeded(PathNotFoundError):
    pass


@dataclass
class _SearchStats:
    explored_states: int = 0
    generated_candidates: int = 0
    termination_reason: str = "k_paths_collected"
    no_path_reason: str = ""

    def as_dict(self) -> dict[str, int | str]:
        return {
            "explored_states": self.explored_states,
            "generated_candidates": self.generated_candidates,
            "termination_reason": self.termination_reason,
            "no_path_reason": self.no_path_reason,
        }


def _order_key(cost: float, nodes: tuple[str, ...]) -> OrderKey:
    """Total order for candidate paths: weight, then fewer hops, then node names."""
    return (round(cost, _COST_DIGITS), len(nodes), nodes)


def _dominates(a: OrderKey, b: OrderKey) -> bool:
    """``a`` is no heavier and no longer than ``b``, and strictly ahead in ``_order_key``."""
    return a[0] <= b[0] and a[1] <= b[1] and a < b


def path_cost(adjacency: Adjacency, nodes: tuple[str, ...]) -> float:
    total = 0.0
    for src, dst in zip(nodes, nodes[1:]):
        cost = dict(adjacency.get(src, ())).get(dst)
        if cost is None:
            raise PathNotFoundError(f"missing edge {src}->{dst}")
        total += cost
    return total


def _check_deadline(deadline_monotonic_s: float | None) -> None:
    if deadline_monotonic_s is not None and time.monotonic() >= deadline_monotonic_s:
        raise SearchDeadlineExceeded("search deadline exceeded")


def _dijkstra_shortest_path(
    adjacency: Adjacency,
    start: str,
    goal: str,
    *,
    stats: _SearchStats,
    banned_nodes: frozenset[str] = frozenset(),
    banned_edges: frozenset[tuple[str, str]] = frozenset(),
    max_hops: int = 220,
    deadline_monotonic_s: float | None = None,
) -> PathResult:
    """Cheapest loopless path within ``max_hops`` under the ``_order_key`` ordering.

    A node keeps every label no other label beats on both weight and hop
    count, so a dearer path with fewer hops survives to satisfy the hop cap.
    Labels carry the whole path, which keeps equal-weight ties stable.
    """
    if start in banned_nodes or goal in banned_nodes:
        raise PathNotFoundError("start/goal blocked")
    if start not in adjacency or goal not in adjacency:
        raise PathNotFoundError("no path")

    origin = _order_key(0.0, (start,))
    frontier: list[tuple[OrderKey, float]] = [(origin, 0.0)]
    labels: dict[str, list[OrderKey]] = {start: [origin]}
    while frontier:
        _check_deadline(deadline_monotonic_s)
        label, cost = heapq.heappop(frontier)
        stats.explored_states += 1
        path = label[2]
        here = path[-1]
        if label not in labels.get(here, ()):
            continue
        if here == goal:
            return PathResult(nodes=path, cost=cost)
        if len(path) > max_hops:
            continue
        for there, weight in adjacency.get(here, ()):
            if there in banned_nodes or there in path or (here, there) in banned_edges:
                continue
            reached = cost + max(0.0, float(weight))
            candidate = _order_key(reached, (*path, there))
            kept = labels.setdefault(there, [])
            if any(_dominates(other, candidate) for other in kept):
                continue
            kept[:] = [other for other in kept if not _dominates(candidate, other)]
            kept.append(candidate)
            heapq.heappush(frontier, (candidate, reached))
    raise PathNotFoundError("no path")


def _spur_paths(
    adjacency: Adjacency,
    goal: str,
    accepted: list[PathResult],
    *,
    stats: _SearchStats,
    max_hops: int,
    deadline_monotonic_s: float | None,
):
    """Yield every deviation of the newest accepted path (Yen's spur step)."""
    newest = accepted[-1].nodes
    for spur_idx in range(len(newest) - 1):
        root = newest[: spur_idx + 1]
        banned_edges = frozenset(
            (p.nodes[spur_idx], p.nodes[spur_idx + 1])
            for p in accepted
            if len(p.nodes) > spur_idx + 1 and p.nodes[: spur_idx + 1] == root
        )
        try:
            spur = _dijkstra_shortest_path(
                adjacency,
                root[-1],
                goal,
                stats=stats,
                banned_nodes=frozenset(root[:-1]),
                banned_edges=banned_edges,
                max_hops=max(1, max_hops - spur_idx),
                deadline_monotonic_s=deadline_monotonic_s,
            )
        except SearchDeadlineExceeded:
            raise
        except PathNotFoundError:
            continue
        yield PathResult(nodes=(*root[:-1], *spur.nodes), cost=path_cost(adjacency, root) + spur.cost)


def yen_k_shortest_paths_with_stats(
    *,
    adjacency: Adjacency,
    start: str,
    goal: str,
    k: int,
    max_hops: int = 220,
    deadline_monotonic_s: float | None = None,
) -> tuple[tuple[PathResult, ...], dict[str, int | str]]:
    """Up to ``k`` loopless paths in ``_order_key`` order, plus search counters.

    Unreachable goals yield no paths; a passed deadline raises
    ``SearchDeadlineExceeded`` instead of returning a partial answer.
    """
    stats = _SearchStats()
    if k <= 0:
        stats.termination_reason = stats.no_path_reason = "invalid_k"
        return (), stats.as_dict()
    if start == goal:
        stats.termination_reason = "no_initial_path"
        stats.no_path_reason = "start_equals_goal"
        return (), stats.as_dict()

    try:
        first = _dijkstra_shortest_path(
            adjacency,
            start,
            goal,
            stats=stats,
            max_hops=max_hops,
            deadline_monotonic_s=deadline_monotonic_s,
        )
    except SearchDeadlineExceeded:
        raise
    except PathNotFoundError as exc:
        stats.termination_reason = "no_initial_path"
        stats.no_path_reason = normalize_no_path_reason(str(exc))
        return (), stats.as_dict()

    accepted = [first]
    pool: list[tuple[OrderKey, float]] = []
    seen: set[tuple[str, ...]] = {first.nodes}
    while len(accepted) < k:
        for candidate in _spur_paths(
            adjacency,
            goal,
            accepted,
            stats=stats,
            max_hops=max_hops,
            deadline_monotonic_s=deadline_monotonic_s,
        ):
            if candidate.nodes in seen:
                continue
            seen.add(candidate.nodes)
            stats.generated_candidates += 1
            heapq.heappush(pool, (_order_key(candidate.cost, candidate.nodes), candidate.cost))
        if not pool:
            stats.termination_reason = "candidate_pool_exhausted"
            break
        label, cost = heapq.heappop(pool)
        accepted.append(PathResult(nodes=label[2], cost=cost))

    return tuple(accepted), stats.as_dict()


def normalize_no_path_reason(message: str) -> str:
    lowered = str(message or "").strip().lower()
    if "start/goal blocked" in lowered:
        return "start_or_goal_blocked"
    if "no path" in lowered:
        return "no_path"
    return "path_search_exhausted"


def yen_k_shortest_paths(
    *,
    adjacency: Adjacency,
    start: str,
    goal: str,
    k: int,
    max_hops: int = 220,
    deadline_monotonic_s: float | None = None,
) -> tuple[PathResult, ...]:
    paths, _stats = yen_k_shortest_paths_with_stats(
        adjacency=adjacency,
        start=start,
        goal=goal,
        k=k,
        max_hops=max_hops,
        deadline_monotonic_s=deadline_monotonic_s,
    )
    return paths
