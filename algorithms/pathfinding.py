"""
pathfinding.py — Graph Traversal & Shortest Paths
==================================================
DFS, BFS, Dijkstra and A* over any store that answers the traversal
interface shared by GridStore and GraphStore:

    store.start / store.target          endpoint refs (or None)
    store.neighbours(ref)               [(nbr, weight)], walls skipped
    store.heuristic(ref, goal)          admissible estimate for A*

Yields a visible Step (cost 1) every time a node leaves the frontier:

    DFS       – explicit stack, neighbours pushed in reverse so the
                first neighbour is explored first
    BFS       – FIFO queue, nodes marked discovered on enqueue
    Dijkstra  – min-heap keyed by g
    A*        – min-heap keyed by f = g + h

Heap entries are (priority, seq, ref): seq is a monotonically growing
insertion counter, so equal priorities pop in FIFO order and refs are
never compared with each other.

Relaxations happen inside the pop step; they are counted in
metrics["relaxations"] but add no operations of their own.

When the target is popped the predecessor chain is walked back to the
start, every node on it flagged `path`, and the run ends.  An empty
frontier means there is no path: Outcome(found=False).  DFS and BFS may
run without a target and then report the visit order.
"""

import heapq
import itertools
from collections import deque
from typing import Any, Dict, Generator, Hashable, List, Optional

from algorithms.step import Outcome, Step, StepBuilder
from errors import UserInputError
from store import Flag, Highlight, VisualStore

PathGen = Generator[Step, None, Outcome]
INF = float("inf")


# ---------------------------------------------------------------------------
# Pseudocode
# ---------------------------------------------------------------------------
DFS_PSEUDOCODE: List[str] = [
    "def DFS(graph, source, target):",              # 0
    "    stack ← [source]",                         # 1
    "    while stack is not empty:",                # 2
    "        node ← stack.pop()",                   # 3
    "        if node visited: continue",            # 4
    "        mark node visited",                    # 5
    "        if node == target: return path",       # 6
    "        for nbr in reversed(adj(node)):",      # 7
    "            if nbr not visited: stack.push(nbr)",  # 8
    "    return NOT FOUND",                         # 9
]

BFS_PSEUDOCODE: List[str] = [
    "def BFS(graph, source, target):",              # 0
    "    queue ← [source]; seen ← {source}",        # 1
    "    while queue is not empty:",                # 2
    "        node ← queue.popleft()",               # 3
    "        mark node visited",                    # 4
    "        if node == target: return path",       # 5
    "        for nbr in adj(node):",                # 6
    "            if nbr not in seen:",              # 7
    "                seen.add(nbr); parent[nbr] ← node",  # 8
    "                queue.append(nbr)",            # 9
    "    return NOT FOUND",                         # 10
]

DIJKSTRA_PSEUDOCODE: List[str] = [
    "def Dijkstra(graph, source, target):",         # 0
    "    dist ← {v: ∞}; dist[source] ← 0",          # 1
    "    pq ← [(0, source)]",                       # 2
    "    while pq is not empty:",                   # 3
    "        (d, node) ← pq.pop_min()",             # 4
    "        if node visited: continue",            # 5
    "        if node == target: return path",       # 6
    "        for (nbr, w) in adj(node):",           # 7
    "            if dist[node] + w < dist[nbr]:",   # 8
    "                dist[nbr] ← dist[node] + w",   # 9
    "                parent[nbr] ← node",           # 10
    "                pq.push((dist[nbr], nbr))",    # 11
    "    return NOT FOUND",                         # 12
]

ASTAR_PSEUDOCODE: List[str] = [
    "def A*(graph, source, target, h):",            # 0
    "    g ← {v: ∞}; g[source] ← 0",                # 1
    "    open ← [(h(source), source)]",             # 2
    "    while open is not empty:",                 # 3
    "        node ← open.pop_min_f()",              # 4
    "        if node closed: continue",             # 5
    "        if node == target: return path",       # 6
    "        for (nbr, w) in adj(node):",           # 7
    "            if g[node] + w < g[nbr]:",         # 8
    "                g[nbr] ← g[node] + w",         # 9
    "                parent[nbr] ← node",           # 10
    "                open.push((g[nbr] + h(nbr), nbr))",  # 11
    "    return NOT FOUND",                         # 12
]


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------
def check_start(store: VisualStore, params: Dict[str, Any]) -> None:
    if store.start is None:
        raise UserInputError("Mark a start node first")


def check_endpoints(store: VisualStore, params: Dict[str, Any]) -> None:
    if store.start is None or store.target is None:
        raise UserInputError("Mark both a start and a target node first")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------
def _pop(store: VisualStore, hl: Highlight, node: Hashable) -> None:
    """Move the `processing` highlight to node and mark it visited."""
    hl.move(node)
    store.set_flags(node, Flag.VISITED)


def _reconstruct(parent: Dict[Hashable, Optional[Hashable]], target: Hashable) -> List[Hashable]:
    path, cur = [], target
    while cur is not None:
        path.append(cur)
        cur = parent.get(cur)
    path.reverse()
    return path


def _path_cost(store: VisualStore, path: List[Hashable]) -> float:
    return sum(dict(store.neighbours(a))[b] for a, b in zip(path, path[1:]))


def _found(store: VisualStore, sb: StepBuilder, path: List[Hashable], cost: float,
           line: int, name: str) -> Step:
    store.clear_flag_everywhere(Flag.PROCESSING)
    for ref in path:
        store.set_flags(ref, Flag.PATH)
    sb.metrics["path_length"] = len(path) - 1
    hops = " → ".join(str(r) for r in path)
    return sb.build("path", refs=path, line=line, cost=0, is_final=True,
                    overlay={"path": path, "cost": cost},
                    explanation=f"{name} reached the target. Path cost {cost:g}: {hops}")


def _no_path(store: VisualStore, sb: StepBuilder, line: int, target: Hashable) -> Step:
    store.clear_flag_everywhere(Flag.PROCESSING)
    return sb.build("exhausted", line=line, cost=0, is_final=True,
                    explanation=f"Frontier empty. '{target}' is not reachable.")


def _traversal_done(store: VisualStore, sb: StepBuilder, order: List[Hashable], line: int) -> Step:
    store.clear_flag_everywhere(Flag.PROCESSING)
    return sb.build("done", line=line, cost=0, is_final=True, overlay={"order": order},
                    explanation=f"Frontier empty. Visited {len(order)} nodes.")


# ---------------------------------------------------------------------------
# Depth-first search
# ---------------------------------------------------------------------------
def dfs(store: VisualStore) -> PathGen:
    sb = StepBuilder("nodes_visited", "relaxations")
    hl = Highlight(store, Flag.PROCESSING)
    source, target = store.start, store.target
    stack: List[tuple] = [(source, None)]
    parent: Dict[Hashable, Optional[Hashable]] = {}
    order: List[Hashable] = []

    while stack:
        node, came_from = stack.pop()
        if store.has_flag(node, Flag.VISITED):
            continue
        parent[node] = came_from
        _pop(store, hl, node)
        order.append(node)
        sb.count("nodes_visited")

        if node == target:
            yield sb.build("pop", refs=(node,), line=6, overlay={"stack": [n for n, _ in stack]},
                           explanation=f"Pop '{node}': it is the target.")
            path = _reconstruct(parent, node)
            yield _found(store, sb, path, _path_cost(store, path), line=6, name="DFS")
            return sb.outcome(result=order, path=path, cost=_path_cost(store, path),
                              summary=f"DFS found a path of {len(path) - 1} edges (not necessarily shortest).")

        pushed = []
        for nbr, _w in reversed(store.neighbours(node)):
            if not store.has_flag(nbr, Flag.VISITED):
                stack.append((nbr, node))
                pushed.append(nbr)
                sb.count("relaxations")
        yield sb.build("pop", refs=(node,), line=8, overlay={"stack": [n for n, _ in stack]},
                       explanation=f"Pop '{node}' from the stack and push {len(pushed)} unvisited neighbours.")

    if target is None:
        yield _traversal_done(store, sb, order, line=9)
        return sb.outcome(result=order, summary=f"DFS visited {len(order)} nodes.")
    yield _no_path(store, sb, line=9, target=target)
    return sb.outcome(found=False, result=order, summary="No path exists.")


# ---------------------------------------------------------------------------
# Breadth-first search
# ---------------------------------------------------------------------------
def bfs(store: VisualStore) -> PathGen:
    sb = StepBuilder("nodes_visited", "relaxations")
    hl = Highlight(store, Flag.PROCESSING)
    source, target = store.start, store.target
    queue = deque([source])
    parent: Dict[Hashable, Optional[Hashable]] = {source: None}
    order: List[Hashable] = []

    while queue:
        node = queue.popleft()
        _pop(store, hl, node)
        order.append(node)
        sb.count("nodes_visited")

        if node == target:
            yield sb.build("pop", refs=(node,), line=5, overlay={"queue": list(queue)},
                           explanation=f"Dequeue '{node}': it is the target.")
            path = _reconstruct(parent, node)
            cost = _path_cost(store, path)
            yield _found(store, sb, path, cost, line=5, name="BFS")
            return sb.outcome(result=order, path=path, cost=cost,
                              summary=f"BFS found a path of {len(path) - 1} edges (fewest hops).")

        discovered = []
        for nbr, _w in store.neighbours(node):
            sb.count("relaxations")
            if nbr not in parent:
                parent[nbr] = node
                queue.append(nbr)
                discovered.append(nbr)
        yield sb.build("pop", refs=(node,), line=9, overlay={"queue": list(queue)},
                       explanation=f"Dequeue '{node}' and enqueue {len(discovered)} newly discovered neighbours.")

    if target is None:
        yield _traversal_done(store, sb, order, line=10)
        return sb.outcome(result=order, summary=f"BFS visited {len(order)} nodes.")
    yield _no_path(store, sb, line=10, target=target)
    return sb.outcome(found=False, result=order, summary="No path exists.")


# ---------------------------------------------------------------------------
# Dijkstra & A*: one best-first loop, two priority functions
# ---------------------------------------------------------------------------
def dijkstra(store: VisualStore) -> PathGen:
    return (yield from _best_first(store, use_heuristic=False))


def astar(store: VisualStore) -> PathGen:
    return (yield from _best_first(store, use_heuristic=True))


def _best_first(store: VisualStore, use_heuristic: bool) -> PathGen:
    name = "A*" if use_heuristic else "Dijkstra"
    sb = StepBuilder("nodes_visited", "relaxations")
    hl = Highlight(store, Flag.PROCESSING)
    source, target = store.start, store.target
    seq = itertools.count()

    def h(ref: Hashable) -> float:
        return store.heuristic(ref, target) if use_heuristic else 0.0

    g: Dict[Hashable, float] = {source: 0.0}
    parent: Dict[Hashable, Optional[Hashable]] = {source: None}
    heap = [(h(source), next(seq), source)]

    while heap:
        _prio, _, node = heapq.heappop(heap)
        if store.has_flag(node, Flag.VISITED):
            continue                         # stale entry
        _pop(store, hl, node)
        sb.count("nodes_visited")
        store.element(node).meta["g"] = g[node]

        if node == target:
            yield sb.build("pop", refs=(node,), line=6, overlay=_queue_overlay(heap, g),
                           explanation=f"Pop '{node}' with g = {g[node]:g}: it is the target.")
            path = _reconstruct(parent, node)
            yield _found(store, sb, path, g[node], line=6, name=name)
            return sb.outcome(result=g[node], path=path, cost=g[node],
                              summary=f"{name} found the shortest path, cost {g[node]:g}.")

        improved = []
        for nbr, w in store.neighbours(node):
            if store.has_flag(nbr, Flag.VISITED):
                continue
            sb.count("relaxations")
            cand = g[node] + w
            if cand < g.get(nbr, INF):
                g[nbr] = cand
                parent[nbr] = node
                heapq.heappush(heap, (cand + h(nbr), next(seq), nbr))
                improved.append(nbr)

        label = f"f = {g[node] + h(node):g}" if use_heuristic else f"g = {g[node]:g}"
        yield sb.build("pop", refs=(node,), line=11, overlay=_queue_overlay(heap, g),
                       explanation=f"Pop '{node}' ({label}), smallest in the priority queue. "
                                   f"Improved {len(improved)} neighbour distances.")

    yield _no_path(store, sb, line=12, target=target)
    return sb.outcome(found=False, summary="No path exists.")


def _queue_overlay(heap: list, g: Dict[Hashable, float]) -> Dict[str, Any]:
    return {
        "queue":     [(ref, prio) for prio, _, ref in sorted(heap)],
        "distances": dict(g),
    }
