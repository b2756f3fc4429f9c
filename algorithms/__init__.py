"""
algorithms/__init__.py — Algorithm Registry
=============================================
Single source of truth for every algorithm the visualizer knows about.

    from algorithms import REGISTRY, get_algorithm

REGISTRY is a dict:
    {
        "bubble_sort": AlgoInfo(key, label, family, fn, pseudocode, stores, …),
        …
    }

AlgoInfo is a lightweight dataclass.  The Runner, the batch comparison
and the web layer all consume it, so adding a new algorithm is: write
the generator, add one entry here.

Per-entry hooks:
    stores    – store families the generator accepts
    check     – check(store, params) raises UserInputError on missing
                prerequisites (no target, unsorted input, game over, …)
    layout    – layout(params) → container; the Runner loads it into the
                store first (DP tables are shaped by their inputs)
    min_size  – smaller containers short-circuit to completed with
                zero operations
    commit    – commit(store, outcome) runs once the store is unlocked;
                array insert / delete swap in their resized container
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from errors import UserInputError

from algorithms import arrays, dynamic, games, genetic as _genetic, matrix, pathfinding, searching, sorting, trees
from algorithms.step import Outcome, Step, StepBuilder


# ---------------------------------------------------------------------------
# AlgoInfo — metadata card for each algorithm
# ---------------------------------------------------------------------------
@dataclass
class AlgoInfo:
    key:              str                    # registry key, e.g. "bubble_sort"
    label:            str                    # human label, e.g. "Bubble Sort"
    family:           str                    # page it belongs to: "sorting", "pathfinding", …
    fn:               Callable               # the generator function
    pseudocode:       List[str]              # lines for the side-panel
    stores:           Tuple[str, ...]        # accepted store families
    check:            Optional[Callable]     = None
    layout:           Optional[Callable]     = None
    commit:           Optional[Callable]     = None
    min_size:         int                    = 0
    params:           List[str]              = field(default_factory=list)   # accepted parameter names
    tags:             List[str]              = field(default_factory=list)
    complexity_time:  str                    = ""
    complexity_space: str                    = ""
    description:      str                    = ""

    def validate(self, store, params: Dict[str, Any]) -> None:
        """Raise UserInputError unless `store` + `params` can start a run."""
        if store.family not in self.stores:
            raise UserInputError(
                f"{self.label} runs on a {' or '.join(self.stores)} store, not {store.family}"
            )
        unknown = set(params) - set(self.params)
        if unknown:
            raise UserInputError(f"Unknown parameter(s) for {self.label}: {', '.join(sorted(unknown))}")
        if self.check is not None:
            self.check(store, params)

    def to_dict(self) -> dict:
        return {
            "key":              self.key,
            "label":            self.label,
            "family":           self.family,
            "stores":           list(self.stores),
            "params":           list(self.params),
            "pseudocode":       list(self.pseudocode),
            "tags":             list(self.tags),
            "complexity_time":  self.complexity_time,
            "complexity_space": self.complexity_space,
            "description":      self.description,
        }


_PATH_STORES = ("grid", "graph")


# ---------------------------------------------------------------------------
# THE REGISTRY
# ---------------------------------------------------------------------------
REGISTRY: Dict[str, AlgoInfo] = {

    # -- sorting -----------------------------------------------------------
    "bubble_sort": AlgoInfo(
        key="bubble_sort", label="Bubble Sort", family="sorting",
        fn=sorting.bubble_sort, pseudocode=sorting.BUBBLE_PSEUDOCODE,
        stores=("array",), min_size=2, tags=["comparison", "stable", "in-place"],
        complexity_time="O(n²)", complexity_space="O(1)",
        description="Repeatedly swaps adjacent out-of-order pairs; the largest value bubbles to the end.",
    ),

    "insertion_sort": AlgoInfo(
        key="insertion_sort", label="Insertion Sort", family="sorting",
        fn=sorting.insertion_sort, pseudocode=sorting.INSERTION_PSEUDOCODE,
        stores=("array",), min_size=2, tags=["comparison", "stable", "in-place"],
        complexity_time="O(n²)", complexity_space="O(1)",
        description="Grows a sorted prefix, shifting each new key left into place.",
    ),

    "quick_sort": AlgoInfo(
        key="quick_sort", label="Quick Sort", family="sorting",
        fn=sorting.quick_sort, pseudocode=sorting.QUICK_PSEUDOCODE,
        stores=("array",), min_size=2, tags=["comparison", "divide-and-conquer", "in-place"],
        complexity_time="O(n log n) avg, O(n²) worst", complexity_space="O(log n)",
        description="Lomuto partition around the last element, then sorts each side.",
    ),

    "merge_sort": AlgoInfo(
        key="merge_sort", label="Merge Sort", family="sorting",
        fn=sorting.merge_sort, pseudocode=sorting.MERGE_PSEUDOCODE,
        stores=("array",), min_size=2, tags=["comparison", "stable", "divide-and-conquer"],
        complexity_time="O(n log n)", complexity_space="O(n)",
        description="Splits in half, sorts each half, merges the two sorted runs.",
    ),

    # -- searching ---------------------------------------------------------
    "linear_search": AlgoInfo(
        key="linear_search", label="Linear Search", family="searching",
        fn=searching.linear_search, pseudocode=searching.LINEAR_PSEUDOCODE,
        stores=("array",), check=searching.check_target, min_size=1, params=["target"],
        complexity_time="O(n)", complexity_space="O(1)",
        description="Checks every element in order. Works on unsorted data.",
    ),

    "binary_search": AlgoInfo(
        key="binary_search", label="Binary Search", family="searching",
        fn=searching.binary_search, pseudocode=searching.BINARY_PSEUDOCODE,
        stores=("array",), check=searching.check_sorted, min_size=1, params=["target"],
        tags=["sorted-input"],
        complexity_time="O(log n)", complexity_space="O(1)",
        description="Halves the sorted search range with every probe.",
    ),

    "jump_search": AlgoInfo(
        key="jump_search", label="Jump Search", family="searching",
        fn=searching.jump_search, pseudocode=searching.JUMP_PSEUDOCODE,
        stores=("array",), check=searching.check_sorted, min_size=1, params=["target"],
        tags=["sorted-input"],
        complexity_time="O(√n)", complexity_space="O(1)",
        description="Jumps ahead in √n blocks, then scans the block that may hold the target.",
    ),

    "interpolation_search": AlgoInfo(
        key="interpolation_search", label="Interpolation Search", family="searching",
        fn=searching.interpolation_search, pseudocode=searching.INTERPOLATION_PSEUDOCODE,
        stores=("array",), check=searching.check_sorted, min_size=1, params=["target"],
        tags=["sorted-input"],
        complexity_time="O(log log n) uniform, O(n) worst", complexity_space="O(1)",
        description="Guesses the position from the value, like looking up a name in a phone book.",
    ),

    # -- pathfinding -------------------------------------------------------
    "dfs": AlgoInfo(
        key="dfs", label="Depth-First Search", family="pathfinding",
        fn=pathfinding.dfs, pseudocode=pathfinding.DFS_PSEUDOCODE,
        stores=_PATH_STORES, check=pathfinding.check_start, min_size=2,
        tags=["unweighted", "traversal"],
        complexity_time="O(V + E)", complexity_space="O(V)",
        description="Dives deep before backtracking. Does NOT guarantee the shortest path.",
    ),

    "bfs": AlgoInfo(
        key="bfs", label="Breadth-First Search", family="pathfinding",
        fn=pathfinding.bfs, pseudocode=pathfinding.BFS_PSEUDOCODE,
        stores=_PATH_STORES, check=pathfinding.check_start, min_size=2,
        tags=["unweighted", "shortest-path", "traversal"],
        complexity_time="O(V + E)", complexity_space="O(V)",
        description="Explores layer by layer. Finds the shortest path by hop count.",
    ),

    "dijkstra": AlgoInfo(
        key="dijkstra", label="Dijkstra's Algorithm", family="pathfinding",
        fn=pathfinding.dijkstra, pseudocode=pathfinding.DIJKSTRA_PSEUDOCODE,
        stores=_PATH_STORES, check=pathfinding.check_endpoints, min_size=2,
        tags=["weighted", "shortest-path"],
        complexity_time="O((V + E) log V)", complexity_space="O(V)",
        description="Greedily expands the closest node. Optimal for non-negative weights.",
    ),

    "astar": AlgoInfo(
        key="astar", label="A* Search", family="pathfinding",
        fn=pathfinding.astar, pseudocode=pathfinding.ASTAR_PSEUDOCODE,
        stores=_PATH_STORES, check=pathfinding.check_endpoints, min_size=2,
        tags=["weighted", "shortest-path", "heuristic"],
        complexity_time="O((V + E) log V)", complexity_space="O(V)",
        description="Dijkstra plus heuristic guidance. Optimal because h never overestimates.",
    ),

    # -- dynamic programming -----------------------------------------------
    "fibonacci": AlgoInfo(
        key="fibonacci", label="Fibonacci (DP)", family="dynamic",
        fn=dynamic.fibonacci, pseudocode=dynamic.FIBONACCI_PSEUDOCODE,
        stores=("table",), layout=dynamic.fibonacci_layout, params=["n"],
        complexity_time="O(n)", complexity_space="O(n)",
        description="Bottom-up table: each number is the sum of the two before it.",
    ),

    "knapsack": AlgoInfo(
        key="knapsack", label="0/1 Knapsack", family="dynamic",
        fn=dynamic.knapsack, pseudocode=dynamic.KNAPSACK_PSEUDOCODE,
        stores=("table",), layout=dynamic.knapsack_layout, params=["weights", "values", "capacity"],
        complexity_time="O(n·W)", complexity_space="O(n·W)",
        description="Best value for every (items, capacity) pair, then backtracks the chosen items.",
    ),

    "lcs": AlgoInfo(
        key="lcs", label="Longest Common Subsequence", family="dynamic",
        fn=dynamic.lcs, pseudocode=dynamic.LCS_PSEUDOCODE,
        stores=("table",), layout=dynamic.lcs_layout, params=["a", "b"],
        complexity_time="O(m·n)", complexity_space="O(m·n)",
        description="Prefix-by-prefix match lengths, then backtracks the subsequence.",
    ),

    "matrix_chain": AlgoInfo(
        key="matrix_chain", label="Matrix-Chain Order", family="dynamic",
        fn=dynamic.matrix_chain, pseudocode=dynamic.MATRIX_CHAIN_PSEUDOCODE,
        stores=("table",), layout=dynamic.matrix_chain_layout, params=["dims"],
        complexity_time="O(n³)", complexity_space="O(n²)",
        description="Cheapest parenthesization of a matrix product, by chain length.",
    ),

    # -- trees -------------------------------------------------------------
    "bst_insert": AlgoInfo(
        key="bst_insert", label="BST Insert", family="tree",
        fn=trees.bst_insert, pseudocode=trees.BST_PSEUDOCODE,
        stores=("tree",), min_size=2,
        complexity_time="O(n·h)", complexity_space="O(n)",
        description="Inserts the keys one by one; smaller keys go left, others right.",
    ),

    "avl_insert": AlgoInfo(
        key="avl_insert", label="AVL Insert", family="tree",
        fn=trees.avl_insert, pseudocode=trees.AVL_PSEUDOCODE,
        stores=("tree",), min_size=2, tags=["self-balancing"],
        complexity_time="O(n log n)", complexity_space="O(n)",
        description="BST insert plus LL/RR/LR/RL rotations that keep the height logarithmic.",
    ),

    "inorder": AlgoInfo(
        key="inorder", label="Inorder Traversal", family="tree",
        fn=trees.inorder, pseudocode=trees.INORDER_PSEUDOCODE,
        stores=("tree",), check=trees.check_built, min_size=2,
        complexity_time="O(n)", complexity_space="O(h)",
        description="Left, node, right. Visits a BST in sorted order.",
    ),

    "preorder": AlgoInfo(
        key="preorder", label="Preorder Traversal", family="tree",
        fn=trees.preorder, pseudocode=trees.PREORDER_PSEUDOCODE,
        stores=("tree",), check=trees.check_built, min_size=2,
        complexity_time="O(n)", complexity_space="O(h)",
        description="Node, left, right.",
    ),

    "postorder": AlgoInfo(
        key="postorder", label="Postorder Traversal", family="tree",
        fn=trees.postorder, pseudocode=trees.POSTORDER_PSEUDOCODE,
        stores=("tree",), check=trees.check_built, min_size=2,
        complexity_time="O(n)", complexity_space="O(h)",
        description="Left, right, node.",
    ),

    # -- games & AI --------------------------------------------------------
    "minimax": AlgoInfo(
        key="minimax", label="Minimax (Tic-Tac-Toe)", family="game",
        fn=games.minimax, pseudocode=games.PSEUDOCODE,
        stores=("board",), check=games.check_playable, params=["pruning"],
        tags=["adversarial"],
        complexity_time="O(b^d)", complexity_space="O(d)",
        description="Explores every reply to pick the move with the best worst case.",
    ),

    "genetic": AlgoInfo(
        key="genetic", label="Genetic Algorithm", family="genetic",
        fn=_genetic.genetic, pseudocode=_genetic.PSEUDOCODE,
        stores=("population",), check=_genetic.check_population, min_size=2,
        params=["generations", "mutation_rate", "seed"],
        complexity_time="O(g·p·k)", complexity_space="O(p·k)",
        description="Selection, crossover and mutation push the mean gene towards 1.",
    ),

    # -- matrix ------------------------------------------------------------
    "transpose": AlgoInfo(
        key="transpose", label="Matrix Transpose", family="matrix",
        fn=matrix.transpose, pseudocode=matrix.TRANSPOSE_PSEUDOCODE,
        stores=("table",), check=matrix.check_square, min_size=1,
        complexity_time="O(n²)", complexity_space="O(1)",
        description="Mirrors the matrix across its main diagonal.",
    ),

    "rotate": AlgoInfo(
        key="rotate", label="Matrix Rotate 90°", family="matrix",
        fn=matrix.rotate, pseudocode=matrix.ROTATE_PSEUDOCODE,
        stores=("table",), check=matrix.check_square, min_size=1,
        complexity_time="O(n²)", complexity_space="O(1)",
        description="Transpose, then reverse each row: a clockwise quarter turn.",
    ),

    "multiply": AlgoInfo(
        key="multiply", label="Matrix Multiply", family="matrix",
        fn=matrix.multiply, pseudocode=matrix.MULTIPLY_PSEUDOCODE,
        stores=("table",), check=matrix.check_square, min_size=1,
        complexity_time="O(n³)", complexity_space="O(n²)",
        description="Squares the matrix, one dot product per cell.",
    ),

    # -- array edits -------------------------------------------------------
    "array_insert": AlgoInfo(
        key="array_insert", label="Array Insert", family="array",
        fn=arrays.array_insert, pseudocode=arrays.INSERT_PSEUDOCODE,
        stores=("array",), check=arrays.check_insert, commit=arrays.commit_values,
        params=["index", "value", "seed"],
        complexity_time="O(n)", complexity_space="O(1)",
        description="Inserts a value at an index; everything after it shifts right.",
    ),

    "array_delete": AlgoInfo(
        key="array_delete", label="Array Delete", family="array",
        fn=arrays.array_delete, pseudocode=arrays.DELETE_PSEUDOCODE,
        stores=("array",), check=arrays.check_existing, commit=arrays.commit_values, min_size=1,
        params=["index", "seed"],
        complexity_time="O(n)", complexity_space="O(1)",
        description="Removes the element at an index; everything after it shifts left.",
    ),

    "array_update": AlgoInfo(
        key="array_update", label="Array Update", family="array",
        fn=arrays.array_update, pseudocode=arrays.UPDATE_PSEUDOCODE,
        stores=("array",), check=arrays.check_existing, min_size=1,
        params=["index", "value", "seed"],
        complexity_time="O(1)", complexity_space="O(1)",
        description="Overwrites the element at an index in place.",
    ),
}


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------
def get_algorithm(key: str) -> AlgoInfo:
    """Return AlgoInfo by key; unknown keys are a user error."""
    info = REGISTRY.get(key)
    if info is None:
        raise UserInputError(f"Unknown algorithm: {key!r}")
    return info


def list_algorithms() -> List[AlgoInfo]:
    """Return all registered algorithms in insertion order."""
    return list(REGISTRY.values())


def algorithms_by_family(family: str) -> List[AlgoInfo]:
    return [a for a in REGISTRY.values() if a.family == family]


__all__ = [
    "AlgoInfo",
    "REGISTRY",
    "Outcome",
    "Step",
    "StepBuilder",
    "get_algorithm",
    "list_algorithms",
    "algorithms_by_family",
]
