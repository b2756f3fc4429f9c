"""
grid.py — 2-D Grid Stores
==========================
Refs are (row, col) tuples, row-major order.

  GridStore   – pathfinding grid: unit-cost 4-neighbour moves, walls,
                one start and one target cell.
  TableStore  – DP table: the same 2-D shape plus row/column labels.
  BoardStore  – 3×3 tic-tac-toe board; values are "X", "O" or "".

Container format (what `reset(container)` accepts):

    GridStore  : {"rows": 10, "cols": 15, "walls": [[r, c], …],
                  "start": [r, c], "target": [r, c]}
    TableStore : {"rows": 3, "cols": 5, "row_labels": […], "col_labels": […]}
                 or {"values": [[1, 2], [3, 4]]} for a filled matrix
    BoardStore : [["X", "", ""], ["", "O", ""], ["", "", ""]]
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from errors import UserInputError
from store.base import VisualStore
from store.element import Flag

Cell = Tuple[int, int]

# neighbour order: up, right, down, left
DIRECTIONS: List[Cell] = [(-1, 0), (0, 1), (1, 0), (0, -1)]


class GridStore(VisualStore):
    family = "grid"

    def __init__(self, container: Optional[Dict[str, Any]] = None):
        self.rows: int = 0
        self.cols: int = 0
        super().__init__(container)

    def _load(self, container: Optional[Dict[str, Any]]) -> None:
        container = container or {}
        self.rows = int(container.get("rows", 0))
        self.cols = int(container.get("cols", 0))
        for r in range(self.rows):
            for c in range(self.cols):
                self._add((r, c), 1)
        for cell in container.get("walls", []):
            self.set_flags(tuple(cell), Flag.WALL)
        if container.get("start") is not None:
            self.set_flags(tuple(container["start"]), Flag.START)
        if container.get("target") is not None:
            self.set_flags(tuple(container["target"]), Flag.TARGET)

    @classmethod
    def empty(
        cls,
        rows: int,
        cols: int,
        start: Optional[Cell] = None,
        target: Optional[Cell] = None,
        walls: Iterable[Cell] = (),
    ) -> "GridStore":
        return cls({"rows": rows, "cols": cols, "walls": list(walls), "start": start, "target": target})

    def _structure(self) -> Dict[str, Any]:
        return {"rows": self.rows, "cols": self.cols}

    # ==================================================================
    # QUERIES
    # ==================================================================
    def in_bounds(self, cell: Cell) -> bool:
        r, c = cell
        return 0 <= r < self.rows and 0 <= c < self.cols

    def neighbours(self, cell: Cell) -> List[Tuple[Cell, float]]:
        """[(neighbour, weight)] for every open 4-neighbour."""
        r, c = cell
        result = []
        for dr, dc in DIRECTIONS:
            nxt = (r + dr, c + dc)
            if self.in_bounds(nxt) and Flag.WALL not in self.element(nxt).flags:
                result.append((nxt, 1.0))
        return result

    def coords(self, cell: Cell) -> Tuple[float, float]:
        return float(cell[1]), float(cell[0])

    def heuristic(self, cell: Cell, goal: Cell) -> float:
        """Manhattan distance; admissible for unit-cost 4-connected moves."""
        return abs(cell[0] - goal[0]) + abs(cell[1] - goal[1])

    def is_blocked(self, cell: Cell) -> bool:
        return self.has_flag(cell, Flag.WALL)

    @property
    def start(self) -> Optional[Cell]:
        found = self.refs_with(Flag.START)
        return found[0] if found else None

    @property
    def target(self) -> Optional[Cell]:
        found = self.refs_with(Flag.TARGET)
        return found[0] if found else None

    def matrix(self) -> List[List[Any]]:
        return [[self.value((r, c)) for c in range(self.cols)] for r in range(self.rows)]

    # ==================================================================
    # STRUCTURAL EDITS  (rejected while a run holds the lock)
    # ==================================================================
    def toggle_wall(self, cell: Cell) -> bool:
        self._check_unlocked("toggle a wall")
        el = self.element(cell)
        if Flag.START in el.flags or Flag.TARGET in el.flags:
            raise UserInputError("Start and target cells cannot become walls")
        if Flag.WALL in el.flags:
            el.flags.discard(Flag.WALL)
            return False
        el.flags.add(Flag.WALL)
        return True

    def set_start(self, cell: Cell) -> None:
        self._move_endpoint(cell, Flag.START)

    def set_target(self, cell: Cell) -> None:
        self._move_endpoint(cell, Flag.TARGET)

    def click(self, cell: Cell) -> str:
        """
        Cell-click semantics of the grid page: the first click places the
        start, the second the target, every later click toggles a wall.
        """
        if self.start is None:
            self.set_start(cell)
            return "start"
        if self.target is None:
            self.set_target(cell)
            return "target"
        return "wall" if self.toggle_wall(cell) else "open"

    def _move_endpoint(self, cell: Cell, flag: Flag) -> None:
        self._check_unlocked(f"move the {flag.value}")
        el = self.element(cell)
        for ref in self.refs_with(flag):
            self.element(ref).flags.discard(flag)
        el.flags.discard(Flag.WALL)
        el.flags.add(flag)


# ---------------------------------------------------------------------------
# DP table
# ---------------------------------------------------------------------------
class TableStore(GridStore):
    family = "table"

    def __init__(self, container: Optional[Dict[str, Any]] = None):
        self.row_labels: List[str] = []
        self.col_labels: List[str] = []
        super().__init__(container)

    def _load(self, container: Optional[Dict[str, Any]]) -> None:
        container = container or {}
        values = container.get("values")
        if values is not None:
            if any(len(row) != len(values[0]) for row in values):
                raise UserInputError("Matrix rows must all have the same length")
            self.rows, self.cols = len(values), len(values[0]) if values else 0
        else:
            self.rows = int(container.get("rows", 0))
            self.cols = int(container.get("cols", 0))
        self.row_labels = [str(x) for x in container.get("row_labels", range(self.rows))]
        self.col_labels = [str(x) for x in container.get("col_labels", range(self.cols))]
        for r in range(self.rows):
            for c in range(self.cols):
                self._add((r, c), values[r][c] if values is not None else None)

    @classmethod
    def sized(
        cls,
        rows: int,
        cols: int,
        row_labels: Optional[Sequence] = None,
        col_labels: Optional[Sequence] = None,
    ) -> "TableStore":
        container: Dict[str, Any] = {"rows": rows, "cols": cols}
        if row_labels is not None:
            container["row_labels"] = list(row_labels)
        if col_labels is not None:
            container["col_labels"] = list(col_labels)
        return cls(container)

    def _structure(self) -> Dict[str, Any]:
        return {
            "rows": self.rows,
            "cols": self.cols,
            "row_labels": list(self.row_labels),
            "col_labels": list(self.col_labels),
        }


# ---------------------------------------------------------------------------
# Game board
# ---------------------------------------------------------------------------
SYMBOLS = ("X", "O")


class BoardStore(GridStore):
    family = "board"

    def _load(self, container: Optional[Sequence[Sequence[str]]]) -> None:
        board = container or [["", "", ""] for _ in range(3)]
        if len(board) != 3 or any(len(row) != 3 for row in board):
            raise UserInputError("The game board must be 3×3")
        self.rows = self.cols = 3
        for r in range(3):
            for c in range(3):
                symbol = board[r][c] or ""
                if symbol not in ("",) + SYMBOLS:
                    raise UserInputError(f"Unknown board symbol {symbol!r}")
                self._add((r, c), symbol)

    def place(self, cell: Cell, symbol: str) -> None:
        """A human move is a structural edit, so only between runs."""
        self._check_unlocked("place a mark")
        if symbol not in SYMBOLS:
            raise UserInputError(f"Unknown board symbol {symbol!r}")
        if not self.in_bounds(cell):
            raise UserInputError(f"Cell {cell} is off the board")
        if self.value(cell):
            raise UserInputError(f"Cell {cell} is already taken")
        self.set_value(cell, symbol)

    def empty_cells(self) -> List[Cell]:
        return [ref for ref in self.refs() if not self.value(ref)]
