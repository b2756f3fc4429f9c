"""
games.py — Minimax Tic-Tac-Toe
===============================
The computer plays "O" and is the maximizing player; the human plays
"X" and always moves first.

Scores, seen from the computer:
    computer wins  →  +10 - depth
    human wins     →  depth - 10
    tie            →  0
Preferring quick wins and slow losses is what the depth term buys.

Best move = the first cell, in row-major scan order, whose score is
strictly greater than every earlier one.

Every board the search explores is one invisible Step (cost 1), so the
Runner can pause or cancel mid-search without pacing thousands of
nodes.  Each top-level candidate and the final move are visible.

Optional alpha-beta pruning: candidate scores it reports may be bounds
instead of exact values, but a pruned candidate can never beat the best
one found so far, so the chosen move is the same.
"""

from typing import Any, Dict, Generator, List, Optional, Sequence, Tuple

from algorithms.step import Outcome, Step, StepBuilder
from errors import UserInputError
from store import BoardStore, Flag

Cell = Tuple[int, int]
GameGen = Generator[Step, None, Outcome]

HUMAN, COMPUTER = "X", "O"
INF = float("inf")

LINES: List[Tuple[int, int, int]] = [
    (0, 1, 2), (3, 4, 5), (6, 7, 8),   # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),   # columns
    (0, 4, 8), (2, 4, 6),              # diagonals
]

PSEUDOCODE: List[str] = [
    "def minimax(board, depth, is_max):",                           # 0
    "    if O wins: return 10 - depth",                             # 1
    "    if X wins: return depth - 10",                             # 2
    "    if board full: return 0",                                  # 3
    "    if is_max:",                                               # 4
    "        return max(minimax(board + O@cell, depth + 1, False))",# 5
    "    else:",                                                    # 6
    "        return min(minimax(board + X@cell, depth + 1, True))", # 7
    "def best_move(board):",                                        # 8
    "    for cell in empty cells (row-major):",                     # 9
    "        score ← minimax(board + O@cell, 0, False)",            # 10
    "        keep cell if score > best",                            # 11
    "    play best cell",                                           # 12
]


# ---------------------------------------------------------------------------
# Board helpers (flat 9-list, row-major)
# ---------------------------------------------------------------------------
def winner(board: Sequence[str]) -> Optional[str]:
    """"X" or "O" for a completed line, "tie" for a full board, else None."""
    for a, b, c in LINES:
        if board[a] and board[a] == board[b] == board[c]:
            return board[a]
    if all(board):
        return "tie"
    return None


def flatten(store: BoardStore) -> List[str]:
    return [store.value((r, c)) for r in range(3) for c in range(3)]


def check_playable(store: BoardStore, params: Dict[str, Any]) -> None:
    board = flatten(store)
    result = winner(board)
    if result is not None:
        raise UserInputError(f"The game is over ({'tie' if result == 'tie' else result + ' won'})")
    # X moves first, so the computer replies only right after an X
    if board.count(HUMAN) != board.count(COMPUTER) + 1:
        raise UserInputError("It is the human's turn; place an X first")


def play_human(store: BoardStore, cell: Cell) -> Optional[str]:
    """
    Place the human's X after checking it is their turn and the game is
    still open.  Returns the game result after the move, or None if the
    computer should reply.
    """
    board = flatten(store)
    if winner(board) is not None:
        raise UserInputError("The game is over; reset the board")
    if board.count(HUMAN) != board.count(COMPUTER):
        raise UserInputError("It is the computer's turn")
    store.place(tuple(cell), HUMAN)
    return winner(flatten(store))


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------
def minimax(store: BoardStore, pruning: bool = False) -> GameGen:
    sb = StepBuilder("boards", "pruned")
    board = flatten(store)
    best_score, best_idx = -INF, None
    alpha = -INF
    scores: Dict[str, float] = {}

    for idx in range(9):
        if board[idx]:
            continue
        cell = divmod(idx, 3)
        board[idx] = COMPUTER
        score = yield from _search(board, 0, False, alpha, INF, pruning, sb)
        board[idx] = ""

        scores[f"{cell[0]},{cell[1]}"] = score
        store.clear_flag_everywhere(Flag.COMPARING)
        store.set_flags(cell, Flag.COMPARING)
        better = score > best_score
        if better:
            best_score, best_idx = score, idx
        if pruning:
            alpha = max(alpha, best_score)
        yield sb.build("candidate", refs=(cell,), line=11, cost=0, overlay={"score": score, "scores": dict(scores)},
                       explanation=f"O at {cell} scores {score:+g}."
                                   + (" New best move." if better else ""))

    move = divmod(best_idx, 3)
    store.clear_flag_everywhere(Flag.COMPARING)
    store.set_value(move, COMPUTER)
    store.set_flags(move, Flag.FOUND)
    result = winner(flatten(store))
    yield sb.build("move", refs=(move,), line=12, cost=0, is_final=True,
                   overlay={"score": best_score, "scores": scores, "result": result},
                   explanation=f"Computer plays {move} (score {best_score:+g}) "
                               f"after exploring {sb.metrics['boards']} boards.")
    return sb.outcome(result={"move": list(move), "score": best_score, "game": result},
                      summary=f"Computer plays {move}.")


def _search(board: List[str], depth: int, is_max: bool, alpha: float, beta: float,
            pruning: bool, sb: StepBuilder) -> Generator[Step, None, float]:
    sb.count("boards")
    yield sb.build("explore", line=0, visible=False,
                   explanation=f"Explore board at depth {depth}.", overlay={"board": list(board)})

    result = winner(board)
    if result == COMPUTER:
        return 10 - depth
    if result == HUMAN:
        return depth - 10
    if result == "tie":
        return 0

    symbol = COMPUTER if is_max else HUMAN
    best = -INF if is_max else INF
    for idx in range(9):
        if board[idx]:
            continue
        board[idx] = symbol
        score = yield from _search(board, depth + 1, not is_max, alpha, beta, pruning, sb)
        board[idx] = ""
        if is_max:
            best = max(best, score)
            alpha = max(alpha, best)
        else:
            best = min(best, score)
            beta = min(beta, best)
        if pruning and beta <= alpha:
            sb.count("pruned")
            break
    return best
