"""Board state, move log and rule helpers for fifteen-by-fifteen Gomoku."""

from __future__ import annotations

import random
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable, Iterator, List, Optional, Tuple

BOARD_SIZE = 15
WIN_LENGTH = 5
DIRECTIONS: Tuple[Tuple[int, int], ...] = ((1, 0), (0, 1), (1, 1), (1, -1))


class Player(IntEnum):
    BLACK = 1
    WHITE = 2

    @property
    def opponent(self) -> "Player":
        return Player.WHITE if self is Player.BLACK else Player.BLACK

    @property
    def label(self) -> str:
        return "Black" if self is Player.BLACK else "White"

    @property
    def short(self) -> str:
        return "B" if self is Player.BLACK else "W"


@dataclass(frozen=True, slots=True)
class Move:
    x: int
    y: int
    player: Player


class Outcome(Enum):
    CONTINUE = "continue"
    WIN = "win"
    DRAW = "draw"


@dataclass(frozen=True, slots=True)
class MoveResult:
    accepted: bool
    outcome: Outcome = Outcome.CONTINUE
    winner: Optional[Player] = None
    move: Optional[Move] = None


_zobrist_rng = random.Random(0x5EED_601D)
ZOBRIST_TABLE: Tuple[Tuple[Tuple[int, int], ...], ...] = tuple(
    tuple(
        (_zobrist_rng.getrandbits(64), _zobrist_rng.getrandbits(64))
        for _ in range(BOARD_SIZE)
    )
    for _ in range(BOARD_SIZE)
)


class Board:
    """Square grid of stones plus the ordered log of played moves.

    Cells are only changed through :meth:`push`/:meth:`pop` (logged moves) or
    the :meth:`hypothetical` context manager, which restores the cell on exit.
    ``hash_key`` is a Zobrist hash over the occupied cells and is kept in sync
    by both paths.
    """

    __slots__ = ("size", "cells", "move_log", "stone_count", "hash_key")

    def __init__(self, size: int = BOARD_SIZE) -> None:
        if size != BOARD_SIZE:
            raise ValueError(f"Only {BOARD_SIZE}x{BOARD_SIZE} boards are supported")
        self.size = size
        self.cells: List[List[Optional[Player]]] = [[None] * size for _ in range(size)]
        self.move_log: List[Move] = []
        self.stone_count = 0
        self.hash_key = 0

    @classmethod
    def from_moves(cls, moves: Iterable[Move]) -> "Board":
        board = cls()
        for move in moves:
            board.push(move)
        return board

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def center(self) -> Tuple[int, int]:
        mid = self.size // 2
        return mid, mid

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def get(self, x: int, y: int) -> Optional[Player]:
        return self.cells[x][y]

    def is_empty(self, x: int, y: int) -> bool:
        return self.cells[x][y] is None

    def is_full(self) -> bool:
        return self.stone_count >= self.size * self.size

    def has_stones(self) -> bool:
        return self.stone_count > 0

    def empty_cells(self) -> List[Tuple[int, int]]:
        return [
            (x, y)
            for x in range(self.size)
            for y in range(self.size)
            if self.cells[x][y] is None
        ]

    def stones(self) -> List[Tuple[int, int, Player]]:
        return [
            (x, y, cell)
            for x, row in enumerate(self.cells)
            for y, cell in enumerate(row)
            if cell is not None
        ]

    @property
    def last_move(self) -> Optional[Move]:
        return self.move_log[-1] if self.move_log else None

    def snapshot(self) -> Tuple[Tuple[int, ...], ...]:
        return tuple(tuple(0 if cell is None else int(cell) for cell in row) for row in self.cells)

    def copy(self) -> "Board":
        clone = Board(self.size)
        clone.cells = [list(row) for row in self.cells]
        clone.move_log = list(self.move_log)
        clone.stone_count = self.stone_count
        clone.hash_key = self.hash_key
        return clone

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def _set(self, x: int, y: int, player: Player) -> None:
        if not self.is_inside(x, y):
            raise ValueError(f"({x}, {y}) is outside the board")
        if self.cells[x][y] is not None:
            raise ValueError(f"({x}, {y}) is already occupied")
        self.cells[x][y] = player
        self.stone_count += 1
        self.hash_key ^= ZOBRIST_TABLE[x][y][player - 1]

    def _clear(self, x: int, y: int) -> None:
        player = self.cells[x][y]
        if player is None:
            return
        self.cells[x][y] = None
        self.stone_count -= 1
        self.hash_key ^= ZOBRIST_TABLE[x][y][player - 1]

    def push(self, move: Move) -> Move:
        self._set(move.x, move.y, move.player)
        self.move_log.append(move)
        return move

    def place(self, x: int, y: int, player: Player) -> Move:
        return self.push(Move(x, y, player))

    def pop(self) -> Optional[Move]:
        if not self.move_log:
            return None
        move = self.move_log.pop()
        self._clear(move.x, move.y)
        return move

    def reset(self) -> None:
        self.cells = [[None] * self.size for _ in range(self.size)]
        self.move_log = []
        self.stone_count = 0
        self.hash_key = 0

    @contextmanager
    def hypothetical(self, x: int, y: int, player: Player) -> Iterator["Board"]:
        """Temporarily occupy ``(x, y)`` without touching the move log."""

        self._set(x, y, player)
        try:
            yield self
        finally:
            self._clear(x, y)


def count_direction(board: Board, x: int, y: int, dx: int, dy: int, player: Player) -> int:
    count = 0
    cx, cy = x + dx, y + dy
    while board.is_inside(cx, cy) and board.cells[cx][cy] == player:
        count += 1
        cx += dx
        cy += dy
    return count


def check_win(board: Board, x: int, y: int) -> bool:
    player = board.cells[x][y]
    if player is None:
        return False
    for dx, dy in DIRECTIONS:
        count = 1 + count_direction(board, x, y, dx, dy, player) + count_direction(board, x, y, -dx, -dy, player)
        if count >= WIN_LENGTH:
            return True
    return False


def is_winning_move(board: Board, x: int, y: int, player: Player) -> bool:
    if not board.is_inside(x, y) or not board.is_empty(x, y):
        return False
    with board.hypothetical(x, y, player):
        return check_win(board, x, y)


def find_winning_cells(board: Board, player: Player, cells: Optional[Iterable[Tuple[int, int]]] = None) -> List[Tuple[int, int]]:
    pool = board.empty_cells() if cells is None else cells
    return [(x, y) for x, y in pool if is_winning_move(board, x, y, player)]


def is_valid_move(board: Board, x: int, y: int) -> bool:
    return board.is_inside(x, y) and board.is_empty(x, y)


def apply_move(board: Board, x: int, y: int, player: Player) -> MoveResult:
    if not is_valid_move(board, x, y):
        return MoveResult(accepted=False)
    move = board.place(x, y, player)
    if check_win(board, x, y):
        return MoveResult(accepted=True, outcome=Outcome.WIN, winner=player, move=move)
    if board.is_full():
        return MoveResult(accepted=True, outcome=Outcome.DRAW, move=move)
    return MoveResult(accepted=True, outcome=Outcome.CONTINUE, move=move)


def undo_move(board: Board) -> bool:
    return board.pop() is not None


def get_game_result(board: Board) -> str:
    last = board.last_move
    if last is not None and check_win(board, last.x, last.y):
        return f"{last.player.label} wins"
    if board.is_full():
        return "Draw"
    return "Game in progress"


def export_move_history(board: Board) -> str:
    """Exports the move log as space separated ``B(x,y)``/``W(x,y)`` tokens."""
    return " ".join(f"{move.player.short}({move.x},{move.y})" for move in board.move_log)
