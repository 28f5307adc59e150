"""Fixed-depth alpha-beta search for the Gomoku engine.

:class:`AlphaBetaSearcher` explores hypothetical continuations on the board it
is given, ordering moves with the static evaluator and only looking at the
best few moves per node.  Leaves are scored with
:func:`evaluation.board_advantage` from the root player's point of view and
cached by Zobrist key for the lifetime of the searcher.

All hypothetical stones are placed through :meth:`gomoku_logic.Board.hypothetical`
so the board is restored on every exit path.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Tuple

from evaluation import WeightProfile, board_advantage, candidate_moves, evaluate_position
from gomoku_logic import Board, Player, check_win

WIN_VALUE = 100_000
DEPTH_PENALTY = 500
SEARCH_RADIUS = 2

MAXIMIZER_ORDERING = WeightProfile(
    center_weight=50,
    offensive_multiplier=1.35,
    defensive_multiplier=0.45,
    adjacency_weight=70,
    adjacency_radius=2,
    threat_weight=1.0,
    fork_weight=1.05,
    defensive_threat_weight=0.7,
    defensive_fork_weight=0.65,
)
MINIMIZER_ORDERING = WeightProfile(
    center_weight=48,
    offensive_multiplier=1.3,
    defensive_multiplier=0.55,
    adjacency_weight=60,
    adjacency_radius=2,
    threat_weight=0.95,
    fork_weight=0.95,
    defensive_threat_weight=0.75,
    defensive_fork_weight=0.7,
)


def search_widths(initial_depth: int) -> Tuple[int, int]:
    """Return ``(root_width, interior_width)`` for a search of ``initial_depth``."""
    if initial_depth >= 3:
        return 7, 5
    return 10, 6


class AlphaBetaSearcher:
    """Minimax with alpha-beta pruning over a narrow, heuristically ordered tree.

    Parameters
    ----------
    board:
        Board to search on.  It is mutated only temporarily.
    """

    def __init__(self, board: Board) -> None:
        self.board = board
        self._leaf_cache: Dict[Tuple[int, Player], float] = {}
        self.nodes = 0
        self.leaf_hits = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._leaf_cache.clear()
        self.nodes = 0
        self.leaf_hits = 0

    def evaluate_leaf(self, root_player: Player) -> float:
        key = (self.board.hash_key, root_player)
        cached = self._leaf_cache.get(key)
        if cached is not None:
            self.leaf_hits += 1
            return cached
        value = board_advantage(self.board, root_player)
        self._leaf_cache[key] = value
        return value

    def minimax(
        self,
        depth: int,
        alpha: float,
        beta: float,
        current_player: Player,
        root_player: Player,
        initial_depth: Optional[int] = None,
    ) -> float:
        if initial_depth is None:
            initial_depth = depth
        self.nodes += 1

        if depth <= 0 or self.board.is_full():
            return self.evaluate_leaf(root_player)

        maximizing = current_player == root_player
        ordered = self._order_moves(current_player, maximizing)
        root_width, interior_width = search_widths(initial_depth)
        width = root_width if depth == initial_depth else interior_width
        ordered = ordered[:width]
        if not ordered:
            return self.evaluate_leaf(root_player)

        best_value = -math.inf if maximizing else math.inf
        opponent = current_player.opponent

        for x, y in ordered:
            if not self.board.is_empty(x, y):
                continue
            with self.board.hypothetical(x, y, current_player):
                if check_win(self.board, x, y):
                    value = WIN_VALUE - depth * DEPTH_PENALTY
                    node_value = float(value if maximizing else -value)
                else:
                    node_value = self.minimax(depth - 1, alpha, beta, opponent, root_player, initial_depth)

            if maximizing:
                best_value = max(best_value, node_value)
                alpha = max(alpha, node_value)
            else:
                best_value = min(best_value, node_value)
                beta = min(beta, node_value)

            if beta <= alpha:
                break

        if math.isinf(best_value):
            return self.evaluate_leaf(root_player)
        return best_value

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _order_moves(self, player: Player, maximizing: bool) -> List[Tuple[int, int]]:
        weights = MAXIMIZER_ORDERING if maximizing else MINIMIZER_ORDERING
        scored = [
            (evaluate_position(self.board, x, y, player, weights), (x, y))
            for x, y in candidate_moves(self.board, SEARCH_RADIUS)
        ]
        # both sides look at their own strongest replies first
        scored.sort(key=lambda item: item[0], reverse=True)
        return [cell for _, cell in scored]
