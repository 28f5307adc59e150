"""Static evaluation of candidate cells for the Gomoku engine.

The evaluator scores a single empty cell for a player by blending a centre
bias, the raw line score of placing there, the line score the opponent would
get from the same cell, local stone density and the threat/fork bonuses from
:mod:`patterns`.  The blend is parameterised by a :class:`WeightProfile` so the
difficulty tiers and the search move ordering can each use their own knobs.

Everything here is deterministic: the same board and weights always produce
the same numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from gomoku_logic import Board, Player
from patterns import (
    LineStat,
    chain_potential,
    collect_line_stats,
    fork_bonus,
    line_score,
    offensive_pressure,
    threat_bonus,
)

Cell = Tuple[int, int]

CENTER_STEP_PENALTY = 8
MAX_CANDIDATE_RADIUS = 4
MIN_CANDIDATE_POOL = 12


@dataclass(frozen=True, slots=True)
class WeightProfile:
    center_weight: float = 50
    offensive_multiplier: float = 1.35
    defensive_multiplier: float = 0.55
    adjacency_weight: float = 75
    adjacency_radius: int = 1
    threat_weight: float = 1.0
    fork_weight: float = 1.0
    defensive_threat_weight: float = 0.6
    defensive_fork_weight: float = 0.55


DEFAULT_WEIGHTS = WeightProfile()

# Leaf evaluation profiles: the side being evaluated for and its opponent.
ADVANTAGE_WEIGHTS = WeightProfile(
    center_weight=45,
    offensive_multiplier=1.3,
    defensive_multiplier=0.45,
    adjacency_weight=60,
    adjacency_radius=2,
    threat_weight=0.95,
)
OPPONENT_ADVANTAGE_WEIGHTS = WeightProfile(
    center_weight=45,
    offensive_multiplier=1.25,
    defensive_multiplier=0.5,
    adjacency_weight=55,
    adjacency_radius=2,
    threat_weight=0.9,
)


@dataclass(frozen=True, slots=True)
class PlacementAnalysis:
    score: int
    line_stats: Tuple[LineStat, ...]


def center_bias(board: Board, x: int, y: int, weight: float = 50) -> float:
    cx, cy = board.center
    distance = abs(x - cx) + abs(y - cy)
    return max(0.0, weight - distance * CENTER_STEP_PENALTY)


def _neighbourhood(board: Board, x: int, y: int, radius: int) -> Iterable[Cell]:
    for dx in range(-radius, radius + 1):
        for dy in range(-radius, radius + 1):
            if dx == 0 and dy == 0:
                continue
            nx, ny = x + dx, y + dy
            if board.is_inside(nx, ny):
                yield nx, ny


def count_adjacent_stones(board: Board, x: int, y: int, radius: int = 1) -> int:
    return sum(1 for nx, ny in _neighbourhood(board, x, y, radius) if board.cells[nx][ny] is not None)


def has_neighbor_within(board: Board, x: int, y: int, radius: int) -> bool:
    return any(board.cells[nx][ny] is not None for nx, ny in _neighbourhood(board, x, y, radius))


def analyze_placement(board: Board, x: int, y: int, player: Player) -> Optional[PlacementAnalysis]:
    if not board.is_empty(x, y):
        return None
    with board.hypothetical(x, y, player):
        stats = collect_line_stats(board, x, y, player)
    return PlacementAnalysis(score=line_score(stats), line_stats=stats)


def evaluate_position(board: Board, x: int, y: int, player: Player, weights: WeightProfile = DEFAULT_WEIGHTS) -> float:
    """Desirability of ``(x, y)`` for ``player``; occupied cells score zero."""

    offensive = analyze_placement(board, x, y, player)
    if offensive is None:
        return 0.0
    defensive = analyze_placement(board, x, y, player.opponent)

    score = center_bias(board, x, y, weights.center_weight)
    score += offensive.score * weights.offensive_multiplier
    score += count_adjacent_stones(board, x, y, weights.adjacency_radius) * weights.adjacency_weight
    score += threat_bonus(offensive.line_stats) * weights.threat_weight
    score += fork_bonus(offensive.line_stats) * weights.fork_weight

    if defensive is not None:
        score += defensive.score * weights.defensive_multiplier
        score += threat_bonus(defensive.line_stats) * weights.defensive_threat_weight
        score += fork_bonus(defensive.line_stats) * weights.defensive_fork_weight

    return score


# ---------------------------------------------------------------------------
# Candidate generation
# ---------------------------------------------------------------------------


def _cells_near_stones(board: Board, stones: Sequence[Cell], radius: int) -> Set[Cell]:
    found: Set[Cell] = set()
    for sx, sy in stones:
        for cell in _neighbourhood(board, sx, sy, radius):
            if board.cells[cell[0]][cell[1]] is None:
                found.add(cell)
    return found


def candidate_moves(board: Board, radius: int = 1, *, expand: bool = True) -> List[Cell]:
    """Empty cells near existing stones, in row-major order per radius ring.

    With ``expand`` the radius grows (up to ``radius + 2``, capped at 4) until
    the pool holds ``max(12, 2 * moves + 4)`` cells.  An empty board yields
    only the centre.
    """

    center = board.center
    if not board.has_stones():
        return [center] if board.is_empty(*center) else []

    stones = [(x, y) for x, y, _ in board.stones()]
    target = max(MIN_CANDIDATE_POOL, 2 * len(board.move_log) + 4)
    max_radius = max(radius, min(radius + 2, MAX_CANDIDATE_RADIUS)) if expand else radius

    candidates: List[Cell] = []
    seen: Set[Cell] = set()
    for current in range(radius, max_radius + 1):
        for cell in sorted(_cells_near_stones(board, stones, current)):
            if cell not in seen:
                seen.add(cell)
                candidates.append(cell)
        if len(candidates) >= target:
            break

    if not candidates and board.is_empty(*center):
        candidates.append(center)
    return candidates


def topped_up_candidates(board: Board, radius: int, minimum: int, extra_radius: int) -> List[Cell]:
    candidates = candidate_moves(board, radius)
    if len(candidates) >= minimum:
        return candidates
    seen = set(candidates)
    for cell in candidate_moves(board, extra_radius):
        if cell not in seen:
            seen.add(cell)
            candidates.append(cell)
    return candidates


# ---------------------------------------------------------------------------
# Whole-board estimates
# ---------------------------------------------------------------------------


def estimate_best_score(
    board: Board,
    player: Player,
    weights: WeightProfile = DEFAULT_WEIGHTS,
    candidates: Optional[Sequence[Cell]] = None,
) -> float:
    pool = candidate_moves(board, 2) if candidates is None else candidates
    best: Optional[float] = None
    for x, y in pool:
        if board.cells[x][y] is not None:
            continue
        score = evaluate_position(board, x, y, player, weights)
        if best is None or score > best:
            best = score
    return 0.0 if best is None else best


def estimate_pressure_potential(board: Board, player: Player, candidates: Optional[Sequence[Cell]] = None) -> float:
    pool = candidate_moves(board, 2) if candidates is None else candidates
    best = 0.0
    for x, y in pool:
        if board.cells[x][y] is not None:
            continue
        with board.hypothetical(x, y, player):
            stats = collect_line_stats(board, x, y, player)
        combined = offensive_pressure(stats) + chain_potential(stats) * 0.75
        if combined > best:
            best = combined
    return best


def board_advantage(board: Board, root_player: Player) -> float:
    """Leaf value of the search: positive when ``root_player`` stands better."""

    opponent = root_player.opponent
    pool = candidate_moves(board, 2)
    own_score = estimate_best_score(board, root_player, ADVANTAGE_WEIGHTS, pool)
    opponent_score = estimate_best_score(board, opponent, OPPONENT_ADVANTAGE_WEIGHTS, pool)
    own_pressure = estimate_pressure_potential(board, root_player, pool)
    opponent_pressure = estimate_pressure_potential(board, opponent, pool)
    pressure_delta = own_pressure - opponent_pressure * 0.92
    return own_score - opponent_score * 0.95 + pressure_delta * 0.08
