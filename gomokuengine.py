"""Gomoku move-selection engine built on a prioritised strategy stack.

Each difficulty tier is a :class:`TierParams` preset.  A tier is turned into a
:class:`StrategySelector` holding the usual decision skeleton as separate
strategies, highest priority first:

* immediate win, immediate block (definitive, always checked first),
* remote oracle suggestion (grandmaster only),
* critical defense and forcing attack shortcuts,
* scored candidate selection, optionally with alpha-beta lookahead,
* weaker tiers' scoring and a last-resort empty cell as fallbacks.

Forced moves are definitive.  The scoring steps return ranked results and the
selector keeps the one with the highest priority, so a weaker tier only plays
when the stronger ones produced nothing.

The engine never keeps state between decisions beyond its configuration; all
scratch work happens on a copy of the caller's board.
"""

from __future__ import annotations

import math
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from evaluation import (
    WeightProfile,
    analyze_placement,
    candidate_moves,
    evaluate_position,
    topped_up_candidates,
)
from gomoku_logic import Board, Move, Player, check_win, find_winning_cells
from oracle import OracleClient, OracleError
from patterns import (
    chain_potential,
    collect_line_stats,
    defense_severity,
    fork_bonus,
    offense_severity,
    offensive_pressure,
    threat_profile,
)
from search import AlphaBetaSearcher

Cell = Tuple[int, int]


# ---------------------------------------------------------------------------
# Strategy interfaces and context models
# ---------------------------------------------------------------------------


@dataclass
class StrategyContext:
    move_count: int
    player: Player
    empty_cells: int
    last_move: Optional[Move]
    opponent_win_threat: bool
    difficulty: str
    notices: List[str] = field(default_factory=list)


@dataclass
class StrategyResult:
    move: Optional[Cell]
    strategy_name: str
    score: Optional[float] = None
    confidence: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    definitive: bool = False


@dataclass(frozen=True, slots=True)
class ScoredMove:
    x: int
    y: int
    score: float


class MoveStrategy(ABC):
    def __init__(self, *, name: Optional[str] = None, priority: int = 0, confidence: Optional[float] = None):
        self.name = name or self.__class__.__name__
        self.priority = priority
        self.confidence = confidence

    @abstractmethod
    def is_applicable(self, context: StrategyContext) -> bool:
        ...

    @abstractmethod
    def generate_move(self, board: Board, context: StrategyContext) -> Optional[StrategyResult]:
        ...

    def apply_config(self, config: Any) -> None:
        pass


class StrategySelector:
    def __init__(self, *, logger: Optional[Callable[[str], None]] = None):
        self._strategies: List[MoveStrategy] = []
        self._logger = logger or (lambda *_: None)

    def register(self, strategy: MoveStrategy) -> None:
        self._strategies.append(strategy)
        self._strategies.sort(key=lambda s: s.priority, reverse=True)
        self._logger(f"strategy registered: {strategy.name} (priority={strategy.priority})")

    def strategies(self) -> Tuple[MoveStrategy, ...]:
        return tuple(self._strategies)

    def select(self, board: Board, context: StrategyContext) -> Optional[StrategyResult]:
        best_result: Optional[StrategyResult] = None
        best_key = (-float("inf"), -float("inf"), -float("inf"))

        for strategy in self._strategies:
            if not strategy.is_applicable(context):
                continue
            try:
                result = strategy.generate_move(board, context)
            except Exception as exc:
                self._logger(f"strategy {strategy.name} error: {exc}")
                continue
            if not result or not result.move:
                continue
            if result.definitive:
                return result

            score = float(result.score) if result.score is not None else 0.0
            confidence = float(result.confidence) if result.confidence is not None else 0.0
            key = (float(strategy.priority), score, confidence)
            if key > best_key:
                best_key = key
                best_result = result

        if best_result is None:
            self._logger("no strategies produced a move suggestion")
        return best_result


# ---------------------------------------------------------------------------
# Configuration model
# ---------------------------------------------------------------------------


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    GRANDMASTER = "grandmaster"


class ScanScope(str, Enum):
    CANDIDATES = "candidates"
    BOARD = "board"


@dataclass(frozen=True, slots=True)
class TierParams:
    name: str
    scan_scope: ScanScope
    defense_threshold: float
    candidate_radius: int
    attack_weights: WeightProfile
    noise: float
    top_n: int
    temperature: float
    scan_radius: int = 1
    random_block: bool = False
    defense_radius: int = 3
    attack_threshold: Optional[float] = None
    attack_radius: int = 3
    min_candidates: int = 0
    safety_weights: Optional[WeightProfile] = None
    safety_factor: float = 0.0
    lookahead: bool = False
    use_oracle: bool = False
    fallback: Optional[str] = None


EASY_WEIGHTS = WeightProfile(
    center_weight=32,
    offensive_multiplier=0.9,
    defensive_multiplier=0.45,
    adjacency_weight=36,
    adjacency_radius=1,
    threat_weight=0.6,
    fork_weight=0.45,
    defensive_threat_weight=0.35,
    defensive_fork_weight=0.3,
)
MEDIUM_WEIGHTS = WeightProfile(
    center_weight=44,
    offensive_multiplier=1.32,
    defensive_multiplier=0.45,
    adjacency_weight=60,
    adjacency_radius=2,
    threat_weight=1.05,
    fork_weight=0.9,
    defensive_threat_weight=0.65,
    defensive_fork_weight=0.6,
)
MEDIUM_SAFETY_WEIGHTS = WeightProfile(
    center_weight=20,
    offensive_multiplier=1.08,
    defensive_multiplier=0.48,
    adjacency_weight=36,
    adjacency_radius=2,
    threat_weight=0.78,
    fork_weight=0.6,
    defensive_threat_weight=0.4,
    defensive_fork_weight=0.35,
)
HARD_WEIGHTS = WeightProfile(
    center_weight=56,
    offensive_multiplier=1.72,
    defensive_multiplier=0.52,
    adjacency_weight=94,
    adjacency_radius=2,
    threat_weight=1.45,
    fork_weight=1.28,
    defensive_threat_weight=0.7,
    defensive_fork_weight=0.62,
)


class TierRegistry:
    PRESETS: Dict[str, TierParams] = {
        Difficulty.EASY.value: TierParams(
            name=Difficulty.EASY.value,
            scan_scope=ScanScope.CANDIDATES,
            scan_radius=1,
            random_block=True,
            defense_threshold=6800,
            defense_radius=2,
            candidate_radius=1,
            attack_weights=EASY_WEIGHTS,
            noise=36,
            top_n=6,
            temperature=1.4,
        ),
        Difficulty.MEDIUM.value: TierParams(
            name=Difficulty.MEDIUM.value,
            scan_scope=ScanScope.BOARD,
            defense_threshold=6200,
            attack_threshold=8800,
            candidate_radius=2,
            min_candidates=6,
            attack_weights=MEDIUM_WEIGHTS,
            safety_weights=MEDIUM_SAFETY_WEIGHTS,
            safety_factor=0.55,
            noise=24,
            top_n=5,
            temperature=0.85,
            fallback=Difficulty.EASY.value,
        ),
        Difficulty.HARD.value: TierParams(
            name=Difficulty.HARD.value,
            scan_scope=ScanScope.BOARD,
            defense_threshold=5200,
            attack_threshold=8600,
            candidate_radius=2,
            min_candidates=8,
            attack_weights=HARD_WEIGHTS,
            noise=120,
            top_n=4,
            temperature=0.6,
            lookahead=True,
            fallback=Difficulty.MEDIUM.value,
        ),
        Difficulty.GRANDMASTER.value: TierParams(
            name=Difficulty.GRANDMASTER.value,
            scan_scope=ScanScope.BOARD,
            defense_threshold=5200,
            attack_threshold=8600,
            candidate_radius=2,
            min_candidates=8,
            attack_weights=HARD_WEIGHTS,
            noise=120,
            top_n=4,
            temperature=0.6,
            lookahead=True,
            use_oracle=True,
            fallback=Difficulty.MEDIUM.value,
        ),
    }

    @classmethod
    def resolve(cls, name: str) -> TierParams:
        key = name.value if isinstance(name, Difficulty) else str(name).lower()
        if key not in cls.PRESETS:
            raise ValueError(f"Unknown difficulty '{name}'")
        return cls.PRESETS[key]

    @classmethod
    def fallback_chain(cls, name: str) -> List[TierParams]:
        chain = []
        params: Optional[TierParams] = cls.resolve(name)
        while params is not None:
            chain.append(params)
            params = cls.resolve(params.fallback) if params.fallback else None
        return chain


# ---------------------------------------------------------------------------
# Shared decision helpers
# ---------------------------------------------------------------------------


def select_randomized_move(
    moves: Sequence[ScoredMove],
    *,
    top_n: int = 3,
    temperature: float = 1.0,
    rng: Optional[random.Random] = None,
) -> Optional[ScoredMove]:
    """Sample one of the best ``top_n`` moves (``moves`` sorted best first).

    Each move is weighted by a blend of its normalised score and its rank, then
    sharpened by ``1 / temperature``.  A non-positive temperature returns the
    best move.
    """
    if not moves:
        return None
    if temperature <= 0:
        return moves[0]

    rng = rng or random
    limit = max(1, min(top_n, len(moves)))
    pool = list(moves[:limit])
    scores = [move.score for move in pool]
    low, high = min(scores), max(scores)
    span = (high - low) or 1.0
    exponent = 1.0 / max(temperature, 0.05)

    weights = []
    for index, move in enumerate(pool):
        normalized = (move.score - low) / span
        rank = (len(pool) - index) / len(pool)
        weights.append(math.pow(normalized * 0.7 + rank * 0.3 + 0.05, exponent))

    roll = rng.random() * sum(weights)
    for move, weight in zip(pool, weights):
        roll -= weight
        if roll <= 0:
            return move
    return pool[-1]


def find_critical_defense(board: Board, opponent: Player, min_severity: float, radius: int = 3) -> Optional[Cell]:
    """Cell the opponent would most like to take, if urgent enough to deny."""
    best: Optional[Cell] = None
    best_severity = 0
    for x, y in candidate_moves(board, radius):
        if not board.is_empty(x, y):
            continue
        with board.hypothetical(x, y, opponent):
            stats = collect_line_stats(board, x, y, opponent)
        severity = defense_severity(threat_profile(stats))
        if severity > best_severity:
            best_severity = severity
            best = (x, y)
    return best if best_severity >= min_severity else None


def forcing_severity(board: Board, x: int, y: int, player: Player) -> float:
    with board.hypothetical(x, y, player):
        stats = collect_line_stats(board, x, y, player)
    return max(
        offense_severity(threat_profile(stats)),
        fork_bonus(stats) / 3,
        offensive_pressure(stats) / 2,
    )


def find_forcing_attack(board: Board, player: Player, min_severity: float, radius: int = 3) -> Optional[Cell]:
    best: Optional[Cell] = None
    best_severity = 0.0
    for x, y in candidate_moves(board, radius):
        if not board.is_empty(x, y):
            continue
        severity = forcing_severity(board, x, y, player)
        if severity > best_severity:
            best_severity = severity
            best = (x, y)
    return best if best_severity >= min_severity else None


def _scan_cells(board: Board, params: TierParams) -> List[Cell]:
    if params.scan_scope is ScanScope.CANDIDATES:
        return candidate_moves(board, params.scan_radius)
    return board.empty_cells()


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class _TierStrategy(MoveStrategy):
    def __init__(
        self,
        *,
        priority: int,
        confidence: Optional[float] = None,
        name: Optional[str] = None,
        logger: Optional[Callable[[str], None]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(name=name, priority=priority, confidence=confidence)
        self._logger = logger or (lambda *_: None)
        self._rng = rng or random.Random()
        self._params: Optional[TierParams] = None

    def apply_config(self, config: TierParams) -> None:
        if not isinstance(config, TierParams):
            raise TypeError(f"{self.__class__.__name__}.apply_config expects TierParams")
        self._params = config

    @property
    def params(self) -> TierParams:
        if self._params is None:
            raise RuntimeError(f"{self.name} not configured")
        return self._params

    def is_applicable(self, context: StrategyContext) -> bool:
        return context.empty_cells > 0


class ImmediateWinStrategy(_TierStrategy):
    def __init__(self, **kwargs) -> None:
        super().__init__(priority=100, confidence=1.0, **kwargs)

    def generate_move(self, board: Board, context: StrategyContext) -> Optional[StrategyResult]:
        for x, y in _scan_cells(board, self.params):
            with board.hypothetical(x, y, context.player):
                wins = check_win(board, x, y)
            if wins:
                self._logger(f"immediate win at ({x}, {y})")
                return StrategyResult(
                    move=(x, y),
                    strategy_name=self.name,
                    score=500000.0,
                    confidence=self.confidence,
                    metadata={"pattern": "five"},
                    definitive=True,
                )
        return None


class ImmediateBlockStrategy(_TierStrategy):
    def __init__(self, **kwargs) -> None:
        super().__init__(priority=90, confidence=1.0, **kwargs)

    def generate_move(self, board: Board, context: StrategyContext) -> Optional[StrategyResult]:
        blocks = find_winning_cells(board, context.player.opponent, _scan_cells(board, self.params))
        if not blocks:
            return None
        move = self._rng.choice(blocks) if self.params.random_block else blocks[0]
        self._logger(f"blocking opponent five at {move} ({len(blocks)} threat cells)")
        return StrategyResult(
            move=move,
            strategy_name=self.name,
            score=400000.0,
            confidence=self.confidence,
            metadata={"pattern": "block_five", "threats": len(blocks)},
            definitive=True,
        )


class CriticalDefenseStrategy(_TierStrategy):
    def __init__(self, **kwargs) -> None:
        super().__init__(priority=80, confidence=0.95, **kwargs)

    def generate_move(self, board: Board, context: StrategyContext) -> Optional[StrategyResult]:
        params = self.params
        move = find_critical_defense(board, context.player.opponent, params.defense_threshold, params.defense_radius)
        if move is None:
            return None
        self._logger(f"critical defense at {move} (threshold={params.defense_threshold:.0f})")
        return StrategyResult(
            move=move,
            strategy_name=self.name,
            confidence=self.confidence,
            metadata={"pattern": "critical_defense"},
            definitive=True,
        )


class ForcingAttackStrategy(_TierStrategy):
    def __init__(self, **kwargs) -> None:
        super().__init__(priority=70, confidence=0.9, **kwargs)

    def is_applicable(self, context: StrategyContext) -> bool:
        if self._params is None or self._params.attack_threshold is None:
            return False
        return context.empty_cells > 0 and not context.opponent_win_threat

    def generate_move(self, board: Board, context: StrategyContext) -> Optional[StrategyResult]:
        params = self.params
        move = find_forcing_attack(board, context.player, params.attack_threshold, params.attack_radius)
        if move is None:
            return None
        self._logger(f"forcing attack at {move} (threshold={params.attack_threshold:.0f})")
        return StrategyResult(
            move=move,
            strategy_name=self.name,
            confidence=self.confidence,
            metadata={"pattern": "forcing_attack"},
            definitive=True,
        )


class ScoredCandidateStrategy(_TierStrategy):
    """Heuristic scoring of the candidate pool with a randomised pick."""

    def __init__(self, *, priority: int = 50, **kwargs) -> None:
        super().__init__(priority=priority, confidence=0.6, **kwargs)

    def candidates(self, board: Board) -> List[Cell]:
        params = self.params
        if params.min_candidates:
            return topped_up_candidates(board, params.candidate_radius, params.min_candidates, params.candidate_radius + 1)
        return candidate_moves(board, params.candidate_radius)

    def generate_move(self, board: Board, context: StrategyContext) -> Optional[StrategyResult]:
        params = self.params
        player = context.player
        scored = []
        for x, y in self.candidates(board):
            if not board.is_empty(x, y):
                continue
            score = evaluate_position(board, x, y, player, params.attack_weights)
            if params.safety_weights is not None:
                score += evaluate_position(board, x, y, player.opponent, params.safety_weights) * params.safety_factor
            score += self._rng.random() * params.noise
            scored.append(ScoredMove(x, y, score))

        if not scored:
            return None
        scored.sort(key=lambda move: move.score, reverse=True)
        choice = select_randomized_move(scored, top_n=params.top_n, temperature=params.temperature, rng=self._rng)
        if choice is None:
            return None
        self._logger(f"{params.name} scoring picked ({choice.x}, {choice.y}) from {len(scored)} candidates")
        return StrategyResult(
            move=(choice.x, choice.y),
            strategy_name=self.name,
            score=choice.score,
            confidence=self.confidence,
            metadata={"tier": params.name, "candidates": len(scored)},
        )


class LookaheadStrategy(_TierStrategy):
    """Base scoring blended with an alpha-beta lookahead per top candidate."""

    DECISIVE_SEVERITY = 8700
    DECISIVE_FORK = 20000
    DECISIVE_PRESSURE = 9000
    DECISIVE_CHAIN = 9500
    DEEP_SEARCH_BEFORE_MOVE = 12

    def __init__(self, **kwargs) -> None:
        super().__init__(priority=60, confidence=0.85, **kwargs)

    def _base_scores(self, board: Board, player: Player) -> List[ScoredMove]:
        params = self.params
        scored = []
        for x, y in topped_up_candidates(board, params.candidate_radius, params.min_candidates, params.candidate_radius + 1):
            if not board.is_empty(x, y):
                continue
            score = evaluate_position(board, x, y, player, params.attack_weights)
            analysis = analyze_placement(board, x, y, player)
            if analysis is not None:
                score += offensive_pressure(analysis.line_stats) * 0.55 + chain_potential(analysis.line_stats) * 0.9
            scored.append(ScoredMove(x, y, score))
        scored.sort(key=lambda move: move.score, reverse=True)
        return scored

    def generate_move(self, board: Board, context: StrategyContext) -> Optional[StrategyResult]:
        params = self.params
        player = context.player
        opponent = player.opponent
        start = time.perf_counter()

        base_moves = self._base_scores(board, player)
        depth = 3 if context.move_count < self.DEEP_SEARCH_BEFORE_MOVE else 2
        limit = min(8 if depth == 3 else 9, len(base_moves))
        searcher = AlphaBetaSearcher(board)
        evaluated: List[ScoredMove] = []

        for candidate in base_moves[:limit]:
            x, y = candidate.x, candidate.y
            if not board.is_empty(x, y):
                continue
            with board.hypothetical(x, y, player):
                if check_win(board, x, y):
                    return self._result((x, y), "five", definitive_score=500000.0)
                stats = collect_line_stats(board, x, y, player)
                fork = fork_bonus(stats)
                severity = offense_severity(threat_profile(stats))
                pressure = offensive_pressure(stats)
                chain = chain_potential(stats)
                if (
                    severity >= self.DECISIVE_SEVERITY
                    or fork >= self.DECISIVE_FORK
                    or pressure >= self.DECISIVE_PRESSURE
                    or chain >= self.DECISIVE_CHAIN
                ):
                    return self._result((x, y), "decisive_threat", definitive_score=float(max(severity, fork, pressure, chain)))
                advantage = searcher.evaluate_leaf(player)
                lookahead = searcher.minimax(depth, -math.inf, math.inf, opponent, player, depth)

            total = (
                lookahead * 0.55
                + candidate.score * 0.35
                + fork * 0.008
                + severity * 2.2
                + pressure * 0.5
                + chain * 0.65
                + advantage * 0.45
            )
            evaluated.append(ScoredMove(x, y, total + self._rng.random() * params.noise))

        if not evaluated:
            return None

        evaluated.sort(key=lambda move: move.score, reverse=True)
        choice = select_randomized_move(evaluated, top_n=params.top_n, temperature=params.temperature, rng=self._rng)
        if choice is None:
            return None
        elapsed = time.perf_counter() - start
        self._logger(
            f"lookahead depth={depth} candidates={len(evaluated)} nodes={searcher.nodes} "
            f"cache_hits={searcher.leaf_hits} time={elapsed:.2f}s picked ({choice.x}, {choice.y})"
        )
        return StrategyResult(
            move=(choice.x, choice.y),
            strategy_name=self.name,
            score=choice.score,
            confidence=self.confidence,
            metadata={"depth": depth, "nodes": searcher.nodes, "time": elapsed},
        )

    def _result(self, move: Cell, pattern: str, *, definitive_score: float) -> StrategyResult:
        self._logger(f"lookahead found {pattern} at {move}")
        return StrategyResult(
            move=move,
            strategy_name=self.name,
            score=definitive_score,
            confidence=1.0,
            metadata={"pattern": pattern},
            definitive=True,
        )


class OracleStrategy(_TierStrategy):
    """Ask the remote oracle; any failure yields to the local strategies."""

    def __init__(self, client: Optional[OracleClient], **kwargs) -> None:
        super().__init__(priority=85, confidence=0.9, **kwargs)
        self._client = client

    def generate_move(self, board: Board, context: StrategyContext) -> Optional[StrategyResult]:
        if self._client is None:
            context.notices.append("Oracle not configured; using local engine")
            return None
        try:
            suggestion = self._client.suggest_move(board, context.player)
        except OracleError as exc:
            self._logger(f"oracle failed: {exc}")
            context.notices.append(f"Oracle unavailable: {exc}; using local engine")
            return None
        return StrategyResult(
            move=(suggestion.x, suggestion.y),
            strategy_name=self.name,
            confidence=self.confidence,
            metadata={"analysis": suggestion.analysis, "banter": suggestion.banter},
            definitive=True,
        )


class FallbackStrategy(_TierStrategy):
    def __init__(self, **kwargs) -> None:
        super().__init__(priority=0, confidence=0.1, **kwargs)

    def generate_move(self, board: Board, context: StrategyContext) -> Optional[StrategyResult]:
        pool = candidate_moves(board, 1) or board.empty_cells()
        if not pool:
            return None
        return StrategyResult(move=pool[0], strategy_name=self.name, score=0.0, confidence=self.confidence)


def build_selector(
    difficulty: str,
    *,
    oracle: Optional[OracleClient] = None,
    rng: Optional[random.Random] = None,
    logger: Optional[Callable[[str], None]] = None,
) -> StrategySelector:
    """Assemble the strategy stack for ``difficulty`` and its weaker fallbacks."""

    chain = TierRegistry.fallback_chain(difficulty)
    params = chain[0]
    shared = {"logger": logger, "rng": rng}
    selector = StrategySelector(logger=logger)

    def add(strategy: _TierStrategy, config: TierParams) -> None:
        strategy.apply_config(config)
        selector.register(strategy)

    add(ImmediateWinStrategy(**shared), params)
    add(ImmediateBlockStrategy(**shared), params)
    if params.use_oracle:
        add(OracleStrategy(oracle, **shared), params)
    add(CriticalDefenseStrategy(**shared), params)
    add(ForcingAttackStrategy(**shared), params)
    if params.lookahead:
        add(LookaheadStrategy(**shared), params)

    scoring_tiers = [tier for tier in chain if not tier.lookahead]
    for offset, tier in enumerate(scoring_tiers):
        add(ScoredCandidateStrategy(priority=50 - offset * 10, name=f"Scored[{tier.name}]", **shared), tier)
    add(FallbackStrategy(**shared), params)
    return selector


# ---------------------------------------------------------------------------
# Engine facade
# ---------------------------------------------------------------------------


@dataclass
class Decision:
    move: Optional[Move]
    strategy_name: Optional[str] = None
    notices: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class GomokuEngine:
    def __init__(
        self,
        *,
        oracle: Optional[OracleClient] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.engine_name = "Gomoku"
        self.oracle = oracle
        self._rng = rng or random.Random()
        self._logger = logger or (lambda *_: None)
        self._selectors: Dict[str, StrategySelector] = {}

    def set_oracle(self, oracle: Optional[OracleClient]) -> None:
        self.oracle = oracle
        self._selectors.pop(Difficulty.GRANDMASTER.value, None)

    def selector_for(self, difficulty: str) -> StrategySelector:
        key = TierRegistry.resolve(difficulty).name
        selector = self._selectors.get(key)
        if selector is None:
            selector = build_selector(
                key,
                oracle=self.oracle,
                rng=self._rng,
                logger=self._logger,
            )
            self._selectors[key] = selector
        return selector

    def decide(self, board: Board, player: Player, difficulty: str = Difficulty.HARD.value) -> Decision:
        if board.is_full():
            return Decision(move=None)

        selector = self.selector_for(difficulty)
        scratch = board.copy()
        context = self._build_context(scratch, player, difficulty)

        select_start = time.perf_counter()
        result = selector.select(scratch, context)
        select_time = time.perf_counter() - select_start
        notices = list(context.notices)

        if result is None or result.move is None or not board.is_empty(*result.move):
            self._logger("no strategy produced a legal move")
            empties = board.empty_cells()
            if not empties:
                return Decision(move=None, notices=notices)
            x, y = board.center if board.is_empty(*board.center) else empties[0]
            return Decision(move=Move(x, y, player), strategy_name="Fallback", notices=notices)

        self._logger(f"strategy {result.strategy_name} selected ({result.move[0]}, {result.move[1]}) in {select_time:.3f}s")
        x, y = result.move
        return Decision(
            move=Move(x, y, player),
            strategy_name=result.strategy_name,
            notices=notices,
            metadata=dict(result.metadata),
        )

    def choose_move(self, board: Board, player: Player, difficulty: str = Difficulty.HARD.value) -> Optional[Move]:
        return self.decide(board, player, difficulty).move

    def _build_context(self, board: Board, player: Player, difficulty: str) -> StrategyContext:
        return StrategyContext(
            move_count=len(board.move_log),
            player=player,
            empty_cells=board.size * board.size - board.stone_count,
            last_move=board.last_move,
            opponent_win_threat=bool(find_winning_cells(board, player.opponent, candidate_moves(board, 1))),
            difficulty=TierRegistry.resolve(difficulty).name,
        )
