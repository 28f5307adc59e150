import random
import threading
from unittest.mock import MagicMock

import pytest

from gomoku_logic import BOARD_SIZE, Board, Move, Player, check_win, get_game_result
from gomokuengine import Difficulty, GomokuEngine, LookaheadStrategy
from oracle import OracleSuggestion, OracleTransportError

ALL_TIERS = [tier.value for tier in Difficulty]


def make_board(black=(), white=()) -> Board:
    board = Board()
    for x, y in black:
        board.place(x, y, Player.BLACK)
    for x, y in white:
        board.place(x, y, Player.WHITE)
    return board


def make_engine(seed: int = 7, **kwargs) -> GomokuEngine:
    return GomokuEngine(rng=random.Random(seed), **kwargs)


def draw_pattern(x: int, y: int) -> Player:
    return Player.BLACK if (x + 2 * y) % 4 < 2 else Player.WHITE


SPARSE_EMPTIES = [(3, 3), (7, 7), (11, 11)]


def nearly_full_board(empties=SPARSE_EMPTIES) -> Board:
    board = Board()
    for x in range(BOARD_SIZE):
        for y in range(BOARD_SIZE):
            if (x, y) not in empties:
                board.place(x, y, draw_pattern(x, y))
    return board


@pytest.mark.parametrize("tier", ALL_TIERS)
def test_every_tier_takes_an_immediate_win(tier: str) -> None:
    board = make_board(
        black=[(7, 3), (7, 4), (7, 5), (7, 6), (9, 9)],
        white=[(7, 2), (8, 3), (8, 4), (8, 5), (6, 6)],
    )
    move = make_engine().choose_move(board, Player.BLACK, tier)
    assert move == Move(7, 7, Player.BLACK)


@pytest.mark.parametrize("tier", ALL_TIERS)
def test_every_tier_blocks_an_immediate_loss(tier: str) -> None:
    board = make_board(
        black=[(2, 2), (10, 1), (12, 13), (8, 6)],
        white=[(3, 3), (4, 4), (5, 5), (6, 6), (9, 12)],
    )
    move = make_engine().choose_move(board, Player.BLACK, tier)
    assert move == Move(7, 7, Player.BLACK)


@pytest.mark.parametrize("tier", ALL_TIERS)
def test_open_four_is_finished_not_treated_as_won(tier: str) -> None:
    board = make_board(
        black=[(7, 5), (7, 6), (7, 7), (7, 8)],
        white=[(8, 5), (8, 6), (8, 7)],
    )
    assert get_game_result(board) == "Game in progress"
    assert not check_win(board, 7, 8)
    move = make_engine().choose_move(board, Player.BLACK, tier)
    assert (move.x, move.y) in {(7, 4), (7, 9)}


@pytest.mark.parametrize("tier", ["easy", "medium"])
def test_first_move_goes_near_the_center(tier: str) -> None:
    move = make_engine().choose_move(Board(), Player.BLACK, tier)
    assert move == Move(7, 7, Player.BLACK)


@pytest.mark.parametrize("tier", ["easy", "medium"])
def test_reply_is_legal_and_board_is_untouched(tier: str) -> None:
    board = make_board(black=[(7, 7), (8, 8)], white=[(7, 8)])
    snapshot = board.snapshot()
    hash_key = board.hash_key
    move = make_engine().choose_move(board, Player.WHITE, tier)
    assert move is not None
    assert move.player is Player.WHITE
    assert board.is_empty(move.x, move.y)
    assert board.snapshot() == snapshot
    assert board.hash_key == hash_key
    assert len(board.move_log) == 3


def test_seeded_engines_agree() -> None:
    board = make_board(black=[(7, 7), (8, 8)], white=[(7, 8)])
    first = make_engine(seed=42).choose_move(board, Player.WHITE, "medium")
    second = make_engine(seed=42).choose_move(board, Player.WHITE, "medium")
    assert first == second


def test_full_board_yields_no_move() -> None:
    board = Board()
    for x in range(BOARD_SIZE):
        for y in range(BOARD_SIZE):
            board.place(x, y, draw_pattern(x, y))
    assert make_engine().choose_move(board, Player.BLACK, "hard") is None


def test_last_empty_cell_is_played() -> None:
    board = Board()
    for x in range(BOARD_SIZE):
        for y in range(BOARD_SIZE):
            if (x, y) != (0, 0):
                board.place(x, y, draw_pattern(x, y))
    move = make_engine().choose_move(board, Player.WHITE, "medium")
    assert move == Move(0, 0, Player.WHITE)


def test_unknown_difficulty_raises() -> None:
    with pytest.raises(ValueError):
        make_engine().choose_move(Board(), Player.BLACK, "legendary")


def test_critical_defense_decision_is_reported() -> None:
    board = make_board(black=[(2, 2), (12, 12)], white=[(7, 5), (7, 6), (7, 7)])
    decision = make_engine().decide(board, Player.BLACK, "medium")
    assert decision.strategy_name == "CriticalDefenseStrategy"
    assert (decision.move.x, decision.move.y) in {(7, 4), (7, 8)}


def test_grandmaster_plays_oracle_suggestion() -> None:
    oracle = MagicMock()
    oracle.suggest_move.return_value = OracleSuggestion(x=6, y=6, analysis="corner", banter="hi")
    board = make_board(black=[(7, 7)], white=[(7, 8)])

    decision = make_engine(oracle=oracle).decide(board, Player.BLACK, "grandmaster")

    assert decision.move == Move(6, 6, Player.BLACK)
    assert decision.strategy_name == "OracleStrategy"
    assert decision.metadata["banter"] == "hi"
    assert decision.notices == []


def test_grandmaster_checks_local_win_before_asking_oracle() -> None:
    oracle = MagicMock()
    board = make_board(
        black=[(7, 3), (7, 4), (7, 5), (7, 6)],
        white=[(7, 2), (8, 3), (8, 4), (8, 5)],
    )
    move = make_engine(oracle=oracle).choose_move(board, Player.BLACK, "grandmaster")
    assert move == Move(7, 7, Player.BLACK)
    oracle.suggest_move.assert_not_called()


def test_grandmaster_falls_back_with_notice() -> None:
    oracle = MagicMock()
    oracle.suggest_move.side_effect = OracleTransportError("timed out")
    board = make_board(black=[(2, 2), (12, 12)], white=[(7, 5), (7, 6), (7, 7)])

    decision = make_engine(oracle=oracle).decide(board, Player.BLACK, "grandmaster")

    assert decision.strategy_name == "CriticalDefenseStrategy"
    assert (decision.move.x, decision.move.y) in {(7, 4), (7, 8)}
    assert decision.notices == ["Oracle unavailable: timed out; using local engine"]


def test_grandmaster_without_oracle_notifies_and_plays_locally() -> None:
    board = make_board(black=[(2, 2), (12, 12)], white=[(7, 5), (7, 6), (7, 7)])
    decision = make_engine().decide(board, Player.BLACK, "grandmaster")
    assert decision.move is not None
    assert decision.notices == ["Oracle not configured; using local engine"]


def test_set_oracle_rebuilds_grandmaster_stack() -> None:
    engine = make_engine()
    board = make_board(black=[(7, 7)], white=[(7, 8)])
    engine.selector_for("grandmaster")
    oracle = MagicMock()
    oracle.suggest_move.return_value = OracleSuggestion(x=8, y=8)
    engine.set_oracle(oracle)
    assert engine.choose_move(board, Player.BLACK, "grandmaster") == Move(8, 8, Player.BLACK)


def test_hard_tier_blends_lookahead_over_a_small_pool() -> None:
    board = nearly_full_board()
    messages = []
    decision = make_engine(logger=messages.append).decide(board, Player.BLACK, "hard")

    assert decision.strategy_name == "LookaheadStrategy"
    assert (decision.move.x, decision.move.y) in SPARSE_EMPTIES
    assert decision.metadata["depth"] == 2
    assert any(message.startswith("lookahead depth=2 candidates=3") for message in messages)


def test_hard_tier_ranks_medium_scoring_next_when_lookahead_has_no_move(monkeypatch) -> None:
    monkeypatch.setattr(LookaheadStrategy, "generate_move", lambda self, board, context: None)
    decision = make_engine().decide(nearly_full_board(), Player.BLACK, "hard")
    assert decision.strategy_name == "Scored[medium]"
    assert (decision.move.x, decision.move.y) in SPARSE_EMPTIES


def test_medium_scoring_outranks_easy_scoring_and_fallback() -> None:
    decision = make_engine().decide(nearly_full_board(), Player.WHITE, "medium")
    assert decision.strategy_name == "Scored[medium]"


def test_overlapping_decisions_keep_their_own_notices() -> None:
    board = nearly_full_board()
    stale_asked = threading.Event()
    release_stale = threading.Event()
    stale_decisions = []

    def suggest(board, player):
        if not stale_asked.is_set():
            stale_asked.set()
            release_stale.wait(timeout=5)
            raise OracleTransportError("stale request timed out")
        # let the older request fail and finish while this one is still in flight
        release_stale.set()
        stale_thread.join(timeout=5)
        return OracleSuggestion(x=7, y=7)

    oracle = MagicMock()
    oracle.suggest_move.side_effect = suggest
    engine = make_engine(oracle=oracle)
    stale_thread = threading.Thread(
        target=lambda: stale_decisions.append(engine.decide(board, Player.BLACK, "grandmaster"))
    )
    stale_thread.start()
    assert stale_asked.wait(timeout=5)

    fresh = engine.decide(board, Player.BLACK, "grandmaster")
    stale_thread.join(timeout=5)

    assert fresh.strategy_name == "OracleStrategy"
    assert fresh.notices == []
    assert stale_decisions[0].notices == ["Oracle unavailable: stale request timed out; using local engine"]
    assert stale_decisions[0].strategy_name == "LookaheadStrategy"


@pytest.mark.search_slow
def test_hard_tier_lookahead_returns_legal_move() -> None:
    board = make_board(black=[(7, 7), (8, 8)], white=[(7, 8), (6, 6)])
    messages = []
    engine = make_engine(logger=messages.append)
    decision = engine.decide(board, Player.BLACK, "hard")
    assert decision.strategy_name == "LookaheadStrategy"
    assert board.is_empty(decision.move.x, decision.move.y)
    assert decision.metadata["depth"] == 3
    assert any(message.startswith("lookahead depth=3") for message in messages)


@pytest.mark.search_slow
def test_hard_tier_opening_reply() -> None:
    board = make_board(black=[(7, 7)])
    move = make_engine().choose_move(board, Player.WHITE, "hard")
    assert max(abs(move.x - 7), abs(move.y - 7)) <= 2
