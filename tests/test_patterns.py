import pytest

from gomoku_logic import DIRECTIONS, Board, Player
from patterns import (
    FIVE_SCORE,
    LineStat,
    ThreatProfile,
    chain_potential,
    collect_line_stats,
    defense_severity,
    fork_bonus,
    line_stats,
    offense_severity,
    offensive_pressure,
    score_line,
    threat_bonus,
    threat_profile,
)


def make_board(black=(), white=()) -> Board:
    board = Board()
    for x, y in black:
        board.place(x, y, Player.BLACK)
    for x, y in white:
        board.place(x, y, Player.WHITE)
    return board


def test_line_stats_symmetric_under_direction_flip() -> None:
    board = make_board(
        black=[(7, 5), (7, 6), (6, 6), (8, 8), (5, 7)],
        white=[(7, 9), (9, 9), (4, 7)],
    )
    for x, y in [(7, 7), (0, 0), (14, 3), (6, 8)]:
        for dx, dy in DIRECTIONS:
            assert line_stats(board, x, y, dx, dy, Player.BLACK) == line_stats(board, x, y, -dx, -dy, Player.BLACK)


def test_line_stats_counts_origin_and_open_ends() -> None:
    board = make_board(black=[(7, 5), (7, 6)], white=[(7, 8)])
    assert line_stats(board, 7, 7, 0, 1, Player.BLACK) == LineStat(length=3, open_ends=1)
    assert line_stats(board, 7, 7, 1, 0, Player.BLACK) == LineStat(length=1, open_ends=2)


def test_board_edge_is_closed() -> None:
    board = make_board(black=[(0, 1)])
    assert line_stats(board, 0, 0, 0, 1, Player.BLACK) == LineStat(length=2, open_ends=1)


@pytest.mark.parametrize("open_ends", [0, 1, 2])
def test_score_line_monotone_in_length(open_ends: int) -> None:
    scores = [score_line(length, open_ends) for length in range(0, 7)]
    assert scores == sorted(scores)
    assert score_line(5, open_ends) == FIVE_SCORE


@pytest.mark.parametrize("length", [1, 2, 3, 4, 5])
def test_score_line_monotone_in_open_ends(length: int) -> None:
    scores = [score_line(length, open_ends) for open_ends in (0, 1, 2)]
    assert scores == sorted(scores)


def test_open_four_profile() -> None:
    board = make_board(black=[(7, 5), (7, 6), (7, 7), (7, 8)])
    profile = threat_profile(collect_line_stats(board, 7, 7, Player.BLACK))
    assert profile == ThreatProfile(open_fours=1)


def test_semi_open_three_profile() -> None:
    board = make_board(black=[(7, 5), (7, 6)], white=[(7, 4)])
    with board.hypothetical(7, 7, Player.BLACK):
        stats = collect_line_stats(board, 7, 7, Player.BLACK)
    assert threat_profile(stats) == ThreatProfile(semi_open_threes=1)


def test_severity_ordering() -> None:
    double_four = ThreatProfile(open_fours=2)
    open_four = ThreatProfile(open_fours=1)
    semi_four = ThreatProfile(semi_open_fours=1)
    double_three = ThreatProfile(open_threes=2)
    open_three = ThreatProfile(open_threes=1)

    defensive = [defense_severity(p) for p in (double_four, open_four, semi_four, double_three, open_three)]
    assert defensive == sorted(defensive, reverse=True)
    assert defense_severity(ThreatProfile()) == 0

    offensive = [offense_severity(p) for p in (double_four, open_four, double_three, open_three)]
    assert offensive == sorted(offensive, reverse=True)
    assert offense_severity(ThreatProfile(open_fours=1, open_threes=1)) > offense_severity(open_four)


def test_fork_rewards_double_open_three() -> None:
    # (7,7) completes open threes on the row and the column.
    board = make_board(black=[(7, 5), (7, 6), (5, 7), (6, 7)])
    with board.hypothetical(7, 7, Player.BLACK):
        stats = collect_line_stats(board, 7, 7, Player.BLACK)
    assert threat_profile(stats).open_threes == 2
    assert fork_bonus(stats) == 6500
    assert threat_bonus(stats) == 5000
    assert offensive_pressure(stats) == 2 * 2600 + 2200
    assert chain_potential(stats) > fork_bonus(stats)


def test_quiet_stone_has_no_fork_or_pressure() -> None:
    board = Board()
    stats = collect_line_stats(board, 7, 7, Player.BLACK)
    assert fork_bonus(stats) == 0
    assert offensive_pressure(stats) == 0
    assert threat_bonus(stats) == 0
