import pytest

from gomoku_logic import (
    BOARD_SIZE,
    Board,
    Move,
    Outcome,
    Player,
    apply_move,
    check_win,
    export_move_history,
    find_winning_cells,
    get_game_result,
    is_winning_move,
    undo_move,
)


def draw_pattern(x: int, y: int) -> Player:
    # No five in any direction: rows alternate, other lines run in pairs.
    return Player.BLACK if (x + 2 * y) % 4 < 2 else Player.WHITE


def test_board_rejects_other_sizes() -> None:
    with pytest.raises(ValueError):
        Board(19)


def test_place_then_undo_restores_board_and_log() -> None:
    board = Board()
    board.place(7, 7, Player.BLACK)
    board.place(7, 8, Player.WHITE)
    snapshot = board.snapshot()
    hash_key = board.hash_key
    log = list(board.move_log)

    result = apply_move(board, 8, 8, Player.BLACK)
    assert result.accepted
    assert undo_move(board)

    assert board.snapshot() == snapshot
    assert board.hash_key == hash_key
    assert board.move_log == log
    assert board.stone_count == 2


def test_undo_on_empty_board_is_noop() -> None:
    board = Board()
    assert not undo_move(board)
    assert board.stone_count == 0


def test_apply_move_rejects_occupied_and_outside_cells() -> None:
    board = Board()
    assert apply_move(board, 7, 7, Player.BLACK).accepted
    rejected = apply_move(board, 7, 7, Player.WHITE)
    assert not rejected.accepted
    assert board.get(7, 7) == Player.BLACK
    assert not apply_move(board, BOARD_SIZE, 0, Player.WHITE).accepted
    assert len(board.move_log) == 1


def test_place_on_occupied_cell_raises() -> None:
    board = Board()
    board.place(0, 0, Player.BLACK)
    with pytest.raises(ValueError):
        board.place(0, 0, Player.WHITE)


@pytest.mark.parametrize(
    "cells",
    [
        [(7, 3), (7, 4), (7, 5), (7, 6)],
        [(3, 7), (4, 7), (5, 7), (6, 7)],
        [(3, 3), (4, 4), (5, 5), (6, 6)],
        [(3, 11), (4, 10), (5, 9), (6, 8)],
    ],
)
def test_fifth_stone_wins_in_every_direction(cells) -> None:
    board = Board()
    for x, y in cells:
        board.place(x, y, Player.BLACK)
    result = apply_move(board, 7, 7, Player.BLACK)
    assert result.outcome is Outcome.WIN
    assert result.winner is Player.BLACK
    assert get_game_result(board) == "Black wins"


def test_four_is_not_a_win() -> None:
    board = Board()
    for y in (5, 6, 7):
        board.place(7, y, Player.WHITE)
    result = apply_move(board, 7, 8, Player.WHITE)
    assert result.outcome is Outcome.CONTINUE
    assert not check_win(board, 7, 8)
    assert get_game_result(board) == "Game in progress"


def test_full_board_without_five_is_a_draw() -> None:
    board = Board()
    cells = [(x, y) for x in range(BOARD_SIZE) for y in range(BOARD_SIZE)]
    for x, y in cells[:-1]:
        board.place(x, y, draw_pattern(x, y))
    x, y = cells[-1]
    result = apply_move(board, x, y, draw_pattern(x, y))
    assert result.outcome is Outcome.DRAW
    assert result.winner is None
    assert board.is_full()
    assert get_game_result(board) == "Draw"


def test_hypothetical_restores_cell_on_exception() -> None:
    board = Board()
    board.place(7, 7, Player.BLACK)
    hash_key = board.hash_key
    with pytest.raises(RuntimeError):
        with board.hypothetical(7, 8, Player.WHITE):
            assert board.get(7, 8) == Player.WHITE
            raise RuntimeError("boom")
    assert board.is_empty(7, 8)
    assert board.hash_key == hash_key
    assert len(board.move_log) == 1


def test_hash_depends_on_position_not_order() -> None:
    first = Board.from_moves([Move(7, 7, Player.BLACK), Move(7, 8, Player.WHITE), Move(8, 8, Player.BLACK)])
    second = Board.from_moves([Move(8, 8, Player.BLACK), Move(7, 8, Player.WHITE), Move(7, 7, Player.BLACK)])
    assert first.hash_key == second.hash_key
    assert first.snapshot() == second.snapshot()


def test_copy_is_independent() -> None:
    board = Board()
    board.place(7, 7, Player.BLACK)
    clone = board.copy()
    clone.place(7, 8, Player.WHITE)
    assert board.is_empty(7, 8)
    assert len(board.move_log) == 1


def test_winning_cells_and_winning_move() -> None:
    board = Board()
    for y in range(3, 7):
        board.place(7, y, Player.BLACK)
    board.place(7, 2, Player.WHITE)
    assert find_winning_cells(board, Player.BLACK) == [(7, 7)]
    assert is_winning_move(board, 7, 7, Player.BLACK)
    assert not is_winning_move(board, 7, 7, Player.WHITE)
    assert not is_winning_move(board, 7, 3, Player.BLACK)
    assert board.is_empty(7, 7)


def test_export_move_history() -> None:
    board = Board.from_moves([Move(7, 7, Player.BLACK), Move(7, 8, Player.WHITE)])
    assert export_move_history(board) == "B(7,7) W(7,8)"
    assert board.last_move == Move(7, 8, Player.WHITE)
    assert Player.BLACK.opponent is Player.WHITE
