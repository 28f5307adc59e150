import argparse
import random
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, TextIO

import utils
from gomoku_logic import Board, Outcome, Player, apply_move, export_move_history, get_game_result
from gomokuengine import Difficulty, GomokuEngine
from oracle import OracleClient, load_oracle_config
from session import GameConfig, GameSession, Mode, immediate_scheduler

DIFFICULTY_CHOICES = [tier.value for tier in Difficulty]


class ConsoleUI:
    """Session UI hooks printing to the terminal."""

    def __init__(self, session_ref: Callable[[], GameSession], out: TextIO = sys.stdout) -> None:
        self._session_ref = session_ref
        self._out = out

    def _print(self, text: str) -> None:
        print(text, file=self._out)

    def on_board_changed(self) -> None:
        session = self._session_ref()
        self._print(utils.render_board_text(session.board))
        if not session.game_over:
            self._print(utils.info_text(f"{session.current_player.label} to move"))

    def set_info_message(self, message: str) -> None:
        self._print(utils.info_text(message))

    def on_game_over(self, result: str) -> None:
        self._print(utils.info_text(f"Game over: {result}"))

    def indicate_machine_activity(self, label: str) -> None:
        self._print(utils.info_text(f"{label} is thinking..."))


@dataclass
class MatchSummary:
    first: str
    second: str
    wins: Dict[str, int] = field(default_factory=dict)
    draws: int = 0
    histories: List[str] = field(default_factory=list)


def build_logger(dev: bool) -> Optional[Callable[[str], None]]:
    if not dev:
        return None
    return lambda message: print(utils.debug_text(message))


def build_engine(args, logger=None) -> GomokuEngine:
    rng = random.Random(args.seed) if args.seed is not None else None
    oracle_config = load_oracle_config(args.oracle_config)
    oracle = OracleClient(oracle_config, logger=logger) if oracle_config.is_configured else None
    return GomokuEngine(oracle=oracle, rng=rng, logger=logger)


def play_match_game(
    black: GomokuEngine,
    white: GomokuEngine,
    black_tier: str,
    white_tier: str,
    *,
    logger: Optional[Callable[[str], None]] = None,
) -> Board:
    """Play one machine-versus-machine game to completion and return the board."""
    log = logger or (lambda *_: None)
    board = Board()
    engines = {Player.BLACK: (black, black_tier), Player.WHITE: (white, white_tier)}
    player = Player.BLACK
    while True:
        engine, tier = engines[player]
        move = engine.choose_move(board, player, tier)
        if move is None:
            return board
        result = apply_move(board, move.x, move.y, player)
        log(f"{player.label} ({tier}) -> ({move.x}, {move.y})")
        if result.outcome is not Outcome.CONTINUE:
            return board
        player = player.opponent


def run_match(first: str, second: str, games: int, *, seed: Optional[int] = None, logger=None) -> MatchSummary:
    """Alternate colours between two tiers and tally the results."""
    summary = MatchSummary(first=first, second=second, wins={first: 0, second: 0})
    if first == second:
        summary.wins = {f"{first} (1)": 0, f"{second} (2)": 0}
    labels = list(summary.wins)
    base = random.Random(seed)
    engines = [GomokuEngine(rng=random.Random(base.getrandbits(32)), logger=logger) for _ in range(2)]
    tiers = [first, second]

    for game in range(games):
        black_index = game % 2
        white_index = 1 - black_index
        board = play_match_game(
            engines[black_index],
            engines[white_index],
            tiers[black_index],
            tiers[white_index],
            logger=logger,
        )
        last = board.last_move
        history = export_move_history(board)
        summary.histories.append(history)
        result = get_game_result(board)
        if last is not None and result != "Draw":
            winner_index = black_index if last.player == Player.BLACK else white_index
            summary.wins[labels[winner_index]] += 1
        else:
            summary.draws += 1
        print(utils.info_text(f"Game {game + 1}/{games}: {result} ({len(board.move_log)} moves)"))

    return summary


def run_console(session: GameSession, lines: Iterable[str], out: TextIO = sys.stdout) -> None:
    for raw in lines:
        command = raw.strip().lower()
        if not command:
            continue
        if command in ("quit", "exit", "q"):
            break
        if command == "undo":
            if not session.undo():
                print(utils.info_text("Nothing to undo"), file=out)
            continue
        if command == "new":
            session.new_game()
            continue
        parts = command.replace(",", " ").split()
        if len(parts) != 2 or not all(part.lstrip("-").isdigit() for part in parts):
            print(utils.info_text("Enter 'row col', 'undo', 'new' or 'quit'"), file=out)
            continue
        x, y = int(parts[0]), int(parts[1])
        result = session.play(x, y)
        if not result.accepted:
            print(utils.info_text(f"({x}, {y}) {utils.color_text('Invalid Move', '31')}"), file=out)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Gomoku with a tiered move-selection engine")
    parser.add_argument("--gui", action="store_true", help="Launch the PySide6 window")
    parser.add_argument("--mode", choices=[mode.value for mode in Mode], default=Mode.PVE.value)
    parser.add_argument("--difficulty", choices=DIFFICULTY_CHOICES, default=Difficulty.MEDIUM.value)
    parser.add_argument("--second", action="store_true", help="Let the machine move first")
    parser.add_argument("--oracle-config", type=Path, default=None, help="Path of the oracle settings JSON")
    parser.add_argument("-dev", "--dev", action="store_true", help="Enable debug mode")
    parser.add_argument(
        "--match",
        nargs=2,
        metavar="TIER",
        choices=DIFFICULTY_CHOICES,
        help="Run headless machine-versus-machine games between two tiers and exit",
    )
    parser.add_argument("--games", type=int, default=2, help="Number of games for --match")
    parser.add_argument("--seed", type=int, default=None, help="Seed the engine random generator")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logger = build_logger(args.dev)

    if args.match:
        first, second = args.match
        summary = run_match(first, second, args.games, seed=args.seed, logger=logger)
        for label, wins in summary.wins.items():
            print(utils.info_text(f"{label}: {wins} wins"))
        print(utils.info_text(f"draws: {summary.draws}"))
        return 0

    config = GameConfig(mode=Mode(args.mode), difficulty=args.difficulty, human_first=not args.second)
    engine = build_engine(args, logger)

    if args.gui:
        from gui import run_gui

        session = GameSession(engine, config=config, logger=logger)
        return run_gui(config, session, dev=args.dev, oracle_config_path=args.oracle_config)

    session = None
    ui = ConsoleUI(lambda: session)
    session = GameSession(engine, ui, config, scheduler=immediate_scheduler, logger=logger)
    print(utils.info_text("Enter moves as 'row col' (0-14); 'undo', 'new', 'quit'"))
    session.new_game()
    run_console(session, sys.stdin)
    return 0


if __name__ == "__main__":
    sys.exit(main())
