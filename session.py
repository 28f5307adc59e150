"""Game session: turn handling, undo/new game and delayed machine moves."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from gomoku_logic import Board, Move, MoveResult, Outcome, Player, apply_move, get_game_result
from gomokuengine import Decision, GomokuEngine, TierRegistry


class _GameUI(Protocol):
    """UI hooks required by :class:`GameSession`."""

    def on_board_changed(self) -> None:
        ...

    def set_info_message(self, message: str) -> None:
        ...

    def on_game_over(self, result: str) -> None:
        ...

    def indicate_machine_activity(self, label: str) -> None:
        ...


class _NullUI:
    def on_board_changed(self) -> None:
        pass

    def set_info_message(self, message: str) -> None:
        pass

    def on_game_over(self, result: str) -> None:
        pass

    def indicate_machine_activity(self, label: str) -> None:
        pass


class Mode(str, Enum):
    PVP = "pvp"
    PVE = "pve"


@dataclass(frozen=True)
class GameConfig:
    mode: Mode = Mode.PVE
    difficulty: str = "medium"
    human_first: bool = True
    move_delay: float = 0.3
    resume_delay: float = 0.4

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", Mode(self.mode))
        object.__setattr__(self, "difficulty", TierRegistry.resolve(self.difficulty).name)


Scheduler = Callable[[float, Callable[[], None]], Any]


def timer_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class _DoneHandle:
    def cancel(self) -> None:
        pass


def immediate_scheduler(delay: float, callback: Callable[[], None]) -> _DoneHandle:
    """Run ``callback`` synchronously; used for console play and tests."""
    callback()
    return _DoneHandle()


class GameSession:
    """Explicit game state shared by the console, the GUI and the engine.

    Board mutation and the application of machine results happen under
    ``_lock``.  Machine moves are computed on a board copy outside the lock and
    dropped if ``request_id`` moved on in the meantime (undo, new game, a
    configuration change or a newer request).
    """

    def __init__(
        self,
        engine: GomokuEngine,
        ui: Optional[_GameUI] = None,
        config: Optional[GameConfig] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.engine = engine
        self.ui: _GameUI = ui or _NullUI()
        self.config = config or GameConfig()
        self._scheduler = scheduler or timer_scheduler
        self._logger = logger or (lambda *_: None)
        self._lock = threading.Lock()
        self._pending: Any = None

        self.board = Board()
        self.current_player = Player.BLACK
        self.game_over = False
        self.winner: Optional[Player] = None
        self.request_id = 0

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------
    @property
    def machine_player(self) -> Optional[Player]:
        if self.config.mode is not Mode.PVE:
            return None
        return Player.WHITE if self.config.human_first else Player.BLACK

    @property
    def human_player(self) -> Optional[Player]:
        machine = self.machine_player
        return machine.opponent if machine is not None else None

    def is_machine_turn(self) -> bool:
        return not self.game_over and self.current_player == self.machine_player

    @property
    def result(self) -> str:
        return get_game_result(self.board)

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------
    def play(self, x: int, y: int) -> MoveResult:
        """Human input: rejected when the game is over or the machine is to move."""
        with self._lock:
            if self.game_over or self.current_player == self.machine_player:
                return MoveResult(accepted=False)
            result = self._apply_locked(x, y)
        self._after_move(result)
        return result

    def apply_move(self, x: int, y: int) -> MoveResult:
        """Place a stone for the side to move, whoever controls it."""
        with self._lock:
            if self.game_over:
                return MoveResult(accepted=False)
            result = self._apply_locked(x, y)
        self._after_move(result)
        return result

    def _apply_locked(self, x: int, y: int) -> MoveResult:
        result = apply_move(self.board, x, y, self.current_player)
        if not result.accepted:
            return result
        self._invalidate_locked()
        if result.outcome is Outcome.WIN:
            self.game_over = True
            self.winner = result.winner
        elif result.outcome is Outcome.DRAW:
            self.game_over = True
        else:
            self.current_player = self.current_player.opponent
        return result

    def _after_move(self, result: MoveResult, delay: Optional[float] = None) -> None:
        if not result.accepted:
            return
        self.ui.on_board_changed()
        if result.outcome is not Outcome.CONTINUE:
            self.ui.on_game_over(self.result)
            return
        self._maybe_schedule(self.config.move_delay if delay is None else delay)

    def request_machine_move(self, difficulty: Optional[str] = None, player: Optional[Player] = None) -> Optional[Move]:
        """Decision for ``player`` (default: side to move); does not play it."""
        with self._lock:
            scratch = self.board.copy()
            side = player or self.current_player
        return self.engine.choose_move(scratch, side, difficulty or self.config.difficulty)

    # ------------------------------------------------------------------
    # Machine scheduling
    # ------------------------------------------------------------------
    def _invalidate_locked(self) -> int:
        self.request_id += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        return self.request_id

    def cancel_pending(self) -> None:
        with self._lock:
            self._invalidate_locked()

    def _maybe_schedule(self, delay: float) -> None:
        with self._lock:
            if not self.is_machine_turn():
                return
            request_id = self._invalidate_locked()
        self._logger(f"machine move #{request_id} scheduled in {delay:.2f}s")
        handle = self._scheduler(delay, lambda: self._run_machine_move(request_id))
        with self._lock:
            if self.request_id == request_id:
                self._pending = handle

    def _run_machine_move(self, request_id: int) -> None:
        with self._lock:
            if request_id != self.request_id or not self.is_machine_turn():
                return
            scratch = self.board.copy()
            player = self.current_player
            difficulty = self.config.difficulty

        self.ui.indicate_machine_activity(f"{player.label} ({difficulty})")
        decision = self.engine.decide(scratch, player, difficulty)
        self._apply_decision(request_id, player, decision)

    def _apply_decision(self, request_id: int, player: Player, decision: Decision) -> None:
        with self._lock:
            if request_id != self.request_id or self.current_player != player or self.game_over:
                self._logger(f"discarding stale machine move #{request_id}")
                return
            self._pending = None
            if decision.move is None:
                return
            result = self._apply_locked(decision.move.x, decision.move.y)

        for notice in decision.notices:
            self.ui.set_info_message(notice)
        banter = decision.metadata.get("banter")
        if banter:
            self.ui.set_info_message(banter)
        self._after_move(result)

    # ------------------------------------------------------------------
    # Undo / new game / configuration
    # ------------------------------------------------------------------
    def undo(self) -> bool:
        with self._lock:
            self._invalidate_locked()
            last = self.board.pop()
            if last is None:
                return False
            self.game_over = False
            self.winner = None
            self.current_player = last.player

            previous = self.board.last_move
            if (
                self.config.mode is Mode.PVE
                and last.player == self.machine_player
                and previous is not None
                and previous.player == self.human_player
            ):
                self.board.pop()
                self.current_player = previous.player

        self.ui.on_board_changed()
        self._maybe_schedule(self.config.resume_delay)
        return True

    def new_game(self, config: Optional[GameConfig] = None) -> None:
        with self._lock:
            self._invalidate_locked()
            if config is not None:
                self.config = config
            self.board.reset()
            self.current_player = Player.BLACK
            self.game_over = False
            self.winner = None

        self.ui.on_board_changed()
        self.ui.set_info_message("New game")
        self._maybe_schedule(self.config.resume_delay)

    def configure(self, **changes: Any) -> GameConfig:
        """Change mode/difficulty/roles mid-game; a pending machine move is re-issued."""
        with self._lock:
            self._invalidate_locked()
            self.config = replace(self.config, **changes)
            config = self.config
        self._maybe_schedule(config.resume_delay)
        return config
