# GUI
import json
import os
import time
from dataclasses import replace
from pathlib import Path
from typing import Dict, Optional, Tuple

from PySide6.QtCore import QObject, QSize, Qt, Signal
from PySide6.QtGui import QColor, QFont, QPalette
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QDialog,
    QDoubleSpinBox,
    QFormLayout,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

import gomoku_logic
import utils
from oracle import OracleClient, OracleConfig, load_oracle_config, save_oracle_config
from session import GameConfig, GameSession, Mode

DIFFICULTY_LABELS = {
    "easy": "Easy",
    "medium": "Medium",
    "hard": "Hard",
    "grandmaster": "Grandmaster (oracle)",
}


class _UiBridge(QObject):
    """Carries session callbacks from timer threads onto the Qt thread."""

    board_changed = Signal()
    info_message = Signal(str)
    game_over = Signal(str)
    machine_activity = Signal(str)


class OracleSettingsDialog(QDialog):
    def __init__(self, config: OracleConfig, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Oracle Settings")
        self.setMinimumWidth(380)
        self.setStyleSheet(
            """
            QDialog { background-color: #1f232a; color: #f6f7fb; }
            QLineEdit, QDoubleSpinBox {
                background-color: #2d333d;
                color: #f6f7fb;
                border-radius: 6px;
                padding: 4px 8px;
                border: 1px solid #3a414d;
            }
            QPushButton {
                background-color: #5865f2;
                color: #ffffff;
                border: none;
                border-radius: 6px;
                padding: 6px 12px;
                font-weight: 600;
            }
            QPushButton:hover { background-color: #4752c4; }
            """
        )
        self._config = config

        layout = QVBoxLayout(self)
        layout.setContentsMargins(18, 18, 18, 18)
        layout.setSpacing(12)

        form = QFormLayout()
        self.endpoint_edit = QLineEdit(config.endpoint)
        self.endpoint_edit.setPlaceholderText("https://host/v1/chat/completions")
        self.api_key_edit = QLineEdit(config.api_key)
        self.api_key_edit.setEchoMode(QLineEdit.Password)
        self.model_edit = QLineEdit(config.model)
        self.temperature_spin = QDoubleSpinBox()
        self.temperature_spin.setRange(0.0, 2.0)
        self.temperature_spin.setSingleStep(0.1)
        self.temperature_spin.setValue(config.temperature)
        self.json_mode_check = QCheckBox("Request strict JSON replies")
        self.json_mode_check.setChecked(config.json_mode)
        form.addRow("Endpoint", self.endpoint_edit)
        form.addRow("API key", self.api_key_edit)
        form.addRow("Model", self.model_edit)
        form.addRow("Temperature", self.temperature_spin)
        form.addRow("", self.json_mode_check)
        layout.addLayout(form)

        buttons = QHBoxLayout()
        buttons.addStretch(1)
        cancel_button = QPushButton("Cancel")
        cancel_button.clicked.connect(self.reject)
        save_button = QPushButton("Save")
        save_button.clicked.connect(self.accept)
        buttons.addWidget(cancel_button)
        buttons.addWidget(save_button)
        layout.addLayout(buttons)

    def get_config(self) -> OracleConfig:
        return OracleConfig(
            endpoint=self.endpoint_edit.text().strip(),
            api_key=self.api_key_edit.text().strip(),
            model=self.model_edit.text().strip(),
            temperature=float(self.temperature_spin.value()),
            max_tokens=self._config.max_tokens,
            timeout=self._config.timeout,
            history_limit=self._config.history_limit,
            json_mode=self.json_mode_check.isChecked(),
        )


class GomokuGUI(QMainWindow):
    def __init__(
        self,
        session: GameSession,
        dev=False,
        oracle_config_path: Optional[Path] = None,
    ):
        super().__init__()
        self.session = session
        self.dev = dev
        self.oracle_config_path = oracle_config_path
        self.cell_font = QFont("Segoe UI Symbol", 16)
        self.control_button_font = QFont("Segoe UI", 11)
        self.cells: Dict[Tuple[int, int], QPushButton] = {}

        self._bridge = _UiBridge()
        self._bridge.board_changed.connect(self.update_board)
        self._bridge.info_message.connect(self._show_info)
        self._bridge.game_over.connect(self._show_game_over)
        self._bridge.machine_activity.connect(self._show_machine_activity)

        self.apply_theme()
        print(utils.info_text("Starting Game..."))
        if self.dev:
            print(utils.debug_text("Debug Mode ENABLED"))
        self.init_ui()
        self.session.ui = self
        self.update_board()

    # ------------------------------------------------------------------
    # Session UI protocol (may be called from timer threads)
    # ------------------------------------------------------------------
    def on_board_changed(self) -> None:
        self._bridge.board_changed.emit()

    def set_info_message(self, message: str) -> None:
        self._bridge.info_message.emit(message)

    def on_game_over(self, result: str) -> None:
        self._bridge.game_over.emit(result)

    def indicate_machine_activity(self, label: str) -> None:
        self._bridge.machine_activity.emit(label)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    def apply_theme(self):
        app = QApplication.instance()
        if app and app.style().objectName().lower() != "fusion":
            QApplication.setStyle("Fusion")

        palette = QPalette()
        palette.setColor(QPalette.Window, QColor("#1c1f24"))
        palette.setColor(QPalette.WindowText, QColor("#f5f7fb"))
        palette.setColor(QPalette.Base, QColor("#1c1f24"))
        palette.setColor(QPalette.Text, QColor("#f5f7fb"))
        palette.setColor(QPalette.Button, QColor("#2b3038"))
        palette.setColor(QPalette.ButtonText, QColor("#f5f7fb"))
        palette.setColor(QPalette.Highlight, QColor("#5865f2"))
        palette.setColor(QPalette.HighlightedText, QColor("#ffffff"))

        if app:
            app.setPalette(palette)

        self.setStyleSheet(
            """
            QMainWindow { background-color: #1c1f24; }
            QLabel#turnIndicator { font-size: 18px; font-weight: 600; }
            QLabel#infoIndicator { color: #b0b7c3; font-size: 12px; }
            QWidget#boardContainer {
                background-color: #c99a5b;
                border-radius: 12px;
                padding: 6px;
            }
            QPushButton[panel="control"] {
                background-color: #2d333c;
                color: #f5f7fb;
                border: 1px solid #3a414d;
                border-radius: 8px;
                padding: 6px 10px;
            }
            """
        )

    def style_control_button(self, button):
        button.setProperty("panel", "control")
        button.setFont(self.control_button_font)
        button.setCursor(Qt.PointingHandCursor)
        button.setFocusPolicy(Qt.NoFocus)
        button.setMinimumWidth(72)
        button.style().unpolish(button)
        button.style().polish(button)
        button.update()

    def init_ui(self):
        self.setWindowTitle("Gomoku")
        self.setMinimumSize(640, 760)

        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)
        main_layout.setContentsMargins(8, 8, 8, 8)
        main_layout.setSpacing(6)

        self.turn_indicator = QLabel("")
        self.turn_indicator.setObjectName("turnIndicator")
        self.turn_indicator.setAlignment(Qt.AlignCenter)
        self.turn_indicator.setFont(QFont("Segoe UI Semibold", 20))
        main_layout.addWidget(self.turn_indicator)

        self.info_indicator = QLabel("Game Started")
        self.info_indicator.setObjectName("infoIndicator")
        self.info_indicator.setAlignment(Qt.AlignCenter)
        self.info_indicator.setFont(QFont("Segoe UI", 11))
        self.info_indicator.setWordWrap(True)
        main_layout.addWidget(self.info_indicator)

        board_widget = QWidget()
        board_widget.setObjectName("boardContainer")
        grid_layout = QGridLayout(board_widget)
        grid_layout.setContentsMargins(0, 0, 0, 0)
        grid_layout.setSpacing(1)
        main_layout.addWidget(board_widget, alignment=Qt.AlignCenter)

        size = self.session.board.size
        for x in range(size):
            for y in range(size):
                button = QPushButton("")
                button.setFixedSize(QSize(36, 36))
                button.setFont(self.cell_font)
                button.setCursor(Qt.PointingHandCursor)
                button.setFocusPolicy(Qt.NoFocus)
                button.clicked.connect(lambda _checked=False, cell=(x, y): self.on_cell_clicked(cell))
                grid_layout.addWidget(button, x, y)
                self.cells[(x, y)] = button

        button_layout = QHBoxLayout()
        button_layout.setSpacing(10)
        button_layout.setContentsMargins(0, 12, 0, 0)
        main_layout.addLayout(button_layout)

        undo_button = QPushButton("Undo")
        undo_button.clicked.connect(self.undo_move)
        self.style_control_button(undo_button)
        button_layout.addWidget(undo_button)

        reset_button = QPushButton("New game")
        reset_button.clicked.connect(self.reset_game)
        self.style_control_button(reset_button)
        button_layout.addWidget(reset_button)

        export_button = QPushButton("Export")
        export_button.clicked.connect(self.export_game)
        self.style_control_button(export_button)
        button_layout.addWidget(export_button)

        oracle_button = QPushButton("Oracle settings")
        oracle_button.clicked.connect(self.edit_oracle_settings)
        self.style_control_button(oracle_button)
        button_layout.addWidget(oracle_button)
        button_layout.addStretch(1)

        options_layout = QHBoxLayout()
        options_layout.setSpacing(10)
        main_layout.addLayout(options_layout)

        config = self.session.config
        self.mode_combo = QComboBox()
        self.mode_combo.addItem("Human vs Machine", Mode.PVE.value)
        self.mode_combo.addItem("Human vs Human", Mode.PVP.value)
        self.mode_combo.setCurrentIndex(self.mode_combo.findData(config.mode.value))
        self.mode_combo.currentIndexChanged.connect(self.on_options_changed)
        options_layout.addWidget(self.mode_combo)

        self.difficulty_combo = QComboBox()
        for key, label in DIFFICULTY_LABELS.items():
            self.difficulty_combo.addItem(label, key)
        self.difficulty_combo.setCurrentIndex(self.difficulty_combo.findData(config.difficulty))
        self.difficulty_combo.currentIndexChanged.connect(self.on_options_changed)
        options_layout.addWidget(self.difficulty_combo)

        self.role_combo = QComboBox()
        self.role_combo.addItem("Play Black (first)", True)
        self.role_combo.addItem("Play White (second)", False)
        self.role_combo.setCurrentIndex(0 if config.human_first else 1)
        self.role_combo.currentIndexChanged.connect(self.on_options_changed)
        options_layout.addWidget(self.role_combo)
        options_layout.addStretch(1)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def update_board(self, info_text=None):
        board = self.session.board
        last = board.last_move
        for (x, y), button in self.cells.items():
            cell = board.cells[x][y]
            button.setText("" if cell is None else utils.get_stone_unicode(cell))
            is_last = last is not None and (last.x, last.y) == (x, y)
            button.setStyleSheet(self.get_cell_style(cell, is_last))

        if self.session.game_over:
            self.turn_indicator.setText("Game over")
        else:
            self.turn_indicator.setText(f"{self.session.current_player.label}'s turn")
        if info_text:
            self.info_indicator.setText(info_text)

    def get_cell_style(self, cell, last_moved=False):
        color = "#111111" if cell == gomoku_logic.Player.BLACK else "#fafafa"
        border = "2px solid #e5484d" if last_moved else "1px solid #8a6a3d"
        return (
            f"QPushButton {{ background-color: #dcb37a; color: {color}; border: {border}; "
            "border-radius: 0px; padding: 0px; }"
            "QPushButton:hover { background-color: #e6c38f; }"
        )

    def _show_info(self, message: str) -> None:
        self.info_indicator.setText(message)

    def _show_machine_activity(self, label: str) -> None:
        self.info_indicator.setText(f"{label} is thinking...")

    def _show_game_over(self, result: str) -> None:
        self.update_board(info_text=result)
        print(utils.info_text(f"Game over: {result}"))
        if not self.dev:
            QMessageBox.information(self, "Game Over", self._build_game_over_message(result))

    def _build_game_over_message(self, result: str) -> str:
        winner = self.session.winner
        if winner is None:
            return f"{result}. Evenly matched, play again?"
        if self.session.machine_player is None:
            return f"{result}!"
        if winner == self.session.human_player:
            return f"{result}! You beat the machine, try a harder level."
        return f"{result}. The machine wins this one."

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def on_cell_clicked(self, cell):
        x, y = cell
        result = self.session.play(x, y)
        if not result.accepted:
            if self.dev:
                print(utils.debug_text(f"({x}, {y}) rejected"))
            return
        print(utils.info_text(f"{result.move.player.label} plays ({x}, {y})"))

    def undo_move(self):
        if self.session.undo():
            self.update_board(info_text="Move undone")
        elif self.dev:
            print(utils.debug_text("Move Stack Empty"))

    def reset_game(self):
        print(utils.info_text("Resetting game..."))
        self.session.new_game()

    def on_options_changed(self, *_):
        current = self.session.config
        config = replace(
            current,
            mode=Mode(self.mode_combo.currentData()),
            difficulty=self.difficulty_combo.currentData(),
            human_first=bool(self.role_combo.currentData()),
        )
        if config == current:
            return

        # a difficulty switch mid-game needs confirmation, mode and role changes always restart
        same_sides = config.mode == current.mode and config.human_first == current.human_first
        if same_sides and self.session.board.stone_count and not self.confirm_restart():
            self.difficulty_combo.blockSignals(True)
            self.difficulty_combo.setCurrentIndex(self.difficulty_combo.findData(current.difficulty))
            self.difficulty_combo.blockSignals(False)
            return

        if self.dev:
            print(utils.debug_text(f"Config {config}"))
        self.session.new_game(config)
        self.update_board(info_text=f"{DIFFICULTY_LABELS[config.difficulty]} | {config.mode.value}")

    def confirm_restart(self) -> bool:
        answer = QMessageBox.question(
            self,
            "Change difficulty",
            "Changing the difficulty starts a new game. Continue?",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        return answer == QMessageBox.Yes

    def edit_oracle_settings(self):
        dialog = OracleSettingsDialog(load_oracle_config(self.oracle_config_path), self)
        if not dialog.exec():
            return
        config = dialog.get_config()
        path = save_oracle_config(config, self.oracle_config_path)
        self.session.engine.set_oracle(OracleClient(config) if config.is_configured else None)
        self.update_board(info_text=f"Oracle settings saved to {path}")

    def export_game(self):
        print(utils.info_text("---EXPORTING GAME---"))
        game_state = {
            "export-time": time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(time.time())),
            "result": self.session.result,
            "moves": gomoku_logic.export_move_history(self.session.board),
        }

        gamestates_folder = "gamestates"
        if not os.path.exists(gamestates_folder):
            os.makedirs(gamestates_folder)

        filename = f'{gamestates_folder}/gomoku_game_{game_state["export-time"].replace(":", "-")}.json'
        with open(filename, "w") as outfile:
            outfile.write(json.dumps(game_state))

        print(utils.info_text(f"Moves: {game_state['moves']}"))
        return filename


def run_gui(config: GameConfig, session: GameSession, dev: bool = False, oracle_config_path: Optional[Path] = None) -> int:
    app = QApplication.instance() or QApplication([])
    window = GomokuGUI(session, dev=dev, oracle_config_path=oracle_config_path)
    utils.center_on_screen(window)
    window.show()
    session.new_game(config)
    return app.exec()
