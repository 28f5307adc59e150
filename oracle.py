"""Remote move oracle used by the grandmaster tier.

The oracle is a chat-completions style HTTP endpoint.  :class:`OracleClient`
renders the position as a prompt, posts it with ``requests`` and validates the
move found in the reply.  Every failure is raised as an :class:`OracleError`
subclass so the caller can fall back to the local engine.
"""

from __future__ import annotations

import ipaddress
import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

import requests

from evaluation import candidate_moves
from gomoku_logic import DIRECTIONS, Board, Player

Cell = Tuple[int, int]

DEFAULT_CONFIG_PATH = Path.home() / ".gomoku_oracle.json"
MIN_LEGAL_MOVES = 20
RETRY_STATUS_CODES = frozenset({400, 404, 415, 422})
JSON_MODE_ERROR_MARKERS = ("response_format", "json_object", "json mode")

SYSTEM_PROMPT = (
    "You are a Gomoku grandmaster playing on a 15x15 board where five in a row wins. "
    "You play the stones marked X, your opponent plays O and '.' is an empty cell. "
    "Pick exactly one move from the listed legal moves. Reply with a single JSON object "
    'of the form {"move": {"x": <row>, "y": <column>}, "analysis": "<one short sentence>", '
    '"banter": "<one short playful remark>"} and nothing else.'
)


class OracleError(Exception):
    """Base class for every oracle failure."""


class OracleConfigError(OracleError):
    pass


class OracleTransportError(OracleError):
    pass


class OracleResponseError(OracleError):
    pass


class OracleMoveError(OracleError):
    pass


@dataclass(frozen=True)
class OracleConfig:
    endpoint: str = ""
    api_key: str = ""
    model: str = ""
    temperature: float = 0.4
    max_tokens: int = 400
    timeout: float = 30.0
    history_limit: int = 12
    json_mode: bool = True

    @property
    def is_configured(self) -> bool:
        if not self.endpoint or not self.model:
            return False
        return bool(self.api_key) or is_local_endpoint(self.endpoint)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OracleConfig":
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class OracleSuggestion:
    x: int
    y: int
    analysis: str = ""
    banter: str = ""


def is_local_endpoint(endpoint: str) -> bool:
    host = urlparse(endpoint).hostname or ""
    if host in ("localhost", "localhost.localdomain"):
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return address.is_loopback or address.is_private


def load_oracle_config(path: Optional[Path] = None) -> OracleConfig:
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return OracleConfig()
    if not isinstance(data, dict):
        return OracleConfig()
    try:
        return OracleConfig.from_dict(data)
    except TypeError:
        return OracleConfig()


def save_oracle_config(config: OracleConfig, path: Optional[Path] = None) -> Path:
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------


def render_board(board: Board, player: Player) -> str:
    """Render rows top to bottom; ``player`` is X and the opponent is O."""
    header = "    " + " ".join(f"{col:2d}" for col in range(board.size))
    lines = [header]
    for x in range(board.size):
        symbols = []
        for y in range(board.size):
            cell = board.cells[x][y]
            if cell is None:
                symbols.append(" .")
            elif cell == player:
                symbols.append(" X")
            else:
                symbols.append(" O")
        lines.append(f"{x:2d}  " + " ".join(symbols))
    return "\n".join(lines)


def legal_moves(board: Board, minimum: int = MIN_LEGAL_MOVES) -> List[Cell]:
    moves: List[Cell] = []
    seen = set()

    def extend(cells: Sequence[Cell]) -> None:
        for cell in cells:
            if cell not in seen and board.is_empty(*cell):
                seen.add(cell)
                moves.append(cell)

    for radius in (2, 3, 4):
        extend(candidate_moves(board, radius))
        if len(moves) >= minimum:
            return moves
    # nearest to the stones first, then nearest to the centre
    anchors = [(x, y) for x, y, _ in board.stones()] or [board.center]
    cx, cy = board.center

    def distance(cell: Cell) -> Tuple[int, int]:
        x, y = cell
        nearest = min(max(abs(x - ax), abs(y - ay)) for ax, ay in anchors)
        return nearest, max(abs(x - cx), abs(y - cy))

    for cell in sorted(board.empty_cells(), key=distance):
        if len(moves) >= minimum:
            break
        extend([cell])
    return moves


def _runs(board: Board, player: Player) -> List[Dict[str, Any]]:
    runs = []
    for x, y, owner in board.stones():
        if owner != player:
            continue
        for dx, dy in DIRECTIONS:
            px, py = x - dx, y - dy
            if board.is_inside(px, py) and board.cells[px][py] == player:
                continue
            cells = []
            cx, cy = x, y
            while board.is_inside(cx, cy) and board.cells[cx][cy] == player:
                cells.append((cx, cy))
                cx += dx
                cy += dy
            if len(cells) not in (3, 4):
                continue
            open_ends = int(board.is_inside(px, py) and board.cells[px][py] is None)
            open_ends += int(board.is_inside(cx, cy) and board.cells[cx][cy] is None)
            if open_ends == 0:
                continue
            runs.append({"length": len(cells), "open_ends": open_ends, "cells": cells})
    return runs


def threat_summary(board: Board, player: Player) -> Dict[str, Dict[str, Any]]:
    """Count existing open/semi-open threes and fours for both sides."""
    summary: Dict[str, Dict[str, Any]] = {}
    for side, label in ((player, "you"), (player.opponent, "opponent")):
        counts = {"open_fours": 0, "semi_open_fours": 0, "open_threes": 0, "semi_open_threes": 0}
        examples = []
        for run in _runs(board, side):
            kind = "open" if run["open_ends"] == 2 else "semi_open"
            size = "fours" if run["length"] == 4 else "threes"
            counts[f"{kind}_{size}"] += 1
            examples.append([list(cell) for cell in run["cells"]])
        summary[label] = {**counts, "examples": examples[:4]}
    return summary


def build_messages(board: Board, player: Player, *, history_limit: int = 12, legal: Optional[Sequence[Cell]] = None) -> List[Dict[str, str]]:
    legal = list(legal) if legal is not None else legal_moves(board)
    history = [
        {"x": move.x, "y": move.y, "by": "X" if move.player == player else "O"}
        for move in board.move_log[-history_limit:]
    ] if history_limit > 0 else []
    prompt = "\n".join(
        [
            f"Board ({board.size}x{board.size}, rows are x, columns are y, zero based):",
            render_board(board, player),
            "",
            f"Recent moves (oldest first): {json.dumps(history)}",
            f"Threats: {json.dumps(threat_summary(board, player))}",
            f"Legal moves [x, y]: {json.dumps([list(cell) for cell in legal])}",
            "",
            "Choose your move as X.",
        ]
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _text_from(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        parts = []
        for part in value:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts) if parts else None
    return None


def extract_content(payload: Any) -> str:
    """Pull the reply text out of the shapes common chat endpoints return."""
    if not isinstance(payload, dict):
        raise OracleResponseError("Response is not a JSON object")

    candidates: List[Any] = []
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        first = choices[0]
        message = first.get("message")
        if isinstance(message, dict):
            candidates.append(message.get("content"))
        candidates.append(first.get("text"))
    message = payload.get("message")
    if isinstance(message, dict):
        candidates.append(message.get("content"))
    candidates.extend([payload.get("content"), payload.get("output_text"), payload.get("response")])

    for candidate in candidates:
        text = _text_from(candidate)
        if text and text.strip():
            return text
    raise OracleResponseError("No message content in response")


def extract_json_object(text: str) -> Dict[str, Any]:
    decoder = json.JSONDecoder()
    index = text.find("{")
    while index != -1:
        try:
            value, _ = decoder.raw_decode(text, index)
        except ValueError:
            index = text.find("{", index + 1)
            continue
        if isinstance(value, dict):
            return value
        index = text.find("{", index + 1)
    raise OracleResponseError("No JSON object found in reply")


def _coordinate(value: Any) -> int:
    if isinstance(value, bool):
        raise OracleMoveError("Coordinate must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise OracleMoveError(f"Invalid coordinate {value!r}")


def parse_suggestion(data: Dict[str, Any]) -> OracleSuggestion:
    move = data.get("move")
    if isinstance(move, dict):
        if "x" not in move or "y" not in move:
            raise OracleMoveError("Move is missing x or y")
        x, y = _coordinate(move["x"]), _coordinate(move["y"])
    elif isinstance(move, (list, tuple)) and len(move) == 2:
        x, y = _coordinate(move[0]), _coordinate(move[1])
    else:
        raise OracleMoveError("Reply has no move")
    analysis = data.get("analysis")
    banter = data.get("banter")
    return OracleSuggestion(
        x=x,
        y=y,
        analysis=analysis if isinstance(analysis, str) else "",
        banter=banter if isinstance(banter, str) else "",
    )


def validate_move(board: Board, x: int, y: int, legal: Optional[Sequence[Cell]] = None) -> None:
    if not board.is_inside(x, y):
        raise OracleMoveError(f"Move ({x}, {y}) is off the board")
    if not board.is_empty(x, y):
        raise OracleMoveError(f"Move ({x}, {y}) is on an occupied cell")
    if legal and (x, y) not in set(legal):
        raise OracleMoveError(f"Move ({x}, {y}) is not in the legal move list")


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class OracleClient:
    def __init__(self, config: OracleConfig, *, logger: Optional[Callable[[str], None]] = None) -> None:
        self.config = config
        self._logger = logger or (lambda *_: None)

    def build_payload(self, board: Board, player: Player, *, legal: Sequence[Cell], json_mode: bool) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "messages": build_messages(board, player, history_limit=self.config.history_limit, legal=legal),
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def _post(self, payload: Dict[str, Any]) -> requests.Response:
        try:
            return requests.post(
                self.config.endpoint,
                json=payload,
                headers=self._headers(),
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            raise OracleTransportError(f"Request failed: {exc}") from exc

    @staticmethod
    def _rejects_json_mode(response: requests.Response) -> bool:
        if response.status_code in RETRY_STATUS_CODES:
            return True
        body = (response.text or "").lower()
        return any(marker in body for marker in JSON_MODE_ERROR_MARKERS)

    def suggest_move(self, board: Board, player: Player) -> OracleSuggestion:
        if not self.config.is_configured:
            raise OracleConfigError("Oracle endpoint, model or API key missing")

        legal = legal_moves(board)
        json_mode = self.config.json_mode
        response = self._post(self.build_payload(board, player, legal=legal, json_mode=json_mode))

        if not response.ok and json_mode and self._rejects_json_mode(response):
            self._logger(f"oracle rejected JSON mode (HTTP {response.status_code}), retrying without it")
            response = self._post(self.build_payload(board, player, legal=legal, json_mode=False))

        if not response.ok:
            raise OracleTransportError(f"HTTP {response.status_code}: {(response.text or '')[:200]}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise OracleResponseError(f"Response body is not JSON: {exc}") from exc

        suggestion = parse_suggestion(extract_json_object(extract_content(payload)))
        validate_move(board, suggestion.x, suggestion.y, legal)
        self._logger(f"oracle suggested ({suggestion.x}, {suggestion.y})")
        return suggestion
