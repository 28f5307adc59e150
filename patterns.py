"""Line statistics and threat classification for Gomoku positions.

Every helper works on the four line directions through a single point.  The
point itself is always counted as a stone of the analysed player, so callers
can ask "what would this cell look like for X" without caring whether the cell
is currently empty.

The bonus and severity values below are tuned constants used purely for
ranking.  Their relative order matters (double open four > open four with
support > double open three > single open four > single open three); the
exact numbers do not.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from gomoku_logic import DIRECTIONS, WIN_LENGTH, Board, Player

FIVE_SCORE = 100_000


@dataclass(frozen=True, slots=True)
class LineStat:
    length: int
    open_ends: int


@dataclass(frozen=True, slots=True)
class ThreatProfile:
    open_fours: int = 0
    semi_open_fours: int = 0
    open_threes: int = 0
    semi_open_threes: int = 0


def _walk(board: Board, x: int, y: int, dx: int, dy: int, player: Player) -> Tuple[int, int]:
    count = 0
    cx, cy = x + dx, y + dy
    while board.is_inside(cx, cy):
        cell = board.cells[cx][cy]
        if cell == player:
            count += 1
            cx += dx
            cy += dy
            continue
        return count, 1 if cell is None else 0
    return count, 0


def line_stats(board: Board, x: int, y: int, dx: int, dy: int, player: Player) -> LineStat:
    forward, forward_open = _walk(board, x, y, dx, dy, player)
    backward, backward_open = _walk(board, x, y, -dx, -dy, player)
    return LineStat(1 + forward + backward, forward_open + backward_open)


def collect_line_stats(board: Board, x: int, y: int, player: Player) -> Tuple[LineStat, ...]:
    return tuple(line_stats(board, x, y, dx, dy, player) for dx, dy in DIRECTIONS)


def score_line(length: int, open_ends: int) -> int:
    if length >= WIN_LENGTH:
        return FIVE_SCORE
    if length == 4:
        if open_ends == 2:
            return 15000
        if open_ends == 1:
            return 6000
        return 100
    if length == 3:
        if open_ends == 2:
            return 2000
        if open_ends == 1:
            return 400
        return 20
    if length == 2:
        if open_ends == 2:
            return 300
        if open_ends == 1:
            return 60
        return 5
    if length == 1:
        if open_ends == 2:
            return 40
        if open_ends == 1:
            return 15
        return 2
    return 0


def line_score(stats: Sequence[LineStat]) -> int:
    return sum(score_line(stat.length, stat.open_ends) for stat in stats)


def _count(stats: Sequence[LineStat], length: int, open_ends: int) -> int:
    return sum(1 for stat in stats if stat.length == length and stat.open_ends == open_ends)


def threat_profile(stats: Sequence[LineStat]) -> ThreatProfile:
    return ThreatProfile(
        open_fours=_count(stats, 4, 2),
        semi_open_fours=_count(stats, 4, 1),
        open_threes=_count(stats, 3, 2),
        semi_open_threes=_count(stats, 3, 1),
    )


def threat_bonus(stats: Sequence[LineStat]) -> int:
    profile = threat_profile(stats)
    open_twos = _count(stats, 2, 2)
    bonus = 0

    if profile.open_fours >= 2:
        bonus += 18000
    elif profile.open_fours == 1:
        bonus += 6000

    if profile.semi_open_fours >= 2:
        bonus += 2200
    elif profile.semi_open_fours == 1:
        bonus += 1400

    if profile.open_fours >= 1 and profile.open_threes >= 1:
        bonus += 3200

    if profile.open_threes >= 2:
        bonus += 5000
    elif profile.open_threes == 1:
        bonus += 1600

    if profile.semi_open_threes >= 2:
        bonus += 700
    elif profile.semi_open_threes == 1:
        bonus += 350

    if profile.open_threes >= 1 and profile.semi_open_threes >= 1:
        bonus += 900

    bonus += 150 * open_twos
    return bonus


def fork_bonus(stats: Sequence[LineStat]) -> int:
    """Reward several simultaneous threats created by a single stone."""
    profile = threat_profile(stats)
    bonus = 0

    if profile.open_fours >= 2:
        bonus += 26000
    elif profile.open_fours == 1 and (profile.open_threes >= 1 or profile.semi_open_fours >= 1):
        bonus += 12000

    if profile.semi_open_fours >= 2:
        bonus += 4200
    elif profile.semi_open_fours == 1 and profile.open_threes >= 1:
        bonus += 3200

    if profile.open_threes >= 2:
        bonus += 6500
    elif profile.open_threes == 1 and profile.semi_open_threes >= 1:
        bonus += 2200

    if profile.semi_open_threes >= 2:
        bonus += 1100

    if profile.open_fours >= 1 and profile.semi_open_threes >= 1:
        bonus += 1800

    return bonus


def offensive_pressure(stats: Sequence[LineStat]) -> int:
    """How close the stone brings its owner to forcing a win next move."""
    profile = threat_profile(stats)
    pressure = profile.open_fours * 8500
    if profile.open_fours >= 2:
        pressure += 2600

    pressure += profile.semi_open_fours * 3600
    if profile.semi_open_fours >= 2:
        pressure += 1800

    pressure += profile.open_threes * 2600
    pressure += profile.semi_open_threes * 1500
    if profile.open_threes >= 1 and profile.semi_open_threes >= 1:
        pressure += 900

    # extendable fours and rich threes
    pressure += profile.semi_open_fours * 2000
    if profile.open_threes >= 2:
        pressure += 2200

    return pressure


_CHAIN_WEIGHTS = {
    (4, 2): 10800,
    (4, 1): 5200,
    (3, 2): 4600,
    (3, 1): 1800,
    (2, 2): 900,
    (2, 1): 300,
}


def chain_potential(stats: Sequence[LineStat]) -> int:
    """Value of the threat sequence a stone sets up rather than a single threat."""
    profile = threat_profile(stats)
    potential = sum(_CHAIN_WEIGHTS.get((stat.length, stat.open_ends), 0) for stat in stats)

    if profile.open_fours >= 1 and profile.open_threes >= 1:
        potential += 3200

    if profile.open_threes >= 2:
        potential += 5400
    elif profile.open_threes == 1 and profile.semi_open_threes >= 1:
        potential += 2200

    if profile.semi_open_fours >= 2:
        potential += 2600

    return potential


def defense_severity(profile: ThreatProfile) -> int:
    """Urgency of stopping the opponent from taking a cell with this profile."""
    severity = 0

    if profile.open_fours >= 2:
        severity = max(severity, 9500)
    elif profile.open_fours == 1:
        severity = max(severity, 9000)

    if profile.semi_open_fours >= 2 or (profile.semi_open_fours == 1 and profile.open_threes >= 1):
        severity = max(severity, 8200)
    elif profile.semi_open_fours == 1:
        severity = max(severity, 7600)

    if profile.open_threes >= 2:
        severity = max(severity, 7000)
    elif profile.open_threes == 1:
        severity = max(severity, 5200)

    if profile.semi_open_threes >= 2:
        severity = max(severity, 4800)

    return severity


def offense_severity(profile: ThreatProfile) -> int:
    severity = 0

    if profile.open_fours >= 2:
        severity = max(severity, 9800)
    elif profile.open_fours == 1 and (profile.open_threes >= 1 or profile.semi_open_fours >= 1):
        severity = max(severity, 9400)
    elif profile.open_fours == 1:
        severity = max(severity, 8300)

    if profile.semi_open_fours >= 2:
        severity = max(severity, 8200)
    elif profile.semi_open_fours == 1 and profile.open_threes >= 1:
        severity = max(severity, 7800)

    if profile.open_threes >= 2:
        severity = max(severity, 7600)
    elif profile.open_threes == 1 and profile.semi_open_threes >= 1:
        severity = max(severity, 7200)
    elif profile.open_threes == 1:
        severity = max(severity, 6400)

    if profile.semi_open_threes >= 2:
        severity = max(severity, 6100)

    return severity
