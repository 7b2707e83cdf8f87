"""Scoring engines for the supported darts game modes.

``evaluate`` is the single entry point the match engine uses. It is pure:
the same mode, rules, board and hit always give the same ``Evaluation``.
"""

from . import around_the_clock, cricket, x01
from .hits import MISS, Hit, HitKind
from .modes import (
    AroundTheClock,
    AroundTheClockBoard,
    Board,
    Cricket,
    CricketBoard,
    Evaluation,
    GameMode,
    MODE_NAMES,
    X01,
    X01Board,
    board_from_payload,
    board_to_payload,
    initial_board,
    parse_mode,
)
from .rules import Rules, default_rules, resolve_rules


def evaluate(
    mode: GameMode, rules: Rules, board: Board, doubled_in: bool, hit: Hit
) -> Evaluation:
    if isinstance(mode, X01) and isinstance(board, X01Board):
        return x01.evaluate(rules, board.remaining, doubled_in, hit)
    if isinstance(mode, Cricket) and isinstance(board, CricketBoard):
        return cricket.evaluate(rules, board, hit)
    if isinstance(mode, AroundTheClock) and isinstance(board, AroundTheClockBoard):
        return around_the_clock.evaluate(rules, board, hit)
    raise TypeError(f"board {board!r} does not belong to mode {mode!r}")


def check_win(mode: GameMode, board: Board) -> bool:
    if isinstance(mode, X01) and isinstance(board, X01Board):
        return x01.check_win(board)
    if isinstance(mode, Cricket) and isinstance(board, CricketBoard):
        return cricket.check_win(board)
    if isinstance(mode, AroundTheClock) and isinstance(board, AroundTheClockBoard):
        return around_the_clock.check_win(board)
    raise TypeError(f"board {board!r} does not belong to mode {mode!r}")


__all__ = [
    "AroundTheClock",
    "AroundTheClockBoard",
    "Board",
    "Cricket",
    "CricketBoard",
    "Evaluation",
    "GameMode",
    "Hit",
    "HitKind",
    "MISS",
    "MODE_NAMES",
    "Rules",
    "X01",
    "X01Board",
    "around_the_clock",
    "board_from_payload",
    "board_to_payload",
    "check_win",
    "cricket",
    "default_rules",
    "evaluate",
    "initial_board",
    "parse_mode",
    "resolve_rules",
    "x01",
]
