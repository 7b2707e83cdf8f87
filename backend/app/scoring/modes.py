"""Game modes and per-player board states.

Modes form a closed set. Every dispatch over them ends in an explicit
``unsupported`` branch so a new mode cannot silently fall through.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from ..exceptions import InvalidConfiguration


@dataclass(frozen=True)
class X01:
    starting_score: Optional[int] = None

    @property
    def key(self) -> str:
        if self.starting_score in FIXED_X01_SCORES:
            return str(self.starting_score)
        return "x01"


@dataclass(frozen=True)
class Cricket:
    key: str = field(default="cricket", init=False)


@dataclass(frozen=True)
class AroundTheClock:
    key: str = field(default="around_the_clock", init=False)


GameMode = Union[X01, Cricket, AroundTheClock]

FIXED_X01_SCORES = (301, 501)

MODE_NAMES: Dict[str, str] = {
    "301": "301",
    "501": "501",
    "x01": "X01 (custom start)",
    "cricket": "Cricket",
    "around_the_clock": "Around the Clock",
}

_ALIASES = {
    "around the clock": "around_the_clock",
    "around-the-clock": "around_the_clock",
    "aroundtheclock": "around_the_clock",
}


def parse_mode(key: str) -> GameMode:
    """Return the mode for a stored or user supplied key."""

    if not isinstance(key, str):
        raise InvalidConfiguration("game mode must be a string")
    normalized = key.strip().lower()
    normalized = _ALIASES.get(normalized, normalized)
    if normalized in ("301", "501"):
        return X01(starting_score=int(normalized))
    if normalized == "x01":
        return X01()
    if normalized == "cricket":
        return Cricket()
    if normalized == "around_the_clock":
        return AroundTheClock()
    raise InvalidConfiguration(f"unknown game mode '{key}'")


@dataclass(frozen=True)
class X01Board:
    remaining: int


@dataclass(frozen=True)
class CricketBoard:
    # segment (15..20, 25) -> marks, reserved for the cricket rules
    marks: Dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class AroundTheClockBoard:
    target: int = 1


Board = Union[X01Board, CricketBoard, AroundTheClockBoard]


def initial_board(mode: GameMode, starting_score: Optional[int]) -> Board:
    if isinstance(mode, X01):
        if starting_score is None:
            raise InvalidConfiguration("X01 games require a starting score")
        return X01Board(remaining=starting_score)
    if isinstance(mode, Cricket):
        return CricketBoard()
    if isinstance(mode, AroundTheClock):
        return AroundTheClockBoard()
    raise TypeError(f"unsupported game mode: {mode!r}")


def board_to_payload(board: Board) -> Dict:
    if isinstance(board, X01Board):
        return {"type": "x01", "remaining": board.remaining}
    if isinstance(board, CricketBoard):
        return {"type": "cricket", "marks": {str(k): v for k, v in board.marks.items()}}
    if isinstance(board, AroundTheClockBoard):
        return {"type": "around_the_clock", "target": board.target}
    raise TypeError(f"unsupported board: {board!r}")


def board_from_payload(payload: Dict) -> Board:
    kind = payload.get("type") if isinstance(payload, dict) else None
    if kind == "x01":
        return X01Board(remaining=int(payload["remaining"]))
    if kind == "cricket":
        marks = payload.get("marks") or {}
        return CricketBoard(marks={int(k): int(v) for k, v in marks.items()})
    if kind == "around_the_clock":
        return AroundTheClockBoard(target=int(payload.get("target", 1)))
    raise ValueError("invalid board payload")


@dataclass(frozen=True)
class Evaluation:
    """Effect of a single hit on one player's board."""

    board: Board
    is_bust: bool = False
    is_win: bool = False
    doubled_in: bool = False

    @property
    def remaining(self) -> Optional[int]:
        if isinstance(self.board, X01Board):
            return self.board.remaining
        return None
