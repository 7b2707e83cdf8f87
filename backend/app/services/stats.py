from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence


def points_per_dart(start: int, remaining: int, darts: int) -> float:
    """Average points scored per dart thrown.

    Args:
        start: The player's starting score, handicap included.
        remaining: Points the player still has to score.
        darts: Darts thrown so far; busted turns are not counted.
    """
    if darts <= 0:
        return 0.0
    return (start - remaining) / darts


def darts_thrown(player_ids: Iterable[str], thrower_ids: Sequence[str]) -> dict[str, int]:
    """Count darts per player; players without throws get ``0``."""
    counts = Counter(thrower_ids)
    return {pid: counts.get(pid, 0) for pid in player_ids}
