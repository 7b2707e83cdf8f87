"""X01 scoring (301, 501 and custom starting scores).

Players count down from their starting score. Going below zero busts; with
double-out, reaching zero on anything but a double or the inner bull busts
as well. With double-in, nothing scores until a double or inner bull lands.
"""

from .hits import Hit
from .modes import Evaluation, X01Board
from .rules import Rules


def evaluate(rules: Rules, remaining: int, doubled_in: bool, hit: Hit) -> Evaluation:
    unchanged = X01Board(remaining=remaining)

    if rules.double_in and not doubled_in:
        if not hit.kind.is_double:
            return Evaluation(board=unchanged)
        doubled_in = True

    target = remaining - hit.points
    if target < 0:
        return Evaluation(board=unchanged, is_bust=True, doubled_in=doubled_in)
    if target == 0:
        if rules.double_out and not hit.kind.is_double:
            return Evaluation(board=unchanged, is_bust=True, doubled_in=doubled_in)
        return Evaluation(board=X01Board(remaining=0), is_win=True, doubled_in=doubled_in)
    return Evaluation(board=X01Board(remaining=target), doubled_in=doubled_in)


def check_win(board: X01Board) -> bool:
    return board.remaining == 0
