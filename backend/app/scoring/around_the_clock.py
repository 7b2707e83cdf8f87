"""Around-the-Clock placeholder. Hits do not advance the target yet."""

from .hits import Hit
from .modes import AroundTheClockBoard, Evaluation
from .rules import Rules


def evaluate(rules: Rules, board: AroundTheClockBoard, hit: Hit) -> Evaluation:
    return Evaluation(board=board)


def check_win(board: AroundTheClockBoard) -> bool:
    return False
