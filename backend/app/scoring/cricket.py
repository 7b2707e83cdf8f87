"""Cricket placeholder.

Marks and closing are not scored yet: every hit leaves the board as it was
and nobody wins. The engine still rotates turns so a match can be played
through and recorded.
"""

from .hits import Hit
from .modes import CricketBoard, Evaluation
from .rules import Rules


def evaluate(rules: Rules, board: CricketBoard, hit: Hit) -> Evaluation:
    return Evaluation(board=board)


def check_win(board: CricketBoard) -> bool:
    return False
