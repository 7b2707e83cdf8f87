import os, sys
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))
from app.scoring import Hit, HitKind, Rules, X01Board, x01


def _hit(kind, number=None):
    return Hit.of(kind, number)


@pytest.mark.parametrize(
    "remaining, hit",
    [
        (501, _hit("triple", 20)),
        (100, _hit("single", 1)),
        (61, _hit("inner_bull")),
        (26, _hit("outer_bull")),
        (40, _hit("miss")),
    ],
)
def test_regular_hits_count_down(remaining, hit):
    result = x01.evaluate(Rules(), remaining, False, hit)
    assert not result.is_bust and not result.is_win
    assert result.remaining == remaining - hit.points
    assert 0 < result.remaining <= remaining


def test_going_below_zero_busts():
    result = x01.evaluate(Rules(double_out=True), 10, False, _hit("triple", 20))
    assert result.is_bust
    assert not result.is_win
    assert result.remaining == 10


def test_double_out_exact_zero_on_single_busts():
    result = x01.evaluate(Rules(double_out=True), 20, False, _hit("single", 20))
    assert result.is_bust
    assert result.remaining == 20


def test_double_out_exact_zero_on_double_wins():
    result = x01.evaluate(Rules(double_out=True), 20, False, _hit("double", 10))
    assert result.is_win
    assert not result.is_bust
    assert result.board == X01Board(remaining=0)


def test_double_out_accepts_inner_bull():
    result = x01.evaluate(Rules(double_out=True), 50, False, _hit("inner_bull"))
    assert result.is_win


def test_straight_out_wins_on_any_exact_zero():
    result = x01.evaluate(Rules(double_out=False), 20, False, _hit("single", 20))
    assert result.is_win
    assert result.remaining == 0


def test_double_out_leaves_one_as_regular_score():
    # No way to check out from 1 under double-out, but reaching it is not a bust.
    result = x01.evaluate(Rules(double_out=True), 21, False, _hit("single", 20))
    assert not result.is_bust
    assert result.remaining == 1


def test_double_in_ignores_non_doubles():
    rules = Rules(double_in=True)
    result = x01.evaluate(rules, 501, False, _hit("single", 20))
    assert result.remaining == 501
    assert not result.is_bust
    assert not result.doubled_in


def test_double_in_opens_on_double_and_scores_it():
    rules = Rules(double_in=True)
    result = x01.evaluate(rules, 501, False, _hit("double", 20))
    assert result.remaining == 461
    assert result.doubled_in


def test_double_in_opens_on_inner_bull():
    result = x01.evaluate(Rules(double_in=True), 501, False, _hit("inner_bull"))
    assert result.remaining == 451
    assert result.doubled_in


def test_double_in_already_satisfied_scores_everything():
    result = x01.evaluate(Rules(double_in=True), 461, True, _hit("single", 20))
    assert result.remaining == 441
    assert result.doubled_in


def test_qualifying_double_in_still_subject_to_bust():
    result = x01.evaluate(Rules(double_in=True), 30, False, _hit("double", 20))
    assert result.is_bust
    assert result.remaining == 30
    assert result.doubled_in


def test_check_win():
    assert x01.check_win(X01Board(remaining=0))
    assert not x01.check_win(X01Board(remaining=2))
