# tests/core/test_win_rate.py
import pytest

from game_reviewer.core.win_rate import (centipawn_to_win_rate, evaluation_to_win_rate,
                                         mate_to_win_rate, percent_to_number)
from game_reviewer.types import EngineLine


def test_centipawn_equal_position_is_baseline():
    assert centipawn_to_win_rate(0) == pytest.approx(55.0)

def test_centipawn_curve_is_monotonic_and_symmetric_around_baseline():
    assert centipawn_to_win_rate(100) == pytest.approx(65.588, abs=0.05)
    assert centipawn_to_win_rate(-100) == pytest.approx(44.412, abs=0.05)
    assert centipawn_to_win_rate(50) < centipawn_to_win_rate(100) < centipawn_to_win_rate(300)

def test_centipawn_is_clamped_to_scale():
    # The raw curve exceeds 100 near the clamp; the result never does.
    assert centipawn_to_win_rate(1100) == 100.0
    assert centipawn_to_win_rate(5000) == centipawn_to_win_rate(1100)
    assert centipawn_to_win_rate(-5000) == centipawn_to_win_rate(-1100)
    assert 0.0 <= centipawn_to_win_rate(-1100) < 2.0

def test_mate_to_win_rate():
    assert mate_to_win_rate(3) == 100.0
    assert mate_to_win_rate(-1) == 0.0
    assert mate_to_win_rate(0) == 55.0

def test_evaluation_to_win_rate_prefers_mate_over_cp():
    line = EngineLine(cp=-400, mate=2, depth=11)
    assert evaluation_to_win_rate(line) == 100.0

def test_evaluation_to_win_rate_defaults():
    assert evaluation_to_win_rate(None) == 55.0
    assert evaluation_to_win_rate(EngineLine(cp=None, mate=None, depth=11)) == 50.0

def test_evaluation_to_win_rate_uses_cp():
    line = EngineLine(cp=100, mate=None, depth=11)
    assert evaluation_to_win_rate(line) == centipawn_to_win_rate(100)

@pytest.mark.parametrize("text, expected", [
    ("57.31%", 57.31),
    (" 12 ", 12.0),
    ("100%", 100.0),
    ("n/a", None),
    ("", None),
    (None, None),
    ("nan%", None),
])
def test_percent_to_number(text, expected):
    assert percent_to_number(text) == expected

def test_centipawn_curve_never_decreases_across_clamp_range():
    rates = [centipawn_to_win_rate(cp) for cp in range(-1100, 1101, 10)]
    assert all(lower <= higher for lower, higher in zip(rates, rates[1:]))
