# tests/core/test_move_quality.py
from game_reviewer.config.settings import ExceptionalMoveCriteriaModel, QualityThresholdsModel
from game_reviewer.core.move_quality import (assess_move_quality, has_reversed_outcome,
                                             is_exceptional_move, is_in_hopeless_position,
                                             was_only_viable_option)
from game_reviewer.types import MoveQuality

ROUND_THRESHOLDS = QualityThresholdsModel(blunder=-20, mistake=-10, dubious=-5, good=-2)


def test_assess_move_quality_white_buckets():
    assert assess_move_quality(60, 60, True) == MoveQuality.VERY_GOOD
    assert assess_move_quality(60, 57, True) == MoveQuality.GOOD
    assert assess_move_quality(60, 50, True) == MoveQuality.DUBIOUS
    assert assess_move_quality(60, 48, True) == MoveQuality.MISTAKE
    assert assess_move_quality(60, 30, True) == MoveQuality.BLUNDER

def test_assess_move_quality_black_perspective():
    # A rising White win rate is a loss for Black.
    assert assess_move_quality(40, 70, False) == MoveQuality.BLUNDER
    assert assess_move_quality(40, 20, False) == MoveQuality.VERY_GOOD

def test_assess_move_quality_boundaries_are_exclusive():
    assert assess_move_quality(50, 30, True, ROUND_THRESHOLDS) == MoveQuality.MISTAKE
    assert assess_move_quality(50, 40, True, ROUND_THRESHOLDS) == MoveQuality.DUBIOUS
    assert assess_move_quality(50, 45, True, ROUND_THRESHOLDS) == MoveQuality.GOOD
    assert assess_move_quality(50, 48, True, ROUND_THRESHOLDS) == MoveQuality.VERY_GOOD

def test_has_reversed_outcome():
    assert has_reversed_outcome(40, 62, True)
    assert not has_reversed_outcome(52, 70, True)   # never crossed 50
    assert not has_reversed_outcome(45, 52, True)   # swing too small
    assert has_reversed_outcome(60, 40, False)

def test_was_only_viable_option():
    assert was_only_viable_option(60, 45, True)
    assert not was_only_viable_option(60, 55, True)
    assert was_only_viable_option(30, 45, False)

def test_is_in_hopeless_position():
    assert is_in_hopeless_position(45, 20, True)
    assert is_in_hopeless_position(80, 99.5, True)
    assert not is_in_hopeless_position(60, 45, True)
    assert is_in_hopeless_position(60, 40, False)
    assert is_in_hopeless_position(30, 3, False)

def test_exceptional_move_requires_second_best():
    assert not is_exceptional_move(40, 62, True, None)

def test_exceptional_move_reversed_outcome():
    assert is_exceptional_move(40, 62, True, 40)

def test_exceptional_move_only_viable_option():
    assert is_exceptional_move(60, 60, True, 45)

def test_exceptional_move_for_black():
    assert is_exceptional_move(60, 40, False, 60)

def test_exceptional_move_rejected_when_advantage_drops():
    assert not is_exceptional_move(60, 55, True, 30)

def test_exceptional_move_rejected_in_hopeless_position():
    assert not is_exceptional_move(30, 45, True, 20)
    assert not is_exceptional_move(99.5, 99.8, True, 99.5)

def test_exceptional_move_zero_second_best_is_a_real_value():
    # Black's alternative at 0 means the alternative was already winning for Black.
    assert not is_exceptional_move(45, 30, False, 0.0)
    # For White an alternative at 0 leaves the played move as the only option.
    assert is_exceptional_move(60, 60, True, 0.0)

def test_exceptional_move_respects_custom_criteria():
    strict = ExceptionalMoveCriteriaModel(min_swing=30)
    assert not is_exceptional_move(60, 60, True, 45, strict)
