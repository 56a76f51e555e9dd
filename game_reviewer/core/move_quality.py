# game_reviewer/core/move_quality.py
"""
Pure, stateless rules for judging a single move from win rates.

Every function here takes win rates on the 0-100 scale, from White's
perspective, and reorients them by the side that moved. None of them raise.
"""

from typing import Optional, TYPE_CHECKING

from game_reviewer.types import MoveQuality

if TYPE_CHECKING:
    from game_reviewer.config.settings import (ExceptionalMoveCriteriaModel,
                                               QualityThresholdsModel)


def _side_sign(is_white_turn: bool) -> int:
    return 1 if is_white_turn else -1


def _default_thresholds() -> "QualityThresholdsModel":
    from game_reviewer.config.settings import QualityThresholdsModel
    return QualityThresholdsModel()


def _default_criteria() -> "ExceptionalMoveCriteriaModel":
    from game_reviewer.config.settings import ExceptionalMoveCriteriaModel
    return ExceptionalMoveCriteriaModel()


def has_reversed_outcome(
    before: float, after: float, is_white_turn: bool,
    criteria: Optional["ExceptionalMoveCriteriaModel"] = None
) -> bool:
    """True when the mover gained more than the minimum swing and the 50 line was crossed."""
    criteria = criteria or _default_criteria()
    improvement = (after - before) * _side_sign(is_white_turn)
    line = criteria.equality_line
    crossed_equality = (before < line and after > line) or (before > line and after < line)
    return improvement > criteria.min_swing and crossed_equality


def was_only_viable_option(
    chosen: float, alternative: float, is_white_turn: bool,
    criteria: Optional["ExceptionalMoveCriteriaModel"] = None
) -> bool:
    """True when the played move beats the second-best line by more than the minimum swing."""
    criteria = criteria or _default_criteria()
    quality_gap = (chosen - alternative) * _side_sign(is_white_turn)
    return quality_gap > criteria.min_swing


def is_in_hopeless_position(
    current: float, fallback: float, is_white_turn: bool,
    criteria: Optional["ExceptionalMoveCriteriaModel"] = None
) -> bool:
    """
    True when the mover is still behind after the move, or when the
    second-best line was already decisive, so no move deserves credit.
    """
    criteria = criteria or _default_criteria()
    if is_white_turn:
        is_behind = current < criteria.behind_threshold
        alternative_is_winning = fallback > criteria.white_alternative_winning
    else:
        is_behind = current > criteria.behind_threshold
        alternative_is_winning = fallback < criteria.black_alternative_winning
    return is_behind or alternative_is_winning


def is_exceptional_move(
    pre: float, post: float, is_white_turn: bool, second_best: Optional[float],
    criteria: Optional["ExceptionalMoveCriteriaModel"] = None
) -> bool:
    """
    Decides whether a move earns the 'Brilliant' label.

    Args:
        pre: Win rate before the move.
        post: Win rate after the move.
        is_white_turn: Whether White made the move.
        second_best: Win rate of the engine's second line, if there was one.
        criteria: Optional overrides for the thresholds.

    Returns:
        False without a second line to compare against, when the move drops
        more than the allowed advantage, or in a hopeless position. Otherwise
        True if the move reversed the outcome or was the only viable option.
    """
    if second_best is None:
        return False
    criteria = criteria or _default_criteria()

    advantage_change = (post - pre) * _side_sign(is_white_turn)
    if advantage_change < -criteria.max_advantage_drop:
        return False

    if is_in_hopeless_position(post, second_best, is_white_turn, criteria):
        return False

    return (
        has_reversed_outcome(pre, post, is_white_turn, criteria)
        or was_only_viable_option(post, second_best, is_white_turn, criteria)
    )


def assess_move_quality(
    pre: float, post: float, is_white_turn: bool,
    thresholds: Optional["QualityThresholdsModel"] = None
) -> MoveQuality:
    """Buckets a move by the win rate it gave away."""
    thresholds = thresholds or _default_thresholds()
    advantage_loss = (post - pre) * _side_sign(is_white_turn)

    if advantage_loss < thresholds.blunder:
        return MoveQuality.BLUNDER
    elif advantage_loss < thresholds.mistake:
        return MoveQuality.MISTAKE
    elif advantage_loss < thresholds.dubious:
        return MoveQuality.DUBIOUS
    elif advantage_loss < thresholds.good:
        return MoveQuality.GOOD
    return MoveQuality.VERY_GOOD
